from .clock import SystemClock
from .hashing import BcryptHashService
from .ids import UuidIdGenerator
from .tokens import SecretsTokenGenerator

__all__ = ["BcryptHashService", "SecretsTokenGenerator", "SystemClock", "UuidIdGenerator"]
