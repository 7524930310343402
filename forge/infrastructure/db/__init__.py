from . import models  # noqa: F401
from .base import Base, UtcDateTime
from .session import create_engine, create_session_factory

__all__ = ["Base", "UtcDateTime", "create_engine", "create_session_factory"]
