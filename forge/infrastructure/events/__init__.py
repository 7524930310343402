from .projectors import (
    HelpRequestProjector,
    Projector,
    ProjectorRegistry,
    SessionProjector,
    SignInProjector,
    create_projector_registry,
)
from .store import SqlAlchemyEventStore

__all__ = [
    "HelpRequestProjector",
    "Projector",
    "ProjectorRegistry",
    "SessionProjector",
    "SignInProjector",
    "SqlAlchemyEventStore",
    "create_projector_registry",
]
