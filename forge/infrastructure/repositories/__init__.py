from .classrooms import SqlAlchemyClassroomRepository
from .help import SqlAlchemyHelpRepository
from .ninja import SqlAlchemyNinjaRepository
from .people import SqlAlchemyPersonRepository
from .pins import SqlAlchemyPinRepository
from .presence import SqlAlchemyPresenceRepository
from .sessions import SqlAlchemySessionRepository
from .unconfigured import (
    UnconfiguredClassroomRepository,
    UnconfiguredEventStore,
    UnconfiguredHelpRepository,
    UnconfiguredNinjaRepository,
    UnconfiguredPersonRepository,
    UnconfiguredPinRepository,
    UnconfiguredPresenceRepository,
    UnconfiguredSessionRepository,
)
from .unit_of_work import UnitOfWork

__all__ = [
    "SqlAlchemyClassroomRepository",
    "SqlAlchemyHelpRepository",
    "SqlAlchemyNinjaRepository",
    "SqlAlchemyPersonRepository",
    "SqlAlchemyPinRepository",
    "SqlAlchemyPresenceRepository",
    "SqlAlchemySessionRepository",
    "UnconfiguredClassroomRepository",
    "UnconfiguredEventStore",
    "UnconfiguredHelpRepository",
    "UnconfiguredNinjaRepository",
    "UnconfiguredPersonRepository",
    "UnconfiguredPinRepository",
    "UnconfiguredPresenceRepository",
    "UnconfiguredSessionRepository",
    "UnitOfWork",
]
