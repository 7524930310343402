"""Composition root.

``build_environment`` wires every port once at process start; the resulting
``Environment`` is passed explicitly to each use-case service. Ports without a
concrete adapter get an ``Unconfigured*`` placeholder that fails on first use.
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forge.core.config import Settings
from forge.domain.ports import (
    ClassroomRepository,
    Clock,
    EventStore,
    HashService,
    HelpRepository,
    IdGenerator,
    NinjaRepository,
    PersonRepository,
    PinRepository,
    PresenceRepository,
    SessionRepository,
    TokenGenerator,
)
from forge.infrastructure.events import (
    ProjectorRegistry,
    SqlAlchemyEventStore,
    create_projector_registry,
)
from forge.infrastructure.repositories import (
    SqlAlchemyClassroomRepository,
    SqlAlchemyHelpRepository,
    SqlAlchemyNinjaRepository,
    SqlAlchemyPersonRepository,
    SqlAlchemyPinRepository,
    SqlAlchemyPresenceRepository,
    SqlAlchemySessionRepository,
    UnconfiguredClassroomRepository,
    UnconfiguredEventStore,
    UnconfiguredHelpRepository,
    UnconfiguredNinjaRepository,
    UnconfiguredPersonRepository,
    UnconfiguredPinRepository,
    UnconfiguredPresenceRepository,
    UnconfiguredSessionRepository,
)
from forge.infrastructure.services import (
    BcryptHashService,
    SecretsTokenGenerator,
    SystemClock,
    UuidIdGenerator,
)

logger = structlog.get_logger()


@dataclass(slots=True)
class Environment:
    settings: Settings
    clock: Clock
    id_generator: IdGenerator
    hash_service: HashService
    token_generator: TokenGenerator
    event_store: EventStore
    classrooms: ClassroomRepository
    sessions: SessionRepository
    presence: PresenceRepository
    help: HelpRepository
    ninja: NinjaRepository
    people: PersonRepository
    pins: PinRepository


def build_environment(
    settings: Settings,
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    clock: Clock | None = None,
    id_generator: IdGenerator | None = None,
    hash_service: HashService | None = None,
    token_generator: TokenGenerator | None = None,
    registry: ProjectorRegistry | None = None,
) -> Environment:
    """Wire the ports for one process.

    Without a ``session_factory`` the storage-backed ports are unconfigured;
    that is enough for code paths that only touch the clock or hashing.
    """
    clock = clock or SystemClock()
    id_generator = id_generator or UuidIdGenerator()
    hash_service = hash_service or BcryptHashService(rounds=settings.bcrypt_rounds)
    token_generator = token_generator or SecretsTokenGenerator()

    if session_factory is None:
        logger.warning("environment_without_database", environment=settings.environment)
        return Environment(
            settings=settings,
            clock=clock,
            id_generator=id_generator,
            hash_service=hash_service,
            token_generator=token_generator,
            event_store=UnconfiguredEventStore(),
            classrooms=UnconfiguredClassroomRepository(),
            sessions=UnconfiguredSessionRepository(),
            presence=UnconfiguredPresenceRepository(),
            help=UnconfiguredHelpRepository(),
            ninja=UnconfiguredNinjaRepository(),
            people=UnconfiguredPersonRepository(),
            pins=UnconfiguredPinRepository(),
        )

    event_store = SqlAlchemyEventStore(
        session_factory,
        registry or create_projector_registry(),
        clock=clock,
        id_generator=id_generator,
    )
    logger.info(
        "environment_built",
        environment=settings.environment,
        projectors=[projector.name for projector in event_store.registry.projectors],
    )
    return Environment(
        settings=settings,
        clock=clock,
        id_generator=id_generator,
        hash_service=hash_service,
        token_generator=token_generator,
        event_store=event_store,
        classrooms=SqlAlchemyClassroomRepository(session_factory),
        sessions=SqlAlchemySessionRepository(session_factory),
        presence=SqlAlchemyPresenceRepository(session_factory),
        help=SqlAlchemyHelpRepository(session_factory),
        ninja=SqlAlchemyNinjaRepository(session_factory),
        people=SqlAlchemyPersonRepository(session_factory),
        pins=SqlAlchemyPinRepository(session_factory),
    )
