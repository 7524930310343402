from __future__ import annotations

import itertools
from collections.abc import AsyncIterator
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from forge.api.main import create_app
from forge.core.config import Settings
from forge.infrastructure.db.base import Base
from forge.infrastructure.db.session import create_engine, create_session_factory
from forge.infrastructure.environment import Environment, build_environment
from forge.infrastructure.services import BcryptHashService

from tests.utils import SeededClassroom, seed_classroom

START = datetime(2025, 1, 6, 15, 0, tzinfo=UTC)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> datetime:
        self.current += timedelta(**delta)
        return self.current


class SequentialIds:
    def __init__(self, prefix: str = "id") -> None:
        self._prefix = prefix
        self._counter = itertools.count(1)

    def generate(self) -> str:
        return f"{self._prefix}-{next(self._counter):06d}"


@pytest.fixture()
def settings(tmp_path: Path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'forge.db'}",
        bcrypt_rounds=4,
    )


@pytest.fixture()
async def engine(settings: Settings) -> AsyncIterator[AsyncEngine]:
    engine = create_engine(settings)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(engine)


@pytest.fixture()
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture()
def env(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    clock: FrozenClock,
) -> Environment:
    return build_environment(
        settings,
        session_factory=session_factory,
        clock=clock,
        id_generator=SequentialIds(),
        hash_service=BcryptHashService(rounds=4),
    )


@pytest.fixture()
async def seeded(env: Environment) -> SeededClassroom:
    """Classroom with every module enabled, one teacher and three students."""
    return await seed_classroom(env)


@pytest.fixture()
async def async_client(
    env: Environment, session_factory: async_sessionmaker[AsyncSession]
) -> AsyncIterator[AsyncClient]:
    """HTTP client bound to an app wired to the test environment."""
    app = create_app(env.settings, environment=env, session_factory=session_factory)
    transport = ASGITransport(app=app)  # type: ignore[arg-type]
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
