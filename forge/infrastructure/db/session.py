from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from forge.core.config import Settings


def create_engine(settings: Settings) -> AsyncEngine:
    """Build the async engine for the configured database URL."""
    url = settings.async_database_url
    options: dict = {"echo": False}
    if not url.startswith("sqlite"):
        options["pool_pre_ping"] = True
    return create_async_engine(url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)
