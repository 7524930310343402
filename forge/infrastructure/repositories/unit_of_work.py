from __future__ import annotations

from types import TracebackType

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

logger = structlog.get_logger()


class UnitOfWork:
    """One database transaction spanning an event append and its projections.

    Commits on clean exit and rolls back when the block raises, so either every
    write inside the block becomes durable or none does.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: AsyncSession | None = None

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("UnitOfWork used outside of 'async with'")
        return self._session

    async def __aenter__(self) -> UnitOfWork:
        self._session = self._session_factory()
        await self._session.begin()
        logger.debug("uow_enter")
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        try:
            if exc is not None:
                await self.rollback()
            else:
                await self.commit()
        finally:
            await self.session.close()
            self._session = None
        logger.debug("uow_exit", exc_type=exc_type.__name__ if exc_type else None)

    async def commit(self) -> None:
        await self.session.commit()
        logger.debug("uow_commit")

    async def rollback(self) -> None:
        await self.session.rollback()
        logger.debug("uow_rollback")
