from __future__ import annotations

from datetime import timedelta

import structlog

from forge.core.result import ErrorType, Result, err, ok
from forge.domain.services.base import UseCaseService, use_case

logger = structlog.get_logger()


class MaintenanceService(UseCaseService):
    """Operational jobs: projection rebuilds and retention."""

    @use_case("rebuild_read_models")
    async def rebuild_read_models(self) -> Result[int]:
        replayed = await self.env.event_store.rebuild_read_models()
        await logger.ainfo("rebuild_read_models_completed", events=replayed)
        return ok(replayed)

    @use_case("purge_events")
    async def purge_events_older_than(self, *, days: int | None = None) -> Result[int]:
        """Delete events older than ``days`` (default: configured retention).

        Read tables keep their state; only the log shrinks.
        """
        days = self.env.settings.event_retention_days if days is None else days
        if days < 1:
            return err(ErrorType.VALIDATION_ERROR, "Retention must be at least one day", days=days)
        cutoff = self._now() - timedelta(days=days)
        deleted = await self.env.event_store.delete_older_than(cutoff)
        await logger.ainfo("events_purged", days=days, deleted=deleted)
        return ok(deleted)

    @use_case("purge_expired_pin_sessions")
    async def purge_expired_pin_sessions(self) -> Result[int]:
        deleted = await self.env.pins.delete_expired_pin_sessions(self._now())
        await logger.ainfo("pin_sessions_purged", deleted=deleted)
        return ok(deleted)
