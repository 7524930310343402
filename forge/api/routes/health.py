from __future__ import annotations

from datetime import UTC, datetime

import structlog
from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from forge.core.config import get_settings

router = APIRouter(tags=["Observability"])
logger = structlog.get_logger()


async def check_database(request: Request) -> dict:
    """Run ``SELECT 1`` through the application's session factory."""
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        return {"status": "unconfigured"}
    try:
        async with session_factory() as session:
            await session.execute(text("SELECT 1"))
            return {"status": "ok"}
    except SQLAlchemyError as exc:
        return {"status": "error", "message": str(exc)[:100]}


@router.get("/health", summary="Service health check")
async def health_check(request: Request) -> dict:
    """Return basic service and datastore status information."""
    settings = get_settings()
    database_status = await check_database(request)

    payload = {
        "service": settings.app_name,
        "version": settings.version,
        "status": "ok" if database_status.get("status") == "ok" else "degraded",
        "timestamp": datetime.now(UTC).isoformat(),
        "datastores": {"database": database_status},
    }
    logger.info("health_checked", **payload)
    return payload
