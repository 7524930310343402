#!/usr/bin/env python3
"""Clear every projection and rebuild it by replaying the event log.

Usage: python scripts/rebuild_read_models.py
"""

from __future__ import annotations

import asyncio

from forge.core.config import get_settings
from forge.core.logging import setup_logging
from forge.domain.services import MaintenanceService
from forge.infrastructure.db.session import create_engine, create_session_factory
from forge.infrastructure.environment import build_environment


async def rebuild() -> int:
    settings = get_settings()
    engine = create_engine(settings)
    try:
        env = build_environment(settings, session_factory=create_session_factory(engine))
        result = await MaintenanceService(env).rebuild_read_models()
    finally:
        await engine.dispose()

    if result.status == "err":
        print(f"❌ Rebuild failed: {result.error.message}")
        return 1
    print(f"✅ Replayed {result.value} events")
    return 0


def main() -> None:
    setup_logging(json_output=False)
    raise SystemExit(asyncio.run(rebuild()))


if __name__ == "__main__":
    main()
