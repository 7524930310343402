#!/usr/bin/env python3
"""Delete events past the retention window and expired PIN sessions.

Usage: python scripts/purge_events.py [DAYS]
"""

from __future__ import annotations

import asyncio
import sys

from forge.core.config import get_settings
from forge.core.logging import setup_logging
from forge.domain.services import MaintenanceService
from forge.infrastructure.db.session import create_engine, create_session_factory
from forge.infrastructure.environment import build_environment


async def purge(days: int | None) -> int:
    settings = get_settings()
    engine = create_engine(settings)
    try:
        env = build_environment(settings, session_factory=create_session_factory(engine))
        maintenance = MaintenanceService(env)
        events = await maintenance.purge_events_older_than(days=days)
        pin_sessions = await maintenance.purge_expired_pin_sessions()
    finally:
        await engine.dispose()

    for label, result in (("events", events), ("pin sessions", pin_sessions)):
        if result.status == "err":
            print(f"❌ Purging {label} failed: {result.error.message}")
            return 1
        print(f"✅ Deleted {result.value} {label}")
    return 0


def main() -> None:
    setup_logging(json_output=False)
    days = int(sys.argv[1]) if len(sys.argv) > 1 else None
    raise SystemExit(asyncio.run(purge(days)))


if __name__ == "__main__":
    main()
