from __future__ import annotations

from datetime import datetime
from typing import Protocol

from forge.domain.ports.records import AppendEventInput, EventFilters, StoredEvent


class EventStore(Protocol):
    """Append-only log of domain events.

    Appending an event and applying every projector that handles its type happen
    in one atomic unit. When a projector fails the event record is rolled back
    with it, so the log and the read tables never diverge.
    """

    async def append(self, data: AppendEventInput) -> StoredEvent:
        """Assign id and timestamp, persist the event and project it atomically."""
        ...

    async def append_and_emit(self, data: AppendEventInput) -> StoredEvent:
        """Same guarantees as ``append``; hook for cross-process distribution."""
        ...

    async def load_events(self, filters: EventFilters | None = None) -> list[StoredEvent]:
        """Events matching every given filter, oldest first."""
        ...

    async def count_events(self, filters: EventFilters | None = None) -> int: ...

    async def delete_older_than(self, cutoff: datetime) -> int:
        """Hard-delete events created before ``cutoff``; read tables are untouched."""
        ...

    async def rebuild_read_models(self) -> int:
        """Clear every projection and replay the full log; returns events replayed."""
        ...
