from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime:
        """Return the current time as a timezone-aware UTC datetime."""
        ...


class IdGenerator(Protocol):
    def generate(self) -> str: ...


class HashService(Protocol):
    async def hash(self, value: str) -> str: ...

    async def verify(self, value: str, hashed: str) -> bool: ...


class TokenGenerator(Protocol):
    def generate(self) -> str: ...
