from __future__ import annotations

import asyncio

from passlib.context import CryptContext


class BcryptHashService:
    """PIN hashing with bcrypt via passlib.

    Hashing and verification run in a worker thread off the event loop.
    """

    def __init__(self, rounds: int = 10) -> None:
        self._context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds
        )

    async def hash(self, value: str) -> str:
        return await asyncio.to_thread(self._context.hash, value)

    async def verify(self, value: str, hashed: str) -> bool:
        return await asyncio.to_thread(self._context.verify, value, hashed)
