from __future__ import annotations

import secrets


class SecretsTokenGenerator:
    """Opaque session tokens: 32 random bytes, hex encoded."""

    def __init__(self, num_bytes: int = 32) -> None:
        self._num_bytes = num_bytes

    def generate(self) -> str:
        return secrets.token_hex(self._num_bytes)
