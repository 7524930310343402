from __future__ import annotations

import uuid


class UuidIdGenerator:
    def generate(self) -> str:
        return str(uuid.uuid4())
