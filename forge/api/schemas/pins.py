from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class PinLoginRequest(BaseModel):
    classroom_code: str = Field(..., min_length=1)
    pin: str = Field(..., min_length=4, max_length=6)


class PinLoginResponse(BaseModel):
    token: str
    person_id: str
    classroom_id: str
    expires_at: datetime
