from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from forge.domain.types import SignoutType


class SignInRequest(BaseModel):
    # Omitted when signing oneself in
    person_id: str | None = None


class SignInResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    session_id: str
    person_id: str
    signed_in_at: datetime
    signed_in_by_id: str
    signed_out_at: datetime | None = None
    signed_out_by_id: str | None = None
    signout_type: SignoutType | None = None


class PresentPersonItem(BaseModel):
    person_id: str
    display_name: str
    ask_me_about: list[str]
    signed_in_at: datetime


class PresentResponse(BaseModel):
    people: list[PresentPersonItem]
