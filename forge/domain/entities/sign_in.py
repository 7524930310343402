from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime

from forge.domain.entities.durations import minutes_between
from forge.domain.errors import ConflictError, ValidationError
from forge.domain.ports.records import SignInRecord
from forge.domain.types import SignoutType


@dataclass(frozen=True, slots=True)
class SignInEntity:
    """One presence cycle of a person in a session.

    ``signed-in --sign_out--> signed-out`` is terminal for the record. Signing in
    again after signing out starts a new cycle with its own id.
    """

    id: str
    session_id: str
    person_id: str
    signed_in_at: datetime
    signed_in_by_id: str
    signed_out_at: datetime | None = None
    signed_out_by_id: str | None = None
    signout_type: SignoutType | None = None

    @classmethod
    def create(
        cls,
        *,
        id: str,
        session_id: str,
        person_id: str,
        signed_in_by_id: str,
        signed_in_at: datetime,
    ) -> SignInEntity:
        for field_name, value in (
            ("session_id", session_id),
            ("person_id", person_id),
            ("signed_in_by_id", signed_in_by_id),
        ):
            if not value:
                raise ValidationError.for_field(field_name, f"{field_name} is required")
        return cls(
            id=id,
            session_id=session_id,
            person_id=person_id,
            signed_in_at=signed_in_at,
            signed_in_by_id=signed_in_by_id,
        )

    @classmethod
    def from_record(cls, record: SignInRecord) -> SignInEntity:
        return cls(
            id=record.id,
            session_id=record.session_id,
            person_id=record.person_id,
            signed_in_at=record.signed_in_at,
            signed_in_by_id=record.signed_in_by_id,
            signed_out_at=record.signed_out_at,
            signed_out_by_id=record.signed_out_by_id,
            signout_type=record.signout_type,
        )

    @property
    def is_signed_in(self) -> bool:
        return self.signed_out_at is None

    @property
    def is_self_sign_in(self) -> bool:
        return self.signed_in_by_id == self.person_id

    def can_sign_out(self) -> bool:
        return self.is_signed_in

    def sign_out(
        self, by_id: str, signout_type: SignoutType | str, at: datetime
    ) -> SignInEntity:
        if not self.can_sign_out():
            raise ConflictError(
                "Already signed out",
                metadata={"sign_in_id": self.id, "signed_out_at": self.signed_out_at},
            )
        return replace(
            self,
            signed_out_at=at,
            signed_out_by_id=by_id,
            signout_type=SignoutType(signout_type),
        )

    def get_duration_minutes(self, now: datetime | None = None) -> int | None:
        finish = self.signed_out_at or now
        if finish is None:
            return None
        return minutes_between(self.signed_in_at, finish)
