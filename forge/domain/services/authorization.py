"""Membership and role checks shared by the other services."""

from __future__ import annotations

from forge.core.result import ErrorType, Result, err, ok
from forge.domain.ports.records import MembershipRecord, SignInRecord
from forge.domain.services.base import UseCaseService, use_case
from forge.domain.types import MemberRole


class AuthorizationService(UseCaseService):
    @use_case("require_member")
    async def require_member(
        self, person_id: str | None, classroom_id: str
    ) -> Result[MembershipRecord]:
        if not person_id:
            return err(ErrorType.NOT_AUTHENTICATED, "Sign in required")

        membership = await self.env.classrooms.get_membership(classroom_id, person_id)
        if membership is None or not membership.is_active:
            return err(
                ErrorType.NOT_MEMBER,
                "Not a member of this classroom",
                classroom_id=classroom_id,
            )
        return ok(membership)

    @use_case("require_teacher")
    async def require_teacher(
        self, person_id: str | None, classroom_id: str
    ) -> Result[MembershipRecord]:
        result = await self.require_member(person_id, classroom_id)
        if result.status == "err":
            return result
        if result.value.role is not MemberRole.TEACHER:
            return err(
                ErrorType.NOT_TEACHER,
                "Teacher role required",
                classroom_id=classroom_id,
            )
        return result

    @use_case("require_signed_in")
    async def require_signed_in(
        self, person_id: str | None, session_id: str
    ) -> Result[SignInRecord]:
        if not person_id:
            return err(ErrorType.NOT_AUTHENTICATED, "Sign in required")

        sign_in = await self.env.presence.get_active_sign_in(session_id, person_id)
        if sign_in is None:
            return err(
                ErrorType.NOT_SIGNED_IN,
                "Not signed in to this session",
                session_id=session_id,
            )
        return ok(sign_in)

    async def is_teacher(self, person_id: str | None, classroom_id: str) -> bool:
        result = await self.require_teacher(person_id, classroom_id)
        return result.status == "ok"
