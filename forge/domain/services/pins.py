"""PIN login for students on shared classroom devices.

PINs are unique within a classroom. Since only hashes are stored, uniqueness is
checked by verifying the candidate PIN against every other student's hash.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta

import structlog

from forge.core.result import ErrorType, Result, err, ok
from forge.domain.ports.records import PinCandidate, PinSessionRecord, StudentPinInfo
from forge.domain.services.base import UseCaseService, use_case

logger = structlog.get_logger()

PIN_MIN_LENGTH = 4
PIN_MAX_LENGTH = 6
GENERATE_ATTEMPTS_PER_LENGTH = 100

_PIN_RE = re.compile(rf"^\d{{{PIN_MIN_LENGTH},{PIN_MAX_LENGTH}}}$")


@dataclass(frozen=True, slots=True)
class PinLoginResult:
    token: str
    person_id: str
    classroom_id: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class GenerateAllPinsResult:
    generated: int


class PinService(UseCaseService):
    @use_case("set_pin")
    async def set_pin(self, *, classroom_id: str, person_id: str, pin: str) -> Result[None]:
        if not _PIN_RE.match(pin or ""):
            return err(
                ErrorType.VALIDATION_ERROR,
                f"PIN must be {PIN_MIN_LENGTH} to {PIN_MAX_LENGTH} digits",
            )
        membership = await self.env.classrooms.get_membership(classroom_id, person_id)
        if membership is None or not membership.is_active:
            return err(ErrorType.NOT_FOUND, "Student not found in this classroom")

        candidates = await self.env.pins.find_login_candidates(classroom_id)
        if await self._pin_in_use(pin, candidates, exclude_person_id=person_id):
            return err(ErrorType.PIN_IN_USE, "PIN is already used in this classroom")

        await self.env.pins.update_person_pin_hash(person_id, await self.env.hash_service.hash(pin))
        await logger.ainfo("pin_set", classroom_id=classroom_id, person_id=person_id)
        return ok(None)

    @use_case("generate_pin")
    async def generate_pin(self, *, classroom_id: str, person_id: str) -> Result[str]:
        """Assign a fresh random PIN and return it in clear text (shown once)."""
        membership = await self.env.classrooms.get_membership(classroom_id, person_id)
        if membership is None or not membership.is_active:
            return err(ErrorType.NOT_FOUND, "Student not found in this classroom")

        candidates = await self.env.pins.find_login_candidates(classroom_id)
        pin = await self._generate_unique_pin(candidates, exclude_person_id=person_id)
        if pin is None:
            return err(ErrorType.UNABLE_TO_GENERATE, "Could not find an unused PIN")

        await self.env.pins.update_person_pin_hash(person_id, await self.env.hash_service.hash(pin))
        await logger.ainfo("pin_generated", classroom_id=classroom_id, person_id=person_id)
        return ok(pin)

    @use_case("generate_all_pins")
    async def generate_all_pins(self, *, classroom_id: str) -> Result[GenerateAllPinsResult]:
        """Give every student without a PIN a fresh one.

        Students for whom no unused PIN can be found are skipped and left without
        one; ``generated`` counts only the students who received a PIN.
        """
        students = await self.env.pins.list_students_with_pins(classroom_id)
        candidates = await self.env.pins.find_login_candidates(classroom_id)

        generated = 0
        for student in students:
            if student.has_pin:
                continue
            pin = await self._generate_unique_pin(candidates, exclude_person_id=student.person_id)
            if pin is None:
                await logger.awarning(
                    "pin_generation_exhausted",
                    classroom_id=classroom_id,
                    person_id=student.person_id,
                )
                continue
            pin_hash = await self.env.hash_service.hash(pin)
            await self.env.pins.update_person_pin_hash(student.person_id, pin_hash)
            candidates.append(PinCandidate(person_id=student.person_id, pin_hash=pin_hash))
            generated += 1

        await logger.ainfo("pins_generated", classroom_id=classroom_id, generated=generated)
        return ok(GenerateAllPinsResult(generated=generated))

    @use_case("remove_pin")
    async def remove_pin(self, *, classroom_id: str, person_id: str) -> Result[None]:
        membership = await self.env.classrooms.get_membership(classroom_id, person_id)
        if membership is None:
            return err(ErrorType.NOT_FOUND, "Student not found in this classroom")
        await self.env.pins.update_person_pin_hash(person_id, None)
        await self.env.pins.delete_pin_sessions_for_person(person_id)
        return ok(None)

    @use_case("list_students_with_pins")
    async def list_students_with_pins(self, *, classroom_id: str) -> Result[list[StudentPinInfo]]:
        return ok(await self.env.pins.list_students_with_pins(classroom_id))

    @use_case("login_with_pin")
    async def login_with_pin(self, *, classroom_code: str, pin: str) -> Result[PinLoginResult]:
        """Exchange classroom code + PIN for a session token.

        Any earlier PIN session of the same student is dropped.
        """
        classroom_id = await self.env.pins.find_classroom_id_by_display_code(
            (classroom_code or "").strip().upper()
        )
        if classroom_id is None:
            return err(ErrorType.INVALID_CREDENTIALS, "Invalid classroom code or PIN")

        matched: str | None = None
        for candidate in await self.env.pins.find_login_candidates(classroom_id):
            if await self.env.hash_service.verify(pin, candidate.pin_hash):
                matched = candidate.person_id
                break
        if matched is None:
            await logger.awarning("pin_login_failed", classroom_id=classroom_id)
            return err(ErrorType.INVALID_CREDENTIALS, "Invalid classroom code or PIN")

        now = self._now()
        expires_at = now + timedelta(hours=self.env.settings.pin_session_hours)
        token = self.env.token_generator.generate()

        await self.env.pins.delete_pin_sessions_for_person(matched)
        await self.env.pins.create_pin_session(
            token=token,
            person_id=matched,
            classroom_id=classroom_id,
            expires_at=expires_at,
            created_at=now,
        )
        await self.env.pins.update_person_last_login(matched, now)

        await logger.ainfo("pin_login_success", classroom_id=classroom_id, person_id=matched)
        return ok(
            PinLoginResult(
                token=token, person_id=matched, classroom_id=classroom_id, expires_at=expires_at
            )
        )

    @use_case("get_pin_session")
    async def get_pin_session(self, *, token: str) -> Result[PinSessionRecord]:
        pin_session = await self.env.pins.get_pin_session_by_token(token)
        if pin_session is None or pin_session.expires_at <= self._now():
            return err(ErrorType.INVALID_CREDENTIALS, "PIN session expired")
        return ok(pin_session)

    @use_case("logout_pin")
    async def logout_pin(self, *, token: str) -> Result[None]:
        await self.env.pins.delete_pin_session(token)
        return ok(None)

    async def _pin_in_use(
        self, pin: str, candidates: list[PinCandidate], *, exclude_person_id: str | None
    ) -> bool:
        for candidate in candidates:
            if candidate.person_id == exclude_person_id:
                continue
            if await self.env.hash_service.verify(pin, candidate.pin_hash):
                return True
        return False

    async def _generate_unique_pin(
        self, candidates: list[PinCandidate], *, exclude_person_id: str | None
    ) -> str | None:
        for length in range(PIN_MIN_LENGTH, PIN_MAX_LENGTH + 1):
            low = 10 ** (length - 1)
            for _ in range(GENERATE_ATTEMPTS_PER_LENGTH):
                pin = str(low + secrets.randbelow(9 * low))
                if not await self._pin_in_use(pin, candidates, exclude_person_id=exclude_person_id):
                    return pin
        return None
