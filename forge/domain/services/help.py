"""Help queue use cases.

A request moves ``pending -> claimed -> resolved`` or is cancelled while open.
Each transition is one event; the help-request projector re-checks the current
status inside the append transaction, so a request that changed underneath a use
case surfaces here as ``ConflictError`` and is reported with the matching tag.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

import structlog

from forge.core.result import ErrorType, Result, err, ok
from forge.domain.entities import HelpRequestEntity, SessionEntity
from forge.domain.errors import ConflictError, ValidationError
from forge.domain.events import (
    EntityType,
    EventPayload,
    EventType,
    HelpCancelledPayload,
    HelpClaimedPayload,
    HelpRequestedPayload,
    HelpResolvedPayload,
    HelpUnclaimedPayload,
)
from forge.domain.ports.records import (
    AppendEventInput,
    ClassroomRecord,
    HelpCategoryRecord,
    HelpRequestRecord,
)
from forge.domain.services.authorization import AuthorizationService
from forge.domain.services.base import UseCaseService, use_case, validation_err
from forge.domain.types import ClassroomModule, HelpRequestStatus, HelpUrgency

if TYPE_CHECKING:
    from forge.infrastructure.environment import Environment

logger = structlog.get_logger()

CATEGORY_NAME_MAX_LENGTH = 50

_UNSET: Any = object()


@dataclass(frozen=True, slots=True)
class RequestHelpResult:
    help_request: HelpRequestRecord
    queue_position: int


@dataclass(frozen=True, slots=True)
class QueueItem:
    request: HelpRequestRecord
    position: int
    wait_minutes: int


@dataclass(frozen=True, slots=True)
class PublicQueueItem:
    id: str
    position: int
    wait_minutes: int
    description: str
    urgency: HelpUrgency
    status: HelpRequestStatus
    created_at: datetime
    requester_name: str | None
    category_name: str | None
    claimed_by_name: str | None


class HelpService(UseCaseService):
    def __init__(self, env: Environment) -> None:
        super().__init__(env)
        self.auth = AuthorizationService(env)

    # Requests

    @use_case("request_help")
    async def request_help(
        self,
        *,
        session_id: str,
        requester_id: str,
        description: str,
        what_i_tried: str,
        urgency: HelpUrgency | str,
        category_id: str | None = None,
        pin_classroom_id: str | None = None,
    ) -> Result[RequestHelpResult]:
        session = await self.env.sessions.get_by_id(session_id)
        if session is None:
            return err(ErrorType.SESSION_NOT_FOUND, "Session not found", session_id=session_id)
        if not SessionEntity.from_record(session).is_active:
            return err(ErrorType.SESSION_NOT_ACTIVE, "Session is not active")
        if pin_classroom_id and pin_classroom_id != session.classroom_id:
            return err(ErrorType.WRONG_CLASSROOM, "Session belongs to another classroom")

        classroom = await self.env.classrooms.get_by_id(session.classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")
        if not classroom.settings.is_enabled(ClassroomModule.HELP):
            return err(
                ErrorType.FEATURE_DISABLED,
                "The help queue is disabled for this classroom",
                feature=ClassroomModule.HELP.value,
            )

        if await self.env.help.find_open_request(session_id, requester_id) is not None:
            return err(ErrorType.ALREADY_HAS_OPEN_REQUEST, "You already have an open request")

        if category_id is not None:
            category = await self.env.help.get_category_by_id(category_id)
            if category is None or category.classroom_id != classroom.id or not category.is_active:
                return err(ErrorType.CATEGORY_NOT_FOUND, "Category not found")

        try:
            entity = HelpRequestEntity.create(
                id=self.env.id_generator.generate(),
                classroom_id=session.classroom_id,
                session_id=session.id,
                requester_id=requester_id,
                description=description,
                what_i_tried=what_i_tried,
                urgency=urgency,
                created_at=self._now(),
                category_id=category_id,
            )
        except ValidationError as exc:
            return validation_err(exc)

        by_teacher = await self.auth.is_teacher(requester_id, session.classroom_id)
        try:
            await self._append(
                classroom,
                entity.session_id,
                entity.id,
                EventType.HELP_REQUESTED,
                requester_id,
                HelpRequestedPayload(
                    request_id=entity.id,
                    session_id=entity.session_id,
                    classroom_id=entity.classroom_id,
                    requester_id=requester_id,
                    urgency=entity.urgency,
                    category_id=category_id,
                    description=entity.description,
                    what_i_tried=entity.what_i_tried,
                    by_teacher=by_teacher,
                ),
            )
        except ConflictError as exc:
            return err(ErrorType.ALREADY_HAS_OPEN_REQUEST, exc.message)

        record = await self.env.help.get_request_by_id(entity.id)
        if record is None:
            return err(ErrorType.NOT_FOUND, "Help request was not recorded", request_id=entity.id)

        position = await self.env.help.count_pending_before(session_id, record.created_at)
        await logger.ainfo(
            "help_requested",
            request_id=record.id,
            session_id=session_id,
            urgency=record.urgency.value,
            queue_position=position,
        )
        return ok(RequestHelpResult(help_request=record, queue_position=position))

    @use_case("claim_help_request")
    async def claim_help_request(
        self, *, request_id: str, actor_id: str
    ) -> Result[HelpRequestRecord]:
        request = await self.env.help.get_request_by_id(request_id)
        if request is None:
            return err(ErrorType.NOT_FOUND, "Help request not found", request_id=request_id)

        entity = HelpRequestEntity.from_record(request)
        if not entity.can_claim():
            return err(
                ErrorType.CANNOT_CLAIM,
                f"Cannot claim request in '{request.status.value}' status",
                current_status=request.status.value,
            )

        classroom = await self.env.classrooms.get_by_id(request.classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")
        by_teacher = await self.auth.is_teacher(actor_id, request.classroom_id)

        claimed = entity.claim(actor_id, self._now())
        try:
            await self._append(
                classroom,
                claimed.session_id,
                claimed.id,
                EventType.HELP_CLAIMED,
                actor_id,
                HelpClaimedPayload(
                    request_id=claimed.id,
                    session_id=claimed.session_id,
                    classroom_id=claimed.classroom_id,
                    claimed_by_id=claimed.claimed_by_id,
                    by_teacher=by_teacher,
                ),
            )
        except ConflictError as exc:
            return err(ErrorType.CANNOT_CLAIM, exc.message)

        await logger.ainfo("help_request_claimed", request_id=request_id, actor_id=actor_id)
        return await self._reload(request_id)

    @use_case("unclaim_help_request")
    async def unclaim_help_request(
        self, *, request_id: str, actor_id: str
    ) -> Result[HelpRequestRecord]:
        request = await self.env.help.get_request_by_id(request_id)
        if request is None:
            return err(ErrorType.NOT_FOUND, "Help request not found", request_id=request_id)

        entity = HelpRequestEntity.from_record(request)
        if not entity.can_unclaim():
            return err(
                ErrorType.CANNOT_UNCLAIM,
                f"Cannot unclaim request in '{request.status.value}' status",
                current_status=request.status.value,
            )

        by_teacher = await self.auth.is_teacher(actor_id, request.classroom_id)
        if request.claimed_by_id != actor_id and not by_teacher:
            return err(ErrorType.NOT_AUTHORIZED, "Only the claimer or a teacher can unclaim")

        classroom = await self.env.classrooms.get_by_id(request.classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")

        released = entity.unclaim()
        try:
            await self._append(
                classroom,
                released.session_id,
                released.id,
                EventType.HELP_UNCLAIMED,
                actor_id,
                HelpUnclaimedPayload(
                    request_id=released.id,
                    session_id=released.session_id,
                    classroom_id=released.classroom_id,
                    unclaimed_by_id=actor_id,
                    by_teacher=by_teacher,
                ),
            )
        except ConflictError as exc:
            return err(ErrorType.CANNOT_UNCLAIM, exc.message)

        await logger.ainfo("help_request_unclaimed", request_id=request_id, actor_id=actor_id)
        return await self._reload(request_id)

    @use_case("resolve_help_request")
    async def resolve_help_request(
        self,
        *,
        request_id: str,
        actor_id: str,
        resolution_notes: str | None = None,
    ) -> Result[HelpRequestRecord]:
        """Resolve a claimed request; a pending one is claimed by the actor first."""
        request = await self.env.help.get_request_by_id(request_id)
        if request is None:
            return err(ErrorType.NOT_FOUND, "Help request not found", request_id=request_id)

        entity = HelpRequestEntity.from_record(request)
        if not entity.can_resolve() and not entity.can_claim():
            return err(
                ErrorType.CANNOT_RESOLVE,
                f"Cannot resolve request in '{request.status.value}' status",
                current_status=request.status.value,
            )

        by_teacher = await self.auth.is_teacher(actor_id, request.classroom_id)
        if entity.can_claim():
            claimed = await self.claim_help_request(request_id=request_id, actor_id=actor_id)
            if claimed.status == "err":
                if claimed.error.type is ErrorType.CANNOT_CLAIM:
                    return err(ErrorType.CANNOT_RESOLVE, claimed.error.message)
                return claimed
            entity = HelpRequestEntity.from_record(claimed.value)
        elif request.claimed_by_id != actor_id and not by_teacher:
            return err(ErrorType.NOT_AUTHORIZED, "Only the claimer or a teacher can resolve")

        classroom = await self.env.classrooms.get_by_id(request.classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")

        resolved = entity.resolve(resolution_notes, self._now())
        try:
            await self._append(
                classroom,
                resolved.session_id,
                resolved.id,
                EventType.HELP_RESOLVED,
                actor_id,
                HelpResolvedPayload(
                    request_id=resolved.id,
                    session_id=resolved.session_id,
                    classroom_id=resolved.classroom_id,
                    resolver_id=actor_id,
                    resolution_notes=resolved.resolution_notes,
                    by_teacher=by_teacher,
                ),
            )
        except ConflictError as exc:
            return err(ErrorType.CANNOT_RESOLVE, exc.message)

        await logger.ainfo("help_request_resolved", request_id=request_id, actor_id=actor_id)
        return await self._reload(request_id)

    @use_case("cancel_help_request")
    async def cancel_help_request(
        self,
        *,
        request_id: str,
        actor_id: str,
        reason: str | None = None,
    ) -> Result[HelpRequestRecord]:
        request = await self.env.help.get_request_by_id(request_id)
        if request is None:
            return err(ErrorType.NOT_FOUND, "Help request not found", request_id=request_id)

        entity = HelpRequestEntity.from_record(request)
        if not entity.can_cancel():
            return err(
                ErrorType.CANNOT_CANCEL,
                f"Cannot cancel request in '{request.status.value}' status",
                current_status=request.status.value,
            )

        by_teacher = await self.auth.is_teacher(actor_id, request.classroom_id)
        if not entity.can_requester_cancel(actor_id) and not by_teacher:
            return err(ErrorType.NOT_AUTHORIZED, "Only the requester or a teacher can cancel")

        classroom = await self.env.classrooms.get_by_id(request.classroom_id)
        if classroom is None:
            return err(ErrorType.CLASSROOM_NOT_FOUND, "Classroom not found")

        cancelled = entity.cancel(reason, self._now())
        try:
            await self._append(
                classroom,
                cancelled.session_id,
                cancelled.id,
                EventType.HELP_CANCELLED,
                actor_id,
                HelpCancelledPayload(
                    request_id=cancelled.id,
                    session_id=cancelled.session_id,
                    classroom_id=cancelled.classroom_id,
                    cancelled_by=actor_id,
                    reason=cancelled.cancellation_reason,
                    by_teacher=by_teacher,
                ),
            )
        except ConflictError as exc:
            return err(ErrorType.CANNOT_CANCEL, exc.message)

        await logger.ainfo("help_request_cancelled", request_id=request_id, actor_id=actor_id)
        return await self._reload(request_id)

    # Queries

    @use_case("get_help_request")
    async def get_help_request(self, *, request_id: str) -> Result[HelpRequestRecord]:
        return await self._reload(request_id)

    @use_case("get_queue")
    async def get_queue(self, *, session_id: str) -> Result[list[QueueItem]]:
        """Open requests, most urgent first, with their wait so far."""
        now = self._now()
        queue = await self.env.help.list_queue(session_id)
        return ok(
            [
                QueueItem(
                    request=record,
                    position=index,
                    wait_minutes=HelpRequestEntity.from_record(record).get_wait_time_minutes(now),
                )
                for index, record in enumerate(queue, start=1)
            ]
        )

    @use_case("get_public_queue")
    async def get_public_queue(self, *, session_id: str) -> Result[list[PublicQueueItem]]:
        """Queue for the classroom display, naming people instead of ids.

        Requesters who hid themselves from the help queue stay anonymous.
        """
        session = await self.env.sessions.get_by_id(session_id)
        if session is None:
            return err(ErrorType.SESSION_NOT_FOUND, "Session not found", session_id=session_id)

        now = self._now()
        queue, categories = await asyncio.gather(
            self.env.help.list_queue(session_id),
            self.env.help.list_categories(session.classroom_id, include_inactive=True),
        )
        person_ids = sorted(
            {record.requester_id for record in queue}
            | {record.claimed_by_id for record in queue if record.claimed_by_id}
        )
        people = {
            person.id: person
            for person in await asyncio.gather(*(self.env.people.get_by_id(pid) for pid in person_ids))
            if person is not None
        }
        category_names = {category.id: category.name for category in categories}

        items = []
        for index, record in enumerate(queue, start=1):
            requester = people.get(record.requester_id)
            claimer = people.get(record.claimed_by_id) if record.claimed_by_id else None
            items.append(
                PublicQueueItem(
                    id=record.id,
                    position=index,
                    wait_minutes=HelpRequestEntity.from_record(record).get_wait_time_minutes(now),
                    description=record.description,
                    urgency=record.urgency,
                    status=record.status,
                    created_at=record.created_at,
                    requester_name=(
                        requester.display_name
                        if requester is not None and requester.help_queue_visible
                        else None
                    ),
                    category_name=category_names.get(record.category_id) if record.category_id else None,
                    claimed_by_name=claimer.display_name if claimer is not None else None,
                )
            )
        return ok(items)

    @use_case("get_my_open_requests")
    async def get_my_open_requests(
        self, *, classroom_id: str, requester_id: str
    ) -> Result[list[HelpRequestRecord]]:
        return ok(await self.env.help.list_open_requests_for_requester(classroom_id, requester_id))

    # Categories

    @use_case("list_categories")
    async def list_categories(
        self, *, classroom_id: str, include_inactive: bool = False
    ) -> Result[list[HelpCategoryRecord]]:
        return ok(
            await self.env.help.list_categories(classroom_id, include_inactive=include_inactive)
        )

    @use_case("create_category")
    async def create_category(
        self,
        *,
        classroom_id: str,
        name: str,
        description: str | None = None,
        ninja_domain_id: str | None = None,
    ) -> Result[HelpCategoryRecord]:
        name = _validate_category_name(name)
        if await self._find_category_by_name(classroom_id, name) is not None:
            return err(ErrorType.DUPLICATE_NAME, f"Category '{name}' already exists", name=name)

        if ninja_domain_id is not None:
            domain = await self.env.ninja.get_domain_by_id(ninja_domain_id)
            if domain is None or domain.classroom_id != classroom_id:
                return err(ErrorType.DOMAIN_NOT_FOUND, "Ninja domain not found")

        category = await self.env.help.create_category(
            classroom_id=classroom_id,
            name=name,
            description=description,
            ninja_domain_id=ninja_domain_id,
        )
        await logger.ainfo("help_category_created", category_id=category.id, name=name)
        return ok(category)

    @use_case("update_category")
    async def update_category(
        self,
        *,
        category_id: str,
        name: str | None = None,
        description: str | None = _UNSET,
        ninja_domain_id: str | None = _UNSET,
    ) -> Result[HelpCategoryRecord]:
        category = await self.env.help.get_category_by_id(category_id)
        if category is None:
            return err(ErrorType.CATEGORY_NOT_FOUND, "Category not found", category_id=category_id)

        changes: dict[str, Any] = {}
        if name is not None:
            name = _validate_category_name(name)
            if name != category.name:
                existing = await self._find_category_by_name(category.classroom_id, name)
                if existing is not None and existing.id != category_id:
                    return err(
                        ErrorType.DUPLICATE_NAME, f"Category '{name}' already exists", name=name
                    )
            changes["name"] = name
        if description is not _UNSET:
            changes["description"] = description
        if ninja_domain_id is not _UNSET:
            changes["ninja_domain_id"] = ninja_domain_id

        if not changes:
            return ok(category)
        return ok(await self.env.help.update_category(category_id, **changes))

    @use_case("archive_category")
    async def archive_category(self, *, category_id: str) -> Result[None]:
        category = await self.env.help.get_category_by_id(category_id)
        if category is None:
            return err(ErrorType.CATEGORY_NOT_FOUND, "Category not found", category_id=category_id)
        await self.env.help.archive_category(category_id)
        await logger.ainfo("help_category_archived", category_id=category_id)
        return ok(None)

    # Helpers

    async def _find_category_by_name(
        self, classroom_id: str, name: str
    ) -> HelpCategoryRecord | None:
        wanted = name.casefold()
        for category in await self.env.help.list_categories(classroom_id):
            if category.name.casefold() == wanted:
                return category
        return None

    async def _append(
        self,
        classroom: ClassroomRecord,
        session_id: str,
        request_id: str,
        event_type: EventType,
        actor_id: str,
        payload: EventPayload,
    ) -> None:
        await self.env.event_store.append_and_emit(
            AppendEventInput(
                school_id=classroom.school_id,
                classroom_id=classroom.id,
                session_id=session_id,
                event_type=event_type,
                entity_type=EntityType.HELP_REQUEST.value,
                entity_id=request_id,
                actor_id=actor_id,
                payload=payload,
            )
        )

    async def _reload(self, request_id: str) -> Result[HelpRequestRecord]:
        record = await self.env.help.get_request_by_id(request_id)
        if record is None:
            return err(ErrorType.NOT_FOUND, "Help request not found", request_id=request_id)
        return ok(record)


def _validate_category_name(name: str) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError.for_field("name", "Category name is required")
    if len(name) > CATEGORY_NAME_MAX_LENGTH:
        raise ValidationError.for_field(
            "name", f"Category name must be {CATEGORY_NAME_MAX_LENGTH} characters or less"
        )
    return name
