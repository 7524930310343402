from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status

from forge.api.deps import (
    get_authorization_service,
    get_current_actor,
    get_help_service,
    get_session_service,
)
from forge.api.errors import unwrap
from forge.api.schemas.help import (
    CancelRequest,
    HelpRequestCreate,
    HelpRequestCreated,
    HelpRequestResponse,
    QueueEntry,
    QueueResponse,
    ResolveRequest,
)
from forge.core.result import ErrorType, err
from forge.domain import Actor
from forge.domain.ports.records import HelpRequestRecord
from forge.domain.services import AuthorizationService, HelpService, SessionService

router = APIRouter(prefix="/classrooms/{classroom_id}/help", tags=["Help"])
logger = structlog.get_logger()


async def _session_in_classroom(
    sessions: SessionService, session_id: str, classroom_id: str
) -> None:
    session = unwrap(await sessions.get_session(session_id=session_id))
    if session.classroom_id != classroom_id:
        unwrap(err(ErrorType.SESSION_NOT_FOUND, "Session not found", session_id=session_id))


async def _request_in_classroom(
    help_service: HelpService, request_id: str, classroom_id: str
) -> HelpRequestRecord:
    record = unwrap(await help_service.get_help_request(request_id=request_id))
    if record.classroom_id != classroom_id:
        unwrap(err(ErrorType.NOT_FOUND, "Help request not found", request_id=request_id))
    return record


@router.post("/requests", response_model=HelpRequestCreated, status_code=status.HTTP_201_CREATED)
async def request_help(
    classroom_id: str,
    payload: HelpRequestCreate,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    sessions: SessionService = Depends(get_session_service),  # noqa: B008
    help_service: HelpService = Depends(get_help_service),  # noqa: B008
) -> HelpRequestCreated:
    """Join the help queue of the active session."""
    unwrap(await auth.require_member(actor.person_id, classroom_id))
    await _session_in_classroom(sessions, payload.session_id, classroom_id)

    created = unwrap(
        await help_service.request_help(
            session_id=payload.session_id,
            requester_id=actor.person_id,
            description=payload.description,
            what_i_tried=payload.what_i_tried,
            urgency=payload.urgency,
            category_id=payload.category_id,
            pin_classroom_id=actor.pin_classroom_id,
        )
    )
    return HelpRequestCreated(
        request=HelpRequestResponse.model_validate(created.help_request),
        queue_position=created.queue_position,
    )


@router.get("/queue", response_model=QueueResponse)
async def get_queue(
    classroom_id: str,
    session_id: str,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    sessions: SessionService = Depends(get_session_service),  # noqa: B008
    help_service: HelpService = Depends(get_help_service),  # noqa: B008
) -> QueueResponse:
    """Open requests of a session in serving order."""
    unwrap(await auth.require_member(actor.person_id, classroom_id))
    await _session_in_classroom(sessions, session_id, classroom_id)

    items = unwrap(await help_service.get_queue(session_id=session_id))
    return QueueResponse(
        queue=[
            QueueEntry(
                position=item.position,
                wait_minutes=item.wait_minutes,
                request=HelpRequestResponse.model_validate(item.request),
            )
            for item in items
        ]
    )


@router.get("/requests/mine", response_model=list[HelpRequestResponse])
async def my_open_requests(
    classroom_id: str,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    help_service: HelpService = Depends(get_help_service),  # noqa: B008
) -> list[HelpRequestResponse]:
    unwrap(await auth.require_member(actor.person_id, classroom_id))
    records = unwrap(
        await help_service.get_my_open_requests(
            classroom_id=classroom_id, requester_id=actor.person_id
        )
    )
    return [HelpRequestResponse.model_validate(record) for record in records]


@router.post("/requests/{request_id}/claim", response_model=HelpRequestResponse)
async def claim_help_request(
    classroom_id: str,
    request_id: str,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    help_service: HelpService = Depends(get_help_service),  # noqa: B008
) -> HelpRequestResponse:
    unwrap(await auth.require_member(actor.person_id, classroom_id))
    await _request_in_classroom(help_service, request_id, classroom_id)
    record = unwrap(
        await help_service.claim_help_request(request_id=request_id, actor_id=actor.person_id)
    )
    return HelpRequestResponse.model_validate(record)


@router.post("/requests/{request_id}/unclaim", response_model=HelpRequestResponse)
async def unclaim_help_request(
    classroom_id: str,
    request_id: str,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    help_service: HelpService = Depends(get_help_service),  # noqa: B008
) -> HelpRequestResponse:
    unwrap(await auth.require_member(actor.person_id, classroom_id))
    await _request_in_classroom(help_service, request_id, classroom_id)
    record = unwrap(
        await help_service.unclaim_help_request(request_id=request_id, actor_id=actor.person_id)
    )
    return HelpRequestResponse.model_validate(record)


@router.post("/requests/{request_id}/resolve", response_model=HelpRequestResponse)
async def resolve_help_request(
    classroom_id: str,
    request_id: str,
    payload: ResolveRequest | None = None,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    help_service: HelpService = Depends(get_help_service),  # noqa: B008
) -> HelpRequestResponse:
    """Resolve a request; a still-pending request is claimed by the resolver first."""
    unwrap(await auth.require_member(actor.person_id, classroom_id))
    await _request_in_classroom(help_service, request_id, classroom_id)
    record = unwrap(
        await help_service.resolve_help_request(
            request_id=request_id,
            actor_id=actor.person_id,
            resolution_notes=payload.resolution_notes if payload else None,
        )
    )
    return HelpRequestResponse.model_validate(record)


@router.post("/requests/{request_id}/cancel", response_model=HelpRequestResponse)
async def cancel_help_request(
    classroom_id: str,
    request_id: str,
    payload: CancelRequest | None = None,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    help_service: HelpService = Depends(get_help_service),  # noqa: B008
) -> HelpRequestResponse:
    unwrap(await auth.require_member(actor.person_id, classroom_id))
    await _request_in_classroom(help_service, request_id, classroom_id)
    record = unwrap(
        await help_service.cancel_help_request(
            request_id=request_id,
            actor_id=actor.person_id,
            reason=payload.reason if payload else None,
        )
    )
    logger.info("help_request_cancelled_via_api", request_id=request_id, actor_id=actor.person_id)
    return HelpRequestResponse.model_validate(record)
