from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status

from forge.api.deps import (
    get_authorization_service,
    get_current_actor,
    get_session_service,
)
from forge.api.errors import unwrap
from forge.api.schemas.sessions import (
    CurrentSessionResponse,
    SessionResponse,
    SessionsResponse,
)
from forge.core.result import ErrorType, err
from forge.domain import Actor
from forge.domain.services import AuthorizationService, SessionService
from forge.domain.types import SessionStatus

router = APIRouter(prefix="/classrooms/{classroom_id}/sessions", tags=["Sessions"])
logger = structlog.get_logger()


@router.get("", response_model=SessionsResponse)
async def list_sessions(
    classroom_id: str,
    session_status: SessionStatus | None = None,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    sessions: SessionService = Depends(get_session_service),  # noqa: B008
) -> SessionsResponse:
    """List the classroom's sessions, optionally filtered by status."""
    unwrap(await auth.require_member(actor.person_id, classroom_id))
    records = unwrap(await sessions.list_sessions(classroom_id=classroom_id, status=session_status))
    return SessionsResponse(sessions=[SessionResponse.model_validate(record) for record in records])


@router.get("/current", response_model=CurrentSessionResponse)
async def get_current_session(
    classroom_id: str,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    sessions: SessionService = Depends(get_session_service),  # noqa: B008
) -> CurrentSessionResponse:
    """Return the active session, if any."""
    unwrap(await auth.require_member(actor.person_id, classroom_id))
    record = unwrap(await sessions.get_current_session(classroom_id=classroom_id))
    return CurrentSessionResponse(
        session=SessionResponse.model_validate(record) if record is not None else None
    )


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_and_start_session(
    classroom_id: str,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    sessions: SessionService = Depends(get_session_service),  # noqa: B008
) -> SessionResponse:
    """Open a drop-in session right now (teacher-only)."""
    unwrap(await auth.require_teacher(actor.person_id, classroom_id))
    record = unwrap(
        await sessions.create_and_start_session(
            classroom_id=classroom_id, actor_id=actor.person_id
        )
    )
    logger.info("session_opened_via_api", classroom_id=classroom_id, session_id=record.id)
    return SessionResponse.model_validate(record)


@router.post("/{session_id}/end", response_model=SessionResponse)
async def end_session(
    classroom_id: str,
    session_id: str,
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    sessions: SessionService = Depends(get_session_service),  # noqa: B008
) -> SessionResponse:
    """End an active session (teacher-only); everyone still present is signed out."""
    unwrap(await auth.require_teacher(actor.person_id, classroom_id))
    session = unwrap(await sessions.get_session(session_id=session_id))
    if session.classroom_id != classroom_id:
        unwrap(err(ErrorType.SESSION_NOT_FOUND, "Session not found", session_id=session_id))

    record = unwrap(await sessions.end_session(session_id=session_id, actor_id=actor.person_id))
    return SessionResponse.model_validate(record)
