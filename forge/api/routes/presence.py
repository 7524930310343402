from __future__ import annotations

from fastapi import APIRouter, Depends, status

from forge.api.deps import (
    get_authorization_service,
    get_current_actor,
    get_presence_service,
    load_session,
)
from forge.api.errors import unwrap
from forge.api.schemas.presence import (
    PresentPersonItem,
    PresentResponse,
    SignInRequest,
    SignInResponse,
)
from forge.domain import Actor
from forge.domain.ports.records import SessionRecord
from forge.domain.services import AuthorizationService, PresenceService

router = APIRouter(prefix="/sessions/{session_id}/sign-ins", tags=["Presence"])


async def _resolve_target(
    actor: Actor, session: SessionRecord, payload: SignInRequest | None, auth: AuthorizationService
) -> str:
    """Members act on themselves; acting on someone else takes a teacher."""
    unwrap(await auth.require_member(actor.person_id, session.classroom_id))
    person_id = payload.person_id if payload and payload.person_id else actor.person_id
    if person_id != actor.person_id:
        unwrap(await auth.require_teacher(actor.person_id, session.classroom_id))
    return person_id


@router.get("", response_model=PresentResponse)
async def list_present(
    session: SessionRecord = Depends(load_session),  # noqa: B008
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    presence: PresenceService = Depends(get_presence_service),  # noqa: B008
) -> PresentResponse:
    """People currently signed in to the session."""
    unwrap(await auth.require_member(actor.person_id, session.classroom_id))
    people = unwrap(await presence.list_present(session_id=session.id))
    return PresentResponse(
        people=[
            PresentPersonItem(
                person_id=person.person_id,
                display_name=person.display_name,
                ask_me_about=list(person.ask_me_about),
                signed_in_at=person.sign_in.signed_in_at,
            )
            for person in people
        ]
    )


@router.post("", response_model=SignInResponse, status_code=status.HTTP_201_CREATED)
async def sign_in(
    payload: SignInRequest | None = None,
    session: SessionRecord = Depends(load_session),  # noqa: B008
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    presence: PresenceService = Depends(get_presence_service),  # noqa: B008
) -> SignInResponse:
    """Sign yourself in, or sign a student in as their teacher."""
    person_id = await _resolve_target(actor, session, payload, auth)
    record = unwrap(
        await presence.sign_in(
            session_id=session.id,
            person_id=person_id,
            actor_id=actor.person_id,
            pin_classroom_id=actor.pin_classroom_id,
        )
    )
    return SignInResponse.model_validate(record)


@router.post("/sign-out", response_model=SignInResponse)
async def sign_out(
    payload: SignInRequest | None = None,
    session: SessionRecord = Depends(load_session),  # noqa: B008
    actor: Actor = Depends(get_current_actor),  # noqa: B008
    auth: AuthorizationService = Depends(get_authorization_service),  # noqa: B008
    presence: PresenceService = Depends(get_presence_service),  # noqa: B008
) -> SignInResponse:
    """Close the open sign-in of yourself or, as teacher, of a student."""
    person_id = await _resolve_target(actor, session, payload, auth)
    record = unwrap(
        await presence.sign_out(
            session_id=session.id,
            person_id=person_id,
            actor_id=actor.person_id,
            pin_classroom_id=actor.pin_classroom_id,
        )
    )
    return SignInResponse.model_validate(record)
