from __future__ import annotations

from fastapi import APIRouter, Depends

from forge.api.deps import get_help_service, get_presence_service, get_session_service
from forge.api.errors import unwrap
from forge.api.schemas.display import (
    DisplayBoardResponse,
    DisplayPerson,
    DisplayQueueEntry,
    DisplaySession,
)
from forge.domain.services import HelpService, PresenceService, SessionService
from forge.domain.types import ClassroomModule

router = APIRouter(prefix="/display", tags=["Display"])


@router.get("/{display_code}", response_model=DisplayBoardResponse)
async def display_board(
    display_code: str,
    sessions: SessionService = Depends(get_session_service),  # noqa: B008
    presence: PresenceService = Depends(get_presence_service),  # noqa: B008
    help_service: HelpService = Depends(get_help_service),  # noqa: B008
) -> DisplayBoardResponse:
    """Unauthenticated classroom board: who is here and the help queue."""
    current = unwrap(await sessions.get_public_current_session(display_code=display_code))
    classroom, session = current.classroom, current.session
    presence_enabled = classroom.settings.is_enabled(ClassroomModule.PRESENCE)
    help_enabled = classroom.settings.is_enabled(ClassroomModule.HELP)

    present: list[DisplayPerson] = []
    queue: list[DisplayQueueEntry] = []
    if session is not None:
        if presence_enabled:
            people = unwrap(await presence.list_present(session_id=session.id))
            present = [
                DisplayPerson(
                    person_id=person.person_id,
                    display_name=person.display_name,
                    ask_me_about=list(person.ask_me_about),
                )
                for person in people
            ]
        if help_enabled:
            items = unwrap(await help_service.get_public_queue(session_id=session.id))
            queue = [DisplayQueueEntry.model_validate(item) for item in items]

    return DisplayBoardResponse(
        classroom_name=classroom.name,
        display_code=classroom.display_code,
        session=(
            DisplaySession(id=session.id, name=session.name, status=session.status)
            if session is not None
            else None
        ),
        presence_enabled=presence_enabled,
        help_enabled=help_enabled,
        present=present,
        queue=queue,
    )
