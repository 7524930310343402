from __future__ import annotations

from collections.abc import Iterable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from forge.api.errors import unwrap
from forge.core.auth import Role, TokenError, create_access_token, decode_access_token
from forge.domain import Actor
from forge.domain.ports.records import SessionRecord
from forge.domain.services import (
    AuthorizationService,
    HelpService,
    PinService,
    PresenceService,
    SessionService,
)
from forge.infrastructure.environment import Environment

bearer_scheme = HTTPBearer(auto_error=False)


def get_environment(request: Request) -> Environment:
    """Composition root built by the application lifespan."""
    env = getattr(request.app.state, "environment", None)
    if env is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service not ready"
        )
    return env


async def get_current_actor(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
    env: Environment = Depends(get_environment),  # noqa: B008
) -> Actor:
    """Resolve the actor from a bearer JWT, falling back to a student PIN session token."""
    if credentials is None:
        raise _unauthorized("Missing bearer token")

    token = credentials.credentials
    try:
        payload = decode_access_token(token)
    except TokenError as exc:
        pin_session = await PinService(env).get_pin_session(token=token)
        if pin_session.status == "err":
            raise _unauthorized(str(exc)) from exc
        return Actor(
            person_id=pin_session.value.person_id,
            roles=[Role.STUDENT.value],
            pin_classroom_id=pin_session.value.classroom_id,
        )

    person_id = payload.get("sub")
    roles: Iterable[str] = payload.get("roles", [])

    if not person_id:
        raise _unauthorized("Token missing subject")

    if not roles:
        raise _forbidden("Token missing required roles")

    return Actor(person_id=person_id, roles=list(roles), school_id=payload.get("school_id"))


def get_authorization_service(env: Environment = Depends(get_environment)) -> AuthorizationService:  # noqa: B008
    return AuthorizationService(env)


def get_session_service(env: Environment = Depends(get_environment)) -> SessionService:  # noqa: B008
    return SessionService(env)


def get_presence_service(env: Environment = Depends(get_environment)) -> PresenceService:  # noqa: B008
    return PresenceService(env)


def get_help_service(env: Environment = Depends(get_environment)) -> HelpService:  # noqa: B008
    return HelpService(env)


def get_pin_service(env: Environment = Depends(get_environment)) -> PinService:  # noqa: B008
    return PinService(env)


async def load_session(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),  # noqa: B008
) -> SessionRecord:
    """Path dependency returning the class session named in the URL."""
    return unwrap(await sessions.get_session(session_id=session_id))


def issue_smoke_token(person_id: str, *, role: Role, school_id: str | None = None) -> str:
    """Generate a signed token for manual smoke testing."""
    return create_access_token(person_id, roles=[role.value], school_id=school_id)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _forbidden(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
