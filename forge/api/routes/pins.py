from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.security import HTTPAuthorizationCredentials

from forge.api.deps import bearer_scheme, get_pin_service
from forge.api.errors import unwrap
from forge.api.schemas.pins import PinLoginRequest, PinLoginResponse
from forge.domain.services import PinService

router = APIRouter(prefix="/pin", tags=["PIN login"])


@router.post("/login", response_model=PinLoginResponse)
async def login_with_pin(
    payload: PinLoginRequest,
    pins: PinService = Depends(get_pin_service),  # noqa: B008
) -> PinLoginResponse:
    """Exchange a classroom code and student PIN for a bearer token."""
    result = unwrap(await pins.login_with_pin(classroom_code=payload.classroom_code, pin=payload.pin))
    return PinLoginResponse(
        token=result.token,
        person_id=result.person_id,
        classroom_id=result.classroom_id,
        expires_at=result.expires_at,
    )


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout_pin(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),  # noqa: B008
    pins: PinService = Depends(get_pin_service),  # noqa: B008
) -> None:
    if credentials is not None:
        unwrap(await pins.logout_pin(token=credentials.credentials))
