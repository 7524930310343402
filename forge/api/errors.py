"""Translation of use-case error tags into HTTP responses."""

from __future__ import annotations

from typing import NoReturn, TypeVar

from fastapi import HTTPException, status
from fastapi.encoders import jsonable_encoder

from forge.core.result import ErrorType, Result, UseCaseError

T = TypeVar("T")

_STATUS_BY_ERROR: dict[ErrorType, int] = {
    ErrorType.VALIDATION_ERROR: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorType.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.NOT_AUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorType.FEATURE_DISABLED: status.HTTP_403_FORBIDDEN,
    ErrorType.INTERNAL_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorType.NOT_AUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorType.NOT_MEMBER: status.HTTP_403_FORBIDDEN,
    ErrorType.NOT_TEACHER: status.HTTP_403_FORBIDDEN,
    ErrorType.CLASSROOM_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.SESSION_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.SESSION_NOT_ACTIVE: status.HTTP_409_CONFLICT,
    ErrorType.ACTIVE_SESSION_EXISTS: status.HTTP_409_CONFLICT,
    ErrorType.INVALID_STATE: status.HTTP_409_CONFLICT,
    ErrorType.WRONG_CLASSROOM: status.HTTP_403_FORBIDDEN,
    ErrorType.ALREADY_SIGNED_IN: status.HTTP_409_CONFLICT,
    ErrorType.NOT_SIGNED_IN: status.HTTP_409_CONFLICT,
    ErrorType.SIGN_IN_NOT_FOUND_AFTER_CREATE: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorType.ALREADY_HAS_OPEN_REQUEST: status.HTTP_409_CONFLICT,
    ErrorType.CANNOT_CLAIM: status.HTTP_409_CONFLICT,
    ErrorType.CANNOT_UNCLAIM: status.HTTP_409_CONFLICT,
    ErrorType.CANNOT_RESOLVE: status.HTTP_409_CONFLICT,
    ErrorType.CANNOT_CANCEL: status.HTTP_409_CONFLICT,
    ErrorType.CATEGORY_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.DUPLICATE_NAME: status.HTTP_409_CONFLICT,
    ErrorType.DOMAIN_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.NOT_A_MEMBER: status.HTTP_404_NOT_FOUND,
    ErrorType.ALREADY_ASSIGNED: status.HTTP_409_CONFLICT,
    ErrorType.NOT_ASSIGNED: status.HTTP_404_NOT_FOUND,
    ErrorType.ALREADY_IN_CLASSROOM: status.HTTP_409_CONFLICT,
    ErrorType.PERSON_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.EMAIL_IN_USE: status.HTTP_409_CONFLICT,
    ErrorType.INVALID_CREDENTIALS: status.HTTP_401_UNAUTHORIZED,
    ErrorType.PIN_IN_USE: status.HTTP_409_CONFLICT,
    ErrorType.UNABLE_TO_GENERATE: status.HTTP_409_CONFLICT,
}


def status_for(error_type: ErrorType) -> int:
    return _STATUS_BY_ERROR.get(error_type, status.HTTP_400_BAD_REQUEST)


def to_http_exception(error: UseCaseError) -> HTTPException:
    return HTTPException(
        status_code=status_for(error.type),
        detail=jsonable_encoder(
            {"type": error.type.value, "message": error.message, "details": dict(error.details)}
        ),
    )


def raise_for_error(error: UseCaseError) -> NoReturn:
    raise to_http_exception(error)


def unwrap(result: Result[T]) -> T:
    """Return the value of an ``Ok`` or raise the matching ``HTTPException``."""
    if result.status == "err":
        raise_for_error(result.error)
    return result.value
