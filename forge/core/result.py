"""Tagged result union returned by every use case.

Callers branch on ``result.status`` (``"ok"`` / ``"err"``) or pattern-match on
``Ok`` / ``Err``; failures carry a typed ``ErrorType`` tag rather than an
exception class.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeAlias, TypeVar, Union

T = TypeVar("T")


class ErrorType(str, enum.Enum):
    # Generic
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    FEATURE_DISABLED = "FEATURE_DISABLED"
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # Authorization
    NOT_AUTHENTICATED = "NOT_AUTHENTICATED"
    NOT_MEMBER = "NOT_MEMBER"
    NOT_TEACHER = "NOT_TEACHER"

    # Classroom / session
    CLASSROOM_NOT_FOUND = "CLASSROOM_NOT_FOUND"
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    SESSION_NOT_ACTIVE = "SESSION_NOT_ACTIVE"
    ACTIVE_SESSION_EXISTS = "ACTIVE_SESSION_EXISTS"
    INVALID_STATE = "INVALID_STATE"
    WRONG_CLASSROOM = "WRONG_CLASSROOM"

    # Presence
    ALREADY_SIGNED_IN = "ALREADY_SIGNED_IN"
    NOT_SIGNED_IN = "NOT_SIGNED_IN"
    SIGN_IN_NOT_FOUND_AFTER_CREATE = "SIGN_IN_NOT_FOUND_AFTER_CREATE"

    # Help queue
    ALREADY_HAS_OPEN_REQUEST = "ALREADY_HAS_OPEN_REQUEST"
    CANNOT_CLAIM = "CANNOT_CLAIM"
    CANNOT_UNCLAIM = "CANNOT_UNCLAIM"
    CANNOT_RESOLVE = "CANNOT_RESOLVE"
    CANNOT_CANCEL = "CANNOT_CANCEL"
    CATEGORY_NOT_FOUND = "CATEGORY_NOT_FOUND"
    DUPLICATE_NAME = "DUPLICATE_NAME"

    # Ninja / roster
    DOMAIN_NOT_FOUND = "DOMAIN_NOT_FOUND"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    ALREADY_ASSIGNED = "ALREADY_ASSIGNED"
    NOT_ASSIGNED = "NOT_ASSIGNED"
    ALREADY_IN_CLASSROOM = "ALREADY_IN_CLASSROOM"
    PERSON_NOT_FOUND = "PERSON_NOT_FOUND"
    EMAIL_IN_USE = "EMAIL_IN_USE"

    # PIN login
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    PIN_IN_USE = "PIN_IN_USE"
    UNABLE_TO_GENERATE = "UNABLE_TO_GENERATE"


@dataclass(frozen=True, slots=True)
class UseCaseError:
    """Typed failure carried by ``Err``."""

    type: ErrorType
    message: str | None = None
    details: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    value: T
    status: Literal["ok"] = "ok"

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False


@dataclass(frozen=True, slots=True)
class Err:
    error: UseCaseError
    status: Literal["err"] = "err"

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True


Result: TypeAlias = Union[Ok[T], Err]


def ok(value: T) -> Ok[T]:
    return Ok(value)


def err(error_type: ErrorType, message: str | None = None, **details: Any) -> Err:
    return Err(UseCaseError(type=error_type, message=message, details=details))
