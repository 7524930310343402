"""Domain error taxonomy raised by entities and converted to result tags by use cases."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


class DomainError(Exception):
    """Base class for expected domain failures."""

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.metadata = dict(metadata or {})
        if cause is not None:
            self.__cause__ = cause


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    path: str
    message: str


class ValidationError(DomainError):
    """Raised when input violates a static invariant."""

    def __init__(
        self,
        message: str,
        issues: Sequence[ValidationIssue] | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(message, **kwargs)
        self.issues = list(issues or [])

    @classmethod
    def for_field(cls, path: str, message: str) -> ValidationError:
        return cls(message, [ValidationIssue(path=path, message=message)])


class ConflictError(DomainError):
    """Raised when a transition is illegal from the current state."""


class NotFoundError(DomainError):
    """Raised when a referenced aggregate does not exist."""

    def __init__(self, entity: str, entity_id: str, **kwargs: Any) -> None:
        super().__init__(f"{entity} '{entity_id}' not found", **kwargs)
        self.entity = entity
        self.entity_id = entity_id


class NotAuthorizedError(DomainError):
    """Raised when the actor is not allowed to perform the action."""


class ForbiddenError(DomainError):
    """Raised when the actor lacks the required role or membership."""


class FeatureDisabledError(DomainError):
    """Raised when a classroom module is switched off."""

    def __init__(self, feature: str, classroom_id: str, message: str | None = None) -> None:
        super().__init__(
            message or f"The {feature} feature is disabled for this classroom",
            metadata={"feature": feature, "classroom_id": classroom_id},
        )
        self.feature = feature
        self.classroom_id = classroom_id


class PortNotConfiguredError(RuntimeError):
    """Raised by placeholder adapters when a port has no concrete implementation."""

    def __init__(self, port: str, method: str) -> None:
        super().__init__(f"{port}.{method} is not configured for this environment")
        self.port = port
        self.method = method
