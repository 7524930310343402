"""Shared plumbing for use-case services."""

from __future__ import annotations

import functools
from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import TYPE_CHECKING, ParamSpec, TypeVar

import structlog

from forge.core.result import Err, ErrorType, Result, err
from forge.domain.errors import (
    ConflictError,
    FeatureDisabledError,
    ForbiddenError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)

if TYPE_CHECKING:
    from forge.infrastructure.environment import Environment

logger = structlog.get_logger()

P = ParamSpec("P")
T = TypeVar("T")

INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"


def validation_err(exc: ValidationError) -> Err:
    return err(
        ErrorType.VALIDATION_ERROR,
        exc.message,
        issues=[{"path": issue.path, "message": issue.message} for issue in exc.issues],
    )


def use_case(name: str) -> Callable[[Callable[P, Awaitable[Result[T]]]], Callable[P, Awaitable[Result[T]]]]:
    """Turn exceptions escaping a use case into tagged results.

    Domain errors a use case did not translate itself get their generic tag.
    Anything else is logged with its cause and reported as ``INTERNAL_ERROR``
    without exposing the original message.
    """

    def decorator(func: Callable[P, Awaitable[Result[T]]]) -> Callable[P, Awaitable[Result[T]]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> Result[T]:
            try:
                return await func(*args, **kwargs)
            except ValidationError as exc:
                return validation_err(exc)
            except NotFoundError as exc:
                return err(ErrorType.NOT_FOUND, exc.message, entity=exc.entity, id=exc.entity_id)
            except FeatureDisabledError as exc:
                return err(ErrorType.FEATURE_DISABLED, exc.message, feature=exc.feature)
            except (NotAuthorizedError, ForbiddenError) as exc:
                return err(ErrorType.NOT_AUTHORIZED, exc.message)
            except ConflictError as exc:
                return err(ErrorType.INVALID_STATE, exc.message, conflict=exc.metadata)
            except Exception as exc:
                await logger.aexception(
                    "use_case_failed",
                    use_case=name,
                    error_type=type(exc).__name__,
                    error=str(exc),
                )
                return err(ErrorType.INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)

        return wrapper

    return decorator


class UseCaseService:
    """Base for services; holds the composition root."""

    def __init__(self, env: Environment) -> None:
        self.env = env

    def _now(self) -> datetime:
        return self.env.clock.now()
