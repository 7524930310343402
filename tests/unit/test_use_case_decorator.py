from __future__ import annotations

import pytest

from forge.core.result import ErrorType, Result, ok
from forge.domain.errors import (
    ConflictError,
    FeatureDisabledError,
    ForbiddenError,
    NotAuthorizedError,
    NotFoundError,
    ValidationError,
)
from forge.domain.services.base import INTERNAL_ERROR_MESSAGE, use_case


class _Service:
    @use_case("succeed")
    async def succeed(self, value: int) -> Result[int]:
        return ok(value * 2)

    @use_case("explode")
    async def explode(self, exc: Exception) -> Result[int]:
        raise exc


class TestUseCaseDecorator:
    """Exceptions escaping a use case become tagged results."""

    async def test_ok_passes_through(self) -> None:
        """Successful results are returned untouched."""
        result = await _Service().succeed(21)

        assert result.status == "ok"
        assert result.value == 42

    async def test_wrapper_keeps_name(self) -> None:
        assert _Service.succeed.__name__ == "succeed"

    async def test_validation_error_keeps_issues(self) -> None:
        """Field-level issues survive into the error details."""
        result = await _Service().explode(ValidationError.for_field("pin", "PIN must be digits"))

        assert result.status == "err"
        assert result.error.type is ErrorType.VALIDATION_ERROR
        assert result.error.details["issues"] == [{"path": "pin", "message": "PIN must be digits"}]

    @pytest.mark.parametrize(
        ("exc", "expected"),
        [
            (NotFoundError("Person", "p-1"), ErrorType.NOT_FOUND),
            (FeatureDisabledError("help", "c-1"), ErrorType.FEATURE_DISABLED),
            (NotAuthorizedError("nope"), ErrorType.NOT_AUTHORIZED),
            (ForbiddenError("nope"), ErrorType.NOT_AUTHORIZED),
            (ConflictError("busy", metadata={"state": "claimed"}), ErrorType.INVALID_STATE),
        ],
    )
    async def test_domain_errors_map_to_generic_tags(self, exc: Exception, expected: ErrorType) -> None:
        """Untranslated domain errors get their generic tag."""
        result = await _Service().explode(exc)

        assert result.status == "err"
        assert result.error.type is expected

    async def test_conflict_metadata_is_exposed(self) -> None:
        result = await _Service().explode(ConflictError("busy", metadata={"state": "claimed"}))

        assert result.error.details == {"conflict": {"state": "claimed"}}

    async def test_unexpected_error_is_hidden(self) -> None:
        """Unknown failures report INTERNAL_ERROR without leaking the cause."""
        result = await _Service().explode(RuntimeError("database password is hunter2"))

        assert result.status == "err"
        assert result.error.type is ErrorType.INTERNAL_ERROR
        assert result.error.message == INTERNAL_ERROR_MESSAGE
        assert "hunter2" not in str(result.error.details)
