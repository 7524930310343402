from __future__ import annotations

import pytest
from fastapi import HTTPException, status

from forge.api.errors import status_for, unwrap
from forge.core.result import ErrorType, err, ok


class TestErrorTranslation:
    """Use-case results become HTTP responses."""

    def test_unwrap_ok(self) -> None:
        assert unwrap(ok({"id": "s-1"})) == {"id": "s-1"}

    def test_unwrap_err_raises_with_tagged_detail(self) -> None:
        """The detail keeps the tag, the message and the details."""
        with pytest.raises(HTTPException) as exc_info:
            unwrap(err(ErrorType.CANNOT_CLAIM, "Already claimed", request_id="r-1"))

        assert exc_info.value.status_code == status.HTTP_409_CONFLICT
        assert exc_info.value.detail == {
            "type": "CANNOT_CLAIM",
            "message": "Already claimed",
            "details": {"request_id": "r-1"},
        }

    @pytest.mark.parametrize(
        ("error_type", "expected"),
        [
            (ErrorType.VALIDATION_ERROR, 422),
            (ErrorType.SESSION_NOT_FOUND, 404),
            (ErrorType.NOT_TEACHER, 403),
            (ErrorType.FEATURE_DISABLED, 403),
            (ErrorType.ACTIVE_SESSION_EXISTS, 409),
            (ErrorType.INVALID_CREDENTIALS, 401),
            (ErrorType.INTERNAL_ERROR, 500),
        ],
    )
    def test_status_codes(self, error_type: ErrorType, expected: int) -> None:
        assert status_for(error_type) == expected

    def test_every_tag_has_a_status(self) -> None:
        """No tag falls through to the generic 400."""
        assert all(status_for(error_type) != 400 for error_type in ErrorType)
