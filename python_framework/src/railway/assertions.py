"""
Test assertions for Result values.

    from railway import ResultAssertions

    def test_rejected_summary():
        result = await client.send_summary(signed, "131880681E320005012345.xml")
        error = ResultAssertions.assert_failure(result, ErrorCode.VALIDATION_REJECTION)
        ResultAssertions.assert_authority_code(result, 2)
"""

from __future__ import annotations

from typing import TypeVar

from railway.failure import ErrorCode, FailureDescription
from railway.result import Result

T = TypeVar("T")


class ResultAssertions:
    """Expressive test assertions for Result values."""

    @staticmethod
    def assert_success(result: Result[T], message: str = "") -> T:
        """Assert the Result is a Success and return the value."""
        context = f" — {message}" if message else ""
        assert result.is_success(), (
            f"Expected Success but got Failure("
            f"{result.error().describe()}){context}"
        )
        return result.value()

    @staticmethod
    def assert_failure(
        result: Result[T],
        expected_code: ErrorCode | None = None,
        message: str = "",
    ) -> FailureDescription:
        """Assert the Result is a Failure, optionally of the given kind."""
        context = f" — {message}" if message else ""
        assert result.is_failure(), (
            f"Expected Failure but got Success({result.value()!r}){context}"
        )
        error = result.error()
        if expected_code is not None:
            assert error.code == expected_code, (
                f"Expected error code {expected_code.value} "
                f"but got {error.code.value}: {error.message!r}{context}"
            )
        return error

    @staticmethod
    def assert_failure_status(result: Result[T], expected_status: int) -> FailureDescription:
        """Assert the Failure carries the given HTTP status code."""
        error = ResultAssertions.assert_failure(result)
        assert error.status_code == expected_status, (
            f"Expected status {expected_status} but got {error.status_code} "
            f"({error.code.value}: {error.message!r})"
        )
        return error

    @staticmethod
    def assert_authority_code(result: Result[T], expected_code: int) -> FailureDescription:
        """Assert the Failure carries the given authority-assigned code."""
        error = ResultAssertions.assert_failure(result)
        assert error.authority_code == expected_code, (
            f"Expected authority code {expected_code} but got {error.authority_code} "
            f"({error.code.value}: {error.message!r})"
        )
        return error

    @staticmethod
    def assert_failure_message_contains(result: Result[T], substring: str) -> None:
        """Case-insensitive check on the failure message."""
        error = ResultAssertions.assert_failure(result)
        assert substring.lower() in error.message.lower(), (
            f"Expected failure message to contain {substring!r} "
            f"but message was: {error.message!r}"
        )
