"""
Railway-Oriented Programming (ROP) framework.

Explicit, composable, functional error handling — no exceptions across
adapter boundaries.

    from railway import Result, ErrorCode

    def require_track_id(track_id: str) -> Result[str]:
        if not track_id.strip():
            return Result.failure(ErrorCode.VALIDATION_ERROR, "trackId is required")
        return Result.success(track_id.strip())

    result = await require_track_id(track_id).flat_map_async(fetch_status)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.result_failures import ResultFailures
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ResultFailures",
    "ResultAssertions",
]

__version__ = "1.1.0"
