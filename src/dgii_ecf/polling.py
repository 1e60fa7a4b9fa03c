"""
Caller-driven polling — wait for a submission to reach a terminal status.

Tracking is pull-only. Right after submission the authority usually reports
"En Proceso", or does not know the trackId yet ("no encontrado"); both are
worth asking again after a pause. Everything else is final for this call:

  ACCEPTED / CONDITIONAL_ACCEPTED / REJECTED   → returned
  SESSION_EXPIRED, TRANSPORT_ERROR, ...        → returned immediately

Retry/backoff via tenacity. The number of attempts is bounded; when they run
out, the last Result (still IN_PROCESS or NOT_FOUND) is returned as-is.
Nothing here re-submits a document.
"""

from __future__ import annotations

import structlog
from railway import ErrorCode
from railway.result import Result
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_result,
    stop_after_attempt,
    wait_exponential,
)

from dgii_ecf.client import EcfClient
from dgii_ecf.domain.models import TrackingRecord

log = structlog.get_logger()


def is_pending(result: Result[TrackingRecord]) -> bool:
    """True while asking again may produce a different answer."""
    if result.is_success():
        return not result.value().status.is_terminal
    return result.has_code(ErrorCode.NOT_FOUND)


async def wait_for_disposition(
    client: EcfClient,
    track_id: str,
    *,
    max_attempts: int = 10,
    initial_wait: float = 1.0,
    max_wait: float = 30.0,
) -> Result[TrackingRecord]:
    """
    Poll `status_by_track_id` until the document leaves IN_PROCESS.

    Waits grow exponentially from `initial_wait` up to `max_wait` seconds.
    """
    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=initial_wait, max=max_wait),
        retry=retry_if_result(is_pending),
        before_sleep=_log_pending(track_id),
        retry_error_callback=_last_result,
    )
    return await retrying(client.status_by_track_id, track_id)


def _log_pending(track_id: str):
    def before_sleep(state: RetryCallState) -> None:
        result = state.outcome.result() if state.outcome else None
        log.info(
            "tracking.pending",
            track_id=track_id,
            attempt=state.attempt_number,
            status=result.value().status.value if result and result.is_success() else None,
            next_wait=state.next_action.sleep if state.next_action else None,
        )

    return before_sleep


def _last_result(state: RetryCallState) -> Result[TrackingRecord]:
    log.info("tracking.gave_up", attempts=state.attempt_number)
    return state.outcome.result()
