"""
Failure description — structured error information for the failure track.

An ErrorCode names the KIND of failure (a closed set a caller can branch on);
a FailureDescription carries the code together with everything the remote
side told us: the HTTP status, the authority's own numeric code and its
messages.

Failures are built once, at the boundary where they are detected, and never
re-inspected structurally afterwards — callers match on `code` and read the
typed fields.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Closed set of failure kinds for a remote-authority client.

    Local preconditions (detected before any network call):
      CREDENTIAL_ERROR, SIGNING_ERROR, VALIDATION_ERROR, CONFIGURATION_ERROR

    Remote outcomes (classified from a response or transport exception):
      AUTHENTICATION_ERROR, SESSION_EXPIRED, VALIDATION_REJECTION,
      NOT_FOUND, PROTOCOL_ERROR, TRANSPORT_ERROR
    """

    # --- Local preconditions ---
    CREDENTIAL_ERROR = "CREDENTIAL_ERROR"
    """Private key or certificate missing or unreadable."""

    SIGNING_ERROR = "SIGNING_ERROR"
    """Document could not be signed (missing anchor element, malformed XML)."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Caller input rejected locally (empty identifiers, malformed e-NCF)."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """System misconfiguration."""

    # --- Remote outcomes ---
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    """Handshake or token issuance failed, or no session is active."""

    SESSION_EXPIRED = "SESSION_EXPIRED"
    """The authority answered 401 to a call carrying a session token."""

    VALIDATION_REJECTION = "VALIDATION_REJECTION"
    """The authority rejected the document's data (authority code, e.g. 2)."""

    NOT_FOUND = "NOT_FOUND"
    """trackId or business key unknown to the authority (yet)."""

    PROTOCOL_ERROR = "PROTOCOL_ERROR"
    """The authority answered with something outside its documented contract."""

    TRANSPORT_ERROR = "TRANSPORT_ERROR"
    """Network failure, timeout or 5xx — retryable at the caller's discretion."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Unexpected/unclassified failures."""

    @property
    def is_retryable(self) -> bool:
        """True for kinds a caller may sensibly retry unchanged."""
        return self in (ErrorCode.TRANSPORT_ERROR, ErrorCode.NOT_FOUND)


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor.

    >>> desc = FailureDescription(ErrorCode.SESSION_EXPIRED, "Unauthorized", status_code=401)
    >>> desc.status_code
    401
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    status_code: int | None = None
    authority_code: int | None = None
    authority_messages: tuple[str, ...] = ()
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @staticmethod
    def create(
        code: ErrorCode,
        message: str,
        exception: Optional[BaseException] = None,
        *,
        status_code: int | None = None,
        authority_code: int | None = None,
        authority_messages: tuple[str, ...] = (),
    ) -> FailureDescription:
        return FailureDescription(
            code=code,
            message=message,
            exception=exception,
            status_code=status_code,
            authority_code=authority_code,
            authority_messages=tuple(authority_messages),
        )

    def describe(self) -> str:
        """One-line human summary including the authority's messages."""
        parts = [f"{self.code.value}: {self.message}"]
        if self.status_code is not None:
            parts.append(f"status={self.status_code}")
        if self.authority_code is not None:
            parts.append(f"codigo={self.authority_code}")
        if self.authority_messages:
            parts.append("; ".join(self.authority_messages))
        return " | ".join(parts)
