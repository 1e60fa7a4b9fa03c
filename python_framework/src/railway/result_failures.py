"""
Convenience factory methods for common Result failures.

    from railway.result_failures import ResultFailures

    # Instead of:
    Result.failure(ErrorCode.SESSION_EXPIRED, "Unauthorized", status_code=401)

    # Write:
    ResultFailures.session_expired("Unauthorized")
"""

from __future__ import annotations

import httpx

from railway.failure import ErrorCode
from railway.result import Result


class ResultFailures:
    """Factory methods for the failure kinds a gateway client produces."""

    @staticmethod
    def credential_error(message: str, exception: BaseException | None = None) -> Result:
        """Key or certificate missing or unreadable."""
        return Result.failure(ErrorCode.CREDENTIAL_ERROR, message, exception)

    @staticmethod
    def signing_error(message: str, exception: BaseException | None = None) -> Result:
        """Document could not be signed."""
        return Result.failure(ErrorCode.SIGNING_ERROR, message, exception)

    @staticmethod
    def validation_error(message: str) -> Result:
        """Caller input rejected locally."""
        return Result.failure(ErrorCode.VALIDATION_ERROR, message)

    @staticmethod
    def authentication_error(message: str, status_code: int | None = None) -> Result:
        """Handshake failed or no session is active."""
        return Result.failure(ErrorCode.AUTHENTICATION_ERROR, message, status_code=status_code)

    @staticmethod
    def session_expired(message: str, status_code: int = 401) -> Result:
        """The authority no longer accepts the session token."""
        return Result.failure(ErrorCode.SESSION_EXPIRED, message, status_code=status_code)

    @staticmethod
    def validation_rejection(
        message: str,
        authority_code: int | None = None,
        authority_messages: tuple[str, ...] = (),
        status_code: int | None = None,
    ) -> Result:
        """The authority rejected the document's data."""
        return Result.failure(
            ErrorCode.VALIDATION_REJECTION,
            message,
            status_code=status_code,
            authority_code=authority_code,
            authority_messages=authority_messages,
        )

    @staticmethod
    def not_found(resource_type: str, identifier: str, authority_messages: tuple[str, ...] = ()) -> Result:
        """Resource unknown to the authority."""
        return Result.failure(
            ErrorCode.NOT_FOUND,
            f"{resource_type} not found with identifier: {identifier}",
            authority_messages=authority_messages,
        )

    @staticmethod
    def protocol_error(message: str, exception: BaseException | None = None) -> Result:
        """The authority answered outside its documented contract."""
        return Result.failure(ErrorCode.PROTOCOL_ERROR, message, exception)

    @staticmethod
    def transport_error(
        message: str,
        exception: BaseException | None = None,
        status_code: int | None = None,
    ) -> Result:
        """Network failure, timeout or 5xx."""
        return Result.failure(ErrorCode.TRANSPORT_ERROR, message, exception, status_code=status_code)

    @staticmethod
    def configuration_error(message: str) -> Result:
        return Result.failure(ErrorCode.CONFIGURATION_ERROR, message)

    @staticmethod
    def from_exception(message: str, exception: BaseException) -> Result:
        """
        Auto-map an exception to the appropriate ErrorCode.

        Mapping:
          - httpx.TransportError (timeouts, connect/read errors) → TRANSPORT_ERROR
          - TimeoutError, ConnectionError → TRANSPORT_ERROR
          - ValueError, TypeError, KeyError → PROTOCOL_ERROR (undecodable payload)
          - FileNotFoundError, PermissionError → CREDENTIAL_ERROR (keystore access)
          - Everything else → UNKNOWN_ERROR
        """
        return Result.failure(_map_exception_to_code(exception), message, exception)


def _map_exception_to_code(exception: BaseException) -> ErrorCode:
    match exception:
        case httpx.TransportError() | TimeoutError() | ConnectionError():
            return ErrorCode.TRANSPORT_ERROR
        case ValueError() | TypeError() | KeyError():
            return ErrorCode.PROTOCOL_ERROR
        case FileNotFoundError() | PermissionError():
            return ErrorCode.CREDENTIAL_ERROR
        case _:
            return ErrorCode.UNKNOWN_ERROR
