"""
HTTP adapter — async transport plus the error/interceptor layer, via httpx.

Every gateway call in the package goes through GatewayHttpClient, which:
  1. attaches the caller's Session as `Authorization: Bearer <token>`
     (the Session is an argument; nothing is stored on the transport), and
     refuses with AUTHENTICATION_ERROR, before sending, when the target host
     is outside the Session's scope
  2. runs an httpx response event hook that logs every answer and flags 401s
  3. classifies the outcome into exactly one Result:

       2xx                                  → Success(response)
       401 on a call carrying a session     → SESSION_EXPIRED (status_code=401)
       401 / 403 without a session          → AUTHENTICATION_ERROR
       404, or an authority "no encontrado" → NOT_FOUND
       other 4xx                            → VALIDATION_REJECTION (+ codigo, mensajes)
       5xx, redirects                       → TRANSPORT_ERROR (status_code)
       timeout / network exception          → TRANSPORT_ERROR
       undecodable 2xx body                 → PROTOCOL_ERROR

Nothing is retried here: a submission is not idempotent on the authority side,
so retrying is always the caller's decision.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import httpx
import structlog
from railway import ErrorCode
from railway.result import Result
from railway.result_failures import ResultFailures

from dgii_ecf.domain.models import Session, url_host

log = structlog.get_logger()

NOT_FOUND_MARKER = "no encontrado"
_MESSAGE_KEYS = ("mensaje", "error", "message", "title")


class GatewayHttpClient:
    """
    Thin async HTTP client for the authority's REST services.

    One short-lived httpx.AsyncClient per request; no connection or token
    state survives between calls.
    """

    def __init__(self, timeout: int = 60) -> None:
        self._timeout = timeout

    async def get_text(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        session: Session | None = None,
    ) -> Result[str]:
        """GET and return the body as text (used for the XML seed)."""
        response = await self._send("GET", url, session=session, params=params)
        return response.map(lambda r: r.text).ensure(
            lambda text: bool(text.strip()),
            ErrorCode.PROTOCOL_ERROR,
            f"Empty body from {_describe(url)}",
        )

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        session: Session | None = None,
        empty: Any = None,
    ) -> Result[Any]:
        """
        GET and decode a JSON body.

        An empty or `null` body yields `empty` when given, PROTOCOL_ERROR otherwise.
        """
        response = await self._send("GET", url, session=session, params=params)
        return response.flat_map(lambda r: _decode_json(r, empty))

    async def post_file(
        self,
        url: str,
        *,
        file_name: str,
        content: str,
        session: Session | None = None,
    ) -> Result[Any]:
        """POST an XML document as the multipart field `xml` and decode the JSON answer."""
        files = {"xml": (file_name, content.encode("utf-8"), "text/xml")}
        response = await self._send("POST", url, session=session, files=files)
        return response.flat_map(lambda r: _decode_json(r, None))

    async def _send(
        self,
        method: str,
        url: str,
        *,
        session: Session | None,
        **kwargs: Any,
    ) -> Result[httpx.Response]:
        if session is not None and not session.covers(url):
            log.warning("http.session_out_of_scope", session_host=session.issuing_host, host=url_host(url))
            return ResultFailures.authentication_error(
                f"Session issued by {session.issuing_host} is not valid for {_describe(url)}"
            )
        headers = {"Accept": "application/json"}
        if session is not None:
            headers.update(session.authorization_header)
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                event_hooks={"response": [_log_response]},
            ) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except Exception as e:
            return classify_exception(e, url)
        return classify_response(response, authenticated=session is not None)


# ─────────────────────── Response hook ───────────────────────


async def _log_response(response: httpx.Response) -> None:
    """httpx response hook: one log line per answer, a warning for every 401."""
    request = response.request
    if response.status_code == httpx.codes.UNAUTHORIZED:
        log.warning(
            "http.unauthorized",
            method=request.method,
            host=request.url.host,
            path=request.url.path,
        )
        return
    log.debug(
        "http.response",
        method=request.method,
        host=request.url.host,
        path=request.url.path,
        status=response.status_code,
    )


# ─────────────────────── Classification ───────────────────────


def classify_response(response: httpx.Response, *, authenticated: bool) -> Result[httpx.Response]:
    """Map an HTTP response onto the closed failure taxonomy (see module docstring)."""
    status = response.status_code
    if httpx.codes.is_success(status):
        return Result.success(response)

    body = _json_or_none(response)
    messages = authority_messages(body) or _text_message(response)
    where = _describe(str(response.request.url))

    if status == httpx.codes.UNAUTHORIZED:
        if authenticated:
            return ResultFailures.session_expired(f"Session rejected by {where}")
        return ResultFailures.authentication_error(f"Unauthorized at {where}", status_code=status)
    if status == httpx.codes.FORBIDDEN:
        return ResultFailures.authentication_error(f"Forbidden at {where}", status_code=status)
    if status == httpx.codes.NOT_FOUND or is_not_found(body):
        return Result.failure(
            ErrorCode.NOT_FOUND,
            f"Not found at {where}",
            status_code=status,
            authority_messages=messages,
        )
    if httpx.codes.is_client_error(status):
        return Result.failure(
            ErrorCode.VALIDATION_REJECTION,
            f"Rejected by {where}",
            status_code=status,
            authority_code=authority_code(body),
            authority_messages=messages,
        )
    return ResultFailures.transport_error(f"HTTP {status} from {where}", status_code=status)


def classify_exception(exception: Exception, url: str) -> Result[httpx.Response]:
    """Map a transport exception onto TRANSPORT_ERROR (or the closest kind)."""
    where = _describe(url)
    if isinstance(exception, httpx.TimeoutException):
        return ResultFailures.transport_error(f"Timed out calling {where}", exception)
    if isinstance(exception, httpx.TransportError):
        return ResultFailures.transport_error(f"Network failure calling {where}", exception)
    return ResultFailures.from_exception(f"Request to {where} failed", exception)


# ─────────────────────── Authority payload helpers ───────────────────────


def authority_code(body: Any) -> int | None:
    """The authority's numeric `codigo`, when present and numeric."""
    if not isinstance(body, Mapping):
        return None
    value = body.get("codigo")
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def authority_messages(body: Any) -> tuple[str, ...]:
    """Flatten `mensajes` plus the single-message fields into plain strings."""
    if not isinstance(body, Mapping):
        return ()
    collected: list[str] = []
    for item in body.get("mensajes") or ():
        if isinstance(item, Mapping):
            text = item.get("valor")
            if text:
                collected.append(str(text))
        elif item:
            collected.append(str(item))
    for key in _MESSAGE_KEYS:
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            collected.append(value.strip())
    return tuple(collected)


def is_not_found(body: Any) -> bool:
    """
    True when the authority's body says the trackId / document is unknown.

    Only `estado` and the single-message fields count; entries of `mensajes`
    describe document contents and may mention unrelated missing data.
    """
    if not isinstance(body, Mapping):
        return False
    for key in ("estado", *_MESSAGE_KEYS):
        value = body.get(key)
        if isinstance(value, str) and NOT_FOUND_MARKER in value.casefold():
            return True
    return False


def _decode_json(response: httpx.Response, empty: Any) -> Result[Any]:
    where = _describe(str(response.request.url))
    body = _json_or_none(response)
    if body is None and response.content.strip() and response.content.strip() != b"null":
        return ResultFailures.protocol_error(f"Undecodable JSON from {where}")
    if body is None:
        if empty is not None:
            return Result.success(empty)
        return ResultFailures.protocol_error(f"Empty body from {where}")
    return Result.success(body)


def _json_or_none(response: httpx.Response) -> Any:
    if not response.content.strip():
        return None
    try:
        return response.json()
    except ValueError:
        return None


def _text_message(response: httpx.Response) -> tuple[str, ...]:
    text = response.text.strip()
    return (text[:500],) if text else ()


def _describe(url: str) -> str:
    """Scheme, host and path only; query strings may carry security codes."""
    parsed = httpx.URL(url)
    return f"{parsed.scheme}://{parsed.host}{parsed.path}"
