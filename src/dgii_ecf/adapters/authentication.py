"""
Authentication adapter — certificate handshake that yields a bearer-token Session.

Implements the SessionAuthenticator port. The authority proves possession of
the issuer's certificate through a signed challenge:

  1. GET  <auth endpoint>/api/autenticacion/semilla        → seed XML (SemillaModel)
  2. sign the seed at root "SemillaModel" (certificate travels in KeyInfo)
  3. POST <auth endpoint>/api/autenticacion/validarsemilla → {token, expira, expedido}

<auth endpoint> is the configured gateway endpoint, or an alternate one such as
a buyer's `urlOpcional` taken from the directory.

A session issued on one of the authority's hosts may be presented to all of
them; one issued by a buyer's endpoint is valid on that buyer's host only.

Any remote failure becomes AUTHENTICATION_ERROR (status code and authority
messages preserved). A response without a token is a failure, never a session.
"""

from __future__ import annotations

import structlog
from railway import ErrorCode, FailureDescription
from railway.result import Result

from dgii_ecf.adapters.http_client import GatewayHttpClient
from dgii_ecf.adapters.payloads import TokenPayload
from dgii_ecf.config import GatewayEndpoints
from dgii_ecf.domain.models import SEED_ROOT, Session, url_host
from dgii_ecf.domain.ports import DocumentSigner

log = structlog.get_logger()

SEED_FILE_NAME = "semilla.xml"

# Local precondition kinds are reported as themselves, not as handshake failures.
_PASSTHROUGH = frozenset({ErrorCode.CREDENTIAL_ERROR, ErrorCode.SIGNING_ERROR})


class SeedAuthenticator:
    """
    Run the signed-seed handshake against the default or an alternate endpoint.

    Implements the SessionAuthenticator port.
    """

    def __init__(self, http: GatewayHttpClient, endpoints: GatewayEndpoints) -> None:
        self._http = http
        self._endpoints = endpoints

    async def authenticate(
        self,
        signer: DocumentSigner,
        alternate_endpoint: str | None = None,
    ) -> Result[Session]:
        """
        Obtain a Session from the authority.

        Returns Result[Session] with a non-empty token on success,
        AUTHENTICATION_ERROR on any handshake failure.
        """
        auth_endpoint = (alternate_endpoint or self._endpoints.authentication).rstrip("/")
        bound = log.bind(endpoint=auth_endpoint, alternate=alternate_endpoint is not None)
        gateway_hosts = self._endpoints.hosts
        scope = gateway_hosts if url_host(auth_endpoint) in gateway_hosts else frozenset[str]()

        seed = await self._http.get_text(self._endpoints.seed_url(auth_endpoint))
        signed_seed = seed.flat_map(lambda xml: signer.sign(xml.lstrip("\ufeff"), SEED_ROOT))
        answer = await signed_seed.flat_map_async(
            lambda signed: self._http.post_file(
                self._endpoints.validate_seed_url(auth_endpoint),
                file_name=SEED_FILE_NAME,
                content=signed,
            )
        )
        return (
            answer.flat_map(_parse_token)
            .map(lambda payload: Session(
                token=payload.token,
                issuing_endpoint=auth_endpoint,
                environment=self._endpoints.environment,
                issued_at=payload.expedido,
                expires_at=payload.expira,
                hosts=scope,
            ))
            .map_failure(_as_authentication_failure)
            .peek(lambda session: bound.info("session.authenticated", expires_at=session.expires_at))
            .peek_failure(lambda err: bound.warning("session.failed", error=err.describe()))
        )


def _parse_token(body: object) -> Result[TokenPayload]:
    return Result.from_computation(
        lambda: TokenPayload.model_validate(body),
        ErrorCode.PROTOCOL_ERROR,
        "Unexpected seed-validation answer",
    ).ensure(
        lambda payload: bool(payload.token.strip()),
        ErrorCode.AUTHENTICATION_ERROR,
        "Seed validated but no token was issued",
    )


def _as_authentication_failure(error: FailureDescription) -> FailureDescription:
    if error.code in _PASSTHROUGH or error.code is ErrorCode.AUTHENTICATION_ERROR:
        return error
    return FailureDescription.create(
        ErrorCode.AUTHENTICATION_ERROR,
        f"Authentication failed: {error.message}",
        error.exception,
        status_code=error.status_code,
        authority_code=error.authority_code,
        authority_messages=error.authority_messages,
    )
