"""
EcfClient — the document lifecycle orchestrator.

Holds one issuer's signing identity and, once `authenticate` succeeds, one
Session with the authority, plus one per buyer host authenticated against
through its `urlOpcional`. A call is made with the Session whose scope covers
the target host; a token is never sent to a host outside its scope. Every
network operation is gated here before any adapter runs:

  authenticate             credentials complete?        else CREDENTIAL_ERROR
  send_* / tracking /      session for target host?     else AUTHENTICATION_ERROR
  directory

and the Session is passed explicitly to the adapter, so two clients with two
sessions never interfere.

The main pipeline, `submit`, is a short railway:

  envelope
    → sign at envelope.root_element        (SIGNING_ERROR / CREDENTIAL_ERROR)
      → RFCE?  send_summary                 (summary host, synchronous status)
        else   send_document                (trackId for later tracking)

A 401 on any session-bearing call comes back as SESSION_EXPIRED (status 401).
The session is kept as-is; recovering means calling `authenticate` again.
"""

from __future__ import annotations

import structlog
from railway import ErrorCode
from railway.result import Result

from dgii_ecf.adapters.authentication import SeedAuthenticator
from dgii_ecf.adapters.directory import DirectoryResolver
from dgii_ecf.adapters.http_client import GatewayHttpClient
from dgii_ecf.adapters.reception import DocumentReception
from dgii_ecf.adapters.signer import XmlDocumentSigner
from dgii_ecf.adapters.tracking import TrackingService
from dgii_ecf.config import GatewayEndpoints
from dgii_ecf.domain.models import (
    CredentialBundle,
    DirectoryEntry,
    DocumentEnvelope,
    Session,
    SignedEnvelope,
    SubmissionReceipt,
    SummaryInquiryResult,
    TrackingRecord,
    url_host,
)
from dgii_ecf.domain.ports import (
    DirectoryLookup,
    DispositionTracker,
    DocumentSigner,
    DocumentSubmitter,
    SessionAuthenticator,
)

log = structlog.get_logger()


class EcfClient:
    """
    Orchestrate authentication, signing, submission, tracking and directory lookups.

    Only `credentials` and `endpoints` are required; every collaborator
    defaults to the httpx / signxml adapters and can be replaced with any
    object satisfying the matching port.
    """

    def __init__(
        self,
        credentials: CredentialBundle,
        endpoints: GatewayEndpoints,
        *,
        http: GatewayHttpClient | None = None,
        signer: DocumentSigner | None = None,
        authenticator: SessionAuthenticator | None = None,
        reception: DocumentSubmitter | None = None,
        tracking: DispositionTracker | None = None,
        directory: DirectoryLookup | None = None,
        session: Session | None = None,
    ) -> None:
        http = http or GatewayHttpClient()
        self._credentials = credentials
        self._endpoints = endpoints
        self._signer = signer or XmlDocumentSigner(credentials)
        self._authenticator = authenticator or SeedAuthenticator(http, endpoints)
        self._reception = reception or DocumentReception(http, endpoints)
        self._tracking = tracking or TrackingService(http, endpoints)
        self._directory = directory or DirectoryResolver(http, endpoints)
        self._session: Session | None = None
        self._buyer_sessions: dict[str, Session] = {}
        if session is not None:
            self._store_session(session)

    @property
    def session(self) -> Session | None:
        """The instance's Session with the authority, or None before `authenticate`."""
        return self._session

    def session_for(self, url: str) -> Session | None:
        """The Session that may be presented to `url`'s host, if any."""
        if self._session is not None and self._session.covers(url):
            return self._session
        return self._buyer_sessions.get(url_host(url))

    @property
    def endpoints(self) -> GatewayEndpoints:
        return self._endpoints

    # ─────────────────────── Session ───────────────────────

    async def authenticate(self, alternate_endpoint: str | None = None) -> Result[Session]:
        """
        Run the certificate handshake and keep the resulting Session.

        `alternate_endpoint` targets a buyer-operated authentication host
        (DirectoryEntry.optional_auth_url); the resulting Session is kept for
        that buyer's host only and never replaces the authority Session. On
        failure the previous session for that scope, if any, is left untouched.
        """
        result = await self._credentials.require_complete().flat_map_async(
            lambda _: self._authenticator.authenticate(self._signer, alternate_endpoint)
        )
        return result.peek(self._store_session)

    def _store_session(self, session: Session) -> None:
        if session.covers(self._endpoints.authentication):
            self._session = session
        else:
            self._buyer_sessions[session.issuing_host] = session

    def _require_session(self, url: str | None = None) -> Result[Session]:
        target = url or self._endpoints.authentication
        return Result.from_optional(
            self.session_for(target),
            f"No active session for {url_host(target)}; call authenticate() first",
            ErrorCode.AUTHENTICATION_ERROR,
        )

    # ─────────────────────── Signing ───────────────────────

    def sign(self, xml: str, root_element_name: str) -> Result[str]:
        """Enveloped-sign `xml` at `root_element_name`. No network I/O."""
        return self._credentials.require_complete().flat_map(
            lambda _: self._signer.sign(xml, root_element_name)
        )

    def sign_envelope(self, envelope: DocumentEnvelope) -> Result[SignedEnvelope]:
        """Sign an envelope at its own root element."""
        return self.sign(envelope.xml, envelope.root_element).map(
            lambda signed_xml: SignedEnvelope(envelope=envelope, signed_xml=signed_xml)
        )

    # ─────────────────────── Submission ───────────────────────

    async def submit(self, envelope: DocumentEnvelope) -> Result[SubmissionReceipt]:
        """
        Sign and send one document, routed by its root element.

        Summaries (RFCE) go to summary ingestion, everything else to invoice
        ingestion. Never retried: a second call is a second submission.
        """
        bound = log.bind(encf=envelope.encf, root=envelope.root_element)
        signed = self._require_session().flat_map(lambda _: self.sign_envelope(envelope))
        receipt = await signed.flat_map_async(self.send_signed)
        return receipt.peek_failure(
            lambda err: bound.warning("document.submit_failed", error=err.describe())
        )

    async def send_signed(self, signed: SignedEnvelope) -> Result[SubmissionReceipt]:
        """Route an already-signed envelope: RFCE to summary ingestion, the rest to invoice ingestion."""
        if signed.envelope.is_summary:
            return await self.send_summary(signed.signed_xml, signed.file_name)
        return await self.send_document(signed.signed_xml, signed.file_name)

    async def send_document(
        self,
        signed_xml: str,
        file_name: str,
        endpoint: str | None = None,
    ) -> Result[SubmissionReceipt]:
        """Send an already-signed e-CF; `endpoint` targets a buyer's reception URL."""
        return await self._require_session(endpoint).flat_map_async(
            lambda session: self._reception.send_document(session, signed_xml, file_name, endpoint)
        )

    async def send_summary(self, signed_xml: str, file_name: str) -> Result[SubmissionReceipt]:
        """Send an already-signed RFCE summary."""
        return await self._require_session().flat_map_async(
            lambda session: self._reception.send_summary(session, signed_xml, file_name)
        )

    async def send_commercial_approval(
        self,
        signed_xml: str,
        file_name: str,
        endpoint: str | None = None,
    ) -> Result[SubmissionReceipt]:
        """Send an already-signed ACECF."""
        return await self._require_session(endpoint).flat_map_async(
            lambda session: self._reception.send_commercial_approval(session, signed_xml, file_name, endpoint)
        )

    # ─────────────────────── Tracking ───────────────────────

    async def status_by_track_id(self, track_id: str) -> Result[TrackingRecord]:
        return await self._require_session().flat_map_async(
            lambda session: self._tracking.status_by_track_id(session, track_id)
        )

    async def statuses_by_business_key(self, issuer_tax_id: str, encf: str) -> Result[list[TrackingRecord]]:
        return await self._require_session().flat_map_async(
            lambda session: self._tracking.statuses_by_business_key(session, issuer_tax_id, encf)
        )

    async def inquiry_summary(
        self,
        issuer_tax_id: str,
        encf: str,
        buyer_tax_id: str,
        security_code: str,
    ) -> Result[SummaryInquiryResult]:
        """Disposition of a type-32 summary; `security_code` must be the one submitted."""
        return await self._require_session().flat_map_async(
            lambda session: self._tracking.inquiry_summary(session, issuer_tax_id, encf, buyer_tax_id, security_code)
        )

    # ─────────────────────── Directory ───────────────────────

    async def get_customer_directory(self, tax_id: str) -> Result[list[DirectoryEntry]]:
        return await self._require_session().flat_map_async(
            lambda session: self._directory.get_customer_directory(session, tax_id)
        )

    async def list_directory(self) -> Result[list[DirectoryEntry]]:
        return await self._require_session().flat_map_async(self._directory.list_directory)
