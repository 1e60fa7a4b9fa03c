"""
Ports — Protocol-based interfaces for infrastructure adapters.

These define WHAT the orchestrator needs without specifying HOW it's done:

  Domain ← Ports (protocols) ← Adapters (implementations)

Each port is a Protocol (structural typing), so adapters and test doubles
satisfy a contract simply by implementing its methods.

Every network-facing port takes the Session explicitly. The orchestrator owns
the session and threads it through; no adapter keeps token state.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from railway.result import Result

from dgii_ecf.domain.models import (
    CredentialBundle,
    DirectoryEntry,
    Session,
    SubmissionReceipt,
    SummaryInquiryResult,
    TrackingRecord,
)


@runtime_checkable
class KeystoreReader(Protocol):
    """Port: extract a CredentialBundle from an encrypted keystore file."""

    def read(self, path: Path) -> Result[CredentialBundle]: ...


@runtime_checkable
class DocumentTransformer(Protocol):
    """Port: serialize a structured document model to XML. Deterministic, no I/O."""

    def json2xml(self, document: Mapping[str, Any]) -> str: ...


@runtime_checkable
class DocumentSigner(Protocol):
    """
    Port: produce an enveloped XML digital signature anchored at a named element.

    Returns SIGNING_ERROR when the element is absent, CREDENTIAL_ERROR when the
    bundle cannot sign.
    """

    def sign(self, xml: str, root_element_name: str) -> Result[str]: ...


@runtime_checkable
class SessionAuthenticator(Protocol):
    """Port: certificate handshake producing a bearer-token Session."""

    async def authenticate(
        self,
        signer: DocumentSigner,
        alternate_endpoint: str | None = None,
    ) -> Result[Session]: ...


@runtime_checkable
class DocumentSubmitter(Protocol):
    """Port: deliver signed documents to the type-specific ingestion endpoints."""

    async def send_document(
        self,
        session: Session,
        signed_xml: str,
        file_name: str,
        endpoint: str | None = None,
    ) -> Result[SubmissionReceipt]: ...

    async def send_summary(
        self,
        session: Session,
        signed_xml: str,
        file_name: str,
    ) -> Result[SubmissionReceipt]: ...

    async def send_commercial_approval(
        self,
        session: Session,
        signed_xml: str,
        file_name: str,
        endpoint: str | None = None,
    ) -> Result[SubmissionReceipt]: ...


@runtime_checkable
class DispositionTracker(Protocol):
    """Port: pull the authority's view of a submitted document."""

    async def status_by_track_id(self, session: Session, track_id: str) -> Result[TrackingRecord]: ...

    async def statuses_by_business_key(
        self,
        session: Session,
        issuer_tax_id: str,
        encf: str,
    ) -> Result[list[TrackingRecord]]: ...

    async def inquiry_summary(
        self,
        session: Session,
        issuer_tax_id: str,
        encf: str,
        buyer_tax_id: str,
        security_code: str,
    ) -> Result[SummaryInquiryResult]: ...


@runtime_checkable
class DirectoryLookup(Protocol):
    """Port: resolve counterparties' registered endpoints."""

    async def get_customer_directory(self, session: Session, tax_id: str) -> Result[list[DirectoryEntry]]: ...

    async def list_directory(self, session: Session) -> Result[list[DirectoryEntry]]: ...
