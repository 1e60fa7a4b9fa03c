"""
Domain models — immutable values for credentials, sessions, documents and dispositions.

These are pure value objects with no I/O. They represent:
  - the signing identity extracted from a keystore (CredentialBundle)
  - the authenticated state against the gateway (Session)
  - a business document before and after signing (DocumentEnvelope, SignedEnvelope)
  - what the authority reports back (SubmissionReceipt, TrackingRecord,
    SummaryInquiryResult, DirectoryEntry)

All models are frozen dataclasses. A submission always works on its own
DocumentEnvelope; callers build a fresh one per e-NCF instead of mutating a
shared template.
"""

from __future__ import annotations

import re
import secrets
import string
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import IntEnum, StrEnum
from urllib.parse import urlsplit

from cryptography import x509
from cryptography.hazmat.primitives.asymmetric.types import PrivateKeyTypes
from cryptography.hazmat.primitives.serialization import Encoding
from railway import ErrorCode
from railway.result import Result
from railway.result_failures import ResultFailures

ENCF_PATTERN = re.compile(r"^E(?P<type>\d{2})(?P<sequence>\d{10})$")
TAX_ID_PATTERN = re.compile(r"^(\d{9}|\d{11})$")

SUMMARY_ROOT = "RFCE"
INVOICE_ROOT = "ECF"
COMMERCIAL_APPROVAL_ROOT = "ACECF"
SEED_ROOT = "SemillaModel"


class Environment(StrEnum):
    """Gateway environment. The value is what settings and the CLI accept."""

    DEV = "DEV"
    TEST = "TEST"
    PROD = "PROD"

    @property
    def path_segment(self) -> str:
        """URL segment the authority uses for this environment."""
        return _ENVIRONMENT_SEGMENTS[self]


_ENVIRONMENT_SEGMENTS = {
    Environment.DEV: "testecf",
    Environment.TEST: "certecf",
    Environment.PROD: "ecf",
}


class DocumentType(IntEnum):
    """e-CF document types, encoded as the two digits after the leading 'E' of an e-NCF."""

    CREDIT_INVOICE = 31
    CONSUMER_INVOICE = 32
    DEBIT_NOTE = 33
    CREDIT_NOTE = 34
    PURCHASES = 41
    MINOR_EXPENSES = 43
    SPECIAL_REGIMES = 44
    GOVERNMENTAL = 45
    EXPORTS = 46
    FOREIGN_PAYMENTS = 47


class TrackStatus(StrEnum):
    """
    Disposition of a submitted document, as spelled by the authority.

    IN_PROCESS → {ACCEPTED | CONDITIONAL_ACCEPTED | REJECTED}; once terminal a
    status does not change.
    """

    IN_PROCESS = "En Proceso"
    ACCEPTED = "Aceptado"
    CONDITIONAL_ACCEPTED = "Aceptado Condicional"
    REJECTED = "Rechazado"

    @property
    def is_terminal(self) -> bool:
        return self is not TrackStatus.IN_PROCESS


@dataclass(frozen=True, slots=True)
class CredentialBundle:
    """
    The extracted signing identity.

    Either part may be None when extraction failed; `is_complete` must hold
    before anything is signed or any handshake is attempted.
    """

    private_key: PrivateKeyTypes | None = field(default=None, repr=False)
    certificate: x509.Certificate | None = None
    additional_certificates: tuple[x509.Certificate, ...] = ()

    @property
    def is_complete(self) -> bool:
        return self.private_key is not None and self.certificate is not None

    def certificate_pem(self) -> str:
        """PEM text of the signing certificate; ValueError when the bundle has none."""
        if self.certificate is None:
            raise ValueError("Credential bundle has no certificate")
        return self.certificate.public_bytes(Encoding.PEM).decode("ascii")

    def require_complete(self) -> Result[CredentialBundle]:
        """Success(self) when both key and certificate are present."""
        missing = [
            name
            for name, value in (("private key", self.private_key), ("certificate", self.certificate))
            if value is None
        ]
        if missing:
            return ResultFailures.credential_error(
                f"Credential bundle is unusable: missing {' and '.join(missing)}"
            )
        return Result.success(self)


@dataclass(frozen=True, slots=True)
class Session:
    """
    Authenticated state against one gateway endpoint in one environment.

    `issued_at` / `expires_at` are kept as the authority sent them; expiry is
    detected reactively (SESSION_EXPIRED), never computed locally.

    `hosts` lists every host the token may be presented to. Empty means the
    issuing endpoint's host only, which is the case for a buyer's session.
    """

    token: str = field(repr=False)
    issuing_endpoint: str
    environment: Environment
    issued_at: str | None = None
    expires_at: str | None = None
    hosts: frozenset[str] = frozenset()

    @property
    def authorization_header(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}

    @property
    def issuing_host(self) -> str:
        return url_host(self.issuing_endpoint)

    def covers(self, url: str) -> bool:
        """True when the token may be sent to `url`'s host."""
        host = url_host(url)
        return host == self.issuing_host or host in self.hosts


@dataclass(frozen=True, slots=True)
class DocumentEnvelope:
    """
    A business document prior to signing.

    Build with `DocumentEnvelope.create(...)`, which validates the e-NCF and
    issuer tax id and picks the root element the Signer must anchor at.
    """

    issuer_tax_id: str
    encf: str
    xml: str = field(repr=False)
    root_element: str = INVOICE_ROOT

    @staticmethod
    def create(
        issuer_tax_id: str,
        encf: str,
        xml: str,
        root_element: str | None = None,
    ) -> Result[DocumentEnvelope]:
        """
        Validate and build an envelope.

        Without an explicit root element, type-32 documents are treated as
        summaries (RFCE) and everything else as a full e-CF (ECF).
        """
        issuer_tax_id = issuer_tax_id.strip()
        encf = encf.strip()
        if not TAX_ID_PATTERN.match(issuer_tax_id):
            return Result.failure(
                ErrorCode.VALIDATION_ERROR,
                f"Issuer tax id must have 9 or 11 digits: {issuer_tax_id!r}",
            )
        return (
            parse_document_type(encf)
            .ensure(lambda _: bool(xml.strip()), ErrorCode.VALIDATION_ERROR, "Document XML is empty")
            .map(
                lambda document_type: DocumentEnvelope(
                    issuer_tax_id=issuer_tax_id,
                    encf=encf,
                    xml=xml,
                    root_element=root_element or _default_root(document_type),
                )
            )
        )

    @property
    def document_type(self) -> DocumentType:
        return parse_document_type(self.encf).value()

    @property
    def is_summary(self) -> bool:
        return self.root_element == SUMMARY_ROOT

    @property
    def file_name(self) -> str:
        return f"{self.issuer_tax_id}{self.encf}.xml"


@dataclass(frozen=True, slots=True)
class SignedEnvelope:
    """A DocumentEnvelope together with its signed XML serialization."""

    envelope: DocumentEnvelope
    signed_xml: str = field(repr=False)

    @property
    def file_name(self) -> str:
        return self.envelope.file_name


@dataclass(frozen=True, slots=True)
class AuthorityMessage:
    """One message attached by the authority to a disposition or rejection."""

    text: str
    code: int | None = None


@dataclass(frozen=True, slots=True)
class SubmissionReceipt:
    """
    What an ingestion endpoint answered.

    Invoice ingestion always issues a trackId. Summary ingestion answers
    synchronously with a status and may not issue one.
    """

    file_name: str
    track_id: str | None = None
    encf: str | None = None
    status: TrackStatus | None = None
    authority_code: int | None = None
    messages: tuple[AuthorityMessage, ...] = ()


@dataclass(frozen=True, slots=True)
class TrackingRecord:
    """The authority's disposition of a submitted document."""

    track_id: str
    status: TrackStatus
    encf: str | None = None
    issuer_tax_id: str | None = None
    received_at: str | None = None
    sequence_used: bool | None = None
    messages: tuple[AuthorityMessage, ...] = ()

    @property
    def rejection_reason(self) -> str | None:
        if self.status is not TrackStatus.REJECTED:
            return None
        return "; ".join(message.text for message in self.messages if message.text) or None


@dataclass(frozen=True, slots=True)
class SummaryInquiryResult:
    """
    Disposition and financial reconciliation for a type-32 summary.

    The service returns the authority's values as-is; comparing them with the
    submitted ones is the caller's job (see `matches`).
    """

    status: TrackStatus
    security_code: str | None = None
    total_amount: Decimal | None = None
    issuer_tax_id: str | None = None
    encf: str | None = None
    sequence_used: bool | None = None
    messages: tuple[AuthorityMessage, ...] = ()

    def matches(self, security_code: str, total_amount: Decimal | int | float | str) -> bool:
        """True when the authority echoes the submitted security code and total."""
        if self.total_amount is None:
            return False
        return self.security_code == security_code and self.total_amount == Decimal(str(total_amount))


@dataclass(frozen=True, slots=True)
class DirectoryEntry:
    """A counterparty's registered endpoints."""

    name: str
    tax_id: str
    acceptance_url: str | None = None
    reception_url: str | None = None
    optional_auth_url: str | None = None


# ─────────────────────── Helpers ───────────────────────


def parse_document_type(encf: str) -> Result[DocumentType]:
    """Extract the DocumentType from an e-NCF such as 'E310005012345'."""
    match = ENCF_PATTERN.match(encf)
    if match is None:
        return Result.failure(
            ErrorCode.VALIDATION_ERROR,
            f"e-NCF must be 'E' + 2-digit type + 10-digit sequence: {encf!r}",
        )
    return Result.from_computation(
        lambda: DocumentType(int(match.group("type"))),
        ErrorCode.VALIDATION_ERROR,
        f"Unknown e-CF document type in {encf!r}",
    )


def url_host(url: str) -> str:
    """Lower-cased host of an absolute URL; empty when there is none."""
    return (urlsplit(url.strip()).hostname or "").lower()


def _default_root(document_type: DocumentType) -> str:
    if document_type is DocumentType.CONSUMER_INVOICE:
        return SUMMARY_ROOT
    return INVOICE_ROOT


_SECURITY_CODE_ALPHABET = string.ascii_letters + string.digits


def generate_security_code(length: int = 6) -> str:
    """Random alphanumeric security code bound to a summary (RFCE) document."""
    return "".join(secrets.choice(_SECURITY_CODE_ALPHABET) for _ in range(length))


def format_issue_date(value: date | datetime) -> str:
    """Authority date format: dd-MM-yyyy."""
    return value.strftime("%d-%m-%Y")
