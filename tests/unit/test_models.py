"""
Unit tests for domain models — value objects and helpers.

Verifies frozen dataclass behavior, envelope validation, routing of
document types to signing roots, and the small authority-format helpers.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest
from railway import ErrorCode, ResultAssertions

from dgii_ecf.domain.models import (
    SUMMARY_ROOT,
    AuthorityMessage,
    CredentialBundle,
    DocumentEnvelope,
    DocumentType,
    Environment,
    Session,
    SummaryInquiryResult,
    TrackingRecord,
    TrackStatus,
    format_issue_date,
    generate_security_code,
    parse_document_type,
)
from tests.conftest import INVOICE_ENCF, INVOICE_XML, ISSUER_TAX_ID, SUMMARY_ENCF, SUMMARY_XML


class TestCredentialBundle:
    """Verify the completeness gate on the signing identity."""

    def test_complete_bundle(self, credentials: CredentialBundle) -> None:
        """
        GIVEN a bundle with key and certificate
        WHEN require_complete is called
        THEN it returns Success(bundle).
        """
        assert credentials.is_complete
        assert ResultAssertions.assert_success(credentials.require_complete()) is credentials

    def test_missing_key_is_credential_error(self, incomplete_credentials: CredentialBundle) -> None:
        """
        GIVEN a bundle without a private key
        WHEN require_complete is called
        THEN it returns CREDENTIAL_ERROR naming the missing part.
        """
        result = incomplete_credentials.require_complete()
        ResultAssertions.assert_failure(result, ErrorCode.CREDENTIAL_ERROR)
        ResultAssertions.assert_failure_message_contains(result, "private key")

    def test_empty_bundle_names_both_parts(self) -> None:
        """
        GIVEN an empty bundle
        WHEN require_complete is called
        THEN the message names both the key and the certificate.
        """
        result = CredentialBundle().require_complete()
        ResultAssertions.assert_failure_message_contains(result, "private key and certificate")

    def test_certificate_pem(self, credentials: CredentialBundle) -> None:
        assert credentials.certificate_pem().startswith("-----BEGIN CERTIFICATE-----")

    def test_certificate_pem_without_certificate_raises(self) -> None:
        with pytest.raises(ValueError, match="no certificate"):
            CredentialBundle().certificate_pem()

    def test_private_key_not_in_repr(self, credentials: CredentialBundle) -> None:
        assert "private_key" not in repr(credentials)


class TestSession:
    """Verify the session value object."""

    def test_authorization_header(self, session: Session) -> None:
        """
        GIVEN a session
        WHEN its authorization header is read
        THEN it is a Bearer header carrying the token.
        """
        assert session.authorization_header == {"Authorization": f"Bearer {session.token}"}

    def test_token_not_in_repr(self, session: Session) -> None:
        assert session.token not in repr(session)

    def test_frozen_prevents_mutation(self, session: Session) -> None:
        with pytest.raises(AttributeError):
            session.token = "other"  # type: ignore[misc]

    def test_covers_gateway_hosts(self, session: Session) -> None:
        """
        GIVEN a session issued by the authority's authentication service
        WHEN asked about the authority's hosts and a buyer's host
        THEN only the authority's hosts are covered.
        """
        assert session.covers("https://ecf.dgii.gov.do/testecf/consultaresultado/api/consultas/estado")
        assert session.covers("https://FC.dgii.gov.do/testecf/recepcionfc/api/recepcion/ecf")
        assert not session.covers("https://buyer.example.com/fe/recepcion/api/ecf")

    def test_buyer_session_covers_its_own_host_only(self) -> None:
        buyer = Session(
            token="buyer-token",
            issuing_endpoint="https://buyer.example.com/fe/autenticacion",
            environment=Environment.DEV,
        )
        assert buyer.issuing_host == "buyer.example.com"
        assert buyer.covers("https://buyer.example.com/fe/recepcion/api/ecf")
        assert not buyer.covers("https://ecf.dgii.gov.do/testecf/consultaresultado/api/consultas/estado")


class TestEnvironment:
    @pytest.mark.parametrize(
        ("environment", "segment"),
        [(Environment.DEV, "testecf"), (Environment.TEST, "certecf"), (Environment.PROD, "ecf")],
    )
    def test_path_segment(self, environment: Environment, segment: str) -> None:
        assert environment.path_segment == segment


class TestDocumentEnvelope:
    """Verify envelope validation and derived values."""

    def test_invoice_envelope(self) -> None:
        """
        GIVEN a valid issuer, type-31 e-NCF and XML
        WHEN create is called
        THEN the envelope anchors at ECF and derives the file name.
        """
        envelope = ResultAssertions.assert_success(DocumentEnvelope.create(ISSUER_TAX_ID, INVOICE_ENCF, INVOICE_XML))
        assert envelope.root_element == "ECF"
        assert envelope.document_type is DocumentType.CREDIT_INVOICE
        assert not envelope.is_summary
        assert envelope.file_name == f"{ISSUER_TAX_ID}{INVOICE_ENCF}.xml"

    def test_type_32_defaults_to_summary_root(self) -> None:
        """
        GIVEN a type-32 e-NCF and no explicit root
        WHEN create is called
        THEN the envelope anchors at RFCE and is a summary.
        """
        envelope = DocumentEnvelope.create(ISSUER_TAX_ID, SUMMARY_ENCF, SUMMARY_XML).value()
        assert envelope.root_element == SUMMARY_ROOT
        assert envelope.is_summary

    def test_explicit_root_wins(self) -> None:
        """
        GIVEN a type-32 e-NCF with root "ECF"
        WHEN create is called
        THEN the full e-CF root is kept (consumer invoice above the summary threshold).
        """
        envelope = DocumentEnvelope.create(ISSUER_TAX_ID, SUMMARY_ENCF, INVOICE_XML, "ECF").value()
        assert envelope.root_element == "ECF"
        assert not envelope.is_summary

    def test_values_are_stripped(self) -> None:
        envelope = DocumentEnvelope.create(f" {ISSUER_TAX_ID} ", f"{INVOICE_ENCF}\n", INVOICE_XML).value()
        assert envelope.file_name == f"{ISSUER_TAX_ID}{INVOICE_ENCF}.xml"

    @pytest.mark.parametrize("tax_id", ["", "12345", "1318806810", "13188068A"])
    def test_invalid_tax_id(self, tax_id: str) -> None:
        result = DocumentEnvelope.create(tax_id, INVOICE_ENCF, INVOICE_XML)
        ResultAssertions.assert_failure(result, ErrorCode.VALIDATION_ERROR)

    @pytest.mark.parametrize("encf", ["", "E31", "B0100000001", "E3100000000001", "e310000000001"])
    def test_invalid_encf(self, encf: str) -> None:
        result = DocumentEnvelope.create(ISSUER_TAX_ID, encf, INVOICE_XML)
        ResultAssertions.assert_failure(result, ErrorCode.VALIDATION_ERROR)

    def test_unknown_document_type(self) -> None:
        """
        GIVEN an e-NCF whose type digits are not an e-CF type
        WHEN create is called
        THEN it returns VALIDATION_ERROR.
        """
        result = DocumentEnvelope.create(ISSUER_TAX_ID, "E990000000001", INVOICE_XML)
        ResultAssertions.assert_failure_message_contains(result, "unknown e-cf document type")

    def test_empty_xml(self) -> None:
        result = DocumentEnvelope.create(ISSUER_TAX_ID, INVOICE_ENCF, "  ")
        ResultAssertions.assert_failure_message_contains(result, "empty")


class TestParseDocumentType:
    @pytest.mark.parametrize("code", [31, 32, 33, 34, 41, 43, 44, 45, 46, 47])
    def test_every_declared_type(self, code: int) -> None:
        result = parse_document_type(f"E{code}0000000001")
        assert ResultAssertions.assert_success(result) == code


class TestTrackStatus:
    def test_only_in_process_is_not_terminal(self) -> None:
        assert [s for s in TrackStatus if not s.is_terminal] == [TrackStatus.IN_PROCESS]

    def test_values_are_authority_spellings(self) -> None:
        assert {s.value for s in TrackStatus} == {
            "En Proceso",
            "Aceptado",
            "Aceptado Condicional",
            "Rechazado",
        }


class TestTrackingRecord:
    def test_rejection_reason_joins_messages(self) -> None:
        """
        GIVEN a REJECTED record with two messages
        WHEN rejection_reason is read
        THEN the message texts are joined.
        """
        record = TrackingRecord(
            track_id="t",
            status=TrackStatus.REJECTED,
            messages=(AuthorityMessage("RNC inválido", 1), AuthorityMessage("Fecha inválida", 2)),
        )
        assert record.rejection_reason == "RNC inválido; Fecha inválida"

    def test_no_rejection_reason_unless_rejected(self) -> None:
        record = TrackingRecord(track_id="t", status=TrackStatus.ACCEPTED, messages=(AuthorityMessage("ok"),))
        assert record.rejection_reason is None


class TestSummaryInquiryResult:
    def test_matches_submitted_values(self) -> None:
        result = SummaryInquiryResult(status=TrackStatus.ACCEPTED, security_code="a1B2c3", total_amount=Decimal("250.00"))
        assert result.matches("a1B2c3", "250.00")
        assert result.matches("a1B2c3", 250)

    def test_mismatch(self) -> None:
        result = SummaryInquiryResult(status=TrackStatus.ACCEPTED, security_code="a1B2c3", total_amount=Decimal("250.00"))
        assert not result.matches("zzzzzz", "250.00")
        assert not result.matches("a1B2c3", "251.00")

    def test_no_total_never_matches(self) -> None:
        result = SummaryInquiryResult(status=TrackStatus.IN_PROCESS, security_code="a1B2c3")
        assert not result.matches("a1B2c3", 0)


class TestHelpers:
    def test_security_code_shape(self) -> None:
        code = generate_security_code()
        assert len(code) == 6
        assert code.isalnum()

    def test_security_code_length(self) -> None:
        assert len(generate_security_code(10)) == 10

    def test_format_issue_date(self) -> None:
        assert format_issue_date(date(2024, 5, 1)) == "01-05-2024"
