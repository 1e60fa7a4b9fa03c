"""
Reception adapter — delivery of signed documents to the ingestion endpoints.

Implements the DocumentSubmitter port. Three endpoints, one contract shape:

  send_document             → invoice ingestion (e-CF 31, 33, 34, ...), or a
                              counterparty's reception URL from the directory;
                              answers {trackId}
  send_summary              → RFCE ingestion on the summary host; answers
                              synchronously {codigo, estado, mensajes, encf}
  send_commercial_approval  → ACECF ingestion

Each successful call creates exactly one record on the authority side, so
nothing here retries. Rejections carry the authority's `codigo` (2 = the
document's data failed validation) and messages as VALIDATION_REJECTION.
"""

from __future__ import annotations

from typing import Any

import structlog
from railway import ErrorCode
from railway.result import Result
from railway.result_failures import ResultFailures

from dgii_ecf.adapters.http_client import GatewayHttpClient, authority_messages
from dgii_ecf.adapters.payloads import ReceptionPayload, SummaryReceptionPayload
from dgii_ecf.adapters.tracking import resolve_status
from dgii_ecf.config import GatewayEndpoints
from dgii_ecf.domain.models import AuthorityMessage, Session, SubmissionReceipt, TrackStatus

log = structlog.get_logger()


class DocumentReception:
    """
    Submit signed XML documents.

    Implements the DocumentSubmitter port.
    """

    def __init__(self, http: GatewayHttpClient, endpoints: GatewayEndpoints) -> None:
        self._http = http
        self._endpoints = endpoints

    async def send_document(
        self,
        session: Session,
        signed_xml: str,
        file_name: str,
        endpoint: str | None = None,
    ) -> Result[SubmissionReceipt]:
        """
        Send a signed e-CF; returns a receipt holding the authority's trackId.

        `endpoint` overrides the gateway ingestion URL (buyer-hosted reception).
        """
        url = endpoint or self._endpoints.reception
        answer = await _require_document(signed_xml, file_name).flat_map_async(
            lambda name: self._http.post_file(url, file_name=name, content=signed_xml, session=session)
        )
        return _logged(answer.flat_map(lambda body: _invoice_receipt(body, file_name)), "invoice", file_name)

    async def send_summary(
        self,
        session: Session,
        signed_xml: str,
        file_name: str,
    ) -> Result[SubmissionReceipt]:
        """Send a signed RFCE (type-32 summary); the authority answers with a status."""
        answer = await _require_document(signed_xml, file_name).flat_map_async(
            lambda name: self._http.post_file(
                self._endpoints.summary_reception, file_name=name, content=signed_xml, session=session
            )
        )
        return _logged(answer.flat_map(lambda body: _summary_receipt(body, file_name)), "summary", file_name)

    async def send_commercial_approval(
        self,
        session: Session,
        signed_xml: str,
        file_name: str,
        endpoint: str | None = None,
    ) -> Result[SubmissionReceipt]:
        """Send a signed ACECF (buyer's commercial approval of a received e-CF)."""
        url = endpoint or self._endpoints.commercial_approval
        answer = await _require_document(signed_xml, file_name).flat_map_async(
            lambda name: self._http.post_file(url, file_name=name, content=signed_xml, session=session)
        )
        return _logged(
            answer.map(lambda body: SubmissionReceipt(
                file_name=file_name,
                messages=tuple(AuthorityMessage(text=text) for text in authority_messages(body)),
            )),
            "commercial_approval",
            file_name,
        )


def _require_document(signed_xml: str, file_name: str) -> Result[str]:
    if not signed_xml.strip():
        return ResultFailures.validation_error("Signed document is empty")
    if not file_name.strip():
        return ResultFailures.validation_error("A file name is required for submission")
    return Result.success(file_name.strip())


def _invoice_receipt(body: Any, file_name: str) -> Result[SubmissionReceipt]:
    parsed = Result.from_computation(
        lambda: ReceptionPayload.model_validate(body),
        ErrorCode.PROTOCOL_ERROR,
        "Unexpected reception answer",
    )
    return parsed.flat_map(lambda payload: _track_id_or_rejection(payload, body, file_name))


def _track_id_or_rejection(payload: ReceptionPayload, body: Any, file_name: str) -> Result[SubmissionReceipt]:
    if payload.track_id and payload.track_id.strip():
        return Result.success(SubmissionReceipt(file_name=file_name, track_id=payload.track_id.strip()))
    messages = authority_messages(body)
    if messages:
        return ResultFailures.validation_rejection(
            f"Document {file_name} was not accepted for processing",
            authority_messages=messages,
        )
    return ResultFailures.protocol_error(f"Reception answer for {file_name} carries no trackId")


def _summary_receipt(body: Any, file_name: str) -> Result[SubmissionReceipt]:
    parsed = Result.from_computation(
        lambda: SummaryReceptionPayload.model_validate(body),
        ErrorCode.PROTOCOL_ERROR,
        "Unexpected summary reception answer",
    )
    return parsed.flat_map(
        lambda payload: resolve_status(payload.estado, payload.codigo).flat_map(
            lambda status: _summary_outcome(payload, status, file_name)
        )
    )


def _summary_outcome(
    payload: SummaryReceptionPayload,
    status: TrackStatus,
    file_name: str,
) -> Result[SubmissionReceipt]:
    messages = payload.messages()
    if status is TrackStatus.REJECTED:
        return ResultFailures.validation_rejection(
            f"Summary {file_name} rejected: {payload.estado or status.value}",
            authority_code=payload.codigo,
            authority_messages=tuple(message.text for message in messages if message.text),
        )
    return Result.success(SubmissionReceipt(
        file_name=file_name,
        track_id=payload.track_id,
        encf=payload.encf,
        status=status,
        authority_code=payload.codigo,
        messages=messages,
    ))


def _logged(result: Result[SubmissionReceipt], kind: str, file_name: str) -> Result[SubmissionReceipt]:
    return result.peek(
        lambda receipt: log.info(
            "document.submitted",
            kind=kind,
            file_name=file_name,
            track_id=receipt.track_id,
            status=receipt.status.value if receipt.status else None,
        )
    ).peek_failure(
        lambda err: log.warning("document.submission_failed", kind=kind, file_name=file_name, error=err.describe())
    )
