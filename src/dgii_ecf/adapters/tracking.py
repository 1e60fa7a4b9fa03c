"""
Tracking adapter — the authority's disposition of submitted documents.

Implements the DispositionTracker port:

  status_by_track_id        GET consultaresultado/.../estado?trackid=
  statuses_by_business_key  GET consultatrackids/.../consulta?rncemisor=&encf=
  inquiry_summary           GET consultarfce/.../Consulta?RNC_Emisor=&ENCF=&RNC_Comprador=&Cod_Seguridad_eCF=

Per document the authority moves SUBMITTED → IN_PROCESS → {ACCEPTED |
CONDITIONAL_ACCEPTED | REJECTED}. Polling only observes that state.

Status strings are matched against the four known spellings; anything else is
a PROTOCOL_ERROR rather than a guess. "No encontrado" answers are NOT_FOUND,
which is expected while a fresh submission propagates.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import structlog
from railway import ErrorCode
from railway.result import Result
from railway.result_failures import ResultFailures

from dgii_ecf.adapters.http_client import NOT_FOUND_MARKER, GatewayHttpClient, is_not_found
from dgii_ecf.adapters.payloads import SummaryInquiryPayload, TrackIdPayload, TrackStatusPayload
from dgii_ecf.config import GatewayEndpoints
from dgii_ecf.domain.models import (
    DocumentType,
    Session,
    SummaryInquiryResult,
    TrackingRecord,
    TrackStatus,
    parse_document_type,
)

log = structlog.get_logger()

_STATUS_BY_SPELLING = {status.value.casefold(): status for status in TrackStatus}

# Numeric `codigo` the authority sends next to (or instead of) `estado`.
_STATUS_BY_CODE = {
    1: TrackStatus.ACCEPTED,
    2: TrackStatus.REJECTED,
    3: TrackStatus.IN_PROCESS,
    4: TrackStatus.CONDITIONAL_ACCEPTED,
}
_NOT_FOUND_CODE = 0


def parse_status(estado: str) -> Result[TrackStatus]:
    """Map an authority status string onto TrackStatus; unknown spellings fail loudly."""
    normalized = " ".join(estado.split()).casefold()
    if normalized in _STATUS_BY_SPELLING:
        return Result.success(_STATUS_BY_SPELLING[normalized])
    if NOT_FOUND_MARKER in normalized:
        return Result.failure(ErrorCode.NOT_FOUND, f"Authority reports: {estado.strip()}")
    return ResultFailures.protocol_error(f"Unrecognized authority status {estado!r}")


def resolve_status(estado: str | None, codigo: int | str | None) -> Result[TrackStatus]:
    """Prefer the status string; fall back to the numeric code."""
    if estado and estado.strip():
        return parse_status(estado)
    code = _as_int(codigo)
    if code in _STATUS_BY_CODE:
        return Result.success(_STATUS_BY_CODE[code])
    if code == _NOT_FOUND_CODE:
        return Result.failure(ErrorCode.NOT_FOUND, "Authority reports the document as not found")
    return ResultFailures.protocol_error(f"Authority answer carries no usable status (codigo={codigo!r})")


class TrackingService:
    """
    Resolve dispositions by trackId, by business key, or by summary inquiry.

    Implements the DispositionTracker port.
    """

    def __init__(self, http: GatewayHttpClient, endpoints: GatewayEndpoints) -> None:
        self._http = http
        self._endpoints = endpoints

    async def status_by_track_id(self, session: Session, track_id: str) -> Result[TrackingRecord]:
        """Current disposition of one submission."""
        answer = await _required("trackId", track_id).flat_map_async(
            lambda tid: self._http.get_json(
                self._endpoints.track_status,
                params={"trackid": tid},
                session=session,
            )
        )
        return (
            answer.flat_map(lambda body: _tracking_record(body, track_id.strip()))
            .peek(lambda record: log.info("tracking.status", track_id=record.track_id, status=record.status.value))
        )

    async def statuses_by_business_key(
        self,
        session: Session,
        issuer_tax_id: str,
        encf: str,
    ) -> Result[list[TrackingRecord]]:
        """
        Every trackId the authority holds for an issuer's e-NCF.

        An empty list is a valid answer; "TrackId no encontrado." is NOT_FOUND.
        """
        params = Result.combine(
            _required("issuer tax id", issuer_tax_id),
            _required("e-NCF", encf),
            lambda rnc, ncf: {"rncemisor": rnc, "encf": ncf},
        )
        answer = await params.flat_map_async(
            lambda query: self._http.get_json(
                self._endpoints.track_ids,
                params=query,
                session=session,
                empty=[],
            )
        )
        return (
            answer.flat_map(lambda body: _tracking_records(body, encf.strip()))
            .peek(lambda records: log.info("tracking.statuses", encf=encf, count=len(records)))
        )

    async def inquiry_summary(
        self,
        session: Session,
        issuer_tax_id: str,
        encf: str,
        buyer_tax_id: str,
        security_code: str,
    ) -> Result[SummaryInquiryResult]:
        """
        Disposition, security code and total of a type-32 summary.

        Any other document type is a VALIDATION_ERROR, raised before the call.

        The returned values are the authority's; comparing them with what was
        submitted is left to the caller (SummaryInquiryResult.matches).
        """
        params = Result.combine(
            Result.combine(
                _required("issuer tax id", issuer_tax_id),
                _required("e-NCF", encf).flat_map(_require_summary_encf),
                lambda rnc, ncf: {"RNC_Emisor": rnc, "ENCF": ncf},
            ),
            _required("security code", security_code),
            lambda query, code: {**query, "Cod_Seguridad_eCF": code},
        ).map(lambda query: {**query, "RNC_Comprador": buyer_tax_id.strip()} if buyer_tax_id.strip() else query)
        answer = await params.flat_map_async(
            lambda query: self._http.get_json(
                self._endpoints.summary_inquiry,
                params=query,
                session=session,
            )
        )
        return (
            answer.flat_map(_inquiry_result)
            .peek(lambda result: log.info("tracking.inquiry", encf=encf, status=result.status.value))
        )


# ─────────────────────── Payload → domain ───────────────────────


def _tracking_record(body: Any, requested_track_id: str) -> Result[TrackingRecord]:
    return Result.from_computation(
        lambda: TrackStatusPayload.model_validate(body),
        ErrorCode.PROTOCOL_ERROR,
        "Unexpected track status answer",
    ).flat_map(
        lambda payload: resolve_status(payload.estado, payload.codigo).map(
            lambda status: TrackingRecord(
                track_id=payload.track_id or requested_track_id,
                status=status,
                encf=payload.encf,
                issuer_tax_id=payload.rnc,
                received_at=payload.fecha_recepcion,
                sequence_used=payload.secuencia_utilizada,
                messages=payload.messages(),
            )
        )
    )


def _tracking_records(body: Any, encf: str) -> Result[list[TrackingRecord]]:
    if isinstance(body, Mapping):
        if is_not_found(body):
            return ResultFailures.not_found("trackId for e-NCF", encf)
        return ResultFailures.protocol_error("Expected a list of trackIds")
    if not isinstance(body, list):
        return ResultFailures.protocol_error("Expected a list of trackIds")
    return Result.all_of([_track_id_entry(item, encf) for item in body])


def _track_id_entry(item: Any, encf: str) -> Result[TrackingRecord]:
    return Result.from_computation(
        lambda: TrackIdPayload.model_validate(item),
        ErrorCode.PROTOCOL_ERROR,
        "Unexpected trackId entry",
    ).flat_map(
        lambda payload: parse_status(payload.estado).map(
            lambda status: TrackingRecord(
                track_id=payload.track_id,
                status=status,
                encf=encf,
                received_at=payload.fecha_recepcion,
            )
        )
    )


def _inquiry_result(body: Any) -> Result[SummaryInquiryResult]:
    return Result.from_computation(
        lambda: SummaryInquiryPayload.model_validate(body),
        ErrorCode.PROTOCOL_ERROR,
        "Unexpected summary inquiry answer",
    ).flat_map(
        lambda payload: resolve_status(payload.estado, payload.codigo).map(
            lambda status: SummaryInquiryResult(
                status=status,
                security_code=payload.codigo_seguridad,
                total_amount=payload.monto_total,
                issuer_tax_id=payload.rnc,
                encf=payload.encf,
                sequence_used=payload.secuencia_utilizada,
                messages=payload.messages(),
            )
        )
    )


def _required(name: str, value: str) -> Result[str]:
    return Result.success(value.strip()).ensure(bool, ErrorCode.VALIDATION_ERROR, f"{name} is required")


def _require_summary_encf(encf: str) -> Result[str]:
    return (
        parse_document_type(encf)
        .ensure(
            lambda document_type: document_type is DocumentType.CONSUMER_INVOICE,
            ErrorCode.VALIDATION_ERROR,
            f"Summary inquiry only applies to type-32 documents, got {encf!r}",
        )
        .map(lambda _: encf)
    )


def _as_int(value: int | str | None) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None
