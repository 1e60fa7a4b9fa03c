"""
Wire payloads — pydantic models of the authority's JSON bodies.

Field names follow the authority's camelCase through aliases; unknown fields
are ignored so additive changes on the authority side do not break parsing.
Each payload converts itself into the matching domain value; status strings
are NOT converted here (see tracking.parse_status, which fails loudly on an
unknown spelling).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, field_validator

from dgii_ecf.domain.models import AuthorityMessage, DirectoryEntry


def _reject_bool(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError(f"codigo must be numeric, got {value!r}")
    return value


# pydantic would otherwise read `true` as 1.
AuthorityCode = Annotated[int | None, BeforeValidator(_reject_bool)]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)


class AuthorityMessagePayload(_Payload):
    """One entry of a `mensajes` list."""

    valor: str = ""
    codigo: AuthorityCode = None

    def to_domain(self) -> AuthorityMessage:
        return AuthorityMessage(text=self.valor, code=self.codigo)


class _WithMessages(_Payload):
    mensajes: list[AuthorityMessagePayload] = Field(default_factory=list)

    @field_validator("mensajes", mode="before")
    @classmethod
    def accept_plain_strings(cls, value: Any) -> Any:
        """The authority sometimes sends bare strings instead of {valor, codigo}."""
        if value is None:
            return []
        if isinstance(value, list):
            return [{"valor": item} if isinstance(item, str) else item for item in value]
        return value

    def messages(self) -> tuple[AuthorityMessage, ...]:
        return tuple(message.to_domain() for message in self.mensajes)


class TokenPayload(_Payload):
    """Answer of the seed-validation endpoint."""

    token: str = ""
    expira: str | None = None
    expedido: str | None = None


class ReceptionPayload(_Payload):
    """Answer of the invoice / commercial-approval ingestion endpoints."""

    track_id: str | None = Field(default=None, alias="trackId")
    error: str | None = None
    mensaje: str | None = None


class SummaryReceptionPayload(_WithMessages):
    """Answer of the RFCE (summary) ingestion endpoint."""

    codigo: AuthorityCode = None
    estado: str | None = None
    encf: str | None = None
    track_id: str | None = Field(default=None, alias="trackId")
    secuencia_utilizada: bool | None = Field(default=None, alias="secuenciaUtilizada")


class TrackStatusPayload(_WithMessages):
    """Answer of the status-by-trackId endpoint."""

    track_id: str | None = Field(default=None, alias="trackId")
    codigo: Annotated[str | int | None, BeforeValidator(_reject_bool)] = None
    estado: str | None = None
    rnc: str | None = None
    encf: str | None = None
    secuencia_utilizada: bool | None = Field(default=None, alias="secuenciaUtilizada")
    fecha_recepcion: str | None = Field(default=None, alias="fechaRecepcion")


class TrackIdPayload(_Payload):
    """One entry of the statuses-by-business-key list."""

    track_id: str = Field(alias="trackId")
    estado: str
    fecha_recepcion: str | None = Field(default=None, alias="fechaRecepcion")


class SummaryInquiryPayload(_WithMessages):
    """Answer of the RFCE inquiry endpoint."""

    rnc: str | None = None
    encf: str | None = Field(default=None, alias="eNCF")
    codigo: AuthorityCode = None
    estado: str | None = None
    codigo_seguridad: str | None = Field(default=None, alias="codigoSeguridad")
    monto_total: Decimal | None = Field(default=None, alias="montoTotal")
    secuencia_utilizada: bool | None = Field(default=None, alias="secuenciaUtilizada")


class DirectoryEntryPayload(_Payload):
    """One counterparty in the directory."""

    nombre: str = ""
    rnc: str
    url_recepcion: str | None = Field(default=None, alias="urlRecepcion")
    url_aceptacion: str | None = Field(default=None, alias="urlAceptacion")
    url_opcional: str | None = Field(default=None, alias="urlOpcional")

    def to_domain(self) -> DirectoryEntry:
        return DirectoryEntry(
            name=self.nombre,
            tax_id=self.rnc,
            acceptance_url=self.url_aceptacion,
            reception_url=self.url_recepcion,
            optional_auth_url=self.url_opcional,
        )
