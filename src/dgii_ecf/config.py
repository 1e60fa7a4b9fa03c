"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables
  - Fall back to .env file
  - Validate types and constraints at startup
  - Keep the keystore passphrase out of source control

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated via env_nested_delimiter="__", so GATEWAY__ENVIRONMENT maps
to gateway.environment, KEYSTORE__PASSWORD to keystore.password, etc.

Gateway paths are configuration, not code: every endpoint is a path template
relative to either the main host or the summary (RFCE) host, with `{env}`
replaced by the environment's URL segment (testecf / certecf / ecf).
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dgii_ecf.domain.models import Environment, url_host

_ENV_FILE = Path(__file__).parent.parent.parent / ".env"


@dataclass(frozen=True, slots=True)
class GatewayEndpoints:
    """Fully resolved endpoint URLs for one environment."""

    environment: Environment
    authentication: str
    seed_path: str
    validate_seed_path: str
    reception: str
    summary_reception: str
    commercial_approval: str
    track_status: str
    track_ids: str
    summary_inquiry: str
    directory_by_tax_id: str
    directory_listing: str

    def seed_url(self, auth_endpoint: str | None = None) -> str:
        return _join(auth_endpoint or self.authentication, self.seed_path)

    def validate_seed_url(self, auth_endpoint: str | None = None) -> str:
        return _join(auth_endpoint or self.authentication, self.validate_seed_path)

    @property
    def hosts(self) -> frozenset[str]:
        """Every host the authority serves this environment from."""
        return frozenset(
            url_host(url)
            for url in (
                self.authentication,
                self.reception,
                self.summary_reception,
                self.commercial_approval,
                self.track_status,
                self.track_ids,
                self.summary_inquiry,
                self.directory_by_tax_id,
                self.directory_listing,
            )
        )


class GatewaySettings(BaseModel):
    """
    Authority gateway hosts and path templates.

    Defaults match the authority's published services; override any path via
    GATEWAY__<FIELD> when the authority moves one.
    """

    environment: Environment = Field(default=Environment.DEV, description="DEV, TEST or PROD")
    base_url: str = Field(default="https://ecf.dgii.gov.do", description="Main e-CF host")
    summary_base_url: str = Field(default="https://fc.dgii.gov.do", description="RFCE (summary) host")

    authentication_path: str = "/{env}/autenticacion"
    seed_path: str = "/api/autenticacion/semilla"
    validate_seed_path: str = "/api/autenticacion/validarsemilla"
    reception_path: str = "/{env}/recepcion/api/facturaselectronicas"
    summary_reception_path: str = "/{env}/recepcionfc/api/recepcion/ecf"
    commercial_approval_path: str = "/{env}/aprobacioncomercial/api/aprobacioncomercial"
    track_status_path: str = "/{env}/consultaresultado/api/consultas/estado"
    track_ids_path: str = "/{env}/consultatrackids/api/trackids/consulta"
    summary_inquiry_path: str = "/{env}/consultarfce/api/Consultas/Consulta"
    directory_by_tax_id_path: str = "/{env}/consultadirectorio/api/consultas/obtenerdirectorioporrnc"
    directory_listing_path: str = "/{env}/consultadirectorio/api/consultas/listado"

    @field_validator("base_url", "summary_base_url")
    @classmethod
    def validate_https(cls, value: str) -> str:
        """Hosts must be absolute http(s) URLs; a trailing slash is dropped."""
        value = value.strip().rstrip("/")
        if not value.startswith(("https://", "http://")):
            raise ValueError(f"Gateway host must be an http(s) URL, got {value!r}")
        return value

    def endpoints(self) -> GatewayEndpoints:
        """Resolve every path template for the configured environment."""
        segment = self.environment.path_segment

        def main(path: str) -> str:
            return self.base_url + path.format(env=segment)

        def summary(path: str) -> str:
            return self.summary_base_url + path.format(env=segment)

        return GatewayEndpoints(
            environment=self.environment,
            authentication=main(self.authentication_path),
            seed_path=self.seed_path,
            validate_seed_path=self.validate_seed_path,
            reception=main(self.reception_path),
            summary_reception=summary(self.summary_reception_path),
            commercial_approval=main(self.commercial_approval_path),
            track_status=main(self.track_status_path),
            track_ids=main(self.track_ids_path),
            summary_inquiry=summary(self.summary_inquiry_path),
            directory_by_tax_id=main(self.directory_by_tax_id_path),
            directory_listing=main(self.directory_listing_path),
        )


class KeystoreSettings(BaseModel):
    """PKCS#12 keystore holding the issuer's signing certificate."""

    path: Path = Field(description="Path to the .p12 / .pfx file")
    password: SecretStr = Field(description="Keystore passphrase")


class AppSettings(BaseSettings):
    """
    Root application settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    gateway: GatewaySettings = Field(default_factory=lambda: GatewaySettings())
    keystore: KeystoreSettings | None = None
    issuer_tax_id: str | None = Field(default=None, description="Default RNC of the issuer")

    http_timeout_seconds: int = Field(default=60, ge=1)
    log_level: str = Field(default="INFO")


def _join(endpoint: str, path: str) -> str:
    return endpoint.rstrip("/") + "/" + path.lstrip("/")
