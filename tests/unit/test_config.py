"""
Unit tests for configuration — environment-driven settings and endpoint resolution.

Verifies that nested settings load through the "__" delimiter, that host
URLs are validated, and that every endpoint resolves to the environment's
path segment on the right host.
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from dgii_ecf.config import AppSettings, GatewaySettings
from dgii_ecf.domain.models import Environment


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Run each test from an empty directory with no gateway variables set."""
    monkeypatch.chdir(tmp_path)
    for name in ("GATEWAY__ENVIRONMENT", "GATEWAY__BASE_URL", "KEYSTORE__PATH", "KEYSTORE__PASSWORD", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


class TestGatewayEndpoints:
    """Verify path templates resolve per environment and host."""

    @pytest.mark.parametrize(
        ("environment", "segment"),
        [(Environment.DEV, "testecf"), (Environment.TEST, "certecf"), (Environment.PROD, "ecf")],
    )
    def test_environment_segment_in_every_main_host_url(self, environment: Environment, segment: str) -> None:
        """
        GIVEN gateway settings for an environment
        WHEN endpoints are resolved
        THEN main-host URLs start with https://ecf.dgii.gov.do/<segment>/.
        """
        endpoints = GatewaySettings(environment=environment).endpoints()
        prefix = f"https://ecf.dgii.gov.do/{segment}/"
        for url in (
            endpoints.authentication,
            endpoints.reception,
            endpoints.commercial_approval,
            endpoints.track_status,
            endpoints.track_ids,
            endpoints.directory_by_tax_id,
            endpoints.directory_listing,
        ):
            assert url.startswith(prefix), url
        assert endpoints.environment is environment

    def test_summary_endpoints_use_summary_host(self) -> None:
        """
        GIVEN default settings
        WHEN endpoints are resolved
        THEN RFCE reception and inquiry live on fc.dgii.gov.do.
        """
        endpoints = GatewaySettings().endpoints()
        assert endpoints.summary_reception == "https://fc.dgii.gov.do/testecf/recepcionfc/api/recepcion/ecf"
        assert endpoints.summary_inquiry == "https://fc.dgii.gov.do/testecf/consultarfce/api/Consultas/Consulta"

    def test_seed_urls(self) -> None:
        endpoints = GatewaySettings().endpoints()
        assert endpoints.seed_url() == "https://ecf.dgii.gov.do/testecf/autenticacion/api/autenticacion/semilla"
        assert endpoints.validate_seed_url() == (
            "https://ecf.dgii.gov.do/testecf/autenticacion/api/autenticacion/validarsemilla"
        )

    def test_seed_urls_on_alternate_endpoint(self) -> None:
        """
        GIVEN a buyer-hosted authentication endpoint with a trailing slash
        WHEN seed URLs are built against it
        THEN the default host is not used and no double slash appears.
        """
        endpoints = GatewaySettings().endpoints()
        assert endpoints.seed_url("https://buyer.example.com/fe/autenticacion/") == (
            "https://buyer.example.com/fe/autenticacion/api/autenticacion/semilla"
        )

    def test_hosts_are_both_authority_hosts(self) -> None:
        assert GatewaySettings().endpoints().hosts == frozenset({"ecf.dgii.gov.do", "fc.dgii.gov.do"})

    def test_trailing_slash_on_host_is_dropped(self) -> None:
        endpoints = GatewaySettings(base_url="https://gateway.example.com/").endpoints()
        assert endpoints.reception == "https://gateway.example.com/testecf/recepcion/api/facturaselectronicas"

    def test_non_http_host_rejected(self) -> None:
        with pytest.raises(ValidationError):
            GatewaySettings(base_url="ftp://ecf.dgii.gov.do")


class TestAppSettings:
    """Verify loading from environment variables."""

    def test_defaults(self) -> None:
        settings = AppSettings()
        assert settings.gateway.environment is Environment.DEV
        assert settings.keystore is None
        assert settings.http_timeout_seconds == 60
        assert settings.log_level == "INFO"

    def test_nested_variables(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """
        GIVEN GATEWAY__ENVIRONMENT, KEYSTORE__PATH and KEYSTORE__PASSWORD
        WHEN AppSettings is loaded
        THEN nested fields are populated and the password stays secret.
        """
        monkeypatch.setenv("GATEWAY__ENVIRONMENT", "PROD")
        monkeypatch.setenv("KEYSTORE__PATH", "/secrets/issuer.p12")
        monkeypatch.setenv("KEYSTORE__PASSWORD", "hunter2")
        settings = AppSettings()
        assert settings.gateway.environment is Environment.PROD
        assert str(settings.keystore.path) == "/secrets/issuer.p12"
        assert settings.keystore.password.get_secret_value() == "hunter2"
        assert "hunter2" not in repr(settings)

    def test_unknown_environment_rejected(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("GATEWAY__ENVIRONMENT", "STAGING")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_timeout_must_be_positive(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HTTP_TIMEOUT_SECONDS", "0")
        with pytest.raises(ValidationError):
            AppSettings()
