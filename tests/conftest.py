"""
Shared test fixtures and helpers for the dgii-ecf test suite.

Provides a freshly generated signing identity (RSA-2048 key + self-signed
certificate, also packed as a PKCS#12 keystore), sample documents for each
signing root, and gateway endpoints resolved for the DEV environment.

Nothing here talks to the network; HTTP is mocked per test with respx.
"""

from __future__ import annotations

import datetime

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import pkcs12
from cryptography.x509.oid import NameOID

from dgii_ecf.config import GatewayEndpoints, GatewaySettings
from dgii_ecf.domain.models import CredentialBundle, Environment, Session

ISSUER_TAX_ID = "131880681"
INVOICE_ENCF = "E310000000001"
SUMMARY_ENCF = "E320000000001"
KEYSTORE_PASSWORD = "s3cret"
TOKEN = "eyJhbGciOiJIUzI1NiJ9.test-token"

# The authority's own published directory entry in the test environment.
DGII_OPTIONAL_AUTH_URL = "https://ecf.dgii.gov.do/Testecf/autenticacion"
DGII_DIRECTORY_ENTRY = {
    "nombre": "DGII",
    "rnc": ISSUER_TAX_ID,
    "urlAceptacion": "https://ecf.dgii.gov.do/testecf/emisorreceptor",
    "urlRecepcion": "https://ecf.dgii.gov.do/testecf/emisorreceptor",
    "urlOpcional": DGII_OPTIONAL_AUTH_URL,
}

SEED_XML = (
    '<?xml version="1.0" encoding="utf-8"?>'
    '<SemillaModel xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance" '
    'xmlns:xsd="http://www.w3.org/2001/XMLSchema">'
    "<valor>mfiXxKq0qzN8wPcQ3nJ5dFZ0qk8=</valor>"
    "<fecha>2024-05-01T10:00:00.0000000-04:00</fecha>"
    "</SemillaModel>"
)

INVOICE_XML = (
    '<?xml version="1.0" encoding="utf-8"?>'
    "<ECF><Encabezado><Version>1.0</Version>"
    f"<IdDoc><TipoeCF>31</TipoeCF><eNCF>{INVOICE_ENCF}</eNCF></IdDoc>"
    f"<Emisor><RNCEmisor>{ISSUER_TAX_ID}</RNCEmisor></Emisor>"
    "<Totales><MontoTotal>1180.00</MontoTotal></Totales>"
    "</Encabezado></ECF>"
)

SUMMARY_XML = (
    '<?xml version="1.0" encoding="utf-8"?>'
    "<RFCE><Encabezado><Version>1.0</Version>"
    f"<IdDoc><TipoeCF>32</TipoeCF><eNCF>{SUMMARY_ENCF}</eNCF></IdDoc>"
    f"<Emisor><RNCEmisor>{ISSUER_TAX_ID}</RNCEmisor></Emisor>"
    "<Totales><MontoTotal>250.00</MontoTotal></Totales>"
    "<CodigoSeguridadeCF>a1B2c3</CodigoSeguridadeCF>"
    "</Encabezado></RFCE>"
)


def self_signed_identity() -> tuple[rsa.RSAPrivateKey, x509.Certificate]:
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([
        x509.NameAttribute(NameOID.COUNTRY_NAME, "DO"),
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "Empresa de Prueba SRL"),
        x509.NameAttribute(NameOID.COMMON_NAME, "Firmante de Prueba"),
    ])
    now = datetime.datetime.now(datetime.UTC)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=365))
        .sign(key, hashes.SHA256())
    )
    return key, certificate


@pytest.fixture(scope="session")
def identity() -> tuple[rsa.RSAPrivateKey, x509.Certificate]:
    """One key pair for the whole run; RSA key generation is slow."""
    return self_signed_identity()


@pytest.fixture()
def credentials(identity: tuple[rsa.RSAPrivateKey, x509.Certificate]) -> CredentialBundle:
    key, certificate = identity
    return CredentialBundle(private_key=key, certificate=certificate)


@pytest.fixture()
def incomplete_credentials(identity: tuple[rsa.RSAPrivateKey, x509.Certificate]) -> CredentialBundle:
    """A bundle whose private key could not be extracted."""
    return CredentialBundle(private_key=None, certificate=identity[1])


@pytest.fixture(scope="session")
def keystore_bytes(identity: tuple[rsa.RSAPrivateKey, x509.Certificate]) -> bytes:
    key, certificate = identity
    return pkcs12.serialize_key_and_certificates(
        name=b"firmante",
        key=key,
        cert=certificate,
        cas=None,
        encryption_algorithm=serialization.BestAvailableEncryption(KEYSTORE_PASSWORD.encode()),
    )


@pytest.fixture()
def endpoints() -> GatewayEndpoints:
    """DEV endpoints on the authority's default hosts."""
    return GatewaySettings(environment=Environment.DEV).endpoints()


@pytest.fixture()
def session(endpoints: GatewayEndpoints) -> Session:
    return Session(
        token=TOKEN,
        issuing_endpoint=endpoints.authentication,
        environment=Environment.DEV,
        issued_at="2024-05-01T14:00:00Z",
        expires_at="2024-05-01T15:00:00Z",
        hosts=endpoints.hosts,
    )
