"""
Keystore adapter — PKCS#12 extraction via cryptography (PyCA).

Implements the KeystoreReader port. The authority issues signing identities as
.p12 files protected by a passphrase; this reader decrypts one and returns a
CredentialBundle.

A bundle lacking its key or certificate is reported as CREDENTIAL_ERROR here,
and the orchestrator checks again before every signing or handshake, so a
partially extracted identity never reaches the network.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from cryptography.hazmat.primitives.serialization import pkcs12
from railway import ErrorCode
from railway.result import Result

from dgii_ecf.domain.models import CredentialBundle

log = structlog.get_logger()


class Pkcs12KeystoreReader:
    """
    Read a PKCS#12 keystore into a CredentialBundle.

    Implements the KeystoreReader port.
    """

    def __init__(self, password: str) -> None:
        self._password = password

    def read(self, path: Path) -> Result[CredentialBundle]:
        """
        Load and decrypt the keystore at `path`.

        Returns CREDENTIAL_ERROR when the file is missing, the passphrase is
        wrong, or the keystore lacks a key or certificate.
        """
        return (
            Result.from_computation(
                lambda: Path(path).read_bytes(),
                ErrorCode.CREDENTIAL_ERROR,
                f"Keystore not readable: {path}",
            )
            .flat_map(self.read_bytes)
            .peek(lambda bundle: log.info(
                "keystore.loaded",
                path=str(path),
                subject=bundle.certificate.subject.rfc4514_string() if bundle.certificate else None,
            ))
        )

    def read_bytes(self, data: bytes) -> Result[CredentialBundle]:
        """Decrypt an in-memory PKCS#12 blob."""
        return Result.from_computation(
            lambda: pkcs12.load_key_and_certificates(data, self._password.encode("utf-8")),
            ErrorCode.CREDENTIAL_ERROR,
            "Keystore could not be decrypted (wrong passphrase or corrupt file)",
        ).flat_map(
            lambda parts: CredentialBundle(
                private_key=parts[0],
                certificate=parts[1],
                additional_certificates=tuple(parts[2] or ()),
            ).require_complete()
        )
