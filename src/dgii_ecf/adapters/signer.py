"""
Signer adapter — enveloped XMLDSig via signxml + lxml.

Implements the DocumentSigner port with the profile the authority validates:
  - enveloped signature, appended as the last child of the root element
  - RSA-SHA256 signature, SHA-256 digest
  - inclusive canonicalization (C14N 1.0)
  - default (unprefixed) xmldsig namespace
  - signing certificate in KeyInfo/X509Data

Pipeline:
  xml str
    → lxml parse (no entity resolution, no network)
    → anchor check: root local name == root_element_name
    → signxml XMLSigner.sign(root, key, cert)
    → exactly-one-Signature check
    → UTF-8 serialization with XML declaration

Pure apart from the CredentialBundle; never touches the network.
"""

from __future__ import annotations

import structlog
from lxml import etree
from railway import ErrorCode
from railway.result import Result
from railway.result_failures import ResultFailures
from signxml import XMLSigner, methods
from signxml.algorithms import CanonicalizationMethod, DigestAlgorithm, SignatureMethod

from dgii_ecf.domain.models import CredentialBundle

log = structlog.get_logger()

DS_NAMESPACE = "http://www.w3.org/2000/09/xmldsig#"
_SIGNATURE_TAG = f"{{{DS_NAMESPACE}}}Signature"

_PARSER = etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=False)


class XmlDocumentSigner:
    """
    Sign XML documents with the bundle's private key and certificate.

    Implements the DocumentSigner port.
    """

    def __init__(self, credentials: CredentialBundle) -> None:
        self._credentials = credentials

    def sign(self, xml: str, root_element_name: str) -> Result[str]:
        """
        Return the enveloped-signed serialization of `xml`.

        SIGNING_ERROR when the document is not well-formed, its root is not
        `root_element_name`, it is already signed, or signxml fails.
        CREDENTIAL_ERROR when the bundle is incomplete.
        """
        return (
            self._credentials.require_complete()
            .flat_map(lambda _: _parse(xml))
            .flat_map(lambda root: _check_anchor(root, root_element_name))
            .flat_map(self._sign_root)
            .flat_map(_check_single_signature)
            .map(_serialize)
            .peek(lambda _: log.debug("document.signed", root=root_element_name))
        )

    def _sign_root(self, root: etree._Element) -> Result[etree._Element]:
        def compute() -> etree._Element:
            signer = XMLSigner(
                method=methods.enveloped,
                signature_algorithm=SignatureMethod.RSA_SHA256,
                digest_algorithm=DigestAlgorithm.SHA256,
                c14n_algorithm=CanonicalizationMethod.CANONICAL_XML_1_0,
            )
            signer.namespaces = {None: DS_NAMESPACE}
            return signer.sign(
                root,
                key=self._credentials.private_key,
                cert=self._credentials.certificate_pem(),
            )

        return Result.from_computation(compute, ErrorCode.SIGNING_ERROR, "XML signature computation failed")


def _parse(xml: str) -> Result[etree._Element]:
    return Result.from_computation(
        lambda: etree.fromstring(xml.encode("utf-8"), _PARSER),
        ErrorCode.SIGNING_ERROR,
        "Document is not well-formed XML",
    )


def _check_anchor(root: etree._Element, root_element_name: str) -> Result[etree._Element]:
    local_name = etree.QName(root).localname
    if local_name != root_element_name:
        return ResultFailures.signing_error(
            f"Root element {root_element_name!r} not found (document root is {local_name!r})"
        )
    if root.find(_SIGNATURE_TAG) is not None:
        return ResultFailures.signing_error(f"Element {root_element_name!r} already carries a signature")
    return Result.success(root)


def _check_single_signature(signed_root: etree._Element) -> Result[etree._Element]:
    count = len(signed_root.findall(_SIGNATURE_TAG))
    if count != 1:
        return ResultFailures.signing_error(f"Expected exactly one Signature block, found {count}")
    return Result.success(signed_root)


def _serialize(signed_root: etree._Element) -> str:
    return etree.tostring(signed_root, xml_declaration=True, encoding="utf-8").decode("utf-8")
