"""
Transformer adapter — structured document model → XML via lxml.

Implements the DocumentTransformer port. The model is the JSON shape the
authority documents for each e-CF: a single root key whose value is a nested
mapping, e.g. {"ECF": {"Encabezado": {"IdDoc": {"eNCF": "E31..."}}}}.

Mapping rules:
  - mapping  → child elements, in insertion order
  - list     → the element repeated once per item (e.g. Item lines)
  - None     → element omitted
  - bool     → "true" / "false"
  - anything else → str(value) as text

Deterministic and free of I/O, so the same model always yields the same bytes
and therefore the same digest once signed.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from lxml import etree


class LxmlDocumentTransformer:
    """Serialize a document model to an XML string (UTF-8 declaration included)."""

    def json2xml(self, document: Mapping[str, Any]) -> str:
        if len(document) != 1:
            raise ValueError(
                f"Document model must have exactly one root key, got {list(document)!r}"
            )
        (root_name, body), = document.items()
        root = etree.Element(root_name)
        _fill(root, body)
        return etree.tostring(root, xml_declaration=True, encoding="utf-8").decode("utf-8")


def _fill(element: etree._Element, value: Any) -> None:
    if isinstance(value, Mapping):
        for name, child_value in value.items():
            _append(element, name, child_value)
    elif value is not None:
        element.text = _text(value)


def _append(parent: etree._Element, name: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, list):
        for item in value:
            _append(parent, name, item)
        return
    child = etree.SubElement(parent, name)
    _fill(child, value)


def _text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)
