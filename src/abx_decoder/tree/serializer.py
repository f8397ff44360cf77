"""Rendering of decoded ABX trees as XML text.

Reserved XML characters are emitted verbatim unless escaping is switched on in
:class:`SerializerConfig`; ABX producers may store text that is not valid XML
character data and the default output mirrors it unchanged.
"""

from typing import List, Optional, Tuple, Union
from xml.sax.saxutils import escape

from abx_decoder.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    SerializerConfig,
    get_logger,
)

from .model import XMLDocument, XMLElement

XML_DECLARATION = "<?xml version='1.0' encoding='UTF-8' standalone='yes' ?>"

_ATTRIBUTE_ENTITIES = {'"': "&quot;"}


class XMLSerializer:
    """Walks an element tree and renders it as XML text.

    Elements carrying both text and children are a structural error: they are
    reported as diagnostics and left out of the output, while the rest of the
    tree is still rendered.
    """

    def __init__(
        self,
        config: Optional[SerializerConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or SerializerConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "xml_serializer")
        self.diagnostics: List[DiagnosticEntry] = []

    def serialize(self, document: XMLDocument) -> str:
        """Render a whole document, optionally preceded by the XML declaration."""
        self.diagnostics = []
        parts: List[str] = []
        if self.config.include_declaration:
            parts.append(XML_DECLARATION)
            parts.append("\n")
        self._render(document.root, parts, 0)
        return "".join(parts)

    def serialize_element(self, element: XMLElement) -> str:
        """Render a single element subtree."""
        self.diagnostics = []
        parts: List[str] = []
        self._render(element, parts, 0)
        return "".join(parts)

    def _render(self, root: XMLElement, parts: List[str], depth: int) -> None:
        # Items are elements still to open or closing tags still to emit
        pending: List[Union[str, Tuple[XMLElement, int]]] = [(root, depth)]
        while pending:
            item = pending.pop()
            if isinstance(item, str):
                parts.append(item)
                continue

            element, level = item
            if element.has_text and element.has_children:
                self._report_mixed(element, level)
                continue

            indent = " " * (self.config.indent * level)
            newline = "\n" if level > depth else ""
            parts.append(indent)
            parts.append(f"<{element.tag}")
            for name, attribute in element.attributes.items():
                parts.append(f' {name}="{self._attribute_text(attribute.value)}"')

            if element.has_text:
                parts.append(f">{self._text(element.text)}</{element.tag}>{newline}")
            elif element.has_children:
                parts.append(">\n")
                pending.append(f"{indent}</{element.tag}>{newline}")
                pending.extend((child, level + 1) for child in reversed(element.children))
            else:
                parts.append(f"/>{newline}")

    def _report_mixed(self, element: XMLElement, depth: int) -> None:
        message = f"Element <{element.tag}> has both text and child elements"
        self.logger.warning(message, extra={"tag": element.tag, "depth": depth})
        self.diagnostics.append(
            DiagnosticEntry(
                severity=DiagnosticSeverity.WARNING,
                message=message,
                component="xml_serializer",
                details={"tag": element.tag, "depth": depth},
                correlation_id=self.correlation_id,
            )
        )

    def _attribute_text(self, value: str) -> str:
        trimmed = value.strip(" ") or value
        if self.config.escape_special_chars:
            return escape(trimmed, _ATTRIBUTE_ENTITIES)
        return trimmed

    def _text(self, text: str) -> str:
        if self.config.escape_special_chars:
            return escape(text)
        return text


def serialize(
    document: XMLDocument, config: Optional[SerializerConfig] = None
) -> str:
    """Render ``document`` with a one-off serializer."""
    return XMLSerializer(config).serialize(document)
