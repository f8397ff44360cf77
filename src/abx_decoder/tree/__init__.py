"""Tree building and rendering for ABX decoding.

This module turns an ABX token stream into an element tree and renders that
tree back into XML text.

Key Components:
    AbxTreeBuilder: Token state machine that builds the element tree
    DecodeContext: Per-call decoding state (cursor, string table, element stack)
    XMLDocument: Decoded document with its root element and statistics
    XMLElement: Element with ordered attributes, children and text
    Attribute: Decoded attribute value and its data type
    XMLSerializer: Renders a document or element subtree as XML text
"""

from .builder import AbxTreeBuilder, DecodeContext, DocumentState
from .model import Attribute, XMLDocument, XMLElement
from .serializer import XML_DECLARATION, XMLSerializer, serialize

__all__ = [
    "AbxTreeBuilder",
    "DecodeContext",
    "DocumentState",
    "Attribute",
    "XMLDocument",
    "XMLElement",
    "XML_DECLARATION",
    "XMLSerializer",
    "serialize",
]
