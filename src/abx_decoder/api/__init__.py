"""Public API for ABX decoding and integration adapters."""

from .adapters import (
    ConversionResult,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    list_adapters,
    list_available_adapters,
    to_element_tree,
)
from .decoder import AbxDecoder, decode, decode_file, decode_to_string, is_abx

__all__ = [
    "AbxDecoder",
    "decode",
    "decode_file",
    "decode_to_string",
    "is_abx",
    "ConversionResult",
    "ElementTreeAdapter",
    "IntegrationAdapter",
    "LxmlAdapter",
    "PandasAdapter",
    "get_adapter",
    "list_adapters",
    "list_available_adapters",
    "to_element_tree",
]
