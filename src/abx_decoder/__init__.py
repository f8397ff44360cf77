"""ABX Decoder.

Decodes Android binary XML ("ABX") documents into an element tree and renders
that tree as XML text.

Progressive API Disclosure:
- Level 1: Simple functions - is_abx(), decode(), decode_file()
- Level 2: Configured decoder - AbxDecoder with AbxConfig
- Level 3: Building blocks - AbxTreeBuilder, XMLSerializer, adapters
"""

__version__ = "0.1.0"
__author__ = "ABX Decoder Team"

from .api import AbxDecoder, decode, decode_file, decode_to_string, is_abx
from .shared.config import AbxConfig, DecoderConfig, SerializerConfig
from .shared.errors import (
    AbxDecodeError,
    DuplicateAttributeError,
    ErrorKind,
    ProtocolError,
    TruncatedInputError,
    UnbalancedElementError,
    UnknownDataTypeError,
)
from .shared.result import DecodeResult, DecodeStatus
from .tree import Attribute, XMLDocument, XMLElement

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "is_abx",
    "decode",
    "decode_file",
    "decode_to_string",

    # Level 2: Configured decoder
    "AbxDecoder",
    "AbxConfig",
    "DecoderConfig",
    "SerializerConfig",

    # Result objects and data structures
    "DecodeResult",
    "DecodeStatus",
    "XMLDocument",
    "XMLElement",
    "Attribute",

    # Errors
    "AbxDecodeError",
    "DuplicateAttributeError",
    "ErrorKind",
    "ProtocolError",
    "TruncatedInputError",
    "UnbalancedElementError",
    "UnknownDataTypeError",
]
