"""Binary layer for ABX decoding.

This module provides the low-level pieces the tree builder drives: the
big-endian byte cursor, protocol constants, the interned string table and the
typed value codec.
"""

from .constants import (
    MAGIC,
    DataType,
    TokenType,
    make_token,
    split_token,
)
from .cursor import ByteCursor
from .header import is_abx
from .interning import InternedStringTable, read_raw_bytes, read_string
from .values import EMPTY_VALUE_PLACEHOLDER, ValueCodec, format_float32

__all__ = [
    "MAGIC",
    "DataType",
    "TokenType",
    "make_token",
    "split_token",
    "ByteCursor",
    "is_abx",
    "InternedStringTable",
    "read_raw_bytes",
    "read_string",
    "EMPTY_VALUE_PLACEHOLDER",
    "ValueCodec",
    "format_float32",
]
