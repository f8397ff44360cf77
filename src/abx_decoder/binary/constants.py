"""Protocol constants for the ABX binary XML format."""

from enum import IntEnum
from typing import Optional, Tuple

MAGIC = b"ABX\x00"
MAGIC_LENGTH = len(MAGIC)

# Reference value announcing a new string instead of a table index
NEW_INTERNED_STRING = -1

TOKEN_TYPE_MASK = 0x0F
DATA_TYPE_SHIFT = 4


class TokenType(IntEnum):
    """Token types carried in the low nibble of a token byte."""

    START_DOCUMENT = 0
    END_DOCUMENT = 1
    START_TAG = 2
    END_TAG = 3
    TEXT = 4
    ATTRIBUTE = 15


class DataType(IntEnum):
    """Data-type tags carried in the high nibble of a token byte."""

    NULL = 1
    STRING = 2
    STRING_INTERNED = 3
    BYTES_HEX = 4
    BYTES_BASE64 = 5
    INT = 6
    INT_HEX = 7
    LONG = 8
    LONG_HEX = 9
    FLOAT = 10
    DOUBLE = 11
    BOOLEAN_TRUE = 12
    BOOLEAN_FALSE = 13


def split_token(token: int) -> Tuple[int, int]:
    """Split a token byte into ``(token_type, data_type)`` nibbles."""
    return token & TOKEN_TYPE_MASK, (token >> DATA_TYPE_SHIFT) & TOKEN_TYPE_MASK


def make_token(token_type: int, data_type: int) -> int:
    """Pack a token type and data-type tag into one token byte."""
    return ((data_type & TOKEN_TYPE_MASK) << DATA_TYPE_SHIFT) | (
        token_type & TOKEN_TYPE_MASK
    )


def token_type_name(value: int) -> str:
    try:
        return TokenType(value).name
    except ValueError:
        return f"UNKNOWN({value})"


def data_type_or_none(value: int) -> Optional[DataType]:
    try:
        return DataType(value)
    except ValueError:
        return None
