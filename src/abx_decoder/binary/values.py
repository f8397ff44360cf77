"""Decoding of type-tagged attribute values into canonical text.

Each data-type tag determines both how many payload bytes follow and how the
payload is rendered:

* NULL and the booleans carry no payload.
* INT/INT_HEX and LONG/LONG_HEX carry 32- and 64-bit signed integers,
  rendered as decimal unless hex rendering is switched on.
* FLOAT and DOUBLE carry IEEE-754 values.
* STRING carries raw length-prefixed text; STRING_INTERNED an interning
  reference.
* BYTES_HEX and BYTES_BASE64 carry a length-prefixed blob.

An empty rendering is replaced by a single space so that an attribute which is
present but empty stays distinguishable from an absent one.
"""

import base64
import math
import struct
from typing import Callable, Dict

from abx_decoder.shared.errors import UnknownDataTypeError

from .constants import DataType
from .cursor import ByteCursor
from .interning import InternedStringTable, read_raw_bytes, read_string

EMPTY_VALUE_PLACEHOLDER = " "

_FLOAT32 = struct.Struct(">f")
# Nine significant digits always round-trip a 32-bit float
_FLOAT32_MAX_DIGITS = 9


def format_float32(value: float) -> str:
    """Render a 32-bit float with the fewest digits that round-trip it."""
    if math.isnan(value) or math.isinf(value):
        return repr(value)

    packed = _FLOAT32.pack(value)
    for digits in range(1, _FLOAT32_MAX_DIGITS + 1):
        candidate = float(f"{value:.{digits}g}")
        try:
            if _FLOAT32.pack(candidate) == packed:
                return repr(candidate)
        except OverflowError:
            # Rounded up past the largest finite float32
            continue
    return repr(value)


def format_float64(value: float) -> str:
    return repr(value)


def format_hex(value: int, bits: int) -> str:
    """Lowercase hex digits of ``value`` as a ``bits``-wide two's complement."""
    return format(value & ((1 << bits) - 1), "x")


class ValueCodec:
    """Reads a typed value payload from a cursor and renders it as text."""

    def __init__(
        self,
        strings: InternedStringTable,
        render_hex_types: bool = False,
    ) -> None:
        self.strings = strings
        self.render_hex_types = render_hex_types
        self._readers: Dict[DataType, Callable[[ByteCursor], str]] = {
            DataType.NULL: lambda cursor: "",
            DataType.BOOLEAN_TRUE: lambda cursor: "true",
            DataType.BOOLEAN_FALSE: lambda cursor: "false",
            DataType.INT: self._read_int,
            DataType.INT_HEX: self._read_int_hex,
            DataType.LONG: self._read_long,
            DataType.LONG_HEX: self._read_long_hex,
            DataType.FLOAT: lambda cursor: format_float32(cursor.read_float32()),
            DataType.DOUBLE: lambda cursor: format_float64(cursor.read_float64()),
            DataType.STRING: self._read_string,
            DataType.STRING_INTERNED: self.strings.resolve,
            DataType.BYTES_HEX: lambda cursor: read_raw_bytes(cursor).hex(),
            DataType.BYTES_BASE64: self._read_base64,
        }

    def decode_raw(self, data_type: int, cursor: ByteCursor) -> str:
        """Decode a payload without substituting the empty placeholder."""
        try:
            reader = self._readers[DataType(data_type)]
        except ValueError:
            raise UnknownDataTypeError(data_type, offset=cursor.position) from None
        return reader(cursor)

    def decode(self, data_type: int, cursor: ByteCursor) -> str:
        """Decode a payload into attribute text, never returning ``""``."""
        text = self.decode_raw(data_type, cursor)
        return text if text else EMPTY_VALUE_PLACEHOLDER

    def _read_int(self, cursor: ByteCursor) -> str:
        return str(cursor.read_int32())

    def _read_int_hex(self, cursor: ByteCursor) -> str:
        value = cursor.read_int32()
        return format_hex(value, 32) if self.render_hex_types else str(value)

    def _read_long(self, cursor: ByteCursor) -> str:
        return str(cursor.read_int64())

    def _read_long_hex(self, cursor: ByteCursor) -> str:
        value = cursor.read_int64()
        return format_hex(value, 64) if self.render_hex_types else str(value)

    def _read_string(self, cursor: ByteCursor) -> str:
        return read_string(cursor, self.strings.encoding, self.strings.errors)

    @staticmethod
    def _read_base64(cursor: ByteCursor) -> str:
        return base64.b64encode(read_raw_bytes(cursor)).decode("ascii")
