"""Sequential big-endian reader over an immutable byte buffer."""

import struct
from typing import Union

from abx_decoder.shared.errors import TruncatedInputError

BufferType = Union[bytes, bytearray, memoryview]

_SHORT = struct.Struct(">h")
_INT32 = struct.Struct(">i")
_UINT32 = struct.Struct(">I")
_FLOAT32 = struct.Struct(">f")
_FLOAT64 = struct.Struct(">d")


class ByteCursor:
    """Reads fixed-size big-endian fields from a byte buffer.

    Every read either returns the requested field and advances the position,
    or raises :class:`TruncatedInputError` and leaves the position where it was.
    """

    def __init__(self, data: BufferType, position: int = 0) -> None:
        self._data = bytes(data)
        if not (0 <= position <= len(self._data)):
            raise ValueError("Cursor position out of range")
        self._position = position

    @property
    def position(self) -> int:
        return self._position

    @property
    def size(self) -> int:
        return len(self._data)

    @property
    def remaining(self) -> int:
        return len(self._data) - self._position

    @property
    def at_end(self) -> bool:
        return self._position >= len(self._data)

    def _require(self, n: int) -> None:
        if n < 0:
            raise ValueError("Read size must be >= 0")
        if n > self.remaining:
            raise TruncatedInputError(
                f"Needed {n} bytes but only {self.remaining} remain",
                offset=self._position,
                requested=n,
                available=self.remaining,
            )

    def peek_bytes(self, n: int) -> bytes:
        """Return the next ``n`` bytes without advancing."""
        self._require(n)
        return self._data[self._position:self._position + n]

    def read_bytes(self, n: int) -> bytes:
        """Return the next ``n`` bytes and advance past them."""
        chunk = self.peek_bytes(n)
        self._position += n
        return chunk

    def skip(self, n: int) -> None:
        self._require(n)
        self._position += n

    def read_byte(self) -> int:
        """Read one unsigned byte."""
        return self.read_bytes(1)[0]

    def read_short(self) -> int:
        """Read a signed 16-bit integer."""
        return _SHORT.unpack(self.read_bytes(2))[0]

    def read_int32(self) -> int:
        """Read a signed 32-bit integer."""
        return _INT32.unpack(self.read_bytes(4))[0]

    def read_int64(self) -> int:
        """Read a signed 64-bit integer stored as two 32-bit halves, high first."""
        raw = self.read_bytes(8)
        high = _INT32.unpack(raw[:4])[0]
        low = _UINT32.unpack(raw[4:])[0]
        return (high << 32) | low

    def read_float32(self) -> float:
        return _FLOAT32.unpack(self.read_bytes(4))[0]

    def read_float64(self) -> float:
        return _FLOAT64.unpack(self.read_bytes(8))[0]

    def seek(self, position: int) -> None:
        """Move to an absolute ``position``, typically one saved earlier."""
        if not (0 <= position <= len(self._data)):
            raise ValueError("Cursor position out of range")
        self._position = position
