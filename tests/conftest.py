"""Shared fixtures for ABX decoder tests.

ABX inputs are crafted with :class:`AbxWriter`, a minimal test-only encoder
that emits raw tokens so tests can also produce malformed streams.
"""

import struct
from typing import Callable, Dict, Optional

import pytest

from abx_decoder.binary import MAGIC, DataType, TokenType, make_token


class AbxWriter:
    """Builds ABX byte streams token by token."""

    def __init__(self, magic: bytes = MAGIC) -> None:
        self.buffer = bytearray(magic)
        self._interned: Dict[str, int] = {}

    def raw(self, data: bytes) -> "AbxWriter":
        self.buffer += data
        return self

    def token(self, token_type: int, data_type: int) -> "AbxWriter":
        self.buffer.append(make_token(token_type, data_type))
        return self

    def short(self, value: int) -> "AbxWriter":
        self.buffer += struct.pack(">h", value)
        return self

    def string(self, value: str) -> "AbxWriter":
        encoded = value.encode("utf-8")
        return self.short(len(encoded)).raw(encoded)

    def interned(self, value: str, reference: Optional[int] = None) -> "AbxWriter":
        """Write an interned string, reusing the table entry when one exists."""
        if reference is not None:
            return self.short(reference)
        if value in self._interned:
            return self.short(self._interned[value])
        self._interned[value] = len(self._interned)
        return self.short(-1).string(value)

    def start_document(self) -> "AbxWriter":
        return self.token(TokenType.START_DOCUMENT, DataType.NULL)

    def end_document(self) -> "AbxWriter":
        return self.token(TokenType.END_DOCUMENT, DataType.NULL)

    def start_tag(self, name: str) -> "AbxWriter":
        return self.token(TokenType.START_TAG, DataType.STRING_INTERNED).interned(name)

    def end_tag(self, name: str) -> "AbxWriter":
        return self.token(TokenType.END_TAG, DataType.STRING_INTERNED).interned(name)

    def text(self, value: str) -> "AbxWriter":
        return self.token(TokenType.TEXT, DataType.STRING).string(value)

    def attribute(self, name: str, data_type: int, payload: bytes = b"") -> "AbxWriter":
        """Write an attribute token, its interned name and a raw value payload."""
        return self.token(TokenType.ATTRIBUTE, data_type).interned(name).raw(payload)

    def attr_string(self, name: str, value: str) -> "AbxWriter":
        encoded = value.encode("utf-8")
        return self.attribute(name, DataType.STRING, struct.pack(">h", len(encoded)) + encoded)

    def attr_interned(self, name: str, value: str) -> "AbxWriter":
        self.token(TokenType.ATTRIBUTE, DataType.STRING_INTERNED).interned(name)
        return self.interned(value)

    def attr_int(self, name: str, value: int, hex_tag: bool = False) -> "AbxWriter":
        data_type = DataType.INT_HEX if hex_tag else DataType.INT
        return self.attribute(name, data_type, struct.pack(">i", value))

    def attr_long(self, name: str, value: int, hex_tag: bool = False) -> "AbxWriter":
        data_type = DataType.LONG_HEX if hex_tag else DataType.LONG
        return self.attribute(name, data_type, struct.pack(">q", value))

    def attr_float(self, name: str, value: float) -> "AbxWriter":
        return self.attribute(name, DataType.FLOAT, struct.pack(">f", value))

    def attr_double(self, name: str, value: float) -> "AbxWriter":
        return self.attribute(name, DataType.DOUBLE, struct.pack(">d", value))

    def attr_bool(self, name: str, value: bool) -> "AbxWriter":
        return self.attribute(
            name, DataType.BOOLEAN_TRUE if value else DataType.BOOLEAN_FALSE
        )

    def attr_bytes(self, name: str, value: bytes, base64: bool = False) -> "AbxWriter":
        data_type = DataType.BYTES_BASE64 if base64 else DataType.BYTES_HEX
        return self.attribute(name, data_type, struct.pack(">h", len(value)) + value)

    def to_bytes(self) -> bytes:
        return bytes(self.buffer)


@pytest.fixture
def writer() -> AbxWriter:
    """Fresh ABX writer with the magic header already written."""
    return AbxWriter()


@pytest.fixture
def make_writer() -> Callable[..., AbxWriter]:
    """Factory for additional writers, optionally with a custom header."""
    return AbxWriter


@pytest.fixture
def minimal_document(writer: AbxWriter) -> bytes:
    """``<root/>`` encoded as ABX."""
    return (
        writer.start_document()
        .start_tag("root")
        .end_tag("root")
        .end_document()
        .to_bytes()
    )


@pytest.fixture
def settings_document(make_writer: Callable[..., AbxWriter]) -> bytes:
    """A small settings-style document exercising most value types."""
    w = make_writer()
    w.start_document()
    w.start_tag("settings").attr_int("version", 3)
    w.start_tag("setting").attr_interned("name", "wifi").attr_bool("enabled", True)
    w.end_tag("setting")
    w.start_tag("setting").attr_interned("name", "bluetooth").attr_bool("enabled", False)
    w.end_tag("setting")
    w.start_tag("label").text("Device settings").end_tag("label")
    w.end_tag("settings")
    w.end_document()
    return w.to_bytes()
