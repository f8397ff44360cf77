"""Recognition of the ABX magic header."""

from typing import Union

from .constants import MAGIC, MAGIC_LENGTH


def is_abx(data: Union[bytes, bytearray, memoryview]) -> bool:
    """Return True if ``data`` starts with the ``ABX\\0`` magic header."""
    return len(data) >= MAGIC_LENGTH and bytes(data[:MAGIC_LENGTH]) == MAGIC
