"""Length-prefixed strings and the interned string table.

Composite reads follow the same contract as :class:`ByteCursor` reads: when
one fails partway, the cursor is moved back to where the read started.
"""

from typing import Iterator, List

from abx_decoder.shared.errors import AbxDecodeError, ProtocolError

from .constants import NEW_INTERNED_STRING
from .cursor import ByteCursor


def read_raw_bytes(cursor: ByteCursor) -> bytes:
    """Read a 16-bit signed length followed by that many bytes.

    A zero or negative length yields no bytes and reads nothing further.
    """
    start = cursor.position
    length = cursor.read_short()
    if length <= 0:
        return b""
    try:
        return cursor.read_bytes(length)
    except AbxDecodeError:
        cursor.seek(start)
        raise


def read_string(
    cursor: ByteCursor, encoding: str = "utf-8", errors: str = "replace"
) -> str:
    """Read a length-prefixed string that is not interned."""
    start = cursor.position
    raw = read_raw_bytes(cursor)
    try:
        return raw.decode(encoding, errors)
    except UnicodeDecodeError as e:
        cursor.seek(start)
        raise ProtocolError(f"Undecodable string bytes: {e.reason}", offset=start) from e


class InternedStringTable:
    """Append-only table of strings referenced by index.

    A reference of ``-1`` introduces a new string, which is read inline and
    appended; any other reference must name an existing entry.
    """

    def __init__(self, encoding: str = "utf-8", errors: str = "replace") -> None:
        self._strings: List[str] = []
        self.encoding = encoding
        self.errors = errors

    def __len__(self) -> int:
        return len(self._strings)

    def __iter__(self) -> Iterator[str]:
        return iter(self._strings)

    def __getitem__(self, index: int) -> str:
        return self._strings[index]

    def resolve(self, cursor: ByteCursor) -> str:
        """Read an interned-string reference and return the string it names."""
        offset = cursor.position
        reference = cursor.read_short()

        if reference == NEW_INTERNED_STRING:
            try:
                value = read_string(cursor, self.encoding, self.errors)
            except AbxDecodeError:
                cursor.seek(offset)
                raise
            self._strings.append(value)
            return value

        if 0 <= reference < len(self._strings):
            return self._strings[reference]

        cursor.seek(offset)
        raise ProtocolError(
            f"Interned string reference {reference} out of range "
            f"(table holds {len(self._strings)} strings)",
            offset=offset,
        )
