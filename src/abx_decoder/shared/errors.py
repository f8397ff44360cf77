"""Exception hierarchy for ABX decoding.

Every failure the decoder can detect is raised as a subclass of
:class:`AbxDecodeError` at the point where it is found, and converted once into
a failed :class:`~abx_decoder.shared.result.DecodeResult` at the API boundary.
"""

from enum import Enum, auto
from typing import Optional


class ErrorKind(Enum):
    """Classification of decode failures carried by results."""

    TRUNCATED_INPUT = auto()     # Fixed-size read ran past the end of input
    PROTOCOL_ERROR = auto()      # Invalid token, data type or state transition
    UNKNOWN_DATA_TYPE = auto()   # Data-type tag outside the known enumeration
    DUPLICATE_ATTRIBUTE = auto() # Same attribute name twice on one element
    UNBALANCED_ELEMENT = auto()  # Document ended with elements still open


class AbxDecodeError(Exception):
    """Base class for all ABX decoding failures."""

    kind = ErrorKind.PROTOCOL_ERROR

    def __init__(self, message: str, offset: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.offset = offset

    def __str__(self) -> str:
        if self.offset is None:
            return self.message
        return f"{self.message} (at offset {self.offset})"


class TruncatedInputError(AbxDecodeError):
    """Raised when a read needs more bytes than the buffer holds."""

    kind = ErrorKind.TRUNCATED_INPUT

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        requested: int = 0,
        available: int = 0,
    ) -> None:
        super().__init__(message, offset)
        self.requested = requested
        self.available = available


class ProtocolError(AbxDecodeError):
    """Raised on an invalid token/data-type combination or state violation."""

    kind = ErrorKind.PROTOCOL_ERROR


class UnknownDataTypeError(ProtocolError):
    """Raised when a value carries a data-type tag the decoder does not know."""

    kind = ErrorKind.UNKNOWN_DATA_TYPE

    def __init__(self, data_type: int, offset: Optional[int] = None) -> None:
        super().__init__(f"Unknown data type {data_type:#x}", offset)
        self.data_type = data_type


class DuplicateAttributeError(ProtocolError):
    """Raised when an element declares the same attribute name twice."""

    kind = ErrorKind.DUPLICATE_ATTRIBUTE

    def __init__(self, name: str, tag: str, offset: Optional[int] = None) -> None:
        super().__init__(
            f"Attribute '{name}' already present on element <{tag}>", offset
        )
        self.name = name
        self.tag = tag


class UnbalancedElementError(ProtocolError):
    """Raised when the document ends without every element being closed."""

    kind = ErrorKind.UNBALANCED_ELEMENT
