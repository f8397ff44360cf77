"""Public decoding API with progressive disclosure.

Module-level functions cover the common cases; :class:`AbxDecoder` carries a
reusable configuration for callers that decode many buffers the same way.

Examples:
    Decoding a buffer:
    >>> result = decode(data)
    >>> result.success
    True
    >>> print(result.text)
    <settings version="3">
    ...

    Checking the format first:
    >>> is_abx(b"<?xml version='1.0'?>")
    False
"""

from pathlib import Path
from typing import Optional, Union

from abx_decoder.binary import is_abx
from abx_decoder.shared import (
    AbxConfig,
    DecodeResult,
    get_logger,
)
from abx_decoder.tree import AbxTreeBuilder, XMLSerializer

BufferType = Union[bytes, bytearray, memoryview]
PathType = Union[str, Path]


class AbxDecoder:
    """Configured decoder turning ABX buffers into XML text.

    Instances hold only their configuration. Each call builds its own
    decoding state, so an instance can be reused freely.
    """

    def __init__(
        self,
        config: Optional[AbxConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or AbxConfig.default()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "abx_decoder")

    def decode(
        self, data: BufferType, correlation_id: Optional[str] = None
    ) -> DecodeResult:
        """Decode an in-memory ABX buffer and render it as XML text.

        Args:
            data: Complete ABX buffer including the magic header
            correlation_id: Overrides the decoder's correlation ID for this call

        Returns:
            DecodeResult whose ``text`` holds the XML on success
        """
        if not isinstance(data, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"ABX input must be bytes-like, not {type(data).__name__}"
            )

        call_id = correlation_id or self.correlation_id
        builder = AbxTreeBuilder(self.config.decoder, call_id)
        result = builder.build(bytes(data))

        if result.success and result.document is not None:
            serializer = XMLSerializer(self.config.serializer, call_id)
            result.text = serializer.serialize(result.document)
            result.diagnostics.extend(serializer.diagnostics)
        elif not result.recognized:
            self.logger.info("Input is not ABX", extra={"size": len(data)})

        return result

    def decode_file(
        self, file_path: PathType, correlation_id: Optional[str] = None
    ) -> DecodeResult:
        """Read a file and decode its contents.

        Raises:
            OSError: If the file cannot be read
        """
        path = Path(file_path)
        self.logger.debug("Reading ABX file", extra={"path": str(path)})
        return self.decode(path.read_bytes(), correlation_id)


def decode(
    data: BufferType,
    config: Optional[AbxConfig] = None,
    correlation_id: Optional[str] = None,
) -> DecodeResult:
    """Decode an ABX buffer into XML text.

    Args:
        data: Complete ABX buffer including the magic header
        config: Optional configuration (default output format when omitted)
        correlation_id: Optional correlation ID for request tracking

    Returns:
        DecodeResult with status SUCCESS, NOT_RECOGNIZED or FAILED
    """
    return AbxDecoder(config, correlation_id).decode(data)


def decode_file(
    file_path: PathType,
    config: Optional[AbxConfig] = None,
    correlation_id: Optional[str] = None,
) -> DecodeResult:
    """Decode the ABX file at ``file_path`` into XML text."""
    return AbxDecoder(config, correlation_id).decode_file(file_path)


def decode_to_string(data: BufferType, config: Optional[AbxConfig] = None) -> str:
    """Decode and return the XML text, raising on failure.

    Raises:
        AbxDecodeError: If decoding fails
        ValueError: If the input is not ABX
    """
    result = decode(data, config)
    if not result.recognized:
        raise ValueError("Input is not an ABX document")
    result.raise_for_error()
    return result.text or ""
