"""Token decoder and tree builder for ABX documents.

This module implements the state machine that consumes ABX tokens from a byte
cursor, enforces the protocol's structural grammar and assembles the element
tree with an explicit open-element stack. Decoding is all-or-nothing: any
fatal condition aborts the call and the caller receives a failed result
carrying the error, never a partial tree.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, Dict, List, Optional

from abx_decoder.binary import (
    ByteCursor,
    DataType,
    InternedStringTable,
    TokenType,
    ValueCodec,
    is_abx,
    read_string,
    split_token,
)
from abx_decoder.binary.constants import (
    MAGIC_LENGTH,
    data_type_or_none,
    token_type_name,
)
from abx_decoder.shared import (
    AbxDecodeError,
    DecodeResult,
    DecodeStatus,
    DecoderConfig,
    DiagnosticSeverity,
    DuplicateAttributeError,
    ProtocolError,
    TruncatedInputError,
    UnbalancedElementError,
    get_logger,
)

from .model import Attribute, XMLDocument, XMLElement

MS_PER_SECOND = 1000


class DocumentState(Enum):
    """Document-level states of the token state machine."""

    NOT_STARTED = auto()
    DOCUMENT_OPEN = auto()
    DOCUMENT_CLOSED = auto()


@dataclass
class DecodeContext:
    """Mutable state of a single decode call.

    Created fresh for every call and discarded afterwards; nothing in it is
    shared between calls.
    """

    cursor: ByteCursor
    strings: InternedStringTable
    codec: ValueCodec
    state: DocumentState = DocumentState.NOT_STARTED
    stack: List[XMLElement] = field(default_factory=list)
    root: Optional[XMLElement] = None
    root_closed: bool = False
    tokens_decoded: int = 0
    elements_built: int = 0
    token_offset: int = 0

    @property
    def document_open(self) -> bool:
        return self.state is DocumentState.DOCUMENT_OPEN

    @property
    def top(self) -> XMLElement:
        return self.stack[-1]


class AbxTreeBuilder:
    """Builds an :class:`XMLDocument` from an ABX byte buffer.

    The builder holds only configuration; every call to :meth:`build` works
    on its own :class:`DecodeContext`, so one builder can decode any number of
    buffers without state leaking between them.
    """

    def __init__(
        self,
        config: Optional[DecoderConfig] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Decoder configuration (defaults used when omitted)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or DecoderConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "abx_tree_builder")

        self._handlers: Dict[int, Callable[[DecodeContext, int, DecodeResult], None]] = {
            TokenType.START_DOCUMENT: self._handle_start_document,
            TokenType.END_DOCUMENT: self._handle_end_document,
            TokenType.START_TAG: self._handle_start_tag,
            TokenType.END_TAG: self._handle_end_tag,
            TokenType.TEXT: self._handle_text,
            TokenType.ATTRIBUTE: self._handle_attribute,
        }

    def new_context(self, data: bytes) -> DecodeContext:
        """Create the per-call decode context positioned after the magic header."""
        cursor = ByteCursor(data, position=MAGIC_LENGTH)
        strings = InternedStringTable(
            self.config.string_encoding, self.config.encoding_errors
        )
        codec = ValueCodec(strings, render_hex_types=self.config.render_hex_types)
        return DecodeContext(cursor=cursor, strings=strings, codec=codec)

    def build(self, data: bytes) -> DecodeResult:
        """Decode an ABX buffer into a document tree.

        Args:
            data: Complete ABX buffer including the magic header

        Returns:
            DecodeResult with status SUCCESS and a document, NOT_RECOGNIZED
            when the magic header is absent, or FAILED carrying the error
        """
        start_time = time.time()
        result = DecodeResult(correlation_id=self.correlation_id)

        if not is_abx(data):
            self.logger.debug("Input lacks ABX magic header", extra={"size": len(data)})
            result.status = DecodeStatus.NOT_RECOGNIZED
            return result

        context = self.new_context(data)
        self.logger.info("Starting ABX decode", extra={"size": len(data)})

        try:
            root = self._run(context, result)
        except AbxDecodeError as e:
            self.logger.warning(
                f"ABX decode failed: {e}",
                extra={"error_kind": e.kind.name, "offset": e.offset},
            )
            result.status = DecodeStatus.FAILED
            result.error = e
            result.add_diagnostic(
                DiagnosticSeverity.ERROR,
                str(e),
                "abx_tree_builder",
                offset=e.offset,
                details={"error_kind": e.kind.name},
            )
        else:
            result.document = XMLDocument(
                root=root, interned_string_count=len(context.strings)
            )

        performance = result.performance
        performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        performance.bytes_processed = context.cursor.position
        performance.tokens_decoded = context.tokens_decoded
        performance.elements_built = context.elements_built
        performance.interned_strings = len(context.strings)

        if result.success:
            self.logger.info(
                "ABX decode complete",
                extra={
                    "tokens": context.tokens_decoded,
                    "elements": context.elements_built,
                    "processing_time_ms": performance.processing_time_ms,
                },
            )
        return result

    def _run(self, context: DecodeContext, result: DecodeResult) -> XMLElement:
        """Consume tokens until END_DOCUMENT and return the finished root."""
        cursor = context.cursor

        while context.state is not DocumentState.DOCUMENT_CLOSED:
            if cursor.at_end:
                self._handle_end_of_input(context)

            context.token_offset = cursor.position
            token = cursor.read_byte()
            token_type, data_type = split_token(token)
            context.tokens_decoded += 1

            handler = self._handlers.get(token_type)
            if handler is None:
                raise ProtocolError(
                    f"Unsupported token {self.describe_token(token)}",
                    offset=context.token_offset,
                )
            handler(context, data_type, result)

        if not context.root_closed or context.root is None:
            raise UnbalancedElementError(
                "Document ended without a closed root element",
                offset=context.token_offset,
            )
        return context.root

    def _handle_end_of_input(self, context: DecodeContext) -> None:
        offset = context.cursor.position
        if context.state is DocumentState.NOT_STARTED:
            raise TruncatedInputError(
                "Input ended before START_DOCUMENT", offset=offset, requested=1
            )
        if context.stack or not context.root_closed:
            raise UnbalancedElementError(
                f"Input ended with {len(context.stack)} element(s) still open",
                offset=offset,
            )
        raise TruncatedInputError(
            "Input ended before END_DOCUMENT", offset=offset, requested=1
        )

    def _require(
        self, context: DecodeContext, condition: bool, message: str
    ) -> None:
        if not condition:
            raise ProtocolError(message, offset=context.token_offset)

    def _handle_start_document(
        self, context: DecodeContext, data_type: int, result: DecodeResult
    ) -> None:
        self._require(
            context,
            data_type == DataType.NULL and context.state is DocumentState.NOT_STARTED,
            "START_DOCUMENT with an invalid data type or in an invalid state",
        )
        context.state = DocumentState.DOCUMENT_OPEN

    def _handle_end_document(
        self, context: DecodeContext, data_type: int, result: DecodeResult
    ) -> None:
        self._require(
            context,
            data_type == DataType.NULL and context.document_open,
            "END_DOCUMENT with an invalid data type or before START_DOCUMENT",
        )
        if context.stack:
            raise UnbalancedElementError(
                f"END_DOCUMENT with {len(context.stack)} element(s) still open",
                offset=context.token_offset,
            )
        context.state = DocumentState.DOCUMENT_CLOSED

    def _handle_start_tag(
        self, context: DecodeContext, data_type: int, result: DecodeResult
    ) -> None:
        self._require(
            context,
            data_type == DataType.STRING_INTERNED
            and context.document_open
            and not context.root_closed,
            "START_TAG with an invalid data type or outside the root element",
        )
        max_depth = self.config.max_depth
        if max_depth is not None and len(context.stack) >= max_depth:
            raise ProtocolError(
                f"Element nesting exceeds max_depth {max_depth}",
                offset=context.token_offset,
            )

        element = XMLElement(tag=context.strings.resolve(context.cursor))
        if context.stack:
            context.top.add_child(element)
        else:
            context.root = element
        context.stack.append(element)
        context.elements_built += 1

        self.logger.debug(
            f"START_TAG <{element.tag}>", extra={"depth": len(context.stack)}
        )

    def _handle_end_tag(
        self, context: DecodeContext, data_type: int, result: DecodeResult
    ) -> None:
        self._require(
            context,
            data_type == DataType.STRING_INTERNED
            and context.document_open
            and not context.root_closed
            and bool(context.stack),
            "END_TAG with an invalid data type or without an open element",
        )

        tag = context.strings.resolve(context.cursor)
        element = context.top
        if tag != element.tag:
            message = f"START_TAG and END_TAG mismatch: <{element.tag}> closed by </{tag}>"
            if self.config.strict_end_tags:
                raise ProtocolError(message, offset=context.token_offset)
            self.logger.warning(message, extra={"offset": context.token_offset})
            result.add_diagnostic(
                DiagnosticSeverity.WARNING,
                message,
                "abx_tree_builder",
                offset=context.token_offset,
                details={"open_tag": element.tag, "end_tag": tag},
            )

        context.stack.pop()
        if not context.stack:
            context.root_closed = True

    def _handle_text(
        self, context: DecodeContext, data_type: int, result: DecodeResult
    ) -> None:
        self._require(context, bool(context.stack), "TEXT outside of any element")
        text = read_string(
            context.cursor, self.config.string_encoding, self.config.encoding_errors
        )
        context.top.append_text(text)

    def _handle_attribute(
        self, context: DecodeContext, data_type: int, result: DecodeResult
    ) -> None:
        self._require(
            context, bool(context.stack), "ATTRIBUTE without any open element"
        )

        element = context.top
        name = context.strings.resolve(context.cursor)
        if name in element.attributes:
            raise DuplicateAttributeError(name, element.tag, offset=context.token_offset)

        value = context.codec.decode(data_type, context.cursor)
        element.attributes[name] = Attribute(DataType(data_type), value)

    @staticmethod
    def describe_token(token: int) -> str:
        """Human-readable name for a token byte, for debugging output."""
        token_type, data_type = split_token(token)
        known = data_type_or_none(data_type)
        data_name = known.name if known is not None else f"UNKNOWN({data_type})"
        return f"{token_type_name(token_type)}/{data_name}"
