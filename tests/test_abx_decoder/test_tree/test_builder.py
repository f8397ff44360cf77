"""Tests for the ABX token state machine and tree builder."""

from typing import Callable

import pytest

from abx_decoder.binary import DataType, TokenType
from abx_decoder.shared import (
    DecodeResult,
    DecodeStatus,
    DecoderConfig,
    DiagnosticSeverity,
    DuplicateAttributeError,
    ErrorKind,
    ProtocolError,
    TruncatedInputError,
    UnbalancedElementError,
    UnknownDataTypeError,
)
from abx_decoder.tree import AbxTreeBuilder


def _build(data: bytes, **config_values) -> DecodeResult:
    config = DecoderConfig(**config_values) if config_values else None
    return AbxTreeBuilder(config).build(data)


def _assert_failed(result: DecodeResult, error_type: type, kind: ErrorKind) -> None:
    assert result.status is DecodeStatus.FAILED
    assert isinstance(result.error, error_type)
    assert result.error_kind is kind
    assert result.document is None
    assert result.text is None


class TestSuccessfulBuilds:
    """Test well-formed token streams."""

    def test_minimal_document(self, minimal_document: bytes) -> None:
        result = _build(minimal_document)

        assert result.success
        root = result.document.root
        assert root.tag == "root"
        assert root.attributes == {}
        assert root.children == []
        assert root.text == ""
        assert result.document.interned_string_count == 1
        assert result.performance.tokens_decoded == 4
        assert result.performance.elements_built == 1
        assert result.performance.bytes_processed == len(minimal_document)
        assert result.diagnostics == []

    def test_settings_document(self, settings_document: bytes) -> None:
        result = _build(settings_document)

        assert result.success
        document = result.document
        root = document.root
        assert root.tag == "settings"
        assert root.get_attribute("version") == "3"
        assert [child.tag for child in root.children] == ["setting", "setting", "label"]
        assert root.children[0].get_attribute("name") == "wifi"
        assert root.children[0].get_attribute("enabled") == "true"
        assert root.children[1].get_attribute("enabled") == "false"
        assert root.children[2].text == "Device settings"
        assert document.interned_string_count == 8
        assert document.total_elements == 4
        assert document.total_attributes == 5
        assert document.max_depth == 1

    def test_attribute_types_and_order(self, writer) -> None:
        writer.start_document().start_tag("values")
        writer.attr_string("s", "plain")
        writer.attr_interned("i", "shared")
        writer.attr_int("n", -7)
        writer.attr_long("l", 1 << 40)
        writer.attr_float("f", 0.5)
        writer.attr_double("d", 0.1)
        writer.attr_bytes("h", b"\x00\x01\x0f")
        writer.attr_bytes("b", b"Man", base64=True)
        writer.attribute("z", DataType.NULL)
        writer.end_tag("values").end_document()

        root = _build(writer.to_bytes()).document.root

        assert list(root.attributes) == ["s", "i", "n", "l", "f", "d", "h", "b", "z"]
        assert {name: attr.value for name, attr in root.attributes.items()} == {
            "s": "plain",
            "i": "shared",
            "n": "-7",
            "l": "1099511627776",
            "f": "0.5",
            "d": "0.1",
            "h": "00010f",
            "b": "TWFu",
            "z": " ",
        }
        assert root.attributes["h"].data_type is DataType.BYTES_HEX
        assert root.attributes["z"].data_type is DataType.NULL

    def test_interned_names_are_reused(self, writer) -> None:
        writer.start_document().start_tag("list")
        for _ in range(3):
            writer.start_tag("item").attr_interned("kind", "entry").end_tag("item")
        writer.end_tag("list").end_document()

        result = _build(writer.to_bytes())

        assert result.success
        assert result.document.interned_string_count == 4
        assert all(item.get_attribute("kind") == "entry" for item in result.document.root.children)

    def test_text_mutates_live_element(self, writer) -> None:
        writer.start_document().start_tag("root").start_tag("child")
        writer.text("Hello, ").text("world")
        writer.end_tag("child").end_tag("root").end_document()

        root = _build(writer.to_bytes()).document.root

        assert root.children[0].text == "Hello, world"
        assert root.text == ""

    def test_text_after_child_goes_to_parent(self, writer) -> None:
        writer.start_document().start_tag("root").start_tag("child").end_tag("child")
        writer.text("tail").end_tag("root").end_document()

        root = _build(writer.to_bytes()).document.root

        assert root.text == "tail"
        assert len(root.children) == 1

    def test_attribute_after_children_lands_on_open_element(self, writer) -> None:
        writer.start_document().start_tag("root").start_tag("child").end_tag("child")
        writer.attr_bool("late", True).end_tag("root").end_document()

        root = _build(writer.to_bytes()).document.root

        assert root.get_attribute("late") == "true"
        assert root.children[0].attributes == {}

    def test_bytes_after_end_document_are_not_read(self, minimal_document: bytes) -> None:
        result = _build(minimal_document + b"\xff\xff")

        assert result.success
        assert result.performance.bytes_processed == len(minimal_document)

    def test_render_hex_types(self, writer) -> None:
        writer.start_document().start_tag("ids")
        writer.attr_int("uid", 255, hex_tag=True).attr_long("flags", -1, hex_tag=True)
        writer.end_tag("ids").end_document()
        data = writer.to_bytes()

        default_root = _build(data).document.root
        hex_root = _build(data, render_hex_types=True).document.root

        assert default_root.get_attribute("uid") == "255"
        assert default_root.get_attribute("flags") == "-1"
        assert hex_root.get_attribute("uid") == "ff"
        assert hex_root.get_attribute("flags") == "f" * 16

    def test_builder_is_reusable(self, settings_document: bytes) -> None:
        builder = AbxTreeBuilder()

        first = builder.build(settings_document)
        second = builder.build(settings_document)

        assert first.document.to_dict() == second.document.to_dict()
        assert first.document.root is not second.document.root
        assert second.document.interned_string_count == 8

    def test_correlation_id_is_propagated(self, minimal_document: bytes) -> None:
        result = AbxTreeBuilder(correlation_id="req-1").build(minimal_document)
        assert result.correlation_id == "req-1"


class TestRecognitionAndTruncation:
    """Test header recognition and running out of input."""

    @pytest.mark.parametrize("data", [b"", b"ABX", b"<?xml version='1.0'?><a/>"])
    def test_missing_magic_is_not_recognized(self, data: bytes) -> None:
        result = _build(data)

        assert result.status is DecodeStatus.NOT_RECOGNIZED
        assert not result.recognized
        assert result.error is None
        assert result.document is None
        assert result.performance.bytes_processed == 0
        assert result.performance.tokens_decoded == 0

    def test_header_only_is_truncated(self, writer) -> None:
        result = _build(writer.to_bytes())
        _assert_failed(result, TruncatedInputError, ErrorKind.TRUNCATED_INPUT)

    def test_end_after_start_tag_is_unbalanced(self, writer) -> None:
        data = writer.start_document().start_tag("root").to_bytes()
        result = _build(data)

        _assert_failed(result, UnbalancedElementError, ErrorKind.UNBALANCED_ELEMENT)
        assert "1 element(s) still open" in str(result.error)

    def test_no_root_element_is_unbalanced(self, writer) -> None:
        data = writer.start_document().end_document().to_bytes()
        result = _build(data)

        _assert_failed(result, UnbalancedElementError, ErrorKind.UNBALANCED_ELEMENT)

    def test_start_document_only_is_unbalanced(self, writer) -> None:
        result = _build(writer.start_document().to_bytes())
        _assert_failed(result, UnbalancedElementError, ErrorKind.UNBALANCED_ELEMENT)

    def test_missing_end_document_is_truncated(self, writer) -> None:
        data = writer.start_document().start_tag("root").end_tag("root").to_bytes()
        result = _build(data)

        _assert_failed(result, TruncatedInputError, ErrorKind.TRUNCATED_INPUT)
        assert "END_DOCUMENT" in str(result.error)

    def test_truncated_string_payload(self, writer) -> None:
        writer.start_document().token(TokenType.START_TAG, DataType.STRING_INTERNED)
        data = writer.short(-1).short(10).raw(b"ro").to_bytes()

        result = _build(data)

        _assert_failed(result, TruncatedInputError, ErrorKind.TRUNCATED_INPUT)
        assert result.error.requested == 10
        assert result.error.available == 2

    def test_truncated_int_attribute(self, writer) -> None:
        writer.start_document().start_tag("root")
        data = writer.attribute("n", DataType.INT, b"\x00\x01").to_bytes()

        result = _build(data)

        _assert_failed(result, TruncatedInputError, ErrorKind.TRUNCATED_INPUT)

    def test_failure_records_error_diagnostic(self, writer) -> None:
        result = _build(writer.start_document().start_tag("root").to_bytes())

        errors = result.get_diagnostics_by_severity(DiagnosticSeverity.ERROR)
        assert len(errors) == 1
        assert errors[0].component == "abx_tree_builder"
        assert errors[0].details == {"error_kind": "UNBALANCED_ELEMENT"}
        assert result.has_errors()


class TestStateMachineViolations:
    """Test rejection of tokens in invalid states or with invalid data types."""

    def test_second_start_document(self, writer) -> None:
        data = writer.start_document().start_document().to_bytes()
        result = _build(data)

        _assert_failed(result, ProtocolError, ErrorKind.PROTOCOL_ERROR)
        assert result.error.offset == 5

    def test_start_document_with_wrong_data_type(self, writer) -> None:
        data = writer.token(TokenType.START_DOCUMENT, DataType.STRING).to_bytes()
        _assert_failed(_build(data), ProtocolError, ErrorKind.PROTOCOL_ERROR)

    def test_start_tag_before_start_document(self, writer) -> None:
        data = writer.start_tag("root").to_bytes()
        result = _build(data)

        _assert_failed(result, ProtocolError, ErrorKind.PROTOCOL_ERROR)
        assert "START_TAG" in result.error.message

    def test_start_tag_with_wrong_data_type(self, writer) -> None:
        writer.start_document().token(TokenType.START_TAG, DataType.STRING)
        data = writer.string("root").to_bytes()

        _assert_failed(_build(data), ProtocolError, ErrorKind.PROTOCOL_ERROR)

    def test_second_root_element(self, writer) -> None:
        writer.start_document().start_tag("a").end_tag("a").start_tag("b")
        data = writer.end_tag("b").end_document().to_bytes()

        result = _build(data)

        _assert_failed(result, ProtocolError, ErrorKind.PROTOCOL_ERROR)
        assert "outside the root element" in result.error.message

    def test_end_tag_without_open_element(self, writer) -> None:
        data = writer.start_document().end_tag("root").to_bytes()
        result = _build(data)

        _assert_failed(result, ProtocolError, ErrorKind.PROTOCOL_ERROR)
        assert "without an open element" in result.error.message

    def test_end_document_with_open_elements(self, writer) -> None:
        data = writer.start_document().start_tag("root").end_document().to_bytes()
        result = _build(data)

        _assert_failed(result, UnbalancedElementError, ErrorKind.UNBALANCED_ELEMENT)
        assert isinstance(result.error, ProtocolError)

    def test_end_document_before_start_document(self, writer) -> None:
        data = writer.end_document().to_bytes()
        _assert_failed(_build(data), ProtocolError, ErrorKind.PROTOCOL_ERROR)

    def test_text_outside_element(self, writer) -> None:
        data = writer.start_document().text("stray").to_bytes()
        result = _build(data)

        _assert_failed(result, ProtocolError, ErrorKind.PROTOCOL_ERROR)
        assert result.error.message == "TEXT outside of any element"

    def test_attribute_without_element(self, writer) -> None:
        data = writer.start_document().attr_string("a", "1").to_bytes()
        result = _build(data)

        _assert_failed(result, ProtocolError, ErrorKind.PROTOCOL_ERROR)
        assert result.error.message == "ATTRIBUTE without any open element"

    @pytest.mark.parametrize("token_type", [5, 6, 9, 14])
    def test_unsupported_token_type(self, writer, token_type: int) -> None:
        writer.start_document().start_tag("root")
        data = writer.token(token_type, DataType.NULL).to_bytes()

        result = _build(data)

        _assert_failed(result, ProtocolError, ErrorKind.PROTOCOL_ERROR)
        assert f"UNKNOWN({token_type})/NULL" in result.error.message

    def test_unknown_attribute_data_type(self, writer) -> None:
        writer.start_document().start_tag("root")
        data = writer.attribute("x", 14, b"\x00\x00").to_bytes()

        result = _build(data)

        _assert_failed(result, UnknownDataTypeError, ErrorKind.UNKNOWN_DATA_TYPE)
        assert result.error.data_type == 14

    def test_out_of_range_interned_reference(self, writer) -> None:
        writer.start_document().token(TokenType.START_TAG, DataType.STRING_INTERNED)
        data = writer.interned("unused", reference=3).to_bytes()

        result = _build(data)

        _assert_failed(result, ProtocolError, ErrorKind.PROTOCOL_ERROR)
        assert "out of range" in result.error.message

    def test_duplicate_attribute(self, writer) -> None:
        writer.start_document().start_tag("item").attr_string("name", "first")
        offset = len(writer.buffer)
        writer.attr_string("name", "second")
        data = writer.end_tag("item").end_document().to_bytes()

        result = _build(data)

        _assert_failed(result, DuplicateAttributeError, ErrorKind.DUPLICATE_ATTRIBUTE)
        assert result.error.name == "name"
        assert result.error.tag == "item"
        assert result.error.offset == offset

    def test_same_attribute_on_different_elements(self, writer) -> None:
        writer.start_document().start_tag("root").attr_int("id", 1)
        writer.start_tag("child").attr_int("id", 2).end_tag("child")
        data = writer.end_tag("root").end_document().to_bytes()

        assert _build(data).success


class TestEndTagMismatch:
    """Test tolerated and strict handling of mismatched end tags."""

    @pytest.fixture
    def mismatched(self, writer) -> bytes:
        writer.start_document().start_tag("root").start_tag("a").end_tag("b")
        return writer.end_tag("root").end_document().to_bytes()

    def test_mismatch_is_warning_by_default(self, mismatched: bytes) -> None:
        result = _build(mismatched)

        assert result.success
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert "<a> closed by </b>" in warning.message
        assert warning.details == {"open_tag": "a", "end_tag": "b"}
        assert result.document.root.children[0].tag == "a"

    def test_mismatch_fails_in_strict_mode(self, mismatched: bytes) -> None:
        result = _build(mismatched, strict_end_tags=True)

        _assert_failed(result, ProtocolError, ErrorKind.PROTOCOL_ERROR)
        assert "mismatch" in result.error.message


class TestMaxDepth:
    """Test nesting depth handling and the opt-in limit."""

    @staticmethod
    def _nested(make_writer: Callable, depth: int) -> bytes:
        w = make_writer().start_document()
        for level in range(depth):
            w.start_tag(f"e{level}")
        for level in reversed(range(depth)):
            w.end_tag(f"e{level}")
        return w.end_document().to_bytes()

    def test_depth_at_limit_is_accepted(self, make_writer) -> None:
        result = _build(self._nested(make_writer, 3), max_depth=3)

        assert result.success
        assert result.document.max_depth == 2

    def test_depth_beyond_limit_is_rejected(self, make_writer) -> None:
        result = _build(self._nested(make_writer, 4), max_depth=3)

        _assert_failed(result, ProtocolError, ErrorKind.PROTOCOL_ERROR)
        assert "max_depth 3" in result.error.message

    def test_deep_nesting_is_unbounded_by_default(self, make_writer) -> None:
        depth = 3000
        result = _build(self._nested(make_writer, depth))

        assert result.success
        assert result.document.total_elements == depth
        assert result.document.max_depth == depth - 1
        assert result.document.find(f"e{depth - 1}").is_empty


class TestDescribeToken:
    def test_known_and_unknown_nibbles(self) -> None:
        assert AbxTreeBuilder.describe_token(0x32) == "START_TAG/STRING_INTERNED"
        assert AbxTreeBuilder.describe_token(0x0F) == "ATTRIBUTE/UNKNOWN(0)"
