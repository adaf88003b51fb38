"""Tests for the JSON value codec."""

from __future__ import annotations

from decimal import Decimal

import pytest

from provider_wire.errors import AttributePathError, DecodeShapeError, DecodeValueError, UnknownTypeError
from provider_wire.json_codec import UnmarshalOpts, value_from_json, value_to_json
from provider_wire.path import AttributeName, AttributePath
from provider_wire.type_system import (
    Bool,
    DynamicPseudoType,
    List,
    Map,
    Number,
    Object,
    Set,
    String,
    Tuple,
)
from provider_wire.value import UNKNOWN, Value


class TestWireForms:
    def test_string(self) -> None:
        assert value_to_json(Value(String, "hello"), String) == b'"hello"'
        assert value_from_json(b'"hello"', String) == Value(String, "hello")

    def test_dynamic_list(self) -> None:
        typ = List(DynamicPseudoType)
        value = Value(typ, [Value(Bool, True), Value(Bool, False)])
        encoded = value_to_json(value, typ)
        assert encoded == b'[{"type":"bool","value":true},{"type":"bool","value":false}]'

        decoded = value_from_json(encoded, typ)
        assert decoded.type == List(Bool)
        assert [child.type for _, child in decoded.children()] == [Bool, Bool]

    def test_object_keys_sorted(self) -> None:
        typ = Object({"b": Number, "a": String})
        value = Value(typ, {"b": Value(Number, 2), "a": Value(String, "x")})
        assert value_to_json(value, typ) == b'{"a":"x","b":2}'

    def test_nulls(self) -> None:
        typ = Object({"tags": Set(String), "extra": DynamicPseudoType})
        value = Value(typ, {"tags": Value(Set(String)), "extra": Value(DynamicPseudoType)})
        assert value_to_json(value, typ) == b'{"extra":null,"tags":null}'

    def test_tuple(self) -> None:
        typ = Tuple([String, Number])
        assert value_to_json(Value(typ, [Value(String, "a"), Value(Number, 1)]), typ) == b'["a",1]'

    def test_non_ascii_kept(self) -> None:
        assert value_to_json(Value(String, "ü"), String) == '"ü"'.encode("utf-8")


class TestNumbers:
    def test_precision_preserved(self) -> None:
        text = b"0.1000000000000000055511151231257827"
        decoded = value_from_json(text, Number)
        assert decoded.as_(Decimal) == Decimal(text.decode())
        assert value_to_json(decoded, Number) == text

    def test_exponent_written_out(self) -> None:
        assert value_to_json(Value(Number, Decimal("1E+3")), Number) == b"1000"

    def test_infinity_cannot_be_written(self) -> None:
        with pytest.raises(AttributePathError, match="infinite"):
            value_to_json(Value(Number, Decimal("Infinity")), Number)

    def test_numeric_string_accepted(self) -> None:
        assert value_from_json(b'"42"', Number) == Value(Number, 42)

    @pytest.mark.parametrize("data", [b'"abc"', b'"NaN"'])
    def test_bad_numeric_string(self, data: bytes) -> None:
        with pytest.raises(DecodeValueError, match="as number"):
            value_from_json(data, Number)

    def test_nan_literal_rejected(self) -> None:
        with pytest.raises(DecodeValueError, match="error decoding JSON"):
            value_from_json(b"NaN", Number)

    def test_bool_is_not_a_number(self) -> None:
        with pytest.raises(DecodeShapeError, match="sent as Number"):
            value_from_json(b"true", Number)


class TestCoercion:
    @pytest.mark.parametrize(
        "data, expected",
        [(b"12.50", "12.50"), (b"true", "true"), (b"false", "false"), (b"-3", "-3")],
    )
    def test_string_from_scalars(self, data: bytes, expected: str) -> None:
        decoded = value_from_json(data, String)
        assert decoded == Value(String, expected)
        assert type(decoded.payload) is str

    @pytest.mark.parametrize(
        "data, expected",
        [(b"true", True), (b'"true"', True), (b'"1"', True), (b"1", True),
         (b"false", False), (b'"false"', False), (b'"0"', False), (b"0", False)],
    )
    def test_bool_forms(self, data: bytes, expected: bool) -> None:
        assert value_from_json(data, Bool) == Value(Bool, expected)

    @pytest.mark.parametrize("data", [b'"yes"', b"2"])
    def test_bad_bool(self, data: bytes) -> None:
        with pytest.raises(DecodeValueError):
            value_from_json(data, Bool)

    def test_string_from_object_rejected(self) -> None:
        with pytest.raises(DecodeShapeError, match="sent as String"):
            value_from_json(b"{}", String)


class TestObjects:
    def test_absent_attribute_is_typed_null(self) -> None:
        typ = Object({"a": String, "b": Number})
        decoded = value_from_json(b'{"a":"x"}', typ)
        assert decoded == Value(typ, {"a": Value(String, "x"), "b": Value(Number)})
        assert decoded.apply_path_step(AttributeName("b")).type == Number

    def test_undefined_attribute_rejected(self) -> None:
        with pytest.raises(DecodeShapeError, match="unsupported attribute 'c'") as excinfo:
            value_from_json(b'{"a":"x","c":1}', Object({"a": String}))
        assert excinfo.value.path == AttributePath()

    def test_undefined_attribute_dropped_when_asked(self, log_messages: list[str]) -> None:
        typ = Object({"a": String})
        decoded = value_from_json(b'{"a":"x","c":1}', typ, UnmarshalOpts(ignore_undefined_attributes=True))
        assert decoded == Value(typ, {"a": Value(String, "x")})
        assert any("'c'" in message for message in log_messages)

    def test_absent_dynamic_attribute_is_terminal_null(self) -> None:
        typ = Object({"extra": DynamicPseudoType})
        decoded = value_from_json(b"{}", typ)
        extra = decoded.children()[0][1]
        assert extra.type == DynamicPseudoType
        assert extra.is_null()


class TestDynamic:
    def test_missing_value_key(self) -> None:
        with pytest.raises(DecodeShapeError, match="missing value"):
            value_from_json(b'{"type":"bool"}', DynamicPseudoType)

    def test_missing_type_key(self) -> None:
        with pytest.raises(DecodeShapeError, match="missing type"):
            value_from_json(b'{"value":true}', DynamicPseudoType)

    def test_extra_key(self) -> None:
        with pytest.raises(DecodeShapeError, match="invalid key 'other'"):
            value_from_json(b'{"type":"bool","value":true,"other":1}', DynamicPseudoType)

    def test_bad_type(self) -> None:
        with pytest.raises(UnknownTypeError):
            value_from_json(b'{"type":"float","value":1}', DynamicPseudoType)

    def test_map_of_dynamic_derives_element_type(self) -> None:
        decoded = value_from_json(b'{"a":{"type":"number","value":1}}', Map(DynamicPseudoType))
        assert decoded.type == Map(Number)


class TestErrors:
    def test_invalid_json(self) -> None:
        with pytest.raises(DecodeValueError, match="error decoding JSON"):
            value_from_json(b"{", String)

    def test_shape_error_path(self) -> None:
        typ = Object({"ports": List(Number)})
        with pytest.raises(DecodeShapeError, match="expected array") as excinfo:
            value_from_json(b'{"ports":{"http":80}}', typ)
        assert excinfo.value.path == AttributePath().with_attribute_name("ports")

    def test_tuple_arity(self) -> None:
        with pytest.raises(DecodeShapeError, match="expected 2 tuple elements"):
            value_from_json(b'["a"]', Tuple([String, Bool]))

    def test_unknown_values_have_no_json_form(self) -> None:
        typ = List(String)
        value = Value(typ, [Value(String, "a"), Value(String, UNKNOWN)])
        with pytest.raises(AttributePathError, match="unknown") as excinfo:
            value_to_json(value, typ)
        assert excinfo.value.path == AttributePath().with_element_key_int(1)


class TestInvalidText:
    """Lone surrogate escapes parse as JSON but are not UTF-8 text."""

    def test_string_rejected_at_its_path(self) -> None:
        typ = Object({"names": List(String)})
        with pytest.raises(DecodeValueError, match="not valid UTF-8") as excinfo:
            value_from_json(b'{"names":["ok","\\ud800"]}', typ)
        assert excinfo.value.path == AttributePath().with_attribute_name("names").with_element_key_int(1)

    def test_map_key_rejected(self) -> None:
        with pytest.raises(DecodeValueError, match="map key"):
            value_from_json(b'{"\\udc00":"x"}', Map(String))

    def test_paired_surrogates_accepted(self) -> None:
        assert value_from_json(b'"\\ud83d\\ude00"', String) == Value(String, "\U0001F600")

    def test_encoding_reports_path(self) -> None:
        typ = List(String)
        value = Value(typ, [Value(String, "\ud800")])
        with pytest.raises(AttributePathError, match="not valid UTF-8") as excinfo:
            value_to_json(value, typ)
        assert excinfo.value.path == AttributePath().with_element_key_int(0)


def test_roundtrip_nested() -> None:
    typ = Object(
        {
            "name": String,
            "size": Number,
            "tags": Set(String),
            "labels": Map(Bool),
            "pair": Tuple([String, Number]),
            "extra": DynamicPseudoType,
        }
    )
    value = Value(
        typ,
        {
            "name": Value(String, "web"),
            "size": Value(Number, Decimal("12345678901234567890.123")),
            "tags": Value(Set(String), [Value(String, "b"), Value(String, "a")]),
            "labels": Value(Map(Bool), {"on": Value(Bool, True)}),
            "pair": Value(Tuple([String, Number]), [Value(String, "k"), Value(Number, 0)]),
            "extra": Value(List(String), [Value(String, "x")]),
        },
    )
    assert value_from_json(value_to_json(value, typ), typ) == value
