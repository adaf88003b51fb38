"""Tests for Value construction, predicates and conversion."""

from __future__ import annotations

from decimal import Decimal

import pytest

from provider_wire.errors import InvalidStepError, ProviderWireError, TypeMismatchError
from provider_wire.path import AttributeName, ElementKeyInt, ElementKeyString, ElementKeyValue
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
from provider_wire.value import UNKNOWN, Value, new_value, type_from_elements, validate_value


# ============================================================================
# Construction
# ============================================================================


class TestConstruction:
    def test_primitives(self) -> None:
        assert Value(String, "hello").payload == "hello"
        assert Value(Bool, False).payload is False
        assert Value(Number, 3).payload == Decimal(3)

    def test_float_keeps_shortest_repr(self) -> None:
        assert Value(Number, 0.1).payload == Decimal("0.1")

    def test_null_and_unknown_for_every_type(self) -> None:
        for typ in (String, List(Bool), Object({"a": String}), DynamicPseudoType):
            assert Value(typ).is_null()
            assert not Value(typ, UNKNOWN).is_known()

    def test_bool_is_not_a_number(self) -> None:
        with pytest.raises(TypeMismatchError, match="bool as Number"):
            Value(Number, True)

    def test_nan_rejected(self) -> None:
        with pytest.raises(TypeMismatchError, match="NaN"):
            Value(Number, float("nan"))

    def test_wrong_primitive_payload(self) -> None:
        with pytest.raises(TypeMismatchError):
            Value(String, 3)

    def test_list_children_must_match_element_type(self) -> None:
        with pytest.raises(TypeMismatchError, match="can't use Number as String") as excinfo:
            Value(List(String), [Value(String, "a"), Value(Number, 1)])
        assert excinfo.value.path.steps == (ElementKeyInt(1),)

    def test_tuple_arity(self) -> None:
        with pytest.raises(TypeMismatchError, match="tuple of 2 elements"):
            Value(Tuple([String, Number]), [Value(String, "a")])

    def test_object_requires_every_attribute(self) -> None:
        with pytest.raises(TypeMismatchError, match="missing attribute value"):
            Value(Object({"a": String, "b": Number}), {"a": Value(String, "x")})

    def test_object_rejects_extra_attribute(self) -> None:
        with pytest.raises(TypeMismatchError, match="unsupported attribute 'c'"):
            Value(Object({"a": String}), {"a": Value(String, "x"), "c": Value(String, "y")})

    def test_object_with_optional_attributes_cannot_hold_values(self) -> None:
        with pytest.raises(TypeMismatchError, match="optional attributes"):
            Value(Object({"a": String}, ["a"]), {"a": Value(String, "x")})

    def test_map_keys_must_be_strings(self) -> None:
        with pytest.raises(TypeMismatchError, match="map keys"):
            Value(Map(String), {1: Value(String, "x")})

    def test_dynamic_wraps_concrete_value(self) -> None:
        wrapped = Value(DynamicPseudoType, Value(String, "x"))
        assert wrapped.is_wrapped()
        assert wrapped.unwrap() == Value(String, "x")

    def test_nested_dynamic_wrappers_collapse(self) -> None:
        inner = Value(DynamicPseudoType, Value(Bool, True))
        outer = Value(DynamicPseudoType, inner)
        assert outer.unwrap() == Value(Bool, True)

    def test_dynamic_rejects_raw_payload(self) -> None:
        with pytest.raises(TypeMismatchError, match="DynamicPseudoType"):
            Value(DynamicPseudoType, "x")

    def test_validate_value_does_not_build(self) -> None:
        validate_value(List(String), [Value(String, "a")])
        with pytest.raises(TypeMismatchError):
            validate_value(List(String), ["a"])

    def test_new_value_matches_constructor(self) -> None:
        assert new_value(String, "a") == Value(String, "a")

    def test_payload_is_read_only(self) -> None:
        value = Value(Map(String), {"a": Value(String, "x")})
        with pytest.raises(TypeError):
            value.payload["b"] = Value(String, "y")  # type: ignore[index]


# ============================================================================
# Predicates
# ============================================================================


class TestKnownness:
    def test_list_with_unknown_element(self) -> None:
        value = Value(List(Bool), [Value(Bool, UNKNOWN)])
        assert value.is_known()
        assert not value.is_fully_known()

    def test_null_is_known(self) -> None:
        assert Value(String).is_known()
        assert Value(String).is_fully_known()

    def test_wrapped_value_answers_for_inner(self) -> None:
        assert not Value(DynamicPseudoType, Value(String, UNKNOWN)).is_known()
        assert Value(DynamicPseudoType, Value(String)).is_null()


class TestTypeFromElements:
    def test_empty_is_dynamic(self) -> None:
        assert type_from_elements([]) == DynamicPseudoType

    def test_shared_type(self) -> None:
        assert type_from_elements([Value(Bool, True), Value(Bool, False)]) == Bool

    def test_mixed_types(self) -> None:
        with pytest.raises(TypeMismatchError, match="same type"):
            type_from_elements([Value(Bool, True), Value(String, "x")])


# ============================================================================
# Children and path steps
# ============================================================================


class TestChildren:
    def test_object_children_in_name_order(self) -> None:
        value = Value(Object({"b": String, "a": String}), {"b": Value(String, "2"), "a": Value(String, "1")})
        assert [step for step, _ in value.children()] == [AttributeName("a"), AttributeName("b")]

    def test_set_children_keyed_by_value(self) -> None:
        value = Value(Set(Bool), [Value(Bool, True)])
        assert value.children() == [(ElementKeyValue(Value(Bool, True)), Value(Bool, True))]

    def test_null_has_no_children(self) -> None:
        assert Value(List(String)).children() == []

    def test_apply_path_step(self) -> None:
        value = Value(Map(Number), {"x": Value(Number, 1)})
        assert value.apply_path_step(ElementKeyString("x")) == Value(Number, 1)

    def test_apply_missing_step(self) -> None:
        value = Value(List(Number), [Value(Number, 1)])
        with pytest.raises(InvalidStepError):
            value.apply_path_step(ElementKeyInt(5))
        with pytest.raises(InvalidStepError):
            value.apply_path_step(AttributeName("x"))


# ============================================================================
# Conversion and equality
# ============================================================================


class TestConversion:
    def test_as_native(self) -> None:
        assert Value(String, "a").as_(str) == "a"
        assert Value(Number, 7).as_(int) == 7
        assert Value(Number, 1.5).as_(float) == 1.5
        assert Value(Number, Decimal("1.5")).as_(Decimal) == Decimal("1.5")
        assert Value(Bool, True).as_(bool) is True

    def test_as_int_rejects_fraction(self) -> None:
        with pytest.raises(TypeMismatchError, match="not an integer"):
            Value(Number, 1.5).as_(int)

    def test_null_converts_to_none(self) -> None:
        assert Value(String).as_(str) is None

    def test_unknown_cannot_convert(self) -> None:
        with pytest.raises(ProviderWireError, match="unknown"):
            Value(String, UNKNOWN).as_(str)

    def test_wrong_target(self) -> None:
        with pytest.raises(TypeMismatchError, match="into bool"):
            Value(String, "x").as_(bool)

    def test_composites(self) -> None:
        items = [Value(String, "a")]
        assert Value(List(String), items).as_(list) == items
        assert Value(Map(String), {"k": items[0]}).as_(dict) == {"k": items[0]}


class TestEquality:
    def test_set_equality_ignores_order(self) -> None:
        left = Value(Set(String), [Value(String, "a"), Value(String, "b")])
        right = Value(Set(String), [Value(String, "b"), Value(String, "a")])
        assert left == right
        assert hash(left) == hash(right)

    def test_list_equality_respects_order(self) -> None:
        left = Value(List(String), [Value(String, "a"), Value(String, "b")])
        right = Value(List(String), [Value(String, "b"), Value(String, "a")])
        assert left != right

    def test_null_unknown_and_empty_differ(self) -> None:
        null = Value(List(String))
        unknown = Value(List(String), UNKNOWN)
        empty = Value(List(String), [])
        assert null != unknown
        assert null != empty
        assert unknown != empty

    def test_type_participates(self) -> None:
        assert Value(String) != Value(Number)

    def test_numbers_compare_numerically(self) -> None:
        assert Value(Number, 1) == Value(Number, Decimal("1.0"))

    def test_copy_is_equal(self) -> None:
        value = Value(Object({"a": List(String)}), {"a": Value(List(String), [Value(String, "x")])})
        assert value.copy() == value

    def test_str(self) -> None:
        assert str(Value(String, "hi")) == 'String<"hi">'
        assert str(Value(Bool)) == "Bool<null>"
        assert str(Value(Number, UNKNOWN)) == "Number<unknown>"
