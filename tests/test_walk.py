"""Tests for walk, transform and path resolution."""

from __future__ import annotations

import pytest

from provider_wire.errors import InvalidStepError, TypeMismatchError
from provider_wire.path import AttributeName, AttributePath
from provider_wire.type_system import Bool, DynamicPseudoType, List, Map, Number, Object, Set, String, Tuple
from provider_wire.value import UNKNOWN, Value
from provider_wire.walk import transform, walk, walk_attribute_path, walk_type_path

SERVER = Object({"name": String, "tags": List(String), "ports": Map(Number)})


def _server() -> Value:
    return Value(
        SERVER,
        {
            "name": Value(String, "web"),
            "tags": Value(List(String), [Value(String, "a"), Value(String, "b")]),
            "ports": Value(Map(Number), {"http": Value(Number, 80)}),
        },
    )


class TestWalk:
    def test_pre_order(self) -> None:
        seen: list[str] = []

        def visit(path: AttributePath, value: Value) -> bool:
            seen.append(str(path))
            return True

        walk(_server(), visit)
        assert seen == [
            "",
            'AttributeName("name")',
            'AttributeName("ports")',
            'AttributeName("ports").ElementKeyString("http")',
            'AttributeName("tags")',
            'AttributeName("tags").ElementKeyInt(0)',
            'AttributeName("tags").ElementKeyInt(1)',
        ]

    def test_false_skips_children(self) -> None:
        seen: list[AttributePath] = []

        def visit(path: AttributePath, value: Value) -> bool:
            seen.append(path)
            return len(path) == 0

        walk(_server(), visit)
        assert len(seen) == 4

    def test_callback_errors_propagate(self) -> None:
        def visit(path: AttributePath, value: Value) -> bool:
            raise RuntimeError("stop here")

        with pytest.raises(RuntimeError, match="stop here"):
            _server().walk(visit)


class TestTransform:
    def test_identity(self) -> None:
        value = _server()
        assert transform(value, lambda path, v: v) == value

    def test_identity_with_wrapped_composite(self) -> None:
        value = Value(
            Object({"extra": DynamicPseudoType}),
            {"extra": Value(DynamicPseudoType, Value(List(Bool), [Value(Bool, True)]))},
        )
        assert value.transform(lambda path, v: v) == value

    def test_rewrites_leaves_then_parents(self) -> None:
        order: list[str] = []

        def upper(path: AttributePath, value: Value) -> Value:
            order.append(str(path))
            if value.type == String and value.is_known() and not value.is_null():
                return Value(String, value.as_(str).upper())
            return value

        result = transform(_server(), upper)
        assert result.apply_path_step(AttributeName("name")) == Value(String, "WEB")
        assert order[-1] == ""
        assert order.index('AttributeName("tags").ElementKeyInt(0)') < order.index('AttributeName("tags")')

    def test_children_that_no_longer_fit_rederive_type(self) -> None:
        value = Value(List(DynamicPseudoType), [Value(String, "1")])

        def to_number(path: AttributePath, v: Value) -> Value:
            if v.type == String:
                return Value(Number, int(v.as_(str)))
            return v

        result = transform(Value(Tuple([String]), [Value(String, "1")]), to_number)
        assert result.type == Tuple([Number])
        assert transform(value, to_number).type == List(DynamicPseudoType)

    def test_callback_must_return_value(self) -> None:
        with pytest.raises(TypeMismatchError, match="not a Value"):
            transform(Value(String, "x"), lambda path, v: "nope")


class TestWalkAttributePath:
    def test_resolves_full_path(self) -> None:
        path = AttributePath().with_attribute_name("tags").with_element_key_int(1)
        found, remaining = walk_attribute_path(_server(), path)
        assert found == Value(String, "b")
        assert len(remaining) == 0

    def test_stops_at_null(self) -> None:
        value = Value(Object({"tags": List(String)}), {"tags": Value(List(String))})
        path = AttributePath().with_attribute_name("tags").with_element_key_int(0)
        found, remaining = walk_attribute_path(value, path)
        assert found.is_null()
        assert remaining == AttributePath().with_element_key_int(0)

    def test_stops_at_unknown(self) -> None:
        value = Value(Object({"tags": List(String)}), {"tags": Value(List(String), UNKNOWN)})
        path = AttributePath().with_attribute_name("tags").with_element_key_int(0)
        found, remaining = walk_attribute_path(value, path)
        assert not found.is_known()
        assert len(remaining) == 1

    def test_invalid_step_reports_path(self) -> None:
        path = AttributePath().with_attribute_name("tags").with_element_key_int(9)
        with pytest.raises(InvalidStepError) as excinfo:
            walk_attribute_path(_server(), path)
        assert excinfo.value.path == path


class TestWalkTypePath:
    def test_object_and_collections(self) -> None:
        assert walk_type_path(SERVER, AttributePath().with_attribute_name("ports").with_element_key_string("x")) == Number
        assert walk_type_path(Set(Bool), AttributePath().with_element_key_int(0)) == Bool
        assert walk_type_path(Set(Bool), AttributePath().with_element_key_value(Value(Bool, True))) == Bool

    def test_dynamic_accepts_any_step(self) -> None:
        path = AttributePath().with_attribute_name("anything").with_element_key_int(3)
        assert walk_type_path(DynamicPseudoType, path) == DynamicPseudoType

    def test_unknown_attribute(self) -> None:
        with pytest.raises(InvalidStepError, match="no attribute 'missing'"):
            walk_type_path(SERVER, AttributePath().with_attribute_name("missing"))

    def test_tuple_index_out_of_range(self) -> None:
        with pytest.raises(InvalidStepError):
            walk_type_path(Tuple([String]), AttributePath().with_element_key_int(1))
