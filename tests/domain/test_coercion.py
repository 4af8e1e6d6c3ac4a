"""Tests for scalar coercion and value shapes."""

from __future__ import annotations

from notectl.domain.coercion import (
    coerce_boolean,
    coerce_number,
    coerce_scalar,
    field_shape,
    is_empty,
    shapes_compatible,
    value_shape,
)
from notectl.domain.schema import FieldDef


class TestCoerceBoolean:
    def test_true_false_any_case(self) -> None:
        assert coerce_boolean("TRUE").value is True
        assert coerce_boolean(" false ").value is False
        assert coerce_boolean(True).value is True

    def test_other_words_rejected(self) -> None:
        result = coerce_boolean("yes")
        assert not result.ok
        assert "boolean" in (result.reason or "")


class TestCoerceNumber:
    def test_integer_and_decimal(self) -> None:
        assert coerce_number("42").value == 42
        assert coerce_number("-3.5").value == -3.5
        assert coerce_number(7).value == 7

    def test_rejects_non_numbers(self) -> None:
        assert not coerce_number("1e3").ok
        assert not coerce_number("ten").ok
        assert not coerce_number(True).ok

    def test_coerce_scalar_dispatch(self) -> None:
        assert coerce_scalar("true", "boolean").value is True
        assert coerce_scalar("3", "number").value == 3
        assert not coerce_scalar("x", "date").ok


class TestShapes:
    def test_is_empty(self) -> None:
        assert is_empty(None)
        assert is_empty("  ")
        assert is_empty([])
        assert is_empty({})
        assert not is_empty(0)
        assert not is_empty(False)

    def test_value_shape(self) -> None:
        assert value_shape(True) == "boolean"
        assert value_shape(1.5) == "number"
        assert value_shape(["a"]) == "array"
        assert value_shape({"a": 1}) == "object"
        assert value_shape("") == "string"
        assert value_shape(None) == "empty"

    def test_field_shape(self) -> None:
        assert field_shape(None) is None
        assert field_shape(FieldDef()) is None
        assert field_shape(FieldDef(prompt="list")) == "array"
        assert field_shape(FieldDef(prompt="number")) == "number"
        assert field_shape(FieldDef(prompt="date")) == "string"

    def test_shapes_compatible(self) -> None:
        assert shapes_compatible(None, FieldDef(prompt="boolean"))
        assert shapes_compatible(["a"], None)
        assert not shapes_compatible(["a"], FieldDef(prompt="boolean"))
