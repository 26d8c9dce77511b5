"""Tests for the built-in conversion handlers."""

from __future__ import annotations

import enum
from collections.abc import MutableSequence, Sequence, Set
from decimal import Decimal
from fractions import Fraction
from pathlib import Path, PurePosixPath
from typing import Any

import pytest

from transmute.domain.arrays import Array, ArrayType
from transmute.domain.errors import ConversionError
from transmute.services.converter import Converter
from transmute.services.handlers import indexed_values


class Level(enum.IntEnum):
    LOW = 1


class TestIndexPolicy:
    def test_spec_example_to_string_array(self, converter: Converter) -> None:
        source = {0: "zero", 2: "two", "x": "ignored", -1: "ignored"}
        result = converter.convert(source, ArrayType(str))
        assert isinstance(result, Array)
        assert result.component is str
        assert list(result) == ["zero", None, "two"]

    def test_map_to_list(self, converter: Converter) -> None:
        assert converter.convert({2: "c", 0: "a"}, list) == ["a", None, "c"]

    def test_map_to_tuple(self, converter: Converter) -> None:
        assert converter.convert({1: "b"}, tuple) == (None, "b")

    def test_bool_keys_are_not_positions(self) -> None:
        assert indexed_values({True: "t", 0: "zero"}) == ["zero"]

    def test_no_integer_keys(self, converter: Converter) -> None:
        assert converter.convert({"a": 1}, list) == []


class TestCollections:
    def test_list_to_tuple(self, converter: Converter) -> None:
        assert converter.convert([1, 2], tuple) == (1, 2)

    def test_list_to_set(self, converter: Converter) -> None:
        assert converter.convert([1, 2, 2], set) == {1, 2}

    def test_set_to_list(self, converter: Converter) -> None:
        assert converter.convert({3}, list) == [3]

    def test_abstract_targets_allocate_concrete_types(self, converter: Converter) -> None:
        assert converter.convert((1, 2), MutableSequence) == [1, 2]
        assert converter.convert({"a": 1}, Set) == {1}

    def test_abstract_target_already_satisfied(self, converter: Converter) -> None:
        value = (1, 2)
        assert converter.convert(value, Sequence) is value

    def test_list_to_map(self, converter: Converter) -> None:
        assert converter.convert(["a", "b"], dict) == {0: "a", 1: "b"}

    def test_map_to_set_uses_values(self, converter: Converter) -> None:
        assert converter.convert({"a": 1, "b": 2}, frozenset) == frozenset({1, 2})

    def test_elements_are_not_copied(self, converter: Converter) -> None:
        inner = [1]
        result = converter.convert([inner, inner], tuple)
        assert result[0] is inner
        assert result[1] is inner


class TestArrays:
    def test_list_to_typed_array_converts_elements(self, converter: Converter) -> None:
        result = converter.convert(["1", "2"], ArrayType(int))
        assert list(result) == [1, 2]

    def test_array_to_other_component(self, converter: Converter) -> None:
        result = converter.convert(Array.of(int, [1, 2]), ArrayType(str))
        assert result == Array.of(str, ["1", "2"])

    def test_array_to_map(self, converter: Converter) -> None:
        assert converter.convert(Array.of(str, ["a"]), dict) == {0: "a"}

    def test_array_to_list(self, converter: Converter) -> None:
        assert converter.convert(Array.of(int, [1, None]), list) == [1, None]

    def test_nested_array(self, converter: Converter) -> None:
        result = converter.convert([["1"], ["2", "3"]], ArrayType(ArrayType(int)))
        assert result[0] == Array.of(int, [1])
        assert result[1] == Array.of(int, [2, 3])

    def test_element_failure(self, converter: Converter) -> None:
        with pytest.raises(ConversionError):
            converter.convert(["one"], ArrayType(int))


class TestNumbers:
    @pytest.mark.parametrize(
        ("value", "target", "expected"),
        [
            (3, float, 3.0),
            (2.9, int, 2),
            (1, bool, True),
            (0, bool, False),
            (2.5, Decimal, Decimal("2.5")),
            (Fraction(1, 4), Decimal, Decimal("0.25")),
            (Decimal("1.5"), float, 1.5),
            (3 + 0j, int, 3),
            (2, complex, 2 + 0j),
            (Level.LOW, float, 1.0),
        ],
    )
    def test_number_to_number(
        self, converter: Converter, value: Any, target: type, expected: Any
    ) -> None:
        result = converter.convert(value, target)
        assert result == expected
        assert type(result) is target

    def test_imaginary_part_refused(self, converter: Converter) -> None:
        with pytest.raises(ConversionError, match="imaginary"):
            converter.convert(1 + 2j, float)

    def test_enum_targets_are_not_numbers(self, converter: Converter) -> None:
        with pytest.raises(ConversionError):
            converter.convert(1, Level)

    @pytest.mark.parametrize(
        ("text", "target", "expected"),
        [
            (" 42 ", int, 42),
            ("1.25", float, 1.25),
            ("1.10", Decimal, Decimal("1.10")),
            ("TRUE", bool, True),
            ("false", bool, False),
        ],
    )
    def test_text_to_number(
        self, converter: Converter, text: str, target: type, expected: Any
    ) -> None:
        assert converter.convert(text, target) == expected

    def test_bool_literal_required(self, converter: Converter) -> None:
        with pytest.raises(ConversionError, match="boolean literal"):
            converter.convert("yes", bool)


class TestTextAndPaths:
    def test_text_to_path(self, converter: Converter) -> None:
        assert converter.convert("a/b", Path) == Path("a/b")

    def test_pure_path_to_path(self, converter: Converter) -> None:
        result = converter.convert(PurePosixPath("x/y"), Path)
        assert isinstance(result, Path)
        assert result == Path("x/y")

    def test_anything_to_str(self, converter: Converter) -> None:
        assert converter.convert(12, str) == "12"
        assert converter.convert(Path("a"), str) == "a"
        assert converter.convert([1], str) == "[1]"
