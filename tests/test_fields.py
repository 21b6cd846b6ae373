"""Tests for schema-on-read field resolution."""

import math

import pytest

from ops_core.fields import (
    HOURS_WORKED_PATHS,
    LOCATION_PATHS,
    key_text,
    resolve_field,
    to_number,
    to_primitive,
    unwrap_value,
)


class TestResolveField:
    """Ordered candidate paths, first non-null terminal value wins."""

    def test_falls_back_to_later_path(self) -> None:
        assert resolve_field({"c": 5}, ["a.b", "c"]) == 5

    def test_first_match_wins(self) -> None:
        assert resolve_field({"a": {"b": 7}, "c": 5}, ["a.b", "c"]) == 7

    def test_zero_and_empty_string_are_values(self) -> None:
        """Only null counts as absent."""
        assert resolve_field({"a": 0, "b": 5}, ["a", "b"]) == 0
        assert resolve_field({"a": "", "b": 5}, ["a", "b"]) == ""

    def test_null_is_skipped(self) -> None:
        assert resolve_field({"a": None, "b": 5}, ["a", "b"]) == 5

    def test_missing_paths_return_default(self) -> None:
        assert resolve_field({"x": 1}, ["a", "b.c"]) is None
        assert resolve_field({"x": 1}, ["a"], default=0) == 0

    def test_path_through_scalar_does_not_raise(self) -> None:
        assert resolve_field({"a": 5}, ["a.b"], default="none") == "none"

    def test_non_mapping_payload_returns_default(self) -> None:
        assert resolve_field(None, ["a"], default=3) == 3
        assert resolve_field("text", ["a"]) is None

    def test_terminal_mapping_is_unwrapped(self) -> None:
        payload = {"team": {"id": 3, "name": "Keuken"}}
        assert resolve_field(payload, ["team"]) == "Keuken"
        assert resolve_field(payload, ["team.id"]) == 3

    def test_nested_location_id_before_object(self) -> None:
        payload = {"environment": {"id": 10, "name": "Centrum"}}
        assert resolve_field(payload, LOCATION_PATHS) == 10

    def test_hours_candidates(self) -> None:
        assert resolve_field({"totalHours": 6.5}, HOURS_WORKED_PATHS) == 6.5
        assert resolve_field({"hours": 4, "hours_worked": 8}, HOURS_WORKED_PATHS) == 8


class TestUnwrap:
    """The closed set of unwrap strategies."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ({"name": "Bar", "id": 1}, "Bar"),
            ({"id": 1, "value": "x"}, 1),
            ({"value": "x", "label": "y"}, "x"),
            ({"label": "y"}, "y"),
            ({"name": None, "id": 4}, 4),
            (7, 7),
        ],
    )
    def test_unwrap_order(self, value, expected) -> None:
        assert unwrap_value(value) == expected

    def test_unknown_mapping_returned_as_is(self) -> None:
        assert unwrap_value({"foo": 1}) == {"foo": 1}


class TestPrimitives:
    def test_to_primitive_stringifies_leftover_mapping(self) -> None:
        assert to_primitive({"foo": 1}) == '{"foo": 1}'

    def test_to_primitive_truncates_long_mapping(self) -> None:
        assert len(to_primitive({"k": "x" * 500})) == 100

    def test_to_primitive_joins_lists(self) -> None:
        assert to_primitive(["a", "b"]) == "a, b"

    def test_to_number(self) -> None:
        assert to_number("7.25") == 7.25
        assert to_number(None) == 0.0
        assert to_number(True) == 0.0
        assert to_number("n/a") == 0.0
        assert to_number("nan") == 0.0
        assert to_number("n/a", default=None) is None

    def test_key_text_normalizes_numbers(self) -> None:
        assert key_text(10) == "10"
        assert key_text(10.0) == "10"
        assert key_text("10") == "10"
        assert key_text(2.5) == "2.5"
        assert key_text({"id": 3}) == "3"

    def test_key_text_absent(self) -> None:
        assert key_text(None) is None
        assert key_text(math.nan) is None
