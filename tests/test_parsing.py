"""Tests for best-effort numeric coercion of line item fields."""

from __future__ import annotations

import pytest

from app.utils.parsing import parse_float, parse_int


class TestParseInt:
    @pytest.mark.parametrize(
        "raw, expected",
        [("5", 5), (" 12 ", 12), ("5abc", 5), ("-3", -3), (7, 7), (7.9, 7), ("3.5", 3)],
    )
    def test_leading_integer(self, raw, expected):
        assert parse_int(raw) == expected

    @pytest.mark.parametrize("raw", ["abc", "", None, True, float("nan"), "  x1"])
    def test_not_a_number(self, raw):
        assert parse_int(raw) is None


class TestParseFloat:
    @pytest.mark.parametrize(
        "raw, expected",
        [("9.99", 9.99), ("10", 10.0), (".5", 0.5), ("1e2", 100.0), ("19.90 USD", 19.9), (3, 3.0)],
    )
    def test_leading_float(self, raw, expected):
        assert parse_float(raw) == pytest.approx(expected)

    @pytest.mark.parametrize("raw", ["free", None, False, float("inf")])
    def test_not_a_number(self, raw):
        assert parse_float(raw) is None
