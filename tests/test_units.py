"""Tests for unit parsing, equality, conversion and cancellation."""

import pytest

from method import (
    ConversionConstant,
    ConversionError,
    Ratio,
    UnitValue,
    coerce,
    combine_units,
    find_conversion_factor,
    numeric_value,
    parse_label,
    parse_unit_group,
    parse_unit_phrase,
    unit_sets_equal,
    units_of,
)
from method.units import format_unit_set, print_units, unpack_units


@pytest.fixture
def conversions():
    return {
        "(fps) from (mph)": ConversionConstant(value=88 / 60, units=["fps"], from_=["mph"]),
        "speed": UnitValue(value=30, units=["mph"]),
    }


class TestParseUnitPhrase:
    def test_sorts_words(self):
        assert parse_unit_phrase("Pound Foot") == ["foot", "pound"]

    def test_ignores_extra_spaces(self):
        assert parse_unit_phrase("  Pound    Foot   ") == ["foot", "pound"]

    def test_ignores_non_word_characters(self):
        assert parse_unit_phrase("$ & ¢") == []

    def test_expands_squares_and_cubes(self):
        assert parse_unit_phrase("Square Pound Cubic Foot") == [
            "foot",
            "foot",
            "foot",
            "pound",
            "pound",
        ]

    def test_idempotent(self):
        once = parse_unit_phrase("Square Foot Pound")
        assert parse_unit_phrase(" ".join(once)) == once


class TestParseUnitGroup:
    def test_ratio(self):
        assert parse_unit_group("(Pounds / Square Foot)") == Ratio(
            numerator=["pounds"], denominator=["foot", "foot"]
        )

    def test_non_ratio(self):
        assert parse_unit_group("(Foot Pound)") == ["foot", "pound"]

    def test_inversion(self):
        assert parse_unit_group("( / Seconds)") == Ratio(numerator=[], denominator=["seconds"])

    def test_not_a_group(self):
        assert parse_unit_group("Foot Pound") is None


class TestParseLabel:
    def test_ignores_text_outside_parens(self):
        assert parse_label("Speed (MPH) Moving Average") == (["mph"], None)

    def test_conversion_pairs(self):
        declared = parse_label("1.47\t(Feet / Seconds) from (Miles / Hours) ")
        assert declared.units == Ratio(numerator=["feet"], denominator=["seconds"])
        assert declared.from_ == Ratio(numerator=["miles"], denominator=["hours"])

    def test_no_group(self):
        assert parse_label("abc") is None


class TestEquality:
    def test_simple_sets(self):
        assert unit_sets_equal(["foot", "pound"], ["foot", "pound"])
        assert not unit_sets_equal(["foot"], ["foot", "foot"])

    def test_ratio_differs_from_simple(self):
        assert not unit_sets_equal(Ratio(numerator=["in"], denominator=[]), ["in"])

    def test_ratios(self):
        assert unit_sets_equal(
            Ratio(numerator=["in"], denominator=["yd"]), Ratio(numerator=["in"], denominator=["yd"])
        )


class TestFormatting:
    def test_format_unit_set(self):
        assert format_unit_set(["mps"]) == "[mps]"
        assert format_unit_set(["foot", "pound"]) == "[foot pound]"
        assert format_unit_set(Ratio(numerator=["in"], denominator=["yd"])) == "[in / yd]"

    def test_print_units(self):
        assert print_units([]) == ""
        assert print_units(["in"]) == "( in )"
        assert print_units(Ratio(numerator=["in"], denominator=["yd"])) == "( in / yd )"


class TestConversion:
    def test_factor_forward(self, conversions):
        assert find_conversion_factor(["fps"], ["mph"], conversions) == pytest.approx(88 / 60)

    def test_factor_inverse(self, conversions):
        assert find_conversion_factor(["mph"], ["fps"], conversions) == pytest.approx(60 / 88)

    def test_single_hop_only(self):
        environment = {
            "(b) from (a)": ConversionConstant(value=2, units=["b"], from_=["a"]),
            "(c) from (b)": ConversionConstant(value=3, units=["c"], from_=["b"]),
        }
        assert find_conversion_factor(["c"], ["a"], environment) is None

    def test_coerce_unchanged_when_units_match(self, conversions):
        value = UnitValue(value=44, units=["fps"])
        assert coerce(["fps"], value, conversions) is value

    def test_coerce_converts(self, conversions):
        converted = coerce(["fps"], UnitValue(value=30, units=["mph"]), conversions)
        assert numeric_value(converted) == pytest.approx(44)
        assert units_of(converted) == ["fps"]

    def test_coerce_fails_without_factor(self):
        with pytest.raises(ConversionError, match=r"can't convert to \[mps\] from \[fps\]"):
            coerce(["mps"], UnitValue(value=22, units=["fps"]), {})


class TestCombineUnits:
    def test_repeats_units(self):
        assert combine_units([["in"], ["in"]], [[], []]) == ["in", "in"]

    def test_cancels_units(self):
        assert combine_units([["yd"], ["ft"]], [[], ["yd"]]) == ["ft"]

    def test_cancels_one_instance_each(self):
        assert combine_units([["ft", "ft"]], [["ft"]]) == ["ft"]

    def test_leftover_denominator_makes_ratio(self):
        assert combine_units([["in"]], [["yd"]]) == Ratio(numerator=["in"], denominator=["yd"])

    def test_unpack_ratio(self):
        value = UnitValue(value=3, units=Ratio(numerator=["ft"], denominator=["yd"]))
        assert unpack_units(value) == (3, ["ft"], ["yd"])
