"""Tests for the unit-aware reducers."""

import math

import pytest

from method import (
    ConversionConstant,
    ConversionError,
    EmptyOperands,
    OperandCountError,
    Ratio,
    UnitValue,
    average,
    difference,
    maximum,
    minimum,
    numeric_value,
    product,
    ratio,
    sum_values,
    units_of,
)

MPH_TO_FPS = {"(fps) from (mph)": ConversionConstant(value=88 / 60, units=["fps"], from_=["mph"])}


def mph(n):
    return UnitValue(value=n, units=["mph"])


def fps(n):
    return UnitValue(value=n, units=["fps"])


class TestSum:
    def test_plain_numbers(self):
        assert sum_values([2, 3], {}) == 5

    def test_single_value_is_simplified(self):
        assert sum_values([UnitValue(value=4, units=[])], {}) == 4

    def test_same_units(self):
        result = sum_values([mph(60), mph(30)], {})
        assert result == UnitValue(value=90, units=["mph"])

    def test_converts_running_total(self):
        result = sum_values([mph(30), fps(44)], MPH_TO_FPS)
        assert numeric_value(result) == pytest.approx(88)
        assert units_of(result) == ["fps"]

    def test_last_term_sets_units(self):
        # The total follows whichever term came last, not the first one.
        result = sum_values([fps(44), mph(30)], MPH_TO_FPS)
        assert numeric_value(result) == pytest.approx(60)
        assert units_of(result) == ["mph"]

    def test_incompatible_units(self):
        with pytest.raises(ConversionError, match=r"can't convert to \[mps\] from \[fps\]"):
            sum_values([fps(22), UnitValue(value=15, units=["mps"])], {})

    def test_units_with_plain_number_do_not_mix(self):
        with pytest.raises(ConversionError):
            sum_values([UnitValue(value=2, units=["in"]), 3], {})

    def test_empty(self):
        with pytest.raises(EmptyOperands):
            sum_values([], {})


class TestDifference:
    def test_plain_numbers(self):
        assert difference([10, 4], {}) == 6

    def test_in_units_of_second_operand(self):
        result = difference([mph(30), fps(4)], MPH_TO_FPS)
        assert numeric_value(result) == pytest.approx(40)
        assert units_of(result) == ["fps"]

    def test_needs_two_values(self):
        with pytest.raises(OperandCountError):
            difference([1], {})


class TestProduct:
    def test_repeats_units(self):
        side = UnitValue(value=6, units=["Inches"])
        assert product([side, side]) == UnitValue(value=36, units=["Inches", "Inches"])

    def test_cancels_units(self):
        result = product(
            [
                UnitValue(value=2, units=["yd"]),
                UnitValue(value=3, units=Ratio(numerator=["ft"], denominator=["yd"])),
                UnitValue(value=12, units=Ratio(numerator=["in"], denominator=["ft"])),
            ]
        )
        assert result == UnitValue(value=72, units=["in"])

    def test_plain_numbers(self):
        assert product([2, 3, 4]) == 24


class TestRatio:
    def test_inverts_units(self):
        result = ratio([UnitValue(value=72, units=["in"]), UnitValue(value=2, units=["yd"])])
        assert result == UnitValue(value=36, units=Ratio(numerator=["in"], denominator=["yd"]))

    def test_same_units_cancel(self):
        assert ratio([UnitValue(value=6, units=["ft"]), UnitValue(value=3, units=["ft"])]) == 2

    def test_divide_by_zero(self):
        assert ratio([1, 0]) == math.inf
        assert math.isnan(ratio([0, 0]))

    def test_exactly_two(self):
        with pytest.raises(OperandCountError, match="divide needs 2 values, got 3"):
            ratio([1, 2, 3])


class TestAverageMinMax:
    def test_average(self):
        assert average([2, 4, 9], {}) == 5

    def test_average_keeps_units(self):
        assert average([mph(60), mph(30)], {}) == UnitValue(value=45, units=["mph"])

    def test_min_max_ignore_units(self):
        values = [mph(60), 5, fps(30)]
        assert minimum(values) == 5
        assert maximum(values) == 60
