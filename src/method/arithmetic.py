"""Unit-aware reducers over lists of values.

sum_values and difference convert operands through the environment's
conversion constants; product and ratio multiply unit sets, cancelling
matching tokens.
"""

from collections.abc import Mapping, Sequence
from typing import Any

import numpy as np

from .units import coerce, combine_units, unpack_units
from .values import MethodError, UnitValue, Value, numeric_value, simplify, units_of


class EmptyOperands(MethodError):
    def __init__(self, operation: str):
        super().__init__(f"no values to {operation}")


class OperandCountError(MethodError):
    def __init__(self, operation: str, expected: int, got: int):
        super().__init__(f"{operation} needs {expected} values, got {got}")


def divide(n: float, d: float) -> float:
    """Division with IEEE semantics: x / 0 is ±inf, 0 / 0 is nan."""
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.divide(n, d))


def _require(operation: str, values: Sequence[Any], count: int | None = None) -> None:
    if not values:
        raise EmptyOperands(operation)
    if count is not None and len(values) != count:
        raise OperandCountError(operation, count, len(values))


def sum_values(values: Sequence[Any], environment: Mapping[str, Any]) -> Value:
    """Add values left to right.

    The running total is converted to each new term's units before adding, so
    a mixed-unit sum ends up in the units of the last term.
    """
    _require("sum", values)
    total = values[0]
    for each in values[1:]:
        to_units = units_of(simplify(each))
        converted = coerce(to_units, total, environment)
        total = UnitValue(value=numeric_value(converted) + numeric_value(each), units=to_units)
    return simplify(total)


def difference(values: Sequence[Any], environment: Mapping[str, Any]) -> Value:
    """values[0] - values[1], in the units of values[1]."""
    _require("subtract", values, 2)
    a, b = values
    to_units = units_of(simplify(b))
    converted = coerce(to_units, a, environment)
    return simplify(UnitValue(value=numeric_value(converted) - numeric_value(b), units=to_units))


def product(values: Sequence[Any]) -> Value:
    _require("multiply", values)
    result = values[0]
    for each in values[1:]:
        p, pn, pd = unpack_units(result)
        e, en, ed = unpack_units(each)
        result = UnitValue(value=p * e, units=combine_units([pn, en], [pd, ed]))
    return simplify(result)


def ratio(values: Sequence[Any]) -> Value:
    """values[0] / values[1]: multiply by the reciprocal of the divisor's units."""
    _require("divide", values, 2)
    n, nn, nd = unpack_units(values[0])
    d, dn, dd = unpack_units(values[1])
    return simplify(UnitValue(value=divide(n, d), units=combine_units([nn, dd], [nd, dn])))


def average(values: Sequence[Any], environment: Mapping[str, Any]) -> Value:
    total = sum_values(values, environment)
    mean = divide(numeric_value(total), len(values))
    if isinstance(total, UnitValue):
        return UnitValue(value=mean, units=total.units)
    return mean


def minimum(values: Sequence[Any]) -> float:
    _require("minimize", values)
    return min(numeric_value(each) for each in values)


def maximum(values: Sequence[Any]) -> float:
    _require("maximize", values)
    return max(numeric_value(each) for each in values)
