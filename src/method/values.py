"""Value model: plain numbers, numbers tagged with units, conversion constants.

A unit set is either a sorted list of lower-cased unit tokens (``["foot",
"foot"]`` is square feet) or a Ratio of two such lists.
"""

import math
from typing import Any
from typing import Literal as TypingLiteral

from pydantic import BaseModel, ConfigDict, Field


class MethodError(Exception):
    """Base class for every error recovered at line granularity."""


class Ratio(BaseModel):
    """Ratio unit set, e.g. (pounds / square foot)."""

    numerator: list[str] = []
    denominator: list[str] = []


UnitSet = list[str] | Ratio


class UnitValue(BaseModel):
    """A number with units. Units may be absent, in which case it simplifies away."""

    type: TypingLiteral["unit_value"] = "unit_value"
    value: "float | UnitValue"
    units: UnitSet | None = None


class ConversionConstant(BaseModel):
    """A declared factor between two unit sets, e.g. 1.4667 (fps) from (mph)."""

    model_config = ConfigDict(populate_by_name=True)

    type: TypingLiteral["conversion"] = "conversion"
    value: float
    units: UnitSet
    from_: UnitSet = Field(alias="from")


Value = int | float | UnitValue | ConversionConstant

UnitValue.model_rebuild()


def to_number(text: str) -> float:
    """Parse a numeric literal, NaN when it is not one."""
    try:
        return float(text)
    except ValueError:
        return math.nan


def to_unit_set(raw: Any) -> UnitSet:
    """Build a unit set from raw data (list of tokens or numerator/denominator mapping)."""
    match raw:
        case Ratio():
            return raw
        case {"numerator": numerator, "denominator": denominator}:
            return Ratio(numerator=list(numerator), denominator=list(denominator))
        case list() | tuple():
            return [str(unit) for unit in raw]
        case None:
            return []
        case _:
            raise ValueError(f"not a unit set: {raw!r}")


def to_value(raw: Any) -> Value:
    """Normalise raw YAML/JSON data into a Value.

    Mappings with a ``from`` key become conversion constants, other mappings
    with a ``value`` key become UnitValues, sequences yield their first
    element and strings are parsed as numbers.
    """
    match raw:
        case UnitValue() | ConversionConstant():
            return raw
        case bool():
            return int(raw)
        case int() | float():
            return raw
        case str():
            return to_number(raw)
        case {"from": from_units, **rest}:
            return ConversionConstant(
                value=numeric_value(rest.get("value")),
                units=to_unit_set(rest.get("units")),
                from_=to_unit_set(from_units),
            )
        case {"value": inner, **rest}:
            units = rest.get("units")
            return UnitValue(
                value=to_value(inner),
                units=None if units is None else to_unit_set(units),
            )
        case [first, *_]:
            return to_value(first)
        case _:
            return math.nan


def as_data(value: Any) -> Any:
    """Inverse of to_value: plain data suitable for JSON or YAML."""
    match value:
        case UnitValue():
            data = {"value": as_data(value.value)}
            if value.units is not None:
                data["units"] = as_data(value.units)
            return data
        case ConversionConstant():
            return {
                "value": value.value,
                "units": as_data(value.units),
                "from": as_data(value.from_),
            }
        case Ratio():
            return value.model_dump()
        case list():
            return [as_data(each) for each in value]
        case _:
            return value


def numeric_value(value: Any) -> float:
    """The number inside a value. NaN when there is none."""
    match value:
        case bool():
            return int(value)
        case int() | float():
            return value
        case str():
            return to_number(value)
        case UnitValue() | ConversionConstant():
            return numeric_value(value.value)
        case {"value": inner}:
            return numeric_value(inner)
        case list() | tuple():
            return numeric_value(value[0]) if value else math.nan
        case _:
            return math.nan


def units_of(value: Any) -> UnitSet:
    match value:
        case UnitValue():
            if value.units is not None:
                return value.units
            return units_of(value.value)
        case ConversionConstant():
            return value.units
        case {"units": units} if units is not None:
            return to_unit_set(units)
        case {"value": inner}:
            return units_of(inner)
        case list() | tuple():
            return units_of(value[0]) if value else []
        case _:
            return []


def is_empty(units: UnitSet | None) -> bool:
    """True for a missing or empty simple unit set. Ratios are never empty."""
    return units is None or (isinstance(units, list) and not units)


def has_units(value: Any) -> bool:
    return not is_empty(units_of(value))


def simplify(value: Any) -> Value:
    """Strip composites without real units down to a plain number."""
    match value:
        case UnitValue():
            if is_empty(value.units):
                return simplify(value.value)
            return value
        case ConversionConstant():
            return value
        case bool() | int() | float() | str():
            return numeric_value(value)
        case {"value": _} | list() | tuple():
            return simplify(to_value(value))
        case _:
            return math.nan


def format_number(n: float) -> str:
    """Print a number the way a reader writes it: 3 rather than 3.0."""
    if isinstance(n, float) and n.is_integer() and abs(n) < 1e16:
        return str(int(n))
    if isinstance(n, float) and math.isnan(n):
        return "NaN"
    return str(n)


def round_readout(n: float | None) -> str:
    """Two decimals for numbers carrying three or more, otherwise as written."""
    if n is None:
        return "?"
    text = format_number(n)
    if "." in text and len(text.split(".", 1)[1]) >= 3:
        return f"{n:.2f}"
    return text


def localize(n: float) -> str:
    """English-locale readout: thousands grouping, at most three decimals."""
    if math.isnan(n):
        return "NaN"
    if math.isinf(n):
        return "∞" if n > 0 else "-∞"
    text = f"{round(n, 3):,.3f}".rstrip("0").rstrip(".")
    return "0" if text == "-0" else text
