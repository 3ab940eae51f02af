"""Unit algebra: parsing unit phrases, equality, conversion and cancellation.

Conversion constants are looked up in an explicit environment (the run's
input table), one hop at a time:

    env = {"(fps) from (mph)": ConversionConstant(value=88 / 60, units=["fps"], from_=["mph"])}
    coerce(["fps"], UnitValue(value=30, units=["mph"]), env)  # 44 fps
"""

import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any, NamedTuple

from .values import (
    ConversionConstant,
    MethodError,
    Ratio,
    UnitSet,
    UnitValue,
    numeric_value,
    simplify,
    units_of,
)

logger = logging.getLogger(__name__)

SQUARE = re.compile(r"\bsquare\s+(\w+)\b", re.ASCII)
CUBIC = re.compile(r"\bcubic\s+(\w+)\b", re.ASCII)
WORD = re.compile(r"\w+", re.ASCII)
RATIO_GROUP = re.compile(r"\((.+?)/(.+?)\)")
UNIT_GROUP = re.compile(r"\((.+?)\)")
ANY_GROUP = re.compile(r"\([^()]*\)")


class ConversionError(MethodError):
    def __init__(self, to_units: UnitSet, from_units: UnitSet):
        super().__init__(
            f"can't convert to {format_unit_set(to_units)} from {format_unit_set(from_units)}"
        )
        self.to_units = to_units
        self.from_units = from_units


class LabelUnits(NamedTuple):
    """Units declared by a label, plus the source units of a conversion constant."""

    units: UnitSet
    from_: UnitSet | None = None


def parse_unit_phrase(text: str) -> list[str]:
    """Sorted unit tokens of a phrase: 'Square Foot' -> ['foot', 'foot']."""
    text = text.lower()
    text = SQUARE.sub(r"\1 \1", text)
    text = CUBIC.sub(r"\1 \1 \1", text)
    return sorted(WORD.findall(text))


def parse_unit_group(text: str) -> UnitSet | None:
    """Parse '(A)' into a simple unit set and '(A/B)' into a Ratio.

    Returns None when the text is not a parenthesised group.
    """
    if m := RATIO_GROUP.fullmatch(text):
        return Ratio(
            numerator=parse_unit_phrase(m.group(1)),
            denominator=parse_unit_phrase(m.group(2)),
        )
    if m := UNIT_GROUP.fullmatch(text):
        return parse_unit_phrase(m.group(1))
    return None


def parse_label(text: str) -> LabelUnits | None:
    """Units declared by the trailing groups of a label.

    'Speed (MPH) Moving Average' declares mph. Two groups declare a
    conversion constant: '(Feet/Seconds) from (Miles/Hours)' converts to
    feet per second from miles per hour.
    """
    groups = ANY_GROUP.findall(text)
    if not groups:
        return None
    if len(groups) == 1:
        return LabelUnits(units=parse_unit_group(groups[0]))
    return LabelUnits(units=parse_unit_group(groups[-2]), from_=parse_unit_group(groups[-1]))


def _canonical(units: Any) -> tuple:
    match units:
        case Ratio(numerator=numerator, denominator=denominator):
            return ("/", tuple(numerator), tuple(denominator))
        case None:
            return ()
        case _:
            return tuple(units)


def unit_sets_equal(a: UnitSet | None, b: UnitSet | None) -> bool:
    """Both sides are expected to be sorted already."""
    return _canonical(a) == _canonical(b)


def format_unit_set(units: UnitSet | None) -> str:
    """Compact form used in messages: [mps], [in / yd]."""
    match units:
        case Ratio(numerator=numerator, denominator=denominator):
            return f"[{' '.join(numerator)} / {' '.join(denominator)}]"
        case None:
            return "[]"
        case _:
            return f"[{' '.join(units)}]"


def print_units(units: UnitSet | None) -> str:
    """Readable form used in legends and hovers: ( in / yd ). Empty for no units."""
    match units:
        case Ratio(numerator=numerator, denominator=denominator):
            return f"( {' '.join(numerator)} / {' '.join(denominator)} )"
        case [] | None:
            return ""
        case _:
            return f"( {' '.join(units)} )"


def find_conversion_factor(
    to_units: UnitSet, from_units: UnitSet, environment: Mapping[str, Any]
) -> float | None:
    """Factor that converts from_units to to_units using a single declared constant."""
    for label, constant in environment.items():
        if not isinstance(constant, ConversionConstant):
            continue
        if unit_sets_equal(from_units, constant.from_) and unit_sets_equal(
            to_units, constant.units
        ):
            logger.debug("converting with %r", label)
            return numeric_value(constant)
        if unit_sets_equal(to_units, constant.from_) and unit_sets_equal(
            from_units, constant.units
        ):
            logger.debug("converting with inverse of %r", label)
            return 1 / numeric_value(constant)
    return None


def coerce(to_units: UnitSet, value: Any, environment: Mapping[str, Any]) -> Any:
    """Express value in to_units, converting through the environment when needed."""
    from_units = units_of(simplify(value))
    if unit_sets_equal(to_units, from_units):
        return value
    factor = find_conversion_factor(to_units, from_units, environment)
    if not factor:
        raise ConversionError(to_units, from_units)
    return UnitValue(value=factor * numeric_value(value), units=to_units)


def combine_units(
    numerators: Iterable[list[str]], denominators: Iterable[list[str]]
) -> UnitSet:
    """Multiply unit sets, cancelling one numerator token per equal denominator token."""
    n = [unit for units in numerators for unit in units]
    d = [unit for units in denominators for unit in units]
    keep = []

    for unit in d:
        if unit in n:
            n.remove(unit)
        else:
            keep.append(unit)

    if keep:
        return Ratio(numerator=sorted(n), denominator=sorted(keep))
    return sorted(n)


def unpack_units(value: Any) -> tuple[float, list[str], list[str]]:
    """(number, numerator tokens, denominator tokens) of a value."""
    units = units_of(value)
    if isinstance(units, Ratio):
        return numeric_value(value), units.numerator, units.denominator
    return numeric_value(value), units, []
