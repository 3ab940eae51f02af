"""Tabular datasets consulted by the LOOKUP and POLYNOMIAL operations.

The interpreter never finds datasets itself; a resolver maps a caption to
rows (mappings of column name to value).
"""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol

import numpy as np

from .values import MethodError, format_number, numeric_value

LOOKUP_CAPTION = "Tier3ExposurePercentages"
POLYNOMIAL_CAPTION = "Tier3Polynomials"
COEFFICIENTS = [f"C{i}" for i in range(7)]

Row = Mapping[str, Any]


class DatasetError(MethodError):
    pass


class DatasetResolver(Protocol):
    """Protocol for dataset sources."""

    def attach(self, caption: str) -> Sequence[Row]:
        """Rows of the first dataset whose caption contains the search string."""
        ...


class StaticDatasets:
    """Datasets held in memory, keyed by caption."""

    def __init__(self, datasets: Mapping[str, Sequence[Row]] | None = None):
        self.datasets = dict(datasets or {})

    def attach(self, caption: str) -> Sequence[Row]:
        for name, rows in self.datasets.items():
            if caption in name:
                if not all(isinstance(row, Mapping) for row in rows):
                    raise DatasetError(f"dataset {name} has rows that are not mappings")
                return rows
        raise DatasetError(f"can't find dataset with caption {caption}")


class NoDatasets:
    """Resolver used when the caller supplies none."""

    def attach(self, caption: str) -> Sequence[Row]:
        raise DatasetError(f"can't find dataset with caption {caption}")


def lookup(values: Sequence[Any], resolver: DatasetResolver) -> float:
    """Percentage for an (exposure, raw) pair."""
    table = resolver.attach(LOOKUP_CAPTION)
    if len(values) < 2:
        raise DatasetError(f"lookup needs exposure and raw, got {len(values)} values")
    exposure, raw = numeric_value(values[0]), numeric_value(values[1])
    if np.isnan(exposure) or np.isnan(raw):
        return float("nan")

    for row in table:
        if numeric_value(row.get("Exposure")) == exposure and numeric_value(row.get("Raw")) == raw:
            return numeric_value(row.get("Percentage"))
    raise DatasetError(
        f"can't find exposure {format_number(exposure)} and raw {format_number(raw)}"
    )


def polynomial(value: Any, subtype: str, resolver: DatasetResolver) -> float:
    """Evaluate the degree-6 polynomial whose [Min, Max) range holds value.

    Rows flagged 'One minus' are complemented. The result is clamped to [0, 1].
    """
    table = resolver.attach(POLYNOMIAL_CAPTION)
    v = numeric_value(value)

    for row in table:
        if (
            f"{row.get('SubType')} Scaled" == subtype
            and numeric_value(row.get("Min")) <= v < numeric_value(row.get("Max"))
        ):
            break
    else:
        raise DatasetError(
            f"can't find applicable polynomial for {format_number(v)} in '{subtype}'"
        )

    coefficients = [numeric_value(row.get(name)) for name in COEFFICIENTS]
    result = float(np.polynomial.polynomial.polyval(v, coefficients))
    one_minus = numeric_value(row.get("One minus", 0))
    if one_minus and not np.isnan(one_minus):
        result = 1 - result
    return min(1.0, max(0.0, result))
