"""Method: a line-oriented calculator with unit bookkeeping.

Pipeline: classify each line -> apply operations to the stack -> record outputs and trace.

Example:
    from method import Caller, evaluate

    caller = Caller()
    output = evaluate(caller, "30 (mph)\\n44 (fps)\\nSUM speed", {
        "(fps) from (mph)": {"value": 88 / 60, "units": ["fps"], "from": ["mph"]},
    })
    output["speed"]  # 88 fps
"""

__version__ = "0.1.0"

from .arithmetic import (
    EmptyOperands,
    OperandCountError,
    average,
    difference,
    maximum,
    minimum,
    product,
    ratio,
    sum_values,
)
from .datasets import DatasetError, DatasetResolver, StaticDatasets
from .expression import ExpressionSyntaxError, Lexer, Parser, UnresolvedSymbol, calculate, lex, parse
from .interpreter import (
    Caller,
    CheckMismatch,
    Interpreter,
    Item,
    LineRecord,
    ParseError,
    RunState,
    Severity,
    ShowEntry,
    UnboundLabel,
    UnknownOperation,
    display,
    evaluate,
    run,
)
from .units import (
    ConversionError,
    LabelUnits,
    coerce,
    combine_units,
    find_conversion_factor,
    parse_label,
    parse_unit_group,
    parse_unit_phrase,
    unit_sets_equal,
)
from .values import (
    ConversionConstant,
    MethodError,
    Ratio,
    UnitValue,
    Value,
    as_data,
    has_units,
    numeric_value,
    simplify,
    to_value,
    units_of,
)

__all__ = [
    # Values
    "Value",
    "UnitValue",
    "ConversionConstant",
    "Ratio",
    "numeric_value",
    "units_of",
    "has_units",
    "simplify",
    "to_value",
    "as_data",
    # Units
    "parse_unit_phrase",
    "parse_unit_group",
    "parse_label",
    "LabelUnits",
    "unit_sets_equal",
    "find_conversion_factor",
    "coerce",
    "combine_units",
    "ConversionError",
    # Arithmetic
    "sum_values",
    "difference",
    "product",
    "ratio",
    "average",
    "minimum",
    "maximum",
    "EmptyOperands",
    "OperandCountError",
    # Expressions
    "lex",
    "parse",
    "calculate",
    "Lexer",
    "Parser",
    "UnresolvedSymbol",
    "ExpressionSyntaxError",
    # Datasets
    "DatasetResolver",
    "StaticDatasets",
    "DatasetError",
    # Interpreter
    "Item",
    "Caller",
    "RunState",
    "LineRecord",
    "ShowEntry",
    "Severity",
    "Interpreter",
    "run",
    "evaluate",
    "display",
    "MethodError",
    "ParseError",
    "UnboundLabel",
    "UnknownOperation",
    "CheckMismatch",
]
