"""Line interpreter: evaluates a document one line at a time.

Each line is one of:
    123.4 Label (units)     literal, declared under a label
    OPERATION Label (units) operation over the stack, declared under a label
    OPERATION               operation over the stack, kept locally
    123.4                   literal pushed on the stack
    Label                   previously declared or input value pushed on the stack

A failing line is recorded as an error and the run continues with the next.
"""

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from .arithmetic import EmptyOperands, average, maximum, minimum, product, ratio, sum_values
from .datasets import DatasetResolver, NoDatasets, lookup, polynomial
from .expression import calculate
from .units import coerce, parse_label, print_units
from .values import (
    ConversionConstant,
    MethodError,
    UnitValue,
    Value,
    as_data,
    format_number,
    is_empty,
    localize,
    numeric_value,
    round_readout,
    to_number,
    to_value,
    units_of,
)

logger = logging.getLogger(__name__)

# Relative change below which a recomputed label is not annotated
CHANGE_THRESHOLD = 0.0001
# Decimal places compared by declared checks
CHECK_PLACES = 4

NUMBER = r"[0-9.eE-]+"
LABEL = r"[\w .%(){},&*/+-]+"

LITERAL_WITH_LABEL = re.compile(rf"({NUMBER}) +({LABEL})", re.ASCII)
OPERATION_WITH_LABEL = re.compile(rf"([A-Z]+) +({LABEL})", re.ASCII)
OPERATION = re.compile(r"[A-Z]+")
LITERAL = re.compile(NUMBER)
REFERENCE = re.compile(rf" *({LABEL})", re.ASCII)


class ParseError(MethodError):
    def __init__(self, line: str):
        super().__init__(f"can't parse '{line}'")


class UnboundLabel(MethodError):
    def __init__(self, line: str):
        super().__init__(f"can't find value of '{line}'")


class UnknownOperation(MethodError):
    def __init__(self, name: str):
        super().__init__(f"don't know how to '{name}'")


class CheckMismatch(MethodError):
    def __init__(self, label: str, expected: float):
        super().__init__(f"{label} != {expected:.{CHECK_PLACES}f}")
        self.label = label
        self.expected = expected


class Severity(str, Enum):
    NORMAL = "normal"
    COMPUTED = "computed"
    ERROR = "error"


class Item(BaseModel):
    """A document: its text, optional expected values and the silent flag."""

    text: str
    checks: dict[str, Any] = {}
    silent: bool = False


class ShowEntry(BaseModel):
    readout: str
    legend: str


class LineRecord(BaseModel):
    """Outcome of one line. Never modified once recorded."""

    model_config = ConfigDict(frozen=True)

    linenum: int
    line: str
    label: str | None = None
    value: Any = None
    severity: Severity = Severity.NORMAL
    comment: str | None = None
    hover: str | None = None
    unpatched: Any = None

    @property
    def text(self) -> str:
        return self.label or self.line

    def to_data(self) -> dict[str, Any]:
        data = self.model_dump(exclude={"value", "unpatched"})
        data["severity"] = self.severity.value
        data["value"] = as_data(self.value)
        data["unpatched"] = as_data(self.unpatched)
        return data


@dataclass
class Caller:
    """Collects the messages of failed lines."""

    errors: list[dict[str, str]] = field(default_factory=list)

    def report(self, message: str) -> None:
        self.errors.append({"message": message})


@dataclass
class RunState:
    """Everything one run reads and writes."""

    item: Item
    input: dict[str, Any] = field(default_factory=dict)
    output: dict[str, Any] = field(default_factory=dict)
    local: dict[str, Any] = field(default_factory=dict)
    patch: dict[int, float] = field(default_factory=dict)
    stack: list[Any] = field(default_factory=list)
    trace: list[LineRecord] = field(default_factory=list)
    show: list[ShowEntry] = field(default_factory=list)
    caller: Caller | None = None
    resolver: DatasetResolver = field(default_factory=NoDatasets)

    @property
    def errors(self) -> list[LineRecord]:
        return [record for record in self.trace if record.severity is Severity.ERROR]

    def to_data(self) -> dict[str, Any]:
        return {
            "output": {label: as_data(value) for label, value in self.output.items()},
            "stack": [as_data(value) for value in self.stack],
            "show": [entry.model_dump() for entry in self.show],
            "trace": [record.to_data() for record in self.trace],
        }


class Interpreter:
    """Runs a document line by line against a RunState."""

    def __init__(self, state: RunState):
        self.state = state

    def run(self) -> RunState:
        for linenum, line in enumerate(self.state.item.text.split("\n"), start=1):
            self.state.trace.append(self.step(linenum, line))
        return self.state

    def step(self, linenum: int, line: str) -> LineRecord:
        state = self.state
        value: Value | None = None
        label = None
        severity = Severity.NORMAL
        comment = None
        hover = None
        unpatched = None
        message = None

        try:
            if m := LITERAL_WITH_LABEL.fullmatch(line):
                label = m.group(2)
                unpatched = to_number(m.group(1))
                value = self.declare(self.patched(linenum, unpatched), label)
                state.local[label] = state.output[label] = value

            elif m := OPERATION_WITH_LABEL.fullmatch(line):
                name, label = m.groups()
                value = self.apply(name, state.stack, label)
                count, state.stack = len(state.stack), []
                severity = Severity.COMPUTED
                hover = self.summary(name, count, value)
                comment = self.change(label, value)
                state.local[label] = state.output[label] = value
                if label in state.item.checks:
                    try:
                        self.verify(label, value)
                    except CheckMismatch as exc:
                        severity = Severity.ERROR
                        label = message = str(exc)

            elif OPERATION.fullmatch(line):
                value = self.apply(line, state.stack)
                count, state.stack = len(state.stack), []
                severity = Severity.COMPUTED
                hover = self.summary(line, count, value)
                state.local[line] = value

            elif LITERAL.fullmatch(line):
                unpatched = to_number(line)
                value = self.patched(linenum, unpatched)

            elif m := REFERENCE.fullmatch(line):
                label = m.group(1)
                value = self.recall(label, line)
                state.local[label] = value

            else:
                raise ParseError(line)

        except (MethodError, ArithmeticError) as exc:
            logger.debug("line %d %r failed: %s", linenum, line, exc)
            severity = Severity.ERROR
            value = None
            comment = message = str(exc)

        if message and state.caller is not None:
            state.caller.report(message)

        if value is not None and not math.isnan(numeric_value(value)):
            state.stack.append(value)

        logger.debug("line %d %r => %r", linenum, line, value)
        return LineRecord(
            linenum=linenum,
            line=line,
            label=label,
            value=value,
            severity=severity,
            comment=comment,
            hover=hover,
            unpatched=unpatched,
        )

    def patched(self, linenum: int, number: float) -> float:
        """The caller's override for a literal line, if any."""
        override = self.state.patch.get(linenum)
        return number if override is None else override

    def declare(self, number: float, label: str) -> Value:
        """Tag a literal with the units (or conversion) its label declares."""
        declared = parse_label(label)
        if declared is None or declared.units is None:
            return number
        if declared.from_ is not None:
            return ConversionConstant(value=number, units=declared.units, from_=declared.from_)
        if is_empty(declared.units):
            return number
        return UnitValue(value=number, units=declared.units)

    def recall(self, label: str, line: str) -> Value:
        for table in (self.state.output, self.state.input):
            if table.get(label) is not None:
                return table[label]
        raise UnboundLabel(line)

    def prior(self, label: str) -> Value | None:
        """Value a label held before this line, from output or input."""
        if self.state.output.get(label) is not None:
            return self.state.output[label]
        return self.state.input.get(label)

    def apply(self, name: str, values: list[Any], label: str = "") -> Value:
        environment = self.state.input
        match name:
            case "SUM":
                result = sum_values(values, environment)
            case "AVG" | "AVERAGE":
                result = average(values, environment)
            case "MIN" | "MINIMUM":
                result = minimum(values)
            case "MAX" | "MAXIMUM":
                result = maximum(values)
            case "RATIO":
                result = ratio(values)
            case "ACCUMULATE":
                result = self.accumulate(values, label)
            case "FIRST":
                if not values:
                    raise EmptyOperands("take first of")
                result = values[0]
            case "PRODUCT":
                result = product(values)
            case "LOOKUP":
                result = lookup(values, self.state.resolver)
            case "POLYNOMIAL":
                if not values:
                    raise EmptyOperands("evaluate")
                result = polynomial(values[0], label, self.state.resolver)
            case "SHOW":
                result = self.show(values, label)
            case "CALC":
                # the label is the expression; its result keeps its own units
                return calculate(label, self.state.local, environment)
            case _:
                raise UnknownOperation(name)

        declared = parse_label(label)
        if declared is None or is_empty(declared.units):
            return result
        return coerce(declared.units, result, environment)

    def accumulate(self, values: list[Any], label: str) -> Value:
        prior = self.prior(label)
        terms = list(values) if prior is None else [prior, *values]
        return sum_values(terms, self.state.input)

    def show(self, values: list[Any], legend: str) -> Value:
        value = sum_values(values, self.state.input)
        declared = parse_label(legend)
        if declared is None or is_empty(declared.units):
            printed = print_units(units_of(value))
            if printed:
                legend = f"{legend}\n{printed}"
        self.state.show.append(ShowEntry(readout=localize(numeric_value(value)), legend=legend))
        return value

    def change(self, label: str, value: Value) -> str | None:
        """Comment on how far a recomputed label moved from its previous value."""
        if self.state.item.silent:
            return None
        prior = self.prior(label)
        if prior is None:
            return None
        previous = numeric_value(prior)
        if previous == 0 or math.isnan(previous):
            return None
        delta = numeric_value(value) / previous - 1
        if abs(delta) > CHANGE_THRESHOLD:
            return f"previously {format_number(previous)}\nΔ {round_readout(delta * 100)}%"
        return None

    def verify(self, label: str, value: Value) -> None:
        expected = numeric_value(self.state.item.checks[label])
        if f"{expected:.{CHECK_PLACES}f}" != f"{numeric_value(value):.{CHECK_PLACES}f}":
            raise CheckMismatch(label, expected)

    @staticmethod
    def summary(name: str, count: int, value: Value) -> str:
        printed = print_units(units_of(value))
        return f"{name} of {count} numbers\n= {format_number(numeric_value(value))} {printed}".rstrip()


def run(
    item: Item | Mapping[str, Any] | str,
    input: Mapping[str, Any] | None = None,
    *,
    patch: Mapping[int, float] | None = None,
    caller: Caller | None = None,
    resolver: DatasetResolver | None = None,
    local: Mapping[str, Any] | None = None,
) -> RunState:
    """Interpret a document to its last line and return the final state."""
    if isinstance(item, str):
        item = Item(text=item)
    elif not isinstance(item, Item):
        item = Item.model_validate(item)

    state = RunState(
        item=item,
        input={label: to_value(value) for label, value in (input or {}).items()},
        local={label: to_value(value) for label, value in (local or {}).items()},
        patch={int(linenum): float(value) for linenum, value in (patch or {}).items()},
        caller=caller,
        resolver=resolver or NoDatasets(),
    )
    return Interpreter(state).run()


def evaluate(
    caller: Caller | None,
    item: Item | Mapping[str, Any] | str,
    input: Mapping[str, Any] | None = None,
    resolver: DatasetResolver | None = None,
) -> dict[str, Any]:
    """Run a document for its declared outputs; line errors go to caller.errors."""
    return run(item, input, caller=caller, resolver=resolver).output


def display(
    item: Item | Mapping[str, Any] | str,
    input: Mapping[str, Any] | None = None,
    patch: Mapping[int, float] | None = None,
    resolver: DatasetResolver | None = None,
) -> RunState:
    """Run a document for rendering, optionally overriding literal lines first."""
    return run(item, input, patch=patch, resolver=resolver)
