"""Infix arithmetic used by CALC lines.

Grammar:
    expr = term (("+" | "-") term)*
    term = fact (("*" | "/") fact)*
    fact = value | "(" expr ")"

Identifiers are resolved while lexing: a numeric literal becomes a number,
anything else is the value of the first symbol whose label contains it as a
whole word. The parser evaluates as it goes with the unit-aware reducers.
"""

import re
from collections.abc import Mapping
from typing import Any

from .arithmetic import difference, product, ratio, sum_values
from .values import MethodError, Value

OPERATORS = ("+", "-", "*", "/", "(", ")")
NUMBER = re.compile(r"\d+(\.\d+)?(e\d+)?")

Token = Value | str


class UnresolvedSymbol(MethodError):
    def __init__(self, name: str):
        super().__init__(f"can't find value for '{name}'")
        self.name = name


class ExpressionSyntaxError(MethodError):
    pass


class Lexer:
    """Splits an expression into operator characters and resolved values."""

    def __init__(self, source: str, symbols: Mapping[str, Any] | None = None):
        self.source = source
        self.symbols = symbols or {}
        self.tokens: list[Token] = []
        self._tokenise()

    def _tokenise(self) -> None:
        buffer = ""
        for c in self.source:
            if c == " ":
                continue
            if c in OPERATORS:
                if buffer:
                    self.tokens.append(self.resolve(buffer))
                    buffer = ""
                self.tokens.append(c)
                continue
            buffer += c

        if buffer:
            self.tokens.append(self.resolve(buffer))

    def resolve(self, name: str) -> Value:
        if NUMBER.fullmatch(name):
            return float(name)
        word = re.compile(rf"\b{re.escape(name)}\b")
        for label, value in self.symbols.items():
            if word.search(label):
                return value
        raise UnresolvedSymbol(name)


class Parser:
    """Recursive descent evaluator over lexed tokens."""

    def __init__(self, tokens: list[Token], environment: Mapping[str, Any] | None = None):
        self.tokens = tokens
        self.pos = 0
        self.environment = environment or {}

    def peek(self) -> Token | None:
        if self.pos >= len(self.tokens):
            return None
        return self.tokens[self.pos]

    def match(self, *ops: str) -> str | None:
        tok = self.peek()
        if isinstance(tok, str) and tok in ops:
            self.pos += 1
            return tok
        return None

    def parse(self) -> Value:
        try:
            result = self.parse_expr()
        except RecursionError:
            raise ExpressionSyntaxError("expression too deeply nested") from None
        if self.pos < len(self.tokens):
            raise ExpressionSyntaxError(f"unexpected '{self.tokens[self.pos]}'")
        return result

    def parse_expr(self) -> Value:
        left = self.parse_term()
        while op := self.match("+", "-"):
            right = self.parse_term()
            if op == "+":
                left = sum_values([left, right], self.environment)
            else:
                left = difference([left, right], self.environment)
        return left

    def parse_term(self) -> Value:
        left = self.parse_fact()
        while op := self.match("*", "/"):
            right = self.parse_fact()
            if op == "*":
                left = product([left, right])
            else:
                left = ratio([left, right])
        return left

    def parse_fact(self) -> Value:
        if self.match("("):
            result = self.parse_expr()
            if not self.match(")"):
                raise ExpressionSyntaxError("missing paren")
            return result
        tok = self.peek()
        if tok is None or isinstance(tok, str):
            raise ExpressionSyntaxError("missing value")
        self.pos += 1
        return tok


def lex(source: str, symbols: Mapping[str, Any] | None = None) -> list[Token]:
    return Lexer(source, symbols).tokens


def parse(tokens: list[Token], environment: Mapping[str, Any] | None = None) -> Value:
    return Parser(tokens, environment).parse()


def calculate(
    source: str,
    symbols: Mapping[str, Any] | None = None,
    environment: Mapping[str, Any] | None = None,
) -> Value:
    """Lex and evaluate source in one step."""
    return parse(lex(source, symbols), environment)
