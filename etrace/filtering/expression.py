# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Filter expression parsing.

A structured filter is either a single comparison such as
``ImageFileName=notepad`` or ``Size>=4096``, or several comparisons joined
with ``&&`` that must all hold. Several filters given together are OR'd by
the dispatcher.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from etrace.errors import MalformedFilterError

AND_SEPARATOR = "&&"

# Multi-character operators come before their single-character prefixes
OPERATORS = (">=", "<=", ">", "<", "!=", "==")
DEFAULT_OPERATOR = "="

EQUALITY_OPERATORS = frozenset(["=", "=="])
ORDERING_OPERATORS = frozenset(["<", "<=", ">", ">="])

_KEY_FORBIDDEN = re.compile(r"[=<>!]")


@dataclass(frozen=True)
class Leaf:
    """A single KEY OP VALUE comparison."""

    key: str
    operator: str
    raw_value: str
    compiled_pattern: Optional[re.Pattern] = None


@dataclass(frozen=True)
class And:
    """All subexpressions must match."""

    subexpressions: tuple["FilterExpression", ...]

    def __post_init__(self) -> None:
        if not self.subexpressions:
            raise ValueError("And requires at least one subexpression")


FilterExpression = Union[Leaf, And]


def _select_operator(text: str) -> str:
    for op in OPERATORS:
        if op in text:
            return op
    return DEFAULT_OPERATOR


def _parse_comparison(text: str) -> Leaf:
    op = _select_operator(text)
    parts = [p.strip() for p in text.split(op)]
    if len(parts) != 2 or not all(parts):
        raise MalformedFilterError(text, f"expected KEY{op}VALUE")

    key, value = parts
    if _KEY_FORBIDDEN.search(key):
        raise MalformedFilterError(text, f"unexpected operator in key '{key}'")

    pattern = None
    if op in EQUALITY_OPERATORS:
        try:
            pattern = re.compile(value, re.IGNORECASE)
        except re.error as e:
            raise MalformedFilterError(text, f"bad regular expression: {e}")

    return Leaf(key=key, operator=op, raw_value=value, compiled_pattern=pattern)


def parse_filter(text: str) -> FilterExpression:
    """
    Parse one filter string into an expression tree.

    Args:
        text: Filter such as "Reason=Small" or "PID>4 && Size<=1024"

    Returns:
        A Leaf for a single comparison, an And for a composite filter

    Raises:
        MalformedFilterError: If the text is not a valid filter

    Examples:
        >>> parse_filter("Size>10").operator
        '>'
        >>> len(parse_filter("A=1 && B=2").subexpressions)
        2
    """
    text = text.strip()
    if not text:
        raise MalformedFilterError(text, "empty filter")

    if AND_SEPARATOR in text:
        parts = [p.strip() for p in text.split(AND_SEPARATOR)]
        if len(parts) < 2 or not all(parts):
            raise MalformedFilterError(text, "empty operand around '&&'")
        return And(tuple(parse_filter(p) for p in parts))

    return _parse_comparison(text)


def parse_filters(texts: Iterable[str]) -> list[FilterExpression]:
    """Parse each top-level filter, keeping their order."""
    return [parse_filter(t) for t in texts]


def compile_raw_filter(text: str) -> re.Pattern:
    """
    Compile the regular expression matched against whole event descriptions.

    Raises:
        MalformedFilterError: If the regular expression is invalid
    """
    try:
        return re.compile(text)
    except re.error as e:
        raise MalformedFilterError(text, f"bad regular expression: {e}")


def format_filter(expr: FilterExpression) -> str:
    """Render an expression back to filter syntax."""
    if isinstance(expr, And):
        return " && ".join(format_filter(e) for e in expr.subexpressions)
    return f"{expr.key}{expr.operator}{expr.raw_value}"
