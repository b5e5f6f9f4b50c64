# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Evaluation of filter expressions against trace events.

Matching never raises for event data: a missing field, or a non-numeric
value under a numeric operator, simply does not match.
"""

import operator
from typing import Any, Callable, Optional

from etrace.events.event import TraceEvent
from etrace.filtering.expression import And, EQUALITY_OPERATORS, FilterExpression, Leaf

# Identity fields that filters can name directly (compared lowercased)
BUILTIN_KEYS: dict[str, Callable[[TraceEvent], Any]] = {
    "processid": lambda e: e.process_id,
    "threadid": lambda e: e.thread_id,
    "processname": lambda e: e.process_name,
}

# The filter value is the left operand, so each operator is mirrored:
# "X>5" holds for a field value v when 5 < v.
_MIRRORED = {
    ">": operator.lt,
    ">=": operator.le,
    "<": operator.gt,
    "<=": operator.ge,
    "!=": operator.ne,
}


def _to_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _compare_numeric(leaf: Leaf, field_value: Any) -> bool:
    filter_number = _to_int(leaf.raw_value)
    field_number = _to_int(field_value)
    if filter_number is None or field_number is None:
        return False
    return _MIRRORED[leaf.operator](filter_number, field_number)


def _normalize(value: Any) -> str:
    return str(value).strip().lower()


def _match_leaf(leaf: Leaf, event: TraceEvent) -> bool:
    accessor = BUILTIN_KEYS.get(_normalize(leaf.key))
    if accessor is not None:
        field_value = accessor(event)
        if leaf.operator in EQUALITY_OPERATORS:
            return _normalize(field_value) == _normalize(leaf.raw_value)
        return _compare_numeric(leaf, field_value)

    field_value = event.payload_by_name(leaf.key)
    if field_value is None:
        return False
    if leaf.operator in EQUALITY_OPERATORS:
        return leaf.compiled_pattern.search(str(field_value)) is not None
    return _compare_numeric(leaf, field_value)


def matches(expr: FilterExpression, event: TraceEvent) -> bool:
    """
    Return True if the event satisfies the filter expression.

    And nodes short-circuit on the first failing subexpression, in
    declaration order.
    """
    if isinstance(expr, And):
        return all(matches(sub, event) for sub in expr.subexpressions)
    return _match_leaf(expr, event)


def matches_any(filters: list[FilterExpression], event: TraceEvent) -> bool:
    """Return True if any top-level filter matches (stops at the first)."""
    return any(matches(f, event) for f in filters)
