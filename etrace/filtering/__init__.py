# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
etrace filtering module.

- parse_filter: Parse a filter string into an expression tree
- matches: Evaluate an expression tree against an event
"""

from .expression import And, compile_raw_filter, Leaf, parse_filter, parse_filters
from .matcher import matches, matches_any

__all__ = [
    "And",
    "compile_raw_filter",
    "Leaf",
    "matches",
    "matches_any",
    "parse_filter",
    "parse_filters",
]
