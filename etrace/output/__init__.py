# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
etrace output module: table layout and event consumers.
"""

from .consumers import (
    create_consumer,
    EventConsumer,
    RawPrinter,
    StatsAggregator,
    TablePrinter,
)
from .table import FieldSpec, Table, truncate

__all__ = [
    "create_consumer",
    "EventConsumer",
    "FieldSpec",
    "RawPrinter",
    "StatsAggregator",
    "Table",
    "TablePrinter",
    "truncate",
]
