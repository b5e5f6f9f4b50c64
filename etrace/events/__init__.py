# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
etrace events module.

- TraceEvent: one structured trace record
- as_raw_string: full textual description of an event
"""

from .event import as_raw_string, NULL_MARKER, TraceEvent

__all__ = [
    "as_raw_string",
    "NULL_MARKER",
    "TraceEvent",
]
