# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Trace event model.

A TraceEvent carries a fixed set of identity fields (event name, process,
thread, timestamp) plus an open-ended payload of named scalar values.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Union

# Pseudo-fields every event can resolve, with their default column widths
BUILTIN_FIELD_WIDTHS = {
    "Event": 20,
    "PID": 5,
    "TID": 5,
    "Time": 15,
}

# Width used for payload fields when no explicit width is requested
DEFAULT_FIELD_WIDTH = 30

# Rendered in place of a payload field the event does not carry
NULL_MARKER = "<null>"

EPOCH = datetime.fromtimestamp(0)


def parse_timestamp(value: Union[str, int, float, None]) -> datetime:
    """
    Convert a record timestamp to a datetime.

    Args:
        value: ISO-8601 string, seconds since the epoch, or None

    Returns:
        The parsed datetime (the epoch when value is None)
    """
    if value is None:
        return EPOCH
    if isinstance(value, str):
        return datetime.fromisoformat(value)
    return datetime.fromtimestamp(value)


@dataclass(frozen=True)
class TraceEvent:
    """
    A single structured trace record.

    payload_names lists the fields the producer declared for this event, in
    declaration order. It normally equals the payload keys, but a producer
    may declare a field it then fails to deliver; payload_value() raises
    LookupError for such a field.
    """

    event_name: str
    process_id: int
    thread_id: int
    process_name: str = ""
    timestamp: datetime = EPOCH
    provider: str = ""
    keywords: Optional[int] = None
    payload: Mapping[str, Any] = field(default_factory=dict)
    payload_names: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not self.payload_names and self.payload:
            object.__setattr__(self, "payload_names", tuple(self.payload))

    @classmethod
    def from_record(cls, record: dict) -> "TraceEvent":
        """
        Build an event from a decoded NDJSON record.

        The record is expected to have passed schema validation.
        """
        payload = dict(record.get("payload") or {})
        return cls(
            event_name=record["event"],
            process_id=record["pid"],
            thread_id=record["tid"],
            process_name=record.get("process") or "",
            timestamp=parse_timestamp(record.get("timestamp")),
            provider=record.get("provider") or "",
            keywords=record.get("keywords"),
            payload=payload,
            payload_names=tuple(record.get("payload_names") or payload),
        )

    def payload_value(self, index: int) -> Any:
        """Return the value of the index-th declared payload field."""
        return self.payload[self.payload_names[index]]

    def payload_by_name(self, name: str) -> Any:
        """Return the payload value for name, or None if absent."""
        return self.payload.get(name)

    def get_field_by_name(self, name: str) -> str:
        """
        Resolve a display field to its string value.

        The pseudo-fields Event, PID, TID and Time come from the identity
        fields; anything else is looked up in the payload.
        """
        if name == "Event":
            return self.event_name
        if name == "PID":
            return str(self.process_id)
        if name == "TID":
            return str(self.thread_id)
        if name == "Time":
            return str(self.timestamp)

        value = self.payload_by_name(name)
        if value is not None:
            return str(value)
        return NULL_MARKER


def get_expected_field_width(name: str) -> int:
    """Default column width for a display field."""
    return BUILTIN_FIELD_WIDTHS.get(name, DEFAULT_FIELD_WIDTH)


def as_raw_string(event: TraceEvent) -> str:
    """
    Render the full textual description of an event.

    The first line holds the identity fields, followed by one indented
    line per payload field. Fields whose value cannot be retrieved are
    left out.

    Args:
        event: The event to render

    Returns:
        Multi-line description string
    """
    lines = [
        f"{event.event_name} [PNAME={event.process_name} PID={event.process_id} "
        f"TID={event.thread_id} TIME={event.timestamp}]"
    ]
    for index, name in enumerate(event.payload_names):
        try:
            value = event.payload_value(index)
        except LookupError:
            continue
        lines.append(f"  {name:<20} = {value}")
    return "\n".join(lines)
