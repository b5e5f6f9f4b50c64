# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Consumers of events that passed every filter.

Exactly one consumer is active per run. Each accepts events with or without
a precomputed description and is closed exactly once at shutdown; close()
tolerates repeated calls.
"""

from abc import ABC, abstractmethod
from collections import Counter
from typing import Optional, Sequence, TextIO

import click
from tabulate import tabulate

from etrace.events.event import as_raw_string, TraceEvent
from etrace.output.table import FieldSpec, Table


class EventConsumer(ABC):
    """Receives forwarded events for rendering or aggregation."""

    def __init__(self, out: Optional[TextIO] = None) -> None:
        self._out = out

    def _echo(self, message: str = "") -> None:
        click.echo(message, file=self._out)

    @abstractmethod
    def take_event(self, event: TraceEvent) -> None:
        pass

    def take_event_with_description(self, event: TraceEvent, description: str) -> None:
        """Accept an event whose full description was already rendered."""
        self.take_event(event)

    def close(self) -> None:
        """Release held resources and flush final output."""
        pass

    def __enter__(self) -> "EventConsumer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class RawPrinter(EventConsumer):
    """Prints the full multi-line description of every event."""

    def take_event(self, event: TraceEvent) -> None:
        self.take_event_with_description(event, as_raw_string(event))

    def take_event_with_description(self, event: TraceEvent, description: str) -> None:
        self._echo(description)


class TablePrinter(EventConsumer):
    """
    Prints selected fields of every event as one fixed-width table row.

    The header is printed when the printer is created. A precomputed
    description is not used: rows are always built from fields.
    """

    def __init__(
        self,
        fields: Sequence[FieldSpec],
        max_width: Optional[int] = None,
        out: Optional[TextIO] = None,
    ) -> None:
        super().__init__(out)
        self.table = Table(max_width)
        for spec in fields:
            self.table.add_column(spec.name, spec.effective_width)
        self._echo(self.table.format_header())

    def take_event(self, event: TraceEvent) -> None:
        values = [event.get_field_by_name(c.name) for c in self.table.columns]
        self._echo(self.table.format_row(values))


def format_counts(counts: Counter, key_header: str) -> str:
    """
    Format a frequency table, most frequent first.

    Ties keep first-encountered order (sorted() is stable and Counter
    preserves insertion order).
    """
    rows = sorted(counts.items(), key=lambda item: -item[1])
    # Names are shown verbatim even when they look numeric
    return tabulate(
        rows, headers=[key_header, "Count"], tablefmt="plain", disable_numparse=[0]
    )


class StatsAggregator(EventConsumer):
    """Counts events by name and by process; prints both tables on close."""

    def __init__(self, out: Optional[TextIO] = None) -> None:
        super().__init__(out)
        self.count_by_event_name: Counter = Counter()
        self.count_by_process: Counter = Counter()
        self._closed = False

    def take_event(self, event: TraceEvent) -> None:
        self.count_by_event_name[event.event_name] += 1
        self.count_by_process[event.process_name] += 1

    def close(self) -> None:
        if self._closed:
            return

        self._closed = True
        self._echo("Events by name")
        self._echo(format_counts(self.count_by_event_name, "Event"))
        self._echo()
        self._echo("Events by process")
        self._echo(format_counts(self.count_by_process, "Process"))
        self._echo()


def create_consumer(
    stats_only: bool,
    display_fields: Sequence[FieldSpec],
    max_width: Optional[int] = None,
    out: Optional[TextIO] = None,
) -> EventConsumer:
    """Pick the consumer for a run: statistics, table, or raw printer."""
    if stats_only:
        return StatsAggregator(out)
    if display_fields:
        return TablePrinter(display_fields, max_width, out)
    return RawPrinter(out)
