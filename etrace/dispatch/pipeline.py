# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Per-event filter chain.

Cheap scalar checks (process, thread, event name) run first. Then at most
one of the raw-text filter and the structured filter list decides whether
the event reaches the consumer.
"""

from typing import Optional

from etrace.dispatch.lifecycle import SessionLifecycle
from etrace.events.event import as_raw_string, TraceEvent
from etrace.filtering.matcher import matches_any
from etrace.options import ParsedOptions


class EventDispatcher:
    """
    Applies the configured filters to each event and forwards the survivors.

    dispatch() is called by the source once per event, in delivery order,
    never concurrently for two events.
    """

    def __init__(self, options: ParsedOptions, lifecycle: SessionLifecycle) -> None:
        self.options = options
        self.lifecycle = lifecycle
        self.counters = lifecycle.counters
        self.consumer = lifecycle.consumer

    def dispatch(self, event: TraceEvent) -> None:
        with self.lifecycle.lock:
            if self.lifecycle.is_shut_down:
                return
            self._dispatch(event)

    def _dispatch(self, event: TraceEvent) -> None:
        options = self.options
        self.counters.processed += 1

        if options.process_id is not None and options.process_id != event.process_id:
            return
        if options.thread_id is not None and options.thread_id != event.thread_id:
            return
        if options.events and event.event_name not in options.events:
            return

        if options.raw_filter is not None:
            description = as_raw_string(event)
            if options.raw_filter.search(description):
                self._take_event(event, description)
        elif options.filters:
            if matches_any(options.filters, event):
                self._take_event(event)
        else:
            self._take_event(event)

    def _take_event(self, event: TraceEvent, description: Optional[str] = None) -> None:
        if description is not None:
            self.consumer.take_event_with_description(event, description)
        else:
            self.consumer.take_event(event)
        self.counters.forwarded += 1
