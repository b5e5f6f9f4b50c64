# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Session lifecycle: start, stop triggers, and the one-time summary.

Three things can end a session: the source running dry, the duration timer,
and an interrupt (Ctrl-C). Each of them calls shutdown(), which tears the
session down and prints the summary exactly once no matter how the calls
race. The same lock serializes every dispatch call, so an in-flight event
finishes before teardown begins and the counters are stable when printed.
"""

import signal
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, TextIO

import click

from etrace.events.event import TraceEvent
from etrace.events.sources import EventSource
from etrace.output.consumers import EventConsumer

SUMMARY_LABEL_WIDTH = 30


@dataclass
class DispatchCounters:
    """Throughput counters, written only by the dispatch loop."""

    processed: int = 0
    forwarded: int = 0


class SessionLifecycle:
    """
    Owns the source, the consumer, the counters, and the shutdown lock.

    Example:
        >>> lifecycle = SessionLifecycle(source, consumer)
        >>> dispatcher = EventDispatcher(parsed_options, lifecycle)
        >>> lifecycle.start_duration_timer(60)
        >>> lifecycle.run(dispatcher.dispatch)

    Elapsed time in the summary is measured from construction.
    """

    def __init__(
        self,
        source: EventSource,
        consumer: EventConsumer,
        out: Optional[TextIO] = None,
    ) -> None:
        self.source = source
        self.consumer = consumer
        self.counters = DispatchCounters()
        # Re-entrant: an interrupt can land on a thread already holding it
        self.lock = threading.RLock()
        self.events_lost = 0
        self._out = out
        self._shut_down = False
        self._timer: Optional[threading.Timer] = None
        self._previous_sigint: Optional[Callable] = None
        self._started_clock = time.monotonic()

    @property
    def is_shut_down(self) -> bool:
        return self._shut_down

    def _echo(self, message: str = "") -> None:
        click.echo(message, file=self._out)

    def start_duration_timer(self, seconds: float) -> None:
        """Shut down after seconds elapse; no-op for non-positive durations."""
        if seconds <= 0:
            return
        self._timer = threading.Timer(seconds, self.shutdown)
        self._timer.daemon = True
        self._timer.start()

    def install_interrupt_handler(self) -> None:
        """Route SIGINT to shutdown(). Must be called on the main thread."""
        self._previous_sigint = signal.signal(signal.SIGINT, self._on_interrupt)

    def restore_interrupt_handler(self) -> None:
        if self._previous_sigint is not None:
            signal.signal(signal.SIGINT, self._previous_sigint)
            self._previous_sigint = None

    def _on_interrupt(self, signum, frame) -> None:
        # Signal handlers run on the main thread, possibly in the middle of
        # a dispatch call; shut down from another thread so it completes.
        threading.Thread(target=self.shutdown, name="etrace-shutdown").start()

    def run(self, callback: Callable[[TraceEvent], None]) -> None:
        """Drive the source until it ends or is stopped, then shut down."""
        try:
            self.source.process(callback)
        finally:
            self.shutdown()

    def shutdown(self) -> None:
        """Stop the source, close the consumer and print the summary, once."""
        with self.lock:
            if self._shut_down:
                return
            self._shut_down = True

            if self._timer is not None:
                self._timer.cancel()
            self.source.stop()
            self.consumer.close()
            self.events_lost = self.source.events_lost
            self._print_summary()

    def _print_summary(self) -> None:
        elapsed = timedelta(seconds=time.monotonic() - self._started_clock)
        rows = [
            ("Processing end time:", datetime.now()),
            ("Processing duration:", elapsed),
            ("Processed events:", self.counters.processed),
            ("Displayed events:", self.counters.forwarded),
            ("Events lost:", self.events_lost),
        ]
        self._echo()
        for label, value in rows:
            self._echo(f"{label:<{SUMMARY_LABEL_WIDTH}} {value}")
