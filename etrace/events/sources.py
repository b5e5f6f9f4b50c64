# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Event sources: recorded file replay and live sessions.

A source drives the dispatch loop by calling a callback once per event, in
delivery order, on the thread that called process(). stop() may be called
from any thread; process() then returns at the next event boundary.
"""

import json
import queue
import shlex
import subprocess
import sys
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable, Optional, TextIO, Union

from etrace.events.compression import DECODE_ERRORS, open_event_file
from etrace.events.event import TraceEvent
from etrace.events.schema import validate_event_record
from etrace.providers.keywords import ProviderSelection

EventCallback = Callable[[TraceEvent], None]

DEFAULT_BUFFER_SIZE = 10000
DEFAULT_POLL_INTERVAL = 0.1


def decode_event(line: str) -> Optional[TraceEvent]:
    """
    Decode one NDJSON line into an event.

    Returns:
        The event, or None if the line is not a valid event record
    """
    try:
        # Bytes that were not UTF-8 arrive as lone surrogates and fail here
        line.encode("utf-8")
        record = json.loads(line)
        if not validate_event_record(record):
            return None
        return TraceEvent.from_record(record)
    except (ValueError, OverflowError, OSError):
        # Invalid UTF-8, bad JSON or an unrepresentable timestamp
        return None


class EventSource(ABC):
    """A finite or continuous sequence of trace events."""

    def __init__(self) -> None:
        self._stopped = threading.Event()
        self._lost = 0
        self._lost_lock = threading.Lock()

    @abstractmethod
    def process(self, callback: EventCallback) -> None:
        """Deliver events to callback until exhausted or stopped."""
        pass

    @abstractmethod
    def describe(self) -> str:
        pass

    def stop(self) -> None:
        self._stopped.set()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    @property
    def events_lost(self) -> int:
        """Events the producer could not deliver."""
        with self._lost_lock:
            return self._lost

    def _count_lost(self) -> None:
        with self._lost_lock:
            self._lost += 1


class EventFileSource(EventSource):
    """
    Replays a recorded NDJSON event file (plain or Zstd-compressed).

    Lines that are not valid event records are skipped and counted as lost.

    Example:
        >>> source = EventFileSource("session.ndjson.zst")
        >>> source.process(print)
    """

    def __init__(self, file_path: Union[str, Path]) -> None:
        super().__init__()
        self.file_path = Path(file_path)

        if not self.file_path.exists():
            raise FileNotFoundError(f"File not found: {self.file_path}")

    def describe(self) -> str:
        return f"file {self.file_path}"

    def process(self, callback: EventCallback) -> None:
        with open_event_file(self.file_path) as f:
            for line in f:
                if self.stopped:
                    return
                line = line.strip()
                if not line:
                    continue
                event = decode_event(line)
                if event is None:
                    self._count_lost()
                    continue
                callback(event)


class LiveSession(EventSource):
    """
    A continuously producing source fed by NDJSON lines.

    Lines come from a producer command's stdout, or from an already open
    stream (stdin by default). A reader thread decodes them, keeps events
    from enabled providers, and queues them in a bounded buffer; an event
    arriving while the buffer is full is dropped and counted as lost.
    """

    def __init__(
        self,
        providers: ProviderSelection,
        command: Optional[str] = None,
        stream: Optional[TextIO] = None,
        buffer_size: int = DEFAULT_BUFFER_SIZE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        super().__init__()
        self.providers = providers
        self.command = command
        self._stream = stream
        self._queue: "queue.Queue[TraceEvent]" = queue.Queue(maxsize=buffer_size)
        self._poll_interval = poll_interval
        self._producer_done = threading.Event()
        self._process: Optional[subprocess.Popen] = None
        self._reader: Optional[threading.Thread] = None

    def describe(self) -> str:
        if self.command:
            return f"live session from '{self.command}'"
        return "live session from stdin"

    def start(self) -> None:
        """Launch the producer (if any) and the reader thread."""
        if self._reader is not None:
            return

        if self.command:
            self._process = subprocess.Popen(
                shlex.split(self.command),
                stdout=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors=DECODE_ERRORS,
            )
            lines: Iterable[str] = self._process.stdout
        else:
            lines = self._stream if self._stream is not None else sys.stdin
            if hasattr(lines, "reconfigure"):
                lines.reconfigure(errors=DECODE_ERRORS)

        self._reader = threading.Thread(
            target=self._read_lines, args=(lines,), name="etrace-reader", daemon=True
        )
        self._reader.start()

    def _read_lines(self, lines: Iterable[str]) -> None:
        try:
            for line in lines:
                if self.stopped:
                    break
                line = line.strip()
                if not line:
                    continue
                event = decode_event(line)
                if event is None:
                    self._count_lost()
                elif self.providers.accepts(event):
                    self.offer(event)
        except ValueError:
            # Reading a stream that was closed after stop()
            if not self.stopped:
                raise
        finally:
            self._reap_producer()
            self._producer_done.set()

    def _reap_producer(self) -> None:
        if self._process is None:
            return
        if self._process.stdout is not None:
            self._process.stdout.close()
        # Returns once the producer exits on its own or stop() terminates it
        self._process.wait()

    def offer(self, event: TraceEvent) -> bool:
        """Queue an event, dropping it if the buffer is full."""
        try:
            self._queue.put_nowait(event)
            return True
        except queue.Full:
            self._count_lost()
            return False

    def process(self, callback: EventCallback) -> None:
        self.start()
        while not self.stopped:
            try:
                event = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                if self._producer_done.is_set() and self._queue.empty():
                    return
                continue
            callback(event)

    def stop(self) -> None:
        super().stop()
        if self._process is not None and self._process.poll() is None:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.kill()
