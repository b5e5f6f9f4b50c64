# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
CLI implementation for the trace subcommand.

Reads events from a live session or a recorded file, filters them, and
prints each surviving event, a table of selected fields, or statistics.
"""

from datetime import datetime
from typing import Optional

import click

from etrace.dispatch.lifecycle import SessionLifecycle
from etrace.dispatch.pipeline import EventDispatcher
from etrace.errors import ConfigurationError
from etrace.events.sources import DEFAULT_BUFFER_SIZE, EventFileSource, EventSource, LiveSession
from etrace.filtering.expression import format_filter
from etrace.options import ParsedOptions, split_list, TraceOptions
from etrace.output.consumers import create_consumer


def _diagnose(parsed: ParsedOptions, source: EventSource) -> None:
    """Print the effective configuration to stderr."""
    click.echo(f"Source: {source.describe()}", err=True)
    for line in parsed.providers.describe():
        click.echo(line, err=True)
    if parsed.raw_filter is not None:
        click.echo(f"Raw filter: {parsed.raw_filter.pattern}", err=True)
    for i, expr in enumerate(parsed.filters, 1):
        click.echo(f"Filter {i}: {format_filter(expr)}", err=True)
    if parsed.events:
        click.echo(f"Events: {', '.join(sorted(parsed.events))}", err=True)


def _build_source(parsed: ParsedOptions) -> EventSource:
    options = parsed.options
    if options.is_file_session:
        return EventFileSource(options.file)
    return LiveSession(
        parsed.providers,
        command=options.exec_command,
        buffer_size=options.buffer_size,
    )


def run_trace(options: TraceOptions, verbose: bool = False) -> SessionLifecycle:
    """
    Run one tracing session to completion.

    Args:
        options: Option values for the run
        verbose: Print the effective configuration to stderr

    Returns:
        The finished session, for its counters

    Raises:
        ConfigurationError: If the options are invalid; nothing is read
    """
    parsed = options.parse()
    source = _build_source(parsed)
    if verbose:
        _diagnose(parsed, source)

    if isinstance(source, LiveSession):
        try:
            source.start()
        except OSError as e:
            raise ConfigurationError(f"Cannot start producer '{options.exec_command}': {e}")

    click.echo(f"Processing start time: {datetime.now()}")
    consumer = create_consumer(
        parsed.options.stats_only, parsed.display_fields, options.max_width
    )
    lifecycle = SessionLifecycle(source, consumer)
    dispatcher = EventDispatcher(parsed, lifecycle)

    if options.is_file_session:
        if options.duration_seconds > 0 and verbose:
            click.echo("--duration is ignored for event files", err=True)
    else:
        lifecycle.start_duration_timer(options.duration_seconds)
        if options.duration_seconds > 0 and verbose:
            click.echo(f"Stopping after {options.duration_seconds} s", err=True)

    lifecycle.install_interrupt_handler()
    try:
        lifecycle.run(dispatcher.dispatch)
    finally:
        lifecycle.restore_interrupt_handler()
    return lifecycle


@click.command(name="trace")
@click.option(
    "--raw",
    "raw_filter",
    type=str,
    default="",
    help="Regular expression matched against the entire event description. "
    "Slower than --where; cannot be combined with it.",
)
@click.option(
    "--where",
    "filters",
    multiple=True,
    help="Filter on payload or identity fields, e.g. 'ImageFileName=notepad,ParentID=4840'. "
    "Comma-separated filters are OR'd; '&&' joins conditions that must all hold. "
    "Operators: =, ==, !=, <, <=, >, >=.",
)
@click.option("--pid", "process_id", type=int, default=None, help="Only events from this process.")
@click.option("--tid", "thread_id", type=int, default=None, help="Only events from this thread.")
@click.option(
    "--event",
    "events",
    multiple=True,
    help="Only these events, e.g. 'FileIO/Create,Process/Start'.",
)
@click.option("--clr", "clr_keywords", multiple=True, help="CLR keywords to enable.")
@click.option("--kernel", "kernel_keywords", multiple=True, help="Kernel keywords to enable.")
@click.option(
    "--other",
    "other_providers",
    multiple=True,
    help="Other providers to enable, by name or GUID.",
)
@click.option(
    "--file",
    "file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Recorded NDJSON event file to replay (plain or Zstd-compressed).",
)
@click.option(
    "--exec",
    "exec_command",
    type=str,
    default=None,
    help="Producer command streaming NDJSON events for a live session (default: stdin).",
)
@click.option(
    "--buffer-size",
    type=int,
    default=DEFAULT_BUFFER_SIZE,
    show_default=True,
    help="Live session buffer; events arriving while it is full are lost.",
)
@click.option("--stats", "stats_only", is_flag=True, help="Display only statistics, not events.")
@click.option(
    "--field",
    "display_fields",
    multiple=True,
    help="Display only these fields, with optional widths, e.g. "
    "'PID,TID,ProcessName[16],Receiver[30],Time'. Event, PID, TID and Time "
    "exist for every event.",
)
@click.option(
    "--duration",
    "duration_seconds",
    type=float,
    default=0,
    help="Seconds after which to stop a live session.",
)
@click.option(
    "--width",
    "max_width",
    type=int,
    default=None,
    help="Maximum table line width (default: terminal width).",
)
@click.option("--verbose", "-v", is_flag=True, help="Print the effective configuration to stderr.")
def trace_command(
    raw_filter: str,
    filters: tuple[str, ...],
    process_id: Optional[int],
    thread_id: Optional[int],
    events: tuple[str, ...],
    clr_keywords: tuple[str, ...],
    kernel_keywords: tuple[str, ...],
    other_providers: tuple[str, ...],
    file: Optional[str],
    exec_command: Optional[str],
    buffer_size: int,
    stats_only: bool,
    display_fields: tuple[str, ...],
    duration_seconds: float,
    max_width: Optional[int],
    verbose: bool,
) -> None:
    """
    Filter and display trace events.

    \b
    Examples:
      etrace trace --clr GC --event GC/AllocationTick
      etrace trace --kernel Process,Thread,FileIO,FileIOInit --event File/Create
      etrace trace --file session.ndjson --stats
      etrace trace --clr GC --event GC/Start --field PID,TID,Reason[12],Type
      etrace trace --kernel Process --event Process/Start --where ImageFileName=myapp
      etrace trace --kernel Process --where ProcessId=4
      etrace trace --kernel Thread --where "ProcessName=myapp && ThreadId>100"
      etrace trace --clr GC --event GC/Start --duration 60 --exec ./producer
    """
    options = TraceOptions(
        raw_filter=raw_filter,
        filters=split_list(filters),
        process_id=process_id,
        thread_id=thread_id,
        events=split_list(events),
        clr_keywords=split_list(clr_keywords),
        kernel_keywords=split_list(kernel_keywords),
        other_providers=split_list(other_providers),
        file=file,
        exec_command=exec_command,
        buffer_size=buffer_size,
        stats_only=stats_only,
        display_fields=split_list(display_fields),
        duration_seconds=duration_seconds,
        max_width=max_width,
    )

    try:
        run_trace(options, verbose=verbose)
    except ConfigurationError as e:
        raise click.ClickException(str(e))
