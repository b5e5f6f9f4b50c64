# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Run configuration for the trace command.

TraceOptions holds option values as given on the command line; parse()
validates their combination and compiles filters and keywords once, before
any event is read.
"""

import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from etrace.errors import ConfigurationError
from etrace.events.sources import DEFAULT_BUFFER_SIZE
from etrace.filtering.expression import compile_raw_filter, FilterExpression, parse_filters
from etrace.output.table import FieldSpec
from etrace.providers.keywords import ProviderSelection


def split_list(values: Iterable[str]) -> list[str]:
    """
    Flatten comma-separated option values.

    Examples:
        >>> split_list(["PID,TID", " Reason[12] "])
        ['PID', 'TID', 'Reason[12]']
    """
    items = []
    for value in values:
        items.extend(part.strip() for part in value.split(","))
    return [item for item in items if item]


@dataclass
class TraceOptions:
    """Option values for one run, before validation."""

    raw_filter: str = ""
    filters: list[str] = field(default_factory=list)
    process_id: Optional[int] = None
    thread_id: Optional[int] = None
    events: list[str] = field(default_factory=list)
    clr_keywords: list[str] = field(default_factory=list)
    kernel_keywords: list[str] = field(default_factory=list)
    other_providers: list[str] = field(default_factory=list)
    file: Optional[str] = None
    exec_command: Optional[str] = None
    buffer_size: int = DEFAULT_BUFFER_SIZE
    stats_only: bool = False
    display_fields: list[str] = field(default_factory=list)
    duration_seconds: float = 0
    max_width: Optional[int] = None

    @property
    def is_file_session(self) -> bool:
        return bool(self.file)

    def parse(self) -> "ParsedOptions":
        """
        Validate and compile the options.

        Raises:
            ConfigurationError: For malformed filters, unknown keywords, or
                incompatible option combinations
        """
        if self.raw_filter and self.filters:
            raise ConfigurationError("--raw and --where cannot be used together")

        providers = ProviderSelection.from_names(
            kernel_keywords=self.kernel_keywords,
            clr_keywords=self.clr_keywords,
            other_providers=self.other_providers,
        )

        if self.is_file_session:
            if not providers.is_empty:
                raise ConfigurationError(
                    "Specifying keywords and/or providers is not supported "
                    "when parsing event files"
                )
            if self.exec_command:
                raise ConfigurationError("--exec cannot be used with --file")
        elif providers.is_empty:
            raise ConfigurationError("No events to collect")

        if self.buffer_size <= 0:
            raise ConfigurationError("--buffer-size must be positive")
        if self.duration_seconds < 0:
            raise ConfigurationError("--duration cannot be negative")

        return ParsedOptions(
            options=self,
            raw_filter=compile_raw_filter(self.raw_filter) if self.raw_filter else None,
            filters=parse_filters(self.filters),
            events=frozenset(self.events),
            providers=providers,
            display_fields=[FieldSpec.parse(f) for f in self.display_fields],
        )


@dataclass
class ParsedOptions:
    """Validated, compiled configuration shared read-only by the pipeline."""

    options: TraceOptions
    raw_filter: Optional[re.Pattern]
    filters: list[FilterExpression]
    events: frozenset[str]
    providers: ProviderSelection
    display_fields: list[FieldSpec]

    @property
    def process_id(self) -> Optional[int]:
        return self.options.process_id

    @property
    def thread_id(self) -> Optional[int]:
        return self.options.thread_id
