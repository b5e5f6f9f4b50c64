# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
Fixed-width column layout for the table consumer.

Columns are admitted left to right while they fit in the maximum line
width; a column that does not fit is dropped rather than wrapped. The last
admitted column receives whatever width remains.
"""

import re
import shutil
from dataclasses import dataclass
from typing import Iterable, Optional

from etrace.events.event import get_expected_field_width

ELLIPSIS = "..."

_FIELD_WITH_WIDTH = re.compile(r"(.*)\[(\d+)\]")


def truncate(value: str, length: int) -> str:
    """
    Cut a string to at most length characters, ending in an ellipsis.

    Examples:
        >>> truncate("ABCDEFGHIJKLMNOP", 10)
        'ABCDEFG...'
        >>> truncate("short", 10)
        'short'
    """
    if len(value) <= length:
        return value
    if length < len(ELLIPSIS):
        return value[: max(length, 0)]
    return value[: length - len(ELLIPSIS)] + ELLIPSIS


@dataclass(frozen=True)
class FieldSpec:
    """A display field and its optional explicit width."""

    name: str
    width: Optional[int] = None

    @classmethod
    def parse(cls, text: str) -> "FieldSpec":
        """Parse "name" or "name[width]"."""
        match = _FIELD_WITH_WIDTH.fullmatch(text.strip())
        if match:
            return cls(match.group(1).strip(), int(match.group(2)))
        return cls(text.strip())

    @property
    def effective_width(self) -> int:
        if self.width is not None:
            return self.width
        return get_expected_field_width(self.name)


@dataclass(frozen=True)
class Column:
    name: str
    width: int


def default_max_width() -> int:
    return shutil.get_terminal_size().columns


class Table:
    """
    Greedy fixed-width table layout.

    Example:
        >>> table = Table(max_width=40)
        >>> for name, width in [("A", 10), ("B", 10), ("C", 25)]:
        ...     table.add_column(name, width)
        >>> [c.name for c in table.columns]
        ['A', 'B']
    """

    def __init__(self, max_width: Optional[int] = None) -> None:
        self.max_width = max_width if max_width is not None else default_max_width()
        self.columns: list[Column] = []
        self.used_width = 0

    def add_column(self, name: str, width: int) -> bool:
        """
        Admit a column if it fits, counting one separator character.

        Returns:
            True if the column was admitted, False if it was dropped
        """
        if self.used_width + width + 1 > self.max_width:
            return False

        self.used_width += width + 1
        self.columns.append(Column(name, width))
        return True

    def format_header(self) -> str:
        """Column names followed by a dashed rule spanning the used width."""
        names = "".join(
            truncate(c.name, c.width).ljust(c.width) + " " for c in self.columns
        )
        return names + "\n" + "-" * self.used_width

    def format_row(self, values: Iterable[object]) -> str:
        """
        Lay out one row of values.

        Values beyond the admitted columns are discarded.
        """
        parts = []
        position = 0
        last = len(self.columns) - 1
        for index, (column, value) in enumerate(zip(self.columns, values)):
            text = str(value)
            if index == last:
                # The last column takes everything up to max_width
                parts.append(truncate(text, self.max_width - position))
            else:
                parts.append(truncate(text, column.width).ljust(column.width) + " ")
                position += column.width + 1
        return "".join(parts)
