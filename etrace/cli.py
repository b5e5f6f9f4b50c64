# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
etrace CLI entry point.
"""

import sys
from importlib.metadata import PackageNotFoundError, version

import click

from etrace.dispatch.cli import trace_command
from etrace.events.cli import validate_command
from etrace.providers.cli import list_command


def _get_package_version() -> str:
    """Get package version from metadata."""
    try:
        return version("etrace")
    except PackageNotFoundError:
        return "0+unknown"


EXAMPLES = """
Examples:
  etrace trace --file session.ndjson --stats
  etrace trace --clr GC --event GC/Start --where "Reason=Small" --duration 60
  etrace list --kernel
  etrace validate session.ndjson.zst
"""


@click.group(epilog=EXAMPLES)
@click.version_option(version=_get_package_version(), prog_name="etrace")
def main() -> None:
    """etrace: filter and display structured trace events."""
    pass


main.add_command(trace_command)
main.add_command(list_command)
main.add_command(validate_command)


if __name__ == "__main__":
    sys.exit(main())
