# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
CLI implementation for the validate subcommand.

Checks a recorded event file against the event record schema before it is
replayed with 'etrace trace --file'.
"""

import json
import sys
from pathlib import Path
from typing import Any

import click

from etrace.events.schema import validate_event_file


def _format_size(size_bytes: int) -> str:
    """Format file size for display."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    else:
        return f"{size_bytes / (1024 * 1024):.1f} MB"


def _print_validation_result(result: dict[str, Any]) -> None:
    if result["valid"]:
        click.echo("Valid event file")
        fmt = "NDJSON + Zstd" if result["compression"] == "zstd" else "NDJSON"
        click.echo(f"   Format:       {fmt}")
        click.echo(f"   Records:      {result['record_count']}")
        click.echo(f"   File size:    {_format_size(result['file_size'])}")
    else:
        click.echo("Validation failed")
        for error in result["errors"]:
            click.echo(f"   {error}")


@click.command(name="validate")
@click.argument("file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--quiet", "-q", is_flag=True, help="Quiet mode. Only return exit code.")
@click.option("--json", "json_output", is_flag=True, help="Output results in JSON format.")
def validate_command(file: Path, quiet: bool, json_output: bool) -> None:
    """Validate the records of a recorded event FILE."""
    result = validate_event_file(file)

    if json_output:
        click.echo(json.dumps(result, indent=2))
    elif not quiet:
        _print_validation_result(result)

    sys.exit(0 if result["valid"] else 1)
