# Copyright (c) Meta Platforms, Inc. and affiliates.

"""
CLI implementation for the list subcommand.
"""

import click

from etrace.providers.keywords import ClrKeywords, keyword_names, KernelKeywords


@click.command(name="list")
@click.option("--clr", "show_clr", is_flag=True, help="List CLR keywords.")
@click.option("--kernel", "show_kernel", is_flag=True, help="List kernel keywords.")
def list_command(show_clr: bool, show_kernel: bool) -> None:
    """List the keywords accepted by --clr and --kernel."""
    if not show_clr and not show_kernel:
        show_clr = show_kernel = True

    if show_clr:
        click.echo("\nSupported CLR keywords (use with --clr):\n")
        for name in keyword_names(ClrKeywords):
            click.echo(f"\t{name}")
    if show_kernel:
        click.echo("\nSupported kernel keywords (use with --kernel):\n")
        for name in keyword_names(KernelKeywords):
            click.echo(f"\t{name}")
