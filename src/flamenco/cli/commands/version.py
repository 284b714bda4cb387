# topmark:header:start
#
#   project      : Flamenco
#   file         : version.py
#   file_relpath : src/flamenco/cli/commands/version.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco `version` command.

Prints the current Flamenco version as installed in the active Python environment.
"""

from __future__ import annotations

import json
import logging

import click

from flamenco.cli.cmd_common import get_console, get_effective_verbosity
from flamenco.cli.options import OutputFormat, output_format_option
from flamenco.constants import FLAMENCO_VERSION


@click.command(
    name="version",
    help="Show the current version of Flamenco.",
)
@output_format_option
def version_command(*, output_format: str) -> None:
    """Show the current version of Flamenco.

    Args:
        output_format (str): ``text`` or ``json``.
    """
    ctx = click.get_current_context()
    ctx.ensure_object(dict)
    console = get_console(ctx)

    if OutputFormat(output_format) is OutputFormat.JSON:
        console.print(json.dumps({"version": FLAMENCO_VERSION}))
    elif get_effective_verbosity(ctx) <= logging.INFO:
        console.print(console.styled("Flamenco version:\n", bold=True, underline=True))
        console.print(f"    {console.styled(FLAMENCO_VERSION, bold=True)}")
    else:
        console.print(console.styled(FLAMENCO_VERSION, bold=True))
