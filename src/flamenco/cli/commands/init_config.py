# topmark:header:start
#
#   project      : Flamenco
#   file         : init_config.py
#   file_relpath : src/flamenco/cli/commands/init_config.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco `init-config` command.

Prints an initial Flamenco configuration file to stdout, with every setting at
its default value. Intended as a starting point for a project's
``flamenco.toml`` (or, with ``--pyproject``, its ``[tool.flamenco]`` table).
"""

from __future__ import annotations

import logging

import click

from flamenco.cli.cmd_common import get_console, get_effective_verbosity
from flamenco.config.writer import render_config_toml


@click.command(
    name="init-config",
    help="Display an initial Flamenco configuration file.",
)
@click.option(
    "--pyproject",
    "for_pyproject",
    is_flag=True,
    help="Nest the settings under [tool.flamenco] for use in pyproject.toml.",
)
def init_config_command(*, for_pyproject: bool) -> None:
    """Print a starter config file to stdout.

    Args:
        for_pyproject (bool): Render a ``pyproject.toml`` fragment.
    """
    ctx = click.get_current_context()
    ctx.ensure_object(dict)
    console = get_console(ctx)
    verbose = get_effective_verbosity(ctx) <= logging.INFO

    if verbose:
        console.print(
            console.styled("Initial Flamenco Configuration (TOML):", bold=True, underline=True)
        )
        console.print(console.styled("# === BEGIN ===", fg="cyan", dim=True))

    console.print(render_config_toml(for_pyproject=for_pyproject), nl=False)

    if verbose:
        console.print(console.styled("# === END ===", fg="cyan", dim=True))
