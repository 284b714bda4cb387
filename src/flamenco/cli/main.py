# topmark:header:start
#
#   project      : Flamenco
#   file         : main.py
#   file_relpath : src/flamenco/cli/main.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco command line interface.

Group-level options are initialized once and placed into ``ctx.obj``:

- ``verbosity_level``: program-output verbosity resolved from ``-v``/``-q``.
- ``log_level``: internal logging level, taken from ``FLAMENCO_LOG_LEVEL``.
- ``color_enabled`` and ``console``: program output settings.
- ``config``: the loaded [`Config`][flamenco.config.model.Config].
"""

from __future__ import annotations

from pathlib import Path

import click

from flamenco.cli.cmd_common import emit_annotations
from flamenco.cli.commands.changelog import changelog_command
from flamenco.cli.commands.dpkg_version import dpkg_version_group
from flamenco.cli.commands.init_config import init_config_command
from flamenco.cli.commands.status import status_command
from flamenco.cli.commands.version import version_command
from flamenco.cli.console import ClickConsole
from flamenco.cli.errors import FlamencoConfigError
from flamenco.cli.options import (
    ColorMode,
    common_color_options,
    common_verbose_options,
    resolve_color_mode,
    resolve_verbosity,
)
from flamenco.config.logging import get_logger, resolve_env_log_level, setup_logging
from flamenco.config.model import load_config

logger = get_logger(__name__)


def init_common_state(
    ctx: click.Context,
    *,
    verbose: int,
    quiet: int,
    color_mode: ColorMode | None,
    no_color: bool,
    config_path: Path | None = None,
) -> None:
    """Initialize shared state (verbosity, color, config) on the Click context.

    Args:
        ctx (click.Context): Current Click context; will have ``obj`` and ``color`` set.
        verbose (int): Count of ``-v`` flags.
        quiet (int): Count of ``-q`` flags.
        color_mode (ColorMode | None): Explicit color mode from ``--color`` (or ``None``).
        no_color (bool): Whether ``--no-color`` was passed; forces color off.
        config_path (Path | None): Explicit config file from ``--config``.

    Raises:
        FlamencoConfigError: If the configuration file cannot be read or decoded.
    """
    ctx.obj = ctx.obj or {}

    ctx.obj["verbosity_level"] = resolve_verbosity(verbose, quiet)

    level_env = resolve_env_log_level()
    ctx.obj["log_level"] = level_env
    setup_logging(level=level_env)

    effective_color_mode = ColorMode.NEVER if no_color else (color_mode or ColorMode.AUTO)
    enable_color = resolve_color_mode(cli_mode=effective_color_mode, output_format=None)
    ctx.obj["color_enabled"] = enable_color
    ctx.color = enable_color
    ctx.obj["console"] = ClickConsole(enable_color=enable_color)

    loaded = load_config(config_path)
    ctx.obj["config"] = loaded.value
    emit_annotations(ctx, loaded)
    if loaded.is_failure:
        where = loaded.value.config_file or config_path
        raise FlamencoConfigError(f"Cannot load the configuration from '{where}'.")


@click.group(
    cls=click.Group,
    context_settings={"help_option_names": ["-h", "--help"]},
    invoke_without_command=True,
    help="Flamenco: Debian/Ubuntu package metadata tools.",
)
@common_verbose_options
@common_color_options
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read settings from this TOML file instead of discovering one.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: int,
    quiet: int,
    color_mode: str | None,
    no_color: bool,
    config_path: Path | None,
) -> None:
    """Entry point for the Flamenco CLI."""
    init_common_state(
        ctx,
        verbose=verbose,
        quiet=quiet,
        color_mode=ColorMode(color_mode) if color_mode else None,
        no_color=no_color,
        config_path=config_path,
    )

    if ctx.invoked_subcommand is None:
        console: ClickConsole = ctx.obj["console"]
        console.print("Hint: use 'flamenco changelog' to read debian/changelog.")
        console.print()
        console.print(ctx.get_help())


cli.add_command(version_command)

cli.add_command(dpkg_version_group)

cli.add_command(changelog_command)

cli.add_command(status_command)

cli.add_command(init_config_command)

if __name__ == "__main__":
    cli()
