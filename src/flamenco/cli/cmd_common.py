# topmark:header:start
#
#   project      : Flamenco
#   file         : cmd_common.py
#   file_relpath : src/flamenco/cli/cmd_common.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Helpers shared by Flamenco CLI commands."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, cast

import click

from flamenco.config.model import Config
from flamenco.diagnostic.model import AnnotationSeverity, Result
from flamenco.diagnostic.render import render_annotations

if TYPE_CHECKING:
    from collections.abc import Iterable

    from flamenco.cli.console import ClickConsole
    from flamenco.diagnostic.model import Annotation


def get_console(ctx: click.Context) -> ClickConsole:
    """Return the console installed by the command group."""
    return cast("ClickConsole", ctx.obj["console"])


def get_config(ctx: click.Context) -> Config:
    """Return the loaded configuration, or defaults when none was loaded."""
    return cast("Config", ctx.obj.get("config") or Config())


def get_effective_verbosity(ctx: click.Context) -> int:
    """Return the program-output verbosity (a logging level; lower is more verbose)."""
    return int(ctx.obj.get("verbosity_level", logging.WARNING))


def _visible(severity: AnnotationSeverity, verbosity: int) -> bool:
    if severity is AnnotationSeverity.ERROR:
        return True
    if severity is AnnotationSeverity.WARNING:
        return verbosity <= logging.WARNING
    return verbosity <= logging.INFO


def emit_annotations(ctx: click.Context, source: Result[object] | Iterable[Annotation]) -> None:
    """Render annotation trees to stderr, filtered by the program-output verbosity.

    Warnings are hidden by ``-q``; infos need ``-v``. Nested annotations are
    always shown with their parent.
    """
    annotations = source.annotations if isinstance(source, Result) else tuple(source)
    verbosity = get_effective_verbosity(ctx)
    shown = [a for a in annotations if _visible(a.severity, verbosity)]
    if not shown:
        return

    config = get_config(ctx)
    console = get_console(ctx)
    for line in render_annotations(
        shown,
        indent=config.annotation_indent,
        color=console.enable_color,
        show_descriptions=config.show_descriptions,
    ):
        console.echo_err(line)


def failed(ctx: click.Context, result: Result[object]) -> bool:
    """Return True if ``result`` failed, counting warnings when ``strict`` is configured."""
    return result.failed(strict=get_config(ctx).strict)
