# topmark:header:start
#
#   project      : Flamenco
#   file         : changelog.py
#   file_relpath : src/flamenco/cli/commands/changelog.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco `changelog` command: parse a Debian changelog and report its entries."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import click

from flamenco.cli.cmd_common import (
    emit_annotations,
    failed,
    get_config,
    get_console,
    get_effective_verbosity,
)
from flamenco.cli.errors import (
    FlamencoDataError,
    FlamencoError,
    FlamencoFileNotFoundError,
    FlamencoIOError,
    FlamencoPermissionDeniedError,
)
from flamenco.cli.options import OutputFormat, output_format_option
from flamenco.config.logging import get_logger
from flamenco.diagnostic.model import Result, compute_diagnostic_stats
from flamenco.dpkg.changelog import (
    CHANGELOG_NOT_FOUND,
    CHANGELOG_OPEN_FAILED,
    CHANGELOG_PERMISSION_DENIED,
    CHANGELOG_READ_FAILED,
    ChangelogEntry,
    ChangelogReader,
    read_first_entry,
)

if TYPE_CHECKING:
    from flamenco.cli.console import ClickConsole
    from flamenco.config.logging import FlamencoLogger

logger: FlamencoLogger = get_logger(__name__)

TRAILER_DATE_FORMAT: Final[str] = "%a, %d %b %Y %H:%M:%S %z"

_ERRORS_BY_ANNOTATION: Final[dict[str, type[FlamencoError]]] = {
    CHANGELOG_NOT_FOUND: FlamencoFileNotFoundError,
    CHANGELOG_PERMISSION_DENIED: FlamencoPermissionDeniedError,
    CHANGELOG_OPEN_FAILED: FlamencoIOError,
    CHANGELOG_READ_FAILED: FlamencoIOError,
}


def changelog_error(path: Path, result: Result[Any]) -> FlamencoError:
    """Return the CLI error matching the error annotations of ``result``.

    Access problems map to their dedicated exit codes; anything else is a data error.
    """
    for annotation in result.errors:
        error_cls = _ERRORS_BY_ANNOTATION.get(annotation.identifier)
        if error_cls is not None:
            return error_cls(annotation.message)
    return FlamencoDataError(f"The changelog '{path}' contains errors.")


def resolve_changelog_path(ctx: click.Context, path: Path | None) -> Path:
    """Return ``path`` or the configured changelog path."""
    return path if path is not None else Path(get_config(ctx).changelog_path)


def entry_to_dict(entry: ChangelogEntry) -> dict[str, Any]:
    """Return a JSON-friendly mapping of ``entry``."""
    return {
        "package": str(entry.package_name),
        "version": str(entry.version),
        "distributions": [str(suite) for suite in entry.distributions],
        "metadata": dict(entry.metadata),
        "maintainer": {"name": entry.maintainer.name, "email": entry.maintainer.email},
        "date": entry.date.isoformat(),
        "description": entry.description,
        "location": str(entry.location),
    }


def render_entry(console: ClickConsole, entry: ChangelogEntry, *, verbose: bool) -> None:
    """Print ``entry`` in changelog layout; the body only when ``verbose``."""
    header = (
        f"{console.styled(str(entry.package_name), bold=True)} ({entry.version}) "
        f"{' '.join(str(suite) for suite in entry.distributions)}"
    )
    if entry.metadata:
        header += "; " + ", ".join(f"{key}={value}" for key, value in entry.metadata.items())
    console.print(header)
    if verbose:
        console.print(entry.description, nl=False)
    console.print(f" -- {entry.maintainer}  {entry.date.strftime(TRAILER_DATE_FORMAT)}")


@click.command(name="changelog", help="Parse a Debian changelog (default: debian/changelog).")
@click.argument(
    "path",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option("--first", is_flag=True, help="Only read the newest entry.")
@output_format_option
@click.pass_context
def changelog_command(
    ctx: click.Context,
    path: Path | None,
    first: bool,
    output_format: str,
) -> None:
    """Parse a changelog, print its entries and report problems on stderr.

    Args:
        ctx (click.Context): Current Click context.
        path (Path | None): Changelog to read; the configured path when omitted.
        first (bool): Stop after the newest entry.
        output_format (str): ``text`` or ``json``.

    Raises:
        FlamencoError: A subclass matching the first problem found.
    """
    console = get_console(ctx)
    path = resolve_changelog_path(ctx, path)
    logger.info("Reading changelog %s", path)

    results: list[Result[ChangelogEntry]]
    if first:
        results = [read_first_entry(path)]
    else:
        opened = ChangelogReader.from_file(path)
        if opened.is_failure:
            emit_annotations(ctx, opened)
            raise changelog_error(path, opened)
        with opened.value as reader:
            results = list(reader.entries())

    entries = [r.value for r in results if r.has_value]
    merged: Result[None] = Result.merge_all(results)
    emit_annotations(ctx, merged)

    if OutputFormat(output_format) is OutputFormat.JSON:
        console.print(json.dumps([entry_to_dict(e) for e in entries], indent=2))
    else:
        verbose = get_effective_verbosity(ctx) <= logging.INFO
        for index, entry in enumerate(entries):
            if index:
                console.print()
            render_entry(console, entry, verbose=verbose)
        if verbose:
            stats = compute_diagnostic_stats(merged.annotations)
            console.echo_err(
                f"Read {len(entries)} entries from '{path}': "
                f"{stats.n_error} error(s), {stats.n_warning} warning(s)."
            )

    if failed(ctx, merged):
        raise changelog_error(path, merged)
