# topmark:header:start
#
#   project      : Flamenco
#   file         : status.py
#   file_relpath : src/flamenco/cli/commands/status.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco `status` command: compare the local changelog with published releases."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

import click

from flamenco.cli.cmd_common import emit_annotations, failed, get_config, get_console
from flamenco.cli.commands.changelog import changelog_error, resolve_changelog_path
from flamenco.cli.errors import FlamencoDataError, FlamencoIOError, FlamencoUnavailableError
from flamenco.cli.options import OutputFormat, output_format_option
from flamenco.config.logging import get_logger
from flamenco.diagnostic.annotations import operation_canceled
from flamenco.diagnostic.location import Location
from flamenco.diagnostic.model import Result
from flamenco.distro.madison import (
    MALFORMED_MADISON_RESPONSE,
    MadisonArchive,
    build_query_url,
    fetch_release_states,
    parse_madison_response,
)
from flamenco.distro.status import ReleaseComparison, StatusRow, summarize_status
from flamenco.dpkg.archive import ReleaseStateQuery
from flamenco.dpkg.changelog import read_first_entry

if TYPE_CHECKING:
    from flamenco.cli.console import ClickConsole
    from flamenco.config.logging import FlamencoLogger
    from flamenco.config.model import Config
    from flamenco.dpkg.archive import PackageReleaseState
    from flamenco.dpkg.changelog import ChangelogEntry

logger: FlamencoLogger = get_logger(__name__)

ARCHIVES: Final[tuple[str, ...]] = ("ubuntu", "debian")
COLUMNS: Final[tuple[str, ...]] = ("Archive", "Series", "Pocket", "Component", "Version", "Note")

_NOTE_STYLES: Final[dict[ReleaseComparison, dict[str, Any]]] = {
    ReleaseComparison.BEHIND: {"fg": "red"},
    ReleaseComparison.AHEAD: {"fg": "yellow"},
    ReleaseComparison.UP_TO_DATE: {"dim": True},
}


def madison_archive(name: str, config: Config) -> MadisonArchive:
    """Return the Madison archive ``name`` with its configured endpoint."""
    if name == "debian":
        return MadisonArchive.debian(config.debian_madison_url)
    return MadisonArchive.ubuntu(config.ubuntu_madison_url)


def note_for(row: StatusRow, entry: ChangelogEntry) -> str:
    """Return the human-readable comparison note of ``row``."""
    if row.comparison is ReleaseComparison.BEHIND:
        return f"Local version ({entry.version}) is behind!"
    if row.comparison is ReleaseComparison.AHEAD:
        return f"Local version ({entry.version}) is ahead!"
    if row.comparison is ReleaseComparison.UP_TO_DATE:
        return "Local version is up to date."
    return ""


def row_cells(row: StatusRow, entry: ChangelogEntry) -> list[str]:
    """Return the plain table cells of ``row``."""
    section = row.state.archive_section
    return [
        section.archive_name,
        str(section.suite.series),
        section.suite.pocket.display_name,
        str(section.component),
        str(row.state.version),
        note_for(row, entry),
    ]


def row_to_dict(row: StatusRow) -> dict[str, Any]:
    """Return a JSON-friendly mapping of ``row``."""
    state = row.state
    section = state.archive_section
    return {
        "package": str(state.package),
        "archive": section.archive_name,
        "series": str(section.suite.series),
        "pocket": str(section.suite.pocket),
        "component": str(section.component),
        "architecture": str(state.architecture),
        "version": str(state.version),
        "pending": state.is_pending_or_proposed,
        "highest": row.is_highest,
        "comparison": row.comparison.value if row.comparison else None,
    }


def render_table(console: ClickConsole, rows: list[StatusRow], entry: ChangelogEntry) -> None:
    """Print ``rows`` as an aligned table; pending and superseded releases are dimmed."""
    cells = [row_cells(row, entry) for row in rows]
    widths = [max(len(c) for c in column) for column in zip(COLUMNS, *cells)]

    def line(values: list[str]) -> str:
        return "  ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    console.print(console.styled(line(list(COLUMNS)), bold=True))
    previous_series: str | None = None
    for row, values in zip(rows, cells):
        if previous_series is not None and values[1] != previous_series:
            console.print()
        previous_series = values[1]

        text = line(values[:-1])
        if row.state.is_pending_or_proposed or not row.is_highest:
            text = console.styled(text, dim=True)
        note = values[-1]
        if row.comparison is not None:
            note = console.styled(note, **_NOTE_STYLES[row.comparison])
        console.print(f"{text}  {note}".rstrip() if note else text)


def query_release_states(
    ctx: click.Context,
    archive: MadisonArchive,
    query: ReleaseStateQuery,
    madison_file: Path | None,
) -> Result[list[PackageReleaseState]]:
    """Return release states from a saved Madison response or over HTTP."""
    if madison_file is not None:
        logger.info("Reading madison response from %s", madison_file)
        try:
            text = madison_file.read_text(encoding="utf-8")
        except OSError as e:
            raise FlamencoIOError(f"Cannot read '{madison_file}': {e}") from e
        return parse_madison_response(text, archive, resource=str(madison_file))

    try:
        return fetch_release_states(archive, query, timeout=get_config(ctx).request_timeout)
    except KeyboardInterrupt:
        url = build_query_url(archive, query)
        return Result.failure(operation_canceled(Location(resource=url)))


@click.command(
    name="status",
    help="Compare the newest local changelog entry with the versions published in an archive.",
)
@click.argument(
    "path",
    required=False,
    type=click.Path(dir_okay=False, path_type=Path),
)
@click.option(
    "--archive",
    "archive_name",
    type=click.Choice(list(ARCHIVES)),
    default=ARCHIVES[0],
    show_default=True,
    help="Archive to query.",
)
@click.option(
    "--madison-file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read a saved Madison text response instead of querying the service.",
)
@output_format_option
@click.pass_context
def status_command(
    ctx: click.Context,
    path: Path | None,
    archive_name: str,
    madison_file: Path | None,
    output_format: str,
) -> None:
    """Report how the local changelog version relates to the archive.

    Args:
        ctx (click.Context): Current Click context.
        path (Path | None): Changelog to read; the configured path when omitted.
        archive_name (str): ``ubuntu`` or ``debian``.
        madison_file (Path | None): Saved Madison response to use instead of HTTP.
        output_format (str): ``text`` or ``json``.
    """
    console = get_console(ctx)
    path = resolve_changelog_path(ctx, path)

    entry_result = read_first_entry(path)
    emit_annotations(ctx, entry_result)
    if failed(ctx, entry_result):
        raise changelog_error(path, entry_result)
    entry = entry_result.value

    archive = madison_archive(archive_name, get_config(ctx))
    query = ReleaseStateQuery(package_names=(entry.package_name,))
    states = query_release_states(ctx, archive, query, madison_file)
    emit_annotations(ctx, states)
    if states.is_failure:
        if any(a.identifier == MALFORMED_MADISON_RESPONSE for a in states.errors):
            raise FlamencoDataError(f"The {archive.name} madison response is malformed.")
        raise FlamencoUnavailableError(f"Cannot query the {archive.name} madison service.")

    rows = summarize_status(entry, states.value)

    if OutputFormat(output_format) is OutputFormat.JSON:
        console.print(
            json.dumps(
                {
                    "package": str(entry.package_name),
                    "version": str(entry.version),
                    "distributions": [str(suite) for suite in entry.distributions],
                    "archive": archive.name,
                    "release_states": [row_to_dict(row) for row in rows],
                },
                indent=2,
            )
        )
        return

    distributions = " ".join(str(suite) for suite in entry.distributions)
    console.print(
        f"{console.styled('Local', bold=True)}: "
        f"{entry.package_name} {entry.version} ({distributions})"
    )
    console.print()
    if not rows:
        console.print(f"No releases of {entry.package_name} found in {archive.name}.")
        return
    console.print(console.styled(f"src:{entry.package_name}", dim=True))
    render_table(console, rows, entry)
