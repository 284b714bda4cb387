# topmark:header:start
#
#   project      : Flamenco
#   file         : dpkg_version.py
#   file_relpath : src/flamenco/cli/commands/dpkg_version.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco `dpkg-version` commands: inspect, compare and sort Debian versions."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

import click

from flamenco.cli.cmd_common import emit_annotations, failed, get_console, get_effective_verbosity
from flamenco.cli.errors import FlamencoDataError
from flamenco.cli.exit_codes import ExitCode
from flamenco.cli.options import OutputFormat, output_format_option
from flamenco.config.logging import get_logger
from flamenco.constants import VALUE_NOT_SET
from flamenco.diagnostic.model import Result
from flamenco.dpkg.version import RELATIONS, Version, satisfies, sort_versions

if TYPE_CHECKING:
    from flamenco.config.logging import FlamencoLogger

logger: FlamencoLogger = get_logger(__name__)


def _parse_or_fail(ctx: click.Context, text: str) -> Version:
    result = Version.parse(text)
    emit_annotations(ctx, result)
    if failed(ctx, result):
        raise FlamencoDataError(f"Invalid version '{text}'.")
    return result.value


def describe_version(version: Version) -> dict[str, str | int | None]:
    """Return the components of ``version`` as a JSON-friendly mapping."""
    return {
        "version": str(version),
        "epoch": version.epoch_value,
        "upstream_version": version.upstream_version,
        "revision": version.revision,
        "debian_revision": version.debian_revision,
        "ubuntu_revision": version.ubuntu_revision,
        "reverted_upstream_version": version.reverted_upstream_version,
        "real_upstream_version": version.real_upstream_version,
        "effective_upstream_version": version.effective_upstream_version,
    }


@click.group(name="dpkg-version", help="Inspect, compare and sort Debian package versions.")
def dpkg_version_group() -> None:
    """Group for the Debian version subcommands."""


@dpkg_version_group.command(name="show", help="Show the components of VERSION.")
@click.argument("version_text", metavar="VERSION")
@output_format_option
@click.pass_context
def show_command(ctx: click.Context, version_text: str, output_format: str) -> None:
    """Print the decomposition of a Debian version.

    Args:
        ctx (click.Context): Current Click context.
        version_text (str): The version to decompose.
        output_format (str): ``text`` or ``json``.
    """
    console = get_console(ctx)
    version = _parse_or_fail(ctx, version_text)
    fields = describe_version(version)

    if OutputFormat(output_format) is OutputFormat.JSON:
        console.print(json.dumps(fields))
        return

    width = max(len(key) for key in fields)
    for key, value in fields.items():
        shown = VALUE_NOT_SET if value is None else str(value)
        console.print(f"{console.styled(key.ljust(width), bold=True)} : {shown}")


@dpkg_version_group.command(
    name="compare",
    help=(
        "Compare two versions like 'dpkg --compare-versions'. "
        "Exits with 0 when the relation holds and 1 when it does not."
    ),
)
@click.argument("left")
@click.argument("relation", type=click.Choice(list(RELATIONS)))
@click.argument("right")
@click.pass_context
def compare_command(ctx: click.Context, left: str, relation: str, right: str) -> None:
    """Evaluate ``LEFT RELATION RIGHT`` and report it through the exit code.

    Args:
        ctx (click.Context): Current Click context.
        left (str): Left-hand version.
        relation (str): One of ``lt le eq ne ge gt << <= = >= >>``.
        right (str): Right-hand version.
    """
    console = get_console(ctx)
    holds = satisfies(_parse_or_fail(ctx, left), relation, _parse_or_fail(ctx, right))
    logger.debug("%s %s %s: %s", left, relation, right, holds)

    if get_effective_verbosity(ctx) <= logging.INFO:
        console.print(f"{left} {relation} {right}: {'true' if holds else 'false'}")
    if not holds:
        ctx.exit(ExitCode.FAILURE)


@dpkg_version_group.command(name="sort", help="Print VERSIONS in ascending dpkg order.")
@click.argument("versions", metavar="VERSION...", nargs=-1, required=True)
@click.option("--reverse", "-r", is_flag=True, help="Sort in descending order.")
@click.pass_context
def sort_command(ctx: click.Context, versions: tuple[str, ...], reverse: bool) -> None:
    """Sort versions with dpkg semantics; equal versions keep their input order.

    Args:
        ctx (click.Context): Current Click context.
        versions (tuple[str, ...]): Versions to sort.
        reverse (bool): Sort in descending order.
    """
    console = get_console(ctx)
    results = [Version.parse(text) for text in versions]
    merged: Result[None] = Result.merge_all(results)
    emit_annotations(ctx, merged)
    if failed(ctx, merged):
        raise FlamencoDataError("Cannot sort versions: at least one version is invalid.")

    for version in sort_versions((r.value for r in results), reverse=reverse):
        console.print(str(version))
