# topmark:header:start
#
#   project      : Flamenco
#   file         : status.py
#   file_relpath : src/flamenco/distro/status.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Compare a local changelog entry with published release states."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from flamenco.config.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Iterable

    from flamenco.config.logging import FlamencoLogger
    from flamenco.dpkg.archive import PackageReleaseState
    from flamenco.dpkg.changelog import ChangelogEntry
    from flamenco.dpkg.identifiers import Series
    from flamenco.dpkg.version import Version

logger: FlamencoLogger = get_logger(__name__)


class ReleaseComparison(str, Enum):
    """How a local version relates to a published one."""

    BEHIND = "behind"
    AHEAD = "ahead"
    UP_TO_DATE = "up-to-date"


def compare_release(local: Version, remote: Version | None) -> ReleaseComparison:
    """Compare ``local`` with ``remote``; nothing published counts as ahead."""
    order = local.compare(remote)
    if order < 0:
        return ReleaseComparison.BEHIND
    if order > 0:
        return ReleaseComparison.AHEAD
    return ReleaseComparison.UP_TO_DATE


def highest_released_versions(states: Iterable[PackageReleaseState]) -> dict[Series, Version]:
    """Return the highest final version per series.

    Pending and proposed releases are ignored. Pass the states of a single
    package; versions of different packages are not told apart.
    """
    highest: dict[Series, Version] = {}
    for state in states:
        if state.is_pending_or_proposed:
            continue
        series = state.archive_section.suite.series
        current = highest.get(series)
        if current is None or state.version > current:
            highest[series] = state.version
    return highest


@dataclass(frozen=True)
class StatusRow:
    """One release state annotated for display.

    Attributes:
        state (PackageReleaseState): The published release.
        is_highest (bool): Whether it is the highest final version of its series.
        comparison (ReleaseComparison | None): How the local entry compares, when
            the entry targets the same package and series.
    """

    state: PackageReleaseState
    is_highest: bool
    comparison: ReleaseComparison | None = None


def _display_order(state: PackageReleaseState) -> tuple[object, ...]:
    section = state.archive_section
    return (
        str(state.package),
        str(section.suite.series),
        state.version,
        str(section.suite.pocket),
        str(section.component),
    )


def summarize_status(
    entry: ChangelogEntry | None,
    states: Iterable[PackageReleaseState],
) -> list[StatusRow]:
    """Annotate release states for display.

    Rows are grouped by package, then ordered newest series first and, within
    a series, by descending version, pocket and component.

    Args:
        entry (ChangelogEntry | None): Newest local changelog entry, if known.
        states (Iterable[PackageReleaseState]): Published release states.

    Returns:
        list[StatusRow]: Display rows.
    """
    states = list(states)
    local_series = (
        {suite.series for suite in entry.distributions} if entry is not None else set()
    )

    by_package: dict[str, list[PackageReleaseState]] = {}
    for state in states:
        by_package.setdefault(str(state.package), []).append(state)

    rows: list[StatusRow] = []
    for package in sorted(by_package):
        highest = highest_released_versions(by_package[package])
        for state in sorted(by_package[package], key=_display_order, reverse=True):
            series = state.archive_section.suite.series
            comparison: ReleaseComparison | None = None
            if entry is not None and entry.package_name == state.package and series in local_series:
                comparison = compare_release(entry.version, state.version)
            rows.append(
                StatusRow(
                    state=state,
                    is_highest=not state.is_pending_or_proposed
                    and highest.get(series) == state.version,
                    comparison=comparison,
                )
            )

    logger.debug("Summarized %d release state(s)", len(rows))
    return rows
