# topmark:header:start
#
#   project      : Flamenco
#   file         : madison.py
#   file_relpath : src/flamenco/distro/madison.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Query package release states from a Madison service.

Madison answers ``text=on`` queries with one row per package version and
archive section::

     dotnet8 | 8.0.100-8.0.0~rc1-0ubuntu1 | mantic/universe | source, amd64, arm64

Each row yields one [`PackageReleaseState`][flamenco.dpkg.archive.PackageReleaseState]
per listed architecture. The archive section is ``<suite>[/<component>]``; a
missing component means ``main``.

Every row of a response is parsed and its diagnostics are reported in row
order. A response with a malformed row fails as a whole, so a failed result
never carries states of a partially understood response.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

import httpx

from flamenco.config.logging import get_logger
from flamenco.constants import DEBIAN_MADISON_URL, DEFAULT_REQUEST_TIMEOUT, UBUNTU_MADISON_URL
from flamenco.diagnostic.annotations import exception_annotation
from flamenco.diagnostic.location import LinePositionSpan, Location
from flamenco.diagnostic.model import Annotation, Result
from flamenco.dpkg.archive import ArchiveSection, PackageReleaseState
from flamenco.dpkg.identifiers import Architecture, Component, PackageName, Pocket
from flamenco.dpkg.suite import Suite
from flamenco.dpkg.version import Version

if TYPE_CHECKING:
    from flamenco.config.logging import FlamencoLogger
    from flamenco.dpkg.archive import ReleaseStateQuery

logger: FlamencoLogger = get_logger(__name__)

UNSUCCESSFUL_MADISON_REQUEST: Final[str] = "unsuccessful-madison-request"
MALFORMED_MADISON_RESPONSE: Final[str] = "malformed-madison-response"

MADISON_COLUMNS: Final[int] = 4
COLUMN_SEPARATOR: Final[str] = "|"
COMPONENT_SEPARATOR: Final[str] = "/"
ARCHITECTURE_SEPARATOR: Final[str] = ","


@dataclass(frozen=True)
class MadisonArchive:
    """A Madison endpoint and how to read its pockets.

    Attributes:
        name (str): Archive name reported in archive sections.
        endpoint (str): Madison URL.
        pending_pockets (frozenset[Pocket]): Pockets whose releases are not final yet.
    """

    name: str
    endpoint: str
    pending_pockets: frozenset[Pocket] = frozenset()

    @classmethod
    def ubuntu(cls, endpoint: str = UBUNTU_MADISON_URL) -> MadisonArchive:
        """Return the Ubuntu archive, whose ``proposed`` pocket is pending."""
        return cls("ubuntu", endpoint, frozenset({Pocket.PROPOSED}))

    @classmethod
    def debian(cls, endpoint: str = DEBIAN_MADISON_URL) -> MadisonArchive:
        """Return the Debian archive, whose ``proposed-updates`` pocket is pending."""
        return cls("debian", endpoint, frozenset({Pocket("proposed-updates")}))

    def is_pending(self, pocket: Pocket) -> bool:
        """Return True if releases in ``pocket`` are pending or proposed."""
        return pocket in self.pending_pockets


def malformed_response(reason: str, location: Location) -> Annotation:
    """Return the error reported for a Madison row that cannot be understood."""
    return Annotation.error(
        MALFORMED_MADISON_RESPONSE,
        "Malformed madison response",
        f"Madison response is malformed. {reason}",
        location=location,
    )


def unsuccessful_request(status_code: int, url: str) -> Annotation:
    """Return the error reported for a non-success HTTP status."""
    return Annotation.error(
        UNSUCCESSFUL_MADISON_REQUEST,
        "Unsuccessful madison request",
        f"Madison service returned a non-success status code '{status_code}'.",
        location=Location(resource=url),
        metadata={"status_code": status_code},
    )


def build_query_url(archive: MadisonArchive, query: ReleaseStateQuery) -> str:
    """Return the Madison URL answering ``query``.

    Empty filters are omitted; list values are joined with commas.

    Args:
        archive (MadisonArchive): Archive to query.
        query (ReleaseStateQuery): Filters.

    Returns:
        str: The request URL.
    """
    params: list[tuple[str, str]] = [("text", "on")]
    if query.package_names:
        params.append(("package", ",".join(str(p) for p in query.package_names)))
    if query.architectures:
        params.append(("a", ",".join(str(a) for a in query.architectures)))
    if query.components:
        params.append(("c", ",".join(str(c) for c in query.components)))
    if query.suites:
        params.append(("s", ",".join(str(s) for s in query.suites)))
    params.append(("S", "on" if query.include_binaries else "off"))

    url = httpx.URL(archive.endpoint).copy_merge_params(params)
    logger.debug("Madison query URL: %s", url)
    return str(url)


def _split_columns(line: str) -> list[tuple[int, str]] | str:
    """Return ``(start, value)`` for each trimmed column, or a failure reason."""
    columns: list[tuple[int, str]] = []
    start = 0
    for raw in line.split(COLUMN_SEPARATOR):
        value = raw.strip(" ")
        if not value:
            return "A value of the response is empty."
        columns.append((start + len(raw) - len(raw.lstrip(" ")), value))
        start += len(raw) + 1
    if len(columns) > MADISON_COLUMNS:
        return "A row of the response contains too many values."
    if len(columns) < MADISON_COLUMNS:
        return "A row of the response contains too few values."
    return columns


def parse_madison_row(
    line: str,
    archive: MadisonArchive,
    location: Location | None = None,
) -> Result[list[PackageReleaseState]]:
    """Parse one row of a Madison text response.

    Args:
        line (str): The row, without its line terminator.
        archive (MadisonArchive): Archive the row came from.
        location (Location | None): Location of the whole row.

    Returns:
        Result[list[PackageReleaseState]]: One state per listed architecture.
    """
    line_location = location or Location.UNSPECIFIED

    def at(start: int, length: int) -> Location:
        return Location(span=LinePositionSpan.of_token(start, length)).offset(line_location)

    columns = _split_columns(line)
    if isinstance(columns, str):
        logger.debug("Malformed madison row %r: %s", line, columns)
        return Result.failure(malformed_response(columns, line_location))
    (name_start, name_text), (version_start, version_text), section, archs = columns

    name = PackageName.parse(name_text, at(name_start, len(name_text)))
    if name.is_failure:
        return name.without_value()

    version = Version.parse(version_text, at(version_start, len(version_text)))
    result: Result[list[PackageReleaseState]] = name.without_value().merge(
        version.without_value()
    )
    if result.is_failure:
        return result

    section_start, section_text = section
    suite_text, sep, component_text = section_text.partition(COMPONENT_SEPARATOR)
    suite = Suite.parse(suite_text, at(section_start, len(suite_text)))
    result = result.merge(suite.without_value())
    if result.is_failure:
        return result

    component: Component = Component.MAIN
    if sep:
        if not component_text:
            return result.merge(
                Result.failure(
                    malformed_response(
                        f"The value '{section_text}' does not contain an archive component "
                        f"value after the '{COMPONENT_SEPARATOR}'",
                        line_location,
                    )
                )
            )
        component_start = section_start + len(suite_text) + 1
        parsed_component = Component.parse(
            component_text, at(component_start, len(component_text))
        )
        result = result.merge(parsed_component.without_value())
        if result.is_failure:
            return result
        component = parsed_component.value

    archive_section = ArchiveSection(archive.name, component, suite.value)
    pending = archive.is_pending(suite.value.pocket)

    states: list[PackageReleaseState] = []
    archs_start, archs_text = archs
    offset = archs_start
    for raw in archs_text.split(ARCHITECTURE_SEPARATOR):
        arch_text = raw.strip(" ")
        arch_start = offset + len(raw) - len(raw.lstrip(" "))
        offset += len(raw) + 1
        architecture = Architecture.parse(arch_text, at(arch_start, len(arch_text)))
        result = result.merge(architecture.without_value())
        if result.is_failure:
            return result
        states.append(
            PackageReleaseState(
                package=name.value,
                version=version.value,
                architecture=architecture.value,
                archive_section=archive_section,
                is_pending_or_proposed=pending,
            )
        )

    logger.trace("Parsed madison row %r into %d state(s)", line, len(states))
    return result.with_value(states)


def parse_madison_response(
    text: str,
    archive: MadisonArchive,
    resource: str | None = None,
) -> Result[list[PackageReleaseState]]:
    """Parse a whole Madison text response; blank lines are skipped.

    Args:
        text (str): Response body.
        archive (MadisonArchive): Archive the response came from.
        resource (str | None): Request URL or file name, for annotation locations.

    Returns:
        Result[list[PackageReleaseState]]: All states in response order, or a
            failure reporting every malformed row.
    """
    result: Result[list[PackageReleaseState]] = Result()
    states: list[PackageReleaseState] = []
    for line_number, line in enumerate(text.splitlines()):
        if not line.strip():
            continue
        row = parse_madison_row(line, archive, Location.for_line(resource, line_number, line))
        result = result.merge(row.without_value())
        if row.is_failure:
            logger.debug("Malformed madison row %d", line_number + 1)
            continue
        states.extend(row.value)

    if result.is_failure:
        return result

    logger.debug("Parsed %d release state(s) from %s", len(states), resource or "response")
    return result.with_value(states)


def fetch_release_states(
    archive: MadisonArchive,
    query: ReleaseStateQuery,
    *,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_REQUEST_TIMEOUT,
) -> Result[list[PackageReleaseState]]:
    """Query ``archive`` over HTTP and parse the response.

    Args:
        archive (MadisonArchive): Archive to query.
        query (ReleaseStateQuery): Filters.
        client (httpx.Client | None): Client to use; a short-lived one is
            created when ``None``.
        timeout (float): Timeout in seconds for a created client.

    Returns:
        Result[list[PackageReleaseState]]: Parsed states, or a failure for
            non-success statuses, transport errors and malformed responses.
    """
    url = build_query_url(archive, query)
    logger.info("Querying %s madison: %s", archive.name, url)
    try:
        if client is None:
            with httpx.Client(follow_redirects=True, timeout=timeout) as own_client:
                response = own_client.get(url)
        else:
            response = client.get(url)
    except httpx.HTTPError as e:
        logger.error("Madison request to %s failed: %s", url, e)
        return Result.failure(exception_annotation(e, Location(resource=url)))

    if not response.is_success:
        logger.error("Madison request to %s returned %s", url, response.status_code)
        return Result.failure(unsuccessful_request(response.status_code, url))

    return parse_madison_response(response.text, archive, resource=url)
