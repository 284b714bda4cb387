# topmark:header:start
#
#   project      : Flamenco
#   file         : changelog.py
#   file_relpath : src/flamenco/dpkg/changelog.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Reader for ``debian/changelog`` files.

A changelog is a sequence of entries, newest first::

    dotnet8 (8.0.100-0ubuntu1) noble; urgency=medium

      * New upstream release.

     -- Jane Doe <jane@example.com>  Fri, 05 Apr 2024 15:47:39 +0300

Each entry consists of a *header* line (package, version, distributions and
``key=value`` metadata), a free-form *body*, and a *trailer* line
(maintainer and RFC 2822 date).

[`ChangelogReader`][flamenco.dpkg.changelog.ChangelogReader] walks a line
source forward, one entry per
[`read_entry`][flamenco.dpkg.changelog.ChangelogReader.read_entry] call. It
never raises for malformed input: every problem found in an entry is reported
on the returned result, and the reader resynchronizes on the next header so
the remaining entries can still be read.

The reader owns its source. Use it as a context manager so the source is
closed on every exit path::

    with ChangelogReader.from_file("debian/changelog").unwrap() as reader:
        for result in reader.entries():
            ...
"""

from __future__ import annotations

import io
import re
from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import TYPE_CHECKING, Final, Protocol, cast

from dateutil.parser import parse as parse_date

from flamenco.config.logging import get_logger
from flamenco.diagnostic.annotations import exception_annotation
from flamenco.diagnostic.location import LinePosition, LinePositionSpan, Location
from flamenco.diagnostic.model import Annotation, Result
from flamenco.dpkg.identifiers import PackageName
from flamenco.dpkg.suite import Suite
from flamenco.dpkg.version import Version

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping
    from os import PathLike
    from types import TracebackType

    from flamenco.config.logging import FlamencoLogger

logger: FlamencoLogger = get_logger(__name__)

MALFORMED_HEADER: Final[str] = "malformed-changelog-header"
MALFORMED_METADATA: Final[str] = "malformed-changelog-metadata"
DUPLICATE_METADATA_KEY: Final[str] = "duplicate-changelog-metadata-key"
MISSING_DISTRIBUTION: Final[str] = "missing-changelog-distribution"
STRAY_LINE: Final[str] = "stray-changelog-line"
MISSING_TRAILER: Final[str] = "missing-changelog-trailer"
MALFORMED_TRAILER: Final[str] = "malformed-changelog-trailer"
TRAILER_SPACING: Final[str] = "changelog-trailer-spacing"
NONSTANDARD_DATE: Final[str] = "changelog-nonstandard-date"
MALFORMED_DATE: Final[str] = "malformed-changelog-date"
CHANGELOG_NOT_FOUND: Final[str] = "changelog-not-found"
CHANGELOG_PERMISSION_DENIED: Final[str] = "changelog-permission-denied"
CHANGELOG_OPEN_FAILED: Final[str] = "changelog-open-failed"
CHANGELOG_READ_FAILED: Final[str] = "changelog-read-failed"
EMPTY_CHANGELOG: Final[str] = "empty-changelog"

URGENCY_KEY: Final[str] = "urgency"
BINARY_ONLY_KEY: Final[str] = "binary-only"

HEADER_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?P<name>\S+)\s+\((?P<version>[^()\s]*)\)(?P<distributions>[^;]*);(?P<metadata>.*)$"
)
TRAILER_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^ -- (?P<name>\S.*?) <(?P<email>[^<>]+)>(?P<spacing> +)(?P<date>\S.*?)\s*$"
)
# Date layout produced by `date -R`, as accepted by dpkg-parsechangelog
DATE_PATTERN: Final[re.Pattern[str]] = re.compile(
    r"^(?:\w+,\s*)?\d{1,2}\s+\w+\s+\d{4}\s+\d{1,2}:\d\d:\d\d\s+[-+]\d{4}$"
)
# Lines that end the parseable part of a changelog
_END_OF_ENTRIES: Final[re.Pattern[str]] = re.compile(
    r"^(?:Old Changelog:\s*|(?:;;\s*)?Local variables:.*)$", re.IGNORECASE
)
# Fallbacks for missing date fields; parses with both agree only on complete dates
_DATE_DEFAULTS: Final[tuple[datetime, datetime]] = (datetime(2000, 1, 1), datetime(2001, 2, 2))


class LineSource(Protocol):
    """Sequential line-oriented text source.

    ``readline()`` returns the next line including its terminator, or ``""``
    once the source is exhausted.
    """

    def readline(self) -> str:
        """Return the next line, or ``""`` at end of input."""
        ...

    def close(self) -> None:
        """Release the source."""
        ...


@dataclass(frozen=True)
class Maintainer:
    """The person who signed a changelog entry."""

    name: str
    email: str

    def __str__(self) -> str:
        return f"{self.name} <{self.email}>"


@dataclass(frozen=True)
class ChangelogEntry:
    """One release record of a changelog.

    Attributes:
        package_name (PackageName): Source package name.
        version (Version): Version of this release.
        distributions (tuple[Suite, ...]): Target distributions, at least one.
        metadata (Mapping[str, str]): Header ``key=value`` pairs, read-only;
            keys are lowercase.
        description (str): The body, verbatim, including line terminators and
            the blank line before the trailer.
        maintainer (Maintainer): Trailer name and email.
        date (datetime): Trailer date, keeping the written UTC offset.
        location (Location): Span from the header line to the trailer line.
    """

    package_name: PackageName
    version: Version
    distributions: tuple[Suite, ...]
    metadata: Mapping[str, str] = field(hash=False)
    description: str
    maintainer: Maintainer
    date: datetime
    location: Location = field(default=Location.UNSPECIFIED, compare=False)

    def __post_init__(self) -> None:
        # Read-only copy: callers must not change an entry through its metadata
        object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def urgency(self) -> str | None:
        """Return the ``urgency`` metadata value, if present."""
        return self.metadata.get(URGENCY_KEY)

    @property
    def binary_only(self) -> bool | None:
        """Return the ``binary-only`` flag: True for ``yes``, False for ``no``, else None."""
        value = self.metadata.get(BINARY_ONLY_KEY)
        if value is None:
            return None
        return {"yes": True, "no": False}.get(value.lower())


@dataclass(frozen=True)
class _Header:
    package_name: PackageName
    version: Version
    distributions: tuple[Suite, ...]
    metadata: dict[str, str]


@dataclass(frozen=True)
class _Trailer:
    maintainer: Maintainer
    date: datetime


class ChangelogReader:
    """Forward-only reader producing one changelog entry per call.

    Not safe for concurrent use: callers must serialize calls to
    `read_entry`.

    Args:
        source (LineSource): Line source; the reader takes ownership of it.
        resource (str | None): Name of the source used in annotation locations
            (typically the file path).
    """

    def __init__(self, source: LineSource, resource: str | None = None) -> None:
        self._source: LineSource = source
        self.resource: str | None = resource
        self._line_number: int = -1
        self._pushed_back: str | None = None
        self._exhausted: bool = False
        self._closed: bool = False

    # --- construction ---------------------------------------------------

    @classmethod
    def from_text(cls, text: str, resource: str | None = None) -> ChangelogReader:
        """Return a reader over an in-memory changelog."""
        return cls(io.StringIO(text, newline=""), resource)

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> Result[ChangelogReader]:
        """Open a changelog file for reading.

        Args:
            path (str | PathLike[str]): Path of the changelog file.

        Returns:
            Result[ChangelogReader]: The reader, or a failure annotated with
            ``changelog-not-found``, ``changelog-permission-denied`` or
            ``changelog-open-failed``.
        """
        resource = str(path)
        location = Location(resource)
        try:
            handle = open(path, encoding="utf-8", newline="")  # noqa: SIM115
        except FileNotFoundError as exc:
            logger.debug("Changelog not found: %s", resource)
            return Result.failure(
                Annotation.error(
                    CHANGELOG_NOT_FOUND,
                    "Changelog file not found",
                    f"The changelog file '{resource}' does not exist.",
                    location=location,
                    exception=exc,
                )
            )
        except PermissionError as exc:
            logger.debug("Permission denied opening changelog: %s", resource)
            return Result.failure(
                Annotation.error(
                    CHANGELOG_PERMISSION_DENIED,
                    "Insufficient permissions",
                    f"Insufficient permissions to read the changelog file '{resource}'.",
                    location=location,
                    exception=exc,
                )
            )
        except OSError as exc:
            logger.debug("Cannot open changelog %s: %s", resource, exc)
            return Result.failure(
                Annotation.error(
                    CHANGELOG_OPEN_FAILED,
                    "Opening the changelog failed",
                    f"The changelog file '{resource}' could not be opened: {exc}",
                    location=location,
                    exception=exc,
                )
            )
        logger.debug("Opened changelog %s", resource)
        return Result.of(cls(handle, resource))

    # --- lifecycle ------------------------------------------------------

    @property
    def closed(self) -> bool:
        """Return True once the underlying source has been released."""
        return self._closed

    def close(self) -> None:
        """Release the underlying source; further reads raise `ValueError`."""
        if not self._closed:
            self._closed = True
            self._source.close()

    def __enter__(self) -> ChangelogReader:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    @property
    def location(self) -> Location:
        """Return the location of the whole source."""
        return Location(self.resource)

    # --- line access ----------------------------------------------------

    def _next_line(self) -> str | None:
        if self._pushed_back is not None:
            line, self._pushed_back = self._pushed_back, None
            self._line_number += 1
            return line
        if self._exhausted:
            return None
        line = self._source.readline()
        if not line:
            self._exhausted = True
            return None
        self._line_number += 1
        return line

    def _push_back(self, line: str) -> None:
        self._pushed_back = line
        self._line_number -= 1

    def _line_location(self, text: str) -> Location:
        return Location.for_line(self.resource, self._line_number, text)

    def _token_location(self, start: int, length: int) -> Location:
        span = LinePositionSpan.on_line(self._line_number, start, start + max(length, 1) - 1)
        return Location(self.resource, span)

    # --- entries --------------------------------------------------------

    def entries(self) -> Iterator[Result[ChangelogEntry]]:
        """Yield the result of each entry until the end of the changelog.

        Failed entries are yielded too, so callers can decide whether to stop.
        """
        while True:
            result = self.read_entry()
            if result.has_value and result.value is None:
                if result.annotations:
                    yield result.without_value()
                return
            yield cast("Result[ChangelogEntry]", result)

    def read_entry(self) -> Result[ChangelogEntry | None]:
        """Read the next entry.

        Returns:
            Result[ChangelogEntry | None]: The entry; ``None`` (on a result
            carrying a value) once no further entry exists; or a failure
            without value describing what was wrong with this entry.

        Raises:
            ValueError: If the reader has been closed.
        """
        if self._closed:
            raise ValueError("I/O operation on a closed changelog reader")
        try:
            return self._read_entry()
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Reading changelog %s failed: %s", self.resource, exc)
            self._exhausted = True
            self._pushed_back = None
            # The failed line is the one after the last line read
            failed_line = Location.for_line(self.resource, self._line_number + 1, "")
            annotation = exception_annotation(exc, failed_line)
            return Result.failure(
                Annotation.error(
                    CHANGELOG_READ_FAILED,
                    "Reading the changelog failed",
                    f"Reading the changelog failed: {exc}",
                    location=self.location,
                    inner_annotations=(annotation,),
                    exception=exc,
                )
            )

    def _read_entry(self) -> Result[ChangelogEntry | None]:
        header_line = self._find_header_line()
        result: Result[ChangelogEntry | None] = header_line.without_value()
        if result.is_failure:
            return result
        line = header_line.value
        if line is None:
            return result.with_value(None)

        start = LinePosition(self._line_number, 0)
        header = self._parse_header(line.rstrip("\r\n"))
        result = result.merge(header.without_value())

        body = self._read_body()
        result = result.merge(body.without_value())
        if not body.has_value:
            return result.without_value()
        description, trailer_text = body.value

        end = LinePosition(self._line_number, max(len(trailer_text) - 1, 0))
        trailer = self._parse_trailer(trailer_text)
        result = result.merge(trailer.without_value())

        if result.is_failure:
            logger.debug("Changelog entry at %s is malformed", start)
            return result.without_value()

        entry = ChangelogEntry(
            package_name=header.value.package_name,
            version=header.value.version,
            distributions=header.value.distributions,
            metadata=header.value.metadata,
            description=description,
            maintainer=trailer.value.maintainer,
            date=trailer.value.date,
            location=Location(self.resource, LinePositionSpan(start, end)),
        )
        logger.trace("Read changelog entry %s %s", entry.package_name, entry.version)
        return result.with_value(entry)

    def _find_header_line(self) -> Result[str | None]:
        """Skip blank lines and return the next header candidate (None at the end).

        Indented lines found on the way are reported as a failure of their own;
        the header that follows them is pushed back for the next read.
        """
        result: Result[str | None] = Result.success()
        reported_stray = False
        while True:
            line = self._next_line()
            if line is None:
                return result if reported_stray else result.with_value(None)
            text = line.rstrip("\r\n")
            if not text.strip():
                continue
            if _END_OF_ENTRIES.match(text):
                logger.debug("End of changelog entries at line %d", self._line_number + 1)
                self._exhausted = True
                self._pushed_back = None
                return result if reported_stray else result.with_value(None)
            if text[0].isspace():
                if not reported_stray:
                    reported_stray = True
                    result = result.with_annotations(
                        Annotation.error(
                            STRAY_LINE,
                            "Line outside of a changelog entry",
                            f"Line {self._line_number + 1} is indented, but no changelog "
                            "entry is open; header lines must not start with whitespace. "
                            "Following indented lines are skipped.",
                            location=self._line_location(text),
                            metadata={"line": text},
                        )
                    )
                continue
            if reported_stray:
                self._push_back(line)
                return result
            return result.with_value(line)

    def _read_body(self) -> Result[tuple[str, str]]:
        """Collect body lines up to the trailer; returns (description, trailer line)."""
        parts: list[str] = []
        while True:
            line = self._next_line()
            if line is None:
                return Result.failure(
                    Annotation.error(
                        MISSING_TRAILER,
                        "Missing changelog trailer",
                        "Reached the end of the changelog before the trailer of the "
                        "current entry was found.",
                        location=self._line_location(""),
                    )
                )
            text = line.rstrip("\r\n")
            if text.startswith(" -- "):
                return Result.of(("".join(parts), text))
            if text.strip() and not text[0].isspace():
                # A new header: the current entry lacks its trailer
                self._push_back(line)
                return Result.failure(
                    Annotation.error(
                        MISSING_TRAILER,
                        "Missing changelog trailer",
                        f"Line {self._line_number + 2} starts a new entry before the trailer "
                        "of the current entry was found.",
                        location=Location.for_line(self.resource, self._line_number + 1, text),
                    )
                )
            parts.append(line)

    # --- header ---------------------------------------------------------

    def _parse_header(self, text: str) -> Result[_Header]:
        line_location = self._line_location(text)
        match = HEADER_PATTERN.match(text)
        if match is None:
            return Result.failure(
                Annotation.error(
                    MALFORMED_HEADER,
                    "Malformed changelog header",
                    f"Line {self._line_number + 1} is not a changelog header of the form "
                    "'<package> (<version>) <distribution>...; <key>=<value>, ...'.",
                    location=line_location,
                    metadata={"line": text},
                )
            )

        name = PackageName.parse(
            match["name"], self._token_location(match.start("name"), len(match["name"]))
        )
        version = Version.parse(
            match["version"],
            self._token_location(match.start("version"), len(match["version"])),
        )
        distributions = self._parse_distributions(
            match["distributions"], match.start("distributions"), line_location
        )
        metadata = self._parse_metadata(match["metadata"], match.start("metadata"))

        parts = (name, version, distributions, metadata)
        errors = tuple(a for part in parts for a in part.annotations if a.is_error)
        non_errors = tuple(a for part in parts for a in part.annotations if not a.is_error)
        result: Result[_Header] = Result.success(*non_errors)
        if errors:
            return result.with_annotations(
                Annotation.error(
                    MALFORMED_HEADER,
                    "Malformed changelog header",
                    f"The changelog header on line {self._line_number + 1} is malformed.",
                    location=line_location,
                    inner_annotations=errors,
                    metadata={"line": text},
                )
            )
        return result.with_value(
            _Header(
                package_name=name.value,
                version=version.value,
                distributions=distributions.value,
                metadata=metadata.value,
            )
        )

    def _parse_distributions(
        self,
        text: str,
        offset: int,
        line_location: Location,
    ) -> Result[tuple[Suite, ...]]:
        tokens = list(re.finditer(r"\S+", text))
        if not tokens:
            return Result.failure(
                Annotation.error(
                    MISSING_DISTRIBUTION,
                    "Missing distribution",
                    "A changelog header must name at least one distribution.",
                    location=line_location,
                )
            )
        results = [
            Suite.parse(
                token.group(),
                self._token_location(offset + token.start(), len(token.group())),
            )
            for token in tokens
        ]
        merged: Result[tuple[Suite, ...]] = Result.merge_all(results)
        if merged.is_failure:
            return merged
        return merged.with_value(tuple(r.value for r in results))

    def _parse_metadata(self, text: str, offset: int) -> Result[dict[str, str]]:
        result: Result[dict[str, str]] = Result.success()
        metadata: dict[str, str] = {}
        position = offset
        for pair in text.split(","):
            pair_start = position
            position += len(pair) + 1
            if not pair.strip():
                continue
            key, sep, value = pair.partition("=")
            key = key.strip().lower()
            location = self._token_location(pair_start, len(pair))
            if not sep or not key:
                result = result.with_annotations(
                    Annotation.error(
                        MALFORMED_METADATA,
                        "Malformed changelog metadata",
                        f"The header metadata '{pair.strip()}' is not a '<key>=<value>' pair.",
                        location=location,
                    )
                )
                continue
            if key in metadata:
                result = result.with_annotations(
                    Annotation.warning(
                        DUPLICATE_METADATA_KEY,
                        "Duplicate changelog metadata key",
                        f"The header metadata key '{key}' occurs more than once; "
                        "the last value is used.",
                        location=location,
                    )
                )
            metadata[key] = value.strip()
        return result.with_value(metadata)

    # --- trailer --------------------------------------------------------

    def _parse_trailer(self, text: str) -> Result[_Trailer]:
        line_location = self._line_location(text)
        match = TRAILER_PATTERN.match(text)
        if match is None:
            return Result.failure(
                Annotation.error(
                    MALFORMED_TRAILER,
                    "Malformed changelog trailer",
                    f"Line {self._line_number + 1} is not a changelog trailer of the form "
                    "' -- <name> <<email>>  <date>'.",
                    location=line_location,
                    metadata={"line": text},
                )
            )

        result: Result[_Trailer] = Result.success()
        if len(match["spacing"]) != 2:
            result = result.with_annotations(
                Annotation.warning(
                    TRAILER_SPACING,
                    "Unusual changelog trailer spacing",
                    "The email address and the date of a changelog trailer should be "
                    "separated by exactly two spaces.",
                    location=self._token_location(match.start("spacing"), len(match["spacing"])),
                )
            )

        date_text = match["date"]
        date_location = self._token_location(match.start("date"), len(date_text))
        if not DATE_PATTERN.match(date_text):
            result = result.with_annotations(
                Annotation.warning(
                    NONSTANDARD_DATE,
                    "Non-standard changelog date",
                    f"The date '{date_text}' does not follow the 'date -R' format "
                    "(e.g. 'Fri, 05 Apr 2024 15:47:39 +0300').",
                    location=date_location,
                )
            )

        try:
            date, other = (parse_date(date_text, default=default) for default in _DATE_DEFAULTS)
        except (ValueError, OverflowError) as exc:
            return result.with_annotations(
                Annotation.error(
                    MALFORMED_DATE,
                    "Malformed changelog date",
                    f"The date '{date_text}' of the changelog trailer cannot be parsed.",
                    location=date_location,
                    exception=exc,
                )
            )
        if date != other:
            return result.with_annotations(
                Annotation.error(
                    MALFORMED_DATE,
                    "Malformed changelog date",
                    f"The date '{date_text}' of the changelog trailer lacks a day, "
                    "a month or a year.",
                    location=date_location,
                )
            )
        if date.tzinfo is None or date.utcoffset() is None:
            return result.with_annotations(
                Annotation.error(
                    MALFORMED_DATE,
                    "Malformed changelog date",
                    f"The date '{date_text}' of the changelog trailer lacks a UTC offset.",
                    location=date_location,
                )
            )

        maintainer = Maintainer(name=match["name"].strip(), email=match["email"].strip())
        return result.with_value(_Trailer(maintainer=maintainer, date=date))


def read_first_entry(path: str | PathLike[str]) -> Result[ChangelogEntry]:
    """Read the newest entry of the changelog at ``path``.

    Returns:
        Result[ChangelogEntry]: The entry, or a failure; a changelog without
        entries fails with ``empty-changelog``. Stray lines before the entry
        are reported on the result, which still carries the entry.
    """
    opened = ChangelogReader.from_file(path)
    if opened.is_failure:
        return Result(annotations=opened.annotations)

    with opened.value as reader:
        read = reader.read_entry()
        result: Result[ChangelogEntry] = Result(annotations=opened.annotations + read.annotations)
        while read.is_failure and all(a.identifier == STRAY_LINE for a in read.errors):
            read = reader.read_entry()
            result = result.with_annotations(*read.annotations)
        if read.is_failure:
            return result
        entry = read.value
        if entry is None:
            return result.with_annotations(
                Annotation.error(
                    EMPTY_CHANGELOG,
                    "Empty changelog",
                    f"The changelog '{reader.resource}' does not contain any entry.",
                    location=reader.location,
                )
            )
        return result.with_value(entry)
