# topmark:header:start
#
#   project      : Flamenco
#   file         : test_changelog.py
#   file_relpath : tests/dpkg/test_changelog.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Tests for the stateful changelog reader in `flamenco.dpkg.changelog`.

Covers well-formed entries, the end-of-changelog marker, the resynchronization
after malformed entries, and the file-level failures of `from_file` and
`read_first_entry`.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import pytest

from flamenco.diagnostic.location import LinePosition, LinePositionSpan, Location
from flamenco.dpkg.changelog import (
    CHANGELOG_NOT_FOUND,
    CHANGELOG_READ_FAILED,
    DUPLICATE_METADATA_KEY,
    EMPTY_CHANGELOG,
    MALFORMED_DATE,
    MALFORMED_HEADER,
    MALFORMED_METADATA,
    MALFORMED_TRAILER,
    MISSING_DISTRIBUTION,
    MISSING_TRAILER,
    NONSTANDARD_DATE,
    STRAY_LINE,
    TRAILER_SPACING,
    ChangelogEntry,
    ChangelogReader,
    Maintainer,
    read_first_entry,
)
from flamenco.dpkg.identifiers import PackageName, Pocket, Series
from flamenco.dpkg.suite import Suite
from flamenco.dpkg.version import Version
from tests.conftest import DOTNET_CHANGELOG

if TYPE_CHECKING:
    from pathlib import Path

    from flamenco.diagnostic.model import Result

PPA_CHANGELOG: str = (
    "dotnet7 (7.0.118-0ubuntu1~24.04.1~ppa1) noble; urgency=medium\n"
    "\n"
    "  * Backport to the Noble PPA.\n"
    "\n"
    " -- Dominik Viererbe <dominik.viererbe@canonical.com>  Fri, 05 Apr 2024 15:47:39 +0300\n"
)

TRAILER: str = " -- Jane Doe <jane@example.com>  Fri, 05 Apr 2024 15:47:39 +0300\n"


def entry_text(header: str, trailer: str = TRAILER, body: str = "\n  * Change.\n\n") -> str:
    """Return the text of one changelog entry."""
    return f"{header}\n{body}{trailer}"


def read_one(text: str) -> Result[ChangelogEntry | None]:
    """Return the first `read_entry` result for ``text``."""
    with ChangelogReader.from_text(text, "debian/changelog") as reader:
        return reader.read_entry()


def identifiers(result: Result[object]) -> list[str]:
    """Return the identifiers of the top-level annotations of ``result``."""
    return [a.identifier for a in result.annotations]


# --- well-formed entries ------------------------------------------------


def test_reads_a_single_entry() -> None:
    """It should read every field of a well-formed entry."""
    reader = ChangelogReader.from_text(DOTNET_CHANGELOG, "debian/changelog")

    result = reader.read_entry()

    assert result.is_success
    assert not result.annotations
    entry = result.value
    assert entry is not None
    assert entry.package_name == PackageName("dotnet7")
    assert entry.version == Version.from_string("7.0.118-0ubuntu1~24.04.1")
    assert str(entry.version) == "7.0.118-0ubuntu1~24.04.1"
    assert entry.distributions == (Suite(Series("noble")),)
    assert dict(entry.metadata) == {"urgency": "medium"}
    assert entry.urgency == "medium"
    assert entry.binary_only is None
    assert entry.description == (
        "\n  * Initial release for Ubuntu 24.04 LTS (Noble Numbat):\n"
        "    - debian/control: Switch to libicu74.\n\n"
    )
    assert entry.maintainer == Maintainer("Dominik Viererbe", "dominik.viererbe@canonical.com")
    assert str(entry.maintainer) == "Dominik Viererbe <dominik.viererbe@canonical.com>"
    assert entry.date == datetime(2024, 4, 29, 14, 42, 45, tzinfo=timezone(timedelta(hours=3)))
    assert entry.date.utcoffset() == timedelta(hours=3)


def test_second_read_reports_no_further_entry() -> None:
    """It should return a successful result carrying None once the entries are exhausted."""
    reader = ChangelogReader.from_text(PPA_CHANGELOG)
    first = reader.read_entry()
    assert first.value is not None
    assert str(first.value.version) == "7.0.118-0ubuntu1~24.04.1~ppa1"
    assert first.value.date == datetime(
        2024, 4, 5, 15, 47, 39, tzinfo=timezone(timedelta(hours=3))
    )

    second = reader.read_entry()

    assert second.is_success
    assert second.has_value
    assert second.value is None
    assert not second.annotations
    # Reading past the end stays idempotent
    assert reader.read_entry().value is None


def test_entry_location_spans_header_to_trailer() -> None:
    """It should locate an entry from the start of its header to the end of its trailer."""
    entry = read_one(DOTNET_CHANGELOG).value
    assert entry is not None

    trailer = DOTNET_CHANGELOG.splitlines()[-1]
    assert entry.location == Location(
        "debian/changelog",
        LinePositionSpan(LinePosition(0, 0), LinePosition(5, len(trailer) - 1)),
    )


def test_reads_entries_in_order() -> None:
    """It should read entries newest first, as written."""
    text = (
        entry_text("hello (2.0-1) unstable; urgency=low")
        + "\n"
        + entry_text("hello (1.0-1) unstable; urgency=low")
    )

    with ChangelogReader.from_text(text) as reader:
        results = list(reader.entries())

    assert all(r.is_success for r in results)
    assert [str(r.value.version) for r in results] == ["2.0-1", "1.0-1"]


def test_multiple_distributions_and_metadata() -> None:
    """It should read every distribution and lower-case metadata keys."""
    entry = read_one(
        entry_text("hello (1.0-1) noble noble-security UNRELEASED; Urgency=High, binary-only=yes")
    ).value
    assert entry is not None

    assert entry.distributions == (
        Suite(Series("noble")),
        Suite(Series("noble"), Pocket.SECURITY),
        Suite(Series.UNRELEASED),
    )
    assert dict(entry.metadata) == {"urgency": "High", "binary-only": "yes"}
    assert entry.binary_only is True


def test_header_without_metadata_pairs() -> None:
    """It should accept a header whose metadata part is empty."""
    result = read_one(entry_text("hello (1.0) unstable;"))

    assert result.is_success
    assert result.value is not None
    assert dict(result.value.metadata) == {}


def test_crlf_line_endings() -> None:
    """It should accept CRLF line terminators and keep them in the description."""
    text = DOTNET_CHANGELOG.replace("\n", "\r\n")

    entry = read_one(text).value

    assert entry is not None
    assert entry.package_name == PackageName("dotnet7")
    assert entry.description.startswith("\r\n  * Initial release")
    assert entry.maintainer.email == "dominik.viererbe@canonical.com"


def test_empty_changelog_has_no_entry() -> None:
    """It should report no entry for an empty or blank changelog."""
    for text in ("", "\n\n   \n"):
        result = read_one(text)
        assert result.is_success
        assert result.value is None


@pytest.mark.parametrize("marker", ["Old Changelog:", "Local variables:", ";; Local Variables:"])
def test_end_of_entries_marker_stops_reading(marker: str) -> None:
    """It should stop at the end-of-entries marker and ignore the text after it."""
    text = DOTNET_CHANGELOG + "\n" + marker + "\nthis is (not) parsed; at=all\n"

    with ChangelogReader.from_text(text) as reader:
        results = list(reader.entries())

    assert len(results) == 1
    assert results[0].is_success


# --- malformed entries --------------------------------------------------


def test_malformed_header_is_reported_and_reader_resynchronizes() -> None:
    """It should fail the malformed entry and still read the next one."""
    text = entry_text("hello 2.0-1 unstable urgency=low") + entry_text(
        "hello (1.0-1) unstable; urgency=low"
    )

    with ChangelogReader.from_text(text, "debian/changelog") as reader:
        first = reader.read_entry()
        second = reader.read_entry()

    assert first.is_failure
    assert not first.has_value
    assert identifiers(first) == [MALFORMED_HEADER]
    assert first.errors[0].locations[0].resource == "debian/changelog"
    assert second.is_success
    assert second.value is not None
    assert str(second.value.version) == "1.0-1"


def test_malformed_version_is_nested_under_header_error() -> None:
    """It should nest the version error, located inside the header line."""
    result = read_one(entry_text("hello (a:1) unstable; urgency=low"))

    assert result.is_failure
    (error,) = result.errors
    assert error.identifier == MALFORMED_HEADER
    (inner,) = error.inner_annotations
    assert inner.identifier == "malformed-version"
    assert inner.locations == (
        Location("debian/changelog", LinePositionSpan.on_line(0, 7, 8)),
    )


def test_malformed_package_name_is_nested_under_header_error() -> None:
    """It should nest the package name error under the header error."""
    result = read_one(entry_text("Hello (1.0) unstable; urgency=low"))

    assert result.is_failure
    assert [a.identifier for a in result.errors[0].inner_annotations] == [
        "malformed-package-name"
    ]


def test_missing_distribution() -> None:
    """It should require at least one distribution."""
    result = read_one(entry_text("hello (1.0)  ; urgency=low"))

    assert result.is_failure
    assert [a.identifier for a in result.errors[0].inner_annotations] == [MISSING_DISTRIBUTION]


def test_malformed_metadata_pair() -> None:
    """It should reject metadata that is not a key=value pair."""
    result = read_one(entry_text("hello (1.0) unstable; urgency"))

    assert result.is_failure
    assert [a.identifier for a in result.errors[0].inner_annotations] == [MALFORMED_METADATA]


def test_duplicate_metadata_key_keeps_last_value() -> None:
    """It should warn about a duplicate metadata key and keep the last value."""
    result = read_one(entry_text("hello (1.0) unstable; urgency=low, urgency=high"))

    assert result.is_success
    assert identifiers(result) == [DUPLICATE_METADATA_KEY]
    assert result.value is not None
    assert result.value.urgency == "high"


def test_version_warnings_are_kept_on_success() -> None:
    """It should keep version warnings on a successful entry."""
    result = read_one(entry_text("hello (1.0_1) unstable; urgency=low"))

    assert result.is_success
    assert identifiers(result) == ["version-invalid-characters"]


def test_missing_trailer_at_end_of_input() -> None:
    """It should fail an entry whose trailer is missing at the end of the changelog."""
    text = "hello (1.0) unstable; urgency=low\n\n  * Change.\n"

    with ChangelogReader.from_text(text) as reader:
        first = reader.read_entry()
        second = reader.read_entry()

    assert identifiers(first) == [MISSING_TRAILER]
    assert first.is_failure
    assert second.is_success
    assert second.value is None


def test_missing_trailer_before_next_header() -> None:
    """It should fail an entry without trailer and start the next entry at the new header."""
    text = "hello (2.0) unstable; urgency=low\n\n  * Change.\n\n" + entry_text(
        "hello (1.0) unstable; urgency=low"
    )

    with ChangelogReader.from_text(text, "debian/changelog") as reader:
        first = reader.read_entry()
        second = reader.read_entry()

    assert identifiers(first) == [MISSING_TRAILER]
    assert first.errors[0].locations[0].span == LinePositionSpan.on_line(4, 0, 32)
    assert second.value is not None
    assert str(second.value.version) == "1.0"
    assert second.value.location.span is not None
    assert second.value.location.span.start == LinePosition(4, 0)


def test_malformed_trailer() -> None:
    """It should reject a trailer without maintainer address and date."""
    result = read_one(entry_text("hello (1.0) unstable; urgency=low", trailer=" -- nobody\n"))

    assert result.is_failure
    assert identifiers(result) == [MALFORMED_TRAILER]


def test_trailer_spacing_warning() -> None:
    """It should warn when the address and the date are not separated by two spaces."""
    trailer = " -- Jane Doe <jane@example.com> Fri, 05 Apr 2024 15:47:39 +0300\n"

    result = read_one(entry_text("hello (1.0) unstable; urgency=low", trailer=trailer))

    assert result.is_success
    assert identifiers(result) == [TRAILER_SPACING]


def test_nonstandard_date_warning() -> None:
    """It should accept a parseable date in a non-standard layout with a warning."""
    trailer = " -- Jane Doe <jane@example.com>  2024-04-05 15:47:39 +0300\n"

    result = read_one(entry_text("hello (1.0) unstable; urgency=low", trailer=trailer))

    assert result.is_success
    assert identifiers(result) == [NONSTANDARD_DATE]
    assert result.value is not None
    assert result.value.date == datetime(
        2024, 4, 5, 15, 47, 39, tzinfo=timezone(timedelta(hours=3))
    )


@pytest.mark.parametrize(
    "date",
    ["not a date at all", "Fri, 05 Apr 2024 15:47:39"],
)
def test_malformed_date(date: str) -> None:
    """It should reject dates that cannot be parsed or that lack a UTC offset."""
    trailer = f" -- Jane Doe <jane@example.com>  {date}\n"

    result = read_one(entry_text("hello (1.0) unstable; urgency=low", trailer=trailer))

    assert result.is_failure
    assert [a.identifier for a in result.errors] == [MALFORMED_DATE]


@pytest.mark.parametrize(
    "date",
    ["15:47:39 +0300", "Apr 2024 15:47:39 +0300", "05 Apr 15:47:39 +0300"],
)
def test_incomplete_date_is_rejected(date: str) -> None:
    """It should not fill a missing day, month or year in from the current date."""
    trailer = f" -- A B <a@b.c>  {date}\n"

    result = read_one(entry_text("hello (1.0) unstable; urgency=low", trailer=trailer))

    assert result.is_failure
    assert not result.has_value
    assert [a.identifier for a in result.errors] == [MALFORMED_DATE]


def test_stray_indented_line_before_header() -> None:
    """It should report indented text outside of an entry once, then read the entry."""
    text = "  stray\n  more stray\n" + DOTNET_CHANGELOG

    with ChangelogReader.from_text(text) as reader:
        first = reader.read_entry()
        second = reader.read_entry()
        third = reader.read_entry()

    assert identifiers(first) == [STRAY_LINE]
    assert first.is_failure
    assert not first.has_value
    assert first.errors[0].locations[0].span == LinePositionSpan.on_line(0, 0, 6)
    assert second.is_success
    assert second.value is not None
    assert str(second.value.version) == "7.0.118-0ubuntu1~24.04.1"
    assert second.value.location.span is not None
    assert second.value.location.span.start == LinePosition(2, 0)
    assert third.value is None


def test_entries_keeps_the_entry_after_stray_lines() -> None:
    """It should yield the stray-line failure and then the entry that follows it."""
    with ChangelogReader.from_text("  stray\n" + DOTNET_CHANGELOG) as reader:
        results = list(reader.entries())

    assert [r.is_failure for r in results] == [True, False]
    assert results[1].value.package_name == PackageName("dotnet7")


def test_stray_lines_at_end_carry_no_value() -> None:
    """It should return a failure without value for stray text after the last entry."""
    with ChangelogReader.from_text(DOTNET_CHANGELOG + "\n  trailing junk\n") as reader:
        reader.read_entry()
        stray = reader.read_entry()
        end = reader.read_entry()

    assert stray.is_failure
    assert not stray.has_value
    assert identifiers(stray) == [STRAY_LINE]
    assert end.has_value
    assert end.value is None


def test_body_line_starting_with_dashes_is_not_a_trailer() -> None:
    """It should keep body lines such as ' ---- notes' in the description."""
    body = "\n  * Change.\n ---- notes\n\n"

    result = read_one(entry_text("hello (1.0) unstable; urgency=low", body=body))

    assert result.is_success
    assert result.value is not None
    assert result.value.description == body
    assert result.value.maintainer == Maintainer("Jane Doe", "jane@example.com")


def test_metadata_is_read_only() -> None:
    """It should not allow changing an entry through its metadata."""
    entry = read_one(DOTNET_CHANGELOG).value
    assert entry is not None

    with pytest.raises(TypeError):
        entry.metadata["urgency"] = "critical"  # type: ignore[index]

    assert entry.urgency == "medium"
    assert entry.metadata == {"urgency": "medium"}


def test_entries_yields_trailing_problems() -> None:
    """It should yield a final failure for stray text after the last entry."""
    text = DOTNET_CHANGELOG + "\n  trailing junk\n"

    with ChangelogReader.from_text(text) as reader:
        results = list(reader.entries())

    assert len(results) == 2
    assert results[0].is_success
    assert results[1].is_failure
    assert not results[1].has_value
    assert identifiers(results[1]) == [STRAY_LINE]


# --- sources and files --------------------------------------------------


class _FailingSource:
    """Line source whose reads fail."""

    def __init__(self) -> None:
        self.closed = False

    def readline(self) -> str:
        raise OSError("device not ready")

    def close(self) -> None:
        self.closed = True


def test_read_failure_is_reported() -> None:
    """It should turn I/O errors of the source into an error annotation."""
    source = _FailingSource()
    reader = ChangelogReader(source, "debian/changelog")

    result = reader.read_entry()

    assert result.is_failure
    assert identifiers(result) == [CHANGELOG_READ_FAILED]
    assert isinstance(result.errors[0].exception, OSError)
    assert reader.read_entry().value is None

    reader.close()
    assert source.closed


class _SpySource:
    """In-memory line source recording whether it was closed."""

    def __init__(self, text: str) -> None:
        self._lines = text.splitlines(keepends=True)
        self.closed = False

    def readline(self) -> str:
        return self._lines.pop(0) if self._lines else ""

    def close(self) -> None:
        self.closed = True


def test_source_is_closed_after_early_break() -> None:
    """It should release the source when iteration stops before the last entry."""
    source = _SpySource(DOTNET_CHANGELOG + "\n" + PPA_CHANGELOG)

    with ChangelogReader(source, "debian/changelog") as reader:
        for result in reader.entries():
            assert result.is_success
            break

    assert source.closed
    assert reader.closed


def test_source_is_closed_when_the_block_raises() -> None:
    """It should release the source when an exception leaves the with block."""
    source = _SpySource(DOTNET_CHANGELOG)

    reader = ChangelogReader(source, "debian/changelog")
    with pytest.raises(RuntimeError, match="interrupted"), reader:
        reader.read_entry()
        raise RuntimeError("interrupted")

    assert source.closed
    assert reader.closed


def test_closed_reader_raises() -> None:
    """It should raise ValueError when reading from a closed reader."""
    with ChangelogReader.from_text(DOTNET_CHANGELOG) as reader:
        pass

    assert reader.closed
    with pytest.raises(ValueError):
        reader.read_entry()


def test_from_file_reads_entries(tmp_path: Path) -> None:
    """It should open a changelog file and use its path as resource."""
    path = tmp_path / "changelog"
    path.write_text(DOTNET_CHANGELOG, encoding="utf-8")

    opened = ChangelogReader.from_file(path)

    assert opened.is_success
    with opened.value as reader:
        assert reader.resource == str(path)
        entry = reader.read_entry().value
    assert entry is not None
    assert entry.location.resource == str(path)
    assert reader.closed


def test_from_file_missing(tmp_path: Path) -> None:
    """It should fail with changelog-not-found for a missing file."""
    result = ChangelogReader.from_file(tmp_path / "missing")

    assert result.is_failure
    assert identifiers(result) == [CHANGELOG_NOT_FOUND]
    assert isinstance(result.errors[0].exception, FileNotFoundError)


def test_read_first_entry(tmp_path: Path) -> None:
    """It should return the newest entry of a changelog file."""
    path = tmp_path / "changelog"
    path.write_text(DOTNET_CHANGELOG + "\n" + PPA_CHANGELOG, encoding="utf-8")

    result = read_first_entry(path)

    assert result.is_success
    assert str(result.value.version) == "7.0.118-0ubuntu1~24.04.1"


def test_read_first_entry_after_stray_lines(tmp_path: Path) -> None:
    """It should return the entry that follows stray lines and report them."""
    path = tmp_path / "changelog"
    path.write_text("  stray\n" + DOTNET_CHANGELOG, encoding="utf-8")

    result = read_first_entry(path)

    assert result.is_failure
    assert identifiers(result) == [STRAY_LINE]
    assert result.has_value
    assert str(result.value.version) == "7.0.118-0ubuntu1~24.04.1"


def test_read_first_entry_of_empty_changelog(tmp_path: Path) -> None:
    """It should fail with empty-changelog when there is no entry."""
    path = tmp_path / "changelog"
    path.write_text("\n", encoding="utf-8")

    result = read_first_entry(path)

    assert result.is_failure
    assert identifiers(result) == [EMPTY_CHANGELOG]


def test_read_first_entry_of_missing_file(tmp_path: Path) -> None:
    """It should pass the file-level failure through."""
    result = read_first_entry(tmp_path / "missing")

    assert result.is_failure
    assert not result.has_value
    assert identifiers(result) == [CHANGELOG_NOT_FOUND]
