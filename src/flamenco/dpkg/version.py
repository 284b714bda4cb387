# topmark:header:start
#
#   project      : Flamenco
#   file         : version.py
#   file_relpath : src/flamenco/dpkg/version.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Debian package versions: parsing, decomposition and dpkg ordering.

A version string has the form ``[epoch:]upstream_version[-revision]``:

* the **first** colon separates the epoch, which must consist of decimal
  digits; further colons belong to the upstream version;
* the **last** hyphen separates the revision; further hyphens belong to the
  upstream version.

Parsing is permissive like dpkg itself: only a malformed epoch makes
[`Version.parse`][flamenco.dpkg.version.Version.parse] fail. Other oddities
(unexpected characters, an upstream version not starting with a digit, ...)
are reported as warnings on a successful result.

Ordering follows ``verrevcmp`` from dpkg: epochs compare numerically, then
the upstream versions and the revisions compare by alternating runs of
non-digits (where ``~`` sorts before everything, even the end of the string)
and digits (compared numerically).

Examples:
    >>> Version.from_string("1:2.0-1ubuntu1").ubuntu_revision
    '1'
    >>> Version.from_string("1.0~rc1") < Version.from_string("1.0")
    True
    >>> Version.from_string("0") == Version.from_string("0:0")
    True
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, Final

from flamenco.config.logging import get_logger
from flamenco.diagnostic.location import LinePositionSpan, Location
from flamenco.diagnostic.model import Annotation, Result

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from flamenco.config.logging import FlamencoLogger

    _Locator = Callable[[int, int], Location]

logger: FlamencoLogger = get_logger(__name__)

EPOCH_DELIMITER: Final[str] = ":"
REVISION_DELIMITER: Final[str] = "-"
UBUNTU_REVISION_DELIMITER: Final[str] = "ubuntu"
REAL_UPSTREAM_VERSION_DELIMITER: Final[str] = "+really"

# Largest epoch dpkg accepts (INT_MAX)
MAX_EPOCH_VALUE: Final[int] = 2147483647

MALFORMED_VERSION: Final[str] = "malformed-version"
INVALID_VERSION_CHARACTERS: Final[str] = "version-invalid-characters"
UPSTREAM_VERSION_NOT_DIGIT: Final[str] = "version-upstream-not-digit"
EMPTY_UPSTREAM_VERSION: Final[str] = "version-empty-upstream"
EMPTY_REVISION: Final[str] = "version-empty-revision"
MULTIPLE_UBUNTU_DELIMITERS: Final[str] = "version-multiple-ubuntu-delimiters"
MULTIPLE_REALLY_DELIMITERS: Final[str] = "version-multiple-really-delimiters"

_UPSTREAM_PUNCTUATION: Final[str] = ".+-:~"
_REVISION_PUNCTUATION: Final[str] = ".+~"


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


def _is_alnum(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def _order(ch: str) -> int:
    """Return the sort weight of a non-digit character as defined by dpkg."""
    if _is_digit(ch):
        return 0
    if ch.isascii() and ch.isalpha():
        return ord(ch)
    if ch == "~":
        return -1
    return ord(ch) + 256


def compare_version_part(a: str, b: str) -> int:
    """Compare two upstream versions or two revisions the way dpkg does.

    Args:
        a (str): Left operand.
        b (str): Right operand.

    Returns:
        int: -1, 0 or 1.
    """
    i = j = 0
    len_a, len_b = len(a), len(b)
    while i < len_a or j < len_b:
        first_diff = 0

        while (i < len_a and not _is_digit(a[i])) or (j < len_b and not _is_digit(b[j])):
            ac = _order(a[i]) if i < len_a else 0
            bc = _order(b[j]) if j < len_b else 0
            if ac != bc:
                return -1 if ac < bc else 1
            i += 1
            j += 1

        while i < len_a and a[i] == "0":
            i += 1
        while j < len_b and b[j] == "0":
            j += 1

        while i < len_a and j < len_b and _is_digit(a[i]) and _is_digit(b[j]):
            if not first_diff:
                first_diff = ord(a[i]) - ord(b[j])
            i += 1
            j += 1

        if i < len_a and _is_digit(a[i]):
            return 1
        if j < len_b and _is_digit(b[j]):
            return -1
        if first_diff:
            return -1 if first_diff < 0 else 1
    return 0


def _canonical_part(text: str) -> tuple[tuple[str, int], ...]:
    """Return a hashable form of ``text`` that is equal exactly when dpkg says so."""
    segments: list[tuple[str, int]] = []
    pos, length = 0, len(text)
    while pos < length:
        start = pos
        while pos < length and not _is_digit(text[pos]):
            pos += 1
        non_digits = text[start:pos]
        start = pos
        while pos < length and _is_digit(text[pos]):
            pos += 1
        segments.append((non_digits, int(text[start:pos] or "0")))
    while segments and segments[-1] == ("", 0):
        segments.pop()
    return tuple(segments)


@dataclass(frozen=True, eq=False)
class Version:
    """An immutable, parsed Debian package version.

    Instances compare with dpkg semantics, so distinct spellings may be equal
    (``"0"``, ``"00"`` and ``"0:0"``). ``str()`` always reproduces the parsed
    text. Any version compares greater than ``None``.

    Attributes:
        epoch (str | None): Epoch digits as written, or None when absent.
        upstream_version (str): Upstream version (may contain ``-`` and ``:``).
        revision (str | None): Packaging revision, or None when absent.
    """

    EMPTY: ClassVar[Version]

    epoch: str | None
    upstream_version: str
    revision: str | None = None

    def __post_init__(self) -> None:
        if self.epoch is not None and not (self.epoch and all(map(_is_digit, self.epoch))):
            raise ValueError(f"epoch must consist of decimal digits, got {self.epoch!r}")

    # --- derived values -------------------------------------------------

    @property
    def epoch_value(self) -> int:
        """Return the numeric epoch (0 when absent)."""
        return int(self.epoch) if self.epoch else 0

    @property
    def debian_revision(self) -> str | None:
        """Return the revision up to the first ``ubuntu`` (the whole revision if absent)."""
        if self.revision is None:
            return None
        return self.revision.partition(UBUNTU_REVISION_DELIMITER)[0]

    @property
    def ubuntu_revision(self) -> str | None:
        """Return the revision after the first ``ubuntu``, or None."""
        if self.revision is None:
            return None
        _, sep, ubuntu = self.revision.partition(UBUNTU_REVISION_DELIMITER)
        return ubuntu if sep else None

    @property
    def reverted_upstream_version(self) -> str | None:
        """Return the upstream version before the first ``+really``, or None."""
        reverted, sep, _ = self.upstream_version.partition(REAL_UPSTREAM_VERSION_DELIMITER)
        return reverted if sep else None

    @property
    def real_upstream_version(self) -> str | None:
        """Return the upstream version after the first ``+really``, or None."""
        _, sep, real = self.upstream_version.partition(REAL_UPSTREAM_VERSION_DELIMITER)
        return real if sep else None

    @property
    def effective_upstream_version(self) -> str:
        """Return the real upstream version when ``+really`` is used, else the upstream version."""
        real = self.real_upstream_version
        return real if real is not None else self.upstream_version

    @property
    def is_empty(self) -> bool:
        """Return True for the version parsed from the empty string."""
        return self.epoch is None and not self.upstream_version and self.revision is None

    # --- comparison -----------------------------------------------------

    def compare(self, other: Version | None) -> int:
        """Return -1, 0 or 1; ``None`` sorts before every version."""
        if other is None:
            return 1
        if self.epoch_value != other.epoch_value:
            return -1 if self.epoch_value < other.epoch_value else 1
        result = compare_version_part(self.upstream_version, other.upstream_version)
        if result:
            return result
        return compare_version_part(self.revision or "", other.revision or "")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) == 0

    def __ne__(self, other: object) -> bool:
        if not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) != 0

    def __lt__(self, other: Version | None) -> bool:
        if other is not None and not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) < 0

    def __le__(self, other: Version | None) -> bool:
        if other is not None and not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) <= 0

    def __gt__(self, other: Version | None) -> bool:
        if other is not None and not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) > 0

    def __ge__(self, other: Version | None) -> bool:
        if other is not None and not isinstance(other, Version):
            return NotImplemented
        return self.compare(other) >= 0

    def __hash__(self) -> int:
        return hash(
            (
                self.epoch_value,
                _canonical_part(self.upstream_version),
                _canonical_part(self.revision or ""),
            )
        )

    # --- text -----------------------------------------------------------

    def __str__(self) -> str:
        text = self.upstream_version
        if self.epoch is not None:
            text = f"{self.epoch}{EPOCH_DELIMITER}{text}"
        if self.revision is not None:
            text = f"{text}{REVISION_DELIMITER}{self.revision}"
        return text

    def __repr__(self) -> str:
        return f"Version({str(self)!r})"

    @classmethod
    def from_string(cls, text: str) -> Version:
        """Parse ``text``, raising `ValueError` if it is malformed."""
        result = cls.parse(text)
        if result.is_failure:
            raise ValueError(result.errors[0].message)
        return result.value

    @classmethod
    def parse(cls, text: str, location: Location | None = None) -> Result[Version]:
        """Parse a version string.

        Args:
            text (str): The version string.
            location (Location | None): Location of ``text``; annotation
                locations are rebased onto it.

        Returns:
            Result[Version]: The version, with warnings for suspicious but
            accepted input, or a failure when the epoch is malformed.
        """
        if not text:
            return Result.of(cls.EMPTY)

        def at(start: int, length: int) -> Location:
            return Location(span=LinePositionSpan.of_token(start, length)).offset(location)

        epoch: str | None = None
        rest_start = 0
        epoch_text, sep, _ = text.partition(EPOCH_DELIMITER)
        if sep:
            problem = _epoch_problem(epoch_text)
            if problem is not None:
                logger.debug("Malformed epoch in version %r: %s", text, problem)
                return Result.failure(
                    Annotation.error(
                        MALFORMED_VERSION,
                        "Malformed version string",
                        f"The version '{text}' is malformed. {problem}",
                        location=at(0, len(epoch_text) + 1),
                        metadata={"text": text},
                    )
                )
            epoch = epoch_text
            rest_start = len(epoch_text) + 1

        rest = text[rest_start:]
        upstream, sep, revision_text = rest.rpartition(REVISION_DELIMITER)
        revision: str | None = revision_text if sep else None
        if not sep:
            upstream = rest
        revision_start = rest_start + len(upstream) + 1

        version = cls(epoch, upstream, revision)
        warnings = _check_upstream(text, upstream, rest_start, at)
        if revision is not None:
            warnings.extend(_check_revision(text, revision, revision_start, at))

        logger.trace("Parsed version %r (%d warning(s))", text, len(warnings))
        return Result.of(version, *warnings)


Version.EMPTY = Version(None, "", None)


def _epoch_problem(epoch_text: str) -> str | None:
    if not epoch_text:
        return "The epoch before ':' is empty."
    if not all(map(_is_digit, epoch_text)):
        return f"The epoch '{epoch_text}' must consist of decimal digits only."
    if int(epoch_text) > MAX_EPOCH_VALUE:
        return f"The epoch '{epoch_text}' exceeds the maximum value {MAX_EPOCH_VALUE}."
    return None


def _invalid_characters_warning(
    text: str,
    part: str,
    positions: list[int],
    at: _Locator,
) -> Annotation:
    chars = "".join(sorted({text[p] for p in positions}))
    return Annotation.warning(
        INVALID_VERSION_CHARACTERS,
        "Version contains unexpected characters",
        f"The {part} of version '{text}' contains characters dpkg does not allow: {chars!r}.",
        locations=tuple(at(p, 1) for p in positions),
    )


def _check_upstream(text: str, upstream: str, start: int, at: _Locator) -> list[Annotation]:
    warnings: list[Annotation] = []
    if not upstream:
        warnings.append(
            Annotation.warning(
                EMPTY_UPSTREAM_VERSION,
                "Empty upstream version",
                f"The version '{text}' has an empty upstream version.",
                location=at(start, 0),
            )
        )
        return warnings

    if not _is_digit(upstream[0]):
        warnings.append(
            Annotation.warning(
                UPSTREAM_VERSION_NOT_DIGIT,
                "Upstream version does not start with a digit",
                f"The upstream version '{upstream}' of '{text}' should start with a digit.",
                location=at(start, 1),
            )
        )

    invalid = [
        start + i
        for i, ch in enumerate(upstream)
        if not (_is_alnum(ch) or ch in _UPSTREAM_PUNCTUATION)
    ]
    if invalid:
        warnings.append(_invalid_characters_warning(text, "upstream version", invalid, at))

    count = upstream.count(REAL_UPSTREAM_VERSION_DELIMITER)
    if count > 1:
        warnings.append(
            Annotation.warning(
                MULTIPLE_REALLY_DELIMITERS,
                "Multiple '+really' delimiters",
                f"The upstream version '{upstream}' contains '{REAL_UPSTREAM_VERSION_DELIMITER}' "
                f"{count} times; only the first one splits the version.",
                location=at(start, len(upstream)),
            )
        )
    return warnings


def _check_revision(text: str, revision: str, start: int, at: _Locator) -> list[Annotation]:
    if not revision:
        return [
            Annotation.warning(
                EMPTY_REVISION,
                "Empty revision",
                f"The version '{text}' ends with '{REVISION_DELIMITER}' but has no revision.",
                location=at(start - 1, 1),
            )
        ]

    warnings: list[Annotation] = []
    invalid = [
        start + i
        for i, ch in enumerate(revision)
        if not (_is_alnum(ch) or ch in _REVISION_PUNCTUATION)
    ]
    if invalid:
        warnings.append(_invalid_characters_warning(text, "revision", invalid, at))

    count = revision.count(UBUNTU_REVISION_DELIMITER)
    if count > 1:
        warnings.append(
            Annotation.warning(
                MULTIPLE_UBUNTU_DELIMITERS,
                "Multiple 'ubuntu' delimiters",
                f"The revision '{revision}' contains '{UBUNTU_REVISION_DELIMITER}' "
                f"{count} times; only the first one splits the revision.",
                location=at(start, len(revision)),
            )
        )
    return warnings


def compare_versions(a: Version | None, b: Version | None) -> int:
    """Compare two optional versions; ``None`` sorts first and equals only ``None``."""
    if a is None:
        return 0 if b is None else -1
    return a.compare(b)


def version_sort_key(version: Version | None) -> tuple[int, ...] | tuple[int, Version]:
    """Return a sort key placing ``None`` before every version."""
    return (0,) if version is None else (1, version)


def sort_versions(
    versions: Iterable[Version | None],
    *,
    reverse: bool = False,
) -> list[Version | None]:
    """Return ``versions`` sorted stably in dpkg order, ``None`` first."""
    return sorted(versions, key=version_sort_key, reverse=reverse)


RELATIONS: Final[dict[str, Callable[[int], bool]]] = {
    "lt": lambda c: c < 0,
    "le": lambda c: c <= 0,
    "eq": lambda c: c == 0,
    "ne": lambda c: c != 0,
    "ge": lambda c: c >= 0,
    "gt": lambda c: c > 0,
    "<<": lambda c: c < 0,
    "<=": lambda c: c <= 0,
    "=": lambda c: c == 0,
    ">=": lambda c: c >= 0,
    ">>": lambda c: c > 0,
}


def satisfies(a: Version, relation: str, b: Version) -> bool:
    """Evaluate a ``dpkg --compare-versions`` style relation.

    Raises:
        KeyError: If ``relation`` is not one of `RELATIONS`.
    """
    return RELATIONS[relation](a.compare(b))
