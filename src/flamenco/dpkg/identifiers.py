# topmark:header:start
#
#   project      : Flamenco
#   file         : identifiers.py
#   file_relpath : src/flamenco/dpkg/identifiers.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Validated identifier value types for Debian/Ubuntu package metadata.

Every identifier is an immutable wrapper around a validated string. Instances
are obtained through ``parse()``, which reports malformed input as an ``ERROR``
annotation located at each offending character, or through the constructor,
which raises `ValueError` for invalid input and is meant for literals known
to be valid.

Equality and hashing use the exact validated string and the concrete type:
``PackageName("main") != Component("main")``.

Character rules:

| Type           | Rule                                                  |
|----------------|-------------------------------------------------------|
| `PackageName`  | first ``[a-z0-9]``, then ``[a-z0-9+.-]``              |
| `Architecture` | ``[a-z0-9]+``                                         |
| `Series`       | ``[a-z]+``, or the changelog placeholder `UNRELEASED` |
| `Pocket`       | lowercase words joined by single ``-``                |
| `Component`    | lowercase words joined by single ``-``                |
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, ClassVar, TypeVar

from flamenco.config.logging import get_logger
from flamenco.diagnostic.location import LinePositionSpan, Location
from flamenco.diagnostic.model import Annotation, Result

if TYPE_CHECKING:
    from flamenco.config.logging import FlamencoLogger

logger: FlamencoLogger = get_logger(__name__)

_I = TypeVar("_I", bound="DpkgIdentifier")


def _is_lower(ch: str) -> bool:
    return "a" <= ch <= "z"


def _is_digit(ch: str) -> bool:
    return "0" <= ch <= "9"


@dataclass(frozen=True, order=True)
class DpkgIdentifier:
    """Base class for validated identifiers.

    Subclasses set ``kind`` (used in messages and annotation identifiers) and
    implement `_invalid_positions`; they may override `_structural_problem`.

    Attributes:
        identifier (str): The validated identifier text.
    """

    kind: ClassVar[str] = "identifier"

    identifier: str

    def __post_init__(self) -> None:
        reason = self._problem(self.identifier)
        if reason is not None:
            raise ValueError(f"Invalid {self.kind} {self.identifier!r}: {reason}")

    def __str__(self) -> str:
        return self.identifier

    @classmethod
    def _invalid_positions(cls, text: str) -> list[int]:
        raise NotImplementedError

    @classmethod
    def _structural_problem(cls, text: str) -> str | None:
        """Return a reason when ``text`` is malformed beyond single characters."""
        return None

    @classmethod
    def _problem(cls, text: str) -> str | None:
        if not text:
            return f"{cls.kind.capitalize()} is empty."
        if cls._invalid_positions(text):
            return f"{cls.kind.capitalize()} contains characters that are not allowed."
        return cls._structural_problem(text)

    @classmethod
    def parse(cls: type[_I], text: str, location: Location | None = None) -> Result[_I]:
        """Validate ``text`` and wrap it.

        Args:
            text (str): Raw identifier text.
            location (Location | None): Location of ``text``; annotation
                locations are rebased onto it.

        Returns:
            Result[_I]: The identifier, or a failure with a ``malformed-<kind>`` error.
        """
        reason = cls._problem(text)
        if reason is None:
            logger.trace("Parsed %s %r", cls.kind, text)
            return Result.of(cls(text))

        positions = cls._invalid_positions(text) if text else [0]
        if not positions:
            positions = [max(len(text) - 1, 0)]
        locations = tuple(
            Location(span=LinePositionSpan.of_token(pos, 1)).offset(location) for pos in positions
        )
        logger.debug("Malformed %s %r: %s", cls.kind, text, reason)
        return Result.failure(
            Annotation.error(
                f"malformed-{cls.kind.replace(' ', '-')}",
                f"Malformed {cls.kind}",
                f"The {cls.kind} '{text}' is malformed. {reason}",
                locations=locations,
                metadata={"text": text, "invalid_positions": tuple(positions)},
            )
        )

    @classmethod
    def from_string(cls: type[_I], text: str) -> _I:
        """Parse ``text`` or raise `ValueError` with the annotation message."""
        result = cls.parse(text)
        if result.is_failure:
            raise ValueError(result.errors[0].message)
        return result.value


def _hyphenated_word_positions(text: str) -> list[int]:
    """Return offending positions for lowercase words joined by single hyphens."""
    invalid: list[int] = []
    start_of_word = True
    for pos, ch in enumerate(text):
        if _is_lower(ch):
            start_of_word = False
        elif ch == "-" and not start_of_word:
            start_of_word = True
        else:
            invalid.append(pos)
    return invalid


def _hyphenated_word_problem(kind: str, text: str) -> str | None:
    if text.endswith("-"):
        return f"{kind.capitalize()} ends with a '-' character."
    return None


@dataclass(frozen=True, order=True)
class PackageName(DpkgIdentifier):
    """Name of a source or binary package (e.g. ``dotnet8``, ``libc6-dev``)."""

    kind: ClassVar[str] = "package name"

    @classmethod
    def _invalid_positions(cls, text: str) -> list[int]:
        invalid = [] if _is_lower(text[0]) or _is_digit(text[0]) else [0]
        invalid.extend(
            pos
            for pos, ch in enumerate(text[1:], start=1)
            if not (_is_lower(ch) or _is_digit(ch) or ch in "+-.")
        )
        return invalid


@dataclass(frozen=True, order=True)
class Architecture(DpkgIdentifier):
    """A dpkg architecture, including the pseudo-architectures ``source`` and ``all``."""

    kind: ClassVar[str] = "architecture"

    SOURCE: ClassVar[Architecture]
    ALL: ClassVar[Architecture]
    AMD64: ClassVar[Architecture]
    ARM64: ClassVar[Architecture]
    ARMEL: ClassVar[Architecture]
    ARMHF: ClassVar[Architecture]
    I386: ClassVar[Architecture]
    MIPS64EL: ClassVar[Architecture]
    PPC64EL: ClassVar[Architecture]
    POWERPC: ClassVar[Architecture]
    S390X: ClassVar[Architecture]
    RISCV64: ClassVar[Architecture]

    @classmethod
    def _invalid_positions(cls, text: str) -> list[int]:
        return [pos for pos, ch in enumerate(text) if not (_is_lower(ch) or _is_digit(ch))]

    @property
    def is_source(self) -> bool:
        """Return True for the ``source`` pseudo-architecture."""
        return self.identifier == "source"


Architecture.SOURCE = Architecture("source")
Architecture.ALL = Architecture("all")
Architecture.AMD64 = Architecture("amd64")
Architecture.ARM64 = Architecture("arm64")
Architecture.ARMEL = Architecture("armel")
Architecture.ARMHF = Architecture("armhf")
Architecture.I386 = Architecture("i386")
Architecture.MIPS64EL = Architecture("mips64el")
Architecture.PPC64EL = Architecture("ppc64el")
Architecture.POWERPC = Architecture("powerpc")
Architecture.S390X = Architecture("s390x")
Architecture.RISCV64 = Architecture("riscv64")


@dataclass(frozen=True, order=True)
class Series(DpkgIdentifier):
    """A distribution series codename (e.g. ``noble``, ``bookworm``, ``sid``)."""

    kind: ClassVar[str] = "series"

    UNRELEASED: ClassVar[Series]

    @classmethod
    def _invalid_positions(cls, text: str) -> list[int]:
        if text == "UNRELEASED":
            return []
        return [pos for pos, ch in enumerate(text) if not _is_lower(ch)]

    @property
    def is_unreleased(self) -> bool:
        """Return True for the ``UNRELEASED`` changelog placeholder."""
        return self.identifier == "UNRELEASED"


Series.UNRELEASED = Series("UNRELEASED")


@dataclass(frozen=True, order=True)
class Pocket(DpkgIdentifier):
    """An archive pocket (e.g. ``release``, ``proposed``, ``proposed-updates``)."""

    kind: ClassVar[str] = "pocket"

    RELEASE: ClassVar[Pocket]
    SECURITY: ClassVar[Pocket]
    UPDATES: ClassVar[Pocket]
    PROPOSED: ClassVar[Pocket]
    BACKPORTS: ClassVar[Pocket]

    @classmethod
    def _invalid_positions(cls, text: str) -> list[int]:
        return _hyphenated_word_positions(text)

    @classmethod
    def _structural_problem(cls, text: str) -> str | None:
        return _hyphenated_word_problem(cls.kind, text)

    @property
    def display_name(self) -> str:
        """Return the Title Case name with spaces, e.g. ``"Proposed Updates"``."""
        return " ".join(word.capitalize() for word in self.identifier.split("-"))

    @property
    def is_release(self) -> bool:
        """Return True for the release pocket."""
        return self.identifier == "release"


Pocket.RELEASE = Pocket("release")
Pocket.SECURITY = Pocket("security")
Pocket.UPDATES = Pocket("updates")
Pocket.PROPOSED = Pocket("proposed")
Pocket.BACKPORTS = Pocket("backports")


@dataclass(frozen=True, order=True)
class Component(DpkgIdentifier):
    """An archive component (e.g. ``main``, ``universe``, ``non-free-firmware``)."""

    kind: ClassVar[str] = "component"

    MAIN: ClassVar[Component]
    RESTRICTED: ClassVar[Component]
    UNIVERSE: ClassVar[Component]
    MULTIVERSE: ClassVar[Component]
    CONTRIB: ClassVar[Component]
    NON_FREE: ClassVar[Component]
    NON_FREE_FIRMWARE: ClassVar[Component]

    @classmethod
    def _invalid_positions(cls, text: str) -> list[int]:
        return _hyphenated_word_positions(text)

    @classmethod
    def _structural_problem(cls, text: str) -> str | None:
        return _hyphenated_word_problem(cls.kind, text)


Component.MAIN = Component("main")
Component.RESTRICTED = Component("restricted")
Component.UNIVERSE = Component("universe")
Component.MULTIVERSE = Component("multiverse")
Component.CONTRIB = Component("contrib")
Component.NON_FREE = Component("non-free")
Component.NON_FREE_FIRMWARE = Component("non-free-firmware")
