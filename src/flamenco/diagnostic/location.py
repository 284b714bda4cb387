# topmark:header:start
#
#   project      : Flamenco
#   file         : location.py
#   file_relpath : src/flamenco/diagnostic/location.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Source locations attached to annotations.

Positions are zero-based internally and rendered one-based for humans. Span
ends are inclusive: a span covering ``"abc"`` at the start of a line runs from
character 0 to character 2.

A location may be *relative* (no resource, span measured from the start of a
token) and later rebased onto the location of the enclosing text with
[`Location.offset`][flamenco.diagnostic.location.Location.offset]. This lets
leaf parsers report positions without knowing where their input came from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True, order=True)
class LinePosition:
    """A zero-based (line, character) position in a text resource.

    A negative ``character`` means "the whole line" and renders without a column.
    """

    line: int
    character: int = 0

    def __post_init__(self) -> None:
        if self.line < 0:
            raise ValueError(f"line must be non-negative, got {self.line}")

    def __str__(self) -> str:
        if self.character >= 0:
            return f"line {self.line + 1} character {self.character + 1}"
        return f"line {self.line + 1}"


@dataclass(frozen=True)
class LinePositionSpan:
    """An inclusive span between two line positions."""

    start: LinePosition
    end: LinePosition

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"span end {self.end!r} precedes start {self.start!r}")

    @classmethod
    def at(cls, position: LinePosition) -> LinePositionSpan:
        """Return an empty span located at ``position``."""
        return cls(position, position)

    @classmethod
    def on_line(cls, line: int, start: int, end: int) -> LinePositionSpan:
        """Return a span covering characters ``start..end`` of a single line."""
        return cls(LinePosition(line, start), LinePosition(line, end))

    @classmethod
    def of_token(cls, start: int, length: int) -> LinePositionSpan:
        """Return a relative span on line 0 for a token of ``length`` characters."""
        return cls.on_line(0, start, start + max(length, 1) - 1)

    def __str__(self) -> str:
        if self.start != self.end:
            return f"from {self.start} to {self.end}"
        return f"at {self.start}"


@dataclass(frozen=True)
class Location:
    """A resource (file path, URL, ...) and/or a text span inside it.

    Attributes:
        resource (str | None): Resource locator; None for relative locations.
        span (LinePositionSpan | None): Text span; None when the whole resource is meant.
    """

    UNSPECIFIED: ClassVar[Location]

    resource: str | None = None
    span: LinePositionSpan | None = None

    @property
    def is_unspecified(self) -> bool:
        """Return True if neither a resource nor a span is set."""
        return self.resource is None and self.span is None

    @classmethod
    def for_line(cls, resource: str | None, line: int, text: str) -> Location:
        """Return the location of a whole line of ``text`` (without its terminator)."""
        return cls(resource, LinePositionSpan.on_line(line, 0, max(len(text) - 1, 0)))

    def offset(self, parent: Location | None) -> Location:
        """Rebase this (relative) location onto ``parent``.

        The parent's resource wins when present. When both carry spans, this
        span is shifted by the parent's start position; lines are added and
        characters are added on the parent's first line.

        Args:
            parent (Location | None): Location of the enclosing text.

        Returns:
            Location: The absolute location.
        """
        if parent is None or parent.is_unspecified:
            return self

        span: LinePositionSpan | None
        if parent.span is None:
            span = self.span
        elif self.span is None:
            span = parent.span
        else:
            origin = parent.span.start
            span = LinePositionSpan(
                start=_shift(self.span.start, origin),
                end=_shift(self.span.end, origin),
            )

        return Location(
            resource=parent.resource if parent.resource is not None else self.resource,
            span=span,
        )

    def __str__(self) -> str:
        if self.resource is not None and self.span is not None:
            return f"'{self.resource}' {self.span}"
        if self.resource is not None:
            return f"'{self.resource}'"
        if self.span is not None:
            return str(self.span)
        return "Unspecified"


def _shift(position: LinePosition, origin: LinePosition) -> LinePosition:
    # Characters only shift on the origin's own line
    if position.line == 0:
        return LinePosition(origin.line, position.character + origin.character)
    return LinePosition(origin.line + position.line, position.character)


Location.UNSPECIFIED = Location()
