# topmark:header:start
#
#   project      : Flamenco
#   file         : suite.py
#   file_relpath : src/flamenco/dpkg/suite.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Suites: a series combined with a pocket (e.g. ``noble-proposed``)."""

from __future__ import annotations

from dataclasses import dataclass

from flamenco.diagnostic.location import LinePositionSpan, Location
from flamenco.diagnostic.model import Result
from flamenco.dpkg.identifiers import Pocket, Series


@dataclass(frozen=True, order=True)
class Suite:
    """A publication target: a series and a pocket.

    The string form omits the release pocket: ``Suite(noble, release)``
    renders as ``noble``, ``Suite(noble, proposed)`` as ``noble-proposed``.
    """

    series: Series
    pocket: Pocket = Pocket.RELEASE

    def __str__(self) -> str:
        if self.pocket.is_release:
            return str(self.series)
        return f"{self.series}-{self.pocket}"

    @classmethod
    def parse(cls, text: str, location: Location | None = None) -> Result[Suite]:
        """Parse ``<series>[-<pocket>]``, splitting at the first hyphen.

        Series and pocket are both validated so that all problems are reported
        together.
        """
        series_text, sep, pocket_text = text.partition("-")
        series_result = Series.parse(
            series_text,
            Location(span=LinePositionSpan.of_token(0, len(series_text))).offset(location),
        )
        if not sep:
            return series_result.map(lambda series: cls(series, Pocket.RELEASE))

        pocket_start = len(series_text) + 1
        pocket_result = Pocket.parse(
            pocket_text,
            Location(span=LinePositionSpan.of_token(pocket_start, len(pocket_text))).offset(
                location
            ),
        )
        merged: Result[Suite] = Result.merge_all((series_result, pocket_result))
        if merged.is_failure:
            return merged
        return merged.with_value(cls(series_result.value, pocket_result.value))

    @classmethod
    def from_string(cls, text: str) -> Suite:
        """Parse ``text`` or raise `ValueError` with the first error message."""
        result = cls.parse(text)
        if result.is_failure:
            raise ValueError(result.errors[0].message)
        return result.value
