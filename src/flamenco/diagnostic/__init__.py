# topmark:header:start
#
#   project      : Flamenco
#   file         : __init__.py
#   file_relpath : src/flamenco/diagnostic/__init__.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Diagnostic primitives and helpers.

This package provides the result/annotation model every Flamenco parser uses
to report malformed input without raising.

Design:
    - Annotations are immutable trees (`Annotation.inner_annotations`).
    - Operations return a `Result`; results merge as a monoid.
    - Locations are relative while parsing a token and rebased with
      `Location.offset` once the enclosing position is known.
"""

from __future__ import annotations

from flamenco.diagnostic.location import LinePosition, LinePositionSpan, Location
from flamenco.diagnostic.model import (
    Annotation,
    AnnotationSeverity,
    DiagnosticStats,
    Result,
    ResultValueError,
    compute_diagnostic_stats,
)

__all__ = [
    "Annotation",
    "AnnotationSeverity",
    "DiagnosticStats",
    "LinePosition",
    "LinePositionSpan",
    "Location",
    "Result",
    "ResultValueError",
    "compute_diagnostic_stats",
]
