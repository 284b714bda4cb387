# topmark:header:start
#
#   project      : Flamenco
#   file         : annotations.py
#   file_relpath : src/flamenco/diagnostic/annotations.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Stock annotations shared across Flamenco modules."""

from __future__ import annotations

from typing import TYPE_CHECKING

from flamenco.diagnostic.model import Annotation

if TYPE_CHECKING:
    from flamenco.diagnostic.location import Location

OPERATION_CANCELED = "operation-canceled"
UNEXPECTED_EXCEPTION = "unexpected-exception"


def operation_canceled(location: Location | None = None) -> Annotation:
    """Return an error annotation for an operation interrupted by the caller."""
    return Annotation.error(
        OPERATION_CANCELED,
        "Operation canceled",
        "The current operation was canceled.",
        location=location,
    )


def exception_annotation(exc: BaseException, location: Location | None = None) -> Annotation:
    """Wrap a captured exception into an error annotation.

    The exception type becomes the title and its message the annotation message.
    A chained cause (``raise ... from``) is kept on the exception itself and
    rendered by [`render_annotations`][flamenco.diagnostic.render.render_annotations].

    Args:
        exc (BaseException): The captured exception.
        location (Location | None): Where the exception occurred, if known.

    Returns:
        Annotation: An ``ERROR`` annotation carrying ``exc``.
    """
    exc_type = type(exc)
    return Annotation.error(
        UNEXPECTED_EXCEPTION,
        f"{exc_type.__module__}.{exc_type.__qualname__}",
        str(exc) or exc_type.__name__,
        location=location,
        description="This error represents a captured exception.",
        exception=exc,
    )
