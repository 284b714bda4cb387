# topmark:header:start
#
#   project      : Flamenco
#   file         : model.py
#   file_relpath : src/flamenco/diagnostic/model.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Core diagnostic types: annotations and results.

Parsers in Flamenco never raise for malformed input. They return a
[`Result`][flamenco.diagnostic.model.Result] that carries an ordered tuple of
[`Annotation`][flamenco.diagnostic.model.Annotation] nodes and, optionally, a
value. A result is a *failure* as soon as one of its top-level annotations has
``ERROR`` severity.

Results form a monoid under [`Result.merge`][flamenco.diagnostic.model.Result.merge]:
annotation tuples are concatenated in order, failure is sticky, and the empty
success is the identity element. Batch operations merge the results of every
sub-unit instead of stopping at the first failure.

Exceptions remain reserved for programming errors, e.g. reading
[`Result.value`][flamenco.diagnostic.model.Result.value] from a result that
does not carry one.

Sections:
    * AnnotationSeverity: severity levels with associated terminal colors.
    * Annotation: immutable diagnostic node, possibly with nested children.
    * Result: success/failure with annotations and an optional value.
    * DiagnosticStats: aggregated per-severity counts over annotation trees.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast

from yachalk import chalk

from flamenco.config.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Mapping

    from flamenco.config.logging import FlamencoLogger
    from flamenco.diagnostic.location import Location

logger: FlamencoLogger = get_logger(__name__)

T = TypeVar("T")
U = TypeVar("U")


class AnnotationSeverity(Enum):
    """Severity of an annotation, ordered ERROR > WARNING > INFO."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"

    @property
    def rank(self) -> int:
        """Return a sortable rank (higher is more severe)."""
        return _SEVERITY_RANK[self]

    @property
    def label(self) -> str:
        """Return the capitalized display label (e.g. ``"Warning"``)."""
        return self.value.capitalize()

    @property
    def color(self) -> Callable[[str], str]:
        """Return the `yachalk` color function associated with this severity.

        Intended for human-readable output only.

        Returns:
            Callable[[str], str]: The `yachalk` color function for this severity.
        """
        return cast(
            "Callable[[str], str]",
            {
                AnnotationSeverity.INFO: chalk.blue,
                AnnotationSeverity.WARNING: chalk.yellow,
                AnnotationSeverity.ERROR: chalk.red_bright,
            }[self],
        )


_SEVERITY_RANK: dict[AnnotationSeverity, int] = {
    AnnotationSeverity.INFO: 0,
    AnnotationSeverity.WARNING: 1,
    AnnotationSeverity.ERROR: 2,
}


@dataclass(frozen=True)
class Annotation:
    """A structured diagnostic node.

    Attributes:
        severity (AnnotationSeverity): How serious the reported issue is.
        identifier (str): Stable machine-readable identifier (e.g. ``"malformed-version"``).
        title (str): Short human-readable summary.
        message (str): Full message for this occurrence.
        locations (tuple[Location, ...]): Where the issue was found, most specific first.
        description (str | None): Optional longer explanation.
        inner_annotations (tuple[Annotation, ...]): Nested annotations (causes, sub-parses).
        exception (BaseException | None): Underlying fault, if the annotation wraps one.
        metadata (Mapping[str, Any]): Free-form extra data; ignored by equality.
    """

    severity: AnnotationSeverity
    identifier: str
    title: str
    message: str
    locations: tuple[Location, ...] = ()
    description: str | None = None
    inner_annotations: tuple[Annotation, ...] = ()
    exception: BaseException | None = None
    metadata: Mapping[str, Any] = field(default_factory=lambda: {}, compare=False, hash=False)

    @classmethod
    def error(
        cls,
        identifier: str,
        title: str,
        message: str,
        *,
        location: Location | None = None,
        **kwargs: Any,
    ) -> Annotation:
        """Create an ``ERROR`` annotation with an optional single location."""
        return cls._create(AnnotationSeverity.ERROR, identifier, title, message, location, kwargs)

    @classmethod
    def warning(
        cls,
        identifier: str,
        title: str,
        message: str,
        *,
        location: Location | None = None,
        **kwargs: Any,
    ) -> Annotation:
        """Create a ``WARNING`` annotation with an optional single location."""
        return cls._create(AnnotationSeverity.WARNING, identifier, title, message, location, kwargs)

    @classmethod
    def info(
        cls,
        identifier: str,
        title: str,
        message: str,
        *,
        location: Location | None = None,
        **kwargs: Any,
    ) -> Annotation:
        """Create an ``INFO`` annotation with an optional single location."""
        return cls._create(AnnotationSeverity.INFO, identifier, title, message, location, kwargs)

    @classmethod
    def _create(
        cls,
        severity: AnnotationSeverity,
        identifier: str,
        title: str,
        message: str,
        location: Location | None,
        kwargs: dict[str, Any],
    ) -> Annotation:
        if location is not None and not location.is_unspecified:
            kwargs["locations"] = (location, *kwargs.get("locations", ()))
        annotation = cls(severity, identifier, title, message, **kwargs)
        logger.trace("Annotation [%s] %s: %s", severity.value, identifier, message)
        return annotation

    @property
    def is_error(self) -> bool:
        """Return True if this annotation has ``ERROR`` severity."""
        return self.severity is AnnotationSeverity.ERROR

    def with_inner(self, *annotations: Annotation) -> Annotation:
        """Return a copy with ``annotations`` appended to the nested annotations."""
        return replace(self, inner_annotations=self.inner_annotations + annotations)

    def offset(self, parent: Location | None) -> Annotation:
        """Return a copy whose locations (recursively) are rebased onto ``parent``."""
        if parent is None or parent.is_unspecified:
            return self
        locations = tuple(loc.offset(parent) for loc in self.locations) or (parent,)
        return replace(
            self,
            locations=locations,
            inner_annotations=tuple(a.offset(parent) for a in self.inner_annotations),
        )

    def walk(self, depth: int = 0) -> Iterator[tuple[int, Annotation]]:
        """Yield ``(depth, annotation)`` pairs for this node and its children, depth first."""
        yield depth, self
        for inner in self.inner_annotations:
            yield from inner.walk(depth + 1)


class ResultValueError(Exception):
    """Raised when a value is requested from a result that does not carry one.

    Attributes:
        annotations (tuple[Annotation, ...]): The annotations of the offending result.
    """

    def __init__(self, message: str, annotations: tuple[Annotation, ...] = ()) -> None:
        super().__init__(message)
        self.annotations = annotations


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of an operation: annotations plus an optional value.

    Use the constructors [`success`][flamenco.diagnostic.model.Result.success],
    [`of`][flamenco.diagnostic.model.Result.of] and
    [`failure`][flamenco.diagnostic.model.Result.failure] rather than the raw
    dataclass fields.

    Attributes:
        annotations (tuple[Annotation, ...]): Diagnostics in the order they were produced.
        has_value (bool): Whether a value is attached (the value itself may be ``None``).
        payload (T | None): The attached value, if any.
    """

    annotations: tuple[Annotation, ...] = ()
    has_value: bool = False
    payload: T | None = None

    @classmethod
    def success(cls, *annotations: Annotation) -> Result[T]:
        """Return a result without a value carrying ``annotations``."""
        return cls(annotations=annotations)

    @classmethod
    def of(cls, value: T, *annotations: Annotation) -> Result[T]:
        """Return a result carrying ``value`` and ``annotations``."""
        return cls(annotations=annotations, has_value=True, payload=value)

    @classmethod
    def failure(cls, annotation: Annotation, *annotations: Annotation) -> Result[T]:
        """Return a failed result; at least one annotation must be an error.

        Raises:
            ValueError: If none of the annotations has ``ERROR`` severity.
        """
        result: Result[T] = cls(annotations=(annotation, *annotations))
        if not result.is_failure:
            raise ValueError("a failed result requires at least one error annotation")
        return result

    @classmethod
    def merge_all(cls, results: Iterable[Result[Any]]) -> Result[T]:
        """Merge the annotations of all ``results`` in order, dropping their values."""
        merged: Result[T] = cls()
        for result in results:
            merged = merged.merge(result.without_value())
        return merged

    @property
    def is_failure(self) -> bool:
        """Return True if any top-level annotation has ``ERROR`` severity."""
        return any(a.is_error for a in self.annotations)

    @property
    def is_success(self) -> bool:
        """Return True if no top-level annotation has ``ERROR`` severity."""
        return not self.is_failure

    def failed(self, *, strict: bool = False) -> bool:
        """Return True on failure, or on any warning when ``strict`` is set."""
        return self.is_failure or (strict and bool(self.warnings))

    @property
    def value(self) -> T:
        """Return the attached value.

        Raises:
            ResultValueError: If the result does not carry a value.
        """
        if not self.has_value:
            raise ResultValueError("result does not carry a value", self.annotations)
        return cast("T", self.payload)

    @property
    def errors(self) -> tuple[Annotation, ...]:
        """Return the top-level ``ERROR`` annotations."""
        return self._by_severity(AnnotationSeverity.ERROR)

    @property
    def warnings(self) -> tuple[Annotation, ...]:
        """Return the top-level ``WARNING`` annotations."""
        return self._by_severity(AnnotationSeverity.WARNING)

    @property
    def infos(self) -> tuple[Annotation, ...]:
        """Return the top-level ``INFO`` annotations."""
        return self._by_severity(AnnotationSeverity.INFO)

    def _by_severity(self, severity: AnnotationSeverity) -> tuple[Annotation, ...]:
        return tuple(a for a in self.annotations if a.severity is severity)

    def unwrap(self) -> T:
        """Return the value of a successful result.

        Raises:
            ResultValueError: If the result failed or carries no value.
        """
        if self.is_failure:
            first = self.errors[0]
            raise ResultValueError(f"{first.title}: {first.message}", self.annotations)
        return self.value

    def merge(self, other: Result[Any]) -> Result[T]:
        """Concatenate annotations with ``other``.

        The value of ``self`` is kept when present, otherwise the value of
        ``other`` is adopted.
        """
        if self.has_value or not other.has_value:
            return replace(self, annotations=self.annotations + other.annotations)
        return Result(
            annotations=self.annotations + other.annotations,
            has_value=True,
            payload=cast("T", other.payload),
        )

    def with_annotations(self, *annotations: Annotation) -> Result[T]:
        """Return a copy with ``annotations`` appended."""
        return replace(self, annotations=self.annotations + annotations)

    def with_value(self, value: U) -> Result[U]:
        """Return a result with the same annotations carrying ``value``."""
        return Result(annotations=self.annotations, has_value=True, payload=value)

    def without_value(self) -> Result[Any]:
        """Return a result with the same annotations and no value."""
        return Result(annotations=self.annotations)

    def offset(self, parent: Location | None) -> Result[T]:
        """Return a copy whose annotation locations are rebased onto ``parent``."""
        return replace(self, annotations=tuple(a.offset(parent) for a in self.annotations))

    def then(self, func: Callable[[T], Result[U]]) -> Result[U]:
        """Chain an operation on the value of a successful result.

        A failed or value-less result short-circuits: its annotations are kept
        and ``func`` is not called.
        """
        if self.is_failure or not self.has_value:
            return Result(annotations=self.annotations)
        return self.without_value().merge(func(self.value))

    def map(self, func: Callable[[T], U]) -> Result[U]:
        """Transform the value of a successful result."""
        if self.is_failure or not self.has_value:
            return Result(annotations=self.annotations)
        return self.with_value(func(self.value))

    def walk(self) -> Iterator[tuple[int, Annotation]]:
        """Yield ``(depth, annotation)`` for every annotation node, depth first."""
        for annotation in self.annotations:
            yield from annotation.walk()


@dataclass(frozen=True)
class DiagnosticStats:
    """Aggregated counts for annotations by severity."""

    n_info: int
    n_warning: int
    n_error: int

    @property
    def total(self) -> int:
        """Return the total count of annotations."""
        return self.n_info + self.n_warning + self.n_error

    def to_dict(self) -> dict[str, int]:
        """Return a JSON-friendly mapping of counts by severity."""
        return {
            "info": self.n_info,
            "warning": self.n_warning,
            "error": self.n_error,
        }


def compute_diagnostic_stats(annotations: Iterable[Annotation]) -> DiagnosticStats:
    """Return per-severity counts over annotation trees, nested nodes included.

    Args:
        annotations: Top-level annotations to count.

    Returns:
        Per-severity counts for every node of every tree.
    """
    counts = dict.fromkeys(AnnotationSeverity, 0)
    for annotation in annotations:
        for _, node in annotation.walk():
            counts[node.severity] += 1
    return DiagnosticStats(
        n_info=counts[AnnotationSeverity.INFO],
        n_warning=counts[AnnotationSeverity.WARNING],
        n_error=counts[AnnotationSeverity.ERROR],
    )
