# topmark:header:start
#
#   project      : Flamenco
#   file         : test_result_model.py
#   file_relpath : tests/diagnostic/test_result_model.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Tests for annotations and the `Result` monoid."""

from __future__ import annotations

import pytest

from flamenco.diagnostic.annotations import (
    OPERATION_CANCELED,
    UNEXPECTED_EXCEPTION,
    exception_annotation,
    operation_canceled,
)
from flamenco.diagnostic.location import LinePositionSpan, Location
from flamenco.diagnostic.model import (
    Annotation,
    AnnotationSeverity,
    Result,
    ResultValueError,
    compute_diagnostic_stats,
)

ERROR = Annotation.error("e", "Error", "An error.")
WARNING = Annotation.warning("w", "Warning", "A warning.")
INFO = Annotation.info("i", "Info", "An info.")


def test_severity_rank_and_label() -> None:
    """It should rank ERROR above WARNING above INFO."""
    assert AnnotationSeverity.ERROR.rank > AnnotationSeverity.WARNING.rank
    assert AnnotationSeverity.WARNING.rank > AnnotationSeverity.INFO.rank
    assert AnnotationSeverity.WARNING.label == "Warning"


def test_constructors_set_severity_and_location() -> None:
    """It should record a single location, skipping unspecified ones."""
    location = Location("f", LinePositionSpan.of_token(0, 1))

    assert Annotation.error("x", "T", "M", location=location).locations == (location,)
    assert Annotation.warning("x", "T", "M", location=Location.UNSPECIFIED).locations == ()
    assert Annotation.info("x", "T", "M").severity is AnnotationSeverity.INFO
    assert ERROR.is_error
    assert not WARNING.is_error


def test_metadata_is_ignored_by_equality() -> None:
    """It should compare annotations without their metadata."""
    a = Annotation.error("x", "T", "M", metadata={"line": 1})
    b = Annotation.error("x", "T", "M", metadata={"line": 2})

    assert a == b


def test_success_without_value() -> None:
    """It should not carry a value and raise when one is requested."""
    result: Result[int] = Result.success(WARNING)

    assert result.is_success
    assert not result.has_value
    with pytest.raises(ResultValueError) as excinfo:
        _ = result.value
    assert excinfo.value.annotations == (WARNING,)


def test_value_may_be_none() -> None:
    """It should distinguish a None value from no value."""
    result: Result[None] = Result.of(None)

    assert result.has_value
    assert result.value is None


def test_failure_requires_an_error() -> None:
    """It should refuse to build a failure from non-error annotations."""
    with pytest.raises(ValueError):
        Result.failure(WARNING, INFO)

    assert Result.failure(WARNING, ERROR).is_failure


def test_merge_identity() -> None:
    """It should leave a result unchanged when merged with the empty success."""
    result: Result[int] = Result.of(1, WARNING)

    assert result.merge(Result.success()) == result
    assert Result.success().merge(result).annotations == result.annotations


def test_merge_is_associative_on_annotations() -> None:
    """It should concatenate annotations in order regardless of grouping."""
    a: Result[None] = Result.success(INFO)
    b: Result[None] = Result.failure(ERROR)
    c: Result[None] = Result.success(WARNING)

    left = a.merge(b).merge(c)
    right = a.merge(b.merge(c))

    assert left.annotations == right.annotations == (INFO, ERROR, WARNING)


def test_failure_is_sticky() -> None:
    """It should stay failed after merging successes."""
    result: Result[None] = Result.failure(ERROR)

    assert result.merge(Result.success(INFO)).is_failure
    assert Result.success(INFO).merge(result).is_failure


def test_merge_adopts_value_only_when_missing() -> None:
    """It should keep its own value and adopt the other's value otherwise."""
    assert Result.of(1).merge(Result.of(2)).value == 1
    assert Result.success(INFO).merge(Result.of(2)).value == 2


def test_merge_all_drops_values() -> None:
    """It should collect the annotations of every result without their values."""
    merged: Result[None] = Result.merge_all([Result.of(1, INFO), Result.failure(ERROR)])

    assert merged.annotations == (INFO, ERROR)
    assert not merged.has_value


def test_severity_accessors() -> None:
    """It should filter top-level annotations by severity."""
    result: Result[None] = Result.success(INFO, WARNING, ERROR, WARNING)

    assert result.errors == (ERROR,)
    assert result.warnings == (WARNING, WARNING)
    assert result.infos == (INFO,)


def test_strict_failure_counts_warnings() -> None:
    """It should count warnings as failures only when strict."""
    result: Result[None] = Result.success(WARNING)

    assert not result.failed()
    assert result.failed(strict=True)
    assert not Result.success(INFO).failed(strict=True)


def test_nested_errors_do_not_fail_the_result() -> None:
    """It should only consider top-level annotations for failure."""
    parent = Annotation.warning("p", "Parent", "Parent.", inner_annotations=(ERROR,))

    assert Result.success(parent).is_success


def test_unwrap() -> None:
    """It should return the value of a success and raise with the first error otherwise."""
    assert Result.of(3).unwrap() == 3
    with pytest.raises(ResultValueError, match="Error: An error."):
        Result.failure(ERROR).unwrap()


def test_then_and_map_short_circuit_failures() -> None:
    """It should only call the continuation for successful results with a value."""
    calls: list[int] = []

    def double(x: int) -> Result[int]:
        calls.append(x)
        return Result.of(x * 2, INFO)

    assert Result.of(2, WARNING).then(double).annotations == (WARNING, INFO)
    assert Result.of(2).then(double).value == 4
    assert not Result.failure(ERROR).then(double).has_value
    assert not Result.success().then(double).has_value
    assert calls == [2, 2]

    assert Result.of(2).map(str).value == "2"
    assert not Result.failure(ERROR).map(str).has_value


def test_with_annotations_and_with_value() -> None:
    """It should append annotations and replace the value."""
    result: Result[int] = Result.of(1).with_annotations(WARNING)

    assert result.annotations == (WARNING,)
    assert result.with_value("x").value == "x"
    assert result.with_value("x").annotations == (WARNING,)
    assert not result.without_value().has_value


def test_offset_rebases_locations() -> None:
    """It should rebase annotation locations, adding the parent to unlocated ones."""
    parent = Location("f", LinePositionSpan.on_line(2, 4, 10))
    located = Annotation.error(
        "x", "T", "M", location=Location(span=LinePositionSpan.of_token(1, 1))
    )

    result = Result.success(located, INFO).offset(parent)

    assert result.annotations[0].locations == (Location("f", LinePositionSpan.on_line(2, 5, 5)),)
    assert result.annotations[1].locations == (parent,)


def test_walk_and_stats_include_nested_annotations() -> None:
    """It should walk annotation trees depth first and count every node."""
    child = WARNING.with_inner(INFO)
    root = ERROR.with_inner(child)
    result: Result[None] = Result.success(root, INFO)

    assert [(depth, a.identifier) for depth, a in result.walk()] == [
        (0, "e"),
        (1, "w"),
        (2, "i"),
        (0, "i"),
    ]
    stats = compute_diagnostic_stats(result.annotations)
    assert stats.to_dict() == {"info": 2, "warning": 1, "error": 1}
    assert stats.total == 4


def test_stock_annotations() -> None:
    """It should build errors for cancellation and captured exceptions."""
    canceled = operation_canceled(Location("https://example.org"))
    assert canceled.identifier == OPERATION_CANCELED
    assert canceled.is_error

    try:
        raise ValueError("bad value")
    except ValueError as e:
        wrapped = exception_annotation(e)
    assert wrapped.identifier == UNEXPECTED_EXCEPTION
    assert wrapped.title == "builtins.ValueError"
    assert wrapped.message == "bad value"
    assert isinstance(wrapped.exception, ValueError)
