# topmark:header:start
#
#   project      : Flamenco
#   file         : render.py
#   file_relpath : src/flamenco/diagnostic/render.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Human-readable rendering of annotation trees.

Each annotation renders as a block::

    Error malformed-version: Malformed version string
      The epoch 'a' must consist of decimal digits only.
       at 'debian/changelog' from line 1 character 10 to line 1 character 12

Nested annotations follow their parent, indented by ``indent`` columns per
level of depth. Colors come from
[`AnnotationSeverity.color`][flamenco.diagnostic.model.AnnotationSeverity.color].
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flamenco.constants import DEFAULT_ANNOTATION_INDENT
from flamenco.diagnostic.model import Annotation, AnnotationSeverity, Result

if TYPE_CHECKING:
    from collections.abc import Iterable


def render_annotation(
    annotation: Annotation,
    *,
    depth: int = 0,
    indent: int = DEFAULT_ANNOTATION_INDENT,
    show_descriptions: bool = True,
) -> list[str]:
    """Render a single annotation node (children excluded) into plain lines."""
    pad = " " * (indent * depth)
    lines: list[str] = [
        f"{pad}{annotation.severity.label} {annotation.identifier}: {annotation.title}",
        f"{pad}  {annotation.message}",
    ]
    lines.extend(f"{pad}   at {location}" for location in annotation.locations)

    if show_descriptions and annotation.description is not None:
        lines.append("")
        lines.append(f"{pad}  {annotation.description}")

    exc: BaseException | None = annotation.exception
    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        exc_type = type(exc)
        lines.append("")
        lines.append(f"{pad}  {exc_type.__module__}.{exc_type.__qualname__}: {exc}")
        exc = exc.__cause__ or exc.__context__

    return lines


def render_annotations(
    source: Result[object] | Iterable[Annotation],
    *,
    indent: int = DEFAULT_ANNOTATION_INDENT,
    color: bool = True,
    show_descriptions: bool = True,
) -> list[str]:
    """Render every annotation tree of ``source`` into display lines.

    Args:
        source (Result[object] | Iterable[Annotation]): A result or bare annotations.
        indent (int): Columns of indentation per nesting level.
        color (bool): Whether to colorize lines by severity.
        show_descriptions (bool): Whether to include annotation descriptions.

    Returns:
        list[str]: Rendered lines, children after their parent.
    """
    annotations = source.annotations if isinstance(source, Result) else tuple(source)
    out: list[str] = []
    for annotation in annotations:
        for depth, node in annotation.walk():
            block = render_annotation(
                node,
                depth=depth,
                indent=indent,
                show_descriptions=show_descriptions,
            )
            out.extend(_paint(line, node.severity) if color and line else line for line in block)
    return out


def _paint(line: str, severity: AnnotationSeverity) -> str:
    return severity.color(line)
