# topmark:header:start
#
#   project      : Flamenco
#   file         : writer.py
#   file_relpath : src/flamenco/config/writer.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Render annotated Flamenco configuration documents with ``tomlkit``."""

from __future__ import annotations

from typing import TYPE_CHECKING, Final

import tomlkit

from flamenco.config.logging import get_logger
from flamenco.config.model import Config
from flamenco.constants import PYPROJECT_TOOL_TABLE

if TYPE_CHECKING:
    from tomlkit.items import Table

    from flamenco.config.logging import FlamencoLogger

logger: FlamencoLogger = get_logger(__name__)

KEY_COMMENTS: Final[dict[str, str]] = {
    "changelog_path": "Changelog read when no path is given on the command line.",
    "strict": "Treat warnings as failures.",
    "annotation_indent": "Indentation per nesting level of rendered diagnostics.",
    "show_descriptions": "Include long descriptions in rendered diagnostics.",
    "ubuntu_madison_url": "Madison endpoint used for `flamenco status --archive ubuntu`.",
    "debian_madison_url": "Madison endpoint used for `flamenco status --archive debian`.",
    "request_timeout": "HTTP timeout in seconds.",
}


def _fill(container: tomlkit.TOMLDocument | Table, config: Config) -> None:
    for key, value in config.to_toml_dict().items():
        comment = KEY_COMMENTS.get(key)
        if comment:
            container.add(tomlkit.comment(comment))
        container.add(key, value)


def render_config_toml(config: Config | None = None, *, for_pyproject: bool = False) -> str:
    """Render ``config`` (defaults when ``None``) as a commented TOML document.

    Args:
        config (Config | None): Settings to render.
        for_pyproject (bool): Nest the settings under ``[tool.flamenco]``.

    Returns:
        str: TOML document text.
    """
    config = config or Config()
    doc: tomlkit.TOMLDocument = tomlkit.document()
    doc.add(tomlkit.comment("Flamenco configuration"))
    doc.add(tomlkit.nl())

    if for_pyproject:
        tool: Table = tomlkit.table(is_super_table=True)
        section: Table = tomlkit.table()
        _fill(section, config)
        tool.add(PYPROJECT_TOOL_TABLE, section)
        doc.add("tool", tool)
    else:
        _fill(doc, config)

    logger.debug("Rendered config document (for_pyproject=%s)", for_pyproject)
    return tomlkit.dumps(doc)
