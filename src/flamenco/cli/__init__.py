# topmark:header:start
#
#   project      : Flamenco
#   file         : __init__.py
#   file_relpath : src/flamenco/cli/__init__.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco CLI package.

This package groups all Click command definitions and supporting utilities
for the Flamenco command-line interface.

Typical usage:
    The console script entry point is defined in ``pyproject.toml`` as::

        [project.scripts]
        flamenco = "flamenco.cli.main:cli"

All subcommands live in [`flamenco.cli.commands`][].
"""

from __future__ import annotations

__all__: list[str] = []
