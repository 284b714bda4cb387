# topmark:header:start
#
#   project      : Flamenco
#   file         : __main__.py
#   file_relpath : src/flamenco/__main__.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Module entry point for running Flamenco via ``python -m flamenco``.

Delegates to :func:`flamenco.cli.main.cli`, the same entry point used by the
``flamenco`` console script.

Examples:
    Show the newest entry of a changelog::

        python -m flamenco changelog --first debian/changelog
"""

from __future__ import annotations

from flamenco.cli.main import cli

if __name__ == "__main__":
    cli()
