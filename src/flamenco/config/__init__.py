# topmark:header:start
#
#   project      : Flamenco
#   file         : __init__.py
#   file_relpath : src/flamenco/config/__init__.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Configuration and logging for Flamenco.

Submodules:
    * `flamenco.config.logging`: TRACE-capable logging setup.
    * `flamenco.config.io`: typed helpers over parsed TOML tables.
    * `flamenco.config.model`: the immutable `Config` and its loader.
    * `flamenco.config.writer`: default configuration document rendering.

Import from the submodules directly; this package does not re-export them so
that `flamenco.config.logging` stays importable from every layer without cycles.
"""

from __future__ import annotations
