# topmark:header:start
#
#   project      : Flamenco
#   file         : __init__.py
#   file_relpath : src/flamenco/cli/commands/__init__.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco CLI commands."""
