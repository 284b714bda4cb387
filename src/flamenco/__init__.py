# topmark:header:start
#
#   project      : Flamenco
#   file         : __init__.py
#   file_relpath : src/flamenco/__init__.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco package.

Flamenco helps Debian/Ubuntu package maintainers track and compare package
releases across archives. The core is a validated package metadata model
(identifiers, dpkg versions, suites) and a `debian/changelog` reader, with a
small CLI on top.
"""

from __future__ import annotations
