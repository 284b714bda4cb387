# topmark:header:start
#
#   project      : Flamenco
#   file         : __init__.py
#   file_relpath : src/flamenco/dpkg/__init__.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Debian package metadata model.

Validated identifiers, dpkg versions, suites and archive sections, and the
``debian/changelog`` reader. Parsers return a
[`Result`][flamenco.diagnostic.model.Result] instead of raising.
"""

from __future__ import annotations

from flamenco.dpkg.archive import ArchiveSection, PackageReleaseState, ReleaseStateQuery
from flamenco.dpkg.changelog import ChangelogEntry, ChangelogReader, Maintainer, read_first_entry
from flamenco.dpkg.identifiers import Architecture, Component, PackageName, Pocket, Series
from flamenco.dpkg.suite import Suite
from flamenco.dpkg.version import (
    Version,
    compare_version_part,
    compare_versions,
    satisfies,
    sort_versions,
    version_sort_key,
)

__all__ = [
    "Architecture",
    "ArchiveSection",
    "ChangelogEntry",
    "ChangelogReader",
    "Component",
    "Maintainer",
    "PackageName",
    "PackageReleaseState",
    "Pocket",
    "ReleaseStateQuery",
    "Series",
    "Suite",
    "Version",
    "compare_version_part",
    "compare_versions",
    "read_first_entry",
    "satisfies",
    "sort_versions",
    "version_sort_key",
]
