# topmark:header:start
#
#   project      : Flamenco
#   file         : archive.py
#   file_relpath : src/flamenco/dpkg/archive.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Archive sections and package release states."""

from __future__ import annotations

from dataclasses import dataclass

from flamenco.dpkg.identifiers import Architecture, Component, PackageName
from flamenco.dpkg.suite import Suite
from flamenco.dpkg.version import Version


@dataclass(frozen=True, order=True)
class ArchiveSection:
    """A location within an archive where a release can reside.

    Attributes:
        archive_name (str): Archive name, e.g. ``"ubuntu"`` or ``"debian"``.
        component (Component): Archive component.
        suite (Suite): Series and pocket.
    """

    archive_name: str
    component: Component
    suite: Suite

    def __str__(self) -> str:
        return f"{self.archive_name}/{self.suite}/{self.component}"


@dataclass(frozen=True)
class PackageReleaseState:
    """A package version published for one architecture in one archive section.

    Attributes:
        package (PackageName): Source or binary package name.
        version (Version): Published version.
        architecture (Architecture): ``source`` for source packages.
        archive_section (ArchiveSection): Where the package is published.
        is_pending_or_proposed (bool): Whether the release is not final yet
            (upload queue, proposed pocket).
    """

    package: PackageName
    version: Version
    architecture: Architecture
    archive_section: ArchiveSection
    is_pending_or_proposed: bool = False

    @property
    def is_source_package(self) -> bool:
        """Return True if this state describes a source package."""
        return self.architecture.is_source

    @property
    def is_binary_package(self) -> bool:
        """Return True if this state describes a binary package."""
        return not self.architecture.is_source


@dataclass(frozen=True)
class ReleaseStateQuery:
    """Filter for release state lookups; empty tuples mean "no filter".

    Attributes:
        package_names (tuple[PackageName, ...]): Packages to look up.
        architectures (tuple[Architecture, ...]): Architectures to include.
        components (tuple[Component, ...]): Components to include.
        suites (tuple[Suite, ...]): Suites to include.
        include_binaries (bool): Also report binaries built from the named source packages.
    """

    package_names: tuple[PackageName, ...] = ()
    architectures: tuple[Architecture, ...] = (Architecture.SOURCE,)
    components: tuple[Component, ...] = ()
    suites: tuple[Suite, ...] = ()
    include_binaries: bool = False

