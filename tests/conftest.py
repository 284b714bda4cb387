# topmark:header:start
#
#   project      : Flamenco
#   file         : conftest.py
#   file_relpath : tests/conftest.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Pytest configuration for the Flamenco test suite.

This file sets up global fixtures and customizes the logging configuration for
test runs, ensuring consistent and verbose logging output during testing.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar, cast

import pytest

from flamenco.config import logging

if TYPE_CHECKING:
    from pathlib import Path

F = TypeVar("F", bound=Callable[..., object])

DecoratorType = Callable[[F], F]


def as_typed_mark(mark: Any) -> DecoratorType[Any]:
    """Wrap a pytest mark so static type checkers preserve the function type."""

    def _decorator(func: F) -> F:
        return cast("F", mark(func))

    return _decorator


mark_cli: DecoratorType[Any] = as_typed_mark(pytest.mark.cli)


def hookimpl(*args: Any, **kwargs: Any) -> Callable[[F], F]:
    """Typed wrapper for `pytest.hookimpl`."""
    return as_typed_mark(pytest.hookimpl(*args, **kwargs))


DOTNET_CHANGELOG: str = (
    "dotnet7 (7.0.118-0ubuntu1~24.04.1) noble; urgency=medium\n"
    "\n"
    "  * Initial release for Ubuntu 24.04 LTS (Noble Numbat):\n"
    "    - debian/control: Switch to libicu74.\n"
    "\n"
    " -- Dominik Viererbe <dominik.viererbe@canonical.com>  Mon, 29 Apr 2024 14:42:45 +0300\n"
)


@pytest.fixture(autouse=True)
def silence_flamenco_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure Flamenco's runtime log level is not forced via env during tests.

    This avoids accidental DEBUG/TRACE noise when the developer has exported
    FLAMENCO_LOG_LEVEL in their shell.
    """
    monkeypatch.delenv("FLAMENCO_LOG_LEVEL", raising=False)


@hookimpl(tryfirst=True)
def pytest_configure(config: pytest.Config) -> None:  # pylint: disable=unused-argument
    """Set the logging level to TRACE for all tests."""
    logging.setup_logging(level=logging.TRACE_LEVEL)


@pytest.fixture
def isolation(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run a test in an empty temporary project directory.

    Config discovery walks upward from the CWD, so the directory gets an empty
    ``flamenco.toml`` to stop it from picking up files outside the sandbox.
    """
    cwd: Path = tmp_path / "proj"
    cwd.mkdir()
    (cwd / "flamenco.toml").write_text("", encoding="utf-8")
    monkeypatch.chdir(cwd)
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    return cwd


@pytest.fixture
def dotnet_changelog(isolation: Path) -> Path:
    """Write a one-entry changelog to ``debian/changelog`` in the project directory."""
    path = isolation / "debian" / "changelog"
    path.parent.mkdir()
    path.write_text(DOTNET_CHANGELOG, encoding="utf-8")
    return path
