# topmark:header:start
#
#   project      : Flamenco
#   file         : test_options.py
#   file_relpath : tests/cli/test_options.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Resolution of the shared CLI options (verbosity and color)."""

from __future__ import annotations

import logging

import pytest

from flamenco.cli.errors import FlamencoUsageError
from flamenco.cli.options import ColorMode, resolve_color_mode, resolve_verbosity
from flamenco.config.logging import TRACE_LEVEL


@pytest.mark.parametrize(
    "verbose, quiet, expected",
    [
        (0, 0, logging.WARNING),
        (1, 0, logging.INFO),
        (2, 0, logging.DEBUG),
        (3, 0, TRACE_LEVEL),
        (5, 0, TRACE_LEVEL),
        (0, 1, logging.ERROR),
        (0, 2, logging.ERROR),
    ],
)
def test_resolve_verbosity(verbose: int, quiet: int, expected: int) -> None:
    """It should map -v/-q counts onto logging levels."""
    assert resolve_verbosity(verbose, quiet) == expected


def test_resolve_verbosity_rejects_both_flags() -> None:
    """It should refuse -v combined with -q."""
    with pytest.raises(FlamencoUsageError):
        resolve_verbosity(1, 1)


@pytest.fixture
def clean_color_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    """Remove the color environment variables."""
    monkeypatch.delenv("FORCE_COLOR", raising=False)
    monkeypatch.delenv("NO_COLOR", raising=False)
    return monkeypatch


@pytest.mark.parametrize(
    "mode, isatty, expected",
    [
        (ColorMode.ALWAYS, False, True),
        (ColorMode.NEVER, True, False),
        (ColorMode.AUTO, True, True),
        (ColorMode.AUTO, False, False),
        (None, True, True),
    ],
)
def test_resolve_color_mode(
    clean_color_env: pytest.MonkeyPatch,
    mode: ColorMode | None,
    isatty: bool,
    expected: bool,
) -> None:
    """It should honor explicit modes and fall back to TTY detection."""
    assert resolve_color_mode(cli_mode=mode, output_format=None, stdout_isatty=isatty) is expected


def test_resolve_color_mode_json_is_never_colored(clean_color_env: pytest.MonkeyPatch) -> None:
    """It should disable color for JSON output even when forced."""
    assert (
        resolve_color_mode(cli_mode=ColorMode.ALWAYS, output_format="JSON", stdout_isatty=True)
        is False
    )


@pytest.mark.parametrize(
    "force, no_color, isatty, expected",
    [
        ("1", None, False, True),
        ("0", None, True, True),
        ("0", "1", True, False),
        (None, "", True, False),
    ],
)
def test_resolve_color_mode_environment(
    clean_color_env: pytest.MonkeyPatch,
    force: str | None,
    no_color: str | None,
    isatty: bool,
    expected: bool,
) -> None:
    """It should honor FORCE_COLOR and NO_COLOR in auto mode."""
    if force is not None:
        clean_color_env.setenv("FORCE_COLOR", force)
    if no_color is not None:
        clean_color_env.setenv("NO_COLOR", no_color)

    assert (
        resolve_color_mode(cli_mode=ColorMode.AUTO, output_format=None, stdout_isatty=isatty)
        is expected
    )
