# topmark:header:start
#
#   project      : Flamenco
#   file         : conftest.py
#   file_relpath : tests/cli/conftest.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""CLI test helpers for running Flamenco through Click's test runner."""

from __future__ import annotations

import os
from typing import IO, TYPE_CHECKING, Any, Sequence

from click.testing import CliRunner, Result

from flamenco.cli.exit_codes import ExitCode
from flamenco.cli.main import cli

if TYPE_CHECKING:
    from pathlib import Path


def run_cli(
    argv: str | Sequence[str] | None,
    *,
    input_text: str | bytes | IO[Any] | None = None,
) -> Result:
    """Invoke the CLI in the current working directory.

    Args:
        argv (str | Sequence[str] | None): CLI argument vector, e.g. ``["version"]``.
        input_text (str | bytes | IO[Any] | None): Optional standard input.

    Returns:
        Result: The `click.testing.Result` of the invocation.
    """
    runner = CliRunner()
    return runner.invoke(cli, argv, input=input_text, obj={})


def run_cli_in(
    tmp_path: Path,
    argv: str | Sequence[str] | None,
    *,
    input_text: str | bytes | IO[Any] | None = None,
) -> Result:
    """Invoke the CLI with ``tmp_path`` as the working directory.

    Relative paths (including the configured ``debian/changelog``) resolve
    against ``tmp_path``.
    """
    runner = CliRunner()
    cwd: str = os.getcwd()
    try:
        os.chdir(tmp_path)
        return runner.invoke(cli, argv, input=input_text, obj={})
    finally:
        os.chdir(cwd)


def assert_exit(result: Result, code: ExitCode) -> None:
    """Assert ``result`` ended with ``code``, showing the output otherwise."""
    assert result.exit_code == code, (
        f"expected exit code {code!r}, got {result.exit_code}\n"
        f"stdout:\n{result.stdout}\nstderr:\n{result.stderr}\nexception: {result.exception!r}"
    )


def assert_SUCCESS(result: Result) -> None:  # noqa: N802
    """Assert that the command succeeded."""
    assert_exit(result, ExitCode.SUCCESS)
