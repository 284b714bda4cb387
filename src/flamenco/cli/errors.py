# topmark:header:start
#
#   project      : Flamenco
#   file         : errors.py
#   file_relpath : src/flamenco/cli/errors.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Exceptions for the Flamenco CLI.

Usage:
    Raise these exceptions in CLI commands to signal errors with standardized
    messages and exit codes.

Styling:
    Exceptions prefer the project console if available (see `show()`); if no console
    is present in the Click context, they fall back to Click's default styling.
"""

from __future__ import annotations

from typing import IO, Any

import click

from flamenco.cli.exit_codes import ExitCode


class FlamencoError(click.ClickException):
    """Base class for all Flamenco CLI errors."""

    exit_code = ExitCode.FAILURE

    def format_message(self) -> str:  # pragma: no cover - trivial
        """Return the plain error message text.

        Notes:
            - Unlike Click's default, this method does not add color.
            - Colorization is applied in `show()` when a project console is present.
        """
        return str(getattr(self, "message", ""))

    def show(self, file: IO[Any] | None = None) -> None:  # pragma: no cover - Click prints errors
        """Display the error using the project console if available.

        Falls back to Click's default error display when no console is present.
        """
        ctx = click.get_current_context(silent=True)
        if ctx is not None and isinstance(getattr(ctx, "obj", None), dict):
            console = ctx.obj.get("console")
            if console is not None:
                console.error(console.styled(self.format_message(), fg="bright_red"))
                return
        super().show(file)


class FlamencoUsageError(FlamencoError):
    """Error for command-line invocation errors (invalid flags/args)."""

    exit_code = ExitCode.USAGE_ERROR


class FlamencoDataError(FlamencoError):
    """Error for malformed input data (changelogs, versions, Madison rows)."""

    exit_code = ExitCode.DATA_ERROR


class FlamencoConfigError(FlamencoError):
    """Error for configuration errors (unreadable/malformed config)."""

    exit_code = ExitCode.CONFIG_ERROR


class FlamencoFileNotFoundError(FlamencoError):
    """Error when an input path does not exist."""

    exit_code = ExitCode.FILE_NOT_FOUND


class FlamencoPermissionDeniedError(FlamencoError):
    """Error for insufficient permissions."""

    exit_code = ExitCode.PERMISSION_DENIED


class FlamencoIOError(FlamencoError):
    """Error for I/O errors reading files."""

    exit_code = ExitCode.IO_ERROR


class FlamencoUnavailableError(FlamencoError):
    """Error for remote services that cannot be reached or fail."""

    exit_code = ExitCode.UNAVAILABLE


class FlamencoUnexpectedError(FlamencoError):
    """Error for unhandled/unknown errors (last-resort)."""

    exit_code = ExitCode.UNEXPECTED_ERROR
