# topmark:header:start
#
#   project      : Flamenco
#   file         : exit_codes.py
#   file_relpath : src/flamenco/cli/exit_codes.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Exit codes for the Flamenco CLI.

Flamenco aligns with the BSD `sysexits` convention where practical, so that other
tooling can interpret failures consistently. ``FAILURE = 1`` doubles as the
"false" answer of ``flamenco dpkg-version compare``.
"""

from enum import IntEnum


class ExitCode(IntEnum):
    """Standardized exit codes for the Flamenco CLI.

    Attributes:
        SUCCESS: Successful execution; a comparison that holds.
        FAILURE: Generic failure; a comparison that does not hold.
        USAGE_ERROR: Command-line invocation error. Mirrors BSD ``EX_USAGE (64)``.
        DATA_ERROR: Malformed input data (changelog, version, Madison response).
            Mirrors BSD ``EX_DATAERR (65)``.
        FILE_NOT_FOUND: Input path does not exist. Mirrors BSD ``EX_NOINPUT (66)``.
        UNAVAILABLE: A remote service could not be reached or answered with an
            error. Mirrors BSD ``EX_UNAVAILABLE (69)``.
        IO_ERROR: I/O error reading a file. Mirrors BSD ``EX_IOERR (74)``.
        PERMISSION_DENIED: Insufficient permissions. Mirrors BSD ``EX_NOPERM (77)``.
        CONFIG_ERROR: Invalid or unreadable configuration. Mirrors BSD ``EX_CONFIG (78)``.
        UNEXPECTED_ERROR: Unhandled/unknown error (last-resort).
    """

    SUCCESS = 0
    FAILURE = 1

    # sysexits-aligned values for better interoperability
    USAGE_ERROR = 64  # EX_USAGE
    DATA_ERROR = 65  # EX_DATAERR
    FILE_NOT_FOUND = 66  # EX_NOINPUT
    UNAVAILABLE = 69  # EX_UNAVAILABLE
    IO_ERROR = 74  # EX_IOERR
    PERMISSION_DENIED = 77  # EX_NOPERM
    CONFIG_ERROR = 78  # EX_CONFIG

    UNEXPECTED_ERROR = 255
