# topmark:header:start
#
#   project      : Flamenco
#   file         : noxfile.py
#   file_relpath : noxfile.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco project automation via Nox.

Sessions:
  - `qa`: Per-Python session that runs pytest.
  - `property_test`: Only the hypothesis property tests.
  - `lint`: Ruff lint on the repository.
  - `format_check`: Verify formatting with ruff.

Common invocations:
  - `nox -s qa`
  - `nox -s lint`
"""

from __future__ import annotations

import nox

PYTHONS: list[str] = ["3.10", "3.11", "3.12", "3.13"]

nox.options.sessions = ["lint", "qa"]


@nox.session(python=PYTHONS)
def qa(session: nox.Session) -> None:
    """Run the test suite (per Python version)."""
    session.install("-e", ".[test]")
    session.run("pytest", "-q", "tests", *session.posargs)


@nox.session
def property_test(session: nox.Session) -> None:
    """Run only the hypothesis property tests."""
    session.install("-e", ".[test]")
    session.run(
        "pytest",
        "-q",
        "tests",
        "-m",
        "hypothesis_slow",
        *session.posargs,
    )


@nox.session
def lint(session: nox.Session) -> None:
    """Static analysis."""
    session.install("ruff")
    session.run("ruff", "check", ".")


@nox.session
def format_check(session: nox.Session) -> None:
    """Verify formatting."""
    session.install("ruff")
    session.run("ruff", "format", "--check", ".")
