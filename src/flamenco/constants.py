# topmark:header:start
#
#   project      : Flamenco
#   file         : constants.py
#   file_relpath : src/flamenco/constants.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco Constants."""

from __future__ import annotations

from importlib.metadata import version as get_version

FLAMENCO_VERSION: str = get_version("flamenco")

# Environment variable consulted by `flamenco.config.logging.resolve_env_log_level`:
LOG_LEVEL_ENV_VAR: str = "FLAMENCO_LOG_LEVEL"

DEFAULT_CHANGELOG_PATH: str = "debian/changelog"

CONFIG_FILE_NAME: str = "flamenco.toml"
PYPROJECT_FILE_NAME: str = "pyproject.toml"
PYPROJECT_TOOL_TABLE: str = "flamenco"

UBUNTU_MADISON_URL: str = "https://ubuntu-archive-team.ubuntu.com/madison.cgi"
DEBIAN_MADISON_URL: str = "https://api.ftp-master.debian.org/madison"

DEFAULT_REQUEST_TIMEOUT: float = 30.0
DEFAULT_ANNOTATION_INDENT: int = 5

VALUE_NOT_SET: str = "<not set>"
