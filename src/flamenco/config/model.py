# topmark:header:start
#
#   project      : Flamenco
#   file         : model.py
#   file_relpath : src/flamenco/config/model.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""Flamenco runtime configuration.

Configuration is read from a ``flamenco.toml`` file (top-level table) or from
the ``[tool.flamenco]`` table of a ``pyproject.toml``. Discovery walks upward
from a start directory and picks the nearest directory holding either; when a
directory holds both, ``flamenco.toml`` wins.

Loading never raises for user mistakes. Unknown keys and values of the wrong
type become ``WARNING`` annotations and fall back to defaults; an unreadable or
undecodable file becomes an ``ERROR`` annotation. The returned
[`Result`][flamenco.diagnostic.model.Result] always carries a usable
[`Config`][flamenco.config.model.Config].
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from flamenco.config.io import (
    TomlTable,
    get_bool_value,
    get_float_value,
    get_int_value,
    get_string_value,
    get_table_value,
    load_toml_dict,
    unknown_keys,
)
from flamenco.config.logging import get_logger
from flamenco.constants import (
    CONFIG_FILE_NAME,
    DEBIAN_MADISON_URL,
    DEFAULT_ANNOTATION_INDENT,
    DEFAULT_CHANGELOG_PATH,
    DEFAULT_REQUEST_TIMEOUT,
    PYPROJECT_FILE_NAME,
    PYPROJECT_TOOL_TABLE,
    UBUNTU_MADISON_URL,
)
from flamenco.diagnostic.location import Location
from flamenco.diagnostic.model import Result

if TYPE_CHECKING:
    from flamenco.config.logging import FlamencoLogger

logger: FlamencoLogger = get_logger(__name__)


@dataclass(frozen=True)
class Config:
    """Immutable runtime configuration for Flamenco.

    Attributes:
        changelog_path (str): Changelog read when no path is given on the command line.
        strict (bool): Whether warnings count as failures.
        annotation_indent (int): Columns of indentation per nesting level when
            rendering annotations.
        show_descriptions (bool): Whether rendered annotations include descriptions.
        ubuntu_madison_url (str): Madison endpoint of the Ubuntu archive.
        debian_madison_url (str): Madison endpoint of the Debian archive.
        request_timeout (float): HTTP timeout in seconds.
        config_file (Path | None): File the configuration was read from, if any.
    """

    changelog_path: str = DEFAULT_CHANGELOG_PATH
    strict: bool = False
    annotation_indent: int = DEFAULT_ANNOTATION_INDENT
    show_descriptions: bool = True
    ubuntu_madison_url: str = UBUNTU_MADISON_URL
    debian_madison_url: str = DEBIAN_MADISON_URL
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    config_file: Path | None = None

    def to_toml_dict(self) -> TomlTable:
        """Return the configurable settings as a TOML-serializable dict."""
        data = asdict(self)
        data.pop("config_file")
        return data


CONFIG_KEYS: Final[frozenset[str]] = frozenset(Config().to_toml_dict())


def find_config_file(start: Path | None = None) -> Path | None:
    """Return the nearest config file at or above ``start``.

    A ``pyproject.toml`` only counts when it has a ``[tool.flamenco]`` table.

    Args:
        start (Path | None): Directory (or file) to start from; defaults to the CWD.

    Returns:
        Path | None: The discovered file, or ``None``.
    """
    cur: Path = (start or Path.cwd()).resolve()
    if cur.is_file():
        cur = cur.parent

    while True:
        candidate = cur / CONFIG_FILE_NAME
        if candidate.is_file():
            logger.debug("Discovered config file: %s", candidate)
            return candidate

        candidate = cur / PYPROJECT_FILE_NAME
        if candidate.is_file() and _has_tool_table(candidate):
            logger.debug("Discovered config file: %s", candidate)
            return candidate

        parent = cur.parent
        if parent == cur:
            logger.debug("No config file found above %s", start)
            return None
        cur = parent


def _has_tool_table(pyproject: Path) -> bool:
    loaded = load_toml_dict(pyproject)
    if loaded.is_failure:
        # Discovery is best-effort; the error resurfaces if the file is loaded.
        logger.debug("Ignoring unreadable %s during discovery", pyproject)
        return False
    return PYPROJECT_TOOL_TABLE in get_table_value(loaded.value, "tool")


def config_from_toml_dict(
    data: TomlTable,
    config_file: Path | None = None,
) -> Result[Config]:
    """Build a [`Config`][flamenco.config.model.Config] from a parsed table.

    Args:
        data (TomlTable): The Flamenco table (already extracted from ``[tool.flamenco]``).
        config_file (Path | None): The file ``data`` came from, for annotation locations.

    Returns:
        Result[Config]: The config, with a warning per ignored key or value.
    """
    location = Location(resource=str(config_file)) if config_file else None
    defaults = Config()

    changelog_path = get_string_value(data, "changelog_path", defaults.changelog_path, location)
    strict = get_bool_value(data, "strict", defaults.strict, location)
    indent = get_int_value(
        data, "annotation_indent", defaults.annotation_indent, location, minimum=0
    )
    show_descriptions = get_bool_value(
        data, "show_descriptions", defaults.show_descriptions, location
    )
    ubuntu_url = get_string_value(
        data, "ubuntu_madison_url", defaults.ubuntu_madison_url, location
    )
    debian_url = get_string_value(
        data, "debian_madison_url", defaults.debian_madison_url, location
    )
    timeout = get_float_value(
        data, "request_timeout", defaults.request_timeout, location, positive=True
    )

    config = Config(
        changelog_path=changelog_path.value,
        strict=strict.value,
        annotation_indent=indent.value,
        show_descriptions=show_descriptions.value,
        ubuntu_madison_url=ubuntu_url.value,
        debian_madison_url=debian_url.value,
        request_timeout=timeout.value,
        config_file=config_file,
    )
    parts: list[Result[Any]] = [
        unknown_keys(data, CONFIG_KEYS, location),
        changelog_path,
        strict,
        indent,
        show_descriptions,
        ubuntu_url,
        debian_url,
        timeout,
    ]
    merged: Result[Config] = Result.merge_all(parts)
    return merged.with_value(config)


def load_config(path: Path | None = None) -> Result[Config]:
    """Load the Flamenco configuration.

    Args:
        path (Path | None): Explicit config file. When ``None``, the nearest
            config file above the CWD is used, and defaults apply if there is none.

    Returns:
        Result[Config]: Always carries a config; read or decode failures are
            reported as errors alongside the default config.
    """
    if path is None:
        path = find_config_file()
        if path is None:
            return Result.of(Config())

    logger.info("Loading configuration from %s", path)
    loaded = load_toml_dict(path)
    if loaded.is_failure:
        return loaded.with_value(Config())

    data: TomlTable = loaded.value
    if path.name == PYPROJECT_FILE_NAME:
        data = get_table_value(get_table_value(data, "tool"), PYPROJECT_TOOL_TABLE)

    return config_from_toml_dict(data, config_file=path)
