# topmark:header:start
#
#   project      : Flamenco
#   file         : io.py
#   file_relpath : src/flamenco/config/io.py
#   license      : GPL-3.0
#   copyright    : (c) 2024 Canonical Ltd.
#
# topmark:header:end

"""TOML I/O helpers for Flamenco configuration.

Reading is done with ``toml`` and returns plain ``dict`` structures. The
typed getters below extract values from such tables and report values of the
wrong shape as ``WARNING`` annotations instead of raising, so that a mistake in
a config file never prevents a command from running with defaults.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, cast

import toml

from flamenco.config.logging import get_logger
from flamenco.diagnostic.location import Location
from flamenco.diagnostic.model import Annotation, Result

if TYPE_CHECKING:
    from pathlib import Path

    from flamenco.config.logging import FlamencoLogger

logger: FlamencoLogger = get_logger(__name__)

TomlTable = dict[str, Any]

CONFIG_READ_FAILED = "config-read-failed"
CONFIG_DECODE_FAILED = "config-decode-failed"
INVALID_CONFIG_VALUE = "invalid-config-value"
UNKNOWN_CONFIG_KEY = "unknown-config-key"


def load_toml_dict(path: Path) -> Result[TomlTable]:
    """Load and parse a TOML file from the filesystem.

    Args:
        path (Path): Path to a TOML document (``flamenco.toml`` or ``pyproject.toml``).

    Returns:
        Result[TomlTable]: The parsed table, or a failure when the file cannot be
            read or decoded.
    """
    location = Location(resource=str(path))
    try:
        with path.open(encoding="utf-8") as stream:
            data: Any = toml.load(stream)
    except OSError as e:
        logger.error("Error loading TOML from %s: %s", path, e)
        return Result.failure(
            Annotation.error(
                CONFIG_READ_FAILED,
                "Cannot read configuration file",
                f"Error loading TOML from '{path}': {e}",
                location=location,
                exception=e,
            )
        )
    except toml.TomlDecodeError as e:
        logger.error("Error decoding TOML from %s: %s", path, e)
        return Result.failure(
            Annotation.error(
                CONFIG_DECODE_FAILED,
                "Invalid configuration file",
                f"Error decoding TOML from '{path}': {e}",
                location=location,
                exception=e,
            )
        )
    logger.debug("Loaded TOML from %s", path)
    return Result.of(cast("TomlTable", data) if isinstance(data, dict) else {})


def get_table_value(table: TomlTable, key: str) -> TomlTable:
    """Extract a sub-table from a TOML table, or an empty dict when absent."""
    value: Any | None = table.get(key)
    if isinstance(value, dict):
        return cast("TomlTable", value)
    if value is not None:
        logger.debug("Expected table for key %s, got %r; using empty table", key, value)
    return {}


def _invalid_value(key: str, expected: str, value: Any, location: Location | None) -> Annotation:
    logger.warning("Ignoring config key %s: expected %s, got %r", key, expected, value)
    return Annotation.warning(
        INVALID_CONFIG_VALUE,
        "Invalid configuration value",
        f"The value {value!r} of '{key}' is not {expected}; the default is used.",
        location=location,
        metadata={"key": key, "value": value},
    )


def get_string_value(
    table: TomlTable,
    key: str,
    default: str,
    location: Location | None = None,
) -> Result[str]:
    """Extract a string value from a TOML table.

    Args:
        table (TomlTable): Table to query.
        key (str): Key to extract.
        default (str): Value used when the key is missing or not a string.
        location (Location | None): Location of the table, for annotations.

    Returns:
        Result[str]: The value, with a warning when a non-string was ignored.
    """
    value: Any | None = table.get(key)
    if value is None:
        return Result.of(default)
    if isinstance(value, str):
        return Result.of(value)
    return Result.of(default, _invalid_value(key, "a string", value, location))


def get_bool_value(
    table: TomlTable,
    key: str,
    default: bool,
    location: Location | None = None,
) -> Result[bool]:
    """Extract a boolean value from a TOML table; see `get_string_value`."""
    value: Any | None = table.get(key)
    if value is None:
        return Result.of(default)
    if isinstance(value, bool):
        return Result.of(value)
    return Result.of(default, _invalid_value(key, "a boolean", value, location))


def get_int_value(
    table: TomlTable,
    key: str,
    default: int,
    location: Location | None = None,
    *,
    minimum: int | None = None,
) -> Result[int]:
    """Extract an integer value from a TOML table.

    Booleans are rejected even though ``bool`` subclasses ``int``.
    """
    value: Any | None = table.get(key)
    if value is None:
        return Result.of(default)
    if isinstance(value, bool) or not isinstance(value, int):
        return Result.of(default, _invalid_value(key, "an integer", value, location))
    if minimum is not None and value < minimum:
        return Result.of(
            default, _invalid_value(key, f"an integer >= {minimum}", value, location)
        )
    return Result.of(value)


def get_float_value(
    table: TomlTable,
    key: str,
    default: float,
    location: Location | None = None,
    *,
    positive: bool = False,
) -> Result[float]:
    """Extract a number from a TOML table, coercing integers to ``float``."""
    value: Any | None = table.get(key)
    if value is None:
        return Result.of(default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return Result.of(default, _invalid_value(key, "a number", value, location))
    if positive and value <= 0:
        return Result.of(default, _invalid_value(key, "a positive number", value, location))
    return Result.of(float(value))


def unknown_keys(
    table: TomlTable,
    known: frozenset[str],
    location: Location | None = None,
) -> Result[None]:
    """Return a warning for each key of ``table`` not in ``known``."""
    annotations: list[Annotation] = []
    for key in table:
        if key in known:
            continue
        logger.warning("Unknown config key %s", key)
        annotations.append(
            Annotation.warning(
                UNKNOWN_CONFIG_KEY,
                "Unknown configuration key",
                f"The configuration key '{key}' is not recognized and is ignored.",
                location=location,
                metadata={"key": key},
            )
        )
    return Result.success(*annotations)
