"""
Configuration loader for contrib_stats.

The tool reads an optional JSON configuration file, by default
``~/.contrib_stats/config.json``. Every key is optional; missing keys
take the values in :data:`DEFAULTS`. The loader validates the types of
the keys present and returns a dictionary with all keys filled in.

If an explicitly requested file is missing, or any file is malformed
or holds values of the wrong type, a :class:`ConfigError` is raised.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional


logger = logging.getLogger(__name__)
if not logger.handlers:
    logger.addHandler(logging.NullHandler())


CONFIG_FILE_NAME = "config.json"

DEFAULTS: Dict[str, Any] = {
    "repo_dir": "cloned_repo",
    "command_timeout": 60.0,
    "stat_timeout": 5.0,
    "diff_timeout": 10.0,
    "max_body_lines": 200,
    "excluded_segment": "node_modules",
    "max_workers": 1,
}


class ConfigError(Exception):
    """Raised when the configuration file is missing or invalid."""

    pass


def _get_config_directory() -> Path:
    """Return the per-user configuration directory, ``~/.contrib_stats/``."""
    return Path.home() / ".contrib_stats"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _validate(data: Dict[str, Any]) -> None:
    if "repo_dir" in data and not isinstance(data["repo_dir"], str):
        raise ConfigError("'repo_dir' must be a string")
    for key in ("command_timeout", "stat_timeout", "diff_timeout"):
        if key in data and not (_is_number(data[key]) and data[key] > 0):
            raise ConfigError(f"'{key}' must be a positive number")
    if "max_body_lines" in data and not (_is_int(data["max_body_lines"]) and data["max_body_lines"] > 0):
        raise ConfigError("'max_body_lines' must be a positive integer")
    if "max_workers" in data and not (_is_int(data["max_workers"]) and data["max_workers"] >= 1):
        raise ConfigError("'max_workers' must be an integer >= 1")
    if "excluded_segment" in data:
        segment = data["excluded_segment"]
        if not isinstance(segment, str) or not segment or "/" in segment:
            raise ConfigError("'excluded_segment' must be a single non-empty path component")


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load the configuration and return it merged over the defaults.

    Args:
        config_path: Explicit path to a configuration file. When omitted,
                     ``~/.contrib_stats/config.json`` is used if it exists.

    Returns:
        A dictionary with the keys of :data:`DEFAULTS`:
        - repo_dir (str): Where the working copy is cloned to
        - command_timeout (float): Timeout for clone and log, in seconds
        - stat_timeout (float): Timeout for stat-only ``git show`` calls
        - diff_timeout (float): Timeout for full diff ``git show`` calls
        - max_body_lines (int): Patch lines retained per commit
        - excluded_segment (str): Dependency directory left out of diffs
        - max_workers (int): Parallel per-commit fetches (1 = sequential)

    Raises:
        ConfigError: If the configuration file is missing (when given
                     explicitly), malformed, or invalid.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = _get_config_directory() / CONFIG_FILE_NAME

    if not config_path.exists():
        if explicit:
            logger.error("Configuration file '%s' does not exist", config_path)
            raise ConfigError(f"Missing configuration file: {config_path}")
        logger.debug("No configuration file at %s, using defaults", config_path)
        return dict(DEFAULTS)

    try:
        content = config_path.read_text(encoding="utf-8")
        data = json.loads(content)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Failed to read or parse configuration file: %s", exc)
        raise ConfigError(f"Invalid JSON in {config_path.name}: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"{config_path.name} must contain a JSON object")

    unknown = sorted(set(data) - set(DEFAULTS))
    if unknown:
        logger.warning("Ignoring unknown configuration keys: %s", ", ".join(unknown))

    _validate(data)

    config = dict(DEFAULTS)
    config.update({key: value for key, value in data.items() if key in DEFAULTS})
    logger.debug("Loaded configuration from: %s", config_path)
    logger.debug("Configuration data: %s", config)
    return config
