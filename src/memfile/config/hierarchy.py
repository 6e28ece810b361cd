"""Configuration hierarchy — default entry options from files and environment.

Each source overrides the ones before it: package defaults, the user file
(~/.memfile/config.yaml), the nearest memfile.yaml at or above the working
directory, MEMFILE_* variables, then keyword overrides that are not None.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from memfile.config.defaults import get_defaults

logger = logging.getLogger(__name__)

_USER_CONFIG = Path(".memfile") / "config.yaml"
_PROJECT_CONFIG_NAME = "memfile.yaml"
_ENV_PREFIX = "MEMFILE_"

_ENV_KEYS = (
    "content_type",
    "encoding",
    "on_change",
    "on_change_interval_ms",
    "update_interval_ms",
    "expire_interval_ms",
    "log_level",
)
_INTERVAL_KEYS = frozenset({"on_change_interval_ms", "update_interval_ms", "expire_interval_ms"})
_TRUTHY = frozenset({"1", "true", "yes", "on"})


def load_config_hierarchy(**runtime_overrides: Any) -> dict[str, Any]:
    """Return default options with every configured source applied."""
    config = get_defaults()
    for source, layer in _layers():
        logger.debug("Applying %d option(s) from %s", len(layer), source)
        config.update(layer)
    config.update({k: v for k, v in runtime_overrides.items() if v is not None})
    return config


def config_files() -> list[Path]:
    """Config files that exist right now, lowest priority first."""
    candidates = [Path.home() / _USER_CONFIG, _find_project_config()]
    return [path for path in candidates if path is not None and path.is_file()]


def _layers() -> Iterator[tuple[str, dict[str, Any]]]:
    for path in config_files():
        data = _load_yaml_config(path)
        if data:
            yield str(path), data
    env = _load_env_vars()
    if env:
        yield "environment", env


def _load_yaml_config(path: Path) -> dict[str, Any] | None:
    try:
        text = path.read_text()
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning("Failed to read config %s: %s", path, e)
        return None

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        logger.warning("Failed to parse config %s: %s", path, e)
        return None
    if data is None:
        return None
    if not isinstance(data, dict):
        logger.warning("Config file %s is not a mapping, ignoring", path)
        return None
    return data


def _find_project_config() -> Path | None:
    cwd = Path.cwd()
    for directory in (cwd, *cwd.parents):
        candidate = directory / _PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def _load_env_vars() -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key in _ENV_KEYS:
        value = os.environ.get(_ENV_PREFIX + key.upper())
        if value is not None:
            result[key] = _coerce_env_value(key, value)
    return result


def _coerce_env_value(key: str, value: str) -> Any:
    """Turn a MEMFILE_* string into the option's type.

    An empty interval disables the policy. A value that is not a number is
    returned unchanged so option validation reports it.
    """
    if key == "on_change":
        return value.strip().lower() in _TRUTHY
    if key not in _INTERVAL_KEYS:
        return value
    if not value.strip():
        return None
    try:
        return float(value)
    except ValueError:
        logger.warning("%s%s=%r is not a number", _ENV_PREFIX, key.upper(), value)
        return value
