"""
reqgraph.config.loader - Find, parse and merge configuration.

Precedence, lowest first: ``DEFAULT_CONFIG``, the ``.reqgraph.toml``
file, ``REQGRAPH_<SECTION>_<KEY>`` environment variables.
"""

from __future__ import annotations

import copy
import json
import os
from pathlib import Path
from typing import Any

import tomlkit
from tomlkit.exceptions import TOMLKitError

from reqgraph.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG, ENV_PREFIX
from reqgraph.errors import ValidationError


def find_config_file(start: Path) -> Path | None:
    """Walk up from ``start`` looking for ``.reqgraph.toml``.

    Args:
        start: Directory to start searching from.

    Returns:
        Path to the config file, or None if not found.
    """
    current = Path(start).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
        if current.parent == current:
            return None
        current = current.parent


def merge_configs(defaults: dict[str, Any], user: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``user`` over ``defaults`` without mutating either."""
    merged = copy.deepcopy(defaults)
    for key, value in user.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = merge_configs(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _try_parse_env_value(value: str) -> Any:
    """Parse an environment value into a typed value where it looks like one.

    JSON arrays and objects are decoded, ``true``/``false`` become booleans
    (any case), everything else (including malformed JSON) is returned as
    the original string.
    """
    stripped = value.strip()
    if stripped.startswith(("[", "{")):
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            return value
    lowered = stripped.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return value


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    """Apply ``REQGRAPH_<SECTION>_<KEY>`` environment variables.

    ``REQGRAPH_CACHE_TTL_REQUIREMENTS=60`` sets ``config["cache"]
    ["ttl_requirements"]``. Sections are created when missing.
    """
    for name, raw in os.environ.items():
        if not name.startswith(ENV_PREFIX):
            continue
        section, _, key = name[len(ENV_PREFIX) :].lower().partition("_")
        if not section or not key:
            continue
        target = config.setdefault(section, {})
        if isinstance(target, dict):
            target[key] = _try_parse_env_value(raw)
    return config


def parse_config_text(text: str, source: str = "<string>") -> dict[str, Any]:
    """Parse TOML text into plain Python containers.

    Raises:
        ValidationError: If the text is not valid TOML.
    """
    try:
        return tomlkit.parse(text).unwrap()
    except TOMLKitError as e:
        raise ValidationError(f"Invalid configuration in {source}: {e}") from e


def load_config(config_path: Path | None = None, apply_env: bool = True) -> dict[str, Any]:
    """Load configuration, merged over the defaults.

    Args:
        config_path: TOML file to read; None uses only the defaults.
        apply_env: Apply environment overrides after merging.

    Returns:
        The effective configuration.
    """
    user: dict[str, Any] = {}
    if config_path is not None:
        path = Path(config_path)
        user = parse_config_text(path.read_text(encoding="utf-8"), str(path))
    config = merge_configs(DEFAULT_CONFIG, user)
    if apply_env:
        config = _apply_env_overrides(config)
    return config


def get_config(config_path: Path | None = None, start: Path | None = None) -> dict[str, Any]:
    """Load the explicit config file, or the one found from ``start``."""
    path = config_path or find_config_file(start or Path.cwd())
    return load_config(path)


def int_setting(config: dict[str, Any], section: str, key: str, default: int = 0) -> int:
    """Read an integer setting that may arrive as a string from the environment.

    Raises:
        ValidationError: If the value is not an integer.
    """
    value = config.get(section, {}).get(key, default)
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{section}.{key} must be an integer, got {value!r}") from e


__all__ = [
    "find_config_file",
    "get_config",
    "int_setting",
    "load_config",
    "merge_configs",
    "parse_config_text",
]
