"""
reqgraph.commands.context - Shared setup for CLI commands.

Loads the effective configuration for a parsed command line, configures
logging from it and opens the backend.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from reqgraph.backend import RequirementsBackend
from reqgraph.config import find_config_file, load_config
from reqgraph.utilities.log import setup_logging

logger = logging.getLogger(__name__)

# Memory store snapshot used by CLI commands when the config names none
CLI_SNAPSHOT = ".reqgraph/graph.json"


def config_path_for(args: argparse.Namespace) -> Path | None:
    """Explicit ``--config`` or the file discovered from the working directory."""
    explicit = getattr(args, "config", None)
    if explicit:
        return Path(explicit)
    return find_config_file(Path.cwd())


def load_settings(args: argparse.Namespace) -> tuple[dict[str, Any], Path | None]:
    """Load configuration and set up logging.

    Returns:
        ``(config, config_path)``; the path is None when only defaults apply.
    """
    path = config_path_for(args)
    config = load_config(path)
    if getattr(args, "verbose", False):
        level = "DEBUG"
    elif getattr(args, "quiet", False):
        level = "WARNING"
    else:
        level = config.get("logging", {}).get("level", "INFO")
    setup_logging(level)
    return config, path


def open_backend(args: argparse.Namespace) -> RequirementsBackend:
    """Build the backend described by the effective configuration.

    Relative paths in the configuration resolve against the directory of
    the config file. A memory store without a snapshot gets
    ``CLI_SNAPSHOT`` there, so each command sees the previous one's writes.
    """
    config, path = load_settings(args)
    base_dir = path.parent if path is not None else Path.cwd()
    store = config.get("store", {})
    if store.get("backend", "memory") == "memory" and not store.get("snapshot"):
        config = {**config, "store": {**store, "snapshot": CLI_SNAPSHOT}}
        logger.info("No store.snapshot configured; using %s", base_dir / CLI_SNAPSHOT)
    return RequirementsBackend.from_config(config, base_dir=base_dir)


def tenant_of(args: argparse.Namespace) -> str | None:
    """Tenant from ``--tenant``; None lets the backend use its default."""
    return getattr(args, "tenant", None)


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


__all__ = [
    "CLI_SNAPSHOT",
    "config_path_for",
    "load_settings",
    "open_backend",
    "print_json",
    "tenant_of",
]
