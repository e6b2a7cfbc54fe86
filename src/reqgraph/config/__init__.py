"""
reqgraph.config - Configuration loading and defaults
"""

from reqgraph.config.defaults import CONFIG_FILENAME, DEFAULT_CONFIG, ENV_PREFIX
from reqgraph.config.loader import (
    _apply_env_overrides,
    _try_parse_env_value,
    find_config_file,
    get_config,
    int_setting,
    load_config,
    merge_configs,
)

__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_CONFIG",
    "ENV_PREFIX",
    "find_config_file",
    "get_config",
    "int_setting",
    "load_config",
    "merge_configs",
]
