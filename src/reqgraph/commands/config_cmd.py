"""
reqgraph.commands.config_cmd - Inspect the effective configuration.
"""

from __future__ import annotations

import argparse
import copy
import sys

from reqgraph.commands.context import config_path_for, load_settings, print_json

_SECRET_KEYS = {"password"}


def _masked(config: dict) -> dict:
    result = copy.deepcopy(config)
    for section in result.values():
        if not isinstance(section, dict):
            continue
        for key in section:
            if key in _SECRET_KEYS and section[key]:
                section[key] = "********"
    return result


def run(args: argparse.Namespace) -> int:
    """Run the config command.

    Subcommands:
    - show: Print the effective configuration as JSON
    - path: Print the config file in use
    """
    action = getattr(args, "config_action", None)

    if action == "show":
        config, _ = load_settings(args)
        print_json(_masked(config))
        return 0
    elif action == "path":
        path = config_path_for(args)
        if path is None:
            print("(no config file, using defaults)")
        else:
            print(path)
        return 0
    else:
        print("Usage: reqgraph config <show|path>", file=sys.stderr)
        return 1
