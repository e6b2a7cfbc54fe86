"""
reqgraph.commands.project_cmd - Create and list projects.
"""

from __future__ import annotations

import argparse
import sys

from reqgraph.commands.context import open_backend, print_json, tenant_of


def run(args: argparse.Namespace) -> int:
    """Run the project command.

    Subcommands:
    - add: Ensure a project (and its tenant) exists
    - list: List the tenant's projects
    """
    action = getattr(args, "project_action", None)
    if action not in ("add", "list"):
        print("Usage: reqgraph project <add|list>", file=sys.stderr)
        return 1

    backend = open_backend(args)
    try:
        if action == "add":
            project = backend.create_project(tenant_of(args), args.key, args.name)
            if args.json:
                print_json(project.to_dict())
            else:
                print(f"Project {project.tenant}/{project.slug} ({project.name})")
            return 0

        projects = backend.list_projects(tenant_of(args))
        if args.json:
            print_json([p.to_dict() for p in projects])
            return 0
        if not projects:
            print("No projects.")
        for project in projects:
            print(f"{project.slug:<24} {project.requirement_count:>5}  {project.name}")
        return 0
    finally:
        backend.close()
