"""
reqgraph.commands.section_cmd - Manage document sections.
"""

from __future__ import annotations

import argparse
import sys

from reqgraph.commands.context import open_backend, print_json, tenant_of


def run(args: argparse.Namespace) -> int:
    """Run the section command.

    Subcommands:
    - add: Add a section to a document
    - list: List a document's sections in order
    - rename: Change name and/or short code, cascading to refs
    """
    action = getattr(args, "section_action", None)
    if action not in ("add", "list", "rename"):
        print("Usage: reqgraph section <add|list|rename>", file=sys.stderr)
        return 1
    if action == "rename" and args.short_code is None and args.name is None:
        print("Error: give --short-code and/or --name", file=sys.stderr)
        return 1

    backend = open_backend(args)
    try:
        if action == "add":
            section = backend.create_section(
                tenant_of(args),
                args.project,
                args.document,
                args.name,
                args.order,
                short_code=args.short_code,
                description=args.description,
            )
        elif action == "rename":
            section = backend.rename_section(
                args.section_id, short_code=args.short_code, name=args.name
            )
        else:
            sections = backend.list_sections(tenant_of(args), args.project, args.document)
            if args.json:
                print_json([s.to_dict() for s in sections])
                return 0
            if not sections:
                print("No sections.")
            for s in sections:
                print(f"{s.order:>3}  {s.id:<26} {s.short_code or '-':<8} {s.name}")
            return 0

        if args.json:
            print_json(section.to_dict())
        else:
            print(f"{section.id}  {section.name}")
        return 0
    finally:
        backend.close()
