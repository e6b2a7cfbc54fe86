"""
reqgraph.commands.doc_cmd - Manage documents.

Renaming a document (new name or short code) rewrites the refs of every
requirement it contains.
"""

from __future__ import annotations

import argparse
import sys

from reqgraph.commands.context import open_backend, print_json, tenant_of
from reqgraph.requirements.prefix import document_code


def _code(doc) -> str:
    return document_code({"slug": doc.slug, "shortCode": doc.short_code})


def run(args: argparse.Namespace) -> int:
    """Run the doc command.

    Subcommands:
    - add: Create a document
    - list: List live documents with requirement counts
    - rename: Change name and/or short code, cascading to refs
    """
    action = getattr(args, "doc_action", None)
    if action not in ("add", "list", "rename"):
        print("Usage: reqgraph doc <add|list|rename>", file=sys.stderr)
        return 1

    backend = open_backend(args)
    try:
        tenant = tenant_of(args)
        if action == "add":
            doc = backend.create_document(
                tenant,
                args.project,
                args.name,
                slug=args.slug,
                short_code=args.short_code,
                description=args.description,
            )
            if args.json:
                print_json(doc.to_dict())
            else:
                print(f"Created document {doc.slug} (code {_code(doc)})")
            return 0

        if action == "rename":
            if args.short_code is None and args.name is None:
                print("Error: give --short-code and/or --name", file=sys.stderr)
                return 1
            doc = backend.rename_document(
                tenant, args.project, args.slug, short_code=args.short_code, name=args.name
            )
            if args.json:
                print_json(doc.to_dict())
            else:
                print(f"Renamed document {doc.slug} (code {_code(doc)})")
            return 0

        docs = backend.list_documents(tenant, args.project)
        if args.json:
            print_json([d.to_dict() for d in docs])
            return 0
        if not docs:
            print("No documents.")
        for doc in docs:
            code = _code(doc)
            print(f"{doc.slug:<24} {code:<8} {doc.requirement_count:>5}  {doc.name}")
        return 0
    finally:
        backend.close()
