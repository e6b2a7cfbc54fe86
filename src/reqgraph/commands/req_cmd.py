"""
reqgraph.commands.req_cmd - Create, inspect and edit requirements.
"""

from __future__ import annotations

import argparse
import sys

from reqgraph.backend import RequirementsBackend
from reqgraph.commands.context import open_backend, print_json, tenant_of
from reqgraph.errors import NotFoundError
from reqgraph.models import (
    RequirementInput,
    RequirementRecord,
    RequirementScope,
    RequirementUpdate,
)

_ACTIONS = ("add", "show", "list", "edit", "delete", "duplicates")


def run(args: argparse.Namespace) -> int:
    """Run the req command.

    Subcommands:
    - add: Create a requirement with a freshly allocated ref
    - show: Show one requirement by ref
    - list: List a project's (or document's) requirements by ref
    - edit: Partially update a requirement by ref
    - delete: Soft-delete a requirement by ref
    - duplicates: Report (and with --fix repair) duplicate refs
    """
    action = getattr(args, "req_action", None)
    if action not in _ACTIONS:
        print(f"Usage: reqgraph req <{'|'.join(_ACTIONS)}>", file=sys.stderr)
        return 1

    backend = open_backend(args)
    try:
        handler = {
            "add": _add,
            "show": _show,
            "list": _list,
            "edit": _edit,
            "delete": _delete,
            "duplicates": _duplicates,
        }[action]
        return handler(backend, args)
    finally:
        backend.close()


def _print_record(record: RequirementRecord, args: argparse.Namespace) -> None:
    if args.json:
        print_json(record.to_dict())
        return
    status = " [deleted]" if record.deleted else ""
    print(f"{record.ref}: {record.display_title}{status}")
    print(f"  id:   {record.id}")
    print(f"  path: {record.path}")
    if record.pattern or record.verification:
        print(f"  pattern: {record.pattern or '-'}  verification: {record.verification or '-'}")
    if record.tags:
        print(f"  tags: {', '.join(record.tags)}")
    print()
    print(record.text)


def _resolve(backend: RequirementsBackend, args: argparse.Namespace) -> RequirementRecord:
    record = backend.get_requirement(tenant_of(args), args.project, args.ref)
    if record is None:
        raise NotFoundError(f"Requirement '{args.ref}' not found")
    return record


def _add(backend: RequirementsBackend, args: argparse.Namespace) -> int:
    scope = RequirementScope(
        tenant=tenant_of(args) or backend.default_tenant,
        project=args.project,
        document=args.document,
        section=args.section,
    )
    fields = RequirementInput(
        text=args.text,
        title=args.title,
        pattern=args.pattern,
        verification=args.verification,
        tags=list(args.tag or []),
    )
    record = backend.create_requirement(scope, fields)
    if args.json:
        print_json(record.to_dict())
    else:
        print(f"Created {record.ref} ({record.id})")
    return 0


def _show(backend: RequirementsBackend, args: argparse.Namespace) -> int:
    _print_record(_resolve(backend, args), args)
    return 0


def _list(backend: RequirementsBackend, args: argparse.Namespace) -> int:
    tenant = tenant_of(args)
    if args.document:
        records = backend.list_document_requirements(
            tenant, args.project, args.document, include_deleted=args.all
        )
    else:
        records = backend.list_requirements(
            tenant, args.project, args.limit, args.offset, include_deleted=args.all
        )
    if args.json:
        print_json([r.to_dict() for r in records])
        return 0
    if not records:
        print("No requirements.")
    for record in records:
        status = " [deleted]" if record.deleted else ""
        print(f"{record.ref:<20} {record.display_title}{status}")
    return 0


def _edit(backend: RequirementsBackend, args: argparse.Namespace) -> int:
    record = _resolve(backend, args)
    update = RequirementUpdate(
        title=args.title,
        text=args.text,
        pattern=args.pattern,
        verification=args.verification,
        tags=list(args.tag) if args.tag else None,
    )
    updated = backend.update_requirement(tenant_of(args), args.project, record.id, update)
    if args.json:
        print_json(updated.to_dict())
    else:
        print(f"Updated {updated.ref}")
    return 0


def _delete(backend: RequirementsBackend, args: argparse.Namespace) -> int:
    record = _resolve(backend, args)
    deleted = backend.soft_delete_requirement(tenant_of(args), args.project, record.id)
    if args.json:
        print_json(deleted.to_dict())
    else:
        print(f"Deleted {deleted.ref}")
    return 0


def _duplicates(backend: RequirementsBackend, args: argparse.Namespace) -> int:
    tenant = tenant_of(args)
    if args.fix:
        changes = backend.fix_duplicate_refs(tenant, args.project)
        if args.json:
            print_json(
                [
                    {"id": c.requirement_id, "oldRef": c.old_ref, "newRef": c.new_ref}
                    for c in changes
                ]
            )
            return 0
        if not changes:
            print("No duplicate refs.")
        for change in changes:
            print(f"{change.old_ref} -> {change.new_ref}  ({change.requirement_id})")
        return 0

    groups = backend.find_duplicate_refs(tenant, args.project)
    if args.json:
        print_json([g.to_dict() for g in groups])
        return 0
    if not groups:
        print("No duplicate refs.")
        return 0
    for group in groups:
        print(f"{group.ref}: {len(group.requirements)} requirements")
        for record in group.requirements:
            print(f"  {record.id}  {record.display_title}")
    # Non-zero so scripts can detect duplicates
    return 2
