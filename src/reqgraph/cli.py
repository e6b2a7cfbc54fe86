"""
reqgraph.cli - Command-line interface.

Main entry point for the reqgraph CLI tool.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from reqgraph import __version__
from reqgraph.commands import (
    config_cmd,
    doc_cmd,
    project_cmd,
    req_cmd,
    section_cmd,
    serve,
)
from reqgraph.errors import ReqGraphError
from reqgraph.models import RequirementPattern, VerificationMethod


def _add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-j",
        "--json",
        action="store_true",
        help="Output JSON",
    )


def _add_project_arg(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-p",
        "--project",
        required=True,
        help="Project slug",
        metavar="SLUG",
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="reqgraph",
        description="Requirements graph backend: refs, documents, sections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  reqgraph project add apollo --name "Apollo"
  reqgraph doc add -p apollo "System Requirements" --short-code SRD
  reqgraph section add -p apollo srd "Power" --short-code PWR
  reqgraph req add -p apollo -d srd "The system shall boot in 5s"
  reqgraph req list -p apollo
  reqgraph doc rename -p apollo srd --short-code SYS   # SRD-001 -> SYS-001
  reqgraph serve                                       # REST API

Configuration:
  reqgraph config path          # Show config file location
  reqgraph config show          # View all settings

For detailed command help: reqgraph <command> --help
        """,
    )

    # Global options
    parser.add_argument(
        "--version",
        action="version",
        version=f"reqgraph {__version__}",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to configuration file",
        metavar="PATH",
    )
    parser.add_argument(
        "-t",
        "--tenant",
        help="Tenant slug (default: defaults.tenant from config)",
        metavar="SLUG",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-error output",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the REST API server")
    serve_parser.add_argument("--host", help="Bind address (default: server.host)")
    serve_parser.add_argument("--port", type=int, help="Port (default: server.port)")

    # config command
    config_parser = subparsers.add_parser("config", help="Inspect configuration")
    config_sub = config_parser.add_subparsers(dest="config_action")
    config_sub.add_parser("show", help="Print the effective configuration")
    config_sub.add_parser("path", help="Print the config file in use")

    # project command
    project_parser = subparsers.add_parser("project", help="Manage projects")
    project_sub = project_parser.add_subparsers(dest="project_action")
    project_add = project_sub.add_parser("add", help="Create a project")
    project_add.add_argument("key", help="Project key (slugified)")
    project_add.add_argument("--name", help="Display name")
    _add_json_flag(project_add)
    project_list = project_sub.add_parser("list", help="List projects")
    _add_json_flag(project_list)

    # doc command
    doc_parser = subparsers.add_parser("doc", help="Manage documents")
    doc_sub = doc_parser.add_subparsers(dest="doc_action")
    doc_add = doc_sub.add_parser("add", help="Create a document")
    _add_project_arg(doc_add)
    doc_add.add_argument("name", help="Document name")
    doc_add.add_argument("--slug", help="Slug (default: derived from name)")
    doc_add.add_argument("--short-code", dest="short_code", help="Ref code, e.g. SRD")
    doc_add.add_argument("--description", help="Description")
    _add_json_flag(doc_add)
    doc_list = doc_sub.add_parser("list", help="List documents")
    _add_project_arg(doc_list)
    _add_json_flag(doc_list)
    doc_rename = doc_sub.add_parser(
        "rename", help="Change name or short code and rewrite refs"
    )
    _add_project_arg(doc_rename)
    doc_rename.add_argument("slug", help="Document slug")
    doc_rename.add_argument("--short-code", dest="short_code", help="New short code")
    doc_rename.add_argument("--name", help="New name")
    _add_json_flag(doc_rename)

    # section command
    section_parser = subparsers.add_parser("section", help="Manage document sections")
    section_sub = section_parser.add_subparsers(dest="section_action")
    section_add = section_sub.add_parser("add", help="Add a section to a document")
    _add_project_arg(section_add)
    section_add.add_argument("document", help="Document slug")
    section_add.add_argument("name", help="Section name")
    section_add.add_argument("--order", type=int, default=0, help="Sort position")
    section_add.add_argument("--short-code", dest="short_code", help="Ref code, e.g. PWR")
    section_add.add_argument("--description", help="Description")
    _add_json_flag(section_add)
    section_list = section_sub.add_parser("list", help="List a document's sections")
    _add_project_arg(section_list)
    section_list.add_argument("document", help="Document slug")
    _add_json_flag(section_list)
    section_rename = section_sub.add_parser(
        "rename", help="Change name or short code and rewrite refs"
    )
    section_rename.add_argument("section_id", help="Section id")
    section_rename.add_argument("--short-code", dest="short_code", help="New short code")
    section_rename.add_argument("--name", help="New name")
    _add_json_flag(section_rename)

    # req command
    patterns = [p.value for p in RequirementPattern]
    methods = [m.value for m in VerificationMethod]
    req_parser = subparsers.add_parser("req", help="Manage requirements")
    req_sub = req_parser.add_subparsers(dest="req_action")

    req_add = req_sub.add_parser("add", help="Create a requirement")
    _add_project_arg(req_add)
    req_add.add_argument("text", help="Requirement text")
    req_add.add_argument("-d", "--document", help="Document slug")
    req_add.add_argument("-s", "--section", help="Section id (requires --document)")
    req_add.add_argument("--title", help="Title (default: first words of text)")
    req_add.add_argument("--pattern", choices=patterns, help="EARS pattern")
    req_add.add_argument("--verification", choices=methods, help="Verification method")
    req_add.add_argument("--tag", action="append", help="Tag (repeatable)")
    _add_json_flag(req_add)

    req_show = req_sub.add_parser("show", help="Show a requirement")
    _add_project_arg(req_show)
    req_show.add_argument("ref", help="Requirement ref, e.g. SRD-001")
    _add_json_flag(req_show)

    req_list = req_sub.add_parser("list", help="List requirements by ref")
    _add_project_arg(req_list)
    req_list.add_argument("-d", "--document", help="Only this document")
    req_list.add_argument("--limit", type=int, default=100, help="Page size")
    req_list.add_argument("--offset", type=int, default=0, help="Records to skip")
    req_list.add_argument("--all", action="store_true", help="Include deleted requirements")
    _add_json_flag(req_list)

    req_edit = req_sub.add_parser("edit", help="Update a requirement")
    _add_project_arg(req_edit)
    req_edit.add_argument("ref", help="Requirement ref")
    req_edit.add_argument("--text", help="New text")
    req_edit.add_argument("--title", help="New title")
    req_edit.add_argument("--pattern", choices=patterns, help="EARS pattern")
    req_edit.add_argument("--verification", choices=methods, help="Verification method")
    req_edit.add_argument("--tag", action="append", help="Replace tags (repeatable)")
    _add_json_flag(req_edit)

    req_delete = req_sub.add_parser("delete", help="Soft-delete a requirement")
    _add_project_arg(req_delete)
    req_delete.add_argument("ref", help="Requirement ref")
    _add_json_flag(req_delete)

    req_dups = req_sub.add_parser("duplicates", help="Report duplicate refs")
    _add_project_arg(req_dups)
    req_dups.add_argument("--fix", action="store_true", help="Give duplicates fresh refs")
    _add_json_flag(req_dups)

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    parser = create_parser()

    # Shell tab-completion: pip install reqgraph[completion]
    # then eval "$(register-python-argcomplete reqgraph)"
    try:
        import argcomplete

        argcomplete.autocomplete(parser)
    except ImportError:
        pass

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        if args.command == "serve":
            return serve.run(args)
        elif args.command == "config":
            return config_cmd.run(args)
        elif args.command == "project":
            return project_cmd.run(args)
        elif args.command == "doc":
            return doc_cmd.run(args)
        elif args.command == "section":
            return section_cmd.run(args)
        elif args.command == "req":
            return req_cmd.run(args)
        else:
            parser.print_help()
            return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled.", file=sys.stderr)
        return 130
    except ReqGraphError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
