"""
reqgraph.commands - CLI command implementations
"""

__all__ = [
    "config_cmd",
    "context",
    "doc_cmd",
    "project_cmd",
    "req_cmd",
    "section_cmd",
    "serve",
]
