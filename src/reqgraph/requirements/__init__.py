"""
reqgraph.requirements - Ref allocation and referential consistency.

Provides:
- prefix: derive the prefix of a scope (``SRD-PWR``, ``SRD``, ``REQ-APOLLO``)
- allocator: counter increment plus collision scan
- assembler: the create path
- cascade: rewrite refs after a document or section rename
- lifecycle: edits and soft deletion
- queries, repair: read paths and duplicate repair

Every function here takes an open ``GraphTransaction``; transaction
boundaries belong to ``reqgraph.backend``.
"""

from reqgraph.requirements.allocator import Allocation, format_suffix, next_suffix, split_ref
from reqgraph.requirements.assembler import create_requirement
from reqgraph.requirements.cascade import RefChange, on_document_renamed, on_section_renamed
from reqgraph.requirements.lifecycle import soft_delete, update_requirement
from reqgraph.requirements.prefix import resolve_prefix

__all__ = [
    "Allocation",
    "RefChange",
    "create_requirement",
    "format_suffix",
    "next_suffix",
    "on_document_renamed",
    "on_section_renamed",
    "resolve_prefix",
    "soft_delete",
    "split_ref",
    "update_requirement",
]
