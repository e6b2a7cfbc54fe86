"""
reqgraph.documents - Documents and their sections.

Renames here trigger the ref cascade in ``reqgraph.requirements.cascade``.
"""

from reqgraph.documents.crud import (
    create_document,
    get_document,
    list_documents,
    soft_delete_document,
    update_document,
)
from reqgraph.documents.sections import (
    create_section,
    delete_section,
    list_sections,
    update_section,
)

__all__ = [
    "create_document",
    "create_section",
    "delete_section",
    "get_document",
    "list_documents",
    "list_sections",
    "soft_delete_document",
    "update_document",
    "update_section",
]
