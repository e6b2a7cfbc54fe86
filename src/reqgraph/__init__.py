"""
reqgraph - Requirements management backend on a property graph

reqgraph stores tenants, projects, documents, sections and requirements
as nodes of a transactional property graph and assigns every requirement
a human-readable reference code (``SRD-PWR-001``) that stays correct when
its owning document or section is renamed.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("reqgraph")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"  # Not installed
__license__ = "MIT"

from reqgraph.backend import RequirementsBackend
from reqgraph.errors import (
    NotFoundError,
    ReqGraphError,
    ScopeNotFoundError,
    StorageError,
    ValidationError,
)
from reqgraph.models import RequirementInput, RequirementRecord, RequirementScope

__all__ = [
    "__version__",
    "NotFoundError",
    "ReqGraphError",
    "RequirementInput",
    "RequirementRecord",
    "RequirementScope",
    "RequirementsBackend",
    "ScopeNotFoundError",
    "StorageError",
    "ValidationError",
]
