"""Shared pytest fixtures for reqgraph tests."""

import pytest


@pytest.fixture
def store():
    """Empty in-memory graph store."""
    from reqgraph.store import MemoryGraphStore

    return MemoryGraphStore()


@pytest.fixture
def backend(store):
    """Backend over the in-memory store with an in-memory cache."""
    from reqgraph.backend import RequirementsBackend
    from reqgraph.cache import MemoryCache

    instance = RequirementsBackend(store, MemoryCache())
    yield instance
    instance.close()


@pytest.fixture
def apollo(backend):
    """Project acme/apollo with document ``srd`` (SRD) and section Power (PWR).

    Returns:
        ``(document_record, section_record)``
    """
    backend.create_project("acme", "apollo", "Apollo")
    document = backend.create_document(
        "acme", "apollo", "System Requirements", slug="srd", short_code="SRD"
    )
    section = backend.create_section("acme", "apollo", "srd", "Power", short_code="PWR")
    return document, section


@pytest.fixture
def add_req(backend):
    """Create a requirement: ``add_req(text, document=None, section=None)``."""
    from reqgraph.models import RequirementInput, RequirementScope

    def _add(text, document=None, section=None, tenant="acme", project="apollo", **fields):
        scope = RequirementScope(tenant=tenant, project=project, document=document, section=section)
        return backend.create_requirement(scope, RequirementInput(text=text, **fields))

    return _add
