"""Tests for documents, sections, tenants and projects."""

import pytest


class TestDocuments:
    """Document CRUD."""

    def test_create(self, backend):
        doc = backend.create_document(
            "acme", "apollo", "System Requirements", short_code="SRD", description="Top level"
        )
        assert doc.slug == "system-requirements"
        assert doc.short_code == "SRD"
        assert doc.kind == "structured"
        assert doc.requirement_counter == 0
        assert doc.id == "acme:apollo:system-requirements"

    def test_duplicate_slug_rejected(self, backend):
        from reqgraph.errors import ValidationError

        backend.create_document("acme", "apollo", "SRD", slug="srd")
        with pytest.raises(ValidationError, match="already exists"):
            backend.create_document("acme", "apollo", "Another", slug="srd")

    def test_same_slug_in_other_project(self, backend):
        backend.create_document("acme", "apollo", "SRD", slug="srd")
        doc = backend.create_document("acme", "gemini", "SRD", slug="srd")
        assert doc.id == "acme:gemini:srd"

    def test_empty_name_rejected(self, backend):
        from reqgraph.errors import ValidationError

        with pytest.raises(ValidationError):
            backend.create_document("acme", "apollo", "  ")

    def test_list_sorted_by_name_with_counts(self, backend, apollo, add_req):
        backend.create_document("acme", "apollo", "Architecture", slug="arch")
        add_req("One.", document="srd")
        docs = backend.list_documents("acme", "apollo")
        assert [(d.slug, d.requirement_count) for d in docs] == [("arch", 0), ("srd", 1)]

    def test_list_excludes_deleted(self, backend, apollo):
        backend.soft_delete_document("acme", "apollo", "srd")
        assert backend.list_documents("acme", "apollo") == []
        assert backend.get_document("acme", "apollo", "srd").deleted

    def test_update_description_does_not_cascade(self, backend, apollo, add_req):
        from reqgraph.models import DocumentUpdate

        record = add_req("One.", document="srd")
        doc = backend.update_document(
            "acme", "apollo", "srd", DocumentUpdate(description="Revised")
        )
        assert doc.description == "Revised"
        after = backend.get_requirement_by_id("acme", "apollo", record.id)
        assert after.updated_at == record.updated_at

    def test_list_cached_until_write(self, backend, apollo):
        backend.list_documents("acme", "apollo")
        hits_before = backend.cache.get_stats()["hits"]
        backend.list_documents("acme", "apollo")
        assert backend.cache.get_stats()["hits"] == hits_before + 1

        backend.create_document("acme", "apollo", "Interfaces", slug="icd")
        assert [d.slug for d in backend.list_documents("acme", "apollo")] == ["icd", "srd"]


class TestSections:
    """Section CRUD."""

    def test_create_and_list_in_order(self, backend, apollo):
        _, power = apollo
        thermal = backend.create_section("acme", "apollo", "srd", "Thermal", order=-1)
        sections = backend.list_sections("acme", "apollo", "srd")
        assert [s.id for s in sections] == [thermal.id, power.id]
        assert power.id.startswith("section-")
        assert power.document_slug == "srd"

    def test_create_in_missing_document(self, backend, apollo):
        from reqgraph.errors import ScopeNotFoundError

        with pytest.raises(ScopeNotFoundError):
            backend.create_section("acme", "apollo", "nope", "Power")

    def test_update_order_does_not_cascade(self, backend, apollo, add_req):
        from reqgraph.models import SectionUpdate

        _, power = apollo
        record = add_req("PSU.", document="srd", section=power.id)
        section = backend.update_section(power.id, SectionUpdate(order=5))
        assert section.order == 5
        assert backend.get_requirement_by_id("acme", "apollo", record.id).ref == "SRD-PWR-001"

    def test_delete_keeps_requirements_in_document(self, backend, apollo, add_req):
        _, power = apollo
        record = add_req("PSU.", document="srd", section=power.id)
        backend.delete_section(power.id)

        assert backend.list_sections("acme", "apollo", "srd") == []
        after = backend.get_requirement_by_id("acme", "apollo", record.id)
        assert after.ref == "SRD-PWR-001"
        assert after.section_id is None
        doc_refs = [r.ref for r in backend.list_document_requirements("acme", "apollo", "srd")]
        assert doc_refs == ["SRD-PWR-001"]

    def test_delete_missing(self, backend):
        from reqgraph.errors import ScopeNotFoundError

        with pytest.raises(ScopeNotFoundError):
            backend.delete_section("section-missing")


class TestTenantsAndProjects:
    """Ancestor chain."""

    def test_create_project_is_idempotent(self, backend):
        first = backend.create_project("acme", "apollo", "Apollo")
        second = backend.create_project("acme", "apollo", "Renamed")
        assert first.id == second.id == "acme:apollo"
        assert second.name == "Apollo"

    def test_slugs_normalised(self, backend):
        project = backend.create_project("ACME Corp", "Flight SW")
        assert project.tenant == "acme-corp"
        assert project.slug == "flight-sw"

    def test_list_tenants_with_counts(self, backend):
        backend.create_project("acme", "apollo")
        backend.create_project("acme", "gemini")
        backend.create_project("beta", "x")
        tenants = backend.list_tenants()
        assert [(t.slug, t.project_count) for t in tenants] == [("acme", 2), ("beta", 1)]

    def test_list_projects_counts_live_requirements(self, backend, apollo, add_req):
        add_req("One.")
        gone = add_req("Two.")
        backend.soft_delete_requirement("acme", "apollo", gone.id)
        projects = backend.list_projects("acme")
        assert [(p.slug, p.requirement_count) for p in projects] == [("apollo", 1)]

    def test_unknown_tenant(self, backend):
        from reqgraph.errors import ScopeNotFoundError

        with pytest.raises(ScopeNotFoundError):
            backend.list_projects("nobody")

    def test_get_project(self, backend, apollo, add_req):
        add_req("One.")
        project = backend.get_project("acme", "apollo")
        assert project.requirement_counter == 1
        assert project.requirement_count == 1

    def test_default_tenant(self, backend):
        project = backend.create_project(None, "solo")
        assert project.tenant == "default"
