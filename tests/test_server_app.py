"""Tests for the Flask REST API server."""

import pytest

from reqgraph.graph import NodeKind
from reqgraph.server.app import create_app

# ─────────────────────────────────────────────────────────────────────────────
# Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture
def client(backend, apollo):
    """Flask test client over the acme/apollo fixture project."""
    app = create_app(backend, {"server": {"port": 0}})
    app.config["TESTING"] = True
    return app.test_client()


def _create(client, text, **body):
    response = client.post("/api/acme/apollo/requirements", json={"text": text, **body})
    assert response.status_code == 201, response.get_json()
    return response.get_json()["requirement"]


# ─────────────────────────────────────────────────────────────────────────────
# Service
# ─────────────────────────────────────────────────────────────────────────────


class TestService:
    """Health, CORS and error mapping."""

    def test_health(self, client):
        response = client.get("/api/health")
        assert response.status_code == 200
        data = response.get_json()
        assert data["status"] == "ok"
        assert data["cache"]["backend"] == "memory"
        assert data["mirror"] is False
        assert "version" in data

    def test_cors_enabled(self, client):
        response = client.get("/api/health", headers={"Origin": "http://example.com"})
        assert response.headers.get("Access-Control-Allow-Origin") == "*"

    def test_config_exposed(self, client):
        assert client.application.config["REQGRAPH"] == {"server": {"port": 0}}

    def test_non_object_body(self, client):
        response = client.post("/api/acme/apollo/requirements", json=["text"])
        assert response.status_code == 400
        assert response.get_json()["type"] == "ValidationError"

    def test_bad_integer_argument(self, client):
        response = client.get("/api/acme/apollo/requirements?limit=lots")
        assert response.status_code == 400


# ─────────────────────────────────────────────────────────────────────────────
# Tenants and projects
# ─────────────────────────────────────────────────────────────────────────────


class TestTenantsAndProjects:
    """Ancestor endpoints."""

    def test_list_tenants(self, client):
        tenants = client.get("/api/tenants").get_json()["tenants"]
        assert [(t["slug"], t["projectCount"]) for t in tenants] == [("acme", 1)]

    def test_create_project(self, client):
        response = client.post("/api/tenants/acme/projects", json={"key": "gemini", "name": "Gemini"})
        assert response.status_code == 201
        assert response.get_json()["project"]["id"] == "acme:gemini"

        projects = client.get("/api/tenants/acme/projects").get_json()["projects"]
        assert [p["slug"] for p in projects] == ["apollo", "gemini"]

    def test_create_project_requires_key(self, client):
        assert client.post("/api/tenants/acme/projects", json={}).status_code == 400

    def test_unknown_tenant(self, client):
        response = client.get("/api/tenants/nobody/projects")
        assert response.status_code == 404
        assert response.get_json()["type"] == "ScopeNotFoundError"


# ─────────────────────────────────────────────────────────────────────────────
# Requirements
# ─────────────────────────────────────────────────────────────────────────────


class TestRequirements:
    """Requirement endpoints."""

    def test_create_in_document_and_section(self, client, apollo):
        _, section = apollo
        first = _create(client, "The bus shall supply 28 V.", documentSlug="srd")
        second = _create(
            client, "The PSU shall limit current.", documentSlug="srd", sectionId=section.id
        )
        assert first["ref"] == "SRD-001"
        assert first["title"] == "The bus shall supply 28 V."
        assert second["ref"] == "SRD-PWR-002"
        assert second["sectionId"] == section.id

    def test_create_unknown_document(self, client):
        response = client.post(
            "/api/acme/apollo/requirements", json={"text": "X.", "documentSlug": "nope"}
        )
        assert response.status_code == 404

    def test_create_requires_text(self, client):
        response = client.post("/api/acme/apollo/requirements", json={"documentSlug": "srd"})
        assert response.status_code == 400

    def test_list_with_meta(self, client):
        for n in range(3):
            _create(client, f"Req {n}.", documentSlug="srd")
        data = client.get("/api/acme/apollo/requirements?limit=2&offset=1").get_json()
        assert [r["ref"] for r in data["data"]] == ["SRD-002", "SRD-003"]
        assert data["meta"] == {"limit": 2, "offset": 1, "total": 3}

    def test_get_by_ref(self, client):
        created = _create(client, "Find me.", documentSlug="srd")
        response = client.get("/api/acme/apollo/requirements/SRD-001")
        assert response.status_code == 200
        assert response.get_json()["requirement"]["id"] == created["id"]
        assert client.get("/api/acme/apollo/requirements/SRD-404").status_code == 404

    def test_patch_and_delete(self, client):
        created = _create(client, "Before.", documentSlug="srd")
        url = f"/api/acme/apollo/requirements/id/{created['id']}"

        patched = client.patch(url, json={"text": "After.", "tags": ["t"]})
        assert patched.status_code == 200
        assert patched.get_json()["requirement"]["text"] == "After."

        deleted = client.delete(url)
        assert deleted.get_json()["requirement"]["deleted"] is True
        listing = client.get("/api/acme/apollo/requirements").get_json()
        assert listing["data"] == []
        with_deleted = client.get("/api/acme/apollo/requirements?includeDeleted=true").get_json()
        assert [r["ref"] for r in with_deleted["data"]] == ["SRD-001"]

    def test_patch_empty_body(self, client):
        created = _create(client, "Unchanged.", documentSlug="srd")
        response = client.patch(f"/api/acme/apollo/requirements/id/{created['id']}", json={})
        assert response.status_code == 400

    def test_delete_unknown(self, client):
        response = client.delete("/api/acme/apollo/requirements/id/acme:apollo:SRD-404")
        assert response.status_code == 404
        assert response.get_json()["type"] == "NotFoundError"

    def test_suggest(self, client):
        _create(client, "Telemetry shall use S-band.", documentSlug="srd")
        data = client.get("/api/acme/apollo/requirements/suggest?text=telemetry+downlink").get_json()
        assert [r["ref"] for r in data["suggestions"]] == ["SRD-001"]

    def test_duplicates_and_fix(self, client, store):
        first = _create(client, "First.", documentSlug="srd")
        second = _create(client, "Second.", documentSlug="srd")
        store.execute_write(
            lambda tx: tx.set_properties(
                NodeKind.REQUIREMENT,
                second["id"],
                {"ref": first["ref"], "createdAt": "2999-01-01T00:00:00+00:00"},
            )
        )

        groups = client.get("/api/acme/apollo/requirements/duplicates").get_json()["duplicates"]
        assert [(g["ref"], g["count"]) for g in groups] == [("SRD-001", 2)]

        fixed = client.post("/api/acme/apollo/requirements/duplicates/fix").get_json()
        assert fixed["fixed"] == 1
        assert fixed["changes"] == [{"id": second["id"], "oldRef": "SRD-001", "newRef": "SRD-002"}]


# ─────────────────────────────────────────────────────────────────────────────
# Documents and sections
# ─────────────────────────────────────────────────────────────────────────────


class TestDocumentsAndSections:
    """Document and section endpoints, including rename cascades."""

    def test_create_and_get_document(self, client):
        response = client.post(
            "/api/acme/apollo/documents", json={"name": "Interface Control", "shortCode": "ICD"}
        )
        assert response.status_code == 201
        doc = response.get_json()["document"]
        assert doc["slug"] == "interface-control"

        fetched = client.get("/api/acme/apollo/documents/interface-control").get_json()
        assert fetched["document"]["shortCode"] == "ICD"
        assert client.get("/api/acme/apollo/documents/nope").status_code == 404

    def test_duplicate_document(self, client):
        response = client.post("/api/acme/apollo/documents", json={"name": "SRD", "slug": "srd"})
        assert response.status_code == 400

    def test_patch_document_cascades(self, client, apollo):
        _, section = apollo
        _create(client, "Doc level.", documentSlug="srd")
        _create(client, "Section level.", documentSlug="srd", sectionId=section.id)

        response = client.patch("/api/acme/apollo/documents/srd", json={"shortCode": "SYS"})
        assert response.status_code == 200

        listing = client.get("/api/acme/apollo/documents/srd/requirements").get_json()
        assert [r["ref"] for r in listing["requirements"]] == ["SYS-001", "SYS-PWR-002"]

    def test_delete_document(self, client):
        response = client.delete("/api/acme/apollo/documents/srd")
        assert response.get_json()["document"]["deletedAt"] is not None
        assert client.get("/api/acme/apollo/documents").get_json()["documents"] == []

    def test_sections(self, client, apollo):
        _, power = apollo
        response = client.post(
            "/api/acme/apollo/documents/srd/sections",
            json={"name": "Thermal", "shortCode": "THM", "order": 2},
        )
        assert response.status_code == 201
        thermal = response.get_json()["section"]

        sections = client.get("/api/acme/apollo/documents/srd/sections").get_json()["sections"]
        assert [s["id"] for s in sections] == [power.id, thermal["id"]]

        _create(client, "Radiator.", documentSlug="srd", sectionId=thermal["id"])
        patched = client.patch(f"/api/sections/{thermal['id']}", json={"shortCode": "TC"})
        assert patched.status_code == 200
        reqs = client.get(f"/api/sections/{thermal['id']}/requirements").get_json()
        assert [r["ref"] for r in reqs["requirements"]] == ["SRD-TC-001"]

        assert client.delete(f"/api/sections/{thermal['id']}").status_code == 200
        assert client.delete(f"/api/sections/{thermal['id']}").status_code == 404

    def test_section_order_must_be_integer(self, client):
        response = client.post(
            "/api/acme/apollo/documents/srd/sections", json={"name": "X", "order": "first"}
        )
        assert response.status_code == 400


# ─────────────────────────────────────────────────────────────────────────────
# Field types
# ─────────────────────────────────────────────────────────────────────────────


class TestFieldTypes:
    """Wrong JSON types are rejected with 400 before anything is stored."""

    @pytest.mark.parametrize(
        "body",
        [
            {"text": 42},
            {"text": "ok", "title": 5},
            {"text": "ok", "tags": "abc"},
            {"text": "ok", "suggestions": [1, 2]},
            {"text": "ok", "qaScore": "high"},
            {"text": "ok", "qaScore": True},
            {"text": "ok", "qaVerdict": ["pass"]},
            {"text": "ok", "documentSlug": 7},
        ],
    )
    def test_create_requirement(self, client, store, body):
        response = client.post("/api/acme/apollo/requirements", json=body)
        assert response.status_code == 400, response.get_json()
        assert response.get_json()["type"] == "ValidationError"
        assert store.node_count(NodeKind.REQUIREMENT) == 0

    def test_string_tags_not_split(self, client):
        response = client.post("/api/acme/apollo/requirements", json={"text": "ok", "tags": "abc"})
        assert "tags must be a list of strings" in response.get_json()["error"]

    @pytest.mark.parametrize(
        "body",
        [
            {"title": 5},
            {"text": ["a"]},
            {"tags": "boot"},
            {"qaScore": "ninety"},
        ],
    )
    def test_patch_requirement(self, client, body):
        created = _create(client, "Typed.", documentSlug="srd")
        response = client.patch(f"/api/acme/apollo/requirements/id/{created['id']}", json=body)
        assert response.status_code == 400, response.get_json()

    @pytest.mark.parametrize(
        "body",
        [
            {"name": "Doc", "shortCode": 7},
            {"name": 12},
            {"name": "Doc", "description": {"a": 1}},
            {"name": "Doc", "slug": 3},
        ],
    )
    def test_create_document(self, client, body):
        response = client.post("/api/acme/apollo/documents", json=body)
        assert response.status_code == 400, response.get_json()

    def test_patch_document_and_section(self, client, apollo):
        _, power = apollo
        assert client.patch("/api/acme/apollo/documents/srd", json={"name": 1}).status_code == 400
        assert client.patch(f"/api/sections/{power.id}", json={"shortCode": 9}).status_code == 400
        assert client.patch(f"/api/sections/{power.id}", json={"order": "top"}).status_code == 400

    def test_create_project_key_must_be_string(self, client):
        response = client.post("/api/tenants/acme/projects", json={"key": 5})
        assert response.status_code == 400


class TestShortCodes:
    """Short codes are limited to letters, digits and underscores."""

    @pytest.mark.parametrize("code", ["../../escaped", "A/B", "SRD.1", "-X", "P W R"])
    def test_rejected_on_create_and_patch(self, client, apollo, code):
        _, power = apollo
        created = client.post("/api/acme/apollo/documents", json={"name": "Doc", "shortCode": code})
        assert created.status_code == 400
        section = client.post(
            "/api/acme/apollo/documents/srd/sections", json={"name": "X", "shortCode": code}
        )
        assert section.status_code == 400
        assert client.patch("/api/acme/apollo/documents/srd", json={"shortCode": code}).status_code == 400
        assert client.patch(f"/api/sections/{power.id}", json={"shortCode": code}).status_code == 400

    def test_empty_code_clears(self, client):
        _create(client, "Doc level.", documentSlug="srd")
        response = client.patch("/api/acme/apollo/documents/srd", json={"shortCode": ""})
        assert response.status_code == 200
        assert response.get_json()["document"]["shortCode"] is None
        listing = client.get("/api/acme/apollo/documents/srd/requirements").get_json()
        assert [r["ref"] for r in listing["requirements"]] == ["SRD-001"]
