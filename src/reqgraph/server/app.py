"""reqgraph.server.app - Flask app factory and REST API routes.

This is a THIN REST wrapper: every route delegates to one
``RequirementsBackend`` method and serialises the result with the
record's ``to_dict()``. Errors derived from ``ReqGraphError`` are turned
into JSON responses by a single handler:

    ScopeNotFoundError, NotFoundError  -> 404
    ValidationError                    -> 400
    StorageError                       -> 503
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Flask, jsonify, request
from flask_cors import CORS

from reqgraph.backend import RequirementsBackend
from reqgraph.errors import NotFoundError, ReqGraphError, ValidationError
from reqgraph.models import (
    DocumentUpdate,
    RequirementInput,
    RequirementScope,
    RequirementUpdate,
    SectionUpdate,
    check_str,
)

logger = logging.getLogger(__name__)


def _json_body() -> dict[str, Any]:
    data = request.get_json(force=True, silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(f"Query parameter '{name}' must be an integer") from e


def _bool_arg(name: str) -> bool:
    return request.args.get(name, "false").lower() in ("1", "true", "yes")


def create_app(backend: RequirementsBackend, config: dict[str, Any] | None = None) -> Flask:
    """Create the Flask application with REST API routes.

    Args:
        backend: Backend every route delegates to.
        config: Effective reqgraph configuration (exposed to handlers via
            ``app.config["REQGRAPH"]``).

    Returns:
        Configured Flask application.
    """
    app = Flask(__name__)
    app.config["REQGRAPH"] = config or {}
    CORS(app)

    @app.errorhandler(ReqGraphError)
    def _domain_error(error: ReqGraphError):
        if error.status_code >= 500:
            logger.error("Request failed: %s", error)
        return jsonify({"error": str(error), "type": type(error).__name__}), error.status_code

    # ─────────────────────────────────────────────────────────────────
    # Service
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/health")
    def api_health():
        """GET /api/health - Liveness and cache statistics."""
        from reqgraph import __version__

        return jsonify({"status": "ok", "version": __version__, **backend.stats()})

    # ─────────────────────────────────────────────────────────────────
    # Tenants and projects
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/tenants")
    def api_tenants():
        """GET /api/tenants - Tenants with project counts."""
        return jsonify({"tenants": [t.to_dict() for t in backend.list_tenants()]})

    @app.route("/api/tenants/<tenant>/projects", methods=["GET"])
    def api_projects(tenant: str):
        """GET /api/tenants/<tenant>/projects - Projects with requirement counts."""
        return jsonify({"projects": [p.to_dict() for p in backend.list_projects(tenant)]})

    @app.route("/api/tenants/<tenant>/projects", methods=["POST"])
    def api_create_project(tenant: str):
        """POST /api/tenants/<tenant>/projects - Ensure a project exists."""
        data = _json_body()
        key = check_str(data.get("key") or data.get("slug"), "key")
        if not key:
            raise ValidationError("key required")
        project = backend.create_project(tenant, key, check_str(data.get("name"), "name"))
        return jsonify({"project": project.to_dict()}), 201

    # ─────────────────────────────────────────────────────────────────
    # Requirements
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/<tenant>/<project>/requirements", methods=["GET"])
    def api_list_requirements(tenant: str, project: str):
        """GET /api/<tenant>/<project>/requirements - One page ordered by ref.

        Query parameters:
            limit: Page size (default 100, max 1000)
            offset: Records to skip (default 0)
            includeDeleted: true to include soft-deleted records
        """
        limit = _int_arg("limit", 100)
        offset = _int_arg("offset", 0)
        records = backend.list_requirements(
            tenant, project, limit, offset, include_deleted=_bool_arg("includeDeleted")
        )
        return jsonify(
            {
                "data": [r.to_dict() for r in records],
                "meta": {
                    "limit": limit,
                    "offset": offset,
                    "total": backend.count_requirements(tenant, project),
                },
            }
        )

    @app.route("/api/<tenant>/<project>/requirements", methods=["POST"])
    def api_create_requirement(tenant: str, project: str):
        """POST /api/<tenant>/<project>/requirements - Create with a new ref.

        Body: text (required), documentSlug, sectionId, title, pattern,
        verification, qaScore, qaVerdict, suggestions, tags.
        """
        data = _json_body()
        scope = RequirementScope(
            tenant=tenant,
            project=project,
            document=check_str(data.get("documentSlug"), "documentSlug") or None,
            section=check_str(data.get("sectionId"), "sectionId") or None,
        )
        record = backend.create_requirement(scope, RequirementInput.from_dict(data))
        return jsonify({"requirement": record.to_dict()}), 201

    @app.route("/api/<tenant>/<project>/requirements/duplicates", methods=["GET"])
    def api_duplicates(tenant: str, project: str):
        """GET .../requirements/duplicates - Live requirements sharing a ref."""
        groups = backend.find_duplicate_refs(tenant, project)
        return jsonify({"duplicates": [g.to_dict() for g in groups]})

    @app.route("/api/<tenant>/<project>/requirements/duplicates/fix", methods=["POST"])
    def api_fix_duplicates(tenant: str, project: str):
        """POST .../requirements/duplicates/fix - Re-allocate duplicate refs."""
        changes = backend.fix_duplicate_refs(tenant, project)
        return jsonify(
            {
                "fixed": len(changes),
                "changes": [
                    {"id": c.requirement_id, "oldRef": c.old_ref, "newRef": c.new_ref}
                    for c in changes
                ],
            }
        )

    @app.route("/api/<tenant>/<project>/requirements/suggest", methods=["GET"])
    def api_suggest_links(tenant: str, project: str):
        """GET .../requirements/suggest?text=...&limit=3 - Link candidates."""
        records = backend.suggest_links(
            tenant, project, request.args.get("text", ""), _int_arg("limit", 3)
        )
        return jsonify({"suggestions": [r.to_dict() for r in records]})

    @app.route("/api/<tenant>/<project>/requirements/<ref>", methods=["GET"])
    def api_get_requirement(tenant: str, project: str, ref: str):
        """GET .../requirements/<ref> - One requirement, deleted or not."""
        record = backend.get_requirement(tenant, project, ref)
        if record is None:
            raise NotFoundError(f"Requirement '{ref}' not found")
        return jsonify({"requirement": record.to_dict()})

    @app.route("/api/<tenant>/<project>/requirements/id/<requirement_id>", methods=["PATCH"])
    def api_update_requirement(tenant: str, project: str, requirement_id: str):
        """PATCH .../requirements/id/<id> - Partial update."""
        update = RequirementUpdate.from_dict(_json_body())
        record = backend.update_requirement(tenant, project, requirement_id, update)
        return jsonify({"requirement": record.to_dict()})

    @app.route("/api/<tenant>/<project>/requirements/id/<requirement_id>", methods=["DELETE"])
    def api_delete_requirement(tenant: str, project: str, requirement_id: str):
        """DELETE .../requirements/id/<id> - Soft delete."""
        record = backend.soft_delete_requirement(tenant, project, requirement_id)
        return jsonify({"requirement": record.to_dict()})

    # ─────────────────────────────────────────────────────────────────
    # Documents
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/<tenant>/<project>/documents", methods=["GET"])
    def api_list_documents(tenant: str, project: str):
        """GET /api/<tenant>/<project>/documents - Live documents."""
        records = backend.list_documents(
            tenant, project, _int_arg("limit", 100), _int_arg("offset", 0)
        )
        return jsonify({"documents": [d.to_dict() for d in records]})

    @app.route("/api/<tenant>/<project>/documents", methods=["POST"])
    def api_create_document(tenant: str, project: str):
        """POST /api/<tenant>/<project>/documents - Create a document."""
        data = _json_body()
        record = backend.create_document(
            tenant,
            project,
            data.get("name", ""),
            slug=data.get("slug"),
            short_code=data.get("shortCode"),
            description=data.get("description"),
            parent_folder=data.get("parentFolder"),
            kind=data.get("kind"),
        )
        return jsonify({"document": record.to_dict()}), 201

    @app.route("/api/<tenant>/<project>/documents/<slug>", methods=["GET"])
    def api_get_document(tenant: str, project: str, slug: str):
        record = backend.get_document(tenant, project, slug)
        if record is None:
            raise NotFoundError(f"Document '{slug}' not found")
        return jsonify({"document": record.to_dict()})

    @app.route("/api/<tenant>/<project>/documents/<slug>", methods=["PATCH"])
    def api_update_document(tenant: str, project: str, slug: str):
        """PATCH .../documents/<slug> - Update; name/shortCode cascade to refs."""
        record = backend.update_document(tenant, project, slug, DocumentUpdate.from_dict(_json_body()))
        return jsonify({"document": record.to_dict()})

    @app.route("/api/<tenant>/<project>/documents/<slug>", methods=["DELETE"])
    def api_delete_document(tenant: str, project: str, slug: str):
        record = backend.soft_delete_document(tenant, project, slug)
        return jsonify({"document": record.to_dict()})

    @app.route("/api/<tenant>/<project>/documents/<slug>/requirements", methods=["GET"])
    def api_document_requirements(tenant: str, project: str, slug: str):
        records = backend.list_document_requirements(
            tenant, project, slug, include_deleted=_bool_arg("includeDeleted")
        )
        return jsonify({"requirements": [r.to_dict() for r in records]})

    # ─────────────────────────────────────────────────────────────────
    # Sections
    # ─────────────────────────────────────────────────────────────────

    @app.route("/api/<tenant>/<project>/documents/<slug>/sections", methods=["GET"])
    def api_list_sections(tenant: str, project: str, slug: str):
        records = backend.list_sections(tenant, project, slug)
        return jsonify({"sections": [s.to_dict() for s in records]})

    @app.route("/api/<tenant>/<project>/documents/<slug>/sections", methods=["POST"])
    def api_create_section(tenant: str, project: str, slug: str):
        """POST .../documents/<slug>/sections - Add a section."""
        data = _json_body()
        try:
            order = int(data.get("order", 0))
        except (TypeError, ValueError) as e:
            raise ValidationError("order must be an integer") from e
        record = backend.create_section(
            tenant,
            project,
            slug,
            data.get("name", ""),
            order,
            short_code=data.get("shortCode"),
            description=data.get("description"),
        )
        return jsonify({"section": record.to_dict()}), 201

    @app.route("/api/sections/<section_id>", methods=["PATCH"])
    def api_update_section(section_id: str):
        """PATCH /api/sections/<id> - Update; name/shortCode cascade to refs."""
        record = backend.update_section(section_id, SectionUpdate.from_dict(_json_body()))
        return jsonify({"section": record.to_dict()})

    @app.route("/api/sections/<section_id>", methods=["DELETE"])
    def api_delete_section(section_id: str):
        record = backend.delete_section(section_id)
        return jsonify({"section": record.to_dict()})

    @app.route("/api/sections/<section_id>/requirements", methods=["GET"])
    def api_section_requirements(section_id: str):
        records = backend.list_section_requirements(
            section_id, include_deleted=_bool_arg("includeDeleted")
        )
        return jsonify({"requirements": [r.to_dict() for r in records]})

    return app


__all__ = ["create_app"]
