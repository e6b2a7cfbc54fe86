"""
reqgraph.backend - The requirements backend facade.

``RequirementsBackend`` is what the REST API and the CLI talk to. Each
public method normalises its slugs, validates what it can up front, runs
exactly one store transaction, and then runs the post-commit effects:

- cache invalidation for the touched scope kinds;
- the markdown mirror, when one is configured.

Post-commit effects are best effort. A failure there is logged and the
committed result is still returned.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable

from reqgraph.cache import (
    CacheInvalidation,
    CacheKeys,
    MemoryCache,
    RequirementsCache,
    get_cache,
    get_cached,
)
from reqgraph.cache.invalidation import DOCUMENTS, REQUIREMENTS
from reqgraph.config import int_setting
from reqgraph.documents import crud as documents
from reqgraph.documents import sections
from reqgraph.errors import ValidationError
from reqgraph.graph import NodeKind
from reqgraph.models import (
    DocumentRecord,
    DocumentUpdate,
    ProjectRecord,
    RequirementInput,
    RequirementRecord,
    RequirementScope,
    RequirementUpdate,
    SectionRecord,
    SectionUpdate,
    TenantRecord,
)
from reqgraph.requirements import assembler, lifecycle, queries, repair
from reqgraph.requirements.cascade import RefChange
from reqgraph.store import GraphStore, GraphTransaction, open_store
from reqgraph.tenants import ensure_ancestors, get_project, list_projects, list_tenants
from reqgraph.utilities.mirror import MarkdownMirror
from reqgraph.utilities.slugs import slugify

logger = logging.getLogger(__name__)

DEFAULT_TTL_REQUIREMENTS = 120
DEFAULT_TTL_DOCUMENTS = 300


class RequirementsBackend:
    """Requirements, documents and sections over a transactional graph store.

    Args:
        store: Graph store; the backend owns it and closes it in ``close()``.
        cache: Read cache; defaults to an in-memory cache.
        mirror: Optional markdown mirror.
        max_suffix: Optional cap on ref suffixes (None lets them widen).
        ttl_requirements: Lifetime of cached requirement lists and counts.
        ttl_documents: Lifetime of cached document lists.
        default_tenant: Tenant used when a caller passes none.
    """

    def __init__(
        self,
        store: GraphStore,
        cache: RequirementsCache | None = None,
        mirror: MarkdownMirror | None = None,
        *,
        max_suffix: int | None = None,
        ttl_requirements: int = DEFAULT_TTL_REQUIREMENTS,
        ttl_documents: int = DEFAULT_TTL_DOCUMENTS,
        default_tenant: str = "default",
    ) -> None:
        self.store = store
        self.cache = cache if cache is not None else MemoryCache()
        self.invalidation = CacheInvalidation(self.cache)
        self.mirror = mirror
        self.max_suffix = max_suffix or None
        self.ttl_requirements = ttl_requirements
        self.ttl_documents = ttl_documents
        self.default_tenant = slugify(default_tenant)

    @classmethod
    def from_config(cls, config: dict[str, Any], base_dir: Path | None = None) -> RequirementsBackend:
        """Build a backend from a configuration dict.

        Args:
            config: Effective configuration (see ``reqgraph.config``).
            base_dir: Directory relative paths are resolved against.
        """
        base = Path(base_dir) if base_dir else Path.cwd()

        store_config = dict(config.get("store", {}))
        snapshot = store_config.get("snapshot")
        if snapshot and not Path(snapshot).is_absolute():
            store_config["snapshot"] = str(base / snapshot)
        store = open_store({**config, "store": store_config})

        mirror = None
        mirror_config = config.get("mirror", {})
        if mirror_config.get("enabled"):
            workspace = Path(mirror_config.get("workspace") or "workspace")
            mirror = MarkdownMirror(workspace if workspace.is_absolute() else base / workspace)

        return cls(
            store,
            get_cache(config),
            mirror,
            max_suffix=int_setting(config, "refs", "max_suffix") or None,
            ttl_requirements=int_setting(config, "cache", "ttl_requirements", DEFAULT_TTL_REQUIREMENTS),
            ttl_documents=int_setting(config, "cache", "ttl_documents", DEFAULT_TTL_DOCUMENTS),
            default_tenant=config.get("defaults", {}).get("tenant") or "default",
        )

    def close(self) -> None:
        self.store.close()

    # ─────────────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────────────

    def _slugs(self, tenant: str | None, project: str) -> tuple[str, str]:
        if not project or not str(project).strip():
            raise ValidationError("Project is required")
        return slugify(tenant or self.default_tenant), slugify(project)

    def _invalidate(self, tenant: str, project: str, *scope_kinds: str) -> None:
        for scope_kind in scope_kinds:
            self.invalidation.invalidate(scope_kind, tenant, project)

    def _best_effort(self, what: str, action: Callable[[], Any]) -> None:
        try:
            action()
        except Exception:
            logger.warning("Markdown mirror %s failed", what, exc_info=True)

    def _mirror_records(self, records: list[RequirementRecord]) -> None:
        if self.mirror is None or not records:
            return
        mirror = self.mirror

        def write_all() -> None:
            for record in records:
                mirror.write(record)

        self._best_effort("write", write_all)

    def _mirror_renames(self, renamed: list[tuple[str, RequirementRecord]]) -> None:
        if self.mirror is None or not renamed:
            return
        mirror = self.mirror
        self._best_effort("rename", lambda: mirror.sync_renames(renamed))

    @staticmethod
    def _renamed_records(
        tx: GraphTransaction, changes: list[RefChange]
    ) -> list[tuple[str, RequirementRecord]]:
        renamed = []
        for change in changes:
            node = tx.get_node(NodeKind.REQUIREMENT, change.requirement_id)
            if node is not None:
                renamed.append((change.old_ref, RequirementRecord.from_node(node)))
        return renamed

    # ─────────────────────────────────────────────────────────────────────────
    # Tenants and projects
    # ─────────────────────────────────────────────────────────────────────────

    def create_project(
        self, tenant: str | None, key: str, name: str | None = None
    ) -> ProjectRecord:
        """Ensure a tenant and project exist; existing ones are left as they are."""
        tenant_slug, project_slug = self._slugs(tenant, key)

        def work(tx: GraphTransaction) -> ProjectRecord:
            _, project = ensure_ancestors(
                tx,
                tenant_slug,
                project_slug,
                tenant_name=tenant or tenant_slug,
                project_key=key,
                project_name=name,
            )
            return ProjectRecord.from_node(project)

        return self.store.execute_write(work)

    def list_tenants(self) -> list[TenantRecord]:
        return self.store.execute_read(list_tenants)

    def list_projects(self, tenant: str | None) -> list[ProjectRecord]:
        tenant_slug = slugify(tenant or self.default_tenant)
        return self.store.execute_read(lambda tx: list_projects(tx, tenant_slug))

    # ─────────────────────────────────────────────────────────────────────────
    # Requirements
    # ─────────────────────────────────────────────────────────────────────────

    def create_requirement(
        self, scope: RequirementScope, fields: RequirementInput
    ) -> RequirementRecord:
        """Allocate a ref and create a requirement in one transaction.

        Raises:
            ValidationError: Invalid fields or scope shape, or suffix cap hit.
            ScopeNotFoundError: The document or section does not exist.
            StorageError: The store failed.
        """
        tenant, project = self._slugs(scope.tenant, scope.project)
        scope = RequirementScope(
            tenant=tenant,
            project=project,
            document=slugify(scope.document) if scope.document else None,
            section=scope.section or None,
        )
        scope.validate()
        fields.to_properties()

        record = self.store.execute_write(
            lambda tx: assembler.create_requirement(tx, scope, fields, max_suffix=self.max_suffix)
        )
        self._invalidate(tenant, project, REQUIREMENTS, DOCUMENTS)
        self._mirror_records([record])
        return record

    def get_requirement(self, tenant: str | None, project: str, ref: str) -> RequirementRecord | None:
        """Look up by ref; soft-deleted requirements are returned too."""
        tenant, project = self._slugs(tenant, project)
        return self.store.execute_read(lambda tx: queries.get_by_ref(tx, tenant, project, ref))

    def get_requirement_by_id(
        self, tenant: str | None, project: str, requirement_id: str
    ) -> RequirementRecord | None:
        tenant, project = self._slugs(tenant, project)
        return self.store.execute_read(
            lambda tx: queries.get_by_id(tx, tenant, project, requirement_id)
        )

    def update_requirement(
        self,
        tenant: str | None,
        project: str,
        requirement_id: str,
        update: RequirementUpdate,
    ) -> RequirementRecord:
        """Apply a typed partial update.

        Raises:
            ValidationError: Nothing to update, or an invalid value.
            NotFoundError: No such requirement in this tenant/project.
        """
        if update.is_empty():
            raise ValidationError("No requirement fields to update")
        tenant, project = self._slugs(tenant, project)
        record = self.store.execute_write(
            lambda tx: lifecycle.update_requirement(tx, tenant, project, requirement_id, update)
        )
        self._invalidate(tenant, project, REQUIREMENTS)
        self._mirror_records([record])
        return record

    def soft_delete_requirement(
        self, tenant: str | None, project: str, requirement_id: str
    ) -> RequirementRecord:
        """Flag a requirement deleted; its ref is never reused.

        Raises:
            NotFoundError: No such requirement in this tenant/project.
        """
        tenant, project = self._slugs(tenant, project)
        record = self.store.execute_write(
            lambda tx: lifecycle.soft_delete(tx, tenant, project, requirement_id)
        )
        self._invalidate(tenant, project, REQUIREMENTS, DOCUMENTS)
        self._mirror_records([record])
        return record

    def list_requirements(
        self,
        tenant: str | None,
        project: str,
        limit: int | None = queries.DEFAULT_LIMIT,
        offset: int | None = 0,
        include_deleted: bool = False,
    ) -> list[RequirementRecord]:
        """One page of a project's requirements ordered by ref (cached)."""
        tenant, project = self._slugs(tenant, project)
        limit, offset = queries.clamp_page(limit, offset)
        return get_cached(
            self.cache,
            CacheKeys.requirements(tenant, project, limit, offset, include_deleted),
            lambda: self.store.execute_read(
                lambda tx: queries.list_requirements(
                    tx, tenant, project, limit, offset, include_deleted
                )
            ),
            self.ttl_requirements,
            encode=lambda records: [r.to_dict() for r in records],
            decode=lambda items: [RequirementRecord.from_dict(i) for i in items],
        )

    def count_requirements(self, tenant: str | None, project: str) -> int:
        """Number of live requirements in a project (cached)."""
        tenant, project = self._slugs(tenant, project)
        return get_cached(
            self.cache,
            CacheKeys.requirement_count(tenant, project),
            lambda: self.store.execute_read(
                lambda tx: queries.count_requirements(tx, tenant, project)
            ),
            self.ttl_requirements,
        )

    def list_document_requirements(
        self,
        tenant: str | None,
        project: str,
        document_slug: str,
        include_deleted: bool = False,
    ) -> list[RequirementRecord]:
        tenant, project = self._slugs(tenant, project)
        slug = slugify(document_slug)
        return self.store.execute_read(
            lambda tx: queries.list_document_requirements(tx, tenant, project, slug, include_deleted)
        )

    def list_section_requirements(
        self, section_id: str, include_deleted: bool = False
    ) -> list[RequirementRecord]:
        return self.store.execute_read(
            lambda tx: queries.list_section_requirements(tx, section_id, include_deleted)
        )

    def find_duplicate_refs(self, tenant: str | None, project: str) -> list[repair.DuplicateGroup]:
        tenant, project = self._slugs(tenant, project)
        return self.store.execute_read(lambda tx: repair.find_duplicate_refs(tx, tenant, project))

    def fix_duplicate_refs(self, tenant: str | None, project: str) -> list[RefChange]:
        """Give every duplicate but the oldest of each group a fresh ref."""
        tenant, project = self._slugs(tenant, project)

        def work(tx: GraphTransaction) -> tuple[list[RefChange], list, list[RequirementRecord]]:
            groups = repair.find_duplicate_refs(tx, tenant, project)
            changes = repair.fix_duplicate_refs(tx, tenant, project)
            keepers = [g.requirements[0] for g in groups]
            return changes, self._renamed_records(tx, changes), keepers

        changes, renamed, keepers = self.store.execute_write(work)
        if changes:
            self._invalidate(tenant, project, REQUIREMENTS)
            self._mirror_renames(renamed)
            self._mirror_records(keepers)
        return changes

    def suggest_links(
        self, tenant: str | None, project: str, text: str, limit: int = 3
    ) -> list[RequirementRecord]:
        tenant, project = self._slugs(tenant, project)
        return self.store.execute_read(
            lambda tx: queries.suggest_links(tx, tenant, project, text, limit)
        )

    # ─────────────────────────────────────────────────────────────────────────
    # Documents
    # ─────────────────────────────────────────────────────────────────────────

    def create_document(
        self,
        tenant: str | None,
        project: str,
        name: str,
        *,
        slug: str | None = None,
        short_code: str | None = None,
        description: str | None = None,
        parent_folder: str | None = None,
        kind: str | None = None,
    ) -> DocumentRecord:
        """Create a document.

        Raises:
            ValidationError: Empty name or slug already taken.
        """
        tenant, project = self._slugs(tenant, project)
        record = self.store.execute_write(
            lambda tx: documents.create_document(
                tx,
                tenant,
                project,
                name,
                slug=slug,
                short_code=short_code,
                description=description,
                parent_folder=parent_folder,
                kind=kind,
            )
        )
        self._invalidate(tenant, project, DOCUMENTS)
        return record

    def get_document(self, tenant: str | None, project: str, slug: str) -> DocumentRecord | None:
        tenant, project = self._slugs(tenant, project)
        doc_slug = slugify(slug)
        return self.store.execute_read(
            lambda tx: documents.get_document(tx, tenant, project, doc_slug)
        )

    def list_documents(
        self,
        tenant: str | None,
        project: str,
        limit: int | None = queries.DEFAULT_LIMIT,
        offset: int | None = 0,
    ) -> list[DocumentRecord]:
        """Live documents with requirement counts (cached)."""
        tenant, project = self._slugs(tenant, project)
        limit, offset = queries.clamp_page(limit, offset)
        return get_cached(
            self.cache,
            CacheKeys.documents(tenant, project, limit, offset),
            lambda: self.store.execute_read(
                lambda tx: documents.list_documents(tx, tenant, project, limit, offset)
            ),
            self.ttl_documents,
            encode=lambda records: [r.to_dict() for r in records],
            decode=lambda items: [DocumentRecord.from_dict(i) for i in items],
        )

    def update_document(
        self,
        tenant: str | None,
        project: str,
        slug: str,
        update: DocumentUpdate,
    ) -> DocumentRecord:
        """Update a document; a new name or short code cascades to its refs.

        Raises:
            ValidationError: Nothing to update.
            ScopeNotFoundError: No such document.
        """
        if update.is_empty():
            raise ValidationError("No document fields to update")
        tenant, project = self._slugs(tenant, project)
        doc_slug = slugify(slug)

        def work(tx: GraphTransaction):
            record, changes = documents.update_document(tx, tenant, project, doc_slug, update)
            return record, self._renamed_records(tx, changes)

        record, renamed = self.store.execute_write(work)
        self._invalidate(tenant, project, REQUIREMENTS, DOCUMENTS)
        self._mirror_renames(renamed)
        return record

    def rename_document(
        self,
        tenant: str | None,
        project: str,
        slug: str,
        short_code: str | None = None,
        name: str | None = None,
    ) -> DocumentRecord:
        """Change a document's short code and/or name and cascade its refs."""
        return self.update_document(
            tenant, project, slug, DocumentUpdate(name=name, short_code=short_code)
        )

    def soft_delete_document(self, tenant: str | None, project: str, slug: str) -> DocumentRecord:
        tenant, project = self._slugs(tenant, project)
        doc_slug = slugify(slug)
        record = self.store.execute_write(
            lambda tx: documents.soft_delete_document(tx, tenant, project, doc_slug)
        )
        self._invalidate(tenant, project, DOCUMENTS)
        return record

    # ─────────────────────────────────────────────────────────────────────────
    # Sections
    # ─────────────────────────────────────────────────────────────────────────

    def create_section(
        self,
        tenant: str | None,
        project: str,
        document_slug: str,
        name: str,
        order: int = 0,
        *,
        short_code: str | None = None,
        description: str | None = None,
    ) -> SectionRecord:
        tenant, project = self._slugs(tenant, project)
        doc_slug = slugify(document_slug)
        return self.store.execute_write(
            lambda tx: sections.create_section(
                tx,
                tenant,
                project,
                doc_slug,
                name,
                order,
                short_code=short_code,
                description=description,
            )
        )

    def list_sections(
        self, tenant: str | None, project: str, document_slug: str
    ) -> list[SectionRecord]:
        tenant, project = self._slugs(tenant, project)
        doc_slug = slugify(document_slug)
        return self.store.execute_read(
            lambda tx: sections.list_sections(tx, tenant, project, doc_slug)
        )

    def update_section(self, section_id: str, update: SectionUpdate) -> SectionRecord:
        """Update a section; a new name or short code cascades to its refs.

        Raises:
            ValidationError: Nothing to update.
            ScopeNotFoundError: No such section.
        """
        if update.is_empty():
            raise ValidationError("No section fields to update")

        def work(tx: GraphTransaction):
            record, changes = sections.update_section(tx, section_id, update)
            return record, self._renamed_records(tx, changes)

        record, renamed = self.store.execute_write(work)
        self._invalidate(record.tenant, record.project, REQUIREMENTS, DOCUMENTS)
        self._mirror_renames(renamed)
        return record

    def rename_section(
        self, section_id: str, short_code: str | None = None, name: str | None = None
    ) -> SectionRecord:
        """Change a section's short code and/or name and cascade its refs."""
        return self.update_section(section_id, SectionUpdate(name=name, short_code=short_code))

    def delete_section(self, section_id: str) -> SectionRecord:
        record = self.store.execute_write(lambda tx: sections.delete_section(tx, section_id))
        self._invalidate(record.tenant, record.project, REQUIREMENTS, DOCUMENTS)
        return record

    # ─────────────────────────────────────────────────────────────────────────
    # Introspection
    # ─────────────────────────────────────────────────────────────────────────

    def get_project(self, tenant: str | None, project: str) -> ProjectRecord:
        """Return a project with its live requirement count.

        Raises:
            ScopeNotFoundError: No such project.
        """
        tenant, project = self._slugs(tenant, project)

        def work(tx: GraphTransaction) -> ProjectRecord:
            node = get_project(tx, tenant, project)
            return ProjectRecord.from_node(
                node, requirement_count=queries.count_requirements(tx, tenant, project)
            )

        return self.store.execute_read(work)

    def stats(self) -> dict[str, Any]:
        return {"cache": self.cache.get_stats(), "mirror": bool(self.mirror)}


__all__ = ["RequirementsBackend"]
