"""
reqgraph.models - Records and inputs exchanged with the backend.

Provides:
- RequirementPattern, VerificationMethod: closed vocabularies
- RequirementScope: where a new requirement is filed
- RequirementInput: caller fields for a new requirement
- RequirementUpdate, DocumentUpdate, SectionUpdate: typed partial updates
- TenantRecord, ProjectRecord, DocumentRecord, SectionRecord,
  RequirementRecord: read models built from graph node properties

Graph properties are camelCase (``hashId``, ``requirementCounter``);
record attributes are snake_case. ``to_dict()`` returns the camelCase
form, which is also what ``from_dict()`` accepts, so records survive a
JSON round trip through the cache.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from reqgraph.errors import ValidationError

TITLE_WORDS = 8


def now_iso() -> str:
    """Current UTC time as an ISO 8601 string."""
    return datetime.now(timezone.utc).isoformat()


def derive_title(text: str) -> str:
    """Title used when a requirement has none: its first eight words."""
    words = text.split()
    title = " ".join(words[:TITLE_WORDS])
    return f"{title}..." if len(words) > TITLE_WORDS else title


SHORT_CODE_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_]*$")


def check_str(value: Any, name: str) -> str | None:
    """Return ``value`` if it is a string or None.

    Raises:
        ValidationError: For any other JSON type.
    """
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{name} must be a string, got {type(value).__name__}")
    return value


def check_str_list(value: Any, name: str) -> list[str] | None:
    """Return a copy of ``value`` if it is a list of strings, None if absent."""
    if value is None:
        return None
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise ValidationError(f"{name} must be a list of strings")
    return list(value)


def check_score(value: Any, name: str = "qaScore") -> float | None:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(f"{name} must be a number, got {type(value).__name__}")
    return value


def normalize_short_code(value: Any) -> str | None:
    """Strip a short code; empty means none.

    Short codes become part of refs and of mirror file names, so they are
    limited to letters, digits and underscores.

    >>> normalize_short_code(" PWR ")
    'PWR'
    >>> normalize_short_code("") is None
    True

    Raises:
        ValidationError: If the code is not a string or contains other characters.
    """
    code = (check_str(value, "shortCode") or "").strip()
    if not code:
        return None
    if not SHORT_CODE_PATTERN.match(code):
        raise ValidationError(
            f"Invalid short code {code!r} (letters, digits and underscores only)"
        )
    return code


# ─────────────────────────────────────────────────────────────────────────────
# Vocabularies
# ─────────────────────────────────────────────────────────────────────────────


class RequirementPattern(str, Enum):
    """EARS sentence pattern of a requirement."""

    UBIQUITOUS = "ubiquitous"
    EVENT = "event"
    STATE = "state"
    UNWANTED = "unwanted"
    OPTIONAL = "optional"

    @classmethod
    def parse(cls, value: str | RequirementPattern) -> RequirementPattern:
        try:
            return cls(value)
        except (TypeError, ValueError):
            allowed = ", ".join(p.value for p in cls)
            raise ValidationError(f"Invalid pattern {value!r} (expected one of: {allowed})")


class VerificationMethod(str, Enum):
    """How compliance with a requirement is verified."""

    TEST = "Test"
    ANALYSIS = "Analysis"
    INSPECTION = "Inspection"
    DEMONSTRATION = "Demonstration"

    @classmethod
    def parse(cls, value: str | VerificationMethod) -> VerificationMethod:
        try:
            return cls(value)
        except (TypeError, ValueError):
            allowed = ", ".join(v.value for v in cls)
            raise ValidationError(f"Invalid verification {value!r} (expected one of: {allowed})")


# ─────────────────────────────────────────────────────────────────────────────
# Inputs
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RequirementScope:
    """Owning scope of a requirement.

    Exactly one of three shapes is valid: project only, project and
    document, or project, document and section.

    Attributes:
        tenant: Tenant slug.
        project: Project slug.
        document: Document slug, if filed under a document.
        section: Section id, if filed under a section of ``document``.
    """

    tenant: str
    project: str
    document: str | None = None
    section: str | None = None

    def validate(self) -> None:
        if not self.tenant or not self.project:
            raise ValidationError("Tenant and project are required")
        if self.section and not self.document:
            raise ValidationError("A section scope requires a document")

    @property
    def kind(self) -> str:
        """``"section"``, ``"document"`` or ``"project"``."""
        if self.section:
            return "section"
        if self.document:
            return "document"
        return "project"


@dataclass
class RequirementInput:
    """Caller-supplied fields of a new requirement."""

    text: str
    title: str | None = None
    pattern: RequirementPattern | str | None = None
    verification: VerificationMethod | str | None = None
    qa_score: float | None = None
    qa_verdict: str | None = None
    suggestions: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    def to_properties(self) -> dict[str, Any]:
        """Validate and convert to graph properties.

        Raises:
            ValidationError: If the text is empty, a field has the wrong JSON
                type or an enum value is unknown.
        """
        text = (check_str(self.text, "text") or "").strip()
        if not text:
            raise ValidationError("Requirement text must not be empty")
        title = check_str(self.title, "title")
        return {
            "text": text,
            "title": title.strip() if title else None,
            "pattern": RequirementPattern.parse(self.pattern).value if self.pattern else None,
            "verification": (
                VerificationMethod.parse(self.verification).value if self.verification else None
            ),
            "qaScore": check_score(self.qa_score),
            "qaVerdict": check_str(self.qa_verdict, "qaVerdict"),
            "suggestions": check_str_list(self.suggestions, "suggestions") or [],
            "tags": check_str_list(self.tags, "tags") or [],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequirementInput:
        """Build from a JSON body (camelCase or snake_case keys)."""
        return cls(
            text=data.get("text", ""),
            title=data.get("title"),
            pattern=data.get("pattern"),
            verification=data.get("verification"),
            qa_score=data.get("qaScore", data.get("qa_score")),
            qa_verdict=data.get("qaVerdict", data.get("qa_verdict")),
            suggestions=data.get("suggestions") or [],
            tags=data.get("tags") or [],
        )


@dataclass
class RequirementUpdate:
    """Partial update of a requirement. ``None`` leaves a field unchanged."""

    title: str | None = None
    text: str | None = None
    pattern: RequirementPattern | str | None = None
    verification: VerificationMethod | str | None = None
    qa_score: float | None = None
    qa_verdict: str | None = None
    suggestions: list[str] | None = None
    tags: list[str] | None = None

    def is_empty(self) -> bool:
        return not self.changes()

    def changes(self) -> dict[str, Any]:
        """Graph properties to set.

        Raises:
            ValidationError: If the new text is blank, a field has the wrong
                JSON type or an enum is unknown.
        """
        props: dict[str, Any] = {}
        if self.title is not None:
            props["title"] = check_str(self.title, "title").strip()
        if self.text is not None:
            text = check_str(self.text, "text").strip()
            if not text:
                raise ValidationError("Requirement text must not be empty")
            props["text"] = text
        if self.pattern is not None:
            props["pattern"] = RequirementPattern.parse(self.pattern).value
        if self.verification is not None:
            props["verification"] = VerificationMethod.parse(self.verification).value
        if self.qa_score is not None:
            props["qaScore"] = check_score(self.qa_score)
        if self.qa_verdict is not None:
            props["qaVerdict"] = check_str(self.qa_verdict, "qaVerdict")
        if self.suggestions is not None:
            props["suggestions"] = check_str_list(self.suggestions, "suggestions")
        if self.tags is not None:
            props["tags"] = check_str_list(self.tags, "tags")
        return props

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RequirementUpdate:
        return cls(
            title=data.get("title"),
            text=data.get("text"),
            pattern=data.get("pattern"),
            verification=data.get("verification"),
            qa_score=data.get("qaScore", data.get("qa_score")),
            qa_verdict=data.get("qaVerdict", data.get("qa_verdict")),
            suggestions=data.get("suggestions"),
            tags=data.get("tags"),
        )


@dataclass
class DocumentUpdate:
    """Partial update of a document.

    An empty ``short_code`` clears it, so the slug is used as the
    document code again.
    """

    name: str | None = None
    description: str | None = None
    short_code: str | None = None

    def is_empty(self) -> bool:
        return self.name is None and self.description is None and self.short_code is None

    @property
    def renames(self) -> bool:
        """True when the update can change the document code."""
        return self.name is not None or self.short_code is not None

    def changes(self) -> dict[str, Any]:
        props: dict[str, Any] = {}
        if self.name is not None:
            name = check_str(self.name, "name").strip()
            if not name:
                raise ValidationError("Document name must not be empty")
            props["name"] = name
        if self.description is not None:
            props["description"] = check_str(self.description, "description")
        if self.short_code is not None:
            props["shortCode"] = normalize_short_code(self.short_code)
        return props

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DocumentUpdate:
        return cls(
            name=data.get("name"),
            description=data.get("description"),
            short_code=data.get("shortCode", data.get("short_code")),
        )


@dataclass
class SectionUpdate:
    """Partial update of a document section."""

    name: str | None = None
    description: str | None = None
    order: int | None = None
    short_code: str | None = None

    def is_empty(self) -> bool:
        return (
            self.name is None
            and self.description is None
            and self.order is None
            and self.short_code is None
        )

    @property
    def renames(self) -> bool:
        return self.name is not None or self.short_code is not None

    def changes(self) -> dict[str, Any]:
        props: dict[str, Any] = {}
        if self.name is not None:
            name = check_str(self.name, "name").strip()
            if not name:
                raise ValidationError("Section name must not be empty")
            props["name"] = name
        if self.description is not None:
            props["description"] = check_str(self.description, "description")
        if self.order is not None:
            try:
                props["order"] = int(self.order)
            except (TypeError, ValueError) as e:
                raise ValidationError("order must be an integer") from e
        if self.short_code is not None:
            props["shortCode"] = normalize_short_code(self.short_code)
        return props

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SectionUpdate:
        return cls(
            name=data.get("name"),
            description=data.get("description"),
            order=data.get("order"),
            short_code=data.get("shortCode", data.get("short_code")),
        )


# ─────────────────────────────────────────────────────────────────────────────
# Records
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class TenantRecord:
    slug: str
    name: str
    created_at: str | None = None
    project_count: int = 0

    @classmethod
    def from_node(cls, props: dict[str, Any], project_count: int = 0) -> TenantRecord:
        return cls(
            slug=props["slug"],
            name=props.get("name") or props["slug"],
            created_at=props.get("createdAt"),
            project_count=props.get("projectCount", project_count),
        )

    from_dict = from_node

    def to_dict(self) -> dict[str, Any]:
        return {
            "slug": self.slug,
            "name": self.name,
            "createdAt": self.created_at,
            "projectCount": self.project_count,
        }


@dataclass
class ProjectRecord:
    id: str
    tenant: str
    slug: str
    key: str
    name: str
    requirement_counter: int = 0
    created_at: str | None = None
    requirement_count: int = 0

    @classmethod
    def from_node(cls, props: dict[str, Any], requirement_count: int = 0) -> ProjectRecord:
        return cls(
            id=props["id"],
            tenant=props["tenantSlug"],
            slug=props["slug"],
            key=props.get("key") or props["slug"].upper(),
            name=props.get("name") or props["slug"],
            requirement_counter=int(props.get("requirementCounter") or 0),
            created_at=props.get("createdAt"),
            requirement_count=props.get("requirementCount", requirement_count),
        )

    from_dict = from_node

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tenantSlug": self.tenant,
            "slug": self.slug,
            "key": self.key,
            "name": self.name,
            "requirementCounter": self.requirement_counter,
            "createdAt": self.created_at,
            "requirementCount": self.requirement_count,
        }


@dataclass
class DocumentRecord:
    id: str
    tenant: str
    project: str
    slug: str
    name: str
    description: str | None = None
    short_code: str | None = None
    kind: str = "structured"
    parent_folder: str | None = None
    requirement_counter: int = 0
    created_at: str | None = None
    updated_at: str | None = None
    deleted_at: str | None = None
    requirement_count: int = 0

    @property
    def deleted(self) -> bool:
        return self.deleted_at is not None

    @classmethod
    def from_node(cls, props: dict[str, Any], requirement_count: int = 0) -> DocumentRecord:
        return cls(
            id=props["id"],
            tenant=props["tenant"],
            project=props["projectKey"],
            slug=props["slug"],
            name=props.get("name") or props["slug"],
            description=props.get("description"),
            short_code=props.get("shortCode"),
            kind=props.get("kind") or "structured",
            parent_folder=props.get("parentFolder"),
            requirement_counter=int(props.get("requirementCounter") or 0),
            created_at=props.get("createdAt"),
            updated_at=props.get("updatedAt"),
            deleted_at=props.get("deletedAt"),
            requirement_count=props.get("requirementCount", requirement_count),
        )

    from_dict = from_node

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tenant": self.tenant,
            "projectKey": self.project,
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "shortCode": self.short_code,
            "kind": self.kind,
            "parentFolder": self.parent_folder,
            "requirementCounter": self.requirement_counter,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "deletedAt": self.deleted_at,
            "requirementCount": self.requirement_count,
        }


@dataclass
class SectionRecord:
    id: str
    tenant: str
    project: str
    document_slug: str
    name: str
    short_code: str | None = None
    description: str | None = None
    order: int = 0
    created_at: str | None = None
    updated_at: str | None = None

    @classmethod
    def from_node(cls, props: dict[str, Any]) -> SectionRecord:
        return cls(
            id=props["id"],
            tenant=props["tenant"],
            project=props["projectKey"],
            document_slug=props["documentSlug"],
            name=props["name"],
            short_code=props.get("shortCode"),
            description=props.get("description"),
            order=int(props.get("order") or 0),
            created_at=props.get("createdAt"),
            updated_at=props.get("updatedAt"),
        )

    from_dict = from_node

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "tenant": self.tenant,
            "projectKey": self.project,
            "documentSlug": self.document_slug,
            "name": self.name,
            "shortCode": self.short_code,
            "description": self.description,
            "order": self.order,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }


@dataclass
class RequirementRecord:
    """A requirement as stored in the graph.

    ``id`` and ``hash_id`` are fixed at creation; ``ref`` and ``path``
    follow renames of the owning document or section.
    """

    id: str
    hash_id: str
    ref: str
    tenant: str
    project: str
    text: str
    path: str
    title: str | None = None
    pattern: str | None = None
    verification: str | None = None
    qa_score: float | None = None
    qa_verdict: str | None = None
    suggestions: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    document_slug: str | None = None
    section_id: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    deleted: bool = False

    @property
    def display_title(self) -> str:
        return self.title or derive_title(self.text)

    @classmethod
    def from_node(cls, props: dict[str, Any]) -> RequirementRecord:
        return cls(
            id=props["id"],
            hash_id=props["hashId"],
            ref=props["ref"],
            tenant=props["tenant"],
            project=props["projectKey"],
            text=props.get("text", ""),
            path=props["path"],
            title=props.get("title"),
            pattern=props.get("pattern"),
            verification=props.get("verification"),
            qa_score=props.get("qaScore"),
            qa_verdict=props.get("qaVerdict"),
            suggestions=list(props.get("suggestions") or []),
            tags=list(props.get("tags") or []),
            document_slug=props.get("documentSlug"),
            section_id=props.get("sectionId"),
            created_at=props.get("createdAt"),
            updated_at=props.get("updatedAt"),
            deleted=bool(props.get("deleted", False)),
        )

    from_dict = from_node

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "hashId": self.hash_id,
            "ref": self.ref,
            "tenant": self.tenant,
            "projectKey": self.project,
            "title": self.display_title,
            "text": self.text,
            "pattern": self.pattern,
            "verification": self.verification,
            "qaScore": self.qa_score,
            "qaVerdict": self.qa_verdict,
            "suggestions": list(self.suggestions),
            "tags": list(self.tags),
            "path": self.path,
            "documentSlug": self.document_slug,
            "sectionId": self.section_id,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "deleted": self.deleted,
        }


__all__ = [
    "DocumentRecord",
    "DocumentUpdate",
    "ProjectRecord",
    "RequirementInput",
    "RequirementPattern",
    "RequirementRecord",
    "RequirementScope",
    "RequirementUpdate",
    "SectionRecord",
    "SectionUpdate",
    "TenantRecord",
    "VerificationMethod",
    "check_score",
    "check_str",
    "check_str_list",
    "derive_title",
    "normalize_short_code",
    "now_iso",
]
