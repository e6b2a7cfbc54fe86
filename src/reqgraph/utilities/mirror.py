"""Markdown mirror - one file per requirement under a workspace directory.

Each file is ``<workspace>/<tenant>/<project>/requirements/<ref>.md``:
YAML front matter with the requirement metadata, a blank line, then the
requirement text.

The mirror is a derived view. The backend writes it after a transaction
commits and logs failures instead of raising them.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import yaml

from reqgraph.models import RequirementRecord

logger = logging.getLogger(__name__)

_FRONT_MATTER = re.compile(r"^---\s*\n(.*?)\n---\s*\n", re.DOTALL)


def render_requirement(record: RequirementRecord) -> str:
    """Render a requirement as markdown with YAML front matter."""
    qa: dict[str, Any] | None = None
    if record.qa_score is not None:
        qa = {
            "score": record.qa_score,
            "verdict": record.qa_verdict,
            "suggestions": list(record.suggestions),
        }
    metadata = {
        "id": record.id,
        "ref": record.ref,
        "title": record.display_title,
        "tenant": record.tenant,
        "project": record.project,
        "pattern": record.pattern,
        "verification": record.verification,
        "qa": qa,
        "tags": list(record.tags),
        "createdAt": record.created_at,
        "updatedAt": record.updated_at,
    }
    front = yaml.safe_dump(metadata, default_flow_style=False, sort_keys=False, allow_unicode=True)
    return f"---\n{front}---\n\n{record.text}\n"


def parse_front_matter(content: str) -> tuple[dict[str, Any], str]:
    """Split a mirror file into its metadata and body.

    Returns:
        ``(metadata, body)``; metadata is empty when there is no front matter.
    """
    match = _FRONT_MATTER.match(content)
    if not match:
        return {}, content
    metadata = yaml.safe_load(match.group(1)) or {}
    return metadata, content[match.end() :].strip("\n")


class MarkdownMirror:
    """Writes requirement markdown files below ``workspace``."""

    def __init__(self, workspace: Path) -> None:
        self.workspace = Path(workspace)

    def path_for(self, tenant: str, project: str, ref: str) -> Path:
        """File of ``ref``.

        Raises:
            ValueError: If the parts would place the file anywhere but
                directly in the project's requirements folder.
        """
        folder = self.workspace / tenant / project / "requirements"
        root = self.workspace.resolve()
        resolved = folder.resolve()
        if not resolved.is_relative_to(root) or Path(ref).name != ref:
            raise ValueError(f"Mirror path for {tenant}/{project}/{ref} escapes {root}")
        return folder / f"{ref}.md"

    def write(self, record: RequirementRecord) -> Path:
        """Write (or overwrite) the mirror file of ``record``."""
        path = self.path_for(record.tenant, record.project, record.ref)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(render_requirement(record), encoding="utf-8")
        logger.debug("Mirrored %s to %s", record.ref, path)
        return path

    def read(self, tenant: str, project: str, ref: str) -> str:
        """Return the raw content of a mirror file.

        Raises:
            FileNotFoundError: If no file exists for the ref.
        """
        return self.path_for(tenant, project, ref).read_text(encoding="utf-8")

    def remove(self, tenant: str, project: str, ref: str) -> bool:
        """Delete the mirror file of a ref that no longer exists."""
        path = self.path_for(tenant, project, ref)
        if not path.exists():
            return False
        path.unlink()
        return True

    def sync_renames(self, renamed: list[tuple[str, RequirementRecord]]) -> None:
        """Move mirror files after refs were rewritten.

        Every old file is removed before any new one is written, so refs
        that trade places end up with the right content.

        Args:
            renamed: ``(old_ref, record)`` pairs, record carrying the new ref.
        """
        for old_ref, record in renamed:
            if old_ref != record.ref:
                self.remove(record.tenant, record.project, old_ref)
        for _, record in renamed:
            self.write(record)


__all__ = ["MarkdownMirror", "parse_front_matter", "render_requirement"]
