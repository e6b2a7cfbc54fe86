"""Tests for the markdown mirror."""

import pytest


@pytest.fixture
def mirrored(store, tmp_path):
    """Backend writing a markdown mirror under ``tmp_path``."""
    from reqgraph.backend import RequirementsBackend
    from reqgraph.cache import MemoryCache
    from reqgraph.utilities.mirror import MarkdownMirror

    backend = RequirementsBackend(store, MemoryCache(), MarkdownMirror(tmp_path))
    backend.create_document("acme", "apollo", "SRD", slug="srd", short_code="SRD")
    return backend


def _create(backend, text, **fields):
    from reqgraph.models import RequirementInput, RequirementScope

    scope = RequirementScope("acme", "apollo", "srd")
    return backend.create_requirement(scope, RequirementInput(text=text, **fields))


class TestRender:
    """Front matter layout."""

    def test_front_matter_and_body(self):
        from reqgraph.models import RequirementRecord
        from reqgraph.utilities.mirror import parse_front_matter, render_requirement

        record = RequirementRecord(
            id="acme:apollo:SRD-001",
            hash_id="abc123",
            ref="SRD-001",
            tenant="acme",
            project="apollo",
            text="The system shall boot in under 5 seconds.",
            path="acme/apollo/requirements/SRD-001.md",
            pattern="ubiquitous",
            qa_score=91.0,
            qa_verdict="pass",
            tags=["boot"],
        )
        content = render_requirement(record)
        assert content.startswith("---\n")

        metadata, body = parse_front_matter(content)
        assert list(metadata) == [
            "id",
            "ref",
            "title",
            "tenant",
            "project",
            "pattern",
            "verification",
            "qa",
            "tags",
            "createdAt",
            "updatedAt",
        ]
        assert metadata["title"] == "The system shall boot in under 5 seconds."
        assert metadata["qa"] == {"score": 91.0, "verdict": "pass", "suggestions": []}
        assert body == "The system shall boot in under 5 seconds."

    def test_no_front_matter(self):
        from reqgraph.utilities.mirror import parse_front_matter

        assert parse_front_matter("plain text") == ({}, "plain text")


class TestBackendMirror:
    """Files follow creates, edits and renames."""

    def test_create_writes_file(self, mirrored, tmp_path):
        from reqgraph.utilities.mirror import parse_front_matter

        record = _create(mirrored, "Mirror me.")
        path = tmp_path / "acme" / "apollo" / "requirements" / "SRD-001.md"
        assert path.exists()
        metadata, body = parse_front_matter(path.read_text())
        assert metadata["id"] == record.id
        assert body == "Mirror me."
        assert mirrored.stats()["mirror"] is True

    def test_update_rewrites_file(self, mirrored):
        from reqgraph.models import RequirementUpdate

        record = _create(mirrored, "Old.")
        mirrored.update_requirement("acme", "apollo", record.id, RequirementUpdate(text="New."))
        assert mirrored.mirror.read("acme", "apollo", "SRD-001").endswith("New.\n")

    def test_rename_moves_files(self, mirrored, tmp_path):
        from reqgraph.models import DocumentUpdate

        _create(mirrored, "One.")
        _create(mirrored, "Two.")
        mirrored.update_document("acme", "apollo", "srd", DocumentUpdate(short_code="SYS"))

        folder = tmp_path / "acme" / "apollo" / "requirements"
        assert sorted(p.name for p in folder.iterdir()) == ["SYS-001.md", "SYS-002.md"]

    def test_failure_logged_not_raised(self, mirrored, monkeypatch, caplog):
        def broken(record):
            raise OSError("read-only filesystem")

        monkeypatch.setattr(mirrored.mirror, "write", broken)
        record = _create(mirrored, "Still stored.")
        assert mirrored.get_requirement("acme", "apollo", record.ref) is not None
        assert "Markdown mirror write failed" in caplog.text

    def test_remove_missing(self, tmp_path):
        from reqgraph.utilities.mirror import MarkdownMirror

        assert MarkdownMirror(tmp_path).remove("acme", "apollo", "SRD-001") is False


class TestContainment:
    """Mirror files stay in the project's requirements folder."""

    @pytest.mark.parametrize(
        "tenant,project,ref",
        [
            ("acme", "apollo", "../../escaped"),
            ("acme", "apollo", "SRD/001"),
            ("..", "..", "SRD-001"),
            ("acme", "../../..", "SRD-001"),
        ],
    )
    def test_path_outside_rejected(self, tmp_path, tenant, project, ref):
        from reqgraph.utilities.mirror import MarkdownMirror

        with pytest.raises(ValueError, match="escapes"):
            MarkdownMirror(tmp_path / "ws").path_for(tenant, project, ref)

    def test_path_inside(self, tmp_path):
        from reqgraph.utilities.mirror import MarkdownMirror

        path = MarkdownMirror(tmp_path).path_for("acme", "apollo", "SRD-PWR-001")
        assert path == tmp_path / "acme" / "apollo" / "requirements" / "SRD-PWR-001.md"

    def test_traversing_short_code_rejected(self, mirrored, tmp_path):
        from reqgraph.errors import ValidationError
        from reqgraph.models import DocumentUpdate

        _create(mirrored, "One.")
        with pytest.raises(ValidationError, match="Invalid short code"):
            mirrored.create_document("acme", "apollo", "Escape", short_code="../../escaped")
        with pytest.raises(ValidationError, match="Invalid short code"):
            mirrored.update_document("acme", "apollo", "srd", DocumentUpdate(short_code="../x"))

        assert mirrored.get_requirement("acme", "apollo", "SRD-001") is not None
        assert sorted(p.name for p in tmp_path.rglob("*.md")) == ["SRD-001.md"]

    def test_unsafe_section_name_not_mirrored(self, mirrored, tmp_path, caplog):
        from reqgraph.models import RequirementInput, RequirementScope

        section = mirrored.create_section("acme", "apollo", "srd", "../up")
        scope = RequirementScope("acme", "apollo", "srd", section.id)
        record = mirrored.create_requirement(scope, RequirementInput("Stored anyway."))

        assert record.ref == "SRD-../UP-001"
        assert "Markdown mirror write failed" in caplog.text
        assert list(tmp_path.rglob("*.md")) == []
