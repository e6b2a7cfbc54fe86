"""Tests for building a backend from configuration."""

import pytest


class TestFromConfig:
    """RequirementsBackend.from_config wiring."""

    def test_relative_paths_resolve_against_base_dir(self, tmp_path):
        from reqgraph.backend import RequirementsBackend
        from reqgraph.config import load_config
        from reqgraph.models import RequirementInput, RequirementScope

        path = tmp_path / ".reqgraph.toml"
        path.write_text(
            '[store]\nsnapshot = "data/graph.json"\n\n'
            '[mirror]\nenabled = true\nworkspace = "ws"\n\n'
            '[defaults]\ntenant = "acme"\n'
        )
        (tmp_path / "data").mkdir()
        backend = RequirementsBackend.from_config(load_config(path, apply_env=False), base_dir=tmp_path)

        assert backend.default_tenant == "acme"
        assert backend.max_suffix is None
        assert backend.mirror.workspace == tmp_path / "ws"

        backend.create_document("acme", "apollo", "SRD", slug="srd")
        backend.create_requirement(RequirementScope("acme", "apollo", "srd"), RequirementInput("X."))
        assert (tmp_path / "data" / "graph.json").exists()
        assert (tmp_path / "ws" / "acme" / "apollo" / "requirements" / "SRD-001.md").exists()

    def test_settings_from_environment_strings(self, monkeypatch):
        from reqgraph.backend import RequirementsBackend
        from reqgraph.cache import NullCache
        from reqgraph.config import load_config

        monkeypatch.setenv("REQGRAPH_CACHE_BACKEND", "none")
        monkeypatch.setenv("REQGRAPH_REFS_MAX_SUFFIX", "5")
        monkeypatch.setenv("REQGRAPH_CACHE_TTL_DOCUMENTS", "7")
        backend = RequirementsBackend.from_config(load_config(None))

        assert isinstance(backend.cache, NullCache)
        assert backend.max_suffix == 5
        assert backend.ttl_documents == 7
        assert backend.stats()["mirror"] is False

    def test_unknown_store_backend(self):
        from reqgraph.backend import RequirementsBackend
        from reqgraph.errors import ValidationError

        with pytest.raises(ValidationError, match="Unknown store backend"):
            RequirementsBackend.from_config({"store": {"backend": "sqlite"}})
