"""
Tests for Configuration — Layout discovery, settings and documents
"""

from scopekit.config import (
    ProjectLayout, RegistryDocument, Settings, dump_yaml, load_yaml,
    DEFAULT_OUTPUT_BASE, OUTPUT_BASE_ENV, SCOPES_FILE,
)
from scopekit.core.models import ScopeRecord


class TestProjectLayout:

    def test_default_paths(self, tmp_path):
        layout = ProjectLayout.discover(tmp_path)
        assert layout.output_root == tmp_path / DEFAULT_OUTPUT_BASE
        assert layout.shared_root == tmp_path / DEFAULT_OUTPUT_BASE / "_shared"
        assert layout.registry_path.name == SCOPES_FILE
        assert layout.active_scope_path == tmp_path / ".scopekit-scope"

    def test_env_overrides_output_base(self, tmp_path, monkeypatch):
        monkeypatch.setenv(OUTPUT_BASE_ENV, "build")
        layout = ProjectLayout.discover(tmp_path)
        assert layout.output_root == tmp_path / "build"

    def test_registry_settings_set_output_base(self, tmp_path):
        layout = ProjectLayout(tmp_path)
        dump_yaml(layout.registry_path, {
            "version": 1,
            "settings": {"default_output_base": "artifacts"},
            "scopes": {},
        })
        assert ProjectLayout.discover(tmp_path).output_root == tmp_path / "artifacts"

    def test_corrupt_registry_falls_back_to_default(self, tmp_path):
        layout = ProjectLayout(tmp_path)
        layout.registry_path.parent.mkdir(parents=True)
        layout.registry_path.write_text("version: [unclosed", encoding="utf-8")
        assert ProjectLayout.discover(tmp_path).output_base == DEFAULT_OUTPUT_BASE

    def test_scope_paths(self, tmp_path):
        paths = ProjectLayout(tmp_path).scope_paths("auth")
        root = tmp_path / DEFAULT_OUTPUT_BASE / "auth"
        assert paths.root == root
        assert paths.planning == root / "planning-artifacts"
        assert paths.implementation == root / "implementation-artifacts"
        assert paths.tests == root / "tests"
        assert paths.pulled == root / "shared"
        assert paths.skeleton() == [paths.planning, paths.implementation, paths.tests]


class TestSettings:

    def test_defaults_are_valid(self):
        assert Settings().validate() is None

    def test_invalid_isolation_mode(self):
        assert "isolation_mode" in Settings(isolation_mode="loose").validate()

    def test_shared_path_follows_output_base(self):
        settings = Settings.from_dict({"default_output_base": "build"})
        assert settings.default_shared_path == "build/_shared"


class TestRegistryDocument:

    def test_unknown_keys_survive(self, tmp_path):
        raw = {"version": 1, "settings": {}, "scopes": {}, "owner": "platform-team"}
        document = RegistryDocument.from_dict(raw)
        assert document.to_dict()["owner"] == "platform-team"

    def test_yaml_round_trip(self, tmp_path):
        document = RegistryDocument(scopes={"auth": ScopeRecord(id="auth", dependencies=[])})
        path = tmp_path / "scopes.yaml"
        dump_yaml(path, document.to_dict(), header="# header\n")
        assert path.read_text(encoding="utf-8").startswith("# header\n")
        loaded = RegistryDocument.from_dict(load_yaml(path))
        assert loaded.scopes["auth"].name == "auth"
        assert loaded.scopes["auth"].to_dict()["_meta"]["artifact_count"] == 0
