"""
Tests for Registry — Scope CRUD over scopes.yaml

Every test runs against a real registry file under tmp_path.
"""

import pytest
import yaml

from scopekit.core.errors import (
    InvalidFormatError, InvalidUpdateError, InvalidConfigError, AlreadyExistsError,
    NotFoundError, HasDependentsError, CircularDependencyError, ScopeError,
)
from scopekit.core.events import EventType
from scopekit.core.models import ScopeStatus
from scopekit.core.registry import ScopeManager


class TestInitialize:

    def test_creates_registry_and_directories(self, tmp_path):
        manager = ScopeManager(tmp_path)
        assert manager.initialize() is True
        assert manager.layout.registry_path.exists()
        assert manager.layout.shared_root.is_dir()
        assert manager.list_scopes() == []

    def test_idempotent(self, scope_env):
        before = scope_env.layout.registry_path.read_text(encoding="utf-8")
        assert scope_env.manager.initialize() is True
        assert scope_env.layout.registry_path.read_text(encoding="utf-8") == before
        assert len(scope_env.manager.list_scopes()) == 2

    def test_invalid_yaml_raises(self, tmp_path):
        manager = ScopeManager(tmp_path)
        manager.layout.registry_path.parent.mkdir(parents=True)
        manager.layout.registry_path.write_text("scopes: [unclosed", encoding="utf-8")
        with pytest.raises(InvalidConfigError):
            manager.initialize()

    def test_empty_document_raises(self, tmp_path):
        manager = ScopeManager(tmp_path)
        manager.layout.registry_path.parent.mkdir(parents=True)
        manager.layout.registry_path.write_text("", encoding="utf-8")
        with pytest.raises(InvalidConfigError):
            manager.load_config()

    def test_schema_violation_lists_errors(self, tmp_path):
        manager = ScopeManager(tmp_path)
        manager.layout.registry_path.parent.mkdir(parents=True)
        manager.layout.registry_path.write_text(
            yaml.safe_dump({"version": 1, "scopes": {"auth": {"id": "billing", "name": "x"}}}),
            encoding="utf-8",
        )
        with pytest.raises(InvalidConfigError) as exc:
            manager.load_config()
        assert any("does not match" in e for e in exc.value.errors)

    def test_missing_registry_yields_default(self, tmp_path):
        manager = ScopeManager(tmp_path)
        assert manager.load_config().scopes == {}
        assert not manager.layout.registry_path.exists()

    def test_unquoted_timestamps_are_read_as_strings(self, tmp_path):
        manager = ScopeManager(tmp_path)
        manager.layout.registry_path.parent.mkdir(parents=True)
        manager.layout.registry_path.write_text(
            "version: 1\n"
            "scopes:\n"
            "  auth:\n"
            "    id: auth\n"
            "    name: Auth\n"
            "    created: 2024-01-15T10:00:00Z\n"
            "    _meta:\n"
            "      last_activity: 2024-01-16T10:00:00Z\n"
            "  payments:\n"
            "    id: payments\n"
            "    name: Payments\n"
            "    created: 2024-02-15\n",
            encoding="utf-8",
        )
        assert manager.initialize() is True

        scopes = manager.list_scopes()
        assert [s.id for s in scopes] == ["payments", "auth"]
        assert scopes[0].created == "2024-02-15"
        assert scopes[1].created.startswith("2024-01-15T10:00:00")
        assert isinstance(scopes[1].meta.last_activity, str)


class TestCreate:

    def test_create_registers_and_builds_skeleton(self, scope_factory):
        record = scope_factory.create_scope("auth", name="Authentication", description="Login")
        assert record.name == "Authentication"
        assert record.status == ScopeStatus.ACTIVE
        paths = scope_factory.layout.scope_paths("auth")
        assert all(d.is_dir() for d in paths.skeleton())
        assert paths.meta.exists()

    def test_name_defaults_to_id(self, scope_factory):
        assert scope_factory.create_scope("auth").name == "auth"

    def test_persisted_across_instances(self, scope_factory):
        scope_factory.create_scope("auth")
        fresh = ScopeManager(scope_factory.tmp_path)
        assert fresh.scope_exists("auth")

    def test_invalid_id(self, scope_factory):
        with pytest.raises(InvalidFormatError) as exc:
            scope_factory.create_scope("Auth")
        assert exc.value.kind == "invalid_format"

    def test_reserved_id(self, scope_factory):
        with pytest.raises(InvalidFormatError) as exc:
            scope_factory.create_scope("global")
        assert exc.value.kind == "reserved"

    def test_duplicate(self, scope_env):
        with pytest.raises(AlreadyExistsError):
            scope_env.create_scope("auth")

    def test_unknown_dependency(self, scope_factory):
        with pytest.raises(InvalidFormatError) as exc:
            scope_factory.create_scope("payments", dependencies=["ghost"])
        assert "Dependency 'ghost' does not exist" in exc.value.message
        assert not scope_factory.manager.scope_exists("payments")

    def test_context_file(self, scope_factory):
        scope_factory.create_scope("auth", create_context=True)
        context = scope_factory.scope_root("auth") / "project-context.md"
        assert "auth" in context.read_text(encoding="utf-8")

    def test_directory_failure_withdraws_entry(self, scope_factory, monkeypatch):
        def boom(*args, **kwargs):
            raise OSError("disk full")

        monkeypatch.setattr(scope_factory.manager.initializer, "initialize_scope", boom)
        with pytest.raises(ScopeError) as exc:
            scope_factory.create_scope("auth")
        assert "disk full" in exc.value.message
        assert not ScopeManager(scope_factory.tmp_path).scope_exists("auth")

    def test_records_event(self, scope_factory):
        scope_factory.create_scope("auth")
        events = scope_factory.manager.events.read_for_scope("auth")
        assert [e.type for e in events] == [EventType.SCOPE_CREATED]


class TestQueries:

    def test_get_scope_unknown_is_none(self, scope_env):
        assert scope_env.manager.get_scope("ghost") is None

    def test_list_newest_first(self, scope_env):
        ids = [r.id for r in scope_env.manager.list_scopes()]
        assert ids == ["payments", "auth"]

    def test_list_by_status(self, scope_env):
        scope_env.manager.archive_scope("auth")
        assert [r.id for r in scope_env.manager.list_scopes("archived")] == ["auth"]
        assert [r.id for r in scope_env.manager.list_scopes(ScopeStatus.ACTIVE)] == ["payments"]

    def test_not_found_suggests_close_ids(self, scope_env):
        with pytest.raises(NotFoundError) as exc:
            scope_env.manager.require_scope("auht")
        assert "auth" in exc.value.suggestions
        assert "Did you mean" in exc.value.message

    def test_dependency_tree(self, scope_env):
        tree = scope_env.manager.get_dependency_tree("payments")
        assert [(d.scope, d.status) for d in tree.dependencies] == [("auth", "active")]
        assert scope_env.manager.get_dependency_tree("auth").dependents == ["payments"]

    def test_find_dependents_without_registry(self, scope_env):
        assert scope_env.manager.find_dependent_scopes("auth", None) == []

    def test_find_dependents_on_raw_mappings(self, scope_env):
        raw = {"b": {"dependencies": ["a"]}, "c": {"dependencies": []}}
        assert scope_env.manager.find_dependent_scopes("a", raw) == ["b"]

    def test_get_scope_paths_requires_scope(self, scope_env):
        with pytest.raises(NotFoundError):
            scope_env.manager.get_scope_paths("ghost")


class TestUpdate:

    def test_update_fields(self, scope_env):
        record = scope_env.manager.update_scope("auth", {"name": "Auth", "description": "Login"})
        assert record.name == "Auth"
        assert ScopeManager(scope_env.tmp_path).get_scope("auth").description == "Login"

    def test_id_is_ignored(self, scope_env):
        record = scope_env.manager.update_scope("auth", {"id": "other", "name": "Auth"})
        assert record.id == "auth"
        assert not scope_env.manager.scope_exists("other")

    def test_invalid_update_lists_all_errors(self, scope_env):
        with pytest.raises(InvalidUpdateError) as exc:
            scope_env.manager.update_scope("auth", {"name": "", "status": "frozen"})
        assert len(exc.value.errors) == 2
        assert scope_env.manager.get_scope("auth").name == "Authentication"

    def test_cycle_rejected(self, scope_env):
        with pytest.raises(CircularDependencyError) as exc:
            scope_env.manager.update_scope("auth", {"dependencies": ["payments"]})
        assert exc.value.chain == ["auth", "payments", "auth"]

    def test_self_dependency_rejected(self, scope_env):
        with pytest.raises(InvalidUpdateError):
            scope_env.manager.update_scope("auth", {"dependencies": ["auth"]})

    def test_touches_last_activity(self, scope_env):
        before = scope_env.manager.get_scope("auth").meta.last_activity
        after = scope_env.manager.update_scope("auth", {"description": "x"}).meta.last_activity
        assert after >= before


class TestRemove:

    def test_blocked_by_dependents(self, scope_env):
        with pytest.raises(HasDependentsError) as exc:
            scope_env.manager.remove_scope("auth")
        assert exc.value.dependents == ["payments"]
        assert scope_env.manager.scope_exists("auth")

    def test_force_strips_dependency(self, scope_env):
        assert scope_env.manager.remove_scope("auth", force=True) is True
        assert not scope_env.manager.scope_exists("auth")
        assert scope_env.manager.get_scope("payments").dependencies == []

    def test_leaves_directory(self, scope_env):
        scope_env.manager.remove_scope("payments")
        assert scope_env.scope_root("payments").is_dir()

    def test_unknown(self, scope_env):
        with pytest.raises(NotFoundError):
            scope_env.manager.remove_scope("ghost")


class TestStatus:

    def test_archive_and_activate(self, scope_env):
        assert scope_env.manager.archive_scope("auth").status == ScopeStatus.ARCHIVED
        assert scope_env.manager.activate_scope("auth").status == ScopeStatus.ACTIVE
        types = [e.type for e in scope_env.manager.events.read_for_scope("auth")]
        assert EventType.SCOPE_ARCHIVED in types
        assert EventType.SCOPE_ACTIVATED in types

    def test_artifact_count(self, scope_env):
        scope_env.manager.set_artifact_count("auth", 4)
        assert ScopeManager(scope_env.tmp_path).get_scope("auth").meta.artifact_count == 4


class TestCache:

    def test_force_reload_sees_external_edits(self, scope_env):
        other = ScopeManager(scope_env.tmp_path)
        other.create_scope("billing")
        assert not scope_env.manager.scope_exists("billing")
        scope_env.manager.load_config(force_reload=True)
        assert scope_env.manager.scope_exists("billing")

    def test_set_project_root_drops_cache(self, scope_env, tmp_path_factory):
        other_root = tmp_path_factory.mktemp("other")
        scope_env.manager.set_project_root(other_root)
        assert scope_env.manager.list_scopes() == []
        assert scope_env.manager.project_root == other_root
