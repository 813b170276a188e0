"""
Tests for CLI — End-to-end command runs through main()

Each test drives the real parser and command registry against a project
under tmp_path and checks exit codes and printed output.
"""

import pytest

from scopekit.cli import main
from scopekit.commands import get_registered_commands
from scopekit.core.active import ActiveScopeFile
from scopekit.core.registry import ScopeManager


@pytest.fixture
def run(tmp_path):
    """Run the CLI against tmp_path and return the exit code."""
    def _run(*argv):
        return main(["--project", str(tmp_path), *argv])
    return _run


@pytest.fixture
def project(run, capsys):
    """Initialized project with auth and payments (depends on auth)."""
    assert run("init") == 0
    assert run("create", "auth", "--name", "Authentication") == 0
    assert run("create", "payments", "--deps", "auth") == 0
    capsys.readouterr()
    return run


class TestEntryPoint:

    def test_no_command_prints_help(self, run, capsys):
        assert run() == 1
        assert "usage" in capsys.readouterr().out.lower()

    def test_registers_every_command(self, run):
        run("list")
        assert set(get_registered_commands()) == {
            "init", "list", "create", "info", "remove", "archive", "activate",
            "set", "unset", "file-enable", "file-disable",
            "sync-up", "sync-down", "sync-status", "migrate", "rollback",
        }

    def test_scope_error_exits_1(self, project, capsys):
        assert project("info", "ghost") == 1
        assert "Error: Scope 'ghost' does not exist" in capsys.readouterr().err

    def test_version(self, run, capsys):
        with pytest.raises(SystemExit):
            run("--version")
        assert "scopekit" in capsys.readouterr().out


class TestScopeCommands:

    def test_init(self, run, capsys, tmp_path):
        assert run("init") == 0
        out = capsys.readouterr().out
        assert "Scope system initialized" in out
        assert (tmp_path / ".scopekit" / "_config" / "scopes.yaml").exists()

        assert run("init") == 0
        assert "already initialized" in capsys.readouterr().out

    def test_list(self, project, capsys):
        assert project("list") == 0
        out = capsys.readouterr().out
        assert "auth" in out
        assert "payments" in out
        assert "2 scope(s)" in out

    def test_list_empty(self, run, capsys):
        run("init")
        capsys.readouterr()
        assert run("list", "--status", "archived") == 0
        assert "No scopes" in capsys.readouterr().out

    def test_create_invalid(self, project, capsys):
        assert project("create", "Bad") == 1
        assert "lowercase" in capsys.readouterr().err

    def test_create_duplicate(self, project, capsys):
        assert project("create", "auth") == 1
        assert "already exists" in capsys.readouterr().err

    def test_info(self, project, capsys):
        assert project("info", "payments") == 0
        out = capsys.readouterr().out
        assert "Dependencies:" in out
        assert "auth (active)" in out

    def test_archive_and_activate(self, project, tmp_path):
        assert project("archive", "auth") == 0
        assert ScopeManager(tmp_path).get_scope("auth").status.value == "archived"
        assert project("activate", "auth") == 0
        assert ScopeManager(tmp_path).get_scope("auth").status.value == "active"

    def test_remove_blocked_by_dependents(self, project, capsys, tmp_path):
        assert project("remove", "auth") == 1
        assert "depend on it" in capsys.readouterr().err
        assert (tmp_path / "_output" / "auth").is_dir()

    def test_remove_force(self, project, capsys, tmp_path):
        assert project("remove", "auth", "--force") == 0
        out = capsys.readouterr().out
        assert "Removed scope 'auth'" in out
        assert "Backup:" in out
        manager = ScopeManager(tmp_path)
        assert not manager.scope_exists("auth")
        assert manager.get_scope("payments").dependencies == []
        assert not (tmp_path / "_output" / "auth").exists()

    def test_remove_dry_run(self, project, capsys, tmp_path):
        assert project("remove", "auth", "--dry-run") == 0
        assert "[Dry Run]" in capsys.readouterr().out
        assert ScopeManager(tmp_path).scope_exists("auth")

    def test_remove_clears_active_marker(self, project, tmp_path):
        project("set", "payments")
        assert project("remove", "payments", "--no-backup") == 0
        state = ActiveScopeFile(tmp_path).read()
        assert state.exists
        assert not state.enabled
        assert state.active_scope is None


class TestActiveCommands:

    def test_set_and_show(self, project, capsys, tmp_path):
        assert project("set", "auth") == 0
        assert ActiveScopeFile(tmp_path).read().effective_scope == "auth"
        capsys.readouterr()
        assert project("set") == 0
        assert "Current active scope: auth" in capsys.readouterr().out

    def test_set_unknown(self, project, capsys):
        assert project("set", "ghost") == 1

    def test_set_archived_needs_force(self, project, tmp_path):
        project("archive", "auth")
        assert project("set", "auth") == 1
        assert project("set", "auth", "--force") == 0

    def test_file_disable_enable_unset(self, project, tmp_path):
        project("set", "auth")
        assert project("file-disable") == 0
        assert ActiveScopeFile(tmp_path).read().effective_scope is None
        assert project("file-enable") == 0
        assert ActiveScopeFile(tmp_path).read().effective_scope == "auth"
        assert project("unset") == 0
        assert not ActiveScopeFile(tmp_path).read().exists


class TestSyncCommands:

    def _write(self, tmp_path, scope, rel, content):
        path = tmp_path / "_output" / scope / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def test_sync_up_and_down(self, project, capsys, tmp_path):
        self._write(tmp_path, "auth", "architecture/api.md", "# API")
        assert project("sync-up", "auth") == 0
        assert "Promoted 1 file(s)" in capsys.readouterr().out

        assert project("sync-down", "payments") == 0
        assert "Pulled 1 file(s)" in capsys.readouterr().out
        assert (tmp_path / "_output" / "payments" / "shared" / "auth" / "architecture" / "api.md").exists()

        assert project("sync-status", "payments") == 0
        assert "auth/architecture/api.md" in capsys.readouterr().out

    def test_nothing_to_promote(self, project, capsys):
        assert project("sync-up", "auth") == 0
        assert "Nothing to promote" in capsys.readouterr().out

    def test_conflict_exit_code_and_resolutions(self, project, capsys, tmp_path):
        self._write(tmp_path, "auth", "architecture/api.md", "# API")
        project("sync-up", "auth")
        self._write(tmp_path, "_shared", "auth/architecture/api.md", "# shared edit")
        self._write(tmp_path, "auth", "architecture/api.md", "# local edit")
        capsys.readouterr()

        assert project("sync-up", "auth") == 1
        assert "--resolution" in capsys.readouterr().out

        assert project("sync-up", "auth", "--resolution", "keep-shared") == 0
        shared = tmp_path / "_output" / "_shared" / "auth" / "architecture" / "api.md"
        assert shared.read_text(encoding="utf-8") == "# shared edit"

        assert project("sync-up", "auth", "--resolution", "keep-local") == 0
        assert shared.read_text(encoding="utf-8") == "# local edit"

    def test_dry_run(self, project, capsys, tmp_path):
        self._write(tmp_path, "auth", "architecture/api.md", "# API")
        assert project("sync-up", "auth", "--dry-run") == 0
        assert "[Dry Run] Would promote 1 file(s)" in capsys.readouterr().out
        assert not (tmp_path / "_output" / "_shared" / "auth").exists()

    def test_unknown_scope(self, project, capsys):
        assert project("sync-down", "ghost") == 1
        assert "does not exist" in capsys.readouterr().err


class TestMigrateCommands:

    def _legacy(self, tmp_path):
        path = tmp_path / "_output" / "planning-artifacts" / "prd.md"
        path.parent.mkdir(parents=True)
        path.write_text("prd", encoding="utf-8")

    def test_no_migration_needed(self, run, capsys):
        assert run("migrate") == 0
        assert "No migration needed" in capsys.readouterr().out

    def test_migrate_dry_run(self, run, capsys, tmp_path):
        self._legacy(tmp_path)
        assert run("migrate", "--dry-run") == 0
        assert "[Dry Run] Would migrate to scope 'default'" in capsys.readouterr().out
        assert (tmp_path / "_output" / "planning-artifacts" / "prd.md").exists()

    def test_migrate_and_rollback(self, run, capsys, tmp_path):
        self._legacy(tmp_path)
        assert run("migrate", "legacy") == 0
        out = capsys.readouterr().out
        assert "Migrated 1 file(s) to scope 'legacy'" in out
        assert (tmp_path / "_output" / "legacy" / "planning-artifacts" / "prd.md").exists()

        assert run("rollback", "--list") == 0
        listing = capsys.readouterr().out
        assert "_backup_migration_" in listing

        backup_name = next(p.name for p in (tmp_path / "_output").iterdir()
                           if p.name.startswith("_backup_migration_"))
        assert run("rollback", backup_name) == 0
        assert "Restored 1 file(s)" in capsys.readouterr().out
        assert (tmp_path / "_output" / "planning-artifacts" / "prd.md").exists()

    def test_rollback_missing(self, run, capsys):
        assert run("rollback", "_backup_migration_1") == 1
        assert "Backup '_backup_migration_1' does not exist" in capsys.readouterr().err

    def test_rollback_without_name_lists(self, run, capsys):
        assert run("rollback") == 1
        assert "No backups found" in capsys.readouterr().out

    def test_rollback_scope_removal(self, project, capsys, tmp_path):
        assert project("remove", "auth", "--force") == 0
        capsys.readouterr()
        backup_name = next(p.name for p in (tmp_path / "_output").iterdir()
                           if p.name.startswith("_backup_auth_"))

        assert project("rollback", backup_name) == 0
        assert "Registered scope 'auth' again" in capsys.readouterr().out
        assert ScopeManager(tmp_path).get_scope("auth").name == "Authentication"
