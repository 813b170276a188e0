"""
Test Data Factory — Isolated scopekit projects for tests

Builds a real project under pytest's tmp_path: registry, output root,
scope directories and artifacts. Nothing is mocked except the CLI shell
handed to command classes.

Usage:
    @pytest.fixture
    def scope_env(tmp_path):
        factory = ScopeTestFactory(tmp_path)
        factory.create_scope("auth")
        factory.write_artifact("auth", "architecture/api.md", "# API")
        return factory

    def test_something(scope_env):
        cmd = scope_env.create_command(SyncCommand)
        ...
"""

from pathlib import Path
from typing import List, Optional
from unittest.mock import Mock

from scopekit.config import ProjectLayout
from scopekit.core.active import ActiveScopeFile
from scopekit.core.migrator import ScopeMigrator
from scopekit.core.models import ScopeRecord
from scopekit.core.registry import ScopeManager
from scopekit.core.sync import ScopeSync
from scopekit.presentation.symbols import ASCII


class ScopeTestFactory:
    """
    Factory for creating test scopekit environments.

    All state lives under tmp_path, so every test gets its own project.
    """

    def __init__(self, tmp_path: Path, initialize: bool = True):
        self.tmp_path = tmp_path
        self.layout = ProjectLayout(tmp_path)
        self.manager = ScopeManager(tmp_path, layout=self.layout)
        self.sync = ScopeSync(self.manager)
        self.migrator = ScopeMigrator(tmp_path, self.manager)
        self.active_file = ActiveScopeFile(tmp_path)
        self.symbols = ASCII
        if initialize:
            self.manager.initialize()

    # =========================================================================
    # Data creation
    # =========================================================================

    def create_scope(self, scope_id: str, dependencies: Optional[List[str]] = None, **kwargs) -> ScopeRecord:
        return self.manager.create_scope(scope_id, dependencies=dependencies or [], **kwargs)

    def scope_root(self, scope_id: str) -> Path:
        return self.layout.scope_paths(scope_id).root

    def write_artifact(self, scope_id: str, rel: str, content: str = "content") -> Path:
        """Write a file inside a scope directory."""
        path = self.scope_root(scope_id) / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def write_shared(self, origin: str, rel: str, content: str = "content") -> Path:
        """Write a file directly into the shared layer."""
        path = self.layout.shared_root / origin / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    def write_legacy(self, rel: str, content: str = "legacy") -> Path:
        """Write a file in the pre-scope layout directly under the output root."""
        path = self.layout.output_root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    # =========================================================================
    # Command helpers
    # =========================================================================

    def create_cli_mock(self) -> Mock:
        """
        Mock CLI carrying the real components of this project.

        Output goes to sys.stdout so capsys can read it.
        """
        cli = Mock()
        cli.project_dir = self.tmp_path
        cli.manager = self.manager
        cli.sync = self.sync
        cli.migrator = self.migrator
        cli.active_file = self.active_file
        cli.symbols = self.symbols
        cli.stdout = None
        return cli

    def create_command(self, command_class):
        """Instantiate a command class against the mock CLI."""
        return command_class(self.create_cli_mock())
