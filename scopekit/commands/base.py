"""
BaseCommand — Shared foundation for all CLI commands

Commands receive the CLI instance and reach its resources through
properties instead of building their own.
"""

from typing import TYPE_CHECKING

from ..presentation.symbols import safe_print

if TYPE_CHECKING:
    from ..cli import ScopeCLI


class BaseCommand:
    """Base class for CLI commands with access to shared resources."""

    def __init__(self, cli: 'ScopeCLI'):
        self._cli = cli

    # -------------------------------------------------------------------------
    # Core resources
    # -------------------------------------------------------------------------

    @property
    def project_dir(self):
        """Project root directory."""
        return self._cli.project_dir

    @property
    def layout(self):
        """Derived project paths."""
        return self._cli.manager.layout

    @property
    def manager(self):
        """Scope registry."""
        return self._cli.manager

    @property
    def initializer(self):
        return self._cli.manager.initializer

    @property
    def sync(self):
        return self._cli.sync

    @property
    def migrator(self):
        return self._cli.migrator

    @property
    def active_file(self):
        """Active-scope marker."""
        return self._cli.active_file

    @property
    def symbols(self):
        """Symbol set for display (Unicode/ASCII)."""
        return self._cli.symbols

    # -------------------------------------------------------------------------
    # Output
    # -------------------------------------------------------------------------

    def out(self, text: str = ""):
        safe_print(text, file=self._cli.stdout)

    def relative(self, path) -> str:
        """Path relative to the project root when possible."""
        try:
            return str(path.relative_to(self.project_dir))
        except ValueError:
            return str(path)
