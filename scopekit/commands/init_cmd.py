"""
InitCommand — Scope system initialization

Creates the registry document and the output/shared/events directories.
Safe to re-run: an existing registry is validated, never rewritten.
"""

from ..commands.base import BaseCommand


class InitCommand(BaseCommand):
    """Command for scope system initialization."""

    def init(self) -> int:
        symbols = self.symbols
        existed = self.layout.registry_path.exists()

        self.manager.initialize()

        if existed:
            count = len(self.manager.list_scopes())
            self.out(f"{symbols.check_pass} Scope system already initialized ({count} scope(s))")
        else:
            self.out(f"{symbols.check_pass} Scope system initialized")
        self.out(f"  Registry: {self.relative(self.layout.registry_path)}")
        self.out(f"  Output:   {self.relative(self.layout.output_root)}")
        self.out(f"  Shared:   {self.relative(self.layout.shared_root)}")

        if self.migrator.needs_migration():
            self.out(f"\n{symbols.check_warn} Legacy artifacts found. Run: scopekit migrate")
        return 0


def register_parser(subparsers):
    """Register init command parser."""
    p = subparsers.add_parser('init', help='Initialize the scope system')
    return p


def handle(cli, args):
    """Handle init command dispatch."""
    return cli._init_cmd.init()
