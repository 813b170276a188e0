"""
ActiveCommand — The active-scope marker from the command line

set <id>      point the marker at a scope (and enable it)
unset         delete the marker
file-enable   re-enable the marker, keeping its scope
file-disable  keep the marker but have resolvers ignore it
"""

from typing import Optional

from ..commands.base import BaseCommand
from ..core.errors import ScopeError


class ActiveCommand(BaseCommand):
    """Active-scope marker commands."""

    def show(self) -> int:
        state = self.active_file.read()
        if not state.exists or not state.active_scope:
            self.out("No active scope is set. Set one with: scopekit set <id>")
            return 0
        suffix = "" if state.enabled else " (file disabled)"
        self.out(f"Current active scope: {state.active_scope}{suffix}")
        return 0

    def set(self, scope_id: Optional[str], force: bool = False) -> int:
        if not scope_id:
            return self.show()

        record = self.manager.require_scope(scope_id)
        if not record.is_active and not force:
            raise ScopeError(
                f"Scope '{scope_id}' is archived. Activate it first "
                f"(scopekit activate {scope_id}) or pass --force"
            )

        self.active_file.set(scope_id)
        self.out(f"{self.symbols.check_pass} Active scope set to '{scope_id}'")
        self.out(f"  File: {self.relative(self.active_file.path)}")
        return 0

    def unset(self) -> int:
        if self.active_file.clear():
            self.out(f"{self.symbols.check_pass} Active scope cleared")
        else:
            self.out("No active scope is set")
        return 0

    def file_enable(self) -> int:
        state = self.active_file.enable()
        if state is None:
            self.out(f"No {self.active_file.path.name} file found. Create one with: scopekit set <id>")
            return 0
        self.out(f"{self.symbols.check_pass} Enabled {self.active_file.path.name}")
        if not state.active_scope:
            self.out(f"  {self.symbols.check_warn} No active_scope is set")
        return 0

    def file_disable(self) -> int:
        state = self.active_file.disable()
        if state is None:
            self.out(f"No {self.active_file.path.name} file found")
            return 0
        self.out(f"{self.symbols.check_pass} Disabled {self.active_file.path.name}")
        if state.active_scope:
            self.out(f"  Preserved active_scope: {state.active_scope}")
        return 0


# =============================================================================
# Command Registration (self-registration pattern)
# =============================================================================

COMMAND_NAMES = ['set', 'unset', 'file-enable', 'file-disable']


def register_parser(subparsers):
    """Register active-scope marker command parsers."""
    p = subparsers.add_parser('set', help='Set the active scope (no id: show it)')
    p.add_argument('scope_id', nargs='?')
    p.add_argument('--force', '-f', action='store_true',
                   help='Allow an archived scope')

    subparsers.add_parser('unset', help='Clear the active scope')
    subparsers.add_parser('file-enable', help='Re-enable the active scope file')
    subparsers.add_parser('file-disable', help='Keep the active scope file but ignore it')


def handle(cli, args):
    """Handle active-scope marker command dispatch."""
    cmd = cli._active_cmd
    if args.command == 'set':
        return cmd.set(args.scope_id, force=args.force)
    elif args.command == 'unset':
        return cmd.unset()
    elif args.command == 'file-enable':
        return cmd.file_enable()
    elif args.command == 'file-disable':
        return cmd.file_disable()
