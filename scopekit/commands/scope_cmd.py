"""
ScopeCommand — Scope lifecycle from the command line

list, create, info, remove, archive, activate.

Removal pairs the two halves of a scope: the directory (backed up first
unless --no-backup) and the registry entry. Dependents block removal
unless --force, in which case they lose the dependency.
"""

from typing import List, Optional

from ..commands.base import BaseCommand
from ..core.errors import HasDependentsError
from ..presentation.symbols import status_symbol, truncate


def _split_deps(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return [d.strip() for d in raw.split(",") if d.strip()]


class ScopeCommand(BaseCommand):
    """Registry-facing scope commands."""

    def list_scopes(self, status: Optional[str] = None) -> int:
        symbols = self.symbols
        scopes = self.manager.list_scopes(status)
        if not scopes:
            suffix = f" with status '{status}'" if status else ""
            self.out(f"No scopes{suffix}. Create one with: scopekit create <id>")
            return 0

        width = max(len(s.id) for s in scopes)
        for record in scopes:
            deps = f"  {symbols.arrow} {', '.join(record.dependencies)}" if record.dependencies else ""
            self.out(
                f"{status_symbol(symbols, record.status)} {record.id.ljust(width)}  "
                f"{truncate(record.name)}{deps}"
            )
        self.out(f"\n{len(scopes)} scope(s)")
        return 0

    def create(
        self,
        scope_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        deps: Optional[str] = None,
        context: bool = False,
    ) -> int:
        self.manager.initialize()
        record = self.manager.create_scope(
            scope_id,
            name=name or "",
            description=description or "",
            dependencies=_split_deps(deps),
            create_context=context,
        )
        paths = self.layout.scope_paths(record.id)
        self.out(f"{self.symbols.check_pass} Created scope '{record.id}'")
        self.out(f"  Directory: {self.relative(paths.root)}")
        if record.dependencies:
            self.out(f"  Depends on: {', '.join(record.dependencies)}")
        return 0

    def info(self, scope_id: str) -> int:
        symbols = self.symbols
        record = self.manager.require_scope(scope_id)
        paths = self.manager.get_scope_paths(scope_id)
        tree = self.manager.get_dependency_tree(scope_id)
        status = self.sync.get_sync_status(scope_id)

        self.out(f"{status_symbol(symbols, record.status)} {record.id}  ({record.status.value})")
        self.out(f"  Name:          {record.name}")
        if record.description:
            self.out(f"  Description:   {record.description}")
        self.out(f"  Created:       {record.created}")
        self.out(f"  Last activity: {record.meta.last_activity}")
        self.out(f"  Directory:     {self.relative(paths.root)}")

        self.out("\n  Dependencies:")
        if not tree.dependencies:
            self.out("    (none)")
        for i, dep in enumerate(tree.dependencies):
            marker = symbols.tree_end if i == len(tree.dependencies) - 1 else symbols.tree_branch
            self.out(f"    {marker} {dep.scope} ({dep.status})")

        self.out("\n  Dependents:")
        self.out(f"    {', '.join(tree.dependents) if tree.dependents else '(none)'}")

        self.out("\n  Sync:")
        self.out(f"    Last sync-up:   {status.last_sync_up or 'never'} ({status.promoted_count} promoted)")
        self.out(f"    Last sync-down: {status.last_sync_down or 'never'} ({status.pulled_count} pulled)")
        return 0

    def remove(self, scope_id: str, force: bool = False, backup: bool = True, dry_run: bool = False) -> int:
        symbols = self.symbols
        record = self.manager.require_scope(scope_id)
        dependents = self.manager.find_dependent_scopes(scope_id, self.manager.load_config().scopes)
        root = self.layout.scope_paths(scope_id).root
        marker = self.active_file.read()

        if dry_run:
            self.out(f"[Dry Run] Would remove scope '{scope_id}'")
            self.out("  - Remove from scopes.yaml")
            if root.exists():
                self.out(f"  - Delete directory: {self.relative(root)}")
                if backup:
                    self.out("  - Create backup before deletion")
            else:
                self.out(f"  - Directory does not exist: {self.relative(root)}")
            if dependents:
                self.out(f"  {symbols.check_warn} Depended on by: {', '.join(dependents)} (needs --force)")
            if marker.active_scope == scope_id:
                self.out("  - Clear active scope marker")
            return 0

        if dependents and not force:
            raise HasDependentsError(scope_id, dependents)

        backup_path = self.initializer.remove_scope(scope_id, backup=backup, record=record)
        self.manager.remove_scope(scope_id, force=True)
        cleared = self.active_file.forget(scope_id)

        self.out(f"{symbols.check_pass} Removed scope '{scope_id}'")
        if backup_path:
            self.out(f"  Backup: {self.relative(backup_path)}")
        if dependents:
            self.out(f"  Dependency removed from: {', '.join(dependents)}")
        if cleared:
            self.out("  Active scope marker cleared and disabled")
        return 0

    def archive(self, scope_id: str) -> int:
        self.manager.archive_scope(scope_id)
        self.out(f"{self.symbols.check_pass} Archived scope '{scope_id}'")
        return 0

    def activate(self, scope_id: str) -> int:
        self.manager.activate_scope(scope_id)
        self.out(f"{self.symbols.check_pass} Activated scope '{scope_id}'")
        return 0


# =============================================================================
# Command Registration (self-registration pattern)
# =============================================================================

COMMAND_NAMES = ['list', 'create', 'info', 'remove', 'archive', 'activate']


def register_parser(subparsers):
    """Register scope lifecycle command parsers."""
    p = subparsers.add_parser('list', help='List scopes')
    p.add_argument('--status', '-s', choices=['active', 'archived'],
                   help='Filter by status')

    p = subparsers.add_parser('create', help='Create a scope')
    p.add_argument('scope_id', help='Scope id (lowercase, digits, hyphens)')
    p.add_argument('--name', '-n', help='Display name (default: id)')
    p.add_argument('--description', '-d', help='Scope description')
    p.add_argument('--deps', '--dependencies', dest='deps',
                   help='Comma-separated dependency scope ids')
    p.add_argument('--context', action='store_true',
                   help='Create a scope-local project-context.md')

    p = subparsers.add_parser('info', help='Show scope details')
    p.add_argument('scope_id')

    p = subparsers.add_parser('remove', help='Remove a scope and its directory')
    p.add_argument('scope_id')
    p.add_argument('--force', '-f', action='store_true',
                   help='Remove even if other scopes depend on it')
    p.add_argument('--no-backup', dest='backup', action='store_false',
                   help='Skip the backup of the scope directory')
    p.add_argument('--dry-run', action='store_true', help='Show the plan only')

    p = subparsers.add_parser('archive', help='Mark a scope archived')
    p.add_argument('scope_id')

    p = subparsers.add_parser('activate', help='Mark a scope active')
    p.add_argument('scope_id')


def handle(cli, args):
    """Handle scope lifecycle command dispatch."""
    cmd = cli._scope_cmd
    if args.command == 'list':
        return cmd.list_scopes(status=args.status)
    elif args.command == 'create':
        return cmd.create(args.scope_id, name=args.name, description=args.description,
                          deps=args.deps, context=args.context)
    elif args.command == 'info':
        return cmd.info(args.scope_id)
    elif args.command == 'remove':
        return cmd.remove(args.scope_id, force=args.force, backup=args.backup,
                          dry_run=args.dry_run)
    elif args.command == 'archive':
        return cmd.archive(args.scope_id)
    elif args.command == 'activate':
        return cmd.activate(args.scope_id)
