"""
MigrateCommand — Legacy layout migration and backup restore

migrate [scope]            move legacy artifacts into a scope (default: "default")
rollback <backup>          restore a migration or scope-removal backup
rollback --list            list backups, newest first
"""

from typing import Optional

from ..commands.base import BaseCommand
from ..utils.files import REMOVAL_BACKUP_TYPE


class MigrateCommand(BaseCommand):
    """Migration and rollback commands."""

    def migrate(self, scope_id: Optional[str] = None, backup: bool = True, dry_run: bool = False) -> int:
        symbols = self.symbols
        if not self.migrator.needs_migration():
            self.out(f"{symbols.check_pass} No migration needed")
            return 0

        analysis = self.migrator.analyze_existing()
        target = scope_id or analysis.suggested_scope
        self.out("Found legacy artifacts:")
        self.out(f"  Directories: {', '.join(analysis.directories) or 'none'}")
        self.out(f"  Files: {len(analysis.files)}")
        self.out(f"  Total size: {analysis.total_size / 1024:.1f} KB")

        if dry_run:
            self.out(f"\n[Dry Run] Would migrate to scope '{target}'")
            for name in analysis.directories:
                self.out(f"  - Move {name}/ {symbols.arrow} {target}/{name}/")
            for name in analysis.files:
                if "/" not in name:
                    self.out(f"  - Move {name} {symbols.arrow} {target}/{name}")
            if backup:
                self.out("  - Create backup before migration")
            return 0

        self.manager.initialize()
        result = self.migrator.migrate(scope_id=target, backup=backup)

        mark = symbols.check_pass if result.success else symbols.check_fail
        self.out(f"\n{mark} {result.message}")
        if result.backup_path:
            self.out(f"  Backup: {self.relative(result.backup_path)}")
        for error in result.errors:
            self.out(f"  {symbols.check_warn} {error}")
        return 0 if result.success else 1

    def list_backups(self) -> int:
        backups = self.migrator.list_backups()
        if not backups:
            self.out("No backups found")
            return 0
        for info in backups:
            label = f"scope-removal ({info.scope_id})" if info.type == REMOVAL_BACKUP_TYPE else info.type
            self.out(f"  {self.symbols.bullet} {info.name}  {label}")
        self.out("\nTo restore: scopekit rollback <backup-name>")
        return 0

    def rollback(self, backup: Optional[str], force: bool = False, keep_backup: bool = False) -> int:
        symbols = self.symbols
        if not backup:
            self.list_backups()
            return 1

        result = self.migrator.rollback(backup, force=force, keep_backup=keep_backup)
        if not result.success:
            self.out(f"{symbols.check_fail} Rollback failed")
            for error in result.errors:
                self.out(f"  {symbols.bullet} {error}")
            return 1

        self.out(f"{symbols.check_pass} Restored {len(result.restored)} file(s)")
        for rel, reason in result.skipped:
            self.out(f"  {symbols.check_warn} {rel}: {reason}")
        if result.skipped:
            self.out("  Use --force to overwrite existing files")
        if result.restored_scope:
            self.out(f"  Registered scope '{result.restored_scope}' again")
        if result.dropped_dependencies:
            self.out(f"  {symbols.check_warn} Dropped missing dependencies: {', '.join(result.dropped_dependencies)}")
        if result.backup_removed:
            self.out("  Backup removed")
        else:
            self.out(f"  Backup kept: {self.relative(result.backup_path)}")
        return 0


# =============================================================================
# Command Registration (self-registration pattern)
# =============================================================================

COMMAND_NAMES = ['migrate', 'rollback']


def register_parser(subparsers):
    """Register migrate and rollback command parsers."""
    p = subparsers.add_parser('migrate', help='Move legacy artifacts into a scope')
    p.add_argument('scope_id', nargs='?', help='Target scope (default: default)')
    p.add_argument('--no-backup', dest='backup', action='store_false',
                   help='Skip the migration backup')
    p.add_argument('--dry-run', action='store_true', help='Show the plan only')

    p = subparsers.add_parser('rollback', help='Restore a backup')
    p.add_argument('backup', nargs='?', help='Backup name or path')
    p.add_argument('--list', action='store_true', help='List available backups')
    p.add_argument('--force', '-f', action='store_true',
                   help='Overwrite files that already exist')
    p.add_argument('--keep-backup', action='store_true',
                   help='Keep the backup after restoring')


def handle(cli, args):
    """Handle migrate and rollback command dispatch."""
    cmd = cli._migrate_cmd
    if args.command == 'migrate':
        return cmd.migrate(args.scope_id, backup=args.backup, dry_run=args.dry_run)
    elif args.command == 'rollback':
        if args.list:
            return cmd.list_backups()
        return cmd.rollback(args.backup, force=args.force, keep_backup=args.keep_backup)
