"""
SyncCommand — Promotion and pulls from the command line

sync-up <id> [files...]   promote to the shared layer
sync-down <id>            pull other scopes' promoted artifacts
sync-status <id>          what has been promoted and pulled

--resolution picks a side for conflicts:
    keep-local   sync-up overwrites the shared copy; sync-down keeps the local copy
    keep-shared  sync-down overwrites the local copy; sync-up keeps the shared copy
Without it (or --force) conflicts are reported and the exit code is 1.
"""

from typing import List, Optional

from ..commands.base import BaseCommand
from ..core.models import SyncResult, ItemStatus
from ..presentation.symbols import outcome_symbol

RESOLUTIONS = ('keep-local', 'keep-shared')

# Which resolution means "source wins" for each direction
_OVERWRITES = {"up": "keep-local", "down": "keep-shared"}


class SyncCommand(BaseCommand):
    """Shared-layer sync commands."""

    def _report(self, result: SyncResult, resolution: Optional[str], dry_run: bool) -> int:
        symbols = self.symbols
        verb = "promote" if result.direction == "up" else "pull"
        done = f"[Dry Run] Would {verb}" if dry_run else ("Promoted" if result.direction == "up" else "Pulled")

        if not result.outcomes:
            self.out(f"Nothing to {verb} for '{result.scope_id}'")
            return 0

        for outcome in result.outcomes:
            reason = f"  ({outcome.reason})" if outcome.status != ItemStatus.TRANSFERRED else ""
            self.out(f"  {outcome_symbol(symbols, outcome.status)} {outcome.display_path}{reason}")

        summary = result.summary()
        moved = len(result.promoted) if result.direction == "up" else len(result.pulled)
        self.out(
            f"\n{done} {moved} file(s) for '{result.scope_id}': "
            f"{summary[ItemStatus.UP_TO_DATE.value] + summary[ItemStatus.SKIPPED.value]} unchanged, "
            f"{len(result.conflicts)} conflict(s), {len(result.errors)} error(s)"
        )

        if result.errors:
            return 1
        if result.conflicts:
            if resolution and resolution != _OVERWRITES[result.direction]:
                self.out(f"  Conflicts resolved by keeping the destination ({resolution})")
                return 0
            self.out(f"  {symbols.check_warn} Re-run with --resolution or --force to overwrite")
            return 1
        return 0

    def _force(self, direction: str, force: bool, resolution: Optional[str]) -> bool:
        return force or resolution == _OVERWRITES[direction]

    def sync_up(
        self,
        scope_id: str,
        files: Optional[List[str]] = None,
        force: bool = False,
        dry_run: bool = False,
        resolution: Optional[str] = None,
    ) -> int:
        result = self.sync.sync_up(
            scope_id,
            files=files or None,
            force=self._force("up", force, resolution),
            dry_run=dry_run,
        )
        return self._report(result, resolution, dry_run)

    def sync_down(
        self,
        scope_id: str,
        force: bool = False,
        dry_run: bool = False,
        resolution: Optional[str] = None,
    ) -> int:
        result = self.sync.sync_down(
            scope_id,
            force=self._force("down", force, resolution),
            dry_run=dry_run,
        )
        return self._report(result, resolution, dry_run)

    def status(self, scope_id: str) -> int:
        status = self.sync.get_sync_status(scope_id)
        bullet = self.symbols.bullet
        self.out(f"Sync status for '{scope_id}'")
        self.out(f"  Last sync-up:   {status.last_sync_up or 'never'}")
        self.out(f"  Last sync-down: {status.last_sync_down or 'never'}")
        self.out(f"\n  Promoted ({status.promoted_count}):")
        for path in status.promoted_files:
            self.out(f"    {bullet} {path}")
        self.out(f"\n  Pulled ({status.pulled_count}):")
        for path in status.pulled_files:
            self.out(f"    {bullet} {path}")
        return 0


# =============================================================================
# Command Registration (self-registration pattern)
# =============================================================================

COMMAND_NAMES = ['sync-up', 'sync-down', 'sync-status']


def _add_transfer_options(p):
    p.add_argument('--force', '-f', action='store_true',
                   help='Overwrite conflicting destinations')
    p.add_argument('--dry-run', action='store_true',
                   help='Classify files without copying')
    p.add_argument('--resolution', choices=RESOLUTIONS,
                   help='Conflict resolution: keep-local|keep-shared')


def register_parser(subparsers):
    """Register sync command parsers."""
    p = subparsers.add_parser('sync-up', help='Promote scope artifacts to the shared layer')
    p.add_argument('scope_id')
    p.add_argument('files', nargs='*',
                   help='Files to promote, relative to the scope directory (default: promotable patterns)')
    _add_transfer_options(p)

    p = subparsers.add_parser('sync-down', help='Pull shared artifacts into a scope')
    p.add_argument('scope_id')
    _add_transfer_options(p)

    p = subparsers.add_parser('sync-status', help='Show sync metadata for a scope')
    p.add_argument('scope_id')


def handle(cli, args):
    """Handle sync command dispatch."""
    cmd = cli._sync_cmd
    if args.command == 'sync-up':
        return cmd.sync_up(args.scope_id, files=args.files, force=args.force,
                           dry_run=args.dry_run, resolution=args.resolution)
    elif args.command == 'sync-down':
        return cmd.sync_down(args.scope_id, force=args.force,
                             dry_run=args.dry_run, resolution=args.resolution)
    elif args.command == 'sync-status':
        return cmd.status(args.scope_id)
