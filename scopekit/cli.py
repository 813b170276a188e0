"""
CLI — Command interface for the scope system

Every command works against one project root:
- scopes.yaml is the registry (what exists)
- the output root holds one directory per scope plus _shared/
- .scopekit-scope points tooling at the current scope

Commands report per-file outcomes and exit non-zero when anything
failed or was left in conflict.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from .core.errors import ScopeError
from .core.registry import ScopeManager
from .core.sync import ScopeSync
from .core.migrator import ScopeMigrator
from .core.active import ActiveScopeFile
from .logging_config import setup_logging
from .presentation.symbols import get_symbols
from .commands.init_cmd import InitCommand
from .commands.scope_cmd import ScopeCommand
from .commands.active_cmd import ActiveCommand
from .commands.sync_cmd import SyncCommand
from .commands.migrate_cmd import MigrateCommand
from . import __version__

logger = logging.getLogger(__name__)

PROJECT_PATH_ENV = "SCOPEKIT_PROJECT_PATH"


class ScopeCLI:
    """Command-line interface for scopekit."""

    def __init__(self, project_dir: Path, stdout=None):
        self.project_dir = Path(project_dir)
        self.stdout = stdout

        self.manager = ScopeManager(self.project_dir)
        self.sync = ScopeSync(self.manager)
        self.migrator = ScopeMigrator(self.project_dir, self.manager)
        self.active_file = ActiveScopeFile(self.project_dir)
        self.symbols = get_symbols()

        # Command handlers
        self._init_cmd = InitCommand(self)
        self._scope_cmd = ScopeCommand(self)
        self._active_cmd = ActiveCommand(self)
        self._sync_cmd = SyncCommand(self)
        self._migrate_cmd = MigrateCommand(self)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the scopekit CLI.

    Uses the command registry pattern: parser definitions and dispatch
    logic live in the individual command modules.
    """
    parser = argparse.ArgumentParser(
        prog="scopekit",
        description="Scopekit -- Isolated artifact scopes with a shared layer",
    )

    parser.add_argument(
        '--project', '-p',
        default=os.environ.get(PROJECT_PATH_ENV, "."),
        help=f'Project directory (default: {PROJECT_PATH_ENV} or current)'
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    parser.add_argument('--quiet', '-q', action='store_true', help='Only log errors')
    parser.add_argument(
        '--version', '-V',
        action='version',
        version=f'scopekit {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Register all commands from command modules (self-registration pattern)
    from .commands import register_all, dispatch
    register_all(subparsers)

    args = parser.parse_args(argv)
    setup_logging(quiet=args.quiet, verbose=args.verbose)

    if not args.command:
        parser.print_help()
        return 1

    cli = ScopeCLI(Path(args.project))
    logger.debug("Running '%s' in %s", args.command, cli.project_dir)

    try:
        result = dispatch(args.command, cli, args)
    except ScopeError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    return result if isinstance(result, int) else 0


if __name__ == '__main__':
    sys.exit(main())
