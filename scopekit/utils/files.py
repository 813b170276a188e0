"""
Files — Directory walking, copying and backup naming

Walks never raise for a missing or unreadable directory; they report it as
empty and log a warning, so bulk operations can keep going.

Backup directory names:
    _backup_migration_<epoch-ms>   before a legacy-to-scope migration
    _backup_<scope_id>_<epoch-ms>  before a scope directory is removed
"""

import logging
import os
import re
import shutil
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from ..config import BACKUP_PREFIX
from ..core.models import DirStats

logger = logging.getLogger(__name__)

MIGRATION_BACKUP_TYPE = "migration"
REMOVAL_BACKUP_TYPE = "scope-removal"

_MIGRATION_BACKUP = re.compile(rf'^{BACKUP_PREFIX}_migration_(\d+)$')
_REMOVAL_BACKUP = re.compile(rf'^{BACKUP_PREFIX}_([a-z][a-z0-9-]*[a-z0-9])_(\d+)$')


def list_files(directory: Path) -> List[str]:
    """All regular files below directory as sorted posix paths relative to it."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    found = []

    def on_error(error: OSError):
        logger.warning("Cannot read directory %s: %s", error.filename, error.strerror)

    for current, dirs, files in os.walk(directory, onerror=on_error):
        dirs.sort()
        base = Path(current)
        for name in files:
            path = base / name
            if path.is_file():
                found.append(path.relative_to(directory).as_posix())
    return sorted(found)


def dir_stats(directory: Path) -> DirStats:
    """Recursive file listing and total byte size. Missing means empty."""
    directory = Path(directory)
    stats = DirStats()
    for rel in list_files(directory):
        try:
            stats.size += (directory / rel).stat().st_size
        except OSError as e:
            logger.warning("Cannot stat %s: %s", directory / rel, e)
            continue
        stats.files.append(rel)
    return stats


def copy_file(src: Path, dst: Path):
    """Copy content and mode, creating parent directories."""
    dst.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dst)


def migration_backup_name(timestamp: int) -> str:
    return f"{BACKUP_PREFIX}_migration_{timestamp}"


def removal_backup_name(scope_id: str, timestamp: int) -> str:
    return f"{BACKUP_PREFIX}_{scope_id}_{timestamp}"


def make_backup_dir(parent: Path, name_for: Callable[[int], str], timestamp: int) -> Path:
    """
    Create a fresh backup directory under parent.

    Names are keyed by epoch-ms, so two backups in the same millisecond
    collide; the timestamp is bumped until an unused name is found.
    """
    parent.mkdir(parents=True, exist_ok=True)
    while True:
        path = parent / name_for(timestamp)
        try:
            path.mkdir()
            return path
        except FileExistsError:
            logger.debug("Backup %s exists, trying next timestamp", path.name)
            timestamp += 1


def parse_backup_name(name: str) -> Optional[Tuple[str, int, Optional[str]]]:
    """
    Classify a backup directory name.

    Returns (type, timestamp, scope_id) or None if the name is not a backup.
    """
    match = _MIGRATION_BACKUP.match(name)
    if match:
        return MIGRATION_BACKUP_TYPE, int(match.group(1)), None
    match = _REMOVAL_BACKUP.match(name)
    if match:
        return REMOVAL_BACKUP_TYPE, int(match.group(2)), match.group(1)
    return None
