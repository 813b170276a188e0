"""
Scopekit utilities — Filesystem helpers shared by sync, migration and removal
"""

from .files import (
    list_files, dir_stats, copy_file,
    migration_backup_name, removal_backup_name, parse_backup_name,
)

__all__ = [
    'list_files', 'dir_stats', 'copy_file',
    'migration_backup_name', 'removal_backup_name', 'parse_backup_name',
]
