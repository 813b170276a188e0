"""
Migrator — Move a pre-scope output layout into a scope, and undo it

Legacy layout (directly under the output root):
    planning-artifacts/  implementation-artifacts/  tests/  project-context.md

Migration order: analyze, back up (unless disabled), ensure the target
scope exists, move each file, stamp .scope-meta.yaml, drop the emptied
legacy locations. A file that cannot move (target already exists) is
reported and left in place; the rest still move.

Rollback restores any backup (migration or scope removal) relative to the
output root, file by file. A restored scope-removal backup is registered
again with the fields saved when the scope was removed.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional, Union

import yaml

from ..config import (
    ProjectLayout, load_yaml, dump_yaml,
    PLANNING_DIR, IMPLEMENTATION_DIR, TESTS_DIR, CONTEXT_FILE, SCOPE_META_FILE,
)
from ..utils.files import (
    list_files, dir_stats, copy_file, make_backup_dir, migration_backup_name, parse_backup_name,
    REMOVAL_BACKUP_TYPE,
)
from .errors import InvalidFormatError, NotFoundError
from .events import EventLog, EventType
from .initializer import REGISTRY_META_KEY
from .models import (
    MigrationAnalysis, MigrationResult, RollbackResult, BackupInfo, DirStats, ScopeStatus,
    utc_now, epoch_ms,
)
from .registry import ScopeManager
from .validator import validate_scope_id

logger = logging.getLogger(__name__)

LEGACY_DIRS = (PLANNING_DIR, IMPLEMENTATION_DIR, TESTS_DIR)
LEGACY_FILES = (CONTEXT_FILE,)
DEFAULT_SCOPE_ID = "default"
README_FILE = "MIGRATED.md"


class ScopeMigrator:
    """
    Onboards legacy output directories and restores backups.

    With a ScopeManager, the target scope is registered during migration
    and a restored scope-removal backup is registered again.
    """

    def __init__(self, project_root: Union[str, Path], manager: Optional[ScopeManager] = None):
        self.manager = manager
        self.layout = manager.layout if manager else ProjectLayout.discover(Path(project_root))
        self.events = manager.events if manager else EventLog(self.layout.events_dir)

    @property
    def output_root(self) -> Path:
        return self.layout.output_root

    # =========================================================================
    # Analysis
    # =========================================================================

    def _is_scope_root(self, directory: Path) -> bool:
        # Legacy directory names are also valid scope ids
        if self.manager is not None and self.manager.get_scope(directory.name) is not None:
            return True
        return (directory / SCOPE_META_FILE).is_file()

    def _legacy_dirs(self) -> List[Path]:
        return [
            self.output_root / name for name in LEGACY_DIRS
            if (self.output_root / name).is_dir() and not self._is_scope_root(self.output_root / name)
        ]

    def _legacy_files(self) -> List[Path]:
        return [self.output_root / name for name in LEGACY_FILES if (self.output_root / name).is_file()]

    def needs_migration(self) -> bool:
        """
        True whenever a legacy layout exists, registered scopes or not.
        A scope whose id matches a legacy directory name is not legacy.
        """
        return bool(self._legacy_dirs() or self._legacy_files())

    def get_dir_stats(self, directory: Union[str, Path]) -> DirStats:
        return dir_stats(Path(directory))

    def analyze_existing(self) -> MigrationAnalysis:
        """Enumerate legacy artifacts without touching them."""
        analysis = MigrationAnalysis(suggested_scope=DEFAULT_SCOPE_ID)
        for directory in self._legacy_dirs():
            stats = self.get_dir_stats(directory)
            analysis.directories.append(directory.name)
            analysis.files.extend(f"{directory.name}/{rel}" for rel in stats.files)
            analysis.total_size += stats.size
        for path in self._legacy_files():
            analysis.files.append(path.name)
            analysis.total_size += path.stat().st_size
        analysis.has_legacy_artifacts = bool(analysis.directories or analysis.files)
        return analysis

    # =========================================================================
    # Backup
    # =========================================================================

    def create_backup(self) -> Path:
        """Copy every legacy directory and root file into _backup_migration_<ts>/."""
        backup_path = make_backup_dir(self.output_root, migration_backup_name, epoch_ms())
        for directory in self._legacy_dirs():
            shutil.copytree(directory, backup_path / directory.name)
        for path in self._legacy_files():
            copy_file(path, backup_path / path.name)
        logger.info("Created migration backup %s", backup_path)
        return backup_path

    def list_backups(self) -> List[BackupInfo]:
        """Backups under the output root, newest first."""
        if not self.output_root.is_dir():
            return []
        backups = []
        for child in self.output_root.iterdir():
            if not child.is_dir():
                continue
            parsed = parse_backup_name(child.name)
            if parsed is None:
                continue
            backup_type, timestamp, scope_id = parsed
            backups.append(BackupInfo(child.name, child, backup_type, timestamp, scope_id))
        return sorted(backups, key=lambda b: b.timestamp, reverse=True)

    # =========================================================================
    # Migration
    # =========================================================================

    def generate_migration_readme(self, scope_id: str, file_count: int) -> str:
        return (
            f"# Migrated to scope `{scope_id}`\n"
            f"\n"
            f"This scope was created by migration from the legacy output layout on {utc_now()}.\n"
            f"{file_count} file(s) were moved here from planning-artifacts/, "
            f"implementation-artifacts/, tests/ and project-context.md.\n"
            f"\n"
            f"If a backup was taken, restore it with `scopekit rollback <backup-name>`.\n"
        )

    def _ensure_scope(self, scope_id: str):
        if self.manager is not None and self.manager.get_scope(scope_id) is None:
            self.manager.create_scope(scope_id, name=scope_id, description="Migrated from legacy layout")
        else:
            paths = self.layout.scope_paths(scope_id)
            for directory in paths.skeleton():
                directory.mkdir(parents=True, exist_ok=True)

    def _move(self, src: Path, dst: Path, label: str, result: MigrationResult):
        if dst.exists():
            result.errors.append(f"{label}: already exists at {dst}")
            logger.debug("migrate %s: already exists", label)
            return
        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(src), str(dst))
        except OSError as e:
            result.errors.append(f"{label}: {e}")
            return
        result.migrated_files.append(label)
        logger.debug("migrate %s: moved", label)

    def _stamp(self, scope_id: str):
        meta_path = self.layout.scope_paths(scope_id).meta
        meta = {}
        if meta_path.exists():
            loaded = load_yaml(meta_path)
            meta = loaded if isinstance(loaded, dict) else {}
        meta.update({"scope_id": scope_id, "migrated": True, "migrated_at": utc_now()})
        dump_yaml(meta_path, meta)

    def migrate(self, scope_id: str = DEFAULT_SCOPE_ID, backup: bool = True) -> MigrationResult:
        """
        Move legacy artifacts into scope_id.

        Raises InvalidFormatError for a bad scope id. Per-file failures are
        collected in result.errors.
        """
        if not self.needs_migration():
            return MigrationResult(True, scope_id, message="No migration needed")

        id_check = validate_scope_id(scope_id)
        if not id_check.valid:
            raise InvalidFormatError(id_check.error, id_check.kind)

        result = MigrationResult(True, scope_id)
        if backup:
            result.backup_path = self.create_backup()

        self._ensure_scope(scope_id)
        scope_root = self.layout.scope_paths(scope_id).root

        for directory in self._legacy_dirs():
            for rel in list_files(directory):
                label = f"{directory.name}/{rel}"
                self._move(directory / rel, scope_root / directory.name / rel, label, result)
            if not list_files(directory):
                shutil.rmtree(directory)
        for path in self._legacy_files():
            self._move(path, scope_root / path.name, path.name, result)

        self._stamp(scope_id)
        (scope_root / README_FILE).write_text(
            self.generate_migration_readme(scope_id, len(result.migrated_files)), encoding="utf-8"
        )
        if self.manager is not None:
            self.manager.set_artifact_count(scope_id, len(result.migrated_files))

        result.success = bool(result.migrated_files) or not result.errors
        result.message = (
            f"Migrated {len(result.migrated_files)} file(s) to scope '{scope_id}'"
            + (f" with {len(result.errors)} error(s)" if result.errors else "")
        )
        logger.info(result.message)
        self.events.append(
            EventType.MIGRATED, scope_id,
            files=len(result.migrated_files), errors=len(result.errors),
            backup=str(result.backup_path) if result.backup_path else None,
        )
        return result

    # =========================================================================
    # Rollback
    # =========================================================================

    def _resolve_backup(self, backup: Union[str, Path]) -> Path:
        path = Path(backup)
        if not path.is_absolute() and not path.exists():
            path = self.output_root / path
        return path

    def _saved_registry_fields(self, scope_id: str) -> dict:
        meta_path = self.layout.scope_paths(scope_id).meta
        if not meta_path.is_file():
            return {}
        try:
            meta = load_yaml(meta_path)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Cannot read %s: %s", meta_path, e)
            return {}
        if not isinstance(meta, dict) or not isinstance(meta.get(REGISTRY_META_KEY), dict):
            return {}
        saved = meta.pop(REGISTRY_META_KEY)
        dump_yaml(meta_path, meta)
        return saved

    def _register_restored(self, scope_id: str, result: RollbackResult):
        """
        Register a scope restored from a removal backup again, with the
        name, description, status and dependencies kept in its metadata.
        Dependencies on scopes that no longer exist are dropped and reported.
        """
        if not validate_scope_id(scope_id).valid or self.manager.get_scope(scope_id) is not None:
            return
        saved = self._saved_registry_fields(scope_id)
        existing = self.manager.load_config().scopes

        deps = [d for d in saved.get("dependencies") or [] if isinstance(d, str)]
        result.dropped_dependencies = [d for d in deps if d not in existing]
        status = saved.get("status")
        name = saved.get("name")
        description = saved.get("description")

        self.manager.create_scope(
            scope_id,
            name=name if isinstance(name, str) else "",
            description=description if isinstance(description, str) else "",
            status=status if status in {s.value for s in ScopeStatus} else ScopeStatus.ACTIVE,
            dependencies=[d for d in deps if d in existing],
        )
        result.restored_scope = scope_id
        if result.dropped_dependencies:
            logger.warning("Restored scope '%s' without missing dependencies: %s",
                           scope_id, ", ".join(result.dropped_dependencies))

    def rollback(
        self,
        backup: Union[str, Path],
        force: bool = False,
        keep_backup: bool = False,
    ) -> RollbackResult:
        """
        Restore a backup (path or name) relative to the output root.
        Raises NotFoundError if the backup does not exist.

        Existing targets are skipped with an "already exists" error unless
        force. The backup is deleted afterwards unless keep_backup, or unless
        every file failed.
        """
        backup_path = self._resolve_backup(backup)
        if not backup_path.is_dir():
            raise NotFoundError(str(backup), what="Backup")
        result = RollbackResult(False, backup_path)

        for rel in list_files(backup_path):
            target = self.output_root / rel
            if target.exists() and not force:
                result.errors.append(f"{rel}: already exists")
                result.skipped.append((rel, "already exists"))
                continue
            try:
                copy_file(backup_path / rel, target)
            except OSError as e:
                result.errors.append(f"{rel}: {e}")
                result.skipped.append((rel, str(e)))
                continue
            result.restored.append(rel)
            logger.debug("rollback %s: restored", rel)

        all_failed = bool(result.errors) and not result.restored
        if not keep_backup and not all_failed:
            shutil.rmtree(backup_path)
            result.backup_removed = True

        parsed = parse_backup_name(backup_path.name)
        if parsed and parsed[0] == REMOVAL_BACKUP_TYPE and result.restored and self.manager is not None:
            self._register_restored(parsed[2], result)

        result.success = bool(result.restored) or not result.errors
        logger.info(
            "Rolled back %s: %d restored, %d skipped%s",
            backup_path.name, len(result.restored), len(result.skipped),
            ", backup removed" if result.backup_removed else "",
        )
        self.events.append(
            EventType.ROLLED_BACK, parsed[2] if parsed else None,
            backup=backup_path.name, restored=len(result.restored), skipped=len(result.skipped),
        )
        return result
