"""
Initializer — Per-scope directory skeleton on disk

Creates and removes the derived filesystem state for a scope: the
planning/implementation/tests directories, the per-scope metadata file and
an optional scope-local context document. Registry entries are owned by
ScopeManager; the two are paired so a created scope always has both.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..config import ProjectLayout, CONTEXT_FILE, SCOPE_META_FILE, dump_yaml, load_yaml
from ..utils.files import make_backup_dir, removal_backup_name
from .models import ScopePaths, ScopeRecord, utc_now, epoch_ms

logger = logging.getLogger(__name__)

# Key in a backed-up .scope-meta.yaml holding the removed registry fields
REGISTRY_META_KEY = "registry"


CONTEXT_TEMPLATE = """# {scope_id} - Project Context

Scope-specific context for the `{scope_id}` workstream.

## Goals

## Constraints

## Decisions
"""


class ScopeInitializer:
    """Creates the output root, the shared layer and per-scope skeletons."""

    def __init__(self, layout: ProjectLayout):
        self.layout = layout

    def initialize_scope_system(self) -> bool:
        """Create the output root, shared layer and events directory. Idempotent."""
        for directory in (self.layout.output_root, self.layout.shared_root, self.layout.events_dir):
            directory.mkdir(parents=True, exist_ok=True)
        logger.debug("Scope system directories ready under %s", self.layout.output_root)
        return True

    def is_system_initialized(self) -> bool:
        return self.layout.output_root.is_dir() and self.layout.shared_root.is_dir()

    def scope_directory_exists(self, scope_id: str) -> bool:
        return self.layout.scope_paths(scope_id).root.is_dir()

    def initialize_scope(self, scope_id: str, create_context: bool = False) -> ScopePaths:
        """
        Create the directory skeleton and metadata file for a scope.

        Existing files are left alone, so this is safe to re-run.
        Raises OSError if the filesystem refuses.
        """
        self.initialize_scope_system()
        paths = self.layout.scope_paths(scope_id)
        for directory in paths.skeleton():
            directory.mkdir(parents=True, exist_ok=True)

        if not paths.meta.exists():
            dump_yaml(paths.meta, {"scope_id": scope_id, "created": utc_now()})

        if create_context:
            context = paths.root / CONTEXT_FILE
            if not context.exists():
                context.write_text(CONTEXT_TEMPLATE.format(scope_id=scope_id), encoding="utf-8")

        logger.debug("Initialized directories for scope '%s'", scope_id)
        return paths

    def remove_scope(self, scope_id: str, backup: bool = True,
                     record: Optional[ScopeRecord] = None) -> Optional[Path]:
        """
        Delete a scope's directory tree.

        With backup, the tree is first copied to _backup_<id>_<ts>/<id>/ so a
        rollback restores it relative to the output root. When the registry
        record is given, its fields are kept in the copied metadata file
        under `registry` so the rollback can register the scope again as it
        was. Returns the backup path, or None when nothing was backed up.
        """
        root = self.layout.scope_paths(scope_id).root
        if not root.exists():
            return None

        backup_path = None
        if backup:
            backup_path = make_backup_dir(
                self.layout.output_root, lambda ts: removal_backup_name(scope_id, ts), epoch_ms()
            )
            shutil.copytree(root, backup_path / scope_id)
            if record is not None:
                self._keep_record(backup_path / scope_id / SCOPE_META_FILE, record)
            logger.info("Backed up scope '%s' to %s", scope_id, backup_path)

        shutil.rmtree(root)
        logger.info("Removed directory of scope '%s'", scope_id)
        return backup_path

    def _keep_record(self, meta_path: Path, record: ScopeRecord):
        meta = {}
        if meta_path.exists():
            loaded = load_yaml(meta_path)
            meta = loaded if isinstance(loaded, dict) else {}
        meta[REGISTRY_META_KEY] = {
            "name": record.name,
            "description": record.description,
            "status": record.status.value,
            "dependencies": list(record.dependencies),
        }
        dump_yaml(meta_path, meta)
