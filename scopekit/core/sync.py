"""
Sync — Promote scope artifacts to the shared layer and pull them back down

Placement:
    sync-up:   <scope>/<rel>            -> _shared/<scope>/<rel>  (+ <rel>.meta sidecar)
    sync-down: _shared/<origin>/<rel>   -> <scope>/shared/<origin>/<rel>

Conflict model, per file, on content hashes:
    no destination           -> copy, record
    same hash                -> skipped (up) / up-to-date (down)
    different hash, no force -> conflict, destination untouched
    different hash, force    -> overwrite, record new hash

Per-file failures never abort a run; they are returned as outcomes.
SyncMetadata is saved after every run that is not a dry run.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import xxhash
import yaml

from ..config import load_yaml, dump_yaml
from ..utils.files import list_files, copy_file
from .errors import ScopeNotFoundError
from .events import EventType
from .models import (
    SyncMetadata, SyncResult, SyncStatus, FileSyncRecord, ItemOutcome, ItemStatus, utc_now,
)
from .patterns import PROMOTABLE_PATTERNS, match_pattern, matches_any
from .registry import ScopeManager

logger = logging.getLogger(__name__)

HASH_CHUNK_SIZE = 64 * 1024
SIDECAR_SUFFIX = ".meta"


def sidecar_path(path: Path) -> Path:
    return path.with_name(path.name + SIDECAR_SUFFIX)


class ScopeSync:
    """Moves artifacts between scopes and the shared layer."""

    def __init__(self, manager: ScopeManager, patterns: Iterable[str] = PROMOTABLE_PATTERNS):
        self.manager = manager
        self.patterns = tuple(patterns)

    @property
    def layout(self):
        return self.manager.layout

    # =========================================================================
    # File helpers
    # =========================================================================

    def compute_hash(self, path: Path) -> Optional[str]:
        """xxh128 hex digest of a file's content, or None if unreadable."""
        digest = xxhash.xxh128()
        try:
            with open(path, "rb") as f:
                for chunk in iter(lambda: f.read(HASH_CHUNK_SIZE), b""):
                    digest.update(chunk)
        except OSError:
            return None
        return digest.hexdigest()

    def get_all_files(self, directory: Path) -> List[Path]:
        """Every file below directory. Missing or unreadable means none."""
        directory = Path(directory)
        return [directory / rel for rel in list_files(directory)]

    def match_pattern(self, path: Optional[str], pattern: Optional[str]) -> bool:
        return match_pattern(path, pattern)

    def find_promotable_files(self, scope_root: Path) -> List[str]:
        """Relative paths under scope_root matching a promotable pattern."""
        return [rel for rel in list_files(scope_root) if matches_any(rel, self.patterns)]

    # =========================================================================
    # Metadata
    # =========================================================================

    def get_sync_meta_path(self, scope_id: str) -> Path:
        return self.layout.scope_paths(scope_id).sync_meta

    def load_sync_meta(self, scope_id: str) -> SyncMetadata:
        """Stored metadata. Missing or corrupt files yield a fresh default."""
        path = self.get_sync_meta_path(scope_id)
        if not path.exists():
            return SyncMetadata()
        try:
            raw = load_yaml(path)
            if not isinstance(raw, dict):
                raise ValueError("sync metadata is not a mapping")
            return SyncMetadata.from_dict(raw)
        except (OSError, yaml.YAMLError, ValueError, TypeError, AttributeError) as e:
            logger.warning("Ignoring corrupt sync metadata %s: %s", path, e)
            return SyncMetadata()

    def save_sync_meta(self, scope_id: str, meta: SyncMetadata):
        meta.updated_at = utc_now()
        dump_yaml(self.get_sync_meta_path(scope_id), meta.to_dict())

    # =========================================================================
    # Transfers
    # =========================================================================

    def _transfer(
        self,
        src: Path,
        dst: Path,
        force: bool,
        unchanged: ItemStatus,
        dry_run: bool,
    ) -> Tuple[ItemStatus, str, Optional[str]]:
        """Apply the conflict model to one file. Returns (status, reason, hash)."""
        src_hash = self.compute_hash(src)
        if src_hash is None:
            return ItemStatus.ERROR, f"cannot read {src}", None

        existed = dst.exists()
        if existed:
            dst_hash = self.compute_hash(dst)
            if dst_hash == src_hash:
                return unchanged, "unchanged", src_hash
            if not force:
                return ItemStatus.CONFLICT, "destination differs", src_hash

        if not dry_run:
            try:
                copy_file(src, dst)
            except OSError as e:
                return ItemStatus.ERROR, str(e), src_hash
        return ItemStatus.TRANSFERRED, "overwritten" if existed else "copied", src_hash

    def _resolve_explicit(self, scope_root: Path, files: Iterable) -> List[Tuple[Optional[str], str]]:
        """Explicit file list -> [(relative path or None, original)]; None if outside the scope."""
        root = scope_root.resolve()
        resolved = []
        for f in files:
            path = Path(f)
            if not path.is_absolute():
                path = scope_root / path
            try:
                rel = path.resolve().relative_to(root).as_posix()
            except ValueError:
                resolved.append((None, str(f)))
                continue
            resolved.append((rel, str(f)))
        return resolved

    def sync_up(
        self,
        scope_id: str,
        files: Optional[Iterable] = None,
        force: bool = False,
        dry_run: bool = False,
    ) -> SyncResult:
        """
        Promote a scope's artifacts to _shared/<scope_id>/.

        files: explicit paths (absolute or relative to the scope root) to
        promote instead of the pattern scan. They must lie inside the scope.
        """
        self.manager.require_scope(scope_id, ScopeNotFoundError)
        scope_root = self.layout.scope_paths(scope_id).root
        target_root = self.layout.shared_root / scope_id
        result = SyncResult(scope_id, "up")
        meta = self.load_sync_meta(scope_id)

        if files is None:
            candidates = [(rel, rel) for rel in self.find_promotable_files(scope_root)]
        else:
            candidates = self._resolve_explicit(scope_root, files)

        for rel, original in candidates:
            if rel is None:
                result.outcomes.append(ItemOutcome(original, ItemStatus.ERROR, "outside scope directory"))
                continue
            src = scope_root / rel
            if not src.is_file():
                result.outcomes.append(ItemOutcome(rel, ItemStatus.ERROR, "file not found"))
                continue

            dst = target_root / rel
            status, reason, content_hash = self._transfer(src, dst, force, ItemStatus.SKIPPED, dry_run)
            if status == ItemStatus.TRANSFERRED and not dry_run:
                now = utc_now()
                try:
                    dump_yaml(sidecar_path(dst), {
                        "source_scope": scope_id,
                        "promoted_at": now,
                        "original_hash": content_hash,
                    })
                except OSError as e:
                    status, reason = ItemStatus.ERROR, f"sidecar write failed: {e}"
                else:
                    previous = meta.promoted_files.get(rel)
                    meta.promoted_files[rel] = FileSyncRecord(
                        now, content_hash, previous.version + 1 if previous else 1
                    )
            logger.debug("sync-up %s/%s: %s (%s)", scope_id, rel, status.value, reason)
            result.outcomes.append(ItemOutcome(rel, status, reason))

        self._finish(scope_id, meta, result, dry_run)
        return result

    def sync_down(self, scope_id: str, force: bool = False, dry_run: bool = False) -> SyncResult:
        """
        Pull every other scope's promoted artifacts into <scope>/shared/<origin>/.

        A scope never pulls its own promoted files, and sidecars are never pulled.
        """
        self.manager.require_scope(scope_id, ScopeNotFoundError)
        pulled_root = self.layout.scope_paths(scope_id).pulled
        shared_root = self.layout.shared_root
        result = SyncResult(scope_id, "down")
        meta = self.load_sync_meta(scope_id)

        origins = sorted(p for p in shared_root.iterdir() if p.is_dir()) if shared_root.is_dir() else []
        for origin_dir in origins:
            origin = origin_dir.name
            if origin == scope_id:
                continue
            for rel in list_files(origin_dir):
                if rel.endswith(SIDECAR_SUFFIX) or not matches_any(rel, self.patterns):
                    continue
                dst = pulled_root / origin / rel
                status, reason, content_hash = self._transfer(
                    origin_dir / rel, dst, force, ItemStatus.UP_TO_DATE, dry_run
                )
                if status == ItemStatus.TRANSFERRED and not dry_run:
                    key = f"{origin}/{rel}"
                    previous = meta.pulled_files.get(key)
                    meta.pulled_files[key] = FileSyncRecord(
                        utc_now(), content_hash, previous.version + 1 if previous else 1
                    )
                logger.debug("sync-down %s <- %s/%s: %s (%s)", scope_id, origin, rel, status.value, reason)
                result.outcomes.append(ItemOutcome(rel, status, reason, origin_scope=origin))

        self._finish(scope_id, meta, result, dry_run)
        return result

    def _finish(self, scope_id: str, meta: SyncMetadata, result: SyncResult, dry_run: bool):
        summary = result.summary()
        if dry_run:
            logger.info("Dry run sync-%s for '%s': %s", result.direction, scope_id, summary)
            return
        if result.direction == "up":
            meta.last_sync_up = utc_now()
        else:
            meta.last_sync_down = utc_now()
        self.save_sync_meta(scope_id, meta)
        logger.info("sync-%s for '%s': %s", result.direction, scope_id, summary)
        self.manager.events.append(
            EventType.SYNC_UP if result.direction == "up" else EventType.SYNC_DOWN,
            scope_id,
            **summary,
        )

    def get_sync_status(self, scope_id: str) -> SyncStatus:
        """Counts and file lists from SyncMetadata. No transfers."""
        self.manager.require_scope(scope_id, ScopeNotFoundError)
        meta = self.load_sync_meta(scope_id)
        return SyncStatus(
            scope_id=scope_id,
            last_sync_up=meta.last_sync_up,
            last_sync_down=meta.last_sync_down,
            promoted_count=len(meta.promoted_files),
            pulled_count=len(meta.pulled_files),
            promoted_files=sorted(meta.promoted_files),
            pulled_files=sorted(meta.pulled_files),
        )
