"""
Models — Schema types for scope records, sync state and operation outcomes

Documents on disk are loosely-typed YAML. Everything is parsed into these
dataclasses at the file boundary (after validation) so the rest of the code
never touches raw dicts.

Key naming on disk follows the established file formats:
- Registry scope records use snake_case with a `_meta` sub-mapping
- Sync metadata uses camelCase (lastSyncUp, promotedFiles, contentHash)
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple


def utc_now() -> str:
    """Current UTC time as ISO-8601."""
    return datetime.now(timezone.utc).isoformat()


def epoch_ms() -> int:
    """Current time in epoch milliseconds (backup naming)."""
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def as_timestamp(value: Any) -> Any:
    """YAML loads unquoted timestamps as datetime/date; keep them as ISO strings."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


class ScopeStatus(Enum):
    """Lifecycle state of a scope."""
    ACTIVE = "active"
    ARCHIVED = "archived"


# =============================================================================
# Registry records
# =============================================================================

@dataclass
class ScopeMeta:
    """Advisory bookkeeping, refreshed on every mutation."""
    last_activity: str = ""
    artifact_count: int = 0

    def __post_init__(self):
        if not self.last_activity:
            self.last_activity = utc_now()

    def to_dict(self) -> Dict[str, Any]:
        return {"last_activity": self.last_activity, "artifact_count": self.artifact_count}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'ScopeMeta':
        data = data or {}
        return cls(
            last_activity=as_timestamp(data.get("last_activity")) or "",
            artifact_count=data.get("artifact_count", 0) or 0,
        )


@dataclass
class ScopeRecord:
    """One registered scope."""
    id: str
    name: str = ""
    description: str = ""
    status: ScopeStatus = ScopeStatus.ACTIVE
    dependencies: List[str] = field(default_factory=list)
    created: str = ""
    meta: ScopeMeta = field(default_factory=ScopeMeta)

    def __post_init__(self):
        if not self.name:
            self.name = self.id
        if not self.created:
            self.created = utc_now()
        # Dependencies are a set; keep first-seen order for stable output
        seen = []
        for dep in self.dependencies:
            if dep not in seen:
                seen.append(dep)
        self.dependencies = seen

    @property
    def is_active(self) -> bool:
        return self.status == ScopeStatus.ACTIVE

    def touch(self):
        """Refresh last_activity."""
        self.meta.last_activity = utc_now()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "status": self.status.value,
            "dependencies": list(self.dependencies),
            "created": self.created,
            "_meta": self.meta.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ScopeRecord':
        return cls(
            id=data["id"],
            name=data.get("name") or data["id"],
            description=data.get("description") or "",
            status=ScopeStatus(data.get("status") or ScopeStatus.ACTIVE.value),
            dependencies=list(data.get("dependencies") or []),
            created=as_timestamp(data.get("created")) or "",
            meta=ScopeMeta.from_dict(data.get("_meta")),
        )


@dataclass(frozen=True)
class ScopePaths:
    """Deterministic on-disk locations for one scope."""
    root: Path
    planning: Path
    implementation: Path
    tests: Path
    meta: Path
    sync_meta: Path
    pulled: Path

    def skeleton(self) -> List[Path]:
        """Directories every scope must have."""
        return [self.planning, self.implementation, self.tests]


@dataclass
class DependencyInfo:
    scope: str
    name: str
    status: str


@dataclass
class DependencyTree:
    """Direct dependencies (with details) and direct dependents of a scope."""
    scope: str
    dependencies: List[DependencyInfo] = field(default_factory=list)
    dependents: List[str] = field(default_factory=list)


# =============================================================================
# Sync state
# =============================================================================

@dataclass
class FileSyncRecord:
    """Last transfer of one file."""
    timestamp: str
    content_hash: str
    version: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {"timestamp": self.timestamp, "contentHash": self.content_hash, "version": self.version}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'FileSyncRecord':
        return cls(
            timestamp=str(as_timestamp(data.get("timestamp")) or ""),
            content_hash=str(data.get("contentHash") or ""),
            version=int(data.get("version") or 1),
        )


@dataclass
class SyncMetadata:
    """Per-scope record of what was promoted and pulled."""
    version: int = 1
    last_sync_up: Optional[str] = None
    last_sync_down: Optional[str] = None
    promoted_files: Dict[str, FileSyncRecord] = field(default_factory=dict)
    pulled_files: Dict[str, FileSyncRecord] = field(default_factory=dict)
    updated_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "version": self.version,
            "lastSyncUp": self.last_sync_up,
            "lastSyncDown": self.last_sync_down,
            "promotedFiles": {k: v.to_dict() for k, v in self.promoted_files.items()},
            "pulledFiles": {k: v.to_dict() for k, v in self.pulled_files.items()},
            "updatedAt": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SyncMetadata':
        promoted = data.get("promotedFiles") or {}
        pulled = data.get("pulledFiles") or {}
        if not isinstance(promoted, dict) or not isinstance(pulled, dict):
            raise ValueError("promotedFiles and pulledFiles must be mappings")
        return cls(
            version=int(data.get("version") or 1),
            last_sync_up=as_timestamp(data.get("lastSyncUp")),
            last_sync_down=as_timestamp(data.get("lastSyncDown")),
            promoted_files={str(k): FileSyncRecord.from_dict(v or {}) for k, v in promoted.items()},
            pulled_files={str(k): FileSyncRecord.from_dict(v or {}) for k, v in pulled.items()},
            updated_at=as_timestamp(data.get("updatedAt")),
        )


# =============================================================================
# Operation outcomes
# =============================================================================

class ItemStatus(Enum):
    """Per-item outcome in a bulk operation."""
    TRANSFERRED = "transferred"
    UP_TO_DATE = "up_to_date"
    SKIPPED = "skipped"
    CONFLICT = "conflict"
    ERROR = "error"


@dataclass
class ItemOutcome:
    """What happened to one file."""
    path: str
    status: ItemStatus
    reason: str = ""
    origin_scope: Optional[str] = None

    @property
    def display_path(self) -> str:
        if self.origin_scope:
            return f"{self.origin_scope}/{self.path}"
        return self.path


@dataclass
class SyncResult:
    """Ordered per-file outcomes of one sync-up or sync-down run."""
    scope_id: str
    direction: str  # "up" | "down"
    outcomes: List[ItemOutcome] = field(default_factory=list)

    def _with(self, status: ItemStatus) -> List[ItemOutcome]:
        return [o for o in self.outcomes if o.status == status]

    @property
    def promoted(self) -> List[ItemOutcome]:
        return self._with(ItemStatus.TRANSFERRED) if self.direction == "up" else []

    @property
    def pulled(self) -> List[ItemOutcome]:
        return self._with(ItemStatus.TRANSFERRED) if self.direction == "down" else []

    @property
    def skipped(self) -> List[ItemOutcome]:
        return self._with(ItemStatus.SKIPPED)

    @property
    def up_to_date(self) -> List[ItemOutcome]:
        return self._with(ItemStatus.UP_TO_DATE)

    @property
    def conflicts(self) -> List[ItemOutcome]:
        return self._with(ItemStatus.CONFLICT)

    @property
    def errors(self) -> List[ItemOutcome]:
        return self._with(ItemStatus.ERROR)

    @property
    def success(self) -> bool:
        return not self.conflicts and not self.errors

    def summary(self) -> Dict[str, int]:
        return {status.value: len(self._with(status)) for status in ItemStatus}


@dataclass
class SyncStatus:
    """Read-only view of a scope's SyncMetadata."""
    scope_id: str
    last_sync_up: Optional[str] = None
    last_sync_down: Optional[str] = None
    promoted_count: int = 0
    pulled_count: int = 0
    promoted_files: List[str] = field(default_factory=list)
    pulled_files: List[str] = field(default_factory=list)


@dataclass
class DirStats:
    """Recursive file listing (relative posix paths) and total bytes."""
    files: List[str] = field(default_factory=list)
    size: int = 0


@dataclass
class MigrationAnalysis:
    has_legacy_artifacts: bool = False
    directories: List[str] = field(default_factory=list)
    files: List[str] = field(default_factory=list)
    total_size: int = 0
    suggested_scope: str = "default"


@dataclass
class MigrationResult:
    success: bool
    scope_id: str
    migrated_files: List[str] = field(default_factory=list)
    backup_path: Optional[Path] = None
    errors: List[str] = field(default_factory=list)
    message: str = ""


@dataclass
class RollbackResult:
    success: bool
    backup_path: Optional[Path] = None
    restored: List[str] = field(default_factory=list)
    skipped: List[Tuple[str, str]] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    backup_removed: bool = False
    restored_scope: Optional[str] = None  # re-registered from a scope-removal backup
    dropped_dependencies: List[str] = field(default_factory=list)


@dataclass
class BackupInfo:
    """A backup directory found under the output root."""
    name: str
    path: Path
    type: str  # "migration" | "scope-removal"
    timestamp: int
    scope_id: Optional[str] = None
