"""
Core — Scope lifecycle and synchronization engine

- Models: schema dataclasses and structured operation outcomes
- Errors: ScopeError hierarchy
- Validator: id, record and dependency-graph checks (pure)
- Registry: ScopeManager, CRUD over scopes.yaml
- Initializer: per-scope directory skeleton
- Sync: promotion to and pulls from the shared layer
- Migrator: legacy layout migration, backups, rollback
- Events: append-only lifecycle log
- Active: the active-scope marker file
"""

# models must load before validator (config depends on it)
from .models import (
    ScopeStatus, ScopeMeta, ScopeRecord, ScopePaths,
    DependencyInfo, DependencyTree,
    FileSyncRecord, SyncMetadata,
    ItemStatus, ItemOutcome, SyncResult, SyncStatus,
    DirStats, MigrationAnalysis, MigrationResult, RollbackResult, BackupInfo,
)
from .errors import (
    ScopeError, InvalidFormatError, InvalidUpdateError, InvalidConfigError,
    AlreadyExistsError, NotFoundError, ScopeNotFoundError,
    HasDependentsError, CircularDependencyError,
)
from .validator import (
    validate_scope_id, validate_scope, detect_circular_dependencies,
    validate_config, create_default_config, RESERVED_IDS,
)
from .patterns import match_pattern, PROMOTABLE_PATTERNS
from .events import Event, EventType, EventLog
from .initializer import ScopeInitializer
from .registry import ScopeManager
from .sync import ScopeSync
from .migrator import ScopeMigrator
from .active import ActiveScopeFile, ActiveScopeState

__all__ = [
    'ScopeStatus', 'ScopeMeta', 'ScopeRecord', 'ScopePaths',
    'DependencyInfo', 'DependencyTree',
    'FileSyncRecord', 'SyncMetadata',
    'ItemStatus', 'ItemOutcome', 'SyncResult', 'SyncStatus',
    'DirStats', 'MigrationAnalysis', 'MigrationResult', 'RollbackResult', 'BackupInfo',
    'ScopeError', 'InvalidFormatError', 'InvalidUpdateError', 'InvalidConfigError',
    'AlreadyExistsError', 'NotFoundError', 'ScopeNotFoundError',
    'HasDependentsError', 'CircularDependencyError',
    'validate_scope_id', 'validate_scope', 'detect_circular_dependencies',
    'validate_config', 'create_default_config', 'RESERVED_IDS',
    'match_pattern', 'PROMOTABLE_PATTERNS',
    'Event', 'EventType', 'EventLog',
    'ScopeInitializer', 'ScopeManager', 'ScopeSync', 'ScopeMigrator',
    'ActiveScopeFile', 'ActiveScopeState',
]
