"""
Scopekit — Isolated artifact scopes with a shared layer

Partitions a project's generated artifacts into named scopes so parallel
workstreams never collide, and lets scopes publish to and pull from a
shared layer.

Usage:
    scopekit init
    scopekit create auth --name "Authentication"
    scopekit create payments --deps auth
    scopekit sync-up auth
    scopekit sync-down payments
    scopekit migrate default
    scopekit rollback --list
"""

__version__ = "0.1.0"

# Core layer (loads before config)
from .core import (
    ScopeManager, ScopeInitializer, ScopeSync, ScopeMigrator,
    ActiveScopeFile, EventLog, EventType,
    ScopeRecord, ScopeStatus, ScopePaths, SyncResult, SyncStatus,
    MigrationResult, RollbackResult, BackupInfo,
    ScopeError, InvalidFormatError, InvalidUpdateError, InvalidConfigError,
    AlreadyExistsError, NotFoundError, ScopeNotFoundError,
    HasDependentsError, CircularDependencyError,
    validate_scope_id, validate_scope, detect_circular_dependencies,
    validate_config, create_default_config,
)

# Config
from .config import ProjectLayout, RegistryDocument, Settings

__all__ = [
    'ScopeManager', 'ScopeInitializer', 'ScopeSync', 'ScopeMigrator',
    'ActiveScopeFile', 'EventLog', 'EventType',
    'ScopeRecord', 'ScopeStatus', 'ScopePaths', 'SyncResult', 'SyncStatus',
    'MigrationResult', 'RollbackResult', 'BackupInfo',
    'ScopeError', 'InvalidFormatError', 'InvalidUpdateError', 'InvalidConfigError',
    'AlreadyExistsError', 'NotFoundError', 'ScopeNotFoundError',
    'HasDependentsError', 'CircularDependencyError',
    'validate_scope_id', 'validate_scope', 'detect_circular_dependencies',
    'validate_config', 'create_default_config',
    'ProjectLayout', 'RegistryDocument', 'Settings',
]
