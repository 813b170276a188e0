"""
Registry — Scope CRUD over the scopes.yaml document

The registry document is the single source of truth for which scopes exist,
their status and their dependencies. Every mutation validates the merged
state, persists the full document, and replaces the in-memory cache.

Lifecycle per scope: active <-> archived. Status transitions never touch
artifacts on disk.

Usage:
    manager = ScopeManager(project_root)
    manager.initialize()
    manager.create_scope("auth", name="Authentication")
    manager.create_scope("payments", dependencies=["auth"])
    tree = manager.get_dependency_tree("auth")   # dependents == ["payments"]
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Mapping, Optional, Union

import yaml
from rapidfuzz import fuzz, process

from ..config import ProjectLayout, RegistryDocument, load_yaml, dump_yaml
from .errors import (
    ScopeError, InvalidFormatError, InvalidUpdateError, InvalidConfigError,
    AlreadyExistsError, NotFoundError, HasDependentsError, CircularDependencyError,
)
from .events import EventLog, EventType
from .initializer import ScopeInitializer
from .models import (
    ScopeRecord, ScopeStatus, ScopePaths, DependencyInfo, DependencyTree,
)
from .validator import (
    validate_scope_id, validate_scope, validate_config,
    detect_circular_dependencies, create_default_config,
)

logger = logging.getLogger(__name__)

REGISTRY_HEADER = "# Scopekit scope registry. Managed by `scopekit`; edit with care.\n"

# Fields a caller may change through update_scope
UPDATABLE_FIELDS = ("name", "description", "status", "dependencies")

SUGGESTION_LIMIT = 3
SUGGESTION_CUTOFF = 60


def _created_key(record: ScopeRecord) -> datetime:
    try:
        created = datetime.fromisoformat(record.created.replace("Z", "+00:00"))
    except ValueError:
        return datetime.min.replace(tzinfo=timezone.utc)
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


class ScopeManager:
    """
    Owns scopes.yaml. Holds an explicit per-instance cache of the parsed
    document; load_config(force_reload=True) bypasses it and
    set_project_root drops it.
    """

    def __init__(self, project_root: Union[str, Path], layout: Optional[ProjectLayout] = None):
        self._config: Optional[RegistryDocument] = None
        self._bind(layout or ProjectLayout.discover(Path(project_root)))

    def _bind(self, layout: ProjectLayout):
        self.layout = layout
        self.initializer = ScopeInitializer(layout)
        self.events = EventLog(layout.events_dir)

    @property
    def project_root(self) -> Path:
        return self.layout.project_root

    @property
    def config_path(self) -> Path:
        return self.layout.config_dir

    def set_project_root(self, project_root: Union[str, Path]):
        """Point at another project. Always drops the cache."""
        self._bind(ProjectLayout.discover(Path(project_root)))
        self._config = None

    def invalidate_cache(self):
        self._config = None

    # =========================================================================
    # Document I/O
    # =========================================================================

    def initialize(self) -> bool:
        """
        Idempotent. Writes a default document if none exists; otherwise loads
        and validates the existing one without modifying it.

        Raises InvalidConfigError for a corrupt or invalid document.
        """
        path = self.layout.registry_path
        if path.exists():
            self.load_config(force_reload=True)
            logger.debug("Registry already initialized at %s", path)
        else:
            document = create_default_config(self.layout.default_settings())
            self.save_config(document)
            logger.info("Initialized scope registry at %s", path)
            self.events.append(EventType.SYSTEM_INITIALIZED, None, registry=str(path))
        self.initializer.initialize_scope_system()
        return True

    def load_config(self, force_reload: bool = False) -> RegistryDocument:
        """
        Parsed registry document. Cached unless force_reload.

        A missing file yields an (unsaved) default document.
        """
        if self._config is not None and not force_reload:
            return self._config

        path = self.layout.registry_path
        if not path.exists():
            self._config = create_default_config(self.layout.default_settings())
            return self._config

        try:
            raw = load_yaml(path)
        except yaml.YAMLError as e:
            raise InvalidConfigError([f"YAML parse error: {e}"], str(path)) from e

        if raw is None:
            raise InvalidConfigError(["document is empty"], str(path))

        report = validate_config(raw)
        if not report.valid:
            raise InvalidConfigError(report.errors, str(path))

        self._config = RegistryDocument.from_dict(raw)
        return self._config

    def save_config(self, document: RegistryDocument):
        """Validate and persist the full document, then replace the cache."""
        data = document.to_dict()
        report = validate_config(data)
        if not report.valid:
            raise InvalidConfigError(report.errors, str(self.layout.registry_path))
        dump_yaml(self.layout.registry_path, data, header=REGISTRY_HEADER)
        self._config = document

    # =========================================================================
    # Queries
    # =========================================================================

    def get_scope(self, scope_id: str) -> Optional[ScopeRecord]:
        """Record or None. Never raises for an unknown id."""
        return self.load_config().scopes.get(scope_id)

    def scope_exists(self, scope_id: str) -> bool:
        return self.get_scope(scope_id) is not None

    def list_scopes(self, status: Optional[Union[str, ScopeStatus]] = None) -> List[ScopeRecord]:
        """All records, optionally filtered by status, newest first."""
        records = list(self.load_config().scopes.values())
        if status is not None:
            wanted = ScopeStatus(status) if isinstance(status, str) else status
            records = [r for r in records if r.status == wanted]
        return sorted(records, key=_created_key, reverse=True)

    def require_scope(self, scope_id: str, error_class=NotFoundError) -> ScopeRecord:
        """Record, or raise error_class with "did you mean" suggestions."""
        record = self.get_scope(scope_id)
        if record is None:
            raise error_class(scope_id, self.suggest_scope_ids(scope_id))
        return record

    def suggest_scope_ids(self, query: str, limit: int = SUGGESTION_LIMIT) -> List[str]:
        """Registered ids close to query, best match first."""
        ids = list(self.load_config().scopes)
        if not query or not ids:
            return []
        matches = process.extract(
            query, ids, scorer=fuzz.ratio, limit=limit, score_cutoff=SUGGESTION_CUTOFF
        )
        return [choice for choice, _score, _index in matches]

    def find_dependent_scopes(
        self, scope_id: str, all_scopes: Optional[Mapping[str, Any]] = None
    ) -> List[str]:
        """Ids of scopes whose dependencies include scope_id."""
        if not all_scopes:
            return []
        dependents = []
        for other_id, record in all_scopes.items():
            deps = record.dependencies if isinstance(record, ScopeRecord) else (record or {}).get("dependencies") or []
            if scope_id in deps:
                dependents.append(other_id)
        return dependents

    def get_dependency_tree(self, scope_id: str) -> DependencyTree:
        record = self.require_scope(scope_id)
        scopes = self.load_config().scopes
        tree = DependencyTree(scope=scope_id)
        for dep in record.dependencies:
            dep_record = scopes.get(dep)
            if dep_record is None:
                tree.dependencies.append(DependencyInfo(dep, dep, "missing"))
            else:
                tree.dependencies.append(DependencyInfo(dep, dep_record.name, dep_record.status.value))
        tree.dependents = self.find_dependent_scopes(scope_id, scopes)
        return tree

    def get_scope_paths(self, scope_id: str) -> ScopePaths:
        self.require_scope(scope_id)
        return self.layout.scope_paths(scope_id)

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_scope(
        self,
        scope_id: str,
        name: str = "",
        description: str = "",
        status: Union[str, ScopeStatus] = ScopeStatus.ACTIVE,
        dependencies: Optional[List[str]] = None,
        create_context: bool = False,
    ) -> ScopeRecord:
        """
        Register a scope and create its directory skeleton.

        Both must succeed. If the directories cannot be created the registry
        entry is withdrawn and the error is raised.
        """
        id_check = validate_scope_id(scope_id)
        if not id_check.valid:
            raise InvalidFormatError(id_check.error, id_check.kind)

        document = self.load_config()
        if scope_id in document.scopes:
            raise AlreadyExistsError(scope_id)

        record = ScopeRecord(
            id=scope_id,
            name=name or scope_id,
            description=description or "",
            status=ScopeStatus(status) if isinstance(status, str) else status,
            dependencies=list(dependencies or []),
        )

        report = validate_scope(record, document.scopes)
        if not report.valid:
            raise InvalidFormatError(f"Invalid scope '{scope_id}': {'; '.join(report.errors)}")

        cycle = detect_circular_dependencies(scope_id, record.dependencies, document.scopes)
        if cycle.has_circular:
            raise CircularDependencyError(cycle.chain)

        document.scopes[scope_id] = record
        try:
            self.save_config(document)
        except ScopeError:
            document.scopes.pop(scope_id, None)
            raise

        try:
            self.initializer.initialize_scope(scope_id, create_context=create_context)
        except OSError as e:
            document.scopes.pop(scope_id, None)
            self.save_config(document)
            logger.warning("Withdrew registry entry for '%s' after directory creation failed", scope_id)
            raise ScopeError(f"Failed to create directories for scope '{scope_id}': {e}") from e

        logger.info("Created scope '%s'", scope_id)
        self.events.append(
            EventType.SCOPE_CREATED, scope_id, name=record.name, dependencies=record.dependencies
        )
        return record

    def update_scope(self, scope_id: str, updates: Mapping[str, Any]) -> ScopeRecord:
        """
        Merge updates into a record. Changes to `id` are ignored.

        Raises NotFoundError, InvalidUpdateError (all violations together),
        or CircularDependencyError.
        """
        document = self.load_config()
        current = self.require_scope(scope_id)

        merged = current.to_dict()
        for key in UPDATABLE_FIELDS:
            if key in updates:
                value = updates[key]
                merged[key] = value.value if isinstance(value, ScopeStatus) else value

        report = validate_scope(merged, document.scopes)
        if not report.valid:
            raise InvalidUpdateError(scope_id, report.errors)

        cycle = detect_circular_dependencies(scope_id, merged["dependencies"] or [], document.scopes)
        if cycle.has_circular:
            raise CircularDependencyError(cycle.chain)

        record = ScopeRecord.from_dict(merged)
        record.touch()
        document.scopes[scope_id] = record
        try:
            self.save_config(document)
        except ScopeError:
            document.scopes[scope_id] = current
            raise

        changed = [key for key in UPDATABLE_FIELDS if key in updates]
        logger.info("Updated scope '%s' (%s)", scope_id, ", ".join(changed) or "touch")
        self.events.append(EventType.SCOPE_UPDATED, scope_id, fields=changed)
        return record

    def remove_scope(self, scope_id: str, force: bool = False) -> bool:
        """
        Delete a registry entry. Does not touch directories; pair with
        ScopeInitializer.remove_scope for that.

        Without force, fails while other scopes depend on it. With force, the
        id is stripped from every dependent's dependencies.
        """
        document = self.load_config()
        self.require_scope(scope_id)

        dependents = self.find_dependent_scopes(scope_id, document.scopes)
        if dependents and not force:
            raise HasDependentsError(scope_id, dependents)

        for dependent in dependents:
            record = document.scopes[dependent]
            record.dependencies = [d for d in record.dependencies if d != scope_id]
            record.touch()

        del document.scopes[scope_id]
        self.save_config(document)

        logger.info("Removed scope '%s'%s", scope_id,
                    f" (stripped from {', '.join(dependents)})" if dependents else "")
        self.events.append(EventType.SCOPE_REMOVED, scope_id, stripped_from=dependents)
        return True

    def _set_status(self, scope_id: str, status: ScopeStatus, event_type: EventType) -> ScopeRecord:
        document = self.load_config()
        record = self.require_scope(scope_id)
        record.status = status
        record.touch()
        document.scopes[scope_id] = record
        self.save_config(document)
        logger.info("Scope '%s' is now %s", scope_id, status.value)
        self.events.append(event_type, scope_id)
        return record

    def archive_scope(self, scope_id: str) -> ScopeRecord:
        return self._set_status(scope_id, ScopeStatus.ARCHIVED, EventType.SCOPE_ARCHIVED)

    def activate_scope(self, scope_id: str) -> ScopeRecord:
        return self._set_status(scope_id, ScopeStatus.ACTIVE, EventType.SCOPE_ACTIVATED)

    def set_artifact_count(self, scope_id: str, count: int) -> ScopeRecord:
        """Advisory counter, refreshed after sync and migration."""
        document = self.load_config()
        record = self.require_scope(scope_id)
        record.meta.artifact_count = max(0, int(count))
        record.touch()
        self.save_config(document)
        return record
