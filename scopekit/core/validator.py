"""
Validator — Identifier, record and dependency-graph checks

Pure functions, no I/O. Record checks accumulate every violation instead of
stopping at the first so callers can surface them together.

Existence of dependencies and acyclicity are separate checks:
detect_circular_dependencies treats an unknown dependency as a dead end.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

from .models import ScopeRecord, ScopeStatus
from ..config import ISOLATION_MODES, RegistryDocument, Settings


SCOPE_ID_PATTERN = re.compile(r'^[a-z][a-z0-9-]{0,48}[a-z0-9]$')
MIN_ID_LENGTH = 2
MAX_ID_LENGTH = 50

# Names used for the shared layer, backups, config and events directories
RESERVED_IDS = frozenset({"_shared", "_events", "_config", "_backup", "global"})

VALID_STATUSES = tuple(s.value for s in ScopeStatus)

ScopeLike = Union[ScopeRecord, Mapping[str, Any]]


@dataclass
class IdValidation:
    """Result of validate_scope_id."""
    valid: bool
    error: Optional[str] = None
    kind: Optional[str] = None  # "invalid_format" | "reserved"


@dataclass
class ValidationReport:
    """Accumulated violations."""
    valid: bool = True
    errors: List[str] = field(default_factory=list)

    def add(self, error: str):
        self.errors.append(error)
        self.valid = False

    def extend(self, errors: Iterable[str]):
        for error in errors:
            self.add(error)


@dataclass
class CycleCheck:
    """Result of detect_circular_dependencies."""
    has_circular: bool = False
    chain: List[str] = field(default_factory=list)


def _as_mapping(scope: ScopeLike) -> Mapping[str, Any]:
    if isinstance(scope, ScopeRecord):
        return scope.to_dict()
    return scope


def _deps_of(scope: Any) -> List[str]:
    """Recorded dependencies of a scope entry, tolerating malformed shapes."""
    if isinstance(scope, ScopeRecord):
        return list(scope.dependencies)
    if isinstance(scope, Mapping):
        deps = scope.get("dependencies")
        if isinstance(deps, (list, tuple)):
            return [d for d in deps if isinstance(d, str)]
    return []


def _is_timestamp(value: Any) -> bool:
    if isinstance(value, date):
        return True
    if not isinstance(value, str) or not value:
        return False
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
        return True
    except ValueError:
        return False


def validate_scope_id(scope_id: Any) -> IdValidation:
    """
    Check identifier syntax and reserved names.

    Rules: 2-50 chars, lowercase letters/digits/hyphens, starts with a
    letter, does not end with a hyphen, not reserved.
    """
    if not isinstance(scope_id, str) or not scope_id:
        return IdValidation(False, "Scope ID is required and must be a string", "invalid_format")

    if scope_id in RESERVED_IDS:
        return IdValidation(False, f"Scope ID '{scope_id}' is reserved", "reserved")

    if not MIN_ID_LENGTH <= len(scope_id) <= MAX_ID_LENGTH:
        return IdValidation(
            False,
            f"Scope ID must be between {MIN_ID_LENGTH} and {MAX_ID_LENGTH} characters",
            "invalid_format",
        )

    if scope_id != scope_id.lower():
        return IdValidation(False, "Scope ID must be lowercase", "invalid_format")

    if not scope_id[0].isalpha():
        return IdValidation(False, "Scope ID must start with a letter", "invalid_format")

    if scope_id.endswith("-"):
        return IdValidation(False, "Scope ID must not end with a hyphen", "invalid_format")

    if not SCOPE_ID_PATTERN.match(scope_id):
        return IdValidation(
            False,
            "Scope ID may only contain lowercase letters, numbers, and hyphens",
            "invalid_format",
        )

    return IdValidation(True)


def validate_scope(scope: ScopeLike, all_scopes: Optional[Mapping[str, Any]] = None) -> ValidationReport:
    """
    Validate one scope record. Checks every rule and reports all violations.

    Dependency existence is only checked when all_scopes is supplied.
    """
    report = ValidationReport()
    if not isinstance(scope, (ScopeRecord, Mapping)):
        report.add("Scope must be a mapping")
        return report
    data = _as_mapping(scope)
    scope_id = data.get("id")

    id_check = validate_scope_id(scope_id)
    if not id_check.valid:
        report.add(id_check.error)

    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        report.add("Scope name is required")

    status = data.get("status")
    if status is not None and status not in VALID_STATUSES:
        report.add(f"Invalid status '{status}'. Valid: {', '.join(VALID_STATUSES)}")

    deps = data.get("dependencies")
    if deps is not None:
        if not isinstance(deps, (list, tuple)):
            report.add("Scope dependencies must be an array")
        else:
            for dep in deps:
                if not isinstance(dep, str):
                    report.add(f"Dependency {dep!r} must be a string")
                elif dep == scope_id:
                    report.add(f"Scope '{scope_id}' cannot depend on itself")
                elif all_scopes is not None and dep not in all_scopes:
                    report.add(f"Dependency '{dep}' does not exist")

    created = data.get("created")
    if created is not None and not _is_timestamp(created):
        report.add(f"Invalid created timestamp: {created!r}")

    meta = data.get("_meta")
    if meta is not None:
        if not isinstance(meta, Mapping):
            report.add("Scope _meta must be a mapping")
        else:
            last_activity = meta.get("last_activity")
            if last_activity is not None and not _is_timestamp(last_activity):
                report.add(f"Invalid last_activity timestamp: {last_activity!r}")
            count = meta.get("artifact_count")
            if count is not None and (isinstance(count, bool) or not isinstance(count, int) or count < 0):
                report.add("artifact_count must be a non-negative integer")

    return report


def detect_circular_dependencies(
    candidate_id: str,
    candidate_deps: Iterable[str],
    all_scopes: Optional[Mapping[str, Any]],
) -> CycleCheck:
    """
    Would giving candidate_id these dependencies close a cycle?

    Depth-first from each candidate dependency along recorded dependencies,
    keeping the current path. The first time the walk reaches candidate_id
    the path (starting at candidate_id) is the offending chain.
    """
    all_scopes = all_scopes or {}
    finished = set()

    def visit(current: str, path: List[str]) -> Optional[List[str]]:
        if current == candidate_id:
            return path + [current]
        if current in finished or current in path or current not in all_scopes:
            return None  # Already explored, unrelated cycle, or dead end
        path.append(current)
        for dep in _deps_of(all_scopes[current]):
            found = visit(dep, path)
            if found:
                return found
        path.pop()
        finished.add(current)
        return None

    for dep in candidate_deps:
        chain = visit(dep, [candidate_id])
        if chain:
            return CycleCheck(True, chain)
    return CycleCheck(False, [])


def validate_config(document: Any) -> ValidationReport:
    """
    Validate a whole registry document (raw mapping or RegistryDocument).

    Also reports dependency cycles, since the registry must stay a DAG.
    """
    report = ValidationReport()
    if hasattr(document, "to_dict") and not isinstance(document, Mapping):
        document = document.to_dict()
    if not isinstance(document, Mapping):
        report.add("Configuration must be a mapping")
        return report

    version = document.get("version")
    if version is None:
        report.add("Configuration version is required")
    elif isinstance(version, bool) or not isinstance(version, int):
        report.add(f"Configuration version must be an integer, got {version!r}")

    settings = document.get("settings")
    if settings is not None:
        if not isinstance(settings, Mapping):
            report.add("settings must be a mapping")
        else:
            mode = settings.get("isolation_mode")
            if mode is not None:
                if mode not in ISOLATION_MODES:
                    report.add(f"Invalid isolation_mode '{mode}'. Valid: {', '.join(ISOLATION_MODES)}")

    scopes = document.get("scopes")
    if scopes is None:
        return report
    if not isinstance(scopes, Mapping):
        report.add("scopes must be a mapping")
        return report

    for key, scope in scopes.items():
        if not isinstance(scope, Mapping):
            report.add(f"Scope '{key}' must be a mapping")
            continue
        if scope.get("id") != key:
            report.add(f"Scope key '{key}' does not match scope id '{scope.get('id')}'")
        for error in validate_scope(scope, scopes).errors:
            report.add(f"Scope '{key}': {error}")

    reported = set()
    for key, scope in scopes.items():
        if key in reported or not isinstance(scope, Mapping):
            continue
        cycle = detect_circular_dependencies(key, _deps_of(scope), scopes)
        if cycle.has_circular:
            reported.update(cycle.chain)
            report.add(f"Circular dependency detected: {' -> '.join(cycle.chain)}")

    return report


def create_default_config(settings: Optional[Settings] = None) -> RegistryDocument:
    """Schema-valid empty registry document (version 1, default settings)."""
    return RegistryDocument(settings=settings or Settings())
