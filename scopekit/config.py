"""
Configuration — Registry document schema and project layout

Output root hierarchy (highest to lowest priority):
  1. Environment variable (SCOPEKIT_OUTPUT_BASE)
  2. Registry settings (.scopekit/_config/scopes.yaml -> settings.default_output_base)
  3. Defaults

The registry document is the project configuration. It is the single
source of truth for which scopes exist; everything under the output root
is derived from it.
"""

import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any

from .core.models import ScopeRecord, ScopePaths


SCHEMA_VERSION = 1

PROJECT_CONFIG_DIR = ".scopekit"
CONFIG_SUBDIR = "_config"
EVENTS_SUBDIR = "_events"
SCOPES_FILE = "scopes.yaml"
ACTIVE_SCOPE_FILE = ".scopekit-scope"

DEFAULT_OUTPUT_BASE = "_output"
SHARED_DIR = "_shared"
BACKUP_PREFIX = "_backup"

# Per-scope layout
PLANNING_DIR = "planning-artifacts"
IMPLEMENTATION_DIR = "implementation-artifacts"
TESTS_DIR = "tests"
PULLED_DIR = "shared"
SCOPE_META_FILE = ".scope-meta.yaml"
SYNC_META_FILE = ".sync-meta.yaml"
CONTEXT_FILE = "project-context.md"

ISOLATION_MODES = ("strict", "warn", "permissive")
DEFAULT_ISOLATION_MODE = "strict"

OUTPUT_BASE_ENV = "SCOPEKIT_OUTPUT_BASE"


def load_yaml(path: Path) -> Any:
    """Read a YAML file. Raises OSError / yaml.YAMLError."""
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f)


def dump_yaml(path: Path, data: Any, header: str = ""):
    """Write a YAML file, creating parent directories."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        if header:
            f.write(header)
        yaml.safe_dump(data, f, default_flow_style=False, sort_keys=False)


@dataclass
class Settings:
    """Registry-wide settings."""
    isolation_mode: str = DEFAULT_ISOLATION_MODE
    allow_adhoc_scopes: bool = True
    default_output_base: str = DEFAULT_OUTPUT_BASE
    default_shared_path: str = f"{DEFAULT_OUTPUT_BASE}/{SHARED_DIR}"

    def validate(self) -> Optional[str]:
        """Validate settings. Returns error message or None if valid."""
        if self.isolation_mode not in ISOLATION_MODES:
            return f"Invalid isolation_mode '{self.isolation_mode}'. Valid: {', '.join(ISOLATION_MODES)}"
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allow_adhoc_scopes": self.allow_adhoc_scopes,
            "isolation_mode": self.isolation_mode,
            "default_output_base": self.default_output_base,
            "default_shared_path": self.default_shared_path,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> 'Settings':
        data = data or {}
        output_base = data.get("default_output_base", DEFAULT_OUTPUT_BASE)
        return cls(
            isolation_mode=data.get("isolation_mode", DEFAULT_ISOLATION_MODE),
            allow_adhoc_scopes=bool(data.get("allow_adhoc_scopes", True)),
            default_output_base=output_base,
            default_shared_path=data.get("default_shared_path", f"{output_base}/{SHARED_DIR}"),
        )


@dataclass
class RegistryDocument:
    """Parsed scopes.yaml. Unknown top-level keys survive a round-trip in extra."""
    version: int = SCHEMA_VERSION
    settings: Settings = field(default_factory=Settings)
    scopes: Dict[str, ScopeRecord] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "version": self.version,
            "settings": self.settings.to_dict(),
            "scopes": {scope_id: record.to_dict() for scope_id, record in self.scopes.items()},
        }
        data.update(self.extra)
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'RegistryDocument':
        """Parse an already-validated document."""
        scopes = data.get("scopes") or {}
        return cls(
            version=data.get("version", SCHEMA_VERSION),
            settings=Settings.from_dict(data.get("settings")),
            scopes={scope_id: ScopeRecord.from_dict(raw) for scope_id, raw in scopes.items()},
            extra={k: v for k, v in data.items() if k not in ("version", "settings", "scopes")},
        )


class ProjectLayout:
    """
    Every path the scope system reads or writes, derived from the
    project root and the output base.
    """

    def __init__(self, project_root: Path, output_base: str = DEFAULT_OUTPUT_BASE):
        self.project_root = Path(project_root)
        self.output_base = output_base

    @classmethod
    def discover(cls, project_root: Path) -> 'ProjectLayout':
        """Resolve output base from env, then registry settings, then default."""
        project_root = Path(project_root)
        output_base = os.environ.get(OUTPUT_BASE_ENV)
        if not output_base:
            registry = project_root / PROJECT_CONFIG_DIR / CONFIG_SUBDIR / SCOPES_FILE
            if registry.exists():
                try:
                    data = load_yaml(registry) or {}
                    settings = data.get("settings") if isinstance(data, dict) else None
                    if isinstance(settings, dict) and isinstance(settings.get("default_output_base"), str):
                        output_base = settings["default_output_base"]
                except (OSError, yaml.YAMLError):
                    pass  # Corrupt registry is reported by ScopeManager.initialize
        return cls(project_root, output_base or DEFAULT_OUTPUT_BASE)

    @property
    def config_dir(self) -> Path:
        return self.project_root / PROJECT_CONFIG_DIR / CONFIG_SUBDIR

    @property
    def registry_path(self) -> Path:
        return self.config_dir / SCOPES_FILE

    @property
    def events_dir(self) -> Path:
        return self.project_root / PROJECT_CONFIG_DIR / EVENTS_SUBDIR

    @property
    def active_scope_path(self) -> Path:
        return self.project_root / ACTIVE_SCOPE_FILE

    @property
    def output_root(self) -> Path:
        return self.project_root / self.output_base

    @property
    def shared_root(self) -> Path:
        return self.output_root / SHARED_DIR

    def default_settings(self) -> Settings:
        return Settings(
            default_output_base=self.output_base,
            default_shared_path=f"{self.output_base}/{SHARED_DIR}",
        )

    def scope_paths(self, scope_id: str) -> ScopePaths:
        root = self.output_root / scope_id
        return ScopePaths(
            root=root,
            planning=root / PLANNING_DIR,
            implementation=root / IMPLEMENTATION_DIR,
            tests=root / TESTS_DIR,
            meta=root / SCOPE_META_FILE,
            sync_meta=root / SYNC_META_FILE,
            pulled=root / PULLED_DIR,
        )
