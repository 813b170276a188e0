"""
Active Scope — The project-root marker naming the current scope

A small YAML file outside the registry. Downstream resolvers read it; this
module only reads and writes it. When `enabled` is false the file is kept
but resolvers ignore it.

Reading is tolerant: legacy files without `enabled` count as enabled, and
content that is not valid YAML falls back to a plain `active_scope:` scan.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml

from ..config import ACTIVE_SCOPE_FILE
from .models import utc_now

logger = logging.getLogger(__name__)

MARKER_VERSION = 1

MARKER_HEADER = (
    "# Scopekit Active Scope Configuration\n"
    "# Auto-generated. Prefer: scopekit set <scope-id>\n"
    "# To temporarily ignore this file for scope resolution:\n"
    "#   scopekit file-disable\n"
    "\n"
)

_ACTIVE_SCOPE_LINE = re.compile(r'active_scope:\s*(\S+)')


@dataclass
class ActiveScopeState:
    exists: bool = False
    enabled: bool = True
    active_scope: Optional[str] = None
    set_at: Optional[str] = None
    version: Optional[int] = None
    legacy: bool = False
    parse_error: Optional[str] = None

    @property
    def effective_scope(self) -> Optional[str]:
        """The scope resolvers should use, or None if disabled or unset."""
        return self.active_scope if self.exists and self.enabled else None


class ActiveScopeFile:
    def __init__(self, project_root: Path):
        self.path = Path(project_root) / ACTIVE_SCOPE_FILE

    def read(self) -> ActiveScopeState:
        state = ActiveScopeState()
        if not self.path.exists():
            return state
        state.exists = True
        content = self.path.read_text(encoding="utf-8")

        try:
            data = yaml.safe_load(content) or {}
            if not isinstance(data, dict):
                raise yaml.YAMLError(f"expected a mapping, got {type(data).__name__}")
        except yaml.YAMLError as e:
            logger.warning("Malformed %s, falling back to line scan: %s", self.path.name, e)
            state.parse_error = str(e)
            state.legacy = True
            match = _ACTIVE_SCOPE_LINE.search(content)
            if match and match.group(1) != "null":
                state.active_scope = match.group(1).strip().strip("'\"")
            return state

        version = data.get("version")
        state.version = version if isinstance(version, int) else None

        if isinstance(data.get("enabled"), bool):
            state.enabled = data["enabled"]
        elif isinstance(data.get("disabled"), bool):
            state.enabled = not data["disabled"]

        scope = data.get("active_scope")
        if isinstance(scope, str) and scope.strip():
            state.active_scope = scope.strip()

        set_at = data.get("set_at")
        if isinstance(set_at, str) and set_at.strip():
            state.set_at = set_at.strip()

        state.legacy = state.version is None and "enabled" not in data and "disabled" not in data
        return state

    def write(self, enabled: bool = True, active_scope: Optional[str] = None) -> ActiveScopeState:
        scope = active_scope.strip() if isinstance(active_scope, str) and active_scope.strip() else None
        body = {
            "version": MARKER_VERSION,
            "enabled": bool(enabled),
            "active_scope": scope,
            "set_at": utc_now(),
        }
        with open(self.path, "w", encoding="utf-8") as f:
            f.write(MARKER_HEADER)
            yaml.safe_dump(body, f, default_flow_style=False, sort_keys=False)
        return ActiveScopeState(True, body["enabled"], scope, body["set_at"], MARKER_VERSION)

    def set(self, scope_id: str) -> ActiveScopeState:
        return self.write(enabled=True, active_scope=scope_id)

    def clear(self) -> bool:
        """Delete the marker. Returns False if there was none."""
        if not self.path.exists():
            return False
        self.path.unlink()
        return True

    def enable(self) -> Optional[ActiveScopeState]:
        """Re-enable, keeping active_scope. None if there is no marker."""
        state = self.read()
        if not state.exists:
            return None
        return self.write(enabled=True, active_scope=state.active_scope)

    def disable(self) -> Optional[ActiveScopeState]:
        """Disable, keeping active_scope. None if there is no marker."""
        state = self.read()
        if not state.exists:
            return None
        return self.write(enabled=False, active_scope=state.active_scope)

    def forget(self, scope_id: str) -> bool:
        """
        Called when a scope is removed. If the marker points at it, keep the
        file but disable it and clear the pointer.
        """
        state = self.read()
        if state.exists and state.active_scope == scope_id:
            self.write(enabled=False, active_scope=None)
            logger.info("Cleared active scope marker (was '%s')", scope_id)
            return True
        return False
