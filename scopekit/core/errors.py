"""
Errors — Exception hierarchy for scope lifecycle operations

Registry-level failures raise. Per-item failures during bulk operations
(sync transfers, migration moves, rollback restores) never raise; they are
reported in the structured result of the operation instead.

Usage:
    from scopekit.core.errors import ScopeError, NotFoundError

    try:
        manager.update_scope("auth", {"name": "Auth"})
    except NotFoundError as e:
        print(e.message, e.suggestions)
"""

from typing import List, Optional


class ScopeError(Exception):
    """Base class for all scope errors. Carries a human-readable message."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidFormatError(ScopeError):
    """
    Scope identifier or record shape is invalid.

    kind is "invalid_format" for syntax violations and "reserved" for
    identifiers that collide with internal directory names.
    """

    def __init__(self, message: str, kind: str = "invalid_format"):
        self.kind = kind
        super().__init__(message)


class InvalidUpdateError(InvalidFormatError):
    """Merged record failed validation. All violations are in errors."""

    def __init__(self, scope_id: str, errors: List[str]):
        self.scope_id = scope_id
        self.errors = list(errors)
        super().__init__(f"Invalid scope update for '{scope_id}': {'; '.join(self.errors)}")


class InvalidConfigError(ScopeError):
    """Registry document is corrupt or fails validation."""

    def __init__(self, errors: List[str], path: Optional[str] = None):
        self.errors = list(errors)
        self.path = path
        where = f" ({path})" if path else ""
        super().__init__(f"Invalid scopes.yaml{where}: {'; '.join(self.errors)}")


class AlreadyExistsError(ScopeError):
    """Scope id is already registered."""

    def __init__(self, scope_id: str):
        self.scope_id = scope_id
        super().__init__(f"Scope '{scope_id}' already exists")


class NotFoundError(ScopeError):
    """Scope (or backup) is not known."""

    def __init__(self, scope_id: str, suggestions: Optional[List[str]] = None, what: str = "Scope"):
        self.scope_id = scope_id
        self.suggestions = list(suggestions or [])
        message = f"{what} '{scope_id}' does not exist"
        if self.suggestions:
            message += f". Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)


class ScopeNotFoundError(NotFoundError):
    """Target scope of a sync or migration does not exist."""


class HasDependentsError(ScopeError):
    """Scope cannot be removed while other scopes depend on it."""

    def __init__(self, scope_id: str, dependents: List[str]):
        self.scope_id = scope_id
        self.dependents = list(dependents)
        super().__init__(
            f"Cannot remove scope '{scope_id}': scopes {', '.join(self.dependents)} depend on it. "
            f"Use force to remove anyway"
        )


class CircularDependencyError(ScopeError):
    """Dependency assignment would close a cycle."""

    def __init__(self, chain: List[str]):
        self.chain = list(chain)
        super().__init__(f"Circular dependency detected: {' -> '.join(self.chain)}")
