"""
Shared pytest fixtures for the scopekit test suite.

Every fixture builds a real project under tmp_path via ScopeTestFactory.

Usage in tests:
    def test_something(scope_factory):
        scope_factory.create_scope("auth")
        ...

    def test_with_data(scope_env):
        # auth and payments (depends on auth) already exist
        ...
"""

import pytest

from scopekit.config import OUTPUT_BASE_ENV
from scopekit.logging_config import LOG_LEVEL_ENV
from scopekit.presentation.symbols import SYMBOLS_ENV
from tests.factories import ScopeTestFactory


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the caller's environment from changing project layout or output."""
    monkeypatch.delenv(OUTPUT_BASE_ENV, raising=False)
    monkeypatch.delenv(LOG_LEVEL_ENV, raising=False)
    monkeypatch.delenv("SCOPEKIT_PROJECT_PATH", raising=False)
    monkeypatch.setenv(SYMBOLS_ENV, "ascii")


@pytest.fixture
def scope_factory(tmp_path):
    """Initialized project with no scopes."""
    return ScopeTestFactory(tmp_path)


@pytest.fixture
def scope_env(tmp_path):
    """
    Initialized project with sample scopes:
    - auth
    - payments (depends on auth)
    """
    factory = ScopeTestFactory(tmp_path)
    factory.create_scope("auth", name="Authentication")
    factory.create_scope("payments", name="Payments", dependencies=["auth"])
    return factory
