"""Pytest configuration and fixtures.

Provides environment isolation and a private parser registry per test. All
fixtures here are autouse unless noted.
"""

from __future__ import annotations

from contextlib import suppress
import logging
import os

import pytest

from envbind.parsers import ParserRegistry, default_registry

# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "dotenv.load_dotenv", lambda *_args, **_kwargs: False, raising=False
        )


@pytest.fixture(autouse=True)
def isolate_envbind_env(monkeypatch):
    """Clear ENVBIND_* variables so debug audit output never leaks into tests."""
    for key in list(os.environ.keys()):
        if key.startswith("ENVBIND_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def restore_default_registry():
    """Undo global register_parser() calls made by a test."""
    registry = default_registry()
    snapshot = {tag: registry.lookup(tag) for tag in registry.tags()}
    yield
    with registry._lock:
        registry._parsers.clear()
        registry._parsers.update(snapshot)


# =============================================================================
# Fixtures (opt-in)
# =============================================================================


@pytest.fixture
def registry() -> ParserRegistry:
    """Return a private copy of the built-in registry."""
    return default_registry().copy()


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("dotenv").setLevel(logging.WARNING)
