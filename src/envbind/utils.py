"""Shared constants and small helpers.

Pure functions only, importable from any module without creating cycles.
"""

from __future__ import annotations

import os

# --- Constants ---

ENV_PREFIX = "ENVBIND_"
DEBUG_CONFIG_VAR = "ENVBIND_DEBUG_CONFIG"

# Metadata keys read from record fields unless a Binder names others
DEFAULT_ENV_TAG = "env"
DEFAULT_VALUE_TAG = "default"
DEFAULT_REQUIRED_TAG = "required"

DEFAULT_TOML_TABLE = "tool.envbind"


def should_emit_debug() -> bool:
    """Return True when debug audit is enabled via environment.

    Stateless for thread-safety. Callers rely on the warnings machinery
    (default filtering prints once per location) to avoid repeated emissions.
    """
    return os.environ.get(DEBUG_CONFIG_VAR, "").strip().lower() in {
        "1",
        "true",
        "yes",
        "on",
    }


# --- Sensitive Key Utilities ---

SENSITIVE_KEYS = {
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
    "passwd",
    "access_key",
    "client_secret",
}


def is_sensitive_field_key(name: str) -> bool:
    """Return True if a key or field name is considered sensitive for logging."""
    lower = name.lower()
    return any(token in lower for token in SENSITIVE_KEYS)
