"""Loaders that turn files into string maps for ``Binder.bind``.

These sit outside the binding engine: each returns a plain ``dict[str, str]``
that callers pass as one of the ``sources``, or (``load_dotenv``) copies
``.env`` entries into the process environment the way service entry points
usually do before binding.
"""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

# Python 3.11+ has tomllib in stdlib
import tomllib

import dotenv

from .binder import Binder
from .utils import DEFAULT_TOML_TABLE

if TYPE_CHECKING:
    from collections.abc import Mapping
    from os import PathLike

    StrPath = str | PathLike[str]

log = logging.getLogger(__name__)

DEFAULT_ENV_FILE = ".env"


# --- .env files ---


def load_env_file(path: StrPath) -> dict[str, str]:
    """Read a ``.env`` file into a string map without touching ``os.environ``.

    Keys declared without a value (a bare ``KEY`` line) are omitted, so they
    stay absent for resolution rather than binding as empty strings.

    Returns:
        Mapping of keys to values, or an empty dict if the file is missing
        or unreadable.
    """
    p = Path(path)
    if not p.is_file():
        log.debug("No env file at %s", p)
        return {}
    try:
        values = dotenv.dotenv_values(p)
    except (OSError, UnicodeDecodeError) as e:
        log.warning("Error loading env file %s: %s", p, e)
        return {}
    return {k: v for k, v in values.items() if v is not None}


def load_env_files(*paths: StrPath) -> dict[str, str]:
    """Read several ``.env`` files into one map; earlier files win."""
    merged: dict[str, str] = {}
    for path in paths:
        for k, v in load_env_file(path).items():
            merged.setdefault(k, v)
    return merged


def load_dotenv(*paths: StrPath, override: bool = False) -> list[Path]:
    """Copy ``.env`` entries into ``os.environ``.

    Existing variables are kept unless ``override`` is set, so a variable
    exported by the shell beats the file, and among files the first one to
    define a key wins. Unreadable files are logged and skipped.

    Args:
        *paths: Files to load. Defaults to ``.env`` in the working directory.
        override: Replace variables that are already set.

    Returns:
        The files that were loaded.
    """
    loaded: list[Path] = []
    for path in paths or (DEFAULT_ENV_FILE,):
        p = Path(path)
        if not p.is_file():
            log.warning("Error loading env file %s: file not found", p)
            continue
        try:
            dotenv.load_dotenv(p, override=override)
        except (OSError, UnicodeDecodeError) as e:
            log.warning("Error loading env file %s: %s", p, e)
            continue
        loaded.append(p)
    return loaded


def new_binder(*env_files: StrPath) -> Binder:
    """Load ``.env`` files into the environment and return a default binder.

    Missing files are logged, not raised, so a service can start with only
    its real environment.
    """
    load_dotenv(*env_files)
    return Binder()


# --- TOML files ---


def _read_toml(path: Path) -> dict[str, Any]:
    """Read a TOML file, returning an empty dict when missing or malformed."""
    if not path.exists():
        return {}

    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        log.warning("Ignoring unreadable TOML file %s: %s", path, e)
        return {}


def load_toml_table(
    path: StrPath, table: str = DEFAULT_TOML_TABLE
) -> dict[str, str]:
    """Read one table of a TOML file as a flat string map.

    Nested tables flatten to dotted keys (``db.port``). Scalars are rendered
    in the literal syntax the built-in parsers accept: booleans as
    ``true``/``false``, datetimes in ISO 8601. Arrays are skipped.

    Args:
        path: TOML file to read.
        table: Dotted table path, e.g. ``"tool.envbind"``. Empty for the root.

    Returns:
        Flat string map, empty if the file or table is missing.
    """
    data: Any = _read_toml(Path(path))
    for part in filter(None, table.split(".")):
        data = data.get(part, {}) if isinstance(data, dict) else {}
    if not isinstance(data, dict):
        return {}
    out: dict[str, str] = {}
    _flatten(data, "", out)
    return out


def _flatten(table: Mapping[str, Any], prefix: str, out: dict[str, str]) -> None:
    for k, v in table.items():
        key = f"{prefix}{k}"
        if isinstance(v, dict):
            _flatten(v, f"{key}.", out)
        elif isinstance(v, list):
            log.debug("Skipping array value for %s", key)
        else:
            out[key] = _stringify(v)


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, dt.date | dt.time):
        return value.isoformat()
    return str(value)
