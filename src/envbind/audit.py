"""Provenance tracking for bound fields.

``Binder.bind(..., explain=True)`` returns a ``SourceMap`` recording where each
bound field's string came from. Values are never stored, so audit output is
safe to log; sensitive keys are additionally flagged as redacted.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .utils import is_sensitive_field_key


class Origin(str, Enum):
    """Resolution layer that supplied a field's raw string."""

    SOURCE = "source"
    ENV = "env"
    DEFAULT = "default"


@dataclass(frozen=True)
class FieldOrigin:
    """Tracks the origin and context of a bound field value."""

    origin: Origin
    key: str
    index: int | None = None  # position in the sources list for Origin.SOURCE


# Dotted field path (e.g. "database.port") -> origin
SourceMap = dict[str, FieldOrigin]


def origin_label(where: FieldOrigin) -> str:
    """Return a compact label such as ``env:PORT`` or ``source[1]:PORT``."""
    match where.origin:
        case Origin.SOURCE:
            return f"source[{where.index}]:{where.key}"
        case Origin.ENV:
            return f"env:{where.key}"
        case _:
            return f"default:{where.key}"


def audit_lines(sources: SourceMap) -> list[str]:
    """Produce redacted, human-readable audit lines per field."""
    lines: list[str] = []
    for field, where in sources.items():
        redaction = (
            " [REDACTED]"
            if is_sensitive_field_key(field) or is_sensitive_field_key(where.key)
            else ""
        )
        lines.append(f"{field}: {origin_label(where)}{redaction}")
    return lines


def audit_text(sources: SourceMap) -> str:
    """Format audit as a single string suitable for printing/logging."""
    return "\n".join(audit_lines(sources))


def summarize_origins(sources: SourceMap) -> dict[str, int]:
    """Count how many fields originated from each layer."""
    counts: dict[str, int] = {}
    for fo in sources.values():
        key = fo.origin.value
        counts[key] = counts.get(key, 0) + 1
    return counts


def was_field_overridden(sources: SourceMap, field: str) -> bool:
    """Return True if a field's value did not come from its default literal."""
    fo = sources.get(field)
    return bool(fo and fo.origin is not Origin.DEFAULT)
