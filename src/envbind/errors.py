"""Exception hierarchy for envbind."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Hashable


class EnvBindError(Exception):
    """Base exception for all envbind errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ParseError(EnvBindError, ValueError):
    """A string is not a valid literal for the requested scalar kind."""


# --- Target preconditions ---


class NotAReferenceError(EnvBindError):
    """Target cannot be written in place.

    Raised for ``None``, for a record *class* passed instead of an instance,
    and for frozen records.
    """


class NotARecordError(EnvBindError):
    """Target is an instance but not a dataclass or pydantic model."""


# --- Per-field failures ---


class UnsupportedTypeError(EnvBindError):
    """No parser is registered for a field's declared type."""

    def __init__(self, field_name: str, type_tag: Hashable) -> None:
        self.field_name = field_name
        self.type_tag = type_tag
        super().__init__(
            f"Field '{field_name}' has unsupported type {_tag_label(type_tag)}",
            hint="Register a parser with envbind.register_parser().",
        )


class FieldParseError(EnvBindError):
    """A resolved string could not be converted to the field's type."""

    def __init__(
        self, field_name: str, raw: str, underlying_error: Exception
    ) -> None:
        self.field_name = field_name
        self.raw = raw
        self.underlying_error = underlying_error
        super().__init__(
            f"Field '{field_name}' cannot parse {raw!r}: {underlying_error}"
        )


class RequiredFieldError(EnvBindError):
    """A required field resolved to its type's zero value."""

    def __init__(self, key: str, field_name: str | None = None) -> None:
        self.key = key
        self.field_name = field_name
        super().__init__(
            f"{key} required",
            hint=f"Set {key} in the environment or pass it in a source mapping.",
        )


def _tag_label(tag: Hashable) -> str:
    value = getattr(tag, "value", None)
    if isinstance(value, str):
        return repr(value)
    name = getattr(tag, "__qualname__", None)
    return name if isinstance(name, str) else repr(tag)
