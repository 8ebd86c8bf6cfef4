"""Field descriptors for dataclass and pydantic records.

A record's fields are read into a tuple of ``FieldSpec`` rows holding what the
binder needs: the attribute name, the declared type tag, and the source key,
default literal, and required flag taken from per-field metadata.

Metadata lives in ``dataclasses.field(metadata=...)`` for dataclasses and in
``Field(json_schema_extra=...)`` for pydantic models:

    @dataclass
    class Server:
        port: Uint16 = field(default=0, metadata={"env": "PORT", "default": "8080"})

    class Server(BaseModel):
        port: Uint16 = Field(default=0, json_schema_extra={"env": "PORT"})
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping
from dataclasses import dataclass
import dataclasses
import logging
import sys
import types
import typing
from typing import TYPE_CHECKING, Annotated, Any, Union

from pydantic import BaseModel

from .parsers import TRUE_TOKENS, Kind

if TYPE_CHECKING:
    from .parsers import ParserRegistry

log = logging.getLogger(__name__)

_BUILTIN_TAGS: dict[Any, Kind] = {
    bool: Kind.BOOL,
    int: Kind.INT,
    float: Kind.FLOAT64,
    str: Kind.STR,
}


@dataclass(frozen=True)
class FieldSpec:
    """Binding-relevant view of a single record field."""

    name: str
    tag: Hashable
    key: str = ""
    default: str = ""
    required: bool = False


# --- Record detection ---


def is_record_type(cls: object) -> bool:
    """Return True for dataclass and pydantic model classes."""
    return isinstance(cls, type) and (
        dataclasses.is_dataclass(cls) or issubclass(cls, BaseModel)
    )


def is_record(obj: object) -> bool:
    """Return True for dataclass and pydantic model instances."""
    return not isinstance(obj, type) and is_record_type(type(obj))


def is_frozen(obj: object) -> bool:
    """Return True when a record instance rejects attribute assignment."""
    cls = type(obj)
    if issubclass(cls, BaseModel):
        return bool(cls.model_config.get("frozen", False))
    params = getattr(cls, "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


# --- Descriptor table ---


def describe(
    cls: type,
    *,
    env_tag: str,
    default_tag: str,
    required_tag: str,
    registry: ParserRegistry | None = None,
) -> tuple[FieldSpec, ...]:
    """Build the descriptor table for a record class, in declaration order."""
    if issubclass(cls, BaseModel):
        rows = _pydantic_rows(cls)
    else:
        rows = _dataclass_rows(cls)

    specs = []
    for name, annotation, extras, meta in rows:
        specs.append(
            FieldSpec(
                name=name,
                tag=type_tag(annotation, extras, registry=registry),
                key=_text(meta.get(env_tag)),
                default=_text(meta.get(default_tag)),
                required=_flag(meta.get(required_tag)),
            )
        )
    return tuple(specs)


def _dataclass_rows(cls: type) -> list[tuple[str, Any, tuple[Any, ...], Mapping]]:
    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except NameError:
        hints = _field_hints(cls)
    return [
        (f.name, hints.get(f.name, f.type), (), f.metadata)
        for f in dataclasses.fields(cls)
    ]


def _field_hints(cls: type) -> dict[str, Any]:
    """Resolve annotations one field at a time.

    Used when ``get_type_hints`` fails on the whole class, typically because
    one field names a record declared inside a function. Only the fields whose
    annotation cannot be evaluated keep their raw string.
    """
    module = sys.modules.get(cls.__module__)
    globalns = dict(vars(module)) if module is not None else {}
    localns = {cls.__name__: cls, **vars(cls)}

    hints: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        annotation = f.type
        if isinstance(annotation, typing.ForwardRef):
            annotation = annotation.__forward_arg__
        if not isinstance(annotation, str):
            hints[f.name] = annotation
            continue
        try:
            hints[f.name] = eval(annotation, globalns, localns)  # noqa: S307
        except NameError:
            log.debug(
                "Unresolved annotation %r on %s.%s",
                annotation,
                cls.__qualname__,
                f.name,
            )
            hints[f.name] = annotation
    return hints


def _pydantic_rows(
    cls: type[BaseModel],
) -> list[tuple[str, Any, tuple[Any, ...], Mapping]]:
    rows = []
    for name, info in cls.model_fields.items():
        extra = info.json_schema_extra
        meta = extra if isinstance(extra, Mapping) else {}
        rows.append((name, info.annotation, tuple(info.metadata), meta))
    return rows


# --- Type tags ---


def type_tag(
    annotation: Any,
    extras: tuple[Any, ...] = (),
    *,
    registry: ParserRegistry | None = None,
) -> Hashable:
    """Derive the parser tag for a field annotation.

    ``Optional`` is unwrapped first. An ``Annotated`` item that is a ``Kind`` or
    a tag registered in ``registry`` wins over the base type; builtin scalar
    types map onto their ``Kind``; anything else is its own tag.
    """
    annotation = _unwrap_optional(annotation)
    if typing.get_origin(annotation) is Annotated:
        base, *metadata = typing.get_args(annotation)
        return type_tag(base, (*metadata, *extras), registry=registry)

    for item in extras:
        if isinstance(item, Kind):
            return item
        if registry is not None and _is_hashable(item) and item in registry:
            return item

    if _is_hashable(annotation):
        return _BUILTIN_TAGS.get(annotation, annotation)
    return annotation


def _unwrap_optional(annotation: Any) -> Any:
    if typing.get_origin(annotation) not in (Union, types.UnionType):
        return annotation
    args = [a for a in typing.get_args(annotation) if a is not type(None)]
    return args[0] if len(args) == 1 else annotation


def _is_hashable(obj: object) -> bool:
    try:
        hash(obj)
    except TypeError:
        return False
    return True


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return isinstance(value, str) and value in TRUE_TOKENS
