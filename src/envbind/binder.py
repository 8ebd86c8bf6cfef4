"""Binding engine: populate record fields from string sources.

A ``Binder`` walks a record's fields depth-first in declaration order. Nested
records are bound in place before the outer field's own metadata is looked
at. For each field that names a source key, the raw string is resolved with
the precedence

    sources[0] > sources[1] > ... > environment > default literal

where a source "has" a key when the key is present, even with an empty
value. The string is then parsed through the registry, checked against the
required flag, and assigned.

The first failure aborts the walk and is raised to the caller. Fields bound
before the failure keep their new values; nothing is rolled back.
"""

from __future__ import annotations

from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os
from typing import TYPE_CHECKING, Any, Literal, overload
import warnings

from .audit import FieldOrigin, Origin, SourceMap, audit_lines, origin_label
from .errors import (
    FieldParseError,
    NotARecordError,
    NotAReferenceError,
    RequiredFieldError,
    UnsupportedTypeError,
)
from .fields import FieldSpec, describe, is_frozen, is_record
from .parsers import ParserRegistry, default_registry
from .utils import (
    DEFAULT_ENV_TAG,
    DEFAULT_REQUIRED_TAG,
    DEFAULT_VALUE_TAG,
    should_emit_debug,
)

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Binder:
    """Binds string-keyed sources onto dataclass and pydantic records.

    The three tag names select which per-field metadata keys hold the source
    key, the default literal, and the required flag. A binder carries no
    state between calls, so one instance can be shared freely.

    Attributes:
        env_tag: Metadata key naming the source key.
        default_tag: Metadata key holding the default literal.
        required_tag: Metadata key holding the required flag.
        environ: Environment mapping consulted after all sources. ``None``
            reads ``os.environ`` at bind time.
        registry: Parser registry. ``None`` uses the process-wide registry.
    """

    env_tag: str = DEFAULT_ENV_TAG
    default_tag: str = DEFAULT_VALUE_TAG
    required_tag: str = DEFAULT_REQUIRED_TAG
    environ: Mapping[str, str] | None = field(
        default=None, repr=False, compare=False
    )
    registry: ParserRegistry | None = field(
        default=None, repr=False, compare=False
    )

    @overload
    def bind(
        self,
        target: Any,
        *sources: Mapping[str, str] | None,
        explain: Literal[True],
    ) -> SourceMap: ...

    @overload
    def bind(
        self,
        target: Any,
        *sources: Mapping[str, str] | None,
        explain: Literal[False] = ...,
    ) -> None: ...

    def bind(
        self,
        target: Any,
        *sources: Mapping[str, str] | None,
        explain: bool = False,
    ) -> SourceMap | None:
        """Populate ``target`` in place from ``sources`` and the environment.

        Args:
            target: A mutable dataclass or pydantic model instance.
            *sources: String maps consulted left to right before the
                environment. ``None`` entries are treated as empty.
            explain: If True, return the origin of every bound field.

        Returns:
            None, or a ``SourceMap`` keyed by dotted field path if
            ``explain=True``.

        Raises:
            NotAReferenceError: ``target`` is None, a class, or frozen.
            NotARecordError: ``target`` is not a dataclass or pydantic model.
            UnsupportedTypeError: A keyed field has no registered parser.
            FieldParseError: A resolved string failed to parse.
            RequiredFieldError: A required field parsed to its zero value.
        """
        _check_target(target)
        origins: SourceMap = {}
        self._bind_record(target, sources, origins, prefix="")

        if not explain and should_emit_debug():
            with suppress(Exception):
                warnings.warn(
                    "Bind audit (redacted)\n" + "\n".join(audit_lines(origins)),
                    stacklevel=2,
                )
        return origins if explain else None

    # --- Internal helpers ---

    def _bind_record(
        self,
        record: Any,
        sources: Sequence[Mapping[str, str] | None],
        origins: SourceMap,
        *,
        prefix: str,
    ) -> None:
        registry = self.registry or default_registry()
        specs = describe(
            type(record),
            env_tag=self.env_tag,
            default_tag=self.default_tag,
            required_tag=self.required_tag,
            registry=registry,
        )
        frozen = is_frozen(record)
        for spec in specs:
            path = f"{prefix}{spec.name}"

            nested = getattr(record, spec.name, None)
            if is_record(nested) and type(nested) not in registry:
                self._bind_record(nested, sources, origins, prefix=f"{path}.")

            if not spec.key:
                continue
            if frozen:
                raise NotAReferenceError(
                    f"Field '{path}' belongs to frozen record "
                    f"{type(record).__qualname__}",
                    hint="Nested records with keyed fields must be mutable.",
                )

            raw, where = self._resolve(spec, sources)

            parser = registry.lookup(spec.tag)
            if parser is None:
                raise UnsupportedTypeError(path, spec.tag)

            try:
                value = parser(raw)
            except Exception as e:
                raise FieldParseError(path, raw, e) from e

            if spec.required and _is_zero(value):
                raise RequiredFieldError(spec.key, path)

            setattr(record, spec.name, value)
            origins[path] = where
            log.debug("Bound %s from %s", path, origin_label(where))

    def _resolve(
        self,
        spec: FieldSpec,
        sources: Sequence[Mapping[str, str] | None],
    ) -> tuple[str, FieldOrigin]:
        key = spec.key
        for index, source in enumerate(sources):
            if source is not None and key in source:
                return source[key], FieldOrigin(Origin.SOURCE, key, index=index)

        environ = os.environ if self.environ is None else self.environ
        if key in environ:
            return environ[key], FieldOrigin(Origin.ENV, key)

        return spec.default, FieldOrigin(Origin.DEFAULT, key)


def _check_target(target: Any) -> None:
    if target is None:
        raise NotAReferenceError("Bind target is None")
    if isinstance(target, type):
        raise NotAReferenceError(
            f"Bind target is the class {target.__qualname__}, not an instance",
            hint=f"Pass an instance, e.g. bind({target.__qualname__}()).",
        )
    if not is_record(target):
        raise NotARecordError(
            f"Bind target of type {type(target).__qualname__} is not a record",
            hint="Targets must be dataclass or pydantic model instances.",
        )
    if is_frozen(target):
        raise NotAReferenceError(
            f"Bind target {type(target).__qualname__} is frozen",
            hint="Bind into a mutable record, then freeze a copy if needed.",
        )


def _is_zero(value: Any) -> bool:
    return value is None or not value


# --- Module-level convenience ---

_default_binder = Binder()


@overload
def bind(
    target: Any, *sources: Mapping[str, str] | None, explain: Literal[True]
) -> SourceMap: ...


@overload
def bind(
    target: Any,
    *sources: Mapping[str, str] | None,
    explain: Literal[False] = ...,
) -> None: ...


def bind(
    target: Any, *sources: Mapping[str, str] | None, explain: bool = False
) -> SourceMap | None:
    """Bind with the default tag names (``env``, ``default``, ``required``)."""
    return _default_binder.bind(target, *sources, explain=explain)
