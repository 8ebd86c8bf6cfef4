"""Parser registry: scalar type tags mapped to string conversion functions.

Each built-in parser is a pure ``str -> value`` function that raises
``ParseError`` on malformed input. Literal syntax follows the conventions of
Go's ``strconv`` package, so configuration written for Go services binds the
same way here:

- booleans accept ``1 t T TRUE true True`` and ``0 f F FALSE false False``;
- integers are base-10 digit runs (sign allowed only for signed kinds) checked
  against the bit width of the kind; machine-width kinds are 64 bits;
- floats are decimal/exponential literals or ``inf``/``infinity``/``nan``;
  ``FLOAT32`` values are rounded to single precision.

The registry is process-wide and open for extension: ``register_parser`` adds
or overwrites the entry for any hashable tag, including plain Python types.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Mapping
from enum import Enum
import math
import re
import struct
import threading
from typing import Annotated, Any, TypeAlias

from envbind.errors import ParseError

Parser: TypeAlias = Callable[[str], Any]


class Kind(Enum):
    """Scalar kinds with a built-in parser."""

    BOOL = "bool"
    INT = "int"
    INT8 = "int8"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    UINT = "uint"
    UINT8 = "uint8"
    UINT16 = "uint16"
    UINT32 = "uint32"
    UINT64 = "uint64"
    FLOAT32 = "float32"
    FLOAT64 = "float64"
    STR = "str"


# Width-qualified annotations, e.g. ``port: Uint16 = 0``
Int8 = Annotated[int, Kind.INT8]
Int16 = Annotated[int, Kind.INT16]
Int32 = Annotated[int, Kind.INT32]
Int64 = Annotated[int, Kind.INT64]
Uint = Annotated[int, Kind.UINT]
Uint8 = Annotated[int, Kind.UINT8]
Uint16 = Annotated[int, Kind.UINT16]
Uint32 = Annotated[int, Kind.UINT32]
Uint64 = Annotated[int, Kind.UINT64]
Float32 = Annotated[float, Kind.FLOAT32]
Float64 = Annotated[float, Kind.FLOAT64]

MACHINE_BITS = 64

TRUE_TOKENS = frozenset({"1", "t", "T", "TRUE", "true", "True"})
FALSE_TOKENS = frozenset({"0", "f", "F", "FALSE", "false", "False"})

# ASCII digits only; ``\d`` and int() both accept other Unicode digits
_SIGNED_RE = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_RE = re.compile(r"[0-9]+")
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_FLOAT_SPECIAL_RE = re.compile(r"[+-]?(?:inf|infinity)|nan", re.IGNORECASE)


# --- Built-in parsers ---


def parse_bool(value: str) -> bool:
    """Parse a boolean token."""
    if value in TRUE_TOKENS:
        return True
    if value in FALSE_TOKENS:
        return False
    raise ParseError(f"invalid syntax for bool: {value!r}")


def _signed(bits: int) -> Parser:
    lo, hi = -(1 << (bits - 1)), (1 << (bits - 1)) - 1

    def parse(value: str) -> int:
        if not _SIGNED_RE.fullmatch(value):
            raise ParseError(f"invalid syntax for int{bits}: {value!r}")
        number = int(value)
        if not lo <= number <= hi:
            raise ParseError(f"value out of range for int{bits}: {value!r}")
        return number

    parse.__name__ = f"parse_int{bits}"
    return parse


def _unsigned(bits: int) -> Parser:
    hi = (1 << bits) - 1

    def parse(value: str) -> int:
        if not _UNSIGNED_RE.fullmatch(value):
            raise ParseError(f"invalid syntax for uint{bits}: {value!r}")
        number = int(value)
        if number > hi:
            raise ParseError(f"value out of range for uint{bits}: {value!r}")
        return number

    parse.__name__ = f"parse_uint{bits}"
    return parse


def parse_float64(value: str) -> float:
    """Parse a double-precision float literal."""
    if _FLOAT_SPECIAL_RE.fullmatch(value):
        return float(value)
    if not _FLOAT_RE.fullmatch(value):
        raise ParseError(f"invalid syntax for float64: {value!r}")
    number = float(value)
    if math.isinf(number):
        raise ParseError(f"value out of range for float64: {value!r}")
    return number


def parse_float32(value: str) -> float:
    """Parse a float literal and round it to single precision."""
    number = parse_float64(value)
    try:
        return struct.unpack("<f", struct.pack("<f", number))[0]
    except OverflowError as e:
        raise ParseError(f"value out of range for float32: {value!r}") from e


def parse_str(value: str) -> str:
    """Return the value unchanged."""
    return value


BUILTIN_PARSERS: Mapping[Kind, Parser] = {
    Kind.BOOL: parse_bool,
    Kind.INT: _signed(MACHINE_BITS),
    Kind.INT8: _signed(8),
    Kind.INT16: _signed(16),
    Kind.INT32: _signed(32),
    Kind.INT64: _signed(64),
    Kind.UINT: _unsigned(MACHINE_BITS),
    Kind.UINT8: _unsigned(8),
    Kind.UINT16: _unsigned(16),
    Kind.UINT32: _unsigned(32),
    Kind.UINT64: _unsigned(64),
    Kind.FLOAT32: parse_float32,
    Kind.FLOAT64: parse_float64,
    Kind.STR: parse_str,
}


# --- Registry ---


class ParserRegistry:
    """Thread-safe mapping from type tags to parsers.

    Lookups and registrations share one lock, so a ``bind`` running while
    another thread registers a parser sees either the old or the new entry.
    """

    def __init__(self, parsers: Mapping[Hashable, Parser] | None = None) -> None:
        self._lock = threading.RLock()
        self._parsers: dict[Hashable, Parser] = dict(parsers or {})

    def register(self, tag: Hashable, parser: Parser) -> None:
        """Register ``parser`` for ``tag``, replacing any existing entry."""
        if not callable(parser):
            raise TypeError(f"parser for {tag!r} must be callable")
        with self._lock:
            self._parsers[tag] = parser

    def lookup(self, tag: Hashable) -> Parser | None:
        """Return the parser for ``tag`` or None when nothing is registered."""
        with self._lock:
            try:
                return self._parsers.get(tag)
            except TypeError:  # unhashable annotation
                return None

    def __contains__(self, tag: object) -> bool:
        return self.lookup(tag) is not None  # type: ignore[arg-type]

    def tags(self) -> list[Hashable]:
        """Return the registered tags in registration order."""
        with self._lock:
            return list(self._parsers)

    def copy(self) -> ParserRegistry:
        """Return an independent registry with the same entries."""
        with self._lock:
            return ParserRegistry(self._parsers)


# Global registry instance
_registry = ParserRegistry(BUILTIN_PARSERS)


def default_registry() -> ParserRegistry:
    """Return the process-wide registry used by binders without their own."""
    return _registry


def register_parser(tag: Hashable, parser: Parser) -> None:
    """Register a parser globally, overwriting any existing entry for ``tag``.

    Example:
        register_parser(Decimal, Decimal)
    """
    _registry.register(tag, parser)


def lookup_parser(tag: Hashable) -> Parser | None:
    """Look up a parser in the global registry."""
    return _registry.lookup(tag)
