"""envbind: bind environment variables and string maps onto typed records.

Public API:
    - Binder / bind(): Populate a dataclass or pydantic record in place
    - register_parser(): Teach the binder a new field type
    - Kind and the Int8 ... Float32 annotations: Width-qualified scalars
    - load_env_file() / load_toml_table() / load_dotenv(): File loaders

Example:
    @dataclass
    class Settings:
        port: Uint16 = field(default=0, metadata={"env": "PORT", "default": "8080"})
        debug: bool = field(default=False, metadata={"env": "DEBUG"})

    settings = Settings()
    bind(settings, load_env_file(".env.local"))
"""

from __future__ import annotations

import logging

from envbind.audit import (
    FieldOrigin,
    Origin,
    SourceMap,
    audit_lines,
    audit_text,
    summarize_origins,
    was_field_overridden,
)
from envbind.binder import Binder, bind
from envbind.errors import (
    EnvBindError,
    FieldParseError,
    NotARecordError,
    NotAReferenceError,
    ParseError,
    RequiredFieldError,
    UnsupportedTypeError,
)
from envbind.fields import FieldSpec, describe
from envbind.loaders import (
    load_dotenv,
    load_env_file,
    load_env_files,
    load_toml_table,
    new_binder,
)
from envbind.parsers import (
    Float32,
    Float64,
    Int8,
    Int16,
    Int32,
    Int64,
    Kind,
    Parser,
    ParserRegistry,
    Uint,
    Uint8,
    Uint16,
    Uint32,
    Uint64,
    default_registry,
    lookup_parser,
    register_parser,
)

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("envbind")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("envbind").addHandler(logging.NullHandler())

__all__ = [  # noqa: RUF022
    # Binding
    "Binder",
    "bind",
    "new_binder",
    # Parser registry
    "Kind",
    "Parser",
    "ParserRegistry",
    "register_parser",
    "lookup_parser",
    "default_registry",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "Uint",
    "Uint8",
    "Uint16",
    "Uint32",
    "Uint64",
    "Float32",
    "Float64",
    # Field descriptors
    "FieldSpec",
    "describe",
    # Loaders
    "load_env_file",
    "load_env_files",
    "load_dotenv",
    "load_toml_table",
    # Audit
    "Origin",
    "FieldOrigin",
    "SourceMap",
    "audit_lines",
    "audit_text",
    "summarize_origins",
    "was_field_overridden",
    # Errors
    "EnvBindError",
    "ParseError",
    "NotAReferenceError",
    "NotARecordError",
    "UnsupportedTypeError",
    "FieldParseError",
    "RequiredFieldError",
]
