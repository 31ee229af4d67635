"""mermaid-schema: compile Mermaid ER diagrams into platform schema metadata."""

from __future__ import annotations

import logging

from .config import CompilerConfig
from .errors import (
    SchemaCompilerError,
    ConfigError,
    ParseError,
    MissingPrimaryKeyError,
    EmptyDiagramError,
    SchemaValidationError,
)
from .compiler import CompileResult, compile_erd, with_override

from .er.parser import parse_erd
from .schema.generator import generate_schema
from .schema.renderer import render_schema_metadata
from .validation.validator import validate_relationships

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "compile_erd",
    "with_override",
    "parse_erd",
    "generate_schema",
    "validate_relationships",
    "render_schema_metadata",
    "CompilerConfig",
    "CompileResult",
    "SchemaCompilerError",
    "ConfigError",
    "ParseError",
    "MissingPrimaryKeyError",
    "EmptyDiagramError",
    "SchemaValidationError",
]
