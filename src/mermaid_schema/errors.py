"""Exceptions raised by the schema compiler."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .validation.types import ValidationReport


class SchemaCompilerError(Exception):
    """Base exception for compiler errors."""


class ConfigError(SchemaCompilerError, ValueError):
    """Raised when a CompilerConfig value is out of range."""


class ParseError(SchemaCompilerError, ValueError):
    """Raised in strict mode when a diagram line matches no grammar rule."""

    def __init__(self, message: str, line_number: int, line: str) -> None:
        super().__init__(f"{message} (line {line_number}: {line!r})")
        self.line_number = line_number
        self.line = line


class MissingPrimaryKeyError(SchemaCompilerError):
    """Raised by the generator when an entity has no PK attribute."""

    def __init__(self, entity: str) -> None:
        super().__init__(f"Entity '{entity}' must have a primary key attribute marked with PK")
        self.entity = entity


class EmptyDiagramError(SchemaCompilerError, ValueError):
    """Raised when there is nothing to validate."""


class SchemaValidationError(SchemaCompilerError):
    """Raised by compile_erd when fail_on_errors is set and validation fails."""

    def __init__(self, report: ValidationReport) -> None:
        types = ", ".join(sorted({issue.type for issue in report.errors}))
        super().__init__(f"Relationship validation failed with {len(report.errors)} errors: {types}")
        self.report = report
