from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Any

from .config import CompilerConfig
from .er.parser import parse_erd
from .er.types import ErDiagram, ErRelationship
from .errors import SchemaValidationError
from .schema.generator import generate_schema
from .schema.renderer import render_schema_metadata
from .schema.types import SchemaDocument
from .validation.types import ValidationReport
from .validation.validator import validate_relationships

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CompileResult:
    diagram: ErDiagram
    document: SchemaDocument
    report: ValidationReport
    # Locale id for rendered labels
    language_code: int = 1033

    @property
    def is_valid(self) -> bool:
        return self.report.is_valid

    def metadata(self, language_code: int | None = None) -> dict[str, Any]:
        if language_code is None:
            language_code = self.language_code
        return render_schema_metadata(self.document, language_code)

    def to_dict(self) -> dict[str, Any]:
        return {
            "diagram": self.diagram.to_dict(),
            "document": self.document.to_dict(),
            "report": self.report.to_dict(),
        }


def compile_erd(text: str, config: CompilerConfig | None = None) -> CompileResult:
    """Compile Mermaid ER diagram text into a schema document and validation report.

    Parse -> generate -> validate. Self-referencing relationships dropped by
    the generator are still passed to the validator.
    """
    if config is None:
        config = CompilerConfig()

    diagram = parse_erd(text, strict=config.strict_parsing)
    if diagram.skipped_lines:
        logger.info("Skipped %d unrecognised lines", len(diagram.skipped_lines))

    document = generate_schema(diagram.entities, diagram.relationships, config)
    report = validate_relationships(
        document.relationships + document.dropped_relationships,
        diagram.entities,
        config,
    )
    if config.fail_on_errors and not report.is_valid:
        raise SchemaValidationError(report)
    return CompileResult(
        diagram=diagram,
        document=document,
        report=report,
        language_code=config.language_code,
    )


def with_override(relationship: ErRelationship, override: str) -> ErRelationship:
    """Return a copy of *relationship* forced to ``"lookup"`` or ``"parental"``.

    Many-to-many relationships never cascade, so forcing one parental raises
    ValueError.
    """
    if override not in ("default", "lookup", "parental"):
        raise ValueError(f"Unknown cascade override {override!r}")
    if override == "parental" and relationship.kind == "many-to-many":
        raise ValueError(f"Many-to-many relationship {relationship.name!r} cannot be parental")
    return dataclasses.replace(relationship, cascade_override=override)
