from __future__ import annotations

from .types import (
    ErDiagram,
    ErEntity,
    ErAttribute,
    ErRelationship,
    Cardinality,
    RelationshipKind,
    SkippedLine,
)
from .parser import parse_erd, parse_er_diagram, classify_line

__all__ = [
    "ErDiagram",
    "ErEntity",
    "ErAttribute",
    "ErRelationship",
    "Cardinality",
    "RelationshipKind",
    "SkippedLine",
    "parse_erd",
    "parse_er_diagram",
    "classify_line",
]
