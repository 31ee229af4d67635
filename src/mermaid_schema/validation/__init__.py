from __future__ import annotations

from .types import IssueType, ValidationIssue, ValidationReport, RESOLUTION_HINTS
from .validator import validate_relationships
from .prompts import build_resolution_prompts

__all__ = [
    "IssueType",
    "ValidationIssue",
    "ValidationReport",
    "RESOLUTION_HINTS",
    "validate_relationships",
    "build_resolution_prompts",
]
