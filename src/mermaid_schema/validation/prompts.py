from __future__ import annotations

from typing import Any

from .types import ValidationReport

# ============================================================================
# Interactive resolution prompts
#
# Turns blocking validation errors into choice prompts a front end can show
# to the diagram author. Answers map back onto relationship overrides.
# ============================================================================


def build_resolution_prompts(report: ValidationReport) -> list[dict[str, Any]]:
    """Build one prompt per multiple-parent or circular-cascade error."""
    prompts: list[dict[str, Any]] = []

    for error in report.issues_of("MULTIPLE_PARENTAL_RELATIONSHIPS"):
        parents: list[str] = error.details.get("parents", [])
        relationships: list[str] = error.details.get("relationships", [])
        choices = [
            {
                "name": parent,
                "value": relationship,
                "description": f"{parent} will own {error.entity} records (cascade delete)",
            }
            for parent, relationship in zip(parents, relationships)
        ]
        choices.append(
            {
                "name": "None - Convert all to lookups",
                "value": "none",
                "description": "Use referential relationships only (no cascade delete)",
            }
        )
        prompts.append(
            {
                "type": "choice",
                "issue_type": error.type,
                "title": "Multiple Parent Relationships Detected",
                "message": error.message,
                "question": f"Which entity should be the primary parent of '{error.entity}'?",
                "choices": choices,
                "default": choices[0]["value"],
            }
        )

    for error in report.issues_of("CIRCULAR_CASCADE_DELETE"):
        cycle: list[str] = error.details.get("cycle", [])
        closed = cycle + cycle[:1]
        choices = [
            {
                "name": f"{closed[i]} → {closed[i + 1]}",
                "value": {"from": closed[i], "to": closed[i + 1]},
                "description": "Remove cascade delete behavior for this relationship",
            }
            for i in range(len(cycle))
        ]
        prompts.append(
            {
                "type": "choice",
                "issue_type": error.type,
                "title": "Circular Cascade Delete Detected",
                "message": error.message,
                "question": "Which relationship should be converted to a lookup (non-cascading)?",
                "choices": choices,
                "required": True,
            }
        )

    return prompts
