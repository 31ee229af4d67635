from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

# ============================================================================
# Validation report types
#
# Issue types form a closed vocabulary; tooling matches on them, and each one
# has exactly one resolution hint.
# ============================================================================

IssueType = Literal[
    "MULTIPLE_PARENTAL_RELATIONSHIPS",
    "CIRCULAR_CASCADE_DELETE",
    "SELF_REFERENCE",
    "MISSING_PRIMARY_KEY",
    "BUSINESS_LOGIC_WARNING",
]

Severity = Literal["error", "warning"]

RESOLUTION_HINTS: dict[str, str] = {
    "MULTIPLE_PARENTAL_RELATIONSHIPS": (
        "Keep one parental relationship for this entity and convert the others to lookup relationships."
    ),
    "CIRCULAR_CASCADE_DELETE": (
        "Break the cycle by converting one relationship in it to a lookup (non-cascading) relationship."
    ),
    "SELF_REFERENCE": (
        "Model the hierarchy with an optional lookup column added after deployment, "
        "or remove the self-referencing relationship."
    ),
    "MISSING_PRIMARY_KEY": "Mark exactly one attribute of the entity with PK.",
    "BUSINESS_LOGIC_WARNING": "Review the relationship against the intended data model.",
}


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    type: IssueType
    severity: Severity
    message: str
    entity: str | None = None
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def hint(self) -> str:
        return RESOLUTION_HINTS[self.type]

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["hint"] = self.hint
        return data


@dataclass(frozen=True, slots=True)
class ValidationReport:
    errors: tuple[ValidationIssue, ...] = ()
    warnings: tuple[ValidationIssue, ...] = ()
    # Resolution prompts, only filled in interactive mode
    prompts: tuple[dict[str, Any], ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def issues(self) -> tuple[ValidationIssue, ...]:
        return self.errors + self.warnings

    def issues_of(self, issue_type: IssueType) -> list[ValidationIssue]:
        return [issue for issue in self.issues if issue.type == issue_type]

    @property
    def summary(self) -> dict[str, Any]:
        errors = len(self.errors)
        warnings = len(self.warnings)
        if errors == 0:
            message = "Relationship validation passed"
            if warnings:
                message += f" with {warnings} warnings"
        else:
            message = f"Relationship validation failed with {errors} errors and {warnings} warnings"
        return {
            "total_issues": errors + warnings,
            "errors": errors,
            "warnings": warnings,
            "status": "VALID" if errors == 0 else "INVALID",
            "message": message,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_valid": self.is_valid,
            "errors": [issue.to_dict() for issue in self.errors],
            "warnings": [issue.to_dict() for issue in self.warnings],
            "prompts": [dict(p) for p in self.prompts],
            "summary": self.summary,
        }
