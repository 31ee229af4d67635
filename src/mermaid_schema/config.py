from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping

from .errors import ConfigError

# ============================================================================
# Compiler options
# ============================================================================

PREFIX_PATTERN = re.compile(r"^[a-z][a-z0-9]{1,7}$")
OVERRIDE_VALUES = ("lookup", "parental")


@dataclass(frozen=True, slots=True)
class CompilerConfig:
    identifier_prefix: str = "mmd"
    interactive_mode: bool = False
    # Classify every un-overridden relationship as lookup (never cascading)
    allow_all_referential: bool = True
    strict_parsing: bool = False
    fail_on_errors: bool = False
    # Caller-supplied nonce for relationship schema names; never time-based
    relationship_name_suffix: str | None = None
    # Relationship name -> "lookup" | "parental"
    relationship_overrides: Mapping[str, str] = field(default_factory=dict)
    language_code: int = 1033

    def __post_init__(self) -> None:
        if not PREFIX_PATTERN.match(self.identifier_prefix):
            raise ConfigError(
                f"Invalid identifier prefix {self.identifier_prefix!r}: "
                "expected 2-8 lowercase letters or digits, starting with a letter"
            )
        if self.relationship_name_suffix is not None and not re.match(
            r"^[A-Za-z0-9_]+$", self.relationship_name_suffix
        ):
            raise ConfigError(
                f"Invalid relationship name suffix {self.relationship_name_suffix!r}: "
                "only letters, digits and underscores are allowed"
            )
        for name, value in self.relationship_overrides.items():
            if value not in OVERRIDE_VALUES:
                raise ConfigError(
                    f"Invalid override {value!r} for relationship {name!r}: "
                    f"expected one of {', '.join(OVERRIDE_VALUES)}"
                )
        if self.language_code <= 0:
            raise ConfigError(f"Invalid language code {self.language_code}")

