from __future__ import annotations

import dataclasses
import logging
import re

from ..naming import format_display_name, format_schema_name, to_logical_name
from .formats import (
    DEFAULT_KIND,
    KIND_DEFAULTS,
    MAX_IDENTIFIER_LENGTH,
    NAME_RULES,
    TYPE_TOKENS,
)
from .types import FieldKind, IdentifierKind, PlatformIdentifier, TargetFieldSpec

logger = logging.getLogger(__name__)

# ============================================================================
# Type & identifier mapper
#
# Pure functions projecting diagram type tokens and names onto the target
# platform: field kind + constraints, and prefixed logical/schema names.
# ============================================================================

TOKEN_PATTERN = re.compile(r"^\s*(\w+)\s*(?:\((.*)\))?\s*$")

# Kinds whose max length a `varchar(255)` style parameter may set
LENGTH_KINDS = ("string", "memo")

PRIMARY_NAME_LABEL = "Name"


def map_type(source_type: str) -> TargetFieldSpec:
    """Map a source type token to a target field spec with default constraints.

    ``choice(a,b,c)`` maps to an integer-backed choice field carrying the
    option labels. Unknown tokens map to the plain text default.
    """
    base, params = _split_token(source_type)

    if base == "choice":
        options = _split_options(params)
        if options:
            return _spec_for("choice", options=options)
        logger.debug("choice() without options, using %s", DEFAULT_KIND)
        return _spec_for(DEFAULT_KIND)

    kind = TYPE_TOKENS.get(base)
    if kind is None:
        logger.debug("Unknown type token %r, using %s", source_type, DEFAULT_KIND)
        kind = DEFAULT_KIND
    return _spec_for(kind)


def refine_field(spec: TargetFieldSpec, field_name: str) -> TargetFieldSpec:
    """Apply the first name-based refinement rule for the field's kind."""
    for rule in NAME_RULES.get(spec.kind, ()):
        if rule.matches(field_name):
            logger.debug("Field %r refined to %s", field_name, rule.sub_kind)
            return dataclasses.replace(spec, sub_kind=rule.sub_kind, **rule.changes)
    return spec


def map_field(source_type: str, field_name: str) -> TargetFieldSpec:
    """Map a type token and refine it by the field's name.

    An explicit length parameter (``varchar(255)``) wins over the refined
    default length.
    """
    spec = refine_field(map_type(source_type), field_name)
    _, params = _split_token(source_type)
    if spec.kind in LENGTH_KINDS and params and params.strip().isdigit():
        spec = dataclasses.replace(spec, max_length=int(params.strip()))
    return spec


def map_identifier(name: str, kind: IdentifierKind, prefix: str) -> PlatformIdentifier:
    """Derive the prefixed logical name, schema name and display name for *name*."""
    base = to_logical_name(name) or kind
    schema_base = format_schema_name(name) or format_schema_name(kind)
    return PlatformIdentifier(
        logical_name=_truncate(f"{prefix}_{base}"),
        schema_name=_truncate(f"{prefix}_{schema_base}"),
        display_name=format_display_name(name) or format_display_name(kind),
    )


def primary_name_identifier(prefix: str) -> PlatformIdentifier:
    """The fixed ``{prefix}_name`` field every entity gets as its primary name."""
    return PlatformIdentifier(
        logical_name=f"{prefix}_name",
        schema_name=f"{prefix}_Name",
        display_name=PRIMARY_NAME_LABEL,
    )


def is_primary_name_clash(attribute_name: str) -> bool:
    """True for attributes that would duplicate the generated primary name field."""
    return to_logical_name(attribute_name) == "name"


def _spec_for(kind: FieldKind, **extra: object) -> TargetFieldSpec:
    return TargetFieldSpec(kind=kind, **{**KIND_DEFAULTS[kind], **extra})


def _split_token(source_type: str) -> tuple[str, str | None]:
    match = TOKEN_PATTERN.match(source_type)
    if not match:
        return source_type.strip().lower(), None
    return match.group(1).lower(), match.group(2)


def _split_options(params: str | None) -> tuple[str, ...]:
    if not params:
        return ()
    options = (opt.strip().strip("\"'").strip() for opt in params.split(","))
    return tuple(opt for opt in options if opt)


def _truncate(identifier: str) -> str:
    return identifier[:MAX_IDENTIFIER_LENGTH].rstrip("_")
