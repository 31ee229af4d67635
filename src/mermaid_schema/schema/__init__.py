from __future__ import annotations

from .types import (
    AdditionalColumn,
    CascadeConfiguration,
    ChoiceOption,
    ColumnDefinition,
    EntityDefinition,
    GlobalChoiceSet,
    ManyToManyRelationship,
    OneToManyRelationship,
    PlatformIdentifier,
    RelationshipDefinition,
    SchemaDocument,
    TargetFieldSpec,
)
from ..naming import format_display_name, format_schema_name
from .mapper import map_type, refine_field, map_field, map_identifier
from .generator import generate_schema, resolve_cascade_policy
from .renderer import render_schema_metadata

__all__ = [
    "AdditionalColumn",
    "CascadeConfiguration",
    "ChoiceOption",
    "ColumnDefinition",
    "EntityDefinition",
    "GlobalChoiceSet",
    "ManyToManyRelationship",
    "OneToManyRelationship",
    "PlatformIdentifier",
    "RelationshipDefinition",
    "SchemaDocument",
    "TargetFieldSpec",
    "map_type",
    "refine_field",
    "map_field",
    "map_identifier",
    "format_display_name",
    "format_schema_name",
    "generate_schema",
    "resolve_cascade_policy",
    "render_schema_metadata",
]
