from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal, Union

# ============================================================================
# Schema document types
#
# The compiler's output: platform entity, column, relationship and global
# choice-set definitions. Plain frozen data, safe to serialize as JSON.
# ============================================================================

FieldKind = Literal[
    "string",
    "memo",
    "integer",
    "bigint",
    "decimal",
    "money",
    "double",
    "boolean",
    "datetime",
    "guid",
    "image",
    "file",
    "autonumber",
    "duration",
    "choice",
]

IdentifierKind = Literal["entity", "attribute", "relationship", "choice"]

RelationshipClassification = Literal["lookup", "parental"]


@dataclass(frozen=True, slots=True)
class TargetFieldSpec:
    """Target field type plus the platform constraints that go with it."""

    kind: FieldKind
    attribute_type: str
    type_name: str
    # Name-based refinement that produced this spec ("email", "currency", ...)
    sub_kind: str | None = None
    format: str | None = None
    max_length: int | None = None
    min_value: int | None = None
    max_value: int | None = None
    precision: int | None = None
    precision_source: int | None = None
    auto_number_format: str | None = None
    max_size_kb: int | None = None
    date_time_behavior: str | None = None
    # Option labels for choice and boolean fields
    options: tuple[str, ...] = ()

    @property
    def metadata_type(self) -> str:
        from .formats import METADATA_TYPES

        return METADATA_TYPES[self.kind]


@dataclass(frozen=True, slots=True)
class PlatformIdentifier:
    logical_name: str
    schema_name: str
    display_name: str


@dataclass(frozen=True, slots=True)
class ColumnDefinition:
    logical_name: str
    schema_name: str
    display_name: str
    description: str
    required: bool
    spec: TargetFieldSpec
    is_primary_name: bool = False
    is_unique: bool = False
    # Global choice set this column binds to
    global_choice_set: str | None = None
    # Attribute name in the diagram; None for the generated primary name
    source_attribute: str | None = None


@dataclass(frozen=True, slots=True)
class AdditionalColumn:
    """A column created after its entity exists."""

    entity_logical_name: str
    column: ColumnDefinition


@dataclass(frozen=True, slots=True)
class EntityDefinition:
    logical_name: str
    schema_name: str
    display_name: str
    display_collection_name: str
    description: str
    # Only the generated primary name field; other attributes are deferred
    fields: tuple[ColumnDefinition, ...]
    source_entity: str
    ownership_type: str = "UserOwned"

    @property
    def primary_name_field(self) -> ColumnDefinition:
        return next(f for f in self.fields if f.is_primary_name)


@dataclass(frozen=True, slots=True)
class CascadeConfiguration:
    assign: str
    delete: str
    merge: str
    reparent: str
    share: str
    unshare: str

    @property
    def is_parental(self) -> bool:
        return self.delete == "Cascade"


LOOKUP_CASCADE = CascadeConfiguration(
    assign="NoCascade",
    delete="RemoveLink",
    merge="NoCascade",
    reparent="NoCascade",
    share="NoCascade",
    unshare="NoCascade",
)

PARENTAL_CASCADE = CascadeConfiguration(
    assign="Cascade",
    delete="Cascade",
    merge="Cascade",
    reparent="Cascade",
    share="Cascade",
    unshare="Cascade",
)


@dataclass(frozen=True, slots=True)
class OneToManyRelationship:
    schema_name: str
    # Label from the diagram
    name: str
    display_name: str
    # The "one" side; owns the referencing rows when parental
    referenced_entity: str
    referencing_entity: str
    referenced_attribute: str
    lookup_logical_name: str
    lookup_schema_name: str
    referenced_navigation_property: str
    referencing_navigation_property: str
    classification: RelationshipClassification
    cascade: CascadeConfiguration
    # Diagram-level kind before normalisation (many-to-one is flipped)
    source_kind: str = "one-to-many"
    kind: Literal["one-to-many"] = "one-to-many"

    @property
    def entities(self) -> tuple[str, str]:
        return self.referenced_entity, self.referencing_entity


@dataclass(frozen=True, slots=True)
class ManyToManyRelationship:
    schema_name: str
    name: str
    display_name: str
    entity1: str
    entity2: str
    intersect_entity_name: str
    entity1_intersect_attribute: str
    entity2_intersect_attribute: str
    entity1_navigation_property: str
    entity2_navigation_property: str
    # Many-to-many links never cascade deletes
    classification: RelationshipClassification = "lookup"
    source_kind: str = "many-to-many"
    kind: Literal["many-to-many"] = "many-to-many"

    @property
    def entities(self) -> tuple[str, str]:
        return self.entity1, self.entity2


RelationshipDefinition = Union[OneToManyRelationship, ManyToManyRelationship]


@dataclass(frozen=True, slots=True)
class ChoiceOption:
    value: int
    label: str


@dataclass(frozen=True, slots=True)
class GlobalChoiceSet:
    name: str
    display_name: str
    options: tuple[ChoiceOption, ...]
    # Entity logical names with a column bound to this set
    entities: tuple[str, ...]

    @property
    def labels(self) -> tuple[str, ...]:
        return tuple(o.label for o in self.options)


@dataclass(frozen=True, slots=True)
class SchemaDocument:
    """Output of one compilation, in platform creation order."""

    prefix: str
    entities: tuple[EntityDefinition, ...] = ()
    additional_columns: tuple[AdditionalColumn, ...] = ()
    relationships: tuple[RelationshipDefinition, ...] = ()
    global_choice_sets: tuple[GlobalChoiceSet, ...] = ()
    # Self-referencing relationships filtered out of `relationships`
    dropped_relationships: tuple[RelationshipDefinition, ...] = ()
    notes: tuple[str, ...] = ()

    def columns_for(self, entity_logical_name: str) -> list[ColumnDefinition]:
        return [c.column for c in self.additional_columns if c.entity_logical_name == entity_logical_name]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
