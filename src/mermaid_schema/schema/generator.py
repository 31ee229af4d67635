from __future__ import annotations

import logging
from typing import Sequence

from ..config import CompilerConfig
from ..er.types import ErAttribute, ErEntity, ErRelationship
from ..errors import MissingPrimaryKeyError
from ..naming import format_schema_name, to_logical_name
from .formats import OPTION_VALUE_BASE
from .mapper import (
    is_primary_name_clash,
    map_field,
    map_identifier,
    map_type,
    primary_name_identifier,
)
from .types import (
    LOOKUP_CASCADE,
    PARENTAL_CASCADE,
    AdditionalColumn,
    ChoiceOption,
    ColumnDefinition,
    EntityDefinition,
    GlobalChoiceSet,
    ManyToManyRelationship,
    OneToManyRelationship,
    RelationshipClassification,
    RelationshipDefinition,
    SchemaDocument,
)

logger = logging.getLogger(__name__)

# ============================================================================
# Schema generator
#
# Turns parsed entities and relationships into a schema document, in the
# order the platform must create them:
#   1. Entities, each with only the generated primary name field
#   2. Additional columns for every other non-key attribute
#   3. Relationships (one-to-many / many-to-many)
#   4. Global choice sets collected from choice-typed attributes
#
# Self-referencing relationships are dropped from (3) but kept on the
# document so the validator can still report them.
# ============================================================================


def generate_schema(
    entities: Sequence[ErEntity],
    relationships: Sequence[ErRelationship],
    config: CompilerConfig | None = None,
) -> SchemaDocument:
    """Generate a schema document from parsed entities and relationships.

    Raises MissingPrimaryKeyError naming the first entity without a PK
    attribute; nothing is generated in that case.
    """
    if config is None:
        config = CompilerConfig()
    prefix = config.identifier_prefix

    for entity in entities:
        if entity.primary_key is None:
            raise MissingPrimaryKeyError(entity.name)

    notes: list[str] = []

    entity_defs = tuple(_generate_entity(entity, prefix) for entity in entities)
    columns = tuple(_generate_additional_columns(entities, prefix, notes))
    kept, dropped = _generate_relationships(relationships, config, notes)
    choice_sets = tuple(_generate_global_choice_sets(entities, prefix, notes))

    logger.info(
        "Generated %d entities, %d columns, %d relationships (%d dropped), %d choice sets",
        len(entity_defs),
        len(columns),
        len(kept),
        len(dropped),
        len(choice_sets),
    )
    return SchemaDocument(
        prefix=prefix,
        entities=entity_defs,
        additional_columns=columns,
        relationships=tuple(kept),
        global_choice_sets=choice_sets,
        dropped_relationships=tuple(dropped),
        notes=tuple(notes),
    )


# ============================================================================
# Entities & columns
# ============================================================================


def _generate_entity(entity: ErEntity, prefix: str) -> EntityDefinition:
    ident = map_identifier(entity.name, "entity", prefix)
    return EntityDefinition(
        logical_name=ident.logical_name,
        schema_name=ident.schema_name,
        display_name=entity.display_name,
        display_collection_name=f"{entity.display_name}s",
        description=f"Entity generated from Mermaid ERD: {entity.name}",
        fields=(_primary_name_column(prefix),),
        source_entity=entity.name,
    )


def _primary_name_column(prefix: str) -> ColumnDefinition:
    # The platform creates its own opaque {entity}id key; the diagram's PK
    # never becomes a column of its own.
    ident = primary_name_identifier(prefix)
    return ColumnDefinition(
        logical_name=ident.logical_name,
        schema_name=ident.schema_name,
        display_name=ident.display_name,
        description="Primary name field",
        required=False,
        spec=map_type("string"),
        is_primary_name=True,
    )


def _generate_additional_columns(
    entities: Sequence[ErEntity], prefix: str, notes: list[str]
) -> list[AdditionalColumn]:
    columns: list[AdditionalColumn] = []
    for entity in entities:
        entity_logical_name = map_identifier(entity.name, "entity", prefix).logical_name
        for attr in entity.attributes:
            if attr.is_primary_key:
                continue
            if is_primary_name_clash(attr.name):
                _note(notes, f"{entity.name}.{attr.name}: skipped, the generated {prefix}_name field covers it")
                continue
            if attr.is_foreign_key:
                _note(notes, f"{entity.name}.{attr.name}: foreign key skipped, realized by a relationship lookup")
                continue
            columns.append(
                AdditionalColumn(
                    entity_logical_name=entity_logical_name,
                    column=_regular_column(attr, prefix),
                )
            )
    return columns


def _emits_column(attr: ErAttribute) -> bool:
    return not (attr.is_primary_key or attr.is_foreign_key or is_primary_name_clash(attr.name))


def _regular_column(attr: ErAttribute, prefix: str) -> ColumnDefinition:
    ident = map_identifier(attr.name, "attribute", prefix)
    spec = map_field(attr.source_type, attr.name)
    return ColumnDefinition(
        logical_name=ident.logical_name,
        schema_name=ident.schema_name,
        display_name=attr.display_name,
        description=attr.comment or f"{attr.display_name} field",
        required=attr.is_required,
        spec=spec,
        is_unique=attr.is_unique,
        global_choice_set=_choice_set_name(attr, prefix) if spec.kind == "choice" else None,
        source_attribute=attr.name,
    )


# ============================================================================
# Relationships
# ============================================================================


def resolve_cascade_policy(
    relationship: ErRelationship,
    config: CompilerConfig,
) -> RelationshipClassification:
    """Resolve the lookup/parental classification of one relationship.

    Precedence: an explicit override on the record, then a config override
    keyed by relationship name, then the default policy. With
    ``allow_all_referential`` every default relationship is lookup; without
    it, identifying (solid line) one-to-many relationships are parental.
    """
    override = _requested_override(relationship, config)
    if override in ("lookup", "parental"):
        return override
    if config.allow_all_referential:
        return "lookup"
    if relationship.identifying and relationship.kind in ("one-to-many", "many-to-one"):
        return "parental"
    return "lookup"


def _requested_override(relationship: ErRelationship, config: CompilerConfig) -> str:
    if relationship.cascade_override != "default":
        return relationship.cascade_override
    return config.relationship_overrides.get(relationship.name, "default")


def _generate_relationships(
    relationships: Sequence[ErRelationship],
    config: CompilerConfig,
    notes: list[str],
) -> tuple[list[RelationshipDefinition], list[RelationshipDefinition]]:
    kept: list[RelationshipDefinition] = []
    dropped: list[RelationshipDefinition] = []
    for rel in relationships:
        if rel.kind == "many-to-many":
            if _requested_override(rel, config) == "parental":
                _note(notes, f"{rel.name}: parental override ignored, many-to-many relationships never cascade")
            definition: RelationshipDefinition = _many_to_many(rel, config)
        else:
            definition = _one_to_many(rel, config)

        left, right = definition.entities
        if left == right:
            logger.warning("Dropping self-referencing relationship %r on %s", rel.name, left)
            _note(notes, f"{rel.name}: self-referencing relationship on {rel.from_entity} dropped")
            dropped.append(definition)
            continue
        kept.append(definition)
    return kept, dropped


def _relationship_schema_name(parent: str, child: str, config: CompilerConfig) -> str:
    name = f"{config.identifier_prefix}_{format_schema_name(parent)}_{format_schema_name(child)}"
    if config.relationship_name_suffix:
        name = f"{name}_{config.relationship_name_suffix}"
    return name


def _one_to_many(rel: ErRelationship, config: CompilerConfig) -> OneToManyRelationship:
    prefix = config.identifier_prefix
    # many-to-one is written child-first; the "one" side is referenced
    if rel.kind == "many-to-one":
        parent, child = rel.to_entity, rel.from_entity
    else:
        parent, child = rel.from_entity, rel.to_entity

    parent_name = map_identifier(parent, "entity", prefix).logical_name
    child_name = map_identifier(child, "entity", prefix).logical_name
    parent_key = to_logical_name(parent)
    child_key = to_logical_name(child)

    classification = resolve_cascade_policy(rel, config)
    return OneToManyRelationship(
        schema_name=_relationship_schema_name(parent, child, config),
        name=rel.name,
        display_name=rel.display_name,
        referenced_entity=parent_name,
        referencing_entity=child_name,
        referenced_attribute=f"{parent_name}id",
        lookup_logical_name=f"{prefix}_{parent_key}id",
        lookup_schema_name=f"{prefix}_{format_schema_name(parent)}Id",
        referenced_navigation_property=f"{prefix}_{child_key}_{parent_key}",
        referencing_navigation_property=f"{prefix}_{parent_key}",
        classification=classification,
        cascade=PARENTAL_CASCADE if classification == "parental" else LOOKUP_CASCADE,
        source_kind=rel.kind,
    )


def _many_to_many(rel: ErRelationship, config: CompilerConfig) -> ManyToManyRelationship:
    prefix = config.identifier_prefix
    first = map_identifier(rel.from_entity, "entity", prefix).logical_name
    second = map_identifier(rel.to_entity, "entity", prefix).logical_name
    first_key = to_logical_name(rel.from_entity)
    second_key = to_logical_name(rel.to_entity)
    return ManyToManyRelationship(
        schema_name=_relationship_schema_name(rel.from_entity, rel.to_entity, config),
        name=rel.name,
        display_name=rel.display_name,
        entity1=first,
        entity2=second,
        intersect_entity_name=f"{prefix}_{first_key}_{second_key}",
        entity1_intersect_attribute=f"{first}id",
        entity2_intersect_attribute=f"{second}id",
        entity1_navigation_property=f"{prefix}_{first_key}_{second_key}",
        entity2_navigation_property=f"{prefix}_{second_key}_{first_key}",
    )


# ============================================================================
# Global choice sets
# ============================================================================


def _choice_set_name(attr: ErAttribute, prefix: str) -> str:
    return map_identifier(attr.name, "choice", prefix).logical_name


def _generate_global_choice_sets(
    entities: Sequence[ErEntity], prefix: str, notes: list[str]
) -> list[GlobalChoiceSet]:
    # Set name -> (display name, labels, referencing entities)
    collected: dict[str, tuple[str, tuple[str, ...], list[str]]] = {}

    for entity in entities:
        entity_logical_name = map_identifier(entity.name, "entity", prefix).logical_name
        for attr in entity.attributes:
            if not attr.is_choice or not _emits_column(attr):
                continue
            name = _choice_set_name(attr, prefix)
            if name not in collected:
                collected[name] = (attr.display_name, attr.choice_options, [])
            display_name, labels, users = collected[name]
            if attr.choice_options != labels:
                logger.warning("Choice set %s redefined by %s.%s; keeping first options", name, entity.name, attr.name)
                _note(notes, f"{entity.name}.{attr.name}: options differ from choice set {name}, first definition kept")
            if entity_logical_name not in users:
                users.append(entity_logical_name)

    return [
        GlobalChoiceSet(
            name=name,
            display_name=display_name,
            options=tuple(
                ChoiceOption(value=OPTION_VALUE_BASE + i, label=label) for i, label in enumerate(labels)
            ),
            entities=tuple(users),
        )
        for name, (display_name, labels, users) in collected.items()
    ]


def _note(notes: list[str], message: str) -> None:
    logger.info(message)
    notes.append(message)
