from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

# ============================================================================
# ER diagram types
#
# Models the parsed representation of a Mermaid ER diagram: entities with
# ordered attributes, and raw relationships between entities.
# All values are frozen; attribute order drives column creation order.
# ============================================================================

# Cardinality notation (crow's foot):
#   'one'       ||  exactly one
#   'zero-one'  |o  zero or one
#   'many'      }|  one or more
#   'zero-many' o{  zero or more
Cardinality = Literal["one", "zero-one", "many", "zero-many"]

RelationshipKind = Literal["one-to-one", "one-to-many", "many-to-one", "many-to-many"]

# Per-relationship cascade policy, resolved by the generator
CascadeOverride = Literal["default", "lookup", "parental"]


@dataclass(frozen=True, slots=True)
class ErAttribute:
    """A single attribute (column) of an ER entity."""

    name: str
    display_name: str
    # Raw type token as written (string, int, choice(a,b,c), ...)
    source_type: str
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_unique: bool = False
    is_required: bool = False
    is_choice: bool = False
    choice_options: tuple[str, ...] = ()
    # Optional quoted comment
    comment: str | None = None


@dataclass(frozen=True, slots=True)
class ErEntity:
    """An entity definition in an ER diagram."""

    name: str
    display_name: str
    attributes: tuple[ErAttribute, ...] = ()

    @property
    def primary_key(self) -> ErAttribute | None:
        return next((a for a in self.attributes if a.is_primary_key), None)


@dataclass(frozen=True, slots=True)
class ErRelationship:
    """A relationship between two entities, as written in the diagram."""

    from_entity: str
    to_entity: str
    # Symbol as written, e.g. "||--o{"
    cardinality_token: str
    kind: RelationshipKind
    # Label after the colon, defaults to "{from}_{to}"
    name: str
    display_name: str
    # Cardinality at each end; None when the symbol was not recognised
    from_cardinality: Cardinality | None = None
    to_cardinality: Cardinality | None = None
    # Solid (--) vs dashed (..) line
    identifying: bool = True
    cascade_override: CascadeOverride = "default"


@dataclass(frozen=True, slots=True)
class SkippedLine:
    """A line the parser did not match, kept so permissive skips are visible."""

    line_number: int
    line: str
    reason: str


@dataclass(frozen=True, slots=True)
class ErDiagram:
    """Parsed ER diagram -- logical structure from mermaid text."""

    entities: tuple[ErEntity, ...] = ()
    relationships: tuple[ErRelationship, ...] = ()
    skipped_lines: tuple[SkippedLine, ...] = ()

    def entity(self, name: str) -> ErEntity | None:
        return next((e for e in self.entities if e.name == name), None)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ============================================================================
# Line classification -- one variant per grammar branch
# ============================================================================


@dataclass(frozen=True, slots=True)
class HeaderLine:
    pass


@dataclass(frozen=True, slots=True)
class BlockOpen:
    name: str


@dataclass(frozen=True, slots=True)
class BlockClose:
    pass


@dataclass(frozen=True, slots=True)
class AttributeLine:
    attribute: ErAttribute


@dataclass(frozen=True, slots=True)
class RelationshipLine:
    relationship: ErRelationship


@dataclass(frozen=True, slots=True)
class NoMatch:
    reason: str = field(default="unrecognised line")


LineMatch = HeaderLine | BlockOpen | BlockClose | AttributeLine | RelationshipLine | NoMatch
