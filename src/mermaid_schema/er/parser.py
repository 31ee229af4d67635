from __future__ import annotations

import logging
import re
from typing import Iterable

from ..errors import ParseError
from ..naming import format_display_name
from .types import (
    AttributeLine,
    BlockClose,
    BlockOpen,
    Cardinality,
    ErAttribute,
    ErDiagram,
    ErEntity,
    ErRelationship,
    HeaderLine,
    LineMatch,
    NoMatch,
    RelationshipKind,
    RelationshipLine,
    SkippedLine,
)

logger = logging.getLogger(__name__)

# ============================================================================
# ER diagram parser
#
# Parses Mermaid erDiagram syntax into an ErDiagram structure.
#
# Supported syntax:
#   CUSTOMER ||--o{ ORDER : places
#   CUSTOMER {
#     string customer_id PK
#     choice(Active,Inactive) status
#     string email UK "user email"
#   }
#
# Cardinality notation (either orientation):
#   ||  exactly one
#   |o  zero or one
#   }|  one or more
#   }o  zero or more
#
# Line style:
#   --  identifying (solid line)
#   ..  non-identifying (dashed line)
#
# Each line is classified into exactly one LineMatch variant. Lines that
# match nothing are skipped (and recorded) unless strict parsing is on.
# ============================================================================

COMMENT_MARKER = "%%"
HEADER = "erdiagram"

ENTITY_BLOCK_PATTERN = re.compile(r"^(\w+)\s*\{$")
ATTRIBUTE_PATTERN = re.compile(r"^([\w\[\]]+(?:\([^)]*\))?)\s+(\w+)(?:\s+(.*))?$")
RELATIONSHIP_PATTERN = re.compile(r"^(\w+)\s+([|}{o.\-]+)\s+(\w+)(?:\s*:\s*(.+))?$")
SYMBOL_PATTERN = re.compile(r"^([|o}{]{2})(--|\.\.)([|o}{]{2})$")
CHOICE_PATTERN = re.compile(r"^choice\((.*)\)$", re.IGNORECASE)

CARDINALITY_SYMBOLS: dict[str, Cardinality] = {
    "||": "one",
    "|o": "zero-one",
    "o|": "zero-one",
    "}|": "many",
    "|{": "many",
    "}o": "zero-many",
    "o{": "zero-many",
}

DEFAULT_KIND: RelationshipKind = "one-to-many"


def parse_erd(text: str, strict: bool = False) -> ErDiagram:
    """Parse Mermaid ER diagram text.

    Blank lines and ``%%`` comments are dropped before parsing; line numbers
    in skipped-line records refer to the original text.
    """
    numbered = [
        (number, line.strip())
        for number, line in enumerate(text.splitlines(), start=1)
        if line.strip() and not line.strip().startswith(COMMENT_MARKER)
    ]
    return _parse_numbered(numbered, strict)


def parse_er_diagram(lines: list[str], strict: bool = False) -> ErDiagram:
    """Parse preprocessed (trimmed, non-empty, non-comment) diagram lines."""
    return _parse_numbered(list(enumerate(lines, start=1)), strict)


def _parse_numbered(numbered: Iterable[tuple[int, str]], strict: bool) -> ErDiagram:
    # Entity name -> attributes, in first-seen order
    entity_attrs: dict[str, list[ErAttribute]] = {}
    relationships: list[ErRelationship] = []
    skipped: list[SkippedLine] = []

    current_entity: str | None = None
    last_number = 0

    for number, line in numbered:
        last_number = number
        match = classify_line(line, in_block=current_entity is not None)

        if isinstance(match, HeaderLine):
            continue
        if isinstance(match, BlockOpen):
            current_entity = match.name
            # Repeated blocks for the same entity extend it
            entity_attrs.setdefault(current_entity, [])
            continue
        if isinstance(match, BlockClose):
            current_entity = None
            continue
        if isinstance(match, AttributeLine):
            # Attribute lines are only classified inside a block
            if current_entity is not None:
                entity_attrs[current_entity].append(match.attribute)
            continue
        if isinstance(match, RelationshipLine):
            relationships.append(match.relationship)
            continue

        # --- NoMatch ---
        if strict:
            raise ParseError(match.reason, number, line)
        logger.debug("Skipping line %d (%s): %r", number, match.reason, line)
        skipped.append(SkippedLine(line_number=number, line=line, reason=match.reason))

    if current_entity is not None:
        reason = f"unterminated entity block '{current_entity}'"
        if strict:
            raise ParseError(reason, last_number, "")
        logger.debug("Diagram ends inside entity block %r", current_entity)
        skipped.append(SkippedLine(line_number=last_number, line="", reason=reason))

    entities = tuple(
        ErEntity(name=name, display_name=format_display_name(name), attributes=tuple(attrs))
        for name, attrs in entity_attrs.items()
    )
    logger.debug(
        "Parsed %d entities, %d relationships, skipped %d lines",
        len(entities),
        len(relationships),
        len(skipped),
    )
    return ErDiagram(
        entities=entities,
        relationships=tuple(relationships),
        skipped_lines=tuple(skipped),
    )


def classify_line(line: str, in_block: bool) -> LineMatch:
    """Match one trimmed line against the grammar for the current parser state."""
    # --- Inside entity body ---
    if in_block:
        if line == "}":
            return BlockClose()
        attr = _parse_attribute(line)
        if attr is not None:
            return AttributeLine(attr)
        return NoMatch("attribute line matches no grammar rule")

    if line.lower() == HEADER:
        return HeaderLine()

    # --- Entity block start: `ENTITY_NAME {` ---
    block_match = ENTITY_BLOCK_PATTERN.match(line)
    if block_match:
        return BlockOpen(block_match.group(1))

    # --- Relationship: `ENTITY1 <symbol> ENTITY2 [: label]` ---
    rel = _parse_relationship_line(line)
    if rel is not None:
        return RelationshipLine(rel)

    if line == "}":
        return NoMatch("closing brace outside an entity block")
    return NoMatch("line matches neither relationship nor entity grammar")


def _parse_attribute(line: str) -> ErAttribute | None:
    """Parse an attribute line inside an entity block.

    Format: type name [PK|FK|UK|NOT NULL ...] ["comment"]
    """
    match = ATTRIBUTE_PATTERN.match(line)
    if not match:
        return None

    attr_type = match.group(1)
    attr_name = match.group(2)
    rest = (match.group(3) or "").strip()

    # Extract quoted comment first
    comment: str | None = None
    comment_match = re.search(r'"([^"]*)"', rest)
    if comment_match:
        comment = comment_match.group(1)

    # Constraint tokens are scanned as substrings of the remaining text
    constraints = re.sub(r'"[^"]*"', "", rest).upper()
    is_primary_key = "PK" in constraints

    choice_options = _parse_choice_options(attr_type)

    return ErAttribute(
        name=attr_name,
        display_name=format_display_name(attr_name),
        source_type=attr_type,
        is_primary_key=is_primary_key,
        is_foreign_key="FK" in constraints,
        is_unique="UK" in constraints,
        is_required=is_primary_key or "NOT NULL" in constraints,
        is_choice=bool(choice_options),
        choice_options=choice_options,
        comment=comment,
    )


def _parse_choice_options(type_token: str) -> tuple[str, ...]:
    match = CHOICE_PATTERN.match(type_token)
    if not match:
        return ()
    options = (opt.strip().strip("\"'").strip() for opt in match.group(1).split(","))
    return tuple(opt for opt in options if opt)


def _parse_relationship_line(line: str) -> ErRelationship | None:
    """Parse a relationship line.

    Full pattern example: CUSTOMER ||--o{ ORDER : places

    Symbols outside the known vocabulary still produce a relationship; it
    falls back to one-to-many.
    """
    match = RELATIONSHIP_PATTERN.match(line)
    if not match:
        return None

    from_entity = match.group(1)
    symbol = match.group(2)
    to_entity = match.group(3)
    label = (match.group(4) or "").strip().strip("\"'").strip()

    from_card, to_card, identifying = _parse_symbol(symbol)
    kind = _relationship_kind(from_card, to_card)
    if from_card is None or to_card is None:
        logger.debug("Unrecognised cardinality %r, defaulting to %s", symbol, kind)

    name = label or f"{from_entity}_{to_entity}"
    return ErRelationship(
        from_entity=from_entity,
        to_entity=to_entity,
        cardinality_token=symbol,
        kind=kind,
        name=name,
        display_name=label or format_display_name(name),
        from_cardinality=from_card,
        to_cardinality=to_card,
        identifying=identifying,
    )


def _parse_symbol(symbol: str) -> tuple[Cardinality | None, Cardinality | None, bool]:
    """Split a symbol into left cardinality, line style, right cardinality."""
    match = SYMBOL_PATTERN.match(symbol)
    if not match:
        return None, None, ".." not in symbol
    left = CARDINALITY_SYMBOLS.get(match.group(1))
    right = CARDINALITY_SYMBOLS.get(match.group(3))
    return left, right, match.group(2) == "--"


def _relationship_kind(left: Cardinality | None, right: Cardinality | None) -> RelationshipKind:
    if left is None or right is None:
        return DEFAULT_KIND
    left_many = left in ("many", "zero-many")
    right_many = right in ("many", "zero-many")
    if left_many and right_many:
        return "many-to-many"
    if left_many:
        return "many-to-one"
    if right_many:
        return "one-to-many"
    return "one-to-one"
