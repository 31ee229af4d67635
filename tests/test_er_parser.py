"""Tests for the ER diagram parser.

Covers: entity blocks, attribute parsing (types, names, constraints, choice
options, comments), relationships with all cardinality kinds, and the
permissive vs strict handling of unmatched lines.
"""
from __future__ import annotations

import pytest

from mermaid_schema.er.parser import classify_line, parse_erd, parse_er_diagram
from mermaid_schema.er.types import (
    AttributeLine,
    BlockClose,
    BlockOpen,
    HeaderLine,
    NoMatch,
    RelationshipLine,
)
from mermaid_schema.errors import ParseError


def parse(text: str, strict: bool = False):
    return parse_erd(text, strict=strict)


# ============================================================================
# Entity definitions
# ============================================================================


class TestEntityDefinitions:
    def test_parses_an_entity_with_attributes(self):
        d = parse(
            "erDiagram\n"
            "  CUSTOMER {\n"
            "    string customer_id PK\n"
            "    int age\n"
            "    string email\n"
            "  }"
        )
        assert len(d.entities) == 1
        assert d.entities[0].name == "CUSTOMER"
        assert d.entities[0].display_name == "Customer"
        assert len(d.entities[0].attributes) == 3
        assert d.entities[0].attributes[1].source_type == "int"
        assert d.entities[0].attributes[1].name == "age"

    def test_primary_key_implies_required(self):
        d = parse(
            "erDiagram\n"
            "  USER {\n"
            "    string user_id PK\n"
            "  }"
        )
        attr = d.entities[0].attributes[0]
        assert attr.name == "user_id"
        assert attr.is_primary_key is True
        assert attr.is_required is True
        assert attr.display_name == "User Id"

    def test_parses_fk_uk_and_not_null(self):
        d = parse(
            "erDiagram\n"
            "  ORDER {\n"
            "    string order_id PK\n"
            "    string customer_id FK\n"
            "    string reference UK\n"
            "    datetime placed_on NOT NULL\n"
            "  }"
        )
        attrs = d.entities[0].attributes
        assert attrs[1].is_foreign_key is True
        assert attrs[1].is_required is False
        assert attrs[2].is_unique is True
        assert attrs[3].is_required is True
        assert attrs[3].is_primary_key is False

    def test_parses_attributes_with_comment(self):
        d = parse(
            "erDiagram\n"
            '  USER {\n'
            '    string email UK "user email address"\n'
            '  }'
        )
        attr = d.entities[0].attributes[0]
        assert attr.comment == "user email address"
        assert attr.is_unique is True

    def test_constraint_words_inside_comment_are_ignored(self):
        d = parse(
            "erDiagram\n"
            '  USER {\n'
            '    string note "PK of the legacy system"\n'
            '  }'
        )
        assert d.entities[0].attributes[0].is_primary_key is False

    def test_array_type_token_is_kept(self):
        d = parse(
            "erDiagram\n"
            "  POST {\n"
            "    string post_id PK\n"
            "    string[] tags\n"
            "  }"
        )
        attr = d.entities[0].attributes[1]
        assert attr.source_type == "string[]"
        assert attr.name == "tags"
        assert d.skipped_lines == ()

    def test_parses_choice_type(self):
        d = parse(
            "erDiagram\n"
            "  PRODUCT {\n"
            "    string product_id PK\n"
            "    choice(Red,Green,Blue) color\n"
            "  }"
        )
        attr = d.entities[0].attributes[1]
        assert attr.name == "color"
        assert attr.is_choice is True
        assert attr.choice_options == ("Red", "Green", "Blue")

    def test_choice_options_are_trimmed_and_unquoted(self):
        d = parse(
            "erDiagram\n"
            "  TASK {\n"
            "    choice(\"Not Started\", In Progress , Done) status\n"
            "  }"
        )
        assert d.entities[0].attributes[0].choice_options == ("Not Started", "In Progress", "Done")

    def test_preserves_attribute_order(self):
        d = parse(
            "erDiagram\n"
            "  A {\n"
            "    string a_id PK\n"
            "    string zeta\n"
            "    string alpha\n"
            "    string mid\n"
            "  }"
        )
        assert [a.name for a in d.entities[0].attributes] == ["a_id", "zeta", "alpha", "mid"]

    def test_parses_multiple_entities(self):
        d = parse(
            "erDiagram\n"
            "  CUSTOMER {\n"
            "    int id PK\n"
            "  }\n"
            "  ORDER {\n"
            "    int id PK\n"
            "    date created\n"
            "  }"
        )
        assert [e.name for e in d.entities] == ["CUSTOMER", "ORDER"]

    def test_repeated_block_extends_entity(self):
        d = parse(
            "erDiagram\n"
            "  A {\n"
            "    string a_id PK\n"
            "  }\n"
            "  A {\n"
            "    string extra\n"
            "  }"
        )
        assert len(d.entities) == 1
        assert [a.name for a in d.entities[0].attributes] == ["a_id", "extra"]

    def test_relationships_do_not_create_entities(self):
        d = parse(
            "erDiagram\n"
            "  CUSTOMER ||--o{ ORDER : places"
        )
        assert d.entities == ()
        assert len(d.relationships) == 1

    def test_ignores_comments_and_blank_lines(self):
        d = parse(
            "erDiagram\n"
            "%% a comment\n"
            "\n"
            "  A {\n"
            "    %% inside\n"
            "    string a_id PK\n"
            "  }"
        )
        assert len(d.entities[0].attributes) == 1
        assert d.skipped_lines == ()


# ============================================================================
# Relationships
# ============================================================================


class TestRelationships:
    def test_parses_exactly_one_to_zero_or_many(self):
        d = parse(
            "erDiagram\n"
            "  CUSTOMER ||--o{ ORDER : places"
        )
        rel = d.relationships[0]
        assert rel.from_entity == "CUSTOMER"
        assert rel.to_entity == "ORDER"
        assert rel.cardinality_token == "||--o{"
        assert rel.from_cardinality == "one"
        assert rel.to_cardinality == "zero-many"
        assert rel.kind == "one-to-many"
        assert rel.name == "places"
        assert rel.identifying is True

    @pytest.mark.parametrize(
        "symbol, kind",
        [
            ("||--||", "one-to-one"),
            ("||--o{", "one-to-many"),
            ("||--|{", "one-to-many"),
            ("}o--||", "many-to-one"),
            ("}|--||", "many-to-one"),
            ("}o--o{", "many-to-many"),
            ("|o--o{", "one-to-many"),
        ],
    )
    def test_maps_cardinality_symbols(self, symbol, kind):
        d = parse(f"erDiagram\n  A {symbol} B : links")
        assert d.relationships[0].kind == kind

    def test_unknown_symbol_defaults_to_one_to_many(self):
        d = parse("erDiagram\n  A o--o B : links")
        rel = d.relationships[0]
        assert rel.kind == "one-to-many"
        assert rel.from_cardinality is None
        assert rel.to_cardinality is None

    def test_parses_non_identifying_relationship_dotted(self):
        d = parse("erDiagram\n  USER ||..o{ LOG : generates")
        assert d.relationships[0].identifying is False

    def test_label_defaults_to_from_to(self):
        d = parse("erDiagram\n  CUSTOMER ||--o{ ORDER")
        rel = d.relationships[0]
        assert rel.name == "CUSTOMER_ORDER"
        assert rel.display_name == "Customer Order"

    def test_quoted_label_is_unquoted(self):
        d = parse('erDiagram\n  CUSTOMER ||--o{ ORDER : "places"')
        assert d.relationships[0].name == "places"

    def test_new_relationships_carry_default_override(self):
        d = parse("erDiagram\n  A ||--o{ B : has")
        assert d.relationships[0].cascade_override == "default"


# ============================================================================
# Line classification & unmatched lines
# ============================================================================


class TestLineClassification:
    def test_header(self):
        assert isinstance(classify_line("erDiagram", in_block=False), HeaderLine)

    def test_block_open_and_close(self):
        assert classify_line("CUSTOMER {", in_block=False) == BlockOpen("CUSTOMER")
        assert isinstance(classify_line("}", in_block=True), BlockClose)

    def test_attribute_only_inside_block(self):
        assert isinstance(classify_line("string name", in_block=True), AttributeLine)
        assert isinstance(classify_line("string name", in_block=False), NoMatch)

    def test_relationship_line_inside_block_is_no_match(self):
        result = classify_line("A ||--o{ B : has", in_block=True)
        assert isinstance(result, NoMatch)

    def test_relationship_outside_block(self):
        assert isinstance(classify_line("A ||--o{ B : has", in_block=False), RelationshipLine)

    def test_unmatched_lines_are_skipped_and_recorded(self):
        d = parse(
            "erDiagram\n"
            "  this is not valid\n"
            "  A {\n"
            "    ???\n"
            "    string a_id PK\n"
            "  }"
        )
        assert len(d.entities[0].attributes) == 1
        assert [s.line_number for s in d.skipped_lines] == [2, 4]
        assert d.skipped_lines[1].line == "???"

    def test_strict_mode_raises_on_unmatched_attribute(self):
        with pytest.raises(ParseError) as excinfo:
            parse(
                "erDiagram\n"
                "  A {\n"
                "    ???\n"
                "  }",
                strict=True,
            )
        assert excinfo.value.line_number == 3
        assert excinfo.value.line == "???"

    def test_parse_error_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse("erDiagram\n  nonsense here", strict=True)

    def test_unterminated_block(self):
        d = parse("erDiagram\n  A {\n    string a_id PK")
        assert d.entities[0].name == "A"
        assert "unterminated" in d.skipped_lines[-1].reason
        with pytest.raises(ParseError, match="unterminated"):
            parse("erDiagram\n  A {\n    string a_id PK", strict=True)

    def test_parser_keeps_no_state_between_calls(self):
        first = parse_er_diagram(["erDiagram", "A {", "string a_id PK", "}"])
        second = parse_er_diagram(["erDiagram", "B {", "string b_id PK", "}"])
        assert [e.name for e in first.entities] == ["A"]
        assert [e.name for e in second.entities] == ["B"]


# ============================================================================
# Full diagram
# ============================================================================


class TestFullDiagram:
    def test_parses_a_complete_e_commerce_schema(self):
        d = parse(
            "erDiagram\n"
            "  CUSTOMER {\n"
            "    string customer_id PK\n"
            "    string name\n"
            "    string email UK\n"
            "  }\n"
            "  ORDER {\n"
            "    string order_id PK\n"
            "    date created\n"
            "    string customer_id FK\n"
            "  }\n"
            "  LINE_ITEM {\n"
            "    string line_item_id PK\n"
            "    int quantity\n"
            "    string order_id FK\n"
            "    string product_id FK\n"
            "  }\n"
            "  PRODUCT {\n"
            "    string product_id PK\n"
            "    decimal price\n"
            "  }\n"
            "  CUSTOMER ||--o{ ORDER : places\n"
            "  ORDER ||--|{ LINE_ITEM : contains\n"
            "  PRODUCT ||--o{ LINE_ITEM : includes"
        )

        assert len(d.entities) == 4
        assert len(d.relationships) == 3
        assert d.entity("LINE_ITEM").display_name == "Line Item"

        line_item = d.entity("LINE_ITEM")
        assert len([a for a in line_item.attributes if a.is_foreign_key]) == 2
        assert all(e.primary_key is not None for e in d.entities)

    def test_to_dict_is_plain_data(self):
        d = parse("erDiagram\n  A {\n    string a_id PK\n  }\n  A ||--o{ B : has")
        data = d.to_dict()
        assert data["entities"][0]["attributes"][0]["name"] == "a_id"
        assert data["relationships"][0]["kind"] == "one-to-many"
