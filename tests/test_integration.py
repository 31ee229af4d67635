"""End-to-end tests: Mermaid ER text -> compile_erd -> document, report, metadata."""
from __future__ import annotations

import logging

import pytest

from mermaid_schema import (
    CompilerConfig,
    ConfigError,
    MissingPrimaryKeyError,
    ParseError,
    SchemaValidationError,
    compile_erd,
)

CRM = """
erDiagram
  %% Sales model
  Account {
    string account_id PK
    string name
    string website
    choice(Prospect,Customer,Partner) tier
  }
  Contact {
    string contact_id PK
    string email UK
    string account_id FK
    date birth_date
  }
  Opportunity {
    string opportunity_id PK
    decimal estimated_amount NOT NULL
    choice(Prospect,Customer,Partner) tier
  }
  Account ||--o{ Contact : employs
  Account ||--o{ Opportunity : pursues
  Contact }o--o{ Opportunity : influences
  Account }o--o{ Account : partners_with
"""


# ============================================================================
# Happy path
# ============================================================================


class TestCompile:
    def test_compiles_a_crm_model(self):
        result = compile_erd(CRM)
        doc = result.document

        assert [e.logical_name for e in doc.entities] == ["mmd_account", "mmd_contact", "mmd_opportunity"]
        assert [c.column.logical_name for c in doc.additional_columns] == [
            "mmd_website",
            "mmd_tier",
            "mmd_email",
            "mmd_birth_date",
            "mmd_estimated_amount",
            "mmd_tier",
        ]
        assert [r.name for r in doc.relationships] == ["employs", "pursues", "influences"]
        assert [r.name for r in doc.dropped_relationships] == ["partners_with"]
        assert doc.global_choice_sets[0].entities == ("mmd_account", "mmd_opportunity")

    def test_self_reference_is_dropped_but_warned(self):
        result = compile_erd(CRM)
        assert result.is_valid is True
        (warning,) = result.report.issues_of("SELF_REFERENCE")
        assert warning.entity == "Account"

    def test_metadata(self):
        metadata = compile_erd(CRM).metadata()
        assert len(metadata["entities"]) == 3
        assert len(metadata["relationships"]) == 3
        assert metadata["globalChoiceSets"][0]["Name"] == "mmd_tier"

    def test_metadata_uses_configured_language(self):
        result = compile_erd(CRM, CompilerConfig(language_code=1031))
        label = result.metadata()["entities"][0]["DisplayName"]["LocalizedLabels"][0]
        assert label == {"Label": "Account", "LanguageCode": 1031}

        explicit = result.metadata(language_code=1036)["entities"][0]["DisplayName"]
        assert explicit["LocalizedLabels"][0]["LanguageCode"] == 1036

    def test_to_dict(self):
        data = compile_erd(CRM).to_dict()
        assert set(data) == {"diagram", "document", "report"}
        assert data["report"]["summary"]["status"] == "VALID"

    def test_compilation_is_deterministic(self):
        assert compile_erd(CRM) == compile_erd(CRM)

    def test_custom_prefix(self):
        result = compile_erd(CRM, CompilerConfig(identifier_prefix="sales"))
        assert result.document.entities[0].primary_name_field.logical_name == "sales_name"
        assert result.document.relationships[0].schema_name == "sales_Account_Contact"


# ============================================================================
# Failure modes
# ============================================================================


class TestFailures:
    def test_strict_parsing(self):
        text = CRM.replace("  Account ||--o{ Contact : employs", "  Account employs Contact")
        assert compile_erd(text).diagram.skipped_lines[0].line == "Account employs Contact"
        with pytest.raises(ParseError):
            compile_erd(text, CompilerConfig(strict_parsing=True))

    def test_missing_primary_key(self):
        with pytest.raises(MissingPrimaryKeyError):
            compile_erd("erDiagram\n  A {\n    string title\n  }")

    def test_fail_on_errors(self):
        text = CRM.replace("Contact }o--o{ Opportunity", "Contact ||--o{ Opportunity")
        config = CompilerConfig(allow_all_referential=False)
        assert compile_erd(text, config).is_valid is False

        with pytest.raises(SchemaValidationError, match="MULTIPLE_PARENTAL_RELATIONSHIPS") as excinfo:
            compile_erd(text, CompilerConfig(allow_all_referential=False, fail_on_errors=True))
        assert excinfo.value.report.errors[0].entity == "Opportunity"

    @pytest.mark.parametrize(
        "options",
        [
            {"identifier_prefix": "X"},
            {"identifier_prefix": "a"},
            {"identifier_prefix": "waytoolongprefix"},
            {"relationship_name_suffix": "has space"},
            {"relationship_overrides": {"employs": "sometimes"}},
            {"language_code": 0},
        ],
    )
    def test_invalid_config(self, options):
        with pytest.raises(ConfigError):
            CompilerConfig(**options)

    def test_dropped_relationships_are_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="mermaid_schema"):
            compile_erd(CRM)
        assert any("partners_with" in r.getMessage() for r in caplog.records)
