from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from .types import FieldKind

# ============================================================================
# Source type tokens -> target field kinds
# ============================================================================

TYPE_TOKENS: dict[str, FieldKind] = {
    "string": "string",
    "varchar": "string",
    "nvarchar": "string",
    "char": "string",
    "text": "memo",
    "int": "integer",
    "integer": "integer",
    "bigint": "bigint",
    "decimal": "decimal",
    "money": "money",
    "float": "double",
    "double": "double",
    "boolean": "boolean",
    "bool": "boolean",
    "datetime": "datetime",
    "date": "datetime",
    "guid": "guid",
    "uuid": "guid",
    "image": "image",
    "file": "file",
    "autonumber": "autonumber",
    "duration": "duration",
}

# Unknown tokens fall back to plain text
DEFAULT_KIND: FieldKind = "string"

# ============================================================================
# Default constraints per kind (keys are TargetFieldSpec field names)
# ============================================================================

INT32_MIN = -2147483648
INT32_MAX = 2147483647

KIND_DEFAULTS: dict[FieldKind, dict[str, Any]] = {
    "string": {"attribute_type": "String", "type_name": "StringType", "format": "Text", "max_length": 100},
    "memo": {"attribute_type": "Memo", "type_name": "MemoType", "format": "TextArea", "max_length": 4000},
    "integer": {
        "attribute_type": "Integer",
        "type_name": "IntegerType",
        "format": "None",
        "min_value": INT32_MIN,
        "max_value": INT32_MAX,
    },
    "bigint": {"attribute_type": "BigInt", "type_name": "BigIntType"},
    "decimal": {
        "attribute_type": "Decimal",
        "type_name": "DecimalType",
        "min_value": -100000000000,
        "max_value": 100000000000,
        "precision": 2,
    },
    "money": {
        "attribute_type": "Money",
        "type_name": "MoneyType",
        "min_value": -922337203685477,
        "max_value": 922337203685477,
        "precision": 4,
        "precision_source": 2,
    },
    "double": {"attribute_type": "Double", "type_name": "DoubleType", "precision": 5},
    "boolean": {"attribute_type": "Boolean", "type_name": "BooleanType", "options": ("No", "Yes")},
    "datetime": {
        "attribute_type": "DateTime",
        "type_name": "DateTimeType",
        "format": "DateAndTime",
        "date_time_behavior": "UserLocal",
    },
    "guid": {"attribute_type": "Uniqueidentifier", "type_name": "UniqueidentifierType"},
    "image": {"attribute_type": "Virtual", "type_name": "ImageType", "max_size_kb": 30720},
    "file": {"attribute_type": "Virtual", "type_name": "FileType", "max_size_kb": 131072},
    "autonumber": {
        "attribute_type": "String",
        "type_name": "StringType",
        "format": "Text",
        "max_length": 100,
        "auto_number_format": "AUTO-{SEQNUM:1000}",
    },
    "duration": {
        "attribute_type": "Integer",
        "type_name": "DurationType",
        "format": "Duration",
        "min_value": 0,
        "max_value": INT32_MAX,
    },
    "choice": {"attribute_type": "Picklist", "type_name": "PicklistType"},
}

# Platform metadata class per kind
METADATA_TYPES: dict[FieldKind, str] = {
    "string": "StringAttributeMetadata",
    "memo": "MemoAttributeMetadata",
    "integer": "IntegerAttributeMetadata",
    "bigint": "BigIntAttributeMetadata",
    "decimal": "DecimalAttributeMetadata",
    "money": "MoneyAttributeMetadata",
    "double": "DoubleAttributeMetadata",
    "boolean": "BooleanAttributeMetadata",
    "datetime": "DateTimeAttributeMetadata",
    "guid": "UniqueIdentifierAttributeMetadata",
    "image": "ImageAttributeMetadata",
    "file": "FileAttributeMetadata",
    "autonumber": "StringAttributeMetadata",
    "duration": "IntegerAttributeMetadata",
    "choice": "PicklistAttributeMetadata",
}

# ============================================================================
# Name-based refinements
#
# Evaluated in order per kind; the first matching rule wins. Patterns can
# overlap, so the order is part of the contract.
# ============================================================================


@dataclass(frozen=True, slots=True)
class NameRule:
    sub_kind: str
    pattern: re.Pattern[str]
    # Replacement values for TargetFieldSpec fields
    changes: dict[str, Any]

    def matches(self, field_name: str) -> bool:
        return self.pattern.search(field_name) is not None


def _rule(sub_kind: str, pattern: str, **changes: Any) -> NameRule:
    return NameRule(sub_kind, re.compile(pattern, re.IGNORECASE), changes)


STRING_RULES: tuple[NameRule, ...] = (
    _rule("email", r"email|e_mail|emailaddress", format="Email", max_length=100),
    _rule("phone", r"phone|telephone|mobile|cell", format="Phone", max_length=50),
    _rule("url", r"url|website|link|uri", format="Url", max_length=200),
    _rule("ticker", r"ticker|symbol|ticker_symbol", format="TickerSymbol", max_length=10),
    _rule(
        "text-area",
        r"text_area|textarea|plain_text_area|description|notes|comments",
        format="TextArea",
        max_length=2000,
    ),
    _rule("rich-text", r"rich_text|richtext|html|formatted", format="RichText", max_length=4000),
    _rule(
        "auto-number",
        r"autonumber|auto_number|sequence",
        format="Text",
        max_length=100,
        auto_number_format="AUTO-{SEQNUM:1000}",
    ),
)

INTEGER_RULES: tuple[NameRule, ...] = (
    _rule("language-code", r"language_code|languagecode|locale", format="Language", min_value=1025, max_value=1164),
    _rule("duration", r"duration|elapsed|time_span", format="Duration", min_value=0, max_value=INT32_MAX),
    _rule(
        "time-zone",
        r"time_zone|timezone|utc_offset",
        format="TimeZone",
        type_name="TimeZoneType",
        min_value=-1500,
        max_value=1500,
    ),
)

DECIMAL_RULES: tuple[NameRule, ...] = (
    _rule(
        "currency",
        r"currency|price|amount|cost|fee|salary|wage|money",
        kind="money",
        **KIND_DEFAULTS["money"],
    ),
)

DATETIME_RULES: tuple[NameRule, ...] = (
    _rule("date-only", r"date_only|dateonly|birth_date|start_date|end_date", format="DateOnly"),
)

NAME_RULES: dict[FieldKind, tuple[NameRule, ...]] = {
    "string": STRING_RULES,
    "integer": INTEGER_RULES,
    "decimal": DECIMAL_RULES,
    "datetime": DATETIME_RULES,
}

# ============================================================================
# Identifier limits
# ============================================================================

# Longest logical/schema name accepted by the platform
MAX_IDENTIFIER_LENGTH = 50

# First value of custom option sets
OPTION_VALUE_BASE = 100000000
