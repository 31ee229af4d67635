from __future__ import annotations

import re

# ============================================================================
# Name formatting shared by the parser and the identifier mapper
# ============================================================================

_WORD_SPLIT = re.compile(r"[^A-Za-z0-9]+")


def format_display_name(name: str) -> str:
    """Convert a technical name to Title Case (``line_item`` -> ``Line Item``)."""
    words = [w for w in re.split(r"[_\-\s]+", name.strip()) if w]
    return " ".join(_capitalize(w) for w in words)


def _capitalize(word: str) -> str:
    # Mixed-case words (LineItem) keep their inner capitals
    if word.isupper() or word.islower():
        return word[:1].upper() + word[1:].lower()
    return word[:1].upper() + word[1:]


def format_schema_name(name: str) -> str:
    """Remove separators and capitalize each word (``customer_id`` -> ``CustomerId``).

    Characters after the first of each word keep their case, so an already
    PascalCase name passes through unchanged.
    """
    words = [w for w in _WORD_SPLIT.split(name) if w]
    return "".join(w[:1].upper() + w[1:] for w in words)


def to_logical_name(name: str) -> str:
    """Lower-case a name and reduce it to ``[a-z0-9_]``."""
    cleaned = _WORD_SPLIT.sub("_", name.strip().lower())
    return cleaned.strip("_")
