"""Mapping DRYML names onto Ruby identifiers."""

from __future__ import annotations

import re

DRYML_NAME = r"[a-zA-Z\-][a-zA-Z0-9\-]*"
DRYML_NAME_RX = re.compile(rf"^{DRYML_NAME}$")
DOTTED_DRYML_NAME_RX = re.compile(rf"^{DRYML_NAME}(\.{DRYML_NAME})*$")
DRYML_NAME_LIST_RX = re.compile(rf"^\s*{DRYML_NAME}(\s*,\s*{DRYML_NAME})*\s*$")

RUBY_NAME = r"[a-zA-Z_][a-zA-Z0-9_]*"
RUBY_NAME_RX = re.compile(rf"^{RUBY_NAME}$")

# Bare symbol literal (:name, :name?, :name!)
SYMBOL_RX = re.compile(rf"^{RUBY_NAME}[?!]?$")

CODE_ATTRIBUTE_CHAR = "&"
_ENTITY_RX = re.compile(r"^&\S+;")

# Ruby keywords a tag name would collide with
RESERVED_WORDS = frozenset(
    ["if", "for", "while", "do", "class", "else", "elsif", "unless", "case", "when", "module", "in"]
)

# Attributes with dedicated compilation logic; never passed as plain attributes
SPECIAL_ATTRIBUTES = (
    "param",
    "merge",
    "merge-params",
    "merge-attrs",
    "for-type",
    "if",
    "unless",
    "repeat",
    "part",
    "part-locals",
    "restore",
)


def ruby_name(dryml_name: str) -> str:
    return dryml_name.replace("-", "_")


def unreserve(word: str) -> str:
    """Suffix Ruby keywords with '_' so they can be used as method names."""
    if word in RESERVED_WORDS:
        return word + "_"
    return word


def underscore(word: str) -> str:
    """CamelCase / Name::Spaced / hyphen-ated → snake_case (ActiveSupport rules)."""
    word = word.replace("::", "/")
    word = re.sub(r"([A-Z\d]+)([A-Z][a-z])", r"\1_\2", word)
    word = re.sub(r"([a-z\d])([A-Z])", r"\1_\2", word)
    return word.replace("-", "_").lower()


def is_code_attribute(value: str | None) -> bool:
    """True for '&expr' values; '&amp;...' style entities are literals."""
    if value is None:
        return False
    return value.startswith(CODE_ATTRIBUTE_CHAR) and not _ENTITY_RX.match(value)
