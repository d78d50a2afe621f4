"""Scriptlet shield: hide <%...%> from the markup parser and put it back afterwards.

Each scriptlet is replaced by an XML-inert placeholder that carries the
scriptlet's id and the same number of newlines, so line numbers in the
shielded text still match the original source.
"""

from __future__ import annotations

import re

PLACEHOLDER_PREFIX = "[![DRYML-ERB"

_SCRIPTLET_RX = re.compile(r"<%(.*?)%>", re.DOTALL)
_PLACEHOLDER_RX = re.compile(r"\[!\[DRYML-ERB(\d+)\s*\]!\]")


def shield(src: str) -> tuple[str, dict[int, str]]:
    """Replace every scriptlet with a placeholder; return (text, id → code)."""
    table: dict[int, str] = {}

    def replace(m: re.Match[str]) -> str:
        code = m.group(1)
        sid = len(table) + 1
        table[sid] = code
        newlines = "\n" * code.count("\n")
        return f"{PLACEHOLDER_PREFIX}{sid}{newlines}]!]"

    return _SCRIPTLET_RX.sub(replace, src), table


def restore(text: str, table: dict[int, str]) -> str:
    """Replace every placeholder with its original scriptlet."""
    return _PLACEHOLDER_RX.sub(lambda m: f"<%{table[int(m.group(1))]}%>", text)


def contains_placeholder(value: str) -> bool:
    return PLACEHOLDER_PREFIX in value
