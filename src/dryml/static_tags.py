"""Static (plain HTML) element names and the metadata exclusion set."""

from __future__ import annotations

# Elements emitted as literal markup unless DRYML-specific attributes force a call
STATIC_TAGS: frozenset[str] = frozenset(
    """
    a abbr acronym address applet area b base basefont bdo big blockquote body br
    button caption center cite code col colgroup dd del dfn dir div dl dt em
    fieldset font form frame frameset h1 h2 h3 h4 h5 h6 head hr html i iframe img
    input ins isindex kbd label legend li link map menu meta noframes noscript
    object ol optgroup option p param pre q s samp script select small span strike
    strong style sub sup table tbody td textarea tfoot th thead title tr tt u ul
    var
    """.split()
)

# Tags whose calls and definitions are never wrapped in source metadata
NO_METADATA_TAGS: frozenset[str] = frozenset(
    ["doctype", "if", "else", "unless", "repeat", "do", "with", "name", "type-name"]
)


def static_tag_set(extra: tuple[str, ...] | list[str] = ()) -> frozenset[str]:
    """The static tag set extended with configured names."""
    if not extra:
        return STATIC_TAGS
    return STATIC_TAGS | frozenset(extra)
