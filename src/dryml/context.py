"""State carried through compilation of one document."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

from dryml.ast import Element
from dryml.builder import Builder
from dryml.codegen import Markup, Segment
from dryml.config import CompileOptions
from dryml.errors import DrymlError
from dryml.scriptlets import restore
from dryml.static_tags import NO_METADATA_TAGS


@dataclass
class CompileState:
    """Per-document state. Lives for exactly one compile."""

    template_path: str
    source: str  # shielded source the tree was parsed from
    scriptlets: dict[int, str]
    builder: Builder
    options: CompileOptions = field(default_factory=CompileOptions)
    static_tags: frozenset[str] = frozenset()
    last_element: Element | None = None
    gensym_counter: int = 0

    def error(self, message: str, el: Element | None = None) -> DrymlError:
        """A DrymlError attributed to el, or to the last element seen."""
        el = el or self.last_element
        line = el.span.start.line if el is not None else None
        return DrymlError(message, self.template_path, line)

    def gensym(self, name: str = "__tmp") -> str:
        self.gensym_counter += 1
        return f"{name}_{self.gensym_counter}"

    def restore_scriptlets(self, text: str) -> str:
        return restore(text, self.scriptlets)


@dataclass(frozen=True, slots=True)
class Scope:
    """Per-call context threaded through the recursive walk."""

    # The <def> whose body is being compiled
    def_element: Element | None = None
    # Name of the innermost call whose default content is being compiled
    containing_tag_name: str | None = None
    # True for direct children of the document root
    top_level: bool = False

    def nested(self, **changes: object) -> Scope:
        """A child scope; children are never top level."""
        changes.setdefault("top_level", False)
        return dataclasses.replace(self, **changes)


def wrap_with_metadata(
    content: list[Segment], state: CompileState, kind: str, name: str, *args: object
) -> list[Segment]:
    """Surround content with <!--[DRYML|kind|name|...|path[--> markers when enabled."""
    if not state.options.include_source_metadata or name in NO_METADATA_TAGS:
        return content
    metadata = [kind, name, *(str(a) for a in args), state.template_path]
    return [Markup(f"<!--[DRYML|{'|'.join(metadata)}[-->"), *content, Markup("<!--]DRYML]-->")]


def tag_newlines(el: Element) -> int:
    """Newlines inside the element's start tag."""
    return el.start_tag_source.count("\n")


def call_newlines(el: Element) -> int:
    """Start-tag newlines outside attribute values.

    Compiled attribute values keep their own newlines, so code that emits
    the values pads with only the remainder.
    """
    in_values = sum(a.value.count("\n") for a in el.attributes if a.value is not None)
    return tag_newlines(el) - in_values


def element_newlines(el: Element, state: CompileState) -> int:
    """Newlines across the element's whole source span."""
    return state.source[el.span.start.offset : el.span.end.offset].count("\n")
