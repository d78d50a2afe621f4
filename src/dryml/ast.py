"""Node types for parsed DRYML documents."""

from __future__ import annotations

from dataclasses import dataclass

from dryml.tokens import Span

# Value a valueless attribute (<x if>) reads as
DEFAULT_ATTRIBUTE_VALUE = "&true"


@dataclass(frozen=True, slots=True)
class Text:
    """Character data, kept verbatim (entities are not decoded)."""

    value: str
    span: Span


@dataclass(frozen=True, slots=True)
class Comment:
    """<!-- ... -->: value is the inner text."""

    value: str
    span: Span


@dataclass(frozen=True, slots=True)
class CData:
    """<![CDATA[ ... ]]>: value is the inner text."""

    value: str
    span: Span


@dataclass(frozen=True, slots=True)
class Attribute:
    """name=value; value is None for a valueless attribute."""

    name: str
    value: str | None
    span: Span

    @property
    def has_rhs(self) -> bool:
        return self.value is not None


@dataclass(frozen=True, slots=True)
class Element:
    """A markup element.

    ``name`` is the raw qualified name as written: ``view``, ``view:name``
    (a call with a field qualifier) or ``body:`` (a parameter tag).
    """

    name: str
    attributes: tuple[Attribute, ...]
    children: tuple[Node, ...]
    span: Span
    start_tag_source: str
    has_end_tag: bool

    @property
    def dryml_name(self) -> str:
        return self.name.split(":", 1)[0]

    @property
    def field(self) -> str | None:
        if ":" not in self.name:
            return None
        return self.name.split(":", 1)[1] or None

    @property
    def parameter_tag(self) -> bool:
        return self.name.endswith(":")

    def has(self, name: str) -> bool:
        return any(a.name == name for a in self.attributes)

    def attribute(self, name: str) -> Attribute | None:
        for a in self.attributes:
            if a.name == name:
                return a
        return None

    def attr(self, name: str) -> str | None:
        """Attribute value, with valueless attributes reading as ``&true``."""
        a = self.attribute(name)
        if a is None:
            return None
        return DEFAULT_ATTRIBUTE_VALUE if a.value is None else a.value

    def attr_items(self) -> list[tuple[str, str]]:
        return [
            (a.name, DEFAULT_ATTRIBUTE_VALUE if a.value is None else a.value)
            for a in self.attributes
        ]

    def descendants(self) -> list[Element]:
        """All descendant elements in document order."""
        result: list[Element] = []
        for child in self.children:
            if isinstance(child, Element):
                result.append(child)
                result.extend(child.descendants())
        return result


Node = Text | Comment | CData | Element


@dataclass(frozen=True, slots=True)
class Document:
    """Root document node."""

    children: tuple[Node, ...]
    span: Span
