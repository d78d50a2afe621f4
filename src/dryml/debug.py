"""--debug node-tree dump and --instructions listing."""

from __future__ import annotations

import sys
from typing import TextIO

from dryml.ast import CData, Comment, Document, Element, Node, Text
from dryml.builder import Instruction, InstructionKind
from dryml.compiler import classify
from dryml.static_tags import STATIC_TAGS

# Instructions whose src is generated ERB rather than a reference
_SOURCE_KINDS = (InstructionKind.DEF, InstructionKind.RENDER_PAGE, InstructionKind.PART)


def dump_tree(doc: Document, *, static_tags: frozenset[str] = STATIC_TAGS, file: TextIO = sys.stderr) -> None:
    """Print the parsed node tree to *file*, with each element's kind."""
    file.write("Document\n")
    for child in doc.children:
        _dump_node(child, 1, static_tags, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_node(node: Node, depth: int, static_tags: frozenset[str], f: TextIO) -> None:
    if isinstance(node, Text):
        if node.value.strip():
            f.write(f"{_indent(depth)}Text({node.value!r})\n")
    elif isinstance(node, Comment):
        f.write(f"{_indent(depth)}Comment({node.value!r})\n")
    elif isinstance(node, CData):
        f.write(f"{_indent(depth)}CData({node.value!r})\n")
    elif isinstance(node, Element):
        _dump_element(node, depth, static_tags, f)


def _dump_element(el: Element, depth: int, static_tags: frozenset[str], f: TextIO) -> None:
    if el.parameter_tag:
        kind = "parameter"
    else:
        kind = classify(el, static_tags).name.lower()
    f.write(f"{_indent(depth)}Element <{el.name}> {kind} line {el.span.start.line}\n")
    for attr in el.attributes:
        value = "(no value)" if attr.value is None else repr(attr.value)
        f.write(f"{_indent(depth + 1)}@{attr.name}={value}\n")
    for child in el.children:
        _dump_node(child, depth + 1, static_tags, f)


def dump_instructions(instructions: list[Instruction], *, file: TextIO = sys.stdout) -> None:
    """Print build instructions in order, sources indented beneath their header."""
    for instruction in instructions:
        payload = dict(instruction.payload)
        src = payload.pop("src", None) if instruction.kind in _SOURCE_KINDS else None
        details = " ".join(f"{k}={v!r}" for k, v in payload.items())
        file.write(f"[{instruction.kind.value}] {details}".rstrip() + "\n")
        if src is not None:
            for line in src.split("\n"):
                file.write(f"    {line}\n")
