"""part= fragments extracted into separately callable part methods."""

from __future__ import annotations

from dryml import compiler
from dryml.ast import Element
from dryml.codegen import Call, Markup, Nil, Output, PartDefinition, Raw, Segment, Sym, render
from dryml.context import CompileState, Scope
from dryml.names import DRYML_NAME_RX, ruby_name
from dryml.values import attribute_to_ruby


def part_element(
    el: Element,
    content: list[Segment],
    state: CompileState,
    scope: Scope,
    header_newlines: int = 0,
) -> list[Segment]:
    """Replace content with a call_part dispatch.

    header_newlines are the start-tag newlines not already present in
    content; they are emitted in the part method's header.
    """
    compiler.require_attribute(el, state, "part", DRYML_NAME_RX)

    if contains_param(el):
        raise state.error("delegated parts are not supported (part content contains a param)", el)
    return simple_part_element(el, content, state, header_newlines)


def contains_param(el: Element) -> bool:
    return any(e.has("param") for e in el.descendants())


def simple_part_element(
    el: Element, content: list[Segment], state: CompileState, header_newlines: int = 0
) -> list[Segment]:
    """Register the part method and return the call_part dispatch that replaces it."""
    part_name = el.attr("part")
    assert part_name is not None
    dom_id = el.attr("id") if el.has("id") else part_name
    method_name = ruby_name(part_name)
    part_locals = el.attr("part-locals")

    part_src = render(
        [PartDefinition(method_name, (part_locals or "").replace("@", ""), header_newlines, tuple(content))]
    )
    state.builder.add_part(method_name, state.restore_scriptlets(part_src), el.span.start.line)

    args = [attribute_to_ruby(dom_id, state, el), Sym(method_name), Nil()]
    if part_locals:
        args.append(Raw(part_locals))
    return [Output(Call("call_part", tuple(args)), part_src.count("\n"))]


def maybe_make_part_call(el: Element, call: list[Segment], state: CompileState, scope: Scope) -> list[Segment]:
    """Wrap a tag call in a part, when the element has part=."""
    part_name = el.attr("part")
    if part_name is None:
        return call
    part_id = attribute_to_ruby(el.attr("id") if el.has("id") else part_name, state, el)
    return [
        Markup("<span class='part-wrapper' id='"),
        Output(part_id),
        Markup("'>"),
        *part_element(el, call, state, scope),
        Markup("</span>"),
    ]
