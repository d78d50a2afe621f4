"""<def>: compile a tag definition into a tag method build instruction."""

from __future__ import annotations

import logging
import re

from dryml import compiler, hashes
from dryml.ast import Element
from dryml.builder import InstructionKind
from dryml.codegen import Array, Call, Definition, Segment, Stmt, Sym, render
from dryml.context import CompileState, Scope, element_newlines, tag_newlines, wrap_with_metadata
from dryml.names import (
    DRYML_NAME_LIST_RX,
    DRYML_NAME_RX,
    RUBY_NAME_RX,
    SPECIAL_ATTRIBUTES,
    is_code_attribute,
    ruby_name,
    underscore,
    unreserve,
)

log = logging.getLogger(__name__)

# Names bound implicitly inside every tag body
_IMPLICIT_LOCALS = ("with", "field", "this")


def def_element(el: Element, state: CompileState, scope: Scope) -> list[Segment]:
    compiler.require_toplevel(el, state, scope)
    compiler.require_attribute(el, state, "tag", DRYML_NAME_RX)
    compiler.require_attribute(el, state, "attrs", DRYML_NAME_LIST_RX, optional=True)
    compiler.require_attribute(el, state, "alias-of", DRYML_NAME_RX, optional=True)
    compiler.require_attribute(el, state, "extend-with", DRYML_NAME_RX, optional=True)

    tag = el.attr("tag")
    assert tag is not None
    name = unreserve(tag)
    for_type = el.attr("for")
    if for_type is not None:
        name += f"__for_{_type_suffix(for_type, el, state)}"

    alias_of = el.attr("alias-of")
    extend_with = el.attr("extend-with")

    if alias_of and extend_with:
        raise state.error("def cannot have both alias-of and extend-with", el)
    if alias_of and el.children:
        raise state.error("def with alias-of must be empty", el)

    if alias_of:
        state.builder.add_build_instruction(
            InstructionKind.ALIAS_METHOD,
            new=ruby_name(name),
            old=ruby_name(unreserve(alias_of)),
        )
        return [Stmt(None, element_newlines(el, state))]

    inner = Scope(def_element=el)
    segments: list[Segment] = []
    if extend_with:
        segments.append(
            Stmt(Call("delayed_alias_method_chain", (Sym(ruby_name(name)), Sym(ruby_name(extend_with)))))
        )
        name = f"{name}-with-{extend_with}"

    segments.append(tag_method(name, el, state, inner))
    segments.append(
        Stmt(
            Call(
                "_register_tag_attrs",
                (Sym(ruby_name(name)), Array(tuple(Sym(a) for a in declared_attributes(el, state)))),
            )
        )
    )

    src = state.restore_scriptlets(render(segments))
    if el.has("debug-source"):
        log.debug("DRYML source for <%s>:\n%s", tag, src)

    state.builder.add_build_instruction(InstructionKind.DEF, src=src, line_num=el.span.start.line)
    # keep line numbers matching up
    return [Stmt(None, src.count("\n"))]


def _type_suffix(for_type: str, el: Element, state: CompileState) -> str:
    """Mangled suffix for a type-specialised definition (for="...")."""
    if re.match(r"^[a-z]", for_type):
        # symbolic field type name
        type_name = state.options.field_types.get(for_type)
        if type_name is None:
            raise state.error(f"unknown field type '{for_type}' in def for=", el)
    elif re.match(r"^_.*_$", for_type):
        type_name = state.options.bundle_classes.get(for_type, for_type)
    else:
        type_name = for_type
    return underscore(type_name).replace("/", "__")


def declared_attributes(el: Element, state: CompileState) -> list[str]:
    attrspec = el.attr("attrs")
    names = [underscore(n) for n in re.split(r"\s*,\s*", attrspec.strip())] if attrspec else []
    forbidden = set(_IMPLICIT_LOCALS) | {underscore(a) for a in SPECIAL_ATTRIBUTES}
    invalids = [n for n in names if n in forbidden]
    if invalids:
        raise state.error(f"invalid attrs in def: {', '.join(invalids)}", el)
    return names


def param_names_in_definition(el: Element, state: CompileState, scope: Scope) -> list[str]:
    """Names of every param= inside the definition, except computed ones."""
    names: list[str] = []
    for e in el.descendants():
        if not e.has("param"):
            continue
        name = hashes.get_param_name(e, state, scope)
        assert name is not None
        if not (is_code_attribute(name) or RUBY_NAME_RX.match(name) or "#{" in name):
            raise state.error(f"invalid param name: {name!r}", e)
        if not is_code_attribute(name):
            names.append(name)
    return names


def tag_method(name: str, el: Element, state: CompileState, scope: Scope) -> Definition:
    attrs = declared_attributes(el, state)
    body = compiler.compile_children(el, state, scope)
    return Definition(
        name=ruby_name(name),
        param_names=tuple(param_names_in_definition(el, state, scope)),
        attr_names=tuple(attrs),
        newlines=tag_newlines(el),
        body=tuple(_wrap_body_with_metadata(body, el, state)),
    )


def _wrap_body_with_metadata(content: list[Segment], el: Element, state: CompileState) -> list[Segment]:
    name = el.attr("tag") or ""
    extend = el.attr("extend-with")
    for_type = el.attr("for")
    if extend:
        name = f"{name}-with-{extend}"
    if for_type:
        name += f" for {for_type}"
    return wrap_with_metadata(content, state, "def", name, el.span.start.line)
