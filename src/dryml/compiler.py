"""Tree walker: classify each element once and dispatch to its compiler."""

from __future__ import annotations

import re
from enum import Enum, auto

from dryml import calls, definitions, hashes
from dryml.ast import CData, Comment, Document, Element, Node, Text
from dryml.builder import InstructionKind
from dryml.codegen import Markup, Output, Raw, Segment, Stmt, render_expr
from dryml.context import CompileState, Scope, call_newlines, element_newlines, tag_newlines
from dryml.names import DOTTED_DRYML_NAME_RX, DRYML_NAME_RX, ruby_name
from dryml.values import attribute_to_ruby

_INCLUDE_OPTIONS = ("src", "module", "plugin", "bundle", "as")


class NodeKind(Enum):
    DEFINITION = auto()
    ALIAS_DEFINITION = auto()
    INCLUDE = auto()
    THEME_SET = auto()
    VARIABLE_SET = auto()
    SCOPED_VARIABLE_SET = auto()
    PARAMETER_CONTENT = auto()
    PLAIN_CALL = auto()
    POLYMORPHIC_CALL = auto()
    PARAMETER_RESTORING_CALL = auto()
    LITERAL_MARKUP = auto()


_RESERVED_ELEMENTS = {
    "include": NodeKind.INCLUDE,
    "set-theme": NodeKind.THEME_SET,
    "set": NodeKind.VARIABLE_SET,
    "set-scoped": NodeKind.SCOPED_VARIABLE_SET,
    "param-content": NodeKind.PARAMETER_CONTENT,
}


def classify(el: Element, static_tags: frozenset[str]) -> NodeKind:
    """The kind of an element, from its name and attributes alone."""
    name = el.dryml_name
    if name == "def":
        return NodeKind.ALIAS_DEFINITION if el.has("alias-of") else NodeKind.DEFINITION
    kind = _RESERVED_ELEMENTS.get(name)
    if kind is not None:
        return kind
    if name in static_tags and not el.has("param") and not el.has("restore"):
        return NodeKind.LITERAL_MARKUP
    if el.has("restore"):
        return NodeKind.PARAMETER_RESTORING_CALL
    if el.has("for-type"):
        return NodeKind.POLYMORPHIC_CALL
    return NodeKind.PLAIN_CALL


# ---------------------------------------------------------------------------
# Walking
# ---------------------------------------------------------------------------


def compile_document(doc: Document, state: CompileState) -> list[Segment]:
    scope = Scope(top_level=True)
    segments: list[Segment] = []
    for node in doc.children:
        segments.extend(compile_node(node, state, scope))
    return segments


def compile_children(el: Element, state: CompileState, scope: Scope) -> list[Segment]:
    inner = scope.nested()
    segments: list[Segment] = []
    for node in el.children:
        segments.extend(compile_node(node, state, inner))
    return segments


def compile_node(node: Node, state: CompileState, scope: Scope) -> list[Segment]:
    if isinstance(node, CData):
        return [Markup(f"<![CDATA[{node.value}]]>")]
    if isinstance(node, Comment):
        return [Markup(f"<!--{node.value}-->")]
    if isinstance(node, Text):
        return [Markup(node.value)]
    if isinstance(node, Element):
        return compile_element(node, state, scope)
    raise TypeError(f"not a node: {type(node).__name__}")


def compile_element(el: Element, state: CompileState, scope: Scope) -> list[Segment]:
    if el.name.startswith(":"):
        raise state.error(f"old-style parameter tag (<{el.name}>)", el)

    state.last_element = el
    kind = classify(el, state.static_tags)

    if kind == NodeKind.DEFINITION or kind == NodeKind.ALIAS_DEFINITION:
        return definitions.def_element(el, state, scope)
    elif kind == NodeKind.INCLUDE:
        return include_element(el, state, scope)
    elif kind == NodeKind.THEME_SET:
        return set_theme_element(el, state)
    elif kind == NodeKind.VARIABLE_SET:
        return set_element(el, state)
    elif kind == NodeKind.SCOPED_VARIABLE_SET:
        return set_scoped_element(el, state, scope)
    elif kind == NodeKind.PARAMETER_CONTENT:
        return param_content_element(el, state, scope)
    elif kind in (NodeKind.PLAIN_CALL, NodeKind.POLYMORPHIC_CALL, NodeKind.PARAMETER_RESTORING_CALL):
        return calls.tag_call(el, state, scope)
    elif kind == NodeKind.LITERAL_MARKUP:
        return calls.static_element_to_erb(el, state, scope)
    else:
        raise AssertionError(f"unhandled node kind: {kind}")


# ---------------------------------------------------------------------------
# Checks shared by the element compilers
# ---------------------------------------------------------------------------


def require_toplevel(el: Element, state: CompileState, scope: Scope, message: str = "can only be at the top level") -> None:
    if not scope.top_level:
        raise state.error(f"<{el.dryml_name}> {message}", el)


def require_attribute(
    el: Element,
    state: CompileState,
    name: str,
    rx: re.Pattern[str] | None = None,
    optional: bool = False,
) -> None:
    val = el.attr(name)
    if val is not None:
        if rx is None or not rx.match(val):
            raise state.error(f'invalid {name}="{val}" attribute on <{el.dryml_name}>', el)
    elif not optional:
        raise state.error(f"missing {name} attribute on <{el.dryml_name}>", el)


# ---------------------------------------------------------------------------
# Reserved elements
# ---------------------------------------------------------------------------


def include_element(el: Element, state: CompileState, scope: Scope) -> list[Segment]:
    require_toplevel(el, state, scope)
    require_attribute(el, state, "as", DRYML_NAME_RX, optional=True)
    options = {name: el.attr(name) for name in _INCLUDE_OPTIONS if el.has(name)}
    state.builder.add_build_instruction(InstructionKind.INCLUDE, **options)
    # No presence in the page source, only its newlines
    return [Stmt(None, element_newlines(el, state))]


def set_theme_element(el: Element, state: CompileState) -> list[Segment]:
    require_attribute(el, state, "name", DRYML_NAME_RX)
    state.builder.add_build_instruction(InstructionKind.SET_THEME, name=el.attr("name"))
    return [Stmt(None, element_newlines(el, state))]


def set_element(el: Element, state: CompileState) -> list[Segment]:
    assigns = []
    for name, value in el.attr_items():
        if not DOTTED_DRYML_NAME_RX.match(name):
            raise state.error("invalid name in set", el)
        assigns.append(f"{ruby_name(name)} = {render_expr(attribute_to_ruby(value, state, el))}; ")
    return [Stmt(Raw("".join(assigns)), call_newlines(el))]


def set_scoped_element(el: Element, state: CompileState, scope: Scope) -> list[Segment]:
    assigns = []
    for name, value in el.attr_items():
        if not DRYML_NAME_RX.match(name):
            raise state.error("invalid name in set-scoped", el)
        assigns.append(f"scope[:{ruby_name(name)}] = {render_expr(attribute_to_ruby(value, state, el))}; ")
    return [
        Stmt(Raw(f"scope.new_scope {{ {''.join(assigns)}"), call_newlines(el)),
        *compile_children(el, state, scope),
        Stmt(Raw("}")),
    ]


def param_content_element(el: Element, state: CompileState, scope: Scope) -> list[Segment]:
    """Output the default content of the enclosing call, or of the call named by for=."""
    require_attribute(el, state, "for", DRYML_NAME_RX, optional=True)
    name = el.attr("for") if el.has("for") else scope.containing_tag_name
    if name is None:
        raise state.error("param-content must be inside a tag call or have a for attribute", el)
    local_name = hashes.param_content_local_name(name)
    return [Output(Raw(f"{local_name} && {local_name}.call"), tag_newlines(el))]
