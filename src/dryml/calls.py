"""Tag calls and static HTML elements."""

from __future__ import annotations

import re

from dryml import compiler, hashes, parts
from dryml.ast import DEFAULT_ATTRIBUTE_VALUE, Element
from dryml.codegen import (
    Call,
    Expr,
    Hash,
    HashItem,
    Markup,
    NewContext,
    Output,
    Raw,
    Segment,
    Stmt,
    Sym,
)
from dryml.context import CompileState, Scope, call_newlines, wrap_with_metadata
from dryml.control import apply_control_attributes
from dryml.names import (
    DOTTED_DRYML_NAME_RX,
    SPECIAL_ATTRIBUTES,
    is_code_attribute,
    ruby_name,
    unreserve,
)
from dryml.values import attribute_to_ruby

# Attributes that turn a static element into an element(...) call
_STATIC_CALL_ATTRIBUTES = ("part", "merge-attrs", "if", "unless", "repeat")

_QUOTED_VALUE_RX = re.compile(r"""=\s*('.*?'|".*?")""")
_INTERPOLATION_RX = re.compile(r"#\{(.*?)\}")
_INLINE_OUTPUT_RX = re.compile(r"<%=(.*?)%>")
_CDATA_MARKERS_RX = re.compile(r"<!\[CDATA\[|\]\]>")


def call_name(el: Element, state: CompileState) -> str:
    if not DOTTED_DRYML_NAME_RX.match(el.dryml_name):
        raise state.error("invalid tag name", el)
    return unreserve(ruby_name(el.dryml_name))


def polymorphic_call_type(el: Element, state: CompileState) -> Expr | None:
    """The type a for-type call dispatches on, or None for a static call."""
    t = el.attr("for-type")
    if t is None:
        return None
    if t == DEFAULT_ATTRIBUTE_VALUE:
        return Raw("this_type")
    if re.match(r"^[A-Z]", t):
        return Raw(t)
    if re.match(r"^[a-z]", t):
        return Raw(f"Dryml.field_types[:{t}]")
    if is_code_attribute(t):
        return Raw(t[1:])
    raise state.error("invalid for-type attribute", el)


def tag_call(el: Element, state: CompileState, scope: Scope) -> list[Segment]:
    name = call_name(el, state)
    method = ruby_name(name)
    param_name = hashes.get_param_name(el, state, scope)
    attributes = hashes.tag_attributes(el, state)
    newlines = call_newlines(el)
    parameters = hashes.parameter_tags_hash(el, state, scope)
    is_param_restore = el.has("restore")
    call_type = polymorphic_call_type(el, state)

    call: Expr
    if param_name:
        param_sym = attribute_to_ruby(param_name, state, el, symbolize=True)
        to_call: Expr
        if is_param_restore:
            # The tag is available in a local variable holding a proc
            to_call = Raw(hashes.param_restore_local_name(name))
        elif call_type is not None:
            to_call = Call("find_polymorphic_tag", (Sym(method), call_type))
        else:
            to_call = Sym(method)
        call = Call(
            "call_tag_parameter",
            (to_call, attributes, parameters, Raw("all_parameters"), param_sym),
            newlines=newlines,
        )
    elif is_param_restore:
        call = Call(
            "call",
            (attributes, parameters),
            receiver=Raw(hashes.param_restore_local_name(name)),
            newlines=newlines,
        )
    elif call_type is not None:
        call = Call(
            "send",
            (Call("find_polymorphic_tag", (Sym(method), call_type)), attributes, parameters),
            newlines=newlines,
        )
    elif _is_empty(attributes) and _is_empty(parameters) and newlines == 0:
        call = Raw(f"{method}.to_s")
    else:
        call = Call(method, (attributes, parameters), newlines=newlines)

    call = apply_control_attributes(call, el, state)
    segments = parts.maybe_make_part_call(el, [Stmt(Call("_output", (call,)))], state, scope)
    return _wrap_tag_call_with_metadata(el, segments, state)


def _is_empty(expr: Expr) -> bool:
    return isinstance(expr, Hash) and expr.empty


def _wrap_tag_call_with_metadata(el: Element, content: list[Segment], state: CompileState) -> list[Segment]:
    name = el.name
    param = el.attr("param")
    if param == DEFAULT_ATTRIBUTE_VALUE:
        name += " param"
    elif param:
        name += f" param='{param}'"
    return wrap_with_metadata(content, state, "call", name, el.span.start.line)


# ---------------------------------------------------------------------------
# Static (plain HTML) elements
# ---------------------------------------------------------------------------


def static_element_to_erb(el: Element, state: CompileState, scope: Scope) -> list[Segment]:
    if any(el.has(a) for a in _STATIC_CALL_ATTRIBUTES):
        return static_tag_to_method_call(el, state, scope)

    start_tag_src = _CDATA_MARKERS_RX.sub("", el.start_tag_source)
    # Allow #{...} as an alternative to <%= ... %> in attribute values
    start_tag_src = _QUOTED_VALUE_RX.sub(
        lambda m: _INTERPOLATION_RX.sub(r"<%= \1 %>", m.group(0)), start_tag_src
    )

    if not el.has_end_tag:
        return [Markup(start_tag_src)]
    return [
        Markup(start_tag_src),
        *compiler.compile_children(el, state, scope.nested()),
        Markup(f"</{el.name}>"),
    ]


def static_tag_to_method_call(el: Element, state: CompileState, scope: Scope) -> list[Segment]:
    """Build the element programmatically so control, part and merge attributes apply."""
    part = el.attr("part")
    items: list[HashItem] = []
    for name, value in el.attr_items():
        if name in SPECIAL_ATTRIBUTES:
            continue
        val = state.restore_scriptlets(value).replace('"', '\\"')
        val = _INLINE_OUTPUT_RX.sub(r"#{\1}", val)
        items.append(HashItem(Raw(f"'{name}'"), Raw(f'"{val}"')))

    # If there's a part but no id, the id defaults to the part name
    if part is not None and not el.has("id"):
        items.append(HashItem(Sym("id"), Raw(f"'{part}'")))

    attrs: Expr = Hash(tuple(items))
    merge_attrs = el.attr("merge-attrs")
    if merge_attrs is not None:
        if not is_code_attribute(merge_attrs):
            raise state.error("merge-attrs was given a string", el)
        attrs = Call(
            "merge_attrs",
            (
                attrs,
                Raw(f"((__merge_attrs__ = ({merge_attrs[1:]})) == true ? attributes : __merge_attrs__)"),
            ),
        )

    if not el.children:
        if part is not None:
            raise state.error("part attribute on empty static tag", el)
        element = Call("element", (Sym(el.name), attrs), newlines=call_newlines(el))
        return [Output(apply_control_attributes(element, el, state))]

    inner = scope.nested()
    newlines = call_newlines(el)
    body = compiler.compile_children(el, state, inner)
    if part is not None:
        # the part method's header carries the start-tag newlines instead
        body = parts.part_element(el, body, state, inner, header_newlines=newlines)
        newlines = 0

    element = Call("element", (Sym(el.name), attrs, NewContext(tuple(body))), newlines=newlines)
    return [Stmt(Call("_output", (apply_control_attributes(element, el, state),)))]
