"""The two hashes every tag call passes: attributes and parameters."""

from __future__ import annotations

from enum import Enum, auto

from dryml import compiler
from dryml.ast import DEFAULT_ATTRIBUTE_VALUE, CData, Comment, Element, Text
from dryml.codegen import (
    Array,
    Call,
    Expr,
    Hash,
    HashItem,
    MergeAttrs,
    MergeParams,
    NewContext,
    Proc,
    Raw,
    Str,
    Sym,
    Whitespace,
    render_expr,
)
from dryml.context import CompileState, Scope, call_newlines, wrap_with_metadata
from dryml.names import DRYML_NAME_RX, SPECIAL_ATTRIBUTES, is_code_attribute, ruby_name
from dryml.values import attribute_to_ruby


class _CallType(Enum):
    DEFAULT_PARAM_ONLY = auto()
    NAMED_PARAMS = auto()


def param_content_local_name(name: str) -> str:
    return f"_{ruby_name(name)}__default_content"


def param_restore_local_name(name: str) -> str:
    return f"_{ruby_name(name)}_restore"


def merge_attribute(el: Element, state: CompileState) -> str | None:
    merge = el.attr("merge")
    if merge is not None and merge != DEFAULT_ATTRIBUTE_VALUE:
        raise state.error("merge cannot have a RHS", el)
    return merge


def get_param_name(el: Element, state: CompileState, scope: Scope) -> str | None:
    """The parameter name an element exposes via param=, or None."""
    param_name = el.attr("param")
    if param_name is None:
        return None
    if scope.def_element is None:
        raise state.error("param is not allowed outside of tag definitions", el)
    return ruby_name(el.dryml_name if param_name == DEFAULT_ATTRIBUTE_VALUE else param_name)


# ---------------------------------------------------------------------------
# Attributes
# ---------------------------------------------------------------------------


def tag_attributes(el: Element, state: CompileState) -> Expr:
    items: list[HashItem | Whitespace] = []
    for name, value in el.attr_items():
        if not DRYML_NAME_RX.match(name):
            raise state.error(f"invalid attribute name '{name}'", el)
        if name not in SPECIAL_ATTRIBUTES:
            items.append(HashItem(Sym(ruby_name(name)), attribute_to_ruby(value, state, el)))

    # <view:name> calls view with field="name"
    if el.field is not None:
        items.append(HashItem(Sym("field"), Str(el.field)))

    attributes = Hash(tuple(items))

    merge_attrs = el.attr("merge-attrs") if el.has("merge-attrs") else merge_attribute(el, state)
    if merge_attrs is None:
        return attributes
    if merge_attrs == DEFAULT_ATTRIBUTE_VALUE:
        extra = Raw("attributes")
    elif is_code_attribute(merge_attrs):
        extra = Raw(merge_attrs[1:])
    else:
        raise state.error("invalid merge-attrs", el)
    return MergeAttrs(attributes, extra)


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


def parameter_tags_hash(
    el: Element,
    state: CompileState,
    scope: Scope,
    containing_tag_name: str | None = None,
) -> Expr:
    """Named parameter procs, or a single :default proc over plain content."""
    call_type: _CallType | None = None
    has_content = False
    metadata_name = containing_tag_name or el.name
    items: list[HashItem | Whitespace] = []

    for node in el.children:
        if isinstance(node, (Text, CData)):
            text = node.value
            if not text.strip():
                # keep whitespace in the hash literal so line numbers match
                items.append(Whitespace(text))
                continue
            has_content = True
            if call_type is None:
                call_type = _CallType.DEFAULT_PARAM_ONLY
            elif call_type == _CallType.NAMED_PARAMS:
                raise state.error("mixed content and parameter tags", el)

        elif isinstance(node, Comment):
            newlines = node.value.count("\n")
            if newlines:
                items.append(Whitespace("\n" * newlines))

        elif isinstance(node, Element):
            is_parameter_tag = node.parameter_tag

            if call_type is None:
                call_type = _CallType.NAMED_PARAMS if is_parameter_tag else _CallType.DEFAULT_PARAM_ONLY
            elif call_type == _CallType.NAMED_PARAMS and not is_parameter_tag:
                raise state.error("mixed parameter tags and non-parameter tags", el)
            elif call_type == _CallType.DEFAULT_PARAM_ONLY and is_parameter_tag:
                if has_content:
                    raise state.error("mixed content and parameter tags", el)
                raise state.error("mixed parameter tags and non-parameter tags", el)

            if is_parameter_tag:
                items.append(_parameter_item(node, state, scope, metadata_name))

    if call_type == _CallType.DEFAULT_PARAM_ONLY:
        inner = scope.nested(containing_tag_name=el.dryml_name)
        items = [HashItem(Sym("default"), default_param_proc(el, state, inner, containing_tag_name))]

    parameters = Hash(tuple(items))

    merge_params = el.attr("merge-params") if el.has("merge-params") else merge_attribute(el, state)
    if merge_params is None:
        return parameters
    if merge_params == DEFAULT_ATTRIBUTE_VALUE:
        extra = Raw("parameters")
    elif is_code_attribute(merge_params):
        extra = Raw(merge_params[1:])
    else:
        raise state.error("invalid merge-params", el)
    return MergeParams(parameters, extra)


def _parameter_item(el: Element, state: CompileState, scope: Scope, metadata_name: str) -> HashItem:
    key = Sym(ruby_name(el.dryml_name))
    proc = param_proc(el, state, scope, metadata_name)
    param_name = get_param_name(el, state, scope)
    if param_name is None:
        return HashItem(key, proc)
    # A parameter that is itself a param of the enclosing def merges with
    # whatever the caller passed for that name.
    received = Raw(f"all_parameters[{render_expr(attribute_to_ruby(param_name, state, el, symbolize=True))}]")
    return HashItem(key, Call("merge_tag_parameter", (proc, received)))


def default_param_proc(
    el: Element,
    state: CompileState,
    scope: Scope,
    containing_param_name: str | None = None,
) -> Proc:
    content = compiler.compile_children(el, state, scope)
    if containing_param_name:
        content = wrap_with_metadata(content, state, "param", containing_param_name, el.span.start.line)
    # el's start-tag newlines are already carried by its call or param proc
    return Proc((param_content_local_name(el.dryml_name),), NewContext(tuple(content)))


def param_proc(el: Element, state: CompileState, scope: Scope, metadata_name_prefix: str) -> Proc:
    param_name = el.dryml_name
    metadata_name = f"{metadata_name_prefix}><{el.name}"
    nl = call_newlines(el)

    replace = el.attribute("replace")
    if replace is not None:
        if replace.has_rhs:
            raise state.error("replace attribute must not have a value", el)
        if len(el.attributes) > 1:
            raise state.error("replace parameters must not have attributes", el)
        content = compiler.compile_children(el, state, scope)
        content = wrap_with_metadata(content, state, "replace", metadata_name, el.span.start.line)
        return Proc((param_restore_local_name(param_name),), NewContext(tuple(content)), nl)

    attributes = Hash(
        tuple(
            HashItem(Sym(ruby_name(name)), attribute_to_ruby(value, state, el))
            for name, value in el.attr_items()
            if name not in SPECIAL_ATTRIBUTES
        )
    )
    nested_parameters = parameter_tags_hash(el, state, scope, metadata_name)
    return Proc((), Array((attributes, nested_parameters)), nl)
