"""Attribute values → Ruby expressions."""

from __future__ import annotations

from dryml.ast import Element
from dryml.codegen import Code, Expr, Nil, Str, Sym, ToSym
from dryml.context import CompileState
from dryml.names import SYMBOL_RX, is_code_attribute
from dryml.scriptlets import contains_placeholder


def attribute_to_ruby(
    value: str | None,
    state: CompileState,
    el: Element | None = None,
    *,
    symbolize: bool = False,
) -> Expr:
    """Compile an attribute value.

    ``None`` is nil, ``&expr`` is code and anything else a string literal.
    With ``symbolize`` the result is a symbol: a literal identifier becomes
    ``:name``, and any other value gets ``.to_sym``.
    """
    if value is not None and contains_placeholder(value):
        raise state.error("erb scriptlet not allowed in this attribute (use #{ ... } instead)", el)

    if symbolize and value is not None and SYMBOL_RX.match(value):
        return Sym(value)

    res: Expr
    if value is None:
        res = Nil()
    elif is_code_attribute(value):
        res = Code(value[1:])
    else:
        if '"' in value and "'" in value:
            raise state.error("invalid quote(s) in attribute value", el)
        res = Str(value)

    return ToSym(res) if symbolize else res
