"""if / unless / repeat wrapping."""

from __future__ import annotations

from dryml.ast import DEFAULT_ATTRIBUTE_VALUE, Element
from dryml.codegen import Conditional, Expr, Raw, Repeat
from dryml.context import CompileState
from dryml.names import is_code_attribute

CONTROL_ATTRIBUTES = ("if", "unless", "repeat")


def control_expression(value: str) -> Raw:
    """The value a control attribute tests: this, code, or a path under this."""
    if value == DEFAULT_ATTRIBUTE_VALUE:
        return Raw("this")
    if is_code_attribute(value):
        return Raw(value[1:])
    return Raw(f"this.{value}")


def apply_control_attributes(expression: Expr, el: Element, state: CompileState) -> Expr:
    present = [(name, el.attr(name)) for name in CONTROL_ATTRIBUTES if el.has(name)]

    if len(present) > 1:
        raise state.error("You can't have multiple control attributes on the same element", el)
    if not present:
        return expression

    kind, value = present[0]
    assert value is not None
    control = control_expression(value)

    if kind == "repeat":
        return Repeat(control, expression)
    return Conditional(control, expression, state.gensym(), negate=(kind == "if"))
