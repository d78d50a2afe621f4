"""Target-source IR: ERB segments and the Ruby expressions embedded in them.

The compilers build these nodes; ``render`` turns them into text in one
pass. Nodes built from an element carry that element's start-tag newline
count, and the renderer emits exactly that many newlines for each, so the
generated source keeps the line numbering of the markup.
"""

from __future__ import annotations

from dataclasses import dataclass

from dryml.names import SYMBOL_RX, unreserve

# Ruby namespace of the render-time helpers
RUNTIME_MODULE = "Dryml"


# ---------------------------------------------------------------------------
# Ruby expressions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Nil:
    pass


@dataclass(frozen=True, slots=True)
class Str:
    """String literal. Double-quoted (so #{...} interpolates) unless it contains '"'."""

    value: str


@dataclass(frozen=True, slots=True)
class Sym:
    name: str


@dataclass(frozen=True, slots=True)
class Code:
    """Author-supplied Ruby, parenthesized."""

    src: str


@dataclass(frozen=True, slots=True)
class Raw:
    """Ruby source emitted verbatim."""

    src: str


@dataclass(frozen=True, slots=True)
class ToSym:
    expr: Expr


@dataclass(frozen=True, slots=True)
class Array:
    items: tuple[Expr, ...]


@dataclass(frozen=True, slots=True)
class HashItem:
    key: Expr
    value: Expr


@dataclass(frozen=True, slots=True)
class Whitespace:
    """Source whitespace kept inside a hash literal to preserve line numbers."""

    text: str


@dataclass(frozen=True, slots=True)
class Hash:
    items: tuple[HashItem | Whitespace, ...] = ()

    @property
    def empty(self) -> bool:
        return not self.items


@dataclass(frozen=True, slots=True)
class MergeAttrs:
    """merge_attrs(base, (extra) || {}): extra wins ties, classes concatenate."""

    base: Expr
    extra: Expr


@dataclass(frozen=True, slots=True)
class MergeParams:
    """base.merge((extra) || {}): extra wins ties."""

    base: Expr
    extra: Expr


@dataclass(frozen=True, slots=True)
class Call:
    name: str
    args: tuple[Expr, ...] = ()
    receiver: Expr | None = None
    newlines: int = 0


@dataclass(frozen=True, slots=True)
class Proc:
    params: tuple[str, ...]
    body: Expr
    newlines: int = 0


@dataclass(frozen=True, slots=True)
class NewContext:
    """Template content evaluated in a fresh output context."""

    body: tuple[Segment, ...]


@dataclass(frozen=True, slots=True)
class Conditional:
    """if/unless wrapper; always records the outcome in Dryml.last_if."""

    control: Expr
    body: Expr
    tmp: str
    negate: bool


@dataclass(frozen=True, slots=True)
class Repeat:
    control: Expr
    body: Expr


Expr = (
    Nil
    | Str
    | Sym
    | Code
    | Raw
    | ToSym
    | Array
    | Hash
    | MergeAttrs
    | MergeParams
    | Call
    | Proc
    | NewContext
    | Conditional
    | Repeat
)


# ---------------------------------------------------------------------------
# ERB segments
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Markup:
    text: str


@dataclass(frozen=True, slots=True)
class Stmt:
    """<% code %>"""

    code: Expr | None = None
    newlines: int = 0


@dataclass(frozen=True, slots=True)
class Output:
    """<%= code %>"""

    code: Expr
    newlines: int = 0


@dataclass(frozen=True, slots=True)
class Definition:
    """A tag method. attr_names are the declared attrs; locals bound to them are unreserved."""

    name: str
    param_names: tuple[str, ...]
    attr_names: tuple[str, ...]
    newlines: int
    body: tuple[Segment, ...]


@dataclass(frozen=True, slots=True)
class PartDefinition:
    name: str
    locals: str
    newlines: int
    body: tuple[Segment, ...]


Segment = Markup | Stmt | Output | Definition | PartDefinition


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------


def render(segments: tuple[Segment, ...] | list[Segment]) -> str:
    """Render ERB segments to source text."""
    return "".join(_render_segment(s) for s in segments)


def render_expr(expr: Expr) -> str:
    """Render a single Ruby expression."""
    return _render_expr(expr)


def _nl(count: int) -> str:
    return "\n" * count


def _render_segment(seg: Segment) -> str:
    if isinstance(seg, Markup):
        return seg.text
    if isinstance(seg, Stmt):
        code = _render_expr(seg.code) if seg.code is not None else ""
        return f"<% {code}{_nl(seg.newlines)} %>"
    if isinstance(seg, Output):
        return f"<%= {_render_expr(seg.code)}{_nl(seg.newlines)} %>"
    if isinstance(seg, Definition):
        return _render_definition(seg)
    if isinstance(seg, PartDefinition):
        return (
            f"<% def {seg.name}_part({seg.locals}) {_nl(seg.newlines)}; new_context do %>"
            f"{render(seg.body)}"
            "<% end; end %>"
        )
    raise TypeError(f"not a segment: {type(seg).__name__}")


def _render_definition(d: Definition) -> str:
    params = _render_expr(Array(tuple(Sym(n) for n in d.param_names)))
    attrs = _render_expr(Array(tuple(Sym(n) for n in d.attr_names)))
    # The trailing comma after `attributes` is Ruby multiple assignment
    setup_locals = "".join(f"{unreserve(n)}, " for n in d.attr_names) + "attributes, = " + (
        f"_tag_locals(all_attributes, {attrs})"
    )
    return (
        f"<% def {d.name}(all_attributes={{}}, all_parameters={{}}); "
        f"parameters = {RUNTIME_MODULE}::TagParameters.new(all_parameters, {params}); "
        f"all_parameters = {RUNTIME_MODULE}::TagParameters.new(all_parameters); "
        f"_tag_context(all_attributes) do {setup_locals} "
        f"{_nl(d.newlines)}%>"
        f"{render(d.body)}"
        "<% _erbout; end; end %>"
    )


def _render_expr(expr: Expr) -> str:
    if isinstance(expr, Nil):
        return "nil"
    if isinstance(expr, Str):
        if '"' not in expr.value:
            return f'"{expr.value}"'
        return f"'{expr.value}'"
    if isinstance(expr, Sym):
        if SYMBOL_RX.match(expr.name):
            return f":{expr.name}"
        return f':"{expr.name}"'
    if isinstance(expr, Code):
        return f"({expr.src})"
    if isinstance(expr, Raw):
        return expr.src
    if isinstance(expr, ToSym):
        return f"{_render_expr(expr.expr)}.to_sym"
    if isinstance(expr, Array):
        return "[" + ", ".join(_render_expr(i) for i in expr.items) + "]"
    if isinstance(expr, Hash):
        return _render_hash(expr)
    if isinstance(expr, MergeAttrs):
        return f"merge_attrs({_render_expr(expr.base)},({_render_expr(expr.extra)}) || {{}})"
    if isinstance(expr, MergeParams):
        return f"{_render_expr(expr.base)}.merge(({_render_expr(expr.extra)}) || {{}})"
    if isinstance(expr, Call):
        return _render_call(expr)
    if isinstance(expr, Proc):
        params = f"|{', '.join(expr.params)}| " if expr.params else ""
        return f"proc {{ {params}{_render_expr(expr.body)} {_nl(expr.newlines)}}}"
    if isinstance(expr, NewContext):
        return f"new_context {{ %>{render(expr.body)}<% }}"
    if isinstance(expr, Conditional):
        test = f"({_render_expr(expr.control)}).blank?"
        if expr.negate:
            test = "!" + test
        return (
            f"(if {test}; ({expr.tmp} = {_render_expr(expr.body)}; "
            f"{RUNTIME_MODULE}.last_if = true; {expr.tmp}) "
            f"else ({RUNTIME_MODULE}.last_if = false; ''); end)"
        )
    if isinstance(expr, Repeat):
        return f"repeat_attribute({_render_expr(expr.control)}) {{ {_render_expr(expr.body)} }}"
    raise TypeError(f"not an expression: {type(expr).__name__}")


def _render_hash(h: Hash) -> str:
    # Whitespace entries only occur in parameter hashes; those use a trailing
    # comma after every entry so whitespace never precedes a separator.
    trailing = any(isinstance(i, Whitespace) for i in h.items)
    if not trailing:
        inner = ", ".join(_render_item(i) for i in h.items if isinstance(i, HashItem))
        return "{" + inner + "}"
    parts: list[str] = []
    for item in h.items:
        if isinstance(item, Whitespace):
            parts.append(item.text)
        else:
            parts.append(_render_item(item) + ", ")
    return "{" + "".join(parts) + "}"


def _render_item(item: HashItem) -> str:
    return f"{_render_expr(item.key)} => {_render_expr(item.value)}"


def _render_call(c: Call) -> str:
    prefix = f"{_render_expr(c.receiver)}." if c.receiver is not None else ""
    args = ", ".join(_render_expr(a) for a in c.args)
    return f"{prefix}{c.name}({args}{_nl(c.newlines)})"
