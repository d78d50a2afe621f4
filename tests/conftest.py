"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from dryml import compile_source
from dryml.ast import Element
from dryml.builder import InstructionBuilder
from dryml.config import CompileOptions
from dryml.context import CompileState
from dryml.lexer import tokenize
from dryml.parser import parse
from dryml.scriptlets import shield
from dryml.static_tags import static_tag_set
from dryml.template import Template
from dryml.tokens import Token, TokenType


@pytest.fixture(autouse=True)
def _clear_build_cache():
    Template.clear_build_cache()
    yield
    Template.clear_build_cache()


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns tokens (excluding EOF)."""

    def _lex(source: str) -> list[Token]:
        tokens = tokenize(source)
        # Strip trailing EOF for convenience
        return [t for t in tokens if t.type != TokenType.EOF]

    return _lex


@pytest.fixture
def make_state():
    """Return a helper building a CompileState over (shielded) source."""

    def _make(source: str = "", path: str = "test.dryml", options: CompileOptions | None = None) -> CompileState:
        options = options or CompileOptions()
        text, table = shield(source)
        return CompileState(
            template_path=path,
            source=text,
            scriptlets=table,
            builder=InstructionBuilder(path),
            options=options,
            static_tags=static_tag_set(options.extra_static_tags),
        )

    return _make


@pytest.fixture
def element_of(make_state):
    """Return a helper that parses source and returns (first element, state)."""

    def _element_of(source: str, options: CompileOptions | None = None) -> tuple[Element, CompileState]:
        state = make_state(source, options=options)
        doc = parse(state.source)
        for child in doc.children:
            if isinstance(child, Element):
                return child, state
        raise AssertionError(f"no element in {source!r}")

    return _element_of


@pytest.fixture
def compile_page():
    """Return a helper that compiles a page and returns (erb source, builder)."""

    def _compile(
        source: str, path: str = "test.dryml", options: CompileOptions | None = None
    ) -> tuple[str, InstructionBuilder]:
        builder = InstructionBuilder(path)
        src = compile_source(source, path, builder, options)
        return src, builder

    return _compile
