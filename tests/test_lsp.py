"""Tests for the LSP server: diagnostic generation."""

from __future__ import annotations

import pytest
from lsprotocol.types import (
    DiagnosticSeverity,
    PublishDiagnosticsParams,
    TextDocumentItem,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer
from pygls.workspace import Workspace

from dryml.lsp import _validate, diagnose
from dryml.template import Template


@pytest.fixture
def lsp_env():
    """Create a LanguageServer with an initialized workspace and captured diagnostics."""
    ls = LanguageServer("test", "v0", text_document_sync_kind=TextDocumentSyncKind.Full)
    ws = Workspace(None)
    ls.protocol._workspace = ws

    published: list[PublishDiagnosticsParams] = []
    ls.text_document_publish_diagnostics = lambda params: published.append(params)

    def put(source: str, uri: str = "file:///views/test.dryml") -> None:
        ws.put_text_document(
            TextDocumentItem(uri=uri, language_id="dryml", version=0, text=source)
        )

    return ls, published, put


# ---------------------------------------------------------------------------
# Parse errors
# ---------------------------------------------------------------------------


class TestParseErrors:
    def test_unclosed_element(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("<p>\n\n<div>hello</p>")
        _validate(ls, "file:///views/test.dryml")

        assert len(published) == 1
        diags = published[0].diagnostics
        assert len(diags) == 1
        d = diags[0]
        assert d.severity == DiagnosticSeverity.Error
        assert "mismatched end tag </p>" in d.message
        assert d.source == "dryml"
        # </p> is on line 3 (1-based) -> LSP line 2 (0-based)
        assert d.range.start.line == 2
        assert d.range.start.character == 0
        assert d.range.end.line == 3


# ---------------------------------------------------------------------------
# Compile errors
# ---------------------------------------------------------------------------


class TestCompileErrors:
    def test_nested_definition(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put('<def tag="a">\n  <def tag="b"/>\n</def>')
        _validate(ls, "file:///views/test.dryml")

        assert len(published) == 1
        [d] = published[0].diagnostics
        assert d.severity == DiagnosticSeverity.Error
        assert d.message == "<def> can only be at the top level"
        assert d.range.start.line == 1

    def test_uri_basename_used_as_path(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("<foo param/>", uri="file:///views/users/show.dryml")
        _validate(ls, "file:///views/users/show.dryml")
        assert published[0].uri == "file:///views/users/show.dryml"
        assert len(published[0].diagnostics) == 1


# ---------------------------------------------------------------------------
# Clean document -> empty diagnostics
# ---------------------------------------------------------------------------


class TestCleanDocument:
    def test_valid_document(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put('<def tag="card" attrs="title">\n  <h2><%= title %></h2>\n</def>\n<card title="Hi"/>\n')
        _validate(ls, "file:///views/test.dryml")

        assert len(published) == 1
        assert published[0].diagnostics == []


# ---------------------------------------------------------------------------
# diagnose() directly
# ---------------------------------------------------------------------------


class TestDiagnose:
    def test_clean(self) -> None:
        assert diagnose("<foo/>", "a.dryml") == []

    def test_duplicate_part(self) -> None:
        [d] = diagnose('<foo part="p"/><bar part="p"/>', "a.dryml")
        assert d.message == "duplicate part: p"
        assert d.range.start.line == 0

    def test_does_not_touch_build_cache(self) -> None:
        diagnose("<foo/>", "a.dryml")
        assert Template.build_cache == {}
