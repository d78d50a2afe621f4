"""Minimal LSP server for DRYML, diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from dryml import __version__
from dryml.builder import InstructionBuilder
from dryml.errors import DrymlError
from dryml.template import Template

server = LanguageServer("dryml-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full)


def diagnose(source: str, filename: str) -> list[Diagnostic]:
    """Compile source with a throwaway builder; one diagnostic per error."""
    template = Template(source, filename, InstructionBuilder(filename))
    try:
        template.process_src()
    except DrymlError as exc:
        line = (exc.line or 1) - 1
        return [
            Diagnostic(
                range=Range(
                    start=Position(line=line, character=0),
                    end=Position(line=line + 1, character=0),
                ),
                message=exc.message,
                severity=DiagnosticSeverity.Error,
                source="dryml",
            )
        ]
    return []


def _validate(ls: LanguageServer, uri: str) -> None:
    """Run the DRYML pipeline and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnose(doc.source, filename))
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
