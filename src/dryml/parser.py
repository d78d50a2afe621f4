"""DRYML parser: converts a token stream into a node tree."""

from __future__ import annotations

from dryml.ast import Attribute, CData, Comment, Document, Element, Node, Text
from dryml.errors import ParseError
from dryml.lexer import tokenize
from dryml.tokens import Position, Span, Token, TokenType


class Parser:
    """Recursive descent parser for DRYML token streams."""

    def __init__(self, tokens: list[Token], source: str, filename: str) -> None:
        self._tokens = tokens
        self._source = source
        self._filename = filename
        self._pos = 0

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self, offset: int = 0) -> Token:
        idx = self._pos + offset
        if idx < len(self._tokens):
            return self._tokens[idx]
        return self._tokens[-1]  # EOF

    def _at(self, *types: TokenType) -> bool:
        return self._peek().type in types

    def _at_eof(self) -> bool:
        return self._peek().type == TokenType.EOF

    def _advance(self) -> Token:
        tok = self._tokens[self._pos]
        if tok.type != TokenType.EOF:
            self._pos += 1
        return tok

    def _skip_ws(self) -> None:
        if self._at(TokenType.WS):
            self._advance()

    def _prev_end(self) -> Position:
        """End position of the previously consumed token."""
        if self._pos > 0:
            return self._tokens[self._pos - 1].span.end
        return self._tokens[0].span.start

    # ------------------------------------------------------------------
    # Document level
    # ------------------------------------------------------------------

    def parse(self) -> Document:
        start = self._peek().span.start
        children = self._parse_content(None)
        end = self._peek().span.end
        return Document(tuple(children), Span(start, end))

    def _parse_content(self, open_element: Token | None) -> list[Node]:
        """Parse nodes until the end tag matching open_element (or EOF at top level)."""
        children: list[Node] = []

        while True:
            tok = self._peek()

            if tok.type == TokenType.EOF:
                if open_element is not None:
                    raise self._error(f"unclosed element <{open_element.value}>", open_element.span)
                return children

            if tok.type == TokenType.END_TAG:
                if open_element is None:
                    raise self._error(f"unexpected end tag </{tok.value}>", tok.span)
                if tok.value != open_element.value:
                    raise self._error(
                        f"mismatched end tag </{tok.value}>, expected </{open_element.value}>",
                        tok.span,
                    )
                return children

            if tok.type in (TokenType.TEXT, TokenType.DIRECTIVE):
                self._advance()
                children.append(Text(tok.value, tok.span))
            elif tok.type == TokenType.COMMENT:
                self._advance()
                children.append(Comment(tok.value, tok.span))
            elif tok.type == TokenType.CDATA:
                self._advance()
                children.append(CData(tok.value, tok.span))
            elif tok.type == TokenType.START_TAG_OPEN:
                children.append(self._parse_element())
            else:
                raise self._error("unexpected token", tok.span)

    # ------------------------------------------------------------------
    # Elements
    # ------------------------------------------------------------------

    def _parse_element(self) -> Element:
        open_tok = self._advance()  # consume START_TAG_OPEN
        start = open_tok.span.start

        attributes = self._parse_attributes()

        if self._at(TokenType.EMPTY_TAG_CLOSE):
            end_tok = self._advance()
            start_tag_source = self._source[start.offset : end_tok.span.end.offset]
            return Element(
                open_tok.value,
                tuple(attributes),
                (),
                Span(start, end_tok.span.end),
                start_tag_source,
                False,
            )

        if not self._at(TokenType.TAG_CLOSE):
            raise self._error(f"expected '>' to close <{open_tok.value}>", self._peek().span)
        close_tok = self._advance()
        start_tag_source = self._source[start.offset : close_tok.span.end.offset]

        children = self._parse_content(open_tok)
        end_tok = self._advance()  # consume matching END_TAG
        return Element(
            open_tok.value,
            tuple(attributes),
            tuple(children),
            Span(start, end_tok.span.end),
            start_tag_source,
            True,
        )

    def _parse_attributes(self) -> list[Attribute]:
        attributes: list[Attribute] = []
        seen: set[str] = set()

        while True:
            had_ws = self._at(TokenType.WS)
            self._skip_ws()
            if not self._at(TokenType.ATTR_NAME):
                return attributes
            if attributes and not had_ws:
                raise self._error("expected whitespace between attributes", self._peek().span)

            name_tok = self._advance()
            if name_tok.value in seen:
                raise self._error(f"duplicate attribute '{name_tok.value}'", name_tok.span)
            seen.add(name_tok.value)

            value: str | None = None
            saved_pos = self._pos
            self._skip_ws()
            if self._at(TokenType.EQUALS):
                self._advance()
                self._skip_ws()
                if not self._at(TokenType.ATTR_VALUE):
                    raise self._error(
                        f"expected quoted value for attribute '{name_tok.value}'",
                        self._peek().span,
                    )
                value = self._advance().value
            else:
                # Valueless attribute; leave the whitespace for the next one
                self._pos = saved_pos

            attributes.append(Attribute(name_tok.value, value, Span(name_tok.span.start, self._prev_end())))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _error(self, message: str, span: Span | None = None) -> ParseError:
        if span is None:
            span = self._peek().span
        return ParseError(message, span, self._source)


def parse(source: str, filename: str = "input.dryml") -> Document:
    """Convenience function: parse source text and return a Document."""
    tokens = tokenize(source, filename)
    return Parser(tokens, source, filename).parse()
