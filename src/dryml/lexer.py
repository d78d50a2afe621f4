"""DRYML markup lexer: converts source text into a flat token stream."""

from __future__ import annotations

from enum import Enum, auto

from dryml.errors import LexError
from dryml.tokens import Position, Span, Token, TokenType, is_name_char, is_name_start_char


class _State(Enum):
    NORMAL = auto()
    TAG = auto()


class Lexer:
    """Tokenize DRYML source text into a stream of Token objects."""

    def __init__(self, source: str, filename: str = "input.dryml") -> None:
        self._source = source
        self._filename = filename
        self._pos = 0
        self._line = 1
        self._col = 1
        self._tokens: list[Token] = []
        self._state = _State.NORMAL
        self._tag_start: Position | None = None

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        while self._pos < len(self._source):
            if self._state == _State.NORMAL:
                self._lex_normal()
            else:
                self._lex_tag()

        if self._state == _State.TAG:
            raise self._error("unterminated start tag", self._tag_start)

        self._emit(TokenType.EOF, "", "")
        return self._tokens

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _current_pos(self) -> Position:
        return Position(self._line, self._col, self._pos)

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _at(self, text: str) -> bool:
        return self._source.startswith(text, self._pos)

    def _advance(self) -> str:
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _advance_over(self, text: str) -> None:
        for _ in text:
            self._advance()

    def _emit(self, tt: TokenType, value: str, raw: str, start: Position | None = None) -> Token:
        end = self._current_pos()
        if start is None:
            start = end
        tok = Token(tt, value, raw, Span(start, end))
        self._tokens.append(tok)
        return tok

    def _error(self, message: str, pos: Position | None = None) -> LexError:
        if pos is None:
            pos = self._current_pos()
        return LexError(message, pos, self._source)

    def _scan_to(self, terminator: str, start: Position, what: str) -> str:
        """Consume up to and including terminator; return the text before it."""
        end = self._source.find(terminator, self._pos)
        if end < 0:
            raise self._error(f"unterminated {what}", start)
        content = self._source[self._pos : end]
        self._advance_over(content)
        self._advance_over(terminator)
        return content

    # ------------------------------------------------------------------
    # Normal mode
    # ------------------------------------------------------------------

    def _lex_normal(self) -> None:
        if self._peek() == "\0":
            raise self._error("NUL character in source")

        if self._peek() != "<":
            self._lex_text()
            return

        start = self._current_pos()

        if self._at("<!--"):
            self._advance_over("<!--")
            content = self._scan_to("-->", start, "comment")
            self._emit(TokenType.COMMENT, content, self._raw_from(start), start)
            return

        if self._at("<![CDATA["):
            self._advance_over("<![CDATA[")
            content = self._scan_to("]]>", start, "CDATA section")
            self._emit(TokenType.CDATA, content, self._raw_from(start), start)
            return

        if self._at("<?"):
            self._advance_over("<?")
            self._scan_to("?>", start, "processing instruction")
            raw = self._raw_from(start)
            self._emit(TokenType.DIRECTIVE, raw, raw, start)
            return

        if self._at("<!"):
            self._advance_over("<!")
            self._scan_to(">", start, "declaration")
            raw = self._raw_from(start)
            self._emit(TokenType.DIRECTIVE, raw, raw, start)
            return

        if self._at("</"):
            self._lex_end_tag(start)
            return

        if is_name_start_char(self._peek(1)):
            self._advance()  # consume '<'
            name = self._lex_name()
            self._emit(TokenType.START_TAG_OPEN, name, f"<{name}", start)
            self._state = _State.TAG
            self._tag_start = start
            return

        raise self._error("unescaped '<' in text (use &lt; for a literal '<')", start)

    def _lex_text(self) -> None:
        start = self._current_pos()
        chars = []
        while self._pos < len(self._source):
            ch = self._peek()
            if ch == "<":
                break
            if ch == "\0":
                raise self._error("NUL character in source")
            chars.append(self._advance())
        text = "".join(chars)
        self._emit(TokenType.TEXT, text, text, start)

    def _lex_name(self) -> str:
        chars = []
        while self._pos < len(self._source) and is_name_char(self._peek()):
            chars.append(self._advance())
        return "".join(chars)

    def _lex_end_tag(self, start: Position) -> None:
        self._advance_over("</")
        if not is_name_start_char(self._peek()):
            raise self._error("expected element name after '</'", start)
        name = self._lex_name()
        while self._peek() in (" ", "\t", "\r", "\n") and self._pos < len(self._source):
            self._advance()
        if self._peek() != ">":
            raise self._error(f"expected '>' to close </{name}", start)
        self._advance()
        self._emit(TokenType.END_TAG, name, self._raw_from(start), start)

    def _raw_from(self, start: Position) -> str:
        return self._source[start.offset : self._pos]

    # ------------------------------------------------------------------
    # Tag mode (inside a start tag)
    # ------------------------------------------------------------------

    def _lex_tag(self) -> None:
        ch = self._peek()
        start = self._current_pos()

        if ch in " \t\r\n":
            chars = []
            while self._pos < len(self._source) and self._peek() in " \t\r\n":
                chars.append(self._advance())
            text = "".join(chars)
            self._emit(TokenType.WS, text, text, start)
            return

        if ch == ">":
            self._advance()
            self._emit(TokenType.TAG_CLOSE, ">", ">", start)
            self._state = _State.NORMAL
            return

        if ch == "/" and self._peek(1) == ">":
            self._advance_over("/>")
            self._emit(TokenType.EMPTY_TAG_CLOSE, "/>", "/>", start)
            self._state = _State.NORMAL
            return

        if ch == "=":
            self._advance()
            self._emit(TokenType.EQUALS, "=", "=", start)
            return

        if ch in "\"'":
            self._advance()
            content = self._scan_to(ch, start, "attribute value")
            self._emit(TokenType.ATTR_VALUE, content, self._raw_from(start), start)
            return

        if is_name_start_char(ch):
            name = self._lex_name()
            self._emit(TokenType.ATTR_NAME, name, name, start)
            return

        raise self._error(f"unexpected character '{ch}' in tag", start)


def tokenize(source: str, filename: str = "input.dryml") -> list[Token]:
    """Convenience function: tokenize source text and return token list."""
    return Lexer(source, filename).tokenize()
