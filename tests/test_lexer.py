"""Tests for the markup lexer: token types, values and positions."""

from __future__ import annotations

import pytest

from dryml.errors import LexError
from dryml.lexer import tokenize
from dryml.tokens import TokenType, is_name_char, is_name_start_char


def types(tokens):
    return [t.type for t in tokens]


class TestContent:
    def test_plain_text(self, lex):
        tokens = lex("hello world")
        assert types(tokens) == [TokenType.TEXT]
        assert tokens[0].value == "hello world"

    def test_comment(self, lex):
        tokens = lex("<!-- note -->")
        assert types(tokens) == [TokenType.COMMENT]
        assert tokens[0].value == " note "
        assert tokens[0].raw == "<!-- note -->"

    def test_cdata(self, lex):
        tokens = lex("<![CDATA[a < b]]>")
        assert types(tokens) == [TokenType.CDATA]
        assert tokens[0].value == "a < b"

    def test_doctype_is_directive(self, lex):
        tokens = lex("<!DOCTYPE html>")
        assert types(tokens) == [TokenType.DIRECTIVE]
        assert tokens[0].value == "<!DOCTYPE html>"

    def test_processing_instruction(self, lex):
        tokens = lex('<?xml version="1.0"?>')
        assert types(tokens) == [TokenType.DIRECTIVE]

    def test_entities_kept_verbatim(self, lex):
        tokens = lex("a &amp; b")
        assert tokens[0].value == "a &amp; b"

    def test_scriptlet_placeholder_is_text(self, lex):
        tokens = lex("x [![DRYML-ERB1]!] y")
        assert types(tokens) == [TokenType.TEXT]


class TestTags:
    def test_start_and_end_tag(self, lex):
        tokens = lex("<b>hi</b>")
        assert types(tokens) == [
            TokenType.START_TAG_OPEN,
            TokenType.TAG_CLOSE,
            TokenType.TEXT,
            TokenType.END_TAG,
        ]
        assert tokens[0].value == "b"
        assert tokens[3].value == "b"

    def test_empty_tag(self, lex):
        tokens = lex("<br/>")
        assert types(tokens) == [TokenType.START_TAG_OPEN, TokenType.EMPTY_TAG_CLOSE]

    def test_attribute(self, lex):
        tokens = lex("<a href='x'>")
        assert types(tokens) == [
            TokenType.START_TAG_OPEN,
            TokenType.WS,
            TokenType.ATTR_NAME,
            TokenType.EQUALS,
            TokenType.ATTR_VALUE,
            TokenType.TAG_CLOSE,
        ]
        assert tokens[2].value == "href"
        assert tokens[4].value == "x"
        assert tokens[4].raw == "'x'"

    def test_double_quoted_value_may_contain_single_quote(self, lex):
        tokens = lex("""<a title="it's">""")
        assert tokens[4].value == "it's"

    def test_valueless_attribute(self, lex):
        tokens = lex("<x if>")
        assert types(tokens) == [
            TokenType.START_TAG_OPEN,
            TokenType.WS,
            TokenType.ATTR_NAME,
            TokenType.TAG_CLOSE,
        ]

    def test_qualified_names(self, lex):
        tokens = lex("<view:name/><body:></body:>")
        assert tokens[0].value == "view:name"
        assert tokens[2].value == "body:"
        assert tokens[4].value == "body:"

    def test_hyphenated_and_dotted_attribute_names(self, lex):
        tokens = lex('<set a.b-c="1"/>')
        assert tokens[2].value == "a.b-c"

    def test_whitespace_inside_tag_keeps_newlines(self, lex):
        tokens = lex('<x\n  a="1"/>')
        assert tokens[1].type == TokenType.WS
        assert tokens[1].value == "\n  "


class TestPositions:
    def test_first_token(self, lex):
        tokens = lex("<b/>")
        assert tokens[0].span.start.line == 1
        assert tokens[0].span.start.column == 1
        assert tokens[0].span.start.offset == 0

    def test_after_newline(self, lex):
        tokens = lex("a\n<b/>")
        tag = tokens[1]
        assert tag.type == TokenType.START_TAG_OPEN
        assert tag.span.start.line == 2
        assert tag.span.start.column == 1
        assert tag.span.start.offset == 2

    def test_eof_token(self):
        tokens = tokenize("x")
        assert tokens[-1].type == TokenType.EOF


class TestErrors:
    def test_unterminated_start_tag(self):
        with pytest.raises(LexError, match="unterminated start tag"):
            tokenize("<a href='x'")

    def test_unescaped_lt(self):
        with pytest.raises(LexError, match="unescaped '<'"):
            tokenize("a < b")

    def test_lt_at_end(self):
        with pytest.raises(LexError, match="unescaped '<'"):
            tokenize("a <")

    def test_unexpected_character_in_tag(self):
        with pytest.raises(LexError, match="unexpected character '@' in tag"):
            tokenize("<a @>")

    def test_unterminated_comment(self):
        with pytest.raises(LexError, match="unterminated comment"):
            tokenize("<!-- never closed")

    def test_unterminated_attribute_value(self):
        with pytest.raises(LexError, match="unterminated attribute value"):
            tokenize('<a b="x>')

    def test_nul_character(self):
        with pytest.raises(LexError, match="NUL character"):
            tokenize("a\0b")

    def test_error_position(self):
        with pytest.raises(LexError) as exc_info:
            tokenize("ok\n  <a @>")
        assert exc_info.value.line == 2
        assert exc_info.value.position.column == 6


class TestNameChars:
    @pytest.mark.parametrize("ch", ["a", "Z", "_", ":"])
    def test_start_chars(self, ch):
        assert is_name_start_char(ch)

    @pytest.mark.parametrize("ch", ["", "-", ".", "1", " ", "<"])
    def test_not_start_chars(self, ch):
        assert not is_name_start_char(ch)

    @pytest.mark.parametrize("ch", ["a", "1", "-", ".", ":", "_"])
    def test_name_chars(self, ch):
        assert is_name_char(ch)

    @pytest.mark.parametrize("ch", ["", " ", "=", ">", "/"])
    def test_not_name_chars(self, ch):
        assert not is_name_char(ch)
