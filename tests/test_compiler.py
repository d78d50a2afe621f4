"""Test the tree walker: classification, reserved elements, whole documents."""

from __future__ import annotations

import pytest

from dryml.builder import InstructionKind
from dryml.compiler import NodeKind, classify
from dryml.context import call_newlines, tag_newlines
from dryml.errors import DrymlError
from dryml.parser import parse
from dryml.static_tags import STATIC_TAGS


def kind_of(source: str) -> NodeKind:
    el = parse(source).children[0]
    return classify(el, STATIC_TAGS)


class TestClassify:
    @pytest.mark.parametrize(
        ("source", "kind"),
        [
            ('<def tag="x"/>', NodeKind.DEFINITION),
            ('<def tag="x" alias-of="y"/>', NodeKind.ALIAS_DEFINITION),
            ('<include src="x"/>', NodeKind.INCLUDE),
            ('<set-theme name="x"/>', NodeKind.THEME_SET),
            ('<set a="1"/>', NodeKind.VARIABLE_SET),
            ('<set-scoped a="1"/>', NodeKind.SCOPED_VARIABLE_SET),
            ("<param-content/>", NodeKind.PARAMETER_CONTENT),
            ("<foo/>", NodeKind.PLAIN_CALL),
            ("<foo for-type/>", NodeKind.POLYMORPHIC_CALL),
            ("<foo restore/>", NodeKind.PARAMETER_RESTORING_CALL),
            ("<div/>", NodeKind.LITERAL_MARKUP),
            ('<div if="&x"/>', NodeKind.LITERAL_MARKUP),
            ("<div param/>", NodeKind.PLAIN_CALL),
            ("<div restore/>", NodeKind.PARAMETER_RESTORING_CALL),
            ("<view:name/>", NodeKind.PLAIN_CALL),
        ],
    )
    def test_kinds(self, source, kind):
        assert kind_of(source) == kind

    def test_every_kind_reachable(self):
        sources = [
            '<def tag="x"/>',
            '<def tag="x" alias-of="y"/>',
            '<include src="x"/>',
            '<set-theme name="x"/>',
            '<set a="1"/>',
            '<set-scoped a="1"/>',
            "<param-content/>",
            "<foo/>",
            "<foo for-type/>",
            "<foo restore/>",
            "<div/>",
        ]
        assert {kind_of(s) for s in sources} == set(NodeKind)


class TestPassThrough:
    def test_text(self, compile_page):
        src, _ = compile_page("a &amp; b")
        assert src == "a &amp; b"

    def test_comment(self, compile_page):
        src, _ = compile_page("<!-- note -->")
        assert src == "<!-- note -->"

    def test_cdata(self, compile_page):
        src, _ = compile_page("<![CDATA[a < b]]>")
        assert src == "<![CDATA[a < b]]>"

    def test_doctype(self, compile_page):
        src, _ = compile_page("<!DOCTYPE html>\n<html></html>")
        assert src == "<!DOCTYPE html>\n<html></html>"

    def test_scriptlets(self, compile_page):
        source = "<p><%= a %></p><% b %>"
        src, _ = compile_page(source)
        assert src == source

    def test_old_style_parameter_tag(self, compile_page):
        with pytest.raises(DrymlError, match=r"old-style parameter tag \(<:body>\)"):
            compile_page("<foo><:body>x</:body></foo>")


class TestInclude:
    def test_instruction(self, compile_page):
        src, builder = compile_page('<include src="rapid" as="r"/>')
        [inc] = builder.of_kind(InstructionKind.INCLUDE)
        assert inc.payload == {"src": "rapid", "as": "r"}
        assert src == "<%  %>"

    def test_all_options(self, compile_page):
        _, builder = compile_page('<include plugin="hobo" module="Rapid" bundle="b"/>')
        assert builder.of_kind(InstructionKind.INCLUDE)[0].payload == {
            "module": "Rapid",
            "plugin": "hobo",
            "bundle": "b",
        }

    def test_newlines(self, compile_page):
        src, _ = compile_page('<include\n  src="rapid"\n/>')
        assert src == "<% \n\n %>"

    def test_top_level_only(self, compile_page):
        with pytest.raises(DrymlError, match="<include> can only be at the top level"):
            compile_page('<div><include src="x"/></div>')

    def test_invalid_as(self, compile_page):
        with pytest.raises(DrymlError, match='invalid as="a b" attribute on <include>'):
            compile_page('<include src="x" as="a b"/>')


class TestSetTheme:
    def test_instruction(self, compile_page):
        src, builder = compile_page('<set-theme name="clean"/>')
        [theme] = builder.of_kind(InstructionKind.SET_THEME)
        assert theme.payload == {"name": "clean"}
        assert src == "<%  %>"

    def test_missing_name(self, compile_page):
        with pytest.raises(DrymlError, match="missing name attribute on <set-theme>"):
            compile_page("<set-theme/>")


class TestSet:
    def test_assignments(self, compile_page):
        src, _ = compile_page('<set a="&x" b.c="y"/>')
        assert src == '<% a = (x); b.c = "y";  %>'

    def test_hyphenated_name(self, compile_page):
        src, _ = compile_page('<set my-var="&1"/>')
        assert src == "<% my_var = (1);  %>"

    def test_invalid_name(self, compile_page):
        with pytest.raises(DrymlError, match="invalid name in set"):
            compile_page('<set a_b="1"/>')


class TestSetScoped:
    def test_scope(self, compile_page):
        src, _ = compile_page('<set-scoped a="&x">hi</set-scoped>')
        assert src == "<% scope.new_scope { scope[:a] = (x);  %>hi<% } %>"

    def test_invalid_name(self, compile_page):
        with pytest.raises(DrymlError, match="invalid name in set-scoped"):
            compile_page('<set-scoped a.b="1">hi</set-scoped>')


class TestParamContent:
    def test_inside_call(self, compile_page):
        src, _ = compile_page("<foo><param-content/></foo>")
        assert "new_context { %><%= _foo__default_content && _foo__default_content.call %><% }" in src

    def test_explicit_for(self, compile_page):
        src, _ = compile_page('<param-content for="my-tag"/>')
        assert src == "<%= _my_tag__default_content && _my_tag__default_content.call %>"

    def test_without_context(self, compile_page):
        with pytest.raises(DrymlError, match="param-content must be inside a tag call"):
            compile_page("<param-content/>")

    def test_empty_for(self, compile_page):
        with pytest.raises(DrymlError, match='invalid for="" attribute on <param-content>'):
            compile_page('<param-content for=""/>')


class TestScenarios:
    def test_conditional_call(self, compile_page):
        src, _ = compile_page('<my-tag if="&condition">body</my-tag>')
        assert src == (
            "<% _output((if !(condition).blank?; "
            "(__tmp_1 = my_tag({}, {:default => proc { |_my_tag__default_content| new_context { %>body<% } }}); "
            "Dryml.last_if = true; __tmp_1) "
            "else (Dryml.last_if = false; ''); end)) %>"
        )

    def test_scriptlets_restored_in_order(self, compile_page):
        src, _ = compile_page("<foo><%= first %></foo><bar><% second %></bar>")
        assert src.index("<%= first %>") < src.index("<% second %>")

    def test_page_with_definitions_and_calls(self, compile_page):
        source = (
            '<include src="rapid"/>\n'
            '<def tag="card" attrs="title">\n'
            "  <h2><%= title %></h2>\n"
            '  <div param="body"/>\n'
            "</def>\n"
            '<card title="Hi">\n'
            "  <body:>Text</body:>\n"
            "</card>\n"
        )
        src, builder = compile_page(source)
        kinds = [i.kind for i in builder.instructions]
        assert kinds == [InstructionKind.INCLUDE, InstructionKind.DEF]
        assert src.count("\n") == source.count("\n")
        assert 'card({:title => "Hi"}, {\n  :body => proc {' in src


class TestLineFidelity:
    @pytest.mark.parametrize(
        "source",
        [
            "<foo\n a='1'>\n  x\n</foo>",
            "<foo>\n  <a:>\n    1\n  </a:>\n  <b:\n    c='2'/>\n</foo>",
            "<div\n  class='a'>\n  <span>\n</span></div>",
            "<set\n a='1'/>\n<set-scoped\n b='2'>\n</set-scoped>",
            "<p if='&x'\n>\n</p>",
            "<x><a: replace\n>\n</a:></x>",
            "<% a\n b %>\n<foo>\n<%\n%></foo>",
            "<!-- a\nb -->\n<![CDATA[\n]]>",
            "<param-content\n for='x'/>",
            "<set-theme\n name='x'/>",
            "<foo a=\"x\ny\"/>",
            "<foo a=\"&bar(\n1)\"/>",
            "<foo\n a=\"x\ny\"\n/>",
            "<foo if=\"&a &&\n b\"/>",
            "<div if=\"&c\" class=\"a\nb\">t</div>",
            "<div part=\"p\" class=\"a\nb\">x</div>",
            "<set a=\"x\ny\"/>",
            "<set-scoped a=\"x\ny\">\n</set-scoped>",
            "<foo><a: b=\"x\ny\"/></foo>",
            "<def tag=\"t\"><foo a=\"x\ny\"/></def>",
        ],
    )
    def test_newline_count_preserved(self, compile_page, source):
        src, _ = compile_page(source)
        assert src.count("\n") == source.count("\n")

    def test_definition_body_with_multiline_value(self, compile_page):
        source = '<def tag="t">\n<foo a="x\ny"/>\n</def>'
        src, builder = compile_page(source)
        [defn] = builder.of_kind(InstructionKind.DEF)
        assert src.count("\n") == source.count("\n")
        assert defn.payload["src"].count("\n") == source.count("\n")

    def test_call_newlines_excludes_attribute_values(self, element_of):
        el, _ = element_of('<foo\n a="x\ny"\n b/>')
        assert tag_newlines(el) == 3
        assert call_newlines(el) == 2
