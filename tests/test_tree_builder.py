"""Tests for converting tree-sitter trees into analyzer Nodes."""
import pytest

from forbidden_function.analyzer.nodes import Token
from forbidden_function.analyzer.tree_builder import decode_string_literal, parse_number_literal

from conftest import build, find_all, parse_node


class TestShapes:
    """The child layouts the resolver depends on."""

    def test_script_root(self):
        root = build("foo();", name="app.js")
        assert root.kind is Token.SCRIPT
        assert root.file == "app.js"
        assert root.first_child.kind is Token.EXPR_RESULT

    def test_call_children(self):
        root, call = parse_node("foo(a, 'b', 3);", Token.CALL)
        assert [child.kind for child in call.children] == [Token.NAME, Token.NAME, Token.STRING, Token.NUMBER]
        assert call.first_child.string == "foo"

    def test_comments_are_dropped(self):
        root, call = parse_node("foo(/* first */ a, // second\n b);", Token.CALL)
        assert [child.string for child in call.children] == ["foo", "a", "b"]

    def test_property_access(self):
        root, getprop = parse_node("a.b;", Token.GETPROP)
        obj, prop = getprop.children
        assert (obj.kind, obj.string) == (Token.NAME, "a")
        assert (prop.kind, prop.string) == (Token.STRING, "b")

    def test_element_access(self):
        root, getelem = parse_node("a['k'];", Token.GETELEM)
        assert [child.kind for child in getelem.children] == [Token.NAME, Token.STRING]

    def test_plus_is_add_other_operators_are_not(self):
        root = build("x = 1 + 2; y = 1 - 2;")
        assert len(find_all(root, Token.ADD)) == 1
        minus = [n for n in find_all(root, Token.OTHER) if n.source_type == 'binary_expression']
        assert len(minus) == 1 and minus[0].string == '-'

    def test_parentheses_are_unwrapped(self):
        root, call = parse_node("((foo))();", Token.CALL)
        assert call.first_child.kind is Token.NAME

    @pytest.mark.parametrize("op, token", [
        ("=", Token.ASSIGN),
        ("+=", Token.ASSIGN_ADD),
        (">>>=", Token.ASSIGN_URSH),
        ("%=", Token.ASSIGN_MOD),
        ("??=", Token.ASSIGN_COALESCE),
    ])
    def test_assignment_tokens(self, op, token):
        root, assign = parse_node(f"x {op} y;", token)
        assert [child.string for child in assign.children] == ["x", "y"]

    def test_var_declaration(self):
        root, var = parse_node("var a = 1, b;", Token.VAR)
        assert var.string == "var"
        first, second = var.children
        assert (first.kind, first.string) == (Token.NAME, "a")
        assert first.first_child.kind is Token.NUMBER
        assert (second.string, second.child_count) == ("b", 0)

    def test_const_destructuring(self):
        root, var = parse_node("const {a, b} = obj;", Token.VAR)
        assert var.string == "const"
        assert var.first_child.kind is Token.OTHER

    def test_function_declaration(self):
        root, function = parse_node("function f(a, b) { return a; }", Token.FUNCTION)
        name, params, body = function.children
        assert (name.kind, name.string) == (Token.NAME, "f")
        assert params.kind is Token.PARAM_LIST and params.child_count == 2
        assert body.kind is Token.BLOCK

    def test_arrow_function_single_parameter(self):
        root, function = parse_node("const g = x => x;", Token.FUNCTION)
        name, params, body = function.children
        assert name.string == ""
        assert [p.string for p in params.children] == ["x"]
        assert body.kind is Token.NAME

    def test_object_literal(self):
        root, obj = parse_node("var o = { a: 1, 'b c': f, d };", Token.OBJECTLIT)
        assert [key.string for key in obj.children] == ["a", "b c", "d"]
        assert all(key.kind is Token.STRING_KEY for key in obj.children)
        assert obj.children[2].first_child.kind is Token.NAME

    def test_parent_and_siblings(self):
        root, call = parse_node("foo(a, b);", Token.CALL)
        callee, a, b = call.children
        assert callee.parent is call
        assert callee.next_sibling is a
        assert a.next_sibling is b
        assert b.next_sibling is None

    def test_lines_are_one_based(self):
        root = build("\n\n  foo();\nbar();")
        assert [call.line for call in find_all(root, Token.CALL)] == [3, 4]

    def test_deep_nesting_does_not_recurse(self):
        code = "f(" * 600 + ")" * 600 + ";"
        assert len(find_all(build(code), Token.CALL)) == 600

    def test_string_tree_dump(self):
        dump = build("foo('x');").to_string_tree()
        assert dump.splitlines() == [
            "SCRIPT [line 1]",
            "    EXPR_RESULT [line 1]",
            "        CALL [line 1]",
            "            NAME 'foo' [line 1]",
            "            STRING 'x' [line 1]",
        ]


class TestLiterals:

    @pytest.mark.parametrize("raw, value", [
        ('"plain"', "plain"),
        ("'single'", "single"),
        (r'"tab\there"', "tab\there"),
        (r'"\x41B\u{43}"', "ABC"),
        (r"'it\'s'", "it's"),
        (r'"back\\slash"', "back\\slash"),
        ('"line\\\ncontinued"', "linecontinued"),
        (r'"\0"', "\0"),
        (r"'\uD83D\uDE00'", "\U0001F600"),
        (r"'\uD83D'", "\ud83d"),
    ])
    def test_decode_string_literal(self, raw, value):
        assert decode_string_literal(raw) == value

    @pytest.mark.parametrize("raw, value", [
        ("42", 42.0),
        ("1.5", 1.5),
        (".5", 0.5),
        ("1e3", 1000.0),
        ("0x1F", 31.0),
        ("0o17", 15.0),
        ("0b101", 5.0),
        ("017", 15.0),
        ("1_000", 1000.0),
        ("10n", 10.0),
    ])
    def test_parse_number_literal(self, raw, value):
        assert parse_number_literal(raw) == value

    def test_parsed_string_value(self):
        root, call = parse_node(r"obj['\x65val']();", Token.CALL)
        assert call.first_child.children[1].string == "eval"

    def test_parsed_hex_number(self):
        root, number = parse_node("x = 0x10;", Token.NUMBER)
        assert number.number == 16.0
