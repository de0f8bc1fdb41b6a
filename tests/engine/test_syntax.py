"""
Unit tests for thinker.engine.syntax

Exercises the tree-sitter arena against real JavaScript so byte offsets,
field names and operators are checked end to end.
"""

from __future__ import annotations

import pytest

from thinker.engine.syntax import parse
from thinker.errors import ParseError


class TestParse:
    def test_accepts_bundle(self, bundle_bytes):
        tree = parse(bundle_bytes)
        assert tree.grammar == "javascript"
        assert tree.root.kind == "program"
        assert tree.root.start == 0

    def test_accepts_str_input(self):
        tree = parse("var a = 1;")
        assert tree.source == b"var a = 1;"

    def test_syntax_error_raises(self):
        with pytest.raises(ParseError) as exc_info:
            parse(b"function (")
        assert "Failed to parse source" in str(exc_info.value)
        assert exc_info.value.offset >= 0

    def test_typescript_fallback(self):
        tree = parse(b"let x: number = 1;")
        assert tree.grammar == "typescript"

    def test_only_requested_grammars(self):
        with pytest.raises(ParseError):
            parse(b"let x: number = 1;", grammars=("javascript",))

    def test_unknown_grammar(self):
        with pytest.raises(ParseError, match="unavailable"):
            parse(b"var a;", grammars=("cobol",))


class TestArena:
    def test_preorder_offsets(self, bundle_bytes):
        tree = parse(bundle_bytes)
        starts = [n.start for n in tree.nodes]
        assert starts == sorted(starts)
        for node in tree.nodes:
            for child in tree.children(node):
                assert node.contains(child)

    def test_byte_offsets_with_multibyte_text(self):
        src = 'a("∴ Thinking…");b(1);'.encode("utf-8")
        tree = parse(src)
        strings = [n for n in tree.nodes if n.kind == "string"]
        assert len(strings) == 1
        assert tree.text(strings[0]) == '"∴ Thinking…"'
        numbers = [n for n in tree.nodes if n.kind == "number"]
        assert src[numbers[0].start:numbers[0].end] == b"1"

    def test_fields(self):
        tree = parse(b"x.y(1, 2);")
        call = next(n for n in tree.nodes if n.kind == "call_expression")
        fn = tree.child(call, "function")
        assert fn.kind == "member_expression"
        assert tree.text(tree.child(fn, "property")) == "y"
        args = tree.child(call, "arguments")
        assert [tree.text(a) for a in tree.children(args)] == ["1", "2"]

    def test_operators_recorded(self):
        tree = parse(b"!(a || b); typeof c; d === 1;")
        ops = {n.kind + n.operator for n in tree.nodes if n.operator}
        assert {"unary_expression!", "binary_expression||",
                "unary_expressiontypeof", "binary_expression==="} <= ops

    def test_string_is_leaf(self):
        tree = parse(b'f("a\\nb");')
        string = next(n for n in tree.nodes if n.kind == "string")
        assert string.children == []

    def test_comments_dropped(self):
        tree = parse(b"/* note */ var a = 1; // trailing")
        assert all(n.kind != "comment" for n in tree.nodes)

    def test_nodes_between(self):
        src = b"a(1); b(2); c(3);"
        tree = parse(src)
        calls = tree.nodes_between(5, len(src), "call_expression")
        assert [tree.text(c) for c in calls] == ["b(2)", "c(3)"]
