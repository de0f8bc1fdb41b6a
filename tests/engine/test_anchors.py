"""Tests for anchor lookup and JavaScript literal decoding."""

from __future__ import annotations

from thinker.engine.anchors import decode_string, find_literal, literal_value, NOT_A_LITERAL
from thinker.engine.syntax import parse


class TestDecodeString:
    def test_plain(self):
        assert decode_string('"abc"') == "abc"

    def test_simple_escapes(self):
        assert decode_string(r'"a\nb\tc\\d\"e"') == 'a\nb\tc\\d"e'

    def test_unicode_escapes(self):
        assert decode_string(r'"\u2234 Thinking\u2026"') == "∴ Thinking…"

    def test_code_point_escape(self):
        assert decode_string(r'"\u{2234}"') == "∴"

    def test_hex_escape(self):
        assert decode_string(r"'\x41\x42'") == "AB"

    def test_surrogate_pair(self):
        assert decode_string(r'"\ud83d\ude00"') == "\U0001F600"

    def test_line_continuation(self):
        assert decode_string('"ab\\\ncd"') == "abcd"

    def test_malformed_hex_kept(self):
        assert decode_string(r'"\xZZ"') == "xZZ"

    def test_lone_surrogate_kept(self):
        assert decode_string(r'"\uD83D"') == "\ud83d"
        assert decode_string(r'"\ude00x\ud83d"') == "\ude00x\ud83d"

    def test_legacy_octal_escapes(self):
        assert decode_string(r'"\033[0m"') == "\x1b[0m"
        assert decode_string(r'"\101\7"') == "A\x07"
        assert decode_string(r'"\400"') == " 0"

    def test_nul_escape(self):
        assert decode_string(r'"\0"') == "\0"
        assert decode_string(r'"\08"') == "\x008"


class TestLiteralValue:
    def test_values(self):
        tree = parse(b'f("s", 0x10, 1.5, true, false, null, g);')
        args = tree.children(tree.nodes[[n.kind for n in tree.nodes].index("arguments")])
        values = [literal_value(tree, a) for a in args]
        assert values[:6] == ["s", 16, 1.5, True, False, None]
        assert values[6] is NOT_A_LITERAL


class TestFindLiteral:
    def test_finds_multibyte_anchor(self, bundle_bytes):
        tree = parse(bundle_bytes)
        hits = find_literal(tree, "∴ Thinking…")
        assert len(hits) == 1
        assert tree.text(hits[0].node) == '"∴ Thinking…"'
        assert hits[0].ancestors[0].kind == "program"
        assert hits[0].parent.kind == "arguments"

    def test_finds_escaped_anchor(self):
        tree = parse(rb'x("\u2234 Thinking\u2026");')
        assert len(find_literal(tree, "∴ Thinking…")) == 1

    def test_no_hits(self, bundle_bytes):
        assert find_literal(parse(bundle_bytes), "absent anchor") == []

    def test_many_hits_in_document_order(self):
        tree = parse(b'a("k"); b("k"); c("j"); d("k");')
        hits = find_literal(tree, "k")
        assert [h.node.start for h in hits] == sorted(h.node.start for h in hits)
        assert len(hits) == 3

    def test_bool_is_not_number(self):
        tree = parse(b"f(1, true);")
        assert len(find_literal(tree, 1)) == 1
        assert len(find_literal(tree, True)) == 1

    def test_ancestors_are_a_snapshot(self):
        tree = parse(b'a(b("k"), c("k"));')
        first, second = find_literal(tree, "k")
        assert first.ancestors != second.ancestors
        assert all(a.contains(first.node) for a in first.ancestors)

    def test_lone_surrogate_elsewhere_in_bundle(self, bundle_bytes):
        tree = parse(bundle_bytes + b'var Z="\\uD83D";\n')
        assert len(find_literal(tree, "∴ Thinking…")) == 1
        assert len(find_literal(tree, "\ud83d")) == 1
