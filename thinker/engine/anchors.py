"""
Anchor locator: finds literal nodes equal to a known stable value.

Anchors are user-facing strings that survive every release of the target,
unlike the identifiers the minifier renames.  Each hit carries the full
root-to-parent ancestor chain so matchers can walk outwards without parent
back-references in the arena.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterator, Optional

from .syntax import Node, SyntaxTree

logger = logging.getLogger(__name__)

# Returned by literal_value() for nodes that are not literals
NOT_A_LITERAL = object()

_SIMPLE_ESCAPES = {
    "n": "\n", "t": "\t", "r": "\r", "b": "\b", "f": "\f", "v": "\v",
}
_LINE_TERMINATORS = "\n\r\u2028\u2029"
_SURROGATE_PAIR = re.compile("[\ud800-\udbff][\udc00-\udfff]")


@dataclass
class AnchorHit:
    """A literal node matching an anchor, with its ancestor chain."""
    node: Node
    ancestors: tuple[Node, ...]

    @property
    def parent(self) -> Optional[Node]:
        return self.ancestors[-1] if self.ancestors else None


# ---------------------------------------------------------------------------
# Literal decoding
# ---------------------------------------------------------------------------

def _hex_char(digits: str, width: int | None = None) -> Optional[str]:
    if not digits or (width is not None and len(digits) != width):
        return None
    try:
        return chr(int(digits, 16))
    except ValueError:
        return None


def _join_pair(match: "re.Match[str]") -> str:
    high, low = match.group()
    return chr(0x10000 + ((ord(high) - 0xD800) << 10) + (ord(low) - 0xDC00))


def decode_string(raw: str) -> str:
    """Decode a quoted JavaScript string literal to its runtime value."""
    body = raw[1:-1]
    if "\\" not in body:
        return body

    out: list[str] = []
    i = 0
    n = len(body)
    while i < n:
        ch = body[i]
        if ch != "\\" or i + 1 >= n:
            out.append(ch)
            i += 1
            continue
        nxt = body[i + 1]
        if nxt == "u" and i + 2 < n and body[i + 2] == "{":
            close = body.find("}", i + 3)
            char = _hex_char(body[i + 3:close]) if close != -1 else None
            if char is None:
                out.append(nxt)
                i += 2
            else:
                out.append(char)
                i = close + 1
        elif nxt in ("u", "x"):
            width = 4 if nxt == "u" else 2
            char = _hex_char(body[i + 2:i + 2 + width], width)
            if char is None:
                out.append(nxt)
                i += 2
            else:
                out.append(char)
                i += 2 + width
        elif nxt in _LINE_TERMINATORS:
            # Line continuation
            i += 2
            if nxt == "\r" and i < n and body[i] == "\n":
                i += 1
        elif nxt in "01234567":
            # Legacy octal escape, \0 included
            limit = 3 if nxt in "0123" else 2
            j = i + 1
            while j < n and j - (i + 1) < limit and body[j] in "01234567":
                j += 1
            out.append(chr(int(body[i + 1:j], 8)))
            i = j
        else:
            out.append(_SIMPLE_ESCAPES.get(nxt, nxt))
            i += 2

    # Recombine escaped surrogate pairs, lone halves stay as they are
    return _SURROGATE_PAIR.sub(_join_pair, "".join(out))


def _number_value(raw: str):
    text = raw.replace("_", "").lower()
    if text.endswith("n"):
        text = text[:-1]
    try:
        if text.startswith("0x"):
            return int(text, 16)
        if text.startswith("0o"):
            return int(text, 8)
        if text.startswith("0b"):
            return int(text, 2)
        value = float(text)
    except ValueError:
        return NOT_A_LITERAL
    return int(value) if value.is_integer() else value


def literal_value(tree: SyntaxTree, node: Optional[Node]):
    """Return the runtime value of a literal node, or ``NOT_A_LITERAL``."""
    if node is None:
        return NOT_A_LITERAL
    kind = node.kind
    if kind == "string":
        return decode_string(tree.text(node))
    if kind == "number":
        return _number_value(tree.text(node))
    if kind == "true":
        return True
    if kind == "false":
        return False
    if kind == "null":
        return None
    return NOT_A_LITERAL


def is_literal(tree: SyntaxTree, node: Optional[Node], value) -> bool:
    """True if *node* is a literal whose value equals *value* (type-strict)."""
    found = literal_value(tree, node)
    if found is NOT_A_LITERAL:
        return False
    if isinstance(value, bool) or isinstance(found, bool):
        return type(value) is type(found) and value == found
    return found == value


# ---------------------------------------------------------------------------
# Walking
# ---------------------------------------------------------------------------

def walk(tree: SyntaxTree, root: Optional[Node] = None) -> Iterator[tuple[Node, list[Node]]]:
    """
    Yield ``(node, ancestors)`` pairs in document order.

    *ancestors* is a live list owned by the walker; copy it before keeping it.
    """
    start = root or tree.root
    path: list[Node] = []
    stack: list[tuple[int, int]] = [(start.index, 0)]
    nodes = tree.nodes
    while stack:
        idx, depth = stack.pop()
        del path[depth:]
        node = nodes[idx]
        yield node, path
        path.append(node)
        for child in reversed(node.children):
            stack.append((child, depth + 1))


def find_literal(tree: SyntaxTree, value) -> list[AnchorHit]:
    """
    Collect every literal node equal to *value*, with its ancestor chain.

    Parameters
    ----------
    tree:
        A parsed syntax tree.
    value:
        The anchor value (string, number, bool or None).

    Returns
    -------
    list[AnchorHit]
        Hits in document order; may be empty.
    """
    if isinstance(value, str):
        kinds = {"string"}
        encoded = value.encode("utf-8")
    else:
        kinds = {"number", "true", "false", "null"}
        encoded = None

    hits: list[AnchorHit] = []
    for node, ancestors in walk(tree):
        if node.kind not in kinds:
            continue
        if encoded is not None:
            raw = tree.source[node.start + 1:node.end - 1]
            if b"\\" not in raw:
                if raw != encoded:
                    continue
            elif decode_string(tree.text(node)) != value:
                continue
        elif not is_literal(tree, node, value):
            continue
        hits.append(AnchorHit(node=node, ancestors=tuple(ancestors)))

    logger.debug("[Anchor] %d literal(s) equal to %r", len(hits), value)
    return hits
