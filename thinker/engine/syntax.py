"""
Tree-sitter structural parser for the target bundle.

Parses JavaScript source bytes into a flat node arena with exact byte
offsets.  Tries each configured grammar in turn (JavaScript first, then the
TypeScript superset grammar) and fails with :class:`ParseError` when none of
them produces an error-free tree.

Uses tree-sitter >= 0.22 API with individual language packages.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from typing import Iterator, Optional

from ..errors import ParseError

logger = logging.getLogger(__name__)

DEFAULT_GRAMMARS: tuple[str, ...] = ("javascript", "typescript")

# Extras that carry no structure for the matchers
_SKIPPED_KINDS = frozenset({"comment", "html_comment"})

# Literals are kept as leaves; their internals are decoded from source text
_LEAF_KINDS = frozenset({"string", "number", "regex", "template_string"})


# ---------------------------------------------------------------------------
# Arena data classes
# ---------------------------------------------------------------------------

@dataclass
class Node:
    """One syntax node in the arena.  Children are arena indices."""
    index: int
    kind: str
    start: int
    end: int
    children: list[int] = field(default_factory=list)
    fields: dict[str, list[int]] = field(default_factory=dict)
    operator: str = ""

    def contains(self, other: "Node") -> bool:
        return self.start <= other.start and other.end <= self.end


@dataclass
class SyntaxTree:
    """All nodes of one parse, in pre-order (document) order."""
    source: bytes
    nodes: list[Node]
    grammar: str
    _starts: list[int] = field(default_factory=list, repr=False)

    def __post_init__(self) -> None:
        if not self._starts:
            self._starts = [n.start for n in self.nodes]

    @property
    def root(self) -> Node:
        return self.nodes[0]

    def text(self, node: Optional[Node]) -> str:
        """Decode a node's source slice as UTF-8."""
        if node is None:
            return ""
        return self.source[node.start:node.end].decode("utf-8", errors="replace")

    def child(self, node: Optional[Node], field_name: str) -> Optional[Node]:
        """Return the first child stored under *field_name*, or None."""
        if node is None:
            return None
        idx = node.fields.get(field_name)
        return self.nodes[idx[0]] if idx else None

    def children(self, node: Optional[Node], field_name: str | None = None) -> list[Node]:
        """Return the children of *node*, optionally only those under *field_name*."""
        if node is None:
            return []
        if field_name is None:
            return [self.nodes[i] for i in node.children]
        return [self.nodes[i] for i in node.fields.get(field_name, ())]

    def subtree(self, node: Node) -> Iterator[Node]:
        """Yield *node* and all its descendants in document order."""
        stack = [node.index]
        while stack:
            current = self.nodes[stack.pop()]
            yield current
            stack.extend(reversed(current.children))

    def nodes_between(self, lo: int, hi: int, kind: str | None = None) -> list[Node]:
        """Return nodes whose start offset falls within ``[lo, hi]``."""
        first = bisect.bisect_left(self._starts, lo)
        last = bisect.bisect_right(self._starts, hi)
        found = self.nodes[first:last]
        if kind is not None:
            found = [n for n in found if n.kind == kind]
        return found


# ---------------------------------------------------------------------------
# Grammar name → (tree-sitter Language object) lookup
# ---------------------------------------------------------------------------

def _get_lang_func(grammar: str):
    """Return the tree-sitter language() function for *grammar*, or None."""
    try:
        if grammar == "javascript":
            import tree_sitter_javascript as m  # type: ignore
            return m.language
        elif grammar == "typescript":
            import tree_sitter_typescript as m  # type: ignore
            return m.language_typescript
    except ImportError:
        pass
    return None


# Cache Language objects to avoid repeated construction
_LANG_CACHE: dict[str, object] = {}
_PARSER_CACHE: dict[str, object] = {}


def _get_ts_language(grammar: str):
    """
    Return the tree_sitter.Language object for *grammar*, or None.

    Caches results for performance.
    """
    if grammar in _LANG_CACHE:
        return _LANG_CACHE[grammar]
    try:
        import tree_sitter as ts  # type: ignore
        func = _get_lang_func(grammar)
        if func is None:
            return None
        lang_obj = ts.Language(func())
        _LANG_CACHE[grammar] = lang_obj
        return lang_obj
    except Exception as exc:
        logger.debug("Cannot load tree-sitter grammar %s: %s", grammar, exc)
        return None


def _get_ts_parser(grammar: str):
    """
    Return a tree-sitter Parser configured for *grammar*, or None.

    Caches parsers for performance.
    """
    if grammar in _PARSER_CACHE:
        return _PARSER_CACHE[grammar]
    try:
        import tree_sitter as ts  # type: ignore
        lang_obj = _get_ts_language(grammar)
        if lang_obj is None:
            return None
        parser = ts.Parser(lang_obj)
        _PARSER_CACHE[grammar] = parser
        return parser
    except Exception as exc:
        logger.warning("Cannot create tree-sitter parser for %s: %s", grammar, exc)
        return None


# ---------------------------------------------------------------------------
# Error location
# ---------------------------------------------------------------------------

def _first_error(ts_node):
    """Descend into the first ERROR or MISSING node under *ts_node*."""
    node = ts_node
    while True:
        if node.type == "ERROR" or node.is_missing:
            return node
        nxt = None
        for child in node.children:
            if child.has_error or child.is_missing or child.type == "ERROR":
                nxt = child
                break
        if nxt is None:
            return node
        node = nxt


def _describe_error(ts_tree) -> tuple[str, int]:
    node = _first_error(ts_tree.root_node)
    row, column = node.start_point[0], node.start_point[1]
    what = f"missing {node.type}" if node.is_missing else "unexpected input"
    return f"{what} at line {row + 1}, column {column + 1}", node.start_byte


# ---------------------------------------------------------------------------
# Arena construction
# ---------------------------------------------------------------------------

def _build_arena(ts_tree) -> list[Node]:
    """Flatten a tree-sitter tree into arena nodes using a single cursor walk."""
    nodes: list[Node] = []
    owners: list[int] = []   # arena index of each open ancestor
    cursor = ts_tree.walk()

    while True:
        ts_node = cursor.node
        field_name = cursor.field_name
        if ts_node.is_named and ts_node.type not in _SKIPPED_KINDS:
            idx = len(nodes)
            node = Node(idx, ts_node.type, ts_node.start_byte, ts_node.end_byte)
            nodes.append(node)
            if owners:
                parent = nodes[owners[-1]]
                parent.children.append(idx)
                if field_name:
                    parent.fields.setdefault(field_name, []).append(idx)
            if node.kind not in _LEAF_KINDS and cursor.goto_first_child():
                owners.append(idx)
                continue
        elif owners and field_name == "operator":
            nodes[owners[-1]].operator = ts_node.type

        while not cursor.goto_next_sibling():
            if not cursor.goto_parent():
                return nodes
            owners.pop()


# ---------------------------------------------------------------------------
# Main public parse function
# ---------------------------------------------------------------------------

def parse(source: bytes, grammars: tuple[str, ...] | list[str] = DEFAULT_GRAMMARS) -> SyntaxTree:
    """
    Parse *source* into a :class:`SyntaxTree`.

    Parameters
    ----------
    source:
        Raw bytes of the program text.
    grammars:
        Grammar names to try in order; the first one that yields an
        error-free tree wins.

    Raises
    ------
    ParseError
        When no grammar accepts the text (or none is installed).
    """
    if isinstance(source, str):
        source = source.encode("utf-8")

    last_error = "no grammar available"
    last_offset = -1
    for grammar in grammars:
        ts_parser = _get_ts_parser(grammar)
        if ts_parser is None:
            last_error = f"tree-sitter grammar unavailable: {grammar}"
            continue
        try:
            ts_tree = ts_parser.parse(source)
        except Exception as exc:
            last_error = f"{grammar} parser failed: {exc}"
            logger.debug("[Parse] %s", last_error)
            continue
        if ts_tree.root_node.has_error:
            detail, last_offset = _describe_error(ts_tree)
            last_error = f"{grammar}: {detail}"
            logger.debug("[Parse] %s grammar rejected text: %s", grammar, detail)
            continue
        nodes = _build_arena(ts_tree)
        logger.debug("[Parse] %s grammar accepted %d bytes (%d nodes)",
                     grammar, len(source), len(nodes))
        return SyntaxTree(source=source, nodes=nodes, grammar=grammar)

    raise ParseError(f"Failed to parse source: {last_error}", offset=last_offset)
