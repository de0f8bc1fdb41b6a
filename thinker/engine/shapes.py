"""
Structural helpers shared by the shape matchers and the patch editor.

All helpers work on arena nodes and never assume a property position or a
minifier-chosen identifier.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .anchors import NOT_A_LITERAL, decode_string, is_literal, literal_value
from .syntax import Node, SyntaxTree

UI_FACTORY_METHODS = frozenset({"createElement"})

FUNCTION_KINDS = frozenset({
    "function_declaration", "function_expression", "function",
    "arrow_function", "generator_function", "generator_function_declaration",
})


# ---------------------------------------------------------------------------
# Expression unwrapping
# ---------------------------------------------------------------------------

def unwrap_parens(tree: SyntaxTree, node: Optional[Node]) -> Optional[Node]:
    """Strip any number of enclosing parentheses."""
    while node is not None and node.kind == "parenthesized_expression":
        inner = tree.children(node)
        node = inner[0] if inner else None
    return node


def unwrap_sequence(tree: SyntaxTree, node: Optional[Node]) -> Optional[Node]:
    """Resolve ``(0, a.b)`` style comma expressions to their final operand."""
    node = unwrap_parens(tree, node)
    while node is not None and node.kind == "sequence_expression":
        parts = tree.children(node)
        node = unwrap_parens(tree, parts[-1]) if parts else None
    return node


def member_name(tree: SyntaxTree, node: Optional[Node]) -> Optional[str]:
    """Return the accessed name of ``a.b`` or ``a["b"]``, else None."""
    if node is None:
        return None
    if node.kind == "member_expression":
        prop = tree.child(node, "property")
        return tree.text(prop) if prop is not None else None
    if node.kind == "subscript_expression":
        index = unwrap_parens(tree, tree.child(node, "index"))
        value = literal_value(tree, index)
        return value if isinstance(value, str) else None
    return None


def member_object(tree: SyntaxTree, node: Optional[Node]) -> Optional[Node]:
    if node is None or node.kind not in ("member_expression", "subscript_expression"):
        return None
    return tree.child(node, "object")


def root_identifier(tree: SyntaxTree, node: Optional[Node]) -> Optional[str]:
    """Return the leftmost identifier of a member chain (``R`` in ``R.default.x``)."""
    node = unwrap_sequence(tree, node)
    while node is not None and node.kind in ("member_expression", "subscript_expression"):
        node = unwrap_parens(tree, tree.child(node, "object"))
    if node is not None and node.kind == "identifier":
        return tree.text(node)
    return None


# ---------------------------------------------------------------------------
# Calls
# ---------------------------------------------------------------------------

def callee(tree: SyntaxTree, call: Node) -> Optional[Node]:
    return unwrap_sequence(tree, tree.child(call, "function"))


def call_arguments(tree: SyntaxTree, call: Optional[Node]) -> list[Node]:
    """Return the argument expressions of a call, in order."""
    if call is None or call.kind != "call_expression":
        return []
    args = tree.child(call, "arguments")
    if args is None or args.kind != "arguments":
        return []
    return tree.children(args)


def is_method_call(tree: SyntaxTree, node: Optional[Node], names: Iterable[str]) -> bool:
    """True for ``x.name(...)`` (after unwrapping ``(0, x.name)``)."""
    if node is None or node.kind != "call_expression":
        return False
    return member_name(tree, callee(tree, node)) in set(names)


def is_ui_call(tree: SyntaxTree, node: Optional[Node]) -> bool:
    """True for a UI construction call such as ``R.default.createElement(...)``."""
    return is_method_call(tree, node, UI_FACTORY_METHODS)


def argument_index(tree: SyntaxTree, call: Node, target: Node) -> int:
    """Index of the argument containing *target*, or -1."""
    for i, arg in enumerate(call_arguments(tree, call)):
        if arg.contains(target):
            return i
    return -1


def element_name(tree: SyntaxTree, call: Node) -> Optional[str]:
    """Return the element type of a UI call when it is a plain name."""
    args = call_arguments(tree, call)
    if not args:
        return None
    first = unwrap_parens(tree, args[0])
    if first is not None and first.kind == "identifier":
        return tree.text(first)
    return None


def ui_props(tree: SyntaxTree, call: Node) -> Optional[Node]:
    """Return the props argument (index 1) of a UI call."""
    args = call_arguments(tree, call)
    return args[1] if len(args) > 1 else None


# ---------------------------------------------------------------------------
# Object literals and patterns
# ---------------------------------------------------------------------------

def property_key(tree: SyntaxTree, prop: Node) -> Optional[str]:
    """Logical key of an object (pattern) member, or None for spreads/computed keys."""
    if prop.kind in ("shorthand_property_identifier", "shorthand_property_identifier_pattern"):
        return tree.text(prop)
    if prop.kind == "object_assignment_pattern":
        left = tree.child(prop, "left")
        return property_key(tree, left) if left is not None else None
    if prop.kind in ("pair", "pair_pattern", "method_definition"):
        key = tree.child(prop, "key") or tree.child(prop, "name")
        if key is None:
            return None
        if key.kind in ("property_identifier", "identifier", "private_property_identifier"):
            return tree.text(key)
        if key.kind == "string":
            return decode_string(tree.text(key))
        if key.kind == "number":
            value = literal_value(tree, key)
            return None if value is NOT_A_LITERAL else str(value)
    return None


def find_property(tree: SyntaxTree, obj: Optional[Node], key: str) -> Optional[Node]:
    """Find the member of an object literal or pattern by logical key, any order."""
    if obj is None or obj.kind not in ("object", "object_pattern"):
        return None
    for prop in tree.children(obj):
        if property_key(tree, prop) == key:
            return prop
    return None


def property_value(tree: SyntaxTree, prop: Optional[Node]) -> Optional[Node]:
    """Value node of a member; shorthand members are their own value."""
    if prop is None:
        return None
    if prop.kind in ("pair", "pair_pattern"):
        return tree.child(prop, "value")
    if prop.kind == "object_assignment_pattern":
        return tree.child(prop, "left")
    return prop


def destructured_binding(tree: SyntaxTree, pattern: Optional[Node], key: str) -> Optional[str]:
    """Local name bound to *key* by an object pattern, e.g. ``Q`` in ``{children:Q}``."""
    prop = find_property(tree, pattern, key)
    if prop is None:
        return None
    value = unwrap_parens(tree, property_value(tree, prop))
    if value is not None and value.kind == "assignment_pattern":
        value = tree.child(value, "left")
    if value is not None and value.kind in ("identifier", "shorthand_property_identifier_pattern"):
        return tree.text(value)
    return None


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------

def first_parameter(tree: SyntaxTree, func: Node) -> Optional[Node]:
    params = tree.child(func, "parameters")
    if params is not None:
        found = tree.children(params)
        return found[0] if found else None
    # Single bare arrow parameter: x => ...
    return tree.child(func, "parameter")


def function_body(tree: SyntaxTree, func: Node) -> Optional[Node]:
    return tree.child(func, "body")


# ---------------------------------------------------------------------------
# Small expression predicates
# ---------------------------------------------------------------------------

def is_negation(node: Optional[Node]) -> bool:
    return node is not None and node.kind == "unary_expression" and node.operator == "!"


def negated(tree: SyntaxTree, node: Optional[Node]) -> Optional[Node]:
    """Operand of a ``!`` expression, parentheses stripped."""
    if not is_negation(node):
        return None
    return unwrap_parens(tree, tree.child(node, "argument"))


def is_negated_literal(tree: SyntaxTree, node: Optional[Node], *values) -> bool:
    """True for ``!1``, ``!0`` and friends, as listed in *values*."""
    operand = negated(tree, node)
    return any(is_literal(tree, operand, v) for v in values)


def is_null(tree: SyntaxTree, node: Optional[Node]) -> bool:
    return is_literal(tree, unwrap_parens(tree, node), None)
