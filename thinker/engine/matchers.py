"""
Shape matchers: one per patch site.

Every matcher starts from a stable anchor (a user-facing string literal or a
structural landmark), walks the syntax tree to the enclosing construct,
checks its shape, and reports whether that construct is already in the
patched form.  Matchers never rely on identifiers chosen by the minifier or
on the position of an object property.

Matchers run in a fixed order; later ones may consult earlier results
through :class:`MatchContext` (the content colour site names the component
that the forwarding site looks for, and so on).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .anchors import AnchorHit, find_literal, is_literal, walk
from .disambiguator import Candidate, SiteMatch, SiteStatus, disambiguate
from .patch_editor import Edit, PatchOptions, color_literal, object_with, replace_node
from .shapes import (
    FUNCTION_KINDS,
    argument_index,
    call_arguments,
    callee,
    destructured_binding,
    element_name,
    find_property,
    first_parameter,
    function_body,
    is_method_call,
    is_negated_literal,
    is_null,
    is_ui_call,
    member_name,
    member_object,
    negated,
    property_key,
    property_value,
    root_identifier,
    ui_props,
    unwrap_parens,
)
from .syntax import Node, SyntaxTree

logger = logging.getLogger(__name__)

HEADER_ANCHOR = "∴ Thinking…"
COLLAPSED_ANCHOR = "∴ Thinking ("
THINKING_TAG = "thinking"

# Name injected into destructured parameters to carry the forwarded colour
COLOR_BINDING = "$thinkerColor"

# Minimum number of same-element calls inside a renderer candidate
MIN_RENDERER_CALLS = 3

SITE_ORDER: tuple[str, ...] = (
    "header_color",
    "collapsed_view",
    "transcript_case",
    "content_color",
    "content_forwarding",
    "ansi_renderer",
)
VISIBILITY_SITES = ("collapsed_view", "transcript_case")
HEADER_SITES = ("header_color",)
CONTENT_SITES = ("content_color", "content_forwarding", "ansi_renderer")


@dataclass
class MatchContext:
    """Options plus results of the matchers that already ran."""
    options: PatchOptions = field(default_factory=PatchOptions)
    results: dict[str, SiteMatch] = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------

class ShapeMatcher:
    """Locate one site, classify it, and produce its edits."""

    site: str = ""
    anchor: object = None
    label: str = ""

    def match(self, tree: SyntaxTree, context: MatchContext) -> SiteMatch:
        anchors, candidates = self.candidates(tree, context)
        result = disambiguate(self.site, candidates, anchors)
        logger.debug("[Match] %s: %s (%d anchor(s), %d candidate(s))",
                     self.site, result.status.value, anchors, len(candidates))
        return result

    def candidates(self, tree: SyntaxTree, context: MatchContext) -> tuple[int, list[Candidate]]:
        """Return ``(anchor_count, candidates)`` in document order."""
        raise NotImplementedError

    def edits(self, tree: SyntaxTree, candidate: Candidate, options: PatchOptions) -> list[Edit]:
        raise NotImplementedError

    def summary(self, candidate: Candidate, options: PatchOptions) -> str:
        return self.label

    def _candidate(self, patched: bool, nodes: dict, **facts) -> Candidate:
        return Candidate(self.site, patched, nodes=nodes, facts=facts)


def _nearest(hit: AnchorHit, kinds) -> Optional[Node]:
    for ancestor in reversed(hit.ancestors):
        if ancestor.kind in kinds:
            return ancestor
    return None


def _is_color_only(tree: SyntaxTree, props: Optional[Node]) -> bool:
    if props is None or props.kind != "object":
        return False
    members = tree.children(props)
    return bool(members) and all(property_key(tree, m) == "color" for m in members)


def _has_color(tree: SyntaxTree, node: Optional[Node]) -> bool:
    return node is not None and find_property(tree, node, "color") is not None


# ---------------------------------------------------------------------------
# header_color
# ---------------------------------------------------------------------------

class HeaderColorMatcher(ShapeMatcher):
    """The UI call rendering the expanded ``∴ Thinking…`` header line."""

    site = "header_color"
    anchor = HEADER_ANCHOR
    label = "Thinking header color"

    def candidates(self, tree, context):
        hits = find_literal(tree, self.anchor)
        found = []
        for hit in hits:
            call = None
            for ancestor in reversed(hit.ancestors):
                if is_ui_call(tree, ancestor):
                    call = ancestor
                    break
            if call is None or argument_index(tree, call, hit.node) < 2:
                continue
            props = ui_props(tree, call)
            if props is None or props.kind not in ("object", "null"):
                continue
            found.append(self._candidate(
                _has_color(tree, props),
                {"anchor": hit.node, "call": call, "props": props},
                element=element_name(tree, call),
                factory=root_identifier(tree, callee(tree, call)),
            ))
        return len(hits), found

    def edits(self, tree, candidate, options):
        props = candidate.nodes["props"]
        color = color_literal(options.header_color)
        return [replace_node(props, object_with(tree, props, {"color": color}, drop=("dimColor",)),
                             self.site)]

    def summary(self, candidate, options):
        return f"{self.label} set to {options.header_color}"


# ---------------------------------------------------------------------------
# collapsed_view
# ---------------------------------------------------------------------------

class CollapsedViewMatcher(ShapeMatcher):
    """
    The conditional that shows the one-line ``∴ Thinking (ctrl+o …)`` banner
    instead of the thinking text.

    Unpatched test shapes are ``!(A || B)`` over two plain names and ``!A``.
    The patched shape is the constant ``!1`` (or ``!true``).
    """

    site = "collapsed_view"
    anchor = COLLAPSED_ANCHOR
    label = "Collapsed thinking banner disabled"

    def candidates(self, tree, context):
        hits = find_literal(tree, self.anchor)
        found = []
        for hit in hits:
            conditional = _nearest(hit, ("if_statement", "ternary_expression"))
            if conditional is None:
                continue
            consequence = tree.child(conditional, "consequence")
            if consequence is None or not consequence.contains(hit.node):
                continue
            test = unwrap_parens(tree, tree.child(conditional, "condition"))
            if is_negated_literal(tree, test, 1, True):
                found.append(self._candidate(
                    True, {"anchor": hit.node, "conditional": conditional, "test": test}))
                continue
            names = self._guard_names(tree, test)
            if names is None:
                continue
            found.append(self._candidate(
                False, {"anchor": hit.node, "conditional": conditional, "test": test},
                names=names,
            ))
        return len(hits), found

    @staticmethod
    def _guard_names(tree: SyntaxTree, test: Optional[Node]) -> Optional[tuple[str, ...]]:
        operand = negated(tree, test)
        if operand is None:
            return None
        if operand.kind == "identifier":
            return (tree.text(operand),)
        if operand.kind == "binary_expression" and operand.operator == "||":
            left = unwrap_parens(tree, tree.child(operand, "left"))
            right = unwrap_parens(tree, tree.child(operand, "right"))
            if (left is not None and right is not None
                    and left.kind == "identifier" and right.kind == "identifier"):
                return (tree.text(left), tree.text(right))
        return None

    def edits(self, tree, candidate, options):
        return [replace_node(candidate.nodes["test"], "!1", self.site)]


# ---------------------------------------------------------------------------
# transcript_case
# ---------------------------------------------------------------------------

class TranscriptCaseMatcher(ShapeMatcher):
    """
    The ``case "thinking":`` arm of the message dispatcher.

    Unpatched, it returns null unless transcript mode or verbose is on and
    forwards the real transcript flag.  Patched, the null guard is gone and
    the element gets ``isTranscriptMode: !0`` and ``hideInTranscript: !1``.
    """

    site = "transcript_case"
    anchor = THINKING_TAG
    label = "Thinking shown outside transcript mode"

    def candidates(self, tree, context):
        cases = [
            hit for hit in find_literal(tree, self.anchor)
            if hit.parent is not None and hit.parent.kind == "switch_case"
            and (tree.child(hit.parent, "value") or hit.parent).index == hit.node.index
        ]
        found = []
        for hit in cases:
            candidate = self._inspect_case(tree, hit.parent, hit.node)
            if candidate is not None:
                found.append(candidate)
        return len(cases), found

    def _inspect_case(self, tree: SyntaxTree, case: Node, value: Node) -> Optional[Candidate]:
        statements = [n for n in tree.children(case) if n.index != value.index]
        if len(statements) == 1 and statements[0].kind == "statement_block":
            statements = tree.children(statements[0])

        guards: list[Node] = []
        for stmt in statements:
            if stmt.kind == "if_statement" and self._is_null_guard(tree, stmt):
                guards.append(stmt)
                continue
            if stmt.kind != "return_statement":
                continue
            returned = tree.children(stmt)
            call = unwrap_parens(tree, returned[0]) if returned else None
            if not is_ui_call(tree, call):
                return None
            props = ui_props(tree, call)
            transcript = find_property(tree, props, "isTranscriptMode")
            if transcript is None:
                return None
            hide = find_property(tree, props, "hideInTranscript")
            patched = (
                not guards
                and self._is_true(tree, property_value(tree, transcript))
                and (hide is None or self._is_false(tree, property_value(tree, hide)))
            )
            nodes = {"case": case, "call": call, "props": props, "transcript": transcript}
            if hide is not None:
                nodes["hide"] = hide
            return self._candidate(patched, nodes, guards=guards,
                                   element=element_name(tree, call))
        return None

    @staticmethod
    def _is_null_guard(tree: SyntaxTree, stmt: Node) -> bool:
        if tree.child(stmt, "alternative") is not None:
            return False
        body = tree.child(stmt, "consequence")
        if body is not None and body.kind == "statement_block":
            inner = tree.children(body)
            body = inner[0] if len(inner) == 1 else None
        if body is None or body.kind != "return_statement":
            return False
        returned = tree.children(body)
        return len(returned) == 1 and is_null(tree, returned[0])

    @staticmethod
    def _is_true(tree: SyntaxTree, node: Optional[Node]) -> bool:
        node = unwrap_parens(tree, node)
        return is_negated_literal(tree, node, 0, False) or is_literal(tree, node, True)

    @staticmethod
    def _is_false(tree: SyntaxTree, node: Optional[Node]) -> bool:
        node = unwrap_parens(tree, node)
        return is_negated_literal(tree, node, 1, True) or is_literal(tree, node, False)

    @staticmethod
    def _set_flag(tree: SyntaxTree, prop: Node, key: str, value: str, site: str) -> Edit:
        if prop.kind == "pair":
            return replace_node(tree.child(prop, "value"), value, site)
        return replace_node(prop, f"{key}:{value}", site)

    def edits(self, tree, candidate, options):
        edits = [replace_node(guard, "", self.site) for guard in candidate.facts["guards"]]
        transcript = candidate.nodes["transcript"]
        if not self._is_true(tree, property_value(tree, transcript)):
            edits.append(self._set_flag(tree, transcript, "isTranscriptMode", "!0", self.site))
        hide = candidate.nodes.get("hide")
        if hide is not None and not self._is_false(tree, property_value(tree, hide)):
            edits.append(self._set_flag(tree, hide, "hideInTranscript", "!1", self.site))
        return edits


# ---------------------------------------------------------------------------
# content_color
# ---------------------------------------------------------------------------

class ContentColorMatcher(ShapeMatcher):
    """
    The UI call rendering the thinking text, found as the child of an
    indented (``paddingLeft``) wrapper shortly after the expanded header.
    """

    site = "content_color"
    anchor = HEADER_ANCHOR
    label = "Thinking content color"

    def candidates(self, tree, context):
        anchors, headers = HeaderColorMatcher().candidates(tree, context)
        window = context.options.content_window
        found = []
        seen: set[int] = set()
        for header in headers:
            end = header.nodes["anchor"].end
            for wrapper in tree.nodes_between(end, end + window, "call_expression"):
                if not is_ui_call(tree, wrapper):
                    continue
                if find_property(tree, ui_props(tree, wrapper), "paddingLeft") is None:
                    continue
                for child in call_arguments(tree, wrapper)[2:]:
                    content = unwrap_parens(tree, child)
                    if not is_ui_call(tree, content) or content.index in seen:
                        continue
                    props = ui_props(tree, content)
                    if props is None or props.kind not in ("object", "null"):
                        continue
                    seen.add(content.index)
                    found.append(self._candidate(
                        _has_color(tree, props),
                        {"wrapper": wrapper, "content": content, "props": props},
                        component=element_name(tree, content),
                    ))
        return anchors, found

    def edits(self, tree, candidate, options):
        props = candidate.nodes["props"]
        color = color_literal(options.content_color)
        return [replace_node(props, object_with(tree, props, {"color": color}, drop=("dimColor",)),
                             self.site)]

    def summary(self, candidate, options):
        return f"{self.label} set to {options.content_color}"


# ---------------------------------------------------------------------------
# content_forwarding
# ---------------------------------------------------------------------------

class ContentForwardingMatcher(ShapeMatcher):
    """
    The content component named by ``content_color``.  It splits its text
    into paragraphs and pushes one renderer element per paragraph; the patch
    accepts a ``color`` prop and forwards it to every pushed element.
    """

    site = "content_forwarding"
    anchor = "content component"
    label = "Content color forwarding"

    def match(self, tree, context):
        content = context.results.get("content_color")
        if content is None or not content.found or not content.candidate.facts.get("component"):
            return SiteMatch(self.site, SiteStatus.NOT_FOUND, detail="content component unknown")
        component = content.candidate.facts["component"]
        functions, candidates = self.candidates(tree, context)
        if not functions:
            # Component referenced but never defined
            logger.debug("[Match] %s: no function named %s", self.site, component)
            return SiteMatch(self.site, SiteStatus.PATTERN_MISMATCH,
                             detail=f"no function named {component}")
        return disambiguate(self.site, candidates, functions,
                            detail=f"{component} does not push renderer elements")

    def candidates(self, tree, context):
        component = context.results["content_color"].candidate.facts["component"]
        functions = list(self._functions_named(tree, component))
        found = []
        for func in functions:
            param = first_parameter(tree, func)
            if param is None or param.kind != "object_pattern":
                continue
            if destructured_binding(tree, param, "children") is None:
                continue
            body = function_body(tree, func)
            pushes = self._pushed_elements(tree, body) if body is not None else []
            if not pushes:
                continue
            push_props = [ui_props(tree, call) for call in pushes]
            patched = _has_color(tree, param) and all(_has_color(tree, p) for p in push_props)
            elements = []
            for call in pushes:
                name = element_name(tree, call)
                if name and name not in elements:
                    elements.append(name)
            found.append(self._candidate(
                patched, {"function": func, "param": param},
                component=component, push_props=push_props, elements=elements,
            ))
        return len(functions), found

    @staticmethod
    def _functions_named(tree: SyntaxTree, name: str):
        for node in tree.nodes:
            if node.kind in ("function_declaration", "generator_function_declaration"):
                if tree.text(tree.child(node, "name")) == name:
                    yield node
            elif node.kind == "variable_declarator":
                target = tree.child(node, "name")
                value = unwrap_parens(tree, tree.child(node, "value"))
                if (target is not None and target.kind == "identifier"
                        and tree.text(target) == name
                        and value is not None and value.kind in FUNCTION_KINDS):
                    yield value

    @staticmethod
    def _pushed_elements(tree: SyntaxTree, body: Node) -> list[Node]:
        """UI calls in ``list.push(UI(E, {key: ...}, text.trim()))`` statements."""
        pushed = []
        for node in tree.subtree(body):
            if not is_method_call(tree, node, ("push",)):
                continue
            target = unwrap_parens(tree, member_object(tree, callee(tree, node)))
            if target is None or target.kind != "identifier":
                continue
            args = call_arguments(tree, node)
            element = unwrap_parens(tree, args[0]) if args else None
            if not is_ui_call(tree, element):
                continue
            props = ui_props(tree, element)
            if props is None or props.kind != "object" or find_property(tree, props, "key") is None:
                continue
            children = call_arguments(tree, element)[2:]
            if not children or not is_method_call(tree, unwrap_parens(tree, children[0]), ("trim",)):
                continue
            pushed.append(element)
        return pushed

    def edits(self, tree, candidate, options):
        param = candidate.nodes["param"]
        binding = destructured_binding(tree, param, "color")
        edits = []
        if binding is None:
            binding = COLOR_BINDING
            edits.append(replace_node(
                param, object_with(tree, param, {"color": binding}), self.site))
        for props in candidate.facts["push_props"]:
            if not _has_color(tree, props):
                edits.append(replace_node(
                    props, object_with(tree, props, {"color": binding}), self.site))
        return edits

    def summary(self, candidate, options):
        return f"{self.label} through {candidate.facts['component']}"


# ---------------------------------------------------------------------------
# ansi_renderer
# ---------------------------------------------------------------------------

class AnsiRendererMatcher(ShapeMatcher):
    """
    The memoised component that renders one paragraph of possibly
    ANSI-escaped text.  It is recognised by its ``children`` parameter, at
    least :data:`MIN_RENDERER_CALLS` calls creating the same root element
    with null props, and three body features: a ``.length === 1`` check, an
    ``Object.keys`` call and a ``typeof`` test.
    """

    site = "ansi_renderer"
    anchor = "children"
    label = "ANSI renderer color"

    def match(self, tree, context):
        anchors, candidates = self.candidates(tree, context)
        forwarding = context.results.get("content_forwarding")
        if len(candidates) > 1 and forwarding is not None and forwarding.found:
            wanted = set(forwarding.candidate.facts.get("elements", ()))
            narrowed = [c for c in candidates if c.facts.get("binding") in wanted]
            if narrowed:
                logger.debug("[Match] %s: narrowed %d candidates to %d by forwarded element",
                             self.site, len(candidates), len(narrowed))
                candidates = narrowed
        return disambiguate(self.site, candidates, anchors)

    def candidates(self, tree, context):
        anchors = 0
        found = []
        for node, ancestors in walk(tree):
            if not is_method_call(tree, node, ("memo",)):
                continue
            args = call_arguments(tree, node)
            func = unwrap_parens(tree, args[0]) if args else None
            if func is None or func.kind not in FUNCTION_KINDS:
                continue
            param = first_parameter(tree, func)
            if param is None or param.kind != "object_pattern":
                continue
            if destructured_binding(tree, param, "children") is None:
                continue
            anchors += 1
            candidate = self._inspect(tree, node, func, param, ancestors[-1] if ancestors else None)
            if candidate is not None:
                found.append(candidate)
        return anchors, found

    def _inspect(self, tree, memo_call, func, param, parent) -> Optional[Candidate]:
        body = function_body(tree, func)
        if body is None:
            return None

        calls: list[Node] = []
        root = None
        length_one = object_keys = type_test = False
        for node in tree.subtree(body):
            if node.kind == "binary_expression" and node.operator in ("===", "=="):
                left = unwrap_parens(tree, tree.child(node, "left"))
                right = unwrap_parens(tree, tree.child(node, "right"))
                for a, b in ((left, right), (right, left)):
                    if member_name(tree, a) == "length" and is_literal(tree, b, 1):
                        length_one = True
            elif node.kind == "unary_expression" and node.operator == "typeof":
                type_test = True
            elif node.kind == "call_expression":
                fn = callee(tree, node)
                if member_name(tree, fn) == "keys" and root_identifier(tree, fn) == "Object":
                    object_keys = True
                elif is_ui_call(tree, node):
                    props = ui_props(tree, node)
                    name = element_name(tree, node)
                    if name is None or not (is_null(tree, props) or _is_color_only(tree, props)):
                        continue
                    if root is None:
                        root = name
                    if name == root:
                        calls.append(node)

        if len(calls) < MIN_RENDERER_CALLS or not (length_one and object_keys and type_test):
            return None

        bare = [c for c in calls if is_null(tree, ui_props(tree, c))]
        return self._candidate(
            _has_color(tree, param) and not bare,
            {"memo": memo_call, "function": func, "param": param},
            binding=self._binding(tree, parent),
            root=root,
            bare_calls=bare,
        )

    @staticmethod
    def _binding(tree: SyntaxTree, parent: Optional[Node]) -> Optional[str]:
        """Name the memo call is assigned to, if any."""
        if parent is None:
            return None
        if parent.kind == "variable_declarator":
            target = tree.child(parent, "name")
        elif parent.kind == "assignment_expression":
            target = tree.child(parent, "left")
        else:
            return None
        if target is not None and target.kind == "identifier":
            return tree.text(target)
        return None

    def edits(self, tree, candidate, options):
        param = candidate.nodes["param"]
        binding = destructured_binding(tree, param, "color")
        edits = []
        if binding is None:
            binding = COLOR_BINDING
            edits.append(replace_node(
                param, object_with(tree, param, {"color": binding}), self.site))
        for call in candidate.facts["bare_calls"]:
            edits.append(replace_node(ui_props(tree, call), f"{{color:{binding}}}", self.site))
        return edits

    def summary(self, candidate, options):
        name = candidate.facts.get("binding") or "renderer"
        return f"{self.label} applied in {name}"


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

MATCHERS: dict[str, type[ShapeMatcher]] = {
    cls.site: cls for cls in (
        HeaderColorMatcher,
        CollapsedViewMatcher,
        TranscriptCaseMatcher,
        ContentColorMatcher,
        ContentForwardingMatcher,
        AnsiRendererMatcher,
    )
}


def requested_sites(options: PatchOptions) -> list[str]:
    """Sites exercised by *options*, in matcher order."""
    wanted = set(VISIBILITY_SITES)
    if options.header_color:
        wanted.update(HEADER_SITES)
    if options.content_color:
        wanted.update(CONTENT_SITES)
    return [site for site in SITE_ORDER if site in wanted]


def build_matchers(sites) -> dict[str, ShapeMatcher]:
    return {site: MATCHERS[site]() for site in SITE_ORDER if site in set(sites)}


def detect(
    tree: SyntaxTree,
    matchers: dict[str, ShapeMatcher],
    options: PatchOptions,
) -> dict[str, SiteMatch]:
    """Run *matchers* in order and return each site's match."""
    context = MatchContext(options=options)
    for site, matcher in matchers.items():
        context.results[site] = matcher.match(tree, context)
    return context.results
