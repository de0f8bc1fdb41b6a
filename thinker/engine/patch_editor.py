"""
Patch editor: turns site matches into byte-range edits and splices them
into the original text in a single pass.

All edits of one pass are computed against the original bytes.  Two edits
touching the same bytes indicate a matcher defect and abort the run instead
of being merged.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Mapping, Optional

from ..colors import is_hex_color
from ..errors import InvalidInputError, OverlappingEditsError
from .disambiguator import SiteMatch, SiteStatus
from .shapes import property_key
from .syntax import Node, SyntaxTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Edit:
    """Replace bytes ``[start, end)`` of the original text with *replacement*."""
    start: int
    end: int
    replacement: str
    site: str = ""


@dataclass
class PatchOptions:
    """Requested styling for one run.  ``None`` leaves a capability off."""
    header_color: Optional[str] = None
    content_color: Optional[str] = None
    content_window: int = 500


@dataclass
class EditPlan:
    """All edits of one pass plus a human-readable label per site."""
    edits: list[Edit] = field(default_factory=list)
    labels: list[str] = field(default_factory=list)

    @property
    def empty(self) -> bool:
        return not self.edits


# ---------------------------------------------------------------------------
# Replacement text builders
# ---------------------------------------------------------------------------

def color_literal(value: str) -> str:
    """Quote a colour for embedding; anything but strict hex is refused."""
    if not isinstance(value, str) or not is_hex_color(value):
        raise InvalidInputError(f'Refusing to embed colour value {value!r}')
    return json.dumps(value)


def object_with(
    tree: SyntaxTree,
    obj: Optional[Node],
    add: Mapping[str, str],
    drop: tuple[str, ...] = (),
) -> str:
    """
    Rebuild an object literal or pattern with *add* entries set.

    Existing members are kept verbatim in their original order, except those
    whose key is in *add* (replaced) or *drop* (removed).  A ``null`` or
    missing *obj* yields a fresh object.  In patterns, new entries go before
    a trailing rest element.
    """
    parts: list[str] = []
    rest: list[str] = []
    if obj is not None and obj.kind in ("object", "object_pattern"):
        for prop in tree.children(obj):
            key = property_key(tree, prop)
            if key is not None and (key in add or key in drop):
                continue
            if prop.kind == "rest_pattern":
                rest.append(tree.text(prop))
            else:
                parts.append(tree.text(prop))
    parts.extend(f"{key}:{value}" for key, value in add.items())
    return "{" + ",".join(parts + rest) + "}"


def replace_node(node: Node, replacement: str, site: str = "") -> Edit:
    return Edit(node.start, node.end, replacement, site)


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------

def plan_edits(
    tree: SyntaxTree,
    matches: Mapping[str, SiteMatch],
    matchers: Mapping[str, object],
    options: PatchOptions,
) -> EditPlan:
    """
    Collect the edits for every detected, unpatched site.

    Parameters
    ----------
    tree:
        The tree the matches were computed against.
    matches:
        Site name → disambiguated match.
    matchers:
        Site name → matcher that produced the match (provides ``edits``).
    options:
        Requested colours.

    Returns
    -------
    EditPlan
        Edits (validated for overlap) and per-site labels.
    """
    plan = EditPlan()
    for site, match in matches.items():
        matcher = matchers[site]
        if match.status == SiteStatus.ALREADY_PATCHED:
            plan.labels.append(f"{matcher.label} (already patched)")
            continue
        if not match.needs_edit:
            continue
        site_edits = matcher.edits(tree, match.candidate, options)
        logger.debug("[Edit] %s: %d edit(s)", site, len(site_edits))
        plan.edits.extend(site_edits)
        plan.labels.append(matcher.summary(match.candidate, options))

    ordered_edits(plan.edits, len(tree.source))
    return plan


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

def ordered_edits(edits: list[Edit], length: int) -> list[Edit]:
    """Sort *edits* by position, rejecting out-of-range or overlapping ones."""
    ordered = sorted(edits, key=lambda e: (e.start, e.end))
    previous: Optional[Edit] = None
    for edit in ordered:
        if not 0 <= edit.start <= edit.end <= length:
            raise OverlappingEditsError(
                f"Edit [{edit.start}, {edit.end}) from {edit.site or 'unknown site'} "
                f"is outside the text (length {length})"
            )
        if previous is not None and (
            edit.start < previous.end or edit.start == previous.start
        ):
            raise OverlappingEditsError(
                f"Overlapping edits: [{previous.start}, {previous.end}) from "
                f"{previous.site or 'unknown site'} and [{edit.start}, {edit.end}) "
                f"from {edit.site or 'unknown site'}"
            )
        previous = edit
    return ordered


def apply_edits(source: bytes, edits: list[Edit]) -> bytes:
    """
    Splice *edits* into *source* in one pass.

    Bytes outside the edited ranges are copied through unchanged.
    """
    pieces: list[bytes] = []
    cursor = 0
    for edit in ordered_edits(edits, len(source)):
        pieces.append(source[cursor:edit.start])
        pieces.append(edit.replacement.encode("utf-8"))
        cursor = edit.end
    pieces.append(source[cursor:])
    return b"".join(pieces)
