"""
Disambiguator: picks one candidate per site or fails closed.

Policy favours safety over recall: missing a valid site is acceptable,
patching the wrong one is not.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .syntax import Node

logger = logging.getLogger(__name__)


class SiteStatus(str, Enum):
    DETECTED = "detected"
    ALREADY_PATCHED = "already-patched"
    NOT_FOUND = "not-found"
    PATTERN_MISMATCH = "shape-mismatch"
    AMBIGUOUS = "ambiguous"


@dataclass
class Candidate:
    """One structurally valid occurrence of a site's shape."""
    site: str
    is_patched: bool
    nodes: dict[str, Node] = field(default_factory=dict)
    facts: dict[str, Any] = field(default_factory=dict)


@dataclass
class SiteMatch:
    """Outcome of matching one site against one tree."""
    site: str
    status: SiteStatus
    candidate: Optional[Candidate] = None
    count: int = 0
    detail: str = ""

    @property
    def found(self) -> bool:
        return self.candidate is not None

    @property
    def is_patched(self) -> bool:
        return self.candidate is not None and self.candidate.is_patched

    @property
    def needs_edit(self) -> bool:
        return self.status == SiteStatus.DETECTED


def disambiguate(
    site: str,
    candidates: list[Candidate],
    anchors_found: int,
    detail: str = "",
) -> SiteMatch:
    """Resolve raw *candidates* for *site* into a single :class:`SiteMatch`.

    Parameters
    ----------
    site:
        Site name, used in diagnostics.
    candidates:
        Structurally valid candidates in document order.
    anchors_found:
        Number of anchor hits; zero means the site does not apply.
    detail:
        Optional reason reported with NOT_FOUND / PATTERN_MISMATCH.
    """
    if anchors_found == 0:
        return SiteMatch(site, SiteStatus.NOT_FOUND, detail=detail or "anchor absent")

    if not candidates:
        logger.debug("[Match] %s: %d anchor(s) but no recognised shape", site, anchors_found)
        return SiteMatch(site, SiteStatus.PATTERN_MISMATCH,
                         detail=detail or "anchor present, shape unrecognised")

    unpatched = [c for c in candidates if not c.is_patched]
    if not unpatched:
        return SiteMatch(site, SiteStatus.ALREADY_PATCHED, candidates[0], len(candidates))

    if len(unpatched) == 1:
        if len(candidates) > 1:
            logger.debug(
                "[Match] %s: %d candidates, selecting the only unpatched one",
                site, len(candidates),
            )
        return SiteMatch(site, SiteStatus.DETECTED, unpatched[0], len(candidates))

    logger.debug("[Match] %s: ambiguous, %d unpatched candidates", site, len(unpatched))
    return SiteMatch(
        site, SiteStatus.AMBIGUOUS, count=len(unpatched),
        detail=f"{len(unpatched)} unpatched candidates",
    )
