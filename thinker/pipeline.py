"""
Patch pipeline: load -> detect -> plan -> verify -> write.

:func:`patch_text` runs the whole detection/edit/verification chain in
memory.  :class:`Patcher` wraps it around a file on disk, exposing each step
so callers can report progress between them.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from .config import Config
from .engine.disambiguator import SiteMatch, SiteStatus
from .engine.matchers import build_matchers, detect, requested_sites
from .engine.patch_editor import EditPlan, PatchOptions, apply_edits, plan_edits
from .engine.safety import atomic_write, backup_path, restore_backup
from .engine.syntax import DEFAULT_GRAMMARS, SyntaxTree, parse
from .engine.verifier import verify
from .errors import (
    AlreadyPatchedError,
    AmbiguousMatchError,
    NothingToPatchError,
    PatchIOError,
    TargetNotFoundError,
)

logger = logging.getLogger(__name__)


@dataclass
class PatchResult:
    """Everything one in-memory pass produced."""
    matches: dict[str, SiteMatch] = field(default_factory=dict)
    plan: EditPlan = field(default_factory=EditPlan)
    checks: list[str] = field(default_factory=list)
    output: bytes = b""

    @property
    def changed(self) -> bool:
        return bool(self.plan.edits)


def check_outcomes(matches: dict[str, SiteMatch]) -> None:
    """
    Abort unless at least one requested site can be patched.

    Raises
    ------
    AmbiguousMatchError
        A requested site has several unpatched candidates.
    AlreadyPatchedError
        Nothing left to patch and at least one site reads as patched.
    NothingToPatchError
        No site could be matched at all.
    """
    for match in matches.values():
        if match.status == SiteStatus.AMBIGUOUS:
            raise AmbiguousMatchError(match.site, match.count)

    if any(m.needs_edit for m in matches.values()):
        return
    if any(m.status == SiteStatus.ALREADY_PATCHED for m in matches.values()):
        raise AlreadyPatchedError(
            "File appears already patched. Use --restore to reset, then re-patch.")
    raise NothingToPatchError("No patchable patterns found")


def _detect(tree: SyntaxTree, options: PatchOptions):
    matchers = build_matchers(requested_sites(options))
    return matchers, detect(tree, matchers, options)


def patch_text(
    source: bytes,
    options: PatchOptions,
    grammars=DEFAULT_GRAMMARS,
) -> PatchResult:
    """Detect, edit and verify *source* without touching any file."""
    tree = parse(source, grammars)
    matchers, matches = _detect(tree, options)
    check_outcomes(matches)

    plan = plan_edits(tree, matches, matchers, options)
    output = apply_edits(source, plan.edits)
    expected = [site for site, match in matches.items() if match.found]
    checks = verify(output, expected, options, grammars)
    return PatchResult(matches=matches, plan=plan, checks=checks, output=output)


class Patcher:
    """Runs the pipeline against one target file."""

    def __init__(self, target: str, options: PatchOptions, config: Optional[Config] = None):
        self.target = target
        self.options = options
        self.grammars = tuple(config.GRAMMARS) if config else DEFAULT_GRAMMARS
        self.backup = backup_path(target, config.BACKUP_SUFFIX) if config else backup_path(target)

        self.source: bytes = b""
        self.tree: Optional[SyntaxTree] = None
        self.matchers: dict = {}
        self.result = PatchResult()

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def load(self) -> bytes:
        try:
            with open(self.target, "rb") as f:
                self.source = f.read()
        except FileNotFoundError as exc:
            raise TargetNotFoundError(f"Target file not found: {self.target}") from exc
        except OSError as exc:
            raise PatchIOError(f"Cannot read {self.target}: {exc}") from exc
        logger.debug("Loaded %d bytes from %s", len(self.source), self.target)
        return self.source

    def detect(self) -> dict[str, SiteMatch]:
        self.tree = parse(self.source, self.grammars)
        self.matchers, self.result.matches = _detect(self.tree, self.options)
        return self.result.matches

    def plan(self) -> EditPlan:
        check_outcomes(self.result.matches)
        self.result.plan = plan_edits(self.tree, self.result.matches, self.matchers, self.options)
        self.result.output = apply_edits(self.source, self.result.plan.edits)
        return self.result.plan

    def verify(self) -> list[str]:
        expected = [site for site, match in self.result.matches.items() if match.found]
        self.result.checks = verify(self.result.output, expected, self.options, self.grammars)
        return self.result.checks

    def write(self) -> None:
        if not self.result.changed:
            logger.info("No edits to write for %s", self.target)
            return
        atomic_write(self.target, self.result.output, self.backup)

    def restore(self) -> None:
        restore_backup(self.target, self.backup)

    # ------------------------------------------------------------------

    def run(self, dry_run: bool = False) -> PatchResult:
        """Every step in order; the file is written only when not *dry_run*."""
        self.load()
        self.detect()
        self.plan()
        self.verify()
        if not dry_run:
            self.write()
        return self.result
