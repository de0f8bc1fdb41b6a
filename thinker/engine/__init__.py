"""Structural engine: parse, locate sites, edit by byte range, verify."""

from .syntax import SyntaxTree, Node, parse
from .anchors import AnchorHit, find_literal
from .disambiguator import Candidate, SiteMatch, SiteStatus, disambiguate
from .patch_editor import Edit, EditPlan, PatchOptions, apply_edits, plan_edits
from .matchers import ShapeMatcher, build_matchers, detect, requested_sites
from .verifier import verify
from .safety import atomic_write, backup_path, create_backup, restore_backup

__all__ = [
    "SyntaxTree", "Node", "parse",
    "AnchorHit", "find_literal",
    "Candidate", "SiteMatch", "SiteStatus", "disambiguate",
    "Edit", "EditPlan", "PatchOptions", "apply_edits", "plan_edits",
    "ShapeMatcher", "build_matchers", "detect", "requested_sites",
    "verify",
    "atomic_write", "backup_path", "create_backup", "restore_backup",
]
