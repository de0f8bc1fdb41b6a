"""
thinker: structural patcher for the Claude Code ``cli.js`` bundle.

Public API for library usage::

    from thinker import PatchOptions, patch_text

    result = patch_text(source, PatchOptions(header_color="#ff69b4"))
    new_source = result.output
"""

from .engine.patch_editor import PatchOptions
from .errors import ExitStatus, ThinkerError
from .pipeline import Patcher, PatchResult, patch_text

__all__ = [
    "PatchOptions", "PatchResult", "Patcher", "patch_text",
    "ExitStatus", "ThinkerError",
]
