"""
Verifier: re-parses edited text and re-runs the matchers on it.

Edited text is accepted only when it still parses and every site that was
edited (or was already patched) now reads as patched.
"""

from __future__ import annotations

import logging
from typing import Iterable

from ..errors import ParseError, VerificationError
from .matchers import build_matchers, detect
from .patch_editor import PatchOptions
from .syntax import DEFAULT_GRAMMARS, parse

logger = logging.getLogger(__name__)


def verify(
    source: bytes,
    expected_sites: Iterable[str],
    options: PatchOptions,
    grammars=DEFAULT_GRAMMARS,
) -> list[str]:
    """
    Check that *source* parses and that each expected site is patched.

    Returns the list of passed checks.  All failures are collected before
    raising, so the error names every broken site at once.

    Raises
    ------
    VerificationError
        When the text no longer parses or any expected site is not patched.
    """
    expected = list(expected_sites)
    try:
        tree = parse(source, grammars)
    except ParseError as exc:
        logger.error("[Verify] Edited text does not parse: %s", exc)
        raise VerificationError(
            f"Patch verification failed: edited text does not parse ({exc})",
            [f"parse: {exc}"],
        ) from exc

    # Rebuild the full dependency chain so later sites see earlier results
    results = detect(tree, build_matchers(_with_prerequisites(expected)), options)

    checks: list[str] = [f"parse ({tree.grammar})"]
    failures: list[str] = []
    for site in expected:
        match = results[site]
        if match.found and match.is_patched:
            checks.append(site)
        else:
            failures.append(f"{site}: expected isPatched=true, got {match.status.value}")

    if failures:
        for failure in failures:
            logger.error("[Verify] %s", failure)
        raise VerificationError("Patch verification failed: " + "; ".join(failures), failures)

    logger.info("[Verify] %d check(s) passed", len(checks))
    return checks


def _with_prerequisites(sites: list[str]) -> list[str]:
    wanted = set(sites)
    if wanted & {"content_forwarding", "ansi_renderer"}:
        wanted.update({"content_color", "content_forwarding"})
    return list(wanted)
