"""
End-to-end tests for the patch pipeline.

Covers idempotence, byte preservation, restore round-trip, ambiguity and
injection safety, and verification catching a corrupted edit.
"""

from __future__ import annotations

import os

import pytest

from conftest import BUNDLE, CONTENT, HEADER, VISIBLE_BUNDLE
from thinker.engine.disambiguator import SiteStatus
from thinker.engine.matchers import (
    COLOR_BINDING,
    HeaderColorMatcher,
    build_matchers,
    detect,
    requested_sites,
)
from thinker.engine.patch_editor import PatchOptions, plan_edits, replace_node
from thinker.engine.syntax import parse
from thinker.engine.verifier import verify
from thinker.errors import (
    AlreadyPatchedError,
    AmbiguousMatchError,
    InvalidInputError,
    NothingToPatchError,
    ParseError,
    VerificationError,
)
from thinker.pipeline import Patcher, patch_text

ALL = PatchOptions(header_color=HEADER, content_color=CONTENT)


def _read(path) -> bytes:
    with open(path, "rb") as f:
        return f.read()


class TestPatchText:
    def test_visibility_only_changes_just_those_bytes(self, bundle_bytes):
        result = patch_text(bundle_bytes, PatchOptions())
        assert result.output == VISIBLE_BUNDLE.encode("utf-8")
        assert result.checks == ["parse (javascript)", "collapsed_view", "transcript_case"]

    def test_full_patch(self, bundle_bytes):
        out = patch_text(bundle_bytes, ALL).output.decode("utf-8")
        assert f'createElement(T,{{italic:!0,color:"{HEADER}"}},"∴ Thinking…")' in out
        assert f'createElement(Hd,{{color:"{CONTENT}"}},A.thinking)' in out
        assert f"function Hd({{children:A,color:{COLOR_BINDING}}})" in out
        assert out.count(f"createElement(DF,{{color:{COLOR_BINDING}}},") == 3
        # Untouched lines survive byte for byte
        assert out.splitlines()[:3] == BUNDLE.splitlines()[:3]

    def test_labels(self, bundle_bytes):
        labels = patch_text(bundle_bytes, ALL).plan.labels
        assert labels[0] == f"Thinking header color set to {HEADER}"
        assert len(labels) == 6

    def test_idempotent(self, bundle_bytes):
        once = patch_text(bundle_bytes, ALL).output
        with pytest.raises(AlreadyPatchedError):
            patch_text(once, ALL)

    def test_patched_text_needs_no_edits(self, bundle_bytes):
        once = patch_text(bundle_bytes, ALL).output
        tree = parse(once)
        matchers = build_matchers(requested_sites(ALL))
        matches = detect(tree, matchers, ALL)
        assert all(m.status == SiteStatus.ALREADY_PATCHED for m in matches.values())
        assert plan_edits(tree, matches, matchers, ALL).empty
        assert verify(once, list(matches), ALL)[1:] == list(matches)

    def test_adding_colour_later(self, bundle_bytes):
        visible = patch_text(bundle_bytes, PatchOptions()).output
        result = patch_text(visible, PatchOptions(header_color=HEADER))
        assert result.matches["collapsed_view"].status == SiteStatus.ALREADY_PATCHED
        assert result.matches["header_color"].status == SiteStatus.DETECTED
        assert len(result.plan.edits) == 1

    def test_ambiguous_guard_aborts(self):
        twin = 'function Other(X,Y){if(!(X||Y))return R.default.createElement(T,null,"∴ Thinking (")}\n'
        with pytest.raises(AmbiguousMatchError) as exc_info:
            patch_text((BUNDLE + twin).encode("utf-8"), PatchOptions())
        assert exc_info.value.count == 2
        assert exc_info.value.site == "collapsed_view"

    def test_single_unpatched_selected(self):
        twin = 'function Other(X,Y){if(!1)return R.default.createElement(T,null,"∴ Thinking (")}\n'
        result = patch_text((BUNDLE + twin).encode("utf-8"), PatchOptions())
        out = result.output.decode("utf-8")
        assert "if(!(B||C))" not in out
        assert out.count("if(!1)return") == 2

    def test_injection_refused(self, bundle_bytes):
        with pytest.raises(InvalidInputError):
            patch_text(bundle_bytes, PatchOptions(header_color='#fff");alert(1)//'))

    def test_corrupted_edit_caught(self, bundle_bytes, monkeypatch):
        def drop_color(self, tree, candidate, options):
            return [replace_node(candidate.nodes["props"], "{italic:!0}", self.site)]

        monkeypatch.setattr(HeaderColorMatcher, "edits", drop_color)
        with pytest.raises(VerificationError, match="header_color: expected isPatched=true") as exc_info:
            patch_text(bundle_bytes, ALL)
        assert len(exc_info.value.failures) == 1

    def test_lone_surrogate_literal_does_not_abort(self, bundle_bytes):
        result = patch_text(bundle_bytes + b'var Z="\\uD83D";\n', PatchOptions())
        assert result.output.endswith(b'var Z="\\uD83D";\n')
        assert result.matches["collapsed_view"].status == SiteStatus.DETECTED

    def test_nothing_to_patch(self):
        with pytest.raises(NothingToPatchError):
            patch_text(b"var a = 1;", ALL)

    def test_unparseable(self):
        with pytest.raises(ParseError):
            patch_text(b"function (", ALL)


class TestPatcher:
    def test_write_and_restore(self, bundle_file):
        patcher = Patcher(bundle_file, ALL)
        result = patcher.run()
        assert _read(bundle_file) == result.output
        assert _read(bundle_file + ".backup") == BUNDLE.encode("utf-8")

        patcher.restore()
        assert _read(bundle_file) == BUNDLE.encode("utf-8")

    def test_dry_run_writes_nothing(self, bundle_file):
        Patcher(bundle_file, ALL).run(dry_run=True)
        assert _read(bundle_file) == BUNDLE.encode("utf-8")
        assert not os.path.exists(bundle_file + ".backup")

    def test_ambiguity_writes_nothing(self, tmp_path):
        twin = 'function Other(X,Y){if(!(X||Y))return R.default.createElement(T,null,"∴ Thinking (")}\n'
        path = tmp_path / "cli.js"
        path.write_bytes((BUNDLE + twin).encode("utf-8"))
        with pytest.raises(AmbiguousMatchError):
            Patcher(str(path), PatchOptions()).run()
        assert path.read_bytes() == (BUNDLE + twin).encode("utf-8")
        assert not (tmp_path / "cli.js.backup").exists()

    def test_second_run_keeps_first_backup(self, bundle_file):
        Patcher(bundle_file, PatchOptions()).run()
        Patcher(bundle_file, PatchOptions(header_color=HEADER)).run()
        assert _read(bundle_file + ".backup") == BUNDLE.encode("utf-8")
