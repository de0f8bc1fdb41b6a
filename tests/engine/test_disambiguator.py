"""Tests for the candidate disambiguation policy."""

from thinker.engine.disambiguator import Candidate, SiteStatus, disambiguate


def _cand(patched: bool) -> Candidate:
    return Candidate("collapsed_view", patched)


class TestDisambiguate:
    def test_no_anchor(self):
        result = disambiguate("collapsed_view", [], 0)
        assert result.status == SiteStatus.NOT_FOUND
        assert not result.found

    def test_anchor_without_shape(self):
        result = disambiguate("collapsed_view", [], 2)
        assert result.status == SiteStatus.PATTERN_MISMATCH
        assert "shape" in result.detail

    def test_single_unpatched(self):
        cand = _cand(False)
        result = disambiguate("collapsed_view", [cand], 1)
        assert result.status == SiteStatus.DETECTED
        assert result.candidate is cand
        assert result.needs_edit

    def test_all_patched_reports_first(self):
        first, second = _cand(True), _cand(True)
        result = disambiguate("collapsed_view", [first, second], 2)
        assert result.status == SiteStatus.ALREADY_PATCHED
        assert result.candidate is first
        assert result.is_patched
        assert not result.needs_edit

    def test_only_unpatched_wins(self):
        patched, unpatched = _cand(True), _cand(False)
        result = disambiguate("collapsed_view", [patched, unpatched], 2)
        assert result.status == SiteStatus.DETECTED
        assert result.candidate is unpatched

    def test_many_unpatched_is_ambiguous(self):
        result = disambiguate("collapsed_view", [_cand(False), _cand(False), _cand(True)], 3)
        assert result.status == SiteStatus.AMBIGUOUS
        assert result.count == 2
        assert result.candidate is None
