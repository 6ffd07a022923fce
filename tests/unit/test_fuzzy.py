"""
Unit tests for the fuzzy matcher.
"""

import pytest

from tagfinder.tools.fuzzy import FuzzyMatcher, fuzzy_score, is_subsequence, CONTIGUOUS_TIER


class TestSubsequence:
    """Test cases for the subsequence prefilter."""

    def test_in_order(self):
        assert is_subsequence("cat.png", "cpg")

    def test_out_of_order(self):
        assert not is_subsequence("cat.png", "tac")

    def test_case_insensitive(self):
        assert is_subsequence("CamelCase", "cc")


class TestFuzzyMatcher:
    """Test cases for FuzzyMatcher scoring."""

    def setup_method(self):
        self.matcher = FuzzyMatcher()

    def test_no_match(self):
        assert self.matcher.score("cat.png", "dog") is None

    def test_terms_longer_than_candidate(self):
        assert self.matcher.score("ab", "abc") is None

    def test_empty_terms_score_zero(self):
        assert self.matcher.score("anything", "") == 0.0

    def test_empty_candidate(self):
        assert self.matcher.score("", "a") is None

    def test_case_insensitive_match(self):
        assert self.matcher.score("README.md", "readme") is not None

    def test_contiguous_beats_scattered(self):
        contiguous = self.matcher.score("cat.png", "cat")
        scattered = self.matcher.score("c_a_t.png", "cat")
        assert contiguous is not None and scattered is not None
        assert contiguous > scattered

    def test_contiguous_tier(self):
        """Test that any contiguous match outranks every scattered one."""
        long_contiguous = self.matcher.score("some/very/long/path/to/a/file_with_cat_inside.txt", "cat")
        short_scattered = self.matcher.score("c/a/t", "cat")
        assert long_contiguous >= CONTIGUOUS_TIER
        assert short_scattered < CONTIGUOUS_TIER
        assert long_contiguous > short_scattered

    def test_segment_start_rewarded(self):
        anchored = self.matcher.score("src/main.rs", "main")
        buried = self.matcher.score("src/domain.rs", "main")
        assert anchored > buried

    def test_shorter_candidate_rewarded(self):
        assert self.matcher.score("kfiles", "kf") > self.matcher.score("kfiles/src", "kf")

    def test_consecutive_run_rewarded(self):
        assert self.matcher.score("abxcd", "abcd") > self.matcher.score("axbxcxd", "abcd")

    def test_case_match_bonus(self):
        assert self.matcher.score("Main", "Main") > self.matcher.score("Main", "main")

    def test_space_matches_separator(self):
        """Test that multi-word terms match across separators."""
        assert self.matcher.score("my_report.pdf", "my report") is not None
        assert self.matcher.score("my-report.pdf", "my report") >= CONTIGUOUS_TIER

    def test_deterministic(self):
        scores = {fuzzy_score("projects/kfiles/src/main.rs", "kf main") for _ in range(5)}
        assert len(scores) == 1

    @pytest.mark.parametrize("candidate,terms", [
        ("a", "a"),
        ("abc/def/ghi", "adg"),
        ("x" * 200, "xx"),
        ("Üml/äut", "üä"),
    ])
    def test_scores_are_bounded(self, candidate, terms):
        score = self.matcher.score(candidate, terms)
        assert score is not None
        assert 0.0 <= score <= CONTIGUOUS_TIER + 1.0

    def test_matches_helper(self):
        assert self.matcher.matches("hello", "hlo")
        assert not self.matcher.matches("hello", "ole")
