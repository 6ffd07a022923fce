"""
Unit tests for the search results data models.
"""

import pytest
from pydantic import ValidationError

from tagfinder.models.search_results import MatchKind, ScoredResult, SearchSummary


class TestMatchKind:
    """Test cases for MatchKind."""

    def test_priorities(self):
        assert MatchKind.EXACT.priority < MatchKind.EXTENSION.priority < MatchKind.FUZZY.priority


class TestScoredResult:
    """Test cases for ScoredResult."""

    def test_basic_result(self):
        result = ScoredResult(
            path="/home/user/projects/main.RS",
            score=2.5,
            match_kind=MatchKind.EXTENSION,
            display="projects/main.RS",
        )
        assert result.get_name() == "main.RS"
        assert result.get_extension() == "rs"
        assert not result.is_dir

    def test_directory_has_no_extension(self):
        result = ScoredResult(path="/home/user/archive.d", is_dir=True)
        assert result.get_extension() == ""

    def test_match_kind_from_string(self):
        assert ScoredResult(path="/x", match_kind="exact").match_kind == MatchKind.EXACT

    def test_invalid_match_kind(self):
        with pytest.raises(ValidationError):
            ScoredResult(path="/x", match_kind="nearby")

    def test_empty_path_rejected(self):
        with pytest.raises(ValidationError):
            ScoredResult(path="")

    def test_to_dict(self):
        data = ScoredResult(path="/a/b.txt", score=0.5, display="b.txt").to_dict()
        assert data['match_kind'] == "fuzzy"
        assert data['name'] == "b.txt"
        assert data['score'] == 0.5

    def test_string_representation(self):
        text = str(ScoredResult(path="/a/b", score=0.25, is_dir=True, display="b"))
        assert text == "b (dir, fuzzy, score: 0.250)"


class TestSearchSummary:
    """Test cases for SearchSummary."""

    def test_defaults(self):
        summary = SearchSummary()
        assert not summary.has_errors()
        assert not summary.cancelled
        assert summary.to_dict()['error_count'] == 0

    def test_errors(self):
        summary = SearchSummary(errors={"/root/secret": "PermissionError: Permission denied"})
        assert summary.has_errors()
        assert "Errors: 1" in str(summary)

    def test_negative_counters_rejected(self):
        with pytest.raises(ValidationError):
            SearchSummary(entries_scanned=-1)

    def test_string_representation(self):
        summary = SearchSummary(entries_scanned=10, entries_matched=3, directories_traversed=2, cancelled=True)
        text = str(summary)
        assert "Matched 3 of 10 entries" in text
        assert "Traversed 2 directories" in text
        assert "Cancelled" in text
