"""
Unit tests for the Constraints and SearchScope data models.
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from tagfinder.models.search_query import Constraints, ScopeKind, SearchScope, TypeFilter


class TestConstraints:
    """Test cases for Constraints."""

    def test_defaults_accept_everything(self):
        constraints = Constraints()
        assert constraints.type_filter == TypeFilter.ANY
        assert constraints.is_empty()
        assert not constraints.has_fuzzy()
        assert constraints.fuzzy_text == ""

    def test_extension_normalization(self):
        """Test that extensions are lowercased and lose their dot."""
        constraints = Constraints(extensions=[".PY", "rs", "", "."], type_filter=TypeFilter.FILE_ONLY)
        assert constraints.extensions == frozenset({"py", "rs"})
        assert constraints.has_extensions()

    def test_exact_phrase_case_folded(self):
        assert Constraints(exact_phrase="Straße").exact_phrase == "strasse"

    def test_empty_phrase_means_none(self):
        assert Constraints(exact_phrase="").exact_phrase is None

    def test_dir_only_with_extensions_rejected(self):
        with pytest.raises(ValidationError):
            Constraints(type_filter=TypeFilter.DIR_ONLY, extensions=["rs"])

    def test_frozen(self):
        constraints = Constraints(raw="x")
        with pytest.raises(ValidationError):
            constraints.raw = "y"

    def test_fuzzy_text(self):
        constraints = Constraints(fuzzy_terms=("a", "b"))
        assert constraints.fuzzy_text == "a b"
        assert not constraints.is_empty()

    def test_string_representation(self):
        constraints = Constraints(
            type_filter=TypeFilter.FILE_ONLY,
            extensions=["rs"],
            exact_phrase="main",
            fuzzy_terms=("src",),
        )
        text = str(constraints)
        assert "Type: file" in text
        assert "Extensions: rs" in text
        assert "Exact: 'main'" in text
        assert "Fuzzy: 'src'" in text


class TestSearchScope:
    """Test cases for SearchScope."""

    def test_unscoped_resolves_root(self):
        scope = SearchScope.unscoped("~/somewhere/../else")
        assert scope.kind == ScopeKind.UNSCOPED
        assert scope.is_unscoped
        assert Path(scope.root).is_absolute()
        assert ".." not in Path(scope.root).parts

    def test_tag_intersection(self):
        scope = SearchScope.tag_intersection(["b", "a", "b"])
        assert scope.kind == ScopeKind.TAG_INTERSECTION
        assert not scope.is_unscoped
        assert scope.tags == frozenset({"a", "b"})
        assert str(scope) == "TagIntersection(a, b)"

    def test_single_tag_string(self):
        assert SearchScope.tag_intersection("music").tags == frozenset({"music"})

    def test_variants_require_their_data(self):
        with pytest.raises(ValidationError):
            SearchScope(kind=ScopeKind.UNSCOPED)
        with pytest.raises(ValidationError):
            SearchScope.tag_intersection([])
        with pytest.raises(ValidationError):
            SearchScope.unscoped("   ")
