"""
Fuzzy path matching for Tag Finder.

Classic subsequence matching in the style of editor "go to file" pickers:
every character of the query must appear in the candidate, in order,
ignoring case. Among the ways to place those characters, the best one is
found by dynamic programming and scored.

The score rewards runs of consecutive characters and matches at the start of
path segments or words, and penalizes gaps between matches and long
candidates. A candidate that contains the query as one contiguous substring
is always ranked above any candidate that only matches it scattered.
"""

import os
from typing import List, Optional
import logging


logger = logging.getLogger(__name__)

SEGMENT_START_BONUS = 48
WORD_START_BONUS = 24
CONSECUTIVE_BONUS = 16
CASE_MATCH_BONUS = 1
GAP_PENALTY = 3
LENGTH_PENALTY = 1

# Raw scores are squashed into [0, 1]; contiguous matches live in [2, 3]
SQUASH_SCALE = 64.0
CONTIGUOUS_TIER = 2.0

_PATH_SEPARATORS = frozenset({'/', os.sep})


def _char_matches(query_char: str, candidate_char: str) -> bool:
    """Case-insensitive comparison; a space in the query matches any separator."""
    if query_char.isspace():
        return not candidate_char.isalnum()
    return query_char == candidate_char


def is_subsequence(candidate: str, terms: str) -> bool:
    """Whether ``terms`` appears in ``candidate`` in order, ignoring case."""
    it = iter([c.lower() for c in candidate])
    return all(any(_char_matches(q.lower(), c) for c in it) for q in terms)


def _boundary_bonuses(candidate: str) -> List[int]:
    bonuses = []
    previous = ''
    for index, char in enumerate(candidate):
        if index == 0 or previous in _PATH_SEPARATORS:
            bonuses.append(SEGMENT_START_BONUS)
        elif char.isalnum() and not previous.isalnum():
            bonuses.append(WORD_START_BONUS)
        elif previous.islower() and char.isupper():
            bonuses.append(WORD_START_BONUS)
        else:
            bonuses.append(0)
        previous = char
    return bonuses


class FuzzyMatcher:
    """
    Scores how well a candidate path loosely matches a query.

    The matcher is a pure function of its inputs; the same candidate and terms
    always produce the same score.
    """

    def score(self, candidate: str, terms: str) -> Optional[float]:
        """
        Score ``candidate`` against ``terms``.

        Args:
            candidate: Path or name to test
            terms: Query text (fuzzy words joined by single spaces)

        Returns:
            None when ``terms`` is not an ordered subsequence of ``candidate``;
            otherwise a score where higher is better. Empty terms score 0.0.
        """
        if not terms:
            return 0.0
        if not candidate or len(terms) > len(candidate):
            return None

        if not is_subsequence(candidate, terms):
            return None

        folded_terms = [c.lower() for c in terms]
        folded_candidate = [c.lower() for c in candidate]

        raw = self._best_alignment(candidate, terms, folded_candidate, folded_terms)
        if raw is None:
            return None
        raw -= LENGTH_PENALTY * len(candidate)

        squashed = 0.5 + 0.5 * raw / (abs(raw) + SQUASH_SCALE)
        if self._contains(folded_candidate, folded_terms):
            return CONTIGUOUS_TIER + squashed
        return squashed

    def matches(self, candidate: str, terms: str) -> bool:
        return self.score(candidate, terms) is not None

    @staticmethod
    def _contains(candidate: List[str], terms: List[str]) -> bool:
        """Whether the terms match a contiguous run of the candidate."""
        m = len(terms)
        for start in range(len(candidate) - m + 1):
            if all(_char_matches(terms[k], candidate[start + k]) for k in range(m)):
                return True
        return False

    @staticmethod
    def _best_alignment(candidate: str, terms: str,
                        folded_candidate: List[str], folded_terms: List[str]) -> Optional[int]:
        """
        Best raw score over all placements of the terms in the candidate.

        ``row[j]`` holds the best score of matching ``terms[:i + 1]`` with the
        i-th term character placed at candidate position ``j``. A placement
        either extends a run (previous character at ``j - 1``) or jumps over a
        gap; the best gap predecessor is tracked incrementally so each row is
        linear in the candidate length.
        """
        n = len(candidate)
        bonuses = _boundary_bonuses(candidate)
        previous: List[Optional[int]] = []

        for i, query_char in enumerate(folded_terms):
            row: List[Optional[int]] = [None] * n
            best_gap = None  # max over k <= j - 2 of previous[k] + GAP_PENALTY * k

            for j in range(i, n):
                if i > 0 and j >= 2:
                    before = previous[j - 2]
                    if before is not None:
                        value = before + GAP_PENALTY * (j - 2)
                        if best_gap is None or value > best_gap:
                            best_gap = value

                if not _char_matches(query_char, folded_candidate[j]):
                    continue

                char_score = bonuses[j]
                if terms[i] == candidate[j]:
                    char_score += CASE_MATCH_BONUS

                if i == 0:
                    row[j] = char_score
                    continue

                best = None
                if previous[j - 1] is not None:
                    best = previous[j - 1] + CONSECUTIVE_BONUS
                if best_gap is not None:
                    jump = best_gap - GAP_PENALTY * (j - 1)
                    if best is None or jump > best:
                        best = jump
                if best is not None:
                    row[j] = char_score + best

            previous = row

        scores = [value for value in previous if value is not None]
        return max(scores) if scores else None


_default_matcher = FuzzyMatcher()


def fuzzy_score(candidate: str, terms: str) -> Optional[float]:
    """Convenience function scoring with the default matcher."""
    return _default_matcher.score(candidate, terms)
