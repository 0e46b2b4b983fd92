"""Relevance scoring of one knowledge-base entry against one query.

Points accumulate across independent checks:

* title, each medical term and each common term: exact, substring or fuzzy
  hit (first tier that holds, per string);
* classification codes: exact match against the query with whitespace
  removed;
* multi-word queries: a bonus per term that covers all, or most, of the
  query words;
* a flat urgency bonus.

Every number used lives in :class:`ScoringWeights`.
"""

import re
from dataclasses import dataclass, field

from knowledge_base import SymptomEntry, Urgency
from normalizer import normalize, tokenize
from similarity import DEFAULT_THRESHOLD, fuzzy_match

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class TierWeights:
    """Points for one field, by the strongest way it matched."""

    exact: int
    substring: int
    fuzzy: int


@dataclass(frozen=True)
class ScoringWeights:
    title: TierWeights = field(default_factory=lambda: TierWeights(100, 80, 70))
    medical_term: TierWeights = field(default_factory=lambda: TierWeights(95, 75, 65))
    common_term: TierWeights = field(default_factory=lambda: TierWeights(85, 65, 55))
    code: int = 90
    all_words: int = 60
    most_words: int = 40
    # Indexed by Urgency - 1: low, medium, high, emergency.
    urgency_bonus: tuple[int, int, int, int] = (2, 5, 8, 10)
    fuzzy_threshold: float = DEFAULT_THRESHOLD

    def urgency_points(self, urgency: Urgency) -> int:
        return self.urgency_bonus[urgency - 1]


DEFAULT_WEIGHTS = ScoringWeights()


def compact_code(value: str) -> str:
    """Case-fold a code and drop all whitespace: ``" r06. 02"`` -> ``"r06.02"``."""
    return _WHITESPACE_RE.sub("", value).lower()


def _tier_points(
    term: str,
    normalized_term: str,
    query: str,
    normalized_query: str,
    tier: TierWeights,
    threshold: float,
) -> int:
    if normalized_term == normalized_query:
        return tier.exact
    if normalized_query in normalized_term:
        return tier.substring
    if fuzzy_match(term, query, threshold):
        return tier.fuzzy
    return 0


def _word_matches(query_word: str, term_words: list[str], threshold: float) -> bool:
    return any(
        query_word in term_word
        or term_word in query_word
        or fuzzy_match(term_word, query_word, threshold)
        for term_word in term_words
    )


def _multi_word_points(
    entry: SymptomEntry, words: list[str], weights: ScoringWeights
) -> int:
    points = 0
    for term in (entry.symptom, *entry.medical_terms, *entry.common_terms):
        term_words = tokenize(term)
        matched = sum(
            1
            for word in words
            if _word_matches(word, term_words, weights.fuzzy_threshold)
        )
        if matched == len(words):
            points += weights.all_words
        elif matched > len(words) / 2:
            points += weights.most_words
    return points


def relevance(
    entry: SymptomEntry, query: str, weights: ScoringWeights = DEFAULT_WEIGHTS
) -> int:
    """Points *entry* earns from its text and codes, without the urgency bonus."""
    normalized_query = normalize(query)
    words = normalized_query.split()
    threshold = weights.fuzzy_threshold
    compact_query = compact_code(query)
    code_points = weights.code * sum(
        1 for code in entry.codes if compact_code(code) == compact_query
    )
    total = code_points + _tier_points(
        entry.symptom,
        normalize(entry.symptom),
        query,
        normalized_query,
        weights.title,
        threshold,
    )
    for term in entry.medical_terms:
        total += _tier_points(
            term,
            normalize(term),
            query,
            normalized_query,
            weights.medical_term,
            threshold,
        )
    for term in entry.common_terms:
        total += _tier_points(
            term,
            normalize(term),
            query,
            normalized_query,
            weights.common_term,
            threshold,
        )

    if len(words) > 1:
        total += _multi_word_points(entry, words, weights)
    return total


def score(
    entry: SymptomEntry, query: str, weights: ScoringWeights = DEFAULT_WEIGHTS
) -> int:
    """Total score of *entry* for *query*: :func:`relevance` plus the urgency bonus."""
    return relevance(entry, query, weights) + weights.urgency_points(entry.urgency)
