"""Urgency-aware symptom search over a KnowledgeBase."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from functools import lru_cache

import numpy as np

from knowledge_base import (
    KnowledgeBase,
    SymptomEntry,
    Urgency,
    default_knowledge_base,
)
from scorer import DEFAULT_WEIGHTS, ScoringWeights, relevance

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
RELATED_LOOKUP_SIZE = 5


@dataclass
class SearchResult:
    """A single search hit."""

    rank: int
    symptom: str
    urgency: Urgency
    score: int
    entry: SymptomEntry


def _unique(values: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(values))


class SymptomSearchEngine:
    """Score every entry against a query and rank by urgency, then score."""

    def __init__(
        self, kb: KnowledgeBase, weights: ScoringWeights = DEFAULT_WEIGHTS
    ) -> None:
        self._kb = kb
        self._weights = weights
        self._entries: tuple[SymptomEntry, ...] = kb.entries

        # Per-entry sort key and flat bonus never depend on the query
        self._tiers = np.array([int(e.urgency) for e in self._entries], dtype=np.int64)
        self._bonuses = np.array(
            [weights.urgency_points(e.urgency) for e in self._entries], dtype=np.int64
        )

    @property
    def entries(self) -> tuple[SymptomEntry, ...]:
        return self._entries

    def rank(self, query: str, max_results: int = 10) -> list[SearchResult]:
        """Return up to *max_results* scored hits for *query*.

        Hits are ordered by urgency tier (emergency first), then by descending
        score; entries tied on both keep their knowledge-base order. Only
        entries with a positive score are kept; the urgency bonus is always
        added, so an entry with no textual or code match still ranks by its
        tier. Queries shorter than two characters after trimming return
        nothing.
        """
        if not query or len(query.strip()) < MIN_QUERY_LENGTH or max_results <= 0:
            return []

        matched = np.array(
            [relevance(e, query, self._weights) for e in self._entries],
            dtype=np.int64,
        )
        scores = matched + self._bonuses
        # lexsort is stable and treats its last key as the primary one
        order: np.ndarray = np.lexsort((-scores, -self._tiers))
        hits = [int(idx) for idx in order if scores[idx] > 0][:max_results]
        logger.debug(
            "query=%r matched=%d returned=%d",
            query,
            int(np.count_nonzero(matched)),
            len(hits),
        )
        return [
            SearchResult(
                rank=rank + 1,
                symptom=self._entries[idx].symptom,
                urgency=self._entries[idx].urgency,
                score=int(scores[idx]),
                entry=self._entries[idx],
            )
            for rank, idx in enumerate(hits)
        ]

    def search_symptoms(self, query: str, max_results: int = 10) -> list[SymptomEntry]:
        """Ranked entries for *query*; see :meth:`rank` for the ordering."""
        return [r.entry for r in self.rank(query, max_results)]

    def search_by_code(self, code: str) -> list[SymptomEntry]:
        """Entries carrying *code*, compared case-insensitively, in table order."""
        wanted = code.lower()
        return [e for e in self._entries if any(c.lower() == wanted for c in e.codes)]

    # ------------------------------------------------------------------
    # Convenience projections
    # ------------------------------------------------------------------

    def conditions_for_symptom(self, query: str) -> list[str]:
        """Distinct conditions linked to the top five matches, first seen first."""
        results = self.search_symptoms(query, RELATED_LOOKUP_SIZE)
        return _unique(c for e in results for c in e.associated_conditions)

    def tools_for_symptom(self, query: str) -> list[str]:
        """Distinct assessment tools linked to the top five matches."""
        results = self.search_symptoms(query, RELATED_LOOKUP_SIZE)
        return _unique(t for e in results for t in e.associated_tools)

    def _best_match(self, query: str) -> SymptomEntry | None:
        results = self.search_symptoms(query, 1)
        return results[0] if results else None

    def _best_match_field(self, query: str, name: str) -> list[str]:
        # Only the top match is consulted, never an aggregate across hits
        best = self._best_match(query)
        values = getattr(best, name) if best is not None else None
        return list(values) if values else []

    def red_flags_for(self, query: str) -> list[str]:
        """Red flags of the best match, ``[]`` when it lists none."""
        return self._best_match_field(query, "red_flags")

    def differentials_for(self, query: str) -> list[str]:
        """Differential diagnoses of the best match."""
        return self._best_match_field(query, "differentials")

    def physical_exam_for(self, query: str) -> list[str]:
        """Physical exam findings of the best match."""
        return self._best_match_field(query, "physical_exam_findings")

    def diagnostic_tests_for(self, query: str) -> list[str]:
        """Diagnostic tests of the best match."""
        return self._best_match_field(query, "diagnostic_tests")

    def urgency_for(self, query: str) -> Urgency:
        """Urgency of the best match, or ``Urgency.LOW`` when nothing matches."""
        best = self._best_match(query)
        return best.urgency if best is not None else Urgency.LOW


@lru_cache(maxsize=1)
def default_engine() -> SymptomSearchEngine:
    """Engine over the bundled knowledge base, built on first use and shared."""
    return SymptomSearchEngine(default_knowledge_base())
