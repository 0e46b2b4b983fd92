"""Tests for relevance / score and the weight table."""

from dataclasses import replace

import pytest

from knowledge_base import SymptomEntry, Urgency
from scorer import (
    DEFAULT_WEIGHTS,
    ScoringWeights,
    TierWeights,
    compact_code,
    relevance,
    score,
)

# ---------------------------------------------------------------------------
# Weight table
# ---------------------------------------------------------------------------


class TestWeights:
    def test_default_tiers(self) -> None:
        assert DEFAULT_WEIGHTS.title == TierWeights(100, 80, 70)
        assert DEFAULT_WEIGHTS.medical_term == TierWeights(95, 75, 65)
        assert DEFAULT_WEIGHTS.common_term == TierWeights(85, 65, 55)
        assert DEFAULT_WEIGHTS.code == 90
        assert DEFAULT_WEIGHTS.all_words == 60
        assert DEFAULT_WEIGHTS.most_words == 40

    @pytest.mark.parametrize(
        ("urgency", "points"),
        [
            (Urgency.LOW, 2),
            (Urgency.MEDIUM, 5),
            (Urgency.HIGH, 8),
            (Urgency.EMERGENCY, 10),
        ],
    )
    def test_urgency_points(self, urgency: Urgency, points: int) -> None:
        assert DEFAULT_WEIGHTS.urgency_points(urgency) == points

    def test_compact_code(self) -> None:
        assert compact_code(" R06. 02\t") == "r06.02"


# ---------------------------------------------------------------------------
# Per-field tiers
# ---------------------------------------------------------------------------


class TestTitle:
    def test_exact(self) -> None:
        entry = SymptomEntry("dyspnea", urgency=Urgency.HIGH)
        assert relevance(entry, "dyspnea") == 100
        assert score(entry, "dyspnea") == 108

    def test_exact_ignores_case_and_punctuation(self) -> None:
        entry = SymptomEntry("chest pain")
        assert relevance(entry, "Chest-Pain") >= 100

    def test_substring(self) -> None:
        entry = SymptomEntry("sudden dyspnea")
        assert relevance(entry, "dyspnea") == 80

    def test_fuzzy(self) -> None:
        entry = SymptomEntry("dyspnea")
        assert relevance(entry, "dyspnoea") == 70

    def test_query_containing_title_is_fuzzy(self) -> None:
        entry = SymptomEntry("cough")
        assert relevance(entry, "coughs") == 70


class TestTerms:
    def test_medical_exact(self) -> None:
        entry = SymptomEntry(
            "breathing trouble", medical_terms=("dyspnea", "shortness of breath")
        )
        assert relevance(entry, "dyspnea") == 95

    def test_common_exact_with_multi_word_bonus(self) -> None:
        entry = SymptomEntry(
            "palpitations", common_terms=("heart racing",), urgency=Urgency.MEDIUM
        )
        # common exact 85 + "heart racing" covers both query words 60
        assert relevance(entry, "heart racing") == 145
        assert score(entry, "heart racing") == 150

    def test_common_substring(self) -> None:
        entry = SymptomEntry("palpitations", common_terms=("heart racing",))
        assert relevance(entry, "heart") == 65

    def test_common_fuzzy(self) -> None:
        entry = SymptomEntry("palpitations", common_terms=("wheezing",))
        assert relevance(entry, "wheexing") == 55

    def test_every_term_contributes(self) -> None:
        entry = SymptomEntry(
            "breathing trouble", medical_terms=("dyspnea", "acute dyspnea")
        )
        # exact 95 + substring 75
        assert relevance(entry, "dyspnea") == 170

    def test_adding_matching_term_never_decreases_score(self) -> None:
        base = SymptomEntry("breathing trouble", medical_terms=("dyspnea",))
        richer = replace(base, medical_terms=("dyspnea", "dyspnoea"))
        assert score(richer, "dyspnea") == score(base, "dyspnea") + 65


class TestCodes:
    entry = SymptomEntry("dyspnea", codes=("R06.02", "I20.9"))

    def test_case_insensitive(self) -> None:
        assert relevance(self.entry, "r06.02") == 90
        assert relevance(self.entry, "R06.02") == 90

    def test_query_whitespace_removed(self) -> None:
        assert relevance(self.entry, " R06 .02 ") == 90

    def test_punctuation_is_significant(self) -> None:
        assert relevance(self.entry, "R0602") == 0


class TestMultiWord:
    def test_full_phrase_beats_partial(self) -> None:
        full = SymptomEntry("chest pain")
        partial = SymptomEntry("abdominal pain")
        # title exact 100 + all words 60
        assert relevance(full, "chest pain") == 160
        assert score(full, "chest pain") > score(partial, "chest pain")

    def test_most_words_bonus(self) -> None:
        entry = SymptomEntry("chest pain")
        # title fuzzy (contained in query) 70 + two of three words 40
        assert relevance(entry, "sharp chest pain") == 110

    def test_half_is_not_enough(self) -> None:
        entry = SymptomEntry("abdominal pain")
        assert relevance(entry, "chest pain") == 0

    def test_single_word_query_has_no_bonus(self) -> None:
        entry = SymptomEntry("chest pain")
        assert relevance(entry, "chest") == 80


class TestNoMatch:
    def test_only_urgency_bonus(self) -> None:
        entry = SymptomEntry("headache", urgency=Urgency.EMERGENCY)
        assert relevance(entry, "wheezing") == 0
        assert score(entry, "wheezing") == 10


class TestPunctuationQuery:
    # "?!" normalizes to "", which every normalized term contains
    def test_title_substring_tier(self) -> None:
        assert score(SymptomEntry("cough"), "?!") == 82

    def test_every_term_substring_tier(self) -> None:
        entry = SymptomEntry("cough", medical_terms=("tussis",), common_terms=("hack",))
        # title 80 + medical 75 + common 65
        assert relevance(entry, "!!") == 220


def test_custom_weights() -> None:
    weights = ScoringWeights(code=50, urgency_bonus=(0, 0, 0, 0))
    entry = SymptomEntry("dyspnea", codes=("R06.02",), urgency=Urgency.HIGH)
    assert score(entry, "R06.02", weights) == 50
