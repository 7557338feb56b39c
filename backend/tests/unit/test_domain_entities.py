"""Unit tests for Query validation, metric resolution and match invariants."""

import pytest

from craftmatch.domain.entities import (
    MAX_QUERY_LENGTH,
    CandidateProfile,
    PerformanceMetrics,
    ProfessionMatch,
    Query,
    SortPreference,
    UserInteraction,
)
from craftmatch.domain.exceptions import InvalidRequestError


# ── Query ────────────────────────────────────────────────────────────


@pytest.mark.parametrize("text", ["", "   ", "\n\t", None])
def test_empty_query_is_rejected(text):
    with pytest.raises(InvalidRequestError) as exc_info:
        Query.create(text)
    assert exc_info.value.field == "query"


def test_query_defaults():
    query = Query.create("handmade bowls")
    assert query.max_results == 20
    assert query.sort_preference == SortPreference.RELEVANCE


def test_max_results_is_capped():
    assert Query.create("bowls", 500).max_results == 100
    assert Query.create("bowls", 500, max_results_cap=50).max_results == 50


@pytest.mark.parametrize("bad", [0, -3, True, "10"])
def test_invalid_max_results_is_rejected(bad):
    with pytest.raises(InvalidRequestError) as exc_info:
        Query.create("bowls", bad)
    assert exc_info.value.field == "maxResults"


def test_unknown_sort_preference_is_rejected():
    with pytest.raises(InvalidRequestError):
        Query.create("bowls", sort_preference="price")
    assert Query.create("bowls", sort_preference="performance").sort_preference == SortPreference.PERFORMANCE


def test_query_length_limit():
    assert Query.create("a" * MAX_QUERY_LENGTH).raw_text == "a" * MAX_QUERY_LENGTH
    with pytest.raises(InvalidRequestError) as exc_info:
        Query.create("a" * (MAX_QUERY_LENGTH + 1))
    assert exc_info.value.field == "query"


# ── PerformanceMetrics ───────────────────────────────────────────────


def test_no_history_resolves_to_none():
    assert PerformanceMetrics.resolve(None, None, None) is None


def test_partial_history_defaults_missing_values_to_zero():
    metrics = PerformanceMetrics.resolve(4.0, None, None)
    assert metrics == PerformanceMetrics(customer_satisfaction=4.0, completion_rate=0.0, total_orders=0)


def test_out_of_range_values_are_clamped():
    metrics = PerformanceMetrics.resolve(7.5, 1.4, -2)
    assert metrics.customer_satisfaction == 5.0
    assert metrics.completion_rate == 1.0
    assert metrics.total_orders == 0


def test_candidate_profession_equality_is_normalized():
    profile = CandidateProfile(id="a1", name="A", profession="  Pottery ")
    assert profile.has_profession("pottery")
    assert not profile.has_profession("ceramics")


# ── ProfessionMatch ──────────────────────────────────────────────────


def test_profession_match_normalizes_profession():
    assert ProfessionMatch(profession=" Leather Work", confidence=0.5).profession == "leather work"


@pytest.mark.parametrize("confidence", [-0.1, 1.01])
def test_profession_match_rejects_out_of_range_confidence(confidence):
    with pytest.raises(ValueError):
        ProfessionMatch(profession="pottery", confidence=confidence)


def test_empty_profession_requires_zero_confidence():
    with pytest.raises(ValueError):
        ProfessionMatch(profession="", confidence=0.4)
    assert not ProfessionMatch.unmatched().is_resolved


# ── UserInteraction ──────────────────────────────────────────────────


def test_interaction_merge_keeps_flags_switched_on():
    first = UserInteraction(selected_artisan_id="a1", clicked=True)
    merged = first.merge(UserInteraction(converted=True, feedback_rating=5))

    assert merged.selected_artisan_id == "a1"
    assert merged.clicked and merged.converted
    assert merged.feedback_rating == 5
    assert merged.selected
