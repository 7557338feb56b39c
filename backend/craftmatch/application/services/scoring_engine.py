"""Scoring & ranking engine — blends profession match with historical performance.

    performanceScore = 0.4 × (satisfaction / 5) + 0.3 × completionRate
                       + 0.3 × min(totalOrders / 100, 1)
    relevanceScore   = 0.7 × professionScore + 0.3 × performanceScore

professionScore is always 1.0: every candidate reaching this engine already
matches the resolved profession exactly. Candidates without any history get a
neutral performanceScore of 0.5.
"""

import logging

from craftmatch.domain.entities import (
    CandidateProfile,
    ConfidenceLevel,
    MatchExplanation,
    MatchResult,
    PerformanceMetrics,
    ProfessionMatch,
    SortPreference,
)

logger = logging.getLogger(__name__)

# Relevance blend
_W_PROFESSION = 0.7
_W_PERFORMANCE = 0.3

# Performance blend
_W_SATISFACTION = 0.4
_W_COMPLETION = 0.3
_W_ORDERS = 0.3
_ORDERS_SATURATION = 100

NEUTRAL_PERFORMANCE_SCORE = 0.5
_HIGH_CONFIDENCE_ABOVE = 0.5


def performance_score(metrics: PerformanceMetrics | None) -> float:
    if metrics is None:
        return NEUTRAL_PERFORMANCE_SCORE
    return (
        _W_SATISFACTION * (metrics.customer_satisfaction / 5.0)
        + _W_COMPLETION * metrics.completion_rate
        + _W_ORDERS * min(metrics.total_orders / _ORDERS_SATURATION, 1.0)
    )


def relevance_score(performance: float, profession_score: float = 1.0) -> float:
    return round(_W_PROFESSION * profession_score + _W_PERFORMANCE * performance, 2)


class ScoringEngine:
    """Turns exact-match candidates into a ranked, explained result list."""

    def score(
        self,
        candidates: list[CandidateProfile],
        profession_match: ProfessionMatch,
        sort_preference: SortPreference = SortPreference.RELEVANCE,
    ) -> list[MatchResult]:
        """Score, sort (stable, descending) and rank ``candidates``.

        Ties keep retrieval order, which carries the store's recency signal.
        Sorting by performance keeps relevance non-increasing as well, since
        relevance is monotone in performance.
        """
        level = (
            ConfidenceLevel.HIGH
            if profession_match.confidence > _HIGH_CONFIDENCE_ABOVE
            else ConfidenceLevel.MEDIUM
        )

        scored: list[tuple[CandidateProfile, float, float]] = []
        for candidate in candidates:
            perf = performance_score(candidate.performance_metrics)
            scored.append((candidate, perf, relevance_score(perf)))

        if sort_preference == SortPreference.PERFORMANCE:
            scored.sort(key=lambda item: item[1], reverse=True)
        else:
            scored.sort(key=lambda item: item[2], reverse=True)

        return [
            MatchResult(
                candidate=candidate,
                relevance_score=relevance,
                rank=rank,
                explanation=self._explain(candidate, profession_match, level, perf),
            )
            for rank, (candidate, perf, relevance) in enumerate(scored, start=1)
        ]

    @staticmethod
    def _explain(
        candidate: CandidateProfile,
        profession_match: ProfessionMatch,
        level: ConfidenceLevel,
        perf: float,
    ) -> MatchExplanation:
        profession = profession_match.profession
        reasons = [f"Specialises in {profession}"]
        metrics = candidate.performance_metrics
        if metrics is None:
            reasons.append("New artisan with no order history yet")
        else:
            if metrics.customer_satisfaction > 4.0:
                reasons.append(f"Highly rated by customers ({metrics.customer_satisfaction:.1f}/5)")
            if metrics.completion_rate >= 0.9:
                reasons.append(f"Completes {metrics.completion_rate:.0%} of orders")
            if metrics.total_orders >= _ORDERS_SATURATION:
                reasons.append(f"Experienced with {metrics.total_orders} orders delivered")

        return MatchExplanation(
            primary_reason=f"Exact match for {profession}",
            detailed_reasons=tuple(reasons),
            matched_keywords=profession_match.matched_keywords,
            confidence_level=level,
            profession_score=1.0,
            performance_score=round(perf, 2),
        )
