"""Match API controller — buyer query to ranked artisans."""

from fastapi import APIRouter, Depends, status

from craftmatch.application.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    CacheStatsSchema,
    CandidateSchema,
    ErrorResponse,
    MatchDataSchema,
    MatchExplanationSchema,
    MatchRequest,
    MatchResponse,
    MatchResultSchema,
    PerformanceMetricsSchema,
    QueryAnalysisSchema,
    ScoreBreakdownSchema,
    SystemHealthSchema,
    SystemStatusResponse,
)
from craftmatch.application.services import MatchingOrchestrator
from craftmatch.domain.entities import (
    CacheStats,
    CandidateProfile,
    MatchingOutcome,
    MatchResult,
    ProfessionMatch,
)
from craftmatch.infrastructure.dependencies import get_orchestrator
from craftmatch.presentation.api.error_handlers import NO_ARTISANS_AVAILABLE, error_response

router = APIRouter(prefix="/match", tags=["match"])


# ── Helpers ──────────────────────────────────────────────────────────


def _to_candidate_schema(candidate: CandidateProfile) -> CandidateSchema:
    metrics = candidate.performance_metrics
    return CandidateSchema(
        id=candidate.id,
        name=candidate.name,
        profession=candidate.profession,
        description=candidate.description,
        location=candidate.location,
        performance_metrics=(
            PerformanceMetricsSchema(
                customer_satisfaction=metrics.customer_satisfaction,
                completion_rate=metrics.completion_rate,
                total_orders=metrics.total_orders,
            )
            if metrics is not None
            else None
        ),
    )


def _to_result_schema(result: MatchResult) -> MatchResultSchema:
    explanation = result.explanation
    return MatchResultSchema(
        candidate=_to_candidate_schema(result.candidate),
        relevance_score=result.relevance_score,
        rank=result.rank,
        explanation=MatchExplanationSchema(
            primary_reason=explanation.primary_reason,
            detailed_reasons=list(explanation.detailed_reasons),
            matched_keywords=list(explanation.matched_keywords),
            confidence_level=explanation.confidence_level.value,
            score_breakdown=ScoreBreakdownSchema(
                profession_score=explanation.profession_score,
                performance_score=explanation.performance_score,
            ),
        ),
    )


def _to_analysis_schema(match: ProfessionMatch, normalized_query: str) -> QueryAnalysisSchema:
    return QueryAnalysisSchema(
        detected_profession=match.profession,
        extracted_keywords=list(match.matched_keywords),
        confidence=match.confidence,
        source=match.source.value,
        normalized_query=normalized_query,
    )


def _to_match_response(outcome: MatchingOutcome) -> MatchResponse:
    return MatchResponse(
        data=MatchDataSchema(
            search_id=outcome.search_id,
            matches=[_to_result_schema(m) for m in outcome.matches],
            total_found=outcome.total_found,
            processing_time_ms=outcome.processing_time_ms,
            search_method=outcome.search_method.value,
            query_analysis=_to_analysis_schema(outcome.profession_match, outcome.normalized_query),
            system_health=SystemHealthSchema(
                ai_service_healthy=outcome.ai_service_healthy,
                fallback_used=outcome.fallback_used,
                cache_hit=outcome.cache_hit,
                classification_degraded=outcome.classification_degraded,
            ),
        )
    )


def to_cache_stats_schema(stats: CacheStats) -> CacheStatsSchema:
    return CacheStatsSchema(
        hits=stats.hits,
        misses=stats.misses,
        hit_rate=round(stats.hit_rate, 4),
        entry_count=stats.entry_count,
        evictions=stats.evictions,
        max_entries=stats.max_entries,
        oldest_entry=stats.oldest_entry,
        newest_entry=stats.newest_entry,
    )


# ── Endpoints ────────────────────────────────────────────────────────


@router.post(
    "",
    response_model=MatchResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
    },
)
async def match_artisans(
    body: MatchRequest,
    orchestrator: MatchingOrchestrator = Depends(get_orchestrator),
):
    """Classify a buyer query and return ranked artisans of that profession."""
    outcome = await orchestrator.match(body.query, body.max_results, body.sort_by)
    if not outcome.has_results:
        profession = outcome.profession_match.profession
        message = (
            f"No artisans available for '{profession}'."
            if profession
            else "No artisans matched your query."
        )
        return error_response(
            status.HTTP_404_NOT_FOUND,
            NO_ARTISANS_AVAILABLE,
            message,
            suggestion=outcome.suggestion,
            search_id=outcome.search_id,
        )
    return _to_match_response(outcome)


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_query(
    body: AnalyzeRequest,
    orchestrator: MatchingOrchestrator = Depends(get_orchestrator),
):
    """Classify a query only (no retrieval), useful for debugging the catalogue."""
    analysis = await orchestrator.analyze(body.query)
    return AnalyzeResponse(
        query_analysis=_to_analysis_schema(analysis.profession_match, analysis.normalized_query),
        cache_hit=analysis.cache_hit,
        fallback_used=analysis.fallback_used,
        classification_degraded=analysis.classification_degraded,
    )


@router.get("/status", response_model=SystemStatusResponse)
async def system_status(
    orchestrator: MatchingOrchestrator = Depends(get_orchestrator),
):
    status_ = orchestrator.system_status()
    return SystemStatusResponse(
        professions=status_.professions,
        ai_configured=status_.ai_configured,
        ai_service_healthy=status_.ai_service_healthy,
        confidence_threshold=status_.confidence_threshold,
        cache=to_cache_stats_schema(status_.cache) if status_.cache is not None else None,
        analytics_queue_depth=status_.analytics_queue_depth,
        analytics_dropped_writes=status_.analytics_dropped_writes,
    )
