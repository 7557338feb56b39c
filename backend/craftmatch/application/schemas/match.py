"""Pydantic schemas for match API requests and responses.

The wire format is camelCase (``maxResults``, ``relevanceScore``); Python
code uses the snake_case field names.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from craftmatch.domain.entities import MAX_QUERY_LENGTH


class CamelModel(BaseModel):
    """Base for every API schema: camelCase on the wire, snake_case in code."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ── Request Schemas ──────────────────────────────────────────────────


class MatchRequest(CamelModel):
    """Request body for a buyer query."""

    query: str = Field(
        ...,
        max_length=MAX_QUERY_LENGTH,
        description="Free-text buyer query, e.g. 'handmade ceramic mugs'",
    )
    max_results: int | None = Field(
        default=None, ge=1, description="Maximum number of matches (capped server-side)"
    )
    sort_by: Literal["relevance", "performance"] | None = Field(
        default=None, description="Ranking order; defaults to relevance"
    )


class AnalyzeRequest(CamelModel):
    """Request body for classification-only analysis."""

    query: str = Field(..., max_length=MAX_QUERY_LENGTH)


# ── Response Schemas ─────────────────────────────────────────────────


class PerformanceMetricsSchema(CamelModel):
    customer_satisfaction: float
    completion_rate: float
    total_orders: int


class CandidateSchema(CamelModel):
    id: str
    name: str
    profession: str
    description: str = ""
    location: str | None = None
    performance_metrics: PerformanceMetricsSchema | None = None


class ScoreBreakdownSchema(CamelModel):
    profession_score: float
    performance_score: float


class MatchExplanationSchema(CamelModel):
    primary_reason: str
    detailed_reasons: list[str] = []
    matched_keywords: list[str] = []
    confidence_level: str
    score_breakdown: ScoreBreakdownSchema


class MatchResultSchema(CamelModel):
    """One ranked artisan."""

    candidate: CandidateSchema
    relevance_score: float
    rank: int
    explanation: MatchExplanationSchema


class QueryAnalysisSchema(CamelModel):
    """How the query was understood."""

    detected_profession: str
    extracted_keywords: list[str] = []
    confidence: float
    source: str
    normalized_query: str


class SystemHealthSchema(CamelModel):
    ai_service_healthy: bool
    fallback_used: bool
    cache_hit: bool
    classification_degraded: bool = False


class MatchDataSchema(CamelModel):
    search_id: str
    matches: list[MatchResultSchema] = []
    total_found: int = 0
    processing_time_ms: int = 0
    search_method: str
    query_analysis: QueryAnalysisSchema
    system_health: SystemHealthSchema


class MatchResponse(CamelModel):
    """Success envelope for ``POST /match``."""

    success: bool = True
    data: MatchDataSchema


class ErrorDetailSchema(CamelModel):
    code: str
    message: str
    suggestion: str | None = None
    search_id: str | None = None


class ErrorResponse(CamelModel):
    """Error envelope shared by every endpoint."""

    success: bool = False
    error: ErrorDetailSchema


class AnalyzeResponse(CamelModel):
    """Classification-only result for ``POST /match/analyze``."""

    query_analysis: QueryAnalysisSchema
    cache_hit: bool
    fallback_used: bool
    classification_degraded: bool


class CacheStatsSchema(CamelModel):
    hits: int
    misses: int
    hit_rate: float
    entry_count: int
    evictions: int
    max_entries: int
    oldest_entry: datetime | None = None
    newest_entry: datetime | None = None


class SystemStatusResponse(CamelModel):
    professions: list[str]
    ai_configured: bool
    ai_service_healthy: bool
    confidence_threshold: float
    cache: CacheStatsSchema | None = None
    analytics_queue_depth: int
    analytics_dropped_writes: int
