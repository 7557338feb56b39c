"""Pydantic schemas for the administrative analytics API."""

from datetime import datetime

from pydantic import Field

from craftmatch.application.schemas.match import CamelModel
from craftmatch.domain.entities import (
    AlertMetric,
    AlertSeverity,
    AlertType,
    ComparisonOperator,
)


# ── Metrics & patterns ───────────────────────────────────────────────


class AggregateMetricsSchema(CamelModel):
    total_decisions: int
    success_count: int
    no_result_count: int
    error_count: int
    average_confidence: float
    average_processing_time_ms: float
    average_result_count: float
    cache_hit_rate: float
    zero_result_rate: float
    error_rate: float
    fallback_rate: float
    degraded_rate: float
    selection_rate: float
    conversion_rate: float
    window_start: datetime | None = None
    window_end: datetime | None = None


class QueryCountSchema(CamelModel):
    query: str
    count: int
    average_confidence: float


class TermCountSchema(CamelModel):
    term: str
    count: int


class MethodPerformanceSchema(CamelModel):
    count: int
    average_processing_time_ms: float
    average_confidence: float
    success_rate: float


class QueryPatternsSchema(CamelModel):
    common_queries: list[QueryCountSchema] = []
    profession_counts: list[TermCountSchema] = []
    keyword_counts: list[TermCountSchema] = []
    performance_by_search_method: dict[str, MethodPerformanceSchema] = {}


# ── Alerts & rules ───────────────────────────────────────────────────


class AlertSchema(CamelModel):
    id: str
    rule_id: str
    rule_name: str
    severity: AlertSeverity
    alert_type: AlertType
    metric: AlertMetric
    current_value: float
    threshold: float
    message: str
    recommendations: list[str] = []
    timestamp: datetime
    acknowledged: bool
    acknowledged_at: datetime | None = None
    resolved: bool
    resolved_at: datetime | None = None


class AlertRuleCreate(CamelModel):
    """Body for creating an alert rule. ``id`` is generated when omitted."""

    id: str | None = None
    name: str = Field(..., min_length=1)
    metric: AlertMetric
    operator: ComparisonOperator
    threshold: float
    time_window_seconds: int = Field(default=300, gt=0)
    severity: AlertSeverity = AlertSeverity.MEDIUM
    alert_type: AlertType = AlertType.SYSTEM
    enabled: bool = True
    cooldown_seconds: int = Field(default=300, ge=0)
    min_samples: int = Field(default=1, ge=1)
    recommendations: list[str] = []


class AlertRuleUpdate(CamelModel):
    """Partial update; omitted fields keep their current value."""

    name: str | None = Field(default=None, min_length=1)
    metric: AlertMetric | None = None
    operator: ComparisonOperator | None = None
    threshold: float | None = None
    time_window_seconds: int | None = Field(default=None, gt=0)
    severity: AlertSeverity | None = None
    alert_type: AlertType | None = None
    enabled: bool | None = None
    cooldown_seconds: int | None = Field(default=None, ge=0)
    min_samples: int | None = Field(default=None, ge=1)
    recommendations: list[str] | None = None


class AlertRuleResponse(CamelModel):
    id: str
    name: str
    metric: AlertMetric
    operator: ComparisonOperator
    threshold: float
    condition: str
    time_window_seconds: int
    severity: AlertSeverity
    alert_type: AlertType
    enabled: bool
    cooldown_seconds: int
    min_samples: int
    recommendations: list[str] = []
    last_triggered: datetime | None = None


class ThresholdsUpdate(CamelModel):
    """Budget-style thresholds for the built-in rules."""

    max_processing_time_ms: float | None = Field(default=None, gt=0)
    min_average_confidence: float | None = Field(default=None, ge=0, le=1)
    max_zero_result_rate: float | None = Field(default=None, ge=0, le=1)
    max_error_rate: float | None = Field(default=None, ge=0, le=1)
    min_cache_hit_rate: float | None = Field(default=None, ge=0, le=1)


# ── Decision logs ────────────────────────────────────────────────────


class UserInteractionSchema(CamelModel):
    """Post-hoc buyer behaviour reported for a search."""

    selected_artisan_id: str | None = None
    selected_rank: int | None = Field(default=None, ge=1)
    clicked: bool = False
    contact_initiated: bool = False
    converted: bool = False
    feedback_rating: int | None = Field(default=None, ge=1, le=5)
    time_to_selection_ms: int | None = Field(default=None, ge=0)
    recorded_at: datetime | None = None


class DecisionLogSchema(CamelModel):
    id: str
    query: str
    normalized_query: str
    resolved_profession: str
    confidence: float
    search_method: str
    result_count: int
    processing_time_ms: int
    timestamp: datetime
    classification_source: str
    matched_keywords: list[str] = []
    ai_fallback_used: bool
    classification_degraded: bool
    cache_hit: bool
    average_relevance: float | None = None
    top_relevance: float | None = None
    status: str
    error_code: str | None = None
    user_interaction: UserInteractionSchema | None = None


# ── Cache ────────────────────────────────────────────────────────────


class CacheInvalidationResponse(CamelModel):
    removed: int
