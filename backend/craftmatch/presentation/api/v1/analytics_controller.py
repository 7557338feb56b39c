"""Analytics API controller — metrics, alerts, alert rules, decision logs and cache admin."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, Response, status

from craftmatch.application.schemas import (
    AggregateMetricsSchema,
    AlertRuleCreate,
    AlertRuleResponse,
    AlertRuleUpdate,
    AlertSchema,
    CacheInvalidationResponse,
    CacheStatsSchema,
    DecisionLogSchema,
    MethodPerformanceSchema,
    QueryCountSchema,
    QueryPatternsSchema,
    TermCountSchema,
    ThresholdsUpdate,
    UserInteractionSchema,
)
from craftmatch.application.services import (
    DecisionLogFilter,
    DecisionRecorder,
    MatchingAnalytics,
    QueryAnalysisCache,
)
from craftmatch.domain.entities import (
    AggregateMetrics,
    Alert,
    AlertCondition,
    AlertRule,
    AlertSeverity,
    AlertType,
    DecisionLog,
    DecisionStatus,
    SearchMethod,
    UserInteraction,
)
from craftmatch.domain.normalization import normalize_text
from craftmatch.infrastructure.dependencies import get_analytics, get_query_cache, get_recorder
from craftmatch.presentation.api.v1.match_controller import to_cache_stats_schema

router = APIRouter(prefix="/analytics", tags=["analytics"])

_EXPORT_MEDIA_TYPES = {"json": "application/json", "csv": "text/csv"}


# ── Helpers ──────────────────────────────────────────────────────────


def _as_utc(value: datetime | None) -> datetime | None:
    """Query-string datetimes without an offset are taken as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _to_metrics_schema(metrics: AggregateMetrics) -> AggregateMetricsSchema:
    return AggregateMetricsSchema(
        total_decisions=metrics.total_decisions,
        success_count=metrics.success_count,
        no_result_count=metrics.no_result_count,
        error_count=metrics.error_count,
        average_confidence=metrics.average_confidence,
        average_processing_time_ms=metrics.average_processing_time_ms,
        average_result_count=metrics.average_result_count,
        cache_hit_rate=metrics.cache_hit_rate,
        zero_result_rate=metrics.zero_result_rate,
        error_rate=metrics.error_rate,
        fallback_rate=metrics.fallback_rate,
        degraded_rate=metrics.degraded_rate,
        selection_rate=metrics.selection_rate,
        conversion_rate=metrics.conversion_rate,
        window_start=metrics.window_start,
        window_end=metrics.window_end,
    )


def _to_alert_schema(alert: Alert) -> AlertSchema:
    return AlertSchema(
        id=alert.id,
        rule_id=alert.rule_id,
        rule_name=alert.rule_name,
        severity=alert.severity,
        alert_type=alert.alert_type,
        metric=alert.metric,
        current_value=alert.current_value,
        threshold=alert.threshold,
        message=alert.message,
        recommendations=list(alert.recommendations),
        timestamp=alert.timestamp,
        acknowledged=alert.acknowledged,
        acknowledged_at=alert.acknowledged_at,
        resolved=alert.resolved,
        resolved_at=alert.resolved_at,
    )


def _to_rule_schema(rule: AlertRule, last_triggered: datetime | None) -> AlertRuleResponse:
    return AlertRuleResponse(
        id=rule.id,
        name=rule.name,
        metric=rule.condition.metric,
        operator=rule.condition.operator,
        threshold=rule.threshold,
        condition=rule.condition.describe(rule.threshold),
        time_window_seconds=rule.time_window_seconds,
        severity=rule.severity,
        alert_type=rule.alert_type,
        enabled=rule.enabled,
        cooldown_seconds=rule.cooldown_seconds,
        min_samples=rule.min_samples,
        recommendations=list(rule.recommendations),
        last_triggered=last_triggered,
    )


def _to_interaction_schema(interaction: UserInteraction) -> UserInteractionSchema:
    return UserInteractionSchema(
        selected_artisan_id=interaction.selected_artisan_id,
        selected_rank=interaction.selected_rank,
        clicked=interaction.clicked,
        contact_initiated=interaction.contact_initiated,
        converted=interaction.converted,
        feedback_rating=interaction.feedback_rating,
        time_to_selection_ms=interaction.time_to_selection_ms,
        recorded_at=interaction.recorded_at,
    )


def _to_decision_schema(log: DecisionLog) -> DecisionLogSchema:
    return DecisionLogSchema(
        id=log.id,
        query=log.query,
        normalized_query=log.normalized_query,
        resolved_profession=log.resolved_profession,
        confidence=log.confidence,
        search_method=log.search_method.value,
        result_count=log.result_count,
        processing_time_ms=log.processing_time_ms,
        timestamp=log.timestamp,
        classification_source=log.classification_source.value,
        matched_keywords=list(log.matched_keywords),
        ai_fallback_used=log.ai_fallback_used,
        classification_degraded=log.classification_degraded,
        cache_hit=log.cache_hit,
        average_relevance=log.average_relevance,
        top_relevance=log.top_relevance,
        status=log.status.value,
        error_code=log.error_code,
        user_interaction=(
            _to_interaction_schema(log.user_interaction) if log.user_interaction else None
        ),
    )


# ── Metrics & patterns ───────────────────────────────────────────────


@router.get("/metrics", response_model=AggregateMetricsSchema)
async def get_metrics(
    start: datetime | None = Query(None),
    end: datetime | None = Query(None),
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    """Aggregate metrics over an optional time range."""
    return _to_metrics_schema(analytics.get_metrics(_as_utc(start), _as_utc(end)))


@router.get("/query-patterns", response_model=QueryPatternsSchema)
async def get_query_patterns(
    start: datetime | None = Query(None),
    end: datetime | None = Query(None),
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    patterns = analytics.get_query_patterns(_as_utc(start), _as_utc(end))
    return QueryPatternsSchema(
        common_queries=[
            QueryCountSchema(query=q.query, count=q.count, average_confidence=q.average_confidence)
            for q in patterns.common_queries
        ],
        profession_counts=[TermCountSchema(term=t.term, count=t.count) for t in patterns.profession_counts],
        keyword_counts=[TermCountSchema(term=t.term, count=t.count) for t in patterns.keyword_counts],
        performance_by_search_method={
            method: MethodPerformanceSchema(
                count=perf.count,
                average_processing_time_ms=perf.average_processing_time_ms,
                average_confidence=perf.average_confidence,
                success_rate=perf.success_rate,
            )
            for method, perf in patterns.performance_by_search_method.items()
        },
    )


# ── Alerts ───────────────────────────────────────────────────────────


@router.get("/alerts", response_model=list[AlertSchema])
async def list_alerts(
    severity: AlertSeverity | None = Query(None),
    alert_type: AlertType | None = Query(None, alias="type"),
    include_resolved: bool = Query(False, alias="includeResolved"),
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    alerts = analytics.get_alerts(severity, alert_type, include_resolved)
    return [_to_alert_schema(a) for a in alerts]


@router.post("/alerts/{alert_id}/acknowledge", response_model=AlertSchema)
async def acknowledge_alert(
    alert_id: str,
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    return _to_alert_schema(analytics.acknowledge_alert(alert_id))


@router.post("/alerts/{alert_id}/resolve", response_model=AlertSchema)
async def resolve_alert(
    alert_id: str,
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    return _to_alert_schema(analytics.resolve_alert(alert_id))


# ── Alert rules ──────────────────────────────────────────────────────


@router.get("/rules", response_model=list[AlertRuleResponse])
async def list_rules(analytics: MatchingAnalytics = Depends(get_analytics)):
    return [_to_rule_schema(rule, last) for rule, last in analytics.list_rules()]


@router.post("/rules", response_model=AlertRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_rule(
    body: AlertRuleCreate,
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    rule = analytics.create_rule(
        AlertRule(
            id=body.id or "",
            name=body.name,
            condition=AlertCondition(metric=body.metric, operator=body.operator),
            threshold=body.threshold,
            time_window_seconds=body.time_window_seconds,
            severity=body.severity,
            alert_type=body.alert_type,
            enabled=body.enabled,
            cooldown_seconds=body.cooldown_seconds,
            min_samples=body.min_samples,
            recommendations=tuple(body.recommendations),
        )
    )
    return _to_rule_schema(rule, None)


@router.put("/rules/{rule_id}", response_model=AlertRuleResponse)
async def update_rule(
    rule_id: str,
    body: AlertRuleUpdate,
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    current = analytics.get_rule(rule_id)
    changes = body.model_dump(exclude_unset=True, exclude_none=True)
    metric = changes.pop("metric", None)
    operator = changes.pop("operator", None)
    if metric is not None or operator is not None:
        changes["condition"] = AlertCondition(
            metric=metric or current.condition.metric,
            operator=operator or current.condition.operator,
        )
    if "recommendations" in changes:
        changes["recommendations"] = tuple(changes["recommendations"])
    rule = analytics.update_rule(rule_id, **changes)
    return _to_rule_schema(rule, analytics.last_triggered(rule_id))


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rule(
    rule_id: str,
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    analytics.delete_rule(rule_id)


@router.put("/thresholds", response_model=list[AlertRuleResponse])
async def set_thresholds(
    body: ThresholdsUpdate,
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    """Update the built-in rules' thresholds in one call."""
    updated = analytics.set_thresholds(**body.model_dump(exclude_none=True))
    return [_to_rule_schema(rule, analytics.last_triggered(rule.id)) for rule in updated]


# ── Decision logs ────────────────────────────────────────────────────


@router.get("/decisions", response_model=list[DecisionLogSchema])
async def list_decisions(
    profession: str | None = Query(None),
    search_method: SearchMethod | None = Query(None, alias="searchMethod"),
    decision_status: DecisionStatus | None = Query(None, alias="status"),
    start: datetime | None = Query(None),
    end: datetime | None = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    """Decision logs, newest first."""
    logs = analytics.get_decision_logs(
        DecisionLogFilter(
            profession=profession,
            search_method=search_method,
            status=decision_status,
            start=_as_utc(start),
            end=_as_utc(end),
            limit=limit,
        )
    )
    return [_to_decision_schema(log) for log in logs]


@router.get("/decisions/{decision_id}", response_model=DecisionLogSchema)
async def get_decision(
    decision_id: str,
    analytics: MatchingAnalytics = Depends(get_analytics),
    recorder: DecisionRecorder = Depends(get_recorder),
):
    await recorder.flush()
    return _to_decision_schema(analytics.get_decision_log(decision_id))


@router.post("/decisions/{decision_id}/interaction", response_model=DecisionLogSchema)
async def record_interaction(
    decision_id: str,
    body: UserInteractionSchema,
    analytics: MatchingAnalytics = Depends(get_analytics),
    recorder: DecisionRecorder = Depends(get_recorder),
):
    """Attach click-through / conversion outcome to a past search (its searchId)."""
    # The decision may still be queued if the search only just finished.
    await recorder.flush()
    interaction = UserInteraction(
        selected_artisan_id=body.selected_artisan_id,
        selected_rank=body.selected_rank,
        clicked=body.clicked,
        contact_initiated=body.contact_initiated,
        converted=body.converted,
        feedback_rating=body.feedback_rating,
        time_to_selection_ms=body.time_to_selection_ms,
        recorded_at=_as_utc(body.recorded_at) or datetime.now(timezone.utc),
    )
    return _to_decision_schema(analytics.update_interaction(decision_id, interaction))


@router.delete("/decisions")
async def clear_old_decisions(
    older_than_days: int | None = Query(None, alias="olderThanDays", ge=0),
    analytics: MatchingAnalytics = Depends(get_analytics),
) -> dict:
    return {"removed": analytics.clear_old_logs(older_than_days)}


@router.get("/export")
async def export_decisions(
    fmt: str = Query("json", alias="format"),
    analytics: MatchingAnalytics = Depends(get_analytics),
):
    """Download decision logs as JSON (with metrics and alerts) or CSV."""
    fmt = fmt.lower()
    content = analytics.export(fmt)
    stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return Response(
        content=content,
        media_type=_EXPORT_MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="decisions-{stamp}.{fmt}"'},
    )


# ── Query cache ──────────────────────────────────────────────────────


@router.get("/cache", response_model=CacheStatsSchema)
async def cache_stats(cache: QueryAnalysisCache = Depends(get_query_cache)):
    return to_cache_stats_schema(cache.stats())


@router.delete("/cache", response_model=CacheInvalidationResponse)
async def invalidate_cache(
    pattern: str | None = Query(None, description="Drop entries whose key contains this text"),
    key: str | None = Query(None, description="Drop the entry for this query"),
    cache: QueryAnalysisCache = Depends(get_query_cache),
):
    """Invalidate one query, every query matching a pattern, or (no parameters) everything."""
    if key is not None:
        removed = int(cache.invalidate(normalize_text(key)))
    elif pattern is not None:
        removed = cache.invalidate_by_pattern(normalize_text(pattern))
    else:
        removed = cache.clear()
    return CacheInvalidationResponse(removed=removed)
