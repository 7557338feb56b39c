"""Unit tests for MatchingAnalytics — decision logs, metrics, alert rules and export."""

import csv
import io
import json
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from craftmatch.application.services.matching_analytics import (
    RULE_ERROR_RATE,
    RULE_PROCESSING_TIME,
    DecisionLogFilter,
    MatchingAnalytics,
    default_alert_rules,
)
from craftmatch.domain.entities import (
    AlertCondition,
    AlertMetric,
    AlertRule,
    AlertSeverity,
    AlertType,
    ComparisonOperator,
    DecisionLog,
    DecisionStatus,
    MatchSource,
    SearchMethod,
    UserInteraction,
)
from craftmatch.domain.exceptions import EntityNotFoundError, InvalidRequestError

_counter = iter(range(1_000_000))


def _decision(**overrides) -> DecisionLog:
    values = dict(
        id=f"search-{next(_counter)}",
        query="Traditional pottery",
        normalized_query="traditional pottery",
        resolved_profession="pottery",
        confidence=0.8,
        search_method=SearchMethod.EXACT,
        result_count=3,
        processing_time_ms=40,
        classification_source=MatchSource.HEURISTIC,
        matched_keywords=("traditional", "pottery"),
        average_relevance=0.9,
        top_relevance=0.95,
    )
    values.update(overrides)
    return DecisionLog(**values)


def _slow_rule(**overrides) -> AlertRule:
    values = dict(
        id="slow",
        name="Slow requests",
        condition=AlertCondition(AlertMetric.AVERAGE_PROCESSING_TIME_MS, ComparisonOperator.GT),
        threshold=100,
        time_window_seconds=300,
        severity=AlertSeverity.HIGH,
        alert_type=AlertType.PERFORMANCE,
        cooldown_seconds=300,
        min_samples=1,
        recommendations=("Check latency",),
    )
    values.update(overrides)
    return AlertRule(**values)


@pytest.fixture
def analytics() -> MatchingAnalytics:
    return MatchingAnalytics(rules=[])


# ── Decision logs ────────────────────────────────────────────────────


def test_log_and_fetch(analytics):
    decision = _decision()
    assert analytics.log(decision) == decision.id
    assert analytics.get_decision_log(decision.id) == decision


def test_duplicate_log_is_ignored(analytics):
    decision = _decision()
    analytics.log(decision)
    analytics.log(decision)
    assert analytics.get_metrics().total_decisions == 1


def test_unknown_decision_raises(analytics):
    with pytest.raises(EntityNotFoundError):
        analytics.get_decision_log("nope")


def test_filters_and_newest_first(analytics):
    base = datetime.now(timezone.utc)
    older = _decision(timestamp=base - timedelta(minutes=5))
    newer = _decision(timestamp=base)
    wood = _decision(resolved_profession="woodworking", search_method=SearchMethod.WIDENED_FILTER)
    for d in (older, newer, wood):
        analytics.log(d)

    pottery = analytics.get_decision_logs(DecisionLogFilter(profession="pottery"))
    assert [d.id for d in pottery] == [newer.id, older.id]

    widened = analytics.get_decision_logs(DecisionLogFilter(search_method=SearchMethod.WIDENED_FILTER))
    assert [d.id for d in widened] == [wood.id]

    recent = analytics.get_decision_logs(DecisionLogFilter(start=base - timedelta(minutes=1), limit=1))
    assert len(recent) == 1


def test_interaction_updates_are_merged(analytics):
    decision = _decision()
    analytics.log(decision)

    analytics.update_interaction(decision.id, UserInteraction(selected_artisan_id="a1", clicked=True))
    updated = analytics.update_interaction(decision.id, UserInteraction(converted=True))

    assert updated.user_interaction.selected_artisan_id == "a1"
    assert updated.user_interaction.converted
    metrics = analytics.get_metrics()
    assert metrics.selection_rate == 1.0
    assert metrics.conversion_rate == 1.0


def test_interaction_for_unknown_decision_raises(analytics):
    with pytest.raises(EntityNotFoundError):
        analytics.update_interaction("nope", UserInteraction(clicked=True))


def test_clear_old_logs(analytics):
    analytics.log(_decision(timestamp=datetime.now(timezone.utc) - timedelta(days=40)))
    analytics.log(_decision())
    assert analytics.clear_old_logs(30) == 1
    assert analytics.get_metrics().total_decisions == 1


# ── Metrics & patterns ───────────────────────────────────────────────


def test_metrics_rates(analytics):
    analytics.log(_decision(cache_hit=True))
    analytics.log(_decision(result_count=0, status=DecisionStatus.NO_RESULTS, ai_fallback_used=True))
    analytics.log(_decision(status=DecisionStatus.ERROR, error_code="INTERNAL_ERROR", result_count=0))
    analytics.log(_decision(classification_degraded=True, ai_fallback_used=True))

    metrics = analytics.get_metrics()
    assert metrics.total_decisions == 4
    assert (metrics.success_count, metrics.no_result_count, metrics.error_count) == (2, 1, 1)
    assert metrics.error_rate == 0.25
    assert metrics.zero_result_rate == pytest.approx(1 / 3)
    assert metrics.cache_hit_rate == 0.25
    assert metrics.fallback_rate == 0.5
    assert metrics.degraded_rate == 0.25


def test_empty_metrics(analytics):
    metrics = analytics.get_metrics()
    assert metrics.total_decisions == 0
    assert metrics.error_rate == 0.0


def test_query_patterns(analytics):
    analytics.log(_decision(confidence=0.8))
    analytics.log(_decision(confidence=0.6))
    analytics.log(
        _decision(
            normalized_query="oak table",
            resolved_profession="woodworking",
            matched_keywords=("oak",),
            search_method=SearchMethod.WIDENED_FILTER,
            status=DecisionStatus.NO_RESULTS,
            result_count=0,
        )
    )

    patterns = analytics.get_query_patterns()
    top = patterns.common_queries[0]
    assert (top.query, top.count, top.average_confidence) == ("traditional pottery", 2, 0.7)
    assert patterns.profession_counts[0].term == "pottery"
    assert {t.term for t in patterns.keyword_counts} == {"traditional", "pottery", "oak"}
    assert patterns.performance_by_search_method["exact"].success_rate == 1.0
    assert patterns.performance_by_search_method["widened_filter"].success_rate == 0.0


# ── Alert rules ──────────────────────────────────────────────────────


def test_builtin_rules_are_installed_by_default():
    analytics = MatchingAnalytics()
    ids = {rule.id for rule, _ in analytics.list_rules()}
    assert ids == {rule.id for rule in default_alert_rules()}


def test_rule_fires_once_within_cooldown(analytics):
    analytics.create_rule(_slow_rule())
    analytics.log(_decision(processing_time_ms=500))
    analytics.log(_decision(processing_time_ms=700))

    alerts = analytics.get_alerts()
    assert len(alerts) == 1
    alert = alerts[0]
    assert alert.rule_id == "slow"
    assert alert.current_value == 500
    assert alert.recommendations == ["Check latency"]
    assert analytics.last_triggered("slow") is not None


def test_rule_object_is_not_mutated_by_firing(analytics):
    rule = analytics.create_rule(_slow_rule())
    analytics.log(_decision(processing_time_ms=500))
    assert analytics.get_rule("slow") == rule


def test_min_samples_suppresses_small_windows(analytics):
    analytics.create_rule(_slow_rule(min_samples=3))
    analytics.log(_decision(processing_time_ms=500))
    analytics.log(_decision(processing_time_ms=500))
    assert analytics.get_alerts() == []
    analytics.log(_decision(processing_time_ms=500))
    assert len(analytics.get_alerts()) == 1


def test_disabled_rule_never_fires(analytics):
    analytics.create_rule(_slow_rule(enabled=False))
    analytics.log(_decision(processing_time_ms=5000))
    assert analytics.get_alerts() == []


def test_rule_crud(analytics):
    created = analytics.create_rule(_slow_rule(id=""))
    assert created.id

    updated = analytics.update_rule(created.id, threshold=250, id="ignored")
    assert updated.id == created.id
    assert updated.threshold == 250

    analytics.delete_rule(created.id)
    with pytest.raises(EntityNotFoundError):
        analytics.get_rule(created.id)
    with pytest.raises(EntityNotFoundError):
        analytics.delete_rule(created.id)


def test_invalid_rules_are_rejected(analytics):
    with pytest.raises(InvalidRequestError):
        analytics.create_rule(_slow_rule(name="  "))
    with pytest.raises(InvalidRequestError):
        analytics.create_rule(_slow_rule(time_window_seconds=0))
    analytics.create_rule(_slow_rule())
    with pytest.raises(InvalidRequestError):
        analytics.create_rule(_slow_rule())
    with pytest.raises(InvalidRequestError):
        analytics.update_rule("slow", min_samples=0)


def test_set_thresholds_updates_builtin_rules():
    analytics = MatchingAnalytics()
    updated = analytics.set_thresholds(max_processing_time_ms=2000, max_error_rate=0.1)

    assert {rule.id for rule in updated} == {RULE_PROCESSING_TIME, RULE_ERROR_RATE}
    assert analytics.get_rule(RULE_PROCESSING_TIME).threshold == 2000
    assert analytics.get_rule(RULE_ERROR_RATE).threshold == 0.1


def test_error_rate_rule_fires_on_failures():
    analytics = MatchingAnalytics()
    for _ in range(9):
        analytics.log(_decision())
    analytics.log(_decision(status=DecisionStatus.ERROR, error_code="RETRIEVAL_UNAVAILABLE"))

    critical = analytics.get_alerts(severity=AlertSeverity.CRITICAL)
    assert [a.rule_id for a in critical] == [RULE_ERROR_RATE]
    assert analytics.get_alerts(alert_type=AlertType.BUSINESS) == []


# ── Alerts lifecycle ─────────────────────────────────────────────────


def test_acknowledge_and_resolve(analytics):
    analytics.create_rule(_slow_rule())
    analytics.log(_decision(processing_time_ms=500))
    alert_id = analytics.get_alerts()[0].id

    acknowledged = analytics.acknowledge_alert(alert_id)
    assert acknowledged.acknowledged and not acknowledged.resolved

    resolved = analytics.resolve_alert(alert_id)
    assert resolved.resolved and resolved.resolved_at is not None
    assert analytics.get_alerts() == []
    assert len(analytics.get_alerts(include_resolved=True)) == 1

    with pytest.raises(EntityNotFoundError):
        analytics.resolve_alert("nope")


def test_tick_auto_resolves_and_purges():
    analytics = MatchingAnalytics(rules=[_slow_rule()], auto_resolve_seconds=0, resolved_retention_seconds=0)
    analytics.log(_decision(processing_time_ms=500))

    report = analytics.tick()

    assert report.alerts_auto_resolved == 1
    assert report.alerts_purged == 1
    assert analytics.get_alerts(include_resolved=True) == []


# ── Export ───────────────────────────────────────────────────────────


def test_json_export_uses_camel_case(analytics):
    analytics.log(_decision(user_interaction=UserInteraction(clicked=True)))
    document = json.loads(analytics.export("json"))

    assert document["metadata"]["totalLogs"] == 1
    log = document["logs"][0]
    assert log["resolvedProfession"] == "pottery"
    assert log["searchMethod"] == "exact"
    assert log["userInteraction"]["clicked"] is True
    assert "totalDecisions" in document["metrics"]


def test_csv_export(analytics):
    analytics.log(_decision(query='pots, "glazed"'))
    rows = list(csv.DictReader(io.StringIO(analytics.export("csv"))))

    assert len(rows) == 1
    assert rows[0]["query"] == 'pots, "glazed"'
    assert rows[0]["status"] == "success"
    assert rows[0]["error_code"] == ""


def test_unknown_export_format_is_rejected(analytics):
    with pytest.raises(InvalidRequestError):
        analytics.export("xml")


# ── Write cost & concurrency ─────────────────────────────────────────


def _write_cost(history: int, writes: int = 200) -> float:
    analytics = MatchingAnalytics()
    old = datetime.now(timezone.utc) - timedelta(days=2)
    for i in range(history):
        analytics.log(_decision(timestamp=old + timedelta(milliseconds=i)))

    started = time.perf_counter()
    for _ in range(writes):
        analytics.log(_decision())
    return time.perf_counter() - started


def test_write_cost_does_not_grow_with_history_outside_rule_windows():
    small = _write_cost(history=100)
    large = _write_cost(history=20_000)
    assert large < small * 4 + 0.05


def test_out_of_order_timestamps_keep_windows_correct(analytics):
    now = datetime.now(timezone.utc)
    analytics.log(_decision())
    analytics.log(_decision(timestamp=now - timedelta(days=40)))
    analytics.log(_decision(timestamp=now - timedelta(minutes=5)))

    assert analytics.get_metrics(start=now - timedelta(minutes=10)).total_decisions == 2
    assert analytics.clear_old_logs(30) == 1
    assert analytics.get_metrics().total_decisions == 2


def test_concurrent_writes_are_all_kept():
    analytics = MatchingAnalytics()
    decisions = [_decision(processing_time_ms=i % 50) for i in range(400)]

    with ThreadPoolExecutor(max_workers=8) as pool:
        ids = list(pool.map(analytics.log, decisions))

    assert len(set(ids)) == 400
    assert len(analytics.get_decision_logs()) == 400
    assert analytics.get_metrics().total_decisions == 400
