"""Decision analytics & alerting — audit trail, rolling metrics and alert rules.

Decision logs are append-only records of every match request. Aggregate
metrics are computed over them on demand; alert rules are evaluated after
each write and on the periodic tick. Firing a rule creates an Alert record;
the rule itself is never touched by request processing.

All state lives in memory behind one re-entrant lock, so many in-flight
requests (via the DecisionRecorder) and admin calls can share it safely.
"""

import bisect
import csv
import io
import json
import logging
import math
import threading
import uuid
from collections import Counter
from collections.abc import Callable, Iterable
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any

from pydantic.alias_generators import to_camel

from craftmatch.domain.entities import (
    AggregateMetrics,
    Alert,
    AlertCondition,
    AlertMetric,
    AlertRule,
    AlertSeverity,
    AlertType,
    ComparisonOperator,
    DecisionLog,
    DecisionStatus,
    SearchMethod,
    UserInteraction,
)
from craftmatch.domain.exceptions import EntityNotFoundError, InvalidRequestError

logger = logging.getLogger(__name__)

_COMMON_QUERY_LIMIT = 20
_KEYWORD_LIMIT = 15

_CSV_COLUMNS = (
    "timestamp",
    "id",
    "query",
    "resolved_profession",
    "confidence",
    "classification_source",
    "search_method",
    "result_count",
    "average_relevance",
    "processing_time_ms",
    "ai_fallback_used",
    "classification_degraded",
    "cache_hit",
    "status",
    "error_code",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Built-in rules ───────────────────────────────────────────────────

RULE_PROCESSING_TIME = "builtin-processing-time"
RULE_LOW_CONFIDENCE = "builtin-low-confidence"
RULE_ZERO_RESULTS = "builtin-zero-results"
RULE_ERROR_RATE = "builtin-error-rate"
RULE_CACHE_HIT_RATE = "builtin-cache-hit-rate"


def default_alert_rules() -> list[AlertRule]:
    return [
        AlertRule(
            id=RULE_PROCESSING_TIME,
            name="Slow matching",
            condition=AlertCondition(AlertMetric.AVERAGE_PROCESSING_TIME_MS, ComparisonOperator.GT),
            threshold=5000,
            time_window_seconds=300,
            severity=AlertSeverity.HIGH,
            alert_type=AlertType.PERFORMANCE,
            cooldown_seconds=600,
            min_samples=5,
            recommendations=(
                "Check AI fallback latency and timeout settings",
                "Check profile store query latency",
            ),
        ),
        AlertRule(
            id=RULE_LOW_CONFIDENCE,
            name="Low classification confidence",
            condition=AlertCondition(AlertMetric.AVERAGE_CONFIDENCE, ComparisonOperator.LT),
            threshold=0.4,
            time_window_seconds=900,
            severity=AlertSeverity.MEDIUM,
            alert_type=AlertType.ACCURACY,
            cooldown_seconds=1800,
            min_samples=10,
            recommendations=(
                "Review common unmatched queries and extend the profession catalogue",
            ),
        ),
        AlertRule(
            id=RULE_ZERO_RESULTS,
            name="High zero-result rate",
            condition=AlertCondition(AlertMetric.ZERO_RESULT_RATE, ComparisonOperator.GT),
            threshold=0.2,
            time_window_seconds=900,
            severity=AlertSeverity.MEDIUM,
            alert_type=AlertType.BUSINESS,
            cooldown_seconds=1800,
            min_samples=10,
            recommendations=(
                "Onboard artisans for the most requested professions",
                "Review the exact-match policy for related professions",
            ),
        ),
        AlertRule(
            id=RULE_ERROR_RATE,
            name="Matching errors",
            condition=AlertCondition(AlertMetric.ERROR_RATE, ComparisonOperator.GT),
            threshold=0.05,
            time_window_seconds=300,
            severity=AlertSeverity.CRITICAL,
            alert_type=AlertType.SYSTEM,
            cooldown_seconds=300,
            min_samples=10,
            recommendations=("Check profile store availability",),
        ),
        AlertRule(
            id=RULE_CACHE_HIT_RATE,
            name="Low cache hit rate",
            condition=AlertCondition(AlertMetric.CACHE_HIT_RATE, ComparisonOperator.LT),
            threshold=0.3,
            time_window_seconds=3600,
            severity=AlertSeverity.LOW,
            alert_type=AlertType.PERFORMANCE,
            cooldown_seconds=3600,
            min_samples=20,
            recommendations=("Consider a longer cache TTL",),
        ),
    ]


# ── Report types ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class DecisionLogFilter:
    profession: str | None = None
    search_method: SearchMethod | None = None
    status: DecisionStatus | None = None
    start: datetime | None = None
    end: datetime | None = None
    limit: int | None = None


@dataclass(frozen=True)
class QueryCount:
    query: str
    count: int
    average_confidence: float


@dataclass(frozen=True)
class TermCount:
    term: str
    count: int


@dataclass(frozen=True)
class MethodPerformance:
    count: int
    average_processing_time_ms: float
    average_confidence: float
    success_rate: float


@dataclass(frozen=True)
class QueryPatterns:
    common_queries: list[QueryCount] = field(default_factory=list)
    profession_counts: list[TermCount] = field(default_factory=list)
    keyword_counts: list[TermCount] = field(default_factory=list)
    performance_by_search_method: dict[str, MethodPerformance] = field(default_factory=dict)


@dataclass(frozen=True)
class MaintenanceReport:
    alerts_fired: int = 0
    alerts_auto_resolved: int = 0
    alerts_purged: int = 0
    logs_purged: int = 0


class MatchingAnalytics:
    """In-memory decision log store with metrics and alerting."""

    def __init__(
        self,
        *,
        rules: Iterable[AlertRule] | None = None,
        retention_days: int = 30,
        auto_resolve_seconds: int = 3600,
        resolved_retention_seconds: int = 86400,
        now: Callable[[], datetime] = _utcnow,
    ):
        self._now = now
        self._retention_days = retention_days
        self._auto_resolve = timedelta(seconds=auto_resolve_seconds)
        self._resolved_retention = timedelta(seconds=resolved_retention_seconds)
        self._lock = threading.RLock()
        self._logs: dict[str, DecisionLog] = {}
        # (timestamp, id) pairs kept sorted so time windows are found by bisection.
        self._timeline: list[tuple[datetime, str]] = []
        self._alerts: dict[str, Alert] = {}
        self._rules: dict[str, AlertRule] = {}
        self._last_triggered: dict[str, datetime] = {}
        for rule in default_alert_rules() if rules is None else rules:
            self._rules[rule.id] = rule

    # ── Decision logs ────────────────────────────────────────────────

    def log(self, decision: DecisionLog) -> str:
        """Append a decision and re-evaluate alert rules. Returns its id."""
        if not decision.id:
            decision = replace(decision, id=str(uuid.uuid4()))
        with self._lock:
            if decision.id in self._logs:
                logger.warning("Decision %s already logged; ignoring duplicate", decision.id)
                return decision.id
            self._logs[decision.id] = decision
            bisect.insort(self._timeline, (decision.timestamp, decision.id))
            self._evaluate_rules()
        return decision.id

    def update_interaction(self, decision_id: str, interaction: UserInteraction) -> DecisionLog:
        """Attach (or merge) a post-hoc buyer interaction to a logged decision."""
        with self._lock:
            existing = self._logs.get(decision_id)
            if existing is None:
                raise EntityNotFoundError("DecisionLog", decision_id)
            updated = existing.with_interaction(interaction)
            self._logs[decision_id] = updated
        return updated

    def get_decision_log(self, decision_id: str) -> DecisionLog:
        with self._lock:
            log = self._logs.get(decision_id)
        if log is None:
            raise EntityNotFoundError("DecisionLog", decision_id)
        return log

    def get_decision_logs(self, filters: DecisionLogFilter | None = None) -> list[DecisionLog]:
        """Matching logs, newest first."""
        filters = filters or DecisionLogFilter()
        with self._lock:
            logs = list(self._logs.values())

        selected = [
            log for log in logs
            if (filters.profession is None or log.resolved_profession == filters.profession)
            and (filters.search_method is None or log.search_method == filters.search_method)
            and (filters.status is None or log.status == filters.status)
            and (filters.start is None or log.timestamp >= filters.start)
            and (filters.end is None or log.timestamp <= filters.end)
        ]
        selected.sort(key=lambda log: log.timestamp, reverse=True)
        if filters.limit is not None:
            selected = selected[: filters.limit]
        return selected

    def clear_old_logs(self, older_than_days: int | None = None) -> int:
        days = self._retention_days if older_than_days is None else older_than_days
        cutoff = self._now() - timedelta(days=days)
        with self._lock:
            split = bisect.bisect_left(self._timeline, (cutoff,))
            stale = [key for _, key in self._timeline[:split]]
            del self._timeline[:split]
            for key in stale:
                del self._logs[key]
        if stale:
            logger.info("Cleared %d decision logs older than %d days", len(stale), days)
        return len(stale)

    # ── Metrics ──────────────────────────────────────────────────────

    def get_metrics(self, start: datetime | None = None, end: datetime | None = None) -> AggregateMetrics:
        with self._lock:
            logs = [
                log for log in self._since(start)
                if end is None or log.timestamp <= end
            ]
        return _aggregate(logs, start, end)

    def get_query_patterns(self, start: datetime | None = None, end: datetime | None = None) -> QueryPatterns:
        logs = self.get_decision_logs(DecisionLogFilter(start=start, end=end))

        per_query: dict[str, list[float]] = {}
        professions: Counter[str] = Counter()
        keywords: Counter[str] = Counter()
        per_method: dict[str, list[DecisionLog]] = {}
        for log in logs:
            per_query.setdefault(log.normalized_query, []).append(log.confidence)
            if log.resolved_profession:
                professions[log.resolved_profession] += 1
            keywords.update(log.matched_keywords)
            per_method.setdefault(log.search_method.value, []).append(log)

        common = sorted(
            (
                QueryCount(query=q, count=len(c), average_confidence=round(sum(c) / len(c), 3))
                for q, c in per_query.items()
            ),
            key=lambda qc: qc.count,
            reverse=True,
        )[:_COMMON_QUERY_LIMIT]

        performance = {
            method: MethodPerformance(
                count=len(group),
                average_processing_time_ms=round(sum(l.processing_time_ms for l in group) / len(group), 1),
                average_confidence=round(sum(l.confidence for l in group) / len(group), 3),
                success_rate=round(
                    sum(1 for l in group if l.status == DecisionStatus.SUCCESS) / len(group), 3
                ),
            )
            for method, group in per_method.items()
        }

        return QueryPatterns(
            common_queries=common,
            profession_counts=[TermCount(term=t, count=c) for t, c in professions.most_common()],
            keyword_counts=[TermCount(term=t, count=c) for t, c in keywords.most_common(_KEYWORD_LIMIT)],
            performance_by_search_method=performance,
        )

    # ── Alert rules ──────────────────────────────────────────────────

    def list_rules(self) -> list[tuple[AlertRule, datetime | None]]:
        """Rules with the time each last fired."""
        with self._lock:
            return [(rule, self._last_triggered.get(rule.id)) for rule in self._rules.values()]

    def get_rule(self, rule_id: str) -> AlertRule:
        with self._lock:
            rule = self._rules.get(rule_id)
        if rule is None:
            raise EntityNotFoundError("AlertRule", rule_id)
        return rule

    def last_triggered(self, rule_id: str) -> datetime | None:
        with self._lock:
            return self._last_triggered.get(rule_id)

    def create_rule(self, rule: AlertRule) -> AlertRule:
        if not rule.id:
            rule = replace(rule, id=str(uuid.uuid4()))
        _validate_rule(rule)
        with self._lock:
            if rule.id in self._rules:
                raise InvalidRequestError(f"Alert rule '{rule.id}' already exists", field="id")
            self._rules[rule.id] = rule
        logger.info("Created alert rule %s (%s)", rule.id, rule.condition.describe(rule.threshold))
        return rule

    def update_rule(self, rule_id: str, **changes: Any) -> AlertRule:
        """Replace selected fields of a rule (``id`` cannot change)."""
        changes.pop("id", None)
        with self._lock:
            current = self._rules.get(rule_id)
            if current is None:
                raise EntityNotFoundError("AlertRule", rule_id)
            updated = replace(current, **changes)
            _validate_rule(updated)
            self._rules[rule_id] = updated
        return updated

    def delete_rule(self, rule_id: str) -> None:
        with self._lock:
            if self._rules.pop(rule_id, None) is None:
                raise EntityNotFoundError("AlertRule", rule_id)
            self._last_triggered.pop(rule_id, None)

    def set_thresholds(
        self,
        *,
        max_processing_time_ms: float | None = None,
        min_average_confidence: float | None = None,
        max_zero_result_rate: float | None = None,
        max_error_rate: float | None = None,
        min_cache_hit_rate: float | None = None,
    ) -> list[AlertRule]:
        """Budget-style update of the built-in rules' thresholds in one call."""
        requested = {
            RULE_PROCESSING_TIME: max_processing_time_ms,
            RULE_LOW_CONFIDENCE: min_average_confidence,
            RULE_ZERO_RESULTS: max_zero_result_rate,
            RULE_ERROR_RATE: max_error_rate,
            RULE_CACHE_HIT_RATE: min_cache_hit_rate,
        }
        updated: list[AlertRule] = []
        with self._lock:
            for rule_id, threshold in requested.items():
                if threshold is None:
                    continue
                if rule_id not in self._rules:
                    logger.warning("Built-in rule %s was deleted; threshold ignored", rule_id)
                    continue
                updated.append(self.update_rule(rule_id, threshold=threshold))
        return updated

    # ── Alerts ───────────────────────────────────────────────────────

    def get_alerts(
        self,
        severity: AlertSeverity | None = None,
        alert_type: AlertType | None = None,
        include_resolved: bool = False,
    ) -> list[Alert]:
        """Alerts newest first, unresolved only unless asked otherwise."""
        with self._lock:
            alerts = [
                replace(a) for a in self._alerts.values()
                if (severity is None or a.severity == severity)
                and (alert_type is None or a.alert_type == alert_type)
                and (include_resolved or not a.resolved)
            ]
        return sorted(alerts, key=lambda a: a.timestamp, reverse=True)

    def acknowledge_alert(self, alert_id: str) -> Alert:
        with self._lock:
            alert = self._require_alert(alert_id)
            if not alert.acknowledged:
                alert.acknowledged = True
                alert.acknowledged_at = self._now()
            return replace(alert)

    def resolve_alert(self, alert_id: str) -> Alert:
        with self._lock:
            alert = self._require_alert(alert_id)
            if not alert.resolved:
                alert.resolved = True
                alert.resolved_at = self._now()
            return replace(alert)

    def _require_alert(self, alert_id: str) -> Alert:
        alert = self._alerts.get(alert_id)
        if alert is None:
            raise EntityNotFoundError("Alert", alert_id)
        return alert

    # ── Periodic maintenance ─────────────────────────────────────────

    def tick(self) -> MaintenanceReport:
        """Evaluate rules, auto-resolve stale alerts, purge old alerts and logs."""
        now = self._now()
        with self._lock:
            fired = self._evaluate_rules()

            auto_resolved = 0
            for alert in self._alerts.values():
                if not alert.resolved and now - alert.timestamp >= self._auto_resolve:
                    alert.resolved = True
                    alert.resolved_at = now
                    auto_resolved += 1

            purged = [
                a.id for a in self._alerts.values()
                if a.resolved and a.resolved_at is not None
                and now - a.resolved_at >= self._resolved_retention
            ]
            for alert_id in purged:
                del self._alerts[alert_id]

            logs_purged = self.clear_old_logs()

        report = MaintenanceReport(
            alerts_fired=fired,
            alerts_auto_resolved=auto_resolved,
            alerts_purged=len(purged),
            logs_purged=logs_purged,
        )
        logger.debug("Analytics tick: %s", report)
        return report

    def _evaluate_rules(self) -> int:
        """Fire every enabled rule whose condition holds. Caller holds the lock."""
        now = self._now()
        fired = 0
        for rule in self._rules.values():
            if not rule.enabled:
                continue
            last = self._last_triggered.get(rule.id)
            if last is not None and now - last < timedelta(seconds=rule.cooldown_seconds):
                continue

            window_start = now - timedelta(seconds=rule.time_window_seconds)
            window = self._since(window_start)
            if len(window) < rule.min_samples:
                continue

            metrics = _aggregate(window, window_start, now)
            value = getattr(metrics, rule.condition.metric.value)
            if not rule.condition.is_met(value, rule.threshold):
                continue

            alert = Alert(
                id=str(uuid.uuid4()),
                rule_id=rule.id,
                rule_name=rule.name,
                severity=rule.severity,
                alert_type=rule.alert_type,
                metric=rule.condition.metric,
                current_value=round(value, 4),
                threshold=rule.threshold,
                message=(
                    f"{rule.name}: {rule.condition.describe(rule.threshold)} "
                    f"(current {value:.3f} over the last {rule.time_window_seconds}s)"
                ),
                recommendations=list(rule.recommendations),
                timestamp=now,
            )
            self._alerts[alert.id] = alert
            self._last_triggered[rule.id] = now
            fired += 1
            logger.warning("Alert fired [%s] %s", rule.severity.value, alert.message)
        return fired

    def _since(self, start: datetime | None) -> list[DecisionLog]:
        """Logs stamped at or after ``start``, oldest first. Caller holds the lock."""
        first = 0 if start is None else bisect.bisect_left(self._timeline, (start,))
        return [self._logs[key] for _, key in self._timeline[first:]]

    # ── Export ───────────────────────────────────────────────────────

    def export(self, fmt: str = "json") -> str:
        """Serialize decision logs (and, for JSON, metrics and alerts)."""
        logs = self.get_decision_logs()
        if fmt == "csv":
            return _logs_to_csv(logs)
        if fmt != "json":
            raise InvalidRequestError(f"Unsupported export format '{fmt}'", field="format")

        document = {
            "metadata": {
                "exported_at": self._now(),
                "total_logs": len(logs),
                "format_version": 1,
            },
            "metrics": asdict(self.get_metrics()),
            "logs": [asdict(log) for log in logs],
            "alerts": [asdict(alert) for alert in self.get_alerts(include_resolved=True)],
        }
        return json.dumps(_camelize(document), indent=2)


# ── Helpers ──────────────────────────────────────────────────────────

def _aggregate(
    logs: list[DecisionLog], start: datetime | None, end: datetime | None
) -> AggregateMetrics:
    total = len(logs)
    if total == 0:
        return AggregateMetrics(window_start=start, window_end=end)

    errors = [l for l in logs if l.status == DecisionStatus.ERROR]
    answered = [l for l in logs if l.status != DecisionStatus.ERROR]
    successes = [l for l in answered if l.status == DecisionStatus.SUCCESS]
    no_results = len(answered) - len(successes)

    def rate(count: int, base: int) -> float:
        return count / base if base else 0.0

    return AggregateMetrics(
        total_decisions=total,
        success_count=len(successes),
        no_result_count=no_results,
        error_count=len(errors),
        average_confidence=rate(sum(l.confidence for l in answered), len(answered)),
        average_processing_time_ms=sum(l.processing_time_ms for l in logs) / total,
        average_result_count=rate(sum(l.result_count for l in answered), len(answered)),
        cache_hit_rate=rate(sum(1 for l in logs if l.cache_hit), total),
        zero_result_rate=rate(no_results, len(answered)),
        error_rate=len(errors) / total,
        fallback_rate=rate(sum(1 for l in logs if l.ai_fallback_used), total),
        degraded_rate=rate(sum(1 for l in logs if l.classification_degraded), total),
        selection_rate=rate(
            sum(1 for l in successes if l.user_interaction and l.user_interaction.selected),
            len(successes),
        ),
        conversion_rate=rate(
            sum(1 for l in successes if l.user_interaction and l.user_interaction.converted),
            len(successes),
        ),
        window_start=start or min(l.timestamp for l in logs),
        window_end=end or max(l.timestamp for l in logs),
    )


def _validate_rule(rule: AlertRule) -> None:
    if not rule.name.strip():
        raise InvalidRequestError("Alert rule name must not be empty", field="name")
    if not math.isfinite(rule.threshold):
        raise InvalidRequestError("Alert rule threshold must be a finite number", field="threshold")
    if rule.time_window_seconds <= 0:
        raise InvalidRequestError("timeWindowSeconds must be positive", field="timeWindowSeconds")
    if rule.cooldown_seconds < 0:
        raise InvalidRequestError("cooldownSeconds must not be negative", field="cooldownSeconds")
    if rule.min_samples < 1:
        raise InvalidRequestError("minSamples must be at least 1", field="minSamples")


def _logs_to_csv(logs: list[DecisionLog]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(_CSV_COLUMNS)
    for log in logs:
        row = []
        for column in _CSV_COLUMNS:
            value = getattr(log, column)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, Enum):
                value = value.value
            elif value is None:
                value = ""
            row.append(value)
        writer.writerow(row)
    return buffer.getvalue()


def _camelize(value: Any) -> Any:
    """Recursively camelCase dict keys and make values JSON-safe."""
    if isinstance(value, dict):
        return {to_camel(str(k)): _camelize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_camelize(v) for v in value]
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value
