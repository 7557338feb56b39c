"""Domain entities for operator-defined alert rules and fired alerts."""

import operator
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class AlertSeverity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AlertType(str, Enum):
    PERFORMANCE = "performance"
    ACCURACY = "accuracy"
    SYSTEM = "system"
    BUSINESS = "business"


class AlertMetric(str, Enum):
    """Aggregate metrics a rule can watch. Values match AggregateMetrics fields."""

    AVERAGE_PROCESSING_TIME_MS = "average_processing_time_ms"
    AVERAGE_CONFIDENCE = "average_confidence"
    ZERO_RESULT_RATE = "zero_result_rate"
    ERROR_RATE = "error_rate"
    CACHE_HIT_RATE = "cache_hit_rate"
    FALLBACK_RATE = "fallback_rate"
    DEGRADED_RATE = "degraded_rate"


class ComparisonOperator(str, Enum):
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"

    def compare(self, value: float, threshold: float) -> bool:
        return _OPERATORS[self](value, threshold)

    @property
    def symbol(self) -> str:
        return _SYMBOLS[self]


_OPERATORS = {
    ComparisonOperator.GT: operator.gt,
    ComparisonOperator.GTE: operator.ge,
    ComparisonOperator.LT: operator.lt,
    ComparisonOperator.LTE: operator.le,
}
_SYMBOLS = {
    ComparisonOperator.GT: ">",
    ComparisonOperator.GTE: ">=",
    ComparisonOperator.LT: "<",
    ComparisonOperator.LTE: "<=",
}


@dataclass(frozen=True)
class AlertCondition:
    metric: AlertMetric
    operator: ComparisonOperator

    def is_met(self, value: float, threshold: float) -> bool:
        return self.operator.compare(value, threshold)

    def describe(self, threshold: float) -> str:
        return f"{self.metric.value} {self.operator.symbol} {threshold:g}"


@dataclass(frozen=True)
class AlertRule:
    """Threshold on an aggregate metric over a trailing time window.

    Rules change only through the administrative API. The time a rule last
    fired is tracked by the analytics component, not stored on the rule.
    """

    id: str
    name: str
    condition: AlertCondition
    threshold: float
    time_window_seconds: int
    severity: AlertSeverity
    alert_type: AlertType
    enabled: bool = True
    cooldown_seconds: int = 300
    min_samples: int = 1
    recommendations: tuple[str, ...] = ()


@dataclass
class Alert:
    """A fired alert. Acknowledge and resolve are independent flags."""

    id: str
    rule_id: str
    rule_name: str
    severity: AlertSeverity
    alert_type: AlertType
    metric: AlertMetric
    current_value: float
    threshold: float
    message: str
    recommendations: list[str] = field(default_factory=list)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    acknowledged: bool = False
    acknowledged_at: datetime | None = None
    resolved: bool = False
    resolved_at: datetime | None = None
