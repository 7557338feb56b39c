from .query import Query, SortPreference, DEFAULT_MAX_RESULTS, MAX_QUERY_LENGTH, MAX_RESULTS_CAP
from .profession import MatchSource, ProfessionCatalog, ProfessionDefinition, ProfessionMatch
from .candidate import CandidateProfile, PerformanceMetrics
from .match_result import (
    ConfidenceLevel,
    MatchExplanation,
    MatchingOutcome,
    MatchResult,
    SearchMethod,
)
from .cache_entry import CacheEntry, CacheStats
from .decision_log import AggregateMetrics, DecisionLog, DecisionStatus, UserInteraction
from .chat_message import ChatCompletionResult, ChatMessage, TokenUsage
from .alert import (
    Alert,
    AlertCondition,
    AlertMetric,
    AlertRule,
    AlertSeverity,
    AlertType,
    ComparisonOperator,
)

__all__ = [
    "Query",
    "SortPreference",
    "DEFAULT_MAX_RESULTS",
    "MAX_QUERY_LENGTH",
    "MAX_RESULTS_CAP",
    "MatchSource",
    "ProfessionCatalog",
    "ProfessionDefinition",
    "ProfessionMatch",
    "CandidateProfile",
    "PerformanceMetrics",
    "ConfidenceLevel",
    "MatchExplanation",
    "MatchingOutcome",
    "MatchResult",
    "SearchMethod",
    "CacheEntry",
    "CacheStats",
    "AggregateMetrics",
    "DecisionLog",
    "DecisionStatus",
    "UserInteraction",
    "Alert",
    "AlertCondition",
    "AlertMetric",
    "AlertRule",
    "AlertSeverity",
    "AlertType",
    "ComparisonOperator",
    "ChatCompletionResult",
    "ChatMessage",
    "TokenUsage",
]
