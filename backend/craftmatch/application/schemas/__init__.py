from .match import (
    CamelModel,
    MatchRequest,
    AnalyzeRequest,
    PerformanceMetricsSchema,
    CandidateSchema,
    ScoreBreakdownSchema,
    MatchExplanationSchema,
    MatchResultSchema,
    QueryAnalysisSchema,
    SystemHealthSchema,
    MatchDataSchema,
    MatchResponse,
    ErrorDetailSchema,
    ErrorResponse,
    AnalyzeResponse,
    CacheStatsSchema,
    SystemStatusResponse,
)
from .analytics import (
    AggregateMetricsSchema,
    QueryCountSchema,
    TermCountSchema,
    MethodPerformanceSchema,
    QueryPatternsSchema,
    AlertSchema,
    AlertRuleCreate,
    AlertRuleUpdate,
    AlertRuleResponse,
    ThresholdsUpdate,
    UserInteractionSchema,
    DecisionLogSchema,
    CacheInvalidationResponse,
)

__all__ = [
    "CamelModel",
    "MatchRequest",
    "AnalyzeRequest",
    "PerformanceMetricsSchema",
    "CandidateSchema",
    "ScoreBreakdownSchema",
    "MatchExplanationSchema",
    "MatchResultSchema",
    "QueryAnalysisSchema",
    "SystemHealthSchema",
    "MatchDataSchema",
    "MatchResponse",
    "ErrorDetailSchema",
    "ErrorResponse",
    "AnalyzeResponse",
    "CacheStatsSchema",
    "SystemStatusResponse",
    "AggregateMetricsSchema",
    "QueryCountSchema",
    "TermCountSchema",
    "MethodPerformanceSchema",
    "QueryPatternsSchema",
    "AlertSchema",
    "AlertRuleCreate",
    "AlertRuleUpdate",
    "AlertRuleResponse",
    "ThresholdsUpdate",
    "UserInteractionSchema",
    "DecisionLogSchema",
    "CacheInvalidationResponse",
]
