from .profession_matcher import ProfessionMatcher
from .ai_fallback_classifier import AIFallbackClassifier
from .query_analysis_cache import QueryAnalysisCache
from .candidate_retrieval import CandidateRetrievalService
from .scoring_engine import ScoringEngine
from .matching_analytics import DecisionLogFilter, MatchingAnalytics, QueryPatterns
from .decision_recorder import DecisionRecorder
from .matching_orchestrator import MatchingOrchestrator, QueryAnalysis, SystemStatus

__all__ = [
    "ProfessionMatcher",
    "AIFallbackClassifier",
    "QueryAnalysisCache",
    "CandidateRetrievalService",
    "ScoringEngine",
    "DecisionLogFilter",
    "MatchingAnalytics",
    "QueryPatterns",
    "DecisionRecorder",
    "MatchingOrchestrator",
    "QueryAnalysis",
    "SystemStatus",
]
