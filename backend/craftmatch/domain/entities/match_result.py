"""Domain entities for ranked match output."""

from dataclasses import dataclass, field
from enum import Enum

from .candidate import CandidateProfile
from .profession import ProfessionMatch
from .query import Query


class ConfidenceLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"


class SearchMethod(str, Enum):
    """Which retrieval path produced the candidates."""

    EXACT = "exact"
    WIDENED_FILTER = "widened_filter"
    NONE = "none"


@dataclass(frozen=True)
class MatchExplanation:
    """Human-readable reasons attached to one ranked candidate."""

    primary_reason: str
    detailed_reasons: tuple[str, ...] = ()
    matched_keywords: tuple[str, ...] = ()
    confidence_level: ConfidenceLevel = ConfidenceLevel.MEDIUM
    profession_score: float = 1.0
    performance_score: float = 0.5


@dataclass(frozen=True)
class MatchResult:
    """One ranked candidate. ``rank`` is 1-based and assigned after sorting."""

    candidate: CandidateProfile
    relevance_score: float
    rank: int
    explanation: MatchExplanation


@dataclass
class MatchingOutcome:
    """Everything the orchestrator returns for one match request.

    A zero-length ``matches`` list is the structured "no artisans available"
    terminal state, not an error.
    """

    search_id: str
    query: Query
    normalized_query: str
    profession_match: ProfessionMatch
    matches: list[MatchResult] = field(default_factory=list)
    total_found: int = 0
    processing_time_ms: int = 0
    search_method: SearchMethod = SearchMethod.NONE
    ai_service_healthy: bool = False
    fallback_used: bool = False
    cache_hit: bool = False
    classification_degraded: bool = False
    suggestion: str | None = None

    @property
    def has_results(self) -> bool:
        return bool(self.matches)
