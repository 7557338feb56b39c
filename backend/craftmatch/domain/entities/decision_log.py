"""Domain entities for the matching decision audit trail."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum

from .match_result import SearchMethod
from .profession import MatchSource


class DecisionStatus(str, Enum):
    SUCCESS = "success"
    NO_RESULTS = "no_results"
    ERROR = "error"


@dataclass(frozen=True)
class UserInteraction:
    """Post-hoc buyer behaviour reported after a search (click-through, conversion)."""

    selected_artisan_id: str | None = None
    selected_rank: int | None = None
    clicked: bool = False
    contact_initiated: bool = False
    converted: bool = False
    feedback_rating: int | None = None  # 1-5
    time_to_selection_ms: int | None = None
    recorded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def merge(self, update: "UserInteraction") -> "UserInteraction":
        """Combine with a later report; flags only ever switch on."""
        return UserInteraction(
            selected_artisan_id=update.selected_artisan_id or self.selected_artisan_id,
            selected_rank=update.selected_rank if update.selected_rank is not None else self.selected_rank,
            clicked=self.clicked or update.clicked,
            contact_initiated=self.contact_initiated or update.contact_initiated,
            converted=self.converted or update.converted,
            feedback_rating=(
                update.feedback_rating if update.feedback_rating is not None else self.feedback_rating
            ),
            time_to_selection_ms=(
                update.time_to_selection_ms
                if update.time_to_selection_ms is not None
                else self.time_to_selection_ms
            ),
            recorded_at=update.recorded_at,
        )

    @property
    def selected(self) -> bool:
        return self.clicked or self.selected_artisan_id is not None


@dataclass(frozen=True)
class DecisionLog:
    """One record per completed (or failed) match request.

    Append-only. Interaction updates produce a new record that replaces the
    stored one; the original is never modified.
    """

    id: str
    query: str
    normalized_query: str
    resolved_profession: str
    confidence: float
    search_method: SearchMethod
    result_count: int
    processing_time_ms: int
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    classification_source: MatchSource = MatchSource.HEURISTIC
    matched_keywords: tuple[str, ...] = ()
    ai_fallback_used: bool = False
    classification_degraded: bool = False
    cache_hit: bool = False
    average_relevance: float | None = None
    top_relevance: float | None = None
    status: DecisionStatus = DecisionStatus.SUCCESS
    error_code: str | None = None
    user_interaction: UserInteraction | None = None

    def with_interaction(self, interaction: UserInteraction) -> "DecisionLog":
        merged = self.user_interaction.merge(interaction) if self.user_interaction else interaction
        return replace(self, user_interaction=merged)


@dataclass(frozen=True)
class AggregateMetrics:
    """Rolling aggregates over a set of decision logs."""

    total_decisions: int = 0
    success_count: int = 0
    no_result_count: int = 0
    error_count: int = 0
    average_confidence: float = 0.0
    average_processing_time_ms: float = 0.0
    average_result_count: float = 0.0
    cache_hit_rate: float = 0.0
    zero_result_rate: float = 0.0
    error_rate: float = 0.0
    fallback_rate: float = 0.0
    degraded_rate: float = 0.0
    selection_rate: float = 0.0
    conversion_rate: float = 0.0
    window_start: datetime | None = None
    window_end: datetime | None = None
