"""Domain entity for a buyer's free-text match query."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from craftmatch.domain.exceptions import InvalidRequestError

DEFAULT_MAX_RESULTS = 20
MAX_RESULTS_CAP = 100
MAX_QUERY_LENGTH = 1000


class SortPreference(str, Enum):
    """How the ranked result list should be ordered."""

    RELEVANCE = "relevance"
    PERFORMANCE = "performance"


@dataclass(frozen=True)
class Query:
    """Immutable match request input.

    Build through :meth:`create` so validation and result capping are
    applied consistently.
    """

    raw_text: str
    max_results: int = DEFAULT_MAX_RESULTS
    sort_preference: SortPreference = SortPreference.RELEVANCE
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def create(
        cls,
        raw_text: str | None,
        max_results: int | None = None,
        sort_preference: SortPreference | str | None = None,
        *,
        default_max_results: int = DEFAULT_MAX_RESULTS,
        max_results_cap: int = MAX_RESULTS_CAP,
    ) -> "Query":
        """Validate raw request values and build a Query.

        Raises:
            InvalidRequestError: empty/whitespace or over-long query, non-positive
                ``max_results`` or an unknown sort preference.
        """
        if not isinstance(raw_text, str) or not raw_text.strip():
            raise InvalidRequestError("Query text must not be empty", field="query")
        if len(raw_text) > MAX_QUERY_LENGTH:
            raise InvalidRequestError(
                f"Query text must be at most {MAX_QUERY_LENGTH} characters", field="query"
            )

        if max_results is None:
            max_results = default_max_results
        if isinstance(max_results, bool) or not isinstance(max_results, int):
            raise InvalidRequestError("maxResults must be an integer", field="maxResults")
        if max_results < 1:
            raise InvalidRequestError("maxResults must be at least 1", field="maxResults")
        max_results = min(max_results, max_results_cap)

        if sort_preference is None:
            preference = SortPreference.RELEVANCE
        else:
            try:
                preference = SortPreference(sort_preference)
            except ValueError:
                raise InvalidRequestError(
                    f"Unknown sort preference '{sort_preference}'", field="sortBy"
                ) from None

        return cls(raw_text=raw_text, max_results=max_results, sort_preference=preference)
