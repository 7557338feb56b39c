"""Domain entities for artisan profiles read from the profile store."""

from dataclasses import dataclass

from craftmatch.domain.normalization import normalize_profession

MAX_CUSTOMER_SATISFACTION = 5.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


@dataclass(frozen=True)
class PerformanceMetrics:
    """Historical performance of an artisan.

    customer_satisfaction: 0–5 rating
    completion_rate: 0–1 share of orders delivered
    total_orders: lifetime order count (≥ 0)
    """

    customer_satisfaction: float
    completion_rate: float
    total_orders: int

    @classmethod
    def resolve(
        cls,
        customer_satisfaction: float | None,
        completion_rate: float | None,
        total_orders: int | None,
    ) -> "PerformanceMetrics | None":
        """Resolve raw, possibly missing store values into metrics.

        No history at all → ``None`` (scored neutrally downstream).
        Partial history → missing values count as zero. Out-of-range values
        are clamped into their documented ranges.
        """
        if customer_satisfaction is None and completion_rate is None and total_orders is None:
            return None
        return cls(
            customer_satisfaction=_clamp(float(customer_satisfaction or 0.0), 0.0, MAX_CUSTOMER_SATISFACTION),
            completion_rate=_clamp(float(completion_rate or 0.0), 0.0, 1.0),
            total_orders=max(0, int(total_orders or 0)),
        )


@dataclass(frozen=True)
class CandidateProfile:
    """A craft producer as seen by the matching pipeline (read-only).

    Display attributes (name, description, location) pass through untouched.
    """

    id: str
    name: str
    profession: str
    description: str = ""
    location: str | None = None
    performance_metrics: PerformanceMetrics | None = None

    @property
    def normalized_profession(self) -> str:
        return normalize_profession(self.profession)

    def has_profession(self, profession: str) -> bool:
        """Exact, case/whitespace-normalized profession equality."""
        wanted = normalize_profession(profession)
        return bool(wanted) and self.normalized_profession == wanted
