"""Domain entities for the profession catalogue and classification results."""

from dataclasses import dataclass, replace
from enum import Enum

from craftmatch.domain.normalization import normalize_profession


class MatchSource(str, Enum):
    """Which component produced a ProfessionMatch."""

    HEURISTIC = "heuristic"
    AI_FALLBACK = "ai-fallback"
    CACHE = "cache"


@dataclass(frozen=True)
class ProfessionDefinition:
    """One craft profession and the vocabulary that points to it."""

    name: str
    aliases: tuple[str, ...] = ()
    keywords: tuple[str, ...] = ()
    materials: tuple[str, ...] = ()
    techniques: tuple[str, ...] = ()
    products: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProfessionCatalog:
    """Ordered, immutable set of profession definitions.

    Order matters: it breaks confidence ties in the heuristic matcher.
    """

    professions: tuple[ProfessionDefinition, ...] = ()

    @property
    def names(self) -> list[str]:
        return [p.name for p in self.professions]

    def contains(self, profession: str) -> bool:
        wanted = normalize_profession(profession)
        return any(p.name == wanted for p in self.professions)

    def __len__(self) -> int:
        return len(self.professions)


@dataclass(frozen=True)
class ProfessionMatch:
    """Result of classifying a query into a profession.

    ``profession`` is stored normalized (lowercase, trimmed). An empty
    profession is only allowed together with zero confidence.
    """

    profession: str
    confidence: float
    matched_keywords: tuple[str, ...] = ()
    source: MatchSource = MatchSource.HEURISTIC

    def __post_init__(self) -> None:
        object.__setattr__(self, "profession", normalize_profession(self.profession))
        object.__setattr__(self, "matched_keywords", tuple(self.matched_keywords))
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")
        if self.confidence > 0 and not self.profession:
            raise ValueError("profession must not be empty when confidence > 0")

    @classmethod
    def unmatched(cls, source: MatchSource = MatchSource.HEURISTIC) -> "ProfessionMatch":
        return cls(profession="", confidence=0.0, source=source)

    @property
    def is_resolved(self) -> bool:
        return bool(self.profession)

    def with_source(self, source: MatchSource) -> "ProfessionMatch":
        return replace(self, source=source)
