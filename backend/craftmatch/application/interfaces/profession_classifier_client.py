"""Abstract interface (port) for AI-based profession classification."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from craftmatch.domain.entities import TokenUsage


@dataclass
class ProfessionClassificationRequest:
    """Request payload for classifying a buyer query into a profession."""

    query_text: str
    available_professions: list[str]


@dataclass
class ProfessionClassificationResponse:
    """Structured requirements and profession guess returned by the AI."""

    profession: str
    confidence: float
    reasoning: str = ""
    products: list[str] = field(default_factory=list)
    materials: list[str] = field(default_factory=list)
    techniques: list[str] = field(default_factory=list)
    usage: TokenUsage = field(default_factory=TokenUsage)
    model: str = ""


class ProfessionClassifierClient(ABC):
    """Port for the external language-understanding collaborator."""

    @abstractmethod
    async def classify_profession(
        self, request: ProfessionClassificationRequest
    ) -> ProfessionClassificationResponse:
        """Infer the primary profession and extracted requirements for a query.

        May raise any transport or parsing error; timeouts and retries are the
        caller's responsibility.
        """
        ...
