"""AI fallback classifier — bounded delegation to the language-understanding collaborator.

Owns the policy around the network call: a per-attempt timeout, at most one
retry, an overall deadline clamp and strict validation of what comes back.
Any failure surfaces as ClassificationDegradedError so the orchestrator can
keep the heuristic result.
"""

import asyncio
import logging
import math
import time
from collections.abc import Callable

from craftmatch.application.interfaces import (
    ProfessionClassificationRequest,
    ProfessionClassificationResponse,
    ProfessionClassifierClient,
)
from craftmatch.domain.entities import MatchSource, ProfessionCatalog, ProfessionMatch
from craftmatch.domain.exceptions import ClassificationDegradedError
from craftmatch.domain.normalization import normalize_profession, normalize_text
from craftmatch.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("AIFallbackClassifier")


class AIFallbackClassifier:
    """Classifies a query through the external AI service, within a time budget."""

    def __init__(
        self,
        client: ProfessionClassifierClient,
        catalog: ProfessionCatalog,
        *,
        timeout_seconds: float = 4.0,
        max_retries: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._catalog = catalog
        self._timeout = timeout_seconds
        self._max_retries = max(0, min(max_retries, 1))
        self._clock = clock

    async def classify(self, text: str, *, deadline: float | None = None) -> ProfessionMatch:
        """Ask the AI collaborator for a profession.

        Args:
            text: The raw buyer query.
            deadline: Absolute ``clock()`` time after which no attempt may run.
                The in-flight call is cancelled when it would overrun it.

        Raises:
            ClassificationDegradedError: timeout, transport error or malformed
                response on every attempt, or the deadline is already spent.
        """
        request = ProfessionClassificationRequest(
            query_text=text,
            available_professions=self._catalog.names,
        )
        attempts = 0
        reason = "no attempt made"

        for _ in range(self._max_retries + 1):
            budget = self._attempt_budget(deadline)
            if budget <= 0:
                reason = "request deadline exceeded"
                break

            attempts += 1
            plog.step_start(
                PipelineStage.AI_FALLBACK,
                "Requesting AI classification",
                attempt=attempts,
                budget=f"{budget:.2f}s",
            )
            try:
                response = await asyncio.wait_for(
                    self._client.classify_profession(request), timeout=budget
                )
                match = self._to_match(response)
            except asyncio.TimeoutError:
                reason = f"timed out after {budget:.2f}s"
            except ValueError as exc:
                reason = f"malformed response: {exc}"
            except Exception as exc:
                reason = f"{type(exc).__name__}: {exc}"
            else:
                plog.step_complete(
                    PipelineStage.AI_FALLBACK,
                    f"AI classified as '{match.profession}'",
                    confidence=f"{match.confidence:.2f}",
                    model=response.model or "?",
                )
                return match

            plog.step_warning(PipelineStage.AI_FALLBACK, "AI attempt failed", attempt=attempts, reason=reason)

        raise ClassificationDegradedError(reason, attempts=attempts)

    def _attempt_budget(self, deadline: float | None) -> float:
        if deadline is None:
            return self._timeout
        return min(self._timeout, deadline - self._clock())

    def _to_match(self, response: ProfessionClassificationResponse) -> ProfessionMatch:
        """Validate an AI response and convert it into a ProfessionMatch.

        Raises:
            ValueError: unknown profession or a confidence outside [0, 1].
        """
        profession = normalize_profession(response.profession)
        if not self._catalog.contains(profession):
            raise ValueError(f"profession '{response.profession}' is not in the catalogue")

        confidence = response.confidence
        if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
            raise ValueError(f"confidence is not a number: {confidence!r}")
        confidence = float(confidence)
        if math.isnan(confidence) or not 0.0 <= confidence <= 1.0:
            raise ValueError(f"confidence out of range: {confidence}")

        keywords: list[str] = []
        for term in (*response.products, *response.materials, *response.techniques):
            normalized = normalize_text(str(term))
            if normalized and normalized not in keywords:
                keywords.append(normalized)

        return ProfessionMatch(
            profession=profession,
            confidence=round(confidence, 2),
            matched_keywords=tuple(keywords),
            source=MatchSource.AI_FALLBACK,
        )
