"""OpenRouter profession classifier — concrete implementation of the ProfessionClassifierClient port.

Reuses the OpenRouterClient for API calls and adds the prompt engineering
that turns a buyer query into structured requirements plus a profession.
"""

import json
import logging
import re

from craftmatch.application.interfaces import (
    ChatProvider,
    ProfessionClassificationRequest,
    ProfessionClassificationResponse,
    ProfessionClassifierClient,
)
from craftmatch.domain.entities import ChatMessage
from craftmatch.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage

logger = logging.getLogger(__name__)
plog = PipelineLogger("OpenRouterProfessionClassifier")

_FENCED_JSON = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

_CLASSIFICATION_SYSTEM_PROMPT = """You help buyers find craft artisans. Given a buyer's request, work out which craft profession they need and what they are asking for.

IMPORTANT RULES:
1. Return ONLY valid JSON with these exact keys: profession, confidence, reasoning, products, materials, techniques
2. profession must be exactly one of the provided professions
3. confidence must be a float between 0.0 and 1.0
4. products, materials and techniques are lists of short lowercase terms taken from the request (may be empty)
5. reasoning explains the choice in at most 200 characters
6. If no profession fits well, choose the closest one with a low confidence

Example response:
{"profession": "pottery", "confidence": 0.86, "reasoning": "Asks for glazed serving bowls", "products": ["serving bowls"], "materials": ["clay"], "techniques": ["glazing"]}"""


class OpenRouterProfessionClassifier(ProfessionClassifierClient):
    """Infrastructure adapter — AI profession classification via OpenRouter."""

    def __init__(self, chat_provider: ChatProvider, model: str):
        self._client = chat_provider
        self._model = model

    async def classify_profession(
        self, request: ProfessionClassificationRequest
    ) -> ProfessionClassificationResponse:
        """Send the query + profession list to the LLM and parse its JSON answer."""
        plog.step_start(
            PipelineStage.AI_FALLBACK,
            "Sending buyer query to LLM",
            model=self._model,
            query_length=len(request.query_text),
            num_professions=len(request.available_professions),
        )

        professions_text = "\n".join(f"- {p}" for p in request.available_professions)
        user_message = (
            f"## Available Professions\n{professions_text}\n\n"
            f"## Buyer Request\n{request.query_text}\n\n"
            f"Return your classification as JSON."
        )
        messages = [
            ChatMessage(role="system", content=_CLASSIFICATION_SYSTEM_PROMPT),
            ChatMessage(role="user", content=user_message),
        ]

        result = await self._client.complete(
            messages, self._model, temperature=0.1, max_tokens=300, json_mode=True
        )
        if result.finish_reason == "length":
            logger.warning("LLM classification answer was truncated at max_tokens")
        plog.detail("LLM response received", tokens=result.usage.total_tokens)

        data = json.loads(self._extract_json(result.content.strip()))
        if not isinstance(data, dict):
            raise ValueError("LLM response is not a JSON object")

        response = ProfessionClassificationResponse(
            profession=str(data.get("profession", "")),
            confidence=data.get("confidence"),
            reasoning=str(data.get("reasoning", "")),
            products=_string_list(data.get("products")),
            materials=_string_list(data.get("materials")),
            techniques=_string_list(data.get("techniques")),
            usage=result.usage,
            model=result.model,
        )
        plog.step_complete(
            PipelineStage.AI_FALLBACK,
            f"LLM suggested '{response.profession}'",
            confidence=response.confidence,
        )
        return response

    # ── Helpers ──────────────────────────────────────────────────────

    @staticmethod
    def _extract_json(text: str) -> str:
        """Extract JSON from a response that might be wrapped in markdown code blocks."""
        if "```" in text:
            match = _FENCED_JSON.search(text)
            if match:
                return match.group(1).strip()

        text = text.strip()
        if text.startswith("{"):
            return text

        raise ValueError(f"Could not extract JSON from LLM response: {text[:200]}")


def _string_list(value: object) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(v) for v in value if isinstance(v, (str, int, float))]
