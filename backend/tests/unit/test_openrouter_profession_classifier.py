"""Unit tests for the OpenRouterProfessionClassifier adapter."""

import json

import pytest

from craftmatch.application.interfaces import ChatProvider, ProfessionClassificationRequest
from craftmatch.domain.entities import ChatCompletionResult, TokenUsage
from craftmatch.infrastructure.llm.openrouter_profession_classifier import (
    OpenRouterProfessionClassifier,
)


# ── Fakes ────────────────────────────────────────────────────────────


class FakeChatProvider(ChatProvider):
    """Fake chat provider returning a canned completion."""

    def __init__(self, content: str):
        self._content = content
        self.last_messages = []
        self.last_model = ""
        self.last_json_mode = False

    @property
    def provider_name(self) -> str:
        return "fake"

    async def complete(
        self, messages, model, *, temperature=None, max_tokens=None, json_mode=False, timeout=None
    ):
        self.last_messages = messages
        self.last_model = model
        self.last_json_mode = json_mode
        return ChatCompletionResult(
            model=model,
            content=self._content,
            finish_reason="stop",
            usage=TokenUsage(prompt_tokens=10, completion_tokens=20, total_tokens=30),
            provider="fake",
        )


REQUEST = ProfessionClassificationRequest(
    query_text="glazed serving bowls for my cafe",
    available_professions=["pottery", "woodworking"],
)

ANSWER = {
    "profession": "pottery",
    "confidence": 0.86,
    "reasoning": "Asks for glazed serving bowls",
    "products": ["serving bowls"],
    "materials": ["clay"],
    "techniques": ["glazing", 7, None],
}


# ── Tests ────────────────────────────────────────────────────────────


async def test_parses_plain_json():
    provider = FakeChatProvider(json.dumps(ANSWER))
    classifier = OpenRouterProfessionClassifier(provider, "test/model")

    response = await classifier.classify_profession(REQUEST)

    assert response.profession == "pottery"
    assert response.confidence == 0.86
    assert response.products == ["serving bowls"]
    assert response.techniques == ["glazing", "7"]
    assert response.usage.total_tokens == 30
    assert response.model == "test/model"


async def test_prompt_lists_professions_and_query():
    provider = FakeChatProvider(json.dumps(ANSWER))
    await OpenRouterProfessionClassifier(provider, "test/model").classify_profession(REQUEST)

    system, user = provider.last_messages
    assert system.role == "system"
    assert "- pottery\n- woodworking" in user.content
    assert REQUEST.query_text in user.content
    assert provider.last_model == "test/model"
    assert provider.last_json_mode is True


async def test_tolerates_markdown_fences():
    content = "Here you go:\n```json\n" + json.dumps(ANSWER) + "\n```"
    response = await OpenRouterProfessionClassifier(
        FakeChatProvider(content), "m"
    ).classify_profession(REQUEST)
    assert response.profession == "pottery"


async def test_missing_lists_default_to_empty():
    content = json.dumps({"profession": "woodworking", "confidence": 0.4, "materials": "oak"})
    response = await OpenRouterProfessionClassifier(
        FakeChatProvider(content), "m"
    ).classify_profession(REQUEST)
    assert response.materials == []
    assert response.products == []


@pytest.mark.parametrize("content", ["I think pottery", "[1, 2]", "```json\nnot json\n```"])
async def test_unparseable_content_raises_value_error(content):
    classifier = OpenRouterProfessionClassifier(FakeChatProvider(content), "m")
    with pytest.raises(ValueError):
        await classifier.classify_profession(REQUEST)
