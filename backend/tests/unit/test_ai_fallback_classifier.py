"""Unit tests for the AIFallbackClassifier — timeout, retry and validation policy."""

import asyncio

import pytest

from craftmatch.application.interfaces import (
    ProfessionClassificationResponse,
    ProfessionClassifierClient,
)
from craftmatch.application.services.ai_fallback_classifier import AIFallbackClassifier
from craftmatch.domain.entities import MatchSource
from craftmatch.domain.exceptions import ClassificationDegradedError

HANG = object()


# ── Fakes ────────────────────────────────────────────────────────────


class FakeClassifierClient(ProfessionClassifierClient):
    """Replays scripted outcomes: a response, an exception, or HANG."""

    def __init__(self, *outcomes):
        self._outcomes = list(outcomes)
        self.calls = 0
        self.last_request = None

    async def classify_profession(self, request):
        self.calls += 1
        self.last_request = request
        outcome = self._outcomes[min(self.calls, len(self._outcomes)) - 1]
        if outcome is HANG:
            await asyncio.sleep(10)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def _response(profession="pottery", confidence=0.82, **kwargs) -> ProfessionClassificationResponse:
    return ProfessionClassificationResponse(
        profession=profession, confidence=confidence, model="test-model", **kwargs
    )


# ── Tests ────────────────────────────────────────────────────────────


async def test_valid_response_becomes_ai_match(catalog):
    client = FakeClassifierClient(
        _response(products=["Serving Bowls"], materials=["clay"], techniques=["glazing", "clay"])
    )
    match = await AIFallbackClassifier(client, catalog).classify("something for dinner")

    assert match.profession == "pottery"
    assert match.confidence == 0.82
    assert match.source == MatchSource.AI_FALLBACK
    assert match.matched_keywords == ("serving bowls", "clay", "glazing")
    assert client.last_request.available_professions == catalog.names


async def test_profession_is_normalized_before_catalogue_check(catalog):
    client = FakeClassifierClient(_response(profession="  Leather Work "))
    match = await AIFallbackClassifier(client, catalog).classify("a belt")
    assert match.profession == "leather work"


async def test_timeout_retries_once_then_degrades(catalog):
    client = FakeClassifierClient(HANG)
    classifier = AIFallbackClassifier(client, catalog, timeout_seconds=0.05)

    with pytest.raises(ClassificationDegradedError) as exc_info:
        await classifier.classify("anything")

    assert client.calls == 2
    assert exc_info.value.attempts == 2
    assert "timed out" in exc_info.value.reason


async def test_retry_recovers_from_transient_failure(catalog):
    client = FakeClassifierClient(ConnectionError("reset"), _response())
    match = await AIFallbackClassifier(client, catalog).classify("anything")
    assert client.calls == 2
    assert match.profession == "pottery"


async def test_retries_are_capped_at_one(catalog):
    client = FakeClassifierClient(ConnectionError("down"))
    classifier = AIFallbackClassifier(client, catalog, max_retries=5)
    with pytest.raises(ClassificationDegradedError):
        await classifier.classify("anything")
    assert client.calls == 2


async def test_zero_retries_makes_a_single_attempt(catalog):
    client = FakeClassifierClient(ConnectionError("down"))
    with pytest.raises(ClassificationDegradedError):
        await AIFallbackClassifier(client, catalog, max_retries=0).classify("anything")
    assert client.calls == 1


@pytest.mark.parametrize(
    "response",
    [
        _response(profession="basket weaving"),
        _response(confidence=1.5),
        _response(confidence=-0.2),
        _response(confidence=None),
        _response(confidence="high"),
        _response(confidence=True),
        _response(confidence=float("nan")),
    ],
)
async def test_malformed_response_degrades(catalog, response):
    client = FakeClassifierClient(response)
    with pytest.raises(ClassificationDegradedError) as exc_info:
        await AIFallbackClassifier(client, catalog).classify("anything")
    assert "malformed response" in exc_info.value.reason


async def test_spent_deadline_makes_no_call(catalog):
    now = [100.0]
    client = FakeClassifierClient(_response())
    classifier = AIFallbackClassifier(client, catalog, clock=lambda: now[0])

    with pytest.raises(ClassificationDegradedError) as exc_info:
        await classifier.classify("anything", deadline=99.0)

    assert client.calls == 0
    assert exc_info.value.reason == "request deadline exceeded"


async def test_deadline_clamps_attempt_budget(catalog):
    """A 10 s per-attempt timeout is cut to what is left of the request deadline."""
    loop = asyncio.get_running_loop()
    client = FakeClassifierClient(HANG)
    classifier = AIFallbackClassifier(client, catalog, timeout_seconds=10.0, clock=loop.time)

    started = loop.time()
    with pytest.raises(ClassificationDegradedError):
        await classifier.classify("anything", deadline=started + 0.1)

    assert loop.time() - started < 2.0
