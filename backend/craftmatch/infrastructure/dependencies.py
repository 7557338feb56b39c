"""Dependency wiring — builds the matching component graph and exposes it to FastAPI.

Every component is constructed once (at start-up, in the lifespan) and kept
on ``app.state.container``. Route handlers receive the pieces they need
through the ``get_*`` accessors below, which tests replace with
``app.dependency_overrides``.
"""

import logging
from dataclasses import dataclass

import httpx
from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from craftmatch.application.services import (
    AIFallbackClassifier,
    CandidateRetrievalService,
    DecisionRecorder,
    MatchingAnalytics,
    MatchingOrchestrator,
    ProfessionMatcher,
    QueryAnalysisCache,
    ScoringEngine,
)
from craftmatch.config import Settings
from craftmatch.infrastructure.catalog.yaml_catalog_loader import load_profession_catalog
from craftmatch.infrastructure.database.repositories import SQLAlchemyProfileRepository
from craftmatch.infrastructure.llm.openrouter_profession_classifier import (
    OpenRouterProfessionClassifier,
)
from craftmatch.infrastructure.openrouter import OpenRouterClient

logger = logging.getLogger(__name__)


@dataclass
class MatchingContainer:
    """The process-wide component graph."""

    orchestrator: MatchingOrchestrator
    analytics: MatchingAnalytics
    cache: QueryAnalysisCache
    recorder: DecisionRecorder
    profile_repository: SQLAlchemyProfileRepository
    http_client: httpx.AsyncClient | None = None

    async def aclose(self) -> None:
        if self.http_client is not None:
            await self.http_client.aclose()


def build_container(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
    *,
    http_client: httpx.AsyncClient | None = None,
) -> MatchingContainer:
    """Construct every matching component from settings."""
    catalog = load_profession_catalog(settings.profession_catalog_file)
    matcher = ProfessionMatcher(catalog)

    cache = QueryAnalysisCache(
        default_ttl_seconds=settings.query_cache_ttl_seconds,
        max_entries=settings.query_cache_max_entries,
    )
    analytics = MatchingAnalytics(
        retention_days=settings.analytics_retention_days,
        auto_resolve_seconds=settings.alert_auto_resolve_seconds,
        resolved_retention_seconds=settings.resolved_alert_retention_seconds,
    )
    recorder = DecisionRecorder(
        analytics,
        cache=cache,
        max_queue_size=settings.analytics_queue_size,
        tick_seconds=settings.analytics_tick_seconds,
    )

    repository = SQLAlchemyProfileRepository(session_factory)
    retrieval = CandidateRetrievalService(
        repository, widened_limit=settings.widened_retrieval_limit
    )

    ai_classifier = None
    api_key = settings.openrouter_api_key.strip()
    if api_key:
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=settings.ai_fallback_timeout_seconds + 1.0)
        openrouter = OpenRouterClient(
            api_key=api_key,
            base_url=settings.openrouter_base_url,
            app_name=settings.openrouter_app_name,
            http_client=http_client,
        )
        ai_classifier = AIFallbackClassifier(
            OpenRouterProfessionClassifier(openrouter, settings.classification_model),
            catalog,
            timeout_seconds=settings.ai_fallback_timeout_seconds,
            max_retries=settings.ai_fallback_max_retries,
        )
    else:
        logger.warning(
            "OPENROUTER_API_KEY is not configured; matching runs heuristic-only."
        )

    orchestrator = MatchingOrchestrator(
        matcher,
        retrieval,
        ScoringEngine(),
        cache=cache,
        ai_classifier=ai_classifier,
        recorder=recorder,
        confidence_threshold=settings.heuristic_confidence_threshold,
        request_deadline_seconds=settings.request_deadline_seconds,
        cache_ttl_seconds=settings.query_cache_ttl_seconds,
        candidate_pool_size=settings.widened_retrieval_limit,
        default_max_results=settings.default_max_results,
        max_results_cap=settings.max_results_cap,
    )

    return MatchingContainer(
        orchestrator=orchestrator,
        analytics=analytics,
        cache=cache,
        recorder=recorder,
        profile_repository=repository,
        http_client=http_client,
    )


# ── FastAPI accessors ────────────────────────────────────────────────

def get_container(request: Request) -> MatchingContainer:
    return request.app.state.container


def get_orchestrator(request: Request) -> MatchingOrchestrator:
    return get_container(request).orchestrator


def get_analytics(request: Request) -> MatchingAnalytics:
    return get_container(request).analytics


def get_query_cache(request: Request) -> QueryAnalysisCache:
    return get_container(request).cache


def get_recorder(request: Request) -> DecisionRecorder:
    return get_container(request).recorder
