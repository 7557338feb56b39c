"""Matching orchestrator — runs one buyer query through the whole pipeline.

    normalize → cache lookup → classify (heuristic, AI fallback below the
    threshold) → retrieve (exact, then widened + exact filter) → score & rank
    → emit decision (fire-and-forget) → return

Recoverable problems (AI timeout or garbage, cache failure, analytics write
failure) only lower the quality of the answer. Store failures and unexpected
errors are raised to the caller after an error decision has been emitted.
A degraded AI answer is never cached, so the next identical query retries the AI.
"""

import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass

from craftmatch.application.services.ai_fallback_classifier import AIFallbackClassifier
from craftmatch.application.services.candidate_retrieval import CandidateRetrievalService
from craftmatch.application.services.decision_recorder import DecisionRecorder
from craftmatch.application.services.profession_matcher import ProfessionMatcher
from craftmatch.application.services.query_analysis_cache import QueryAnalysisCache
from craftmatch.application.services.scoring_engine import ScoringEngine
from craftmatch.domain.entities import (
    CacheStats,
    CandidateProfile,
    DecisionLog,
    DecisionStatus,
    MatchingOutcome,
    MatchResult,
    MatchSource,
    ProfessionMatch,
    Query,
    SearchMethod,
    SortPreference,
)
from craftmatch.domain.exceptions import (
    CacheUnavailableError,
    ClassificationDegradedError,
    MatchingPipelineError,
    RetrievalUnavailableError,
)
from craftmatch.domain.normalization import normalize_text
from craftmatch.infrastructure.logging.colored_logger import PipelineLogger, PipelineStage
from craftmatch.infrastructure.logging.log_config import bind_search_id

logger = logging.getLogger(__name__)
plog = PipelineLogger("MatchingOrchestrator")

NO_RESULTS_SUGGESTION = (
    "Try broadening your search, describing the craft differently "
    "or mentioning the material or product you need."
)
UNRECOGNISED_QUERY_SUGGESTION = (
    "We could not tell which craft you are looking for. "
    "Try naming the craft (e.g. pottery, woodworking) or the material."
)


@dataclass(frozen=True)
class QueryAnalysis:
    """Classification half of the pipeline (everything before retrieval)."""

    normalized_query: str
    profession_match: ProfessionMatch
    cache_hit: bool = False
    fallback_used: bool = False
    classification_degraded: bool = False


@dataclass(frozen=True)
class SystemStatus:
    professions: list[str]
    ai_configured: bool
    ai_service_healthy: bool
    confidence_threshold: float
    cache: CacheStats | None
    analytics_queue_depth: int
    analytics_dropped_writes: int


class MatchingOrchestrator:
    """Coordinates matcher, cache, AI fallback, retrieval, scoring and analytics.

    Built once at start-up; holds no per-request state.
    """

    def __init__(
        self,
        matcher: ProfessionMatcher,
        retrieval: CandidateRetrievalService,
        scoring: ScoringEngine,
        *,
        cache: QueryAnalysisCache | None = None,
        ai_classifier: AIFallbackClassifier | None = None,
        recorder: DecisionRecorder | None = None,
        confidence_threshold: float = 0.6,
        request_deadline_seconds: float = 8.0,
        cache_ttl_seconds: int | None = None,
        candidate_pool_size: int = 100,
        default_max_results: int = 20,
        max_results_cap: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._matcher = matcher
        self._retrieval = retrieval
        self._scoring = scoring
        self._cache = cache
        self._ai = ai_classifier
        self._recorder = recorder
        self._threshold = confidence_threshold
        self._deadline_seconds = request_deadline_seconds
        self._cache_ttl = cache_ttl_seconds
        self._pool_size = candidate_pool_size
        self._default_max_results = default_max_results
        self._max_results_cap = max_results_cap
        self._clock = clock
        self._ai_healthy = ai_classifier is not None

    @property
    def ai_service_healthy(self) -> bool:
        return self._ai is not None and self._ai_healthy

    # ── Public operations ────────────────────────────────────────────

    async def match(
        self,
        raw_text: str | None,
        max_results: int | None = None,
        sort_preference: SortPreference | str | None = None,
    ) -> MatchingOutcome:
        """Run the full pipeline for one buyer query.

        Raises:
            InvalidRequestError: empty query or bad parameters (before any work).
            RetrievalUnavailableError: the profile store could not be reached.
            MatchingPipelineError: any other unexpected failure.
        """
        query = Query.create(
            raw_text,
            max_results,
            sort_preference,
            default_max_results=self._default_max_results,
            max_results_cap=self._max_results_cap,
        )
        search_id = str(uuid.uuid4())
        with bind_search_id(search_id):
            return await self._run(query, search_id)

    async def _run(self, query: Query, search_id: str) -> MatchingOutcome:
        started = self._clock()
        deadline = started + self._deadline_seconds
        plog.step_start(PipelineStage.PIPELINE, "Match request received", search_id=search_id)

        analysis: QueryAnalysis | None = None
        try:
            analysis = await self._analyze(query.raw_text, deadline)
            match = analysis.profession_match

            if not match.is_resolved:
                plog.step_warning(PipelineStage.CLASSIFY, "No profession recognised; skipping retrieval")
                outcome = self._outcome(
                    search_id, query, analysis, [], 0, SearchMethod.NONE, started,
                    suggestion=UNRECOGNISED_QUERY_SUGGESTION,
                )
            else:
                candidates, method = await self._retrieve(match.profession)
                with plog.timed_step(PipelineStage.SCORE, "Scoring candidates", count=len(candidates)):
                    ranked = self._scoring.score(candidates, match, query.sort_preference)
                outcome = self._outcome(
                    search_id, query, analysis, ranked[: query.max_results], len(ranked), method, started,
                    suggestion=None if ranked else NO_RESULTS_SUGGESTION,
                )
        except RetrievalUnavailableError as exc:
            plog.step_error(PipelineStage.ERROR, "Profile store unavailable", error=exc)
            self._emit_failure(search_id, query, analysis, started, "RETRIEVAL_UNAVAILABLE")
            raise
        except Exception as exc:
            logger.exception("Matching pipeline failed for search %s", search_id)
            self._emit_failure(search_id, query, analysis, started, "INTERNAL_ERROR")
            raise MatchingPipelineError(search_id, exc) from exc

        self._emit(outcome)
        plog.step_complete(
            PipelineStage.COMPLETE,
            f"Matched '{outcome.profession_match.profession or '-'}'",
            results=len(outcome.matches),
            total=outcome.total_found,
            method=outcome.search_method.value,
            ms=outcome.processing_time_ms,
        )
        return outcome

    async def analyze(self, raw_text: str | None) -> QueryAnalysis:
        """Normalize, consult the cache and classify, without retrieval."""
        query = Query.create(raw_text)
        return await self._analyze(query.raw_text, self._clock() + self._deadline_seconds)

    def system_status(self) -> SystemStatus:
        cache_stats = None
        if self._cache is not None:
            try:
                cache_stats = self._cache.stats()
            except Exception:
                logger.warning("Query cache statistics unavailable", exc_info=True)
        return SystemStatus(
            professions=self._matcher.catalog.names,
            ai_configured=self._ai is not None,
            ai_service_healthy=self.ai_service_healthy,
            confidence_threshold=self._threshold,
            cache=cache_stats,
            analytics_queue_depth=self._recorder.queue_depth if self._recorder else 0,
            analytics_dropped_writes=self._recorder.dropped_writes if self._recorder else 0,
        )

    # ── Classification ───────────────────────────────────────────────

    async def _analyze(self, text: str, deadline: float) -> QueryAnalysis:
        normalized = normalize_text(text)
        plog.detail("Normalized query", normalized=normalized)

        cached = self._cache_get(normalized)
        if cached is not None:
            plog.step_complete(PipelineStage.CACHE, "Cache hit", profession=cached.profession or "-")
            return QueryAnalysis(
                normalized_query=normalized,
                profession_match=cached.with_source(MatchSource.CACHE),
                cache_hit=True,
            )

        heuristic = self._matcher.detect(text)
        plog.step_complete(
            PipelineStage.CLASSIFY,
            f"Heuristic: '{heuristic.profession or '-'}'",
            confidence=f"{heuristic.confidence:.2f}",
            threshold=self._threshold,
        )

        best = heuristic
        fallback_used = False
        degraded = False
        if heuristic.confidence < self._threshold and self._ai is not None:
            fallback_used = True
            try:
                ai_match = await self._ai.classify(text, deadline=deadline)
            except ClassificationDegradedError as exc:
                degraded = True
                self._ai_healthy = False
                plog.step_warning(
                    PipelineStage.AI_FALLBACK,
                    "AI fallback degraded; keeping heuristic result",
                    reason=exc.reason,
                    attempts=exc.attempts,
                )
            else:
                self._ai_healthy = True
                if ai_match.confidence > heuristic.confidence:
                    best = ai_match

        # A degraded answer is not cached, so the next identical query retries the AI.
        if not degraded:
            self._cache_put(normalized, best)

        return QueryAnalysis(
            normalized_query=normalized,
            profession_match=best,
            fallback_used=fallback_used,
            classification_degraded=degraded,
        )

    def _cache_get(self, key: str) -> ProfessionMatch | None:
        if self._cache is None:
            return None
        try:
            return self._cache.get(key)
        except CacheUnavailableError as exc:
            plog.step_warning(PipelineStage.CACHE, "Cache unavailable; treating as miss", error=str(exc))
        except Exception:
            logger.warning("Unexpected cache lookup failure; treating as miss", exc_info=True)
        return None

    def _cache_put(self, key: str, match: ProfessionMatch) -> None:
        if self._cache is None:
            return
        try:
            self._cache.put(key, match, self._cache_ttl)
        except Exception as exc:
            plog.step_warning(PipelineStage.CACHE, "Cache write failed", error=type(exc).__name__)

    # ── Retrieval ────────────────────────────────────────────────────

    async def _retrieve(self, profession: str) -> tuple[list[CandidateProfile], SearchMethod]:
        plog.step_start(PipelineStage.RETRIEVE, "Exact retrieval", profession=profession)
        exact = await self._retrieval.retrieve(profession, self._pool_size)
        candidates = [c for c in exact if c.has_profession(profession)]
        if len(candidates) != len(exact):
            logger.warning(
                "Profile store returned %d profiles outside '%s'; discarded",
                len(exact) - len(candidates),
                profession,
            )
        if candidates:
            plog.step_complete(PipelineStage.RETRIEVE, "Exact matches found", count=len(candidates))
            return candidates, SearchMethod.EXACT

        plog.step_start(PipelineStage.RETRIEVE, "No exact matches; widened retrieval with exact filter")
        widened = await self._retrieval.retrieve_widened()
        candidates = [c for c in widened if c.has_profession(profession)]
        plog.step_complete(
            PipelineStage.RETRIEVE,
            "Widened retrieval filtered",
            scanned=len(widened),
            kept=len(candidates),
        )
        return candidates, SearchMethod.WIDENED_FILTER

    # ── Outcome & decisions ──────────────────────────────────────────

    def _outcome(
        self,
        search_id: str,
        query: Query,
        analysis: QueryAnalysis,
        matches: list[MatchResult],
        total_found: int,
        method: SearchMethod,
        started: float,
        *,
        suggestion: str | None,
    ) -> MatchingOutcome:
        return MatchingOutcome(
            search_id=search_id,
            query=query,
            normalized_query=analysis.normalized_query,
            profession_match=analysis.profession_match,
            matches=matches,
            total_found=total_found,
            processing_time_ms=self._elapsed_ms(started),
            search_method=method,
            ai_service_healthy=self.ai_service_healthy,
            fallback_used=analysis.fallback_used,
            cache_hit=analysis.cache_hit,
            classification_degraded=analysis.classification_degraded,
            suggestion=suggestion,
        )

    def _emit(self, outcome: MatchingOutcome) -> None:
        scores = [m.relevance_score for m in outcome.matches]
        match = outcome.profession_match
        self._submit(
            DecisionLog(
                id=outcome.search_id,
                query=outcome.query.raw_text,
                normalized_query=outcome.normalized_query,
                resolved_profession=match.profession,
                confidence=match.confidence,
                search_method=outcome.search_method,
                result_count=len(outcome.matches),
                processing_time_ms=outcome.processing_time_ms,
                classification_source=match.source,
                matched_keywords=match.matched_keywords,
                ai_fallback_used=outcome.fallback_used,
                classification_degraded=outcome.classification_degraded,
                cache_hit=outcome.cache_hit,
                average_relevance=round(sum(scores) / len(scores), 2) if scores else None,
                top_relevance=scores[0] if scores else None,
                status=DecisionStatus.SUCCESS if scores else DecisionStatus.NO_RESULTS,
            )
        )

    def _emit_failure(
        self,
        search_id: str,
        query: Query,
        analysis: QueryAnalysis | None,
        started: float,
        error_code: str,
    ) -> None:
        match = analysis.profession_match if analysis else ProfessionMatch.unmatched()
        self._submit(
            DecisionLog(
                id=search_id,
                query=query.raw_text,
                normalized_query=analysis.normalized_query if analysis else normalize_text(query.raw_text),
                resolved_profession=match.profession,
                confidence=match.confidence,
                search_method=SearchMethod.NONE,
                result_count=0,
                processing_time_ms=self._elapsed_ms(started),
                classification_source=match.source,
                matched_keywords=match.matched_keywords,
                ai_fallback_used=analysis.fallback_used if analysis else False,
                classification_degraded=analysis.classification_degraded if analysis else False,
                cache_hit=analysis.cache_hit if analysis else False,
                status=DecisionStatus.ERROR,
                error_code=error_code,
            )
        )

    def _submit(self, decision: DecisionLog) -> None:
        if self._recorder is None:
            return
        try:
            self._recorder.submit(decision)
        except Exception:
            logger.warning("Could not queue decision %s", decision.id, exc_info=True)

    def _elapsed_ms(self, started: float) -> int:
        return int((self._clock() - started) * 1000)
