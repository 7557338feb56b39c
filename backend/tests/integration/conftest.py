"""HTTP test fixtures: a FastAPI app wired to in-memory components."""

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient

from craftmatch.application.interfaces import ProfileRepository
from craftmatch.application.services import (
    CandidateRetrievalService,
    DecisionRecorder,
    MatchingAnalytics,
    MatchingOrchestrator,
    ProfessionMatcher,
    QueryAnalysisCache,
    ScoringEngine,
)
from craftmatch.domain.entities import CandidateProfile, PerformanceMetrics
from craftmatch.infrastructure.dependencies import MatchingContainer
from craftmatch.main import create_app


class InMemoryProfileRepository(ProfileRepository):
    def __init__(self, profiles: list[CandidateProfile], *, fail: bool = False):
        self.profiles = profiles
        self.fail = fail

    async def find_by_profession(self, profession, *, limit):
        if self.fail:
            raise ConnectionError("connection refused by db-primary:5432")
        return [p for p in self.profiles if p.has_profession(profession)][:limit]

    async def find_all(self, *, limit):
        if self.fail:
            raise ConnectionError("connection refused by db-primary:5432")
        return self.profiles[:limit]


def _profile(profile_id: str, profession: str, metrics: tuple | None) -> CandidateProfile:
    return CandidateProfile(
        id=profile_id,
        name=f"Artisan {profile_id}",
        profession=profession,
        description=f"{profession} studio",
        location="Porto",
        performance_metrics=PerformanceMetrics.resolve(*metrics) if metrics else None,
    )


SAMPLE_PROFILES = [
    _profile("p1", "pottery", (4.0, 0.8, 40)),
    _profile("p2", "pottery", (5.0, 1.0, 200)),
    _profile("p3", "pottery", None),
    _profile("w1", "woodworking", (4.2, 0.88, 64)),
]


@pytest.fixture
def components(catalog):
    repository = InMemoryProfileRepository(list(SAMPLE_PROFILES))
    cache = QueryAnalysisCache()
    analytics = MatchingAnalytics()
    recorder = DecisionRecorder(analytics, cache=cache)
    orchestrator = MatchingOrchestrator(
        ProfessionMatcher(catalog),
        CandidateRetrievalService(repository),
        ScoringEngine(),
        cache=cache,
        recorder=recorder,
    )
    return SimpleNamespace(
        repository=repository,
        cache=cache,
        analytics=analytics,
        recorder=recorder,
        orchestrator=orchestrator,
    )


@pytest.fixture
async def client(components):
    app = create_app()
    app.state.container = MatchingContainer(
        orchestrator=components.orchestrator,
        analytics=components.analytics,
        cache=components.cache,
        recorder=components.recorder,
        profile_repository=components.repository,
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as http:
        yield http
