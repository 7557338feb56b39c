"""Unit tests for the DecisionRecorder background writer."""

import asyncio

from craftmatch.application.services.decision_recorder import DecisionRecorder
from craftmatch.application.services.matching_analytics import MatchingAnalytics
from craftmatch.application.services.query_analysis_cache import QueryAnalysisCache
from craftmatch.domain.entities import DecisionLog, SearchMethod


def _decision(decision_id: str) -> DecisionLog:
    return DecisionLog(
        id=decision_id,
        query="pottery",
        normalized_query="pottery",
        resolved_profession="pottery",
        confidence=0.6,
        search_method=SearchMethod.EXACT,
        result_count=1,
        processing_time_ms=5,
    )


class ExplodingAnalytics(MatchingAnalytics):
    def log(self, decision):
        raise RuntimeError("disk full")


class CountingAnalytics(MatchingAnalytics):
    def __init__(self):
        super().__init__(rules=[])
        self.ticks = 0

    def tick(self):
        self.ticks += 1
        return super().tick()


async def test_full_queue_drops_oldest():
    analytics = MatchingAnalytics(rules=[])
    recorder = DecisionRecorder(analytics, max_queue_size=2)

    for i in range(3):
        recorder.submit(_decision(f"d{i}"))

    assert recorder.dropped_writes == 1
    assert recorder.queue_depth == 2
    assert await recorder.flush() == 2
    ids = {d.id for d in analytics.get_decision_logs()}
    assert ids == {"d1", "d2"}


async def test_write_failures_are_swallowed():
    recorder = DecisionRecorder(ExplodingAnalytics(rules=[]))
    recorder.submit(_decision("d0"))

    assert await recorder.flush() == 1
    assert recorder.failed_writes == 1
    assert recorder.recorded == 0


async def test_worker_records_in_background_and_stop_flushes():
    analytics = MatchingAnalytics(rules=[])
    recorder = DecisionRecorder(analytics, tick_seconds=60)
    await recorder.start()
    assert recorder.running

    recorder.submit(_decision("bg"))
    for _ in range(50):
        if recorder.recorded:
            break
        await asyncio.sleep(0.01)
    assert analytics.get_decision_log("bg").id == "bg"

    recorder.submit(_decision("late"))
    await recorder.stop()
    assert not recorder.running
    assert analytics.get_decision_log("late").id == "late"


async def test_idle_worker_runs_maintenance():
    analytics = CountingAnalytics()
    cache = QueryAnalysisCache()
    recorder = DecisionRecorder(analytics, cache=cache, tick_seconds=0.02)

    await recorder.start()
    await asyncio.sleep(0.1)
    await recorder.stop()

    assert analytics.ticks >= 1
