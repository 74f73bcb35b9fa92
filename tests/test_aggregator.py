# -*- coding: utf-8 -*-
"""
tests/test_aggregator.py
聚合器：缓存命中 / TTL 过期 / 并发扇出 / 部分失败 / 编排失败
"""
import asyncio
import datetime
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

import httpx

from insight_hub.aggregator import Aggregator, SearchUnavailableError, enhance_query
from insight_hub.cache import SearchCache
from insight_hub.collector import AcademicAdapter, NewsAdapter
from insight_hub.models import FetchResult, SourceRecord, STATUS_LIVE, TYPE_ACADEMIC, TYPE_NEWS
from test_collector import ARXIV_FEED


class FakeClock:
    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


def rec(title: str, kind: str = TYPE_NEWS, score: float = 0.5) -> SourceRecord:
    return SourceRecord(
        title=title,
        description="",
        url=f"https://example.org/{title.replace(' ', '-')}",
        published_at="2024-01-01T00:00:00Z",
        source="test",
        type=kind,
        relevance_score=score,
    )


class StaticAdapter:
    def __init__(self, name, records, delay=0.0):
        self.name = name
        self.records = records
        self.delay = delay
        self.calls = []

    async def fetch(self, query, time_frame="week"):
        self.calls.append((query, time_frame))
        if self.delay:
            await asyncio.sleep(self.delay)
        return FetchResult(STATUS_LIVE, list(self.records))


class BoomAdapter:
    name = "boom"

    async def fetch(self, query, time_frame="week"):
        raise RuntimeError("adapter exploded")


def test_cache_hit_returns_identical_set_without_calls():
    news = StaticAdapter("news", [rec("a"), rec("b")])
    agg = Aggregator([news], SearchCache(ttl_seconds=60, clock=FakeClock()))

    async def run():
        first = await agg.search("transformer models", "day")
        second = await agg.search("transformer models", "day")
        return first, second

    first, second = asyncio.run(run())
    assert first is second
    assert first.timestamp == second.timestamp
    assert len(news.calls) == 1
    assert first.time_frame == "day"
    assert first.search_query == "transformer models"


def test_time_frames_are_cached_separately():
    news = StaticAdapter("news", [rec("a")])
    agg = Aggregator([news], SearchCache(ttl_seconds=60, clock=FakeClock()))

    async def run():
        await agg.search("q", "day")
        await agg.search("q", "week")
        await agg.search("q2", "day")

    asyncio.run(run())
    assert news.calls == [("q", "day"), ("q", "week"), ("q2", "day")]


def test_expired_entry_triggers_fresh_fetch():
    clock = FakeClock()
    news = StaticAdapter("news", [rec("a")])
    base = datetime.datetime(2024, 1, 1, tzinfo=datetime.timezone.utc)
    # 结果集时间戳跟着假时钟走
    agg = Aggregator(
        [news],
        SearchCache(ttl_seconds=60, clock=clock),
        now=lambda: base + datetime.timedelta(seconds=clock.t),
    )

    async def run():
        first = await agg.search("q")
        clock.t += 61
        second = await agg.search("q")
        return first, second

    first, second = asyncio.run(run())
    assert first is not second
    assert len(news.calls) == 2
    assert first.timestamp == "2024-01-01T00:00:00.000Z"
    assert second.timestamp == "2024-01-01T00:01:01.000Z"


def test_results_keep_adapter_order_not_completion_order():
    slow = StaticAdapter("news", [rec("n1"), rec("n2")], delay=0.05)
    fast = StaticAdapter("arxiv", [rec("p1", TYPE_ACADEMIC)])
    agg = Aggregator([slow, fast])

    rs = asyncio.run(agg.search("q"))
    assert [r.title for r in rs.results] == ["n1", "n2", "p1"]
    assert rs.total_found == 3


def test_adapters_run_concurrently():
    class Rendezvous:
        def __init__(self, name, mine, other):
            self.name = name
            self.mine = mine
            self.other = other

        async def fetch(self, query, time_frame="week"):
            self.mine.set()
            # 对方没有同时在跑就会超时
            await asyncio.wait_for(self.other.wait(), timeout=1.0)
            return FetchResult(STATUS_LIVE, [rec(self.name)])

    async def run():
        a, b = asyncio.Event(), asyncio.Event()
        agg = Aggregator([Rendezvous("a", a, b), Rendezvous("b", b, a)])
        return await agg.search("q")

    rs = asyncio.run(run())
    assert [r.title for r in rs.results] == ["a", "b"]


def test_failing_adapter_is_dropped():
    news = StaticAdapter("news", [rec("a"), rec("b")])
    agg = Aggregator([news, BoomAdapter()])

    rs = asyncio.run(agg.search("q"))
    assert [r.title for r in rs.results] == ["a", "b"]
    assert rs.total_found == 2


def test_falsy_entries_are_dropped():
    class Sloppy:
        name = "sloppy"

        async def fetch(self, query, time_frame="week"):
            return [None, rec("kept")]

    rs = asyncio.run(Aggregator([Sloppy()]).search("q"))
    assert [r.title for r in rs.results] == ["kept"]


def test_orchestration_fault_is_opaque_and_not_cached():
    class NoFetch:
        name = "broken"

    agg = Aggregator([NoFetch()])
    try:
        asyncio.run(agg.search("q"))
    except SearchUnavailableError as e:
        assert str(e) == "Search service temporarily unavailable"
        assert "fetch" not in str(e)
    else:
        raise AssertionError("expected SearchUnavailableError")
    assert len(agg.cache) == 0


def test_no_credential_news_plus_live_arxiv():
    def handler(request):
        return httpx.Response(200, text=ARXIV_FEED)

    async def run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        agg = Aggregator([NewsAdapter(None, client=client), AcademicAdapter(client=client)])
        try:
            return await agg.search("quantum computing", "week")
        finally:
            await client.aclose()

    rs = asyncio.run(run())
    news = [r for r in rs.results if r.type == TYPE_NEWS]
    papers = [r for r in rs.results if r.type == TYPE_ACADEMIC]
    assert len(news) == 6
    assert all("quantum computing" in r.title for r in news)
    assert len(papers) == 2
    assert rs.results[:6] == tuple(news)
    assert rs.total_found == 8
    assert all(0.0 <= r.relevance_score <= 1.0 for r in rs.results)


def test_academic_down_keeps_news():
    async def run():
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda req: httpx.Response(502)))
        agg = Aggregator([NewsAdapter(None, client=client), AcademicAdapter(client=client)])
        try:
            return await agg.search("edge ai", "month")
        finally:
            await client.aclose()

    rs = asyncio.run(run())
    assert rs.total_found == 6
    assert {r.type for r in rs.results} == {TYPE_NEWS}
    assert rs.time_frame == "month"


def test_trending_reports_count_and_top_story():
    news = StaticAdapter("news", [rec("top"), rec("second")])
    empty = StaticAdapter("arxiv", [])
    agg = Aggregator([news, empty])

    items = asyncio.run(agg.trending(["open source AI", "AI chips"]))
    assert [i["query"] for i in items] == ["open source AI", "AI chips"]
    assert items[0]["count"] == 2
    assert items[0]["topStory"]["title"] == "top"
    assert news.calls == [("open source AI", "week"), ("AI chips", "week")]


def test_enhance_query():
    assert enhance_query("AI chips", "global") == "AI chips"
    assert enhance_query("AI chips", "Europe") == "AI chips Europe"
    assert enhance_query("AI chips", None) == "AI chips"
