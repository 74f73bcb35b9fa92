# -*- coding: utf-8 -*-
"""
insight_hub/aggregator.py
搜索聚合：缓存 -> 并发扇出到各数据源 -> 汇总 -> 回写缓存

失败语义：
- 单个数据源的失败在适配器内部吸收（兜底数据或空列表），聚合器再兜一层，
  即便适配器真的抛了异常也只丢弃它那一份结果
- 编排本身出错（程序缺陷）时统一抛 SearchUnavailableError，不透出内部细节
"""

from __future__ import annotations

import asyncio
import datetime
import time
from typing import Any, Callable, Dict, List, Optional, Sequence

from .cache import SearchCache
from .models import DEFAULT_TIME_FRAME, FetchResult, SearchResultSet, SourceRecord
from .utils import iso_utc, utc_now


class SearchUnavailableError(RuntimeError):
    def __init__(self, message: str = "Search service temporarily unavailable"):
        super().__init__(message)


class Aggregator:
    """
    adapters: 有 async fetch(query, time_frame) -> FetchResult 的对象，顺序即结果顺序
    cache: SearchCache 实例（测试可注入短 TTL / 假时钟）
    now: 结果集 timestamp 的时间来源，返回 UTC datetime
    """

    def __init__(
        self,
        adapters: Sequence[Any],
        cache: Optional[SearchCache] = None,
        now: Callable[[], datetime.datetime] = utc_now,
    ):
        self.adapters = list(adapters)
        self.cache = cache if cache is not None else SearchCache()
        self._now = now

    async def search(self, query: str, time_frame: str = DEFAULT_TIME_FRAME) -> SearchResultSet:
        cached = self.cache.get(query, time_frame)
        if cached is not None:
            print(f"[aggregator] 缓存命中 '{query}' ({time_frame})")
            return cached

        try:
            t0 = time.perf_counter()
            # gather 会先把所有协程都排进事件循环，再统一等待
            outcomes = await asyncio.gather(
                *(adapter.fetch(query, time_frame) for adapter in self.adapters),
                return_exceptions=True,
            )
            results = self._flatten(outcomes)

            result_set = SearchResultSet(
                results=tuple(results),
                total_found=len(results),
                search_query=query,
                time_frame=time_frame,
                timestamp=iso_utc(self._now()),
            )
        except Exception as e:
            print(f"[aggregator] 聚合失败 '{query}': {e!r}")
            raise SearchUnavailableError() from e

        self.cache.put(query, time_frame, result_set)
        print(
            f"[aggregator] '{query}' ({time_frame}) 共 {result_set.total_found} 条，"
            f"耗时 {time.perf_counter() - t0:.2f}s"
        )
        return result_set

    def _flatten(self, outcomes: List[Any]) -> List[SourceRecord]:
        out: List[SourceRecord] = []
        for adapter, outcome in zip(self.adapters, outcomes):
            if isinstance(outcome, BaseException):
                # 适配器本应自己吸收错误，这里只是兜底
                name = getattr(adapter, "name", type(adapter).__name__)
                print(f"[aggregator] 数据源 {name} 异常，已丢弃: {outcome!r}")
                continue
            records = outcome.records if isinstance(outcome, FetchResult) else outcome
            out.extend(r for r in (records or []) if r)
        return out

    async def trending(self, topics: Sequence[str], time_frame: str = DEFAULT_TIME_FRAME) -> List[Dict[str, Any]]:
        """
        对一组固定话题并发搜索，返回每个话题的条数与第一条结果。
        任一话题失败即整体失败（SearchUnavailableError）。
        """
        sets = await asyncio.gather(*(self.search(t, time_frame) for t in topics))
        return [
            {
                "query": topic,
                "count": rs.total_found,
                "topStory": rs.results[0].to_dict() if rs.results else None,
            }
            for topic, rs in zip(topics, sets)
        ]


def enhance_query(query: str, region: Optional[str] = "global") -> str:
    """非 global 区域时把区域名拼到查询后面"""
    if region and region != "global":
        return f"{query} {region}"
    return query
