# -*- coding: utf-8 -*-
"""
insight_hub/cache.py
搜索结果的内存缓存：
- 按 (query, time_frame) 精确匹配（区分大小写与空白）
- 读时判断 TTL，过期即视为不存在并顺手删除
- purge_expired() 给 housekeeper 定期清理，避免长期运行时字典膨胀
不做任何 I/O，也不抛错。
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .models import SearchResultSet

CacheKey = Tuple[str, str]


@dataclass
class CacheEntry:
    value: SearchResultSet
    cached_at: float


class SearchCache:
    """
    ttl_seconds: 条目有效期（秒）
    clock: 返回秒数的单调时钟，测试里可以注入假时钟
    """

    def __init__(self, ttl_seconds: float = 30 * 60, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}

    @staticmethod
    def make_key(query: str, time_frame: str) -> CacheKey:
        return (query, time_frame)

    def get(self, query: str, time_frame: str) -> Optional[SearchResultSet]:
        key = self.make_key(query, time_frame)
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry.cached_at >= self.ttl_seconds:
            # 过期：当作不存在
            self._entries.pop(key, None)
            return None
        return entry.value

    def put(self, query: str, time_frame: str, result_set: SearchResultSet) -> None:
        self._entries[self.make_key(query, time_frame)] = CacheEntry(result_set, self._clock())

    def purge_expired(self, now: Optional[float] = None) -> int:
        """删除所有过期条目，返回删除数量"""
        now = self._clock() if now is None else now
        stale = [k for k, e in self._entries.items() if now - e.cached_at >= self.ttl_seconds]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries
