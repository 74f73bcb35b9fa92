# -*- coding: utf-8 -*-
"""
models.py
搜索聚合的数据模型。对外 JSON 字段名（publishedAt / relevanceScore /
totalFound ...）在 to_dict() 里统一转换，内部一律 snake_case。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

# 时间窗口：只影响新闻源
TIME_FRAMES = ("day", "week", "month")
DEFAULT_TIME_FRAME = "week"

# 记录类型标签（可扩展，新数据源可以带自己的 type）
TYPE_NEWS = "news"
TYPE_ACADEMIC = "academic"

# 适配器结果状态
STATUS_LIVE = "live"
STATUS_FALLBACK = "fallback"
STATUS_EMPTY = "empty"


@dataclass(frozen=True)
class SourceRecord:
    # 标题、摘要、原文链接
    title: str
    description: str
    url: str

    # 来源上报的发布时间（ISO-8601 字符串）
    published_at: str

    # 出处名称，如 "Reuters" / "arXiv"
    source: str

    # news / academic
    type: str

    # [0, 1]，入库时计算
    relevance_score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "publishedAt": self.published_at,
            "source": self.source,
            "type": self.type,
            "relevanceScore": self.relevance_score,
        }


@dataclass(frozen=True)
class SearchResultSet:
    """聚合器输出。构造后不可变，缓存命中时多个读者共享同一个对象。"""

    results: Tuple[SourceRecord, ...]
    total_found: int
    search_query: str
    time_frame: str
    timestamp: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "totalFound": self.total_found,
            "searchQuery": self.search_query,
            "timeFrame": self.time_frame,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class FetchResult:
    """
    单个适配器的一次调用结果。适配器永不抛错：
    - live:     远端正常返回
    - fallback: 无凭证或调用失败，返回固定兜底数据
    - empty:    调用失败或无结果，返回空列表
    """

    status: str
    records: List[SourceRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == STATUS_LIVE
