from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

import httpx

from .models import (
    DEFAULT_TIME_FRAME,
    FetchResult,
    STATUS_EMPTY,
    STATUS_FALLBACK,
    STATUS_LIVE,
)
from .parsers.arxiv import parse_feed
from .parsers.fallback import fallback_news
from .parsers.newsapi import parse_articles
from .utils import date_floor

NEWS_ENDPOINT = "https://newsapi.org/v2/everything"
ARXIV_ENDPOINT = "http://export.arxiv.org/api/query"
DEFAULT_TIMEOUT = 8.0
USER_AGENT = "insight-hub/1.0"

# -------------------- 共享 HTTP 客户端 --------------------

_CLIENT: Optional[httpx.AsyncClient] = None


def _ensure_client(timeout: float = DEFAULT_TIMEOUT, user_agent: str = USER_AGENT) -> httpx.AsyncClient:
    """全局复用一个 httpx AsyncClient，避免频繁建连。"""
    global _CLIENT
    if _CLIENT is None or _CLIENT.is_closed:
        _CLIENT = httpx.AsyncClient(timeout=timeout, headers={"User-Agent": user_agent})
    return _CLIENT


async def close_client() -> None:
    global _CLIENT
    if _CLIENT is not None:
        await _CLIENT.aclose()
        _CLIENT = None

# -------------------- 新闻源 --------------------


class NewsAdapter:
    """
    新闻源适配器。
    - 没有 api_key：直接返回兜底数据
    - 有 api_key：按时间窗口查询，任何失败（网络/超时/非2xx/坏 JSON）都回退到兜底数据
    """

    name = "news"

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        endpoint: str = NEWS_ENDPOINT,
        page_size: int = 20,
        language: str = "en",
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key or None
        self.endpoint = endpoint
        self.page_size = page_size
        self.language = language
        self.timeout = timeout
        self._client = client

    async def fetch(self, query: str, time_frame: str = DEFAULT_TIME_FRAME) -> FetchResult:
        if not self.api_key:
            return FetchResult(STATUS_FALLBACK, fallback_news(query))

        try:
            records = await asyncio.wait_for(self._search(query, time_frame), timeout=self.timeout)
        except Exception as e:
            print(f"[news] 调用失败，使用兜底数据: {e!r}")
            return FetchResult(STATUS_FALLBACK, fallback_news(query), error=repr(e))

        print(f"[news] '{query}' ({time_frame}) 命中 {len(records)} 条")
        return FetchResult(STATUS_LIVE, records)

    async def _search(self, query: str, time_frame: str):
        client = self._client or _ensure_client(self.timeout)
        # key 走请求头，避免出现在异常信息里的 URL 中
        resp = await client.get(
            self.endpoint,
            params={
                "q": query,
                "from": date_floor(time_frame),
                "sortBy": "relevancy",
                "language": self.language,
                "pageSize": self.page_size,
            },
            headers={"X-Api-Key": self.api_key},
        )
        resp.raise_for_status()
        return parse_articles(resp.json(), query)

# -------------------- 学术源 --------------------


class AcademicAdapter:
    """
    arXiv 适配器。不按时间过滤；任何失败或零结果都返回空列表，不造假数据。
    """

    name = "arxiv"

    def __init__(
        self,
        *,
        endpoint: str = ARXIV_ENDPOINT,
        max_results: int = 5,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.endpoint = endpoint
        self.max_results = max_results
        self.timeout = timeout
        self._client = client

    async def fetch(self, query: str, time_frame: str = DEFAULT_TIME_FRAME) -> FetchResult:
        try:
            records = await asyncio.wait_for(self._search(query), timeout=self.timeout)
        except Exception as e:
            print(f"[arxiv] 检索失败: {e!r}")
            return FetchResult(STATUS_EMPTY, [], error=repr(e))

        if not records:
            print(f"[arxiv] '{query}' 无结果")
            return FetchResult(STATUS_EMPTY, [])

        print(f"[arxiv] '{query}' 命中 {len(records)} 条")
        return FetchResult(STATUS_LIVE, records)

    async def _search(self, query: str):
        client = self._client or _ensure_client(self.timeout)
        resp = await client.get(
            self.endpoint,
            params={
                "search_query": f"all:{query}",
                "start": 0,
                "max_results": self.max_results,
                "sortBy": "submittedDate",
                "sortOrder": "descending",
            },
        )
        resp.raise_for_status()
        return parse_feed(resp.text, query)

# -------------------- 按配置组装 --------------------


def build_adapters(
    search_cfg: Dict[str, Any],
    api_key: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> List[Any]:
    """
    按 cfg['search'] 组装适配器，顺序即结果拼接顺序（新闻在前，学术在后）。
    """
    timeout = float(search_cfg.get("adapter_timeout_sec", DEFAULT_TIMEOUT))

    adapters: List[Any] = [
        NewsAdapter(
            api_key,
            endpoint=search_cfg.get("news_endpoint", NEWS_ENDPOINT),
            page_size=int(search_cfg.get("news_page_size", 20)),
            language=search_cfg.get("news_language", "en"),
            timeout=timeout,
            client=client,
        ),
        AcademicAdapter(
            endpoint=search_cfg.get("arxiv_endpoint", ARXIV_ENDPOINT),
            max_results=int(search_cfg.get("arxiv_max_results", 5)),
            timeout=timeout,
            client=client,
        ),
    ]

    mode = "live" if api_key else "fallback"
    print(f"[collector] 已组装 {len(adapters)} 个数据源（news={mode}）")
    return adapters
