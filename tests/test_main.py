# -*- coding: utf-8 -*-
"""
tests/test_main.py
配置加载：默认值、yml 按 section 合并、环境变量覆盖、坏文件回退；组装与定期清理
"""
import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

import httpx

from insight_hub.api import RateLimiter
from insight_hub.cache import SearchCache
from insight_hub.collector import AcademicAdapter, NewsAdapter
from insight_hub.main import DEFAULT_CFG, build_aggregator, load_cfg, run_housekeeper
from insight_hub.models import SearchResultSet


def test_repo_config_parses():
    cfg = load_cfg(project_root / "ops" / "config.yml")
    assert cfg["search"]["news_page_size"] == 20
    assert len(cfg["analysis"]["trending_topics"]) == 5


def test_yaml_merges_per_section(tmp_path, monkeypatch):
    monkeypatch.delenv("CACHE_TTL_MINUTES", raising=False)
    monkeypatch.delenv("PORT", raising=False)
    p = tmp_path / "config.yml"
    p.write_text("search:\n  cache_ttl_minutes: 5\nserver:\n  port: 9000\n", encoding="utf-8")
    cfg = load_cfg(p)
    assert cfg["search"]["cache_ttl_minutes"] == 5
    assert cfg["search"]["arxiv_max_results"] == 5
    assert cfg["server"]["port"] == 9000
    assert cfg["analysis"] == DEFAULT_CFG["analysis"]


def test_env_overrides(tmp_path, monkeypatch):
    monkeypatch.setenv("NEWS_API_KEY", "abc")
    monkeypatch.setenv("CACHE_TTL_MINUTES", "0.5")
    monkeypatch.setenv("PORT", "8080")
    cfg = load_cfg(tmp_path / "missing.yml")
    assert cfg["search"]["news_api_key"] == "abc"
    assert cfg["search"]["cache_ttl_minutes"] == 0.5
    assert cfg["server"]["port"] == 8080
    # 默认值本身不被修改
    assert DEFAULT_CFG["search"]["news_api_key"] == ""


def test_broken_yaml_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("CACHE_TTL_MINUTES", raising=False)
    p = tmp_path / "config.yml"
    p.write_text("search: [unclosed\n", encoding="utf-8")
    cfg = load_cfg(p)
    assert cfg["search"]["cache_ttl_minutes"] == 30


def test_build_aggregator(tmp_path, monkeypatch):
    monkeypatch.setenv("CACHE_TTL_MINUTES", "2")
    cfg = load_cfg(tmp_path / "missing.yml")
    agg = build_aggregator(cfg)
    assert agg.cache.ttl_seconds == 120
    assert isinstance(agg.adapters[0], NewsAdapter)
    assert isinstance(agg.adapters[1], AcademicAdapter)


def test_build_aggregator_reuses_cache_with_fresh_client(tmp_path):
    cfg = load_cfg(tmp_path / "missing.yml")
    shared = SearchCache(ttl_seconds=60)

    async def run():
        async with httpx.AsyncClient() as c1, httpx.AsyncClient() as c2:
            a = build_aggregator(cfg, client=c1, cache=shared)
            b = build_aggregator(cfg, client=c2, cache=shared)
            return a, b, c1, c2

    a, b, c1, c2 = asyncio.run(run())
    assert a.cache is shared and b.cache is shared
    assert all(ad._client is c1 for ad in a.adapters)
    assert all(ad._client is c2 for ad in b.adapters)


def test_housekeeper_purges_cache_and_rate_limits():
    now = [0.0]
    clock = lambda: now[0]
    cache = SearchCache(ttl_seconds=10, clock=clock)
    cache.put("q", "week", SearchResultSet((), 0, "q", "week", "2024-01-01T00:00:00.000Z"))
    limiter = RateLimiter(points=5, duration_sec=10, clock=clock)
    limiter.check("1.2.3.4")
    now[0] = 100.0

    async def run():
        task = asyncio.create_task(run_housekeeper(cache, 0.01, limiter))
        await asyncio.sleep(0.1)
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    asyncio.run(run())
    assert len(cache) == 0
    assert len(limiter) == 0
