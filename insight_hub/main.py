# insight_hub/main.py
# 配置加载 + 组装聚合器 + 命令行入口
# 默认启动 HTTP API（uvicorn）；带 --query 时只跑一次搜索+分析并打印 JSON

from __future__ import annotations

import argparse
import asyncio
import json
import os
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

from .aggregator import Aggregator, enhance_query
from .analysis import generate_analysis
from .cache import SearchCache
from .collector import build_adapters, close_client

ROOT = Path(__file__).resolve().parents[1]

DEFAULT_CFG = {
    "search": {
        "cache_ttl_minutes": 30,
        "adapter_timeout_sec": 8,
        "news_endpoint": "https://newsapi.org/v2/everything",
        "news_page_size": 20,
        "news_language": "en",
        "news_api_key": "",
        "arxiv_endpoint": "http://export.arxiv.org/api/query",
        "arxiv_max_results": 5,
        "housekeeping_sec": 600,
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3001,
        "cors_origins": ["*"],
        "rate_limit": {"points": 100, "duration_sec": 60},
    },
    "analysis": {
        "default_depth": "strategic",
        "display_timezone": "UTC",
        "trending_topics": [
            "large language models",
            "AI regulations",
            "open source AI",
            "AI chips semiconductors",
            "generative AI startups",
        ],
    },
}


def _apply_env(cfg: dict) -> dict:
    """环境变量优先于 yml；启动时读一次，之后视为不可变"""
    key = os.environ.get("NEWS_API_KEY")
    if key:
        cfg["search"]["news_api_key"] = key

    ttl = os.environ.get("CACHE_TTL_MINUTES")
    if ttl:
        try:
            cfg["search"]["cache_ttl_minutes"] = float(ttl)
        except ValueError:
            print(f"[main] CACHE_TTL_MINUTES 不是数字，忽略: {ttl!r}")

    port = os.environ.get("PORT")
    if port:
        try:
            cfg["server"]["port"] = int(port)
        except ValueError:
            print(f"[main] PORT 不是整数，忽略: {port!r}")
    return cfg


def load_cfg(path: Optional[Path] = None) -> dict:
    """ops/config.yml 可选；不存在就用默认。.env 会先被加载。"""
    load_dotenv(ROOT / ".env")

    cfg_path = Path(path or os.environ.get("INSIGHT_HUB_CONFIG") or ROOT / "ops" / "config.yml")
    out = {k: dict(v) for k, v in DEFAULT_CFG.items()}
    if cfg_path.exists():
        try:
            data = yaml.safe_load(cfg_path.read_text(encoding="utf-8")) or {}
            # 只对各个 section 做一层合并，避免过度魔法
            for section, defaults in DEFAULT_CFG.items():
                out[section] = {**defaults, **(data.get(section) or {})}
        except Exception as e:
            print(f"[main] 读取 {cfg_path} 失败，使用默认。err={e}")
    return _apply_env(out)


def build_aggregator(cfg: dict, client=None, cache: Optional[SearchCache] = None) -> Aggregator:
    """cache 可传入已有实例：看板每次换新的 client，但缓存要跨次复用"""
    search_cfg = cfg["search"]
    if cache is None:
        cache = SearchCache(ttl_seconds=float(search_cfg["cache_ttl_minutes"]) * 60)
    adapters = build_adapters(search_cfg, api_key=search_cfg.get("news_api_key"), client=client)
    return Aggregator(adapters, cache)


async def run_housekeeper(cache: SearchCache, every_sec: float = 600, limiter=None):
    """定期清理过期缓存和限流窗口，避免字典无限增长。"""
    print("[housekeeper] started")
    try:
        while True:
            await asyncio.sleep(every_sec)
            try:
                n = cache.purge_expired()
                if n:
                    print(f"[housekeeper] 清理过期缓存 {n} 条，剩余 {len(cache)}")
                if limiter is not None:
                    m = limiter.purge_expired()
                    if m:
                        print(f"[housekeeper] 清理过期限流窗口 {m} 个")
            except Exception as e:
                print(f"[housekeeper] purge error: {e}")
    except asyncio.CancelledError:
        print("[housekeeper] cancelled")
        raise


async def run_once(cfg: dict, query: str, time_frame: str, depth: str, region: str) -> dict:
    aggregator = build_aggregator(cfg)
    try:
        enhanced = enhance_query(query, region)
        result_set = await aggregator.search(enhanced, time_frame)
        return {
            "query": enhanced,
            "timeFrame": time_frame,
            "analysisDepth": depth,
            "region": region,
            "searchResults": result_set.to_dict(),
            "analysis": generate_analysis(result_set, enhanced, depth),
        }
    finally:
        await close_client()


def serve(cfg: dict) -> None:
    import uvicorn

    from .api import create_app

    host = cfg["server"]["host"]
    port = int(cfg["server"]["port"])
    print(f"[main] Insight Hub API on {host}:{port}")
    uvicorn.run(create_app(cfg), host=host, port=port)


def main(argv=None) -> None:
    parser = argparse.ArgumentParser(description="Insight Hub: news + arXiv search aggregation")
    parser.add_argument("--config", type=Path, default=None, help="yml 配置路径（默认 ops/config.yml）")
    parser.add_argument("--query", help="只跑一次搜索并打印 JSON")
    parser.add_argument("--time-frame", default="week", choices=["day", "week", "month"])
    parser.add_argument("--depth", default=None, help="strategic / technical / market / comprehensive")
    parser.add_argument("--region", default="global")
    args = parser.parse_args(argv)

    cfg = load_cfg(args.config)

    if args.query:
        depth = args.depth or cfg["analysis"]["default_depth"]
        payload = asyncio.run(run_once(cfg, args.query, args.time_frame, depth, args.region))
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return

    serve(cfg)


if __name__ == "__main__":
    main()
