# -*- coding: utf-8 -*-
"""
insight_hub/api.py
HTTP 接口（FastAPI）：
    GET  /api/health    存活探针
    POST /api/analyze   单个查询：搜索 + 模板分析
    GET  /api/trending  按配置的热门话题逐个搜索

聚合器（连同内存缓存）挂在 app.state 上，进程内所有请求共用一份缓存。
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager, suppress
from typing import AsyncGenerator, Dict, Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .aggregator import Aggregator, enhance_query
from .analysis import DEFAULT_DEPTH, generate_analysis
from .collector import close_client
from .main import build_aggregator, load_cfg, run_housekeeper
from .utils import iso_utc

# 每个响应都带上的安全头（不含 CSP：/docs 页面要从 CDN 拉脚本）
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "SAMEORIGIN",
    "Referrer-Policy": "no-referrer",
    "X-DNS-Prefetch-Control": "off",
    "X-Download-Options": "noopen",
    "X-Permitted-Cross-Domain-Policies": "none",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Strict-Transport-Security": "max-age=15552000; includeSubDomains",
}


class AnalyzeRequest(BaseModel):
    query: Optional[str] = None
    timeFrame: str = "week"
    analysisDepth: Optional[str] = None  # 不传则用 analysis.default_depth
    region: str = "global"


class RateLimiter:
    """按客户端 IP 计数的固定窗口限流"""

    def __init__(self, points: int = 100, duration_sec: float = 60, clock=time.monotonic):
        self.points = int(points)
        self.duration_sec = float(duration_sec)
        self._clock = clock
        self._windows: Dict[str, Tuple[float, int]] = {}

    def check(self, identifier: str) -> Tuple[bool, Optional[int]]:
        """记一次请求，返回 (是否放行, 还需等待的秒数)"""
        now = self._clock()
        start, count = self._windows.get(identifier, (now, 0))

        if now - start >= self.duration_sec:
            start, count = now, 0

        if count >= self.points:
            retry_after = int(self.duration_sec - (now - start)) + 1
            return False, retry_after

        self._windows[identifier] = (start, count + 1)
        return True, None

    def purge_expired(self, now: Optional[float] = None) -> int:
        """删除已过期的窗口，返回删除数量"""
        now = self._clock() if now is None else now
        stale = [ip for ip, (start, _) in self._windows.items() if now - start >= self.duration_sec]
        for ip in stale:
            del self._windows[ip]
        return len(stale)

    def __len__(self) -> int:
        return len(self._windows)


def create_app(cfg: Optional[dict] = None, aggregator: Optional[Aggregator] = None) -> FastAPI:
    cfg = cfg or load_cfg()
    aggregator = aggregator or build_aggregator(cfg)
    server_cfg = cfg["server"]
    analysis_cfg = cfg["analysis"]

    limits = server_cfg.get("rate_limit") or {}
    limiter = RateLimiter(limits.get("points", 100), limits.get("duration_sec", 60))

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncGenerator[None, None]:
        housekeeper = asyncio.create_task(
            run_housekeeper(
                aggregator.cache,
                float(cfg["search"].get("housekeeping_sec", 600)),
                limiter,
            )
        )
        yield
        housekeeper.cancel()
        with suppress(asyncio.CancelledError):
            await housekeeper
        await close_client()
        print("[api] shutdown complete")

    app = FastAPI(title="Insight Hub", version="1.0.0", lifespan=lifespan)
    app.state.cfg = cfg
    app.state.aggregator = aggregator
    app.state.rate_limiter = limiter

    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=server_cfg.get("cors_origins", ["*"]),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def rate_limit(request: Request, call_next):
        ip = request.client.host if request.client else "unknown"
        allowed, retry_after = limiter.check(ip)
        if not allowed:
            print(f"[api] rate limit exceeded for {ip}")
            return JSONResponse(
                status_code=429,
                content={"error": "Too Many Requests"},
                headers={"Retry-After": str(retry_after)},
            )
        return await call_next(request)

    # 最后注册的在最外层，429 响应也会带上安全头
    @app.middleware("http")
    async def security_headers(request: Request, call_next):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.exception_handler(Exception)
    async def unhandled(_: Request, exc: Exception) -> JSONResponse:
        print(f"[api] unhandled error: {exc!r}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.get("/api/health")
    async def health():
        return {"status": "ok", "timestamp": iso_utc()}

    @app.post("/api/analyze")
    async def analyze(body: Optional[AnalyzeRequest] = None):
        body = body or AnalyzeRequest()
        if not body.query:
            return JSONResponse(status_code=400, content={"error": "Query parameter is required"})

        depth = body.analysisDepth or analysis_cfg.get("default_depth", DEFAULT_DEPTH)
        print(f"[api] analyze: {body.query} ({body.timeFrame}, {depth}, {body.region})")
        try:
            query = enhance_query(body.query, body.region)
            result_set = await aggregator.search(query, body.timeFrame)
            analysis = generate_analysis(result_set, query, depth)
        except Exception as e:
            print(f"[api] analyze failed: {e!r}")
            return JSONResponse(
                status_code=500,
                content={"error": "Analysis failed", "message": str(e), "timestamp": iso_utc()},
            )

        return {
            "query": query,
            "timeFrame": body.timeFrame,
            "analysisDepth": depth,
            "region": body.region,
            "searchResults": result_set.to_dict(),
            "analysis": analysis,
            "timestamp": iso_utc(),
        }

    @app.get("/api/trending")
    async def trending():
        try:
            items = await aggregator.trending(analysis_cfg["trending_topics"], "week")
        except Exception as e:
            print(f"[api] trending failed: {e!r}")
            return JSONResponse(status_code=500, content={"error": "Failed to fetch trending topics"})
        return {"trending": items, "timestamp": iso_utc()}

    return app
