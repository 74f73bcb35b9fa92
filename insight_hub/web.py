# coding: utf-8
# Streamlit 看板：streamlit run insight_hub/web.py
from __future__ import annotations

import asyncio
import datetime
import html
import sys
from pathlib import Path

import httpx
import pandas as pd
import pytz
import streamlit as st

# streamlit run 直接执行本文件时，包路径不在 sys.path 里
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from insight_hub.aggregator import SearchUnavailableError, enhance_query
from insight_hub.analysis import DEPTHS, depth_index, generate_analysis
from insight_hub.cache import SearchCache
from insight_hub.collector import DEFAULT_TIMEOUT, USER_AGENT
from insight_hub.main import build_aggregator, load_cfg
from insight_hub.models import TIME_FRAMES

st.set_page_config(page_title="Insight Hub", page_icon="🛰️", layout="wide")

# ========== 样式 ==========
st.markdown("""
<style>
.ih-table{width:100%;border-collapse:collapse;font-size:14px}
.ih-table th,.ih-table td{border-bottom:1px solid rgba(255,255,255,.08);padding:8px 10px;vertical-align:top}
.ih-table th{position:sticky;top:0;background:rgba(0,0,0,.25);backdrop-filter:blur(6px)}
.ih-link{color:inherit;text-decoration:none}
.ih-link:hover{text-decoration:underline}
.nowrap{white-space:nowrap}
.score-badge{padding:2px 8px;border-radius:999px;background:rgba(253,126,20,.15);border:1px solid rgba(253,126,20,.35)}
.small{font-size:12px;color:#a0a0a0}
</style>
""", unsafe_allow_html=True)


# ========== 服务（跨 rerun 复用，缓存才有意义） ==========
@st.cache_resource
def _service():
    cfg = load_cfg()
    search_cfg = cfg["search"]
    return cfg, SearchCache(ttl_seconds=float(search_cfg["cache_ttl_minutes"]) * 60)


def _run_search(cfg: dict, cache: SearchCache, query: str, time_frame: str):
    # 每个会话各跑一个事件循环，不能共用全局 client；只共享缓存
    timeout = float(cfg["search"].get("adapter_timeout_sec", DEFAULT_TIMEOUT))

    async def go():
        async with httpx.AsyncClient(timeout=timeout, headers={"User-Agent": USER_AGENT}) as client:
            aggregator = build_aggregator(cfg, client=client, cache=cache)
            return await aggregator.search(query, time_frame)
    return asyncio.run(go())


# ========== 时间 / 表格工具 ==========
def _iso_to_local_str(ts: str, tz_name: str) -> str:
    if not ts:
        return ""
    try:
        dt = datetime.datetime.fromisoformat(ts.replace("Z", "+00:00"))
    except ValueError:
        return ts
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=pytz.UTC)
    return dt.astimezone(pytz.timezone(tz_name)).strftime("%Y-%m-%d %H:%M")


def _type_mix(df: pd.DataFrame) -> pd.DataFrame:
    if df.empty or "type" not in df:
        return pd.DataFrame(columns=["type", "count"])
    s = df["type"].value_counts()
    return s.rename_axis("type").reset_index(name="count")


def render_table_html(df: pd.DataFrame, tz_name: str) -> str:
    cols = ["发布时间", "来源", "类型", "相关度", "标题"]
    rows = []
    for _, r in df.iterrows():
        time_str = _iso_to_local_str(str(r.get("publishedAt", "") or ""), tz_name)
        src = html.escape(str(r.get("source", "") or ""))
        kind = html.escape(str(r.get("type", "") or ""))
        score = float(r.get("relevanceScore", 0) or 0)
        title = html.escape(str(r.get("title", "") or ""))
        link = str(r.get("url", "") or "")
        # 标题以文字显示；有链接则可点
        if link.startswith("http"):
            title_html = f"<a class='ih-link' href='{html.escape(link)}' target='_blank' rel='noopener noreferrer'>{title}</a>"
        else:
            title_html = title
        tds = [
            f"<td class='nowrap small'>{time_str}</td>",
            f"<td>{src}</td>",
            f"<td class='small'>{kind}</td>",
            f"<td><span class='score-badge'>{score:.2f}</span></td>",
            f"<td>{title_html}</td>",
        ]
        rows.append("<tr>" + "".join(tds) + "</tr>")
    thead = "<tr>" + "".join([f"<th>{c}</th>" for c in cols]) + "</tr>"
    return f"<table class='ih-table'><thead>{thead}</thead><tbody>{''.join(rows)}</tbody></table>"


# ========== 顶栏 ==========
cfg, cache = _service()
tz_name = cfg["analysis"].get("display_timezone", "UTC")

q_col, tf_col, depth_col, region_col = st.columns([0.46, 0.16, 0.2, 0.18], gap="small")
with q_col:
    query = st.text_input("查询", key="q", placeholder="例如 transformer models", label_visibility="collapsed")
with tf_col:
    time_frame = st.selectbox("时间窗口", TIME_FRAMES, index=TIME_FRAMES.index("week"))
with depth_col:
    depth = st.selectbox("分析深度", DEPTHS, index=depth_index(cfg["analysis"].get("default_depth", "")))
with region_col:
    region = st.text_input("区域", value="global")

st.markdown("---")

if not query.strip():
    st.info("输入查询词开始检索（新闻 + arXiv）。")
    st.stop()

enhanced = enhance_query(query.strip(), region.strip() or "global")
try:
    result_set = _run_search(cfg, cache, enhanced, time_frame)
except SearchUnavailableError as e:
    st.error(str(e))
    st.stop()

df = pd.DataFrame([r.to_dict() for r in result_set.results])
analysis = generate_analysis(result_set, enhanced, depth)

# ========== 结果 + 构成 ==========
left_main, right_main = st.columns([0.68, 0.32])

with left_main:
    st.subheader(f"🛰️ {enhanced}")
    st.caption(f"共 {result_set.total_found} 条 · {result_set.time_frame} · 生成于 "
               f"{_iso_to_local_str(result_set.timestamp, tz_name)}")
    if df.empty:
        st.warning("没有检索到结果。")
    else:
        st.markdown(render_table_html(df, tz_name), unsafe_allow_html=True)

with right_main:
    st.subheader("📊 来源构成")
    st.dataframe(_type_mix(df), use_container_width=True, hide_index=True)
    st.metric("置信度", f"{analysis['confidence']:.2f}")

st.markdown("---")

# ========== 分析 ==========
st.subheader(f"📌 {depth} analysis")
st.write(analysis["summary"])
for title, key in (("Insights", "insights"), ("Trends", "trends"), ("Recommendations", "recommendations")):
    with st.expander(title, expanded=(key == "insights")):
        for line in analysis[key]:
            st.markdown(f"- {line}")
