# arXiv Atom 响应解析

from typing import List

import feedparser

from insight_hub.models import SourceRecord, TYPE_ACADEMIC
from insight_hub.scorer import relevance_score
from insight_hub.utils import collapse_ws, truncate

ARXIV_SOURCE = "arXiv"
SUMMARY_LIMIT = 200


def parse_feed(text: str, query: str) -> List[SourceRecord]:
    """
    解析 arXiv API 返回的 Atom 文本

    参数:
        text: Atom XML 文本
        query: 查询串，用来算相关度

    返回:
        SourceRecord 列表，每条包含:
        - title: 标题（合并换行）
        - description: 摘要前200字符 + '...'
        - url: 条目 id（abs 页面地址）
        - published_at: 提交时间
    """
    feed = feedparser.parse(text)
    entries = feed.get("entries", [])

    if not entries and feed.get("bozo"):
        raise ValueError(f"unparseable feed: {feed.get('bozo_exception')!r}")

    records = []
    for entry in entries:
        title = collapse_ws(entry.get("title"))
        url = (entry.get("id") or entry.get("link") or "").strip()
        if not title or not url:
            continue

        summary = (entry.get("summary") or "").strip()

        records.append(SourceRecord(
            title=title,
            description=truncate(summary, SUMMARY_LIMIT),
            url=url,
            published_at=(entry.get("published") or "").strip(),
            source=ARXIV_SOURCE,
            type=TYPE_ACADEMIC,
            relevance_score=relevance_score(f"{title} {summary}", query),
        ))

    return records
