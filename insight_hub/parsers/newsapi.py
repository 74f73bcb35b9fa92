# 新闻接口（NewsAPI /v2/everything）响应解析
# 不信任上游结构：字段缺失给默认值，缺标题或链接的条目直接跳过

from typing import Any, Dict, List

from insight_hub.models import SourceRecord, TYPE_NEWS
from insight_hub.scorer import relevance_score


def _text(value: Any) -> str:
    # 上游偶尔给数字或对象，非字符串一律当缺失
    return value.strip() if isinstance(value, str) else ""


def _source_name(item: Dict[str, Any]) -> str:
    src = item.get("source")
    if isinstance(src, dict):
        return _text(src.get("name"))
    return _text(src)


def parse_articles(obj: Any, query: str) -> List[SourceRecord]:
    """
    把 NewsAPI 的 JSON 响应映射成 SourceRecord 列表

    响应格式：
    {
        "status": "ok",
        "articles": [
            {
                "source": {"id": null, "name": "Reuters"},
                "title": "...",
                "description": "...",
                "url": "https://...",
                "publishedAt": "2024-01-01T00:00:00Z"
            }
        ]
    }

    参数:
        obj: 解析后的 JSON
        query: 查询串，用来算相关度

    返回:
        SourceRecord 列表（保持上游顺序）

    异常:
        ValueError: 响应里没有 articles 数组（由适配器当作调用失败处理）
    """
    if not isinstance(obj, dict) or not isinstance(obj.get("articles"), list):
        raise ValueError("news response has no 'articles' array")

    records = []
    for item in obj["articles"]:
        if not isinstance(item, dict):
            continue

        title = _text(item.get("title"))
        url = _text(item.get("url"))
        if not title or not url:
            continue

        description = _text(item.get("description"))

        records.append(SourceRecord(
            title=title,
            description=description,
            url=url,
            published_at=_text(item.get("publishedAt")),
            source=_source_name(item),
            type=TYPE_NEWS,
            relevance_score=relevance_score(f"{title} {description}", query),
        ))

    return records
