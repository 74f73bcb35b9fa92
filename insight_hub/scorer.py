# 相关度打分
# 故意保持朴素：按查询词在文本中出现的次数做词频，不做词干化/停用词

from typing import List


def tokenize_query(query: str) -> List[str]:
    """按空白切分并转小写"""
    return (query or "").lower().split()


def relevance_score(text: str, query: str) -> float:
    """
    计算文本对查询的相关度

    参数:
        text: 标题 + 摘要拼接
        query: 原始查询串

    返回:
        [0, 1] 之间的分数；查询为空时为 0
    """
    tokens = tokenize_query(query)
    if not tokens:
        return 0.0

    lower = (text or "").lower()
    hits = sum(lower.count(tok) for tok in tokens)

    return min(hits / len(tokens), 1.0)
