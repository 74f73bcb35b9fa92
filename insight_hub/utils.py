import datetime
from typing import Optional

# 时间窗口 -> 回看天数；未知窗口按 week 处理
TIME_FRAME_DAYS = {
    "day": 1,
    "week": 7,
    "month": 30,
}


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def iso_utc(dt: Optional[datetime.datetime] = None) -> str:
    """
    datetime -> 'YYYY-MM-DDTHH:MM:SS.mmmZ'，不传则取当前时间
    """
    dt = dt or utc_now()
    return dt.astimezone(datetime.timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def date_floor(time_frame: str, now: Optional[datetime.datetime] = None) -> str:
    """
    把时间窗口换算成新闻接口的 from 参数（'YYYY-MM-DD'）

    参数:
        time_frame: day / week / month；其它值不报错，按 7 天处理
        now: 基准时间（测试注入），默认当前 UTC
    """
    days = TIME_FRAME_DAYS.get(time_frame, 7)
    base = now or utc_now()
    return (base - datetime.timedelta(days=days)).strftime("%Y-%m-%d")


def truncate(text: str, limit: int = 200, marker: str = "...") -> str:
    """截取前 limit 个字符并追加省略标记"""
    return (text or "")[:limit] + marker


def collapse_ws(text: Optional[str]) -> str:
    """合并多余空白（arXiv 标题里常带换行）"""
    return " ".join((text or "").split())
