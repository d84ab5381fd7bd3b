"""循环日历 -- 纯日期运算

daily / weekly / monthly 分别推进 1 天 / 1 周 / 1 个日历月（月末自动截断，
如 1 月 31 日 -> 2 月 28/29 日）。不做时区归一化，调用方需保证锚点时区一致。
"""

from collections.abc import Iterator
from datetime import datetime, timedelta

from dateutil.relativedelta import relativedelta

from .config import DEFAULT_SERIES_END_INCLUSIVE
from .models.enums import Cadence

_STEPS: dict[Cadence, timedelta | relativedelta] = {
    Cadence.DAILY: timedelta(days=1),
    Cadence.WEEKLY: timedelta(weeks=1),
    Cadence.MONTHLY: relativedelta(months=1),
}


def next_occurrence(anchor: datetime, cadence: Cadence) -> datetime:
    """计算下一次发生时间"""
    return anchor + _STEPS[Cadence(cadence)]


def series_continues(
    next_date: datetime,
    end_date: datetime | None,
    inclusive: bool = DEFAULT_SERIES_END_INCLUSIVE,
) -> bool:
    """判断系列是否继续

    默认下一次发生时间必须严格早于截止日期；恰好落在截止日期上时系列结束。
    inclusive=True 时放宽为 <=。
    """
    if end_date is None:
        return True
    if inclusive:
        return next_date <= end_date
    return next_date < end_date


def upcoming_occurrences(
    anchor: datetime,
    cadence: Cadence,
    end_date: datetime | None,
    limit: int,
    inclusive: bool = DEFAULT_SERIES_END_INCLUSIVE,
) -> Iterator[datetime]:
    """从锚点之后依次生成后续发生时间，遇到截止边界或达到 limit 停止"""
    current = anchor
    for _ in range(limit):
        current = next_occurrence(current, cadence)
        if not series_continues(current, end_date, inclusive):
            return
        yield current
