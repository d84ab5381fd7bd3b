"""积分计算 -- 纯函数，无副作用

按截止前剩余小时数（可为负）分档：

    > 24            150 分，提前
    (12, 24]        100 分，提前
    (0, 12]          75 分，提前
    (-宽限, 0]       50 分，准时（含恰好到期）
    <= -宽限          0 分

宽限窗口默认 1 小时，由 TASKPORTAL_GRACE_WINDOW_HOURS 配置。
"""

from datetime import datetime
from typing import NamedTuple

from .config import DEFAULT_GRACE_WINDOW_HOURS

# (下界小时数, 积分)，自上而下匹配第一个 hours_before_due > 下界 的档位
EARLY_BANDS: tuple[tuple[float, int], ...] = (
    (24.0, 150),
    (12.0, 100),
    (0.0, 75),
)
ON_TIME_POINTS = 50
LATE_POINTS = 0

POSSIBLE_POINTS: frozenset[int] = frozenset(
    {points for _, points in EARLY_BANDS} | {ON_TIME_POINTS, LATE_POINTS}
)


class Score(NamedTuple):
    points: int
    is_early: bool


def hours_between(start: datetime, end: datetime) -> float:
    """end - start，单位小时（小数）"""
    return (end - start).total_seconds() / 3600


def compute_points(
    due_date: datetime,
    completed_at: datetime,
    grace_window_hours: float = DEFAULT_GRACE_WINDOW_HOURS,
) -> Score:
    """根据截止时间与完成时间计算积分

    Args:
        due_date: 截止时间
        completed_at: 完成时间
        grace_window_hours: 准时宽限窗口（小时）

    Returns:
        Score(points, is_early)
    """
    hours_before_due = hours_between(completed_at, due_date)

    for lower_bound, points in EARLY_BANDS:
        if hours_before_due > lower_bound:
            return Score(points, True)

    if hours_before_due > -grace_window_hours:
        return Score(ON_TIME_POINTS, False)
    return Score(LATE_POINTS, False)


def completion_hours(assigned_at: datetime, completed_at: datetime) -> float:
    """分配到完成的耗时（小时，两位小数）"""
    return round(hours_between(assigned_at, completed_at), 2)
