"""报表计算 -- 纯函数

在任务列表、完成历史与用户统计之上计算汇总、分布、趋势与排行榜。
"""

from collections import Counter
from collections.abc import Iterable, Mapping
from datetime import UTC, date, datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, Field

from .models.completion import TaskCompletion
from .models.enums import TaskPriority, TaskStatus
from .models.statistics import UserStatistics
from .models.task import Task


class ReportRange(StrEnum):
    """报表时间范围（按任务创建时间过滤）"""

    WEEK = "week"
    MONTH = "month"
    ALL = "all"


_RANGE_DAYS: dict[ReportRange, int] = {
    ReportRange.WEEK: 7,
    ReportRange.MONTH: 30,
}


class DistributionBucket(BaseModel):
    name: str
    value: int


class TrendPoint(BaseModel):
    day: date
    completed: int


class ReportSummary(BaseModel):
    """任务汇总"""

    range: ReportRange
    total_tasks: int = 0
    completed_tasks: int = 0
    pending_tasks: int = 0
    in_progress_tasks: int = 0
    total_points: int = 0
    average_completion_hours: float = 0.0
    status_distribution: list[DistributionBucket] = Field(default_factory=list)
    priority_distribution: list[DistributionBucket] = Field(default_factory=list)
    completion_trend: list[TrendPoint] = Field(default_factory=list)


class LeaderboardEntry(BaseModel):
    user_id: str
    user_name: str
    tasks_completed: int
    total_points: int
    average_completion_hours: float
    total_tasks_assigned: int
    completion_rate: float


def filter_by_range(
    tasks: Iterable[Task], report_range: ReportRange, now: datetime | None = None
) -> list[Task]:
    """按创建时间过滤：week 为 7 天内，month 为 30 天内，all 不过滤"""
    tasks = list(tasks)
    days = _RANGE_DAYS.get(ReportRange(report_range))
    if days is None:
        return tasks
    now = now or datetime.now(UTC)
    return [t for t in tasks if (now - t.created_at).days <= days]


def status_distribution(tasks: Iterable[Task]) -> list[DistributionBucket]:
    """状态分布，仅保留非零项"""
    counts = Counter(t.status for t in tasks)
    order = (TaskStatus.COMPLETED, TaskStatus.IN_PROGRESS, TaskStatus.PENDING)
    return [
        DistributionBucket(name=status.value, value=counts[status])
        for status in order
        if counts[status] > 0
    ]


def priority_distribution(tasks: Iterable[Task]) -> list[DistributionBucket]:
    """优先级分布，仅保留非零项"""
    counts = Counter(t.priority for t in tasks)
    order = (TaskPriority.HIGH, TaskPriority.MEDIUM, TaskPriority.LOW)
    return [
        DistributionBucket(name=priority.value, value=counts[priority])
        for priority in order
        if counts[priority] > 0
    ]


def completion_trend(
    completions: Iterable[TaskCompletion],
    now: datetime | None = None,
    days: int = 7,
) -> list[TrendPoint]:
    """最近 N 天（含今天）每日完成次数，取自完成历史"""
    now = now or datetime.now(UTC)
    per_day = Counter(c.completed_at.date() for c in completions)
    today = now.date()
    return [
        TrendPoint(day=day, completed=per_day[day])
        for day in (today - timedelta(days=offset) for offset in range(days - 1, -1, -1))
    ]


def summarize(
    tasks: Iterable[Task],
    completions: Iterable[TaskCompletion],
    report_range: ReportRange = ReportRange.MONTH,
    now: datetime | None = None,
) -> ReportSummary:
    """生成任务汇总报表"""
    now = now or datetime.now(UTC)
    scoped = filter_by_range(tasks, report_range, now)
    completed = [t for t in scoped if t.status == TaskStatus.COMPLETED]

    average = 0.0
    if completed:
        average = round(
            sum(t.completion_hours or 0.0 for t in completed) / len(completed), 2
        )

    return ReportSummary(
        range=report_range,
        total_tasks=len(scoped),
        completed_tasks=len(completed),
        pending_tasks=sum(1 for t in scoped if t.status == TaskStatus.PENDING),
        in_progress_tasks=sum(1 for t in scoped if t.status == TaskStatus.IN_PROGRESS),
        total_points=sum(t.points or 0 for t in completed),
        average_completion_hours=average,
        status_distribution=status_distribution(scoped),
        priority_distribution=priority_distribution(scoped),
        completion_trend=completion_trend(completions, now),
    )


def leaderboard(
    statistics: Iterable[UserStatistics],
    names: Mapping[str, str] | None = None,
    limit: int | None = None,
) -> list[LeaderboardEntry]:
    """按总积分降序的排行榜"""
    names = names or {}
    entries = [
        LeaderboardEntry(
            user_id=s.user_id,
            user_name=names.get(s.user_id, "Unknown"),
            tasks_completed=s.tasks_completed,
            total_points=s.total_points,
            average_completion_hours=s.average_completion_hours,
            total_tasks_assigned=s.total_tasks_assigned,
            completion_rate=s.completion_rate,
        )
        for s in statistics
    ]
    entries.sort(key=lambda e: (-e.total_points, e.user_id))
    return entries[:limit] if limit is not None else entries
