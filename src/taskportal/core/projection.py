"""统计重建模块

从 taskCompletions 完成历史重新计算每个执行人的完成聚合
（完成次数、总积分、总耗时），修复因部分应用的流转导致的统计漂移。
"""

import time
from collections import defaultdict
from collections.abc import Iterable

import structlog

from .models.completion import TaskCompletion
from .store.completion_store import DocumentCompletionStore
from .store.statistics_store import DocumentStatisticsStore

log = structlog.get_logger()


class CompletionTotals:
    """单个执行人的完成聚合（内存中累加）"""

    __slots__ = ("tasks_completed", "total_points", "total_completion_hours")

    def __init__(self) -> None:
        self.tasks_completed = 0
        self.total_points = 0
        self.total_completion_hours = 0.0

    def add(self, completion: TaskCompletion) -> None:
        self.tasks_completed += 1
        self.total_points += completion.points
        self.total_completion_hours += completion.completion_hours


def aggregate(completions: Iterable[TaskCompletion]) -> dict[str, CompletionTotals]:
    """按 assignee_id 累加完成记录（他人代为完成的记录不计分）

    Args:
        completions: 完成历史

    Returns:
        user_id -> CompletionTotals
    """
    totals: dict[str, CompletionTotals] = defaultdict(CompletionTotals)
    for completion in completions:
        if completion.scored:
            totals[completion.assignee_id].add(completion)
    return dict(totals)


async def rebuild_statistics(
    completion_store: DocumentCompletionStore,
    statistics_store: DocumentStatisticsStore,
) -> int:
    """从完成历史重建用户统计

    只有统计文档存在（或完成历史中出现）的用户会被写入；
    完成历史里没有记录的已有用户，完成聚合归零。

    Returns:
        处理的完成记录总数
    """
    start_time = time.monotonic()

    completions = await completion_store.list_all()
    await log.ainfo("statistics_rebuild_started", completion_count=len(completions))

    totals = aggregate(completions)
    for existing in await statistics_store.list_all():
        totals.setdefault(existing.user_id, CompletionTotals())

    for user_id, user_totals in totals.items():
        await statistics_store.overwrite_completion_totals(
            user_id,
            tasks_completed=user_totals.tasks_completed,
            total_points=user_totals.total_points,
            total_completion_hours=user_totals.total_completion_hours,
        )

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    await log.ainfo(
        "statistics_rebuild_completed",
        completion_count=len(completions),
        user_count=len(totals),
        elapsed_ms=elapsed_ms,
    )
    return len(completions)
