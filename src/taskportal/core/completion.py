"""Completion Recorder -- 每次完成追加一条不可变完成记录

记录在状态机决定"重置还是终结"之前写入，保证完成事实先落盘。
"""

from datetime import datetime

import structlog

from .config import DEFAULT_GRACE_WINDOW_HOURS
from .models.completion import TaskCompletion
from .models.task import Task
from .scoring import completion_hours, compute_points
from .store.protocols import CompletionStore

log = structlog.get_logger()


def build_completion(
    task: Task,
    completed_at: datetime,
    grace_window_hours: float = DEFAULT_GRACE_WINDOW_HOURS,
    completed_by: str = "",
) -> TaskCompletion:
    """根据任务当前发生构建完成快照（未写入存储）

    occurrence_number = completion_count + 1；completed_by 为空时视为执行人本人完成
    """
    score = compute_points(task.due_date, completed_at, grace_window_hours)
    return TaskCompletion(
        task_id=task.task_id,
        task_title=task.title,
        task_description=task.description,
        priority=task.priority,
        assignee_id=task.assignee_id,
        assignee_name=task.assignee_name,
        creator_id=task.creator_id,
        creator_name=task.creator_name,
        client_id=task.client_id,
        client_name=task.client_name,
        assigned_at=task.assigned_at,
        due_date=task.due_date,
        completed_at=completed_at,
        completion_hours=completion_hours(task.assigned_at, completed_at),
        points=score.points,
        is_early=score.is_early,
        is_recurring=task.is_recurring,
        cadence=task.cadence,
        occurrence_number=task.completion_count + 1,
        completed_by=completed_by or task.assignee_id,
    )


class CompletionRecorder:
    """完成记录器"""

    def __init__(
        self,
        completion_store: CompletionStore,
        grace_window_hours: float = DEFAULT_GRACE_WINDOW_HOURS,
    ) -> None:
        self._store = completion_store
        self._grace_window_hours = grace_window_hours

    async def record(
        self, task: Task, completed_at: datetime, completed_by: str = ""
    ) -> tuple[TaskCompletion, bool]:
        """追加完成记录

        同一任务同一次发生重复调用时返回已存储的记录（积分与完成时间
        以第一次写入为准），created 为 False。

        Returns:
            (完成记录, 是否新建)
        """
        completion = build_completion(
            task, completed_at, self._grace_window_hours, completed_by
        )
        stored, created = await self._store.append(completion)
        if created:
            await log.ainfo(
                "completion_recorded",
                task_id=task.task_id,
                occurrence_number=stored.occurrence_number,
                points=stored.points,
                is_early=stored.is_early,
                completed_by=stored.completed_by,
                completion_hours=stored.completion_hours,
            )
        return stored, created
