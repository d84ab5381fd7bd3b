"""Task 状态机 -- 纯函数，计算一次状态流转后的任务

不访问存储：引擎负责读取当前任务、写入完成记录与统计，
再把这里算出的新任务整体写回。
"""

from datetime import datetime

from pydantic import BaseModel

from .config import DEFAULT_SERIES_END_INCLUSIVE
from .exceptions import InvalidTransitionError
from .models.completion import TaskCompletion
from .models.enums import TaskStatus, TransitionOutcome, validate_transition
from .models.task import Actor, StatusUpdate, Task
from .recurrence import next_occurrence, series_continues


class TransitionResult(BaseModel):
    """一次状态流转的结果

    occurrence 是逻辑上的发生序号，与存储 ID（task_id）相互独立：
    循环任务重置后 task_id 不变，occurrence 递增。
    """

    task: Task
    outcome: TransitionOutcome
    completion: TaskCompletion | None = None
    next_due_date: datetime | None = None
    occurrence: int


def check_transition(task: Task, to_status: TaskStatus) -> None:
    """校验流转合法性

    Raises:
        InvalidTransitionError: 目标状态与当前相同，或流转不在合法集合内
    """
    if to_status == task.status or not validate_transition(task.status, to_status):
        raise InvalidTransitionError(task.task_id, task.status, to_status)


def plan_status_change(
    task: Task, to_status: TaskStatus, actor: Actor, now: datetime
) -> TransitionResult:
    """pending <-> in-progress：只改状态并追加历史"""
    check_transition(task, to_status)
    if to_status == TaskStatus.COMPLETED:
        raise ValueError("use plan_completion for completed transitions")

    updated = task.model_copy(
        update={
            "status": to_status,
            "status_history": [
                *task.status_history,
                StatusUpdate.by(actor, to_status, now),
            ],
        }
    )
    return TransitionResult(
        task=updated,
        outcome=TransitionOutcome.STATUS_CHANGED,
        occurrence=task.occurrence,
    )


def plan_completion(
    task: Task,
    completion: TaskCompletion,
    actor: Actor,
    now: datetime,
    series_end_inclusive: bool = DEFAULT_SERIES_END_INCLUSIVE,
) -> TransitionResult:
    """完成一次发生

    循环任务且下一次发生仍在截止边界内：就地重置为 pending；
    否则终结为 completed（循环任务同时清除循环标记）。
    completion_count 取完成记录的发生序号，重放时结果一致。
    """
    check_transition(task, TaskStatus.COMPLETED)

    occurrence = completion.occurrence_number
    history = [*task.status_history, StatusUpdate.by(actor, TaskStatus.COMPLETED, now)]
    completed_fields = {
        "status": TaskStatus.COMPLETED,
        "completed_at": completion.completed_at,
        "completion_hours": completion.completion_hours,
        "points": completion.points,
        "is_early": completion.is_early,
        "completion_count": occurrence,
        "last_completed_at": completion.completed_at,
        "status_history": history,
    }

    if not task.recurs:
        return TransitionResult(
            task=_rebuild(task, completed_fields),
            outcome=TransitionOutcome.COMPLETED,
            completion=completion,
            occurrence=occurrence,
        )

    next_due = next_occurrence(task.due_date, task.cadence)
    if not series_continues(next_due, task.recurring_end_date, series_end_inclusive):
        return TransitionResult(
            task=_rebuild(task, {**completed_fields, "is_recurring": False}),
            outcome=TransitionOutcome.SERIES_ENDED,
            completion=completion,
            occurrence=occurrence,
        )

    reset = _rebuild(
        task,
        {
            "status": TaskStatus.PENDING,
            "due_date": next_due,
            "assigned_at": now,
            "completed_at": None,
            "completion_hours": None,
            "points": None,
            "is_early": None,
            "completion_count": occurrence,
            "last_completed_at": completion.completed_at,
            "status_history": [StatusUpdate.by(actor, TaskStatus.PENDING, now)],
        },
    )
    return TransitionResult(
        task=reset,
        outcome=TransitionOutcome.RESCHEDULED,
        completion=completion,
        next_due_date=next_due,
        occurrence=occurrence,
    )


def _rebuild(task: Task, update: dict) -> Task:
    """应用更新并重新校验模型不变量（model_copy 不触发校验）"""
    data = {**task.model_dump(), "version": task.version}
    data.update(update)
    return Task.model_validate(data)
