"""TaskLifecycleEngine -- 任务状态流转编排

一次流转的写入顺序：
1. 完成记录（幂等键 task_id#occurrence）
2. 用户统计原子增量（幂等 op_key）
3. 任务整体写回（compare-and-swap，期望版本号为读取时的版本）
4. 通知（best effort）

前三步各自是独立的存储操作，遇到 StoreError 按配置重试。
任一步最终失败时任务文档保持原样，调用方重放同一流转不会产生重复的
完成记录或统计。
"""

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import TypeVar

import structlog

from .completion import CompletionRecorder
from .config import LifecycleConfig
from .exceptions import OccurrenceConflictError, StoreError, TaskNotFoundError
from .models.enums import NotificationCategory, TaskStatus, TransitionOutcome
from .models.task import Actor, Task
from .state_machine import (
    TransitionResult,
    check_transition,
    plan_completion,
    plan_status_change,
)
from .store.protocols import (
    CompletionStore,
    NotificationSink,
    StatisticsStore,
    TaskStore,
)
from .store.statistics_store import assignment_op_key, completion_op_key

log = structlog.get_logger()

T = TypeVar("T")

_TERMINAL_OUTCOMES = frozenset({TransitionOutcome.COMPLETED, TransitionOutcome.SERIES_ENDED})


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TaskLifecycleEngine:
    """任务生命周期引擎

    同一进程内按 task_id 串行化流转（每个任务一把 asyncio.Lock）；
    跨进程并发由任务文档版本号的 compare-and-swap 兜底。
    """

    def __init__(
        self,
        task_store: TaskStore,
        completion_store: CompletionStore,
        statistics_store: StatisticsStore,
        notifications: NotificationSink,
        config: LifecycleConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._tasks = task_store
        self._statistics = statistics_store
        self._notifications = notifications
        self._config = config or LifecycleConfig()
        self._clock = clock
        self._recorder = CompletionRecorder(
            completion_store, self._config.grace_window_hours
        )
        self._task_locks: dict[str, asyncio.Lock] = {}
        self._task_locks_guard = asyncio.Lock()

    @property
    def config(self) -> LifecycleConfig:
        return self._config

    @asynccontextmanager
    async def locked(self, task_id: str) -> AsyncIterator[None]:
        """持有任务级锁；编辑/删除与状态流转互斥"""
        lock = await self._get_task_lock(task_id)
        async with lock:
            yield

    async def release(self, task_id: str) -> None:
        """任务删除后释放其锁条目"""
        await self._cleanup_task_lock(task_id)

    async def transition(
        self,
        task_id: str,
        to_status: TaskStatus,
        actor: Actor,
        expected_occurrence: int | None = None,
    ) -> TransitionResult:
        """执行一次状态流转

        Args:
            task_id: 任务 ID
            to_status: 目标状态
            actor: 操作者
            expected_occurrence: 调用方所见的发生序号，不一致时拒绝

        Raises:
            TaskNotFoundError: 任务不存在
            OccurrenceConflictError: 发生序号与调用方快照不一致
            InvalidTransitionError: 非法流转
            VersionConflictError: 任务被其他进程并发修改
            StoreError: 重试后存储仍不可用
        """
        to_status = TaskStatus(to_status)
        async with self.locked(task_id):
            task = await self._tasks.get_task(task_id)
            if task is None:
                raise TaskNotFoundError(task_id)

            if expected_occurrence is not None and expected_occurrence != task.occurrence:
                raise OccurrenceConflictError(task_id, expected_occurrence, task.occurrence)

            check_transition(task, to_status)
            now = self._clock()

            if to_status == TaskStatus.COMPLETED:
                result = await self._complete(task, actor, now)
            else:
                result = plan_status_change(task, to_status, actor, now)

            saved = await self._with_retries(
                "save_task",
                task_id,
                lambda: self._tasks.save_task(result.task, expected_version=task.version),
            )
            result = result.model_copy(update={"task": saved})

        await log.ainfo(
            f"task_{result.outcome.value}",
            task_id=task_id,
            from_status=task.status,
            to_status=to_status,
            occurrence=result.occurrence,
            actor_id=actor.user_id,
        )

        if result.outcome in _TERMINAL_OUTCOMES:
            await self._cleanup_task_lock(task_id)

        await self._notify(task, result, actor)
        return result

    async def _complete(self, task: Task, actor: Actor, now: datetime) -> TransitionResult:
        completion, _ = await self._with_retries(
            "record_completion",
            task.task_id,
            lambda: self._recorder.record(task, now, completed_by=actor.user_id),
        )
        occurrence = completion.occurrence_number

        # 只有执行人本人完成才计入统计；重放时以已存记录为准
        if completion.scored:
            await self._with_retries(
                "record_completion_statistics",
                task.task_id,
                lambda: self._statistics.record_completion(
                    task.assignee_id,
                    completion.points,
                    completion.completion_hours,
                    op_key=completion_op_key(task.task_id, occurrence),
                ),
            )

        result = plan_completion(
            task, completion, actor, now, self._config.series_end_inclusive
        )

        if result.outcome == TransitionOutcome.RESCHEDULED:
            # 重置后的下一次发生计为一次新的分配
            await self._with_retries(
                "record_assignment_statistics",
                task.task_id,
                lambda: self._statistics.record_assignment(
                    task.assignee_id,
                    1,
                    op_key=assignment_op_key(task.task_id, occurrence + 1),
                ),
            )
        return result

    async def _with_retries(
        self,
        operation: str,
        task_id: str,
        factory: Callable[[], Awaitable[T]],
    ) -> T:
        """StoreError 时重试幂等写入，超过次数后抛出最后一次错误"""
        attempts = self._config.store_write_retries
        for attempt in range(1, attempts + 1):
            try:
                return await factory()
            except StoreError as e:
                if attempt >= attempts:
                    await log.aerror(
                        "store_write_failed",
                        operation=operation,
                        task_id=task_id,
                        attempts=attempt,
                        error=e.message,
                    )
                    raise
                await log.awarning(
                    "store_write_retry",
                    operation=operation,
                    task_id=task_id,
                    attempt=attempt,
                )
        raise RuntimeError(f"{operation} failed after {attempts} attempts")

    async def _notify(self, before: Task, result: TransitionResult, actor: Actor) -> None:
        """按流转结果发送通知；创建人本人操作时不通知创建人"""
        title = before.title
        notify_creator = before.creator_id != actor.user_id
        completion = result.completion
        messages: list[tuple[str, str, str]] = []

        if result.outcome == TransitionOutcome.STATUS_CHANGED:
            if notify_creator:
                messages.append(
                    (
                        before.creator_id,
                        "Task Status Updated",
                        f"{title} is now {result.task.status}",
                    )
                )
        elif result.outcome == TransitionOutcome.COMPLETED:
            if notify_creator:
                messages.append(
                    (
                        before.creator_id,
                        "Task Completed",
                        f"{title} has been completed{_early_suffix(completion.is_early)} "
                        f"(+{completion.points} points)",
                    )
                )
        elif result.outcome == TransitionOutcome.RESCHEDULED:
            next_due = result.next_due_date
            if notify_creator:
                messages.append(
                    (
                        before.creator_id,
                        "Recurring Task Completed",
                        f"{title} completed{_early_suffix(completion.is_early)} "
                        f"(+{completion.points} pts). Next: {next_due:%b %d}",
                    )
                )
            messages.append(
                (
                    before.assignee_id,
                    "Recurring Task - Next Occurrence",
                    f"{title} is now due on {next_due:%b %d, %Y}",
                )
            )
        elif result.outcome == TransitionOutcome.SERIES_ENDED:
            if notify_creator:
                messages.append(
                    (
                        before.creator_id,
                        "Recurring Task Series Completed",
                        f"{title} series completed! Total: {result.occurrence} times",
                    )
                )

        for user_id, subject, body in messages:
            await self._notifications.notify(
                user_id, subject, body, NotificationCategory.TASK
            )

    async def _get_task_lock(self, task_id: str) -> asyncio.Lock:
        """获取 task 级别锁"""
        async with self._task_locks_guard:
            lock = self._task_locks.get(task_id)
            if lock is None:
                lock = asyncio.Lock()
                self._task_locks[task_id] = lock
            return lock

    async def _cleanup_task_lock(self, task_id: str) -> None:
        """任务终态后清理 lock，避免字典无限增长"""
        async with self._task_locks_guard:
            lock = self._task_locks.get(task_id)
            if lock is not None and not lock.locked():
                self._task_locks.pop(task_id, None)


def _early_suffix(is_early: bool) -> str:
    return " early!" if is_early else "!"
