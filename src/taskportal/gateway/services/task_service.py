"""TaskService -- 任务创建/编辑/删除/评论/历史查询业务逻辑

状态流转统一交给 TaskLifecycleEngine；此处负责流转之外的任务操作。
任务创建流程：
1. 校验请求（任何写入之前）
2. 按 执行人 x 客户 逐一创建任务
3. 执行人统计 total_tasks_assigned 原子 +1，客户 task_count 原子 +1
4. 通知每个执行人
"""

from datetime import UTC, datetime

import structlog
from pydantic import BaseModel, Field
from taskportal.core.config import COMMENT_PREVIEW_LENGTH
from taskportal.core.engine import TaskLifecycleEngine
from taskportal.core.exceptions import (
    DocumentNotFoundError,
    TaskNotFoundError,
    TaskValidationError,
)
from taskportal.core.models import (
    Actor,
    Cadence,
    Client,
    NotificationCategory,
    StatusUpdate,
    Task,
    TaskComment,
    TaskCompletion,
    TaskPriority,
    TaskStatus,
    UtcDateTime,
    where,
)
from taskportal.core.recurrence import upcoming_occurrences
from taskportal.core.store import StoreGroup, assignment_op_key, reassignment_op_key
from taskportal.core.store.collections import CLIENTS, TASK_COMMENTS
from ulid import ULID

from .user_service import UserService

log = structlog.get_logger()


class TaskDraft(BaseModel):
    """任务创建请求：每个 (执行人, 客户) 组合创建一个任务"""

    title: str = ""
    description: str = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    assignee_ids: list[str] = Field(default_factory=list)
    client_ids: list[str] = Field(default_factory=list)
    due_date: UtcDateTime | None = None
    is_recurring: bool = False
    cadence: Cadence | None = None
    recurring_end_date: UtcDateTime | None = None


class TaskChanges(BaseModel):
    """任务编辑请求（未提供的字段保持不变）"""

    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    assignee_id: str | None = None
    due_date: UtcDateTime | None = None
    client_id: str | None = None


def validate_draft(draft: TaskDraft) -> None:
    """校验创建请求

    Raises:
        TaskValidationError: 逐条列出所有问题
    """
    errors: list[str] = []
    if not draft.title.strip():
        errors.append("title is required")
    if not draft.assignee_ids:
        errors.append("at least one assignee is required")
    if draft.due_date is None:
        errors.append("due_date is required")
    if draft.is_recurring and draft.cadence is None:
        errors.append("cadence is required for recurring tasks")
    if (
        draft.is_recurring
        and draft.recurring_end_date is not None
        and draft.due_date is not None
        and draft.recurring_end_date < draft.due_date
    ):
        errors.append("recurring_end_date must not be before due_date")
    if errors:
        raise TaskValidationError(errors)


class TaskService:
    """任务业务服务"""

    def __init__(self, store_group: StoreGroup, engine: TaskLifecycleEngine) -> None:
        self._stores = store_group
        self._engine = engine
        self._users = UserService(store_group)

    async def create_tasks(self, draft: TaskDraft, actor: Actor) -> list[Task]:
        """创建任务（按执行人 x 客户展开）

        Returns:
            新建的任务列表
        """
        validate_draft(draft)
        clients = [await self._get_client(client_id) for client_id in draft.client_ids]

        now = datetime.now(UTC)
        creator_name = actor.name or await self._users.display_name(actor.user_id)
        created: list[Task] = []

        for assignee_id in dict.fromkeys(draft.assignee_ids):
            assignee_name = await self._users.display_name(assignee_id)
            for client in clients or [None]:
                task = Task(
                    task_id=str(ULID()),
                    title=draft.title.strip(),
                    description=draft.description,
                    priority=draft.priority,
                    assignee_id=assignee_id,
                    assignee_name=assignee_name,
                    creator_id=actor.user_id,
                    creator_name=creator_name,
                    client_id=client.client_id if client else None,
                    client_name=client.name if client else None,
                    created_at=now,
                    assigned_at=now,
                    due_date=draft.due_date,
                    is_recurring=draft.is_recurring,
                    cadence=draft.cadence if draft.is_recurring else None,
                    recurring_end_date=(
                        draft.recurring_end_date if draft.is_recurring else None
                    ),
                    status_history=[StatusUpdate.by(actor, TaskStatus.PENDING, now)],
                )
                task = await self._stores.task_store.create_task(task)
                await self._stores.statistics_store.record_assignment(
                    assignee_id, 1, op_key=assignment_op_key(task.task_id, 1)
                )
                if client is not None:
                    await self._stores.documents.increment(
                        CLIENTS,
                        client.client_id,
                        {"task_count": 1},
                        set_fields={"last_task_assigned_at": now},
                    )
                created.append(task)

            await self._stores.notifications.notify(
                assignee_id,
                f"New {'Recurring ' if draft.is_recurring else ''}Task Assigned",
                _assignment_body(draft, clients),
                NotificationCategory.TASK,
            )

        await log.ainfo(
            "tasks_created",
            task_count=len(created),
            assignee_count=len(set(draft.assignee_ids)),
            client_count=len(clients),
            is_recurring=draft.is_recurring,
        )
        return created

    async def get_task(self, task_id: str) -> Task:
        """查询任务详情

        Raises:
            TaskNotFoundError: 任务不存在
        """
        task = await self._stores.task_store.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def list_tasks(
        self,
        status: TaskStatus | None = None,
        assignee_id: str | None = None,
        client_id: str | None = None,
    ) -> list[Task]:
        return await self._stores.task_store.list_tasks(status, assignee_id, client_id)

    async def edit_task(self, task_id: str, changes: TaskChanges, actor: Actor) -> Task:
        """编辑任务基本信息；改派时为新执行人记一次分配并通知"""
        async with self._engine.locked(task_id):
            task = await self.get_task(task_id)
            update = changes.model_dump(exclude_unset=True, exclude_none=True)

            errors: list[str] = []
            if "title" in update:
                update["title"] = update["title"].strip()
                if not update["title"]:
                    errors.append("title must not be empty")
            due_date = update.get("due_date", task.due_date)
            if (
                task.is_recurring
                and task.recurring_end_date is not None
                and task.recurring_end_date < due_date
            ):
                errors.append("due_date must not be after recurring_end_date")
            if errors:
                raise TaskValidationError(errors)

            reassigned = (
                "assignee_id" in update and update["assignee_id"] != task.assignee_id
            )
            if reassigned:
                update["assignee_name"] = await self._users.display_name(
                    update["assignee_id"]
                )
            if "client_id" in update:
                client = await self._get_client(update["client_id"])
                update["client_name"] = client.name

            edited = Task.model_validate(
                {**task.model_dump(), **update, "version": task.version}
            )
            saved = await self._stores.task_store.save_task(
                edited, expected_version=task.version
            )
            if reassigned:
                # 新执行人获得当前发生的一次分配，保证其 完成数 <= 分配数
                await self._stores.statistics_store.record_assignment(
                    saved.assignee_id,
                    1,
                    op_key=reassignment_op_key(
                        task_id, saved.occurrence, saved.assignee_id
                    ),
                )

        await log.ainfo(
            "task_edited",
            task_id=task_id,
            fields=sorted(update),
            actor_id=actor.user_id,
        )
        if reassigned:
            await self._stores.notifications.notify(
                saved.assignee_id,
                "Task Reassigned",
                f"You have been assigned: {saved.title}",
                NotificationCategory.TASK,
            )
        return saved

    async def delete_task(self, task_id: str, actor: Actor) -> None:
        """删除任务及其评论；完成历史保留"""
        try:
            async with self._engine.locked(task_id):
                await self.get_task(task_id)
                removed_comments = await self._stores.documents.delete_where(
                    TASK_COMMENTS, [where("task_id", "==", task_id)]
                )
                await self._stores.task_store.delete_task(task_id)
        finally:
            await self._engine.release(task_id)

        await log.ainfo(
            "task_deleted",
            task_id=task_id,
            removed_comments=removed_comments,
            actor_id=actor.user_id,
        )

    async def completion_history(self, task_id: str) -> list[TaskCompletion]:
        """任务完成历史（最近在前）；任务删除后仍可查询"""
        return await self._stores.completion_store.list_for_task(task_id)

    async def upcoming_due_dates(self, task_id: str, limit: int = 5) -> list[datetime]:
        """循环任务在截止边界内的后续截止日期预览"""
        task = await self.get_task(task_id)
        if not task.recurs or task.status == TaskStatus.COMPLETED:
            return []
        return list(
            upcoming_occurrences(
                task.due_date,
                task.cadence,
                task.recurring_end_date,
                limit,
                self._engine.config.series_end_inclusive,
            )
        )

    async def add_comment(self, task_id: str, message: str, actor: Actor) -> TaskComment:
        """添加评论并通知创建人与执行人（作者本人除外）"""
        message = message.strip()
        if not message:
            raise TaskValidationError(["message must not be empty"])
        task = await self.get_task(task_id)

        comment = TaskComment(
            task_id=task_id,
            message=message,
            author_id=actor.user_id,
            author_name=actor.name or await self._users.display_name(actor.user_id),
            created_at=datetime.now(UTC),
        )
        comment_id = await self._stores.documents.create(
            TASK_COMMENTS, comment.model_dump(mode="json", exclude={"comment_id"})
        )

        preview = message[:COMMENT_PREVIEW_LENGTH]
        for user_id in dict.fromkeys([task.creator_id, task.assignee_id]):
            if user_id == actor.user_id:
                continue
            await self._stores.notifications.notify(
                user_id,
                f"New comment on: {task.title}",
                f"{comment.author_name}: {preview}...",
                NotificationCategory.TASK,
            )
        return comment.model_copy(update={"comment_id": comment_id})

    async def list_comments(self, task_id: str) -> list[TaskComment]:
        """评论列表（最早在前）"""
        await self.get_task(task_id)
        docs = await self._stores.documents.query(
            TASK_COMMENTS, [where("task_id", "==", task_id)], order_by="created_at"
        )
        return [
            TaskComment.model_validate({**d.data, "comment_id": d.doc_id}) for d in docs
        ]

    async def _get_client(self, client_id: str) -> Client:
        doc = await self._stores.documents.get(CLIENTS, client_id)
        if doc is None:
            raise DocumentNotFoundError(CLIENTS, client_id)
        return Client.model_validate({**doc.data, "client_id": doc.doc_id})


def _assignment_body(draft: TaskDraft, clients: list[Client]) -> str:
    if len(clients) > 1:
        client_info = f" for {len(clients)} client(s)"
    elif clients:
        client_info = f" for {clients[0].name}"
    else:
        client_info = ""
    cadence = f" ({draft.cadence})" if draft.is_recurring and draft.cadence else ""
    return f"You have been assigned: {draft.title.strip()}{client_info}{cadence}"
