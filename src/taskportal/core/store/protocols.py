"""Store Protocol 接口定义

DocumentStore 是通用文档存储的黑盒接口；TaskStore / CompletionStore /
StatisticsStore / NotificationSink 是生命周期引擎依赖的领域接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from collections.abc import AsyncIterator, Iterable, Mapping
from typing import Any, Protocol

from ..models.completion import TaskCompletion
from ..models.document import Document, Filter
from ..models.enums import NotificationCategory, TaskStatus
from ..models.statistics import UserStatistics
from ..models.task import Task


class DocumentStore(Protocol):
    """文档存储接口"""

    async def get(self, collection: str, doc_id: str) -> Document | None: ...

    async def create(
        self,
        collection: str,
        data: Mapping[str, Any],
        doc_id: str | None = None,
        dedup_key: str | None = None,
    ) -> str: ...

    async def update(
        self,
        collection: str,
        doc_id: str,
        partial: Mapping[str, Any],
        expected_version: int | None = None,
    ) -> int: ...

    async def put(
        self, collection: str, doc_id: str, data: Mapping[str, Any]
    ) -> int: ...

    async def delete(self, collection: str, doc_id: str) -> bool: ...

    async def delete_where(self, collection: str, filters: Iterable[Filter]) -> int: ...

    async def query(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> list[Document]: ...

    async def count(self, collection: str, filters: Iterable[Filter] = ()) -> int: ...

    def subscribe(
        self,
        collection: str,
        filters: Iterable[Filter] = (),
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
    ) -> AsyncIterator[list[Document]]: ...

    async def increment(
        self,
        collection: str,
        doc_id: str,
        deltas: Mapping[str, int | float],
        set_fields: Mapping[str, Any] | None = None,
        defaults: Mapping[str, Any] | None = None,
        op_key: str | None = None,
    ) -> bool: ...


class TaskStore(Protocol):
    """Task 存储接口"""

    async def create_task(self, task: Task) -> Task:
        """创建任务记录，返回带版本号的任务"""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(
        self,
        status: TaskStatus | None = None,
        assignee_id: str | None = None,
        client_id: str | None = None,
    ) -> list[Task]:
        """查询任务列表（新建在前）"""
        ...

    async def save_task(self, task: Task, expected_version: int) -> Task:
        """整体写回任务（compare-and-swap），返回新版本任务"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务记录"""
        ...


class CompletionStore(Protocol):
    """完成历史存储接口 -- append-only，只允许插入"""

    async def append(self, completion: TaskCompletion) -> tuple[TaskCompletion, bool]:
        """幂等追加；返回 (记录, 是否新建)"""
        ...

    async def list_for_task(self, task_id: str) -> list[TaskCompletion]:
        """查询任务的完成历史（最近在前）"""
        ...


class StatisticsStore(Protocol):
    """用户统计接口 -- 只通过原子增量修改"""

    async def record_assignment(self, user_id: str, count: int, op_key: str) -> bool: ...

    async def record_completion(
        self,
        user_id: str,
        points: int,
        hours: float,
        op_key: str,
    ) -> bool: ...

    async def get(self, user_id: str) -> UserStatistics | None: ...


class NotificationSink(Protocol):
    """通知接收端 -- best effort，失败只记录日志不抛出"""

    async def notify(
        self,
        user_id: str,
        title: str,
        body: str,
        category: NotificationCategory = NotificationCategory.TASK,
    ) -> None: ...
