"""TaskStore 文档存储实现

tasks 集合的每个文档对应一个任务，文档 ID 即 task_id。
所有整体写回都带期望版本号（compare-and-swap）。
"""

from ..models.document import Filter, where
from ..models.enums import TaskStatus
from ..models.task import Task
from .collections import TASKS
from .protocols import DocumentStore


class DocumentTaskStore:
    """TaskStore 的 DocumentStore 实现"""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def create_task(self, task: Task) -> Task:
        """创建任务记录"""
        await self._store.create(TASKS, task.to_document(), doc_id=task.task_id)
        return task.model_copy(update={"version": 1})

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        doc = await self._store.get(TASKS, task_id)
        if doc is None:
            return None
        return Task.from_document(doc.doc_id, doc.data, doc.version)

    async def list_tasks(
        self,
        status: TaskStatus | None = None,
        assignee_id: str | None = None,
        client_id: str | None = None,
    ) -> list[Task]:
        """查询任务列表，支持按状态/执行人/客户筛选，按 created_at 倒序"""
        filters: list[Filter] = []
        if status:
            filters.append(where("status", "==", status))
        if assignee_id:
            filters.append(where("assignee_id", "==", assignee_id))
        if client_id:
            filters.append(where("client_id", "==", client_id))

        docs = await self._store.query(
            TASKS, filters, order_by="created_at", descending=True
        )
        return [Task.from_document(d.doc_id, d.data, d.version) for d in docs]

    async def save_task(self, task: Task, expected_version: int) -> Task:
        """整体写回任务

        Raises:
            DocumentNotFoundError: 任务已被删除
            VersionConflictError: 任务自 expected_version 之后已被修改
        """
        version = await self._store.update(
            TASKS, task.task_id, task.to_document(), expected_version=expected_version
        )
        return task.model_copy(update={"version": version})

    async def delete_task(self, task_id: str) -> bool:
        return await self._store.delete(TASKS, task_id)
