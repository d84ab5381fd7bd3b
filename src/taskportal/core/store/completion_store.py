"""CompletionStore 文档存储实现

taskCompletions 集合 append-only：只允许插入，不允许更新或删除。
幂等键 "{task_id}#{occurrence_number}" 保证同一次发生只有一条记录。
"""

import structlog

from ..exceptions import DuplicateDocumentError
from ..models.completion import TaskCompletion
from ..models.document import Filter, where
from .collections import TASK_COMPLETIONS
from .protocols import DocumentStore

log = structlog.get_logger()


class DocumentCompletionStore:
    """CompletionStore 的 DocumentStore 实现"""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def append(self, completion: TaskCompletion) -> tuple[TaskCompletion, bool]:
        """幂等追加完成记录

        Returns:
            (记录, 是否新建)；重放时返回已存储的记录
        """
        try:
            completion_id = await self._store.create(
                TASK_COMPLETIONS,
                completion.to_document(),
                dedup_key=completion.dedup_key,
            )
        except DuplicateDocumentError as e:
            doc = await self._store.get(TASK_COMPLETIONS, e.existing_id)
            if doc is None:
                raise
            log.info(
                "completion_replayed",
                task_id=completion.task_id,
                occurrence_number=completion.occurrence_number,
            )
            return TaskCompletion.from_document(doc.doc_id, doc.data), False

        return completion.model_copy(update={"completion_id": completion_id}), True

    async def list_for_task(self, task_id: str) -> list[TaskCompletion]:
        """查询任务的完成历史，最近一次在前"""
        return await self._list(
            [where("task_id", "==", task_id)], order_by="occurrence_number"
        )

    async def list_for_user(self, user_id: str) -> list[TaskCompletion]:
        return await self._list([where("assignee_id", "==", user_id)])

    async def list_for_client(self, client_id: str) -> list[TaskCompletion]:
        return await self._list([where("client_id", "==", client_id)])

    async def list_all(self) -> list[TaskCompletion]:
        return await self._list([])

    async def count_for_task(self, task_id: str) -> int:
        return await self._store.count(
            TASK_COMPLETIONS, [where("task_id", "==", task_id)]
        )

    async def _list(
        self, filters: list[Filter], order_by: str = "completed_at"
    ) -> list[TaskCompletion]:
        docs = await self._store.query(
            TASK_COMPLETIONS, filters, order_by=order_by, descending=True
        )
        return [TaskCompletion.from_document(d.doc_id, d.data) for d in docs]
