"""StatisticsStore 文档存储实现

userStats 集合按 user_id 聚合。计数字段只通过 DocumentStore.increment
原子增量修改，op_key 保证同一次分配/完成只计一次。
文档在第一次增量时惰性创建，永不删除。
"""

from datetime import UTC, datetime

from ..models.statistics import UserStatistics
from .collections import USER_STATS
from .protocols import DocumentStore

_ZERO_STATS = {
    "tasks_completed": 0,
    "total_points": 0,
    "total_completion_hours": 0.0,
    "total_tasks_assigned": 0,
}


def assignment_op_key(task_id: str, occurrence_number: int) -> str:
    """分配计数的幂等键（首次分配为 1，每次循环重置递增）"""
    return f"assign:{task_id}#{occurrence_number}"


def reassignment_op_key(task_id: str, occurrence_number: int, assignee_id: str) -> str:
    """改派计数的幂等键：同一发生内每个新执行人只计一次"""
    return f"assign:{task_id}#{occurrence_number}@{assignee_id}"


def completion_op_key(task_id: str, occurrence_number: int) -> str:
    """完成计数的幂等键"""
    return f"complete:{task_id}#{occurrence_number}"


class DocumentStatisticsStore:
    """StatisticsStore 的 DocumentStore 实现"""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def record_assignment(self, user_id: str, count: int, op_key: str) -> bool:
        """记录分配：total_tasks_assigned += count

        Returns:
            False 表示 op_key 已应用过
        """
        return await self._increment(user_id, {"total_tasks_assigned": count}, op_key)

    async def record_completion(
        self,
        user_id: str,
        points: int,
        hours: float,
        op_key: str,
    ) -> bool:
        """记录完成：完成数 +1、积分与耗时累加"""
        return await self._increment(
            user_id,
            {
                "tasks_completed": 1,
                "total_points": points,
                "total_completion_hours": hours,
            },
            op_key,
        )

    async def get(self, user_id: str) -> UserStatistics | None:
        doc = await self._store.get(USER_STATS, user_id)
        if doc is None:
            return None
        return UserStatistics.model_validate({**doc.data, "user_id": doc.doc_id})

    async def list_all(self) -> list[UserStatistics]:
        docs = await self._store.query(USER_STATS)
        return [
            UserStatistics.model_validate({**d.data, "user_id": d.doc_id}) for d in docs
        ]

    async def overwrite_completion_totals(
        self,
        user_id: str,
        tasks_completed: int,
        total_points: int,
        total_completion_hours: float,
    ) -> None:
        """用完成历史重新计算的结果覆盖完成聚合（仅供离线修复使用）

        total_tasks_assigned 无法从完成历史推导，保持原值但不低于完成数。
        """
        current = await self.get(user_id)
        assigned = current.total_tasks_assigned if current else 0
        await self._store.put(
            USER_STATS,
            user_id,
            {
                "user_id": user_id,
                "tasks_completed": tasks_completed,
                "total_points": total_points,
                "total_completion_hours": round(total_completion_hours, 2),
                "total_tasks_assigned": max(assigned, tasks_completed),
                "updated_at": datetime.now(UTC),
            },
        )

    async def _increment(
        self, user_id: str, deltas: dict[str, int | float], op_key: str
    ) -> bool:
        return await self._store.increment(
            USER_STATS,
            user_id,
            deltas,
            set_fields={"updated_at": datetime.now(UTC)},
            defaults={**_ZERO_STATS, "user_id": user_id},
            op_key=op_key,
        )
