"""ReportService -- 报表数据装配

从存储读取任务、完成历史与统计，交给 taskportal.core.reports 纯函数计算。
"""

from taskportal.core.reports import (
    LeaderboardEntry,
    ReportRange,
    ReportSummary,
    leaderboard,
    summarize,
)
from taskportal.core.store import StoreGroup

from .user_service import UserService


class ReportService:
    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def summary(
        self, report_range: ReportRange, assignee_id: str | None = None
    ) -> ReportSummary:
        tasks = await self._stores.task_store.list_tasks(assignee_id=assignee_id)
        if assignee_id:
            completions = await self._stores.completion_store.list_for_user(assignee_id)
        else:
            completions = await self._stores.completion_store.list_all()
        return summarize(tasks, completions, report_range)

    async def leaderboard(self, limit: int | None = None) -> list[LeaderboardEntry]:
        statistics = await self._stores.statistics_store.list_all()
        names = await UserService(self._stores).display_names()
        return leaderboard(statistics, names, limit)
