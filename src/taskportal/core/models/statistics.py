"""UserStatistics Domain Model

计数字段只通过存储层原子增量修改，平均耗时与完成率为派生值。
"""

from datetime import datetime

from pydantic import BaseModel, Field, computed_field


class UserStatistics(BaseModel):
    """按执行人聚合的滚动统计"""

    user_id: str
    tasks_completed: int = Field(default=0, ge=0)
    total_points: int = Field(default=0)
    total_completion_hours: float = Field(default=0.0)
    total_tasks_assigned: int = Field(default=0, ge=0)
    updated_at: datetime | None = None

    @computed_field
    @property
    def average_completion_hours(self) -> float:
        if self.tasks_completed == 0:
            return 0.0
        return round(self.total_completion_hours / self.tasks_completed, 2)

    @computed_field
    @property
    def completion_rate(self) -> float:
        """完成率（%），保留一位小数"""
        if self.total_tasks_assigned == 0:
            return 0.0
        return round(self.tasks_completed / self.total_tasks_assigned * 100, 1)
