"""TaskCompletion Domain Model

完成历史 append-only：每次完成写入一条，不允许更新或删除。
删除任务不会删除其完成历史。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import Cadence, TaskPriority


class TaskCompletion(BaseModel):
    """单次完成的不可变快照

    任务字段冗余保存，任务被修改或删除后历史仍可读。
    occurrence_number 对同一 task_id 从 1 开始严格连续递增。
    """

    completion_id: str = Field(default="", description="唯一标识，写入时分配")
    task_id: str = Field(description="所属任务 ID")
    task_title: str
    task_description: str = ""
    priority: TaskPriority
    assignee_id: str
    assignee_name: str = ""
    creator_id: str
    creator_name: str = ""
    client_id: str | None = None
    client_name: str | None = None

    assigned_at: datetime
    due_date: datetime
    completed_at: datetime
    completion_hours: float = Field(description="分配到完成的耗时（小时）")
    points: int
    is_early: bool

    is_recurring: bool = False
    cadence: Cadence | None = None
    occurrence_number: int = Field(ge=1, description="第几次发生，从 1 开始")
    completed_by: str = Field(default="", description="完成操作者 ID")

    @property
    def scored(self) -> bool:
        """是否计入执行人统计：只有执行人本人完成才计分"""
        return not self.completed_by or self.completed_by == self.assignee_id

    @property
    def dedup_key(self) -> str:
        """幂等键：同一任务同一次发生只允许一条记录"""
        return completion_key(self.task_id, self.occurrence_number)

    def to_document(self) -> dict:
        return self.model_dump(mode="json", exclude={"completion_id"})

    @classmethod
    def from_document(cls, doc_id: str, data: dict) -> "TaskCompletion":
        return cls.model_validate({**data, "completion_id": doc_id})


def completion_key(task_id: str, occurrence_number: int) -> str:
    """由任务 ID 与发生序号派生幂等键"""
    return f"{task_id}#{occurrence_number}"
