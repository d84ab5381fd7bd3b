"""Task Domain Model

循环任务在同一条记录上就地重置（task_id 不变），
逻辑上的"第几次发生"由 completion_count 推导，与存储标识相互独立。
"""

from datetime import UTC, datetime
from typing import Annotated

from pydantic import AfterValidator, AwareDatetime, BaseModel, Field, model_validator

from .enums import Cadence, TaskPriority, TaskStatus

# 请求侧时间：必须带时区，统一换算到 UTC；不带时区的输入在校验阶段拒绝
UtcDateTime = Annotated[AwareDatetime, AfterValidator(lambda v: v.astimezone(UTC))]


class Actor(BaseModel):
    """操作者（身份由外部身份服务提供）"""

    user_id: str = Field(description="用户 ID")
    name: str = Field(default="", description="显示名称")


class StatusUpdate(BaseModel):
    """状态历史条目"""

    status: TaskStatus
    timestamp: datetime
    actor_id: str
    actor_name: str = ""

    @classmethod
    def by(cls, actor: Actor, status: TaskStatus, timestamp: datetime) -> "StatusUpdate":
        return cls(
            status=status,
            timestamp=timestamp,
            actor_id=actor.user_id,
            actor_name=actor.name,
        )


class Task(BaseModel):
    """Task 数据模型

    完成字段（completed_at / completion_hours / points / is_early）
    当且仅当 status == completed 时存在。
    """

    task_id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述")
    priority: TaskPriority = Field(default=TaskPriority.MEDIUM, description="优先级")
    status: TaskStatus = Field(default=TaskStatus.PENDING, description="当前状态")

    assignee_id: str = Field(description="执行人 ID")
    assignee_name: str = Field(default="", description="执行人名称（冗余）")
    creator_id: str = Field(description="创建人 ID")
    creator_name: str = Field(default="", description="创建人名称（冗余）")
    client_id: str | None = Field(default=None, description="关联客户 ID")
    client_name: str | None = Field(default=None, description="关联客户名称（冗余）")

    created_at: datetime = Field(description="创建时间")
    assigned_at: datetime = Field(description="本次发生的分配时间，每个循环周期重置")
    due_date: datetime = Field(description="截止时间")

    completed_at: datetime | None = Field(default=None, description="完成时间")
    completion_hours: float | None = Field(default=None, description="完成耗时（小时）")
    points: int | None = Field(default=None, description="获得积分")
    is_early: bool | None = Field(default=None, description="是否提前完成")

    is_recurring: bool = Field(default=False, description="是否循环任务")
    cadence: Cadence | None = Field(default=None, description="循环周期")
    recurring_end_date: datetime | None = Field(default=None, description="循环截止日期")
    completion_count: int = Field(default=0, ge=0, description="累计完成次数")
    last_completed_at: datetime | None = Field(default=None, description="最近一次完成时间")

    status_history: list[StatusUpdate] = Field(
        default_factory=list,
        description="自上次重置以来的状态流转记录（append-only）",
    )

    # 存储层版本号，用于 compare-and-swap，不属于文档数据
    version: int = Field(default=0, ge=0, exclude=True, description="文档版本号")

    @model_validator(mode="after")
    def _check_completion_fields(self) -> "Task":
        completion_fields = (
            self.completed_at,
            self.completion_hours,
            self.points,
            self.is_early,
        )
        if self.status == TaskStatus.COMPLETED:
            if any(value is None for value in completion_fields):
                raise ValueError("completed task must carry all completion fields")
        elif any(value is not None for value in completion_fields):
            raise ValueError(f"{self.status} task must not carry completion fields")
        return self

    @property
    def occurrence(self) -> int:
        """当前（或最后一次）发生的序号，从 1 开始"""
        if self.status == TaskStatus.COMPLETED:
            return max(self.completion_count, 1)
        return self.completion_count + 1

    @property
    def recurs(self) -> bool:
        """是否按循环规则处理完成事件（需同时具备循环标记与周期）"""
        return self.is_recurring and self.cadence is not None

    def to_document(self) -> dict:
        """序列化为文档数据（不含 task_id 与 version）"""
        return self.model_dump(mode="json", exclude={"task_id", "version"})

    @classmethod
    def from_document(cls, doc_id: str, data: dict, version: int) -> "Task":
        return cls.model_validate({**data, "task_id": doc_id, "version": version})
