"""枚举定义

包含 TaskStatus 状态机、TaskPriority、Cadence、TransitionOutcome、
NotificationCategory 枚举，以及 VALID_TRANSITIONS 合法流转映射。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态机"""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


# 合法状态流转；completed 之后的流转全部非法（循环任务的重置由状态机内部完成）
VALID_TRANSITIONS: dict[TaskStatus, set[TaskStatus]] = {
    TaskStatus.PENDING: {TaskStatus.IN_PROGRESS, TaskStatus.COMPLETED},
    TaskStatus.IN_PROGRESS: {TaskStatus.PENDING, TaskStatus.COMPLETED},
    TaskStatus.COMPLETED: set(),
}


class TaskPriority(StrEnum):
    """任务优先级"""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Cadence(StrEnum):
    """循环周期单位"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class TransitionOutcome(StrEnum):
    """状态流转结果标签"""

    STATUS_CHANGED = "status_changed"
    # 非循环任务完成（终态）
    COMPLETED = "completed"
    # 循环任务完成并重置到下一次发生
    RESCHEDULED = "rescheduled"
    # 循环任务最后一次完成，系列结束（终态）
    SERIES_ENDED = "series_ended"


class NotificationCategory(StrEnum):
    """通知分类"""

    TASK = "task"
    MEETING = "meeting"
    CLIENT = "client"
    USER = "user"


class MessageStatus(StrEnum):
    """私聊消息状态"""

    SENT = "sent"
    READ = "read"


def validate_transition(from_status: TaskStatus, to_status: TaskStatus) -> bool:
    """验证状态流转是否合法

    Args:
        from_status: 当前状态
        to_status: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_TRANSITIONS.get(from_status, set())
    return to_status in allowed
