"""Task Portal Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .chat import PersonalChat, PersonalMessage, TeamChatMessage, personal_chat_id
from .client import Client, ClientNote
from .comment import TaskComment
from .completion import TaskCompletion, completion_key
from .document import Document, Filter, check_field_path, where
from .enums import (
    VALID_TRANSITIONS,
    Cadence,
    MessageStatus,
    NotificationCategory,
    TaskPriority,
    TaskStatus,
    TransitionOutcome,
    validate_transition,
)
from .meeting import Meeting
from .notification import Notification
from .statistics import UserStatistics
from .task import Actor, StatusUpdate, Task, UtcDateTime
from .user import UserProfile

__all__ = [
    # 枚举
    "TaskStatus",
    "TaskPriority",
    "Cadence",
    "TransitionOutcome",
    "NotificationCategory",
    "MessageStatus",
    # 状态机
    "VALID_TRANSITIONS",
    "validate_transition",
    # Task
    "Task",
    "Actor",
    "StatusUpdate",
    "UtcDateTime",
    # 完成历史
    "TaskCompletion",
    "completion_key",
    # 统计
    "UserStatistics",
    # 文档存储
    "Document",
    "Filter",
    "where",
    "check_field_path",
    # 门户其它实体
    "Client",
    "ClientNote",
    "Meeting",
    "Notification",
    "TaskComment",
    "UserProfile",
    # 聊天
    "TeamChatMessage",
    "PersonalChat",
    "PersonalMessage",
    "personal_chat_id",
]
