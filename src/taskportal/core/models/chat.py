"""Chat Domain Models

团队群聊与一对一私聊。私聊会话 ID 由两位参与者 ID 排序后拼接，
同一对用户始终落在同一个会话上。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import MessageStatus


class TeamChatMessage(BaseModel):
    """团队群聊消息"""

    message_id: str = ""
    text: str
    sender_id: str
    sender_name: str = ""
    sender_department: str = ""
    created_at: datetime


class PersonalMessage(BaseModel):
    """私聊消息：对方查看后 sent -> read"""

    message_id: str = ""
    chat_id: str
    text: str
    sender_id: str
    recipient_id: str
    status: MessageStatus = MessageStatus.SENT
    created_at: datetime


class PersonalChat(BaseModel):
    """私聊会话摘要"""

    chat_id: str
    participants: list[str] = Field(description="两位参与者 ID")
    last_message: str = ""
    last_message_time: datetime | None = None
    last_message_sender: str = ""
    unread_count: int = Field(default=0, ge=0, description="当前用户未读条数")


def personal_chat_id(user_a: str, user_b: str) -> str:
    first, second = sorted((user_a, user_b))
    return f"{first}_{second}"
