"""Notification Domain Model"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import NotificationCategory


class Notification(BaseModel):
    """站内通知"""

    notification_id: str = ""
    user_id: str = Field(description="接收人 ID")
    title: str
    body: str
    category: NotificationCategory = NotificationCategory.TASK
    read: bool = False
    created_at: datetime
