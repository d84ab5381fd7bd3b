"""Client Domain Model"""

from datetime import datetime

from pydantic import BaseModel, Field


class Client(BaseModel):
    """客户记录"""

    client_id: str = ""
    name: str
    company: str = ""
    email: str = ""
    phone: str = ""
    notes: str = ""
    task_count: int = Field(default=0, ge=0, description="累计分配的任务数")
    last_task_assigned_at: datetime | None = None
    created_by: str = ""
    created_at: datetime


class ClientNote(BaseModel):
    """客户备注，按时间倒序展示"""

    note_id: str = ""
    client_id: str
    note: str
    created_by: str
    created_by_name: str = ""
    created_at: datetime
