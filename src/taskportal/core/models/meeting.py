"""Meeting Domain Model"""

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class Meeting(BaseModel):
    """会议记录（含会议纪要）"""

    meeting_id: str = ""
    title: str
    description: str = ""
    scheduled_at: datetime
    location: str = ""
    attendees: list[str] = Field(default_factory=list, description="参会人 ID 列表")
    creator_id: str
    creator_name: str = ""
    minutes: str = Field(default="", description="会议纪要")
    created_at: datetime

    def is_past(self, now: datetime | None = None) -> bool:
        return self.scheduled_at < (now or datetime.now(UTC))
