"""MeetingService -- 会议排期、编辑、删除与会议纪要

创建会议时通知每位参会人。
"""

from datetime import UTC, datetime

import structlog
from pydantic import BaseModel, Field
from taskportal.core.exceptions import DocumentNotFoundError, TaskValidationError
from taskportal.core.models import Actor, Meeting, NotificationCategory, UtcDateTime
from taskportal.core.store import StoreGroup
from taskportal.core.store.collections import MEETINGS

log = structlog.get_logger()


class MeetingDraft(BaseModel):
    title: str = ""
    description: str = ""
    scheduled_at: UtcDateTime | None = None
    location: str = ""
    attendees: list[str] = Field(default_factory=list)


class MeetingChanges(BaseModel):
    title: str | None = None
    description: str | None = None
    scheduled_at: UtcDateTime | None = None
    location: str | None = None
    attendees: list[str] | None = None


class MeetingService:
    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def schedule(self, draft: MeetingDraft, actor: Actor) -> Meeting:
        errors: list[str] = []
        if not draft.title.strip():
            errors.append("title is required")
        if draft.scheduled_at is None:
            errors.append("scheduled_at is required")
        if errors:
            raise TaskValidationError(errors)

        meeting = Meeting(
            title=draft.title.strip(),
            description=draft.description,
            scheduled_at=draft.scheduled_at,
            location=draft.location,
            attendees=list(dict.fromkeys(draft.attendees)),
            creator_id=actor.user_id,
            creator_name=actor.name,
            created_at=datetime.now(UTC),
        )
        meeting_id = await self._stores.documents.create(
            MEETINGS, meeting.model_dump(mode="json", exclude={"meeting_id"})
        )

        for attendee_id in meeting.attendees:
            await self._stores.notifications.notify(
                attendee_id,
                "New Meeting Scheduled",
                f"Meeting: {meeting.title} on {meeting.scheduled_at:%B %d, %Y}",
                NotificationCategory.MEETING,
            )

        await log.ainfo(
            "meeting_scheduled",
            meeting_id=meeting_id,
            attendee_count=len(meeting.attendees),
        )
        return meeting.model_copy(update={"meeting_id": meeting_id})

    async def list_meetings(self) -> list[Meeting]:
        """会议列表（时间最晚在前）"""
        docs = await self._stores.documents.query(
            MEETINGS, order_by="scheduled_at", descending=True
        )
        return [self._to_meeting(d.doc_id, d.data) for d in docs]

    async def get_meeting(self, meeting_id: str) -> Meeting:
        doc = await self._stores.documents.get(MEETINGS, meeting_id)
        if doc is None:
            raise DocumentNotFoundError(MEETINGS, meeting_id)
        return self._to_meeting(doc.doc_id, doc.data)

    async def edit(self, meeting_id: str, changes: MeetingChanges) -> Meeting:
        update = changes.model_dump(mode="json", exclude_unset=True, exclude_none=True)
        if "title" in update:
            update["title"] = update["title"].strip()
            if not update["title"]:
                raise TaskValidationError(["title must not be empty"])
        await self._stores.documents.update(MEETINGS, meeting_id, update)
        return await self.get_meeting(meeting_id)

    async def save_minutes(self, meeting_id: str, minutes: str) -> Meeting:
        await self._stores.documents.update(
            MEETINGS, meeting_id, {"minutes": minutes.strip()}
        )
        return await self.get_meeting(meeting_id)

    async def delete(self, meeting_id: str) -> None:
        if not await self._stores.documents.delete(MEETINGS, meeting_id):
            raise DocumentNotFoundError(MEETINGS, meeting_id)

    @staticmethod
    def _to_meeting(doc_id: str, data: dict) -> Meeting:
        return Meeting.model_validate({**data, "meeting_id": doc_id})
