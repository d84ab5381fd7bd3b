"""会议路由

POST   /api/meetings: 排期会议，201
GET    /api/meetings: 会议列表
PATCH  /api/meetings/{meeting_id}: 编辑会议
DELETE /api/meetings/{meeting_id}: 删除会议
PUT    /api/meetings/{meeting_id}/minutes: 保存会议纪要
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette.responses import Response
from taskportal.core.models import Actor, Meeting

from ..deps import get_actor, get_store_group
from ..services.meeting_service import MeetingChanges, MeetingDraft, MeetingService

router = APIRouter()


class MeetingView(BaseModel):
    meeting: Meeting
    is_past: bool

    @classmethod
    def of(cls, meeting: Meeting) -> "MeetingView":
        return cls(meeting=meeting, is_past=meeting.is_past())


class MeetingListResponse(BaseModel):
    meetings: list[MeetingView]


class MinutesRequest(BaseModel):
    minutes: str = ""


def get_meeting_service(store_group=Depends(get_store_group)) -> MeetingService:
    return MeetingService(store_group)


@router.post("/api/meetings", status_code=201, response_model=MeetingView)
async def schedule_meeting(
    body: MeetingDraft,
    actor: Actor = Depends(get_actor),
    service: MeetingService = Depends(get_meeting_service),
):
    return MeetingView.of(await service.schedule(body, actor))


@router.get("/api/meetings", response_model=MeetingListResponse)
async def list_meetings(service: MeetingService = Depends(get_meeting_service)):
    meetings = await service.list_meetings()
    return MeetingListResponse(meetings=[MeetingView.of(m) for m in meetings])


@router.patch("/api/meetings/{meeting_id}", response_model=MeetingView)
async def edit_meeting(
    meeting_id: str,
    body: MeetingChanges,
    service: MeetingService = Depends(get_meeting_service),
):
    return MeetingView.of(await service.edit(meeting_id, body))


@router.delete("/api/meetings/{meeting_id}", status_code=204)
async def delete_meeting(
    meeting_id: str,
    service: MeetingService = Depends(get_meeting_service),
):
    await service.delete(meeting_id)
    return Response(status_code=204)


@router.put("/api/meetings/{meeting_id}/minutes", response_model=MeetingView)
async def save_minutes(
    meeting_id: str,
    body: MinutesRequest,
    service: MeetingService = Depends(get_meeting_service),
):
    return MeetingView.of(await service.save_minutes(meeting_id, body.minutes))
