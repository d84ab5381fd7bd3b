"""团队成员路由

GET    /api/team: 成员列表（按显示名称排序）
POST   /api/team: 添加成员，201
DELETE /api/team/{user_id}: 移除成员（不能移除自己）
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from starlette.responses import Response
from taskportal.core.models import Actor, UserProfile

from ..deps import get_actor, get_store_group
from ..services.team_service import MemberDraft, TeamService

router = APIRouter()


class MemberListResponse(BaseModel):
    members: list[UserProfile]


def get_team_service(store_group=Depends(get_store_group)) -> TeamService:
    return TeamService(store_group)


@router.get("/api/team", response_model=MemberListResponse)
async def list_members(service: TeamService = Depends(get_team_service)):
    return MemberListResponse(members=await service.list_members())


@router.post("/api/team", status_code=201, response_model=UserProfile)
async def add_member(
    body: MemberDraft,
    actor: Actor = Depends(get_actor),
    service: TeamService = Depends(get_team_service),
):
    return await service.add_member(body, actor)


@router.delete("/api/team/{user_id}", status_code=204)
async def remove_member(
    user_id: str,
    actor: Actor = Depends(get_actor),
    service: TeamService = Depends(get_team_service),
):
    await service.remove_member(user_id, actor)
    return Response(status_code=204)
