"""用户路由

GET  /api/users/{user_id}/stats: 用户统计
GET  /api/users/{user_id}/notifications: 用户通知（最新在前）
POST /api/notifications/{notification_id}/read: 标记已读
PUT  /api/users/{user_id}: 写入用户资料
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from taskportal.core.models import Notification, UserProfile, UserStatistics

from ..deps import get_store_group
from ..services.user_service import UserService

router = APIRouter()


class ProfileRequest(BaseModel):
    display_name: str = ""
    email: str = ""


class NotificationListResponse(BaseModel):
    notifications: list[Notification]


def get_user_service(store_group=Depends(get_store_group)) -> UserService:
    return UserService(store_group)


@router.get("/api/users/{user_id}/stats", response_model=UserStatistics)
async def user_statistics(
    user_id: str,
    service: UserService = Depends(get_user_service),
):
    return await service.statistics(user_id)


@router.get(
    "/api/users/{user_id}/notifications", response_model=NotificationListResponse
)
async def user_notifications(
    user_id: str,
    unread_only: bool = Query(default=False),
    service: UserService = Depends(get_user_service),
):
    notifications = await service.notifications(user_id, unread_only)
    return NotificationListResponse(notifications=notifications)


@router.post(
    "/api/notifications/{notification_id}/read", response_model=Notification
)
async def mark_notification_read(
    notification_id: str,
    service: UserService = Depends(get_user_service),
):
    return await service.mark_notification_read(notification_id)


@router.put("/api/users/{user_id}", response_model=UserProfile)
async def put_profile(
    user_id: str,
    body: ProfileRequest,
    service: UserService = Depends(get_user_service),
):
    return await service.put_profile(UserProfile(user_id=user_id, **body.model_dump()))
