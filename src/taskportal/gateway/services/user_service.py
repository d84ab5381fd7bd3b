"""UserService -- 用户资料、统计与通知查询"""

from taskportal.core.models import Notification, UserProfile, UserStatistics
from taskportal.core.store import StoreGroup
from taskportal.core.store.collections import USERS


class UserService:
    """用户相关查询与资料维护"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def put_profile(self, profile: UserProfile) -> UserProfile:
        await self._stores.documents.put(
            USERS, profile.user_id, profile.model_dump(mode="json", exclude={"user_id"})
        )
        return profile

    async def get_profile(self, user_id: str) -> UserProfile | None:
        doc = await self._stores.documents.get(USERS, user_id)
        if doc is None:
            return None
        return UserProfile.model_validate({**doc.data, "user_id": doc.doc_id})

    async def display_name(self, user_id: str) -> str:
        """冗余显示用的名称；无资料时返回空串"""
        profile = await self.get_profile(user_id)
        return profile.display_name if profile else ""

    async def display_names(self) -> dict[str, str]:
        docs = await self._stores.documents.query(USERS)
        return {d.doc_id: d.data.get("display_name", "") for d in docs}

    async def statistics(self, user_id: str) -> UserStatistics:
        """用户统计；尚未分配过任务时返回全零统计"""
        stats = await self._stores.statistics_store.get(user_id)
        return stats or UserStatistics(user_id=user_id)

    async def notifications(
        self, user_id: str, unread_only: bool = False
    ) -> list[Notification]:
        return await self._stores.notifications.list_for_user(user_id, unread_only)

    async def mark_notification_read(self, notification_id: str) -> Notification:
        return await self._stores.notifications.mark_read(notification_id)
