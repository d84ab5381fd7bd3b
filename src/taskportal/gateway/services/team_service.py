"""TeamService -- 团队成员的添加、列表与移除

登录凭据由外部身份服务签发；这里只维护 users 集合中的成员资料，
新成员会收到一条欢迎通知。
"""

from datetime import UTC, datetime

import structlog
from pydantic import BaseModel
from taskportal.core.exceptions import (
    DocumentNotFoundError,
    DuplicateDocumentError,
    PermissionDeniedError,
    TaskValidationError,
)
from taskportal.core.models import Actor, NotificationCategory, UserProfile, where
from taskportal.core.store import StoreGroup
from taskportal.core.store.collections import USERS
from ulid import ULID

log = structlog.get_logger()


class MemberDraft(BaseModel):
    """新成员；user_id 为空时生成一个"""

    user_id: str = ""
    email: str = ""
    display_name: str = ""
    role: str = "member"
    phone: str = ""
    department: str = ""


class TeamService:
    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def add_member(self, draft: MemberDraft, actor: Actor) -> UserProfile:
        email = draft.email.strip().lower()
        errors: list[str] = []
        if not email:
            errors.append("email is required")
        if not draft.display_name.strip():
            errors.append("display_name is required")
        if errors:
            raise TaskValidationError(errors)

        existing = await self._stores.documents.query(
            USERS, [where("email", "==", email)], limit=1
        )
        if existing:
            raise DuplicateDocumentError(USERS, email, existing[0].doc_id)

        member = UserProfile(
            user_id=draft.user_id or str(ULID()),
            email=email,
            display_name=draft.display_name.strip(),
            role=draft.role,
            phone=draft.phone,
            department=draft.department,
            status="active",
            created_by=actor.user_id,
            created_at=datetime.now(UTC),
        )
        await self._stores.documents.create(
            USERS,
            member.model_dump(mode="json", exclude={"user_id"}),
            doc_id=member.user_id,
        )
        await self._stores.notifications.notify(
            member.user_id,
            "Welcome to the team!",
            "Your account has been created. You can now login with your email.",
            NotificationCategory.USER,
        )
        await log.ainfo(
            "member_added",
            user_id=member.user_id,
            role=member.role,
            actor_id=actor.user_id,
        )
        return member

    async def list_members(self) -> list[UserProfile]:
        docs = await self._stores.documents.query(USERS, order_by="display_name")
        return [UserProfile.model_validate({**d.data, "user_id": d.doc_id}) for d in docs]

    async def remove_member(self, user_id: str, actor: Actor) -> None:
        """移除成员资料；统计与完成历史保留

        Raises:
            PermissionDeniedError: 删除自己的账号
            DocumentNotFoundError: 成员不存在
        """
        if user_id == actor.user_id:
            raise PermissionDeniedError("You cannot delete your own account")
        if not await self._stores.documents.delete(USERS, user_id):
            raise DocumentNotFoundError(USERS, user_id)
        await log.ainfo("member_removed", user_id=user_id, actor_id=actor.user_id)
