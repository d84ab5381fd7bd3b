"""ChatService -- 团队群聊与一对一私聊

群聊：所有成员共享一个频道，发送者本人或管理员可以删除消息。
私聊：消息按会话 ID 归档；每次发送同时刷新会话摘要（最后一条消息、时间、发送者），
会话列表按最后消息时间倒序。对方消息在标记已读后 sent -> read。
"""

from datetime import UTC, datetime

import structlog
from taskportal.core.config import PERSONAL_CHAT_HISTORY_LIMIT, TEAM_CHAT_HISTORY_LIMIT
from taskportal.core.exceptions import (
    DocumentNotFoundError,
    PermissionDeniedError,
    TaskValidationError,
)
from taskportal.core.models import (
    Actor,
    MessageStatus,
    PersonalChat,
    PersonalMessage,
    TeamChatMessage,
    personal_chat_id,
    where,
)
from taskportal.core.store import StoreGroup
from taskportal.core.store.collections import (
    PERSONAL_CHAT_MESSAGES,
    PERSONAL_CHATS,
    TEAM_CHAT_MESSAGES,
)

from .user_service import UserService

log = structlog.get_logger()

ADMIN_ROLE = "admin"


def _clean_text(text: str) -> str:
    text = text.strip()
    if not text:
        raise TaskValidationError(["message must not be empty"])
    return text


class ChatService:
    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group
        self._users = UserService(store_group)

    # ---- 团队群聊 ----

    async def post_team_message(self, text: str, actor: Actor) -> TeamChatMessage:
        text = _clean_text(text)
        profile = await self._users.get_profile(actor.user_id)
        message = TeamChatMessage(
            text=text,
            sender_id=actor.user_id,
            sender_name=actor.name or (profile.display_name if profile else ""),
            sender_department=profile.department if profile else "",
            created_at=datetime.now(UTC),
        )
        message_id = await self._stores.documents.create(
            TEAM_CHAT_MESSAGES, message.model_dump(mode="json", exclude={"message_id"})
        )
        await log.ainfo("team_message_posted", message_id=message_id)
        return message.model_copy(update={"message_id": message_id})

    async def team_messages(
        self, limit: int = TEAM_CHAT_HISTORY_LIMIT
    ) -> list[TeamChatMessage]:
        """最近 limit 条群聊消息，最早在前"""
        docs = await self._stores.documents.query(
            TEAM_CHAT_MESSAGES, order_by="created_at", descending=True, limit=limit
        )
        return [
            TeamChatMessage.model_validate({**d.data, "message_id": d.doc_id})
            for d in reversed(docs)
        ]

    async def delete_team_message(self, message_id: str, actor: Actor) -> None:
        """
        Raises:
            DocumentNotFoundError: 消息不存在
            PermissionDeniedError: 既不是发送者也不是管理员
        """
        doc = await self._stores.documents.get(TEAM_CHAT_MESSAGES, message_id)
        if doc is None:
            raise DocumentNotFoundError(TEAM_CHAT_MESSAGES, message_id)
        if doc.data.get("sender_id") != actor.user_id and not await self._is_admin(
            actor.user_id
        ):
            raise PermissionDeniedError(
                "Only the sender or an admin can delete this message"
            )
        await self._stores.documents.delete(TEAM_CHAT_MESSAGES, message_id)
        await log.ainfo(
            "team_message_deleted", message_id=message_id, actor_id=actor.user_id
        )

    # ---- 私聊 ----

    async def send_personal_message(
        self, recipient_id: str, text: str, actor: Actor
    ) -> PersonalMessage:
        text = _clean_text(text)
        if recipient_id == actor.user_id:
            raise TaskValidationError(["cannot send a message to yourself"])

        chat_id = personal_chat_id(actor.user_id, recipient_id)
        message = PersonalMessage(
            chat_id=chat_id,
            text=text,
            sender_id=actor.user_id,
            recipient_id=recipient_id,
            created_at=datetime.now(UTC),
        )
        message_id = await self._stores.documents.create(
            PERSONAL_CHAT_MESSAGES,
            message.model_dump(mode="json", exclude={"message_id"}),
        )
        await self._stores.documents.put(
            PERSONAL_CHATS,
            chat_id,
            {
                "participants": sorted((actor.user_id, recipient_id)),
                "last_message": text,
                "last_message_time": message.created_at,
                "last_message_sender": actor.user_id,
            },
        )
        await log.ainfo("personal_message_sent", chat_id=chat_id, message_id=message_id)
        return message.model_copy(update={"message_id": message_id})

    async def personal_messages(
        self,
        other_user_id: str,
        actor: Actor,
        limit: int = PERSONAL_CHAT_HISTORY_LIMIT,
    ) -> list[PersonalMessage]:
        """与 other_user_id 的最近 limit 条私聊消息，最早在前"""
        docs = await self._stores.documents.query(
            PERSONAL_CHAT_MESSAGES,
            [where("chat_id", "==", personal_chat_id(actor.user_id, other_user_id))],
            order_by="created_at",
            descending=True,
            limit=limit,
        )
        return [
            PersonalMessage.model_validate({**d.data, "message_id": d.doc_id})
            for d in reversed(docs)
        ]

    async def mark_chat_read(self, other_user_id: str, actor: Actor) -> int:
        """把对方发来的未读消息标记为已读，返回标记条数"""
        unread = await self._stores.documents.query(
            PERSONAL_CHAT_MESSAGES,
            [
                where("chat_id", "==", personal_chat_id(actor.user_id, other_user_id)),
                where("sender_id", "==", other_user_id),
                where("status", "==", MessageStatus.SENT),
            ],
        )
        for doc in unread:
            await self._stores.documents.update(
                PERSONAL_CHAT_MESSAGES, doc.doc_id, {"status": MessageStatus.READ}
            )
        return len(unread)

    async def delete_personal_message(self, message_id: str, actor: Actor) -> None:
        doc = await self._stores.documents.get(PERSONAL_CHAT_MESSAGES, message_id)
        if doc is None:
            raise DocumentNotFoundError(PERSONAL_CHAT_MESSAGES, message_id)
        if doc.data.get("sender_id") != actor.user_id:
            raise PermissionDeniedError("Only the sender can delete this message")
        await self._stores.documents.delete(PERSONAL_CHAT_MESSAGES, message_id)

    async def personal_chats(self, actor: Actor) -> list[PersonalChat]:
        """当前用户参与的会话，最后消息时间倒序，附带未读条数"""
        docs = await self._stores.documents.query(
            PERSONAL_CHATS,
            [where("participants", "contains", actor.user_id)],
            order_by="last_message_time",
            descending=True,
        )
        chats: list[PersonalChat] = []
        for doc in docs:
            unread = await self._stores.documents.count(
                PERSONAL_CHAT_MESSAGES,
                [
                    where("chat_id", "==", doc.doc_id),
                    where("recipient_id", "==", actor.user_id),
                    where("status", "==", MessageStatus.SENT),
                ],
            )
            chats.append(
                PersonalChat.model_validate(
                    {**doc.data, "chat_id": doc.doc_id, "unread_count": unread}
                )
            )
        return chats

    async def _is_admin(self, user_id: str) -> bool:
        profile = await self._users.get_profile(user_id)
        return profile is not None and profile.role == ADMIN_ROLE
