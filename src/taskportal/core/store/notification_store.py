"""NotificationSink 文档存储实现

通知写入 notifications 集合。notify 是 best effort：
任何失败只记录 warning，不向调用方抛出，不影响主流程。
"""

from datetime import UTC, datetime

import structlog

from ..exceptions import DocumentNotFoundError
from ..models.document import where
from ..models.enums import NotificationCategory
from ..models.notification import Notification
from .collections import NOTIFICATIONS
from .protocols import DocumentStore

log = structlog.get_logger()


class DocumentNotificationSink:
    """NotificationSink 的 DocumentStore 实现"""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    async def notify(
        self,
        user_id: str,
        title: str,
        body: str,
        category: NotificationCategory = NotificationCategory.TASK,
    ) -> None:
        """发送站内通知（fire-and-forget）"""
        notification = Notification(
            user_id=user_id,
            title=title,
            body=body,
            category=category,
            created_at=datetime.now(UTC),
        )
        try:
            await self._store.create(
                NOTIFICATIONS,
                notification.model_dump(mode="json", exclude={"notification_id"}),
            )
        except Exception as e:
            log.warning(
                "notification_failed",
                user_id=user_id,
                title=title,
                error_type=type(e).__name__,
                error=str(e),
            )

    async def list_for_user(
        self, user_id: str, unread_only: bool = False
    ) -> list[Notification]:
        """查询用户通知，最新在前"""
        filters = [where("user_id", "==", user_id)]
        if unread_only:
            filters.append(where("read", "==", False))
        docs = await self._store.query(
            NOTIFICATIONS, filters, order_by="created_at", descending=True
        )
        return [
            Notification.model_validate({**d.data, "notification_id": d.doc_id})
            for d in docs
        ]

    async def mark_read(self, notification_id: str) -> Notification:
        """标记已读

        Raises:
            DocumentNotFoundError: 通知不存在
        """
        await self._store.update(NOTIFICATIONS, notification_id, {"read": True})
        doc = await self._store.get(NOTIFICATIONS, notification_id)
        if doc is None:
            raise DocumentNotFoundError(NOTIFICATIONS, notification_id)
        return Notification.model_validate({**doc.data, "notification_id": doc.doc_id})
