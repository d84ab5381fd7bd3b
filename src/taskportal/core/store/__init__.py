"""Task Portal Core Store -- 文档存储与领域存储

提供工厂函数创建共享数据库连接的 Store 实例组。
"""

from pathlib import Path

import aiosqlite

from .change_hub import ChangeHub
from .completion_store import DocumentCompletionStore
from .document_store import SqliteDocumentStore
from .notification_store import DocumentNotificationSink
from .sqlite_init import init_db
from .statistics_store import (
    DocumentStatisticsStore,
    assignment_op_key,
    completion_op_key,
    reassignment_op_key,
)
from .task_store import DocumentTaskStore


class StoreGroup:
    """Store 实例组 -- 共享同一个数据库连接与变更广播器"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.hub = ChangeHub()
        self.documents = SqliteDocumentStore(conn, self.hub)
        self.task_store = DocumentTaskStore(self.documents)
        self.completion_store = DocumentCompletionStore(self.documents)
        self.statistics_store = DocumentStatisticsStore(self.documents)
        self.notifications = DocumentNotificationSink(self.documents)


async def create_store_group(db_path: str) -> StoreGroup:
    """创建 Store 实例组

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        StoreGroup 实例
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return StoreGroup(conn=conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "ChangeHub",
    "SqliteDocumentStore",
    "DocumentTaskStore",
    "DocumentCompletionStore",
    "DocumentStatisticsStore",
    "DocumentNotificationSink",
    "assignment_op_key",
    "completion_op_key",
    "reassignment_op_key",
    "init_db",
]
