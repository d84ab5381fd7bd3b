"""SQLite 数据库初始化

PRAGMA 配置 + documents / applied_ops 两张表 DDL + 索引创建。
使用 aiosqlite 异步操作。
"""

import aiosqlite

# documents 表 DDL：集合 + 文档 ID 定位一条 JSON 文档
_DOCUMENTS_DDL = """
CREATE TABLE IF NOT EXISTS documents (
    collection  TEXT NOT NULL,
    doc_id      TEXT NOT NULL,
    data        TEXT NOT NULL DEFAULT '{}',
    version     INTEGER NOT NULL DEFAULT 1,
    dedup_key   TEXT,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,

    PRIMARY KEY (collection, doc_id)
);
"""

_DOCUMENTS_INDEXES = [
    # 幂等键唯一约束（仅对非 NULL 值生效）
    (
        "CREATE UNIQUE INDEX IF NOT EXISTS idx_documents_dedup_key "
        "ON documents(collection, dedup_key) WHERE dedup_key IS NOT NULL;"
    ),
    "CREATE INDEX IF NOT EXISTS idx_documents_created_at ON documents(collection, created_at);",
    # 完成历史按任务查询
    (
        "CREATE INDEX IF NOT EXISTS idx_documents_task_id "
        "ON documents(collection, json_extract(data, '$.task_id'));"
    ),
    # 任务按执行人查询
    (
        "CREATE INDEX IF NOT EXISTS idx_documents_assignee_id "
        "ON documents(collection, json_extract(data, '$.assignee_id'));"
    ),
]

# applied_ops 表 DDL：计数增量的幂等台账，同一 op_key 只生效一次
_APPLIED_OPS_DDL = """
CREATE TABLE IF NOT EXISTS applied_ops (
    op_key      TEXT PRIMARY KEY,
    collection  TEXT NOT NULL,
    doc_id      TEXT NOT NULL,
    applied_at  TEXT NOT NULL
);
"""


async def init_db(conn: aiosqlite.Connection) -> None:
    """初始化数据库：设置 PRAGMA + 创建表 + 创建索引

    Args:
        conn: aiosqlite 数据库连接
    """
    # 设置 PRAGMA
    await conn.execute("PRAGMA journal_mode = WAL;")
    await conn.execute("PRAGMA foreign_keys = ON;")
    await conn.execute("PRAGMA busy_timeout = 5000;")

    # 创建表
    await conn.execute(_DOCUMENTS_DDL)
    await conn.execute(_APPLIED_OPS_DDL)

    # 创建索引
    for idx_sql in _DOCUMENTS_INDEXES:
        await conn.execute(idx_sql)

    await conn.commit()


async def verify_wal_mode(conn: aiosqlite.Connection) -> bool:
    """验证 WAL 模式是否生效

    Returns:
        True 如果 WAL 模式已启用
    """
    cursor = await conn.execute("PRAGMA journal_mode;")
    row = await cursor.fetchone()
    return row is not None and row[0].lower() == "wal"
