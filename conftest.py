"""全局 pytest 配置 -- 环境隔离 + 临时 SQLite 数据库 fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
import structlog


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch):
    """每个测试都从默认配置开始：清除 TASKPORTAL_* 环境变量，关闭 Logfire"""
    for name in [k for k in os.environ if k.startswith("TASKPORTAL_")]:
        monkeypatch.delenv(name)
    monkeypatch.setenv("LOGFIRE_SEND_TO_LOGFIRE", "false")
    yield
    structlog.contextvars.clear_contextvars()


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """已建表的临时 SQLite 连接（行以 aiosqlite.Row 返回）"""
    from taskportal.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path))
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    yield conn
    await conn.close()
