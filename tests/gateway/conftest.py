"""gateway 测试配置 -- FastAPI app + httpx AsyncClient fixture"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from taskportal.core.store import create_store_group

ADMIN_HEADERS = {"X-User-Id": "admin-1", "X-User-Name": "Admin"}
ALICE_HEADERS = {"X-User-Id": "user-1", "X-User-Name": "Alice"}


@pytest_asyncio.fixture
async def test_app(tmp_path: Path):
    """创建测试用 FastAPI app 实例（手动初始化，绕过 lifespan）"""
    os.environ["TASKPORTAL_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from taskportal.gateway.main import build_engine, create_app

    app = create_app()
    store_group = await create_store_group(str(tmp_path / "test.db"))
    app.state.store_group = store_group
    app.state.engine = build_engine(store_group)

    yield app

    await store_group.conn.close()
    os.environ.pop("TASKPORTAL_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=test_app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def admin_headers() -> dict[str, str]:
    return ADMIN_HEADERS


@pytest_asyncio.fixture
async def alice_headers() -> dict[str, str]:
    return ALICE_HEADERS


@pytest_asyncio.fixture
async def create_task(client: AsyncClient):
    """返回创建单个任务的协程函数，产出任务视图"""

    async def _create(**overrides) -> dict:
        body = {
            "title": "Prepare invoice",
            "description": "Monthly invoice",
            "priority": "high",
            "assignee_ids": ["user-1"],
            "due_date": "2099-01-10T17:00:00Z",
            **overrides,
        }
        resp = await client.post("/api/tasks", json=body, headers=ADMIN_HEADERS)
        assert resp.status_code == 201, resp.text
        return resp.json()["tasks"][0]

    return _create
