"""core 测试配置 -- 存储、引擎与任务构造 fixture"""

from datetime import UTC, datetime, timedelta

import aiosqlite
import pytest
import pytest_asyncio
from taskportal.core.config import LifecycleConfig
from taskportal.core.engine import TaskLifecycleEngine
from taskportal.core.models import Actor, Cadence, StatusUpdate, Task, TaskStatus
from taskportal.core.store import SqliteDocumentStore, StoreGroup
from ulid import ULID

T0 = datetime(2024, 3, 1, 9, 0, tzinfo=UTC)

CREATOR = Actor(user_id="admin-1", name="Admin")
ASSIGNEE = Actor(user_id="user-1", name="Alice")


class FakeClock:
    """可手动推进的时钟"""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def set(self, now: datetime) -> None:
        self.now = now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def build_task(
    due_date: datetime,
    assigned_at: datetime = T0,
    is_recurring: bool = False,
    cadence: Cadence | None = None,
    recurring_end_date: datetime | None = None,
    **overrides,
) -> Task:
    """构造一个 pending 任务（未写入存储）"""
    data = {
        "task_id": str(ULID()),
        "title": "Weekly report",
        "description": "Send the weekly report",
        "assignee_id": ASSIGNEE.user_id,
        "assignee_name": ASSIGNEE.name,
        "creator_id": CREATOR.user_id,
        "creator_name": CREATOR.name,
        "created_at": assigned_at,
        "assigned_at": assigned_at,
        "due_date": due_date,
        "is_recurring": is_recurring,
        "cadence": cadence,
        "recurring_end_date": recurring_end_date,
        "status_history": [StatusUpdate.by(CREATOR, TaskStatus.PENDING, assigned_at)],
    }
    data.update(overrides)
    return Task(**data)


@pytest_asyncio.fixture
async def documents(db_conn: aiosqlite.Connection) -> SqliteDocumentStore:
    return SqliteDocumentStore(db_conn)


@pytest_asyncio.fixture
async def stores(db_conn: aiosqlite.Connection) -> StoreGroup:
    return StoreGroup(db_conn)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest_asyncio.fixture
async def engine(stores: StoreGroup, clock: FakeClock) -> TaskLifecycleEngine:
    return TaskLifecycleEngine(
        task_store=stores.task_store,
        completion_store=stores.completion_store,
        statistics_store=stores.statistics_store,
        notifications=stores.notifications,
        config=LifecycleConfig(store_write_retries=3),
        clock=clock,
    )


@pytest.fixture
def task_factory():
    """返回 build_task 构造函数"""
    return build_task


@pytest.fixture
def creator() -> Actor:
    return CREATOR


@pytest.fixture
def assignee() -> Actor:
    return ASSIGNEE
