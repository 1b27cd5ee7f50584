"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import Awaitable, Callable
from datetime import UTC, datetime, timedelta

import pytest_asyncio
from taskhub.core.models import Priority, Task, TaskCreateInput, UserPublic
from taskhub.core.store import StoreGroup
from ulid import ULID


@pytest_asyncio.fixture
async def stores(open_stores) -> StoreGroup:
    """核心层已初始化的 StoreGroup"""
    return await open_stores("core_test.db")


@pytest_asyncio.fixture
async def users(stores: StoreGroup) -> dict[str, UserPublic]:
    """预置三个用户：alice / bob / carol"""
    created = {}
    base = datetime(2025, 1, 1, tzinfo=UTC)
    for i, name in enumerate(["alice", "bob", "carol"]):
        created[name] = await stores.user_store.create_user(
            str(ULID()), f"{name}@example.com", name.title(), base + timedelta(minutes=i)
        )
    await stores.conn.commit()
    return created


@pytest_asyncio.fixture
async def make_task(
    stores: StoreGroup,
) -> Callable[..., Awaitable[Task]]:
    """按需创建任务；created_at 可指定以控制排序"""

    async def _make(
        creator: UserPublic,
        title: str = "Task",
        *,
        priority: Priority = Priority.MEDIUM,
        due_date: datetime | None = None,
        assignee: UserPublic | None = None,
        now: datetime | None = None,
    ) -> Task:
        data = TaskCreateInput(
            title=title,
            priority=priority,
            due_date=due_date,
            assigned_to_id=assignee.id if assignee else None,
        )
        task = await stores.task_store.create_task(
            str(ULID()), data, creator.id, now or datetime.now(UTC)
        )
        await stores.conn.commit()
        return task

    return _make
