"""packages/client 测试配置 -- 内存版 API 替身 + TaskCache fixture"""

import asyncio
from datetime import UTC, datetime, timedelta

import pytest
from taskhub.client import ApiError, Notice, TaskCache
from taskhub.core.models import (
    Priority,
    Task,
    TaskCreateInput,
    TaskStatus,
    TaskUpdateInput,
    UserPublic,
    utc_now,
)
from ulid import ULID

BASE = datetime(2025, 6, 1, tzinfo=UTC)


class FakeTaskApi:
    """内存中的服务端状态，接口与 TaskApiClient 一致

    failures: 下一次变更请求抛出的错误，键为 task_id；创建请求用 "create"
    gate: 设置后，变更请求在 gate 打开前挂起
    """

    def __init__(self, me: UserPublic) -> None:
        self.me = me
        self.tasks: dict[str, Task] = {}
        self.failures: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.started: dict[str, asyncio.Event] = {}
        self.fetches: list[str] = []

    def seed(
        self,
        title: str,
        *,
        minutes: int = 0,
        assignee: UserPublic | None = None,
        due_in: timedelta | None = None,
        priority: Priority = Priority.MEDIUM,
    ) -> Task:
        created = BASE + timedelta(minutes=minutes)
        task = Task(
            id=str(ULID()),
            title=title,
            priority=priority,
            due_date=utc_now() + due_in if due_in is not None else None,
            created_at=created,
            updated_at=created,
            created_by_id=self.me.id,
            created_by=self.me,
            assigned_to_id=assignee.id if assignee else None,
            assigned_to=assignee,
        )
        self.tasks[task.id] = task
        return task

    def hold(self, task_id: str) -> asyncio.Event:
        """让针对 task_id 的下一次变更挂起，返回用于放行的 Event"""
        self.gates[task_id] = asyncio.Event()
        self.started[task_id] = asyncio.Event()
        return self.gates[task_id]

    # ---- 查询 ----

    async def list_tasks(self, **_filters) -> list[Task]:
        self.fetches.append("all")
        return sorted(self.tasks.values(), key=lambda t: t.created_at, reverse=True)

    async def my_tasks(self) -> list[Task]:
        self.fetches.append("my-tasks")
        return [t for t in await self._all() if t.assigned_to_id == self.me.id]

    async def created_by_me(self) -> list[Task]:
        self.fetches.append("created-by-me")
        return [t for t in await self._all() if t.created_by_id == self.me.id]

    async def overdue_tasks(self) -> list[Task]:
        self.fetches.append("overdue")
        return [t for t in await self._all() if t.is_overdue()]

    async def get_task(self, task_id: str) -> Task:
        self.fetches.append(f"detail:{task_id}")
        if task_id not in self.tasks:
            raise ApiError(404, "Task not found")
        return self.tasks[task_id]

    # ---- 变更 ----

    async def create_task(self, data: TaskCreateInput) -> Task:
        if "create" in self.failures:
            raise self.failures.pop("create")
        return self.seed(data.title, minutes=len(self.tasks) + 1)

    async def update_task(self, task_id: str, patch: TaskUpdateInput) -> Task:
        await self._before_mutation(task_id)
        return self._write(task_id, patch.changes())

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        await self._before_mutation(task_id)
        return self._write(task_id, {"status": status})

    async def assign_task(self, task_id: str, assignee_id: str | None) -> Task:
        await self._before_mutation(task_id)
        return self._write(task_id, {"assigned_to_id": assignee_id, "assigned_to": None})

    async def delete_task(self, task_id: str) -> None:
        await self._before_mutation(task_id)
        del self.tasks[task_id]

    # ---- 内部 ----

    async def _all(self) -> list[Task]:
        return sorted(self.tasks.values(), key=lambda t: t.created_at, reverse=True)

    async def _before_mutation(self, task_id: str) -> None:
        if task_id in self.started:
            self.started.pop(task_id).set()
        if task_id in self.gates:
            await self.gates.pop(task_id).wait()
        if task_id in self.failures:
            raise self.failures.pop(task_id)
        if task_id not in self.tasks:
            raise ApiError(404, "Task not found")

    def _write(self, task_id: str, changes: dict) -> Task:
        task = self.tasks[task_id].model_copy(update={**changes, "updated_at": utc_now()})
        self.tasks[task_id] = task
        return task


@pytest.fixture
def me() -> UserPublic:
    return UserPublic(id=str(ULID()), email="me@example.com", name="Me", created_at=BASE)


@pytest.fixture
def api(me: UserPublic) -> FakeTaskApi:
    return FakeTaskApi(me)


@pytest.fixture
def notices() -> list[Notice]:
    return []


@pytest.fixture
def cache(api: FakeTaskApi, notices: list[Notice]) -> TaskCache:
    return TaskCache(api, notify=notices.append)
