"""TaskService -- 任务变更业务逻辑

每个请求都重新读取当前持久化状态再做授权判断，不跨请求缓存实体。
变更流程：
1. 读取当前 Task（不存在 -> NotFoundError，优先于授权判断）
2. 授权策略判断（-> ForbiddenError）
3. 校验引用的 assignee 存在（-> BadRequestError）
4. 单事务落库
5. 返回更新后的 Task 与 assignee 变化信息，由调用方决定通知对象

同一任务的并发更新不加锁，存储层 last-write-wins。
"""

from dataclasses import dataclass

import structlog
from taskhub.core import policy
from taskhub.core.errors import BadRequestError, NotFoundError
from taskhub.core.models import (
    Task,
    TaskCreateInput,
    TaskQueryFilters,
    TaskStatus,
    TaskUpdateInput,
    utc_now,
)
from taskhub.core.store import StoreGroup, TaskStore, UserStore
from ulid import ULID

log = structlog.get_logger()


@dataclass(frozen=True)
class TaskMutationResult:
    """一次更新的结果

    previous_assignee_id: 变更前的 assignee
    current_assignee_id: 变更后的 assignee
    """

    task: Task
    previous_assignee_id: str | None
    current_assignee_id: str | None

    @property
    def assignee_changed(self) -> bool:
        return self.previous_assignee_id != self.current_assignee_id

    @property
    def new_assignee_id(self) -> str | None:
        """assignee 实际变化时为新值，未变化（或被清空）时为 None"""
        return self.current_assignee_id if self.assignee_changed else None


class TaskService:
    """任务业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group
        self._tasks: TaskStore = store_group.task_store
        self._users: UserStore = store_group.user_store

    async def create_task(self, data: TaskCreateInput, creator_id: str) -> Task:
        """创建任务，调用者成为 creator"""
        if data.assigned_to_id:
            await self._ensure_user_exists(data.assigned_to_id)

        task_id = str(ULID())
        async with self._stores.transaction():
            task = await self._tasks.create_task(task_id, data, creator_id, utc_now())

        log.info(
            "task_created",
            task_id=task.id,
            created_by=creator_id,
            assigned_to=task.assigned_to_id,
        )
        return task

    async def get_task(self, task_id: str) -> Task:
        """查询任务详情"""
        task = await self._tasks.get_task(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    async def list_tasks(self, filters: TaskQueryFilters, actor_id: str) -> list[Task]:
        """按筛选条件查询任务列表"""
        return await self._tasks.list_tasks(filters.resolve(actor_id), utc_now())

    async def list_my_tasks(self, actor_id: str) -> list[Task]:
        return await self._tasks.list_by_assignee(actor_id)

    async def list_created_by_me(self, actor_id: str) -> list[Task]:
        return await self._tasks.list_by_creator(actor_id)

    async def list_overdue(self) -> list[Task]:
        return await self._tasks.list_overdue(utc_now())

    async def update_task(
        self, task_id: str, patch: TaskUpdateInput, actor_id: str
    ) -> TaskMutationResult:
        """通用更新：creator 或当前 assignee 可执行"""
        existing = await self.get_task(task_id)
        policy.ensure_can_update(actor_id, existing)

        changes = patch.changes()
        new_assignee = changes.get("assigned_to_id")
        if new_assignee and new_assignee != existing.assigned_to_id:
            await self._ensure_user_exists(new_assignee)

        task = await self._persist(task_id, changes)
        result = TaskMutationResult(
            task=task,
            previous_assignee_id=existing.assigned_to_id,
            current_assignee_id=changes.get("assigned_to_id", existing.assigned_to_id),
        )
        log.info(
            "task_updated",
            task_id=task_id,
            actor=actor_id,
            fields=sorted(changes),
            assignee_changed=result.assignee_changed,
        )
        return result

    async def update_status(
        self, task_id: str, status: TaskStatus, actor_id: str
    ) -> Task:
        """仅修改状态：creator 或当前 assignee 可执行，不限制流转方向"""
        existing = await self.get_task(task_id)
        policy.ensure_can_update(actor_id, existing)

        task = await self._persist(task_id, {"status": status})
        log.info(
            "task_status_changed",
            task_id=task_id,
            actor=actor_id,
            from_status=existing.status.value,
            to_status=status.value,
        )
        return task

    async def assign_task(
        self, task_id: str, assignee_id: str | None, actor_id: str
    ) -> TaskMutationResult:
        """专用指派：仅 creator 可执行（通用更新路径允许 assignee 改自己的任务）"""
        existing = await self.get_task(task_id)
        policy.ensure_can_assign(actor_id, existing)

        if assignee_id:
            await self._ensure_user_exists(assignee_id)

        task = await self._persist(task_id, {"assigned_to_id": assignee_id})
        result = TaskMutationResult(
            task=task,
            previous_assignee_id=existing.assigned_to_id,
            current_assignee_id=assignee_id,
        )
        log.info(
            "task_assigned",
            task_id=task_id,
            actor=actor_id,
            assigned_to=assignee_id,
            assignee_changed=result.assignee_changed,
        )
        return result

    async def delete_task(self, task_id: str, actor_id: str) -> Task:
        """删除任务：仅 creator 可执行

        Returns:
            删除前读取的 Task，调用方据此通知原 assignee
        """
        existing = await self.get_task(task_id)
        policy.ensure_can_delete(actor_id, existing)

        async with self._stores.transaction():
            deleted = await self._tasks.delete_task(task_id)
        if not deleted:
            raise NotFoundError("Task not found")

        log.info("task_deleted", task_id=task_id, actor=actor_id)
        return existing

    async def _persist(self, task_id: str, changes: dict) -> Task:
        async with self._stores.transaction():
            task = await self._tasks.update_task(task_id, changes, utc_now())
        if task is None:
            # 读取之后、写入之前被并发删除
            raise NotFoundError("Task not found")
        return task

    async def _ensure_user_exists(self, user_id: str) -> None:
        if await self._users.get_user(user_id) is None:
            raise BadRequestError("Assigned user not found")
