"""Store Protocol 接口定义

定义 TaskStore、UserStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
业务层只依赖这些接口，SQLite 实现可被替换。
"""

from datetime import datetime
from typing import Any, Protocol

from ..models.filters import TaskQueryFilters
from ..models.inputs import TaskCreateInput
from ..models.task import Task
from ..models.user import UserPublic


class TaskStore(Protocol):
    """Task 存储接口，返回的 Task 已展开 creator/assignee"""

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        ...

    async def list_tasks(self, filters: TaskQueryFilters, now: datetime) -> list[Task]:
        """按筛选条件查询任务（默认排序）"""
        ...

    async def create_task(
        self,
        task_id: str,
        data: TaskCreateInput,
        created_by_id: str,
        now: datetime,
    ) -> Task:
        """创建任务"""
        ...

    async def update_task(
        self, task_id: str, changes: dict[str, Any], now: datetime
    ) -> Task | None:
        """按字段更新任务"""
        ...

    async def delete_task(self, task_id: str) -> bool:
        """删除任务"""
        ...

    async def list_by_creator(self, user_id: str) -> list[Task]:
        """查询指定用户创建的任务"""
        ...

    async def list_by_assignee(self, user_id: str) -> list[Task]:
        """查询指派给指定用户的任务"""
        ...

    async def list_overdue(self, now: datetime) -> list[Task]:
        """查询逾期任务"""
        ...


class UserStore(Protocol):
    """User 存储接口"""

    async def create_user(
        self, user_id: str, email: str, name: str, created_at: datetime
    ) -> UserPublic:
        """创建用户"""
        ...

    async def get_user(self, user_id: str) -> UserPublic | None:
        """根据 user_id 查询用户"""
        ...

    async def get_user_by_email(self, email: str) -> UserPublic | None:
        """根据 email 查询用户"""
        ...

    async def list_users(self) -> list[UserPublic]:
        """查询所有用户"""
        ...
