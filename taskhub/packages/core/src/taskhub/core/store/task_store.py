"""TaskStore SQLite 实现

所有查询返回的 Task 都已展开 creator/assignee 的公开信息。
写操作不自动提交，由调用方通过 transaction.atomic() 管理事务。
同一任务的并发更新按 last-write-wins 落库，不做版本校验。
"""

from datetime import datetime
from enum import Enum
from typing import Any

import aiosqlite

from ..models.enums import TaskStatus
from ..models.filters import TaskQueryFilters
from ..models.inputs import TaskCreateInput
from ..models.task import Task
from ..models.user import UserPublic
from .timestamps import format_ts, parse_ts

_SELECT_TASKS = """
SELECT t.*,
       c.email AS creator_email, c.name AS creator_name,
       c.created_at AS creator_created_at,
       a.email AS assignee_email, a.name AS assignee_name,
       a.created_at AS assignee_created_at
FROM tasks t
JOIN users c ON c.user_id = t.created_by_id
LEFT JOIN users a ON a.user_id = t.assigned_to_id
"""

# 优先级降序 -> 截止时间升序（NULL 排最后）-> 创建时间降序
_DEFAULT_ORDER = """
ORDER BY CASE t.priority WHEN 'HIGH' THEN 3 WHEN 'MEDIUM' THEN 2 ELSE 1 END DESC,
         t.due_date IS NULL, t.due_date ASC,
         t.created_at DESC
"""

_CREATED_DESC = "ORDER BY t.created_at DESC"

_DUE_ASC = "ORDER BY t.due_date ASC"

# 可更新列（字段名与列名一致）
_UPDATABLE_COLUMNS = frozenset(
    {"title", "description", "status", "priority", "due_date", "assigned_to_id"}
)


def _to_column_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return format_ts(value)
    return value


class SqliteTaskStore:
    """TaskStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_task(
        self,
        task_id: str,
        data: TaskCreateInput,
        created_by_id: str,
        now: datetime,
    ) -> Task:
        """创建任务记录，返回展开后的 Task"""
        await self._conn.execute(
            """
            INSERT INTO tasks (task_id, title, description, status, priority,
                               due_date, created_at, updated_at,
                               created_by_id, assigned_to_id)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task_id,
                data.title,
                data.description,
                TaskStatus.TODO.value,
                data.priority.value,
                format_ts(data.due_date) if data.due_date else None,
                format_ts(now),
                format_ts(now),
                created_by_id,
                data.assigned_to_id,
            ),
        )
        task = await self.get_task(task_id)
        if task is None:
            raise RuntimeError(f"task {task_id} missing right after insert")
        return task

    async def get_task(self, task_id: str) -> Task | None:
        """根据 task_id 查询任务"""
        cursor = await self._conn.execute(
            _SELECT_TASKS + " WHERE t.task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return self._row_to_task(row)

    async def list_tasks(
        self, filters: TaskQueryFilters, now: datetime
    ) -> list[Task]:
        """按筛选条件查询（AND 组合），默认排序

        Args:
            filters: 已 resolve 的筛选条件
            now: overdue 判断的参考时间
        """
        if not filters.is_resolved:
            raise ValueError("filters must be resolved against the current actor")

        clauses: list[str] = []
        params: list[Any] = []

        if filters.status is not None:
            clauses.append("t.status = ?")
            params.append(filters.status.value)
        if filters.priority is not None:
            clauses.append("t.priority = ?")
            params.append(filters.priority.value)
        if filters.assigned_to_id is not None:
            clauses.append("t.assigned_to_id = ?")
            params.append(filters.assigned_to_id)
        if filters.created_by_id is not None:
            clauses.append("t.created_by_id = ?")
            params.append(filters.created_by_id)
        if filters.overdue:
            clauses.append("t.due_date IS NOT NULL AND t.due_date < ? AND t.status != ?")
            params.extend([format_ts(now), TaskStatus.COMPLETED.value])

        where = f" WHERE {' AND '.join(clauses)}" if clauses else ""
        return await self._fetch_tasks(_SELECT_TASKS + where + _DEFAULT_ORDER, params)

    async def list_by_creator(self, user_id: str) -> list[Task]:
        """查询由指定用户创建的任务，按创建时间倒序"""
        return await self._fetch_tasks(
            _SELECT_TASKS + " WHERE t.created_by_id = ? " + _CREATED_DESC,
            [user_id],
        )

    async def list_by_assignee(self, user_id: str) -> list[Task]:
        """查询指派给指定用户的任务，按创建时间倒序"""
        return await self._fetch_tasks(
            _SELECT_TASKS + " WHERE t.assigned_to_id = ? " + _CREATED_DESC,
            [user_id],
        )

    async def list_overdue(self, now: datetime) -> list[Task]:
        """查询逾期任务，按截止时间升序"""
        return await self._fetch_tasks(
            _SELECT_TASKS
            + " WHERE t.due_date IS NOT NULL AND t.due_date < ? AND t.status != ? "
            + _DUE_ASC,
            [format_ts(now), TaskStatus.COMPLETED.value],
        )

    async def update_task(
        self, task_id: str, changes: dict[str, Any], now: datetime
    ) -> Task | None:
        """按字段更新任务并刷新 updated_at，返回更新后的 Task"""
        unknown = set(changes) - _UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"not updatable: {sorted(unknown)}")

        assignments = [f"{column} = ?" for column in changes]
        params = [_to_column_value(value) for value in changes.values()]
        assignments.append("updated_at = ?")
        params.extend([format_ts(now), task_id])

        await self._conn.execute(
            f"UPDATE tasks SET {', '.join(assignments)} WHERE task_id = ?",
            params,
        )
        return await self.get_task(task_id)

    async def delete_task(self, task_id: str) -> bool:
        """删除任务，返回是否实际删除"""
        cursor = await self._conn.execute(
            "DELETE FROM tasks WHERE task_id = ?",
            (task_id,),
        )
        return cursor.rowcount > 0

    async def _fetch_tasks(self, sql: str, params: list[Any]) -> list[Task]:
        cursor = await self._conn.execute(sql, params)
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        assignee = None
        if row["assigned_to_id"] is not None:
            assignee = UserPublic(
                id=row["assigned_to_id"],
                email=row["assignee_email"],
                name=row["assignee_name"],
                created_at=parse_ts(row["assignee_created_at"]),
            )
        return Task(
            id=row["task_id"],
            title=row["title"],
            description=row["description"],
            status=row["status"],
            priority=row["priority"],
            due_date=parse_ts(row["due_date"]),
            created_at=parse_ts(row["created_at"]),
            updated_at=parse_ts(row["updated_at"]),
            created_by_id=row["created_by_id"],
            assigned_to_id=row["assigned_to_id"],
            created_by=UserPublic(
                id=row["created_by_id"],
                email=row["creator_email"],
                name=row["creator_name"],
                created_at=parse_ts(row["creator_created_at"]),
            ),
            assigned_to=assignee,
        )
