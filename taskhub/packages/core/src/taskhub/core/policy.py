"""授权策略 -- 纯函数，无副作用

所有判断都基于请求内刚读取的持久化 Task 状态。
调用方必须先确认 Task 存在再做授权判断（not-found 优先于 forbidden）。

- 任意已认证用户可以创建与读取任务
- 更新（含状态、重新指派）：creator 或当前 assignee
- 删除：仅 creator
- 专用指派操作：仅 creator（与通用更新路径不对称，保持现状）
"""

from .errors import ForbiddenError
from .models.task import Task


def can_update(actor_id: str, task: Task) -> bool:
    return actor_id == task.created_by_id or (
        task.assigned_to_id is not None and actor_id == task.assigned_to_id
    )


def can_delete(actor_id: str, task: Task) -> bool:
    return actor_id == task.created_by_id


def can_assign(actor_id: str, task: Task) -> bool:
    return actor_id == task.created_by_id


def ensure_can_update(actor_id: str, task: Task) -> None:
    if not can_update(actor_id, task):
        raise ForbiddenError("You do not have permission to update this task")


def ensure_can_delete(actor_id: str, task: Task) -> None:
    if not can_delete(actor_id, task):
        raise ForbiddenError("You do not have permission to delete this task")


def ensure_can_assign(actor_id: str, task: Task) -> None:
    if not can_assign(actor_id, task):
        raise ForbiddenError("Only the task creator can assign users")
