"""TaskHub Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    BROADCAST_EVENTS,
    PRIORITY_RANK,
    AssignmentNotificationType,
    ClientCommand,
    EventType,
    Priority,
    TaskStatus,
)
from .event import (
    RealtimeEvent,
    assignment_notification,
    task_created,
    task_deleted,
    task_updated,
)
from .filters import CURRENT_ACTOR, TaskQueryFilters
from .inputs import (
    AssignInput,
    LoginInput,
    RegisterInput,
    StatusUpdateInput,
    TaskCreateInput,
    TaskUpdateInput,
    is_valid_id,
)
from .task import Task, ensure_utc, utc_now
from .user import AuthPayload, CamelModel, UserPublic

__all__ = [
    # 枚举
    "TaskStatus",
    "Priority",
    "PRIORITY_RANK",
    "EventType",
    "BROADCAST_EVENTS",
    "AssignmentNotificationType",
    "ClientCommand",
    # Task / User
    "Task",
    "UserPublic",
    "AuthPayload",
    "CamelModel",
    "utc_now",
    "ensure_utc",
    # 输入与筛选
    "TaskCreateInput",
    "TaskUpdateInput",
    "StatusUpdateInput",
    "AssignInput",
    "RegisterInput",
    "LoginInput",
    "is_valid_id",
    "TaskQueryFilters",
    "CURRENT_ACTOR",
    # 实时事件
    "RealtimeEvent",
    "task_created",
    "task_updated",
    "task_deleted",
    "assignment_notification",
]
