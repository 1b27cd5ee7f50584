"""任务列表筛选条件

封闭的筛选结构：只允许下列字段，多个条件之间为 AND 关系。
assigned_to_id / created_by_id 可以使用 CURRENT_ACTOR 哨兵，
在进入存储层之前由 resolve() 替换为当前操作者 ID。
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict

from .enums import Priority, TaskStatus

CURRENT_ACTOR: Literal["me"] = "me"

ActorRef = Literal["me"] | str


class TaskQueryFilters(BaseModel):
    """列表查询筛选条件"""

    model_config = ConfigDict(extra="forbid", frozen=True)

    status: TaskStatus | None = None
    priority: Priority | None = None
    assigned_to_id: ActorRef | None = None
    created_by_id: ActorRef | None = None
    overdue: bool = False

    def resolve(self, actor_id: str) -> "TaskQueryFilters":
        """将 CURRENT_ACTOR 哨兵替换为实际用户 ID"""
        updates = {}
        if self.assigned_to_id == CURRENT_ACTOR:
            updates["assigned_to_id"] = actor_id
        if self.created_by_id == CURRENT_ACTOR:
            updates["created_by_id"] = actor_id
        return self.model_copy(update=updates) if updates else self

    @property
    def is_resolved(self) -> bool:
        return CURRENT_ACTOR not in (self.assigned_to_id, self.created_by_id)
