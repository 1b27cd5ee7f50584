"""Task Domain Model

creator 在创建时确定且不可更改；assignee 可选、可重新指派。
overdue 是派生属性，不落库，每次查询时重新计算。
"""

from datetime import UTC, datetime

from pydantic import Field

from .enums import Priority, TaskStatus
from .user import CamelModel, UserPublic


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """naive 时间按 UTC 解释，aware 时间转换到 UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


class Task(CamelModel):
    """Task 数据模型，creator/assignee 身份字段已展开"""

    id: str = Field(description="唯一标识，ULID 格式")
    title: str = Field(description="标题")
    description: str | None = Field(default=None, description="描述")
    status: TaskStatus = Field(default=TaskStatus.TODO, description="当前状态")
    priority: Priority = Field(default=Priority.MEDIUM, description="优先级")
    due_date: datetime | None = Field(default=None, description="截止时间")
    created_at: datetime = Field(description="创建时间")
    updated_at: datetime = Field(description="更新时间")
    created_by_id: str = Field(description="创建者 ID")
    assigned_to_id: str | None = Field(default=None, description="指派对象 ID")
    created_by: UserPublic = Field(description="创建者")
    assigned_to: UserPublic | None = Field(default=None, description="指派对象")

    def is_overdue(self, now: datetime | None = None) -> bool:
        """due_date 存在、严格早于 now 且未完成"""
        if self.due_date is None or self.status == TaskStatus.COMPLETED:
            return False
        reference = ensure_utc(now) if now is not None else utc_now()
        return ensure_utc(self.due_date) < reference
