"""请求输入模型

所有写操作的输入在进入业务层之前完成结构校验。
Update 类输入通过 model_fields_set 区分"未提供"与"显式置空"。
"""

import re
from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, ConfigDict, EmailStr, Field, field_validator

from ..config import DESCRIPTION_MAX_LENGTH, ID_PATTERN, NAME_MIN_LENGTH, TITLE_MAX_LENGTH
from .enums import Priority, TaskStatus
from .task import ensure_utc
from .user import CamelModel

_ID_RE = re.compile(ID_PATTERN)


def _check_user_id(value: str) -> str:
    if not _ID_RE.match(value):
        raise ValueError("Invalid user ID")
    return value


def is_valid_id(value: str) -> bool:
    return bool(_ID_RE.match(value))


UserId = Annotated[str, AfterValidator(_check_user_id)]
Title = Annotated[str, Field(min_length=1, max_length=TITLE_MAX_LENGTH)]
Description = Annotated[str, Field(max_length=DESCRIPTION_MAX_LENGTH)]


class _InputModel(CamelModel):
    model_config = ConfigDict(extra="forbid")

    @field_validator("due_date", check_fields=False)
    @classmethod
    def _normalize_due_date(cls, value: datetime | None) -> datetime | None:
        return ensure_utc(value) if value is not None else None


class TaskCreateInput(_InputModel):
    """创建任务"""

    title: Title
    description: Description | None = None
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None
    assigned_to_id: UserId | None = None


class TaskUpdateInput(_InputModel):
    """通用更新：所有字段可选，description/dueDate/assignedToId 可显式置空"""

    title: Title | None = None
    description: Description | None = None
    status: TaskStatus | None = None
    priority: Priority | None = None
    due_date: datetime | None = None
    assigned_to_id: UserId | None = None

    @field_validator("title", "status", "priority")
    @classmethod
    def _reject_null(cls, value: Any) -> Any:
        # 这些字段可以省略，但不能为 null
        if value is None:
            raise ValueError("must not be null")
        return value

    def changes(self) -> dict[str, Any]:
        """仅返回调用方显式提供的字段"""
        return self.model_dump(exclude_unset=True)


class StatusUpdateInput(_InputModel):
    """仅修改状态"""

    status: TaskStatus


class AssignInput(_InputModel):
    """仅修改指派对象，null 表示取消指派"""

    assigned_to_id: UserId | None


class RegisterInput(_InputModel):
    """注册用户"""

    email: EmailStr
    name: Annotated[str, Field(min_length=NAME_MIN_LENGTH)]


class LoginInput(_InputModel):
    """为已注册用户重新签发会话（不含密码校验）"""

    email: EmailStr
