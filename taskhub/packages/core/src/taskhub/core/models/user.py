"""User Domain Model

User 创建后不可修改，email 全局唯一。
对外只暴露 UserPublic（不含任何凭证字段）。
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON 字段使用 camelCase，Python 侧保持 snake_case"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserPublic(CamelModel):
    """用户公开信息"""

    id: str = Field(description="唯一标识，ULID 格式")
    email: str = Field(description="邮箱，全局唯一")
    name: str = Field(description="显示名称")
    created_at: datetime = Field(description="创建时间")


class AuthPayload(BaseModel):
    """会话凭证解析结果"""

    user_id: str
    email: str
