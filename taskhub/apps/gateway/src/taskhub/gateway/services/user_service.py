"""UserService -- 用户注册与查询

User 创建后不可修改；email 重复返回 ConflictError。
"""

import aiosqlite
import structlog
from taskhub.core.errors import ConflictError, NotFoundError, UnauthorizedError
from taskhub.core.models import LoginInput, RegisterInput, UserPublic, utc_now
from taskhub.core.store import StoreGroup
from ulid import ULID

log = structlog.get_logger()


class UserService:
    """用户业务服务"""

    def __init__(self, store_group: StoreGroup) -> None:
        self._stores = store_group

    async def register(self, data: RegisterInput) -> UserPublic:
        email = data.email.lower()
        if await self._stores.user_store.get_user_by_email(email) is not None:
            raise ConflictError("Email already registered")

        try:
            async with self._stores.transaction():
                user = await self._stores.user_store.create_user(
                    str(ULID()), email, data.name, utc_now()
                )
        except aiosqlite.IntegrityError as e:
            # 并发注册同一 email：唯一约束兜底
            raise ConflictError("Email already registered") from e

        log.info("user_registered", user_id=user.id)
        return user

    async def login(self, data: LoginInput) -> UserPublic:
        user = await self._stores.user_store.get_user_by_email(data.email.lower())
        if user is None:
            raise UnauthorizedError("Invalid email")
        log.info("user_logged_in", user_id=user.id)
        return user

    async def get_user(self, user_id: str) -> UserPublic:
        user = await self._stores.user_store.get_user(user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    async def list_users(self) -> list[UserPublic]:
        return await self._stores.user_store.list_users()
