"""UserStore SQLite 实现

User 只有创建与查询，没有修改/删除路径。
"""

from datetime import datetime

import aiosqlite

from ..models.user import UserPublic
from .timestamps import format_ts


class SqliteUserStore:
    """UserStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def create_user(
        self, user_id: str, email: str, name: str, created_at: datetime
    ) -> UserPublic:
        """创建用户记录（email 重复时抛出 aiosqlite.IntegrityError）

        注意：此方法不自动提交事务，需由调用方管理事务。
        """
        await self._conn.execute(
            "INSERT INTO users (user_id, email, name, created_at) VALUES (?, ?, ?, ?)",
            (user_id, email, name, format_ts(created_at)),
        )
        return UserPublic(id=user_id, email=email, name=name, created_at=created_at)

    async def get_user(self, user_id: str) -> UserPublic | None:
        cursor = await self._conn.execute(
            "SELECT * FROM users WHERE user_id = ?",
            (user_id,),
        )
        row = await cursor.fetchone()
        return self._row_to_user(row) if row is not None else None

    async def get_user_by_email(self, email: str) -> UserPublic | None:
        cursor = await self._conn.execute(
            "SELECT * FROM users WHERE email = ?",
            (email,),
        )
        row = await cursor.fetchone()
        return self._row_to_user(row) if row is not None else None

    async def list_users(self) -> list[UserPublic]:
        """查询所有用户，按名称排序"""
        cursor = await self._conn.execute("SELECT * FROM users ORDER BY name ASC")
        rows = await cursor.fetchall()
        return [self._row_to_user(row) for row in rows]

    @staticmethod
    def _row_to_user(row: aiosqlite.Row) -> UserPublic:
        return UserPublic(
            id=row["user_id"],
            email=row["email"],
            name=row["name"],
            created_at=datetime.fromisoformat(row["created_at"]),
        )
