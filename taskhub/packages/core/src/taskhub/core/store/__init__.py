"""TaskHub Core Store -- SQLite 持久化实现

TaskStore / UserStore 共享一个 aiosqlite 连接，由 StoreGroup 统一持有与关闭。
共享连接上的事务不能交叉，服务层写入一律经 StoreGroup.transaction() 串行执行。
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from .protocols import TaskStore, UserStore
from .sqlite_init import init_db
from .task_store import SqliteTaskStore
from .transaction import atomic
from .user_store import SqliteUserStore


class StoreGroup:
    def __init__(self, conn: aiosqlite.Connection) -> None:
        self.conn = conn
        self.task_store = SqliteTaskStore(conn)
        self.user_store = SqliteUserStore(conn)
        self._closed = False
        self._write_lock = asyncio.Lock()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """串行化的写事务：同一时刻只有一个事务在共享连接上进行"""
        async with self._write_lock:
            async with atomic(self.conn) as conn:
                yield conn

    async def ping(self) -> None:
        """连通性检查，连接不可用时抛出底层异常"""
        cursor = await self.conn.execute("SELECT 1")
        await cursor.fetchone()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self.conn.close()


async def create_store_group(db_path: str) -> StoreGroup:
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = await aiosqlite.connect(db_path)
    await init_db(conn)
    return StoreGroup(conn)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "SqliteTaskStore",
    "SqliteUserStore",
    "TaskStore",
    "UserStore",
    "init_db",
    "atomic",
]
