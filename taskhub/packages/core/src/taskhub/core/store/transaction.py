"""写事务：在同一连接上提交或整体回滚；服务层经 StoreGroup.transaction() 调用"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import aiosqlite


@asynccontextmanager
async def atomic(conn: aiosqlite.Connection) -> AsyncIterator[aiosqlite.Connection]:
    """正常退出时提交；事务体抛出任何异常都先回滚，再原样抛出"""
    try:
        yield conn
    except BaseException:
        await conn.rollback()
        raise
    await conn.commit()
