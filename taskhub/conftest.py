"""全局 pytest 配置 -- 按需打开 StoreGroup，测试结束统一关闭"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest_asyncio
from taskhub.core.store import StoreGroup, create_store_group

OpenStores = Callable[[str], Awaitable[StoreGroup]]


@pytest_asyncio.fixture
async def open_stores(tmp_path: Path) -> AsyncGenerator[OpenStores, None]:
    """open_stores("name.db") 在 tmp_path/sqlite 下创建并初始化数据库"""
    opened: list[StoreGroup] = []

    async def _open(filename: str) -> StoreGroup:
        group = await create_store_group(str(tmp_path / "sqlite" / filename))
        opened.append(group)
        return group

    yield _open

    for group in opened:
        await group.close()
