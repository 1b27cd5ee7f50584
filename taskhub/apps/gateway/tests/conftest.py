"""apps/gateway 测试配置 -- FastAPI app + httpx AsyncClient + 已登录用户工厂

ASGITransport 不会触发 lifespan，app.state 在 fixture 中手动装配。
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from taskhub.core.config import SESSION_COOKIE_NAME
from taskhub.core.models import RegisterInput, UserPublic
from taskhub.core.store import StoreGroup
from taskhub.gateway.config import GatewayConfig
from taskhub.gateway.services.event_hub import EventHub
from taskhub.gateway.services.token_service import TokenService
from taskhub.gateway.services.user_service import UserService

TEST_SECRET = "gateway-test-secret"


@pytest_asyncio.fixture
async def store_group(open_stores) -> StoreGroup:
    return await open_stores("test.db")


@pytest_asyncio.fixture
async def app(tmp_path: Path, store_group: StoreGroup):
    """创建测试用 FastAPI app 实例"""
    os.environ["TASKHUB_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from taskhub.gateway.main import create_app

    config = GatewayConfig(secret_key=SecretStr(TEST_SECRET))
    application = create_app(config)
    application.state.store_group = store_group
    application.state.event_hub = EventHub(queue_maxsize=100)
    application.state.token_service = TokenService(TEST_SECRET, config.token_ttl_s)
    yield application

    for key in ["TASKHUB_DB_PATH", "LOGFIRE_SEND_TO_LOGFIRE"]:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def hub(app) -> EventHub:
    return app.state.event_hub


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """未登录的 httpx AsyncClient"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


LoginFactory = Callable[[str], Awaitable[tuple[AsyncClient, UserPublic]]]


@pytest_asyncio.fixture
async def login(app, store_group: StoreGroup) -> AsyncGenerator[LoginFactory, None]:
    """注册用户并返回携带会话 cookie 的 AsyncClient"""
    opened: list[AsyncClient] = []
    users = UserService(store_group)
    tokens: TokenService = app.state.token_service

    async def _login(name: str) -> tuple[AsyncClient, UserPublic]:
        user = await users.register(
            RegisterInput(email=f"{name.lower()}@example.com", name=name)
        )
        ac = AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
            cookies={SESSION_COOKIE_NAME: tokens.issue(user)},
        )
        opened.append(ac)
        return ac, user

    yield _login

    for ac in opened:
        await ac.aclose()
