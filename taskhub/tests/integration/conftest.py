"""集成测试共享 fixture

每个用户一个 httpx AsyncClient（独立 cookie jar）+ TaskApiClient，
实时投递通过 app.state.event_hub 上的连接队列观察。
"""

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pydantic import SecretStr
from taskhub.client import TaskApiClient
from taskhub.core.models import UserPublic
from taskhub.gateway.config import GatewayConfig
from taskhub.gateway.services.event_hub import EventHub
from taskhub.gateway.services.token_service import TokenService

SECRET = "integration-secret"


@dataclass
class Session:
    user: UserPublic
    http: AsyncClient
    api: TaskApiClient


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path, open_stores):
    """集成测试用 FastAPI app"""
    os.environ["TASKHUB_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")
    os.environ["LOGFIRE_SEND_TO_LOGFIRE"] = "false"

    from taskhub.gateway.main import create_app

    config = GatewayConfig(secret_key=SecretStr(SECRET))
    app = create_app(config)

    store_group = await open_stores("test.db")
    app.state.store_group = store_group
    app.state.event_hub = EventHub()
    app.state.token_service = TokenService(SECRET, config.token_ttl_s)

    yield app

    os.environ.pop("TASKHUB_DB_PATH", None)
    os.environ.pop("LOGFIRE_SEND_TO_LOGFIRE", None)


@pytest_asyncio.fixture
async def sign_up(
    integration_app,
) -> AsyncGenerator[Callable[[str], Awaitable[Session]], None]:
    """通过 /api/auth/register 注册并登录，返回该用户的会话"""
    opened: list[AsyncClient] = []

    async def _sign_up(name: str) -> Session:
        http = AsyncClient(
            transport=ASGITransport(app=integration_app),
            base_url="http://test",
        )
        opened.append(http)
        api = TaskApiClient(http)
        user = await api.register(f"{name.lower()}@example.com", name)
        return Session(user=user, http=http, api=api)

    yield _sign_up

    for http in opened:
        await http.aclose()
