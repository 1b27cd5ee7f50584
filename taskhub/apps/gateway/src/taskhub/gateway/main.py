"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭 + EventHub + 会话凭证服务 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from taskhub.core.config import HUB_QUEUE_MAXSIZE, get_db_path
from taskhub.core.store import create_store_group

from .config import GatewayConfig, load_gateway_config
from .envelope import register_exception_handlers
from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import auth, health, realtime, tasks
from .services.event_hub import EventHub
from .services.token_service import TokenService

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 与实时组件，关闭时清理连接"""
    # 启动：初始化 Store
    db_path = get_db_path()
    app.state.store_group = await create_store_group(db_path)

    app.state.event_hub = EventHub(queue_maxsize=HUB_QUEUE_MAXSIZE)

    config: GatewayConfig = app.state.gateway_config
    app.state.token_service = TokenService(
        secret_key=config.secret_key.get_secret_value(),
        ttl_s=config.token_ttl_s,
    )
    log.info("gateway_started", db_path=db_path)

    yield

    await app.state.store_group.close()
    log.info("gateway_stopped", open_connections=app.state.event_hub.connection_count)


def create_app(config: GatewayConfig | None = None) -> FastAPI:
    """创建 FastAPI 应用实例"""
    config = config or load_gateway_config()

    app = FastAPI(
        title="TaskHub Gateway",
        version="0.1.0",
        description="TaskHub 协作任务 API",
        lifespan=lifespan,
    )
    app.state.gateway_config = config

    # 注册中间件（后注册的在外层：Logging -> Trace -> CORS）
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.client_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    # 初始化日志
    setup_logging()
    setup_logfire(app)

    register_exception_handlers(app)

    # 注册路由
    app.include_router(auth.router, tags=["auth"])
    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(realtime.router, tags=["realtime"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
