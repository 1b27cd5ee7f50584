"""依赖注入模块 -- 通过 FastAPI Depends 注入共享实例

StoreGroup / EventHub / TokenService 在 lifespan 中创建一次并挂到 app.state，
请求处理路径通过依赖注入取得句柄，不存在进程级全局查找。
"""

from fastapi import Depends
from starlette.requests import HTTPConnection
from taskhub.core.config import SESSION_COOKIE_NAME
from taskhub.core.models import AuthPayload
from taskhub.core.store import StoreGroup

from .services.event_hub import EventHub
from .services.publisher import TaskEventPublisher
from .services.task_service import TaskService
from .services.token_service import TokenService
from .services.user_service import UserService


def get_store_group(conn: HTTPConnection) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return conn.app.state.store_group


def get_event_hub(conn: HTTPConnection) -> EventHub:
    """从 app.state 获取 EventHub 实例"""
    return conn.app.state.event_hub


def get_token_service(conn: HTTPConnection) -> TokenService:
    return conn.app.state.token_service


def get_task_service(store_group: StoreGroup = Depends(get_store_group)) -> TaskService:
    return TaskService(store_group)


def get_user_service(store_group: StoreGroup = Depends(get_store_group)) -> UserService:
    return UserService(store_group)


def get_publisher(hub: EventHub = Depends(get_event_hub)) -> TaskEventPublisher:
    return TaskEventPublisher(hub)


def get_current_user(
    conn: HTTPConnection,
    tokens: TokenService = Depends(get_token_service),
) -> AuthPayload:
    """从 HttpOnly cookie 解析当前用户，失败抛出 UnauthorizedError"""
    return tokens.verify(conn.cookies.get(SESSION_COOKIE_NAME))
