"""会话与用户路由

POST /api/auth/register: 注册并写入 HttpOnly 会话 cookie（201，email 重复 409）
POST /api/auth/login:    按 email 为已注册用户重新签发会话 cookie（未知 email 401）
POST /api/auth/logout:   清除会话 cookie
GET  /api/auth/me:       当前用户
GET  /api/auth/users:    用户列表（按名称排序，用于选择 assignee）
"""

from fastapi import APIRouter, Depends, Request
from starlette.responses import JSONResponse
from taskhub.core.config import SESSION_COOKIE_NAME
from taskhub.core.models import AuthPayload, LoginInput, RegisterInput, UserPublic

from ..deps import get_current_user, get_token_service, get_user_service
from ..envelope import success
from ..services.token_service import TokenService
from ..services.user_service import UserService

router = APIRouter(prefix="/api/auth")


def _user_json(user: UserPublic) -> dict:
    return user.model_dump(mode="json", by_alias=True)


def _set_session_cookie(
    request: Request, response: JSONResponse, token: str, max_age: int
) -> None:
    config = request.app.state.gateway_config
    response.set_cookie(
        SESSION_COOKIE_NAME,
        token,
        max_age=max_age,
        httponly=True,
        secure=config.cookie_secure,
        samesite=config.cookie_samesite,
    )


@router.post("/register")
async def register(
    body: RegisterInput,
    request: Request,
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
):
    user = await users.register(body)
    response = success({"user": _user_json(user)}, status_code=201)
    _set_session_cookie(request, response, tokens.issue(user), tokens.ttl_s)
    return response


@router.post("/login")
async def login(
    body: LoginInput,
    request: Request,
    users: UserService = Depends(get_user_service),
    tokens: TokenService = Depends(get_token_service),
):
    user = await users.login(body)
    response = success({"user": _user_json(user)})
    _set_session_cookie(request, response, tokens.issue(user), tokens.ttl_s)
    return response


@router.post("/logout")
async def logout(request: Request):
    config = request.app.state.gateway_config
    response = success(message="Logged out successfully")
    response.delete_cookie(
        SESSION_COOKIE_NAME,
        httponly=True,
        secure=config.cookie_secure,
        samesite=config.cookie_samesite,
    )
    return response


@router.get("/me")
async def me(
    user: AuthPayload = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    current = await users.get_user(user.user_id)
    return success({"user": _user_json(current)})


@router.get("/users")
async def list_users(
    user: AuthPayload = Depends(get_current_user),
    users: UserService = Depends(get_user_service),
):
    return success({"users": [_user_json(u) for u in await users.list_users()]})
