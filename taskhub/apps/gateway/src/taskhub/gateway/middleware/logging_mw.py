"""LoggingMiddleware

每个 HTTP 请求绑定 request_id / method / path 到 structlog contextvars。
客户端带来合法 ULID 形式的 X-Request-ID 时沿用，否则新生成。
WebSocket 握手不经过 BaseHTTPMiddleware，实时连接日志由 realtime 路由自行记录。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from taskhub.core.models import is_valid_id
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"


def resolve_request_id(request: Request) -> str:
    inbound = request.headers.get(REQUEST_ID_HEADER, "")
    return inbound if is_valid_id(inbound) else str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request)
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )

        log = structlog.get_logger()
        started = time.perf_counter()
        await log.ainfo("request_started")

        response = await call_next(request)

        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        if response.status_code >= 500:
            await log.awarning(
                "request_completed", status_code=response.status_code, elapsed_ms=elapsed_ms
            )
        else:
            await log.ainfo(
                "request_completed", status_code=response.status_code, elapsed_ms=elapsed_ms
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
