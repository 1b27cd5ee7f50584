"""响应信封 + 异常映射

成功：{success: true, data?, message?}
失败：{success: false, message, errors?}，HTTP 状态码与异常类型一致。
"""

from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse
from taskhub.core.errors import TaskHubError

log = structlog.get_logger()


def success(
    data: Any = None,
    message: str | None = None,
    status_code: int = 200,
) -> JSONResponse:
    content: dict[str, Any] = {"success": True}
    if data is not None:
        content["data"] = data
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


def failure(
    status_code: int,
    message: str,
    errors: list[str] | None = None,
) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "message": message}
    if errors:
        content["errors"] = errors
    return JSONResponse(status_code=status_code, content=content)


def _format_validation_error(error: dict[str, Any]) -> str:
    # loc 第一段是 body/query/path，不对外暴露
    loc = [str(part) for part in error.get("loc", ())[1:]]
    field = ".".join(loc)
    return f"{field}: {error['msg']}" if field else error["msg"]


async def taskhub_error_handler(request: Request, exc: TaskHubError) -> JSONResponse:
    log.info("api_error", status_code=exc.status_code, message=exc.message)
    return failure(exc.status_code, exc.message, getattr(exc, "errors", None))


async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = [_format_validation_error(e) for e in exc.errors()]
    log.info("api_error", status_code=400, errors=errors)
    return failure(400, ", ".join(errors), errors)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.exception("unhandled_error", error_type=type(exc).__name__)
    return failure(500, "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TaskHubError, taskhub_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
