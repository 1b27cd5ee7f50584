"""客户端异常"""


class ApiError(Exception):
    """服务端返回 success=false 的信封，或响应不是合法信封"""

    def __init__(
        self,
        status_code: int,
        message: str,
        errors: list[str] | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.errors = errors or []
