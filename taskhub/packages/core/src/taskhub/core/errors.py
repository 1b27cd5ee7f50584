"""TaskHub 异常体系

业务层抛出带类型的异常，HTTP 层统一映射为状态码 + 错误信封。
"""


class TaskHubError(Exception):
    """TaskHub 基础异常"""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class BadRequestError(TaskHubError):
    """输入格式错误或引用了不存在的实体（例如未知的 assignee）"""

    status_code = 400

    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        """
        Args:
            message: 错误描述
            errors: 逐字段的可读错误列表
        """
        super().__init__(message)
        self.errors = errors


class UnauthorizedError(TaskHubError):
    """凭证缺失或无效"""

    status_code = 401


class ForbiddenError(TaskHubError):
    """已认证但无权执行该操作"""

    status_code = 403


class NotFoundError(TaskHubError):
    """实体不存在"""

    status_code = 404


class ConflictError(TaskHubError):
    """唯一字段冲突"""

    status_code = 409
