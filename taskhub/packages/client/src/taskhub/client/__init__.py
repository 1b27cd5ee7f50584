"""TaskHub Client -- REST 客户端 + 实时事件监听 + 视图缓存协调"""

from .api import TaskApiClient
from .cache import MutationSnapshot, Notice, NoticeSink, TaskCache, log_notice
from .exceptions import ApiError
from .listener import EventStreamListener, parse_sse
from .views import (
    ALL,
    CREATED_BY_ME,
    LIST_VIEWS,
    MY_TASKS,
    OVERDUE,
    CachedView,
    EntitySnapshot,
    ViewKey,
)

__all__ = [
    "TaskApiClient",
    "ApiError",
    "TaskCache",
    "Notice",
    "NoticeSink",
    "log_notice",
    "MutationSnapshot",
    "EventStreamListener",
    "parse_sse",
    "ViewKey",
    "CachedView",
    "EntitySnapshot",
    "ALL",
    "MY_TASKS",
    "CREATED_BY_ME",
    "OVERDUE",
    "LIST_VIEWS",
]
