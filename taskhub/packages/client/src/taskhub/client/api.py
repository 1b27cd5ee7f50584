"""TaskApiClient -- TaskHub REST 接口的异步封装

会话凭证由服务端写入 HttpOnly cookie，保存在 httpx.AsyncClient 的 cookie jar 中，
因此一个 AsyncClient 对应一个登录会话。
"""

from typing import Any

import httpx
from taskhub.core.models import (
    Priority,
    Task,
    TaskCreateInput,
    TaskStatus,
    TaskUpdateInput,
    UserPublic,
)

from .exceptions import ApiError


class TaskApiClient:
    """REST 客户端，所有方法在信封 success=false 时抛出 ApiError"""

    def __init__(self, http: httpx.AsyncClient) -> None:
        self._http = http

    # ---- 会话 ----

    async def register(self, email: str, name: str) -> UserPublic:
        data = await self._request(
            "POST", "/api/auth/register", json={"email": email, "name": name}
        )
        return UserPublic.model_validate(data["user"])

    async def login(self, email: str) -> UserPublic:
        data = await self._request("POST", "/api/auth/login", json={"email": email})
        return UserPublic.model_validate(data["user"])

    async def logout(self) -> None:
        await self._request("POST", "/api/auth/logout")

    async def me(self) -> UserPublic:
        data = await self._request("GET", "/api/auth/me")
        return UserPublic.model_validate(data["user"])

    async def list_users(self) -> list[UserPublic]:
        data = await self._request("GET", "/api/auth/users")
        return [UserPublic.model_validate(u) for u in data["users"]]

    # ---- 查询 ----

    async def list_tasks(
        self,
        *,
        status: TaskStatus | None = None,
        priority: Priority | None = None,
        assigned_to_me: bool = False,
        created_by_me: bool = False,
        overdue: bool = False,
    ) -> list[Task]:
        params: dict[str, str] = {}
        if status is not None:
            params["status"] = status.value
        if priority is not None:
            params["priority"] = priority.value
        if assigned_to_me:
            params["assignedToMe"] = "true"
        if created_by_me:
            params["createdByMe"] = "true"
        if overdue:
            params["overdue"] = "true"
        return await self._tasks("/api/tasks", params=params)

    async def my_tasks(self) -> list[Task]:
        return await self._tasks("/api/tasks/my-tasks")

    async def created_by_me(self) -> list[Task]:
        return await self._tasks("/api/tasks/created-by-me")

    async def overdue_tasks(self) -> list[Task]:
        return await self._tasks("/api/tasks/overdue")

    async def get_task(self, task_id: str) -> Task:
        return await self._task("GET", f"/api/tasks/{task_id}")

    # ---- 变更 ----

    async def create_task(self, data: TaskCreateInput) -> Task:
        return await self._task("POST", "/api/tasks", json=_body(data))

    async def update_task(self, task_id: str, patch: TaskUpdateInput) -> Task:
        return await self._task("PATCH", f"/api/tasks/{task_id}", json=_body(patch))

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        return await self._task(
            "PATCH", f"/api/tasks/{task_id}/status", json={"status": status.value}
        )

    async def assign_task(self, task_id: str, assignee_id: str | None) -> Task:
        return await self._task(
            "PATCH",
            f"/api/tasks/{task_id}/assign",
            json={"assignedToId": assignee_id},
        )

    async def delete_task(self, task_id: str) -> None:
        await self._request("DELETE", f"/api/tasks/{task_id}")

    # ---- 内部 ----

    async def _task(self, method: str, url: str, **kwargs: Any) -> Task:
        data = await self._request(method, url, **kwargs)
        return Task.model_validate(data["task"])

    async def _tasks(self, url: str, **kwargs: Any) -> list[Task]:
        data = await self._request("GET", url, **kwargs)
        return [Task.model_validate(t) for t in data["tasks"]]

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        response = await self._http.request(method, url, **kwargs)
        try:
            body = response.json()
        except ValueError as e:
            raise ApiError(
                response.status_code, response.text or response.reason_phrase
            ) from e

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            errors = body.get("errors") if isinstance(body, dict) else None
            raise ApiError(
                response.status_code,
                message or response.reason_phrase,
                errors,
            )
        return body.get("data") or {}


def _body(model: TaskCreateInput | TaskUpdateInput) -> dict[str, Any]:
    # 只发送显式设置的字段，保留"显式置空"语义
    return model.model_dump(mode="json", by_alias=True, exclude_unset=True)
