"""TaskCache -- 客户端缓存协调层

两条协调路径：

1. 本地推测变更（update / status / assign / delete）
   snapshot -> 推测应用 -> 成功保留 / 失败回滚
   无论成功失败，结束后都重新拉取所有已加载视图，服务端数据始终是最终依据。
2. 推送事件协调（来自其他会话的实时事件）
   不做局部修补，只把相关视图标记为 stale 并重新拉取。

同一视图的多次拉取可能重叠，以最后完成的那次为准。
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx
import structlog
from taskhub.core.models import (
    AssignmentNotificationType,
    EventType,
    RealtimeEvent,
    Task,
    TaskCreateInput,
    TaskStatus,
    TaskUpdateInput,
    utc_now,
)

from .api import TaskApiClient
from .exceptions import ApiError
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

log = structlog.get_logger()

T = TypeVar("T")


@dataclass(frozen=True)
class Notice:
    """面向用户的短暂提示"""

    kind: str  # success / error / info
    message: str


NoticeSink = Callable[[Notice], None]


def log_notice(notice: Notice) -> None:
    log.info("notice", kind=notice.kind, message=notice.message)


@dataclass(frozen=True)
class MutationSnapshot:
    """一次变更涉及的实体在各视图中的快照"""

    task_id: str
    entries: tuple[EntitySnapshot, ...]


class TaskCache:
    """客户端视图缓存"""

    def __init__(self, api: TaskApiClient, notify: NoticeSink = log_notice) -> None:
        self._api = api
        self._notify = notify
        self._views: dict[ViewKey, CachedView] = {}

    # ---- 读取 ----

    def view(self, key: ViewKey) -> CachedView | None:
        return self._views.get(key)

    def tasks(self, key: ViewKey) -> list[Task]:
        view = self._views.get(key)
        return list(view.tasks) if view else []

    @property
    def loaded_views(self) -> list[ViewKey]:
        return list(self._views)

    async def load(self, key: ViewKey) -> list[Task]:
        """首次加载（或强制加载）一个视图，错误直接抛给调用方"""
        tasks = await self._fetch(key)
        view = self._views.setdefault(key, CachedView(key))
        view.replace(tasks)
        return list(view.tasks)

    async def refetch(self, key: ViewKey) -> None:
        """重新拉取单个视图，失败时保持 stale"""
        try:
            tasks = await self._fetch(key)
        except ApiError as e:
            if not key.is_list and e.status_code == 404:
                self._views.pop(key, None)
                return
            self._refetch_failed(key, e.message)
            return
        except httpx.HTTPError as e:
            self._refetch_failed(key, str(e))
            return

        view = self._views.get(key)
        if view is None:
            # 拉取期间视图已被丢弃
            return
        view.replace(tasks)

    async def refetch_all(self) -> None:
        await asyncio.gather(*(self.refetch(key) for key in list(self._views)))

    async def refetch_stale(self) -> None:
        stale = [key for key, view in self._views.items() if view.stale]
        await asyncio.gather(*(self.refetch(key) for key in stale))

    def invalidate(self, keys: Iterable[ViewKey]) -> None:
        """标记 stale；未加载的视图忽略"""
        for key in keys:
            view = self._views.get(key)
            if view is not None:
                view.stale = True

    def drop(self, key: ViewKey) -> None:
        self._views.pop(key, None)

    # ---- 三阶段：snapshot / apply / rollback ----

    def snapshot(self, task_id: str) -> MutationSnapshot:
        entries = []
        for view in self._views.values():
            entry = view.snapshot(task_id)
            if entry is not None:
                entries.append(entry)
        return MutationSnapshot(task_id=task_id, entries=tuple(entries))

    def apply(self, task_id: str, changes: dict[str, Any]) -> None:
        """把同一补丁应用到所有包含该任务的视图

        排序、assignee 展开字段等由结束后的重新拉取修正。
        """
        update = {**changes, "updated_at": utc_now()}
        for view in self._views.values():
            view.patch(task_id, lambda task: task.model_copy(update=update))

    def apply_removal(self, task_id: str) -> None:
        for view in self._views.values():
            view.remove(task_id)

    def rollback(self, snapshot: MutationSnapshot) -> None:
        for entry in snapshot.entries:
            view = self._views.get(entry.view)
            if view is not None:
                view.restore(entry)

    # ---- 变更 ----

    async def create_task(self, data: TaskCreateInput) -> Task:
        """创建不做推测应用（还没有 ID），成功后重新拉取"""
        try:
            task = await self._api.create_task(data)
        except (ApiError, httpx.HTTPError) as e:
            self._notify(Notice("error", _failure_message(e)))
            raise
        finally:
            await self.refetch_all()
        self._notify(Notice("success", "Task created successfully"))
        return task

    async def update_task(self, task_id: str, patch: TaskUpdateInput) -> Task:
        return await self._speculate(
            task_id,
            lambda: self.apply(task_id, patch.changes()),
            self._api.update_task(task_id, patch),
            "Task updated successfully",
        )

    async def update_status(self, task_id: str, status: TaskStatus) -> Task:
        return await self._speculate(
            task_id,
            lambda: self.apply(task_id, {"status": status}),
            self._api.update_status(task_id, status),
            "Task status updated",
        )

    async def assign_task(self, task_id: str, assignee_id: str | None) -> Task:
        return await self._speculate(
            task_id,
            lambda: self.apply(task_id, {"assigned_to_id": assignee_id}),
            self._api.assign_task(task_id, assignee_id),
            "Task assigned successfully",
        )

    async def delete_task(self, task_id: str) -> None:
        await self._speculate(
            task_id,
            lambda: self.apply_removal(task_id),
            self._api.delete_task(task_id),
            "Task deleted successfully",
        )
        self.drop(ViewKey.detail(task_id))

    # ---- 推送事件 ----

    async def handle_event(self, event: RealtimeEvent) -> None:
        """按事件类型失效相关视图并重新拉取"""
        data = event.data
        if event.event == EventType.TASK_CREATED:
            self.invalidate(LIST_VIEWS)
        elif event.event == EventType.TASK_UPDATED:
            self.invalidate((*LIST_VIEWS, *_detail_keys(data.get("task"))))
        elif event.event == EventType.TASK_DELETED:
            if task_id := data.get("taskId"):
                self.drop(ViewKey.detail(task_id))
            self.invalidate(LIST_VIEWS)
        elif event.event == EventType.ASSIGNMENT_NOTIFICATION:
            if message := data.get("message"):
                self._notify(Notice("info", message))
            if data.get("type") == AssignmentNotificationType.TASK_DELETED:
                for key in _detail_keys(data.get("task")):
                    self.drop(key)
            else:
                self.invalidate(_detail_keys(data.get("task")))
            self.invalidate(LIST_VIEWS)

        await self.refetch_stale()

    # ---- 内部 ----

    async def _speculate(
        self,
        task_id: str,
        apply: Callable[[], None],
        request: Awaitable[T],
        success_message: str,
    ) -> T:
        snapshot = self.snapshot(task_id)
        apply()
        try:
            result = await request
        except (ApiError, httpx.HTTPError) as e:
            self.rollback(snapshot)
            message = _failure_message(e)
            log.warning("speculative_rollback", task_id=task_id, error=message)
            self._notify(Notice("error", message))
            raise
        finally:
            await self.refetch_all()
        self._notify(Notice("success", success_message))
        return result

    async def _fetch(self, key: ViewKey) -> list[Task]:
        if key == ALL:
            return await self._api.list_tasks()
        if key == MY_TASKS:
            return await self._api.my_tasks()
        if key == CREATED_BY_ME:
            return await self._api.created_by_me()
        if key == OVERDUE:
            return await self._api.overdue_tasks()
        if key.task_id is not None:
            return [await self._api.get_task(key.task_id)]
        raise ValueError(f"unknown view: {key}")

    def _refetch_failed(self, key: ViewKey, error: str) -> None:
        log.warning("view_refetch_failed", view=key.name, task_id=key.task_id, error=error)
        view = self._views.get(key)
        if view is not None:
            view.stale = True


def _detail_keys(task: Any) -> tuple[ViewKey, ...]:
    if isinstance(task, dict) and task.get("id"):
        return (ViewKey.detail(task["id"]),)
    return ()


def _failure_message(error: ApiError | httpx.HTTPError) -> str:
    # 传输层错误没有服务端信封
    return error.message if isinstance(error, ApiError) else "Request failed"
