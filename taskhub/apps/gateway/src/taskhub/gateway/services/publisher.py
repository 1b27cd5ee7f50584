"""TaskEventPublisher -- 把变更结果映射为实时事件投递

规则：
- TASK_CREATED / TASK_UPDATED / TASK_DELETED 广播给所有连接（包括操作者自己）
- ASSIGNMENT_NOTIFICATION 只投递到受影响用户的个人频道，且永远不通知操作者本人
- 只有 assignee 真实发生变化时才产生 NEW_ASSIGNMENT / UNASSIGNED

投递只入队，不等待客户端接收。
"""

import structlog
from taskhub.core.models import (
    AssignmentNotificationType,
    RealtimeEvent,
    Task,
    assignment_notification,
    task_created,
    task_deleted,
    task_updated,
)

from .event_hub import EventHub
from .task_service import TaskMutationResult

log = structlog.get_logger()


class TaskEventPublisher:
    """任务事件发布器，持有显式传入的 EventHub 句柄"""

    def __init__(self, hub: EventHub) -> None:
        self._hub = hub

    def task_created(self, task: Task, actor_id: str) -> None:
        self._broadcast(task_created(task))
        if task.assigned_to_id:
            self._notify(
                task.assigned_to_id,
                actor_id,
                assignment_notification(AssignmentNotificationType.NEW_ASSIGNMENT, task),
            )

    def task_updated(self, result: TaskMutationResult, actor_id: str) -> None:
        """通用更新 / 专用指派 之后调用"""
        task = result.task
        self._broadcast(task_updated(task))
        if not result.assignee_changed:
            return

        if result.new_assignee_id:
            self._notify(
                result.new_assignee_id,
                actor_id,
                assignment_notification(AssignmentNotificationType.NEW_ASSIGNMENT, task),
            )
        if result.previous_assignee_id:
            self._notify(
                result.previous_assignee_id,
                actor_id,
                assignment_notification(AssignmentNotificationType.UNASSIGNED, task),
            )

    def status_changed(self, task: Task) -> None:
        self._broadcast(task_updated(task))

    def task_deleted(self, task: Task, actor_id: str) -> None:
        """task 是删除前读取的快照，删除后实体已不存在"""
        self._broadcast(task_deleted(task.id))
        if task.assigned_to_id:
            self._notify(
                task.assigned_to_id,
                actor_id,
                assignment_notification(AssignmentNotificationType.TASK_DELETED, task),
            )

    def _broadcast(self, event: RealtimeEvent) -> None:
        delivered = self._hub.broadcast(event)
        log.debug("event_broadcast", event_type=event.event.value, delivered=delivered)

    def _notify(self, user_id: str, actor_id: str, event: RealtimeEvent) -> None:
        if user_id == actor_id:
            return
        delivered = self._hub.emit_to_user(user_id, event)
        log.info(
            "assignment_notification_sent",
            user_id=user_id,
            type=event.data["type"],
            delivered=delivered,
        )
