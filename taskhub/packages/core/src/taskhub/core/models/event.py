"""实时事件模型

服务端推送给客户端的事件统一为 {event, data} 结构。
广播事件投递给所有连接；ASSIGNMENT_NOTIFICATION 只投递到受影响用户的个人频道。
"""

from typing import Any

from pydantic import BaseModel, Field

from .enums import BROADCAST_EVENTS, AssignmentNotificationType, EventType
from .task import Task


class RealtimeEvent(BaseModel):
    """一次实时推送"""

    event: EventType = Field(description="事件名")
    data: dict[str, Any] = Field(default_factory=dict, description="事件数据")

    @property
    def is_broadcast(self) -> bool:
        return self.event in BROADCAST_EVENTS

    def to_wire(self) -> dict[str, Any]:
        return {"event": self.event.value, "data": self.data}


def _task_data(task: Task) -> dict[str, Any]:
    return task.model_dump(mode="json", by_alias=True)


def task_created(task: Task) -> RealtimeEvent:
    return RealtimeEvent(event=EventType.TASK_CREATED, data={"task": _task_data(task)})


def task_updated(task: Task) -> RealtimeEvent:
    return RealtimeEvent(event=EventType.TASK_UPDATED, data={"task": _task_data(task)})


def task_deleted(task_id: str) -> RealtimeEvent:
    return RealtimeEvent(event=EventType.TASK_DELETED, data={"taskId": task_id})


_NOTIFICATION_MESSAGES: dict[AssignmentNotificationType, str] = {
    AssignmentNotificationType.NEW_ASSIGNMENT: "You have been assigned to: {title}",
    AssignmentNotificationType.UNASSIGNED: "You have been unassigned from: {title}",
    AssignmentNotificationType.TASK_DELETED: "Task deleted: {title}",
}


def assignment_notification(
    kind: AssignmentNotificationType, task: Task
) -> RealtimeEvent:
    return RealtimeEvent(
        event=EventType.ASSIGNMENT_NOTIFICATION,
        data={
            "type": kind.value,
            "task": _task_data(task),
            "message": _NOTIFICATION_MESSAGES[kind].format(title=task.title),
        },
    )
