"""枚举定义

包含 TaskStatus、Priority、实时事件类型和指派通知子类型。
状态之间不存在流转约束，任意状态可以直接变更为任意状态。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """Task 状态"""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class Priority(StrEnum):
    """Task 优先级，声明顺序即排序权重（LOW < MEDIUM < HIGH）"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


# 列表排序用的优先级权重
PRIORITY_RANK: dict[Priority, int] = {
    Priority.LOW: 1,
    Priority.MEDIUM: 2,
    Priority.HIGH: 3,
}


class EventType(StrEnum):
    """服务端 -> 客户端实时事件"""

    TASK_CREATED = "TASK_CREATED"
    TASK_UPDATED = "TASK_UPDATED"
    TASK_DELETED = "TASK_DELETED"
    ASSIGNMENT_NOTIFICATION = "ASSIGNMENT_NOTIFICATION"


# 广播给所有连接的事件
BROADCAST_EVENTS: set[EventType] = {
    EventType.TASK_CREATED,
    EventType.TASK_UPDATED,
    EventType.TASK_DELETED,
}


class AssignmentNotificationType(StrEnum):
    """定向通知子类型"""

    NEW_ASSIGNMENT = "NEW_ASSIGNMENT"
    UNASSIGNED = "UNASSIGNED"
    TASK_DELETED = "TASK_DELETED"


class ClientCommand(StrEnum):
    """客户端 -> 服务端实时指令"""

    SUBSCRIBE_TASK = "SUBSCRIBE_TASK"
    UNSUBSCRIBE_TASK = "UNSUBSCRIBE_TASK"
