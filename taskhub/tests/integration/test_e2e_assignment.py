"""端到端：创建 -> 逾期查询 -> 定向通知；越权更新无副作用"""

from datetime import UTC, datetime, timedelta

import pytest
from taskhub.client import ApiError
from taskhub.core.models import (
    EventType,
    TaskCreateInput,
    TaskStatus,
    TaskUpdateInput,
)


def _drain(conn) -> list:
    events = []
    while not conn.queue.empty():
        events.append(conn.queue.get_nowait())
    return events


def _assignment_events(events: list) -> list:
    return [e for e in events if e.event == EventType.ASSIGNMENT_NOTIFICATION]


async def test_overdue_assignment_flow(integration_app, sign_up):
    alice = await sign_up("Alice")
    bob = await sign_up("Bob")
    carol = await sign_up("Carol")
    hub = integration_app.state.event_hub
    alice_conn = hub.connect(alice.user.id)
    bob_conn = hub.connect(bob.user.id)

    task = await alice.api.create_task(
        TaskCreateInput(
            title="Quarterly report",
            assigned_to_id=bob.user.id,
            due_date=datetime.now(UTC) - timedelta(days=1),
        )
    )
    assert task.status == TaskStatus.TODO
    assert task.assigned_to is not None and task.assigned_to.name == "Bob"

    # 任意调用者的逾期查询都包含该任务
    for session in (alice, bob, carol):
        overdue = await session.api.list_tasks(overdue=True)
        assert [t.id for t in overdue] == [task.id]
        assert [t.id for t in await session.api.overdue_tasks()] == [task.id]

    bob_notices = _assignment_events(_drain(bob_conn))
    assert len(bob_notices) == 1
    assert bob_notices[0].data["type"] == "NEW_ASSIGNMENT"
    assert bob_notices[0].data["task"]["id"] == task.id

    alice_events = _drain(alice_conn)
    assert _assignment_events(alice_events) == []
    assert [e.event for e in alice_events] == [EventType.TASK_CREATED]

    # 完成后不再逾期
    await bob.api.update_status(task.id, TaskStatus.COMPLETED)
    assert await carol.api.list_tasks(overdue=True) == []


async def test_outsider_update_is_rejected_without_broadcast(integration_app, sign_up):
    alice = await sign_up("Alice")
    bob = await sign_up("Bob")
    carol = await sign_up("Carol")
    hub = integration_app.state.event_hub

    task = await alice.api.create_task(
        TaskCreateInput(title="Budget", assigned_to_id=bob.user.id)
    )
    watchers = [hub.connect(s.user.id) for s in (alice, bob, carol)]

    with pytest.raises(ApiError) as exc:
        await carol.api.update_task(task.id, TaskUpdateInput(title="Mine now"))
    assert exc.value.status_code == 403

    assert await alice.api.get_task(task.id) == task
    for conn in watchers:
        assert conn.queue.empty()


async def test_reassignment_signals(integration_app, sign_up):
    alice = await sign_up("Alice")
    bob = await sign_up("Bob")
    carol = await sign_up("Carol")
    hub = integration_app.state.event_hub

    task = await alice.api.create_task(
        TaskCreateInput(title="Handoff", assigned_to_id=bob.user.id)
    )
    bob_conn, carol_conn = hub.connect(bob.user.id), hub.connect(carol.user.id)

    # 重新指派给当前 assignee 不产生通知
    await alice.api.assign_task(task.id, bob.user.id)
    assert _assignment_events(_drain(bob_conn)) == []

    # bob 通过通用更新把任务转给 carol：carol 收到 NEW_ASSIGNMENT，bob 是操作者不收通知
    await bob.api.update_task(task.id, TaskUpdateInput(assigned_to_id=carol.user.id))
    assert [e.data["type"] for e in _assignment_events(_drain(carol_conn))] == [
        "NEW_ASSIGNMENT"
    ]
    assert _assignment_events(_drain(bob_conn)) == []

    # 专用指派只允许 creator
    with pytest.raises(ApiError) as exc:
        await carol.api.assign_task(task.id, None)
    assert exc.value.status_code == 403

    # creator 取消指派：carol 收到 UNASSIGNED
    await alice.api.assign_task(task.id, None)
    assert [e.data["type"] for e in _assignment_events(_drain(carol_conn))] == [
        "UNASSIGNED"
    ]
