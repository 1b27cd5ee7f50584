"""授权策略单元测试

update 成功 当且仅当 actor 是 creator 或当前 assignee；
delete 与专用指派 当且仅当 actor 是 creator。
"""

from datetime import UTC, datetime

import pytest
from taskhub.core import policy
from taskhub.core.errors import ForbiddenError
from taskhub.core.models import Task, UserPublic

NOW = datetime(2025, 6, 1, tzinfo=UTC)

CREATOR = UserPublic(id="01HZZZZZZZZZZZZZZZZZZZZZZ1", email="c@x.io", name="Creator", created_at=NOW)
ASSIGNEE = UserPublic(id="01HZZZZZZZZZZZZZZZZZZZZZZ2", email="a@x.io", name="Assignee", created_at=NOW)
OTHER_ID = "01HZZZZZZZZZZZZZZZZZZZZZZ3"


def _task(assignee: UserPublic | None = ASSIGNEE) -> Task:
    return Task(
        id="01HTASK0000000000000000000",
        title="Write report",
        created_at=NOW,
        updated_at=NOW,
        created_by_id=CREATOR.id,
        created_by=CREATOR,
        assigned_to_id=assignee.id if assignee else None,
        assigned_to=assignee,
    )


@pytest.mark.parametrize(
    ("actor_id", "allowed"),
    [(CREATOR.id, True), (ASSIGNEE.id, True), (OTHER_ID, False)],
)
def test_can_update(actor_id: str, allowed: bool):
    assert policy.can_update(actor_id, _task()) is allowed


@pytest.mark.parametrize(
    ("actor_id", "allowed"),
    [(CREATOR.id, True), (ASSIGNEE.id, False), (OTHER_ID, False)],
)
def test_can_delete_and_assign_creator_only(actor_id: str, allowed: bool):
    task = _task()
    assert policy.can_delete(actor_id, task) is allowed
    assert policy.can_assign(actor_id, task) is allowed


def test_unassigned_task_only_creator_may_update():
    task = _task(assignee=None)
    assert policy.can_update(CREATOR.id, task)
    assert not policy.can_update(OTHER_ID, task)


def test_ensure_helpers_raise_forbidden_with_message():
    task = _task()

    with pytest.raises(ForbiddenError, match="permission to update") as exc:
        policy.ensure_can_update(OTHER_ID, task)
    assert exc.value.status_code == 403

    with pytest.raises(ForbiddenError, match="permission to delete"):
        policy.ensure_can_delete(ASSIGNEE.id, task)

    with pytest.raises(ForbiddenError, match="Only the task creator can assign"):
        policy.ensure_can_assign(ASSIGNEE.id, task)

    # 允许的情况不抛异常
    policy.ensure_can_update(ASSIGNEE.id, task)
    policy.ensure_can_delete(CREATOR.id, task)
    policy.ensure_can_assign(CREATOR.id, task)
