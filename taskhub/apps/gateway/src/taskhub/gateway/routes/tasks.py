"""任务路由 -- 所有接口都要求会话凭证

GET    /api/tasks                  列表（status/priority/assignedToMe/createdByMe/overdue）
GET    /api/tasks/my-tasks         指派给我的
GET    /api/tasks/created-by-me    我创建的
GET    /api/tasks/overdue          逾期
POST   /api/tasks                  创建
GET    /api/tasks/{task_id}        详情
PATCH  /api/tasks/{task_id}        通用更新
PATCH  /api/tasks/{task_id}/status 仅状态
PATCH  /api/tasks/{task_id}/assign 仅指派（creator）
DELETE /api/tasks/{task_id}        删除（creator）

变更成功后先落库、再通过 TaskEventPublisher 推送实时事件，HTTP 响应不等待推送结果。
"""

from fastapi import APIRouter, Depends, Query
from taskhub.core.errors import BadRequestError
from taskhub.core.models import (
    CURRENT_ACTOR,
    AssignInput,
    AuthPayload,
    Priority,
    StatusUpdateInput,
    Task,
    TaskCreateInput,
    TaskQueryFilters,
    TaskStatus,
    TaskUpdateInput,
    is_valid_id,
)

from ..deps import get_current_user, get_publisher, get_task_service
from ..envelope import success
from ..services.publisher import TaskEventPublisher
from ..services.task_service import TaskService

# 凭证校验先于路径/请求体校验
router = APIRouter(prefix="/api/tasks", dependencies=[Depends(get_current_user)])


def valid_task_id(task_id: str) -> str:
    if not is_valid_id(task_id):
        raise BadRequestError("Invalid task ID")
    return task_id


def _task_json(task: Task) -> dict:
    return task.model_dump(mode="json", by_alias=True)


def _tasks_json(tasks: list[Task]) -> dict:
    return {"tasks": [_task_json(t) for t in tasks]}


@router.get("")
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    priority: Priority | None = Query(default=None, description="按优先级筛选"),
    assigned_to_me: bool = Query(default=False, alias="assignedToMe"),
    created_by_me: bool = Query(default=False, alias="createdByMe"),
    overdue: bool = Query(default=False, description="仅逾期未完成"),
    user: AuthPayload = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    """查询任务列表：多个条件 AND 组合，优先级降序 -> 截止时间升序 -> 创建时间降序"""
    filters = TaskQueryFilters(
        status=status,
        priority=priority,
        assigned_to_id=CURRENT_ACTOR if assigned_to_me else None,
        created_by_id=CURRENT_ACTOR if created_by_me else None,
        overdue=overdue,
    )
    tasks = await service.list_tasks(filters, user.user_id)
    return success(_tasks_json(tasks))


@router.get("/my-tasks")
async def list_my_tasks(
    user: AuthPayload = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    return success(_tasks_json(await service.list_my_tasks(user.user_id)))


@router.get("/created-by-me")
async def list_created_by_me(
    user: AuthPayload = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    return success(_tasks_json(await service.list_created_by_me(user.user_id)))


@router.get("/overdue")
async def list_overdue(
    user: AuthPayload = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    return success(_tasks_json(await service.list_overdue()))


@router.post("")
async def create_task(
    body: TaskCreateInput,
    user: AuthPayload = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
    publisher: TaskEventPublisher = Depends(get_publisher),
):
    task = await service.create_task(body, user.user_id)
    publisher.task_created(task, user.user_id)
    return success({"task": _task_json(task)}, status_code=201)


@router.get("/{task_id}")
async def get_task(
    task_id: str = Depends(valid_task_id),
    user: AuthPayload = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
):
    task = await service.get_task(task_id)
    return success({"task": _task_json(task)})


@router.patch("/{task_id}")
async def update_task(
    body: TaskUpdateInput,
    task_id: str = Depends(valid_task_id),
    user: AuthPayload = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
    publisher: TaskEventPublisher = Depends(get_publisher),
):
    result = await service.update_task(task_id, body, user.user_id)
    publisher.task_updated(result, user.user_id)
    return success({"task": _task_json(result.task)})


@router.patch("/{task_id}/status")
async def update_task_status(
    body: StatusUpdateInput,
    task_id: str = Depends(valid_task_id),
    user: AuthPayload = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
    publisher: TaskEventPublisher = Depends(get_publisher),
):
    task = await service.update_status(task_id, body.status, user.user_id)
    publisher.status_changed(task)
    return success({"task": _task_json(task)})


@router.patch("/{task_id}/assign")
async def assign_task(
    body: AssignInput,
    task_id: str = Depends(valid_task_id),
    user: AuthPayload = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
    publisher: TaskEventPublisher = Depends(get_publisher),
):
    result = await service.assign_task(task_id, body.assigned_to_id, user.user_id)
    publisher.task_updated(result, user.user_id)
    return success({"task": _task_json(result.task)})


@router.delete("/{task_id}")
async def delete_task(
    task_id: str = Depends(valid_task_id),
    user: AuthPayload = Depends(get_current_user),
    service: TaskService = Depends(get_task_service),
    publisher: TaskEventPublisher = Depends(get_publisher),
):
    deleted = await service.delete_task(task_id, user.user_id)
    publisher.task_deleted(deleted, user.user_id)
    return success(message="Task deleted successfully")
