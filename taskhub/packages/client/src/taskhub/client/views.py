"""客户端缓存视图

视图是同一批 Task 实体在客户端的命名物化结果：
all / my-tasks / created-by-me / overdue 四个列表视图，以及按任务 ID 的详情视图。

快照以"单个实体在单个视图中的位置和内容"为粒度，
并发执行的多个变更各自只回滚自己涉及的实体。
"""

from collections.abc import Callable
from dataclasses import dataclass, field

from taskhub.core.models import Task


@dataclass(frozen=True)
class ViewKey:
    """视图标识，详情视图携带 task_id"""

    name: str
    task_id: str | None = None

    @classmethod
    def detail(cls, task_id: str) -> "ViewKey":
        return cls("detail", task_id)

    @property
    def is_list(self) -> bool:
        return self.task_id is None


ALL = ViewKey("all")
MY_TASKS = ViewKey("my-tasks")
CREATED_BY_ME = ViewKey("created-by-me")
OVERDUE = ViewKey("overdue")

LIST_VIEWS: tuple[ViewKey, ...] = (ALL, MY_TASKS, CREATED_BY_ME, OVERDUE)


@dataclass(frozen=True)
class EntitySnapshot:
    """某个实体在某个视图中变更前的位置与内容"""

    view: ViewKey
    index: int
    task: Task


@dataclass
class CachedView:
    """一个视图的缓存内容"""

    key: ViewKey
    tasks: list[Task] = field(default_factory=list)
    stale: bool = False

    def replace(self, tasks: list[Task]) -> None:
        """用服务端数据整体替换"""
        self.tasks = list(tasks)
        self.stale = False

    def index_of(self, task_id: str) -> int | None:
        for i, task in enumerate(self.tasks):
            if task.id == task_id:
                return i
        return None

    def snapshot(self, task_id: str) -> EntitySnapshot | None:
        index = self.index_of(task_id)
        if index is None:
            return None
        return EntitySnapshot(view=self.key, index=index, task=self.tasks[index])

    def patch(self, task_id: str, fn: Callable[[Task], Task]) -> bool:
        index = self.index_of(task_id)
        if index is None:
            return False
        self.tasks[index] = fn(self.tasks[index])
        return True

    def remove(self, task_id: str) -> bool:
        index = self.index_of(task_id)
        if index is None:
            return False
        del self.tasks[index]
        return True

    def restore(self, snap: EntitySnapshot) -> None:
        """把实体恢复到快照记录的位置和内容"""
        current = self.index_of(snap.task.id)
        if current is not None:
            del self.tasks[current]
        index = min(snap.index, len(self.tasks))
        self.tasks.insert(index, snap.task)
