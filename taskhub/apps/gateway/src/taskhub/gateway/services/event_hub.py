"""EventHub -- 内存中实时事件分发器

每个已认证连接持有一个 asyncio.Queue，连接建立时自动加入个人频道 user:{user_id}，
也可以显式加入/离开 task:{task_id} 频道。

投递语义：fire-and-forget，每个连接至多一次。
队列写满的连接直接从 Hub 移除，断线期间的事件不会重放。
"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field

import structlog
from taskhub.core.config import HUB_QUEUE_MAXSIZE
from taskhub.core.models import RealtimeEvent
from ulid import ULID

log = structlog.get_logger()


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def task_room(task_id: str) -> str:
    return f"task:{task_id}"


@dataclass(eq=False)
class Connection:
    """一个实时连接（WebSocket 或 SSE）"""

    user_id: str
    queue: asyncio.Queue
    connection_id: str = field(default_factory=lambda: str(ULID()))
    rooms: set[str] = field(default_factory=set)
    closed: bool = False


class EventHub:
    """实时事件分发器 -- 广播 + 按频道定向投递"""

    def __init__(self, queue_maxsize: int = HUB_QUEUE_MAXSIZE) -> None:
        self._connections: dict[str, Connection] = {}
        # room -> connection_id 集合
        self._rooms: dict[str, set[str]] = defaultdict(set)
        self._queue_maxsize = queue_maxsize

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    def connect(self, user_id: str) -> Connection:
        """注册新连接并加入个人频道"""
        conn = Connection(
            user_id=user_id,
            queue=asyncio.Queue(maxsize=self._queue_maxsize),
        )
        self._connections[conn.connection_id] = conn
        self.join(conn, user_room(user_id))
        log.info(
            "realtime_connected",
            user_id=user_id,
            connection_id=conn.connection_id,
        )
        return conn

    def disconnect(self, conn: Connection) -> None:
        """注销连接并离开所有频道（可重复调用）"""
        if self._connections.pop(conn.connection_id, None) is None:
            return
        for room in list(conn.rooms):
            self.leave(conn, room)
        conn.closed = True
        log.info(
            "realtime_disconnected",
            user_id=conn.user_id,
            connection_id=conn.connection_id,
        )

    def join(self, conn: Connection, room: str) -> None:
        conn.rooms.add(room)
        self._rooms[room].add(conn.connection_id)

    def leave(self, conn: Connection, room: str) -> None:
        conn.rooms.discard(room)
        members = self._rooms.get(room)
        if members is None:
            return
        members.discard(conn.connection_id)
        if not members:
            del self._rooms[room]

    def broadcast(self, event: RealtimeEvent) -> int:
        """投递给所有连接，返回成功入队的连接数"""
        return self._deliver(list(self._connections.values()), event)

    def emit_to_room(self, room: str, event: RealtimeEvent) -> int:
        """投递给指定频道内的连接，返回成功入队的连接数"""
        targets = [
            self._connections[cid]
            for cid in self._rooms.get(room, set())
            if cid in self._connections
        ]
        return self._deliver(targets, event)

    def emit_to_user(self, user_id: str, event: RealtimeEvent) -> int:
        """投递到用户个人频道（该用户的所有连接）"""
        return self.emit_to_room(user_room(user_id), event)

    def _deliver(self, targets: list[Connection], event: RealtimeEvent) -> int:
        delivered = 0
        overflowed: list[Connection] = []
        for conn in targets:
            try:
                conn.queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                overflowed.append(conn)

        # 清理已满的队列
        for conn in overflowed:
            log.warning(
                "hub_queue_overflow",
                user_id=conn.user_id,
                connection_id=conn.connection_id,
            )
            self.disconnect(conn)
        return delivered
