"""实时事件通道

WS  /api/ws:     双向通道。服务端推送 {event, data}；客户端可发送
                 {event: SUBSCRIBE_TASK | UNSUBSCRIBE_TASK, data: taskId}
GET /api/stream: 只读 SSE 通道，事件名即 event，data 为 JSON，15 秒心跳保活

两条通道都要求握手时携带会话 cookie：
WebSocket 缺失/无效凭证时以 1008 关闭，SSE 返回 401 错误信封。
连接建立后自动加入个人频道；断线期间的事件不会重放，由客户端下次全量拉取收敛。
"""

import asyncio
import json

import structlog
from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect, status
from sse_starlette.sse import EventSourceResponse
from taskhub.core.config import SESSION_COOKIE_NAME, SSE_HEARTBEAT_INTERVAL
from taskhub.core.errors import UnauthorizedError
from taskhub.core.models import AuthPayload, ClientCommand, is_valid_id

from ..deps import get_current_user, get_event_hub, get_token_service
from ..services.event_hub import Connection, EventHub, task_room
from ..services.token_service import TokenService

log = structlog.get_logger()

router = APIRouter()


def apply_client_command(hub: EventHub, conn: Connection, message: object) -> bool:
    """处理客户端指令，返回是否被接受"""
    if not isinstance(message, dict):
        return False
    task_id = message.get("data")
    if not isinstance(task_id, str) or not is_valid_id(task_id):
        return False

    command = message.get("event")
    if command == ClientCommand.SUBSCRIBE_TASK:
        hub.join(conn, task_room(task_id))
    elif command == ClientCommand.UNSUBSCRIBE_TASK:
        hub.leave(conn, task_room(task_id))
    else:
        return False
    return True


async def _pump_events(websocket: WebSocket, conn: Connection) -> None:
    """队列 -> socket；连接被 Hub 移除且队列取空后退出"""
    while True:
        try:
            event = await asyncio.wait_for(
                conn.queue.get(), timeout=SSE_HEARTBEAT_INTERVAL
            )
        except TimeoutError:
            if conn.closed:
                return
            continue
        await websocket.send_json(event.to_wire())
        if conn.closed and conn.queue.empty():
            return


async def _read_commands(websocket: WebSocket, hub: EventHub, conn: Connection) -> None:
    """socket -> 频道订阅；客户端断开时退出"""
    while True:
        try:
            message = await websocket.receive_json()
        except WebSocketDisconnect:
            return
        except ValueError:
            log.warning("realtime_bad_frame", connection_id=conn.connection_id)
            continue
        if not apply_client_command(hub, conn, message):
            log.warning(
                "realtime_unknown_command",
                connection_id=conn.connection_id,
            )


@router.websocket("/api/ws")
async def realtime_socket(
    websocket: WebSocket,
    hub: EventHub = Depends(get_event_hub),
    tokens: TokenService = Depends(get_token_service),
):
    try:
        auth = tokens.verify(websocket.cookies.get(SESSION_COOKIE_NAME))
    except UnauthorizedError as e:
        log.info("realtime_rejected", reason=e.message)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason=e.message)
        return

    await websocket.accept()
    conn = hub.connect(auth.user_id)
    sender = asyncio.create_task(_pump_events(websocket, conn))
    receiver = asyncio.create_task(_read_commands(websocket, hub, conn))
    try:
        done, pending = await asyncio.wait(
            {sender, receiver}, return_when=asyncio.FIRST_COMPLETED
        )
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        for task in done:
            task.result()

        if sender in done:
            # 出站队列溢出，连接已被 Hub 移除
            await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
    finally:
        hub.disconnect(conn)


@router.get("/api/stream")
async def realtime_stream(
    user: AuthPayload = Depends(get_current_user),
    hub: EventHub = Depends(get_event_hub),
):
    """只读 SSE 事件流"""

    async def event_generator():
        conn = hub.connect(user.user_id)
        try:
            while True:
                try:
                    event = await asyncio.wait_for(
                        conn.queue.get(), timeout=SSE_HEARTBEAT_INTERVAL
                    )
                except TimeoutError:
                    if conn.closed:
                        return
                    yield {"comment": "heartbeat"}
                    continue
                yield {
                    "event": event.event.value,
                    "data": json.dumps(event.data, ensure_ascii=False),
                }
                if conn.closed and conn.queue.empty():
                    return
        finally:
            hub.disconnect(conn)

    return EventSourceResponse(event_generator())
