"""EventStreamListener -- 消费 /api/stream 的 SSE 事件并交给 TaskCache 协调"""

import json
from collections.abc import AsyncIterator

import httpx
import structlog
from pydantic import ValidationError
from taskhub.core.models import RealtimeEvent

from .cache import TaskCache
from .exceptions import ApiError

log = structlog.get_logger()


def _decode_frame(event_name: str | None, data_lines: list[str]) -> RealtimeEvent | None:
    if not event_name or not data_lines:
        return None
    try:
        return RealtimeEvent(event=event_name, data=json.loads("\n".join(data_lines)))
    except (ValueError, ValidationError):
        log.warning("stream_frame_skipped", event_name=event_name)
        return None


async def parse_sse(lines: AsyncIterator[str]) -> AsyncIterator[RealtimeEvent]:
    """按行解析 SSE，空行结束一帧；注释行（心跳）与未知事件名跳过"""
    event_name: str | None = None
    data_lines: list[str] = []
    async for line in lines:
        if line == "":
            if (event := _decode_frame(event_name, data_lines)) is not None:
                yield event
            event_name, data_lines = None, []
        elif line.startswith(":"):
            continue
        elif line.startswith("event:"):
            event_name = line[len("event:"):].strip()
        elif line.startswith("data:"):
            data_lines.append(line[len("data:"):].strip())

    # 流结束时最后一帧可能没有空行收尾
    if (event := _decode_frame(event_name, data_lines)) is not None:
        yield event


class EventStreamListener:
    """一个 SSE 会话；连接断开后 run() 返回，断线期间的事件不会补发"""

    def __init__(
        self,
        http: httpx.AsyncClient,
        cache: TaskCache,
        path: str = "/api/stream",
    ) -> None:
        self._http = http
        self._cache = cache
        self._path = path

    async def run(self) -> None:
        async with self._http.stream("GET", self._path, timeout=None) as response:
            if response.status_code != 200:
                await response.aread()
                raise ApiError(response.status_code, _error_message(response))

            log.info("stream_connected", path=self._path)
            async for event in parse_sse(response.aiter_lines()):
                await self._cache.handle_event(event)
        log.info("stream_closed", path=self._path)


def _error_message(response: httpx.Response) -> str:
    try:
        return response.json().get("message") or response.reason_phrase
    except ValueError:
        return response.reason_phrase
