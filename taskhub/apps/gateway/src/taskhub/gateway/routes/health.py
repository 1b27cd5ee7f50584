"""健康检查

GET /health  进程存活即 200
GET /ready   SQLite 可用才 200，否则 503；附带当前实时连接数
"""

import structlog
from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse
from taskhub.core.models import utc_now
from taskhub.core.store import StoreGroup

from ..deps import get_event_hub, get_store_group
from ..services.event_hub import EventHub

log = structlog.get_logger()

router = APIRouter()


async def _sqlite_check(store_group: StoreGroup) -> str:
    try:
        await store_group.ping()
    except Exception as e:
        log.warning("readiness_sqlite_error", error=str(e))
        return f"error: {e}"
    return "ok"


@router.get("/health")
async def health():
    return {"status": "ok", "timestamp": utc_now().isoformat()}


@router.get("/ready")
async def ready(
    store_group: StoreGroup = Depends(get_store_group),
    hub: EventHub = Depends(get_event_hub),
):
    checks = {
        "sqlite": await _sqlite_check(store_group),
        "realtime_connections": hub.connection_count,
    }
    ok = checks["sqlite"] == "ok"
    return JSONResponse(
        status_code=200 if ok else 503,
        content={"status": "ready" if ok else "not_ready", "checks": checks},
    )
