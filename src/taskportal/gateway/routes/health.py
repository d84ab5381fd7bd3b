"""健康检查路由

GET /health: Liveness，进程存活即返回 200。
GET /ready: Readiness，检查 SQLite 连通性、WAL 模式与磁盘剩余空间。
"""

import shutil
from pathlib import Path

import aiosqlite
import structlog
from fastapi import APIRouter, Request
from starlette.responses import JSONResponse
from taskportal.core.config import get_db_path
from taskportal.core.store.sqlite_init import verify_wal_mode

log = structlog.get_logger()

router = APIRouter()

# 低于该值视为磁盘不足
MIN_FREE_DISK_MB = 64


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    checks: dict = {}

    try:
        conn = request.app.state.store_group.conn
        checks["sqlite"] = "ok"
        checks["wal"] = await verify_wal_mode(conn)
    except (AttributeError, ValueError, aiosqlite.Error) as e:
        await log.awarning("readiness_sqlite_failed", error=str(e))
        checks["sqlite"] = "unavailable"

    db_dir = Path(get_db_path()).parent
    try:
        free_mb = shutil.disk_usage(db_dir if db_dir.exists() else Path.cwd()).free
        checks["disk_space_mb"] = free_mb // (1024 * 1024)
    except OSError:
        checks["disk_space_mb"] = 0

    ok = checks["sqlite"] == "ok" and checks["disk_space_mb"] >= MIN_FREE_DISK_MB
    return JSONResponse(
        status_code=200 if ok else 503,
        content={"status": "ready" if ok else "not_ready", "checks": checks},
    )
