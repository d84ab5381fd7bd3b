"""FastAPI 应用主文件

app 创建 + lifespan 管理：DB 初始化/关闭、生命周期引擎初始化、
异常映射与路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from starlette.responses import JSONResponse
from taskportal.core.config import get_db_path, load_lifecycle_config
from taskportal.core.engine import TaskLifecycleEngine
from taskportal.core.exceptions import PortalError
from taskportal.core.store import StoreGroup, create_store_group

from .middleware.logging_config import setup_logfire, setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import (
    chat,
    clients,
    health,
    meetings,
    reports,
    status,
    stream,
    tasks,
    team,
    users,
)

log = structlog.get_logger()


def build_engine(store_group: StoreGroup) -> TaskLifecycleEngine:
    """用 StoreGroup 与环境变量配置创建生命周期引擎"""
    return TaskLifecycleEngine(
        task_store=store_group.task_store,
        completion_store=store_group.completion_store,
        statistics_store=store_group.statistics_store,
        notifications=store_group.notifications,
        config=load_lifecycle_config(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时初始化 DB 与引擎，关闭时清理连接"""
    store_group = await create_store_group(get_db_path())
    app.state.store_group = store_group
    app.state.engine = build_engine(store_group)
    log.info(
        "lifecycle_engine_initialized",
        grace_window_hours=app.state.engine.config.grace_window_hours,
        series_end_inclusive=app.state.engine.config.series_end_inclusive,
    )

    yield

    if getattr(app.state, "store_group", None):
        await app.state.store_group.conn.close()


async def portal_error_handler(request: Request, exc: PortalError) -> JSONResponse:
    """领域异常 -> {"error": {"code", "message"}}"""
    if exc.status_code >= 500:
        await log.aerror("request_failed", code=exc.code, error=exc.message)
    else:
        await log.ainfo("request_rejected", code=exc.code, error=exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": {"code": exc.code, "message": exc.message}},
    )


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="Task Portal Gateway",
        version="0.1.0",
        description="Task Portal 任务生命周期 API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(PortalError, portal_error_handler)

    setup_logging()
    setup_logfire(app)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(status.router, tags=["tasks"])
    app.include_router(users.router, tags=["users"])
    app.include_router(clients.router, tags=["clients"])
    app.include_router(meetings.router, tags=["meetings"])
    app.include_router(reports.router, tags=["reports"])
    app.include_router(chat.router, tags=["chat"])
    app.include_router(team.router, tags=["team"])
    app.include_router(stream.router, tags=["stream"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()
