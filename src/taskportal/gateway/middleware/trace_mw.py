"""TraceMiddleware -- 任务路由的追踪上下文

/api/tasks/{task_id}[/...] 上的请求绑定 task_id 与 trace_id，
同一任务的编辑、流转、评论日志可以按 trace_id 串起来。
"""

import re

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Crockford base32 ULID
_TASK_PATH = re.compile(r"^/api/tasks/([0-9A-HJKMNP-TV-Z]{26})(?:/|$)")


def extract_task_id(path: str) -> str | None:
    match = _TASK_PATH.match(path)
    return match.group(1) if match else None


class TraceMiddleware(BaseHTTPMiddleware):
    """任务级追踪中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if task_id := extract_task_id(request.url.path):
            structlog.contextvars.bind_contextvars(
                task_id=task_id, trace_id=f"trace-{task_id}"
            )
        return await call_next(request)
