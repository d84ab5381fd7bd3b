"""LoggingMiddleware -- 请求级日志

每个请求分配一个 ULID request_id，与操作者一起绑定到 structlog contextvars，
并通过 X-Request-ID 响应头返回给调用方。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求级日志中间件"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = str(ULID())
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        if actor_id := request.headers.get("x-user-id"):
            context["actor_id"] = actor_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(**context)

        log = structlog.get_logger()
        started = time.monotonic()
        response = await call_next(request)
        elapsed_ms = int((time.monotonic() - started) * 1000)

        if response.status_code >= 500:
            await log.awarning(
                "request_failed", status_code=response.status_code, elapsed_ms=elapsed_ms
            )
        else:
            await log.ainfo(
                "request_completed", status_code=response.status_code, elapsed_ms=elapsed_ms
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
