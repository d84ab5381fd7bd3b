"""依赖注入模块 -- 通过 FastAPI Depends 注入 Store、引擎与操作者

Store 与引擎通过 app.state 管理，在 lifespan 中初始化/清理。
操作者身份由外部身份服务认证后经 X-User-Id / X-User-Name 请求头传入。
"""

from fastapi import Header, Request
from taskportal.core.engine import TaskLifecycleEngine
from taskportal.core.exceptions import TaskValidationError
from taskportal.core.models import Actor
from taskportal.core.store import StoreGroup


def get_store_group(request: Request) -> StoreGroup:
    """从 app.state 获取 StoreGroup 实例"""
    return request.app.state.store_group


def get_engine(request: Request) -> TaskLifecycleEngine:
    """从 app.state 获取共享的 TaskLifecycleEngine（任务锁在进程内共享）"""
    return request.app.state.engine


def get_actor(
    x_user_id: str | None = Header(default=None),
    x_user_name: str = Header(default=""),
) -> Actor:
    """从请求头构造操作者"""
    if not x_user_id:
        raise TaskValidationError(["X-User-Id header is required"])
    return Actor(user_id=x_user_id, name=x_user_name)
