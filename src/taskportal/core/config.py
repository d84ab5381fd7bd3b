"""配置模块 -- 可通过环境变量覆盖

包含数据库路径、生命周期规则常量（积分宽限窗口、循环截止边界、写入重试次数）
以及 SSE 心跳间隔等可配置项。
"""

import os
from pathlib import Path

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


def _get_base_dir() -> Path:
    """获取项目 data 基础目录"""
    return Path(os.environ.get("TASKPORTAL_DATA_DIR", "data"))


def get_db_path() -> str:
    """获取 SQLite 数据库路径"""
    return os.environ.get(
        "TASKPORTAL_DB_PATH",
        str(_get_base_dir() / "sqlite" / "taskportal.db"),
    )


# 准时宽限窗口（小时）：逾期不足该时长仍记为准时完成
DEFAULT_GRACE_WINDOW_HOURS: float = 1.0

# 循环截止边界：False 表示下一次发生时间必须严格早于截止日期
DEFAULT_SERIES_END_INCLUSIVE: bool = False

# 幂等写入的最大尝试次数
DEFAULT_STORE_WRITE_RETRIES: int = 3

# SSE 心跳间隔（秒）
SSE_PING_INTERVAL: int = int(os.environ.get("TASKPORTAL_SSE_PING_INTERVAL", "15"))

# 评论通知正文预览长度
COMMENT_PREVIEW_LENGTH: int = 50

# 聊天历史单次返回的最近消息条数
TEAM_CHAT_HISTORY_LIMIT: int = 200
PERSONAL_CHAT_HISTORY_LIMIT: int = 100


class LifecycleConfig(BaseModel):
    """任务生命周期规则配置 -- 从环境变量加载

    环境变量:
        TASKPORTAL_GRACE_WINDOW_HOURS: 准时宽限窗口（小时，默认 1.0）
        TASKPORTAL_SERIES_END_INCLUSIVE: 截止日期当天是否仍生成下一次（默认 false）
        TASKPORTAL_STORE_WRITE_RETRIES: 幂等写入最大尝试次数（默认 3）
    """

    grace_window_hours: float = Field(
        default=DEFAULT_GRACE_WINDOW_HOURS,
        ge=0,
        allow_inf_nan=False,
        description="准时宽限窗口（小时）",
    )
    series_end_inclusive: bool = Field(
        default=DEFAULT_SERIES_END_INCLUSIVE,
        description="循环截止边界是否包含截止日期本身",
    )
    store_write_retries: int = Field(
        default=DEFAULT_STORE_WRITE_RETRIES,
        ge=1,
        description="幂等写入最大尝试次数",
    )


def _parse_bool(val: str) -> bool:
    return val.strip().lower() in ("1", "true", "yes")


# 字段 -> (环境变量, 解析函数)
_ENV_FIELDS = {
    "grace_window_hours": ("TASKPORTAL_GRACE_WINDOW_HOURS", float),
    "series_end_inclusive": ("TASKPORTAL_SERIES_END_INCLUSIVE", _parse_bool),
    "store_write_retries": ("TASKPORTAL_STORE_WRITE_RETRIES", int),
}


def load_lifecycle_config() -> LifecycleConfig:
    """从环境变量加载生命周期配置

    每个字段单独解析并按 LifecycleConfig 的约束校验；
    非法取值（无法解析、负数、nan 等）记录 warning 并只回退该字段的默认值，不阻塞启动。
    """
    kwargs: dict = {}

    for field, (env_var, parse) in _ENV_FIELDS.items():
        if not (val := os.environ.get(env_var)):
            continue
        try:
            # pydantic ValidationError 是 ValueError 的子类
            checked = LifecycleConfig(**{field: parse(val)})
        except ValueError:
            log.warning(
                "invalid_lifecycle_config",
                env_var=env_var,
                value=val,
                fallback=LifecycleConfig.model_fields[field].default,
            )
            continue
        kwargs[field] = getattr(checked, field)

    return LifecycleConfig(**kwargs)
