"""Document Model -- 文档存储的通用记录与查询条件

集合（collection）+ 文档 ID 定位一条无模式 JSON 记录，
version 每次写入递增，用于 compare-and-swap。
"""

import re
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

# 字段路径只允许标识符及点号分隔的嵌套标识符
_FIELD_PATH = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")

# contains: 数组字段包含给定值
FilterOp = Literal["==", "!=", "<", "<=", ">", ">=", "in", "contains"]


def check_field_path(path: str) -> str:
    """校验字段路径，拒绝可能注入 SQL 的写法"""
    if not _FIELD_PATH.match(path):
        raise ValueError(f"invalid field path: {path!r}")
    return path


class Document(BaseModel):
    """文档记录"""

    collection: str
    doc_id: str
    data: dict[str, Any] = Field(default_factory=dict)
    version: int = Field(default=1, ge=1)
    created_at: datetime
    updated_at: datetime


class Filter(BaseModel):
    """等值 / 范围 / 数组包含查询条件"""

    field: str
    op: FilterOp = "=="
    value: Any = None

    @field_validator("field")
    @classmethod
    def _validate_field(cls, v: str) -> str:
        return check_field_path(v)


def where(field: str, op: FilterOp, value: Any) -> Filter:
    """构造查询条件的简写"""
    return Filter(field=field, op=op, value=value)
