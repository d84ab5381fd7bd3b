"""状态流转路由

POST /api/tasks/{task_id}/status: 执行一次状态流转。
- 200: 流转成功，返回流转结果
- 404: 任务不存在
- 409: 非法流转 / 发生序号不一致 / 并发修改
- 503: 存储不可用（可安全重放）
"""

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from taskportal.core.models import Actor, TaskCompletion, TaskStatus, TransitionOutcome

from ..deps import get_actor, get_engine
from .tasks import TaskView

router = APIRouter()


class StatusRequest(BaseModel):
    """状态流转请求体"""

    status: TaskStatus = Field(description="目标状态")
    expected_occurrence: int | None = Field(
        default=None, ge=1, description="调用方所见的发生序号"
    )


class TransitionResponse(BaseModel):
    outcome: TransitionOutcome
    occurrence: int
    next_due_date: datetime | None = None
    task: TaskView
    completion: TaskCompletion | None = None


@router.post("/api/tasks/{task_id}/status", response_model=TransitionResponse)
async def change_status(
    task_id: str,
    body: StatusRequest,
    actor: Actor = Depends(get_actor),
    engine=Depends(get_engine),
):
    result = await engine.transition(
        task_id, body.status, actor, expected_occurrence=body.expected_occurrence
    )
    return TransitionResponse(
        outcome=result.outcome,
        occurrence=result.occurrence,
        next_due_date=result.next_due_date,
        task=TaskView.of(result.task),
        completion=result.completion,
    )
