"""任务路由

POST   /api/tasks: 创建任务（执行人 x 客户展开），201
GET    /api/tasks: 任务列表，支持 status / assignee_id / client_id 筛选
GET    /api/tasks/{task_id}: 任务详情
PATCH  /api/tasks/{task_id}: 编辑任务
DELETE /api/tasks/{task_id}: 删除任务（保留完成历史）
GET    /api/tasks/{task_id}/history: 完成历史
GET    /api/tasks/{task_id}/occurrences: 后续截止日期预览
GET    /api/tasks/{task_id}/comments: 评论列表
POST   /api/tasks/{task_id}/comments: 添加评论，201
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from starlette.responses import Response
from taskportal.core.models import Actor, Task, TaskComment, TaskCompletion, TaskStatus

from ..deps import get_actor, get_engine, get_store_group
from ..services.task_service import TaskChanges, TaskDraft, TaskService

router = APIRouter()


class TaskView(BaseModel):
    """任务视图：任务数据 + 逻辑发生序号 + 存储版本号"""

    task: Task
    occurrence: int
    version: int

    @classmethod
    def of(cls, task: Task) -> "TaskView":
        return cls(task=task, occurrence=task.occurrence, version=task.version)


class TaskListResponse(BaseModel):
    tasks: list[TaskView]


class CompletionHistoryResponse(BaseModel):
    task_id: str
    completions: list[TaskCompletion]


class OccurrencesResponse(BaseModel):
    task_id: str
    due_dates: list[datetime]


class CommentRequest(BaseModel):
    message: str = ""


class CommentListResponse(BaseModel):
    comments: list[TaskComment]


def get_task_service(
    store_group=Depends(get_store_group),
    engine=Depends(get_engine),
) -> TaskService:
    return TaskService(store_group, engine)


@router.post("/api/tasks", status_code=201, response_model=TaskListResponse)
async def create_tasks(
    body: TaskDraft,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    tasks = await service.create_tasks(body, actor)
    return TaskListResponse(tasks=[TaskView.of(t) for t in tasks])


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    assignee_id: str | None = Query(default=None, description="按执行人筛选"),
    client_id: str | None = Query(default=None, description="按客户筛选"),
    service: TaskService = Depends(get_task_service),
):
    """查询任务列表，按 created_at 倒序"""
    tasks = await service.list_tasks(status, assignee_id, client_id)
    return TaskListResponse(tasks=[TaskView.of(t) for t in tasks])


@router.get("/api/tasks/{task_id}", response_model=TaskView)
async def get_task_detail(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    return TaskView.of(await service.get_task(task_id))


@router.patch("/api/tasks/{task_id}", response_model=TaskView)
async def edit_task(
    task_id: str,
    body: TaskChanges,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    return TaskView.of(await service.edit_task(task_id, body, actor))


@router.delete("/api/tasks/{task_id}", status_code=204)
async def delete_task(
    task_id: str,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    await service.delete_task(task_id, actor)
    return Response(status_code=204)


@router.get("/api/tasks/{task_id}/history", response_model=CompletionHistoryResponse)
async def completion_history(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    """完成历史（最近在前），任务删除后仍可查询"""
    completions = await service.completion_history(task_id)
    return CompletionHistoryResponse(task_id=task_id, completions=completions)


@router.get("/api/tasks/{task_id}/occurrences", response_model=OccurrencesResponse)
async def upcoming_occurrences(
    task_id: str,
    limit: int = Query(default=5, ge=1, le=50),
    service: TaskService = Depends(get_task_service),
):
    due_dates = await service.upcoming_due_dates(task_id, limit)
    return OccurrencesResponse(task_id=task_id, due_dates=due_dates)


@router.get("/api/tasks/{task_id}/comments", response_model=CommentListResponse)
async def list_comments(
    task_id: str,
    service: TaskService = Depends(get_task_service),
):
    return CommentListResponse(comments=await service.list_comments(task_id))


@router.post(
    "/api/tasks/{task_id}/comments", status_code=201, response_model=TaskComment
)
async def add_comment(
    task_id: str,
    body: CommentRequest,
    actor: Actor = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
):
    return await service.add_comment(task_id, body.message, actor)
