"""SSE 任务列表流路由

GET /api/stream/tasks: 订阅任务集合，先推送当前快照，之后每次变更推送新快照。
支持 status / assignee_id 筛选，按 SSE_PING_INTERVAL 发送心跳。
"""

import json

from fastapi import APIRouter, Depends, Query, Request
from sse_starlette.sse import EventSourceResponse
from taskportal.core.config import SSE_PING_INTERVAL
from taskportal.core.models import Document, TaskStatus, where
from taskportal.core.store.collections import TASKS

from ..deps import get_store_group

router = APIRouter()


def _snapshot_to_sse_data(docs: list[Document]) -> str:
    tasks = [{**d.data, "task_id": d.doc_id, "version": d.version} for d in docs]
    return json.dumps({"tasks": tasks}, ensure_ascii=False)


@router.get("/api/stream/tasks")
async def stream_tasks(
    request: Request,
    status: TaskStatus | None = Query(default=None),
    assignee_id: str | None = Query(default=None),
    store_group=Depends(get_store_group),
):
    filters = []
    if status:
        filters.append(where("status", "==", status))
    if assignee_id:
        filters.append(where("assignee_id", "==", assignee_id))

    async def event_generator():
        snapshots = store_group.documents.subscribe(
            TASKS, filters, order_by="created_at", descending=True
        )
        try:
            async for docs in snapshots:
                if await request.is_disconnected():
                    return
                yield {"event": "snapshot", "data": _snapshot_to_sse_data(docs)}
        finally:
            await snapshots.aclose()

    return EventSourceResponse(event_generator(), ping=SSE_PING_INTERVAL)
