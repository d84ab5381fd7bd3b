"""TaskComment Domain Model"""

from datetime import datetime

from pydantic import BaseModel


class TaskComment(BaseModel):
    """任务评论，随任务删除一并删除"""

    comment_id: str = ""
    task_id: str
    message: str
    author_id: str
    author_name: str = ""
    created_at: datetime
