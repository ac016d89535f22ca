from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from mpms.schemas.task import TaskResponse

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    parent_comment_id: Optional[int] = None
    attachments: List[str] = []

class CommentResponse(BaseModel):
    id: int
    task_id: int
    user_id: int
    content: str
    parent_comment_id: Optional[int]
    attachments: List[str]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}

class TaskDetailResponse(BaseModel):
    task: TaskResponse
    comments: List[CommentResponse]
