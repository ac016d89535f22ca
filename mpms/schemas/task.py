from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from mpms.models.enums import TaskStatus, TaskPriority

class Subtask(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    is_completed: bool = False
    completed_at: Optional[datetime] = None

class TaskCreate(BaseModel):
    # "status" is not a field: new tasks always start in To Do, anything sent is dropped
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    project_id: int
    sprint_id: int
    assignee_ids: List[int] = []
    estimated_hours: float = Field(..., ge=0)
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime
    tags: List[str] = []

    model_config = {"use_enum_values": True, "validate_default": True}

class TaskUpdate(BaseModel):
    """Full update payload; which keys an actor may send is decided by the gate."""
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    project_id: Optional[int] = None
    sprint_id: Optional[int] = None
    assignee_ids: Optional[List[int]] = None
    estimated_hours: Optional[float] = Field(None, ge=0)
    actual_hours: Optional[float] = Field(None, ge=0)
    priority: Optional[TaskPriority] = None
    status: Optional[TaskStatus] = None
    due_date: Optional[datetime] = None
    tags: Optional[List[str]] = None
    attachments: Optional[List[str]] = None
    subtasks: Optional[List[Subtask]] = None

    # unknown keys are kept so the gate can name them instead of a bare 422
    model_config = {"use_enum_values": True, "extra": "allow"}

    def sent_fields(self) -> set:
        return set(self.model_fields_set) | set(self.model_extra or {})

class MemberTaskUpdate(BaseModel):
    """The closed set of task fields a member may write."""
    status: Optional[TaskStatus] = None
    actual_hours: Optional[float] = Field(None, ge=0)
    subtasks: Optional[List[Subtask]] = None
    attachments: Optional[List[str]] = None

    model_config = {"use_enum_values": True, "extra": "forbid"}

MEMBER_TASK_FIELDS = frozenset(MemberTaskUpdate.model_fields)

class TaskStatusUpdate(BaseModel):
    status: TaskStatus

    model_config = {"use_enum_values": True}

class TimeLog(BaseModel):
    hours: float = Field(..., gt=0)

class TaskFilter(BaseModel):
    project_id: Optional[int] = None
    sprint_id: Optional[int] = None
    assignee_id: Optional[int] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    search: Optional[str] = None
    page: int = Field(1, ge=1)
    limit: int = Field(20, ge=1, le=100)

    model_config = {"use_enum_values": True}

class TaskResponse(BaseModel):
    id: int
    title: str
    description: str
    project_id: int
    sprint_id: Optional[int]
    assignee_ids: List[int]
    estimated_hours: float
    actual_hours: float
    priority: str
    status: str
    due_date: datetime
    tags: List[str]
    attachments: List[str]
    subtasks: List[Subtask]
    completed_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}

class TaskListResponse(BaseModel):
    count: int
    total: int
    pages: int
    data: List[TaskResponse]

class TimeLogResponse(BaseModel):
    task_id: int
    actual_hours: float
    estimated_hours: float
