from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional, List
from mpms.models.enums import ProjectStatus

class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    client: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    start_date: datetime
    end_date: datetime
    budget: float = Field(..., ge=0)
    status: ProjectStatus = ProjectStatus.PLANNED
    thumbnail: str = ""
    manager_id: Optional[int] = None  # defaults to the creator
    team_ids: List[int] = []

    model_config = {"use_enum_values": True, "validate_default": True}

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class ProjectUpdate(BaseModel):
    # team membership goes through the add/remove member operations
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    client: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = Field(None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    budget: Optional[float] = Field(None, ge=0)
    status: Optional[ProjectStatus] = None
    thumbnail: Optional[str] = None
    manager_id: Optional[int] = None

    model_config = {"use_enum_values": True, "extra": "forbid"}

class TeamMemberRequest(BaseModel):
    user_id: int

class ProjectResponse(BaseModel):
    id: int
    title: str
    client: str
    description: str
    start_date: datetime
    end_date: datetime
    budget: float
    status: str
    thumbnail: str
    manager_id: int
    team_ids: List[int]
    progress: int
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}

class ProjectStats(BaseModel):
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    progress: int

class ProjectWithStats(ProjectResponse):
    stats: ProjectStats
