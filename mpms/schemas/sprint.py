from pydantic import BaseModel, Field, model_validator
from datetime import datetime
from typing import Optional, List
from mpms.schemas.task import TaskResponse

class SprintCreate(BaseModel):
    # sprint_number is assigned by the server
    title: str = Field(..., min_length=1, max_length=200)
    project_id: int
    start_date: datetime
    end_date: datetime
    goal: Optional[str] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

class SprintUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    goal: Optional[str] = None

    model_config = {"extra": "forbid"}

class SprintResponse(BaseModel):
    id: int
    title: str
    sprint_number: int
    project_id: int
    start_date: datetime
    end_date: datetime
    goal: Optional[str]
    progress: int
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}

class SprintStats(BaseModel):
    total_tasks: int
    completed_tasks: int
    progress: int

class SprintWithStats(SprintResponse):
    stats: SprintStats

class SprintDetailResponse(SprintWithStats):
    tasks: List[TaskResponse]
