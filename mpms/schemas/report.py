from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List, Dict

class TaskStatisticsResponse(BaseModel):
    total_tasks: int
    completed_tasks: int
    in_progress_tasks: int
    review_tasks: int
    todo_tasks: int
    total_estimated_hours: float
    total_actual_hours: float
    # estimated / actual * 100: below 100 means hours overran the estimate
    estimated_over_actual_ratio: int
    overdue_tasks: int
    progress: int
    tasks_by_status: Dict[str, int]
    tasks_by_priority: Dict[str, int]

class DeadlineItem(BaseModel):
    id: int
    title: str
    due_date: datetime
    status: str
    assignee_ids: List[int]

class ProjectSummary(BaseModel):
    id: int
    title: str
    client: str
    status: str
    start_date: datetime
    end_date: datetime
    progress: int

class ProjectReportResponse(BaseModel):
    project: ProjectSummary
    statistics: TaskStatisticsResponse
    upcoming_deadlines: List[DeadlineItem]

class BurnDownPoint(BaseModel):
    day: int
    date: datetime
    tasks_remaining: int

class SprintSummary(BaseModel):
    id: int
    title: str
    sprint_number: int
    project_id: int
    start_date: datetime
    end_date: datetime
    goal: Optional[str]
    progress: int

class SprintReportResponse(BaseModel):
    sprint: SprintSummary
    statistics: TaskStatisticsResponse
    days_remaining: int
    velocity: float
    projected_completion_days: int
    burn_down: List[BurnDownPoint]
    top_performers: Dict[int, int]

class WorkloadProject(BaseModel):
    project_id: int
    title: Optional[str]
    completed: int
    total: int
    completion_rate: int

class ActivityItem(BaseModel):
    id: int
    title: str
    project_id: int
    status: str
    assignee_ids: List[int]
    updated_at: Optional[datetime]

class UserWorkloadResponse(BaseModel):
    user_id: int
    name: str
    email: str
    role: str
    department: Optional[str]
    statistics: TaskStatisticsResponse
    pending_tasks: int
    projects: List[WorkloadProject]
    recent_activity: List[ActivityItem]

class DashboardOverview(BaseModel):
    total_projects: int
    active_projects: int
    total_tasks: int
    total_users: int
    total_sprints: int

class DashboardStatsResponse(BaseModel):
    overview: DashboardOverview
    statistics: TaskStatisticsResponse
    recent_activities: List[ActivityItem]
