# mpms/routers/tasks.py
from fastapi import APIRouter, Depends, Query, status
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from mpms.database import get_db
from mpms.core.auth import get_current_actor
from mpms.schemas.comment import CommentCreate, CommentResponse, TaskDetailResponse
from mpms.schemas.task import (
    TaskCreate, TaskUpdate, TaskStatusUpdate, TimeLog, TaskFilter,
    TaskResponse, TaskListResponse, TimeLogResponse,
)
from mpms.services import tasks as task_service

router = APIRouter(prefix="/tasks", tags=["tasks"])

@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await task_service.create_task(db, actor, task_in)


@router.get("", response_model=TaskListResponse)
async def list_tasks(
    filters: Annotated[TaskFilter, Query()],
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    tasks, total = await task_service.list_tasks(db, actor, filters)
    return TaskListResponse(
        count=len(tasks),
        total=total,
        pages=task_service.pages(total, filters.limit),
        data=tasks
    )


@router.get("/{task_id}", response_model=TaskDetailResponse)
async def get_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    task, comments = await task_service.get_task(db, actor, task_id)
    return TaskDetailResponse(task=task, comments=comments)


@router.put("/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: int,
    task_in: TaskUpdate,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await task_service.update_task(db, actor, task_id, task_in)


@router.put("/{task_id}/status", response_model=TaskResponse)
async def update_task_status(
    task_id: int,
    status_in: TaskStatusUpdate,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await task_service.transition_task_status(db, actor, task_id, status_in.status)


@router.post("/{task_id}/log-time", response_model=TimeLogResponse)
async def log_time(
    task_id: int,
    time_in: TimeLog,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    task = await task_service.log_time(db, actor, task_id, time_in.hours)
    return TimeLogResponse(task_id=task.id, actual_hours=task.actual_hours, estimated_hours=task.estimated_hours)


@router.post("/{task_id}/comments", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: int,
    comment_in: CommentCreate,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    return await task_service.add_comment(db, actor, task_id, comment_in)


@router.delete("/{task_id}")
async def delete_task(
    task_id: int,
    db: AsyncSession = Depends(get_db),
    actor = Depends(get_current_actor)
):
    await task_service.delete_task(db, actor, task_id)
    return {"message": "Task deleted successfully"}
