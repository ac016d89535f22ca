from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, JSON, func
from mpms.database import Base
from mpms.models.enums import TaskStatus, TaskPriority

class Task(Base):
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    sprint_id = Column(Integer, ForeignKey("sprints.id"), nullable=True, index=True)  # NULL once its sprint is deleted
    assignee_ids = Column(JSON, nullable=False, default=list)
    estimated_hours = Column(Float, nullable=False, default=0.0)
    actual_hours = Column(Float, nullable=False, default=0.0)
    priority = Column(String, nullable=False, default=TaskPriority.MEDIUM.value)
    status = Column(String, nullable=False, default=TaskStatus.TODO.value)  # To Do, In Progress, Review, Done
    due_date = Column(DateTime(timezone=True), nullable=False)
    tags = Column(JSON, nullable=False, default=list)
    attachments = Column(JSON, nullable=False, default=list)
    subtasks = Column(JSON, nullable=False, default=list)  # [{title, is_completed, completed_at}]
    completed_at = Column(DateTime(timezone=True), nullable=True)  # set on entering Review or Done
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
