from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, JSON, func
from mpms.database import Base
from mpms.models.enums import ProjectStatus

class Project(Base):
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    client = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    budget = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default=ProjectStatus.PLANNED.value)
    thumbnail = Column(String, nullable=False, default="")
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    team_ids = Column(JSON, nullable=False, default=list)  # user ids, manager always included
    progress = Column(Integer, nullable=False, default=0)  # 0–100, derived
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
