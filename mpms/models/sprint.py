from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, UniqueConstraint, func
from mpms.database import Base

class Sprint(Base):
    __tablename__ = "sprints"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    sprint_number = Column(Integer, nullable=False)  # next free number within the project
    project_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    goal = Column(Text, nullable=True)
    progress = Column(Integer, nullable=False, default=0)  # 0–100, derived
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("project_id", "sprint_number", name="uq_project_sprint_number"),
    )
