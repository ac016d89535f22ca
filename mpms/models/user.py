from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, func
from mpms.database import Base
from mpms.models.enums import UserRole

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default=UserRole.MEMBER.value)  # admin, manager, member
    department = Column(String, nullable=True)
    skills = Column(JSON, nullable=False, default=list)
    avatar = Column(String, nullable=False, default="")
    is_active = Column(Boolean, nullable=False, default=True)  # False = soft-deleted
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
