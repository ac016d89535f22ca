from pydantic import BaseModel, EmailStr, Field
from typing import Optional, List
from mpms.models.enums import UserRole

class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=100)
    password: str = Field(..., min_length=6, max_length=72)
    department: Optional[str] = None
    skills: List[str] = []

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)

class UserResponse(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: str
    department: Optional[str]
    skills: List[str]
    avatar: str
    is_active: bool

    model_config = {"from_attributes": True}

class Token(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str
    user: UserResponse

class TeamMemberCreate(UserCreate):
    role: UserRole = UserRole.MEMBER

    model_config = {"use_enum_values": True, "validate_default": True}

class TeamMemberUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    role: Optional[UserRole] = None
    department: Optional[str] = None
    skills: Optional[List[str]] = None
    is_active: Optional[bool] = None

    model_config = {"use_enum_values": True, "extra": "forbid"}

class TeamMemberStats(BaseModel):
    project_count: int
    total_tasks: int
    active_tasks: int

class TeamMemberResponse(UserResponse):
    stats: TeamMemberStats

class ProfileUpdate(BaseModel):
    # own profile only; role and is_active go through the team endpoints
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    department: Optional[str] = None
    skills: Optional[List[str]] = None
    avatar: Optional[str] = None

    model_config = {"extra": "forbid"}
