# mpms/routers/auth.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from mpms.models.enums import UserRole
from mpms.models.user import User
from mpms.schemas.user import UserCreate, LoginRequest, ProfileUpdate, UserResponse, Token
from mpms.database import get_db
from mpms.utils.password import hash_password, verify_password
from mpms.core.security import create_access_token, create_refresh_token
from mpms.core.auth import get_current_user
from mpms.core.errors import ValidationError
from mpms.services import team as team_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    email = user_in.email.lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ValidationError("Email already registered", code="email_taken")

    try:
        hashed_pw = hash_password(user_in.password)
    except ValueError as e:
        raise ValidationError(str(e), code="invalid_password")

    # self-registration always yields a member; elevated roles come from the team endpoints
    user = User(
        email=email,
        name=user_in.name,
        hashed_password=hashed_pw,
        role=UserRole.MEMBER.value,
        department=user_in.department,
        skills=user_in.skills,
        avatar="",
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("User registered id=%s", user.id)
    return user


@router.post("/login", response_model=Token)
async def login(user_in: LoginRequest, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == user_in.email.lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(user_in.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User account is deactivated",
        )

    access_token = create_access_token({"sub": str(user.id), "role": user.role})
    refresh_token = create_refresh_token({"sub": str(user.id)})

    return Token(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="bearer",
        user=user
    )


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
async def update_profile(
    profile_in: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await team_service.update_profile(db, current_user, profile_in)
