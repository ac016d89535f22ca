# mpms/services/team.py
import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from mpms.core.errors import ValidationError
from mpms.models.enums import UserRole, TaskStatus
from mpms.models.project import Project
from mpms.models.task import Task
from mpms.models.user import User
from mpms.schemas.user import ProfileUpdate, TeamMemberCreate, TeamMemberUpdate
from mpms.services.authorization import Actor, Action, ensure_allowed
from mpms.services.store import fetch_one
from mpms.utils.password import hash_password

logger = logging.getLogger(__name__)


async def email_taken(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(User.id).where(User.email == email.lower()))
    return result.scalar_one_or_none() is not None


async def list_team_members(
    db: AsyncSession,
    actor: Actor,
    search: Optional[str] = None,
    department: Optional[str] = None,
    role: Optional[str] = None,
) -> List[Tuple[User, Dict[str, int]]]:
    query = select(User).where(User.is_active.is_(True))
    if actor.role == UserRole.MANAGER:
        query = query.where(User.role.in_([UserRole.MEMBER.value, UserRole.MANAGER.value]))
    elif actor.is_member:
        query = query.where(User.id == actor.id)

    if department:
        query = query.where(User.department.ilike(f"%{department}%"))
    if role:
        query = query.where(User.role == role)
    if search:
        pattern = f"%{search}%"
        query = query.where(or_(User.name.ilike(pattern), User.email.ilike(pattern)))

    result = await db.execute(query.order_by(User.name))
    members = list(result.scalars().all())

    projects = (await db.execute(select(Project))).scalars().all()
    tasks = (await db.execute(select(Task))).scalars().all()

    out = []
    for member in members:
        assigned = [t for t in tasks if member.id in (t.assignee_ids or [])]
        out.append((member, {
            "project_count": sum(1 for p in projects if member.id in (p.team_ids or [])),
            "total_tasks": len(assigned),
            "active_tasks": sum(1 for t in assigned if t.status != TaskStatus.DONE.value),
        }))
    return out


async def create_team_member(db: AsyncSession, actor: Actor, user_in: TeamMemberCreate) -> User:
    ensure_allowed(actor, Action.CREATE, User(role=user_in.role))

    if await email_taken(db, user_in.email):
        raise ValidationError("User already exists", code="email_taken")
    try:
        hashed_pw = hash_password(user_in.password)
    except ValueError as e:
        raise ValidationError(str(e), code="invalid_password")

    user = User(
        name=user_in.name,
        email=user_in.email.lower(),
        hashed_password=hashed_pw,
        role=user_in.role,
        department=user_in.department,
        skills=user_in.skills,
        avatar="",
        is_active=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("User created id=%s role=%s by actor=%s", user.id, user.role, actor.id)
    return user


async def update_team_member(db: AsyncSession, actor: Actor, user_id: int, user_in: TeamMemberUpdate) -> User:
    target = await fetch_one(db, User, user_id, "User")
    values = {k: v for k, v in user_in.model_dump(exclude_unset=True).items() if v is not None or k == "department"}
    ensure_allowed(actor, Action.UPDATE, target, changes=values)

    for key, value in values.items():
        setattr(target, key, value)
    await db.commit()
    await db.refresh(target)
    logger.info("User updated id=%s fields=%s by actor=%s", target.id, sorted(values), actor.id)
    return target


async def deactivate_team_member(db: AsyncSession, actor: Actor, user_id: int) -> User:
    target = await fetch_one(db, User, user_id, "User")
    ensure_allowed(actor, Action.DELETE, target)

    # soft delete; task and project references stay in place
    target.is_active = False
    await db.commit()
    await db.refresh(target)
    logger.info("User deactivated id=%s by actor=%s", target.id, actor.id)
    return target


async def update_profile(db: AsyncSession, user: User, profile_in: ProfileUpdate) -> User:
    values = {k: v for k, v in profile_in.model_dump(exclude_unset=True).items() if v is not None or k == "department"}
    for key, value in values.items():
        setattr(user, key, value)
    await db.commit()
    await db.refresh(user)
    logger.info("Profile updated id=%s fields=%s", user.id, sorted(values))
    return user
