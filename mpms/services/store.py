# mpms/services/store.py
from typing import Iterable, Type, TypeVar
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from mpms.core.errors import NotFoundError, ValidationError
from mpms.models.user import User

ModelT = TypeVar("ModelT")


async def fetch_one(db: AsyncSession, model: Type[ModelT], entity_id: int, name: str = None) -> ModelT:
    result = await db.execute(select(model).where(model.id == entity_id))
    obj = result.scalar_one_or_none()
    if obj is None:
        raise NotFoundError(name or model.__name__, entity_id)
    return obj


async def ensure_users_exist(db: AsyncSession, user_ids: Iterable[int]) -> None:
    wanted = set(user_ids)
    if not wanted:
        return
    result = await db.execute(select(User.id).where(User.id.in_(wanted)))
    missing = wanted - set(result.scalars().all())
    if missing:
        raise ValidationError(
            "Unknown user id(s): " + ", ".join(str(i) for i in sorted(missing)),
            code="unknown_users",
            extra={"user_ids": sorted(missing)},
        )


def unique_ids(ids: Iterable[int]) -> list:
    # keeps first-seen order
    return list(dict.fromkeys(ids))
