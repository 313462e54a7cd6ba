from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from examprep.access.errors import UserNotFoundError
from examprep.access.policy import AccessLimits, resolve_limits
from examprep.db.models.users import User
from examprep.db.repo.users_repo import UsersRepo


async def load_user_limits(
    session: AsyncSession,
    *,
    user_id: int,
    now_utc: datetime,
    for_update: bool = False,
) -> tuple[User, AccessLimits]:
    if for_update:
        user = await UsersRepo.get_by_id_for_update(session, user_id)
    else:
        user = await UsersRepo.get_by_id(session, user_id)
    if user is None:
        raise UserNotFoundError

    limits = resolve_limits(
        is_premium=user.is_premium,
        premium_expiry=user.premium_expiry,
        now_utc=now_utc,
    )
    return user, limits
