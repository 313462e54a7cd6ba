from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.access.errors import UserNotFoundError
from examprep.access.policy import is_effective_premium
from examprep.billing.constants import SEASON_PASS_PLAN_NAME
from examprep.billing.types import ActivationResult, PremiumGrant
from examprep.core.config import get_settings
from examprep.db.models.subscriptions import Subscription
from examprep.db.models.users import User
from examprep.db.repo.subscriptions_repo import SubscriptionsRepo
from examprep.db.repo.users_repo import UsersRepo

logger = structlog.get_logger(__name__)


def season_pass_price() -> Decimal:
    return Decimal(get_settings().season_pass_price)


def has_active_entitlement(*, user: User, subscription: Subscription | None, now_utc: datetime) -> bool:
    if is_effective_premium(is_premium=user.is_premium, premium_expiry=user.premium_expiry, now_utc=now_utc):
        return True
    if subscription is None or subscription.status != "active":
        return False
    return subscription.expires_at is None or subscription.expires_at > now_utc


async def lock_user(session: AsyncSession, *, user_id: int) -> User:
    user = await UsersRepo.get_by_id_for_update(session, user_id)
    if user is None:
        raise UserNotFoundError
    return user


async def activate_premium(
    session: AsyncSession,
    *,
    user: User,
    grant: PremiumGrant,
    now_utc: datetime,
) -> ActivationResult:
    """Writes the subscription row and flips the user's premium flag.

    Both writes go through ``session``; the caller's transaction commits them
    together or not at all. Call with the user row already locked.
    """
    subscription = await SubscriptionsRepo.upsert_active(
        session,
        user_id=user.id,
        plan_name=SEASON_PASS_PLAN_NAME,
        plan_price=season_pass_price(),
        amount_paid=grant.amount_paid,
        payment_method=grant.payment_method,
        payment_provider=grant.payment_provider,
        transaction_id=grant.transaction_id,
        reference_number=grant.reference_number,
        expires_at=grant.expires_at,
        now_utc=now_utc,
    )
    await UsersRepo.set_premium(session, user=user, premium_expiry=grant.expires_at, now_utc=now_utc)

    logger.info(
        "premium_activated",
        user_id=user.id,
        subscription_id=subscription.id,
        provider=grant.payment_provider,
        reference_number=grant.reference_number,
    )
    return ActivationResult(
        user_id=user.id,
        subscription_id=subscription.id,
        plan_name=subscription.plan_name,
        is_premium=user.is_premium,
        premium_expiry=user.premium_expiry,
        activated_at=now_utc,
    )
