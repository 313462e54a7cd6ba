from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends

from examprep.api.deps import SessionFactory, UserId, require_internal_access
from examprep.api.schemas import ApiModel
from examprep.billing.subscriptions import SubscriptionService

router = APIRouter(tags=["subscriptions"], dependencies=[Depends(require_internal_access)])


class SubscriptionOut(ApiModel):
    plan_name: str
    plan_price: Decimal
    amount_paid: Decimal
    payment_method: str
    payment_provider: str
    reference_number: str | None = None
    status: str
    purchase_date: datetime
    expires_at: datetime | None = None


class SubscriptionResponse(ApiModel):
    is_premium: bool
    subscription: SubscriptionOut | None = None


@router.get("/api/subscription", response_model=SubscriptionResponse)
async def get_subscription(user_id: UserId, session_factory: SessionFactory) -> SubscriptionResponse:
    async with session_factory() as session:
        is_premium, subscription = await SubscriptionService.get_for_user(
            session,
            user_id=user_id,
            now_utc=datetime.now(timezone.utc),
        )
        return SubscriptionResponse(
            is_premium=is_premium,
            subscription=SubscriptionOut.model_validate(subscription) if subscription is not None else None,
        )
