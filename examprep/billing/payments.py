from __future__ import annotations

from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.access.errors import UserNotFoundError
from examprep.access.policy import is_effective_premium
from examprep.billing.activation import activate_premium, lock_user
from examprep.billing.constants import (
    DEFAULT_PAYMONGO_METHOD,
    PAYMONGO_FAILED_EVENTS,
    PAYMONGO_PAID_EVENTS,
    PROVIDER_PAYMONGO,
)
from examprep.billing.errors import InvalidWebhookPayloadError
from examprep.billing.types import PaymentEvent, PaymentStatus, PremiumGrant, WebhookOutcome
from examprep.db.repo.subscriptions_repo import SubscriptionsRepo
from examprep.db.repo.users_repo import UsersRepo

logger = structlog.get_logger(__name__)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def centavos_to_pesos(amount: Any) -> Decimal:
    try:
        return (Decimal(str(amount)) / 100).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidWebhookPayloadError("Payment amount is not a number") from exc


def parse_payment_event(payload: Any) -> PaymentEvent:
    """Extracts the fields the activation needs from a PayMongo event body.

    Layout: ``data.attributes.type`` and the payment resource under
    ``data.attributes.data`` with our ``userId``/``referenceNumber`` in its
    ``attributes.metadata``.
    """
    event_attributes = _as_dict(_as_dict(_as_dict(payload).get("data")).get("attributes"))
    event_type = event_attributes.get("type")
    if not isinstance(event_type, str) or not event_type:
        raise InvalidWebhookPayloadError

    payment = _as_dict(event_attributes.get("data"))
    payment_attributes = _as_dict(payment.get("attributes"))
    metadata = _as_dict(payment_attributes.get("metadata"))

    raw_user_id = metadata.get("userId")
    try:
        user_id = int(raw_user_id) if raw_user_id is not None else None
    except (TypeError, ValueError) as exc:
        raise InvalidWebhookPayloadError("userId metadata is not an integer") from exc

    reference_number = metadata.get("referenceNumber")
    payment_id = payment.get("id")
    return PaymentEvent(
        event_type=event_type,
        payment_id=str(payment_id) if payment_id is not None else None,
        user_id=user_id,
        reference_number=str(reference_number) if reference_number else None,
        amount=centavos_to_pesos(payment_attributes.get("amount", 0)),
        payment_method=str(payment_attributes.get("payment_method_used") or DEFAULT_PAYMONGO_METHOD),
    )


class PaymentWebhookService:
    @staticmethod
    async def handle_event(session: AsyncSession, *, event: PaymentEvent, now_utc: datetime) -> WebhookOutcome:
        if event.event_type in PAYMONGO_FAILED_EVENTS:
            logger.info(
                "payment_failed_event",
                user_id=event.user_id,
                reference_number=event.reference_number,
                payment_id=event.payment_id,
            )
            return WebhookOutcome(
                event_type=event.event_type,
                status="acknowledged",
                user_id=event.user_id,
                reference_number=event.reference_number,
            )

        if event.event_type not in PAYMONGO_PAID_EVENTS:
            logger.info("payment_event_unhandled", event_type=event.event_type)
            return WebhookOutcome(event_type=event.event_type, status="ignored")

        if event.user_id is None or event.reference_number is None:
            logger.error(
                "payment_event_missing_metadata",
                event_type=event.event_type,
                payment_id=event.payment_id,
                has_user_id=event.user_id is not None,
                has_reference_number=event.reference_number is not None,
            )
            return WebhookOutcome(event_type=event.event_type, status="ignored")

        try:
            user = await lock_user(session, user_id=event.user_id)
        except UserNotFoundError:
            logger.error("payment_event_unknown_user", user_id=event.user_id, payment_id=event.payment_id)
            return WebhookOutcome(
                event_type=event.event_type,
                status="ignored",
                user_id=event.user_id,
                reference_number=event.reference_number,
            )

        # checked under the user lock, so concurrent redeliveries are serialized
        existing = await SubscriptionsRepo.get_by_reference_number(session, event.reference_number)
        if existing is not None:
            logger.info(
                "payment_event_duplicate",
                user_id=event.user_id,
                reference_number=event.reference_number,
                subscription_id=existing.id,
            )
            return WebhookOutcome(
                event_type=event.event_type,
                status="duplicate",
                user_id=event.user_id,
                reference_number=event.reference_number,
            )

        await activate_premium(
            session,
            user=user,
            grant=PremiumGrant(
                payment_method=event.payment_method,
                payment_provider=PROVIDER_PAYMONGO,
                amount_paid=event.amount,
                transaction_id=event.payment_id,
                reference_number=event.reference_number,
            ),
            now_utc=now_utc,
        )
        return WebhookOutcome(
            event_type=event.event_type,
            status="activated",
            user_id=event.user_id,
            reference_number=event.reference_number,
        )

    @staticmethod
    async def payment_status(
        session: AsyncSession,
        *,
        user_id: int,
        reference_number: str,
        now_utc: datetime,
    ) -> PaymentStatus:
        subscription = await SubscriptionsRepo.get_by_reference_number(session, reference_number)
        # references of other users look unpaid
        if subscription is None or subscription.user_id != user_id:
            return PaymentStatus(reference_number=reference_number, status="pending", is_premium=False)

        user = await UsersRepo.get_by_id(session, subscription.user_id)
        is_premium = user is not None and is_effective_premium(
            is_premium=user.is_premium,
            premium_expiry=user.premium_expiry,
            now_utc=now_utc,
        )
        return PaymentStatus(
            reference_number=reference_number,
            status="completed",
            is_premium=is_premium,
            plan_name=subscription.plan_name,
            activated_at=subscription.purchase_date,
        )
