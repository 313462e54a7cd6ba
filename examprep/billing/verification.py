from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.billing.activation import activate_premium, has_active_entitlement, lock_user
from examprep.billing.codes import generate_activation_code
from examprep.billing.constants import MANUAL_PAYMENT_METHODS, PROVIDER_MANUAL
from examprep.billing.errors import (
    AlreadyPremiumError,
    InvalidVerificationError,
    VerificationAlreadyDecidedError,
    VerificationNotFoundError,
)
from examprep.billing.types import (
    ActivationResult,
    PremiumGrant,
    VerificationStats,
    VerificationStatus,
    VerificationSubmission,
)
from examprep.db.models.payment_verifications import PaymentVerification
from examprep.db.repo.payment_verifications_repo import PaymentVerificationsRepo
from examprep.db.repo.subscriptions_repo import SubscriptionsRepo

logger = structlog.get_logger(__name__)

ACTIVATION_CODE_ATTEMPTS = 5
MAX_REJECTION_REASON_LENGTH = 500


def _validate_submission(submission: VerificationSubmission) -> None:
    field_errors: dict[str, str] = {}
    if submission.amount <= Decimal("0"):
        field_errors["amount"] = "must be greater than 0"
    if submission.payment_method not in MANUAL_PAYMENT_METHODS:
        field_errors["paymentMethod"] = f"must be one of {', '.join(sorted(MANUAL_PAYMENT_METHODS))}"
    if not submission.reference_number.strip():
        field_errors["referenceNumber"] = "must not be empty"
    if field_errors:
        raise InvalidVerificationError("Invalid payment proof", field_errors=field_errors)


async def _unique_activation_code(session: AsyncSession) -> str:
    for _ in range(ACTIVATION_CODE_ATTEMPTS):
        candidate = generate_activation_code()
        if not await PaymentVerificationsRepo.activation_code_exists(session, candidate):
            return candidate
    raise RuntimeError("could not allocate a unique activation code")


async def _load_pending(session: AsyncSession, verification_id: int) -> PaymentVerification:
    verification = await PaymentVerificationsRepo.get_by_id_for_update(session, verification_id)
    if verification is None:
        raise VerificationNotFoundError
    if verification.status != VerificationStatus.PENDING.value:
        raise VerificationAlreadyDecidedError
    return verification


class PaymentVerificationService:
    @staticmethod
    async def submit(
        session: AsyncSession,
        *,
        user_id: int,
        submission: VerificationSubmission,
        now_utc: datetime,
    ) -> PaymentVerification:
        _validate_submission(submission)
        reference_number = submission.reference_number.strip()

        user = await lock_user(session, user_id=user_id)
        existing = await PaymentVerificationsRepo.get_by_user_and_reference(
            session,
            user_id=user_id,
            reference_number=reference_number,
        )
        if existing is not None:
            logger.info("payment_verification_resubmitted", user_id=user_id, verification_id=existing.id)
            return existing

        subscription = await SubscriptionsRepo.get_by_user_id(session, user_id)
        if has_active_entitlement(user=user, subscription=subscription, now_utc=now_utc):
            raise AlreadyPremiumError

        verification = await PaymentVerificationsRepo.create(
            session,
            verification=PaymentVerification(
                user_id=user_id,
                amount=submission.amount,
                payment_method=submission.payment_method,
                reference_number=reference_number,
                proof_image_url=submission.proof_image_url,
                gcash_number=submission.gcash_number,
                status=VerificationStatus.PENDING.value,
                activation_code=await _unique_activation_code(session),
                created_at=now_utc,
            ),
        )
        logger.info(
            "payment_verification_submitted",
            user_id=user_id,
            verification_id=verification.id,
            payment_method=verification.payment_method,
        )
        return verification

    @staticmethod
    async def get_status(session: AsyncSession, *, user_id: int) -> PaymentVerification | None:
        return await PaymentVerificationsRepo.get_latest_for_user(session, user_id=user_id)

    @staticmethod
    async def list_pending(session: AsyncSession, *, limit: int, offset: int) -> list[PaymentVerification]:
        return await PaymentVerificationsRepo.list_by_status(
            session,
            status=VerificationStatus.PENDING.value,
            limit=limit,
            offset=offset,
            oldest_first=True,
        )

    @staticmethod
    async def history(
        session: AsyncSession,
        *,
        status: VerificationStatus | None,
        limit: int,
        offset: int,
    ) -> list[PaymentVerification]:
        return await PaymentVerificationsRepo.list_by_status(
            session,
            status=status.value if status is not None else None,
            limit=limit,
            offset=offset,
        )

    @staticmethod
    async def approve(
        session: AsyncSession,
        *,
        verification_id: int,
        admin_user_id: int,
        now_utc: datetime,
    ) -> ActivationResult:
        verification = await _load_pending(session, verification_id)
        user = await lock_user(session, user_id=verification.user_id)

        result = await activate_premium(
            session,
            user=user,
            grant=PremiumGrant(
                payment_method=verification.payment_method,
                payment_provider=PROVIDER_MANUAL,
                amount_paid=verification.amount,
                transaction_id=verification.activation_code,
                reference_number=verification.reference_number,
            ),
            now_utc=now_utc,
        )
        verification.status = VerificationStatus.APPROVED.value
        verification.verified_by_user_id = admin_user_id
        verification.verified_at = now_utc
        await session.flush()

        logger.info(
            "payment_verification_approved",
            verification_id=verification.id,
            user_id=verification.user_id,
            admin_user_id=admin_user_id,
        )
        return result

    @staticmethod
    async def reject(
        session: AsyncSession,
        *,
        verification_id: int,
        admin_user_id: int,
        reason: str,
        now_utc: datetime,
    ) -> PaymentVerification:
        reason = reason.strip()
        if not reason or len(reason) > MAX_REJECTION_REASON_LENGTH:
            raise InvalidVerificationError(
                "A rejection reason is required",
                field_errors={"reason": f"must be 1 to {MAX_REJECTION_REASON_LENGTH} characters"},
            )

        verification = await _load_pending(session, verification_id)
        verification.status = VerificationStatus.REJECTED.value
        verification.verified_by_user_id = admin_user_id
        verification.verified_at = now_utc
        verification.rejection_reason = reason
        await session.flush()

        logger.info(
            "payment_verification_rejected",
            verification_id=verification.id,
            user_id=verification.user_id,
            admin_user_id=admin_user_id,
        )
        return verification

    @staticmethod
    async def stats(session: AsyncSession) -> VerificationStats:
        counts = await PaymentVerificationsRepo.counts_by_status(session)
        pending = counts.get(VerificationStatus.PENDING.value, 0)
        approved = counts.get(VerificationStatus.APPROVED.value, 0)
        rejected = counts.get(VerificationStatus.REJECTED.value, 0)
        return VerificationStats(
            pending=pending,
            approved=approved,
            rejected=rejected,
            total=pending + approved + rejected,
            approved_amount_total=await PaymentVerificationsRepo.approved_amount_total(session),
        )
