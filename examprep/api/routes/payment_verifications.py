from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from examprep.api.deps import AdminId, SessionFactory, UserId, require_internal_access
from examprep.api.routes.season_pass_codes import ActivationResponse
from examprep.api.schemas import ApiModel
from examprep.billing.types import VerificationStatus, VerificationSubmission
from examprep.billing.verification import PaymentVerificationService

router = APIRouter(tags=["payments"], dependencies=[Depends(require_internal_access)])


class SubmitProofRequest(ApiModel):
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    payment_method: str = Field(min_length=1, max_length=32)
    reference_number: str = Field(min_length=1, max_length=128)
    proof_image_url: str | None = Field(default=None, max_length=2048)
    gcash_number: str | None = Field(default=None, max_length=32)


class VerificationOut(ApiModel):
    id: int
    user_id: int
    amount: Decimal
    payment_method: str
    reference_number: str
    proof_image_url: str | None = None
    gcash_number: str | None = None
    status: str
    activation_code: str | None = None
    verified_by_user_id: int | None = None
    verified_at: datetime | None = None
    rejection_reason: str | None = None
    created_at: datetime


class VerificationStatusResponse(ApiModel):
    status: str
    verification: VerificationOut | None = None


class VerificationListResponse(ApiModel):
    verifications: list[VerificationOut]


class RejectRequest(ApiModel):
    reason: str = Field(min_length=1, max_length=500)


class VerificationStatsResponse(ApiModel):
    pending: int
    approved: int
    rejected: int
    total: int
    approved_amount_total: Decimal


@router.post(
    "/api/payments/manual/submit",
    response_model=VerificationOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_payment_proof(
    payload: SubmitProofRequest,
    user_id: UserId,
    session_factory: SessionFactory,
) -> VerificationOut:
    async with session_factory.begin() as session:
        verification = await PaymentVerificationService.submit(
            session,
            user_id=user_id,
            submission=VerificationSubmission(
                amount=payload.amount,
                payment_method=payload.payment_method.lower(),
                reference_number=payload.reference_number,
                proof_image_url=payload.proof_image_url,
                gcash_number=payload.gcash_number,
            ),
            now_utc=datetime.now(timezone.utc),
        )
        return VerificationOut.model_validate(verification)


@router.get("/api/payments/manual/status", response_model=VerificationStatusResponse)
async def get_payment_verification_status(
    user_id: UserId,
    session_factory: SessionFactory,
) -> VerificationStatusResponse:
    async with session_factory() as session:
        verification = await PaymentVerificationService.get_status(session, user_id=user_id)
        if verification is None:
            return VerificationStatusResponse(status="none")
        return VerificationStatusResponse(
            status=verification.status,
            verification=VerificationOut.model_validate(verification),
        )


@router.get("/api/admin/payments/pending", response_model=VerificationListResponse)
async def list_pending_verifications(
    _admin_id: AdminId,
    session_factory: SessionFactory,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> VerificationListResponse:
    async with session_factory() as session:
        rows = await PaymentVerificationService.list_pending(session, limit=limit, offset=offset)
        return VerificationListResponse(verifications=[VerificationOut.model_validate(row) for row in rows])


@router.get("/api/admin/payments/history", response_model=VerificationListResponse)
async def list_verification_history(
    _admin_id: AdminId,
    session_factory: SessionFactory,
    verification_status: VerificationStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> VerificationListResponse:
    async with session_factory() as session:
        rows = await PaymentVerificationService.history(
            session,
            status=verification_status,
            limit=limit,
            offset=offset,
        )
        return VerificationListResponse(verifications=[VerificationOut.model_validate(row) for row in rows])


@router.get("/api/admin/payments/stats", response_model=VerificationStatsResponse)
async def get_verification_stats(_admin_id: AdminId, session_factory: SessionFactory) -> VerificationStatsResponse:
    async with session_factory() as session:
        stats = await PaymentVerificationService.stats(session)
    return VerificationStatsResponse.model_validate(stats)


@router.post("/api/admin/payments/{verification_id}/approve", response_model=ActivationResponse)
async def approve_payment_verification(
    verification_id: int,
    admin_id: AdminId,
    session_factory: SessionFactory,
) -> ActivationResponse:
    async with session_factory.begin() as session:
        result = await PaymentVerificationService.approve(
            session,
            verification_id=verification_id,
            admin_user_id=admin_id,
            now_utc=datetime.now(timezone.utc),
        )
    return ActivationResponse.model_validate(result)


@router.post("/api/admin/payments/{verification_id}/reject", response_model=VerificationOut)
async def reject_payment_verification(
    verification_id: int,
    payload: RejectRequest,
    admin_id: AdminId,
    session_factory: SessionFactory,
) -> VerificationOut:
    async with session_factory.begin() as session:
        verification = await PaymentVerificationService.reject(
            session,
            verification_id=verification_id,
            admin_user_id=admin_id,
            reason=payload.reason,
            now_utc=datetime.now(timezone.utc),
        )
        return VerificationOut.model_validate(verification)
