from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query, status
from pydantic import Field

from examprep.api.deps import AdminId, SessionFactory, UserId, require_internal_access
from examprep.api.schemas import ApiModel
from examprep.billing.constants import CODE_GENERATION_MAX_COUNT
from examprep.billing.redemption import SeasonPassCodeService

router = APIRouter(tags=["season-pass"], dependencies=[Depends(require_internal_access)])


class RedeemCodeRequest(ApiModel):
    code: str = Field(min_length=1, max_length=32)


class ActivationResponse(ApiModel):
    user_id: int
    subscription_id: int
    plan_name: str
    is_premium: bool
    premium_expiry: datetime | None = None
    activated_at: datetime


class VerifyCodeRequest(ApiModel):
    code: str = Field(min_length=1, max_length=32)


class VerifyCodeResponse(ApiModel):
    code: str
    is_valid: bool
    reason: str | None = None
    expires_at: datetime | None = None


class GenerateCodesRequest(ApiModel):
    count: int = Field(ge=1, le=CODE_GENERATION_MAX_COUNT)
    batch_id: str | None = Field(default=None, min_length=1, max_length=64)
    expires_at: datetime | None = None
    notes: str | None = Field(default=None, max_length=500)


class GenerateCodesResponse(ApiModel):
    batch_id: str
    codes: list[str]
    expires_at: datetime | None = None


class BatchStatsResponse(ApiModel):
    batch_id: str
    total: int
    redeemed: int
    unredeemed: int
    redeemed_percentage: float


class CodeOut(ApiModel):
    code: str
    batch_id: str
    is_redeemed: bool
    redeemed_by_user_id: int | None = None
    redeemed_at: datetime | None = None
    expires_at: datetime | None = None
    notes: str | None = None
    created_at: datetime


class CodeListResponse(ApiModel):
    codes: list[CodeOut]


@router.post("/api/season-pass/redeem", response_model=ActivationResponse)
async def redeem_season_pass_code(
    payload: RedeemCodeRequest,
    user_id: UserId,
    session_factory: SessionFactory,
) -> ActivationResponse:
    async with session_factory.begin() as session:
        result = await SeasonPassCodeService.redeem(
            session,
            user_id=user_id,
            raw_code=payload.code,
            now_utc=datetime.now(timezone.utc),
        )
    return ActivationResponse.model_validate(result)


@router.post("/api/season-pass/verify", response_model=VerifyCodeResponse)
async def verify_season_pass_code(
    payload: VerifyCodeRequest,
    _user_id: UserId,
    session_factory: SessionFactory,
) -> VerifyCodeResponse:
    async with session_factory() as session:
        validity = await SeasonPassCodeService.verify(
            session,
            raw_code=payload.code,
            now_utc=datetime.now(timezone.utc),
        )
    return VerifyCodeResponse.model_validate(validity)


@router.post(
    "/api/admin/season-pass/codes",
    response_model=GenerateCodesResponse,
    status_code=status.HTTP_201_CREATED,
)
async def generate_season_pass_codes(
    payload: GenerateCodesRequest,
    _admin_id: AdminId,
    session_factory: SessionFactory,
) -> GenerateCodesResponse:
    async with session_factory.begin() as session:
        generated = await SeasonPassCodeService.generate(
            session,
            count=payload.count,
            batch_id=payload.batch_id,
            expires_at=payload.expires_at,
            notes=payload.notes,
            now_utc=datetime.now(timezone.utc),
        )
    return GenerateCodesResponse.model_validate(generated)


@router.get("/api/admin/season-pass/batches/{batch_id}", response_model=BatchStatsResponse)
async def get_season_pass_batch_stats(
    batch_id: str,
    _admin_id: AdminId,
    session_factory: SessionFactory,
) -> BatchStatsResponse:
    async with session_factory() as session:
        stats = await SeasonPassCodeService.batch_stats(session, batch_id=batch_id)
    return BatchStatsResponse.model_validate(stats)


@router.get("/api/admin/season-pass/codes", response_model=CodeListResponse)
async def list_season_pass_codes(
    _admin_id: AdminId,
    session_factory: SessionFactory,
    redeemed: bool = Query(default=False),
    batch_id: str | None = Query(default=None, alias="batchId", max_length=64),
    limit: int = Query(default=50, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> CodeListResponse:
    async with session_factory() as session:
        codes = await SeasonPassCodeService.list_codes(
            session,
            is_redeemed=redeemed,
            batch_id=batch_id,
            limit=limit,
            offset=offset,
        )
        return CodeListResponse(codes=[CodeOut.model_validate(code) for code in codes])
