from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from examprep.billing.activation import activate_premium, has_active_entitlement, lock_user
from examprep.billing.codes import generate_season_pass_codes, is_valid_code_format, normalize_code
from examprep.billing.constants import CODE_GENERATION_MAX_COUNT, METHOD_SEASON_PASS_CODE, PROVIDER_CODE_REDEMPTION
from examprep.billing.errors import (
    AlreadyPremiumError,
    CodeAlreadyRedeemedError,
    CodeExpiredError,
    CodeNotFoundError,
    InvalidCodeBatchError,
    InvalidCodeFormatError,
)
from examprep.billing.types import ActivationResult, BatchStats, CodeValidity, GeneratedCodes, PremiumGrant
from examprep.db.models.season_pass_codes import SeasonPassCode
from examprep.db.repo.season_pass_codes_repo import SeasonPassCodesRepo
from examprep.db.repo.subscriptions_repo import SubscriptionsRepo

logger = structlog.get_logger(__name__)

MAX_GENERATION_ROUNDS = 5


def _is_expired(code: SeasonPassCode, *, now_utc: datetime) -> bool:
    return code.expires_at is not None and code.expires_at <= now_utc


def _parse_code(raw_code: str) -> str:
    code = normalize_code(raw_code)
    if not is_valid_code_format(code):
        raise InvalidCodeFormatError
    return code


def default_batch_id(now_utc: datetime) -> str:
    return f"BATCH-{int(now_utc.timestamp())}"


class SeasonPassCodeService:
    @staticmethod
    async def redeem(
        session: AsyncSession,
        *,
        user_id: int,
        raw_code: str,
        now_utc: datetime,
    ) -> ActivationResult:
        code_value = _parse_code(raw_code)

        code = await SeasonPassCodesRepo.get_by_code_for_update(session, code_value)
        if code is None:
            logger.info("season_pass_code_rejected", user_id=user_id, reason="not_found")
            raise CodeNotFoundError
        if code.is_redeemed:
            logger.info("season_pass_code_rejected", user_id=user_id, reason="already_redeemed", code_id=code.id)
            raise CodeAlreadyRedeemedError
        if _is_expired(code, now_utc=now_utc):
            logger.info("season_pass_code_rejected", user_id=user_id, reason="expired", code_id=code.id)
            raise CodeExpiredError

        user = await lock_user(session, user_id=user_id)
        subscription = await SubscriptionsRepo.get_by_user_id(session, user_id)
        if has_active_entitlement(user=user, subscription=subscription, now_utc=now_utc):
            raise AlreadyPremiumError

        await SeasonPassCodesRepo.mark_redeemed(session, code=code, user_id=user_id, now_utc=now_utc)
        result = await activate_premium(
            session,
            user=user,
            grant=PremiumGrant(
                payment_method=METHOD_SEASON_PASS_CODE,
                payment_provider=PROVIDER_CODE_REDEMPTION,
                amount_paid=Decimal("0"),
                transaction_id=code.code,
                reference_number=code.code,
            ),
            now_utc=now_utc,
        )
        logger.info("season_pass_code_redeemed", user_id=user_id, code_id=code.id, batch_id=code.batch_id)
        return result

    @staticmethod
    async def verify(session: AsyncSession, *, raw_code: str, now_utc: datetime) -> CodeValidity:
        code_value = normalize_code(raw_code)
        if not is_valid_code_format(code_value):
            return CodeValidity(code=code_value, is_valid=False, reason="invalid_format", expires_at=None)

        code = await SeasonPassCodesRepo.get_by_code(session, code_value)
        if code is None:
            return CodeValidity(code=code_value, is_valid=False, reason="not_found", expires_at=None)
        if code.is_redeemed:
            return CodeValidity(code=code_value, is_valid=False, reason="already_redeemed", expires_at=code.expires_at)
        if _is_expired(code, now_utc=now_utc):
            return CodeValidity(code=code_value, is_valid=False, reason="expired", expires_at=code.expires_at)
        return CodeValidity(code=code_value, is_valid=True, reason=None, expires_at=code.expires_at)

    @staticmethod
    async def generate(
        session: AsyncSession,
        *,
        count: int,
        batch_id: str | None,
        expires_at: datetime | None,
        notes: str | None,
        now_utc: datetime,
    ) -> GeneratedCodes:
        if not 1 <= count <= CODE_GENERATION_MAX_COUNT:
            raise InvalidCodeBatchError(
                f"count must be between 1 and {CODE_GENERATION_MAX_COUNT}",
                field_errors={"count": f"must be between 1 and {CODE_GENERATION_MAX_COUNT}"},
            )
        if expires_at is not None and expires_at <= now_utc:
            raise InvalidCodeBatchError(
                "expiry must be in the future",
                field_errors={"expiresAt": "must be in the future"},
            )

        resolved_batch_id = batch_id or default_batch_id(now_utc)
        inserted: list[str] = []
        for _ in range(MAX_GENERATION_ROUNDS):
            missing = count - len(inserted)
            if missing <= 0:
                break
            inserted.extend(
                await SeasonPassCodesRepo.insert_new_codes(
                    session,
                    codes=generate_season_pass_codes(missing),
                    batch_id=resolved_batch_id,
                    expires_at=expires_at,
                    notes=notes,
                    now_utc=now_utc,
                )
            )
        if len(inserted) < count:
            raise RuntimeError(f"could not generate {count} unique season pass codes")

        logger.info("season_pass_codes_generated", batch_id=resolved_batch_id, count=len(inserted))
        return GeneratedCodes(batch_id=resolved_batch_id, codes=sorted(inserted), expires_at=expires_at)

    @staticmethod
    async def batch_stats(session: AsyncSession, *, batch_id: str) -> BatchStats:
        total, redeemed = await SeasonPassCodesRepo.batch_counts(session, batch_id=batch_id)
        return BatchStats(
            batch_id=batch_id,
            total=total,
            redeemed=redeemed,
            unredeemed=total - redeemed,
            redeemed_percentage=round(redeemed * 100 / total, 2) if total else 0.0,
        )

    @staticmethod
    async def list_codes(
        session: AsyncSession,
        *,
        is_redeemed: bool,
        batch_id: str | None,
        limit: int,
        offset: int,
    ) -> list[SeasonPassCode]:
        return await SeasonPassCodesRepo.list_codes(
            session,
            is_redeemed=is_redeemed,
            batch_id=batch_id,
            limit=limit,
            offset=offset,
        )
