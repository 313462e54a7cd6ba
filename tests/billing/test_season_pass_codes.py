from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from examprep.billing.codes import (
    generate_activation_code,
    generate_season_pass_code,
    generate_season_pass_codes,
    is_valid_code_format,
    normalize_code,
)
from examprep.billing.errors import (
    AlreadyPremiumError,
    CodeAlreadyRedeemedError,
    CodeExpiredError,
    CodeNotFoundError,
    InvalidCodeFormatError,
)
from examprep.billing.redemption import SeasonPassCodeService
from examprep.core.errors import ErrorKind
from tests.billing.billing_fakes import BillingStore, FakeSessionFactory, install_fake_repos

UTC = timezone.utc
NOW = datetime(2026, 3, 10, 3, 0, tzinfo=UTC)
CODE = "RG-ABCDE-23456"


@pytest.fixture
def store(monkeypatch) -> BillingStore:
    install_fake_repos(monkeypatch)
    billing_store = BillingStore()
    billing_store.add_user(1)
    billing_store.add_user(2)
    billing_store.add_code(CODE)
    return billing_store


async def _redeem(store: BillingStore, *, user_id: int, raw_code: str = CODE, now_utc: datetime = NOW):
    async with FakeSessionFactory(store).begin() as session:
        return await SeasonPassCodeService.redeem(session, user_id=user_id, raw_code=raw_code, now_utc=now_utc)


def test_generated_codes_match_the_code_format() -> None:
    codes = generate_season_pass_codes(50)

    assert len(set(codes)) == 50
    assert all(is_valid_code_format(code) for code in codes)
    assert is_valid_code_format(generate_season_pass_code())


def test_code_format_rejects_ambiguous_characters_and_bad_layout() -> None:
    assert is_valid_code_format("RG-ABCDE-23456") is True
    assert is_valid_code_format("RG-ABCD0-23456") is False
    assert is_valid_code_format("RG-ABCDE-2345") is False
    assert is_valid_code_format("XX-ABCDE-23456") is False


def test_normalize_code_trims_and_uppercases() -> None:
    assert normalize_code("  rg-abcde-23456 ") == "RG-ABCDE-23456"


def test_activation_code_has_prefix_and_length() -> None:
    code = generate_activation_code()
    assert code.startswith("PV-")
    assert len(code) == 13


@pytest.mark.asyncio
async def test_redeem_activates_premium_and_marks_code(store) -> None:
    result = await _redeem(store, user_id=1, raw_code=" rg-abcde-23456 ")

    assert result.is_premium is True
    assert result.user_id == 1
    assert store.users[1].is_premium is True
    assert store.codes[CODE].is_redeemed is True
    assert store.codes[CODE].redeemed_by_user_id == 1
    assert store.subscriptions[1].payment_provider == "code_redemption"
    assert store.subscriptions[1].reference_number == CODE


@pytest.mark.asyncio
async def test_second_redemption_of_same_code_conflicts(store) -> None:
    await _redeem(store, user_id=1)

    with pytest.raises(CodeAlreadyRedeemedError) as exc_info:
        await _redeem(store, user_id=2)

    assert exc_info.value.kind == ErrorKind.CONFLICT
    assert store.users[2].is_premium is False
    assert 2 not in store.subscriptions


@pytest.mark.asyncio
async def test_redeem_rejects_malformed_code(store) -> None:
    with pytest.raises(InvalidCodeFormatError):
        await _redeem(store, user_id=1, raw_code="not-a-code")


@pytest.mark.asyncio
async def test_redeem_unknown_code_is_not_found(store) -> None:
    with pytest.raises(CodeNotFoundError):
        await _redeem(store, user_id=1, raw_code="RG-ZZZZZ-ZZZZZ")


@pytest.mark.asyncio
async def test_redeem_expired_code_conflicts(store) -> None:
    store.add_code("RG-EXPRD-22222", expires_at=NOW - timedelta(days=1))

    with pytest.raises(CodeExpiredError):
        await _redeem(store, user_id=1, raw_code="RG-EXPRD-22222")


@pytest.mark.asyncio
async def test_premium_user_cannot_burn_a_code(store) -> None:
    store.add_user(3, is_premium=True)

    with pytest.raises(AlreadyPremiumError):
        await _redeem(store, user_id=3)

    assert store.codes[CODE].is_redeemed is False


@pytest.mark.asyncio
async def test_verify_reports_reason_without_redeeming(store) -> None:
    async with FakeSessionFactory(store).begin() as session:
        valid = await SeasonPassCodeService.verify(session, raw_code=CODE, now_utc=NOW)
        malformed = await SeasonPassCodeService.verify(session, raw_code="RG-1", now_utc=NOW)

    assert valid.is_valid is True
    assert malformed.is_valid is False
    assert malformed.reason == "invalid_format"
    assert store.codes[CODE].is_redeemed is False
