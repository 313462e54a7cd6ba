from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from types import SimpleNamespace

import pytest

from examprep.billing.errors import (
    AlreadyPremiumError,
    InvalidVerificationError,
    VerificationAlreadyDecidedError,
    VerificationNotFoundError,
)
from examprep.billing.types import VerificationSubmission
from examprep.billing.verification import PaymentVerificationService
from tests.billing.billing_fakes import BillingStore, FakeSessionFactory, install_fake_repos

UTC = timezone.utc
NOW = datetime(2026, 3, 10, 3, 0, tzinfo=UTC)
ADMIN_ID = 99


@pytest.fixture
def store(monkeypatch) -> BillingStore:
    install_fake_repos(monkeypatch)
    billing_store = BillingStore()
    billing_store.add_user(1)
    billing_store.add_user(ADMIN_ID)
    billing_store.verifications[500] = SimpleNamespace(
        id=500,
        user_id=1,
        amount=Decimal("399.00"),
        payment_method="gcash",
        reference_number="GC-0001",
        status="pending",
        verified_by_user_id=None,
        verified_at=None,
        rejection_reason=None,
        activation_code="PV-ABCDEFGHJK",
    )
    return billing_store


def _submission(**overrides) -> VerificationSubmission:
    values = {
        "amount": Decimal("399.00"),
        "payment_method": "gcash",
        "reference_number": "GC-0002",
    }
    values.update(overrides)
    return VerificationSubmission(**values)


async def _approve(store: BillingStore, verification_id: int = 500):
    async with FakeSessionFactory(store).begin() as session:
        return await PaymentVerificationService.approve(
            session,
            verification_id=verification_id,
            admin_user_id=ADMIN_ID,
            now_utc=NOW,
        )


async def _reject(store: BillingStore, reason: str = "Reference not found in GCash history"):
    async with FakeSessionFactory(store).begin() as session:
        return await PaymentVerificationService.reject(
            session,
            verification_id=500,
            admin_user_id=ADMIN_ID,
            reason=reason,
            now_utc=NOW,
        )


@pytest.mark.asyncio
async def test_approve_activates_premium_and_records_reviewer(store) -> None:
    result = await _approve(store)

    assert result.is_premium is True
    assert store.users[1].is_premium is True
    assert store.subscriptions[1].payment_provider == "manual_verification"
    assert store.subscriptions[1].reference_number == "GC-0001"
    assert store.verifications[500].status == "approved"
    assert store.verifications[500].verified_by_user_id == ADMIN_ID


@pytest.mark.asyncio
async def test_verification_can_be_approved_only_once(store) -> None:
    await _approve(store)

    with pytest.raises(VerificationAlreadyDecidedError):
        await _approve(store)
    with pytest.raises(VerificationAlreadyDecidedError):
        await _reject(store)


@pytest.mark.asyncio
async def test_rejected_verification_cannot_be_approved(store) -> None:
    await _reject(store)

    assert store.verifications[500].status == "rejected"
    assert store.verifications[500].rejection_reason == "Reference not found in GCash history"
    with pytest.raises(VerificationAlreadyDecidedError):
        await _approve(store)
    assert store.users[1].is_premium is False


@pytest.mark.asyncio
async def test_reject_requires_reason(store) -> None:
    with pytest.raises(InvalidVerificationError):
        await _reject(store, reason="   ")
    assert store.verifications[500].status == "pending"


@pytest.mark.asyncio
async def test_unknown_verification_is_not_found(store) -> None:
    with pytest.raises(VerificationNotFoundError):
        await _approve(store, verification_id=12345)


@pytest.mark.asyncio
async def test_submit_is_idempotent_per_reference(store) -> None:
    async with FakeSessionFactory(store).begin() as session:
        first = await PaymentVerificationService.submit(session, user_id=1, submission=_submission(), now_utc=NOW)
    async with FakeSessionFactory(store).begin() as session:
        second = await PaymentVerificationService.submit(
            session,
            user_id=1,
            submission=_submission(reference_number=" GC-0002 "),
            now_utc=NOW,
        )

    assert second is first
    assert first.status == "pending"
    assert first.activation_code.startswith("PV-")
    assert len(store.verifications) == 2


@pytest.mark.asyncio
async def test_submit_validates_fields(store) -> None:
    with pytest.raises(InvalidVerificationError) as exc_info:
        async with FakeSessionFactory(store).begin() as session:
            await PaymentVerificationService.submit(
                session,
                user_id=1,
                submission=_submission(amount=Decimal("0"), payment_method="cash", reference_number=""),
                now_utc=NOW,
            )

    assert set(exc_info.value.field_errors) == {"amount", "paymentMethod", "referenceNumber"}


@pytest.mark.asyncio
async def test_premium_user_cannot_submit_new_proof(store) -> None:
    store.add_user(2, is_premium=True)

    with pytest.raises(AlreadyPremiumError):
        async with FakeSessionFactory(store).begin() as session:
            await PaymentVerificationService.submit(session, user_id=2, submission=_submission(), now_utc=NOW)
