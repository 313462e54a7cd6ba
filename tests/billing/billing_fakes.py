from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from copy import copy
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from itertools import count
from types import SimpleNamespace

from examprep.billing import activation, payments, redemption, verification


@dataclass
class BillingStore:
    """Committed rows; sessions see copies and write back on commit."""

    users: dict[int, SimpleNamespace] = field(default_factory=dict)
    subscriptions: dict[int, SimpleNamespace] = field(default_factory=dict)
    codes: dict[str, SimpleNamespace] = field(default_factory=dict)
    verifications: dict[int, SimpleNamespace] = field(default_factory=dict)
    ids: count = field(default_factory=lambda: count(1))

    def add_user(self, user_id: int, *, is_premium: bool = False, premium_expiry: datetime | None = None) -> None:
        self.users[user_id] = SimpleNamespace(
            id=user_id,
            is_premium=is_premium,
            premium_expiry=premium_expiry,
            updated_at=None,
        )

    def add_code(self, code: str, *, expires_at: datetime | None = None) -> None:
        self.codes[code] = SimpleNamespace(
            id=next(self.ids),
            code=code,
            is_redeemed=False,
            redeemed_by_user_id=None,
            redeemed_at=None,
            batch_id="BATCH-TEST",
            expires_at=expires_at,
        )


class FakeSession:
    def __init__(self, store: BillingStore) -> None:
        self.store = store
        self.pending: list[Callable[[], None]] = []

    def stage(self, apply: Callable[[], None]) -> None:
        self.pending.append(apply)

    async def flush(self) -> None:
        return None


class FakeSessionFactory:
    def __init__(self, store: BillingStore) -> None:
        self.store = store

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[FakeSession]:
        session = FakeSession(self.store)
        yield session
        # only reached without an exception: commit
        for apply in session.pending:
            apply()


class FakeUsersRepo:
    @staticmethod
    async def get_by_id(session: FakeSession, user_id: int):
        user = session.store.users.get(user_id)
        return copy(user) if user is not None else None

    @staticmethod
    async def get_by_id_for_update(session: FakeSession, user_id: int):
        return await FakeUsersRepo.get_by_id(session, user_id)

    @staticmethod
    async def set_premium(session: FakeSession, *, user, premium_expiry, now_utc):
        user.is_premium = True
        user.premium_expiry = premium_expiry
        user.updated_at = now_utc
        committed = copy(user)
        session.stage(lambda: session.store.users.__setitem__(committed.id, committed))
        return user


class FakeSubscriptionsRepo:
    @staticmethod
    async def get_by_user_id(session: FakeSession, user_id: int):
        return session.store.subscriptions.get(user_id)

    @staticmethod
    async def get_by_reference_number(session: FakeSession, reference_number: str):
        for subscription in session.store.subscriptions.values():
            if subscription.reference_number == reference_number:
                return subscription
        return None

    @staticmethod
    async def upsert_active(
        session: FakeSession,
        *,
        user_id: int,
        plan_name: str,
        plan_price: Decimal,
        amount_paid: Decimal,
        payment_method: str,
        payment_provider: str,
        transaction_id: str | None,
        reference_number: str | None,
        expires_at: datetime | None,
        now_utc: datetime,
    ):
        existing = session.store.subscriptions.get(user_id)
        subscription = SimpleNamespace(
            id=existing.id if existing is not None else next(session.store.ids),
            user_id=user_id,
            plan_name=plan_name,
            plan_price=plan_price,
            amount_paid=amount_paid,
            payment_method=payment_method,
            payment_provider=payment_provider,
            transaction_id=transaction_id,
            reference_number=reference_number,
            status="active",
            purchase_date=now_utc,
            expires_at=expires_at,
        )
        session.stage(lambda: session.store.subscriptions.__setitem__(user_id, subscription))
        return subscription


class FakeSeasonPassCodesRepo:
    @staticmethod
    async def get_by_code(session: FakeSession, code: str):
        row = session.store.codes.get(code)
        return copy(row) if row is not None else None

    @staticmethod
    async def get_by_code_for_update(session: FakeSession, code: str):
        return await FakeSeasonPassCodesRepo.get_by_code(session, code)

    @staticmethod
    async def mark_redeemed(session: FakeSession, *, code, user_id: int, now_utc: datetime):
        code.is_redeemed = True
        code.redeemed_by_user_id = user_id
        code.redeemed_at = now_utc
        committed = copy(code)
        session.stage(lambda: session.store.codes.__setitem__(committed.code, committed))
        return code


class FakePaymentVerificationsRepo:
    @staticmethod
    async def create(session: FakeSession, *, verification):
        verification.id = next(session.store.ids)
        session.stage(lambda: session.store.verifications.__setitem__(verification.id, verification))
        return verification

    @staticmethod
    async def get_by_id_for_update(session: FakeSession, verification_id: int):
        row = session.store.verifications.get(verification_id)
        if row is None:
            return None
        working = copy(row)
        session.stage(lambda: session.store.verifications.__setitem__(working.id, working))
        return working

    @staticmethod
    async def get_by_user_and_reference(session: FakeSession, *, user_id: int, reference_number: str):
        for row in session.store.verifications.values():
            if row.user_id == user_id and row.reference_number == reference_number:
                return row
        return None

    @staticmethod
    async def activation_code_exists(session: FakeSession, activation_code: str) -> bool:
        return any(row.activation_code == activation_code for row in session.store.verifications.values())


def install_fake_repos(monkeypatch) -> None:
    monkeypatch.setattr(activation, "UsersRepo", FakeUsersRepo)
    monkeypatch.setattr(activation, "SubscriptionsRepo", FakeSubscriptionsRepo)
    monkeypatch.setattr(redemption, "SeasonPassCodesRepo", FakeSeasonPassCodesRepo)
    monkeypatch.setattr(redemption, "SubscriptionsRepo", FakeSubscriptionsRepo)
    monkeypatch.setattr(payments, "SubscriptionsRepo", FakeSubscriptionsRepo)
    monkeypatch.setattr(payments, "UsersRepo", FakeUsersRepo)
    monkeypatch.setattr(verification, "PaymentVerificationsRepo", FakePaymentVerificationsRepo)
    monkeypatch.setattr(verification, "SubscriptionsRepo", FakeSubscriptionsRepo)
