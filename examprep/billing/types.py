from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum


class VerificationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True, slots=True)
class PremiumGrant:
    """Payment details recorded on the subscription when premium is activated."""

    payment_method: str
    payment_provider: str
    amount_paid: Decimal
    transaction_id: str | None = None
    reference_number: str | None = None
    expires_at: datetime | None = None


@dataclass(slots=True)
class ActivationResult:
    user_id: int
    subscription_id: int
    plan_name: str
    is_premium: bool
    premium_expiry: datetime | None
    activated_at: datetime


@dataclass(slots=True)
class CodeValidity:
    code: str
    is_valid: bool
    reason: str | None
    expires_at: datetime | None


@dataclass(slots=True)
class GeneratedCodes:
    batch_id: str
    codes: list[str]
    expires_at: datetime | None


@dataclass(slots=True)
class BatchStats:
    batch_id: str
    total: int
    redeemed: int
    unredeemed: int
    redeemed_percentage: float


@dataclass(frozen=True, slots=True)
class PaymentEvent:
    event_type: str
    payment_id: str | None
    user_id: int | None
    reference_number: str | None
    amount: Decimal
    payment_method: str


@dataclass(slots=True)
class WebhookOutcome:
    event_type: str
    status: str
    user_id: int | None = None
    reference_number: str | None = None


@dataclass(slots=True)
class PaymentStatus:
    reference_number: str
    status: str
    is_premium: bool
    plan_name: str | None = None
    activated_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class VerificationSubmission:
    amount: Decimal
    payment_method: str
    reference_number: str
    proof_image_url: str | None = None
    gcash_number: str | None = None


@dataclass(slots=True)
class VerificationStats:
    pending: int
    approved: int
    rejected: int
    total: int
    approved_amount_total: Decimal
