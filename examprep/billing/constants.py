from __future__ import annotations

import re

SEASON_PASS_PLAN_NAME = "Season Pass"

CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
SEASON_PASS_CODE_PREFIX = "RG"
SEASON_PASS_CODE_GROUP_LENGTH = 5
SEASON_PASS_CODE_RE = re.compile(
    rf"^{SEASON_PASS_CODE_PREFIX}-[{CODE_ALPHABET}]{{{SEASON_PASS_CODE_GROUP_LENGTH}}}"
    rf"-[{CODE_ALPHABET}]{{{SEASON_PASS_CODE_GROUP_LENGTH}}}$"
)
CODE_GENERATION_MAX_COUNT = 1000

ACTIVATION_CODE_PREFIX = "PV"
ACTIVATION_CODE_LENGTH = 10

PROVIDER_CODE_REDEMPTION = "code_redemption"
PROVIDER_PAYMONGO = "paymongo"
PROVIDER_MANUAL = "manual_verification"
METHOD_SEASON_PASS_CODE = "season_pass_code"
DEFAULT_PAYMONGO_METHOD = "card"

PAYMONGO_PAID_EVENTS = frozenset({"payment.paid", "link.payment.paid"})
PAYMONGO_FAILED_EVENTS = frozenset({"payment.failed"})
PAYMONGO_SIGNATURE_TOLERANCE_SECONDS = 300

MANUAL_PAYMENT_METHODS = frozenset({"gcash", "maya", "bank_transfer"})
