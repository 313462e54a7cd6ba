from __future__ import annotations

from examprep.core.errors import ForbiddenByPolicyError

UPGRADE_HINT = "Upgrade to the Season Pass for unlimited access."


class QuotaExceededError(ForbiddenByPolicyError):
    def __init__(self, *, what: str, limit: int, period: str) -> None:
        self.limit = limit
        super().__init__(f"Free plan allows {limit} {what} per {period}. {UPGRADE_HINT}")


class CapabilityExceededError(ForbiddenByPolicyError):
    def __init__(self, *, what: str, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Your plan allows at most {limit} {what}. {UPGRADE_HINT}")
