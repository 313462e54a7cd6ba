from __future__ import annotations

from examprep.core.errors import ConflictError


class StreakRepairNotAllowedError(ConflictError):
    message = "Streak can be repaired only after missing a single day, once every 30 days"
