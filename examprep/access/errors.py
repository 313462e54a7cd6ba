from __future__ import annotations

from examprep.core.errors import NotFoundError


class UserNotFoundError(NotFoundError):
    message = "User not found"
