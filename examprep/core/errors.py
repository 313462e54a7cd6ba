from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    FORBIDDEN_BY_POLICY = "forbidden_by_policy"
    FORBIDDEN = "forbidden"
    UNAUTHENTICATED = "unauthenticated"
    INTERNAL = "internal"


class DomainError(Exception):
    """Base for every error the HTTP layer knows how to translate.

    Subclasses pin ``kind`` and a default ``message``; callers may pass a more
    specific message and per-field errors.
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    message: str = "Internal error"

    def __init__(
        self,
        message: str | None = None,
        *,
        field_errors: dict[str, str] | None = None,
    ) -> None:
        if message is not None:
            self.message = message
        self.field_errors = field_errors
        super().__init__(self.message)


class ValidationError(DomainError):
    kind = ErrorKind.VALIDATION
    message = "Invalid request"


class NotFoundError(DomainError):
    kind = ErrorKind.NOT_FOUND
    message = "Not found"


class ConflictError(DomainError):
    kind = ErrorKind.CONFLICT
    message = "Conflict"


class ForbiddenByPolicyError(DomainError):
    kind = ErrorKind.FORBIDDEN_BY_POLICY
    message = "Not allowed by your current plan"


class UnauthenticatedError(DomainError):
    kind = ErrorKind.UNAUTHENTICATED
    message = "Not authenticated"


class ForbiddenError(DomainError):
    kind = ErrorKind.FORBIDDEN
    message = "Not allowed"
