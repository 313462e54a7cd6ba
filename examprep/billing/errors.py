from __future__ import annotations

from examprep.core.errors import ConflictError, NotFoundError, UnauthenticatedError, ValidationError


class InvalidCodeFormatError(ValidationError):
    message = "Code must look like RG-XXXXX-XXXXX"


class CodeNotFoundError(NotFoundError):
    message = "Season pass code not found"


class CodeAlreadyRedeemedError(ConflictError):
    message = "Season pass code has already been redeemed"


class CodeExpiredError(ConflictError):
    message = "Season pass code has expired"


class AlreadyPremiumError(ConflictError):
    message = "You already have an active Season Pass"


class InvalidCodeBatchError(ValidationError):
    pass


class InvalidWebhookSignatureError(UnauthenticatedError):
    message = "Invalid webhook signature"


class InvalidWebhookPayloadError(ValidationError):
    message = "Webhook payload is missing required fields"


class VerificationNotFoundError(NotFoundError):
    message = "Payment verification not found"


class VerificationAlreadyDecidedError(ConflictError):
    message = "Payment verification has already been decided"


class InvalidVerificationError(ValidationError):
    pass
