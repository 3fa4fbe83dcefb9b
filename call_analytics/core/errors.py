"""Error taxonomy shared by the services and the HTTP layer.

Every error carries the HTTP status it maps to and a message that is safe to
return to external callers. Anything more detailed belongs in the logs.
"""

import enum
from typing import Optional


class AppError(Exception):
    status_code = 500
    default_message = "An unexpected error occurred"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class SignatureRejectReason(str, enum.Enum):
    MISSING_SIGNATURE = "missing_signature"
    INVALID_SIGNATURE_FORMAT = "invalid_signature_format"
    EXPIRED_SIGNATURE = "expired_signature"
    MISSING_SECRET = "missing_secret"
    INVALID_SIGNATURE = "invalid_signature"


_SIGNATURE_MESSAGES = {
    SignatureRejectReason.MISSING_SIGNATURE: "Missing signature header",
    SignatureRejectReason.INVALID_SIGNATURE_FORMAT: "Invalid signature format",
    SignatureRejectReason.EXPIRED_SIGNATURE: "Request expired",
    # A missing secret is a server problem; callers only learn the signature failed.
    SignatureRejectReason.MISSING_SECRET: "Invalid signature",
    SignatureRejectReason.INVALID_SIGNATURE: "Invalid signature",
}


class AuthenticationError(AppError):
    status_code = 400
    default_message = "Invalid signature"

    def __init__(self, reason: SignatureRejectReason) -> None:
        self.reason = reason
        super().__init__(_SIGNATURE_MESSAGES[reason])


class ValidationError(AppError):
    status_code = 400
    default_message = "Invalid data provided"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Record not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "A record with this value already exists"


class StorageError(AppError):
    status_code = 500
    default_message = "Database error occurred"


class TransientStorageError(StorageError):
    """Storage failure that is safe to retry: timeout, lost connection or write conflict."""

    def __init__(self, reason: str, message: Optional[str] = None) -> None:
        self.reason = reason
        super().__init__(message)
