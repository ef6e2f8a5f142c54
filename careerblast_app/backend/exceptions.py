"""
Domain exceptions raised by the service layer.

API modules translate these into HTTP responses through
``utils.api_helpers.handle_service_error``.
"""
from datetime import datetime
from typing import Dict, Optional


class CareerBlastError(Exception):
    """Base class for all service-layer errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CareerBlastError):
    """One or more fields failed validation. ``errors`` maps field name to message."""

    def __init__(self, errors: Dict[str, str], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = errors


class ConflictError(CareerBlastError):
    """The request conflicts with the current state of a record."""


class NotFoundError(CareerBlastError):
    pass


class PermissionDeniedError(CareerBlastError):
    def __init__(self, message: str, redirect_to: Optional[str] = None):
        super().__init__(message)
        self.redirect_to = redirect_to


class InvalidCredentialsError(CareerBlastError):
    def __init__(self, message: str = "Incorrect email or password"):
        super().__init__(message)


class AccountLockedError(CareerBlastError):
    def __init__(self, lock_until: datetime):
        super().__init__("Account is temporarily locked due to too many failed login attempts")
        self.lock_until = lock_until


class RateLimitedError(CareerBlastError):
    def __init__(self, message: str, retry_after: int):
        super().__init__(message)
        self.retry_after = retry_after


class OTPExpiredError(CareerBlastError):
    def __init__(self, message: str = "Verification code has expired. Please request a new one."):
        super().__init__(message)


class OTPLockedError(CareerBlastError):
    def __init__(self, message: str = "Too many incorrect attempts. Please request a new code."):
        super().__init__(message)


class StorageError(CareerBlastError):
    """The object storage collaborator failed."""


class ApprovalSyncError(CareerBlastError):
    """
    An approve/reject could not be committed for both the application and its user.

    The transaction is rolled back, but operators are expected to check the record
    (and run reconciliation) before retrying.
    """

    def __init__(self, application_id: int, message: str = "Approval could not be recorded consistently"):
        super().__init__(message)
        self.application_id = application_id


class DeliveryError(CareerBlastError):
    """An e-mail could not be handed to the mail server."""
