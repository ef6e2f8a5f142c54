"""
Errors raised by the API client, one per failure class the UI treats differently.
"""
from typing import Dict, Optional


class ClientError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NetworkError(ClientError):
    """The server could not be reached (after retries, for reads)."""


class ValidationFailed(ClientError):
    """Per-field problems to show inline next to the form fields."""

    def __init__(self, message: str, errors: Dict[str, str]):
        super().__init__(message, 422)
        self.errors = errors


class UnauthorizedError(ClientError):
    pass


class PermissionDeniedError(ClientError):
    def __init__(self, message: str, redirect_to: Optional[str] = None):
        super().__init__(message, 403)
        self.redirect_to = redirect_to


class NotFoundError(ClientError):
    pass


class ConflictError(ClientError):
    pass


class AccountLockedError(ClientError):
    pass


class RateLimitedError(ClientError):
    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message, 429)
        self.retry_after = retry_after


class ServerError(ClientError):
    pass


class ReconciliationRequiredError(ServerError):
    """An approve/reject did not land consistently; an operator must reconcile."""

    def __init__(self, message: str, application_id: Optional[int] = None):
        super().__init__(message, 500)
        self.application_id = application_id
