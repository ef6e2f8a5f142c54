"""
Common API utilities shared by the routers.
"""
import logging
from typing import Optional

from fastapi import HTTPException, status

from ..exceptions import (
    AccountLockedError,
    ApprovalSyncError,
    CareerBlastError,
    ConflictError,
    DeliveryError,
    InvalidCredentialsError,
    NotFoundError,
    OTPExpiredError,
    OTPLockedError,
    PermissionDeniedError,
    RateLimitedError,
    StorageError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def handle_service_error(error: Exception, service_name: str) -> HTTPException:
    """
    Standardized error handling for service layer exceptions.

    Args:
        error: The exception that occurred
        service_name: Name of the service for logging/error messages

    Returns:
        HTTPException with appropriate status code and message
    """
    if isinstance(error, ValidationError):
        return HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"message": error.message, "errors": error.errors},
        )
    if isinstance(error, ConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=error.message)
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=error.message)
    if isinstance(error, PermissionDeniedError):
        detail = error.message
        if error.redirect_to:
            detail = {"message": error.message, "redirect_to": error.redirect_to}
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)
    if isinstance(error, InvalidCredentialsError):
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    if isinstance(error, AccountLockedError):
        return HTTPException(
            status_code=status.HTTP_423_LOCKED,
            detail={"message": error.message, "lock_until": error.lock_until.isoformat()},
        )
    if isinstance(error, RateLimitedError):
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=error.message,
            headers={"Retry-After": str(error.retry_after)},
        )
    if isinstance(error, (OTPExpiredError, OTPLockedError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)

    if isinstance(error, ApprovalSyncError):
        logger.error("%s: approval sync failed for application %s", service_name, error.application_id)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": error.message,
                "code": "approval_sync_failed",
                "needs_reconciliation": True,
                "application_id": error.application_id,
            },
        )
    if isinstance(error, (StorageError, DeliveryError)):
        logger.error("%s service error: %s", service_name, error.message)
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{service_name} service is currently unavailable",
        )
    if isinstance(error, CareerBlastError):
        logger.error("%s service error: %s", service_name, error.message)
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=error.message)

    logger.exception("%s service error: %s", service_name, error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"An unexpected error occurred in {service_name}",
    )


def check_resource_exists(resource: Optional[object], resource_type: str) -> None:
    """
    Raise a 404 if ``resource`` is None.

    Args:
        resource: The resource to check
        resource_type: Type of resource for error message
    """
    if resource is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource_type} not found"
        )
