import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials, OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from .. import schemas
from ..config.settings import get_settings
from ..exceptions import CareerBlastError
from ..models.db import user as user_model, crud
from ..models.db.database import get_db
from ..security import create_access_token, decode_token
from ..services import auth_service, email_service, otp_service
from ..utils.api_helpers import check_resource_exists, handle_service_error

logger = logging.getLogger(__name__)
router = APIRouter()
settings = get_settings()

# Missing credentials are answered with 401 by get_current_user, not 403
oauth2_scheme = HTTPBearer(scheme_name="Bearer", auto_error=False)


def _auth_response(user: user_model.User) -> schemas.AuthResponse:
    return schemas.AuthResponse(
        access_token=create_access_token(data={"sub": user.email}),
        user=schemas.User.model_validate(user),
        onboarding=auth_service.onboarding_for(user),
    )


@router.post("/signup", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def signup(data: schemas.UserSignup, db: Session = Depends(get_db)):
    """
    Create a candidate or employer account and sign it in.

    Employers start with a pending approval; the onboarding block tells the
    client to continue with the recruiter application.
    """
    try:
        user = auth_service.register_user(db, data)
    except CareerBlastError as e:
        raise handle_service_error(e, "Signup")

    try:
        otp_service.issue_code(db, user, user.email)
    except CareerBlastError as e:
        # The account exists; the user can ask for another code
        logger.warning("Signup verification code not sent to %s: %s", user.email, e.message)
    return _auth_response(user)


@router.post("/login", response_model=schemas.AuthResponse)
def login(db: Session = Depends(get_db), form_data: OAuth2PasswordRequestForm = Depends()):
    try:
        user = auth_service.authenticate(db, form_data.username, form_data.password)
    except CareerBlastError as e:
        raise handle_service_error(e, "Authentication")
    return _auth_response(user)


def get_current_user(
    db: Session = Depends(get_db),
    credentials: HTTPAuthorizationCredentials = Depends(oauth2_scheme),
) -> user_model.User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    if credentials is None:
        raise credentials_exception
    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise credentials_exception
    token_data = schemas.TokenData(email=payload["sub"])
    user = crud.get_user_by_email(db, email=token_data.email)
    if user is None:
        raise credentials_exception
    return user


def get_current_active_user(current_user: user_model.User = Depends(get_current_user)) -> user_model.User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user


def require_admin(current_user: user_model.User = Depends(get_current_active_user)) -> user_model.User:
    if not current_user.has_role(user_model.UserRole.ADMIN):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


def require_employer(current_user: user_model.User = Depends(get_current_active_user)) -> user_model.User:
    if not current_user.has_role(user_model.UserRole.EMPLOYER):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Employer access required")
    return current_user


def require_approved_employer(current_user: user_model.User = Depends(require_employer)) -> user_model.User:
    if not current_user.is_approved:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "message": "Your recruiter account is awaiting approval",
                "approval_status": current_user.approval_status,
                "redirect_to": "/recruiter/apply",
            },
        )
    return current_user


@router.get("/me", response_model=schemas.User)
def read_me(current_user: user_model.User = Depends(get_current_active_user)):
    return current_user


@router.get("/me/onboarding", response_model=schemas.Onboarding)
def read_onboarding(current_user: user_model.User = Depends(get_current_active_user)):
    return auth_service.onboarding_for(current_user)


# =============================================================================
# EMAIL VERIFICATION
# =============================================================================

def _user_for_verification(db: Session, email: str) -> user_model.User:
    user = crud.get_user_by_email(db, email=email)
    check_resource_exists(user, "User")
    return user


@router.post("/send-otp", response_model=schemas.OTPSentResponse)
def send_otp(request: schemas.OTPRequest, db: Session = Depends(get_db)):
    user = _user_for_verification(db, request.email)
    if user.is_email_verified:
        raise HTTPException(status_code=400, detail="Email is already verified")
    try:
        expires_at = otp_service.issue_code(db, user, user.email)
    except CareerBlastError as e:
        raise handle_service_error(e, "Email verification")
    return schemas.OTPSentResponse(expires_at=expires_at)


@router.post("/resend-otp", response_model=schemas.OTPSentResponse)
def resend_otp(request: schemas.OTPRequest, db: Session = Depends(get_db)):
    """Same as send-otp; rate limited per address."""
    return send_otp(request, db)


@router.post("/verify-otp", response_model=schemas.OTPVerifyResponse)
def verify_otp(request: schemas.OTPVerifyRequest, db: Session = Depends(get_db)):
    user = _user_for_verification(db, request.email)
    try:
        verified = otp_service.verify_code(db, user, request.otp)
    except CareerBlastError as e:
        raise handle_service_error(e, "Email verification")
    return schemas.OTPVerifyResponse(
        success=verified,
        is_email_verified=user.is_email_verified,
        attempts_remaining=otp_service.attempts_remaining(user),
    )


@router.get("/verification-status", response_model=schemas.VerificationStatus)
def verification_status(email: str, db: Session = Depends(get_db)):
    user = _user_for_verification(db, email)
    return schemas.VerificationStatus(
        email=user.email,
        is_email_verified=user.is_email_verified,
        email_verified_at=user.email_verified_at,
        expires_at=user.email_verification_expires,
        attempts_remaining=otp_service.attempts_remaining(user),
    )


# =============================================================================
# PASSWORD RESET
# =============================================================================

@router.post("/forgot-password")
def forgot_password(request: schemas.ForgotPasswordRequest, db: Session = Depends(get_db)):
    """
    Send password reset email to user.
    Always returns success to avoid revealing if email exists.
    """
    token = auth_service.start_password_reset(db, request.email)
    if token is not None:
        sent = email_service.send_password_reset(
            request.email, token, settings.password_reset_expire_minutes
        )
        if not sent:
            raise HTTPException(
                status_code=500,
                detail="Failed to send reset email. Please try again later."
            )

    return {"message": "If the email exists, a password reset link has been sent."}


@router.post("/reset-password")
def reset_password(request: schemas.ResetPasswordRequest, db: Session = Depends(get_db)):
    try:
        auth_service.reset_password(db, request.email, request.token, request.new_password)
    except CareerBlastError as e:
        raise handle_service_error(e, "Password reset")
    return {"message": "Password has been reset successfully."}
