"""
Multi-step signup: details -> e-mail verification -> outcome.

Candidates finish in a complete state. Employers finish pending approval with
next steps and no employer affordances until an admin approves them.
"""
import logging
from typing import Any, Dict, List, Optional

from ..backend.utils import validators
from . import errors
from .api_client import CareerBlastClient
from .routes import employer_affordances

logger = logging.getLogger(__name__)

DETAILS = "details"
VERIFY_EMAIL = "verify_email"
OUTCOME = "outcome"

MIN_PASSWORD_LENGTH = 8


def validate_details(form: Dict[str, Any]) -> Dict[str, str]:
    """Inline checks run before anything is sent."""
    found: Dict[str, str] = {}
    for field, label in (("first_name", "First name"), ("last_name", "Last name"), ("email", "Email")):
        error = validators.check_required(form.get(field), label)
        if error:
            found[field] = error
    if "email" not in found:
        error = validators.check_email(form["email"])
        if error:
            found["email"] = error
    if len(form.get("password") or "") < MIN_PASSWORD_LENGTH:
        found["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters"

    if form.get("role") == "employer":
        for field, label in (("company_name", "Company name"), ("job_title", "Job title"),
                             ("linkedin_profile", "LinkedIn profile")):
            error = validators.check_required(form.get(field), label)
            if error:
                found[field] = error
        if "linkedin_profile" not in found:
            error = validators.check_linkedin_profile(form["linkedin_profile"])
            if error:
                found["linkedin_profile"] = error
        if "email" not in found:
            error = validators.check_company_email(form["email"])
            if error:
                found["email"] = error
    return found


class SignupFlow:
    def __init__(self, client: CareerBlastClient):
        self.client = client
        self.step = DETAILS
        self.errors: Dict[str, str] = {}
        self.email: Optional[str] = None
        self.onboarding: Optional[Dict[str, Any]] = None
        self.attempts_remaining: Optional[int] = None

    def submit_details(self, form: Dict[str, Any]) -> bool:
        self.errors = validate_details(form)
        if self.errors:
            return False
        try:
            result = self.client.signup(form)
        except errors.ValidationFailed as e:
            self.errors = e.errors or {"form": e.message}
            return False
        except errors.ConflictError as e:
            self.errors = {"email": e.message}
            return False
        except errors.ClientError as e:
            self.errors = {"form": e.message}
            return False

        self.email = result["user"]["email"]
        self.onboarding = result["onboarding"]
        self.step = VERIFY_EMAIL
        return True

    def verify(self, code: str) -> bool:
        if self.step != VERIFY_EMAIL:
            return False
        try:
            result = self.client.verify_otp(self.email, code)
        except errors.ClientError as e:
            self.errors = {"otp": e.message}
            return False

        self.attempts_remaining = result["attempts_remaining"]
        if not result["success"]:
            self.errors = {"otp": f"Incorrect code. {self.attempts_remaining} attempts remaining."}
            return False
        self.errors = {}
        self.step = OUTCOME
        return True

    def resend_code(self) -> bool:
        try:
            self.client.send_otp(self.email)
        except errors.ClientError as e:
            self.errors = {"otp": e.message}
            return False
        self.errors = {}
        self.attempts_remaining = None
        return True

    # outcome

    @property
    def is_pending_approval(self) -> bool:
        return bool(self.onboarding) and self.onboarding["state"] == "pending_approval"

    @property
    def redirect_to(self) -> Optional[str]:
        return self.onboarding["redirect_to"] if self.onboarding else None

    @property
    def next_steps(self) -> List[str]:
        return list(self.onboarding.get("next_steps", [])) if self.onboarding else []

    @property
    def features(self) -> List[str]:
        return employer_affordances(self.client.session.user)
