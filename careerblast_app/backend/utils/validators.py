"""
Field-shape checks shared by signup and the recruiter application.

Each helper returns an error message, or None when the value is acceptable,
so callers can collect per-field errors instead of stopping at the first one.
"""
import re
from typing import Iterable, Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
LINKEDIN_PROFILE_PATTERN = re.compile(r"^https://(www\.)?linkedin\.com/in/[a-zA-Z0-9-]+/?$")
WEBSITE_PATTERN = re.compile(r"^https?://.+\..+")

PERSONAL_EMAIL_DOMAINS = frozenset({
    "gmail.com",
    "yahoo.com",
    "hotmail.com",
    "outlook.com",
    "aol.com",
    "icloud.com",
    "protonmail.com",
    "mail.com",
    "yandex.com",
    "zoho.com",
})


def check_required(value: Optional[str], label: str) -> Optional[str]:
    if value is None or not str(value).strip():
        return f"{label} is required"
    return None


def check_email(value: str) -> Optional[str]:
    if not EMAIL_PATTERN.match(value.strip()):
        return "Invalid email format"
    return None


def check_company_email(value: str) -> Optional[str]:
    error = check_email(value)
    if error:
        return error
    domain = value.strip().rsplit("@", 1)[-1].lower()
    if domain in PERSONAL_EMAIL_DOMAINS:
        return "Please use your company email address, not a personal email"
    return None


def check_linkedin_profile(value: str) -> Optional[str]:
    if not LINKEDIN_PROFILE_PATTERN.match(value.strip()):
        return "Invalid LinkedIn profile URL (e.g. https://linkedin.com/in/yourprofile)"
    return None


def check_website(value: str) -> Optional[str]:
    if not WEBSITE_PATTERN.match(value.strip()):
        return "Invalid website URL"
    return None


def check_choice(value: str, choices: Iterable[str], label: str) -> Optional[str]:
    choices = tuple(choices)
    if value not in choices:
        return f"{label} must be one of: {', '.join(choices)}"
    return None


def check_max_length(value: Optional[str], limit: int, label: str) -> Optional[str]:
    if value is not None and len(value) > limit:
        return f"{label} must be at most {limit} characters"
    return None
