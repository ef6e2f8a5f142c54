"""
HTTP client for the CareerBlast API.

Every call carries a timeout. Reads go through a session with a small bounded
retry on connection failures and gateway errors; writes use a session that
never retries, since approve/reject and signup have side effects.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from . import errors
from .session import AuthSession

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10
READ_RETRY_STATUSES = (502, 503, 504)


def build_read_retry(total: int = 3, backoff_factor: float = 0.3) -> Retry:
    return Retry(
        total=total,
        connect=total,
        read=total,
        status=total,
        backoff_factor=backoff_factor,
        status_forcelist=READ_RETRY_STATUSES,
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )


def _http_session(retry) -> requests.Session:
    http = requests.Session()
    adapter = HTTPAdapter(max_retries=retry)
    http.mount("http://", adapter)
    http.mount("https://", adapter)
    return http


def _field_errors(detail) -> Dict[str, str]:
    """Normalise both our ``{"errors": {...}}`` bodies and FastAPI's request-validation list."""
    if isinstance(detail, dict):
        return dict(detail.get("errors") or {})
    if isinstance(detail, list):
        found = {}
        for item in detail:
            location = item.get("loc") or ["body"]
            found[str(location[-1])] = item.get("msg", "Invalid value")
        return found
    return {}


def _message(detail, default: str) -> str:
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict) and detail.get("message"):
        return detail["message"]
    return default


class CareerBlastClient:
    def __init__(self, base_url: str, session: AuthSession, timeout: float = DEFAULT_TIMEOUT,
                 read_retries: int = 3, backoff_factor: float = 0.3):
        self.base_url = base_url.rstrip("/")
        self.session = session
        self.timeout = timeout
        self.read_retry = build_read_retry(read_retries, backoff_factor)
        self._read_http = _http_session(self.read_retry)
        self._write_http = _http_session(Retry(total=0, raise_on_status=False))

    # -------------------------------------------------------------------------
    # transport
    # -------------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> Any:
        http = self._read_http if method == "GET" else self._write_http
        url = f"{self.base_url}{path}"
        try:
            response = http.request(method, url, headers=self.session.auth_headers(),
                                    timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise errors.NetworkError("Could not reach the server. Please try again.") from e

        if response.status_code >= 400:
            self._raise_for_status(response)
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _raise_for_status(self, response: requests.Response) -> None:
        code = response.status_code
        try:
            body = response.json()
            detail = body.get("detail") if isinstance(body, dict) else body
        except ValueError:
            detail = response.text

        if code == 401:
            self.session.logout()
            raise errors.UnauthorizedError(_message(detail, "Please sign in again"), code)
        if code == 403:
            redirect_to = detail.get("redirect_to") if isinstance(detail, dict) else None
            raise errors.PermissionDeniedError(_message(detail, "Access denied"), redirect_to)
        if code == 404:
            raise errors.NotFoundError(_message(detail, "Not found"), code)
        if code == 409:
            raise errors.ConflictError(_message(detail, "Conflict"), code)
        if code == 422:
            raise errors.ValidationFailed(_message(detail, "Validation failed"), _field_errors(detail))
        if code == 423:
            raise errors.AccountLockedError(_message(detail, "Account is locked"), code)
        if code == 429:
            retry_after = response.headers.get("Retry-After")
            raise errors.RateLimitedError(_message(detail, "Too many requests"),
                                          int(retry_after) if retry_after else None)
        if code >= 500:
            if isinstance(detail, dict) and detail.get("code") == "approval_sync_failed":
                logger.error("Approval for application %s needs reconciliation", detail.get("application_id"))
                raise errors.ReconciliationRequiredError(_message(detail, "Needs reconciliation"),
                                                         detail.get("application_id"))
            raise errors.ServerError(_message(detail, "Server error"), code)
        raise errors.ClientError(_message(detail, "Request failed"), code)

    # -------------------------------------------------------------------------
    # auth
    # -------------------------------------------------------------------------

    def signup(self, user_data: Dict[str, Any]) -> Dict[str, Any]:
        result = self._request("POST", "/api/auth/signup", json=user_data)
        self.session.login(result["access_token"], result["user"])
        return result

    def login(self, email: str, password: str) -> Dict[str, Any]:
        result = self._request("POST", "/api/auth/login", data={"username": email, "password": password})
        self.session.login(result["access_token"], result["user"])
        return result

    def logout(self) -> None:
        self.session.logout()

    def me(self) -> Dict[str, Any]:
        user = self._request("GET", "/api/auth/me")
        self.session.update_user(user)
        return user

    def send_otp(self, email: str) -> Dict[str, Any]:
        return self._request("POST", "/api/auth/send-otp", json={"email": email})

    def verify_otp(self, email: str, code: str) -> Dict[str, Any]:
        return self._request("POST", "/api/auth/verify-otp", json={"email": email, "otp": code})

    # -------------------------------------------------------------------------
    # recruiter application
    # -------------------------------------------------------------------------

    def submit_application(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/recruiter/application", json=data)

    def my_application(self) -> Dict[str, Any]:
        return self._request("GET", "/api/recruiter/application")

    # -------------------------------------------------------------------------
    # admin review
    # -------------------------------------------------------------------------

    def list_applications(self, status: str = "all") -> Tuple[int, List[Dict[str, Any]]]:
        result = self._request("GET", "/api/admin/recruiters", params={"status": status})
        return result["total"], result["applications"]

    def get_application(self, application_id: int) -> Dict[str, Any]:
        return self._request("GET", f"/api/admin/recruiters/{application_id}")

    def recruiter_stats(self) -> Dict[str, Any]:
        return self._request("GET", "/api/admin/recruiters/stats")

    def set_under_review(self, application_id: int) -> Dict[str, Any]:
        return self._request("POST", f"/api/admin/recruiters/{application_id}/under-review")

    def approve(self, application_id: int, notes: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", f"/api/admin/recruiters/{application_id}/approve", json={"notes": notes})

    def reject(self, application_id: int, reason: str) -> Dict[str, Any]:
        return self._request("POST", f"/api/admin/recruiters/{application_id}/reject", json={"reason": reason})

    def reconcile(self) -> Dict[str, Any]:
        return self._request("POST", "/api/admin/recruiters/reconcile")

    # -------------------------------------------------------------------------
    # jobs
    # -------------------------------------------------------------------------

    def post_job(self, job: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/jobs/", json=job)

    def list_jobs(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/jobs/")
