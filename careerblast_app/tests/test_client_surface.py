"""
Test the client package: API error mapping, auth session, route guard,
signup flow and the admin review panel.
"""
import json
from datetime import datetime
from unittest.mock import Mock

import pytest
import requests

from careerblast_app.client import errors
from careerblast_app.client.api_client import CareerBlastClient
from careerblast_app.client.review_panel import ReviewPanel, status_label, time_ago
from careerblast_app.client.routes import ROUTES, RouteGuard, employer_affordances
from careerblast_app.client.session import AuthSession
from careerblast_app.client.signup_flow import OUTCOME, VERIFY_EMAIL, SignupFlow, validate_details

EMPLOYER = {"id": 2, "email": "jane@acme.com", "role": "employer", "is_approved": False}


def _response(status_code, body=None, headers=None):
    response = requests.Response()
    response.status_code = status_code
    response._content = json.dumps(body).encode() if body is not None else b""
    response.headers.update(headers or {})
    return response


@pytest.fixture
def session():
    return AuthSession()


@pytest.fixture
def api(session):
    client = CareerBlastClient("http://api.test/", session)
    client._read_http.request = Mock()
    client._write_http.request = Mock()
    return client


@pytest.fixture
def application_rows():
    return [
        {"id": 1, "status": "pending", "company_name": "Acme", "reviewed_at": None},
        {"id": 2, "status": "under_review", "company_name": "Globex", "reviewed_at": None},
    ]


class TestApiClient:
    """Transport policy and error mapping."""

    def test_reads_retry_and_writes_do_not(self, api):
        assert api.read_retry.allowed_methods == frozenset({"GET"})
        assert 503 in api.read_retry.status_forcelist
        write_adapter = api._write_http.get_adapter("http://api.test/")
        assert write_adapter.max_retries.total == 0

    def test_reads_and_writes_use_separate_sessions(self, api, session):
        session.login("tok", EMPLOYER)
        api._read_http.request.return_value = _response(200, {"total": 0, "applications": []})
        api._write_http.request.return_value = _response(200, {"id": 1, "status": "approved"})

        assert api.list_applications("pending") == (0, [])
        api.approve(1, "ok")

        method, url = api._read_http.request.call_args.args
        assert (method, url) == ("GET", "http://api.test/api/admin/recruiters")
        assert api._read_http.request.call_args.kwargs["headers"] == {"Authorization": "Bearer tok"}
        assert api._write_http.request.call_args.kwargs["json"] == {"notes": "ok"}
        assert api._write_http.request.call_args.kwargs["timeout"] == 10

    def test_network_failure(self, api):
        api._read_http.request.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(errors.NetworkError):
            api.me()

    def test_field_errors_from_service(self, api):
        api._write_http.request.return_value = _response(
            422, {"detail": {"message": "Invalid application", "errors": {"company_website": "Invalid website URL"}}}
        )
        with pytest.raises(errors.ValidationFailed) as exc:
            api.submit_application({})
        assert exc.value.errors == {"company_website": "Invalid website URL"}
        assert exc.value.message == "Invalid application"

    def test_field_errors_from_request_validation(self, api):
        api._write_http.request.return_value = _response(
            422, {"detail": [{"loc": ["body", "reason"], "msg": "Field required"}]}
        )
        with pytest.raises(errors.ValidationFailed) as exc:
            api.reject(1, "")
        assert exc.value.errors == {"reason": "Field required"}

    def test_unauthorized_signs_out(self, api, session):
        session.login("tok", EMPLOYER)
        api._read_http.request.return_value = _response(401, {"detail": "Could not validate credentials"})
        with pytest.raises(errors.UnauthorizedError):
            api.me()
        assert not session.is_authenticated

    def test_forbidden_carries_redirect(self, api):
        api._write_http.request.return_value = _response(403, {"detail": {
            "message": "Your recruiter account is pending approval",
            "approval_status": "pending",
            "redirect_to": "/recruiter/apply",
        }})
        with pytest.raises(errors.PermissionDeniedError) as exc:
            api.post_job({"title": "Engineer"})
        assert exc.value.redirect_to == "/recruiter/apply"

    def test_rate_limit_and_lock(self, api):
        api._write_http.request.return_value = _response(429, {"detail": "Slow down"}, {"Retry-After": "42"})
        with pytest.raises(errors.RateLimitedError) as exc:
            api.send_otp("sam@example.com")
        assert exc.value.retry_after == 42

        api._write_http.request.return_value = _response(423, {"detail": {"message": "Account is locked"}})
        with pytest.raises(errors.AccountLockedError):
            api.login("sam@example.com", "x")

    def test_sync_failure_needs_reconciliation(self, api):
        api._write_http.request.return_value = _response(500, {"detail": {
            "message": "Approval could not be applied",
            "code": "approval_sync_failed",
            "needs_reconciliation": True,
            "application_id": 7,
        }})
        with pytest.raises(errors.ReconciliationRequiredError) as exc:
            api.approve(7)
        assert exc.value.application_id == 7

    def test_plain_server_error(self, api):
        api._read_http.request.return_value = _response(502)
        with pytest.raises(errors.ServerError) as exc:
            api.list_jobs()
        assert not isinstance(exc.value, errors.ReconciliationRequiredError)

    def test_login_fills_session(self, api, session):
        api._write_http.request.return_value = _response(
            200, {"access_token": "tok", "token_type": "bearer", "user": EMPLOYER, "onboarding": {}}
        )
        api.login("jane@acme.com", "secret")

        assert session.token == "tok"
        assert session.role == "employer"
        assert api._write_http.request.call_args.kwargs["data"] == {"username": "jane@acme.com", "password": "secret"}


class TestAuthSession:

    def test_listeners_see_changes(self, session):
        seen = []
        unsubscribe = session.subscribe(lambda s: seen.append(s.is_authenticated))

        session.login("tok", EMPLOYER)
        session.update_user(dict(EMPLOYER, is_approved=True))
        assert session.is_approved
        session.logout()
        unsubscribe()
        session.login("tok", EMPLOYER)

        assert seen == [True, True, False]

    def test_logout_when_signed_out_is_silent(self, session):
        listener = Mock()
        session.subscribe(listener)
        session.logout()
        listener.assert_not_called()
        assert session.auth_headers() == {}


class TestRouteGuard:

    def test_unauthenticated_goes_to_login(self, session):
        decision = RouteGuard(session).check_path("/employer/dashboard")
        assert (decision.allowed, decision.redirect_to) == (False, "/login")

    def test_unapproved_employer_goes_to_apply(self, session):
        session.login("tok", EMPLOYER)
        guard = RouteGuard(session)

        assert guard.check_path("/employer/post-job").redirect_to == "/recruiter/apply"
        assert guard.check_path("/recruiter/apply").allowed
        assert guard.check_path("/admin/recruiters").redirect_to == "/"

    def test_approved_employer_is_allowed(self, session):
        session.login("tok", dict(EMPLOYER, is_approved=True))
        guard = RouteGuard(session)
        for path, route in ROUTES.items():
            if path.startswith("/employer/"):
                assert guard.check(route).allowed

    def test_same_visit_renders_after_approval(self, api, session):
        api._write_http.request.return_value = _response(200, {"access_token": "tok", "user": EMPLOYER})
        api.login("jane@acme.com", "testpassword123")
        guard = RouteGuard(session)

        decision = guard.check_path("/employer/post-job")
        assert (decision.allowed, decision.redirect_to) == (False, "/recruiter/apply")

        api._read_http.request.return_value = _response(200, dict(EMPLOYER, is_approved=True))
        api.me()

        decision = guard.check_path("/employer/post-job")
        assert decision.allowed
        assert session.is_approved

    def test_unknown_path(self, session):
        assert RouteGuard(session).check_path("/nowhere").redirect_to == "/"

    def test_employer_affordances(self):
        assert employer_affordances(EMPLOYER) == []
        assert employer_affordances({"role": "candidate", "is_approved": True}) == []
        assert "post_job" in employer_affordances(dict(EMPLOYER, is_approved=True))


class TestSignupFlow:

    @pytest.fixture
    def employer_form(self):
        return {
            "email": "jane@acme.com", "password": "testpassword123", "first_name": "Jane",
            "last_name": "Doe", "role": "employer", "company_name": "Acme",
            "job_title": "Head of Talent", "linkedin_profile": "https://linkedin.com/in/janedoe",
        }

    def test_inline_validation(self, employer_form):
        employer_form.update(email="jane@gmail.com", password="short", company_name=" ")
        found = validate_details(employer_form)
        assert set(found) == {"email", "password", "company_name"}

    def test_employer_ends_pending(self, employer_form):
        client = Mock()
        client.session = AuthSession()
        client.signup.return_value = {
            "user": EMPLOYER,
            "onboarding": {"state": "pending_approval", "redirect_to": "/recruiter/apply",
                           "next_steps": ["Complete your recruiter application"]},
        }
        client.verify_otp.side_effect = [
            {"success": False, "attempts_remaining": 2},
            {"success": True, "attempts_remaining": 3},
        ]
        flow = SignupFlow(client)

        assert flow.submit_details(employer_form)
        assert flow.step == VERIFY_EMAIL
        assert not flow.verify("000000")
        assert flow.errors["otp"] == "Incorrect code. 2 attempts remaining."
        assert flow.verify("123456")
        assert flow.step == OUTCOME
        assert flow.is_pending_approval
        assert flow.redirect_to == "/recruiter/apply"
        assert flow.next_steps
        assert flow.features == []

    def test_server_field_errors_are_shown(self, employer_form):
        client = Mock()
        client.signup.side_effect = errors.ConflictError("Email already registered", 409)
        flow = SignupFlow(client)

        assert not flow.submit_details(employer_form)
        assert flow.errors == {"email": "Email already registered"}
        assert flow.step == "details"

    def test_resend_rate_limited(self, employer_form):
        client = Mock()
        client.send_otp.side_effect = errors.RateLimitedError("Please wait 30 seconds", retry_after=30)
        flow = SignupFlow(client)
        flow.email = "jane@acme.com"

        assert not flow.resend_code()
        assert "30 seconds" in flow.errors["otp"]


class TestReviewPanel:
    """Admin review surface behaviour over a mocked client."""

    @pytest.fixture
    def client(self, application_rows):
        client = Mock()
        client.list_applications.return_value = (len(application_rows), application_rows)
        client.recruiter_stats.return_value = {"total": 2, "pending_review": 2}
        return client

    @pytest.fixture
    def panel(self, client):
        panel = ReviewPanel(client)
        panel.load()
        return panel

    def test_load(self, panel, client):
        assert panel.total == 2
        client.list_applications.assert_called_once_with("pending")
        assert panel.load_stats()
        assert panel.stats["pending_review"] == 2

    def test_approve_updates_row_in_place(self, panel, client):
        client.approve.return_value = {
            "id": 1, "status": "approved", "reviewed_at": "2024-03-01T12:00:00",
            "approval_notes": "ok", "rejection_reason": None, "review_time_in_hours": 3.0,
        }

        assert panel.approve(1, "ok")
        assert panel.row(1)["status"] == "approved"
        assert panel.row(1)["review_time_in_hours"] == 3.0
        assert client.list_applications.call_count == 1

    def test_reject_requires_reason(self, panel, client):
        assert not panel.can_reject
        assert not panel.reject(1)
        assert panel.error == "Please provide a rejection reason"
        client.reject.assert_not_called()

        client.reject.return_value = {"id": 1, "status": "rejected", "rejection_reason": "Spam"}
        panel.rejection_reason = "  Spam "
        assert panel.reject(1)
        client.reject.assert_called_once_with(1, "Spam")
        assert panel.rejection_reason == ""
        assert panel.row(1)["status"] == "rejected"

    def test_failure_leaves_row_untouched(self, panel, client):
        client.approve.side_effect = errors.ConflictError("Application is already rejected", 409)

        assert not panel.approve(2)
        assert panel.row(2)["status"] == "under_review"
        assert panel.error == "Application is already rejected"

    def test_not_found_reloads(self, panel, client):
        client.approve.side_effect = errors.NotFoundError("Recruiter application not found", 404)

        assert not panel.approve(1)
        assert client.list_applications.call_count == 2

    def test_reconciliation_is_flagged(self, panel, client):
        client.approve.side_effect = errors.ReconciliationRequiredError("Needs reconciliation", 1)

        assert not panel.approve(1)
        assert panel.needs_reconciliation == {1}
        assert panel.row(1)["status"] == "pending"

    def test_result_after_close_is_dropped(self, panel, client):
        def approve_then_navigate_away(*args):
            panel.close()
            return {"id": 1, "status": "approved"}

        client.approve.side_effect = approve_then_navigate_away
        assert not panel.approve(1)
        assert panel.row(1)["status"] == "pending"

    def test_filter(self, panel, client):
        assert panel.set_filter("approved")
        client.list_applications.assert_called_with("approved")
        with pytest.raises(ValueError):
            panel.set_filter("archived")


class TestDisplayHelpers:

    @pytest.mark.parametrize("submitted, expected", [
        ("2024-03-01T11:59:30", "just now"),
        ("2024-03-01T11:59:00", "1 minute ago"),
        ("2024-03-01T09:00:00Z", "3 hours ago"),
        (datetime(2024, 2, 27, 12, 0), "3 days ago"),
    ])
    def test_time_ago(self, submitted, expected):
        assert time_ago(submitted, datetime(2024, 3, 1, 12, 0)) == expected

    def test_status_label(self):
        assert status_label("under_review") == "Under Review"
        assert status_label("on_hold") == "On Hold"
