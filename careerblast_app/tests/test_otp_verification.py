"""
Test e-mail verification codes for users and recruiter work e-mails.
"""
from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi import status

from careerblast_app.backend.exceptions import (
    DeliveryError,
    OTPExpiredError,
    OTPLockedError,
    RateLimitedError,
)
from careerblast_app.backend.services import otp_service
from careerblast_app.backend.utils.clock import utcnow


class TestOTPService:
    """Code issue and verification at the service layer."""

    def test_code_is_stored_hashed(self, test_db_session, candidate_user, fixed_otp):
        expires_at = otp_service.issue_code(test_db_session, candidate_user, candidate_user.email)

        assert candidate_user.email_verification_code_hash
        assert candidate_user.email_verification_code_hash != fixed_otp
        assert candidate_user.email_verification_expires == expires_at

    def test_correct_code_verifies(self, test_db_session, candidate_user, fixed_otp):
        otp_service.issue_code(test_db_session, candidate_user, candidate_user.email)

        assert otp_service.verify_code(test_db_session, candidate_user, fixed_otp) is True
        assert candidate_user.is_email_verified is True
        assert candidate_user.email_verification_code_hash is None

    def test_three_wrong_codes_lock(self, test_db_session, candidate_user, fixed_otp):
        otp_service.issue_code(test_db_session, candidate_user, candidate_user.email)

        for remaining in (2, 1, 0):
            assert otp_service.verify_code(test_db_session, candidate_user, "000000") is False
            assert otp_service.attempts_remaining(candidate_user) == remaining
        with pytest.raises(OTPLockedError):
            otp_service.verify_code(test_db_session, candidate_user, fixed_otp)

    def test_expired_code(self, test_db_session, candidate_user, fixed_otp):
        issued = utcnow() - timedelta(minutes=6)
        otp_service.issue_code(test_db_session, candidate_user, candidate_user.email, now=issued)
        with pytest.raises(OTPExpiredError):
            otp_service.verify_code(test_db_session, candidate_user, fixed_otp)

    def test_verify_without_code(self, test_db_session, candidate_user):
        with pytest.raises(OTPExpiredError):
            otp_service.verify_code(test_db_session, candidate_user, "123456")

    def test_resend_is_rate_limited(self, test_db_session, candidate_user):
        otp_service.issue_code(test_db_session, candidate_user, candidate_user.email)
        with pytest.raises(RateLimitedError) as exc:
            otp_service.issue_code(test_db_session, candidate_user, candidate_user.email)
        assert 1 <= exc.value.retry_after <= 60

    def test_resend_after_lock_resets_attempts(self, test_db_session, candidate_user, fixed_otp):
        otp_service.issue_code(test_db_session, candidate_user, candidate_user.email)
        for _ in range(3):
            otp_service.verify_code(test_db_session, candidate_user, "000000")

        otp_service.resend_guard.clear()
        otp_service.issue_code(test_db_session, candidate_user, candidate_user.email)
        assert otp_service.verify_code(test_db_session, candidate_user, fixed_otp) is True

    def test_delivery_failure(self, test_db_session, candidate_user):
        with patch("careerblast_app.backend.services.email_service.send_verification_code", return_value=False):
            with pytest.raises(DeliveryError):
                otp_service.issue_code(test_db_session, candidate_user, candidate_user.email)
        assert otp_service.guard_key(candidate_user, candidate_user.email) not in otp_service.resend_guard

    def test_rate_limit_is_per_record(self, test_db_session, employer_user, submitted_application):
        otp_service.issue_code(test_db_session, employer_user, employer_user.email)
        otp_service.issue_code(test_db_session, submitted_application, employer_user.email)

        with pytest.raises(RateLimitedError):
            otp_service.issue_code(test_db_session, submitted_application, employer_user.email)


class TestOTPEndpoints:
    """Verification over the API."""

    def test_signup_then_verify(self, test_client, fixed_otp):
        signup = {
            "email": "sam@example.com", "password": "testpassword123",
            "first_name": "Sam", "last_name": "Seeker", "role": "candidate",
        }
        assert test_client.post("/api/auth/signup", json=signup).status_code == status.HTTP_201_CREATED

        response = test_client.post("/api/auth/verify-otp", json={"email": "sam@example.com", "otp": "999999"})
        assert response.json() == {"success": False, "is_email_verified": False, "attempts_remaining": 2}

        response = test_client.post("/api/auth/verify-otp", json={"email": "sam@example.com", "otp": fixed_otp})
        assert response.json()["success"] is True

        response = test_client.get("/api/auth/verification-status", params={"email": "sam@example.com"})
        assert response.json()["is_email_verified"] is True

    def test_resend_too_soon(self, test_client, candidate_user):
        assert test_client.post("/api/auth/send-otp", json={"email": candidate_user.email}).status_code == 200
        response = test_client.post("/api/auth/resend-otp", json={"email": candidate_user.email})
        assert response.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert "Retry-After" in response.headers

    def test_locked_code_is_bad_request(self, test_client, candidate_user, fixed_otp):
        test_client.post("/api/auth/send-otp", json={"email": candidate_user.email})
        for _ in range(3):
            test_client.post("/api/auth/verify-otp", json={"email": candidate_user.email, "otp": "000000"})
        response = test_client.post("/api/auth/verify-otp", json={"email": candidate_user.email, "otp": fixed_otp})
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_unknown_email(self, test_client):
        response = test_client.post("/api/auth/send-otp", json={"email": "ghost@example.com"})
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_work_email_verification(self, test_client, submitted_application, employer_user,
                                     headers_for, fixed_otp):
        headers = headers_for(employer_user)
        response = test_client.post("/api/recruiter/application/verify-email/send", headers=headers)
        assert response.status_code == status.HTTP_200_OK

        response = test_client.post("/api/recruiter/application/verify-email/confirm",
                                    json={"otp": fixed_otp}, headers=headers)
        assert response.json()["is_email_verified"] is True

    def test_work_email_code_right_after_signup(self, test_client, application_payload, fixed_otp):
        signup = {
            "email": "jane@acme.com", "password": "testpassword123",
            "first_name": "Jane", "last_name": "Doe", "role": "employer",
            "company_name": "Acme", "job_title": "Head of Talent",
            "linkedin_profile": "https://linkedin.com/in/janedoe",
        }
        response = test_client.post("/api/auth/signup", json=signup)
        assert response.status_code == status.HTTP_201_CREATED
        headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

        assert application_payload["work_email"] == "jane@acme.com"
        response = test_client.post("/api/recruiter/application", json=application_payload, headers=headers)
        assert response.status_code == status.HTTP_201_CREATED

        response = test_client.post("/api/recruiter/application/verify-email/send", headers=headers)
        assert response.status_code == status.HTTP_200_OK
