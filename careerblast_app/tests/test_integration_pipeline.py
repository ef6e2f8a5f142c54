"""
Test the complete end-to-end integration pipeline.
"""
from unittest.mock import patch

from fastapi import status

JOB = {
    "title": "Senior Backend Engineer",
    "location": "Remote",
    "job_type": "remote",
    "description": "Build the hiring platform.",
}


class TestCompleteRecruiterJourney:
    """Employer signup through approval to the first job post."""

    def test_signup_apply_approve_post(self, test_client, admin_user, headers_for, application_payload, fixed_otp):
        # Step 1: Employer signs up and lands on the apply page
        signup = {
            "email": "jane@acme.com",
            "password": "testpassword123",
            "first_name": "Jane",
            "last_name": "Doe",
            "role": "employer",
            "company_name": "Acme",
            "job_title": "Head of Talent",
            "linkedin_profile": "https://linkedin.com/in/janedoe",
        }
        response = test_client.post("/api/auth/signup", json=signup)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["onboarding"]["redirect_to"] == "/recruiter/apply"
        headers = {"Authorization": f"Bearer {response.json()['access_token']}"}

        # Step 2: Verify the e-mail
        response = test_client.post("/api/auth/verify-otp", json={"email": "jane@acme.com", "otp": fixed_otp})
        assert response.json()["is_email_verified"] is True

        # Step 3: Posting a job is refused until approval
        response = test_client.post("/api/jobs/", json=JOB, headers=headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"]["redirect_to"] == "/recruiter/apply"
        assert response.json()["detail"]["approval_status"] == "pending"

        # Step 4: Submit the recruiter application
        response = test_client.post("/api/recruiter/application", json=application_payload, headers=headers)
        assert response.status_code == status.HTTP_201_CREATED
        application_id = response.json()["id"]

        # Step 5: Admin sees it pending and approves it
        admin_headers = headers_for(admin_user)
        response = test_client.get("/api/admin/recruiters", params={"status": "pending"}, headers=admin_headers)
        assert [row["id"] for row in response.json()["applications"]] == [application_id]

        with patch("careerblast_app.backend.services.email_service.send_application_decision",
                   return_value=True) as notify:
            response = test_client.post(f"/api/admin/recruiters/{application_id}/approve",
                                        json={"notes": "Verified company"}, headers=admin_headers)
        assert response.status_code == status.HTTP_200_OK
        assert notify.call_args[0][0] == "jane@acme.com"
        assert notify.call_args[0][2] is True

        # Step 6: The employer's account reflects the decision
        response = test_client.get("/api/auth/me", headers=headers)
        user = response.json()
        assert user["is_approved"] is True
        assert user["approval_status"] == "approved"
        assert user["approved_by"] == admin_user.id

        response = test_client.get("/api/auth/me/onboarding", headers=headers)
        onboarding = response.json()
        assert onboarding["redirect_to"] == "/employer/dashboard"
        assert "post_job" in onboarding["features"]

        # Step 7: The job post now goes through and is publicly listed
        response = test_client.post("/api/jobs/", json=JOB, headers=headers)
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["company"] == "Acme"

        response = test_client.get("/api/jobs/mine", headers=headers)
        assert len(response.json()) == 1

    def test_rejected_employer_stays_locked_out(
        self, test_client, submitted_application, employer_user, admin_user, headers_for
    ):
        response = test_client.post(
            f"/api/admin/recruiters/{submitted_application.id}/reject",
            json={"reason": "Company could not be verified"},
            headers=headers_for(admin_user),
        )
        assert response.status_code == status.HTTP_200_OK

        headers = headers_for(employer_user)
        onboarding = test_client.get("/api/auth/me/onboarding", headers=headers).json()
        assert onboarding["state"] == "rejected"
        assert any("Company could not be verified" in step for step in onboarding["next_steps"])

        response = test_client.post("/api/jobs/", json=JOB, headers=headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"]["approval_status"] == "rejected"


class TestCandidateJourney:
    """Candidates are complete on signup and can browse jobs."""

    def test_candidate_browses_jobs(self, test_client, candidate_user, headers_for):
        headers = headers_for(candidate_user)

        response = test_client.get("/api/jobs/", headers=headers)
        assert response.status_code == status.HTTP_200_OK
        assert response.json() == []

        response = test_client.post("/api/jobs/", json=JOB, headers=headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN

        response = test_client.get("/api/recruiter/application", headers=headers)
        assert response.status_code == status.HTTP_403_FORBIDDEN
