"""
Pytest configuration and shared fixtures for the CareerBlast tests.
"""
import os

# Settings are read once at import time, so the test environment goes first
os.environ.setdefault("TESTING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt-tokens-12345678901234567890")
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from datetime import timedelta
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from careerblast_app.backend import schemas
from careerblast_app.backend.main import app
from careerblast_app.backend.models.db import crud
from careerblast_app.backend.models.db.database import Base, build_engine, get_db
from careerblast_app.backend.security import create_access_token, get_password_hash
from careerblast_app.backend.services import otp_service
from careerblast_app.backend.services import recruiter_application_service as application_service
from careerblast_app.backend.services.storage_service import LocalStorageBackend, get_storage
from careerblast_app.backend.utils.clock import utcnow

TEST_PASSWORD = "testpassword123"
TEST_OTP = "123456"


# Test Database Setup
@pytest.fixture(scope="function")
def test_db_engine():
    """A fresh in-memory SQLite database per test."""
    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def storage(tmp_path):
    return LocalStorageBackend(
        root=str(tmp_path / "uploads"),
        public_base_url="http://testserver",
        secret_key="test-storage-secret",
    )


@pytest.fixture(scope="function")
def test_client(test_db_session, storage):
    """Create a test client with overridden database and storage dependencies."""
    def override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_storage] = lambda: storage
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(autouse=True)
def reset_otp_rate_limit():
    otp_service.resend_guard.clear()
    yield
    otp_service.resend_guard.clear()


@pytest.fixture
def fixed_otp():
    """Make every generated verification code predictable."""
    with patch("careerblast_app.backend.services.otp_service.generate_numeric_code", return_value=TEST_OTP):
        yield TEST_OTP


# User Fixtures
@pytest.fixture
def make_user(test_db_session):
    def _make_user(email, role="candidate", **profile):
        return crud.create_user(
            test_db_session,
            email=email,
            hashed_password=get_password_hash(TEST_PASSWORD),
            first_name=profile.pop("first_name", "Test"),
            last_name=profile.pop("last_name", "User"),
            role=role,
            **profile,
        )
    return _make_user


@pytest.fixture
def admin_user(make_user):
    return make_user("admin@careerblast.io", role="admin", first_name="Ada", last_name="Admin")


@pytest.fixture
def second_admin(make_user):
    return make_user("reviewer@careerblast.io", role="admin", first_name="Rex", last_name="Reviewer")


@pytest.fixture
def employer_user(make_user):
    return make_user(
        "jane@acme.com",
        role="employer",
        first_name="Jane",
        last_name="Doe",
        company_name="Acme",
        job_title="Head of Talent",
        linkedin_profile="https://linkedin.com/in/janedoe",
    )


@pytest.fixture
def candidate_user(make_user):
    return make_user("sam@example.com", role="candidate", first_name="Sam", last_name="Seeker")


@pytest.fixture
def headers_for():
    def _headers_for(user):
        token = create_access_token(data={"sub": user.email})
        return {"Authorization": f"Bearer {token}"}
    return _headers_for


# Recruiter Application Fixtures
@pytest.fixture
def application_payload():
    """A recruiter application that passes validation."""
    return {
        "company_name": "Acme",
        "company_website": "https://acme.com",
        "company_size": "51-200",
        "industry": "technology",
        "company_description": "We build rockets and roller skates.",
        "job_title": "Head of Talent",
        "work_email": "jane@acme.com",
        "phone_number": "+1 555 0100",
        "linkedin_profile": "https://linkedin.com/in/janedoe",
        "hiring_needs": "Ten engineers over the next quarter.",
        "expected_hiring_volume": 10,
        "hiring_timeframe": "1-3-months",
    }


@pytest.fixture
def submitted_application(test_db_session, employer_user, application_payload):
    return application_service.submit_application(
        test_db_session,
        employer_user,
        schemas.RecruiterApplicationCreate(**application_payload),
        now=utcnow() - timedelta(hours=3),
    )
