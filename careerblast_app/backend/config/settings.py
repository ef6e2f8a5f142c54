"""
Centralized configuration management for the CareerBlast recruiter onboarding API.
All environment variables, credentials, and configuration settings are managed here.
"""
import secrets
from typing import Optional, List
from pydantic import field_validator
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings with validation and type hints."""

    # =============================================================================
    # APPLICATION SETTINGS
    # =============================================================================
    app_name: str = "CareerBlast API"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # =============================================================================
    # SECURITY SETTINGS
    # =============================================================================
    secret_key: str = secrets.token_urlsafe(32)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 7 * 24 * 60  # 7 days
    password_hash_rounds: int = 12

    @field_validator('password_hash_rounds')
    @classmethod
    def validate_password_hash_rounds(cls, v):
        if not 4 <= v <= 31:
            raise ValueError('Password hash rounds must be between 4 and 31')
        return v

    # Account lock-out
    max_login_attempts: int = 5
    account_lock_minutes: int = 2 * 60
    password_reset_expire_minutes: int = 10

    # Bootstrap admin account, created on startup when both are set
    admin_email: Optional[str] = None
    admin_password: Optional[str] = None

    # =============================================================================
    # DATABASE SETTINGS
    # =============================================================================
    database_url: str = "sqlite:///./careerblast.db"
    database_echo: bool = False

    # =============================================================================
    # LOGGING SETTINGS
    # =============================================================================
    log_level: str = "INFO"
    log_file: Optional[str] = None
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"

    # =============================================================================
    # EMAIL VERIFICATION (OTP) SETTINGS
    # =============================================================================
    otp_length: int = 6
    otp_expire_minutes: int = 5
    otp_max_attempts: int = 3
    otp_resend_interval_seconds: int = 60

    # =============================================================================
    # FILE STORAGE SETTINGS
    # =============================================================================
    storage_backend: str = "local"  # local, s3
    upload_directory: str = "uploads"
    public_base_url: str = "http://localhost:8000"
    presigned_url_expire_seconds: int = 3600
    presigned_upload_expire_seconds: int = 300

    @field_validator('storage_backend')
    @classmethod
    def validate_storage_backend(cls, v):
        if v.lower() not in ("local", "s3"):
            raise ValueError('Storage backend must be "local" or "s3"')
        return v.lower()

    # AWS S3 settings
    aws_region: str = "us-east-1"
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    s3_resumes_bucket: str = "careerblast-resumes"
    s3_profile_pictures_bucket: str = "careerblast-profile-pictures"
    s3_company_logos_bucket: str = "careerblast-company-logos"
    s3_documents_bucket: str = "careerblast-documents"

    # =============================================================================
    # NOTIFICATION SETTINGS
    # =============================================================================
    smtp_server: Optional[str] = None
    smtp_port: int = 587
    smtp_username: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_use_tls: bool = True
    email_from: str = "no-reply@careerblast.io"
    frontend_url: str = "http://localhost:3000"

    # =============================================================================
    # PERFORMANCE SETTINGS
    # =============================================================================
    request_timeout_seconds: int = 10
    default_page_size: int = 100

    # =============================================================================
    # DEVELOPMENT SETTINGS
    # =============================================================================
    api_docs_enabled: bool = True
    cors_enabled: bool = True
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # =============================================================================
    # CONFIGURATION LOADING
    # =============================================================================
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.testing or self.environment.lower() == "testing"

    def get_database_url(self) -> str:
        """Get database URL with appropriate settings for environment."""
        if self.is_testing():
            return "sqlite:///:memory:"
        return self.database_url

    def validate_required_settings(self) -> List[str]:
        """Validate that all required settings are properly configured."""
        missing = []

        if self.is_production():
            if not self.secret_key or len(self.secret_key) < 32:
                missing.append("SECRET_KEY must be at least 32 characters in production")

            if self.debug:
                missing.append("DEBUG must be False in production")

            if not self.smtp_server:
                missing.append("SMTP_SERVER is required in production to deliver verification codes")

        if self.storage_backend == "s3" and not (self.aws_access_key_id and self.aws_secret_access_key):
            missing.append("AWS credentials are required when STORAGE_BACKEND is s3")

        if bool(self.admin_email) != bool(self.admin_password):
            missing.append("ADMIN_EMAIL and ADMIN_PASSWORD must be set together")

        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            missing.append(f"Invalid LOG_LEVEL: {self.log_level}")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    This function is cached to avoid recreating the settings object multiple times.
    """
    return Settings()


# Global settings instance
settings = get_settings()
