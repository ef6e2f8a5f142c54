"""
Outgoing e-mail: verification codes, password resets and review decisions.

When SMTP is not configured (development, tests) messages are logged instead
of sent and delivery is reported as successful.
"""
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from ..config.settings import get_settings

logger = logging.getLogger(__name__)


def send_email(to_address: str, subject: str, body: str) -> bool:
    """Send a plain-text e-mail. Returns False if the SMTP exchange failed."""
    settings = get_settings()

    if not settings.smtp_server or not settings.smtp_username or not settings.smtp_password:
        logger.info("[DEV] Email to %s | %s\n%s", to_address, subject, body)
        return True

    msg = MIMEMultipart()
    msg["From"] = settings.email_from or settings.smtp_username
    msg["To"] = to_address
    msg["Subject"] = subject
    msg.attach(MIMEText(body, "plain"))

    try:
        server = smtplib.SMTP(settings.smtp_server, settings.smtp_port, timeout=settings.request_timeout_seconds)
        try:
            if settings.smtp_use_tls:
                server.starttls()
            server.login(settings.smtp_username, settings.smtp_password)
            server.sendmail(msg["From"], to_address, msg.as_string())
        finally:
            server.quit()
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email to %s: %s", to_address, e)
        return False


def send_verification_code(email: str, code: str, expire_minutes: int) -> bool:
    body = f"""Hi,

Your CareerBlast verification code is: {code}

The code expires in {expire_minutes} minutes. If you didn't request it, please ignore this email.

CareerBlast Team
"""
    return send_email(email, "Your CareerBlast verification code", body)


def send_password_reset(email: str, reset_token: str, expire_minutes: int) -> bool:
    settings = get_settings()
    body = f"""Hi,

You requested a password reset for your CareerBlast account.

Reset your password here:
{settings.frontend_url}/reset-password?token={reset_token}

This link will expire in {expire_minutes} minutes.

If you didn't request this reset, please ignore this email.

CareerBlast Team
"""
    return send_email(email, "Password Reset - CareerBlast", body)


def send_application_decision(email: str, first_name: str, approved: bool, message: str = None) -> bool:
    settings = get_settings()
    if approved:
        subject = "Your recruiter account has been approved"
        body = (
            f"Hi {first_name},\n\nYour recruiter application has been approved. "
            f"You can now post jobs: {settings.frontend_url}/employer/dashboard\n"
        )
        if message:
            body += f"\nNotes from our team: {message}\n"
    else:
        subject = "Update on your recruiter application"
        body = (
            f"Hi {first_name},\n\nUnfortunately we could not approve your recruiter application.\n"
            f"\nReason: {message}\n\nReply to this email if you have questions.\n"
        )
    return send_email(email, subject, body + "\nCareerBlast Team\n")
