import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from html import escape
import logging

import httpx

from storefront.core.config import settings

logger = logging.getLogger(__name__)


def reset_otp_email_html(otp: str, ttl_minutes: int) -> str:
    safe_otp = escape(str(otp))
    return f"""
    <div style="font-family:sans-serif; padding:18px;">
      <h2>Your Password Reset OTP: <span style="color:#440077">{safe_otp}</span></h2>
      <p>This OTP is valid for <b>{ttl_minutes} minutes</b>. Please do not share it with anyone.</p>
    </div>
    """


class Mailer:
    """
    Sends transactional email through the configured backend.

    Backends:
    - ``smtp``: plain SMTP, STARTTLS on port 587, login when credentials are set
    - ``sendgrid``: SendGrid v3 HTTP API authenticated with SENDGRID_API_KEY
    - ``console``: log only

    Sending never raises; failures are logged and reported as False.
    """

    def __init__(self, backend: str = None):
        self.backend = (backend or settings.EMAIL_BACKEND).lower()

    def send_reset_otp(self, to_email: str, otp: str) -> bool:
        ttl_minutes = max(1, settings.OTP_TTL_SECONDS // 60)
        return self.send_email(
            to_email,
            f"{settings.STORE_NAME} Password Reset OTP",
            reset_otp_email_html(otp, ttl_minutes),
        )

    def send_email(self, to_email: str, subject: str, html_body: str, cc_emails: list = None) -> bool:
        try:
            logger.info(f"Attempting to send email to {to_email} via {self.backend}")
            if self.backend == "smtp":
                self._send_smtp(to_email, subject, html_body, cc_emails)
            elif self.backend == "sendgrid":
                self._send_sendgrid(to_email, subject, html_body, cc_emails)
            elif self.backend == "console":
                logger.info(f"[console mail] to={to_email} subject={subject!r}")
            else:
                raise ValueError(f"Unknown EMAIL_BACKEND: {self.backend}")
        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {type(e).__name__} - {str(e)}", exc_info=True)
            return False

        logger.info(f"Email sent successfully to {to_email}")
        return True

    def _send_smtp(self, to_email, subject, html_body, cc_emails):
        msg = MIMEMultipart("alternative")
        msg["From"] = formataddr((settings.MAIL_FROM_NAME, settings.MAIL_FROM))
        msg["To"] = to_email
        msg["Subject"] = subject
        if cc_emails:
            msg["Cc"] = ", ".join(cc_emails)
        msg.attach(MIMEText(html_body, "html"))

        recipients = [to_email] + list(cc_emails or [])

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
            logger.debug(f"Connected to SMTP server {settings.SMTP_HOST}:{settings.SMTP_PORT}")
            if settings.SMTP_PORT == 587:
                server.starttls()
            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            else:
                logger.warning("No SMTP credentials provided, attempting unauthenticated send")
            server.sendmail(settings.MAIL_FROM, recipients, msg.as_string())

    def _send_sendgrid(self, to_email, subject, html_body, cc_emails):
        if not settings.SENDGRID_API_KEY:
            raise RuntimeError("SENDGRID_API_KEY is not configured")

        personalization = {"to": [{"email": to_email}]}
        if cc_emails:
            personalization["cc"] = [{"email": cc} for cc in cc_emails]

        payload = {
            "personalizations": [personalization],
            "from": {"email": settings.MAIL_FROM, "name": settings.MAIL_FROM_NAME},
            "subject": subject,
            "content": [{"type": "text/html", "value": html_body}],
        }
        response = httpx.post(
            settings.SENDGRID_API_URL,
            json=payload,
            headers={"Authorization": f"Bearer {settings.SENDGRID_API_KEY}"},
            timeout=30,
        )
        response.raise_for_status()


_mailer = None


def get_mailer() -> Mailer:
    """Get or create the mailer for the configured backend."""
    global _mailer
    if _mailer is None:
        _mailer = Mailer()
    return _mailer
