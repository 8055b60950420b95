"""
Email notification for waitlist registrations.

Supported providers, selected with EMAIL_PROVIDER:
- none: log the notification only (default)
- resend: Resend API (requires RESEND_API_KEY)
- smtp: plain SMTP (requires SMTP_HOST, SMTP_PORT, SMTP_USER, SMTP_PASSWORD)
"""
import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import parseaddr
from typing import Optional

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.core.config import Settings
from app.core.exceptions import EmailConfigurationError, EmailDeliveryError
from app.schemas.waitlist import WaitlistEntry

logger = logging.getLogger(__name__)

APP_NAME = "Konecbo"
DEFAULT_SENDER = "Konecbo <noreply@konecbo.com>"
SUBJECT = "New Waitlist Registration - Konecbo"
BRAND_COLOR = "#4F46E5"
PROVIDERS = ("none", "resend", "smtp")

_templates_dir = os.path.join(os.path.dirname(__file__), "..", "templates")
_jinja_env = Environment(
    loader=FileSystemLoader(_templates_dir),
    autoescape=select_autoescape(["html", "xml"]),
    keep_trailing_newline=False,
)


def render_email(template_name: str, entry: WaitlistEntry) -> str:
    context = {
        "app_name": APP_NAME,
        "brand_color": BRAND_COLOR,
        "entry": entry,
        "registered_at": entry.created_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip(),
    }
    return _jinja_env.get_template(template_name).render(**context)


def render_html(entry: WaitlistEntry) -> str:
    """HTML body; user supplied fields are autoescaped."""
    return render_email("email/waitlist_notification.html", entry)


def render_text(entry: WaitlistEntry) -> str:
    return render_email("email/waitlist_notification.txt", entry).strip()


class EmailDispatcher:
    def __init__(self, settings: Settings):
        self.settings = settings
        provider = (settings.EMAIL_PROVIDER or "none").strip().lower()
        if provider not in PROVIDERS:
            logger.warning(f"Unknown EMAIL_PROVIDER '{settings.EMAIL_PROVIDER}', falling back to log-only")
            provider = "none"
        self.provider = provider
        self.sender = (settings.FROM_EMAIL or "").strip() or DEFAULT_SENDER

    def _admin_recipient(self) -> Optional[str]:
        if self.settings.ADMIN_EMAIL.strip():
            return self.settings.ADMIN_EMAIL.strip()
        from_email = self.settings.FROM_EMAIL.strip()
        if from_email:
            return parseaddr(from_email)[1] or from_email
        return None

    def _require_recipient(self) -> str:
        recipient = self._admin_recipient()
        if not recipient:
            raise EmailConfigurationError("ADMIN_EMAIL or FROM_EMAIL is not configured")
        return recipient

    def send_waitlist_notification(self, entry: WaitlistEntry) -> bool:
        """Notify the admin inbox about a new entry.

        Returns True when a message was handed to a provider, False in log-only mode.
        Raises EmailConfigurationError / EmailDeliveryError; one attempt, no retries.
        """
        if self.provider == "resend":
            self._send_via_resend(entry)
            return True
        if self.provider == "smtp":
            self._send_via_smtp(entry)
            return True

        logger.info(
            "Email notification (not sent): to=%s subject=%s entry=%s",
            self._admin_recipient() or "admin@example.com",
            SUBJECT,
            entry.model_dump(by_alias=True, mode="json"),
        )
        return False

    def _send_via_resend(self, entry: WaitlistEntry) -> None:
        api_key = self.settings.RESEND_API_KEY.strip()
        if not api_key:
            raise EmailConfigurationError("RESEND_API_KEY is not configured")
        recipient = self._require_recipient()

        resend.api_key = api_key
        try:
            resend.Emails.send({
                "from": self.sender,
                "to": [recipient],
                "subject": SUBJECT,
                "html": render_html(entry),
                "text": render_text(entry),
            })
        except Exception as e:
            logger.error(f"Resend email error: {e}")
            raise EmailDeliveryError("Resend API error", details=str(e)) from e
        logger.info("Resend email sent successfully")

    def _send_via_smtp(self, entry: WaitlistEntry) -> None:
        s = self.settings
        if not (s.SMTP_HOST and s.SMTP_PORT and s.SMTP_USER and s.SMTP_PASSWORD):
            raise EmailConfigurationError("SMTP environment variables are not fully configured")
        try:
            port = int(s.SMTP_PORT)
        except ValueError:
            raise EmailConfigurationError(f"SMTP_PORT must be a number, got '{s.SMTP_PORT}'")
        recipient = self._require_recipient()

        msg = MIMEMultipart("alternative")
        msg["Subject"] = SUBJECT
        msg["From"] = self.sender
        msg["To"] = recipient
        msg.attach(MIMEText(render_text(entry), "plain", _charset="utf-8"))
        msg.attach(MIMEText(render_html(entry), "html", _charset="utf-8"))

        envelope_sender = parseaddr(self.sender)[1] or self.sender
        try:
            # Implicit TLS on 465, STARTTLS everywhere else
            if port == 465:
                with smtplib.SMTP_SSL(s.SMTP_HOST, port) as server:
                    server.login(s.SMTP_USER, s.SMTP_PASSWORD)
                    server.sendmail(envelope_sender, [recipient], msg.as_string())
            else:
                with smtplib.SMTP(s.SMTP_HOST, port) as server:
                    server.starttls()
                    server.login(s.SMTP_USER, s.SMTP_PASSWORD)
                    server.sendmail(envelope_sender, [recipient], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP email error: {e}")
            raise EmailDeliveryError("SMTP delivery failed", details=str(e)) from e
        logger.info("SMTP email sent successfully")
