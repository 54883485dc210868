"""
Outgoing email.

The reset flow hands a ResetEmail to whichever Mailer the app is configured
with. `log` writes the message to the application log (useful in development,
where the reset link can be copied from the console); `smtp` delivers it.
"""
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional
from urllib.parse import urlencode
import smtplib

from money_tracker.config import Settings, get_settings
from money_tracker.logging_config import get_logger

logger = get_logger(__name__)

RESET_SUBJECT = "Reset your password"


@dataclass
class ResetEmail:
    recipient: str
    subject: str
    reset_url: str

    def body(self) -> str:
        return (
            "You are receiving this email because we received a password reset request for your account.\n\n"
            f"Reset your password: {self.reset_url}\n\n"
            "If you did not request a password reset, no further action is required."
        )


def build_reset_url(base_url: str, token: str, email: str) -> str:
    return f"{base_url}/reset-password?{urlencode({'token': token, 'email': email})}"


def build_reset_email(email: str, token: str, settings: Optional[Settings] = None) -> ResetEmail:
    settings = settings or get_settings()
    return ResetEmail(
        recipient=email,
        subject=RESET_SUBJECT,
        reset_url=build_reset_url(settings.reset_base_url, token, email),
    )


class Mailer:
    def __init__(self, settings: Settings):
        self.settings = settings

    def to_message(self, message: ResetEmail) -> EmailMessage:
        email = EmailMessage()
        email["From"] = self.settings.mail_from
        email["To"] = message.recipient
        email["Subject"] = message.subject
        email.set_content(message.body())
        return email

    def send(self, message: ResetEmail) -> None:
        if self.settings.mail_backend == "smtp":
            self._send_smtp(self.to_message(message))
        else:
            logger.info(f"Mail to {message.recipient}: {message.subject} {message.reset_url}")

    def _send_smtp(self, email: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=30) as smtp:
            if self.settings.smtp_use_tls:
                smtp.starttls()
            if self.settings.smtp_username:
                smtp.login(self.settings.smtp_username, self.settings.smtp_password or "")
            smtp.send_message(email)
        logger.info(f"Sent '{email['Subject']}' to {email['To']} via {self.settings.smtp_host}")


def get_mailer() -> Mailer:
    return Mailer(get_settings())
