"""Outbound email over SMTP: the mail relay client and the welcome template."""

from __future__ import annotations

import html
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import formataddr
from typing import TYPE_CHECKING

from fastapi import Request

if TYPE_CHECKING:
    from bizadmin.core.config import Settings

logger = logging.getLogger(__name__)


class MailNotConfiguredError(Exception):
    """Raised when an email is sent but SMTP_HOST is not configured."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MailDeliveryError(Exception):
    """Raised when the SMTP relay rejects the message or cannot be reached."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


@dataclass(frozen=True)
class OutgoingEmail:
    to: str
    subject: str
    html: str


def welcome_email(name: str, email: str, password: str) -> OutgoingEmail:
    """Account-created email carrying the generated login credentials."""
    safe_name = html.escape(name)
    safe_email = html.escape(email)
    safe_password = html.escape(password)
    body = f"""<!DOCTYPE html>
<html>
<body style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h1>Welcome {safe_name}!</h1>
  <p>Your account has been created successfully. Here are your login credentials:</p>
  <p style="background-color: #f0f0f0; padding: 15px; border-radius: 5px;">
    <strong>Email:</strong> {safe_email}<br>
    <strong>Password:</strong> {safe_password}
  </p>
  <p>Please change your password after first login.</p>
</body>
</html>"""
    return OutgoingEmail(
        to=email,
        subject="Welcome! Your Account Credentials",
        html=body,
    )


class SmtpMailer:
    """
    SMTP client built once from settings and shared by request handlers.

    Each send opens its own connection, so the instance holds no socket state.
    """

    def __init__(self, settings: Settings) -> None:
        self.host = settings.SMTP_HOST
        self.port = settings.SMTP_PORT
        self.username = settings.SMTP_USERNAME
        self.password = (
            settings.SMTP_PASSWORD.get_secret_value() if settings.SMTP_PASSWORD else None
        )
        self.use_tls = settings.SMTP_USE_TLS
        self.use_ssl = settings.SMTP_USE_SSL
        self.timeout = settings.SMTP_TIMEOUT_SEC
        self.sender = formataddr((settings.EMAIL_FROM_NAME, settings.EMAIL_FROM))

    @property
    def is_configured(self) -> bool:
        return bool(self.host)

    def _build_message(self, email: OutgoingEmail) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = email.to
        msg["Subject"] = email.subject
        msg.set_content("This message requires an HTML-capable email client.")
        msg.add_alternative(email.html, subtype="html")
        return msg

    def _connect(self) -> smtplib.SMTP:
        if self.use_ssl:
            return smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout)
        return smtplib.SMTP(self.host, self.port, timeout=self.timeout)

    def send(self, email: OutgoingEmail) -> None:
        """Deliver one message. Raises MailNotConfiguredError or MailDeliveryError."""
        if not self.is_configured:
            raise MailNotConfiguredError("SMTP_HOST is not configured; cannot send email.")
        msg = self._build_message(email)
        try:
            with self._connect() as smtp:
                if self.use_tls and not self.use_ssl:
                    smtp.starttls()
                if self.username and self.password:
                    smtp.login(self.username, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            raise MailDeliveryError(f"Email delivery to {email.to} failed: {e!s}") from e
        logger.info("Email sent", extra={"to": email.to, "subject": email.subject})


def get_mailer(request: Request) -> SmtpMailer:
    """Dependency: the mailer constructed at startup."""
    return request.app.state.mailer
