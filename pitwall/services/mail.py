"""Outbound email for verification codes."""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from ..core.config import Settings

logger = logging.getLogger(__name__)


class MailSender(Protocol):
    configured: bool

    def send(self, to: str, subject: str, html: str) -> None: ...


class NullMailSender:
    """Sink used when no mail transport is configured."""

    configured = False

    def send(self, to: str, subject: str, html: str) -> None:
        raise RuntimeError("Email service not configured.")


class SmtpMailSender:
    """Sends HTML mail through an authenticated SMTP relay."""

    configured = True

    def __init__(
        self,
        host: str,
        port: int,
        user: str,
        password: str,
        from_name: str = "F1 Fantasy League",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.from_name = from_name
        self.timeout = timeout

    def send(self, to: str, subject: str, html: str) -> None:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f'"{self.from_name}" <{self.user}>'
        msg["To"] = to
        msg.attach(MIMEText(html, "html"))

        if self.port == 465:
            with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as server:
                server.login(self.user, self.password)
                server.sendmail(self.user, [to], msg.as_string())
        else:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as server:
                server.starttls()
                server.login(self.user, self.password)
                server.sendmail(self.user, [to], msg.as_string())
        logger.info("Sent '%s' email to %s", subject, to)


def build_mail_sender(settings: Settings) -> MailSender:
    if not settings.mail_configured:
        return NullMailSender()
    return SmtpMailSender(
        host=settings.email_host,
        port=settings.email_port,
        user=settings.email_user,
        password=settings.email_pass,
        from_name=settings.email_from_name,
    )


def verification_email(code: str) -> tuple[str, str]:
    """Subject and HTML body for a verification code."""

    html = (
        '<div style="font-family: sans-serif; padding: 20px;">'
        '<h2 style="color: #DA291C;">F1 Fantasy One</h2>'
        f'<p>Code: <strong style="font-size: 24px;">{code}</strong></p>'
        "</div>"
    )
    return "Your Verification Code", html


__all__ = [
    "MailSender",
    "NullMailSender",
    "SmtpMailSender",
    "build_mail_sender",
    "verification_email",
]
