"""
userhub - SMTP Mailer

Sends plain-text account emails (activation and password reset links)
through an SMTP server. One connection is opened per message; sends happen
inside the request worker and are bounded by SMTP_TIMEOUT_SECONDS.
"""

import smtplib
from email.message import EmailMessage
from typing import Optional

from userhub.config import Settings
from userhub.logging_config import get_logger
from userhub.mail.protocol import Mailer, MailError


log = get_logger(__name__)


class SMTPMailer:
    """
    Mailer backed by smtplib.

    Args:
        host: SMTP server host
        port: SMTP server port
        sender: From address
        username: Login user; no AUTH is attempted when empty
        password: Login password
        starttls: Upgrade the connection with STARTTLS before login
        timeout: Socket timeout in seconds
    """

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        starttls: bool = False,
        timeout: float = 10.0,
    ):
        self._host = host
        self._port = port
        self._sender = sender
        self._username = username
        self._password = password
        self._starttls = starttls
        self._timeout = timeout

    def send(self, recipient: str, subject: str, body: str) -> None:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = recipient
        message["Subject"] = subject
        message.set_content(body)

        log.info("send_mail", server=f"{self._host}:{self._port}", recipient=recipient)

        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as conn:
                if self._starttls:
                    conn.starttls()
                if self._username:
                    conn.login(self._username, self._password or "")
                conn.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise MailError(f"send mail to {recipient}: {e}") from e


class LogMailer:
    """Development mailer that writes messages to the log instead of sending."""

    def send(self, recipient: str, subject: str, body: str) -> None:
        log.info("mail_not_sent", recipient=recipient, subject=subject, body=body)


def create_mailer(settings: Settings) -> Mailer:
    """Build the mailer described by settings; LogMailer when SMTP_HOST is unset."""
    if not settings.SMTP_HOST:
        log.warning("smtp_not_configured", fallback="log")
        return LogMailer()

    return SMTPMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        sender=settings.SMTP_SENDER or f"noreply@{settings.SMTP_HOST}",
        username=settings.SMTP_USERNAME,
        password=settings.SMTP_PASSWORD,
        starttls=settings.SMTP_STARTTLS,
        timeout=settings.SMTP_TIMEOUT_SECONDS,
    )
