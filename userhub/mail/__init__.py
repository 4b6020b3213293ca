"""
userhub - Outbound Mail

Services depend on the Mailer protocol; SMTPMailer delivers through an
SMTP server and LogMailer only logs messages for local development.
"""

from userhub.mail.protocol import Mailer, MailError
from userhub.mail.smtp import SMTPMailer, LogMailer, create_mailer

__all__ = [
    "Mailer",
    "MailError",
    "SMTPMailer",
    "LogMailer",
    "create_mailer",
]
