"""Mailer protocol: services depend on this, not the concrete transport."""

from typing import Protocol


class MailError(Exception):
    """Raised when a message could not be handed to the mail transport."""
    pass


class Mailer(Protocol):
    def send(self, recipient: str, subject: str, body: str) -> None:
        """
        Send a plain-text message.

        Raises:
            MailError: If delivery to the transport fails
        """
        ...
