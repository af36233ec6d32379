"""
Notification Dispatch component.

Sends one email per matched commit to a subscriber over SMTP.
"""

import smtplib
from email.message import EmailMessage
from typing import Callable

from ghmailer.config import Configuration, split_host_port
from ghmailer.models.push_event import Commit
from ghmailer.models.subscriber import Subscriber
from ghmailer.utils.logging import get_logger

logger = get_logger(__name__)


class DeliveryError(Exception):
    """Raised when a notification cannot be handed to the mail server."""
    pass


def build_commit_message(from_address: str, subscriber: Subscriber, commit: Commit) -> EmailMessage:
    """
    Build the notification email for a single commit.

    Args:
        from_address: Sender address
        subscriber: Recipient
        commit: Commit the notification is about

    Returns:
        Email message ready to send
    """
    message = EmailMessage()
    message["Subject"] = f"New commit: {commit.id}"
    message["From"] = from_address
    message["To"] = subscriber.email

    lines = [commit.id]
    if commit.author.name:
        lines.append(f"Author: {commit.author.name} <{commit.author.email}>")
    else:
        lines.append(f"Author: {commit.author.email}")
    if commit.message:
        lines.extend(["", commit.message])
    if commit.url:
        lines.extend(["", commit.url])
    message.set_content("\n".join(lines) + "\n")

    return message


class EmailNotifier:
    """Delivers commit notifications through the configured SMTP server."""

    def __init__(
        self,
        configuration: Configuration,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
        timeout: float = 30.0
    ):
        """
        Initialize the notifier.

        Args:
            configuration: Loaded configuration holding the mail settings
            smtp_factory: Callable returning an SMTP connection
            timeout: Connection timeout in seconds
        """
        self._configuration = configuration
        self._smtp_factory = smtp_factory
        self._timeout = timeout

    def send(self, subscriber: Subscriber, commit: Commit) -> None:
        """
        Send one notification about ``commit`` to ``subscriber``.

        Upgrades the connection with STARTTLS when the server offers it and
        authenticates when a password is configured.

        Raises:
            DeliveryError: If the message could not be delivered
        """
        message = build_commit_message(self._configuration.from_address, subscriber, commit)
        host, port = split_host_port(self._configuration.smtp_addr)

        try:
            with self._smtp_factory(host, port, timeout=self._timeout) as smtp:
                smtp.ehlo()
                if smtp.has_extn("starttls"):
                    smtp.starttls()
                    smtp.ehlo()
                if self._configuration.password:
                    smtp.login(self._configuration.from_address, self._configuration.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise DeliveryError(
                f"Failed to send commit {commit.id} to {subscriber.email}: {e}"
            ) from e

        logger.debug(
            f"Sent notification for commit {commit.id} to {subscriber.email}",
            extra={"commit_id": commit.id}
        )
