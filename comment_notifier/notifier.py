"""E-mail notification for newly stored comments."""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Callable

from .config import SmtpConfig
from .orm.comment import StoredComment

logger = logging.getLogger(__name__)


class NotificationError(RuntimeError):
    """Raised when a notification could not be handed to the mail server."""


def format_subject(comment: StoredComment) -> str:
    return f"New Comment from {comment.commenter_name} on {comment.claim_name}"


def format_body(comment: StoredComment) -> str:
    timestamp = comment.timestamp.strftime("%Y-%m-%d %H:%M:%S")
    return (
        f"{comment.claim_name}\n"
        "---\n"
        "\n"
        f"{comment.commenter_name} ({comment.commenter_url})\n"
        f"{timestamp}\n"
        "===\n"
        f"{comment.comment}\n"
    )


class EmailNotifier:
    """Sends one plain-text message per comment. Holds no state and never retries."""

    def __init__(
        self,
        config: SmtpConfig,
        smtp_factory: Callable[..., smtplib.SMTP] = smtplib.SMTP,
    ) -> None:
        self.config = config
        self.smtp_factory = smtp_factory

    def build_message(self, comment: StoredComment) -> EmailMessage:
        """Build the notification message for a comment."""
        message = EmailMessage()
        message["From"] = self.config.from_address
        message["To"] = self.config.to_address
        message["Subject"] = format_subject(comment)
        message.set_content(format_body(comment))
        return message

    async def send(self, comment: StoredComment) -> None:
        """Deliver the notification for ``comment``.

        Raises:
            NotificationError: If the message could not be built from the
                comment, or the mail server could not be reached or refused it.
        """
        logger.info("Sending email for comment %s by %s", comment.id, comment.commenter_name)

        try:
            # Header values with line breaks are rejected by the email package
            message = self.build_message(comment)
            await asyncio.to_thread(self._submit, message)
        except (smtplib.SMTPException, OSError, ValueError) as e:
            raise NotificationError(f"Could not send notification for {comment.id}: {e}") from e

    def _submit(self, message: EmailMessage) -> None:
        """Blocking SMTP submission, run in a worker thread."""
        cfg = self.config
        with self.smtp_factory(cfg.host, cfg.port, timeout=cfg.timeout) as server:
            if cfg.starttls:
                server.starttls()
            if cfg.username and cfg.password:
                server.login(cfg.username, cfg.password.get_secret_value())
            server.send_message(message)
