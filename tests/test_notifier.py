"""Tests for the e-mail notifier."""

import smtplib
from datetime import datetime, timezone

import pytest
from pydantic import SecretStr

from comment_notifier.config import SmtpConfig
from comment_notifier.notifier import EmailNotifier, NotificationError
from comment_notifier.orm.comment import StoredComment

from .support import FakeSMTP


def comment() -> StoredComment:
    return StoredComment(
        id="c1",
        account_id="acc1",
        claim_id="claim1",
        claim_name="Hello World",
        commenter_id="chan1",
        commenter_name="@alice",
        commenter_url="lbry://@alice#1",
        comment="first comment",
        is_hidden=False,
        timestamp=datetime.fromtimestamp(100, tz=timezone.utc),
    )


class TestEmailNotifier:
    """Test message formatting and SMTP submission."""

    def test_build_message(self):
        """Test that the message carries commenter, claim name and body."""
        notifier = EmailNotifier(SmtpConfig(from_address="from@mail.com", to_address="to@mail.com"))

        message = notifier.build_message(comment())

        assert message["From"] == "from@mail.com"
        assert message["To"] == "to@mail.com"
        assert message["Subject"] == "New Comment from @alice on Hello World"
        body = message.get_content()
        assert "Hello World" in body
        assert "@alice (lbry://@alice#1)" in body
        assert "1970-01-01 00:01:40" in body
        assert "first comment" in body

    @pytest.mark.asyncio
    async def test_send_submits_one_message(self):
        """Test a plain submission without TLS or login."""
        notifier = EmailNotifier(SmtpConfig(host="mail.local", port=2525), smtp_factory=FakeSMTP)

        await notifier.send(comment())

        assert len(FakeSMTP.instances) == 1
        server = FakeSMTP.instances[0]
        assert (server.host, server.port) == ("mail.local", 2525)
        assert not server.started_tls
        assert server.logged_in_as is None
        assert len(server.messages) == 1

    @pytest.mark.asyncio
    async def test_send_with_starttls_and_login(self):
        """Test that credentials and STARTTLS are used when configured."""
        config = SmtpConfig(starttls=True, username="bot", password=SecretStr("hunter2"))
        notifier = EmailNotifier(config, smtp_factory=FakeSMTP)

        await notifier.send(comment())

        server = FakeSMTP.instances[0]
        assert server.started_tls
        assert server.logged_in_as == ("bot", "hunter2")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [ConnectionRefusedError("refused"), smtplib.SMTPServerDisconnected("gone")],
    )
    async def test_send_failure_raises_notification_error(self, error):
        """Test that transport failures surface as NotificationError."""
        FakeSMTP.fail_with = error
        notifier = EmailNotifier(SmtpConfig(), smtp_factory=FakeSMTP)

        with pytest.raises(NotificationError):
            await notifier.send(comment())

    @pytest.mark.asyncio
    async def test_unbuildable_message_raises_notification_error(self):
        """Test that a claim name with a line break fails as NotificationError."""
        notifier = EmailNotifier(SmtpConfig(), smtp_factory=FakeSMTP)
        bad = comment()
        bad.claim_name = "Line one\nLine two"

        with pytest.raises(NotificationError):
            await notifier.send(bad)

        assert FakeSMTP.instances == []
