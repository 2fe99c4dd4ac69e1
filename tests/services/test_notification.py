"""Tests for the SMTP track notifier."""
import smtplib

import pytest

from facetrack.core.exceptions import NotificationError
from facetrack.services import notification
from facetrack.services.notification import SmtpTrackNotifier, build_message


class RecordingSMTP:
    instances = []

    def __init__(self, host, port, timeout=None):
        self.host = host
        self.port = port
        self.calls = []
        self.messages = []
        RecordingSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def starttls(self):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user))

    def send_message(self, message):
        self.messages.append(message)


class RefusingSMTP(RecordingSMTP):
    def login(self, user, password):
        raise smtplib.SMTPAuthenticationError(535, b"Invalid login")


def configured(**overrides):
    options = dict(
        host="smtp.example.com",
        port=587,
        secure=False,
        user="mailer",
        password="secret",
        sender="tracks@example.com",
        timeout=5,
    )
    options.update(overrides)
    return SmtpTrackNotifier(**options)


def test_build_message_has_text_and_html():
    message = build_message("tracks@example.com", "v@example.com", "abc1234567", "https://audio.test/a.mp3?x=1&y=2")

    assert message["To"] == "v@example.com"
    assert message["From"] == "tracks@example.com"
    text = message.get_body(preferencelist=("plain",)).get_content()
    html = message.get_body(preferencelist=("html",)).get_content()
    assert "abc1234567" in text
    assert "https://audio.test/a.mp3?x=1&y=2" in text
    assert "x=1&amp;y=2" in html


@pytest.mark.asyncio
async def test_unconfigured_notifier_raises():
    notifier = configured(host="", user="", password="", sender="")
    with pytest.raises(NotificationError):
        await notifier.send_track("v@example.com", "abc1234567", "https://audio.test/a.mp3")


@pytest.mark.asyncio
async def test_send_track_uses_starttls(monkeypatch):
    RecordingSMTP.instances = []
    monkeypatch.setattr(notification.smtplib, "SMTP", RecordingSMTP)

    await configured().send_track("v@example.com", "abc1234567", "https://audio.test/a.mp3")

    [client] = RecordingSMTP.instances
    assert client.host == "smtp.example.com"
    assert client.calls == ["starttls", ("login", "mailer")]
    assert client.messages[0]["To"] == "v@example.com"


@pytest.mark.asyncio
async def test_send_track_uses_ssl_when_secure(monkeypatch):
    RecordingSMTP.instances = []
    monkeypatch.setattr(notification.smtplib, "SMTP_SSL", RecordingSMTP)

    await configured(secure=True, port=465).send_track("v@example.com", "abc1234567", "https://audio.test/a.mp3")

    [client] = RecordingSMTP.instances
    assert client.port == 465
    assert client.calls == [("login", "mailer")]


@pytest.mark.asyncio
async def test_smtp_errors_become_notification_errors(monkeypatch):
    monkeypatch.setattr(notification.smtplib, "SMTP", RefusingSMTP)

    with pytest.raises(NotificationError):
        await configured().send_track("v@example.com", "abc1234567", "https://audio.test/a.mp3")
