"""Unit tests for the SendGrid email helpers and notification email sender."""

from __future__ import annotations

import base64
import json
import types

import pytest

from carenotify.application.use_cases.notifications import EmailResult
from carenotify.config import Settings
from carenotify.domain.entities import NotificationType, User
from carenotify.infrastructure import email as email_module
from carenotify.infrastructure.email import EMAIL_NOT_CONFIGURED, SendGridEmailSender
from carenotify.infrastructure.email_templates import (
    get_email_priority,
    get_email_template,
    render_email,
)

CONFIGURED = Settings(sendgrid_api_key="SG.fake", sendgrid_sender="sender@example.com")


class RecordingClient:
    """Stand-in for ``SendGridAPIClient`` that records sent messages."""

    sent: list = []
    response = types.SimpleNamespace(
        status_code=202, body=None, headers={"X-Message-Id": "sg-123"}
    )

    def __init__(self, api_key: str):
        self.api_key = api_key

    def send(self, message):
        RecordingClient.sent.append(message)
        return RecordingClient.response


@pytest.fixture
def client(monkeypatch: pytest.MonkeyPatch):
    RecordingClient.sent = []
    monkeypatch.setattr(email_module, "SendGridAPIClient", RecordingClient)
    return RecordingClient


def test_send_email_without_configuration(client) -> None:
    """When SendGrid settings are missing the helper should exit early."""

    result = email_module.send_email(
        "Subject", "<p>Body</p>", "user@example.com", settings=Settings()
    )

    assert result == EmailResult(success=False, error=EMAIL_NOT_CONFIGURED)
    assert client.sent == []


def test_send_email_success(client) -> None:
    """A successful SendGrid response should surface the message id."""

    result = email_module.send_email(
        "Subject",
        "<p>Body</p>",
        "user@example.com",
        text_content="Body",
        categories=["message", "priority-normal"],
        settings=CONFIGURED,
    )

    assert result.success is True
    assert result.message_id == "sg-123"
    payload = client.sent[0].get()
    assert payload["subject"] == "Subject"
    assert payload["from"]["email"] == "sender@example.com"
    assert payload["categories"] == ["message", "priority-normal"]


def test_send_email_reports_unsuccessful_status(client, monkeypatch, caplog) -> None:
    monkeypatch.setattr(
        client,
        "response",
        types.SimpleNamespace(
            status_code=400, body=b'{"errors": [{"message": "Bad recipient"}]}', headers={}
        ),
    )

    with caplog.at_level("ERROR"):
        result = email_module.send_email(
            "Subject", "<p>Body</p>", "user@example.com", settings=CONFIGURED
        )

    assert result.success is False
    assert result.error == "SendGrid responded with status 400: Bad recipient"
    assert "status 400" in caplog.text


def test_send_email_logs_forbidden_error(monkeypatch: pytest.MonkeyPatch, caplog):
    """Forbidden responses from SendGrid should surface meaningful log details."""

    class FakeForbiddenError(Exception):
        status_code = 403
        body = json.dumps(
            {
                "errors": [
                    {
                        "message": "The provided authorization grant is invalid.",
                        "help": "https://sendgrid.com/docs/for-developers/sending-email/authentication/",
                    }
                ]
            }
        ).encode()

    class FailingClient(RecordingClient):
        def send(self, message):
            raise FakeForbiddenError()

    monkeypatch.setattr(email_module, "SendGridAPIClient", FailingClient)

    with caplog.at_level("ERROR"):
        result = email_module.send_email(
            "Subject", "<p>Body</p>", "user@example.com", settings=CONFIGURED
        )

    assert result.success is False
    assert result.error.startswith("SendGrid error 403")
    assert "status 403" in caplog.text
    assert "authorization grant is invalid" in caplog.text


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("ana@example.com", True),
        ("ana.lopez+care@mail.example.org", True),
        ("ana@example", False),
        ("ana example@example.com", False),
        ("", False),
        (None, False),
    ],
)
def test_is_valid_email(value, expected) -> None:
    assert email_module.is_valid_email(value) is expected


def test_render_email_escapes_html_only() -> None:
    rendered = render_email(
        get_email_template(NotificationType.MESSAGE),
        {
            "senderName": "Ana <b>",
            "messagePreview": "Hi & bye",
            "recipientName": "Ben",
            "conversationUrl": "/chat/1",
        },
    )

    assert rendered.template_id == "message-notification"
    assert rendered.subject == "New message from Ana <b>"
    assert "Ana &lt;b&gt;" in rendered.html
    assert "Hi &amp; bye" in rendered.html
    assert "Hi & bye" in rendered.text


def test_unknown_type_uses_generic_template() -> None:
    assert get_email_template("DIGEST").id == "default-notification"
    assert get_email_priority("DIGEST") == "normal"
    assert get_email_priority(NotificationType.EMERGENCY_ALERT) == "urgent"


class FakeUsers:
    def __init__(self, *users: User) -> None:
        self.users = {user.id: user for user in users}

    async def get_user(self, user_id: str) -> User | None:
        return self.users.get(user_id)


class RecordingTransport:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def __call__(self, subject, html_content, recipient, **kwargs) -> EmailResult:
        self.calls.append(
            {"subject": subject, "html": html_content, "recipient": recipient, **kwargs}
        )
        return EmailResult(success=True, message_id="m-1")


@pytest.mark.anyio
async def test_sender_renders_template_for_type() -> None:
    transport = RecordingTransport()
    sender = SendGridEmailSender(
        FakeUsers(User(id="u1", email="ana@example.com", first_name="Ana", last_name="Lopez")),
        settings=CONFIGURED,
        transport=transport,
    )

    result = await sender.send_notification_email(
        "u1",
        NotificationType.EMERGENCY_ALERT,
        {"alertTitle": "Fall detected", "alertContent": "Check on Grandma", "alertUrl": "/a/1"},
    )

    assert result.message_id == "m-1"
    [call] = transport.calls
    assert call["recipient"] == "ana@example.com"
    assert call["subject"] == "URGENT: Fall detected"
    assert call["categories"] == ["emergency_alert", "priority-urgent"]
    assert call["settings"] is CONFIGURED
    assert "Hello Ana Lopez" in call["text_content"]
    assert "/unsubscribe?token=" in call["text_content"]


@pytest.mark.anyio
async def test_sender_rejects_missing_or_invalid_recipients() -> None:
    transport = RecordingTransport()
    sender = SendGridEmailSender(
        FakeUsers(User(id="u1"), User(id="u2", email="not-an-email")),
        settings=CONFIGURED,
        transport=transport,
    )

    missing = await sender.send_notification_email("u0", NotificationType.MESSAGE, {})
    no_email = await sender.send_notification_email("u1", NotificationType.MESSAGE, {})
    invalid = await sender.send_notification_email("u2", NotificationType.MESSAGE, {})

    assert missing.error == "User not found or no email address"
    assert no_email.error == "User not found or no email address"
    assert invalid.error == "Invalid email address: not-an-email"
    assert transport.calls == []


def test_unsubscribe_url_encodes_user_id() -> None:
    sender = SendGridEmailSender(FakeUsers(), settings=CONFIGURED)

    url = sender.generate_unsubscribe_url("u1")

    base, token = url.split("?token=")
    assert base == "http://localhost:3000/unsubscribe"
    user_id, issued = base64.urlsafe_b64decode(token).decode().split(":")
    assert user_id == "u1"
    assert issued.isdigit()
