"""Transactional notification emails delivered through SendGrid."""

from __future__ import annotations

import base64
import json
import logging
import re
from functools import partial
from typing import Any, Callable, Iterable, Mapping

import anyio
from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Category, Mail

from carenotify.application.use_cases.notifications.ports import EmailResult, UserDirectory
from carenotify.config import Settings, get_settings
from carenotify.domain.entities import NotificationType
from carenotify.utils import now_in_app_timezone

from .email_templates import get_email_priority, get_email_template, render_email

logger = logging.getLogger(__name__)

EMAIL_NOT_CONFIGURED = "Email delivery is not configured"

_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def is_valid_email(value: str | None) -> bool:
    return bool(value) and _EMAIL_PATTERN.match(value) is not None


def _extract_sendgrid_error_details(body: Any) -> str | None:
    """Return a human readable description for a SendGrid error payload."""

    if body in (None, ""):
        return None

    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError:
            return None

    if isinstance(body, str):
        body = body.strip()
        if not body:
            return None
        try:
            parsed = json.loads(body)
        except json.JSONDecodeError:
            return body
    else:
        parsed = body

    if isinstance(parsed, dict):
        errors = parsed.get("errors")
        if isinstance(errors, list):
            messages: list[str] = []
            for item in errors:
                if not isinstance(item, dict):
                    continue
                message = item.get("message")
                help_link = item.get("help")
                if message and help_link:
                    messages.append(f"{message} (help: {help_link})")
                elif message:
                    messages.append(str(message))
            if messages:
                return "; ".join(messages)
        try:
            return json.dumps(parsed)
        except (TypeError, ValueError):
            return None

    if isinstance(parsed, list):
        return "; ".join(str(item) for item in parsed)

    return None


def _describe_sendgrid_exception(exc: Exception) -> str:
    """Log a SendGrid API error and return a short description of it."""

    status_code = getattr(exc, "status_code", None)
    details = _extract_sendgrid_error_details(getattr(exc, "body", None))

    if status_code and details:
        logger.error(
            "SendGrid API request failed with status %s: %s", status_code, details
        )
        return f"SendGrid error {status_code}: {details}"
    if status_code:
        logger.error("SendGrid API request failed with status %s", status_code)
        return f"SendGrid error {status_code}"
    if details:
        logger.error("SendGrid API request failed: %s", details)
        return details
    logger.exception("Error sending email via SendGrid: %s", exc)
    return str(exc) or exc.__class__.__name__


def _describe_unsuccessful_response(response: Any) -> str:
    status_code = getattr(response, "status_code", None)
    details = _extract_sendgrid_error_details(getattr(response, "body", None))

    if details:
        logger.error(
            "SendGrid API responded with status %s: %s", status_code, details
        )
        return f"SendGrid responded with status {status_code}: {details}"
    logger.error("SendGrid API responded with status %s", status_code)
    return f"SendGrid responded with status {status_code}"


def _message_id(response: Any) -> str | None:
    headers = getattr(response, "headers", None) or {}
    try:
        return headers.get("X-Message-Id")
    except AttributeError:
        return None


def send_email(
    subject: str,
    html_content: str,
    recipient: str,
    *,
    text_content: str | None = None,
    categories: Iterable[str] = (),
    settings: Settings | None = None,
) -> EmailResult:
    """Send an email using the configured SendGrid credentials."""

    settings = settings or get_settings()
    if not (settings.sendgrid_api_key and settings.sendgrid_sender):
        logger.info("SendGrid configuration incomplete; skipping email delivery")
        return EmailResult(success=False, error=EMAIL_NOT_CONFIGURED)

    message = Mail(
        from_email=settings.sendgrid_sender,
        to_emails=recipient,
        subject=subject,
        html_content=html_content,
        plain_text_content=text_content,
    )
    for category in categories:
        message.add_category(Category(category))

    try:
        client = SendGridAPIClient(settings.sendgrid_api_key)
        response = client.send(message)
    except Exception as exc:
        return EmailResult(success=False, error=_describe_sendgrid_exception(exc))

    status_code = getattr(response, "status_code", None)
    if not isinstance(status_code, int) or not 200 <= status_code < 300:
        return EmailResult(success=False, error=_describe_unsuccessful_response(response))

    return EmailResult(success=True, message_id=_message_id(response))


class SendGridEmailSender:
    """Render per-type notification emails and hand them to SendGrid."""

    def __init__(
        self,
        users: UserDirectory,
        *,
        settings: Settings | None = None,
        transport: Callable[..., EmailResult] = send_email,
    ) -> None:
        self._users = users
        self._settings = settings or get_settings()
        self._transport = transport

    def generate_unsubscribe_url(self, user_id: str) -> str:
        issued = int(now_in_app_timezone().timestamp() * 1000)
        token = base64.urlsafe_b64encode(f"{user_id}:{issued}".encode()).decode()
        return f"{self._settings.app_base_url.rstrip('/')}/unsubscribe?token={token}"

    async def send_notification_email(
        self,
        user_id: str,
        notification_type: NotificationType,
        payload: Mapping[str, Any],
    ) -> EmailResult:
        """Send the email for ``notification_type``; provider failures are returned."""

        user = await self._users.get_user(user_id)
        if user is None or not user.email:
            return EmailResult(success=False, error="User not found or no email address")
        if not is_valid_email(user.email):
            return EmailResult(success=False, error=f"Invalid email address: {user.email}")

        variables = {
            **payload,
            "recipientName": payload.get("recipientName") or user.full_name or user.email,
            "unsubscribeUrl": payload.get("unsubscribeUrl")
            or self.generate_unsubscribe_url(user.id),
            "supportEmail": self._settings.support_email,
            "baseUrl": self._settings.app_base_url,
            "brandName": self._settings.brand_name,
        }
        rendered = render_email(get_email_template(notification_type), variables)
        priority = get_email_priority(notification_type)
        categories = [
            NotificationType(notification_type).value.lower(),
            f"priority-{priority}",
        ]

        result = await anyio.to_thread.run_sync(
            partial(
                self._transport,
                rendered.subject,
                rendered.html,
                user.email,
                text_content=rendered.text,
                categories=categories,
                settings=self._settings,
            )
        )
        if result.success:
            logger.debug(
                "Email %s sent to user %s with priority %s",
                rendered.template_id,
                user_id,
                priority,
            )
        return result


__all__ = [
    "EMAIL_NOT_CONFIGURED",
    "SendGridEmailSender",
    "is_valid_email",
    "send_email",
]
