"""E-mail channel for moderation notifications (SMTP with Mailgun fallback)."""
from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Callable

import requests

from ..config import Settings, get_settings
from ..security.secrets import MissingSecretError, is_placeholder, require_secret

logger = logging.getLogger(__name__)

MAILGUN_API_URL = "https://api.mailgun.net/v3/{domain}/messages"


class EmailDeliveryError(RuntimeError):
    """Raised when every configured transport fails."""


def _secret(name: str) -> str:
    try:
        return require_secret(name)
    except MissingSecretError as exc:
        raise EmailDeliveryError(str(exc)) from exc


def _smtp_transport(settings: Settings, to_address: str, subject: str, body: str) -> None:
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = str(settings.email_from_address)
    message["To"] = to_address
    message.set_content(body)

    username = (settings.email_username or "").strip()
    try:
        with smtplib.SMTP(settings.email_host, settings.email_port, timeout=20) as smtp:
            if settings.email_use_tls:
                smtp.starttls()
            if username:
                smtp.login(username, _secret("EMAIL_PASSWORD"))
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:  # pragma: no cover - network interactions
        raise EmailDeliveryError(f"SMTP delivery failed: {exc}") from exc


def _mailgun_transport(settings: Settings, to_address: str, subject: str, body: str) -> None:
    try:
        response = requests.post(
            MAILGUN_API_URL.format(domain=settings.mailgun_domain),
            auth=("api", _secret("MAILGUN_API_KEY")),
            data={
                "from": str(settings.email_from_address),
                "to": to_address,
                "subject": subject,
                "text": body,
            },
            timeout=20,
        )
    except requests.RequestException as exc:  # pragma: no cover - network interactions
        raise EmailDeliveryError(f"Mailgun request failed: {exc}") from exc

    if response.status_code >= 400:
        logger.error("Mailgun returned %s: %s", response.status_code, response.text)
        raise EmailDeliveryError(f"Mailgun delivery failed with status {response.status_code}")


Transport = Callable[[Settings, str, str, str], None]


def configured_transports(settings: Settings) -> list[tuple[str, Transport]]:
    transports: list[tuple[str, Transport]] = []
    if settings.email_host and settings.email_from_address:
        transports.append(("smtp", _smtp_transport))
    if (
        not is_placeholder(settings.mailgun_api_key)
        and settings.mailgun_domain
        and settings.email_from_address
    ):
        transports.append(("mailgun", _mailgun_transport))
    return transports


def send_email(to_address: str, subject: str, body: str) -> str:
    """Send a plaintext e-mail through the first transport that succeeds.

    Returns the name of the transport that delivered the message. Raises
    ``EmailDeliveryError`` when no transport is configured or all of them fail.
    """

    if not to_address or not subject or not body:
        raise EmailDeliveryError("Email payload is incomplete")

    settings = get_settings()
    transports = configured_transports(settings)
    if not transports:
        raise EmailDeliveryError("Email delivery is not configured. Provide SMTP settings or Mailgun credentials.")

    last_error: EmailDeliveryError | None = None
    for name, transport in transports:
        try:
            transport(settings, to_address, subject, body)
            return name
        except EmailDeliveryError as exc:
            logger.warning("%s delivery to %s failed: %s", name, to_address, exc)
            last_error = exc
    raise EmailDeliveryError("All email transports failed") from last_error


__all__ = ["send_email", "configured_transports", "EmailDeliveryError"]
