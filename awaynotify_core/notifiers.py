"""
Transports that deliver a single notification outside of IRC.
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import requests

from awaynotify import logger as app_logger
from awaynotify_core.errors import NotifierError

if TYPE_CHECKING:
    from awaynotify_core.settings import EmailSettings, PushoverSettings, ServerSettings

_LOGGER = app_logger.get_logger()

PUSHOVER_API_URL = "https://api.pushover.net/1/messages.json"


class NotifierKind(Enum):
    EMAIL = "email"
    PUSHOVER = "pushover"


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class EmailNotifier:
    """Sends each message as a plain-text email, e.g. to an SMS gateway."""

    def __init__(self, settings: EmailSettings, *, title: str, smtp_factory=None) -> None:
        self.settings = settings
        self.title = title
        self._smtp_factory = smtp_factory

    def notify(self, message: str) -> None:
        email = EmailMessage()
        email["Subject"] = self.title
        email["From"] = self.settings.from_addr
        email["To"] = self.settings.to_addr
        email.set_content(message)

        try:
            with self._connect() as smtp:
                if self.settings.security == "starttls":
                    smtp.starttls()
                if self.settings.username:
                    smtp.login(self.settings.username, self.settings.password or "")
                smtp.send_message(email)
        except (smtplib.SMTPException, OSError) as exc:
            raise NotifierError(f"Email delivery via {self.settings.smtp_host} failed: {exc}") from exc
        _LOGGER.info("Sent email notification to {}.", self.settings.to_addr)

    def _connect(self) -> smtplib.SMTP:
        if self._smtp_factory is not None:
            return self._smtp_factory(self.settings.smtp_host, self.settings.smtp_port)
        if self.settings.security == "ssl":
            return smtplib.SMTP_SSL(self.settings.smtp_host, self.settings.smtp_port)
        return smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port)


class PushoverNotifier:
    """Sends each message through the Pushover push API."""

    def __init__(self, settings: PushoverSettings, *, title: str, session: requests.Session | None = None) -> None:
        self.settings = settings
        self.title = title
        self._session = session or requests.Session()

    def notify(self, message: str) -> None:
        payload = {
            "token": self.settings.token,
            "user": self.settings.user,
            "title": self.title,
            "message": message,
            "priority": self.settings.priority,
        }
        if self.settings.device:
            payload["device"] = self.settings.device

        try:
            response = self._session.post(PUSHOVER_API_URL, data=payload, timeout=self.settings.timeout)
        except requests.RequestException as exc:
            raise NotifierError(f"Pushover request failed: {exc}") from exc

        if not response.ok:
            raise NotifierError(f"Pushover returned HTTP {response.status_code}: {response.text[:200]}")
        try:
            body = response.json()
        except ValueError as exc:
            raise NotifierError("Pushover returned a non-JSON response.") from exc
        if body.get("status") != 1:
            raise NotifierError(f"Pushover rejected the message: {body.get('errors')}")
        _LOGGER.info("Sent Pushover notification (request {}).", body.get("request"))


def build_notifier(settings: ServerSettings) -> Notifier:
    """Create the single notifier selected by ``general.notifier``."""
    if settings.notifier is NotifierKind.EMAIL:
        return EmailNotifier(settings.email, title=settings.title)
    if settings.notifier is NotifierKind.PUSHOVER:
        return PushoverNotifier(settings.pushover, title=settings.title)
    raise ValueError(f"Unsupported notifier {settings.notifier!r}")
