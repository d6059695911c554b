"""
Notification Fan-out - email, messaging webhook and in-app channels

Each event is dispatched to every applicable channel concurrently. A
channel failure is logged and recorded in the report; ``notify`` itself
never raises and nothing is retried.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from html import escape
from typing import Dict, List, Optional

import httpx

from order_service.config import settings
from order_service.errors import NotificationError
from order_service.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)


@dataclass
class NotificationEvent:
    """One message to fan out to a recipient"""
    subject: str
    message: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    html: Optional[str] = None
    text: Optional[str] = None


@dataclass
class DispatchReport:
    """Per-channel outcome of a fan-out"""
    delivered: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failed

    def warnings(self) -> List[str]:
        return [f"{channel} notification failed: {reason}" for channel, reason in self.failed.items()]


class EmailChannel:
    """Transactional email sender"""

    name = "email"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.email_service = settings.EMAIL_SERVICE
        self.api_url = settings.EMAIL_API_URL
        self.api_key = settings.EMAIL_API_KEY
        self.sender = settings.EMAIL_FROM
        self.timeout = settings.NOTIFICATION_TIMEOUT
        self.transport = transport

    def applies_to(self, event: NotificationEvent) -> bool:
        return bool(event.email)

    async def send(self, event: NotificationEvent) -> None:
        text = event.text or event.message
        html = event.html or f"<p>{escape(event.message)}</p>"

        if self.email_service == "console":
            self._send_console_notification(event.email, event.subject, text)
        elif self.email_service == "resend":
            await self._send_api_notification(event.email, event.subject, html, text)
        else:
            raise NotificationError(self.name, f"unknown email service '{self.email_service}'")

    def _send_console_notification(self, to: str, subject: str, body: str) -> None:
        """Log the email instead of sending it (development mode)"""
        logger.info("EMAIL (console mode) to=%s subject=%s\n%s", to, subject, body)

    async def _send_api_notification(self, to: str, subject: str, html: str, text: str) -> None:
        if not self.api_key:
            raise NotificationError(self.name, "email API key is not configured")
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.post(
                self.api_url,
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={
                    "from": self.sender,
                    "to": to,
                    "subject": subject,
                    "html": html,
                    "text": text,
                },
            )
        if response.status_code >= 400:
            raise NotificationError(self.name, f"email API returned status {response.status_code}")


class MessagingChannel:
    """External messaging webhook keyed by phone number"""

    name = "messaging"

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.webhook_url = settings.MESSAGING_WEBHOOK_URL
        self.api_key = settings.MESSAGING_API_KEY
        self.timeout = settings.NOTIFICATION_TIMEOUT
        self.transport = transport

    def applies_to(self, event: NotificationEvent) -> bool:
        return bool(event.phone and self.webhook_url)

    async def send(self, event: NotificationEvent) -> None:
        params = {"phone": event.phone, "text": event.message}
        if self.api_key:
            params["apikey"] = self.api_key
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(self.webhook_url, params=params)
        if response.status_code >= 400:
            raise NotificationError(self.name, f"webhook returned status {response.status_code}")


class InAppChannel:
    """Notification row shown in the user's dashboard"""

    name = "in_app"

    def __init__(self, repository: NotificationRepository):
        self.repository = repository

    def applies_to(self, event: NotificationEvent) -> bool:
        return bool(event.user_id)

    async def send(self, event: NotificationEvent) -> None:
        self.repository.create(event.user_id, event.message)


class NotificationFanout:
    """Dispatch one event to several independent channels"""

    def __init__(self, repository: NotificationRepository, channels: Optional[List] = None):
        self.repository = repository
        self.channels = channels if channels is not None else [
            EmailChannel(),
            MessagingChannel(),
            InAppChannel(repository),
        ]

    async def notify(self, event: NotificationEvent) -> DispatchReport:
        """
        Send ``event`` over every applicable channel

        Returns:
            DispatchReport listing delivered, skipped and failed channels
        """
        report = DispatchReport()
        active = []
        for channel in self.channels:
            if channel.applies_to(event):
                active.append(channel)
            else:
                report.skipped.append(channel.name)

        outcomes = await asyncio.gather(*(self._dispatch(channel, event) for channel in active))
        for channel, error in zip(active, outcomes):
            if error is None:
                report.delivered.append(channel.name)
            else:
                report.failed[channel.name] = error
        return report

    async def notify_admins(self, message: str, subject: str = "Admin alert") -> DispatchReport:
        """In-app row for every admin plus one message to the admin phone"""
        report = DispatchReport()
        for admin_id in self.repository.admin_ids():
            partial = await self.notify(NotificationEvent(subject=subject, message=message, user_id=admin_id))
            report.delivered.extend(partial.delivered)
            report.failed.update(partial.failed)
        if settings.ADMIN_PHONE:
            partial = await self.notify(NotificationEvent(subject=subject, message=message, phone=settings.ADMIN_PHONE))
            report.delivered.extend(partial.delivered)
            report.failed.update(partial.failed)
        return report

    async def _dispatch(self, channel, event: NotificationEvent) -> Optional[str]:
        try:
            await channel.send(event)
            return None
        except Exception as e:
            logger.warning(
                "Notification channel %s failed for user=%s subject=%r: %s",
                channel.name, event.user_id, event.subject, e
            )
            return str(e)
