"""Notification channel implementations for alert delivery.

Provides an ABC for notification channels plus concrete implementations
for email (SES v2) and SMS (SNS). Each ``send`` is a single attempt that
raises ``ChannelError`` on failure; retries and aggregation belong to
NotificationDispatcher.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from src.alerts.schemas import Notification, Subscription

logger = logging.getLogger(__name__)


class ChannelError(Exception):
    """A single delivery attempt failed."""

    def __init__(self, channel: str, message: str) -> None:
        super().__init__(message)
        self.channel = channel


class NotificationChannel(ABC):
    """Abstract base for notification delivery channels."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this channel (e.g. 'email', 'sms')."""

    @abstractmethod
    def accepts(self, subscription: Subscription) -> bool:
        """Whether the subscription asked for this channel and can receive it."""

    @abstractmethod
    async def send(self, subscription: Subscription, notification: Notification) -> None:
        """Deliver a notification through this channel.

        Args:
            subscription: Recipient preferences and contact details.
            notification: Rendered message.

        Raises:
            ChannelError: If the delivery attempt failed.
        """


class EmailChannel(NotificationChannel):
    """Delivers alerts as plain-text email through SES v2.

    Disabled (accepts nothing) when no verified sender identity is set.
    """

    def __init__(self, client: Any, from_address: str) -> None:
        self._client = client
        self._from_address = from_address

    @property
    def name(self) -> str:
        return "email"

    def accepts(self, subscription: Subscription) -> bool:
        return (
            "email" in subscription.channels
            and bool(subscription.email)
            and bool(self._from_address)
        )

    async def send(self, subscription: Subscription, notification: Notification) -> None:
        try:
            await asyncio.to_thread(
                self._client.send_email,
                FromEmailAddress=self._from_address,
                Destination={"ToAddresses": [subscription.email]},
                Content={
                    "Simple": {
                        "Subject": {"Data": notification.subject},
                        "Body": {"Text": {"Data": notification.body}},
                    },
                },
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning(
                "SES send to subscriber %s failed: %s",
                subscription.subscriber_id, e,
            )
            raise ChannelError(self.name, str(e)) from e


class SmsChannel(NotificationChannel):
    """Delivers alerts as SMS through SNS direct publish."""

    def __init__(self, client: Any) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return "sms"

    def accepts(self, subscription: Subscription) -> bool:
        return "sms" in subscription.channels and bool(subscription.phone_number)

    async def send(self, subscription: Subscription, notification: Notification) -> None:
        try:
            await asyncio.to_thread(
                self._client.publish,
                PhoneNumber=subscription.phone_number,
                Message=notification.body,
            )
        except (BotoCoreError, ClientError) as e:
            logger.warning(
                "SNS publish to subscriber %s failed: %s",
                subscription.subscriber_id, e,
            )
            raise ChannelError(self.name, str(e)) from e
