"""Notification dispatcher orchestrating alert delivery across channels.

Each channel the subscription can receive on gets a fixed number of
attempts. Channels are independent: a failing SMS provider does not stop
the email from going out. Any channel that is still failing after its
attempts makes the whole dispatch fail, so the caller can hold back the
notification clock and retry on the next qualifying reading.
"""

import asyncio
import logging
from dataclasses import dataclass

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.alerts.channels import NotificationChannel
from src.alerts.schemas import Notification, Subscription
from src.observability.metrics import get_metrics

logger = logging.getLogger(__name__)


class NotificationConfig(BaseSettings):
    """Configuration for notification dispatch."""

    model_config = SettingsConfigDict(
        env_prefix="NOTIFICATIONS_",
        case_sensitive=False,
        extra="ignore",
    )

    max_attempts: int = Field(
        default=2,
        ge=1,
        le=10,
        description="Maximum send attempts per channel per notification",
    )
    retry_delay_seconds: float = Field(
        default=0.0,
        ge=0.0,
        le=30.0,
        description="Fixed pause between attempts on the same channel",
    )


@dataclass(frozen=True)
class ChannelResult:
    """Delivery outcome for one channel."""

    channel: str
    success: bool
    attempts: int
    error: str | None = None


class NotificationError(Exception):
    """One or more channels failed after exhausting their attempts."""

    def __init__(self, results: list[ChannelResult]) -> None:
        self.results = results
        failures = [r for r in results if not r.success]
        super().__init__("; ".join(f"{r.channel}: {r.error}" for r in failures))


class NotificationDispatcher:
    """Sends a rendered notification to every channel a subscriber accepts."""

    def __init__(
        self,
        channels: list[NotificationChannel],
        config: NotificationConfig | None = None,
    ) -> None:
        self._channels = channels
        self._config = config or NotificationConfig()
        self._metrics = get_metrics()

    @property
    def channels(self) -> list[NotificationChannel]:
        return self._channels

    def channels_for(self, subscription: Subscription) -> list[NotificationChannel]:
        """Channels that will be attempted for this subscription."""
        return [ch for ch in self._channels if ch.accepts(subscription)]

    async def dispatch(
        self,
        subscription: Subscription,
        notification: Notification,
    ) -> list[ChannelResult]:
        """Deliver a notification on every eligible channel.

        Args:
            subscription: Recipient preferences and contact details.
            notification: Rendered message.

        Returns:
            Per-channel results (empty when no channel is eligible).

        Raises:
            NotificationError: If any channel failed all its attempts.
        """
        results: list[ChannelResult] = []

        for channel in self.channels_for(subscription):
            result = await self._send_with_retry(channel, subscription, notification)
            self._metrics.record_notification(
                channel.name, "success" if result.success else "failure",
            )
            results.append(result)

        self._record_delivery(subscription, results)

        if any(not r.success for r in results):
            raise NotificationError(results)
        return results

    async def _send_with_retry(
        self,
        channel: NotificationChannel,
        subscription: Subscription,
        notification: Notification,
    ) -> ChannelResult:
        """Attempt delivery up to ``max_attempts`` times.

        Returns:
            ChannelResult carrying the last error if every attempt failed.
        """
        max_attempts = self._config.max_attempts
        last_error = ""

        for attempt in range(max_attempts):
            try:
                await channel.send(subscription, notification)
                if attempt > 0:
                    logger.info(
                        "Subscriber %s notified via %s on attempt %d",
                        subscription.subscriber_id, channel.name, attempt + 1,
                    )
                return ChannelResult(
                    channel=channel.name, success=True, attempts=attempt + 1,
                )
            except Exception as e:
                last_error = str(e)
                logger.warning(
                    "Channel %s send error (attempt %d): %s",
                    channel.name, attempt + 1, e,
                )

            if attempt < max_attempts - 1 and self._config.retry_delay_seconds > 0:
                await asyncio.sleep(self._config.retry_delay_seconds)

        logger.warning(
            "All %d attempts exhausted for subscriber %s on channel %s",
            max_attempts, subscription.subscriber_id, channel.name,
        )
        return ChannelResult(
            channel=channel.name,
            success=False,
            attempts=max_attempts,
            error=last_error,
        )

    def _record_delivery(
        self,
        subscription: Subscription,
        results: list[ChannelResult],
    ) -> None:
        successes = [r.channel for r in results if r.success]
        failures = [r.channel for r in results if not r.success]

        if not results:
            logger.debug(
                "Subscriber %s has no deliverable channel",
                subscription.subscriber_id,
            )
        elif failures and not successes:
            logger.error(
                "Subscriber %s failed ALL channels: %s",
                subscription.subscriber_id, failures,
            )
        elif failures:
            logger.warning(
                "Subscriber %s partial delivery: ok=%s failed=%s",
                subscription.subscriber_id, successes, failures,
            )
        else:
            logger.debug(
                "Subscriber %s notified on all channels: %s",
                subscription.subscriber_id, successes,
            )
