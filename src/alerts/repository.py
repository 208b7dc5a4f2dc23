"""Repositories for the subscription directory and the alarm state store.

Both are thin async wrappers over boto3 DynamoDB ``Table`` resources.
boto3 is blocking, so every call runs in a worker thread via
``asyncio.to_thread``. Errors are not caught here: a failing lookup or
write fails the record being processed.
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any

from boto3.dynamodb.conditions import Key

from src.alerts.schemas import (
    DEFAULT_COOLDOWN_SECONDS,
    VALID_CHANNELS,
    AlarmState,
    AlarmStateKey,
    Subscription,
    ThresholdConfig,
)

logger = logging.getLogger(__name__)


class SubscriptionRepository:
    """Read-only access to the ``alert_subscriptions`` table.

    Items are partitioned by ``sensorId``; one item per subscriber.
    """

    def __init__(
        self,
        table: Any,
        default_cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
    ) -> None:
        self._table = table
        self._default_cooldown = default_cooldown_seconds

    async def list_subscriptions(self, sensor_id: str) -> list[Subscription]:
        """Fetch every subscription for a sensor.

        Follows ``LastEvaluatedKey`` until the partition is exhausted.

        Args:
            sensor_id: Sensor identity.

        Returns:
            Subscriptions (active and inactive), empty if none exist.
        """
        items: list[dict[str, Any]] = []
        kwargs: dict[str, Any] = {
            "KeyConditionExpression": Key("sensorId").eq(sensor_id),
        }

        while True:
            resp = await asyncio.to_thread(self._table.query, **kwargs)
            items.extend(resp.get("Items", []))
            last_key = resp.get("LastEvaluatedKey")
            if not last_key:
                break
            kwargs["ExclusiveStartKey"] = last_key

        subscriptions: list[Subscription] = []
        for item in items:
            subscription = _item_to_subscription(item, self._default_cooldown)
            if subscription is not None:
                subscriptions.append(subscription)
        return subscriptions


class AlarmStateRepository:
    """Get/put access to the ``alert_state`` table.

    Writes are plain overwrites; concurrent writers on the same key race
    and the last write wins.
    """

    def __init__(self, table: Any) -> None:
        self._table = table

    async def get_state(self, key: AlarmStateKey) -> AlarmState | None:
        """Load the persisted state for a key.

        Args:
            key: State machine identity.

        Returns:
            AlarmState or None if the key has never been written.
        """
        resp = await asyncio.to_thread(
            self._table.get_item, Key=key.to_item_key(),
        )
        item = resp.get("Item")
        if item is None:
            return None
        state = AlarmState.from_item(item)
        if state.last_notified_at is None and item.get("lastNotifiedAt"):
            logger.warning(
                "Ignoring unparseable lastNotifiedAt %r for %s",
                item["lastNotifiedAt"], key.partition_key,
            )
        return state

    async def put_state(self, key: AlarmStateKey, state: AlarmState) -> None:
        """Overwrite the persisted state for a key."""
        await asyncio.to_thread(self._table.put_item, Item=state.to_item(key))


def _item_to_subscription(
    item: dict[str, Any],
    default_cooldown: int,
) -> Subscription | None:
    """Convert a subscription table item, or None if it is unusable."""
    subscriber_id = item.get("userSub")
    if not subscriber_id:
        logger.warning(
            "Skipping subscription without userSub for sensor %s",
            item.get("sensorId"),
        )
        return None

    raw_channels = item.get("channels") or []
    if isinstance(raw_channels, str):
        raw_channels = [raw_channels]
    channels = frozenset(str(c) for c in raw_channels) & VALID_CHANNELS

    raw_thresholds = item.get("thresholds") or {}
    if not isinstance(raw_thresholds, dict):
        logger.warning(
            "Ignoring non-map thresholds for subscriber %s", subscriber_id,
        )
        raw_thresholds = {}

    thresholds: dict[str, ThresholdConfig] = {}
    for metric, raw in raw_thresholds.items():
        if not isinstance(raw, dict):
            continue
        try:
            thresholds[metric] = ThresholdConfig.from_dict(raw)
        except (TypeError, ValueError) as e:
            logger.warning(
                "Ignoring invalid %s threshold for subscriber %s: %s",
                metric, subscriber_id, e,
            )

    cooldown = item.get("cooldownSec")
    if isinstance(cooldown, (int, Decimal)) and not isinstance(cooldown, bool):
        cooldown_seconds = max(0, int(cooldown))
    else:
        cooldown_seconds = default_cooldown

    return Subscription(
        subscriber_id=str(subscriber_id),
        active=item.get("active") is not False,
        channels=channels,
        email=item.get("email") or None,
        phone_number=item.get("phone_number") or None,
        thresholds=thresholds,
        cooldown_seconds=cooldown_seconds,
    )
