"""Schema definitions for sensor alerting.

Measurements are decoded from change-feed records, subscriptions and
thresholds come from the ``alert_subscriptions`` table, and alarm state is
persisted per ``(sensor, metric, subscriber)`` key in the ``alert_state``
table.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

AlarmLevel = Literal["ok", "low", "high"]

VALID_ALARM_LEVELS: frozenset[str] = frozenset({"ok", "low", "high"})

ALARM_LEVELS: frozenset[str] = frozenset({"low", "high"})

ChannelName = Literal["email", "sms"]

VALID_CHANNELS: frozenset[str] = frozenset({"email", "sms"})

DEFAULT_COOLDOWN_SECONDS = 1800


@dataclass(frozen=True)
class Measurement:
    """A single decoded sensor reading.

    Attributes:
        sensor_id: Sensor that produced the reading.
        timestamp: Epoch milliseconds reported with the reading.
        fields: Metric name to numeric value.
    """

    sensor_id: str
    timestamp: int
    fields: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ThresholdConfig:
    """Alarm bounds for one metric of one subscription."""

    min: float | None = None
    max: float | None = None
    hysteresis: float = 0.0

    def __post_init__(self) -> None:
        for name in ("min", "max", "hysteresis"):
            value = getattr(self, name)
            if value is not None and not math.isfinite(value):
                raise ValueError(f"Threshold {name} must be finite, got {value!r}")
        if self.hysteresis < 0:
            raise ValueError(
                f"Threshold hysteresis must be >= 0, got {self.hysteresis!r}"
            )

    @property
    def has_bounds(self) -> bool:
        return self.min is not None or self.max is not None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ThresholdConfig":
        """Build from a stored threshold map (values may be ``Decimal``)."""
        return cls(
            min=_optional_float(data.get("min")),
            max=_optional_float(data.get("max")),
            hysteresis=_optional_float(data.get("hysteresis")) or 0.0,
        )


@dataclass(frozen=True)
class Subscription:
    """A subscriber's alerting preferences for one sensor.

    Attributes:
        subscriber_id: Stable subscriber identity (``userSub``).
        active: Inactive subscriptions are ignored entirely.
        channels: Requested delivery channels.
        email: Destination address for the email channel.
        phone_number: E.164 number for the SMS channel.
        thresholds: Metric name to threshold configuration.
        cooldown_seconds: Minimum gap between repeat notifications.
    """

    subscriber_id: str
    active: bool = True
    channels: frozenset[str] = frozenset()
    email: str | None = None
    phone_number: str | None = None
    thresholds: dict[str, ThresholdConfig] = field(default_factory=dict)
    cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS

    def __post_init__(self) -> None:
        unknown = set(self.channels) - VALID_CHANNELS
        if unknown:
            raise ValueError(
                f"Invalid channels {sorted(unknown)}. "
                f"Must be among: {sorted(VALID_CHANNELS)}"
            )
        if self.cooldown_seconds < 0:
            raise ValueError(
                f"cooldown_seconds must be >= 0, got {self.cooldown_seconds!r}"
            )

    def threshold_for(self, metric: str) -> ThresholdConfig | None:
        """Return the threshold for ``metric`` if one with bounds exists."""
        threshold = self.thresholds.get(metric)
        if threshold is None or not threshold.has_bounds:
            return None
        return threshold


@dataclass(frozen=True)
class AlarmStateKey:
    """Identity of one persisted alarm state machine."""

    sensor_id: str
    metric: str
    subscriber_id: str

    @property
    def partition_key(self) -> str:
        return f"{self.sensor_id}#{self.metric}"

    def to_item_key(self) -> dict[str, str]:
        return {"pk": self.partition_key, "sk": self.subscriber_id}


@dataclass(frozen=True)
class AlarmState:
    """Last known alarm level and notification time for a key."""

    last_state: str
    last_notified_at: datetime | None = None

    def __post_init__(self) -> None:
        if self.last_state not in VALID_ALARM_LEVELS:
            raise ValueError(
                f"Invalid last_state {self.last_state!r}. "
                f"Must be one of: {sorted(VALID_ALARM_LEVELS)}"
            )

    def to_item(self, key: AlarmStateKey) -> dict[str, Any]:
        """Convert to a state table item."""
        item: dict[str, Any] = {**key.to_item_key(), "lastState": self.last_state}
        if self.last_notified_at is not None:
            item["lastNotifiedAt"] = self.last_notified_at.isoformat()
        return item

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "AlarmState":
        """Create an AlarmState from a state table item.

        An unparseable ``lastNotifiedAt`` is treated as absent.
        """
        last_notified_at = item.get("lastNotifiedAt")
        if isinstance(last_notified_at, str):
            last_notified_at = _parse_timestamp(last_notified_at)
        else:
            last_notified_at = None

        return cls(
            last_state=item.get("lastState", "ok"),
            last_notified_at=last_notified_at,
        )


@dataclass(frozen=True)
class Notification:
    """Rendered alert message for one subscriber."""

    subject: str
    body: str


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


def _parse_timestamp(value: str) -> datetime | None:
    # Stored by other writers as e.g. "2026-02-07T12:00:00.000Z"
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
