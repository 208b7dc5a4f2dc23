"""Shared fixtures for alert tests."""

from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.alerts.channels import EmailChannel, SmsChannel
from src.alerts.config import AlertConfig
from src.alerts.dispatcher import NotificationConfig, NotificationDispatcher
from src.alerts.repository import AlarmStateRepository, SubscriptionRepository
from src.alerts.schemas import Subscription, ThresholdConfig
from src.alerts.service import AlertService

NOW = datetime(2026, 2, 7, 12, 0, 0, tzinfo=timezone.utc)
TS_MS = 1770465600000


def ddb_number(n: float) -> dict[str, str]:
    return {"N": str(n)}


def ddb_string(s: str) -> dict[str, str]:
    return {"S": s}


def stream_record(
    sensor_id: str = "elt-1",
    ts: int = TS_MS,
    measurements: dict[str, float] | None = None,
    event_name: str = "INSERT",
) -> dict[str, Any]:
    """Build a DynamoDB Streams record for a sensor reading."""
    image: dict[str, Any] = {"sensorId": ddb_string(sensor_id), "ts": ddb_number(ts)}
    for name, value in (measurements or {}).items():
        image[name] = ddb_number(value)
    return {"eventName": event_name, "dynamodb": {"NewImage": image}}


def remove_record() -> dict[str, Any]:
    return {"eventName": "REMOVE", "dynamodb": {}}


def make_subscription(**overrides: Any) -> Subscription:
    defaults: dict[str, Any] = {
        "subscriber_id": "u1",
        "active": True,
        "channels": frozenset({"email", "sms"}),
        "email": "test@example.com",
        "phone_number": "+358401234567",
        "thresholds": {"tC": ThresholdConfig(max=30, hysteresis=0.5)},
        "cooldown_seconds": 1800,
    }
    defaults.update(overrides)
    return Subscription(**defaults)


@pytest.fixture
def config():
    return AlertConfig(ses_from="noreply@example.com")


@pytest.fixture
def ses_client():
    return MagicMock()


@pytest.fixture
def sns_client():
    return MagicMock()


@pytest.fixture
def dispatcher(config, ses_client, sns_client):
    return NotificationDispatcher(
        channels=[
            EmailChannel(ses_client, from_address=config.ses_from),
            SmsChannel(sns_client),
        ],
        config=NotificationConfig(max_attempts=2, retry_delay_seconds=0.0),
    )


@pytest.fixture
def mock_subscription_repo():
    repo = AsyncMock(spec=SubscriptionRepository)
    repo.list_subscriptions.return_value = [make_subscription()]
    return repo


@pytest.fixture
def mock_state_repo():
    repo = AsyncMock(spec=AlarmStateRepository)
    repo.get_state.return_value = None
    return repo


@pytest.fixture
def service(config, mock_subscription_repo, mock_state_repo, dispatcher):
    return AlertService(
        config=config,
        subscription_repo=mock_subscription_repo,
        state_repo=mock_state_repo,
        dispatcher=dispatcher,
        clock=lambda: NOW,
    )
