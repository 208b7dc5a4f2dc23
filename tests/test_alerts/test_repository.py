"""Tests for the DynamoDB-backed subscription and state repositories."""

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from src.alerts.repository import AlarmStateRepository, SubscriptionRepository
from src.alerts.schemas import AlarmState, AlarmStateKey, ThresholdConfig


def _subs_item(**overrides):
    item = {
        "sensorId": "elt-1",
        "userSub": "u1",
        "active": True,
        "channels": ["email", "sms"],
        "email": "test@example.com",
        "phone_number": "+358401234567",
        "thresholds": {"tC": {"max": Decimal("30"), "hysteresis": Decimal("0.5")}},
        "cooldownSec": Decimal("600"),
    }
    item.update(overrides)
    return item


@pytest.fixture
def subs_table():
    table = MagicMock()
    table.query.return_value = {"Items": [_subs_item()]}
    return table


@pytest.fixture
def state_table():
    table = MagicMock()
    table.get_item.return_value = {}
    return table


class TestSubscriptionRepository:

    @pytest.mark.asyncio
    async def test_parses_items(self, subs_table):
        repo = SubscriptionRepository(subs_table)
        subs = await repo.list_subscriptions("elt-1")

        assert len(subs) == 1
        sub = subs[0]
        assert sub.subscriber_id == "u1"
        assert sub.active is True
        assert sub.channels == frozenset({"email", "sms"})
        assert sub.email == "test@example.com"
        assert sub.phone_number == "+358401234567"
        assert sub.thresholds == {"tC": ThresholdConfig(max=30.0, hysteresis=0.5)}
        assert sub.cooldown_seconds == 600

        subs_table.query.assert_called_once()
        assert "KeyConditionExpression" in subs_table.query.call_args.kwargs

    @pytest.mark.asyncio
    async def test_empty_partition(self, subs_table):
        subs_table.query.return_value = {"Items": []}
        repo = SubscriptionRepository(subs_table)
        assert await repo.list_subscriptions("nobody") == []

    @pytest.mark.asyncio
    async def test_follows_pagination(self, subs_table):
        subs_table.query.side_effect = [
            {"Items": [_subs_item(userSub="u1")], "LastEvaluatedKey": {"k": "1"}},
            {"Items": [_subs_item(userSub="u2")]},
        ]
        repo = SubscriptionRepository(subs_table)
        subs = await repo.list_subscriptions("elt-1")

        assert [s.subscriber_id for s in subs] == ["u1", "u2"]
        second_call = subs_table.query.call_args_list[1]
        assert second_call.kwargs["ExclusiveStartKey"] == {"k": "1"}

    @pytest.mark.asyncio
    async def test_defaults_for_sparse_items(self, subs_table):
        subs_table.query.return_value = {"Items": [{"sensorId": "elt-1", "userSub": "u9"}]}
        repo = SubscriptionRepository(subs_table, default_cooldown_seconds=900)
        sub = (await repo.list_subscriptions("elt-1"))[0]

        assert sub.active is True
        assert sub.channels == frozenset()
        assert sub.thresholds == {}
        assert sub.cooldown_seconds == 900

    @pytest.mark.asyncio
    async def test_inactive_flag_respected(self, subs_table):
        subs_table.query.return_value = {"Items": [_subs_item(active=False)]}
        repo = SubscriptionRepository(subs_table)
        sub = (await repo.list_subscriptions("elt-1"))[0]
        assert sub.active is False

    @pytest.mark.asyncio
    async def test_invalid_entries_dropped(self, subs_table):
        subs_table.query.return_value = {"Items": [
            _subs_item(
                channels=["email", "pager"],
                thresholds={
                    "tC": {"max": Decimal("30"), "hysteresis": Decimal("-1")},
                    "rhPct": {"min": Decimal("20")},
                    "co2": "garbage",
                },
            ),
            {"sensorId": "elt-1"},  # no userSub
        ]}
        repo = SubscriptionRepository(subs_table)
        subs = await repo.list_subscriptions("elt-1")

        assert len(subs) == 1
        assert subs[0].channels == frozenset({"email"})
        assert subs[0].thresholds == {"rhPct": ThresholdConfig(min=20.0)}

    @pytest.mark.asyncio
    async def test_non_map_thresholds_keeps_subscription(self, subs_table):
        subs_table.query.return_value = {"Items": [
            _subs_item(userSub="u1", thresholds="bogus"),
            _subs_item(userSub="u2"),
        ]}
        repo = SubscriptionRepository(subs_table)

        subs = await repo.list_subscriptions("elt-1")

        assert [s.subscriber_id for s in subs] == ["u1", "u2"]
        assert subs[0].thresholds == {}
        assert subs[0].channels == frozenset({"email", "sms"})
        assert subs[1].threshold_for("tC") == ThresholdConfig(max=30.0, hysteresis=0.5)

    @pytest.mark.asyncio
    async def test_errors_propagate(self, subs_table):
        subs_table.query.side_effect = ClientError(
            {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow down"}},
            "Query",
        )
        repo = SubscriptionRepository(subs_table)
        with pytest.raises(ClientError):
            await repo.list_subscriptions("elt-1")


class TestAlarmStateRepository:

    @pytest.mark.asyncio
    async def test_get_missing_returns_none(self, state_table):
        repo = AlarmStateRepository(state_table)
        key = AlarmStateKey("elt-1", "tC", "u1")

        assert await repo.get_state(key) is None
        state_table.get_item.assert_called_once_with(Key={"pk": "elt-1#tC", "sk": "u1"})

    @pytest.mark.asyncio
    async def test_get_existing(self, state_table):
        state_table.get_item.return_value = {"Item": {
            "pk": "elt-1#tC",
            "sk": "u1",
            "lastState": "high",
            "lastNotifiedAt": "2026-02-07T12:00:00+00:00",
        }}
        repo = AlarmStateRepository(state_table)
        state = await repo.get_state(AlarmStateKey("elt-1", "tC", "u1"))

        assert state == AlarmState(
            last_state="high",
            last_notified_at=datetime(2026, 2, 7, 12, 0, tzinfo=timezone.utc),
        )

    @pytest.mark.asyncio
    async def test_unparseable_notification_time_is_absent(self, state_table):
        state_table.get_item.return_value = {"Item": {
            "pk": "elt-1#tC",
            "sk": "u1",
            "lastState": "high",
            "lastNotifiedAt": "not-a-time",
        }}
        repo = AlarmStateRepository(state_table)
        state = await repo.get_state(AlarmStateKey("elt-1", "tC", "u1"))

        assert state == AlarmState(last_state="high", last_notified_at=None)

    @pytest.mark.asyncio
    async def test_put_overwrites(self, state_table):
        repo = AlarmStateRepository(state_table)
        await repo.put_state(
            AlarmStateKey("elt-1", "tC", "u1"),
            AlarmState(last_state="ok"),
        )
        state_table.put_item.assert_called_once_with(
            Item={"pk": "elt-1#tC", "sk": "u1", "lastState": "ok"},
        )
