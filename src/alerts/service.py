"""Alert service orchestrating evaluation, cooldown, notification and persistence.

For every decoded measurement the subscriptions for its sensor are fetched
once, then each (metric, subscriber) pair runs a read, evaluate, write
sequence against its own persisted state. Threshold and cooldown logic is
delegated to the stateless functions in ``evaluator.py`` and
``cooldown.py``.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

import structlog

from src.alerts.config import AlertConfig
from src.alerts.cooldown import decide
from src.alerts.decoder import decode_record
from src.alerts.dispatcher import NotificationDispatcher, NotificationError
from src.alerts.evaluator import evaluate
from src.alerts.repository import AlarmStateRepository, SubscriptionRepository
from src.alerts.schemas import (
    AlarmState,
    AlarmStateKey,
    Measurement,
    Notification,
    Subscription,
    ThresholdConfig,
)
from src.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class RecordOutcome:
    """What processing one record did."""

    sensor_id: str | None = None
    skipped: bool = False
    evaluations: int = 0
    notifications_sent: int = 0
    notification_failures: int = 0
    state_writes: int = 0


def build_notification(
    measurement: Measurement,
    metric: str,
    value: float,
    state: str,
) -> Notification:
    """Render the subject and body for an alarm."""
    level = state.upper()
    return Notification(
        subject=f"Alert {measurement.sensor_id} {metric} {level}",
        body=(
            f"[{measurement.sensor_id}] {metric} {level} "
            f"value={value:.15g} ts={measurement.timestamp}"
        ),
    )


class AlertService:
    """Per-record orchestrator for threshold alerting.

    Holds no per-key state between calls; everything needed to continue a
    state machine is read back from the state store.
    """

    def __init__(
        self,
        config: AlertConfig,
        subscription_repo: SubscriptionRepository,
        state_repo: AlarmStateRepository,
        dispatcher: NotificationDispatcher,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config
        self._subscription_repo = subscription_repo
        self._state_repo = state_repo
        self._dispatcher = dispatcher
        self._clock = clock
        self._metrics = get_metrics()

    async def process_record(self, record: dict) -> RecordOutcome:
        """Decode a raw change-feed record and process it.

        Records that do not decode (removals, missing ids, no numeric
        fields) are skipped without touching the directory.
        """
        measurement = decode_record(
            record,
            sensor_id_attribute=self._config.sensor_id_attribute,
            timestamp_attribute=self._config.timestamp_attribute,
        )
        if measurement is None:
            logger.debug("Record skipped by decoder")
            return RecordOutcome(skipped=True)
        return await self.process_measurement(measurement)

    async def process_measurement(self, measurement: Measurement) -> RecordOutcome:
        """Evaluate one measurement against all of its sensor's subscriptions.

        Args:
            measurement: Decoded reading with at least one numeric field.

        Returns:
            RecordOutcome with evaluation, notification and write counts.

        Raises:
            Directory and state-store errors propagate to the caller.
        """
        outcome = RecordOutcome(sensor_id=measurement.sensor_id)

        subscriptions = await self._subscription_repo.list_subscriptions(
            measurement.sensor_id,
        )
        if not subscriptions:
            logger.debug("No subscriptions", sensor_id=measurement.sensor_id)
            return outcome

        for metric, value in measurement.fields.items():
            for subscription in subscriptions:
                if not subscription.active:
                    continue
                threshold = subscription.threshold_for(metric)
                if threshold is None:
                    continue
                await self._evaluate_pair(
                    measurement, metric, value, subscription, threshold, outcome,
                )

        return outcome

    async def _evaluate_pair(
        self,
        measurement: Measurement,
        metric: str,
        value: float,
        subscription: Subscription,
        threshold: ThresholdConfig,
        outcome: RecordOutcome,
    ) -> None:
        """Run read, evaluate, notify, write for one state machine key."""
        key = AlarmStateKey(
            sensor_id=measurement.sensor_id,
            metric=metric,
            subscriber_id=subscription.subscriber_id,
        )
        previous = await self._state_repo.get_state(key)
        previous_state = previous.last_state if previous else None
        previous_notified_at = previous.last_notified_at if previous else None

        cur_state = evaluate(value, threshold, previous_state)
        now = self._clock()
        decision = decide(cur_state, previous, subscription.cooldown_seconds, now)

        outcome.evaluations += 1
        self._metrics.record_evaluation(cur_state)

        log = logger.bind(
            sensor_id=key.sensor_id,
            metric=metric,
            subscriber_id=key.subscriber_id,
            state=cur_state,
            previous_state=previous_state,
        )

        new_state: AlarmState | None = None

        if decision.should_notify:
            notification = build_notification(measurement, metric, value, cur_state)
            try:
                results = await self._dispatcher.dispatch(subscription, notification)
            except NotificationError as e:
                outcome.notification_failures += 1
                log.warning("Notification failed, clock not advanced", error=str(e))
                if decision.should_persist:
                    new_state = AlarmState(cur_state, previous_notified_at)
            else:
                if results:
                    outcome.notifications_sent += 1
                log.info("Alarm notified", value=value, channels=len(results))
                new_state = AlarmState(cur_state, now)
        elif decision.should_persist:
            new_state = AlarmState(cur_state, previous_notified_at)
        elif decision.is_alarm and decision.cooldown_active:
            log.debug("Alarm held under cooldown")

        if new_state is not None:
            await self._state_repo.put_state(key, new_state)
            outcome.state_writes += 1
            self._metrics.record_state_write(cur_state)
