"""Threshold alerting for sensor measurement change feeds.

Components:
- Measurement / Subscription / ThresholdConfig / AlarmState: Data model
- AlertConfig: Pydantic settings for tables, sender identity and concurrency
- decode_record: Change-feed record to Measurement
- classify / evaluate: Stateless hysteresis state machine
- decide / CooldownDecision: Notification cooldown gate
- SubscriptionRepository / AlarmStateRepository: DynamoDB access
- NotificationChannel / EmailChannel / SmsChannel: Delivery channels
- NotificationConfig / NotificationDispatcher: Retry and aggregation
- AlertService: Per-record read, evaluate, notify, write orchestration
- BatchHandler / lambda_handler: Fault-isolated batch entry point
"""

from src.alerts.channels import (
    ChannelError,
    EmailChannel,
    NotificationChannel,
    SmsChannel,
)
from src.alerts.config import AlertConfig
from src.alerts.cooldown import CooldownDecision, decide
from src.alerts.decoder import decode_record
from src.alerts.dispatcher import (
    ChannelResult,
    NotificationConfig,
    NotificationDispatcher,
    NotificationError,
)
from src.alerts.evaluator import classify, evaluate
from src.alerts.handler import BatchHandler, BatchResult, lambda_handler
from src.alerts.repository import AlarmStateRepository, SubscriptionRepository
from src.alerts.schemas import (
    VALID_ALARM_LEVELS,
    VALID_CHANNELS,
    AlarmLevel,
    AlarmState,
    AlarmStateKey,
    Measurement,
    Notification,
    Subscription,
    ThresholdConfig,
)
from src.alerts.service import AlertService, RecordOutcome

__all__ = [
    "AlarmLevel",
    "AlarmState",
    "AlarmStateKey",
    "AlarmStateRepository",
    "AlertConfig",
    "AlertService",
    "BatchHandler",
    "BatchResult",
    "ChannelError",
    "ChannelResult",
    "CooldownDecision",
    "EmailChannel",
    "Measurement",
    "Notification",
    "NotificationChannel",
    "NotificationConfig",
    "NotificationDispatcher",
    "NotificationError",
    "RecordOutcome",
    "SmsChannel",
    "Subscription",
    "SubscriptionRepository",
    "ThresholdConfig",
    "VALID_ALARM_LEVELS",
    "VALID_CHANNELS",
    "classify",
    "decide",
    "decode_record",
    "evaluate",
    "lambda_handler",
]
