"""Batch entry point for change-feed records.

Every record in a batch is evaluated as an isolated unit of work and the
batch always completes: failures are logged and counted, never raised,
because the transport would otherwise redeliver the whole batch and
repeat notifications for records that already succeeded.

``lambda_handler`` is the function wired to the DynamoDB Streams trigger.
"""

import asyncio
import time
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import structlog

from src.alerts.channels import EmailChannel, SmsChannel
from src.alerts.clients import AwsClients, get_clients
from src.alerts.config import AlertConfig
from src.alerts.dispatcher import NotificationConfig, NotificationDispatcher
from src.alerts.repository import AlarmStateRepository, SubscriptionRepository
from src.alerts.service import AlertService
from src.observability.logging import bind_context, clear_context, setup_logging
from src.observability.metrics import get_metrics

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class BatchResult:
    """Aggregate outcome of one batch."""

    processed: int
    failed: int

    def to_dict(self) -> dict[str, int]:
        return {"processed": self.processed, "failed": self.failed}


class BatchHandler:
    """Fans AlertService out over a batch with per-record fault isolation."""

    def __init__(
        self,
        service: AlertService,
        max_concurrency: int = 16,
        sensor_id_attribute: str = "sensorId",
    ) -> None:
        self._service = service
        self._max_concurrency = max_concurrency
        self._sensor_id_attribute = sensor_id_attribute
        self._metrics = get_metrics()

    async def process_batch(self, records: Sequence[dict[str, Any]]) -> BatchResult:
        """Process all records concurrently.

        Args:
            records: Raw change-feed records.

        Returns:
            BatchResult with the record count and how many failed.
        """
        start = time.perf_counter()
        semaphore = asyncio.Semaphore(self._max_concurrency)

        async def run(index: int, record: dict[str, Any]) -> bool:
            async with semaphore:
                return await self._process_one(index, record)

        outcomes = await asyncio.gather(
            *(run(i, r) for i, r in enumerate(records)),
            return_exceptions=True,
        )
        failed = sum(1 for ok in outcomes if ok is not True)

        result = BatchResult(processed=len(records), failed=failed)
        self._metrics.record_batch(
            result.processed, result.failed, time.perf_counter() - start,
        )

        if failed:
            logger.warning("Batch completed with failures", **result.to_dict())
        else:
            logger.info("Batch completed", **result.to_dict())
        return result

    async def _process_one(self, index: int, record: dict[str, Any]) -> bool:
        """Process a single record, converting any error into a failure flag."""
        try:
            outcome = await self._service.process_record(record)
        except Exception as e:
            logger.error(
                "Record processing failed",
                record_index=index,
                sensor_id=_sensor_hint(record, self._sensor_id_attribute),
                error=str(e),
                error_type=type(e).__name__,
            )
            self._metrics.record_record("error")
            return False

        if outcome.skipped:
            self._metrics.record_record("skipped")
        elif outcome.notification_failures:
            self._metrics.record_record("notify_failed")
        else:
            self._metrics.record_record("success")
        return True


def _sensor_hint(record: Any, attribute: str = "sensorId") -> str | None:
    """Best-effort sensor id for error logs."""
    try:
        image = record.get("dynamodb", {}).get("NewImage") or record.get("newImage") or {}
        attr = image.get(attribute)
        if isinstance(attr, dict):
            return attr.get("S") or attr.get("s") or attr.get("stringValue")
        return attr if isinstance(attr, str) else None
    except AttributeError:
        return None


def build_handler(
    clients: AwsClients,
    config: AlertConfig | None = None,
    notification_config: NotificationConfig | None = None,
) -> BatchHandler:
    """Wire repositories, channels and the service onto AWS handles."""
    config = config or AlertConfig()

    subscription_repo = SubscriptionRepository(
        clients.dynamodb.Table(config.subscriptions_table),
        default_cooldown_seconds=config.default_cooldown_seconds,
    )
    state_repo = AlarmStateRepository(clients.dynamodb.Table(config.state_table))
    dispatcher = NotificationDispatcher(
        channels=[
            EmailChannel(clients.sesv2, from_address=config.ses_from),
            SmsChannel(clients.sns),
        ],
        config=notification_config,
    )
    service = AlertService(
        config=config,
        subscription_repo=subscription_repo,
        state_repo=state_repo,
        dispatcher=dispatcher,
    )
    return BatchHandler(
        service,
        max_concurrency=config.max_concurrency,
        sensor_id_attribute=config.sensor_id_attribute,
    )


@lru_cache
def get_handler() -> BatchHandler:
    """Get the process-wide handler, built on first use."""
    setup_logging()
    config = AlertConfig()
    if not config.email_enabled:
        logger.warning("SES sender identity not configured, email disabled")
    return build_handler(get_clients(), config=config)


def lambda_handler(event: dict[str, Any], context: Any = None) -> dict[str, int]:
    """AWS Lambda entry point for DynamoDB Streams batches.

    Never raises; a batch that cannot even be started is reported as all
    records failed.
    """
    records = event.get("Records") if isinstance(event, dict) else None
    if not isinstance(records, list):
        records = []

    request_id = getattr(context, "aws_request_id", None)
    if request_id:
        bind_context(request_id=request_id)

    try:
        result = asyncio.run(get_handler().process_batch(records))
    except Exception as e:
        logger.error("Alert evaluator error", error=str(e))
        result = BatchResult(processed=len(records), failed=len(records))
    finally:
        clear_context()
    return result.to_dict()
