"""
Prometheus metrics for the alert evaluator.

Defines metrics for:
- Change-feed records processed (by outcome)
- Threshold evaluations (by resulting level)
- Notification deliveries (by channel and status)
- Alarm state writes
- Batch latency

Long-running processes (the CLI) can expose them over HTTP for scraping.
"""

import logging

from prometheus_client import Counter, Histogram, start_http_server

from src.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for batch latency histograms (in seconds)
LATENCY_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)


class MetricsCollector:
    """
    Prometheus metrics collector for threshold alerting.

    Usage:
        metrics = get_metrics()
        metrics.record_record("success")
        metrics.record_notification("email", "success")
    """

    def __init__(self):
        """Initialize Prometheus metrics."""

        self.records_processed = Counter(
            "sensor_alerts_records_processed_total",
            "Change-feed records processed",
            ["status"],  # success, skipped, notify_failed, error
        )

        self.evaluations = Counter(
            "sensor_alerts_evaluations_total",
            "Threshold evaluations by resulting level",
            ["state"],
        )

        self.notifications = Counter(
            "sensor_alerts_notifications_total",
            "Notification deliveries by channel",
            ["channel", "status"],  # status: success, failure
        )

        self.state_writes = Counter(
            "sensor_alerts_state_writes_total",
            "Alarm state records written",
            ["state"],
        )

        self.batch_size = Histogram(
            "sensor_alerts_batch_size",
            "Records per change-feed batch",
            buckets=(1, 5, 10, 25, 50, 100, 500, 1000),
        )

        self.batch_latency = Histogram(
            "sensor_alerts_batch_latency_seconds",
            "Time to process a change-feed batch",
            buckets=LATENCY_BUCKETS,
        )

        self.batch_failures = Counter(
            "sensor_alerts_batch_record_failures_total",
            "Records that failed inside a batch",
        )

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus metrics HTTP server.

        Args:
            port: Port to listen on (defaults to settings.metrics_port)
        """
        port = port or get_settings().metrics_port
        start_http_server(port)
        logger.info(f"Metrics server started on port {port}")

    def record_record(self, status: str) -> None:
        """Record the outcome of one change-feed record."""
        self.records_processed.labels(status=status).inc()

    def record_evaluation(self, state: str) -> None:
        self.evaluations.labels(state=state).inc()

    def record_notification(self, channel: str, status: str) -> None:
        self.notifications.labels(channel=channel, status=status).inc()

    def record_state_write(self, state: str) -> None:
        self.state_writes.labels(state=state).inc()

    def record_batch(self, processed: int, failed: int, latency: float) -> None:
        """
        Record batch-level metrics.

        Args:
            processed: Records in the batch
            failed: Records that failed
            latency: Total batch latency in seconds
        """
        if processed > 0:
            self.batch_size.observe(processed)
        if failed > 0:
            self.batch_failures.inc(failed)
        if latency > 0:
            self.batch_latency.observe(latency)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
