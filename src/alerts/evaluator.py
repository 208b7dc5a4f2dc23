"""Stateless threshold evaluation with hysteresis.

The alarm state machine for a ``(sensor, metric, subscriber)`` key is
re-derived on every reading from the previously persisted level alone.
No I/O, no clock; persistence and notification live in AlertService.

Entering ``low``/``high`` requires crossing ``min``/``max`` exactly.
Hysteresis only widens the band that must be re-entered before an active
alarm falls back to ``ok``, and an alarm never flips directly between
``low`` and ``high``.
"""

from src.alerts.schemas import ThresholdConfig


def classify(value: float, threshold: ThresholdConfig) -> str:
    """Classify a value against raw bounds, ignoring hysteresis.

    Args:
        value: Measured value.
        threshold: Bounds for the metric.

    Returns:
        ``"high"``, ``"low"`` or ``"ok"``.
    """
    if threshold.max is not None and value > threshold.max:
        return "high"
    if threshold.min is not None and value < threshold.min:
        return "low"
    return "ok"


def evaluate(
    value: float,
    threshold: ThresholdConfig,
    previous_state: str | None,
) -> str:
    """Compute the new alarm level for a reading.

    Args:
        value: Measured value.
        threshold: Bounds and hysteresis for the metric.
        previous_state: Persisted level, or None on first observation.

    Returns:
        The new level.
    """
    raw = classify(value, threshold)
    if previous_state is None or previous_state == raw:
        return raw

    # An alarm whose bound has since been removed from the config releases.
    if previous_state == "high":
        if threshold.max is not None and value > threshold.max - threshold.hysteresis:
            return "high"
        return "ok"

    if previous_state == "low":
        if threshold.min is not None and value < threshold.min + threshold.hysteresis:
            return "low"
        return "ok"

    return raw
