"""Notification cooldown gate.

Decides whether a freshly evaluated level should be announced now and
whether the persisted state needs rewriting. Persistence happens only when
``lastState`` or ``lastNotifiedAt`` would actually change, so sensors
sitting quietly in range and alarms held under cooldown cause no writes.
"""

from dataclasses import dataclass
from datetime import datetime

from src.alerts.schemas import ALARM_LEVELS, AlarmState


@dataclass(frozen=True)
class CooldownDecision:
    """Outcome of the cooldown gate for one key."""

    is_alarm: bool
    changed: bool
    cooldown_active: bool
    should_notify: bool
    should_persist: bool


def is_cooldown_active(
    last_notified_at: datetime | None,
    cooldown_seconds: int,
    now: datetime,
) -> bool:
    """True while ``now`` is within ``cooldown_seconds`` of the last notification."""
    if last_notified_at is None or cooldown_seconds <= 0:
        return False
    return (now - last_notified_at).total_seconds() < cooldown_seconds


def decide(
    new_state: str,
    previous: AlarmState | None,
    cooldown_seconds: int,
    now: datetime,
) -> CooldownDecision:
    """Apply the cooldown rules to an evaluated level.

    Args:
        new_state: Level produced by the evaluator.
        previous: Persisted state, or None on first observation.
        cooldown_seconds: Subscription cooldown; ``<= 0`` disables it.
        now: Current time (timezone-aware).

    Returns:
        CooldownDecision. ``should_persist`` describes the write needed when
        no notification goes out; a successful notification always writes.
    """
    previous_state = previous.last_state if previous else None
    last_notified_at = previous.last_notified_at if previous else None

    is_alarm = new_state in ALARM_LEVELS
    changed = new_state != previous_state
    cooldown_active = is_cooldown_active(last_notified_at, cooldown_seconds, now)

    return CooldownDecision(
        is_alarm=is_alarm,
        changed=changed,
        cooldown_active=cooldown_active,
        should_notify=is_alarm and (changed or not cooldown_active),
        should_persist=changed,
    )
