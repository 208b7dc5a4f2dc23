"""Decode change-feed records into measurements.

Understands DynamoDB Streams records (``eventName`` plus typed attribute
values under ``dynamodb.NewImage``) as well as the plain
``eventType``/``newImage`` shape. Anything that is not an insert with a
sensor id, a numeric timestamp and at least one numeric field decodes to
``None`` and is skipped by the caller.
"""

import math
from decimal import Decimal, InvalidOperation
from typing import Any

from src.alerts.schemas import Measurement

INSERT_EVENT = "insert"


def decode_record(
    record: dict[str, Any],
    sensor_id_attribute: str = "sensorId",
    timestamp_attribute: str = "ts",
) -> Measurement | None:
    """Extract a measurement from a raw change-feed record.

    Args:
        record: One change-feed record.
        sensor_id_attribute: Attribute holding the sensor identity.
        timestamp_attribute: Attribute holding the epoch-ms timestamp.

    Returns:
        Measurement, or None if the record should be skipped.
    """
    if not isinstance(record, dict):
        return None

    if _event_type(record) != INSERT_EVENT:
        return None

    image = _new_image(record)
    if not image:
        return None

    sensor_id = _string_value(image.get(sensor_id_attribute))
    if not sensor_id:
        return None

    timestamp = _numeric_value(image.get(timestamp_attribute))
    if timestamp is None:
        return None

    fields: dict[str, float] = {}
    for name, raw in image.items():
        if name in (sensor_id_attribute, timestamp_attribute):
            continue
        value = _numeric_value(raw)
        if value is not None:
            fields[name] = value

    if not fields:
        return None

    return Measurement(sensor_id=sensor_id, timestamp=int(timestamp), fields=fields)


def _event_type(record: dict[str, Any]) -> str:
    event_type = record.get("eventName") or record.get("eventType") or ""
    return str(event_type).lower()


def _new_image(record: dict[str, Any]) -> dict[str, Any] | None:
    stream = record.get("dynamodb")
    if isinstance(stream, dict) and isinstance(stream.get("NewImage"), dict):
        return stream["NewImage"]
    image = record.get("newImage")
    if isinstance(image, dict):
        return image
    return None


def _string_value(attr: Any) -> str | None:
    if isinstance(attr, dict):
        attr = attr.get("S") or attr.get("s") or attr.get("stringValue")
    if isinstance(attr, str) and attr:
        return attr
    return None


def _numeric_value(attr: Any) -> float | None:
    if isinstance(attr, dict):
        if "N" in attr:
            attr = attr["N"]
        elif "numericValue" in attr:
            attr = attr["numericValue"]
        else:
            return None
    elif isinstance(attr, bool):
        return None

    if isinstance(attr, str):
        try:
            attr = Decimal(attr)
        except InvalidOperation:
            return None

    if not isinstance(attr, (int, float, Decimal)) or isinstance(attr, bool):
        return None

    value = float(attr)
    if not math.isfinite(value):
        return None
    return value
