"""
Schema checks for inbound sensor readings and accident events.

Both entity kinds share one field table; each kind only differs in which
fields are mandatory. Checks run in declaration order and stop at the first
violation, so the reported reason is stable for a given payload.
"""

import math
from typing import Any, Callable, NamedTuple, Optional, Sequence, Tuple

HISTORY_FIELDS = (
    "pulse_history",
    "distance_history",
    "alcohol_history",
    "impact_history",
    "vibration_history",
)


class ValidationResult(NamedTuple):
    ok: bool
    reason: Optional[str] = None


def is_number(value: Any) -> bool:
    # bool is an int subclass but never a reading value
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def _non_negative_number(value: Any) -> bool:
    return is_number(value) and value >= 0


def _non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def _timestamp(value: Any) -> bool:
    return is_number(value) or _non_empty_string(value)


def _latitude(value: Any) -> bool:
    return is_number(value) and -90 <= value <= 90


def _longitude(value: Any) -> bool:
    return is_number(value) and -180 <= value <= 180


def _number_series(value: Any) -> bool:
    return isinstance(value, list) and all(is_number(sample) for sample in value)


FieldCheck = Tuple[str, Callable[[Any], bool], str]

FIELD_CHECKS: Tuple[FieldCheck, ...] = (
    ("device_id", _non_empty_string, "a non-empty string"),
    ("timestamp", _timestamp, "an epoch number or a date string"),
    ("alcohol", _non_negative_number, "a non-negative number"),
    ("vibration", _non_negative_number, "a non-negative number"),
    ("distance", _non_negative_number, "a non-negative number"),
    ("seatbelt", lambda value: isinstance(value, bool), "a boolean"),
    ("impact", _non_negative_number, "a non-negative number"),
    ("pulse", is_number, "a number"),
    ("current_pulse", is_number, "a number"),
    ("pulse_threshold_min", is_number, "a number"),
    ("pulse_threshold_max", is_number, "a number"),
    ("lat", _latitude, "a latitude between -90 and 90"),
    ("lng", _longitude, "a longitude between -180 and 180"),
    ("lcd_display", lambda value: isinstance(value, str), "a string"),
) + tuple((field, _number_series, "an array of numbers") for field in HISTORY_FIELDS)

SENSOR_REQUIRED_FIELDS = ("device_id", "timestamp", "alcohol", "vibration", "distance", "seatbelt", "impact")
ACCIDENT_REQUIRED_FIELDS = ("device_id", "timestamp", "alcohol", "vibration", "distance", "seatbelt", "impact")


def validate_reading(payload: Any, required_fields: Sequence[str]) -> ValidationResult:
    """Validate a raw ingestion payload; pure, no side effects.

    A JSON null in an optional field counts as absent. Required fields must be
    present and non-null.
    """
    if not isinstance(payload, dict):
        return ValidationResult(False, "payload must be a JSON object")

    for field, check, expected in FIELD_CHECKS:
        value = payload.get(field)
        if value is None:
            if field in required_fields:
                return ValidationResult(False, f"'{field}' is required")
            continue
        if not check(value):
            return ValidationResult(False, f"'{field}' must be {expected}")

    return ValidationResult(True)


def validate_sensor_reading(payload: Any) -> ValidationResult:
    return validate_reading(payload, SENSOR_REQUIRED_FIELDS)


def validate_accident_event(payload: Any) -> ValidationResult:
    return validate_reading(payload, ACCIDENT_REQUIRED_FIELDS)
