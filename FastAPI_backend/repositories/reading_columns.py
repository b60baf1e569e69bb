"""Column layout shared by the sensor_readings and accident_events tables."""

READING_COLUMNS = (
    "device_id",
    "timestamp",
    "client_timestamp",
    "alcohol",
    "vibration",
    "distance",
    "seatbelt",
    "impact",
    "pulse",
    "pulse_threshold_min",
    "pulse_threshold_max",
    "pulse_history",
    "distance_history",
    "alcohol_history",
    "impact_history",
    "vibration_history",
    "lat",
    "lng",
    "lcd_display",
)

INSERT_COLUMNS_SQL = ", ".join(READING_COLUMNS)
INSERT_PLACEHOLDERS_SQL = ", ".join(["%s"] * len(READING_COLUMNS))


def reading_values(record: dict) -> tuple:
    return tuple(record.get(column) for column in READING_COLUMNS)
