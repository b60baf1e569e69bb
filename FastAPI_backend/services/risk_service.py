"""
Location risk scoring.

The score is a heuristic: recent accident and sensor density inside a fixed
bounding box, plus a bonus when the current weather is severe. The box is
+-0.1 degrees on both axes rather than a geodesic radius, so it narrows in
longitude towards the poles.
"""

import math
import psycopg2
import structlog
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from models.response_models import RiskAssessment
from repositories.accident_repository import AccidentRepository
from repositories.sensor_repository import SensorRepository
from services.exceptions import InvalidInputError, StorageError
from services.validation_service import is_number

logger = structlog.get_logger(__name__)

ACCIDENT_WEIGHT = 10
SENSOR_EVENT_WEIGHT = 2
SEVERE_WEATHER_BONUS = 20
MAX_RISK_SCORE = 100

LOOKBACK_WINDOW = timedelta(days=7)
BOX_HALF_SIZE_DEGREES = 0.1

UNKNOWN_WEATHER = "Unknown"

# Epoch values at or above this are taken as milliseconds.
EPOCH_MILLIS_CUTOFF = 1e11


def parse_timestamp(value: Any) -> datetime:
    if value is None or isinstance(value, bool):
        raise InvalidInputError("timestamp is required")

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidInputError("timestamp is required")
        try:
            value = float(text)
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                raise InvalidInputError(f"Unparseable timestamp: {text}")
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if not is_number(value):
        raise InvalidInputError(f"Unparseable timestamp: {value!r}")

    seconds = value / 1000.0 if abs(value) >= EPOCH_MILLIS_CUTOFF else float(value)
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        raise InvalidInputError(f"Timestamp out of range: {value!r}")


def parse_coordinate(name: str, value: Any) -> float:
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            raise InvalidInputError(f"{name} must be a number")
    if not is_number(value):
        raise InvalidInputError(f"{name} must be a finite number")
    return float(value)


def compute_risk_score(accidents_count: int, sensor_events_count: int, severe_weather: bool) -> int:
    score = accidents_count * ACCIDENT_WEIGHT + sensor_events_count * SENSOR_EVENT_WEIGHT
    if severe_weather:
        score += SEVERE_WEATHER_BONUS
    return max(0, min(MAX_RISK_SCORE, score))


class RiskService:
    def __init__(self, weather_service, executor: Optional[Executor] = None):
        self.weather_service = weather_service
        self._executor = executor or ThreadPoolExecutor(max_workers=4, thread_name_prefix="weather")

    def score(self, lat: Any, lng: Any, timestamp: Any) -> RiskAssessment:
        lat = parse_coordinate("lat", lat)
        lng = parse_coordinate("lng", lng)
        end_time = parse_timestamp(timestamp)
        start_time = end_time - LOOKBACK_WINDOW

        weather_future = self._executor.submit(self.weather_service.fetch, lat, lng, end_time)

        box = (
            lat - BOX_HALF_SIZE_DEGREES, lat + BOX_HALF_SIZE_DEGREES,
            lng - BOX_HALF_SIZE_DEGREES, lng + BOX_HALF_SIZE_DEGREES,
        )
        try:
            accidents_count = AccidentRepository.count_in_window(*box, start_time, end_time)
            sensor_events_count = SensorRepository.count_in_window(*box, start_time, end_time)
        except psycopg2.Error as e:
            weather_future.cancel()
            logger.error("Error calculating risk score", lat=lat, lng=lng, error=str(e))
            raise StorageError(str(e)) from e

        try:
            snapshot = weather_future.result()
        except Exception:
            logger.exception("Weather lookup failed", lat=lat, lng=lng)
            snapshot = None
        severe = snapshot is not None and snapshot.is_severe
        condition = snapshot.condition_text if snapshot is not None else UNKNOWN_WEATHER

        assessment = RiskAssessment(
            risk_score=compute_risk_score(accidents_count, sensor_events_count, severe),
            accidents_count=accidents_count,
            sensor_events_count=sensor_events_count,
            weather_condition=condition,
        )
        logger.info(
            "Risk score calculated",
            lat=lat,
            lng=lng,
            risk_score=assessment.risk_score,
            accidents=accidents_count,
            sensor_events=sensor_events_count,
            weather=condition,
        )
        return assessment

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
