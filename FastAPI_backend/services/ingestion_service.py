import uuid
import psycopg2
import structlog
from datetime import datetime, timezone
from typing import Any, Callable

from repositories.accident_repository import AccidentRepository
from repositories.reading_columns import READING_COLUMNS
from repositories.sensor_repository import SensorRepository
from services.exceptions import StorageError, ValidationError
from services.validation_service import (
    ValidationResult,
    validate_accident_event,
    validate_sensor_reading,
)

logger = structlog.get_logger(__name__)


def build_record(payload: dict) -> dict:
    """Project a validated payload onto the stored columns.

    The stored timestamp is the server's ingestion time; the client's value is
    kept only for correlation.
    """
    record = {column: payload.get(column) for column in READING_COLUMNS}
    if record["pulse"] is None:
        record["pulse"] = payload.get("current_pulse")
    record["client_timestamp"] = str(payload["timestamp"])
    record["timestamp"] = datetime.now(timezone.utc)
    return record


class IngestionService:
    def __init__(self, alerter):
        self.alerter = alerter

    def _accept(self, entity: str, payload: Any,
                validate: Callable[[Any], ValidationResult]) -> dict:
        result = validate(payload)
        if not result.ok:
            logger.info("Rejected ingestion payload", entity=entity, reason=result.reason)
            raise ValidationError(entity, result.reason)
        return build_record(payload)

    def ingest_sensor_reading(self, payload: Any) -> dict:
        record = self._accept("sensor", payload, validate_sensor_reading)

        try:
            reading_id = SensorRepository.insert(record)
        except psycopg2.Error as e:
            logger.error("Database error storing sensor reading", device_id=record["device_id"], error=str(e))
            raise StorageError(str(e)) from e

        record["id"] = reading_id
        logger.info("Stored sensor reading", id=reading_id, device_id=record["device_id"])

        try:
            self.alerter.evaluate(record)
        except Exception:
            # Once persisted, the reading is acknowledged regardless of alerting.
            logger.exception("Threshold alert evaluation failed", id=reading_id)

        return {"status": "ok", "id": reading_id}

    def ingest_accident_event(self, payload: Any) -> dict:
        record = self._accept("accident", payload, validate_accident_event)
        event_id = str(uuid.uuid4())

        try:
            event_id = AccidentRepository.insert(event_id, record)
        except psycopg2.Error as e:
            logger.error("Database error storing accident event", device_id=record["device_id"], error=str(e))
            raise StorageError(str(e)) from e

        logger.warning("Stored accident event", id=event_id, device_id=record["device_id"],
                       lat=record["lat"], lng=record["lng"])

        return {"status": "ok", "id": event_id}
