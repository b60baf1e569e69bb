import uuid
import psycopg2
import structlog
from datetime import datetime, timezone

from repositories.accident_repository import AccidentRepository
from repositories.sensor_repository import SensorRepository
from services.exceptions import StorageError

logger = structlog.get_logger(__name__)

DEMO_ACCIDENTS = [
    {
        "device_id": "demo-device",
        "alcohol": 0.05,
        "vibration": 1.2,
        "distance": 15.5,
        "seatbelt": False,
        "impact": 3.7,
        "lat": 37.7749,
        "lng": -122.4194,
    },
]

DEMO_SENSOR_READINGS = [
    {
        "device_id": "demo-device",
        "alcohol": 0.02,
        "vibration": 0.9,
        "distance": 22.5,
        "seatbelt": True,
        "impact": 1.1,
        "lcd_display": "Speed: 40km/h",
        "lat": 37.7749,
        "lng": -122.4194,
    },
    {
        "device_id": "demo-device",
        "alcohol": 0.03,
        "vibration": 1.2,
        "distance": 18.0,
        "seatbelt": False,
        "impact": 1.5,
        "lcd_display": "Speed: 50km/h",
        "lat": 37.7750,
        "lng": -122.4195,
    },
    {
        "device_id": "demo-device",
        "alcohol": 0.01,
        "vibration": 0.5,
        "distance": 30.0,
        "seatbelt": True,
        "impact": 0.5,
        "lcd_display": "Speed: 35km/h",
        "lat": 37.7751,
        "lng": -122.4196,
    },
]


class SeedService:
    @staticmethod
    def seed_demo_data() -> dict:
        now = datetime.now(timezone.utc)
        try:
            for accident in DEMO_ACCIDENTS:
                AccidentRepository.insert(str(uuid.uuid4()), dict(accident, timestamp=now))
            for reading in DEMO_SENSOR_READINGS:
                SensorRepository.insert(dict(reading, timestamp=now))
        except psycopg2.Error as e:
            logger.error("Error running seeders", error=str(e))
            raise StorageError(str(e)) from e

        logger.info("Seeders executed", accidents=len(DEMO_ACCIDENTS), sensor_readings=len(DEMO_SENSOR_READINGS))
        return {
            "status": "ok",
            "message": "Seeders executed successfully",
            "accidents_inserted": len(DEMO_ACCIDENTS),
            "sensor_readings_inserted": len(DEMO_SENSOR_READINGS),
        }
