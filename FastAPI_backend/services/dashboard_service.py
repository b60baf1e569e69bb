"""
Read-side projections for the dashboard.

Every read degrades to a fixed fallback payload when the store is
unavailable, so the dashboard keeps rendering during a database outage.
"""

import psycopg2
import structlog
from datetime import datetime, timedelta, timezone
from fastapi import HTTPException

from repositories.accident_repository import AccidentRepository
from repositories.sensor_repository import SensorRepository
from services.exceptions import StorageError

logger = structlog.get_logger(__name__)

MAX_HISTORY_LIMIT = 1000

# University of Ghana, Legon
FALLBACK_POSITION = {"lat": 5.6545, "lng": -0.1869}

FALLBACK_STATS = {
    "total_accidents": 5,
    "max_alcohol": 0.8,
    "avg_alcohol": 0.3,
    "max_impact": 0.9,
    "seatbelt_violations": 2,
    "total_sensor_points": 120,
}


def _days_ago(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def fallback_sensor_reading() -> dict:
    return {
        "id": 1,
        "device_id": "demo-device",
        "alcohol": 0.05,
        "vibration": 0.2,
        "distance": 150,
        "seatbelt": True,
        "impact": 0.1,
        "pulse": 75,
        "lcd_display": "SYSTEM OK",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def fallback_map_points() -> list:
    return [
        {"id": "abc123", "lat": 5.6545, "lng": -0.1869, "timestamp": _days_ago(1)},
        {"id": "def456", "lat": 5.6540, "lng": -0.1875, "timestamp": _days_ago(2)},
        {"id": "ghi789", "lat": 5.6550, "lng": -0.1880, "timestamp": _days_ago(3)},
    ]


def fallback_accidents() -> list:
    return [
        {
            "id": "abc123",
            "device_id": "demo-device",
            "alcohol": 0.02,
            "vibration": 0.8,
            "distance": 20,
            "seatbelt": True,
            "impact": 0.9,
            "lat": 5.6545,
            "lng": -0.1869,
            "lcd_display": "ACCIDENT DETECTED",
            "timestamp": _days_ago(1),
        },
        {
            "id": "def456",
            "device_id": "demo-device",
            "alcohol": 0.04,
            "vibration": 0.7,
            "distance": 15,
            "seatbelt": False,
            "impact": 0.8,
            "lat": 5.6540,
            "lng": -0.1875,
            "lcd_display": "ACCIDENT DETECTED",
            "timestamp": _days_ago(2),
        },
    ]


class DashboardService:
    @staticmethod
    def get_latest_sensor() -> dict:
        try:
            latest = SensorRepository.get_latest()
        except psycopg2.Error as e:
            logger.error("Database error in sensor endpoint", error=str(e))
            return fallback_sensor_reading()

        if not latest:
            logger.info("No sensor data found, serving fallback reading")
            return fallback_sensor_reading()
        return latest

    @staticmethod
    def get_sensor_history(limit: int = MAX_HISTORY_LIMIT) -> list:
        limit = max(1, min(int(limit), MAX_HISTORY_LIMIT))
        try:
            return SensorRepository.get_history(limit)
        except psycopg2.Error as e:
            logger.error("Database error in sensor history endpoint", error=str(e))
            return []

    @staticmethod
    def get_map_points() -> list:
        try:
            accidents = AccidentRepository.get_located()
        except psycopg2.Error as e:
            logger.error("Database error in map endpoint", error=str(e))
            return fallback_map_points()

        return [
            {"id": e["id"], "lat": e["lat"], "lng": e["lng"], "timestamp": e["timestamp"]}
            for e in accidents
        ]

    @staticmethod
    def get_accidents() -> list:
        try:
            return AccidentRepository.get_all()
        except psycopg2.Error as e:
            logger.error("Database error in accidents endpoint", error=str(e))
            return fallback_accidents()

    @staticmethod
    def get_accident(event_id: str) -> dict:
        try:
            found = AccidentRepository.get_by_id(event_id)
        except psycopg2.Error as e:
            logger.error("Database error in accident endpoint", id=event_id, error=str(e))
            raise StorageError(str(e)) from e

        if not found:
            raise HTTPException(status_code=404, detail="Not found")
        return found

    @staticmethod
    def get_car_position() -> dict:
        try:
            latest = SensorRepository.get_latest_located()
        except psycopg2.Error as e:
            logger.error("Database error in car position endpoint", error=str(e))
            latest = None

        if not latest:
            return dict(FALLBACK_POSITION)

        timestamp = latest.get("timestamp")
        return {
            "lat": latest["lat"],
            "lng": latest["lng"],
            "timestamp": timestamp.isoformat() if timestamp else None,
        }

    @staticmethod
    def get_stats() -> dict:
        try:
            accident_stats = AccidentRepository.get_stats()
            total_sensor_points = SensorRepository.count_all()
        except psycopg2.Error as e:
            logger.error("Database error in stats endpoint", error=str(e))
            return dict(FALLBACK_STATS)

        return {
            "total_accidents": int(accident_stats["total_accidents"] or 0),
            "max_alcohol": float(accident_stats["max_alcohol"] or 0),
            "avg_alcohol": float(accident_stats["avg_alcohol"] or 0),
            "max_impact": float(accident_stats["max_impact"] or 0),
            "seatbelt_violations": int(accident_stats["seatbelt_violations"] or 0),
            "total_sensor_points": int(total_sensor_points or 0),
        }
