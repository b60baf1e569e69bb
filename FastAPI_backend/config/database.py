import psycopg2
import structlog
from psycopg2.extras import RealDictCursor
from contextlib import contextmanager
from typing import Generator

from config.settings import DB_URL

logger = structlog.get_logger(__name__)

READING_COLUMNS_SQL = """
    device_id TEXT NOT NULL,
    timestamp TIMESTAMPTZ NOT NULL,
    client_timestamp TEXT,
    alcohol DOUBLE PRECISION NOT NULL,
    vibration DOUBLE PRECISION NOT NULL,
    distance DOUBLE PRECISION NOT NULL,
    seatbelt BOOLEAN NOT NULL,
    impact DOUBLE PRECISION NOT NULL,
    pulse DOUBLE PRECISION,
    pulse_threshold_min DOUBLE PRECISION,
    pulse_threshold_max DOUBLE PRECISION,
    pulse_history DOUBLE PRECISION[],
    distance_history DOUBLE PRECISION[],
    alcohol_history DOUBLE PRECISION[],
    impact_history DOUBLE PRECISION[],
    vibration_history DOUBLE PRECISION[],
    lat DOUBLE PRECISION,
    lng DOUBLE PRECISION,
    lcd_display TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now()
"""

SCHEMA_SQL = f"""
    CREATE TABLE IF NOT EXISTS sensor_readings (
        id SERIAL PRIMARY KEY,
        {READING_COLUMNS_SQL}
    );
    CREATE INDEX IF NOT EXISTS idx_sensor_readings_timestamp ON sensor_readings (timestamp);
    CREATE INDEX IF NOT EXISTS idx_sensor_readings_location ON sensor_readings (lat, lng);

    CREATE TABLE IF NOT EXISTS accident_events (
        id TEXT PRIMARY KEY,
        {READING_COLUMNS_SQL}
    );
    CREATE INDEX IF NOT EXISTS idx_accident_events_timestamp ON accident_events (timestamp);
    CREATE INDEX IF NOT EXISTS idx_accident_events_location ON accident_events (lat, lng);
"""


@contextmanager
def get_db_connection() -> Generator:
    conn = psycopg2.connect(DB_URL, cursor_factory=RealDictCursor)
    try:
        yield conn
        conn.commit()
    except Exception as e:
        conn.rollback()
        raise e
    finally:
        conn.close()


def init_schema() -> None:
    with get_db_connection() as conn:
        cur = conn.cursor()
        cur.execute(SCHEMA_SQL)
    logger.info("Database tables synced")


def test_connection() -> bool:
    try:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT 1")
            return True
    except psycopg2.Error as e:
        logger.error("Database connection failed", error=str(e))
        return False
