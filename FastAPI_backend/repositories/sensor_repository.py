from config.database import get_db_connection
from datetime import datetime
from typing import List, Optional, Dict
from repositories.reading_columns import INSERT_COLUMNS_SQL, INSERT_PLACEHOLDERS_SQL, reading_values


class SensorRepository:
    @staticmethod
    def insert(record: Dict) -> int:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"INSERT INTO sensor_readings ({INSERT_COLUMNS_SQL}) "
                f"VALUES ({INSERT_PLACEHOLDERS_SQL}) RETURNING id",
                reading_values(record)
            )
            return cur.fetchone()['id']

    @staticmethod
    def get_latest() -> Optional[Dict]:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("""
                SELECT * FROM sensor_readings
                ORDER BY timestamp DESC, id DESC
                LIMIT 1
            """)
            result = cur.fetchone()
            return dict(result) if result else None

    @staticmethod
    def get_latest_located() -> Optional[Dict]:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("""
                SELECT id, lat, lng, timestamp FROM sensor_readings
                WHERE lat IS NOT NULL AND lng IS NOT NULL
                ORDER BY timestamp DESC, id DESC
                LIMIT 1
            """)
            result = cur.fetchone()
            return dict(result) if result else None

    @staticmethod
    def get_history(limit: int = 1000) -> List[Dict]:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("""
                SELECT * FROM sensor_readings
                ORDER BY timestamp DESC, id DESC
                LIMIT %s
            """, (limit,))
            return [dict(row) for row in cur.fetchall()]

    @staticmethod
    def count_all() -> int:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) AS total FROM sensor_readings")
            return cur.fetchone()['total']

    @staticmethod
    def count_in_window(lat_min: float, lat_max: float, lng_min: float, lng_max: float,
                        start_time: datetime, end_time: datetime) -> int:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("""
                SELECT COUNT(*) AS total FROM sensor_readings
                WHERE lat BETWEEN %s AND %s
                    AND lng BETWEEN %s AND %s
                    AND timestamp BETWEEN %s AND %s
            """, (lat_min, lat_max, lng_min, lng_max, start_time, end_time))
            return cur.fetchone()['total']
