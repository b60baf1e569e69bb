from config.database import get_db_connection
from datetime import datetime
from typing import List, Optional, Dict
from repositories.reading_columns import INSERT_COLUMNS_SQL, INSERT_PLACEHOLDERS_SQL, reading_values


class AccidentRepository:
    @staticmethod
    def insert(event_id: str, record: Dict) -> str:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                f"INSERT INTO accident_events (id, {INSERT_COLUMNS_SQL}) "
                f"VALUES (%s, {INSERT_PLACEHOLDERS_SQL}) RETURNING id",
                (event_id,) + reading_values(record)
            )
            return cur.fetchone()['id']

    @staticmethod
    def get_by_id(event_id: str) -> Optional[Dict]:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM accident_events WHERE id = %s", (event_id,))
            result = cur.fetchone()
            return dict(result) if result else None

    @staticmethod
    def get_all() -> List[Dict]:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT * FROM accident_events ORDER BY created_at DESC")
            return [dict(row) for row in cur.fetchall()]

    @staticmethod
    def get_located() -> List[Dict]:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("""
                SELECT id, lat, lng, timestamp FROM accident_events
                WHERE lat IS NOT NULL AND lng IS NOT NULL
                ORDER BY timestamp DESC
            """)
            return [dict(row) for row in cur.fetchall()]

    @staticmethod
    def get_stats() -> Dict:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("""
                SELECT
                    COUNT(*) AS total_accidents,
                    COALESCE(MAX(alcohol), 0) AS max_alcohol,
                    COALESCE(AVG(alcohol), 0) AS avg_alcohol,
                    COALESCE(MAX(impact), 0) AS max_impact,
                    COUNT(*) FILTER (WHERE seatbelt = FALSE) AS seatbelt_violations
                FROM accident_events
            """)
            return dict(cur.fetchone())

    @staticmethod
    def count_in_window(lat_min: float, lat_max: float, lng_min: float, lng_max: float,
                        start_time: datetime, end_time: datetime) -> int:
        with get_db_connection() as conn:
            cur = conn.cursor()
            cur.execute("""
                SELECT COUNT(*) AS total FROM accident_events
                WHERE lat BETWEEN %s AND %s
                    AND lng BETWEEN %s AND %s
                    AND timestamp BETWEEN %s AND %s
            """, (lat_min, lat_max, lng_min, lng_max, start_time, end_time))
            return cur.fetchone()['total']
