"""
Threshold alerting for accepted sensor readings.

A reading is critical when its alcohol level or impact force is strictly
above a fixed policy threshold. Critical readings produce one emergency mail,
dispatched on a worker thread so the ingestion response never waits on SMTP.
"""

import threading
import structlog
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Optional, Tuple

from services.exceptions import NotificationError

logger = structlog.get_logger(__name__)

CRITICAL_ALCOHOL_LEVEL = 0.6
CRITICAL_IMPACT_LEVEL = 2.0

ALERT_SUBJECT = "SafeDrive Emergency Alert"

# The dispatch queue is unbounded; once this many alerts are unfinished a
# warning is logged on every new submission.
ALERT_BACKLOG_WARNING = 20


def should_alert(reading: dict) -> bool:
    alcohol = reading.get("alcohol") or 0.0
    impact = reading.get("impact") or 0.0
    return alcohol > CRITICAL_ALCOHOL_LEVEL or impact > CRITICAL_IMPACT_LEVEL


def format_alert(reading: dict) -> Tuple[str, str]:
    timestamp = reading.get("timestamp")
    if hasattr(timestamp, "isoformat"):
        timestamp = timestamp.isoformat()

    lines = [
        "Critical sensor data detected:",
        f"Device: {reading.get('device_id')}",
        f"Alcohol Level: {reading.get('alcohol')}",
        f"Impact: {reading.get('impact')}",
        f"Timestamp: {timestamp}",
    ]
    if reading.get("lat") is not None and reading.get("lng") is not None:
        lines.append(f"Location: https://www.google.com/maps?q={reading['lat']},{reading['lng']}")
    return ALERT_SUBJECT, "\n".join(lines)


class ThresholdAlerter:
    def __init__(self, mailer, recipient: str, executor: Optional[Executor] = None,
                 backlog_warning: int = ALERT_BACKLOG_WARNING):
        self.mailer = mailer
        self.recipient = recipient
        self.backlog_warning = backlog_warning
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix="alert")
        self._pending = 0
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        """Alerts submitted but not yet finished, queued or in flight."""
        with self._lock:
            return self._pending

    def _track(self, future: Future) -> None:
        with self._lock:
            self._pending += 1
            pending = self._pending
        if pending >= self.backlog_warning:
            logger.warning("Emergency alert backlog growing", pending=pending)
        future.add_done_callback(self._release)

    def _release(self, future: Future) -> None:
        with self._lock:
            self._pending -= 1

    def evaluate(self, reading: dict) -> Optional[Future]:
        """Submit an emergency mail when the reading crosses a threshold.

        Returns the dispatch future without waiting on it, or None when no
        alert is due. Never raises.
        """
        if not should_alert(reading):
            return None

        subject, body = format_alert(reading)
        logger.warning(
            "Emergency alert triggered",
            device_id=reading.get("device_id"),
            alcohol=reading.get("alcohol"),
            impact=reading.get("impact"),
        )
        try:
            future = self._executor.submit(self._dispatch, subject, body)
        except RuntimeError as e:
            logger.error("Emergency alert not dispatched", error=str(e))
            return None
        self._track(future)
        return future

    def _dispatch(self, subject: str, body: str) -> bool:
        try:
            self.mailer.send(self.recipient, subject, body)
        except NotificationError as e:
            logger.error("Error sending emergency alert email", error=str(e))
            return False
        except Exception:
            logger.exception("Unexpected failure sending emergency alert email")
            return False

        logger.info("Emergency alert email sent", to=self.recipient)
        return True

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
