import os
import sys
from concurrent.futures import Executor, Future

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class ImmediateExecutor(Executor):
    """Runs submitted work on the calling thread so dispatch is observable in tests."""

    def __init__(self):
        self.submitted = 0

    def submit(self, fn, *args, **kwargs):
        self.submitted += 1
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


@pytest.fixture
def immediate_executor():
    return ImmediateExecutor()


@pytest.fixture
def valid_reading():
    return {
        "device_id": "CAR-001",
        "timestamp": "2025-04-23T20:10:00Z",
        "alcohol": 0.02,
        "vibration": 0.9,
        "distance": 22.5,
        "seatbelt": True,
        "impact": 1.1,
        "lat": 37.7749,
        "lng": -122.4194,
        "lcd_display": "Speed: 40km/h",
    }
