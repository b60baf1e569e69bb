"""Repository layer for database access"""
from .sensor_repository import SensorRepository
from .accident_repository import AccidentRepository
