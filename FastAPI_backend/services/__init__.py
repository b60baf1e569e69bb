"""Service layer for business logic"""
from .ingestion_service import IngestionService
from .risk_service import RiskService
from .weather_service import WeatherClient, WeatherService
from .alert_service import ThresholdAlerter
from .mail_service import Mailer
from .dashboard_service import DashboardService
from .seed_service import SeedService
