import psycopg2
import structlog
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional
from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import settings
from config.logging_config import configure_logging
from models.request_models import EmergencyAlertRequest
from models.response_models import CarPosition, IngestionResponse, RiskAssessment, SeedResponse, StatsResponse
from services.alert_service import ThresholdAlerter
from services.auth_service import require_api_key
from services.dashboard_service import DashboardService
from services.exceptions import (
    AuthError,
    InvalidInputError,
    NotificationError,
    StorageError,
    ValidationError,
)
from services.ingestion_service import IngestionService
from services.mail_service import Mailer
from services.risk_service import RiskService
from services.seed_service import SeedService
from services.weather_service import WeatherClient, WeatherService

configure_logging(settings.LOG_LEVEL)
logger = structlog.get_logger(__name__)

mailer = Mailer.from_env()
alerter = ThresholdAlerter(mailer, settings.EMERGENCY_CONTACT_EMAIL)
ingestion_service = IngestionService(alerter)
risk_service = RiskService(WeatherService(WeatherClient.from_env()))


def get_mailer() -> Mailer:
    return mailer


def get_ingestion_service() -> IngestionService:
    return ingestion_service


def get_risk_service() -> RiskService:
    return risk_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting SafeDrive backend", version=app.version)
    if settings.INIT_DB_ON_STARTUP:
        from config.database import init_schema
        try:
            init_schema()
        except psycopg2.Error as e:
            # Read endpoints serve fallbacks until the database is reachable.
            logger.error("Error syncing database tables", error=str(e))
    yield
    alerter.shutdown(wait=False)
    risk_service.shutdown(wait=False)
    logger.info("SafeDrive backend stopped")


app = FastAPI(
    title="SafeDrive FastAPI Backend",
    description="Vehicle safety telemetry ingestion, alerting and risk scoring",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:3001"],
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization", "x-api-key"],
)



@app.exception_handler(AuthError)
async def auth_error_handler(request: Request, exc: AuthError):
    return JSONResponse(status_code=401, content={"error": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid {exc.entity} data", "details": exc.reason}
    )


@app.exception_handler(InvalidInputError)
async def invalid_input_handler(request: Request, exc: InvalidInputError):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
    return JSONResponse(status_code=500, content={"error": "Database error"})


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    for error in exc.errors():
        if error.get("type") == "json_invalid":
            return JSONResponse(status_code=400, content={"error": "Invalid JSON"})
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "details": [error.get("msg") for error in exc.errors()]}
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})



@app.post("/api/sensor", response_model=IngestionResponse, dependencies=[Depends(require_api_key)])
def receive_sensor_data(payload: Any = Body(None),
                        service: IngestionService = Depends(get_ingestion_service)):
    return service.ingest_sensor_reading(payload)


@app.post("/api/accident", response_model=IngestionResponse, dependencies=[Depends(require_api_key)])
def receive_accident_event(payload: Any = Body(None),
                           service: IngestionService = Depends(get_ingestion_service)):
    return service.ingest_accident_event(payload)



@app.get("/api/risk-score", response_model=RiskAssessment)
def get_risk_score(lat: Optional[str] = None, lng: Optional[str] = None,
                   timestamp: Optional[str] = None,
                   service: RiskService = Depends(get_risk_service)):
    missing = [name for name, value in (("lat", lat), ("lng", lng), ("timestamp", timestamp))
               if value is None or value.strip() == ""]
    if missing:
        raise InvalidInputError(f"Missing required parameters: {', '.join(missing)}")
    return service.score(lat, lng, timestamp)



@app.get("/api/sensor")
def get_latest_sensor():
    return DashboardService.get_latest_sensor()


@app.get("/api/sensor/history")
def get_sensor_history(limit: int = 1000):
    return DashboardService.get_sensor_history(limit)


@app.get("/api/map")
def get_map_points():
    return DashboardService.get_map_points()


@app.get("/api/accidents")
def get_accidents():
    return DashboardService.get_accidents()


@app.get("/api/accident/{event_id}")
def get_accident(event_id: str):
    return DashboardService.get_accident(event_id)


@app.get("/api/car/position", response_model=CarPosition)
def get_car_position():
    return DashboardService.get_car_position()


@app.get("/api/stats", response_model=StatsResponse)
def get_stats():
    return DashboardService.get_stats()



@app.post("/api/emergency-alert")
def send_emergency_alert(request: EmergencyAlertRequest, mail: Mailer = Depends(get_mailer)):
    if not request.email or request.latitude is None or request.longitude is None:
        raise HTTPException(status_code=400, detail="Missing email or location data")

    body = (
        "An emergency alert has been triggered.\n"
        f"Location: https://www.google.com/maps?q={request.latitude},{request.longitude}\n"
        "Please respond immediately."
    )
    try:
        mail.send(request.email, "SafeDrive Emergency Alert", body)
    except NotificationError as e:
        logger.error("Error sending emergency alert email", to=request.email, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to send email")

    return {"status": "ok", "message": "Emergency alert email sent"}


@app.post("/api/seed", response_model=SeedResponse, dependencies=[Depends(require_api_key)])
def seed_demo_data():
    return SeedService.seed_demo_data()



@app.get("/api/health")
def health_check():
    """Health check endpoint"""
    from config.database import test_connection

    db_healthy = test_connection()

    return {
        "status": "ok",
        "time": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if db_healthy else "disconnected",
        "version": app.version
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=4000)
