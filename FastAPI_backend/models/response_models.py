from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Union


class WeatherSnapshot(BaseModel):
    condition_text: str
    is_severe: bool


class RiskAssessment(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    risk_score: int = Field(alias="riskScore", ge=0, le=100)
    accidents_count: int = Field(alias="accidentsCount", ge=0)
    sensor_events_count: int = Field(alias="sensorEventsCount", ge=0)
    weather_condition: str = Field(alias="weatherCondition")


class IngestionResponse(BaseModel):
    status: str = "ok"
    id: Union[int, str]


class StatsResponse(BaseModel):
    total_accidents: int
    max_alcohol: float
    avg_alcohol: float
    max_impact: float
    seatbelt_violations: int
    total_sensor_points: int


class CarPosition(BaseModel):
    lat: float
    lng: float
    timestamp: Optional[str] = None


class SeedResponse(BaseModel):
    status: str = "ok"
    message: str
    accidents_inserted: int
    sensor_readings_inserted: int
