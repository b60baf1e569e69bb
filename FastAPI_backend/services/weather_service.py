"""
Weather lookup for risk scoring.

WeatherClient talks to the configured provider over HTTP. WeatherService
normalizes whatever the provider returned into a WeatherSnapshot and turns
every failure into None, so callers can continue with degraded information.
"""

import requests
import structlog
from typing import Any, Optional

from config import settings
from models.response_models import WeatherSnapshot
from services.exceptions import UpstreamUnavailable

logger = structlog.get_logger(__name__)

SEVERE_CONDITIONS = ("rain", "storm", "snow")

DEFAULT_BASE_URLS = {
    "openweathermap": "https://api.openweathermap.org",
    "metaweather": "https://www.metaweather.com",
}


def is_severe_condition(condition_text: str) -> bool:
    text = condition_text.lower()
    return any(keyword in text for keyword in SEVERE_CONDITIONS)


def _first_text(entry: Any, *keys: str) -> Optional[str]:
    if not isinstance(entry, dict):
        return None
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def extract_condition(data: Any) -> Optional[str]:
    """Pull a human-readable condition out of a provider response.

    Understands OpenWeatherMap One Call (``current.weather``), OpenWeatherMap
    current weather (``weather``) and MetaWeather (``consolidated_weather``).
    """
    if not isinstance(data, dict):
        return None

    current = data.get("current")
    if isinstance(current, dict):
        data = current

    conditions = data.get("weather")
    if isinstance(conditions, list) and conditions:
        return _first_text(conditions[0], "description", "main")

    forecast = data.get("consolidated_weather")
    if isinstance(forecast, list) and forecast:
        return _first_text(forecast[0], "weather_state_name")

    return None


class WeatherClient:
    def __init__(self, provider: str = "openweathermap", api_key: str = "",
                 base_url: str = "", timeout: Optional[float] = None):
        if provider not in DEFAULT_BASE_URLS:
            raise ValueError(f"Unknown weather provider: {provider}")
        self.provider = provider
        self.api_key = api_key
        self.base_url = (base_url or DEFAULT_BASE_URLS[provider]).rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()

    @classmethod
    def from_env(cls) -> "WeatherClient":
        return cls(
            provider=settings.WEATHER_PROVIDER,
            api_key=settings.WEATHER_API_KEY,
            base_url=settings.WEATHER_BASE_URL,
            timeout=settings.WEATHER_TIMEOUT_SECONDS,
        )

    def get_weather(self, lat: float, lng: float, timestamp=None) -> Any:
        # Providers are queried for current conditions; timestamp is informational.
        if self.provider == "metaweather":
            return self._get_metaweather(lat, lng)
        return self._get_openweathermap(lat, lng)

    def _get_json(self, url: str, params: Optional[dict] = None) -> Any:
        response = self.session.get(url, params=params, timeout=self.timeout)
        if response.status_code != 200:
            raise UpstreamUnavailable(f"{url} returned {response.status_code}")
        return response.json()

    def _get_openweathermap(self, lat: float, lng: float) -> Any:
        return self._get_json(
            f"{self.base_url}/data/3.0/onecall",
            params={"lat": lat, "lon": lng, "appid": self.api_key, "exclude": "minutely,hourly,daily"},
        )

    def _get_metaweather(self, lat: float, lng: float) -> Any:
        locations = self._get_json(
            f"{self.base_url}/api/location/search/",
            params={"lattlong": f"{lat},{lng}"},
        )
        if (not isinstance(locations, list) or not locations
                or not isinstance(locations[0], dict) or "woeid" not in locations[0]):
            raise UpstreamUnavailable("No MetaWeather location for coordinates")
        return self._get_json(f"{self.base_url}/api/location/{locations[0]['woeid']}/")


class WeatherService:
    def __init__(self, client: WeatherClient):
        self.client = client

    def fetch(self, lat: float, lng: float, timestamp=None) -> Optional[WeatherSnapshot]:
        """Return current conditions at a point, or None when unavailable."""
        try:
            data = self.client.get_weather(lat, lng, timestamp)
        except (requests.RequestException, UpstreamUnavailable, ValueError, TypeError, OSError) as e:
            logger.warning("Weather provider unavailable", lat=lat, lng=lng, error=str(e))
            return None

        condition = extract_condition(data)
        if condition is None:
            logger.warning("Weather data is missing or malformed", lat=lat, lng=lng)
            return None

        return WeatherSnapshot(
            condition_text=condition,
            is_severe=is_severe_condition(condition),
        )
