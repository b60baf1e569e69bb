from unittest.mock import MagicMock, patch

import pytest
import requests

from services.exceptions import UpstreamUnavailable
from services.weather_service import (
    WeatherClient,
    WeatherService,
    extract_condition,
    is_severe_condition,
)


def http_response(status_code=200, payload=None):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    return response


class TestSeverity:

    @pytest.mark.parametrize("text,expected", [
        ("light rain", True),
        ("Thunderstorm", True),
        ("SNOW", True),
        ("Heavy Rain Showers", True),
        ("clear sky", False),
        ("overcast clouds", False),
        ("", False),
    ])
    def test_case_insensitive_keywords(self, text, expected):
        assert is_severe_condition(text) is expected


class TestExtractCondition:

    def test_onecall_shape_prefers_description(self):
        data = {"current": {"weather": [{"main": "Rain", "description": "moderate rain"}]}}
        assert extract_condition(data) == "moderate rain"

    def test_onecall_shape_falls_back_to_main(self):
        data = {"current": {"weather": [{"main": "Snow"}]}}
        assert extract_condition(data) == "Snow"

    def test_current_weather_shape(self):
        data = {"weather": [{"main": "Clouds", "description": "broken clouds"}]}
        assert extract_condition(data) == "broken clouds"

    def test_metaweather_shape(self):
        data = {"consolidated_weather": [{"weather_state_name": "Heavy Rain"}]}
        assert extract_condition(data) == "Heavy Rain"

    @pytest.mark.parametrize("data", [
        None,
        [],
        "rain",
        {},
        {"current": {}},
        {"current": {"weather": []}},
        {"weather": [{"description": "   "}]},
        {"weather": ["rain"]},
        {"consolidated_weather": [{}]},
    ])
    def test_undiscernible_condition(self, data):
        assert extract_condition(data) is None


class TestWeatherService:

    def test_fetch_returns_snapshot(self):
        client = MagicMock()
        client.get_weather.return_value = {"current": {"weather": [{"main": "Thunderstorm", "description": "thunderstorm with rain"}]}}

        snapshot = WeatherService(client).fetch(5.65, -0.18, None)

        assert snapshot.condition_text == "thunderstorm with rain"
        assert snapshot.is_severe is True

    def test_fetch_clear_weather_not_severe(self):
        client = MagicMock()
        client.get_weather.return_value = {"weather": [{"description": "clear sky"}]}

        snapshot = WeatherService(client).fetch(5.65, -0.18)

        assert snapshot.condition_text == "clear sky"
        assert snapshot.is_severe is False

    @pytest.mark.parametrize("error", [
        requests.ConnectionError("unreachable"),
        requests.Timeout("slow"),
        UpstreamUnavailable("503"),
        ValueError("not json"),
        ConnectionResetError("reset"),
    ])
    def test_provider_failure_is_unavailable(self, error):
        client = MagicMock()
        client.get_weather.side_effect = error

        assert WeatherService(client).fetch(5.65, -0.18) is None

    def test_malformed_response_is_unavailable(self):
        client = MagicMock()
        client.get_weather.return_value = {"unexpected": "shape"}

        assert WeatherService(client).fetch(5.65, -0.18) is None


class TestWeatherClient:

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValueError):
            WeatherClient(provider="darksky")

    def test_openweathermap_request(self):
        client = WeatherClient(provider="openweathermap", api_key="k", timeout=5)
        payload = {"current": {"weather": [{"description": "light rain"}]}}

        with patch.object(client.session, "get", return_value=http_response(200, payload)) as mock_get:
            assert client.get_weather(5.65, -0.18) == payload

        url = mock_get.call_args[0][0]
        kwargs = mock_get.call_args[1]
        assert url == "https://api.openweathermap.org/data/3.0/onecall"
        assert kwargs["params"]["lat"] == 5.65
        assert kwargs["params"]["lon"] == -0.18
        assert kwargs["params"]["appid"] == "k"
        assert kwargs["timeout"] == 5

    def test_non_200_raises_upstream_unavailable(self):
        client = WeatherClient(provider="openweathermap")

        with patch.object(client.session, "get", return_value=http_response(401, {})):
            with pytest.raises(UpstreamUnavailable):
                client.get_weather(5.65, -0.18)

    def test_metaweather_two_step_lookup(self):
        client = WeatherClient(provider="metaweather", base_url="http://meta.local/")
        forecast = {"consolidated_weather": [{"weather_state_name": "Showers"}]}
        responses = [http_response(200, [{"woeid": 44418}]), http_response(200, forecast)]

        with patch.object(client.session, "get", side_effect=responses) as mock_get:
            assert client.get_weather(51.5, -0.12) == forecast

        assert mock_get.call_args_list[0][0][0] == "http://meta.local/api/location/search/"
        assert mock_get.call_args_list[0][1]["params"] == {"lattlong": "51.5,-0.12"}
        assert mock_get.call_args_list[1][0][0] == "http://meta.local/api/location/44418/"

    def test_metaweather_without_location_unavailable(self):
        client = WeatherClient(provider="metaweather")

        with patch.object(client.session, "get", return_value=http_response(200, [])):
            with pytest.raises(UpstreamUnavailable):
                client.get_weather(0.0, 0.0)

    @pytest.mark.parametrize("locations", [[123], ["London"], [None], [[44418]], {"woeid": 44418}])
    def test_metaweather_malformed_locations_unavailable(self, locations):
        client = WeatherClient(provider="metaweather")

        with patch.object(client.session, "get", return_value=http_response(200, locations)) as mock_get:
            with pytest.raises(UpstreamUnavailable):
                client.get_weather(1.0, 2.0)
            assert WeatherService(client).fetch(1.0, 2.0) is None

        assert mock_get.call_count == 2

    def test_service_over_failing_client(self):
        client = WeatherClient(provider="openweathermap")

        with patch.object(client.session, "get", side_effect=requests.ConnectionError("down")):
            assert WeatherService(client).fetch(5.65, -0.18) is None
