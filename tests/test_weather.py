"""Tests for weather clients and the logging throttle."""

from unittest.mock import MagicMock

import pytest
import requests

from core.heatlog.exceptions import ConfigurationError, PersistenceError, WeatherServiceError
from core.heatlog.weather import (
    OpenWeatherMapClient,
    WeatherAPIClient,
    WeatherThrottle,
    create_weather_client,
    latest_stored_timestamp,
)


def mock_response(payload, status=200):
    response = MagicMock()
    response.status_code = status
    response.json.return_value = payload
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(f"{status} error")
    return response


class TestWeatherThrottle:
    """Test WeatherThrottle."""

    def test_reads_only_every_rate_cycles(self, store):
        client = MagicMock()
        client.current_temperature.return_value = (5.0, "2026-10-19T10:00:00Z")
        throttle = WeatherThrottle(client, store, rate=3)

        results = [throttle.tick() for _ in range(6)]

        assert [r is not None for r in results] == [False, False, True, False, False, True]
        assert throttle.count == 0

    def test_duplicate_timestamps_stored_once(self, store):
        throttle = WeatherThrottle(MagicMock(), store, rate=1)

        assert throttle.record(5.0, "2026-10-19T10:00:00Z") is True
        assert throttle.record(5.0, "2026-10-19T10:00:00Z") is False
        assert throttle.record(5.5, "2026-10-19T10:30:00Z") is True

        assert store.insert_weather_observation.call_count == 2

    def test_seeded_timestamp_is_not_stored_again(self, store):
        throttle = WeatherThrottle(MagicMock(), store, rate=1, last_timestamp="2026-10-19T10:00:00Z")
        assert throttle.record(5.0, "2026-10-19T10:00:00Z") is False
        store.insert_weather_observation.assert_not_called()

    def test_failed_read_is_reported_and_counter_reset(self, store):
        client = MagicMock()
        client.current_temperature.side_effect = WeatherServiceError("down")
        throttle = WeatherThrottle(client, store, rate=2)

        assert throttle.tick() is None
        result = throttle.tick()

        assert result["status"] == "error"
        assert "down" in result["message"]
        assert throttle.count == 0

    def test_failed_store_leaves_observation_pending(self, store):
        store.insert_weather_observation.side_effect = [PersistenceError("down"), None]
        throttle = WeatherThrottle(MagicMock(), store, rate=1)

        with pytest.raises(PersistenceError):
            throttle.record(5.0, "2026-10-19T10:00:00Z")
        assert throttle.record(5.0, "2026-10-19T10:00:00Z") is True


def test_latest_stored_timestamp(store):
    store.latest_weather_observation.return_value = {"observed": "2026-10-19T09:00:00Z"}
    assert latest_stored_timestamp(store) == "2026-10-19T09:00:00Z"
    store.latest_weather_observation.assert_called_once_with(["observed"])


@pytest.mark.parametrize("row", [None, {"observed": None}])
def test_latest_stored_timestamp_empty(store, row):
    store.latest_weather_observation.return_value = row
    assert latest_stored_timestamp(store) == ""


def test_latest_stored_timestamp_survives_database_error(store):
    store.latest_weather_observation.side_effect = PersistenceError("down")
    assert latest_stored_timestamp(store) == ""


class TestOpenWeatherMapClient:
    """Test OpenWeatherMapClient."""

    def test_current_temperature(self):
        client = OpenWeatherMapClient("key", "London,GB", "C")
        client.session = MagicMock()
        client.session.get.return_value = mock_response({"main": {"temp": 7.25}, "dt": 1792404000})

        temperature, timestamp = client.current_temperature()

        assert temperature == 7.25
        assert timestamp == "2026-10-19T10:00:00Z"
        params = client.session.get.call_args.kwargs["params"]
        assert params == {"q": "London,GB", "appid": "key", "units": "metric"}

    def test_fahrenheit_uses_imperial_units(self):
        client = OpenWeatherMapClient("key", "Boston,US", "F")
        client.session = MagicMock()
        client.session.get.return_value = mock_response({"main": {"temp": 45.0}, "dt": 1792404000})

        client.current_temperature()

        assert client.session.get.call_args.kwargs["params"]["units"] == "imperial"

    def test_http_error(self):
        client = OpenWeatherMapClient("bad", "London,GB")
        client.session = MagicMock()
        client.session.get.return_value = mock_response({}, status=401)

        with pytest.raises(WeatherServiceError):
            client.current_temperature()

    def test_connection_error(self):
        client = OpenWeatherMapClient("key", "London,GB")
        client.session = MagicMock()
        client.session.get.side_effect = requests.exceptions.ConnectionError("no route")

        with pytest.raises(WeatherServiceError):
            client.current_temperature()

    def test_malformed_response(self):
        client = OpenWeatherMapClient("key", "London,GB")
        client.session = MagicMock()
        client.session.get.return_value = mock_response({"weather": []})

        with pytest.raises(WeatherServiceError):
            client.current_temperature()


def test_weatherapi_client():
    client = WeatherAPIClient("key", "Paris", "F")
    client.session = MagicMock()
    client.session.get.return_value = mock_response(
        {"current": {"temp_c": 10.0, "temp_f": 50.0, "last_updated_epoch": 1792404000}}
    )

    assert client.current_temperature() == (50.0, "2026-10-19T10:00:00Z")


def test_create_weather_client():
    client = create_weather_client("OpenWeatherMap", "key", "London,GB", "c")
    assert isinstance(client, OpenWeatherMapClient)
    assert client.units == "C"


def test_create_unknown_weather_client():
    with pytest.raises(ConfigurationError):
        create_weather_client("wunderground", "key", "London,GB")
