"""
Weather Service Clients and Logging Throttle

Minimal clients for reading the current external temperature, plus the
throttle that decides when to read it and whether the reading is new.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import requests

from .exceptions import ConfigurationError, PersistenceError, WeatherServiceError

logger = logging.getLogger(__name__)


def _iso_utc(epoch: int) -> str:
    return datetime.fromtimestamp(int(epoch), timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class WeatherClient:
    """Base REST client for a weather service."""

    base_url = ""

    def __init__(self, key: str, location: str, units: str = "C"):
        """Initialize weather client.

        Args:
            key: API key for the service
            location: Location query understood by the service (e.g., "London,GB")
            units: "C" or "F"
        """
        self.key = key
        self.location = location
        self.units = units.upper()
        # Create a session for connection pooling
        self.session = requests.Session()
        # Set default timeout
        self.timeout = 10

    def _get(self, path: str, params: dict) -> dict:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except requests.exceptions.HTTPError as e:
            raise WeatherServiceError(f"Weather request failed: {e}") from e
        except requests.exceptions.RequestException as e:
            raise WeatherServiceError(f"Weather service unreachable: {e}") from e
        except ValueError as e:
            raise WeatherServiceError(f"Invalid weather response: {e}") from e

    def current_temperature(self) -> tuple[float, str]:
        """Get the current external temperature.

        Returns:
            (temperature, observation timestamp as ISO-8601 UTC)

        Raises:
            WeatherServiceError: If the service cannot be read
        """
        raise NotImplementedError


class OpenWeatherMapClient(WeatherClient):
    """OpenWeatherMap current weather API."""

    base_url = "https://api.openweathermap.org"

    def current_temperature(self) -> tuple[float, str]:
        data = self._get(
            "/data/2.5/weather",
            {
                "q": self.location,
                "appid": self.key,
                "units": "imperial" if self.units == "F" else "metric",
            },
        )
        try:
            return float(data["main"]["temp"]), _iso_utc(data["dt"])
        except (KeyError, TypeError, ValueError) as e:
            raise WeatherServiceError(f"Cannot read temperature from OpenWeatherMap: {e}") from e


class WeatherAPIClient(WeatherClient):
    """WeatherAPI.com current conditions API."""

    base_url = "https://api.weatherapi.com"

    def current_temperature(self) -> tuple[float, str]:
        data = self._get("/v1/current.json", {"key": self.key, "q": self.location})
        try:
            current = data["current"]
            temperature = current["temp_f"] if self.units == "F" else current["temp_c"]
            return float(temperature), _iso_utc(current["last_updated_epoch"])
        except (KeyError, TypeError, ValueError) as e:
            raise WeatherServiceError(f"Cannot read temperature from WeatherAPI: {e}") from e


WEATHER_SERVICES = {
    "openweathermap": OpenWeatherMapClient,
    "weatherapi": WeatherAPIClient,
}


def create_weather_client(service: str, key: str, location: str, units: str = "C") -> WeatherClient:
    """Instantiate the client for a named weather service."""
    try:
        client_cls = WEATHER_SERVICES[service.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown weather service {service!r} "
            f"(expected one of: {', '.join(sorted(WEATHER_SERVICES))})"
        )
    return client_cls(key, location, units)


def latest_stored_timestamp(store) -> str:
    """Timestamp of the newest stored observation, or "" if unavailable."""
    try:
        row = store.latest_weather_observation(["observed"])
    except PersistenceError as e:
        logger.warning(f"Could not read latest weather observation: {e}")
        return ""
    return (row or {}).get("observed") or ""


class WeatherThrottle:
    """Reads the weather every `rate` cycles and stores only new observations."""

    def __init__(self, client: WeatherClient, store, rate: int, last_timestamp: str = ""):
        self.client = client
        self.store = store
        self.rate = rate
        self.last_timestamp = last_timestamp
        self.count = 0

    def tick(self) -> Optional[dict]:
        """Count a cycle and read the weather if it is due.

        Returns:
            None when no read was due, otherwise a result dict:
            {"status": "success", "data": (external, timestamp)} or
            {"status": "error", "message": ...}
        """
        self.count += 1
        if self.count < self.rate:
            return None
        self.count = 0

        try:
            return {"status": "success", "data": self.client.current_temperature()}
        except Exception as e:
            return {"status": "error", "message": f"Weather read failed: {e}"}

    def record(self, external: float, timestamp: str) -> bool:
        """Store an observation unless it is the one already stored.

        Returns:
            True if a new observation was stored
        """
        if timestamp == self.last_timestamp:
            logger.debug(f"Weather observation {timestamp} already stored")
            return False

        self.store.insert_weather_observation(timestamp, external)
        self.last_timestamp = timestamp
        logger.debug(f"Stored weather observation {timestamp}: {external}")
        return True
