"""Stores thermostat logs, events, configuration and weather in InfluxDB.

Writes use the line protocol over the HTTP write endpoint. Configuration
(settings and programmed schedules) is written at a fixed timestamp so each
write replaces the previous one, making the upserts idempotent.
"""

import csv
import io
import json
import logging
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Optional, Protocol

import requests

from .exceptions import PersistenceError

_LOGGER = logging.getLogger(__name__)

# Configuration points all share this timestamp so they overwrite each other
CONFIG_TIMESTAMP = 0


class PersistenceStore(Protocol):
    """Storage used by the daemon."""

    def upsert_settings(self, thermostat: str, fields: dict) -> None: ...

    def upsert_comfort_schedule(self, thermostat: str, schedule: Any) -> None: ...

    def upsert_timer_schedule(self, thermostat: str, schedule: Any) -> None: ...

    def insert_log_sample(
        self, thermostat: str, time: str, air: Optional[float], target: float, comfort: Optional[float]
    ) -> None: ...

    def insert_event(
        self,
        thermostat: str,
        time: str,
        event_class: str,
        state: Any,
        temperature: Optional[float] = None,
    ) -> None: ...

    def insert_weather_observation(self, time: str, external: float) -> None: ...

    def latest_weather_observation(self, fields: Iterable[str]) -> Optional[dict]: ...


def _escape_key(value: str) -> str:
    return value.replace("\\", "\\\\").replace(",", "\\,").replace("=", "\\=").replace(" ", "\\ ")


def _format_field(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def to_epoch(time_str: str) -> int:
    """Convert a thermostat or weather timestamp to epoch seconds.

    Naive timestamps (the thermostat clock) are taken as local time.
    """
    try:
        return int(datetime.fromisoformat(time_str.replace("Z", "+00:00")).timestamp())
    except (AttributeError, ValueError) as e:
        raise PersistenceError(f"Invalid timestamp {time_str!r}: {e}") from e


def format_line(
    measurement: str, tags: dict[str, str], fields: dict[str, Any], timestamp: int
) -> str:
    """Build one line-protocol record. Fields whose value is None are dropped."""
    field_parts = [
        f"{_escape_key(key)}={_format_field(value)}"
        for key, value in fields.items()
        if value is not None
    ]
    if not field_parts:
        raise PersistenceError(f"No field values for {measurement}")

    tag_parts = "".join(
        f",{_escape_key(key)}={_escape_key(str(value))}"
        for key, value in sorted(tags.items())
        if value not in (None, "")
    )
    return f"{_escape_key(measurement)}{tag_parts} {','.join(field_parts)} {timestamp}"


class InfluxStore:
    """PersistenceStore backed by the InfluxDB HTTP API."""

    def __init__(
        self,
        url: str,
        database: str,
        username: str | None = None,
        password: str | None = None,
        timeout: int = 10,
    ):
        """Initialize the store.

        Args:
            url: InfluxDB URL (e.g., "http://localhost:8086")
            database: Database (bucket) name
            username: Optional user name
            password: Optional password
            timeout: Request timeout in seconds
        """
        self.url = url.rstrip("/")
        self.database = database
        self.timeout = timeout

        # Create a session for connection pooling
        self.session = requests.Session()
        if username:
            self.session.auth = (username, password or "")

    def _write(self, lines: list[str]) -> None:
        """Write line-protocol records.

        Raises:
            PersistenceError: If the write is rejected or InfluxDB is unreachable
        """
        try:
            response = self.session.post(
                f"{self.url}/write",
                params={"db": self.database, "precision": "s"},
                data="\n".join(lines).encode("utf-8"),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PersistenceError(f"Error connecting to InfluxDB: {e}") from e

        if response.status_code not in (200, 204):
            raise PersistenceError(
                f"InfluxDB write error {response.status_code}: {response.text.strip()}"
            )
        _LOGGER.debug("Wrote %d point(s) to InfluxDB", len(lines))

    def upsert_settings(self, thermostat: str, fields: dict) -> None:
        """Replace the stored settings summary of a thermostat."""
        line = format_line(
            "settings",
            {"thermostat": thermostat},
            {key: "" if value is None else str(value) for key, value in fields.items()},
            CONFIG_TIMESTAMP,
        )
        self._write([line])

    def _upsert_schedule(self, measurement: str, thermostat: str, schedule: Any) -> None:
        line = format_line(
            measurement,
            {"thermostat": thermostat},
            {"schedule": json.dumps(schedule, sort_keys=True, default=str)},
            CONFIG_TIMESTAMP,
        )
        self._write([line])

    def upsert_comfort_schedule(self, thermostat: str, schedule: Any) -> None:
        """Replace the stored comfort levels of a thermostat."""
        self._upsert_schedule("comfort", thermostat, schedule)

    def upsert_timer_schedule(self, thermostat: str, schedule: Any) -> None:
        """Replace the stored hot water timers of a thermostat."""
        self._upsert_schedule("timer", thermostat, schedule)

    def insert_log_sample(
        self, thermostat: str, time: str, air: Optional[float], target: float, comfort: Optional[float]
    ) -> None:
        """Store one periodic status sample."""
        fields = {
            "air": None if air is None else float(air),
            "target": float(target),
            "comfort": None if comfort is None else float(comfort),
        }
        self._write([format_line("log", {"thermostat": thermostat}, fields, to_epoch(time))])

    def insert_event(
        self,
        thermostat: str,
        time: str,
        event_class: str,
        state: Any,
        temperature: Optional[float] = None,
    ) -> None:
        """Store a change-of-state event.

        The state is always stored as a string so heating (1/0) and cause
        labels can share one field.
        """
        if isinstance(state, bool):
            state = int(state)
        fields = {
            "state": str(state),
            "temperature": None if temperature is None else float(temperature),
        }
        tags = {"thermostat": thermostat, "class": event_class}
        self._write([format_line("event", tags, fields, to_epoch(time))])

    def insert_weather_observation(self, time: str, external: float) -> None:
        """Store an external temperature observation."""
        fields = {"external": float(external), "observed": time}
        self._write([format_line("weather", {}, fields, to_epoch(time))])

    def latest_weather_observation(self, fields: Iterable[str]) -> Optional[dict]:
        """Get the requested fields of the most recent weather observation.

        Returns:
            Mapping of field name to value, or None when nothing is stored
        """
        fields = list(fields)
        field_filter = " or ".join(f'r["_field"] == "{name}"' for name in fields)
        flux_query = f"""from(bucket: "{self.database}/autogen")
                    |> range(start: 0)
                    |> filter(fn: (r) => r["_measurement"] == "weather")
                    |> filter(fn: (r) => {field_filter})
                    |> last()
                    """

        try:
            response = self.session.post(
                f"{self.url}/api/v2/query",
                headers={
                    "Content-type": "application/vnd.flux",
                    "Accept": "application/csv",
                },
                data=flux_query,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise PersistenceError(f"Error connecting to InfluxDB: {e}") from e

        if response.status_code == 204:
            return None
        if response.status_code != 200:
            raise PersistenceError(f"InfluxDB query error: {response.status_code}")

        row = parse_last_values(response.text)
        if not row:
            return None
        return {name: row.get(name) for name in fields}


def parse_last_values(response_text: str) -> dict[str, str]:
    """Parse an annotated CSV response into {field: value}."""
    values = {}

    # Skip annotation rows (lines starting with '#') and blank table separators
    data_lines = [
        line for line in response_text.splitlines() if line.strip() and not line.startswith("#")
    ]

    header = None
    for row in csv.reader(io.StringIO("\n".join(data_lines))):
        if "_field" in row and "_value" in row:
            header = row
            continue
        if header is None or len(row) != len(header):
            continue
        record = dict(zip(header, row))
        values[record["_field"]] = record["_value"]

    _LOGGER.debug("Parsed response: %s", values)
    return values
