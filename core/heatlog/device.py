"""
Thermostat Device Access

The thermostat protocol itself is provided by a client plugin named in the
configuration as "package.module:factory". The factory is called with the
host and PIN and must return an object implementing DeviceClient.

Each thermostat serves a single client at a time, so a session always
closes the connection straight after reading the status.
"""

import importlib
import logging
from collections.abc import Mapping
from typing import Any, Callable, Optional, Protocol

from .exceptions import ConfigurationError, DeviceError
from .models import ThermostatSnapshot

logger = logging.getLogger(__name__)


class DeviceClient(Protocol):
    """Protocol client for one thermostat."""

    def connect(self) -> None: ...

    def read_status(self) -> Any: ...

    def close(self) -> None: ...

    def decode(self, frame: Any) -> ThermostatSnapshot | Mapping: ...

    def lookup_comfort(
        self, snapshot: ThermostatSnapshot
    ) -> tuple[Optional[float], Optional[float], Optional[float]]: ...

    def lookup_timer(self, snapshot: ThermostatSnapshot) -> bool: ...

    def get_status(self) -> ThermostatSnapshot | Mapping: ...

    def set_away(self, away: bool) -> Any: ...

    def set_keylock(self, locked: bool) -> Any: ...

    def set_temperature(self, temperature: float) -> Any: ...

    def set_hold(self, temperature: float, hours: float) -> Any: ...


DeviceClientFactory = Callable[[str, int], DeviceClient]


def load_device_client(path: str | None) -> DeviceClientFactory:
    """Resolve a "module:attribute" path to a client factory.

    Raises:
        ConfigurationError: If the path is missing or cannot be imported
    """
    if not path:
        raise ConfigurationError("device_client is not configured")

    module_name, _, attribute = path.partition(":")
    if not module_name or not attribute:
        raise ConfigurationError(
            f"device_client must look like 'package.module:factory', got {path!r}"
        )

    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attribute)
    except (ImportError, AttributeError) as e:
        raise ConfigurationError(f"Cannot load device client {path}: {e}") from e

    if not callable(factory):
        raise ConfigurationError(f"Device client {path} is not callable")
    return factory


def as_snapshot(decoded: ThermostatSnapshot | Mapping) -> ThermostatSnapshot:
    """Accept either a snapshot or the plain dictionary a plugin decoded."""
    if isinstance(decoded, ThermostatSnapshot):
        return decoded
    if isinstance(decoded, Mapping):
        return ThermostatSnapshot.from_dict(dict(decoded))
    raise DeviceError(f"Unexpected status type: {type(decoded).__name__}")


class DeviceSession:
    """Reads one status snapshot per cycle from a thermostat."""

    def __init__(self, host: str, client: DeviceClient):
        self.host = host
        self.client = client

    def read(self) -> dict:
        """Read, decode and derive the comfort and timer values.

        Returns:
            dict: {
                "status": "success" or "error",
                "message": error message if status is "error",
                "data": {"snapshot", "comfort", "next_comfort",
                         "next_comfort_hours", "timer"} on success
            }
        """
        try:
            try:
                self.client.connect()
                frame = self.client.read_status()
            finally:
                # Disconnect before anything else so other clients can connect
                self.client.close()

            snapshot = as_snapshot(self.client.decode(frame))
            comfort, next_comfort, next_comfort_hours = self.client.lookup_comfort(snapshot)
            timer = bool(self.client.lookup_timer(snapshot))
        except Exception as e:
            return {"status": "error", "message": f"Status read failed: {e}"}

        return {
            "status": "success",
            "data": {
                "snapshot": snapshot,
                "comfort": comfort,
                "next_comfort": next_comfort,
                "next_comfort_hours": next_comfort_hours,
                "timer": timer,
            },
        }
