"""Heatlog thermostat monitoring package."""

# Define public API
__all__ = [
    "DaemonSettings",
    "ThermostatSnapshot",
    "PollingService",
    "InfluxStore",
]

# Import settings
from .settings import DaemonSettings

# Import models
from .models import ThermostatSnapshot

# Import storage
from .influxdb_helper import InfluxStore

# Import polling loop
from .polling_service import PollingService
