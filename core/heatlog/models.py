"""
Heatlog Data Models

Decoded thermostat status. The optional `heating` and `hotwater` blocks
signal whether the thermostat controls that subsystem at all.
"""

from dataclasses import dataclass, field, fields
from typing import Any, Optional

RUNMODE_NORMAL = "normal"
RUNMODE_FROST = "frost"

AWAY_HOME = "home"
AWAY_AWAY = "away"


def _field_key(name: str) -> str:
    """Match "awayMode", "away_mode" and "awaymode" to the same field."""
    return name.replace("_", "").lower()


def _known_fields(cls, data: dict) -> dict:
    """Keep the entries of data that name a field of cls, keyed by field name."""
    names = {_field_key(f.name): f.name for f in fields(cls)}
    return {names[_field_key(k)]: v for k, v in data.items() if _field_key(k) in names}


def _build(cls, data):
    """Instantiate a dataclass from a mapping, ignoring unknown keys."""
    if data is None or isinstance(data, cls):
        return data
    return cls(**_known_fields(cls, data))


@dataclass(frozen=True)
class HeatingStatus:
    """Heating block: present only when the thermostat controls heating."""

    on: bool
    target: float
    hold: int = 0  # Minutes of temperature hold remaining


@dataclass(frozen=True)
class HotWaterStatus:
    """Hot water block: present only when the thermostat controls hot water."""

    on: bool
    boost: int = 0  # Minutes of boost remaining


@dataclass(frozen=True)
class HolidayStatus:
    enabled: bool = False
    time: str = ""  # Holiday return time


@dataclass(frozen=True)
class FrostProtect:
    enabled: bool = False
    target: float = 0


@dataclass(frozen=True)
class DeviceConfig:
    units: str = "C"
    progmode: str = "5/2"
    optimumstart: float = 0  # Hours of optimum start allowed


@dataclass(frozen=True)
class TemperatureReadings:
    remote: Optional[float] = None
    internal: Optional[float] = None
    floor: Optional[float] = None


@dataclass(frozen=True)
class ProductInfo:
    vendor: str = ""
    version: str = ""
    model: str = ""


@dataclass(frozen=True)
class ThermostatSnapshot:
    """One decoded status read from a thermostat."""

    time: str  # Thermostat clock, "YYYY-MM-DD HH:MM:SS"
    enabled: bool = True
    runmode: str = RUNMODE_NORMAL
    awaymode: str = AWAY_HOME
    holiday: HolidayStatus = field(default_factory=HolidayStatus)
    frostprotect: FrostProtect = field(default_factory=FrostProtect)
    config: DeviceConfig = field(default_factory=DeviceConfig)
    temperature: TemperatureReadings = field(default_factory=TemperatureReadings)
    product: ProductInfo = field(default_factory=ProductInfo)
    comfort: Any = None  # Programmed comfort levels, opaque to the daemon
    timer: Any = None  # Programmed hot water timers, opaque to the daemon
    heating: Optional[HeatingStatus] = None
    hotwater: Optional[HotWaterStatus] = None

    @classmethod
    def from_dict(cls, data: dict) -> "ThermostatSnapshot":
        """Create from dictionary (camelCase or snake_case keys)."""
        converted = _known_fields(cls, data)

        nested = {
            "holiday": HolidayStatus,
            "frostprotect": FrostProtect,
            "config": DeviceConfig,
            "temperature": TemperatureReadings,
            "product": ProductInfo,
            "heating": HeatingStatus,
            "hotwater": HotWaterStatus,
        }
        for key, nested_cls in nested.items():
            if key in converted:
                converted[key] = _build(nested_cls, converted[key])

        return cls(**converted)


def air_temperature(snapshot: ThermostatSnapshot) -> Optional[float]:
    """Best available air temperature: remote, then internal, then floor sensor.

    A sensor counts when it reports a value at all, so 0 degrees is a valid
    reading and is not skipped.
    """
    readings = snapshot.temperature
    for value in (readings.remote, readings.internal, readings.floor):
        if value is not None:
            return value
    return None
