"""Shared fixtures for Heatlog tests."""

from dataclasses import replace
from unittest.mock import MagicMock

import pytest

from core.heatlog.models import (
    DeviceConfig,
    FrostProtect,
    HeatingStatus,
    HolidayStatus,
    HotWaterStatus,
    ProductInfo,
    TemperatureReadings,
    ThermostatSnapshot,
)


def make_snapshot(**overrides) -> ThermostatSnapshot:
    """Return a heating-and-hot-water thermostat in normal mode."""
    snapshot = ThermostatSnapshot(
        time="2026-10-19 10:15:05",
        enabled=True,
        runmode="normal",
        awaymode="home",
        holiday=HolidayStatus(enabled=False, time=""),
        frostprotect=FrostProtect(enabled=True, target=7),
        config=DeviceConfig(units="C", progmode="5/2", optimumstart=2),
        temperature=TemperatureReadings(remote=None, internal=20.5, floor=None),
        product=ProductInfo(vendor="Heatmiser", version="1.8", model="PRT-TS"),
        comfort={"weekday": [{"time": "07:00", "target": 21}]},
        timer={"weekday": [{"on": "06:00", "off": "08:00"}]},
        heating=HeatingStatus(on=True, target=21, hold=0),
        hotwater=HotWaterStatus(on=True, boost=0),
    )
    return replace(snapshot, **overrides)


class FakeClient:
    """In-memory DeviceClient."""

    def __init__(self, host, pin, snapshot=None, comfort=(21, 21, 5), timer=True, error=None):
        self.host = host
        self.pin = pin
        self.snapshot = snapshot or make_snapshot()
        self.comfort = comfort
        self.timer = timer
        self.error = error
        self.calls = []
        self.open = False

    def connect(self):
        self.calls.append("connect")
        self.open = True

    def read_status(self):
        self.calls.append("read_status")
        if self.error:
            raise self.error
        return b"frame"

    def close(self):
        self.calls.append("close")
        self.open = False

    def decode(self, frame):
        self.calls.append("decode")
        return self.snapshot

    def lookup_comfort(self, snapshot):
        return self.comfort

    def lookup_timer(self, snapshot):
        return self.timer

    def get_status(self):
        return self.snapshot

    def set_away(self, away):
        self.calls.append(("set_away", away))
        return {"away": away}

    def set_keylock(self, locked):
        self.calls.append(("set_keylock", locked))
        return {"keylock": locked}

    def set_temperature(self, temperature):
        self.calls.append(("set_temperature", temperature))
        return {"target": temperature}

    def set_hold(self, temperature, hours):
        self.calls.append(("set_hold", temperature, hours))
        return {"target": temperature, "hold": hours}


@pytest.fixture
def snapshot() -> ThermostatSnapshot:
    return make_snapshot()


@pytest.fixture
def store() -> MagicMock:
    """A PersistenceStore that records every call."""
    mock = MagicMock()
    mock.latest_weather_observation.return_value = None
    return mock
