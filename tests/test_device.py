"""Tests for device sessions and the client plugin loader."""

import pytest
from conftest import FakeClient

from core.heatlog.device import DeviceSession, as_snapshot, load_device_client
from core.heatlog.exceptions import ConfigurationError, DeviceError


def test_read_returns_derived_values():
    client = FakeClient("hall", 1234, comfort=(21, 18, 3.5), timer=False)
    result = DeviceSession("hall", client).read()

    assert result["status"] == "success"
    data = result["data"]
    assert data["snapshot"] == client.snapshot
    assert (data["comfort"], data["next_comfort"], data["next_comfort_hours"]) == (21, 18, 3.5)
    assert data["timer"] is False


def test_connection_closed_before_decoding():
    client = FakeClient("hall", 1234)
    DeviceSession("hall", client).read()
    assert client.calls == ["connect", "read_status", "close", "decode"]


def test_connection_closed_when_read_fails():
    client = FakeClient("hall", 1234, error=OSError("timed out"))
    result = DeviceSession("hall", client).read()

    assert result["status"] == "error"
    assert "timed out" in result["message"]
    assert client.calls[-1] == "close"
    assert client.open is False


def test_decode_failure_is_reported():
    client = FakeClient("hall", 1234)
    client.decode = lambda frame: 42
    result = DeviceSession("hall", client).read()

    assert result["status"] == "error"
    assert client.open is False


def test_as_snapshot_accepts_dicts():
    snapshot = as_snapshot({"time": "2026-10-19 10:15:05", "heating": {"on": 1, "target": 20}})
    assert snapshot.heating.target == 20


def test_as_snapshot_rejects_other_types():
    with pytest.raises(DeviceError):
        as_snapshot("status")


def test_load_device_client_resolves_factory():
    factory = load_device_client("conftest:FakeClient")
    assert factory is FakeClient


@pytest.mark.parametrize(
    "path",
    [None, "", "conftest", "conftest:Missing", "no_such_module_xyz:Client", "conftest:__doc__"],
)
def test_load_device_client_errors(path):
    with pytest.raises(ConfigurationError):
        load_device_client(path)
