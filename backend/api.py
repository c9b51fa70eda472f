"""
Heatlog API Endpoints

The interactive thermostat commands served as JSON over HTTP. Every
response is {"<host>": <result>}.
"""

from fastapi import APIRouter, HTTPException
from loguru import logger
from pydantic import BaseModel

from core.heatlog.commands import run_command
from core.heatlog.device import DeviceClientFactory, load_device_client
from core.heatlog.exceptions import ConfigurationError, DeviceError, UnknownCommandError
from core.heatlog.settings import DaemonSettings, resolve_settings

router = APIRouter()

# Set by configure() during startup
settings: DaemonSettings | None = None
client_factory: DeviceClientFactory | None = None


def configure(new_settings: DaemonSettings, factory: DeviceClientFactory | None = None) -> None:
    """Install the settings and device client used by the endpoints."""
    global settings, client_factory
    settings = new_settings
    client_factory = factory or load_device_client(new_settings.device_client)
    logger.info(f"Serving commands for {len(settings.host)} thermostat(s)")


def configure_from_environment() -> None:
    """Resolve settings from the config file and environment."""
    try:
        configure(resolve_settings())
    except ConfigurationError as e:
        logger.warning(f"Thermostat commands unavailable: {e}")


class AwayRequest(BaseModel):
    """Request body for away mode."""
    away: bool


class KeylockRequest(BaseModel):
    """Request body for the keypad lock."""
    locked: bool


class SetTemperatureRequest(BaseModel):
    """Request body for setting temperature."""
    temperature: float


class HoldRequest(BaseModel):
    """Request body for holding a temperature."""
    temperature: float
    hours: float


def _run(host: str, command: str, *args) -> dict:
    if settings is None or client_factory is None:
        raise HTTPException(status_code=503, detail="Device client not configured")
    if host not in settings.host:
        raise HTTPException(status_code=404, detail=f"Thermostat not found: {host}")

    try:
        return run_command(client_factory, host, settings.pin, command, list(args))
    except UnknownCommandError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except DeviceError as e:
        logger.error(f"[{host}] {e}")
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.get("/api/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": "Heatlog",
        "version": "1.0.0",
        "device_client": client_factory is not None,
    }


@router.get("/api/thermostats")
async def get_thermostats():
    """Get all configured thermostats."""
    return {"thermostats": list(settings.host) if settings else []}


@router.get("/api/thermostats/{host}/status")
def get_status(host: str):
    """Read the current status of a thermostat."""
    return _run(host, "status")


@router.post("/api/thermostats/{host}/away")
def set_away(host: str, request: AwayRequest):
    """Switch away mode on or off."""
    return _run(host, "set_away", request.away)


@router.post("/api/thermostats/{host}/keylock")
def set_keylock(host: str, request: KeylockRequest):
    """Lock or unlock the thermostat keypad."""
    return _run(host, "set_keylock", request.locked)


@router.post("/api/thermostats/{host}/temperature")
def set_temperature(host: str, request: SetTemperatureRequest):
    """Set the target temperature."""
    return _run(host, "set_temperature", request.temperature)


@router.post("/api/thermostats/{host}/hold")
def set_hold(host: str, request: HoldRequest):
    """Hold a target temperature for a number of hours."""
    return _run(host, "set_hold", request.temperature, request.hours)
