"""
Interactive Thermostat Commands

Small command surface used by the command-line tool and the HTTP API.
Each command connects, acts and disconnects, so it can run between daemon
cycles without holding the thermostat's only client slot.
"""

import dataclasses
import logging
from collections.abc import Mapping
from typing import Any, Callable

from .device import DeviceClient, DeviceClientFactory, as_snapshot
from .exceptions import DeviceError, UnknownCommandError

logger = logging.getLogger(__name__)

ON_VALUES = {"1", "on", "true", "yes", "away", "lock", "locked"}
OFF_VALUES = {"0", "off", "false", "no", "home", "unlock", "unlocked"}


def parse_switch(value: Any) -> bool:
    """Interpret on/off style arguments."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ON_VALUES:
        return True
    if text in OFF_VALUES:
        return False
    raise ValueError(f"Expected on or off, got {value!r}")


def to_jsonable(value: Any) -> Any:
    """Convert snapshots (dataclasses) and other results to JSON-ready values."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, Mapping):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def _status(client: DeviceClient) -> Any:
    return as_snapshot(client.get_status())


COMMANDS: dict[str, tuple[int, Callable[..., Any]]] = {
    "status": (0, _status),
    "set_away": (1, lambda client, away: client.set_away(parse_switch(away))),
    "set_keylock": (1, lambda client, locked: client.set_keylock(parse_switch(locked))),
    "set_temperature": (1, lambda client, temp: client.set_temperature(float(temp))),
    "set_hold": (2, lambda client, temp, hours: client.set_hold(float(temp), float(hours))),
}


def run_command(
    client_factory: DeviceClientFactory,
    host: str,
    pin: int,
    command: str,
    args: list[Any],
) -> dict:
    """Run one command against a thermostat.

    Returns:
        {host: result}

    Raises:
        UnknownCommandError: If the command or its arguments are not recognised
        DeviceError: If the thermostat cannot be reached or rejects the command
    """
    if command not in COMMANDS:
        raise UnknownCommandError(f"Unknown command {command}")

    arity, action = COMMANDS[command]
    if len(args) != arity:
        raise UnknownCommandError(f"{command} takes {arity} argument(s), got {len(args)}")

    client = client_factory(host, pin)
    try:
        result = action(client, *args)
    except ValueError as e:
        raise UnknownCommandError(f"Invalid argument for {command}: {e}") from e
    except DeviceError:
        raise
    except Exception as e:
        raise DeviceError(f"{command} failed on {host}: {e}") from e
    finally:
        client.close()

    logger.info(f"[{host}] {command} {' '.join(str(a) for a in args)}".rstrip())
    return {host: to_jsonable(result)}
