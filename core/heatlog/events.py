"""
Change Tracking

Records heating, target and hot water events only when the derived state
changes. The remembered state for each thermostat lives in memory for the
life of the process, so the first cycle after a restart re-records the
current state.
"""

import logging
from dataclasses import dataclass, field, replace

from .models import ThermostatSnapshot

logger = logging.getLogger(__name__)

EVENT_HEATING = "heating"
EVENT_TARGET = "target"
EVENT_HOTWATER = "hotwater"


@dataclass(frozen=True)
class HeatState:
    """Last heating observation. Defaults never match a real reading."""

    cause: str = ""
    state: int = -1
    target: float = -1


@dataclass(frozen=True)
class HotWaterState:
    """Last hot water observation.

    The defaults equal the derived state of a thermostat without hot water
    control, so such thermostats never record hot water events.
    """

    cause: str = ""
    state: int = 0


@dataclass(frozen=True)
class CauseRecord:
    """Per-thermostat change-detection memory."""

    heat: HeatState = field(default_factory=HeatState)
    hotwater: HotWaterState = field(default_factory=HotWaterState)


def emit_heating_event(
    store,
    thermostat: str,
    snapshot: ThermostatSnapshot,
    last: HeatState,
) -> HeatState:
    """Record a heating event if heating switched on or off.

    A thermostat without heating control counts as off.
    """
    state = int(bool(snapshot.heating.on)) if snapshot.heating is not None else 0

    if state != last.state:
        store.insert_event(thermostat, snapshot.time, EVENT_HEATING, state)
        logger.debug(f"[{thermostat}] Heating event: {state}")

    return replace(last, state=state)


def emit_target_event(
    store,
    thermostat: str,
    snapshot: ThermostatSnapshot,
    target: float,
    cause: str,
    last: HeatState,
) -> HeatState:
    """Record a target event if the target or its cause changed."""
    if cause != last.cause or target != last.target:
        store.insert_event(
            thermostat, snapshot.time, EVENT_TARGET, cause, temperature=target
        )
        logger.debug(f"[{thermostat}] Target event: {cause} {target}")

    return replace(last, cause=cause, target=target)


def emit_heat_events(
    store,
    thermostat: str,
    snapshot: ThermostatSnapshot,
    target: float,
    cause: str,
    last: HeatState,
) -> HeatState:
    """Record heating and target events that differ from the last observation.

    Returns:
        The observation to compare against next cycle
    """
    last = emit_heating_event(store, thermostat, snapshot, last)
    return emit_target_event(store, thermostat, snapshot, target, cause, last)


def emit_hotwater_events(
    store,
    thermostat: str,
    snapshot: ThermostatSnapshot,
    state: bool,
    cause: str,
    last: HotWaterState,
) -> HotWaterState:
    """Record a hot water event if the state or its cause changed."""
    state = int(bool(state))

    if state != last.state or cause != last.cause:
        store.insert_event(
            thermostat, snapshot.time, EVENT_HOTWATER, cause, temperature=state
        )
        logger.debug(f"[{thermostat}] Hot water event: {cause} {state}")

    return HotWaterState(cause=cause, state=state)
