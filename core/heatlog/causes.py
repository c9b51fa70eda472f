"""
Cause Derivation

Explains why heating and hot water are in their current state. Influences
are considered in decreasing order of importance and the first match wins.
Both functions are pure: they only read the snapshot.
"""

from typing import Optional

from .models import AWAY_AWAY, RUNMODE_FROST, ThermostatSnapshot

CAUSE_NONE = ""
CAUSE_OFF = "off"
CAUSE_HOLIDAY = "holiday"
CAUSE_AWAY = "away"
CAUSE_HOLD = "hold"
CAUSE_COMFORTLEVEL = "comfortlevel"
CAUSE_OPTIMUMSTART = "optimumstart"
CAUSE_MANUAL = "manual"
CAUSE_BOOST = "boost"
CAUSE_TIMER = "timer"
CAUSE_OVERRIDE = "override"


def action_heat(
    snapshot: ThermostatSnapshot,
    comfort: Optional[float],
    next_comfort: Optional[float],
    next_comfort_hours: Optional[float],
) -> tuple[float, str]:
    """Determine the target temperature and its cause.

    Args:
        snapshot: Decoded thermostat status
        comfort: Comfort level currently programmed, None without a schedule
        next_comfort: Next programmed comfort level
        next_comfort_hours: Hours until the next comfort level applies

    Returns:
        (target, cause)
    """
    if snapshot.heating is None:
        # Thermostat does not control heating
        return 0, CAUSE_NONE

    if not snapshot.enabled:
        return 0, CAUSE_OFF

    if snapshot.runmode == RUNMODE_FROST:
        # Frost protection covers away/summer and holiday
        frost = snapshot.frostprotect
        target = frost.target if frost.enabled else 0
        cause = CAUSE_HOLIDAY if snapshot.holiday.enabled else CAUSE_AWAY
        return target, cause

    # Normal heating: hold, comfort level, optimum start or manual adjustment
    heating = snapshot.heating
    target = heating.target
    if heating.hold:
        cause = CAUSE_HOLD
    elif target == comfort:
        cause = CAUSE_COMFORTLEVEL
    elif (
        comfort is not None
        and next_comfort is not None
        and target == next_comfort
        and comfort < next_comfort
        and next_comfort_hours <= snapshot.config.optimumstart
    ):
        cause = CAUSE_OPTIMUMSTART
    else:
        cause = CAUSE_MANUAL
    return target, cause


def action_hotwater(snapshot: ThermostatSnapshot, timer: bool) -> tuple[bool, str]:
    """Determine the hot water state and its cause.

    Returns:
        (state, cause)
    """
    hotwater = snapshot.hotwater
    if hotwater is None:
        return False, CAUSE_NONE

    state = hotwater.on
    if not snapshot.enabled:
        cause = CAUSE_OFF
    elif snapshot.holiday.enabled:
        cause = CAUSE_HOLIDAY
    elif snapshot.awaymode == AWAY_AWAY:
        cause = CAUSE_AWAY
    elif hotwater.boost:
        cause = CAUSE_BOOST
    elif bool(hotwater.on) == bool(timer):
        cause = CAUSE_TIMER
    else:
        cause = CAUSE_OVERRIDE
    return state, cause
