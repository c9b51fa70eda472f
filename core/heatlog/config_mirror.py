"""
Configuration Mirror

Keeps the stored copy of each thermostat's configuration in step with the
thermostat. Every cycle writes the full configuration; writes replace what
was there, so repeating them is harmless.
"""

import logging

from .models import AWAY_HOME, ThermostatSnapshot

logger = logging.getLogger(__name__)

NOT_AVAILABLE = "n/a"


def settings_summary(thermostat: str, snapshot: ThermostatSnapshot) -> dict:
    """Main configuration of a thermostat as stored in the settings table."""
    if snapshot.heating is None:
        heating = NOT_AVAILABLE
    else:
        heating = snapshot.runmode if snapshot.enabled else "off"

    if snapshot.hotwater is None:
        hotwater = NOT_AVAILABLE
    elif snapshot.enabled and snapshot.awaymode == AWAY_HOME:
        hotwater = "hotwater"
    else:
        hotwater = "off"

    return {
        "host": thermostat,
        "vendor": snapshot.product.vendor,
        "version": snapshot.product.version,
        "model": snapshot.product.model,
        "heating": heating,
        "hotwater": hotwater,
        "units": snapshot.config.units,
        "holiday": snapshot.holiday.time if snapshot.holiday.enabled else "",
        "progmode": snapshot.config.progmode,
    }


def mirror_config(store, thermostat: str, snapshot: ThermostatSnapshot) -> None:
    """Update the stored settings, comfort levels and hot water timers."""
    store.upsert_settings(thermostat, settings_summary(thermostat, snapshot))
    store.upsert_comfort_schedule(thermostat, snapshot.comfort)
    store.upsert_timer_schedule(thermostat, snapshot.timer)
    logger.debug(f"[{thermostat}] Configuration mirrored")
