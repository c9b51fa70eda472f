"""
Thermostat Polling Service

Polls every thermostat once per cycle, logs its status, mirrors its
configuration and records changes of heating and hot water state. Cycles
are aligned to the poll interval and the loop runs until a termination
signal is caught; a cycle in progress always completes first.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from .causes import action_heat, action_hotwater
from .config_mirror import mirror_config
from .device import DeviceClientFactory, DeviceSession
from .events import CauseRecord, emit_heating_event, emit_hotwater_events, emit_target_event
from .isolation import FaultIsolator, tagged
from .lifecycle import LifecycleState, install_signal_handlers
from .models import ThermostatSnapshot, air_temperature
from .scheduler import compute_sleep
from .weather import WeatherThrottle

logger = logging.getLogger(__name__)

PROGRAM = "heatlog-daemon"


@dataclass
class Thermostat:
    """A polled thermostat and what was last recorded for it."""

    host: str
    session: DeviceSession
    record: CauseRecord = field(default_factory=CauseRecord)


def _on_off(value) -> str:
    return "ON" if value else "OFF"


def status_line(
    snapshot: ThermostatSnapshot,
    comfort: Optional[float],
    heat_target: float,
    heat_cause: str,
    timer: bool,
    hotwater_state: bool,
    hotwater_cause: str,
) -> str:
    """One-line human readable summary of a status read."""
    u = snapshot.config.units
    air = air_temperature(snapshot)
    air_text = f"{air:.1f}{u}" if air is not None else "n/a"
    comfort_text = f"{int(comfort)}{u}" if comfort is not None else "n/a"
    heating_on = snapshot.heating.on if snapshot.heating is not None else False
    return (
        f"{snapshot.time} Air={air_text} Target={int(heat_target)}{u} Cause={heat_cause} "
        f"Comfort={comfort_text} Heating={_on_off(heating_on)} "
        f"HotWater={_on_off(hotwater_state)} Cause={hotwater_cause} Timer={_on_off(timer)}"
    )


class PollingService:
    """
    Monitoring loop for a fleet of thermostats.

    All mutable state (the per-thermostat cause records and the weather
    throttle) is owned by this loop. Signal handlers only set the stop flag.
    """

    def __init__(
        self,
        hosts: list[str],
        pin: int,
        client_factory: DeviceClientFactory,
        store,
        interval_seconds: int = 60,
        weather: Optional[WeatherThrottle] = None,
        verbose: bool = False,
    ):
        self.store = store
        self.interval_seconds = interval_seconds
        self.weather = weather
        self.verbose = verbose
        self.isolator = FaultIsolator(verbose=verbose)

        self.thermostats: dict[str, Thermostat] = {
            host: Thermostat(host=host, session=DeviceSession(host, client_factory(host, pin)))
            for host in hosts
        }

        self.state = LifecycleState.STARTING
        self.stop_signal: Optional[str] = None
        self._stop = asyncio.Event()

    def request_stop(self, reason: str) -> None:
        """Ask the loop to stop after the current cycle."""
        if self.stop_signal is None:
            self.stop_signal = reason
            logger.info(f"Caught {reason}: exiting gracefully")
        self._stop.set()

    def poll_thermostat(self, thermostat: Thermostat) -> Optional[str]:
        """Read and record one thermostat.

        Returns:
            The thermostat's clock reading, or None if it could not be read
        """
        host = thermostat.host
        reading = self.isolator.check(host, thermostat.session.read())
        if reading is None:
            return None

        snapshot = reading["snapshot"]
        comfort = reading["comfort"]
        timer = reading["timer"]

        heat_target, heat_cause = action_heat(
            snapshot, comfort, reading["next_comfort"], reading["next_comfort_hours"]
        )
        hotwater_state, hotwater_cause = action_hotwater(snapshot, timer)

        with self.isolator.boundary(host):
            mirror_config(self.store, host, snapshot)

        with self.isolator.boundary(host):
            self.store.insert_log_sample(
                host, snapshot.time, air_temperature(snapshot), heat_target, comfort
            )
            if self.verbose:
                logger.info(
                    tagged(
                        status_line(
                            snapshot, comfort, heat_target, heat_cause,
                            timer, hotwater_state, hotwater_cause,
                        ),
                        host,
                    )
                )

        with self.isolator.boundary(host):
            heat = emit_heating_event(self.store, host, snapshot, thermostat.record.heat)
            thermostat.record = replace(thermostat.record, heat=heat)

        with self.isolator.boundary(host):
            heat = emit_target_event(
                self.store, host, snapshot, heat_target, heat_cause, thermostat.record.heat
            )
            thermostat.record = replace(thermostat.record, heat=heat)

        with self.isolator.boundary(host):
            hotwater = emit_hotwater_events(
                self.store, host, snapshot, hotwater_state, hotwater_cause,
                thermostat.record.hotwater,
            )
            thermostat.record = replace(thermostat.record, hotwater=hotwater)

        return snapshot.time

    def poll_weather(self) -> None:
        """Log the external temperature if it is due and new."""
        if self.weather is None:
            return

        result = self.weather.tick()
        if result is None:
            return

        observation = self.isolator.check(None, result)
        if observation is None:
            return

        external, timestamp = observation
        with self.isolator.boundary():
            self.weather.record(external, timestamp)

    def run_cycle(self) -> Optional[str]:
        """Poll every thermostat, then the weather.

        Returns:
            Clock reading of the first thermostat read successfully
        """
        last_time = None
        for thermostat in self.thermostats.values():
            with self.isolator.boundary(thermostat.host):
                time = self.poll_thermostat(thermostat)
                if last_time is None:
                    last_time = time

        self.poll_weather()
        return last_time

    async def run(self, install_signals: bool = True) -> Optional[str]:
        """Poll until stopped.

        Returns:
            Name of the signal (or other reason) that stopped the loop
        """
        if install_signals:
            install_signal_handlers(asyncio.get_running_loop(), self.request_stop)

        self.state = LifecycleState.RUNNING
        logger.info(f">>>> {PROGRAM} started >>>>")
        logger.info(
            f"Polling {len(self.thermostats)} thermostat(s) every "
            f"{self.interval_seconds} seconds"
        )

        while not self._stop.is_set():
            last_time = self.run_cycle()

            sleep = compute_sleep(self.interval_seconds, last_time)
            if self.verbose:
                logger.info(f"Sleeping for {sleep} seconds")
            try:
                await asyncio.wait_for(self._stop.wait(), timeout=sleep)
            except asyncio.TimeoutError:
                pass

        self.state = LifecycleState.STOPPING
        if self.isolator.failures:
            summary = ", ".join(
                f"{tag or 'weather'}={count}" for tag, count in self.isolator.failures.items()
            )
            logger.info(f"Failures since start: {summary}")
        logger.info(f"<<<< {PROGRAM} stopped ({self.stop_signal}) <<<<")
        self.state = LifecycleState.STOPPED
        return self.stop_signal
