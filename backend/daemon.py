"""
Heatlog Daemon

Logs temperature, heating and hot water activity from a fleet of
thermostats, plus the external temperature, to InfluxDB.

Whoever runs this must be able to create the PID file
(/var/run/heatlog.pid by default).
"""

import argparse
import asyncio
import sys

from loguru import logger

from backend.log_config import setup_logging
from core.heatlog.device import load_device_client
from core.heatlog.exceptions import ConfigurationError, FatalStartupError, HeatlogError
from core.heatlog.influxdb_helper import InfluxStore
from core.heatlog.lifecycle import acquire_instance_lock, daemonize, write_pid
from core.heatlog.polling_service import PROGRAM, PollingService
from core.heatlog.settings import DaemonSettings, resolve_settings
from core.heatlog.weather import WeatherThrottle, create_weather_client, latest_stored_timestamp

VERSION = "Heatlog Thermostat Daemon v1"


def build_parser() -> argparse.ArgumentParser:
    # -h is the thermostat host, so help is only available as --help
    parser = argparse.ArgumentParser(prog=PROGRAM, description=VERSION, add_help=False)
    parser.add_argument("--help", action="store_true", help="Show this message and exit")
    parser.add_argument("--version", action="version", version=VERSION)
    parser.add_argument("-v", dest="verbose", action="store_true", default=None,
                        help="Verbose logging")
    parser.add_argument("-h", dest="host", help="Thermostat host(s), comma separated")
    parser.add_argument("-p", dest="pin", type=int, help="Thermostat PIN")
    parser.add_argument("-i", dest="logseconds", type=int, help="Seconds between status reads")
    parser.add_argument("-r", dest="wlograte", type=int,
                        help="Read the weather every N status reads")
    parser.add_argument("-w", dest="wservice", help="Weather service name")
    parser.add_argument("-k", dest="wkey", help="Weather service API key")
    parser.add_argument("-g", dest="wlocation", help="Weather location")
    parser.add_argument("-f", dest="wunits", help="Weather units (C or F)")
    parser.add_argument("-s", dest="dbsource", help="InfluxDB URL")
    parser.add_argument("-d", dest="dbname", help="InfluxDB database")
    parser.add_argument("-u", dest="dbuser", help="InfluxDB user")
    parser.add_argument("-a", dest="dbpassword", help="InfluxDB password")
    parser.add_argument("-l", dest="logfile", help="Log file")
    parser.add_argument("--pidfile", help="PID/lock file")
    parser.add_argument("--device-client", dest="device_client",
                        help="Device client factory as package.module:factory")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("--foreground", action="store_true",
                        help="Do not detach (for systemd and similar supervisors)")
    return parser


def build_service(settings: DaemonSettings) -> PollingService:
    """Wire the polling loop to the device client, database and weather service."""
    client_factory = load_device_client(settings.device_client)
    store = InfluxStore(
        settings.dbsource,
        settings.dbname,
        username=settings.dbuser,
        password=settings.dbpassword,
    )

    weather = None
    if settings.wservice:
        client = create_weather_client(
            settings.wservice, settings.wkey or "", settings.wlocation, settings.wunits
        )
        weather = WeatherThrottle(
            client, store, settings.wlograte, last_timestamp=latest_stored_timestamp(store)
        )

    return PollingService(
        list(settings.host),
        settings.pin,
        client_factory,
        store,
        interval_seconds=settings.logseconds,
        weather=weather,
        verbose=settings.verbose,
    )


def run_daemon(settings: DaemonSettings, foreground: bool = False, service_factory=build_service) -> int:
    """Take the lock, detach, then poll until a termination signal.

    Returns:
        Process exit code
    """
    try:
        lock = acquire_instance_lock(settings.pidfile)
    except FatalStartupError as e:
        print(f"{PROGRAM}: {e}", file=sys.stderr)
        return 1

    try:
        if not foreground:
            daemonize(settings.logfile)
            write_pid(lock)

        setup_logging(settings.verbose)
        logger.debug(f"Settings: {settings.as_dict()}")

        try:
            service = service_factory(settings)
        except HeatlogError as e:
            logger.error(f"Startup failed: {e}")
            return 2

        asyncio.run(service.run())
        return 0
    except FatalStartupError as e:
        print(f"{PROGRAM}: {e}", file=sys.stderr)
        return 1
    finally:
        lock.close()


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.help:
        parser.print_help()
        return 0

    overrides = {
        key: value
        for key, value in vars(args).items()
        if key not in ("help", "config", "foreground")
    }
    try:
        settings = resolve_settings(overrides, config_path=args.config)
    except ConfigurationError as e:
        print(f"{PROGRAM}: {e}", file=sys.stderr)
        return 2

    return run_daemon(settings, foreground=args.foreground)


if __name__ == "__main__":
    sys.exit(main())
