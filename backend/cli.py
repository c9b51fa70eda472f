"""
Heatlog Command Tool

JSON interface to the thermostats for scripts written in other languages:

    heatlog-command -h thermostat set_away on
    heatlog-command status

Prints {"<host>": <result>} for every configured host.
"""

import argparse
import json
import sys

from backend.log_config import setup_logging
from core.heatlog.commands import COMMANDS, run_command
from core.heatlog.device import load_device_client
from core.heatlog.exceptions import ConfigurationError, DeviceError, UnknownCommandError
from core.heatlog.settings import resolve_settings

PROGRAM = "heatlog-command"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROGRAM,
        description="Heatmiser-style thermostat commands with JSON output",
        add_help=False,
    )
    parser.add_argument("--help", action="store_true", help="Show this message and exit")
    parser.add_argument("-h", dest="host", help="Thermostat host(s), comma separated")
    parser.add_argument("-p", dest="pin", type=int, help="Thermostat PIN")
    parser.add_argument("--device-client", dest="device_client",
                        help="Device client factory as package.module:factory")
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument("command", nargs="?", help=f"One of: {', '.join(COMMANDS)}")
    parser.add_argument("args", nargs="*", help="Command arguments")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.help or not args.command:
        parser.print_help()
        return 0

    setup_logging(verbose=False)
    try:
        settings = resolve_settings(
            {"host": args.host, "pin": args.pin, "device_client": args.device_client},
            config_path=args.config,
        )
        client_factory = load_device_client(settings.device_client)
    except ConfigurationError as e:
        print(f"{PROGRAM}: {e}", file=sys.stderr)
        return 2

    results = {}
    try:
        for host in settings.host:
            results.update(run_command(client_factory, host, settings.pin, args.command, args.args))
    except UnknownCommandError as e:
        print(f"{PROGRAM}: {e}", file=sys.stderr)
        parser.print_help()
        return 0
    except DeviceError as e:
        print(f"{PROGRAM}: {e}", file=sys.stderr)
        return 1

    print(json.dumps(results, indent=3, sort_keys=True, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
