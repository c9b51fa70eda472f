"""
Heatlog Configuration Settings

Settings are resolved once at startup, lowest precedence first:
built-in defaults, the YAML config file, HEATLOG_* environment variables
(a .env file is loaded too) and finally explicit command-line flags. The result is immutable.
"""

import logging
import os
import re
from dataclasses import dataclass, fields
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = "/etc/heatlog/config.yaml"
ENV_PREFIX = "HEATLOG_"


def _camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    s1 = re.sub("(.)([A-Z][a-z]+)", r"\1_\2", name)
    return re.sub("([a-z0-9])([A-Z])", r"\1_\2", s1).lower()


@dataclass(frozen=True)
class DaemonSettings:
    """Configuration shared read-only by every component."""

    host: tuple[str, ...] = ("heatmiser",)
    pin: int = 0
    logseconds: int = 60  # Poll interval
    wlograte: int = 60  # Read the weather every N cycles
    wservice: Optional[str] = None  # Weather service name; None disables weather logging
    wkey: Optional[str] = None
    wlocation: Optional[str] = None
    wunits: str = "C"
    dbsource: str = "http://localhost:8086"
    dbname: str = "heatmiser"
    dbuser: Optional[str] = None
    dbpassword: Optional[str] = None
    logfile: str = "/var/log/heatlog.log"
    pidfile: str = "/var/run/heatlog.pid"
    verbose: bool = False
    device_client: Optional[str] = None  # "package.module:factory"

    @classmethod
    def from_dict(cls, data: dict) -> "DaemonSettings":
        """Create from dictionary, converting and validating values."""
        converted = {_camel_to_snake(k): v for k, v in data.items()}
        known = {f.name: f for f in fields(cls)}

        unknown = sorted(set(converted) - set(known))
        if unknown:
            logger.warning(f"Ignoring unknown configuration keys: {', '.join(unknown)}")

        values = {k: _coerce(k, v) for k, v in converted.items() if k in known}
        settings = cls(**values)
        settings.validate()
        return settings

    def validate(self) -> None:
        if not self.host:
            raise ConfigurationError("At least one thermostat host is required")
        if self.logseconds < 1:
            raise ConfigurationError("logseconds must be at least 1")
        if self.wlograte < 1:
            raise ConfigurationError("wlograte must be at least 1")
        if self.wunits not in ("C", "F"):
            raise ConfigurationError(f"wunits must be C or F, got {self.wunits!r}")
        if self.wservice and not self.wlocation:
            raise ConfigurationError("wlocation is required when wservice is set")

    def as_dict(self) -> dict[str, Any]:
        """Read-only key/value view with secrets masked."""
        secrets = {"pin", "wkey", "dbpassword"}
        return {
            f.name: ("***" if f.name in secrets and getattr(self, f.name) else getattr(self, f.name))
            for f in fields(self)
        }


def _coerce(key: str, value: Any) -> Any:
    """Convert strings from files, environment and flags to the field's type."""
    try:
        if key == "host":
            if isinstance(value, str):
                value = value.split(",")
            return tuple(h.strip() for h in value if str(h).strip())
        if key in ("pin", "logseconds", "wlograte"):
            return int(value)
        if key == "verbose":
            if isinstance(value, str):
                return value.strip().lower() in ("1", "true", "yes", "on")
            return bool(value)
        if key == "wunits" and value is not None:
            return str(value).upper()
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {key}: {value!r}") from e
    return value


def _load_yaml_options(path: str, required: bool = False) -> dict:
    """Options from the YAML config file; `options:` may wrap them."""
    if not os.path.exists(path):
        if required:
            raise ConfigurationError(f"Config file not found: {path}")
        return {}
    try:
        with open(path) as f:
            config = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e

    if not isinstance(config, dict):
        raise ConfigurationError(f"{path} must contain a mapping")
    options = config.get("options", config)
    logger.debug(f"Loaded configuration from {path}")
    return dict(options or {})


def _load_environment(environ: dict) -> dict:
    names = {f.name for f in fields(DaemonSettings)}
    return {
        key[len(ENV_PREFIX):].lower(): value
        for key, value in environ.items()
        if key.startswith(ENV_PREFIX) and key[len(ENV_PREFIX):].lower() in names
    }


def resolve_settings(
    overrides: Optional[dict] = None,
    config_path: Optional[str] = None,
    environ: Optional[dict] = None,
) -> DaemonSettings:
    """Merge every configuration source into one DaemonSettings.

    Args:
        overrides: Explicit command-line values; None values are ignored
        config_path: YAML file (default /etc/heatlog/config.yaml)
        environ: Environment mapping (default os.environ after loading .env)
    """
    if environ is None:
        load_dotenv()
        environ = dict(os.environ)

    merged: dict[str, Any] = {}
    merged.update(
        _load_yaml_options(config_path or DEFAULT_CONFIG_PATH, required=bool(config_path))
    )
    merged.update(_load_environment(environ))
    merged.update({k: v for k, v in (overrides or {}).items() if v is not None})

    return DaemonSettings.from_dict(merged)
