"""
Heatlog Custom Exceptions

Simple exception hierarchy for error handling.
"""


class HeatlogError(Exception):
    """Base exception for Heatlog."""

    pass


class ConfigurationError(HeatlogError):
    """Configuration is invalid."""

    pass


class DeviceError(HeatlogError):
    """Reading or decoding a thermostat's status failed."""

    pass


class WeatherServiceError(HeatlogError):
    """The weather service could not be queried."""

    pass


class PersistenceError(HeatlogError):
    """A write to or read from the database failed."""

    pass


class FatalStartupError(HeatlogError):
    """The daemon cannot start."""

    pass


class InstanceLockError(FatalStartupError):
    """Another daemon instance holds the lock."""

    pass


class DaemonizeError(FatalStartupError):
    """Detaching from the controlling terminal failed."""

    pass


class UnknownCommandError(HeatlogError):
    """Interactive command not recognised."""

    pass
