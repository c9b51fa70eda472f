"""
Fault Isolation

Failures are contained to the thermostat or weather read that caused them:
they are logged with the thermostat's name and the daemon carries on.
"""

import logging
from collections import defaultdict
from contextlib import contextmanager
from typing import Any, Iterator, Optional

logger = logging.getLogger(__name__)


def tagged(message: str, tag: Optional[str] = None) -> str:
    """Prefix a log message with the thermostat it concerns."""
    message = str(message).rstrip()
    return f"[{tag}] {message}" if tag else message


class FaultIsolator:
    """Failure boundary around each per-thermostat and weather step."""

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self.failures: dict[Optional[str], int] = defaultdict(int)

    def _failed(self, tag: Optional[str], message: str, exc_info: bool = False) -> None:
        self.failures[tag] += 1
        logger.error(tagged(message, tag), exc_info=exc_info)

    @contextmanager
    def boundary(self, tag: Optional[str] = None) -> Iterator[None]:
        """Run a block, logging and discarding any exception it raises."""
        try:
            yield
        except Exception as e:
            self._failed(tag, f"{type(e).__name__}: {e}", exc_info=self.verbose)

    def check(self, tag: Optional[str], result: dict) -> Any:
        """Unwrap a status dict from a device or service call.

        Returns:
            The result's data on success, None after logging an error
        """
        if result.get("status") == "success":
            return result.get("data")
        self._failed(tag, result.get("message", "Unknown error"))
        return None
