"""
Daemon Lifecycle

STARTING: take the single-instance lock, detach, redirect output to the log.
RUNNING: poll until a termination signal is caught.
STOPPING: finish the cycle in progress and log the reason.
STOPPED: process exits.
"""

import asyncio
import fcntl
import logging
import os
import signal
import sys
from enum import Enum
from typing import Callable, TextIO

from .exceptions import DaemonizeError, InstanceLockError

logger = logging.getLogger(__name__)

TERMINATION_SIGNALS = (signal.SIGHUP, signal.SIGINT, signal.SIGQUIT, signal.SIGTERM)


class LifecycleState(Enum):
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"


def acquire_instance_lock(pidfile: str) -> TextIO:
    """Lock the PID file so only one daemon runs at a time.

    The returned file must stay open for the life of the process; the lock
    is inherited across daemonization.

    Raises:
        InstanceLockError: If another process holds the lock or the file
            cannot be opened
    """
    try:
        handle = open(pidfile, "a+")
    except OSError as e:
        raise InstanceLockError(f"Cannot open PID file {pidfile}: {e}") from e

    try:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        handle.close()
        raise InstanceLockError("Daemon already running")

    write_pid(handle)
    return handle


def write_pid(handle: TextIO) -> None:
    """Record the current process ID in the locked PID file."""
    handle.seek(0)
    handle.truncate()
    handle.write(f"{os.getpid()}\n")
    handle.flush()


def daemonize(logfile: str) -> None:
    """Detach from the terminal and send stdout/stderr to the log file.

    Uses the classic double fork; the original process exits here.

    Raises:
        DaemonizeError: If forking or redirecting output fails
    """
    try:
        if os.fork() > 0:
            os._exit(0)
        os.setsid()
        if os.fork() > 0:
            os._exit(0)

        os.chdir("/")
        os.umask(0o022)

        sys.stdout.flush()
        sys.stderr.flush()
        with open(os.devnull, "rb", 0) as devnull:
            os.dup2(devnull.fileno(), sys.stdin.fileno())
        with open(logfile, "ab", 0) as log:
            os.dup2(log.fileno(), sys.stdout.fileno())
            os.dup2(log.fileno(), sys.stderr.fileno())
    except OSError as e:
        raise DaemonizeError(f"Failed to daemonize: {e}") from e


def install_signal_handlers(
    loop: asyncio.AbstractEventLoop, on_signal: Callable[[str], None]
) -> None:
    """Call on_signal(name) when a termination signal arrives."""
    for sig in TERMINATION_SIGNALS:
        loop.add_signal_handler(sig, on_signal, sig.name)
