"""
Poll Scheduling

Wake-ups are aligned to multiples of the poll interval measured from
midnight on the thermostat's clock, so read latency and drift do not
accumulate from one cycle to the next.
"""

import re
from typing import Optional

SECONDS_PER_DAY = 24 * 60 * 60

_TIME_OF_DAY = re.compile(r"(\d\d):(\d\d):(\d\d)$")


def compute_sleep(interval: int, last_time: Optional[str]) -> int:
    """Seconds to sleep before the next cycle.

    Args:
        interval: Poll interval in seconds
        last_time: Thermostat clock reading ending in HH:MM:SS, if any

    Returns:
        Sleep duration; between half and one and a half intervals when
        aligned, otherwise the interval itself
    """
    if SECONDS_PER_DAY % interval != 0 or last_time is None:
        return interval

    match = _TIME_OF_DAY.search(last_time)
    if not match:
        return interval

    hours, minutes, seconds = (int(part) for part in match.groups())
    correction = ((hours * 60 + minutes) * 60 + seconds) % interval

    # Head for the nearer grid line, even if it is beyond the next one
    if interval / 2 < correction:
        correction -= interval

    return interval - correction
