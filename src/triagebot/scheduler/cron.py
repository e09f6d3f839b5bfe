from __future__ import annotations

from datetime import timedelta
from enum import Enum

DAY_IN_SECONDS = 86400
HOUR_IN_SECONDS = 3600
MINUTE_IN_SECONDS = 60


class CronUnit(str, Enum):
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"


_UNIT_SECONDS = {
    CronUnit.DAY: DAY_IN_SECONDS,
    CronUnit.HOUR: HOUR_IN_SECONDS,
    CronUnit.MINUTE: MINUTE_IN_SECONDS,
    CronUnit.SECOND: 1,
}


def duration(period: int, unit: CronUnit) -> timedelta:
    """Elapsed time between two runs of a cron job.

    No clamping: a negative period yields a negative duration.
    """
    return timedelta(seconds=int(period) * _UNIT_SECONDS[CronUnit(unit)])
