"""External data sources."""

from .base import ActivityDataSource, ScheduleDataSource
from .intervals import IntervalsClient, parse_tss_target

__all__ = [
    "ActivityDataSource",
    "ScheduleDataSource",
    "IntervalsClient",
    "parse_tss_target",
]
