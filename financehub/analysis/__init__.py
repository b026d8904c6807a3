"""Analytics, publishing schedule and system statistics."""

from .stats import (
    Analytics,
    ScheduleEntry,
    archive_stats,
    calculate_analytics,
    content_stats,
    publishing_schedule,
    system_stats,
)

__all__ = [
    "Analytics",
    "ScheduleEntry",
    "archive_stats",
    "calculate_analytics",
    "content_stats",
    "publishing_schedule",
    "system_stats",
]
