# gymsched/models/__init__.py
from .base import Base
from .schedule_template import ScheduleTemplate
from .active_schedule import (
    ActiveSchedule,
    ActiveScheduleDay,
    ActiveTimeSlot,
    TimeslotAssignment,
)

__all__ = [
    "Base",
    "ScheduleTemplate",
    "ActiveSchedule",
    "ActiveScheduleDay",
    "ActiveTimeSlot",
    "TimeslotAssignment",
]
