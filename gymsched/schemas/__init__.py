from .schedule import (
    TIME_PATTERN,
    TimeSlotSchema,
    ScheduleDaySchema,
    ScheduleTemplateCreate,
    ScheduleTemplateUpdate,
    ScheduleTemplateResponse,
    TimeSlotWithAvailability,
    ScheduleDayWithAvailability,
    ActiveScheduleResponse,
    CreateActiveScheduleRequest,
    AssignStaffRequest,
    ResetSummaryResponse,
    MyScheduleEntry,
)

__all__ = [
    "TIME_PATTERN",
    "TimeSlotSchema",
    "ScheduleDaySchema",
    "ScheduleTemplateCreate",
    "ScheduleTemplateUpdate",
    "ScheduleTemplateResponse",
    "TimeSlotWithAvailability",
    "ScheduleDayWithAvailability",
    "ActiveScheduleResponse",
    "CreateActiveScheduleRequest",
    "AssignStaffRequest",
    "ResetSummaryResponse",
    "MyScheduleEntry",
]
