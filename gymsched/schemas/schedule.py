"""
Pydantic schemas for schedule templates and active schedules.

Python attributes are snake_case; JSON on the wire is camelCase
(``startTime``, ``availableSpots``, ``isUserAssigned``...).
"""
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime
from uuid import UUID

TIME_PATTERN = r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _dedupe(values: List[str]) -> List[str]:
    seen = []
    for value in values:
        if value not in seen:
            seen.append(value)
    return seen


# ============================================================================
# Template structure (request side)
# ============================================================================

class TimeSlotSchema(CamelModel):
    """A bookable interval inside a template day"""
    start_time: str = Field(..., pattern=TIME_PATTERN)
    end_time: str = Field(..., pattern=TIME_PATTERN)
    capacity: int = Field(..., ge=1)

    @model_validator(mode="after")
    def check_time_order(self):
        # Zero-padded HH:MM compares correctly as a string
        if self.start_time >= self.end_time:
            raise ValueError("startTime must be before endTime")
        return self


class ScheduleDaySchema(CamelModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday, 6=Saturday")
    time_slots: List[TimeSlotSchema] = Field(default_factory=list)

    @field_validator("time_slots")
    @classmethod
    def unique_start_times(cls, v):
        starts = [slot.start_time for slot in v]
        if len(starts) != len(set(starts)):
            raise ValueError("Timeslots within a day must have distinct start times")
        return v


def _check_unique_days(days: Optional[List[ScheduleDaySchema]]):
    if days is None:
        return days
    dows = [day.day_of_week for day in days]
    if len(dows) != len(set(dows)):
        raise ValueError("Each dayOfWeek may appear only once")
    return days


class ScheduleTemplateCreate(CamelModel):
    """Request model for creating a schedule template"""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    coach_ids: List[str] = Field(..., min_length=1)
    days: List[ScheduleDaySchema] = Field(..., min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("coach_ids")
    @classmethod
    def dedupe_coaches(cls, v):
        return _dedupe(v)

    @field_validator("days")
    @classmethod
    def unique_days(cls, v):
        return _check_unique_days(v)


class ScheduleTemplateUpdate(CamelModel):
    """Request model for updating a template. Only send what you want to change."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    coach_ids: Optional[List[str]] = Field(None, min_length=1)
    days: Optional[List[ScheduleDaySchema]] = Field(None, min_length=1)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("coach_ids")
    @classmethod
    def dedupe_coaches(cls, v):
        return _dedupe(v) if v is not None else v

    @field_validator("days")
    @classmethod
    def unique_days(cls, v):
        return _check_unique_days(v)


class ScheduleTemplateResponse(CamelModel):
    id: str
    gym_id: str
    name: str
    description: Optional[str] = None
    coach_ids: List[str]
    days: List[ScheduleDaySchema]
    created_by: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


# ============================================================================
# Active schedules (response side, projected)
# ============================================================================

class TimeSlotWithAvailability(CamelModel):
    id: str
    start_time: str
    end_time: str
    capacity: int
    assigned_clients: List[str]
    available_spots: int
    is_user_assigned: bool


class ScheduleDayWithAvailability(CamelModel):
    day_of_week: int
    time_slots: List[TimeSlotWithAvailability]


class ActiveScheduleResponse(CamelModel):
    id: str
    gym_id: str
    template_id: str
    template_name: Optional[str] = None
    coach_ids: List[str]
    days: List[ScheduleDayWithAvailability]
    last_reset_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CreateActiveScheduleRequest(CamelModel):
    template_id: UUID


class AssignStaffRequest(CamelModel):
    coach_id: str = Field(..., min_length=1)


class ResetSummaryResponse(CamelModel):
    success: bool
    reset_count: int
    failed_count: int
    errors: List[str]
    message: str


class MyTimeSlot(CamelModel):
    id: str
    start_time: str
    end_time: str
    capacity: int
    available_spots: int


class MyScheduleDay(CamelModel):
    day_of_week: int
    time_slots: List[MyTimeSlot]


class MyScheduleEntry(CamelModel):
    schedule_id: str
    schedule_name: Optional[str] = None
    gym_id: str
    days: List[MyScheduleDay]
