# gymsched/api/v1/gym/client_schedules.py
"""
Member-facing schedule endpoints: browse, book and release timeslots.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional, List
from uuid import UUID
import logging

from gymsched.api.dependencies import (
    CurrentUser,
    ensure_same_gym,
    get_db,
    require_gym_member,
    scoped_gym_id,
)
from gymsched.schemas.schedule import ActiveScheduleResponse, MyScheduleEntry
from gymsched.services.schedule.active_schedule_service import ActiveScheduleService
from gymsched.services.schedule.availability import my_schedule, project_schedule, project_schedules
from gymsched.services.schedule.booking_service import CapacityBookingEngine, raise_for_outcome

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Client Schedules"])


@router.get("/available", response_model=List[ActiveScheduleResponse])
def get_available_schedules(
        gym_id: Optional[str] = Query(None, alias="gymId"),
        current_user: CurrentUser = Depends(require_gym_member),
        db: Session = Depends(get_db)
):
    """Every active schedule of the caller's gym, with live availability"""
    schedules = ActiveScheduleService.list_schedules(db, gym_id=scoped_gym_id(current_user, gym_id))
    return project_schedules([s.to_dict() for s in schedules], current_user.id)


@router.get("/my-schedule", response_model=List[MyScheduleEntry])
def get_my_schedule(
        current_user: CurrentUser = Depends(require_gym_member),
        db: Session = Depends(get_db)
):
    """Only the timeslots the caller currently holds"""
    schedules = ActiveScheduleService.list_schedules(db, gym_id=scoped_gym_id(current_user, None))
    return my_schedule([s.to_dict() for s in schedules], current_user.id)


@router.post(
    "/active/{schedule_id}/timeslots/{timeslot_id}/join",
    response_model=ActiveScheduleResponse
)
def join_timeslot(
        schedule_id: UUID,
        timeslot_id: UUID,
        current_user: CurrentUser = Depends(require_gym_member),
        db: Session = Depends(get_db)
):
    """
    Book a spot. 409 FULL when no spot is left, 409 ALREADY_JOINED when the
    caller already holds one. Returns the refreshed schedule.
    """
    schedule = ActiveScheduleService.get_schedule(db, schedule_id)
    ensure_same_gym(current_user, schedule.gym_id)

    outcome = CapacityBookingEngine.join(db, schedule_id, timeslot_id, current_user.id)
    raise_for_outcome(outcome)

    schedule = ActiveScheduleService.get_schedule(db, schedule_id)
    return project_schedule(schedule.to_dict(), current_user.id)


@router.delete(
    "/active/{schedule_id}/timeslots/{timeslot_id}/leave",
    response_model=ActiveScheduleResponse
)
def leave_timeslot(
        schedule_id: UUID,
        timeslot_id: UUID,
        current_user: CurrentUser = Depends(require_gym_member),
        db: Session = Depends(get_db)
):
    """Release the caller's spot. 400 NOT_JOINED when they hold none."""
    schedule = ActiveScheduleService.get_schedule(db, schedule_id)
    ensure_same_gym(current_user, schedule.gym_id)

    outcome = CapacityBookingEngine.leave(db, schedule_id, timeslot_id, current_user.id)
    raise_for_outcome(outcome)

    schedule = ActiveScheduleService.get_schedule(db, schedule_id)
    return project_schedule(schedule.to_dict(), current_user.id)
