# gymsched/api/v1/gym/active_schedules.py
"""
Active schedule management endpoints.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional, List
from uuid import UUID
import logging

from gymsched.api.dependencies import (
    CurrentUser,
    UserType,
    ensure_same_gym,
    get_db,
    require_gym_member,
    require_manager,
)
from gymsched.schemas.schedule import (
    ActiveScheduleResponse,
    AssignStaffRequest,
    CreateActiveScheduleRequest,
    ResetSummaryResponse,
)
from gymsched.services.schedule.active_schedule_service import ActiveScheduleService
from gymsched.services.schedule.availability import project_schedule, project_schedules
from gymsched.services.schedule.template_service import ScheduleTemplateService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/active", tags=["Active Schedules"])


def _load_in_gym(db: Session, schedule_id: UUID, current_user: CurrentUser):
    schedule = ActiveScheduleService.get_schedule(db, schedule_id)
    ensure_same_gym(current_user, schedule.gym_id)
    return schedule


@router.post("", response_model=ActiveScheduleResponse, status_code=status.HTTP_201_CREATED)
def create_active_schedule(
        payload: CreateActiveScheduleRequest,
        current_user: CurrentUser = Depends(require_manager),
        db: Session = Depends(get_db)
):
    """Instantiate the bookable schedule for a template"""
    template = ScheduleTemplateService.get_template(db, payload.template_id)
    ensure_same_gym(current_user, template.gym_id)

    schedule = ActiveScheduleService.create_from_template(db, payload.template_id)
    return project_schedule(schedule.to_dict(), current_user.id)


@router.get("", response_model=List[ActiveScheduleResponse])
def list_active_schedules(
        gym_id: Optional[str] = Query(None, alias="gymId"),
        coach_id: Optional[str] = Query(None, alias="coachId"),
        current_user: CurrentUser = Depends(require_gym_member),
        db: Session = Depends(get_db)
):
    if not current_user.is_admin:
        gym_id = current_user.gym_id
    if current_user.user_type == UserType.COACH:
        coach_id = current_user.id

    schedules = ActiveScheduleService.list_schedules(db, gym_id=gym_id, coach_id=coach_id)
    return project_schedules([s.to_dict() for s in schedules], current_user.id)


@router.post("/reset-all", response_model=ResetSummaryResponse)
def reset_all_active_schedules(
        gym_id: Optional[str] = Query(None, alias="gymId"),
        current_user: CurrentUser = Depends(require_manager),
        db: Session = Depends(get_db)
):
    """
    Reset every active schedule of a gym. Admins may omit gymId to reset
    all gyms at once (normally done by the weekly beat task).
    """
    if not current_user.is_admin:
        gym_id = current_user.gym_id

    if gym_id:
        summary = ActiveScheduleService.reset_by_gym(db, gym_id)
    else:
        summary = ActiveScheduleService.reset_all(db)

    logger.info(summary.message)
    return summary.to_dict()


@router.get("/{schedule_id}", response_model=ActiveScheduleResponse)
def get_active_schedule(
        schedule_id: UUID,
        current_user: CurrentUser = Depends(require_gym_member),
        db: Session = Depends(get_db)
):
    schedule = _load_in_gym(db, schedule_id, current_user)
    return project_schedule(schedule.to_dict(), current_user.id)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_active_schedule(
        schedule_id: UUID,
        current_user: CurrentUser = Depends(require_manager),
        db: Session = Depends(get_db)
):
    _load_in_gym(db, schedule_id, current_user)
    ActiveScheduleService.delete_schedule(db, schedule_id)


@router.post("/{schedule_id}/reset", response_model=ActiveScheduleResponse)
def reset_active_schedule(
        schedule_id: UUID,
        current_user: CurrentUser = Depends(require_manager),
        db: Session = Depends(get_db)
):
    """Re-apply the template; surviving timeslots keep their bookings"""
    _load_in_gym(db, schedule_id, current_user)
    schedule = ActiveScheduleService.reset(db, schedule_id)
    return project_schedule(schedule.to_dict(), current_user.id)


@router.post("/{schedule_id}/assign", response_model=ActiveScheduleResponse)
def assign_staff(
        schedule_id: UUID,
        payload: AssignStaffRequest,
        current_user: CurrentUser = Depends(require_manager),
        db: Session = Depends(get_db)
):
    _load_in_gym(db, schedule_id, current_user)
    schedule = ActiveScheduleService.assign_staff(db, schedule_id, payload.coach_id)
    return project_schedule(schedule.to_dict(), current_user.id)


@router.delete("/{schedule_id}/unassign/{coach_id}", response_model=ActiveScheduleResponse)
def unassign_staff(
        schedule_id: UUID,
        coach_id: str,
        current_user: CurrentUser = Depends(require_manager),
        db: Session = Depends(get_db)
):
    _load_in_gym(db, schedule_id, current_user)
    schedule = ActiveScheduleService.unassign_staff(db, schedule_id, coach_id)
    return project_schedule(schedule.to_dict(), current_user.id)
