# gymsched/api/v1/gym/schedule_templates.py
"""
Schedule template endpoints.
Authoring UI lives elsewhere; these are the minimal CRUD hooks that feed the
active schedule engine.
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
    require_manager,
    require_staff,
    scoped_gym_id,
)
from gymsched.core.exceptions import AccessDeniedError, ScheduleValidationError
from gymsched.schemas.schedule import (
    ScheduleTemplateCreate,
    ScheduleTemplateResponse,
    ScheduleTemplateUpdate,
)
from gymsched.services.schedule.template_service import ScheduleTemplateService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/templates", tags=["Schedule Templates"])


@router.get("", response_model=List[ScheduleTemplateResponse])
def list_templates(
        gym_id: Optional[str] = Query(None, alias="gymId"),
        coach_id: Optional[str] = Query(None, alias="coachId"),
        current_user: CurrentUser = Depends(require_staff),
        db: Session = Depends(get_db)
):
    """List templates; coaches only see the ones they staff"""
    if current_user.user_type == UserType.COACH:
        coach_id = current_user.id

    templates = ScheduleTemplateService.list_templates(
        db,
        gym_id=scoped_gym_id(current_user, gym_id),
        coach_id=coach_id,
    )
    return [t.to_dict() for t in templates]


@router.get("/{template_id}", response_model=ScheduleTemplateResponse)
def get_template(
        template_id: UUID,
        current_user: CurrentUser = Depends(require_staff),
        db: Session = Depends(get_db)
):
    template = ScheduleTemplateService.get_template(db, template_id)
    ensure_same_gym(current_user, template.gym_id)
    if current_user.user_type == UserType.COACH and current_user.id not in (template.coach_ids or []):
        raise AccessDeniedError("Access denied. You can only view schedules you are assigned to.")
    return template.to_dict()


@router.post("", response_model=ScheduleTemplateResponse, status_code=status.HTTP_201_CREATED)
def create_template(
        payload: ScheduleTemplateCreate,
        gym_id: Optional[str] = Query(None, alias="gymId"),
        current_user: CurrentUser = Depends(require_manager),
        db: Session = Depends(get_db)
):
    """Create a template for the caller's gym (admins pass gymId explicitly)"""
    target_gym_id = gym_id if current_user.is_admin else current_user.gym_id
    if not target_gym_id:
        raise ScheduleValidationError("gymId is required")

    template = ScheduleTemplateService.create_template(
        db,
        gym_id=target_gym_id,
        created_by=current_user.id,
        data=payload,
    )
    return template.to_dict()


@router.put("/{template_id}", response_model=ScheduleTemplateResponse)
def update_template(
        template_id: UUID,
        payload: ScheduleTemplateUpdate,
        current_user: CurrentUser = Depends(require_manager),
        db: Session = Depends(get_db)
):
    template = ScheduleTemplateService.get_template(db, template_id)
    ensure_same_gym(current_user, template.gym_id)

    template = ScheduleTemplateService.update_template(db, template_id, payload)
    return template.to_dict()


@router.delete("/{template_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_template(
        template_id: UUID,
        current_user: CurrentUser = Depends(require_manager),
        db: Session = Depends(get_db)
):
    template = ScheduleTemplateService.get_template(db, template_id)
    ensure_same_gym(current_user, template.gym_id)

    ScheduleTemplateService.delete_template(db, template_id)
