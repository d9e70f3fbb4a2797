# ============================================================================
# FILE: gymsched/services/schedule/template_service.py
# Schedule template store - the blueprint active schedules are built from
# ============================================================================
import logging
from typing import Optional, List, Union
from uuid import UUID

from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymsched.core.exceptions import (
    AlreadyExistsError,
    ConflictError,
    NotFoundError,
    ScheduleValidationError,
)
from gymsched.models.active_schedule import ActiveSchedule
from gymsched.models.schedule_template import ScheduleTemplate
from gymsched.schemas.schedule import ScheduleTemplateCreate, ScheduleTemplateUpdate

logger = logging.getLogger(__name__)


def _parse(model_cls, data):
    """Accept an already-validated schema or a raw dict from a non-HTTP caller"""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except ValidationError as e:
        raise ScheduleValidationError(f"Invalid schedule template: {e.errors()[0]['msg']}")


def _dump_days(days) -> list:
    return [day.model_dump() for day in days]


class ScheduleTemplateService:
    """Service layer for schedule templates"""

    @staticmethod
    def create_template(
            db: Session,
            gym_id: str,
            created_by: str,
            data: Union[ScheduleTemplateCreate, dict]
    ) -> ScheduleTemplate:
        """
        Create a new schedule template for a gym.

        Raises:
            ScheduleValidationError: malformed days/timeslots
            AlreadyExistsError: the gym already has a template with this name
        """
        payload = _parse(ScheduleTemplateCreate, data)

        existing = db.query(ScheduleTemplate).filter(
            ScheduleTemplate.gym_id == gym_id,
            ScheduleTemplate.name == payload.name
        ).first()
        if existing:
            raise AlreadyExistsError(f"A schedule template named '{payload.name}' already exists")

        template = ScheduleTemplate(
            gym_id=gym_id,
            name=payload.name,
            description=payload.description,
            coach_ids=list(payload.coach_ids),
            days=_dump_days(payload.days),
            created_by=created_by,
        )

        db.add(template)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AlreadyExistsError(f"A schedule template named '{payload.name}' already exists")
        db.refresh(template)

        logger.info(f"Created schedule template {template.id}: {template.name}")
        return template

    @staticmethod
    def get_template(db: Session, template_id: UUID) -> ScheduleTemplate:
        template = db.query(ScheduleTemplate).filter(ScheduleTemplate.id == template_id).first()
        if not template:
            raise NotFoundError("Schedule template not found")
        return template

    @staticmethod
    def list_templates(
            db: Session,
            gym_id: Optional[str] = None,
            coach_id: Optional[str] = None
    ) -> List[ScheduleTemplate]:
        query = db.query(ScheduleTemplate)
        if gym_id:
            query = query.filter(ScheduleTemplate.gym_id == gym_id)

        templates = query.order_by(ScheduleTemplate.created_at.desc()).all()

        # JSON containment is dialect specific, so coach filtering happens here
        if coach_id:
            templates = [t for t in templates if coach_id in (t.coach_ids or [])]
        return templates

    @staticmethod
    def update_template(
            db: Session,
            template_id: UUID,
            data: Union[ScheduleTemplateUpdate, dict]
    ) -> ScheduleTemplate:
        """
        Partially update a template. Active schedules built from it only pick
        up the change on their next reset.
        """
        payload = _parse(ScheduleTemplateUpdate, data)
        template = ScheduleTemplateService.get_template(db, template_id)

        if payload.name is not None and payload.name != template.name:
            clash = db.query(ScheduleTemplate).filter(
                ScheduleTemplate.gym_id == template.gym_id,
                ScheduleTemplate.name == payload.name,
                ScheduleTemplate.id != template.id
            ).first()
            if clash:
                raise AlreadyExistsError(f"A schedule template named '{payload.name}' already exists")
            template.name = payload.name

        if "description" in payload.model_fields_set:
            template.description = payload.description
        if payload.coach_ids is not None:
            template.coach_ids = list(payload.coach_ids)
        if payload.days is not None:
            # Reassign (never mutate in place) so the JSON change is detected
            template.days = _dump_days(payload.days)

        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise AlreadyExistsError(f"A schedule template named '{payload.name}' already exists")
        db.refresh(template)

        logger.info(f"Updated schedule template {template.id}")
        return template

    @staticmethod
    def delete_template(db: Session, template_id: UUID) -> None:
        template = ScheduleTemplateService.get_template(db, template_id)

        in_use = db.query(ActiveSchedule.id).filter(
            ActiveSchedule.template_id == template.id
        ).first()
        if in_use:
            raise ConflictError("Delete the active schedule built from this template first")

        db.delete(template)
        db.commit()
        logger.info(f"Deleted schedule template {template_id}")
