# ============================================================================
# FILE: gymsched/services/schedule/active_schedule_service.py
# Active schedules: creation from a template, reset, staff roster
# ============================================================================
"""
Service for the live, bookable copies of schedule templates.

Reset reconciles the instance with its template in place rather than
replacing the day list wholesale. A carried-over timeslot keeps its row, its
id and its assignment rows, so a join that commits while a reset is running
is never overwritten by a stale copy. The instance row and its timeslot rows
are locked for the duration of the reset transaction, which serialises it
with the booking engine's conditional UPDATE on the same rows.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, List
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymsched.core.exceptions import AlreadyExistsError, ConflictError, NotFoundError
from gymsched.models.active_schedule import (
    ActiveSchedule,
    ActiveScheduleDay,
    ActiveTimeSlot,
)
from gymsched.models.schedule_template import ScheduleTemplate

logger = logging.getLogger(__name__)


@dataclass
class ResetSummary:
    success: bool
    reset_count: int
    failed_count: int
    errors: List[str] = field(default_factory=list)
    message: str = ""

    def to_dict(self):
        return {
            "success": self.success,
            "reset_count": self.reset_count,
            "failed_count": self.failed_count,
            "errors": list(self.errors),
            "message": self.message,
        }


def _new_timeslot(position: int, template_slot: dict) -> ActiveTimeSlot:
    return ActiveTimeSlot(
        position=position,
        start_time=template_slot["start_time"],
        end_time=template_slot["end_time"],
        capacity=template_slot["capacity"],
        assigned_count=0,
    )


def _trim_to_capacity(slot: ActiveTimeSlot, capacity: int) -> int:
    """Drop the latest joiners until the slot fits; returns how many were dropped"""
    assignments = list(slot.assignments)
    if len(assignments) <= capacity:
        return 0
    slot.assignments = assignments[:capacity]
    slot.assigned_count = capacity
    return len(assignments) - capacity


class ActiveScheduleService:
    """Handles active schedule creation, reset and staff assignment"""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    def get_schedule(db: Session, schedule_id: UUID) -> ActiveSchedule:
        schedule = db.query(ActiveSchedule).filter(ActiveSchedule.id == schedule_id).first()
        if not schedule:
            raise NotFoundError("Active schedule not found")
        return schedule

    @staticmethod
    def list_schedules(
            db: Session,
            gym_id: Optional[str] = None,
            coach_id: Optional[str] = None
    ) -> List[ActiveSchedule]:
        query = db.query(ActiveSchedule)
        if gym_id:
            query = query.filter(ActiveSchedule.gym_id == gym_id)

        schedules = query.order_by(ActiveSchedule.created_at.desc()).all()

        if coach_id:
            schedules = [s for s in schedules if coach_id in (s.coach_ids or [])]
        return schedules

    # ------------------------------------------------------------------
    # Instantiation
    # ------------------------------------------------------------------

    @staticmethod
    def create_from_template(db: Session, template_id: UUID) -> ActiveSchedule:
        """
        Create the active schedule for a template.

        Copies the template's day/timeslot structure with empty bookings and
        its current coach roster. The template itself is not modified.

        Raises:
            AlreadyExistsError: an active schedule already references the template
            NotFoundError: the template does not exist
        """
        existing = db.query(ActiveSchedule.id).filter(
            ActiveSchedule.template_id == template_id
        ).first()
        if existing:
            raise AlreadyExistsError("An active schedule already exists for this template")

        template = db.query(ScheduleTemplate).filter(ScheduleTemplate.id == template_id).first()
        if not template:
            raise NotFoundError("Schedule template not found")

        schedule = ActiveSchedule(
            gym_id=template.gym_id,
            template_id=template.id,
            coach_ids=list(template.coach_ids or []),
            last_reset_at=datetime.now(timezone.utc),
        )
        for day_position, template_day in enumerate(template.days or []):
            day = ActiveScheduleDay(
                day_of_week=template_day["day_of_week"],
                position=day_position,
            )
            day.time_slots = [
                _new_timeslot(slot_position, template_slot)
                for slot_position, template_slot in enumerate(template_day.get("time_slots", []))
            ]
            schedule.days.append(day)

        db.add(schedule)
        try:
            db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create for the same template
            db.rollback()
            raise AlreadyExistsError("An active schedule already exists for this template")
        db.refresh(schedule)

        logger.info(f"Created active schedule {schedule.id} from template {template.id}")
        return schedule

    # ------------------------------------------------------------------
    # Reset
    # ------------------------------------------------------------------

    @staticmethod
    def reset(db: Session, schedule_id: UUID) -> ActiveSchedule:
        """
        Re-apply the template's current structure to an active schedule.

        Timeslots are matched by (dayOfWeek, startTime). A match keeps its
        members and takes the template's endTime/capacity; an unmatched
        template slot starts empty; an instance slot with no template
        counterpart is deleted together with its bookings. Coach ids are left
        untouched.

        Raises:
            NotFoundError: the schedule or its template does not exist
        """
        schedule = db.query(ActiveSchedule).filter(
            ActiveSchedule.id == schedule_id
        ).with_for_update().populate_existing().first()
        if not schedule:
            db.rollback()
            raise NotFoundError("Active schedule not found")

        template = db.query(ScheduleTemplate).filter(
            ScheduleTemplate.id == schedule.template_id
        ).first()
        if not template:
            db.rollback()
            raise NotFoundError(f"Schedule template not found (ID: {schedule.template_id})")

        # Fence concurrent join/leave on every slot we may touch
        db.query(ActiveTimeSlot).join(ActiveScheduleDay).filter(
            ActiveScheduleDay.active_schedule_id == schedule.id
        ).with_for_update(of=ActiveTimeSlot).populate_existing().all()

        dropped_members = ActiveScheduleService._apply_template(schedule, template)
        schedule.last_reset_at = datetime.now(timezone.utc)

        db.commit()
        db.refresh(schedule)

        logger.info(
            f"Reset active schedule {schedule.id} from template {template.id} "
            f"({dropped_members} booking(s) dropped)"
        )
        return schedule

    @staticmethod
    def _apply_template(schedule: ActiveSchedule, template: ScheduleTemplate) -> int:
        existing_days = {day.day_of_week: day for day in schedule.days}
        dropped_members = 0
        new_days = []

        for day_position, template_day in enumerate(template.days or []):
            day_of_week = template_day["day_of_week"]
            day = existing_days.pop(day_of_week, None)
            if day is None:
                day = ActiveScheduleDay(day_of_week=day_of_week)
            day.position = day_position

            existing_slots = {slot.start_time: slot for slot in day.time_slots}
            new_slots = []
            for slot_position, template_slot in enumerate(template_day.get("time_slots", [])):
                slot = existing_slots.pop(template_slot["start_time"], None)
                if slot is None:
                    slot = _new_timeslot(slot_position, template_slot)
                else:
                    dropped_members += _trim_to_capacity(slot, template_slot["capacity"])
                    slot.position = slot_position
                    slot.end_time = template_slot["end_time"]
                    slot.capacity = template_slot["capacity"]
                new_slots.append(slot)

            # Whatever is left has no template counterpart any more
            dropped_members += sum(len(slot.assignments) for slot in existing_slots.values())
            day.time_slots = new_slots
            new_days.append(day)

        for removed_day in existing_days.values():
            dropped_members += sum(len(slot.assignments) for slot in removed_day.time_slots)

        schedule.days = new_days
        return dropped_members

    @staticmethod
    def _reset_many(db: Session, schedules: List[ActiveSchedule], scope: str) -> ResetSummary:
        if not schedules:
            return ResetSummary(
                success=True,
                reset_count=0,
                failed_count=0,
                message=f"No active schedules found to reset{scope}",
            )

        schedule_ids = [schedule.id for schedule in schedules]
        errors = []
        reset_count = 0

        # Each reset commits on its own so one bad template doesn't block the rest
        for schedule_id in schedule_ids:
            try:
                ActiveScheduleService.reset(db, schedule_id)
                reset_count += 1
            except NotFoundError as e:
                errors.append(f"Failed to reset schedule {schedule_id}: {e.message}")
            except Exception as e:
                db.rollback()
                logger.error(f"Error resetting schedule {schedule_id}: {e}", exc_info=True)
                errors.append(f"Failed to reset schedule {schedule_id}: {e}")

        failed_count = len(errors)
        success = failed_count == 0
        if success:
            message = f"Successfully reset {reset_count} active schedule(s){scope}"
        else:
            message = f"Reset {reset_count} schedule(s){scope}, {failed_count} failed"

        return ResetSummary(
            success=success,
            reset_count=reset_count,
            failed_count=failed_count,
            errors=errors,
            message=message,
        )

    @staticmethod
    def reset_all(db: Session) -> ResetSummary:
        """Reset every active schedule (weekly job)"""
        schedules = db.query(ActiveSchedule).all()
        return ActiveScheduleService._reset_many(db, schedules, "")

    @staticmethod
    def reset_by_gym(db: Session, gym_id: str) -> ResetSummary:
        schedules = db.query(ActiveSchedule).filter(ActiveSchedule.gym_id == gym_id).all()
        return ActiveScheduleService._reset_many(db, schedules, f" for gym {gym_id}")

    # ------------------------------------------------------------------
    # Deletion and staff roster
    # ------------------------------------------------------------------

    @staticmethod
    def delete_schedule(db: Session, schedule_id: UUID) -> None:
        schedule = ActiveScheduleService.get_schedule(db, schedule_id)
        db.delete(schedule)
        db.commit()
        logger.info(f"Deleted active schedule {schedule_id}")

    @staticmethod
    def assign_staff(db: Session, schedule_id: UUID, coach_id: str) -> ActiveSchedule:
        schedule = ActiveScheduleService.get_schedule(db, schedule_id)

        coach_ids = list(schedule.coach_ids or [])
        if coach_id in coach_ids:
            raise ConflictError("Coach is already assigned to this schedule")

        schedule.coach_ids = coach_ids + [coach_id]
        db.commit()
        db.refresh(schedule)

        logger.info(f"Assigned coach {coach_id} to active schedule {schedule.id}")
        return schedule

    @staticmethod
    def unassign_staff(db: Session, schedule_id: UUID, coach_id: str) -> ActiveSchedule:
        schedule = ActiveScheduleService.get_schedule(db, schedule_id)

        coach_ids = list(schedule.coach_ids or [])
        if coach_id not in coach_ids:
            raise ConflictError("Coach is not assigned to this schedule")
        if len(coach_ids) == 1:
            raise ConflictError("Cannot remove the last coach from the schedule")

        schedule.coach_ids = [c for c in coach_ids if c != coach_id]
        db.commit()
        db.refresh(schedule)

        logger.info(f"Unassigned coach {coach_id} from active schedule {schedule.id}")
        return schedule
