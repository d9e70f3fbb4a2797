# ============================================================================
# FILE: gymsched/services/schedule/booking_service.py
# Capacity booking engine - atomic join/leave on a single timeslot
# ============================================================================
"""
Join and leave never read the member count and then decide in Python. The
capacity check is the WHERE clause of the UPDATE that claims the spot:

    UPDATE active_timeslots
       SET assigned_count = assigned_count + 1
     WHERE id = :slot AND assigned_count < capacity

The database evaluates the predicate under the row's write lock, so however
many callers race for one slot, exactly min(callers, capacity - current)
updates match. The membership row is inserted in the same transaction and
the unique (timeslot_id, client_id) constraint rejects a second copy; if
either step fails the whole transaction is rolled back.

Policy: both directions are strict. Joining twice is ALREADY_JOINED and
leaving a slot you do not hold is NOT_JOINED; neither is folded into success.
"""
import enum
import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import delete, exists, insert, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymsched.core.exceptions import (
    AlreadyJoinedError,
    NotFoundError,
    NotJoinedError,
    TimeslotFullError,
)
from gymsched.models.active_schedule import (
    ActiveSchedule,
    ActiveScheduleDay,
    ActiveTimeSlot,
    TimeslotAssignment,
)

logger = logging.getLogger(__name__)


class BookingOutcome(str, enum.Enum):
    JOINED = "joined"
    FULL = "full"
    ALREADY_JOINED = "already_joined"
    LEFT = "left"
    NOT_JOINED = "not_joined"

    @property
    def succeeded(self) -> bool:
        return self in (BookingOutcome.JOINED, BookingOutcome.LEFT)


OUTCOME_ERRORS = {
    BookingOutcome.FULL: TimeslotFullError,
    BookingOutcome.ALREADY_JOINED: AlreadyJoinedError,
    BookingOutcome.NOT_JOINED: NotJoinedError,
}


def raise_for_outcome(outcome: BookingOutcome) -> None:
    """Translate a failed outcome into its schedule error"""
    error_cls = OUTCOME_ERRORS.get(outcome)
    if error_cls is not None:
        raise error_cls()


class CapacityBookingEngine:
    """Atomic membership changes for a single timeslot"""

    @staticmethod
    def _timeslot_exists(db: Session, schedule_id: UUID, timeslot_id: UUID) -> bool:
        row = db.query(ActiveTimeSlot.id).join(ActiveScheduleDay).filter(
            ActiveTimeSlot.id == timeslot_id,
            ActiveScheduleDay.active_schedule_id == schedule_id
        ).first()
        return row is not None

    @staticmethod
    def _require_timeslot(db: Session, schedule_id: UUID, timeslot_id: UUID) -> None:
        schedule = db.query(ActiveSchedule.id).filter(ActiveSchedule.id == schedule_id).first()
        if not schedule:
            raise NotFoundError("Active schedule not found")
        if not CapacityBookingEngine._timeslot_exists(db, schedule_id, timeslot_id):
            raise NotFoundError("Timeslot not found")

    @staticmethod
    def _is_member(db: Session, timeslot_id: UUID, user_id: str) -> bool:
        row = db.query(TimeslotAssignment.id).filter(
            TimeslotAssignment.timeslot_id == timeslot_id,
            TimeslotAssignment.client_id == user_id
        ).first()
        return row is not None

    @staticmethod
    def join(db: Session, schedule_id: UUID, timeslot_id: UUID, user_id: str) -> BookingOutcome:
        """
        Claim one spot in a timeslot for ``user_id``.

        Returns:
            JOINED, FULL or ALREADY_JOINED

        Raises:
            NotFoundError: schedule or timeslot does not exist
        """
        CapacityBookingEngine._require_timeslot(db, schedule_id, timeslot_id)
        # Close the read transaction so the guarded UPDATE opens a fresh one
        db.commit()

        claimed = db.execute(
            update(ActiveTimeSlot)
            .where(
                ActiveTimeSlot.id == timeslot_id,
                ActiveTimeSlot.assigned_count < ActiveTimeSlot.capacity
            )
            .values(assigned_count=ActiveTimeSlot.assigned_count + 1)
            .execution_options(synchronize_session=False)
        )

        if claimed.rowcount == 0:
            db.rollback()
            # The decision is already made; this only classifies it
            if not CapacityBookingEngine._timeslot_exists(db, schedule_id, timeslot_id):
                raise NotFoundError("Timeslot not found")
            if CapacityBookingEngine._is_member(db, timeslot_id, user_id):
                outcome = BookingOutcome.ALREADY_JOINED
            else:
                outcome = BookingOutcome.FULL
            logger.info(f"Join rejected ({outcome.value}) for user {user_id} on timeslot {timeslot_id}")
            return outcome

        try:
            db.execute(
                insert(TimeslotAssignment).values(
                    timeslot_id=timeslot_id,
                    client_id=user_id,
                    joined_at=datetime.now(timezone.utc),
                )
            )
            db.commit()
        except IntegrityError:
            # Duplicate membership; the rollback also returns the claimed spot
            db.rollback()
            logger.info(f"Join rejected (already_joined) for user {user_id} on timeslot {timeslot_id}")
            return BookingOutcome.ALREADY_JOINED

        logger.info(f"User {user_id} joined timeslot {timeslot_id} of schedule {schedule_id}")
        return BookingOutcome.JOINED

    @staticmethod
    def leave(db: Session, schedule_id: UUID, timeslot_id: UUID, user_id: str) -> BookingOutcome:
        """
        Release ``user_id``'s spot in a timeslot.

        The slot row is written first, as in ``join``, so join, leave and
        reset all lock the timeslot before any of its assignment rows.

        Returns:
            LEFT or NOT_JOINED

        Raises:
            NotFoundError: schedule or timeslot does not exist
        """
        CapacityBookingEngine._require_timeslot(db, schedule_id, timeslot_id)
        db.commit()

        membership = exists().where(
            TimeslotAssignment.timeslot_id == timeslot_id,
            TimeslotAssignment.client_id == user_id
        )
        released = db.execute(
            update(ActiveTimeSlot)
            .where(
                ActiveTimeSlot.id == timeslot_id,
                ActiveTimeSlot.assigned_count > 0,
                membership
            )
            .values(assigned_count=ActiveTimeSlot.assigned_count - 1)
            .execution_options(synchronize_session=False)
        )

        if released.rowcount == 0:
            db.rollback()
            if not CapacityBookingEngine._timeslot_exists(db, schedule_id, timeslot_id):
                raise NotFoundError("Timeslot not found")
            logger.info(f"Leave rejected (not_joined) for user {user_id} on timeslot {timeslot_id}")
            return BookingOutcome.NOT_JOINED

        removed = db.execute(
            delete(TimeslotAssignment)
            .where(
                TimeslotAssignment.timeslot_id == timeslot_id,
                TimeslotAssignment.client_id == user_id
            )
            .execution_options(synchronize_session=False)
        )

        if removed.rowcount == 0:
            # A concurrent leave of the same membership committed first
            db.rollback()
            logger.info(f"Leave rejected (not_joined) for user {user_id} on timeslot {timeslot_id}")
            return BookingOutcome.NOT_JOINED

        db.commit()

        logger.info(f"User {user_id} left timeslot {timeslot_id} of schedule {schedule_id}")
        return BookingOutcome.LEFT
