# gymsched/models/active_schedule.py
"""
ActiveSchedule Model - the live, bookable instance of a ScheduleTemplate.

Structure is normalised so that a single timeslot row can be the target of
an atomic conditional update:

    active_schedules 1-n active_schedule_days 1-n active_timeslots 1-n timeslot_assignments

timeslot_assignments *is* a slot's assignedClients set. active_timeslots.assigned_count
mirrors its size and is only ever changed in the same transaction as the
assignment rows; it exists so the capacity guard is one UPDATE statement.
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Integer, DateTime, JSON, Uuid, ForeignKey,
    UniqueConstraint, CheckConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import uuid
from gymsched.models.base import Base


def _utcnow():
    return datetime.now(timezone.utc)


class ActiveSchedule(Base):
    __tablename__ = "active_schedules"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    gym_id = Column(String(64), nullable=False, index=True)

    # unique=True enforces the 1:1 template <-> active schedule relationship
    template_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("schedule_templates.id"),
        nullable=False,
        unique=True,
    )

    # Independently managed; never touched by reset
    coach_ids = Column(JSON, nullable=False, default=list)

    last_reset_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    template = relationship("ScheduleTemplate")
    days = relationship(
        "ActiveScheduleDay",
        back_populates="schedule",
        order_by="ActiveScheduleDay.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<ActiveSchedule(id={self.id}, template_id={self.template_id}, gym_id={self.gym_id})>"

    def to_dict(self):
        """Persisted state only; availability fields are attached by the projector"""
        return {
            "id": str(self.id),
            "gym_id": self.gym_id,
            "template_id": str(self.template_id),
            "template_name": self.template.name if self.template else None,
            "coach_ids": list(self.coach_ids or []),
            "days": [day.to_dict() for day in self.days],
            "last_reset_at": self.last_reset_at.isoformat() if self.last_reset_at else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class ActiveScheduleDay(Base):
    __tablename__ = "active_schedule_days"
    __table_args__ = (
        UniqueConstraint("active_schedule_id", "day_of_week", name="uq_active_schedule_days_schedule_dow"),
        CheckConstraint("day_of_week >= 0 AND day_of_week <= 6", name="ck_active_schedule_days_dow"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    active_schedule_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("active_schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week = Column(Integer, nullable=False)  # 0=Sunday, 6=Saturday
    position = Column(Integer, nullable=False, default=0)

    schedule = relationship("ActiveSchedule", back_populates="days")
    time_slots = relationship(
        "ActiveTimeSlot",
        back_populates="day",
        order_by="ActiveTimeSlot.position",
        cascade="all, delete-orphan",
    )

    def to_dict(self):
        return {
            "day_of_week": self.day_of_week,
            "time_slots": [slot.to_dict() for slot in self.time_slots],
        }


class ActiveTimeSlot(Base):
    __tablename__ = "active_timeslots"
    __table_args__ = (
        UniqueConstraint("day_id", "start_time", name="uq_active_timeslots_day_start"),
        CheckConstraint("capacity >= 1", name="ck_active_timeslots_capacity"),
        CheckConstraint(
            "assigned_count >= 0 AND assigned_count <= capacity",
            name="ck_active_timeslots_within_capacity",
        ),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    day_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("active_schedule_days.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position = Column(Integer, nullable=False, default=0)

    start_time = Column(String(5), nullable=False)  # "HH:MM"
    end_time = Column(String(5), nullable=False)
    capacity = Column(Integer, nullable=False)
    assigned_count = Column(Integer, nullable=False, default=0)

    day = relationship("ActiveScheduleDay", back_populates="time_slots")
    assignments = relationship(
        "TimeslotAssignment",
        back_populates="timeslot",
        order_by="TimeslotAssignment.id",  # join order
        cascade="all, delete-orphan",
    )

    @property
    def assigned_clients(self):
        return [assignment.client_id for assignment in self.assignments]

    def to_dict(self):
        return {
            "id": str(self.id),
            "start_time": self.start_time,
            "end_time": self.end_time,
            "capacity": self.capacity,
            "assigned_clients": self.assigned_clients,
        }


class TimeslotAssignment(Base):
    """One member holding one spot in one timeslot"""
    __tablename__ = "timeslot_assignments"
    __table_args__ = (
        UniqueConstraint("timeslot_id", "client_id", name="uq_timeslot_assignments_slot_client"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    timeslot_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("active_timeslots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_id = Column(String(64), nullable=False, index=True)
    joined_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    timeslot = relationship("ActiveTimeSlot", back_populates="assignments")

    def __repr__(self):
        return f"<TimeslotAssignment(timeslot_id={self.timeslot_id}, client_id={self.client_id})>"
