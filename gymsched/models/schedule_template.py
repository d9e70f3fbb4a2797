# gymsched/models/schedule_template.py
"""
ScheduleTemplate Model - reusable weekly blueprint.

The day/slot structure is stored as JSON because a template is never booked
against; it only feeds active schedule creation and reset.
"""
from sqlalchemy import Column, String, DateTime, JSON, Uuid, UniqueConstraint
from sqlalchemy.sql import func
import uuid
from gymsched.models.base import Base


class ScheduleTemplate(Base):
    __tablename__ = "schedule_templates"
    __table_args__ = (
        UniqueConstraint("gym_id", "name", name="uq_schedule_templates_gym_name"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    gym_id = Column(String(64), nullable=False, index=True)

    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)

    # Staff roster copied onto the active schedule at creation time
    coach_ids = Column(JSON, nullable=False, default=list)

    # [{"day_of_week": 1, "time_slots": [{"start_time": "09:00", "end_time": "10:00", "capacity": 5}]}]
    days = Column(JSON, nullable=False, default=list)

    created_by = Column(String(64), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self):
        return f"<ScheduleTemplate(id={self.id}, name={self.name}, gym_id={self.gym_id})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "gym_id": self.gym_id,
            "name": self.name,
            "description": self.description,
            "coach_ids": list(self.coach_ids or []),
            "days": self.days or [],
            "created_by": self.created_by,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
