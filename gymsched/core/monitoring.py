"""Health checks and monitoring endpoints"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from gymsched.config.database import get_db
from gymsched.config.redis import get_redis
from gymsched.models import ActiveSchedule, ActiveTimeSlot, ScheduleTemplate, TimeslotAssignment

logger = logging.getLogger(__name__)

health_router = APIRouter()


def schedule_store_stats(db: Session) -> dict:
    """Row counts for the schedule tables; raises if any of them is unreachable"""
    booked, capacity = db.query(
        func.coalesce(func.sum(ActiveTimeSlot.assigned_count), 0),
        func.coalesce(func.sum(ActiveTimeSlot.capacity), 0),
    ).one()
    return {
        "templates": db.query(func.count(ScheduleTemplate.id)).scalar(),
        "active_schedules": db.query(func.count(ActiveSchedule.id)).scalar(),
        "timeslots": db.query(func.count(ActiveTimeSlot.id)).scalar(),
        "bookings": db.query(func.count(TimeslotAssignment.id)).scalar(),
        "booked_spots": int(booked),
        "total_spots": int(capacity),
    }


@health_router.get("/")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "gym-schedule-api"}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """
    Health of the schedule store and the celery broker.

    The database check reads every schedule table, so a missing migration
    shows up here rather than on the first booking. Redis only carries the
    weekly reset, so losing it degrades the service without failing bookings.
    """
    checks = {
        "api": "healthy",
        "database": "unknown",
        "redis": "unknown",
        "overall": "unknown",
    }

    try:
        checks["schedules"] = schedule_store_stats(db)
        checks["database"] = "healthy"
    except Exception as e:
        db.rollback()
        logger.warning(f"Schedule store health check failed: {e}")
        checks["database"] = f"unhealthy: {e}"

    try:
        redis_client = await get_redis()
        await redis_client.ping()
        checks["redis"] = "healthy"
        await redis_client.aclose()
    except Exception as e:
        logger.warning(f"Redis health check failed: {e}")
        checks["redis"] = f"unhealthy: {e}"

    if checks["database"] != "healthy":
        checks["overall"] = "unhealthy"
    elif checks["redis"] != "healthy":
        checks["overall"] = "degraded"
    else:
        checks["overall"] = "healthy"

    return checks
